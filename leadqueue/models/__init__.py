"""SQLAlchemy declarative base and the tables this service reads and writes.

``Base`` is shared by every model; the Alembic revision under
``leadqueue/migrations`` mirrors the same DDL for PostgreSQL deployments.
"""

from __future__ import annotations

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy declarative models."""


from .estimation import Estimation  # noqa: E402
from .lead import LeadStatus, ZokoLead  # noqa: E402


__all__ = [
    "Base",
    "Estimation",
    "LeadStatus",
    "ZokoLead",
]
