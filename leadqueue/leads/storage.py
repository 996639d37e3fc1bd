"""Persistence for leads and read access to estimations."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Protocol

from psycopg import errors as pg_errors
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from ..errors import LeadExistsError
from ..models import Estimation, ZokoLead
from ..models.session import session_scope
from ..shopify.models import Order
from .schemas import LeadRecord, as_utc, lead_key

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


class LeadStore(Protocol):
    """Lead queue persistence used by the sync pass."""

    def list_keys(self) -> set[str]: ...

    def insert(self, record: LeadRecord) -> None: ...


class EstimationStore(Protocol):
    def recent_phones(self, since: datetime) -> list[str]: ...


class OrderSource(Protocol):
    def list_recent_orders(self, days_back: int = 90, limit: int = 100) -> list[Order]: ...


def _is_unique_violation(exc: IntegrityError) -> bool:
    orig = exc.orig
    if isinstance(orig, pg_errors.UniqueViolation):
        return True
    if getattr(orig, "sqlstate", None) == UNIQUE_VIOLATION:
        return True
    # sqlite3 reports constraint failures only through the message text.
    return "UNIQUE constraint failed" in str(orig)


class SqlLeadStore:
    """SQLAlchemy implementation of :class:`LeadStore`."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def list_keys(self) -> set[str]:
        with session_scope(self._session_factory) as session:
            rows = session.execute(
                select(ZokoLead.zoko_customer_id, ZokoLead.first_image_at)
            ).all()
        return {lead_key(customer_id, first_image_at) for customer_id, first_image_at in rows}

    def insert(self, record: LeadRecord) -> None:
        """Insert ``record``; raise :class:`LeadExistsError` if its key is taken."""

        lead = ZokoLead(
            zoko_customer_id=record.zoko_customer_id,
            customer_name=record.customer_name,
            customer_phone=record.customer_phone,
            images=record.images,
            context_messages=record.context_messages,
            first_image_at=as_utc(record.first_image_at),
        )
        try:
            with session_scope(self._session_factory) as session:
                session.add(lead)
        except IntegrityError as exc:
            if _is_unique_violation(exc):
                raise LeadExistsError(f"Lead {record.key} already exists") from exc
            raise
        logger.debug("Inserted lead %s", record.key)


class SqlEstimationStore:
    """Reads ``(customer_phone, created_at)`` pairs from ``estimations``."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def recent_phones(self, since: datetime) -> list[str]:
        with session_scope(self._session_factory) as session:
            rows = session.scalars(
                select(Estimation.customer_phone).where(
                    Estimation.created_at >= as_utc(since),
                    Estimation.customer_phone.is_not(None),
                )
            ).all()
        return [phone for phone in rows if phone]


__all__ = [
    "EstimationStore",
    "LeadStore",
    "OrderSource",
    "SqlEstimationStore",
    "SqlLeadStore",
]
