"""Lead queue table populated by the Zoko sync."""

from __future__ import annotations

import datetime as dt
import uuid
from enum import Enum
from typing import Any, Optional

from sqlalchemy import JSON, DateTime, Index, String, Text, UniqueConstraint, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from . import Base

_JSON = JSON().with_variant(JSONB(), "postgresql")


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class LeadStatus(str, Enum):
    NEW = "new"
    CLAIMED = "claimed"
    ANALYZED = "analyzed"
    QUOTED = "quoted"
    COMPLETED = "completed"
    SKIPPED = "skipped"


class ZokoLead(Base):
    """A customer photo submission awaiting staff review.

    Attributes:
        zoko_customer_id: Identifier of the customer in the messaging CRM.
        images: ``[{url, messageId, timestamp, caption}]`` for the group.
        context_messages: ``[{direction, text, timestamp}]`` around the images.
        first_image_at: Send time of the group's first image; together with
            ``zoko_customer_id`` it identifies the lead.
    """

    __tablename__ = "zoko_leads"
    __table_args__ = (
        UniqueConstraint(
            "zoko_customer_id", "first_image_at", name="uq_zoko_leads_customer_first_image"
        ),
        Index("idx_zoko_leads_status", "status"),
        Index("idx_zoko_leads_claimed_by", "claimed_by"),
        Index("idx_zoko_leads_first_image_at", "first_image_at"),
        Index("idx_zoko_leads_customer_phone", "customer_phone"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )
    zoko_customer_id: Mapped[str] = mapped_column(Text, nullable=False)
    customer_name: Mapped[Optional[str]] = mapped_column(Text)
    customer_phone: Mapped[Optional[str]] = mapped_column(Text)
    images: Mapped[list[dict[str, Any]]] = mapped_column(_JSON, nullable=False, default=list)
    context_messages: Mapped[list[dict[str, Any]]] = mapped_column(_JSON, default=list)
    status: Mapped[str] = mapped_column(
        String(length=32), nullable=False, default=LeadStatus.NEW.value
    )
    claimed_by: Mapped[Optional[str]] = mapped_column(Text)
    claimed_at: Mapped[Optional[dt.datetime]] = mapped_column(DateTime(timezone=True))
    first_image_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    completed_at: Mapped[Optional[dt.datetime]] = mapped_column(DateTime(timezone=True))
    notes: Mapped[Optional[str]] = mapped_column(Text)
