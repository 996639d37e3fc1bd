"""Domain records produced by the lead pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from ..zoko.models import Direction, RemoteCustomer


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """UTC ISO-8601 with millisecond precision, e.g. ``2024-05-01T10:00:00.000Z``."""

    return as_utc(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def lead_key(customer_id: str, first_image_at: datetime) -> str:
    """Identity of a lead: ``"{customer_id}|{first_image_at}"``."""

    return f"{customer_id}|{format_timestamp(first_image_at)}"


@dataclass
class SubmissionImage:
    url: str
    message_id: str
    timestamp: datetime
    caption: str | None = None

    def as_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "url": self.url,
            "messageId": self.message_id,
            "timestamp": format_timestamp(self.timestamp),
        }
        if self.caption:
            data["caption"] = self.caption
        return data


@dataclass
class ContextMessage:
    direction: Direction
    text: str
    timestamp: datetime

    def as_dict(self) -> dict[str, Any]:
        return {
            "direction": self.direction.value,
            "text": self.text,
            "timestamp": format_timestamp(self.timestamp),
        }


@dataclass
class SubmissionGroup:
    """Images judged to show the same item, plus surrounding chat text."""

    first_image_at: datetime
    images: list[SubmissionImage] = field(default_factory=list)
    context_messages: list[ContextMessage] = field(default_factory=list)


@dataclass
class LeadRecord:
    """Row to insert into the lead store."""

    zoko_customer_id: str
    customer_name: str | None
    customer_phone: str | None
    first_image_at: datetime
    images: list[dict[str, Any]] = field(default_factory=list)
    context_messages: list[dict[str, Any]] = field(default_factory=list)

    @property
    def key(self) -> str:
        return lead_key(self.zoko_customer_id, self.first_image_at)

    @classmethod
    def from_group(cls, customer: RemoteCustomer, group: SubmissionGroup) -> "LeadRecord":
        return cls(
            zoko_customer_id=customer.id,
            customer_name=customer.display_name or None,
            customer_phone=customer.channel_identifier or None,
            first_image_at=as_utc(group.first_image_at),
            images=[image.as_dict() for image in group.images],
            context_messages=[msg.as_dict() for msg in group.context_messages],
        )


@dataclass
class SyncResult:
    """Counts reported by one sync pass."""

    success: bool = True
    added: int = 0
    skipped: int = 0
    error: str | None = None

    def as_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "success": self.success,
            "added": self.added,
            "skipped": self.skipped,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


__all__ = [
    "ContextMessage",
    "LeadRecord",
    "SubmissionGroup",
    "SubmissionImage",
    "SyncResult",
    "as_utc",
    "format_timestamp",
    "lead_key",
]
