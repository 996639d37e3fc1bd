"""Pydantic models for Zoko customers and messages."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Direction(str, Enum):
    """Who sent a message."""

    FROM_CUSTOMER = "FROM_CUSTOMER"
    FROM_STORE = "FROM_STORE"


class MessageKind(str, Enum):
    IMAGE = "image"
    TEXT = "text"
    OTHER = "other"


class RemoteCustomer(BaseModel):
    """A customer record from the Zoko directory."""

    id: str
    display_name: str = Field(default="", alias="name")
    channel: Optional[str] = None
    channel_identifier: str = Field(default="", alias="channelId")
    last_inbound_message_at: Optional[datetime] = Field(
        default=None, alias="lastIncomingMessageAt"
    )

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("display_name", "channel_identifier", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("last_inbound_message_at", mode="before")
    @classmethod
    def _blank_timestamp(cls, value: Any) -> Any:
        return None if value in ("", None) else value

    @field_validator("last_inbound_message_at")
    @classmethod
    def _utc_timestamp(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value) if value is not None else None


class MessageKey(BaseModel):
    customer_id: str = Field(default="", alias="customerId")
    platform_timestamp: Optional[str] = Field(default=None, alias="platformTimestamp")
    msg_id: str = Field(default="", alias="msgId")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class RemoteMessage(BaseModel):
    """A single conversation message as returned by Zoko."""

    key: MessageKey = Field(default_factory=MessageKey)
    direction: Direction
    type: str = "text"
    text: Optional[str] = None
    file_caption: Optional[str] = Field(default=None, alias="fileCaption")
    media_url: Optional[str] = Field(default=None, alias="mediaUrl")
    file_url: Optional[str] = Field(default=None, alias="fileUrl")
    sender_name: Optional[str] = Field(default=None, alias="senderName")
    created_at: datetime = Field(alias="createdAt")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("created_at")
    @classmethod
    def _utc_created_at(cls, value: datetime) -> datetime:
        return _as_utc(value)

    @property
    def customer_id(self) -> str:
        return self.key.customer_id

    @property
    def message_id(self) -> str:
        return self.key.msg_id

    @property
    def kind(self) -> MessageKind:
        if self.type == "image":
            return MessageKind.IMAGE
        if self.type in {"text", "template"}:
            return MessageKind.TEXT
        return MessageKind.OTHER

    @property
    def is_inbound_image(self) -> bool:
        return self.kind is MessageKind.IMAGE and self.direction is Direction.FROM_CUSTOMER

    @property
    def image_url(self) -> str:
        return self.media_url or self.file_url or ""

    @property
    def body(self) -> str:
        return self.text or self.file_caption or ""


class CustomerPage(BaseModel):
    """One page of the customer directory."""

    page: int
    customers: List[RemoteCustomer] = Field(default_factory=list)
    total_pages: int = Field(default=1, alias="totalPages")
    total_count: int = Field(default=0, alias="totalCustomers")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ConversationWithImages(BaseModel):
    """A customer with inbound images, used for training review."""

    customer: RemoteCustomer
    image_messages: List[RemoteMessage]
    messages: List[RemoteMessage]


__all__ = [
    "ConversationWithImages",
    "CustomerPage",
    "Direction",
    "MessageKey",
    "MessageKind",
    "RemoteCustomer",
    "RemoteMessage",
]
