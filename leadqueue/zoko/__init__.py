"""Zoko messaging CRM integration."""

from .client import ZokoClient
from .models import (
    ConversationWithImages,
    CustomerPage,
    Direction,
    MessageKind,
    RemoteCustomer,
    RemoteMessage,
)
from .phone_index import IndexState, PhoneIndex, PhoneIndexCache

__all__ = [
    "ConversationWithImages",
    "CustomerPage",
    "Direction",
    "IndexState",
    "MessageKind",
    "PhoneIndex",
    "PhoneIndexCache",
    "RemoteCustomer",
    "RemoteMessage",
    "ZokoClient",
]
