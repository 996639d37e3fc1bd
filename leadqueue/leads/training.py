"""Pair recent commerce orders with the photos customers sent beforehand.

Orders are the source of truth here: only conversations that led to a real
purchase are returned, so the photos can be reviewed next to what was sold.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from ..errors import ZokoAPIError
from ..matching.matcher import match_order_to_remote_customer
from ..matching.scoring import Confidence
from ..shopify.models import Order
from ..zoko.client import ZokoClient
from ..zoko.models import Direction, MessageKind, RemoteCustomer, RemoteMessage
from ..zoko.phone_index import PhoneIndex
from .schemas import ContextMessage, SubmissionImage, format_timestamp

logger = logging.getLogger(__name__)

IMAGES_BEFORE_ORDER_DAYS = 7
CONTEXT_RADIUS = timedelta(hours=1)
MAX_CONTEXT_MESSAGES = 10


def find_images_before_order(
    messages: Iterable[RemoteMessage],
    order_created_at: datetime,
    days_before: int = IMAGES_BEFORE_ORDER_DAYS,
) -> list[SubmissionImage]:
    """Inbound photos sent in the ``days_before`` days preceding an order, newest first."""

    window_start = order_created_at - timedelta(days=days_before)
    images = [
        SubmissionImage(
            url=m.media_url,
            message_id=m.message_id,
            timestamp=m.created_at,
            caption=m.file_caption or None,
        )
        for m in messages
        if m.is_inbound_image
        and m.media_url
        and window_start <= m.created_at < order_created_at
    ]
    images.sort(key=lambda image: image.timestamp, reverse=True)
    return images


def context_around(
    messages: Iterable[RemoteMessage],
    timestamp: datetime,
    *,
    radius: timedelta = CONTEXT_RADIUS,
    max_messages: int = MAX_CONTEXT_MESSAGES,
) -> list[ContextMessage]:
    nearby = sorted(
        (
            m
            for m in messages
            if m.kind is MessageKind.TEXT and abs(m.created_at - timestamp) <= radius
        ),
        key=lambda m: m.created_at,
    )
    return [
        ContextMessage(direction=m.direction, text=m.body, timestamp=m.created_at)
        for m in nearby[:max_messages]
    ]


@dataclass
class MatchedConversation:
    order: Order
    customer: RemoteCustomer
    confidence: Confidence
    name_score: int
    images: list[SubmissionImage] = field(default_factory=list)
    context_messages: list[ContextMessage] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        return {
            "order": {
                "id": self.order.id,
                "name": self.order.name,
                "createdAt": format_timestamp(self.order.created_at),
                "totalPrice": self.order.total_price,
                "currency": self.order.currency,
                "services": [
                    {"title": item.title, "quantity": item.quantity, "price": item.price}
                    for item in self.order.line_items
                ],
            },
            "customer": {
                "id": self.customer.id,
                "name": self.customer.display_name,
                "phone": self.customer.channel_identifier,
            },
            "matchConfidence": self.confidence.value,
            "nameScore": self.name_score,
            "images": [image.as_dict() for image in self.images],
            "contextMessages": [message.as_dict() for message in self.context_messages],
        }


def match_conversations(
    orders: Iterable[Order],
    phone_index: PhoneIndex,
    directory: ZokoClient,
    limit: int = 20,
) -> list[MatchedConversation]:
    """Match ``orders`` to Zoko conversations that contain pre-order photos.

    Orders without a phone, without an indexed customer, whose phone does not
    actually match, or without photos in the week before the order are
    skipped. A failed message fetch skips that order only.
    """

    matched: list[MatchedConversation] = []
    for order in orders:
        if len(matched) >= limit:
            break
        result = match_order_to_remote_customer(order, phone_index)
        if result is None or result.customer is None:
            continue
        if not result.phone_match:
            logger.info("Skipping %s: phone doesn't match", order.name)
            continue
        customer = result.customer
        try:
            messages = directory.list_messages(customer.id)
        except ZokoAPIError as exc:
            logger.error("Error processing %s: %s", order.name, exc)
            continue

        images = find_images_before_order(messages, order.created_at)
        if not images:
            logger.info("Skipping %s: no images found before order date", order.name)
            continue

        matched.append(
            MatchedConversation(
                order=order,
                customer=customer,
                confidence=result.confidence,
                name_score=result.name_score,
                images=images,
                context_messages=context_around(messages, images[0].timestamp),
            )
        )
        logger.info(
            "%s -> %s (%s, %s%% name match, %s images)",
            order.name,
            customer.display_name,
            result.confidence.value,
            result.name_score,
            len(images),
        )
    return matched


__all__ = [
    "MatchedConversation",
    "context_around",
    "find_images_before_order",
    "match_conversations",
]
