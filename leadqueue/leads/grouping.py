"""Cluster a customer's inbound photos into submission groups."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import timedelta

from ..zoko.models import MessageKind, RemoteMessage
from .schemas import ContextMessage, SubmissionGroup, SubmissionImage

IMAGE_GROUP_WINDOW = timedelta(hours=2)
CONTEXT_LEAD_TIME = timedelta(hours=1)
MAX_CONTEXT_MESSAGES = 10


def group_submissions(
    messages: Iterable[RemoteMessage],
    *,
    window: timedelta = IMAGE_GROUP_WINDOW,
    context_lead: timedelta = CONTEXT_LEAD_TIME,
    max_context: int = MAX_CONTEXT_MESSAGES,
) -> list[SubmissionGroup]:
    """Group inbound images by send time and attach nearby text.

    A group is anchored at its first image and absorbs every later image sent
    within ``window`` of that anchor; the anchor never moves. Each group then
    receives up to ``max_context`` non-image messages sent between
    ``anchor - context_lead`` and ``anchor + window``, oldest first.
    """

    messages = list(messages)
    images = sorted(
        (m for m in messages if m.is_inbound_image), key=lambda m: m.created_at
    )

    groups: list[SubmissionGroup] = []
    current: SubmissionGroup | None = None
    for message in images:
        if current is None or message.created_at - current.first_image_at > window:
            current = SubmissionGroup(first_image_at=message.created_at)
            groups.append(current)
        current.images.append(
            SubmissionImage(
                url=message.image_url,
                message_id=message.message_id,
                timestamp=message.created_at,
                caption=message.file_caption or None,
            )
        )

    if not groups:
        return groups

    others = sorted(
        (m for m in messages if m.kind is not MessageKind.IMAGE),
        key=lambda m: m.created_at,
    )
    for group in groups:
        start = group.first_image_at - context_lead
        end = group.first_image_at + window
        nearby = [m for m in others if start <= m.created_at <= end]
        group.context_messages = [
            ContextMessage(direction=m.direction, text=m.body, timestamp=m.created_at)
            for m in nearby[:max_context]
        ]
    return groups


__all__ = [
    "CONTEXT_LEAD_TIME",
    "IMAGE_GROUP_WINDOW",
    "MAX_CONTEXT_MESSAGES",
    "group_submissions",
]
