"""Associate commerce orders with messaging CRM customers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .scoring import MatchResult, match_confidence

if TYPE_CHECKING:  # pragma: no cover - typing only
    from ..shopify.models import Order
    from ..zoko.phone_index import PhoneIndex


def match_order_to_remote_customer(
    order: "Order", phone_index: "PhoneIndex"
) -> MatchResult | None:
    """Find the Zoko customer behind ``order`` and grade the match.

    ``None`` means no customer could be associated at all, either because the
    order has no phone or because the index has no entry for it. A result with
    ``Confidence.NONE`` means a customer was found but did not match.
    """

    customer = order.customer
    phone = customer.phone if customer else None
    if not phone:
        return None
    remote = phone_index.lookup(phone)
    if remote is None:
        return None
    result = match_confidence(
        remote.channel_identifier,
        remote.display_name,
        phone,
        customer.first_name,
        customer.last_name,
    )
    result.customer = remote
    return result


__all__ = ["match_order_to_remote_customer"]
