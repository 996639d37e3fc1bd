from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from conftest import ZokoDirectorySession, customer_payload, message_payload
from leadqueue.leads.training import (
    context_around,
    find_images_before_order,
    match_conversations,
)
from leadqueue.matching.scoring import Confidence
from leadqueue.shopify.models import Order
from leadqueue.zoko.client import ZokoClient
from leadqueue.zoko.models import RemoteCustomer, RemoteMessage
from leadqueue.zoko.phone_index import PhoneIndex

ORDER_AT = datetime(2024, 6, 10, 12, 0, tzinfo=timezone.utc)


def _messages(*payloads):
    return [RemoteMessage.model_validate(p) for p in payloads]


def _order(number, phone, first="Ali", last="Khan"):
    return Order.model_validate(
        {
            "id": f"gid://shopify/Order/{number}",
            "name": f"#{number}",
            "createdAt": ORDER_AT.isoformat(),
            "totalPriceSet": {"shopMoney": {"amount": "90.00", "currencyCode": "AED"}},
            "customer": {"firstName": first, "lastName": last, "phone": phone},
            "lineItems": {
                "edges": [{"node": {"title": "Sole", "quantity": 1, "variant": {"price": "90.00"}}}]
            },
        }
    )


def test_find_images_before_order_window_and_order():
    messages = _messages(
        message_payload("z1", "too-old", ORDER_AT - timedelta(days=8)),
        message_payload("z1", "edge", ORDER_AT - timedelta(days=7)),
        message_payload("z1", "newer", ORDER_AT - timedelta(hours=2), caption="zip"),
        message_payload("z1", "at-order", ORDER_AT),
        message_payload("z1", "after", ORDER_AT + timedelta(hours=1)),
        message_payload("z1", "store", ORDER_AT - timedelta(hours=1), direction="FROM_STORE"),
        message_payload("z1", "no-url", ORDER_AT - timedelta(hours=1), media_url=""),
    )

    images = find_images_before_order(messages, ORDER_AT)

    assert [i.message_id for i in images] == ["newer", "edge"]
    assert images[0].caption == "zip"


def test_context_around_only_text_within_an_hour():
    anchor = ORDER_AT - timedelta(days=1)
    messages = _messages(
        message_payload("z1", "far", anchor - timedelta(minutes=61), type="text", text="far"),
        message_payload("z1", "after", anchor + timedelta(minutes=60), type="text", text="after"),
        message_payload(
            "z1", "tpl", anchor - timedelta(minutes=5), type="template", direction="FROM_STORE", text="Hello"
        ),
        message_payload("z1", "img", anchor),
    )

    context = context_around(messages, anchor)

    assert [m.text for m in context] == ["Hello", "after"]


def test_match_conversations_pairs_orders_with_photos(caplog):
    ali = customer_payload("z1", "+971501234567", "ali khan")
    sara = customer_payload("z2", "0507654321", "Sara")
    pages = [[ali, sara]]
    messages = {
        "z1": [
            message_payload("z1", "img", ORDER_AT - timedelta(days=1)),
            message_payload(
                "z1", "txt", ORDER_AT - timedelta(days=1, minutes=10), type="text", text="black loafers"
            ),
        ],
        "z2": [message_payload("z2", "late", ORDER_AT + timedelta(days=1))],
    }
    client = ZokoClient("key", session=ZokoDirectorySession(pages, messages))
    index = PhoneIndex(
        entries={
            "501234567": RemoteCustomer.model_validate(ali),
            "507654321": RemoteCustomer.model_validate(sara),
        }
    )
    orders = [
        _order(1, "0501234567"),
        _order(2, "0507654321", first="Sara", last="Ahmed"),
        _order(3, "0559999999"),
    ]

    with caplog.at_level(logging.INFO, logger="leadqueue.leads.training"):
        matched = match_conversations(orders, index, client, limit=5)

    assert len(matched) == 1
    conversation = matched[0]
    assert conversation.confidence is Confidence.HIGH
    data = conversation.as_dict()
    assert data["order"]["name"] == "#1"
    assert data["order"]["totalPrice"] == "90.00"
    assert data["order"]["services"] == [{"title": "Sole", "quantity": 1, "price": "90.00"}]
    assert data["customer"] == {"id": "z1", "name": "ali khan", "phone": "+971501234567"}
    assert data["matchConfidence"] == "high"
    assert data["nameScore"] == 100
    assert [i["messageId"] for i in data["images"]] == ["img"]
    assert [m["text"] for m in data["contextMessages"]] == ["black loafers"]
    assert "no images found before order date" in caplog.text


def test_match_conversations_respects_limit_and_skips_fetch_errors():
    ali = customer_payload("z1", "0501234567", "Ali Khan")
    omar = customer_payload("z3", "0501111111", "Omar")
    pages = [[ali, omar]]
    messages = {
        "z1": 500,
        "z3": [message_payload("z3", "img", ORDER_AT - timedelta(hours=3))],
    }
    session = ZokoDirectorySession(pages, messages)
    index = PhoneIndex(
        entries={
            "501234567": RemoteCustomer.model_validate(ali),
            "501111111": RemoteCustomer.model_validate(omar),
        }
    )
    orders = [_order(1, "0501234567"), _order(2, "0501111111", "Omar", ""), _order(3, "0501111111")]

    matched = match_conversations(orders, index, ZokoClient("key", session=session), limit=1)

    assert [m.order.name for m in matched] == ["#2"]
    assert session.message_requests == ["z1", "z3"]
