"""Recent-order queries used for lead dedup and training matches."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from datetime import datetime, timedelta, timezone

from pydantic import ValidationError

from ..errors import ShopifyAPIError
from .client import ShopifyClient
from .models import Order

logger = logging.getLogger(__name__)

# Admin API hard limit on ``first``.
MAX_PAGE_SIZE = 250

RECENT_ORDERS_QUERY = """
  query RecentOrders($query: String!, $first: Int!, $after: String) {
    orders(first: $first, after: $after, query: $query, sortKey: CREATED_AT, reverse: true) {
      pageInfo {
        hasNextPage
        endCursor
      }
      edges {
        node {
          id
          name
          createdAt
          totalPriceSet {
            shopMoney {
              amount
              currencyCode
            }
          }
          customer {
            id
            firstName
            lastName
            phone
          }
          lineItems(first: 20) {
            edges {
              node {
                title
                quantity
                sku
                variant {
                  id
                  title
                  price
                }
              }
            }
          }
        }
      }
    }
  }
"""


class ShopifyOrderSource:
    """Commerce order source backed by the Shopify Admin GraphQL API."""

    def __init__(self, client: ShopifyClient, *, now=None) -> None:
        self.client = client
        self._now = now or (lambda: datetime.now(timezone.utc))

    def _search_query(self, days_back: int, tag: str | None) -> str:
        start = self._now() - timedelta(days=days_back)
        query = f"created_at:>={start.date().isoformat()}"
        if tag:
            query += f" tag:{tag}"
        return query

    def iter_recent_order_pages(
        self,
        days_back: int = 90,
        *,
        page_size: int = MAX_PAGE_SIZE,
        tag: str | None = None,
    ) -> Iterator[list[Order]]:
        """Yield pages of orders newest first, following ``endCursor``."""

        query = self._search_query(days_back, tag)
        first = min(page_size, MAX_PAGE_SIZE)
        cursor: str | None = None
        page_number = 0
        while True:
            page_number += 1
            data = self.client.admin_fetch(
                RECENT_ORDERS_QUERY, {"query": query, "first": first, "after": cursor}
            )
            connection = data.get("orders") or {}
            try:
                orders = [
                    Order.model_validate(edge["node"])
                    for edge in connection.get("edges", [])
                ]
            except (KeyError, TypeError, ValidationError) as exc:
                raise ShopifyAPIError(
                    f"Malformed orders on page {page_number}: {exc}"
                ) from exc
            logger.debug("Orders page %s: %s orders", page_number, len(orders))
            if not orders:
                break
            yield orders
            page_info = connection.get("pageInfo") or {}
            cursor = page_info.get("endCursor")
            if not page_info.get("hasNextPage") or not cursor:
                break

    def list_recent_orders(
        self, days_back: int = 90, limit: int = 100, tag: str | None = None
    ) -> list[Order]:
        """Return up to ``limit`` recent orders whose customer has a phone."""

        collected: list[Order] = []
        for page in self.iter_recent_order_pages(
            days_back, page_size=min(limit, MAX_PAGE_SIZE), tag=tag
        ):
            collected.extend(page)
            if len(collected) >= limit:
                break
        collected = collected[:limit]
        with_phone = [order for order in collected if order.customer_phone]
        logger.info(
            "Found %s orders in last %s days, %s with customer phone",
            len(collected),
            days_back,
            len(with_phone),
        )
        return with_phone


__all__ = ["MAX_PAGE_SIZE", "RECENT_ORDERS_QUERY", "ShopifyOrderSource"]
