"""One sync pass from Zoko conversations into the lead queue."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from threading import Event
from typing import TypeVar

from ..errors import (
    LeadExistsError,
    ShopifyAPIError,
    ShopifyConfigurationError,
    ZokoAPIError,
    ZokoConfigurationError,
)
from ..matching.normalize import normalize_phone
from ..zoko.client import ZokoClient
from ..zoko.models import RemoteCustomer, RemoteMessage
from ..zoko.phone_index import PhoneIndexCache
from .grouping import IMAGE_GROUP_WINDOW, group_submissions
from .schemas import LeadRecord, SyncResult, lead_key
from .storage import EstimationStore, LeadStore, OrderSource

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _batched(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


class LeadSyncService:
    """Decide, per recently active Zoko customer, which leads to create.

    A pass reads three dedup sets once (existing lead keys, phones with a
    recent order, phones with a recent estimation) and treats them as a
    snapshot. Message fetches run ``batch_size`` at a time on a thread pool;
    grouping and inserts happen on the calling thread in customer order, so
    the in-memory key set needs no locking. Leads created by a concurrent pass
    after the snapshot are caught by the store's uniqueness constraint.
    """

    def __init__(
        self,
        directory: ZokoClient,
        phone_index: PhoneIndexCache,
        leads: LeadStore,
        estimations: EstimationStore,
        orders: OrderSource | None = None,
        *,
        lookback_days: int = 7,
        window: timedelta = IMAGE_GROUP_WINDOW,
        batch_size: int = 10,
        order_limit: int = 500,
        refresh_index: bool = True,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self.directory = directory
        self.phone_index = phone_index
        self.leads = leads
        self.estimations = estimations
        self.orders = orders
        self.lookback_days = lookback_days
        self.window = window
        self.batch_size = max(1, batch_size)
        self.order_limit = order_limit
        self.refresh_index = refresh_index
        self._now = now or (lambda: datetime.now(timezone.utc))

    def run(self, cancel_event: Event | None = None) -> SyncResult:
        """Run one pass and report ``added``/``skipped`` counts.

        Counts accumulated before a failure are still returned alongside the
        error message.
        """

        result = SyncResult()
        if not self.directory.configured:
            result.success = False
            result.error = "Zoko API not configured"
            return result
        logger.info("Starting lead sync...")
        try:
            self._run(result, cancel_event)
        except ZokoConfigurationError as exc:
            result.success = False
            result.error = str(exc)
        except Exception as exc:
            logger.exception("Lead sync failed")
            result.success = False
            result.error = str(exc) or exc.__class__.__name__
        else:
            logger.info(
                "Sync complete. Added: %s, Skipped: %s", result.added, result.skipped
            )
        return result

    # ------------------------------------------------------------------
    # Pass steps
    # ------------------------------------------------------------------

    def _run(self, result: SyncResult, cancel_event: Event | None) -> None:
        threshold = self._now() - timedelta(days=self.lookback_days)

        existing_keys = self.leads.list_keys()
        logger.info("Found %s existing leads", len(existing_keys))
        ordered_phones = self._recent_order_phones()
        estimated_phones = {
            phone
            for phone in (normalize_phone(p) for p in self.estimations.recent_phones(threshold))
            if phone
        }
        logger.info(
            "Found %s customers with recent orders, %s with recent estimations",
            len(ordered_phones),
            len(estimated_phones),
        )

        index = self.phone_index.get(force_refresh=self.refresh_index)
        recent = self._recent_customers(index.customers(), threshold)
        logger.info(
            "Found %s customers with activity in last %s days",
            len(recent),
            self.lookback_days,
        )

        pending: list[RemoteCustomer] = []
        for customer in recent:
            phone = normalize_phone(customer.channel_identifier)
            if phone and phone in ordered_phones:
                logger.debug("Skipping %s (%s) - has recent order", customer.display_name, customer.id)
                result.skipped += 1
                continue
            if phone and phone in estimated_phones:
                logger.debug(
                    "Skipping %s (%s) - has recent estimation", customer.display_name, customer.id
                )
                result.skipped += 1
                continue
            pending.append(customer)

        with ThreadPoolExecutor(max_workers=self.batch_size) as executor:
            for batch in _batched(pending, self.batch_size):
                if cancel_event and cancel_event.is_set():
                    logger.info("Lead sync cancelled")
                    break
                futures = [
                    (customer, executor.submit(self.directory.list_messages, customer.id))
                    for customer in batch
                ]
                for customer, future in futures:
                    try:
                        messages = future.result()
                    except ZokoAPIError as exc:
                        logger.error(
                            "Error fetching messages for customer %s: %s", customer.id, exc
                        )
                        continue
                    self._ingest_customer(customer, messages, threshold, existing_keys, result)

    def _recent_order_phones(self) -> set[str]:
        if self.orders is None:
            return set()
        try:
            orders = self.orders.list_recent_orders(
                days_back=self.lookback_days, limit=self.order_limit
            )
        except (ShopifyAPIError, ShopifyConfigurationError) as exc:
            logger.error("Error fetching Shopify orders, continuing without them: %s", exc)
            return set()
        phones = (normalize_phone(order.customer_phone) for order in orders)
        return {phone for phone in phones if phone}

    @staticmethod
    def _recent_customers(
        customers: list[RemoteCustomer], threshold: datetime
    ) -> list[RemoteCustomer]:
        recent = [
            c
            for c in customers
            if c.last_inbound_message_at is not None and c.last_inbound_message_at >= threshold
        ]
        recent.sort(key=lambda c: c.last_inbound_message_at, reverse=True)
        return recent

    def _ingest_customer(
        self,
        customer: RemoteCustomer,
        messages: list[RemoteMessage],
        threshold: datetime,
        existing_keys: set[str],
        result: SyncResult,
    ) -> None:
        groups = [
            group
            for group in group_submissions(messages, window=self.window)
            if group.first_image_at >= threshold
        ]
        if not groups:
            return
        logger.info(
            "Found %s image group(s) for %s (%s)",
            len(groups),
            customer.display_name,
            customer.id,
        )
        for group in groups:
            key = lead_key(customer.id, group.first_image_at)
            if key in existing_keys:
                result.skipped += 1
                continue
            try:
                self.leads.insert(LeadRecord.from_group(customer, group))
            except LeadExistsError:
                logger.debug("Lead %s was created concurrently", key)
                result.skipped += 1
                continue
            result.added += 1
            existing_keys.add(key)
            logger.info(
                "Added lead for %s with %s images", customer.display_name, len(group.images)
            )


__all__ = ["LeadSyncService"]
