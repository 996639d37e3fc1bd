"""Cached reverse lookup from normalized phone number to Zoko customer."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from ..matching.normalize import normalize_phone
from .client import ZokoClient
from .models import RemoteCustomer

logger = logging.getLogger(__name__)

PROGRESS_LOG_EVERY = 50


class IndexState(str, Enum):
    EMPTY = "empty"
    BUILDING = "building"
    READY = "ready"
    STALE = "stale"


@dataclass(frozen=True)
class PhoneIndex:
    """Immutable snapshot of the directory keyed by normalized phone."""

    entries: Mapping[str, RemoteCustomer]
    built_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, phone: object) -> bool:
        return phone in self.entries

    def customers(self) -> list[RemoteCustomer]:
        return list(self.entries.values())

    def lookup(self, raw_phone: str | None) -> RemoteCustomer | None:
        """Find the customer for ``raw_phone``.

        Exact key first, then any key where one phone is a suffix of the other
        to absorb inconsistent country-code formatting.
        """

        phone = normalize_phone(raw_phone)
        if not phone:
            return None
        exact = self.entries.get(phone)
        if exact is not None:
            return exact
        for key, customer in self.entries.items():
            if key.endswith(phone) or phone.endswith(key):
                return customer
        return None


class PhoneIndexCache:
    """Process-wide holder of the current :class:`PhoneIndex`.

    Construct one per process and pass it to the code that needs lookups.
    Rebuilds are full directory scans guarded by a single-writer lock; the new
    snapshot replaces the old one only once the scan has finished, so readers
    never observe a partially built map.
    """

    def __init__(
        self,
        client: ZokoClient,
        *,
        ttl_seconds: float = 60 * 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.client = client
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._build_lock = threading.Lock()
        self._index: PhoneIndex | None = None
        self._built_at: float | None = None
        self._generation = 0
        self._building = False

    @property
    def state(self) -> IndexState:
        with self._lock:
            if self._building:
                return IndexState.BUILDING
            if self._index is None:
                return IndexState.EMPTY
            if self._is_fresh():
                return IndexState.READY
            return IndexState.STALE

    def _is_fresh(self) -> bool:
        return (
            self._index is not None
            and self._built_at is not None
            and self._clock() - self._built_at < self.ttl_seconds
        )

    def get(self, force_refresh: bool = False) -> PhoneIndex:
        """Return the cached index, rebuilding it when missing, stale or forced."""

        with self._lock:
            if not force_refresh and self._is_fresh():
                logger.debug("Using cached phone index with %s entries", len(self._index))
                return self._index
            generation = self._generation

        with self._build_lock:
            with self._lock:
                # Another caller finished a rebuild while this one was waiting.
                if self._generation != generation and self._index is not None:
                    return self._index
                self._building = True
            try:
                index = self._build()
            finally:
                with self._lock:
                    self._building = False
            with self._lock:
                self._index = index
                self._built_at = self._clock()
                self._generation += 1
            return index

    def lookup(self, raw_phone: str | None) -> RemoteCustomer | None:
        return self.get().lookup(raw_phone)

    def invalidate(self) -> None:
        """Drop the cached index so the next :meth:`get` rebuilds it."""

        with self._lock:
            self._index = None
            self._built_at = None
        logger.info("Phone index cache cleared")

    def _build(self) -> PhoneIndex:
        logger.info("Building phone index...")
        started = time.monotonic()
        entries: dict[str, RemoteCustomer] = {}
        for page in self.client.iter_customer_pages(skip_failed=True):
            for customer in page.customers:
                phone = normalize_phone(customer.channel_identifier)
                if phone:
                    entries[phone] = customer
            if page.page % PROGRESS_LOG_EVERY == 0:
                logger.info(
                    "Indexed page %s/%s, %s customers so far",
                    page.page,
                    page.total_pages,
                    len(entries),
                )
        logger.info(
            "Phone index built: %s customers in %.1fs",
            len(entries),
            time.monotonic() - started,
        )
        return PhoneIndex(entries=entries)


__all__ = ["IndexState", "PhoneIndex", "PhoneIndexCache"]
