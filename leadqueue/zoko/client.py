"""Read-only client for the Zoko messaging CRM."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from threading import Event
from typing import Any

import requests
from pydantic import ValidationError

from ..config import DEFAULT_ZOKO_BASE_URL, Settings, get_settings
from ..errors import ZokoAPIError, ZokoConfigurationError
from .models import ConversationWithImages, CustomerPage, RemoteCustomer, RemoteMessage

logger = logging.getLogger(__name__)


def _parse_items(model, items: list[Any], what: str) -> list[Any]:
    """Validate each item on its own, logging and dropping the malformed ones."""

    parsed = []
    for position, item in enumerate(items):
        try:
            parsed.append(model.model_validate(item))
        except ValidationError as exc:
            logger.warning("Skipping malformed %s #%s: %s", what, position, exc)
    return parsed


class ZokoClient:
    """Fetch the paginated customer directory and per-customer messages.

    Every request carries the ``apikey`` header. Failures surface as
    :class:`ZokoAPIError` so callers can decide per call whether to skip the
    unit of work; a missing key raises :class:`ZokoConfigurationError` before
    any I/O happens.
    """

    def __init__(
        self,
        api_key: str | None,
        *,
        base_url: str | None = None,
        channel: str = "whatsapp",
        session: requests.Session | None = None,
        timeout: float = 30,
    ) -> None:
        self.api_key = api_key
        self.base_url = (base_url or DEFAULT_ZOKO_BASE_URL).rstrip("/")
        self.channel = channel
        self.session = session or requests.Session()
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings | None = None, **kwargs: Any) -> "ZokoClient":
        settings = settings or get_settings()
        return cls(settings.zoko_api_key, base_url=settings.zoko_base_url, **kwargs)

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        if not self.api_key:
            raise ZokoConfigurationError("ZOKO_API_KEY is not configured")
        url = f"{self.base_url}/{path.lstrip('/')}"
        query = {"channel": self.channel, **(params or {})}
        try:
            response = self.session.request(
                "GET",
                url,
                params=query,
                headers={"apikey": self.api_key, "Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise ZokoAPIError(f"Zoko request to {path} failed: {exc}") from exc
        if response.status_code >= 400:
            raise ZokoAPIError(
                f"Zoko API error: {response.status_code}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise ZokoAPIError(f"Zoko returned invalid JSON for {path}") from exc

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def list_customers(self, page: int = 1) -> CustomerPage:
        """Return one page of the customer directory."""

        payload = self._get("/customer", {"page": page})
        if not isinstance(payload, dict):
            raise ZokoAPIError(f"Unexpected customer payload on page {page}")
        customers = payload.get("customers") or []
        if not isinstance(customers, list):
            raise ZokoAPIError(f"Unexpected customer list on page {page}")
        try:
            result = CustomerPage.model_validate({**payload, "page": page, "customers": []})
        except ValidationError as exc:
            raise ZokoAPIError(f"Malformed customer page {page}: {exc}") from exc
        result.customers = _parse_items(RemoteCustomer, customers, f"customer on page {page}")
        return result

    def list_messages(self, customer_id: str) -> list[RemoteMessage]:
        """Return every message exchanged with ``customer_id``."""

        payload = self._get(f"/customer/{customer_id}/messages")
        if not isinstance(payload, list):
            raise ZokoAPIError(f"Unexpected message payload for customer {customer_id}")
        return _parse_items(RemoteMessage, payload, f"message for customer {customer_id}")

    def iter_customer_pages(
        self,
        start_page: int = 1,
        *,
        skip_failed: bool = False,
        cancel_event: Event | None = None,
    ) -> Iterator[CustomerPage]:
        """Yield directory pages from ``start_page`` until ``totalPages``.

        The sequence is lazy; callers may stop iterating at any point and
        restart from any page. With ``skip_failed`` a page that cannot be
        fetched is logged and skipped instead of ending the iteration.
        """

        page = start_page
        total_pages = start_page
        while page <= total_pages:
            if cancel_event and cancel_event.is_set():
                break
            try:
                result = self.list_customers(page)
            except ZokoAPIError as exc:
                if not skip_failed:
                    raise
                logger.error("Zoko customer page %s failed: %s", page, exc)
                page += 1
                continue
            total_pages = result.total_pages
            yield result
            page += 1

    def find_conversations_with_images(
        self, start_page: int = 1, max_conversations: int = 10
    ) -> list[ConversationWithImages]:
        """Collect customers whose conversations contain inbound images."""

        results: list[ConversationWithImages] = []
        for page in self.iter_customer_pages(start_page):
            for customer in page.customers:
                if not customer.last_inbound_message_at:
                    continue
                messages = self.list_messages(customer.id)
                images = [m for m in messages if m.is_inbound_image]
                if not images:
                    continue
                results.append(
                    ConversationWithImages(
                        customer=customer, image_messages=images, messages=messages
                    )
                )
                if len(results) >= max_conversations:
                    return results
        return results


__all__ = ["ZokoClient"]
