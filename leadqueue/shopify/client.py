"""Shopify Admin API transport."""

from __future__ import annotations

import logging
from typing import Any

import requests

from ..config import DEFAULT_SHOPIFY_API_VERSION, Settings, get_settings
from ..errors import ShopifyAPIError, ShopifyConfigurationError

logger = logging.getLogger(__name__)


class ShopifyClient:
    """POST GraphQL documents to the Admin API of a single store."""

    def __init__(
        self,
        store_domain: str,
        access_token: str | None,
        *,
        api_version: str = DEFAULT_SHOPIFY_API_VERSION,
        session: requests.Session | None = None,
        timeout: float = 30,
    ) -> None:
        self.store_domain = store_domain
        self.access_token = access_token
        self.api_version = api_version
        self.session = session or requests.Session()
        self.timeout = timeout

    @classmethod
    def from_settings(
        cls, settings: Settings | None = None, **kwargs: Any
    ) -> "ShopifyClient":
        settings = settings or get_settings()
        return cls(
            settings.shopify_store_domain,
            settings.shopify_access_token,
            api_version=settings.shopify_api_version,
            **kwargs,
        )

    @property
    def configured(self) -> bool:
        return bool(self.store_domain and self.access_token)

    @property
    def graphql_url(self) -> str:
        return f"https://{self.store_domain}/admin/api/{self.api_version}/graphql.json"

    def admin_fetch(
        self, query: str, variables: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """Run ``query`` and return its ``data`` member."""

        if not self.store_domain:
            raise ShopifyConfigurationError("SHOPIFY_STORE_DOMAIN is not configured")
        if not self.access_token:
            raise ShopifyConfigurationError("SHOPIFY_ADMIN_ACCESS_TOKEN is not configured")

        try:
            response = self.session.request(
                "POST",
                self.graphql_url,
                json={"query": query, "variables": variables or {}},
                headers={
                    "Content-Type": "application/json",
                    "X-Shopify-Access-Token": self.access_token,
                },
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise ShopifyAPIError(f"Shopify request failed: {exc}") from exc
        if response.status_code >= 400:
            raise ShopifyAPIError(
                f"Shopify API error: {response.status_code} - {response.text}",
                status_code=response.status_code,
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise ShopifyAPIError("Shopify returned invalid JSON") from exc
        errors = payload.get("errors")
        if errors:
            messages = ", ".join(
                str(e.get("message", e)) if isinstance(e, dict) else str(e) for e in errors
            )
            raise ShopifyAPIError(f"Shopify GraphQL error: {messages}")
        return payload.get("data") or {}


__all__ = ["ShopifyClient"]
