"""Runtime settings loaded from the environment."""

from __future__ import annotations

import dataclasses
import os
import re
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()

DEFAULT_ZOKO_BASE_URL = "https://chat.zoko.io/v2"
DEFAULT_SHOPIFY_API_VERSION = "2024-01"


def _clean_domain(raw: str) -> str:
    domain = re.sub(r"^https?://", "", raw.strip())
    return re.sub(r"/+$", "", domain)


@dataclasses.dataclass(frozen=True)
class Settings:
    """Configuration for the remote clients, the database and the sync pass."""

    zoko_api_key: str | None = None
    zoko_base_url: str = DEFAULT_ZOKO_BASE_URL
    shopify_store_domain: str = ""
    shopify_access_token: str | None = None
    shopify_api_version: str = DEFAULT_SHOPIFY_API_VERSION
    database_url: str | None = None
    lookback_days: int = 7
    image_group_window_minutes: int = 120
    phone_index_ttl_seconds: int = 60 * 60  # one hour
    sync_batch_size: int = 10
    sync_rate_limit: str = "6/minute"
    order_dedup_limit: int = 500

    @property
    def zoko_configured(self) -> bool:
        return bool(self.zoko_api_key)

    @property
    def shopify_configured(self) -> bool:
        return bool(self.shopify_store_domain and self.shopify_access_token)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build :class:`Settings` from environment variables."""

    return Settings(
        zoko_api_key=os.getenv("ZOKO_API_KEY") or None,
        zoko_base_url=os.getenv("ZOKO_BASE_URL", DEFAULT_ZOKO_BASE_URL).rstrip("/"),
        shopify_store_domain=_clean_domain(os.getenv("SHOPIFY_STORE_DOMAIN", "")),
        shopify_access_token=os.getenv("SHOPIFY_ADMIN_ACCESS_TOKEN") or None,
        shopify_api_version=os.getenv(
            "SHOPIFY_API_VERSION", DEFAULT_SHOPIFY_API_VERSION
        ),
        database_url=os.getenv("DATABASE_URL") or None,
        lookback_days=int(os.getenv("LEAD_LOOKBACK_DAYS", "7")),
        image_group_window_minutes=int(os.getenv("IMAGE_GROUP_WINDOW_MINUTES", "120")),
        phone_index_ttl_seconds=int(os.getenv("PHONE_INDEX_TTL_SECONDS", "3600")),
        sync_batch_size=int(os.getenv("SYNC_BATCH_SIZE", "10")),
        sync_rate_limit=os.getenv("SYNC_RATE_LIMIT", "6/minute"),
        order_dedup_limit=int(os.getenv("ORDER_DEDUP_LIMIT", "500")),
    )


def reset_settings_cache() -> None:
    """Clear cached settings; useful in tests when env vars change."""

    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "reset_settings_cache"]
