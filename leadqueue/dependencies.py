"""FastAPI dependencies resolving the collaborators stored on ``app.state``.

``leadqueue.main`` creates one instance of each collaborator at startup; routes
receive them through these functions so tests can swap any of them with
``app.dependency_overrides``.
"""

from __future__ import annotations

import threading
from datetime import timedelta
from typing import Annotated

from fastapi import Depends, Request
from slowapi import Limiter
from sqlalchemy.orm import Session, sessionmaker

from .config import Settings
from .leads.service import LeadSyncService
from .leads.storage import SqlEstimationStore, SqlLeadStore
from .models.session import get_sessionmaker
from .shopify.client import ShopifyClient
from .shopify.orders import ShopifyOrderSource
from .zoko.client import ZokoClient
from .zoko.phone_index import PhoneIndexCache

_session_lock = threading.Lock()


def get_client_ip(request: Request) -> str:
    """Extract a best-effort client IP for rate limiting.

    Prefer ``X-Forwarded-For`` (first hop) if present, otherwise use the
    socket peer address.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


limiter = Limiter(key_func=get_client_ip)


def get_settings_state(request: Request) -> Settings:
    return request.app.state.settings


def get_zoko_client(request: Request) -> ZokoClient:
    return request.app.state.zoko_client


def get_phone_index_cache(request: Request) -> PhoneIndexCache:
    return request.app.state.phone_index_cache


def get_session_factory(request: Request) -> sessionmaker[Session]:
    """Return the shared session factory, creating the engine on first use."""

    state = request.app.state
    with _session_lock:
        if getattr(state, "session_factory", None) is None:
            state.session_factory = get_sessionmaker(state.settings.database_url)
        return state.session_factory


def get_order_source(
    settings: Annotated[Settings, Depends(get_settings_state)],
) -> ShopifyOrderSource | None:
    """Shopify order source, or ``None`` when the store is not configured."""

    if not settings.shopify_configured:
        return None
    return ShopifyOrderSource(ShopifyClient.from_settings(settings))


def get_sync_service(
    request: Request,
    settings: Annotated[Settings, Depends(get_settings_state)],
    directory: Annotated[ZokoClient, Depends(get_zoko_client)],
    phone_index: Annotated[PhoneIndexCache, Depends(get_phone_index_cache)],
    orders: Annotated[ShopifyOrderSource | None, Depends(get_order_source)],
) -> LeadSyncService:
    # The database is only needed once Zoko is configured; an unconfigured
    # pass returns its error without touching the store.
    session_factory = get_session_factory(request) if directory.configured else None
    return LeadSyncService(
        directory,
        phone_index,
        SqlLeadStore(session_factory),
        SqlEstimationStore(session_factory),
        orders,
        lookback_days=settings.lookback_days,
        window=timedelta(minutes=settings.image_group_window_minutes),
        batch_size=settings.sync_batch_size,
        order_limit=settings.order_dedup_limit,
    )


SettingsDep = Annotated[Settings, Depends(get_settings_state)]
ZokoClientDep = Annotated[ZokoClient, Depends(get_zoko_client)]
PhoneIndexCacheDep = Annotated[PhoneIndexCache, Depends(get_phone_index_cache)]
OrderSourceDep = Annotated[ShopifyOrderSource | None, Depends(get_order_source)]
SyncServiceDep = Annotated[LeadSyncService, Depends(get_sync_service)]


__all__ = [
    "OrderSourceDep",
    "PhoneIndexCacheDep",
    "SettingsDep",
    "SyncServiceDep",
    "ZokoClientDep",
    "get_client_ip",
    "get_order_source",
    "get_phone_index_cache",
    "get_session_factory",
    "get_settings_state",
    "get_sync_service",
    "get_zoko_client",
    "limiter",
]
