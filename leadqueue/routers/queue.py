"""Lead queue sync and phone index maintenance routes."""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from ..dependencies import PhoneIndexCacheDep, SyncServiceDep, ZokoClientDep, limiter
from ..errors import ZokoConfigurationError
from ..leads.schemas import format_timestamp

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["queue"])


def _sync_rate_limit() -> str:
    # slowapi does not pass the request to limit providers.
    from ..main import app

    return app.state.settings.sync_rate_limit


def _failure(error: str, status_code: int = 500) -> JSONResponse:
    return JSONResponse({"success": False, "error": error}, status_code=status_code)


@router.post("/queue/sync")
@limiter.limit(_sync_rate_limit)
def sync_queue(request: Request, service: SyncServiceDep):
    """Pull recent Zoko conversations into the lead queue.

    Responds with ``{success, added, skipped}``; failures keep the partial
    counts and add ``error`` with status 500.
    """
    result = service.run()
    if not result.success:
        return JSONResponse(result.as_dict(), status_code=500)
    return result.as_dict()


@router.post("/zoko/phone-index/refresh")
def refresh_phone_index(cache: PhoneIndexCacheDep, directory: ZokoClientDep):
    """Rebuild the phone index immediately."""
    if not directory.configured:
        return _failure("Zoko API not configured")
    try:
        index = cache.get(force_refresh=True)
    except ZokoConfigurationError as exc:
        return _failure(str(exc))
    return {
        "success": True,
        "size": len(index),
        "builtAt": format_timestamp(index.built_at),
    }


@router.delete("/zoko/phone-index")
def clear_phone_index(cache: PhoneIndexCacheDep):
    cache.invalidate()
    return {"success": True}
