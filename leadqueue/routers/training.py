"""Training data routes: orders matched to the conversations behind them."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from ..dependencies import OrderSourceDep, PhoneIndexCacheDep, ZokoClientDep
from ..leads.training import match_conversations

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/training", tags=["training"])

# Orders scanned per request; ``limit`` only caps the matches returned.
ORDER_SCAN_LIMIT = 200

DaysBackParam = Annotated[int, Query(alias="daysBack", ge=1)]
LimitParam = Annotated[int, Query(ge=1)]
RefreshParam = Annotated[bool, Query()]


@router.get("/matched-conversations")
def matched_conversations(
    cache: PhoneIndexCacheDep,
    directory: ZokoClientDep,
    orders: OrderSourceDep,
    days_back: DaysBackParam = 90,
    limit: LimitParam = 20,
    refresh: RefreshParam = False,
):
    """Return recent orders paired with the photos sent before each one."""
    if orders is None:
        return JSONResponse(
            {"success": False, "error": "Shopify API is not configured"},
            status_code=500,
        )
    if not directory.configured:
        return JSONResponse(
            {"success": False, "error": "Zoko API is not configured"},
            status_code=500,
        )

    logger.info("Matching orders from the last %s days (limit %s)", days_back, limit)
    try:
        index = cache.get(force_refresh=refresh)
        recent_orders = orders.list_recent_orders(days_back=days_back, limit=ORDER_SCAN_LIMIT)
        matched = match_conversations(recent_orders, index, directory, limit=limit)
    except Exception as exc:
        logger.exception("Matching conversations failed")
        return JSONResponse(
            {
                "success": False,
                "error": str(exc) or "Failed to fetch matched conversations",
            },
            status_code=500,
        )

    logger.info(
        "Matched %s conversations from %s orders", len(matched), len(recent_orders)
    )
    return {
        "success": True,
        "conversations": [conversation.as_dict() for conversation in matched],
        "stats": {
            "ordersFound": len(recent_orders),
            "ordersWithPhone": len(recent_orders),
            "matchesFound": len(matched),
            "indexSize": len(index),
        },
    }
