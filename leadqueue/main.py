"""FastAPI application wiring for the lead queue service.

- Configures logging, Prometheus metrics and rate limiting.
- Creates the process-wide collaborators once and stores them on
  ``app.state``: settings, the Zoko client and the phone index cache. The
  database session factory is created lazily on first use.
- Mounts the queue and training routers and exposes health/version probes.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from .__version__ import __build_date__, __commit_sha__, __version__
from .app_logging import init_logging
from .config import get_settings
from .dependencies import limiter
from .errors import DatabaseConfigurationError
from .routers import queue, training
from .zoko.client import ZokoClient
from .zoko.phone_index import PhoneIndexCache

logger = logging.getLogger(__name__)

settings = get_settings()

app = FastAPI(title="Lead Queue", version=__version__)
init_logging(app)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

app.state.settings = settings
app.state.zoko_client = ZokoClient.from_settings(settings)
app.state.phone_index_cache = PhoneIndexCache(
    app.state.zoko_client, ttl_seconds=settings.phone_index_ttl_seconds
)
app.state.session_factory = None

app.include_router(queue.router)
app.include_router(training.router)

# Expose Prometheus metrics
Instrumentator().instrument(app).expose(
    app, include_in_schema=False, endpoint="/api/metrics"
)


@app.exception_handler(DatabaseConfigurationError)
async def database_not_configured(request: Request, exc: DatabaseConfigurationError):
    logger.error("Request to %s failed: %s", request.url.path, exc)
    return JSONResponse({"success": False, "error": str(exc)}, status_code=500)


@app.get("/api/health")
async def health():
    """Liveness/readiness probe with a minimal JSON body."""
    return {"status": "ok"}


@app.get("/api/version")
async def version():
    """Return version information for the application."""
    return {
        "version": __version__,
        "build_date": __build_date__,
        "commit_sha": __commit_sha__,
    }
