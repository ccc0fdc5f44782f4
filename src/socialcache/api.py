"""FastAPI service surface over the query facade.

Routes:
- GET /users              top users by post count
- GET /posts?type=...     popular or latest posts (default latest)
- GET /stats              dashboard summary
- GET /ready              readiness probe, no upstream calls
"""

from __future__ import annotations

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from socialcache.aggregation import AggregationEngine
from socialcache.config import Settings
from socialcache.errors import SocialCacheError
from socialcache.facade import QueryFacade
from socialcache.store import TTLStore
from socialcache.upstream import UpstreamClient

logger = logging.getLogger(__name__)

router = APIRouter()


def configure_logging(settings: Settings) -> None:
    """JSON lines in production, human-readable locally."""
    if settings.is_production:
        logging.basicConfig(
            level=logging.INFO,
            format='{"time":"%(asctime)s","level":"%(levelname)s","logger":"%(name)s","message":"%(message)s"}',
            stream=sys.stdout,
        )
    else:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")


def build_facade(settings: Settings, upstream: UpstreamClient) -> QueryFacade:
    store = TTLStore(ttl=settings.ttl_ms, single_flight=settings.single_flight)
    engine = AggregationEngine(
        store=store,
        source=upstream,
        max_concurrency=settings.max_concurrency,
    )
    return QueryFacade(engine)


def register_error_handlers(app: FastAPI) -> None:
    """Map socialcache errors to JSON responses."""

    @app.exception_handler(SocialCacheError)
    async def handle_socialcache_error(_request: Request, exc: SocialCacheError):
        return JSONResponse({"error": str(exc)}, status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def handle_unexpected(_request: Request, exc: Exception):
        logger.exception("Unhandled error: %s", exc)
        return JSONResponse({"error": "Internal server error"}, status_code=500)


def _facade(request: Request) -> QueryFacade:
    return request.app.state.facade


@router.get("/ready")
async def ready() -> dict:
    return {"status": "ok", "service": "socialcache"}


@router.get("/users")
async def top_users(request: Request) -> dict:
    return {"users": await _facade(request).top_users()}


@router.get("/posts")
async def posts(request: Request, kind: str = Query("latest", alias="type")) -> dict:
    return {"posts": await _facade(request).posts(kind)}


@router.get("/stats")
async def stats(request: Request) -> dict:
    return await _facade(request).dashboard_stats()


def create_app(
    settings: Settings | None = None,
    *,
    facade: QueryFacade | None = None,
) -> FastAPI:
    """Build the app. A facade passed in is used as-is and not closed."""
    settings = settings or Settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if facade is not None:
            app.state.facade = facade
            yield
            return
        async with UpstreamClient(settings.base_url, timeout=settings.timeout_s) as upstream:
            app.state.facade = build_facade(settings, upstream)
            logger.info("Serving %s with TTL %d ms", settings.base_url, settings.ttl_ms)
            yield

    app = FastAPI(title="socialcache", version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    if facade is not None:
        app.state.facade = facade

    register_error_handlers(app)
    app.include_router(router)
    return app
