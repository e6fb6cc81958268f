from __future__ import annotations

import hmac
import logging
from collections.abc import AsyncGenerator, Awaitable, Callable  # noqa: TC003
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from listing_scraper.config import settings
from listing_scraper.routers import health, search
from listing_scraper.services.browser import BrowserPool
from listing_scraper.services.cache import ResultCache
from listing_scraper.services.query_normalizer import KNOWN_PROVIDERS
from listing_scraper.services.scrapers.registry import ScraperRegistry
from listing_scraper.services.search_service import SearchService
from listing_scraper.utils.exceptions import UnauthorizedError

logger = logging.getLogger(__name__)

# Paths reachable without the bearer token
PUBLIC_PATHS = frozenset({"/health"})


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ScraperRegistry.verify(KNOWN_PROVIDERS)

    pool = BrowserPool(settings)
    cache = ResultCache(settings.cache_max_entries, settings.cache_ttl_seconds)
    app.state.search_service = SearchService(cache, pool, settings)
    logger.info(
        "%s ready: providers=%s default=%s proxy=%s headless=%s",
        settings.app_name,
        ",".join(ScraperRegistry.list_sources()),
        settings.default_provider,
        settings.proxy_config() is not None,
        settings.headless,
    )
    try:
        yield
    finally:
        await pool.stop()


app = FastAPI(title=settings.app_name, lifespan=lifespan)


def check_bearer_token(request: Request) -> None:
    """
    Raises:
        UnauthorizedError: A token is configured and the request lacks it.
    """
    expected = settings.scraper_token
    if not expected or request.url.path in PUBLIC_PATHS:
        return
    header = request.headers.get("authorization", "")
    supplied = header.replace("Bearer ", "", 1).strip()
    if not hmac.compare_digest(supplied.encode(), expected.encode()):
        raise UnauthorizedError("unauthorized")


@app.middleware("http")
async def require_bearer_token(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Reject requests without the shared secret before any routing work."""
    try:
        check_bearer_token(request)
    except UnauthorizedError as e:
        logger.warning("Unauthorized %s %s", request.method, request.url.path)
        return JSONResponse(status_code=401, content={"error": str(e)})
    return await call_next(request)


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins.split(","),
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

app.include_router(health.router, tags=["health"])
app.include_router(search.router, tags=["search"])
