"""Listing search: cache, browser scrape, extraction and fallback."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from listing_scraper.config import Settings, settings
from listing_scraper.schemas.listing import Listing
from listing_scraper.schemas.search import SearchQuery
from listing_scraper.services.address import backfill_address
from listing_scraper.services.browser import BrowserPool, SessionDiagnostics
from listing_scraper.services.cache import ResultCache
from listing_scraper.services.fallback import FALLBACK_SOURCE, demo_fallback
from listing_scraper.services.query_normalizer import normalize_query
from listing_scraper.services.scrapers.registry import ScraperRegistry
from listing_scraper.utils.exceptions import (
    MissingLocationError,
    NavigationError,
    ScrapeError,
)

logger = logging.getLogger(__name__)


@dataclass
class SearchResult:
    results: list[Listing]
    # Provider tag, "fallback", or None on a cache hit
    source: str | None
    cached: bool = False
    proxy_used: bool = False
    diagnostics: dict[str, Any] | None = field(default=None)


def unique_by_id(listings: Iterable[Listing]) -> list[Listing]:
    """Keep the first listing for each id; cards can repeat across scroll passes."""
    seen: set[str] = set()
    unique: list[Listing] = []
    for listing in listings:
        if listing.id in seen:
            continue
        seen.add(listing.id)
        unique.append(listing)
    return unique


def result_source(results: list[Listing], provider: str) -> str:
    if results and all(r.source == FALLBACK_SOURCE for r in results):
        return FALLBACK_SOURCE
    return provider


class SearchService:
    """Runs one search end to end.

    Holds the process-wide cache and browser pool so request handlers stay
    stateless; both are injected, which keeps tests free of Playwright.
    """

    def __init__(
        self,
        cache: ResultCache,
        pool: BrowserPool,
        config: Settings = settings,
    ) -> None:
        self._cache = cache
        self._pool = pool
        self._config = config

    @property
    def cache(self) -> ResultCache:
        return self._cache

    def normalize(self, params: Mapping[str, Any]) -> SearchQuery:
        return normalize_query(
            params,
            default_provider=self._config.default_provider,
            known=ScraperRegistry.list_sources(),
        )

    async def search(self, params: Mapping[str, Any]) -> SearchResult:
        """
        Search listings for raw request parameters.

        Raises:
            MissingLocationError: No zip, city+state, or free-text query.
            ScrapeError: Browser launch or any unexpected pipeline failure.
        """
        query = self.normalize(params)
        if not query.has_location:
            raise MissingLocationError()

        proxy_used = self._config.proxy_config() is not None
        outcome: dict[str, SessionDiagnostics] = {}

        async def fetch() -> list[Listing]:
            results, diagnostics = await self.scrape(query)
            outcome["diagnostics"] = diagnostics
            return results

        results, cached = await self._cache.get_or_fetch(query.cache_key, fetch)
        if cached:
            logger.info("Cache hit for %s (%d results)", query.cache_key, len(results))
            return SearchResult(results=results, source=None, cached=True, proxy_used=proxy_used)

        diagnostics = outcome.get("diagnostics")
        return SearchResult(
            results=results,
            source=result_source(results, query.provider),
            proxy_used=proxy_used,
            diagnostics=(
                diagnostics.as_dict()
                if diagnostics is not None and self._config.expose_diagnostics
                else None
            ),
        )

    async def scrape(self, query: SearchQuery) -> tuple[list[Listing], SessionDiagnostics]:
        """
        Scrape one provider, substituting the fallback set when nothing is found.

        Navigation failures and empty extractions degrade to the fallback
        set; everything else is wrapped in ``ScrapeError``.
        """
        diagnostics = SessionDiagnostics()
        results: list[Listing] = []
        try:
            scraper = ScraperRegistry.get_scraper(query.provider)
            async with self._pool.session() as session:
                diagnostics = session.diagnostics
                url = await scraper.resolve_url(
                    query, session.lookup_client(), diagnostics=diagnostics
                )
                if not url:
                    raise MissingLocationError()
                try:
                    await session.navigate(url)
                except NavigationError as e:
                    logger.warning("Navigation failed for %s: %s", url, e)
                else:
                    await session.settle()
                    await session.wait_ready(scraper.READY_SELECTOR)
                    html = await session.content()
                    results = scraper.extract(html, self._config.scraper_max_results)
        except MissingLocationError:
            raise
        except Exception as e:
            logger.exception("Scrape failed for %s", query.cache_key)
            raise ScrapeError(str(e) or e.__class__.__name__) from e

        results = unique_by_id(backfill_address(r) for r in results)
        diagnostics.extracted = len(results)
        logger.info("Scrape diagnostics for %s: %s", query.cache_key, diagnostics.as_dict())

        if not results:
            logger.warning(
                "No listings extracted from %s for %s, using fallback",
                query.provider, query.cache_key,
            )
            results = demo_fallback(query.city, query.state)
        return results, diagnostics
