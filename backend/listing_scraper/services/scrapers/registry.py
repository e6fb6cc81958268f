"""Registry of provider extraction adapters."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from listing_scraper.services.scrapers.base_scraper import BaseScraper
from listing_scraper.services.scrapers.realtor_scraper import RealtorScraper
from listing_scraper.services.scrapers.redfin_scraper import RedfinScraper
from listing_scraper.services.scrapers.zillow_scraper import ZillowScraper
from listing_scraper.utils.exceptions import UnknownProviderError

logger = logging.getLogger(__name__)

_DEFAULT_SCRAPERS: dict[str, type[BaseScraper]] = {
    "zillow": ZillowScraper,
    "redfin": RedfinScraper,
    "realtor": RealtorScraper,
}


class ScraperRegistry:
    """Registry and factory for provider adapters, keyed by provider tag."""

    _scrapers: dict[str, type[BaseScraper]] = dict(_DEFAULT_SCRAPERS)

    @classmethod
    def get_scraper(cls, provider: str) -> BaseScraper:
        """
        Get an adapter instance by provider tag.

        Raises:
            UnknownProviderError: If the tag is not registered.
        """
        scraper_class = cls._scrapers.get(provider)
        if not scraper_class:
            raise UnknownProviderError(
                f"Unknown provider: {provider}. "
                f"Available: {', '.join(cls._scrapers.keys())}"
            )
        return scraper_class()

    @classmethod
    def list_sources(cls) -> list[str]:
        """List all registered provider tags."""
        return list(cls._scrapers.keys())

    @classmethod
    def register_scraper(cls, provider: str, scraper_class: type[BaseScraper]) -> None:
        """Register a new adapter class under ``provider``."""
        if not isinstance(scraper_class, type) or not issubclass(scraper_class, BaseScraper):
            raise TypeError(
                f"{getattr(scraper_class, '__name__', scraper_class)} "
                "must be a subclass of BaseScraper"
            )
        cls._scrapers[provider.lower()] = scraper_class
        logger.info("Registered scraper: %s -> %s", provider, scraper_class.__name__)

    @classmethod
    def reset(cls) -> None:
        """Restore the built-in adapters."""
        cls._scrapers = dict(_DEFAULT_SCRAPERS)

    @classmethod
    def verify(cls, declared: Iterable[str]) -> None:
        """Fail at startup if any declared provider has no adapter."""
        declared = list(declared)
        missing = [p for p in declared if p not in cls._scrapers]
        if missing:
            raise UnknownProviderError(
                f"No adapter registered for: {', '.join(missing)}"
            )
        for provider in declared:
            # Instantiation runs each adapter's own definition checks
            cls.get_scraper(provider)
        logger.info("Scraper registry verified: %s", ", ".join(declared))
