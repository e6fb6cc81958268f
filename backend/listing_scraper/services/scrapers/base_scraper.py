"""Base class for provider extraction adapters."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from bs4 import BeautifulSoup, Tag

from listing_scraper.services.scrapers.utils import encode_segment

if TYPE_CHECKING:
    from listing_scraper.schemas.listing import Listing
    from listing_scraper.schemas.search import SearchQuery
    from listing_scraper.services.browser import SessionDiagnostics
    from listing_scraper.services.region_lookup import LookupClient

logger = logging.getLogger(__name__)


class BaseScraper(ABC):
    """Abstract base class for provider adapters.

    An adapter owns three things for its provider: the search URL
    templates, the "content ready" marker to wait for, and the mapping
    from one result card to a canonical ``Listing``. Extraction works on
    rendered markup only, so adapters never touch a live browser.
    """

    # Subclasses must define these
    SOURCE_NAME: str = ""
    CARD_SELECTOR: str = ""
    READY_SELECTOR: str | None = None

    # URL templates; each placeholder receives an encoded token
    ZIP_URL: str = ""
    CITY_STATE_URL: str = ""
    QUERY_URL: str = ""

    def __init__(self) -> None:
        if not self.SOURCE_NAME:
            raise ValueError(f"{self.__class__.__name__} must define SOURCE_NAME")
        if not self.CARD_SELECTOR:
            raise ValueError(f"{self.__class__.__name__} must define CARD_SELECTOR")

    @property
    def provenance(self) -> str:
        return f"{self.SOURCE_NAME}-scraper"

    def build_url(self, query: SearchQuery) -> str:
        """
        Fill the template matching the query's location precedence.

        Returns an empty string when the query has no usable location.
        """
        mode = query.location_mode
        if mode == "zip":
            return self.ZIP_URL.format(zip=encode_segment(query.zip))
        if mode == "city_state":
            return self.CITY_STATE_URL.format(
                city=encode_segment(self.city_token(query.city)),
                state=encode_segment(query.state),
            )
        if mode == "query":
            return self.QUERY_URL.format(q=encode_segment(query.free_text_query))
        return ""

    def city_token(self, city: str) -> str:
        """Hook for providers that reshape the city before encoding."""
        return city

    async def resolve_url(
        self,
        query: SearchQuery,
        lookup: LookupClient | None = None,
        diagnostics: SessionDiagnostics | None = None,
    ) -> str:
        """Resolve the target URL. Default: the heuristic template only."""
        return self.build_url(query)

    def extract(self, html: str, limit: int) -> list[Listing]:
        """Parse rendered markup and map up to ``limit`` cards."""
        soup = BeautifulSoup(html, "lxml")
        cards = soup.select(self.CARD_SELECTOR)[: max(limit, 0)]
        logger.info(
            "%s: %d card(s) matched %s", self.SOURCE_NAME, len(cards), self.CARD_SELECTOR
        )
        return [self.parse_card(card) for card in cards]

    @abstractmethod
    def parse_card(self, card: Tag) -> Listing:
        """Map one result card to a partially filled ``Listing``."""
        pass
