"""Redfin search-results adapter.

Redfin search pages live under region-specific paths, so a plain
city/state template is only a guess. Before using it we ask Redfin's
location autocomplete for the canonical region URL, over the browser
context when one is available so the request shares cookies and proxy.
"""

from __future__ import annotations

import json
import logging
import re
from typing import TYPE_CHECKING, Any

from bs4 import Tag
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from listing_scraper.config import settings
from listing_scraper.schemas.listing import Listing
from listing_scraper.services.region_lookup import HttpxLookupClient
from listing_scraper.services.scrapers.base_scraper import BaseScraper
from listing_scraper.services.scrapers.utils import (
    attr_of,
    build_browser_headers,
    derive_id,
    encode_segment,
    first_decimal,
    image_src,
    text_of,
    to_number,
)
from listing_scraper.utils.exceptions import RegionLookupError

if TYPE_CHECKING:
    from listing_scraper.schemas.search import SearchQuery
    from listing_scraper.services.browser import SessionDiagnostics
    from listing_scraper.services.region_lookup import LookupClient

logger = logging.getLogger(__name__)

REDFIN_BASE_URL = "https://www.redfin.com"
AUTOCOMPLETE_URL = f"{REDFIN_BASE_URL}/stingray/do/location-autocomplete?location={{location}}&v=2"

# Stingray responses are prefixed to defeat JSON hijacking
_JSON_GUARD = "{}&&"
_HOME_ID = re.compile(r"/home/([0-9]+)")


def parse_region_url(body: str) -> str:
    """Pick the first autocomplete row exposing both ``id`` and a relative ``url``.

    Raises:
        RegionLookupError: On malformed JSON or when no row qualifies.
    """
    text = body.strip()
    if text.startswith(_JSON_GUARD):
        text = text[len(_JSON_GUARD):]
    try:
        data = json.loads(text)
    except ValueError as e:
        raise RegionLookupError(f"malformed autocomplete payload: {e}") from e

    payload: Any = data.get("payload", data) if isinstance(data, dict) else None
    sections = payload.get("sections") if isinstance(payload, dict) else None
    if not isinstance(sections, list):
        raise RegionLookupError("autocomplete payload has no sections list")
    for section in sections:
        if not isinstance(section, dict):
            continue
        rows = section.get("rows")
        if not isinstance(rows, list):
            continue
        for row in rows:
            if not isinstance(row, dict):
                continue
            url = row.get("url")
            if row.get("id") and isinstance(url, str) and url.startswith("/"):
                return f"{REDFIN_BASE_URL}{url}"
    raise RegionLookupError("no autocomplete row with id and url")


class RedfinScraper(BaseScraper):
    """Redfin home cards (``.bp-Homecard``)."""

    SOURCE_NAME = "redfin"
    CARD_SELECTOR = "div.bp-Homecard"
    READY_SELECTOR = ".bp-Homecard"

    ZIP_URL = f"{REDFIN_BASE_URL}/zipcode/{{zip}}"
    CITY_STATE_URL = f"{REDFIN_BASE_URL}/{{state}}/{{city}}"
    QUERY_URL = f"{REDFIN_BASE_URL}/search/{{q}}"

    def __init__(
        self,
        lookup_attempts: int | None = None,
        backoff_seconds: float | None = None,
    ) -> None:
        super().__init__()
        self._attempts = max(lookup_attempts or settings.region_lookup_attempts, 1)
        self._backoff = (
            settings.retry_backoff_seconds if backoff_seconds is None else backoff_seconds
        )

    def city_token(self, city: str) -> str:
        # Redfin paths hyphenate multi-word cities: "San-Antonio"
        return "-".join(city.split())

    async def resolve_url(
        self,
        query: SearchQuery,
        lookup: LookupClient | None = None,
        diagnostics: SessionDiagnostics | None = None,
    ) -> str:
        heuristic = self.build_url(query)
        # Zip has a deterministic template; only named places need a lookup
        if query.location_mode not in ("city_state", "query"):
            return heuristic

        client = lookup or HttpxLookupClient(settings.proxy_config())
        try:
            url = await self.lookup_region(query.location_text, client)
        except Exception as e:  # noqa: BLE001
            logger.warning(
                "Redfin region lookup failed for '%s', using %s: %s",
                query.location_text, heuristic, e,
            )
            if diagnostics is not None:
                diagnostics.region_lookup = f"failed: {e}"
            return heuristic

        logger.info("Redfin region lookup resolved '%s' -> %s", query.location_text, url)
        if diagnostics is not None:
            diagnostics.region_lookup = "resolved"
        return url

    async def lookup_region(self, location: str, lookup: LookupClient) -> str:
        """Resolve ``location`` to an absolute Redfin region URL."""
        url = AUTOCOMPLETE_URL.format(location=encode_segment(location))
        headers = build_browser_headers(referer=f"{REDFIN_BASE_URL}/")

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._attempts),
            wait=wait_exponential(multiplier=self._backoff, max=10),
            retry=retry_if_exception_type(RegionLookupError),
            reraise=True,
        ):
            with attempt:
                response = await lookup.get(url, headers)
                if not response.ok:
                    raise RegionLookupError(f"autocomplete returned {response.status}")
        return parse_region_url(response.text)

    def parse_card(self, card: Tag) -> Listing:
        price_text = text_of(card, ".bp-Homecard__Price--value")
        link = attr_of(card, "a.link-and-anchor", "href") or attr_of(
            card, 'a[href*="/home/"]', "href"
        )
        tags = [
            t.get_text(" ", strip=True)
            for t in card.select(".bp-Homecard__Sash, .bp-Homecard__Tag")
        ]
        return Listing(
            id=derive_id(link, _HOME_ID),
            title=price_text or "Listing",
            price=to_number(price_text),
            address=text_of(card, ".bp-Homecard__Address"),
            beds=to_number(text_of(card, ".bp-Homecard__Stats--beds")),
            baths=first_decimal(text_of(card, ".bp-Homecard__Stats--baths")),
            sqft=to_number(text_of(card, ".bp-Homecard__Stats--sqft")),
            photo_url=image_src(card),
            tags=[t for t in tags if t],
            source=self.provenance,
        )
