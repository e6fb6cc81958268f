"""Zillow search-results adapter."""

from __future__ import annotations

import re

from bs4 import Tag

from listing_scraper.schemas.listing import Listing
from listing_scraper.services.scrapers.base_scraper import BaseScraper
from listing_scraper.services.scrapers.utils import (
    attr_of,
    derive_id,
    first_decimal,
    image_src,
    text_of,
    to_number,
)

_ZPID = re.compile(r"/([0-9]+)_zpid")


def classify_meta(items: list[str]) -> dict[str, int | float]:
    """Pick beds, baths and sqft out of unordered card metadata.

    Examples:
        ["3 bds", "2.5 ba", "1,820 sqft"] -> {"beds": 3, "baths": 2.5, "sqft": 1820}
    """
    beds = next((m for m in items if "bd" in m.lower()), "")
    baths = next((m for m in items if "ba" in m.lower()), "")
    sqft = next((m for m in items if "sqft" in m.lower()), "")
    return {
        "beds": to_number(beds),
        # Half baths are common, so take the first decimal token as-is
        "baths": first_decimal(baths),
        "sqft": to_number(sqft),
    }


class ZillowScraper(BaseScraper):
    """Zillow property cards (``data-testid="property-card"``)."""

    SOURCE_NAME = "zillow"
    CARD_SELECTOR = '[data-testid="property-card"]'
    READY_SELECTOR = '[data-testid="property-card"]'

    ZIP_URL = "https://www.zillow.com/homes/{zip}_rb/"
    CITY_STATE_URL = "https://www.zillow.com/homes/{city}-{state}/"
    QUERY_URL = "https://www.zillow.com/homes/{q}/"

    def parse_card(self, card: Tag) -> Listing:
        price_text = text_of(card, '[data-testid="property-card-price"]')
        meta = [
            item.get_text(" ", strip=True)
            for item in card.select('[data-testid="property-card-meta-item"]')
        ]
        link = attr_of(card, 'a[data-testid="property-card-link"]', "href")

        # City/state/zip are left for the address normalizer
        return Listing(
            id=derive_id(link, _ZPID),
            title=price_text or "Listing",
            price=to_number(price_text),
            address=text_of(card, '[data-testid="property-card-addr"]'),
            photo_url=image_src(card),
            tags=meta,
            source=self.provenance,
            **classify_meta(meta),
        )
