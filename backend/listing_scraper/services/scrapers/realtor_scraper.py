"""Realtor.com search-results adapter."""

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

_PROPERTY_ID = re.compile(r"/realestateandhomes-detail/([^/?#]+)")
_STATE_ZIP = re.compile(r"^(?P<city>.+?),\s*(?P<state>[A-Za-z]{2})(?:\s+(?P<zip>\d{5}))?$")


def _meta_value(card: Tag, name: str) -> str:
    return text_of(card, f'[data-testid="property-meta-{name}"] [data-testid="meta-value"]') or text_of(
        card, f'[data-testid="property-meta-{name}"]'
    )


def _lot_sqft(text: str) -> int | float:
    """Lot size in square feet; acreage is converted ("0.25 acre lot" -> 10890)."""
    if "acre" in text.lower():
        return round(first_decimal(text) * 43560)
    return to_number(text)


class RealtorScraper(BaseScraper):
    """Realtor.com property cards (``data-testid="card-content"``)."""

    SOURCE_NAME = "realtor"
    CARD_SELECTOR = '[data-testid="card-content"]'
    READY_SELECTOR = '[data-testid="card-content"]'

    ZIP_URL = "https://www.realtor.com/realestateandhomes-search/{zip}"
    CITY_STATE_URL = "https://www.realtor.com/realestateandhomes-search/{city}_{state}"
    QUERY_URL = "https://www.realtor.com/realestateandhomes-search/{q}"

    def city_token(self, city: str) -> str:
        # "San Antonio" -> "San-Antonio"
        return "-".join(city.split())

    def parse_card(self, card: Tag) -> Listing:
        price_text = text_of(card, '[data-testid="card-price"]')
        street = text_of(card, '[data-testid="card-address-1"]')
        locality = text_of(card, '[data-testid="card-address-2"]')
        link = attr_of(card, 'a[href*="/realestateandhomes-detail/"]', "href")

        city = state = zip_code = ""
        match = _STATE_ZIP.match(locality)
        if match:
            city = match.group("city").strip()
            state = match.group("state").upper()
            zip_code = match.group("zip") or ""

        badges = [
            b.get_text(" ", strip=True)
            for b in card.select('[data-testid="card-flag"], [data-testid="card-tag"]')
        ]
        return Listing(
            id=derive_id(link, _PROPERTY_ID),
            title=price_text or "Listing",
            price=to_number(price_text),
            address=", ".join(p for p in (street, locality) if p),
            city=city,
            state=state,
            zip=zip_code,
            beds=to_number(_meta_value(card, "beds")),
            baths=first_decimal(_meta_value(card, "baths")),
            sqft=to_number(_meta_value(card, "sqft")),
            lot_sqft=_lot_sqft(text_of(card, '[data-testid="property-meta-lot-size"]')),
            property_type=text_of(card, '[data-testid="card-description"]'),
            photo_url=image_src(card),
            tags=[b for b in badges if b],
            source=self.provenance,
        )
