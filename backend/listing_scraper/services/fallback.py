"""Deterministic stand-in listings for when a scrape yields nothing."""

from __future__ import annotations

from listing_scraper.schemas.listing import Listing

FALLBACK_SOURCE = "fallback"
DEFAULT_CITY = "Demo City"
DEFAULT_STATE = "ST"


def demo_fallback(city: str = "", state: str = "") -> list[Listing]:
    """Synthetic result set parameterized only by the requested city/state."""
    city = (city or "").strip() or DEFAULT_CITY
    state = (state or "").strip() or DEFAULT_STATE
    return [
        Listing(
            id="demo-scrape-1",
            title="Demo Scraped Listing",
            price=550000,
            address=f"123 Demo St, {city}, {state} 00000",
            city=city,
            state=state,
            zip="00000",
            beds=3,
            baths=2,
            sqft=1500,
            lot_sqft=5000,
            year_built=1999,
            stories=1,
            garage_spaces=2,
            has_rv_parking=True,
            has_fireplace=True,
            property_type="Single Family",
            tags=["demo", "fallback"],
            source=FALLBACK_SOURCE,
        )
    ]
