"""Backfill city/state/zip from a free-text address."""

from __future__ import annotations

from listing_scraper.schemas.listing import Listing


def split_address(address: str) -> dict[str, str]:
    """Best-effort city/state/zip from the trailing comma segments.

    Examples:
        "123 Main St, Springfield, IL 62704"
            -> {"city": "Springfield", "state": "IL", "zip": "62704"}
        "123 Main St, Springfield," -> {"city": "Springfield"}
        "no commas here" -> {}
    """
    parts = [p.strip() for p in (address or "").split(",")]
    if len(parts) < 2:
        return {}

    fields: dict[str, str] = {}
    if parts[-2]:
        fields["city"] = parts[-2]
    state_zip = parts[-1].split()
    if len(state_zip) >= 1:
        fields["state"] = state_zip[0]
    if len(state_zip) >= 2:
        fields["zip"] = state_zip[1]
    return fields


def backfill_address(listing: Listing) -> Listing:
    """Return ``listing`` with location fields filled from its address.

    Only applies when the address is present and city, state and zip are
    all empty; otherwise the listing is returned unchanged.
    """
    if not listing.address or listing.city or listing.state or listing.zip:
        return listing
    fields = split_address(listing.address)
    if not fields:
        return listing
    return listing.model_copy(update=fields)
