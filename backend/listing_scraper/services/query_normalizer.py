"""Turn raw request parameters into a ``SearchQuery``."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from listing_scraper.schemas.search import SearchQuery

KNOWN_PROVIDERS = ("zillow", "redfin", "realtor")


def _clean(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def normalize_provider(
    raw: Any,
    default: str = "zillow",
    known: Iterable[str] = KNOWN_PROVIDERS,
) -> str:
    """Case-insensitive match against ``known``; anything else maps to ``default``."""
    known = tuple(known)
    provider = _clean(raw).lower()
    if provider in known:
        return provider
    fallback = _clean(default).lower()
    return fallback if fallback in known else "zillow"


def normalize_query(
    params: Mapping[str, Any],
    *,
    default_provider: str = "zillow",
    known: Iterable[str] = KNOWN_PROVIDERS,
) -> SearchQuery:
    return SearchQuery(
        provider=normalize_provider(params.get("provider"), default_provider, known),
        zip=_clean(params.get("zip")),
        city=_clean(params.get("city")),
        state=_clean(params.get("state")),
        free_text_query=_clean(params.get("q")),
    )
