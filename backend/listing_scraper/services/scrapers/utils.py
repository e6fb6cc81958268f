"""Shared helpers for the provider extraction adapters."""

from __future__ import annotations

import re
import secrets
from typing import Any
from urllib.parse import quote

from bs4 import Tag

_NON_NUMERIC = re.compile(r"[^0-9.]")
_DECIMAL = re.compile(r"[0-9.]+")


def _as_number(value: float) -> int | float:
    if value != value or value < 0:  # NaN or negative
        return 0
    return int(value) if value.is_integer() else value


def to_number(text: Any) -> int | float:
    """Strip everything but digits and dots, then parse.

    Examples:
        "$1,234 sqft" -> 1234
        "" / None -> 0
        "1.2.3" -> 0
    """
    if not text:
        return 0
    digits = _NON_NUMERIC.sub("", str(text))
    if not digits:
        return 0
    try:
        return _as_number(float(digits))
    except ValueError:
        return 0


def first_decimal(text: Any) -> int | float:
    """Parse the first decimal-capable token, e.g. "2.5 ba" -> 2.5."""
    if not text:
        return 0
    match = _DECIMAL.search(str(text))
    if not match:
        return 0
    try:
        return _as_number(float(match.group()))
    except ValueError:
        return 0


def text_of(node: Tag | None, selector: str | None = None) -> str:
    """Stripped text of ``node`` or of its first descendant matching ``selector``."""
    if node is None:
        return ""
    target = node.select_one(selector) if selector else node
    if target is None:
        return ""
    return target.get_text(" ", strip=True)


def attr_of(node: Tag | None, selector: str, attr: str) -> str:
    if node is None:
        return ""
    target = node.select_one(selector)
    if target is None:
        return ""
    value = target.get(attr)
    if isinstance(value, list):
        value = " ".join(value)
    return (value or "").strip()


def image_src(node: Tag) -> str:
    """Primary ``src`` of the first image, else its lazy-load ``data-src``."""
    return attr_of(node, "img", "src") or attr_of(node, "img", "data-src")


def random_token() -> str:
    return secrets.token_hex(6)


def derive_id(link: str, pattern: re.Pattern[str]) -> str:
    """Provider id from a detail link, else the raw link, else a random token."""
    if link:
        match = pattern.search(link)
        if match:
            return match.group(1)
        return link
    return random_token()


def encode_segment(value: str) -> str:
    """Percent-encode one URL token the way ``encodeURIComponent`` does."""
    return quote(value, safe="-_.!~*'()")


def build_browser_headers(
    *,
    user_agent: str | None = None,
    referer: str = "",
    accept: str = "application/json, text/plain, */*",
) -> dict[str, str]:
    """Build browser-like HTTP headers for auxiliary requests.

    ``user_agent`` is omitted when None so a browser context keeps its own.
    """
    headers: dict[str, str] = {
        "Accept": accept,
        "Accept-Language": "en-US,en;q=0.9",
    }
    if user_agent:
        headers["User-Agent"] = user_agent
    if referer:
        headers["Referer"] = referer
    return headers
