"""Transports for auxiliary lookups made while resolving a target URL.

A lookup can run over the live browser context (sharing its cookies and
proxy) or, when no browser is up yet, over a direct ``httpx`` client.
Both raise ``RegionLookupError`` for any transport failure so callers
handle a single exception type.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, NamedTuple, Protocol

import httpx
from playwright.async_api import Error as PlaywrightError

from listing_scraper.utils.exceptions import RegionLookupError

if TYPE_CHECKING:
    from playwright.async_api import APIRequestContext

    from listing_scraper.schemas.search import ProxyConfig

logger = logging.getLogger(__name__)


class LookupResponse(NamedTuple):
    status: int
    text: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class LookupClient(Protocol):
    async def get(self, url: str, headers: dict[str, str]) -> LookupResponse: ...


class PlaywrightLookupClient:
    """GET over a browser context's request API."""

    def __init__(self, request: APIRequestContext) -> None:
        self._request = request

    async def get(self, url: str, headers: dict[str, str]) -> LookupResponse:
        logger.debug("Browser lookup GET %s", url)
        try:
            response = await self._request.get(url, headers=headers)
            return LookupResponse(response.status, await response.text())
        except (PlaywrightError, UnicodeDecodeError) as e:
            raise RegionLookupError(f"browser lookup failed: {e}") from e


class HttpxLookupClient:
    """Direct GET, used when no browser context is available."""

    def __init__(self, proxy: ProxyConfig | None = None) -> None:
        self._proxy = proxy.to_httpx() if proxy else None

    async def get(self, url: str, headers: dict[str, str]) -> LookupResponse:
        logger.debug("Direct lookup GET %s", url)
        try:
            async with httpx.AsyncClient(proxy=self._proxy) as http:
                response = await http.get(url, headers=headers)
                return LookupResponse(response.status_code, response.text)
        except httpx.HTTPError as e:
            raise RegionLookupError(f"direct lookup failed: {e}") from e
