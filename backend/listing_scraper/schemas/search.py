from __future__ import annotations

from typing import Any, Literal
from urllib.parse import urlencode

from pydantic import BaseModel

from listing_scraper.schemas.listing import Listing

LocationMode = Literal["zip", "city_state", "query"]


class ProxyConfig(BaseModel):
    server_url: str
    user: str | None = None
    password: str | None = None

    def to_playwright(self) -> dict[str, str]:
        proxy = {"server": self.server_url}
        if self.user:
            proxy["username"] = self.user
        if self.password:
            proxy["password"] = self.password
        return proxy

    def to_httpx(self) -> str:
        """Proxy URL with credentials embedded, as httpx expects."""
        if not self.user:
            return self.server_url
        scheme, sep, rest = self.server_url.partition("://")
        if not sep:
            scheme, rest = "http", self.server_url
        auth = self.user if self.password is None else f"{self.user}:{self.password}"
        return f"{scheme}://{auth}@{rest}"


class SearchQuery(BaseModel):
    """Normalized search intent. Every string is already trimmed."""

    provider: str
    zip: str = ""
    city: str = ""
    state: str = ""
    free_text_query: str = ""

    @property
    def location_mode(self) -> LocationMode | None:
        # zip > city+state > free text
        if self.zip:
            return "zip"
        if self.city and self.state:
            return "city_state"
        if self.free_text_query:
            return "query"
        return None

    @property
    def has_location(self) -> bool:
        return self.location_mode is not None

    @property
    def location_text(self) -> str:
        """Human-readable location used for region lookups."""
        mode = self.location_mode
        if mode == "zip":
            return self.zip
        if mode == "city_state":
            return f"{self.city}, {self.state}"
        return self.free_text_query

    @property
    def cache_key(self) -> str:
        return urlencode(
            [
                ("provider", self.provider),
                ("zip", self.zip),
                ("city", self.city),
                ("state", self.state),
                ("q", self.free_text_query),
            ]
        )


class SearchResponse(BaseModel):
    results: list[Listing]
    source: str | None = None
    cached: bool | None = None
    proxy: bool | None = None
    diagnostics: dict[str, Any] | None = None
