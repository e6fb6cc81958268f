"""Pytest configuration and fixtures for tests.

The fakes below stand in for Playwright's browser type, browser, context
and page so the whole pipeline can run without launching Chromium.
"""

from __future__ import annotations

import os
import sys
from typing import Any

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

# Ensure the backend package is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from listing_scraper.config import Settings  # noqa: E402
from listing_scraper.services.browser import BrowserPool  # noqa: E402
from listing_scraper.services.cache import ResultCache  # noqa: E402
from listing_scraper.services.search_service import SearchService  # noqa: E402


# ---------------------------------------------------------------------------
# HTML fixtures, one per provider
# ---------------------------------------------------------------------------

ZILLOW_HTML = """
<html><body><ul>
  <li>
    <article data-testid="property-card">
      <a data-testid="property-card-link"
         href="https://www.zillow.com/homedetails/123-Main-St-Springfield-IL-62704/12345678_zpid/">
        <address data-testid="property-card-addr">123 Main St, Springfield, IL 62704</address>
      </a>
      <span data-testid="property-card-price">$425,000</span>
      <ul>
        <li data-testid="property-card-meta-item">3 bds</li>
        <li data-testid="property-card-meta-item">2.5 ba</li>
        <li data-testid="property-card-meta-item">1,820 sqft</li>
      </ul>
      <img src="https://photos.example.com/main.jpg" />
    </article>
  </li>
  <li>
    <article data-testid="property-card">
      <address data-testid="property-card-addr">456 Oak Ave, Austin, TX 78704</address>
      <span data-testid="property-card-price">$610,000</span>
      <ul>
        <li data-testid="property-card-meta-item">2,400 sqft</li>
        <li data-testid="property-card-meta-item">4 bds</li>
        <li data-testid="property-card-meta-item">3 ba</li>
      </ul>
      <img data-src="https://photos.example.com/lazy.jpg" />
    </article>
  </li>
</ul></body></html>
"""

REDFIN_HTML = """
<html><body>
  <div class="HomeCardContainer">
    <div class="bp-Homecard">
      <img src="https://photos.example.com/redfin.jpg" />
      <span class="bp-Homecard__Sash">NEW 2 HRS AGO</span>
      <span class="bp-Homecard__Tag">Open house</span>
      <span class="bp-Homecard__Price--value">$515,000</span>
      <span class="bp-Homecard__Stats--beds">3 beds</span>
      <span class="bp-Homecard__Stats--baths">2.5 baths</span>
      <span class="bp-Homecard__Stats--sqft">1,640 sq ft</span>
      <a class="link-and-anchor" href="/TX/Austin/22-Fern-St-78704/home/31234567">
        <div class="bp-Homecard__Address">22 Fern St, Austin, TX 78704</div>
      </a>
    </div>
  </div>
</body></html>
"""

REALTOR_HTML = """
<html><body>
  <div data-testid="card-content">
    <img data-src="https://photos.example.com/realtor.jpg" />
    <div data-testid="card-flag">New</div>
    <div data-testid="card-description">House for sale</div>
    <div data-testid="card-price">$389,900</div>
    <ul>
      <li data-testid="property-meta-beds"><span data-testid="meta-value">4</span>bed</li>
      <li data-testid="property-meta-baths"><span data-testid="meta-value">2.5</span>bath</li>
      <li data-testid="property-meta-sqft"><span data-testid="meta-value">2,100</span>sqft</li>
      <li data-testid="property-meta-lot-size"><span data-testid="meta-value">0.25</span>acre lot</li>
    </ul>
    <a href="/realestateandhomes-detail/22-Fern-St_Austin_TX_78704_M12345-67890">
      <div data-testid="card-address-1">22 Fern St</div>
      <div data-testid="card-address-2">Austin, TX 78704</div>
    </a>
  </div>
</body></html>
"""


# ---------------------------------------------------------------------------
# Playwright fakes
# ---------------------------------------------------------------------------


class FakeMouse:
    def __init__(self, error: Exception | None = None) -> None:
        self.wheels: list[tuple[int, int]] = []
        self.error = error

    async def wheel(self, delta_x: int, delta_y: int) -> None:
        if self.error:
            raise self.error
        self.wheels.append((delta_x, delta_y))


class FakePage:
    def __init__(
        self,
        html: str = "",
        *,
        goto_failures: int = 0,
        ready: bool = True,
        content_error: Exception | None = None,
    ) -> None:
        self.html = html
        self.goto_failures = goto_failures
        self.ready = ready
        self.content_error = content_error
        self.goto_calls: list[str] = []
        self.waits: list[float] = []
        self.selectors: list[str] = []
        self.handlers: dict[str, list[Any]] = {}
        self.mouse = FakeMouse()

    def on(self, event: str, handler: Any) -> None:
        self.handlers.setdefault(event, []).append(handler)

    def emit(self, event: str, payload: Any) -> None:
        for handler in self.handlers.get(event, []):
            handler(payload)

    async def goto(self, url: str, wait_until: str | None = None, timeout: float | None = None) -> None:
        self.goto_calls.append(url)
        if self.goto_failures > 0:
            self.goto_failures -= 1
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded navigating to {url}")

    async def wait_for_timeout(self, ms: float) -> None:
        self.waits.append(ms)

    async def wait_for_selector(self, selector: str, timeout: float | None = None) -> None:
        self.selectors.append(selector)
        if not self.ready:
            raise PlaywrightTimeoutError(f"waiting for {selector} timed out")

    async def content(self) -> str:
        if self.content_error:
            raise self.content_error
        return self.html


class FakeAPIResponse:
    def __init__(self, status: int, body: str, text_error: Exception | None = None) -> None:
        self.status = status
        self._body = body
        self.text_error = text_error

    async def text(self) -> str:
        if self.text_error:
            raise self.text_error
        return self._body


class FakeRequestContext:
    """Stands in for ``BrowserContext.request``."""

    def __init__(self, responses: list[FakeAPIResponse | Exception] | None = None) -> None:
        self.responses = list(responses or [])
        self.calls: list[str] = []

    async def get(self, url: str, headers: dict[str, str] | None = None) -> FakeAPIResponse:
        self.calls.append(url)
        if not self.responses:
            raise PlaywrightError("no response configured")
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class FakeContext:
    def __init__(self, page: FakePage, request: FakeRequestContext) -> None:
        self.page = page
        self.request = request

    async def new_page(self) -> FakePage:
        return self.page


class FakeBrowser:
    def __init__(self, page: FakePage, request: FakeRequestContext) -> None:
        self.page = page
        self.request = request
        self.context_options: dict[str, Any] = {}
        self.close_count = 0

    async def new_context(self, **options: Any) -> FakeContext:
        self.context_options = options
        return FakeContext(self.page, self.request)

    async def close(self) -> None:
        self.close_count += 1


class FakeBrowserType:
    """Launches ``FakeBrowser`` instances that all share one page."""

    def __init__(
        self,
        page: FakePage | None = None,
        request: FakeRequestContext | None = None,
        launch_error: Exception | None = None,
    ) -> None:
        self.page = page or FakePage()
        self.request = request or FakeRequestContext()
        self.launch_error = launch_error
        self.browsers: list[FakeBrowser] = []
        self.headless_flags: list[bool] = []

    async def launch(self, headless: bool = True) -> FakeBrowser:
        self.headless_flags.append(headless)
        if self.launch_error:
            raise self.launch_error
        browser = FakeBrowser(self.page, self.request)
        self.browsers.append(browser)
        return browser


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def test_settings() -> Settings:
    """Settings with every wait and backoff zeroed out."""
    return Settings(
        _env_file=None,
        scraper_token="",
        proxy_url="",
        proxy_host="",
        dwell_ms=0,
        scroll_wait_ms=0,
        retry_backoff_seconds=0,
        navigation_attempts=2,
        region_lookup_attempts=2,
        expose_diagnostics=True,
    )


@pytest.fixture
def browser_type() -> FakeBrowserType:
    return FakeBrowserType()


@pytest.fixture
def search_service(test_settings: Settings, browser_type: FakeBrowserType) -> SearchService:
    pool = BrowserPool(test_settings, browser_type=browser_type)
    cache = ResultCache(test_settings.cache_max_entries, test_settings.cache_ttl_seconds)
    return SearchService(cache, pool, test_settings)
