"""Playwright browser sessions behind a bounded admission gate.

Every scrape gets its own browser so a crash or a poisoned context never
leaks into another request. ``BrowserPool`` bounds how many of those
browsers may run at once and guarantees each one is closed exactly once,
whatever happens inside the ``session()`` block.
"""

from __future__ import annotations

import asyncio
import contextlib
import functools
import logging
import random
import time
from collections.abc import AsyncIterator, Callable, Mapping
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from listing_scraper.config import Settings, settings
from listing_scraper.services.region_lookup import PlaywrightLookupClient
from listing_scraper.utils.exceptions import NavigationError

if TYPE_CHECKING:
    from playwright.async_api import (
        Browser,
        BrowserContext,
        BrowserType,
        ConsoleMessage,
        Page,
        Playwright,
        Request,
        Response,
    )

logger = logging.getLogger(__name__)


@dataclass
class SessionDiagnostics:
    """What one scrape observed, for logs and optional API exposure."""

    url: str = ""
    navigation_attempts: int = 0
    load_ms: float | None = None
    bad_responses: int = 0
    failed_requests: int = 0
    console_errors: int = 0
    ready_marker_found: bool | None = None
    region_lookup: str | None = None
    extracted: int = 0

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


def _observer(func: Callable[..., None]) -> Callable[..., None]:
    """Page event handlers are log-only; a failing handler must not escape."""

    @functools.wraps(func)
    def wrapper(*args: Any) -> None:
        try:
            func(*args)
        except Exception as e:  # noqa: BLE001
            logger.debug("Diagnostic observer %s failed: %s", func.__name__, e)

    return wrapper


class BrowserSession:
    """One browser, one isolated context, one page."""

    def __init__(
        self,
        browser: Browser,
        config: Settings,
        devices: Mapping[str, dict[str, Any]] | None = None,
    ) -> None:
        self.browser = browser
        self.context: BrowserContext | None = None
        self.page: Page | None = None
        self.diagnostics = SessionDiagnostics()
        self._config = config
        self._devices = devices or {}
        self._nav_started: float | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def context_options(self) -> dict[str, Any]:
        cfg = self._config
        options: dict[str, Any] = {}
        if cfg.device_profile:
            descriptor = self._devices.get(cfg.device_profile)
            if descriptor is None:
                logger.warning("Unknown device profile '%s', ignoring", cfg.device_profile)
            else:
                options.update(descriptor)
                options.pop("default_browser_type", None)
        # Explicit settings override the device descriptor
        options["user_agent"] = cfg.user_agent
        options["viewport"] = {"width": cfg.viewport_width, "height": cfg.viewport_height}
        proxy = cfg.proxy_config()
        if proxy is not None:
            options["proxy"] = proxy.to_playwright()
        return options

    async def open(self) -> None:
        self.context = await self.browser.new_context(**self.context_options())
        self.page = await self.context.new_page()
        self._attach_observers(self.page)

    def _attach_observers(self, page: Page) -> None:
        page.on("response", self._on_response)
        page.on("requestfailed", self._on_request_failed)
        page.on("console", self._on_console)
        page.on("load", self._on_load)

    @_observer
    def _on_response(self, response: Response) -> None:
        if not response.ok:
            self.diagnostics.bad_responses += 1
            logger.warning("HTTP %s %s", response.status, response.url)

    @_observer
    def _on_request_failed(self, request: Request) -> None:
        self.diagnostics.failed_requests += 1
        logger.warning("Request failed: %s (%s)", request.url, request.failure)

    @_observer
    def _on_console(self, message: ConsoleMessage) -> None:
        if message.type in ("warning", "error"):
            if message.type == "error":
                self.diagnostics.console_errors += 1
            logger.warning("Console %s: %s", message.type, message.text[:300])

    @_observer
    def _on_load(self, _page: Page) -> None:
        if self._nav_started is None:
            return
        self.diagnostics.load_ms = round((time.perf_counter() - self._nav_started) * 1000, 1)
        logger.info("Page load event after %.0f ms", self.diagnostics.load_ms)

    async def navigate(self, url: str) -> None:
        """
        Navigate with a bounded timeout, retrying transient failures.

        Raises:
            NavigationError: When every attempt failed.
        """
        cfg = self._config
        self.diagnostics.url = url
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(max(cfg.navigation_attempts, 1)),
                wait=wait_exponential(multiplier=cfg.retry_backoff_seconds, max=10),
                retry=retry_if_exception_type(PlaywrightError),
                reraise=True,
            ):
                with attempt:
                    self.diagnostics.navigation_attempts += 1
                    self._nav_started = time.perf_counter()
                    logger.info(
                        "Navigating to %s (attempt %d)",
                        url, self.diagnostics.navigation_attempts,
                    )
                    await self.page.goto(
                        url,
                        wait_until="domcontentloaded",
                        timeout=cfg.navigation_timeout_ms,
                    )
        except PlaywrightError as e:
            raise NavigationError(f"navigation to {url} failed: {e}") from e

    async def settle(self) -> None:
        """Dwell, then scroll a few times to trigger lazy-loaded cards. Never raises."""
        cfg = self._config
        try:
            await self.page.wait_for_timeout(cfg.dwell_ms)
            for _ in range(cfg.scroll_passes):
                await self.page.mouse.wheel(0, cfg.scroll_distance_px)
                await self.page.wait_for_timeout(cfg.scroll_wait_ms * random.uniform(0.75, 1.25))
        except PlaywrightError as e:
            logger.warning("Scroll/dwell pass interrupted: %s", e)

    async def wait_ready(self, selector: str | None) -> bool:
        """Wait for the provider's content marker. A miss is not an error."""
        if not selector:
            return False
        try:
            await self.page.wait_for_selector(selector, timeout=self._config.ready_timeout_ms)
        except PlaywrightError as e:
            logger.warning("Ready marker %s not found: %s", selector, e)
            self.diagnostics.ready_marker_found = False
            return False
        self.diagnostics.ready_marker_found = True
        return True

    async def content(self) -> str:
        return await self.page.content()

    def lookup_client(self) -> PlaywrightLookupClient:
        """Lookup transport sharing this context's cookies and proxy."""
        return PlaywrightLookupClient(self.context.request)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self.browser.close()
        except PlaywrightError as e:
            logger.warning("Browser close failed: %s", e)
        logger.debug("Browser closed")


class BrowserPool:
    """Admission gate and lifecycle owner for scrape browsers.

    The Playwright driver is started once, lazily, and shared; browsers are
    launched per session and at most ``max_concurrency`` run at a time.
    Tests can inject ``browser_type`` to avoid starting Playwright.
    """

    def __init__(
        self,
        config: Settings = settings,
        *,
        browser_type: BrowserType | None = None,
        max_concurrency: int | None = None,
    ) -> None:
        limit = max_concurrency or config.max_concurrent_browsers
        if limit < 1:
            raise ValueError("max_concurrency must be >= 1")
        self._config = config
        self._semaphore = asyncio.Semaphore(limit)
        self._browser_type = browser_type
        self._playwright: Playwright | None = None
        self._devices: Mapping[str, dict[str, Any]] = {}
        self._start_lock = asyncio.Lock()

    async def _get_browser_type(self) -> BrowserType:
        if self._browser_type is None:
            async with self._start_lock:
                if self._browser_type is None:
                    self._playwright = await async_playwright().start()
                    self._devices = self._playwright.devices
                    self._browser_type = self._playwright.chromium
                    logger.info("Playwright driver started")
        return self._browser_type

    @contextlib.asynccontextmanager
    async def session(self) -> AsyncIterator[BrowserSession]:
        """Yield an open session; the browser is closed on every exit path."""
        async with self._semaphore:
            browser_type = await self._get_browser_type()
            browser = await browser_type.launch(headless=self._config.headless)
            session = BrowserSession(browser, self._config, self._devices)
            try:
                await session.open()
                yield session
            finally:
                await session.close()

    async def stop(self) -> None:
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None
            self._browser_type = None
            logger.info("Playwright driver stopped")
