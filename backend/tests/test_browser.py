"""Tests for the browser pool and session lifecycle (Playwright faked)."""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock

import pytest
from playwright.async_api import Error as PlaywrightError

from conftest import FakeBrowserType, FakeMouse, FakePage
from listing_scraper.config import Settings
from listing_scraper.services.browser import BrowserPool
from listing_scraper.utils.exceptions import NavigationError


# ---------------------------------------------------------------------------
# Pool lifecycle
# ---------------------------------------------------------------------------

class TestBrowserPoolLifecycle:
    @pytest.mark.asyncio
    async def test_browser_closed_once_on_success(self, test_settings, browser_type):
        pool = BrowserPool(test_settings, browser_type=browser_type)
        async with pool.session() as session:
            assert session.page is browser_type.page
        assert browser_type.browsers[0].close_count == 1
        assert session.closed

    @pytest.mark.asyncio
    async def test_browser_closed_once_on_exception(self, test_settings, browser_type):
        pool = BrowserPool(test_settings, browser_type=browser_type)
        with pytest.raises(RuntimeError, match="extraction blew up"):
            async with pool.session():
                raise RuntimeError("extraction blew up")
        assert browser_type.browsers[0].close_count == 1

    @pytest.mark.asyncio
    async def test_explicit_close_is_idempotent(self, test_settings, browser_type):
        pool = BrowserPool(test_settings, browser_type=browser_type)
        async with pool.session() as session:
            await session.close()
        assert browser_type.browsers[0].close_count == 1

    @pytest.mark.asyncio
    async def test_launch_failure_propagates(self, test_settings):
        browser_type = FakeBrowserType(launch_error=PlaywrightError("Executable doesn't exist"))
        pool = BrowserPool(test_settings, browser_type=browser_type)
        with pytest.raises(PlaywrightError, match="Executable"):
            async with pool.session():
                pass

    @pytest.mark.asyncio
    async def test_headless_flag_forwarded(self, browser_type):
        config = Settings(_env_file=None, headless=False)
        pool = BrowserPool(config, browser_type=browser_type)
        async with pool.session():
            pass
        assert browser_type.headless_flags == [False]

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self, test_settings, browser_type):
        pool = BrowserPool(test_settings, browser_type=browser_type, max_concurrency=1)
        active = 0
        peak = 0

        async def scrape():
            nonlocal active, peak
            async with pool.session():
                active += 1
                peak = max(peak, active)
                await asyncio.sleep(0.01)
                active -= 1

        await asyncio.gather(scrape(), scrape(), scrape())
        assert peak == 1
        assert len(browser_type.browsers) == 3
        assert all(b.close_count == 1 for b in browser_type.browsers)

    def test_invalid_concurrency(self, test_settings):
        with pytest.raises(ValueError, match="max_concurrency"):
            BrowserPool(test_settings, max_concurrency=-1)


# ---------------------------------------------------------------------------
# Context configuration
# ---------------------------------------------------------------------------

class TestContextOptions:
    @pytest.mark.asyncio
    async def test_user_agent_and_viewport(self, test_settings, browser_type):
        pool = BrowserPool(test_settings, browser_type=browser_type)
        async with pool.session():
            pass
        options = browser_type.browsers[0].context_options
        assert options["user_agent"] == test_settings.user_agent
        assert options["viewport"] == {"width": 1280, "height": 720}
        assert "proxy" not in options

    @pytest.mark.asyncio
    async def test_proxy_applied_to_context(self, browser_type):
        config = Settings(
            _env_file=None,
            proxy_host="proxy.example.net",
            proxy_port=8080,
            proxy_user="scraper",
            proxy_pass="s3cret",
        )
        pool = BrowserPool(config, browser_type=browser_type)
        async with pool.session():
            pass
        assert browser_type.browsers[0].context_options["proxy"] == {
            "server": "http://proxy.example.net:8080",
            "username": "scraper",
            "password": "s3cret",
        }

    @pytest.mark.asyncio
    async def test_device_profile_overridden_by_explicit_settings(self, test_settings, browser_type):
        config = test_settings.model_copy(update={"device_profile": "Pixel 7"})
        pool = BrowserPool(config, browser_type=browser_type)
        pool._devices = {
            "Pixel 7": {
                "user_agent": "Mobile UA",
                "viewport": {"width": 412, "height": 839},
                "is_mobile": True,
                "default_browser_type": "chromium",
            }
        }
        async with pool.session():
            pass
        options = browser_type.browsers[0].context_options
        assert options["is_mobile"] is True
        assert options["user_agent"] == test_settings.user_agent
        assert "default_browser_type" not in options


# ---------------------------------------------------------------------------
# Navigation, settling and readiness
# ---------------------------------------------------------------------------

class TestSessionNavigation:
    @pytest.mark.asyncio
    async def test_navigation_retries_transient_failure(self, test_settings):
        browser_type = FakeBrowserType(page=FakePage(goto_failures=1))
        pool = BrowserPool(test_settings, browser_type=browser_type)
        async with pool.session() as session:
            await session.navigate("https://www.zillow.com/homes/12345_rb/")
        assert session.diagnostics.navigation_attempts == 2
        assert browser_type.page.goto_calls == ["https://www.zillow.com/homes/12345_rb/"] * 2

    @pytest.mark.asyncio
    async def test_navigation_gives_up(self, test_settings):
        browser_type = FakeBrowserType(page=FakePage(goto_failures=5))
        pool = BrowserPool(test_settings, browser_type=browser_type)
        async with pool.session() as session:
            with pytest.raises(NavigationError, match="navigation to"):
                await session.navigate("https://www.zillow.com/homes/12345_rb/")
        assert session.diagnostics.navigation_attempts == test_settings.navigation_attempts
        assert browser_type.browsers[0].close_count == 1

    @pytest.mark.asyncio
    async def test_settle_scrolls_configured_passes(self, test_settings, browser_type):
        pool = BrowserPool(test_settings, browser_type=browser_type)
        async with pool.session() as session:
            await session.settle()
        assert browser_type.page.mouse.wheels == [(0, 1500), (0, 1500)]
        assert len(browser_type.page.waits) == 1 + test_settings.scroll_passes

    @pytest.mark.asyncio
    async def test_settle_never_raises(self, test_settings, browser_type):
        browser_type.page.mouse = FakeMouse(error=PlaywrightError("Target closed"))
        pool = BrowserPool(test_settings, browser_type=browser_type)
        async with pool.session() as session:
            await session.settle()

    @pytest.mark.asyncio
    async def test_wait_ready_miss_is_not_fatal(self, test_settings):
        browser_type = FakeBrowserType(page=FakePage(ready=False))
        pool = BrowserPool(test_settings, browser_type=browser_type)
        async with pool.session() as session:
            assert await session.wait_ready('[data-testid="property-card"]') is False
        assert session.diagnostics.ready_marker_found is False

    @pytest.mark.asyncio
    async def test_wait_ready_hit(self, test_settings, browser_type):
        pool = BrowserPool(test_settings, browser_type=browser_type)
        async with pool.session() as session:
            assert await session.wait_ready(".bp-Homecard") is True
        assert session.diagnostics.ready_marker_found is True


# ---------------------------------------------------------------------------
# Diagnostic observers
# ---------------------------------------------------------------------------

class TestObservers:
    @pytest.mark.asyncio
    async def test_observers_count_problems(self, test_settings, browser_type):
        pool = BrowserPool(test_settings, browser_type=browser_type)
        page = browser_type.page
        async with pool.session() as session:
            page.emit("response", MagicMock(ok=False, status=403, url="https://x/blocked"))
            page.emit("response", MagicMock(ok=True, status=200, url="https://x/ok"))
            page.emit("requestfailed", MagicMock(url="https://x/img", failure="net::ERR_ABORTED"))
            page.emit("console", MagicMock(type="error", text="Uncaught TypeError"))
            page.emit("console", MagicMock(type="log", text="hello"))
        assert session.diagnostics.bad_responses == 1
        assert session.diagnostics.failed_requests == 1
        assert session.diagnostics.console_errors == 1

    @pytest.mark.asyncio
    async def test_observer_errors_are_contained(self, test_settings, browser_type):
        pool = BrowserPool(test_settings, browser_type=browser_type)
        async with pool.session() as session:
            # A payload missing every attribute must not break the page
            browser_type.page.emit("response", object())
        assert session.diagnostics.bad_responses == 0

    @pytest.mark.asyncio
    async def test_load_timing_recorded(self, test_settings, browser_type):
        pool = BrowserPool(test_settings, browser_type=browser_type)
        async with pool.session() as session:
            await session.navigate("https://www.zillow.com/homes/12345_rb/")
            browser_type.page.emit("load", browser_type.page)
        assert session.diagnostics.load_ms is not None
