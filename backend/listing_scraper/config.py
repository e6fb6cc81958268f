from __future__ import annotations

from pydantic_settings import BaseSettings

from listing_scraper.schemas.search import ProxyConfig

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/124.0.0.0 Safari/537.36"
)


class Settings(BaseSettings):
    app_name: str = "Listing Scraper"
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: str = "*"

    port: int = 3001
    # Shared bearer secret; empty disables the auth gate
    scraper_token: str = ""

    scraper_max_results: int = 40
    headless: bool = True
    default_provider: str = "zillow"
    user_agent: str = DEFAULT_USER_AGENT
    # Playwright device descriptor name, e.g. "Desktop Chrome"
    device_profile: str = ""
    viewport_width: int = 1280
    viewport_height: int = 720

    # Outbound proxy: either a full URL or a host/port pair
    proxy_url: str = ""
    proxy_host: str = ""
    proxy_port: int | None = None
    proxy_user: str = ""
    proxy_pass: str = ""

    navigation_timeout_ms: int = 45000
    dwell_ms: int = 2500
    scroll_passes: int = 2
    scroll_distance_px: int = 1500
    scroll_wait_ms: int = 800
    ready_timeout_ms: int = 20000

    navigation_attempts: int = 2
    region_lookup_attempts: int = 2
    retry_backoff_seconds: float = 1.0

    cache_max_entries: int = 100
    cache_ttl_seconds: float = 300.0
    max_concurrent_browsers: int = 2

    expose_diagnostics: bool = False

    model_config = {"env_file": ".env", "env_ignore_empty": True}

    def proxy_config(self) -> ProxyConfig | None:
        """Build the outbound proxy from whichever form is configured.

        A full ``proxy_url`` wins over ``proxy_host``/``proxy_port``.
        Credentials apply to either form.
        """
        server = self.proxy_url.strip()
        if not server and self.proxy_host.strip():
            host = self.proxy_host.strip()
            if "://" not in host:
                host = f"http://{host}"
            server = f"{host}:{self.proxy_port}" if self.proxy_port else host
        if not server:
            return None
        return ProxyConfig(
            server_url=server,
            user=self.proxy_user or None,
            password=self.proxy_pass or None,
        )


settings = Settings()
