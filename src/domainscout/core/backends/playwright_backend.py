"""
Playwright session implementation for browser automation.

Provides one browser page per worker with:
- Local browser launch or remote browser over CDP
- Stealth mode for bot detection avoidance
- Screenshot capture on errors
- Per-operation timeouts
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, TYPE_CHECKING

from domainscout.core.config.models import BrowserConfig, BrowserType

from .base import (
    BrowserError,
    BrowserSession,
    NavigationTimeout,
    PageBlocked,
    SessionError,
)

if TYPE_CHECKING:
    from playwright.async_api import Browser, BrowserContext, Page, Playwright

logger = logging.getLogger(__name__)


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)

BLOCKED_STATUS_CODES = {403, 406, 418, 451}

BLOCKED_INDICATORS = [
    "access denied",
    "please verify you are human",
    "cf-browser-verification",
    "checking your browser before accessing",
]


# =============================================================================
# Stealth Script
# =============================================================================


STEALTH_SCRIPT = """
Object.defineProperty(navigator, 'webdriver', {
    get: () => undefined
});

Object.defineProperty(navigator, 'languages', {
    get: () => ['en-US', 'en']
});

Object.defineProperty(navigator, 'plugins', {
    get: () => [
        { name: 'Chrome PDF Plugin', filename: 'internal-pdf-viewer' },
        { name: 'Chrome PDF Viewer', filename: 'mhjfbmdgcfjbbpaeojofohoefgiehjai' }
    ]
});

window.chrome = { runtime: {}, app: {} };
"""


# =============================================================================
# PlaywrightSession Implementation
# =============================================================================


class PlaywrightSession(BrowserSession):
    """Playwright-backed browser session.

    Launches a local browser, or attaches to a remote one when
    ``config.cdp_url`` is set (hosted browser services expose a CDP
    websocket endpoint per session).
    """

    def __init__(self, config: BrowserConfig | None = None, session_number: int = 1):
        super().__init__(session_number)
        self.config = config or BrowserConfig()
        self.timeout_ms = int(self.config.timeout_seconds * 1000)
        self.user_agent = self.config.user_agent or DEFAULT_USER_AGENT

        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None
        self._owns_context = True

    @property
    def name(self) -> str:
        return "playwright-cdp" if self.config.cdp_url else "playwright"

    @property
    def page(self) -> "Page":
        if self._page is None or self._page.is_closed():
            raise BrowserError(f"Session {self.session_number} is not started")
        return self._page

    async def start(self) -> None:
        """Start playwright, get a browser and open a page."""
        try:
            from playwright.async_api import async_playwright
        except ImportError as e:
            raise SessionError(
                "Playwright is not installed. Run: playwright install chromium",
                cause=e,
            ) from e

        self._playwright = await async_playwright().start()

        try:
            if self.config.cdp_url:
                await self._connect_remote()
            else:
                await self._launch_local()
        except SessionError:
            raise
        except Exception as e:
            raise SessionError(
                f"Failed to start browser session {self.session_number}: {e}",
                cause=e,
            ) from e

        self._page = await self._context.new_page()  # type: ignore[union-attr]
        self._page.set_default_timeout(self.timeout_ms)

        logger.info(
            f"Session {self.session_number} started ({self.name}, "
            f"{self.config.browser.value}, headless={self.config.headless})"
        )

    async def _launch_local(self) -> None:
        assert self._playwright is not None

        if self.config.browser == BrowserType.FIREFOX:
            browser_launcher = self._playwright.firefox
        elif self.config.browser == BrowserType.WEBKIT:
            browser_launcher = self._playwright.webkit
        else:
            browser_launcher = self._playwright.chromium

        launch_args: list[str] = []
        if self.config.stealth and self.config.browser == BrowserType.CHROMIUM:
            launch_args = [
                "--disable-blink-features=AutomationControlled",
                "--disable-dev-shm-usage",
                "--disable-infobars",
                f"--window-size={self.config.viewport_width},{self.config.viewport_height}",
            ]

        try:
            self._browser = await browser_launcher.launch(
                headless=self.config.headless,
                args=launch_args,
            )
        except Exception as e:
            raise SessionError(
                f"Failed to launch {self.config.browser.value} browser. "
                "Run: playwright install chromium",
                cause=e,
            ) from e

        self._context = await self._browser.new_context(**self._context_options())
        self._owns_context = True
        await self._apply_stealth()

    async def _connect_remote(self) -> None:
        assert self._playwright is not None

        try:
            self._browser = await self._playwright.chromium.connect_over_cdp(
                self.config.cdp_url,  # type: ignore[arg-type]
                timeout=self.timeout_ms,
            )
        except Exception as e:
            raise SessionError(
                f"Failed to connect to remote browser for session {self.session_number}",
                cause=e,
            ) from e

        # Remote browsers usually come with a preconfigured default context
        if self._browser.contexts:
            self._context = self._browser.contexts[0]
            self._owns_context = False
        else:
            self._context = await self._browser.new_context(**self._context_options())
            self._owns_context = True
            await self._apply_stealth()

    def _context_options(self) -> dict[str, Any]:
        return {
            "viewport": {
                "width": self.config.viewport_width,
                "height": self.config.viewport_height,
            },
            "user_agent": self.user_agent,
            "locale": "en-US",
        }

    async def _apply_stealth(self) -> None:
        if self.config.stealth and self._context is not None:
            await self._context.add_init_script(STEALTH_SCRIPT)

    async def _capture_screenshot(self, prefix: str = "error") -> str | None:
        """Capture screenshot for debugging."""
        if not self.config.screenshots_on_error or self._page is None:
            return None

        try:
            screenshots_path = Path(self.config.screenshots_path)
            screenshots_path.mkdir(parents=True, exist_ok=True)
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            filepath = screenshots_path / f"s{self.session_number}_{prefix}_{timestamp}.png"

            await self._page.screenshot(path=str(filepath), full_page=True)
            logger.info(f"Screenshot saved: {filepath}")

            return str(filepath)
        except Exception as e:
            logger.warning(f"Failed to capture screenshot: {e}")
            return None

    async def clear_cookies(self) -> None:
        if self._context is None:
            return
        try:
            await self._context.clear_cookies()
        except Exception as e:
            raise BrowserError(f"Could not clear cookies: {e}", cause=e) from e

    async def goto(self, url: str) -> None:
        """Navigate to a URL and wait for DOM content."""
        page = self.page

        try:
            response = await page.goto(url, timeout=self.timeout_ms, wait_until="domcontentloaded")
            await page.wait_for_load_state("domcontentloaded", timeout=self.timeout_ms)
        except Exception as e:
            await self._capture_screenshot("navigation")
            if "timeout" in str(e).lower():
                raise NavigationTimeout(
                    f"Navigation timeout: {url}",
                    url=url,
                    cause=e,
                ) from e
            raise BrowserError(f"Browser error: {e}", url=url, cause=e) from e

        status_code = response.status if response else None
        if status_code in BLOCKED_STATUS_CODES:
            await self._capture_screenshot("blocked")
            raise PageBlocked(
                f"Request blocked with status {status_code}",
                url=url,
                status_code=status_code,
            )

        text = (await self.page_text()).lower()
        for indicator in BLOCKED_INDICATORS:
            if indicator in text and len(text) < 5000:
                await self._capture_screenshot("blocked")
                raise PageBlocked(
                    f"Bot detection triggered: '{indicator}' found",
                    url=url,
                    status_code=status_code,
                )

    async def page_text(self) -> str:
        """Return the page's visible text, falling back to raw HTML."""
        page = self.page
        try:
            return await page.inner_text("body", timeout=self.timeout_ms)
        except Exception:
            try:
                return await page.content()
            except Exception as e:
                raise BrowserError(f"Could not read page content: {e}", url=page.url, cause=e) from e

    async def submit_search(self, selector: str, value: str) -> None:
        """Fill a search box and press Enter."""
        page = self.page
        try:
            await page.fill(selector, value, timeout=self.timeout_ms)
            await page.press(selector, "Enter", timeout=self.timeout_ms)
            await page.wait_for_load_state("domcontentloaded", timeout=self.timeout_ms)
        except Exception as e:
            await self._capture_screenshot("search")
            if "timeout" in str(e).lower():
                raise NavigationTimeout(
                    f"Search timeout for selector {selector!r}",
                    url=page.url,
                    cause=e,
                ) from e
            raise BrowserError(f"Search failed: {e}", url=page.url, cause=e) from e

    async def close(self) -> None:
        """Close the page, context and browser, then stop playwright."""
        if self._page is not None and not self._page.is_closed():
            await self._page.close()
        self._page = None

        if self._context is not None and self._owns_context:
            await self._context.close()
        self._context = None

        if self._browser is not None:
            await self._browser.close()
            self._browser = None

        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

        logger.info(f"Session {self.session_number} closed")


def playwright_session_factory(config: BrowserConfig):
    """Build a SessionFactory producing PlaywrightSession instances."""

    def factory(session_number: int) -> PlaywrightSession:
        return PlaywrightSession(config, session_number=session_number)

    return factory
