import logging
import time
from typing import Optional

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from core.scrapers.errors import NavigationTimeout
from core.scrapers.extractor import ElementNode

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)


class BrowserSession:
    """One headless Chromium process with a single isolated context and page.

    A session is never shared or reused. Use it as a context manager, or call
    close() yourself; close() may be called any number of times and only
    releases the browser once.
    """

    def __init__(self, headless: bool = True, user_agent: Optional[str] = None):
        self.headless = headless
        self.user_agent = user_agent or DEFAULT_USER_AGENT
        self.logger = logging.getLogger("scraper.browser")
        self.page = None
        self.closed = False
        self._playwright = None
        self._browser = None
        self._context = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def open(self, url: str, timeout_ms: int) -> ElementNode:
        """Launch the browser, load url and wait for the network to go idle.

        Args:
            url: Page to load
            timeout_ms: Upper bound for navigation plus the network-idle wait

        Returns:
            ElementNode for the loaded page

        Raises:
            NavigationTimeout: if the page is not idle within timeout_ms
        """
        if self.closed:
            raise RuntimeError("Browser session is already closed")

        self._playwright = sync_playwright().start()
        self._browser = self._playwright.chromium.launch(headless=self.headless)
        self._context = self._browser.new_context(user_agent=self.user_agent, locale="en-US")
        self.page = self._context.new_page()
        self.page.set_default_timeout(timeout_ms)

        self.logger.info("Navigating to %s", url)
        started = time.monotonic()
        try:
            self.page.goto(url, timeout=timeout_ms)
            elapsed_ms = int((time.monotonic() - started) * 1000)
            self.page.wait_for_load_state("networkidle", timeout=max(timeout_ms - elapsed_ms, 1))
        except PlaywrightTimeoutError as e:
            raise NavigationTimeout(f"Page did not settle within {timeout_ms}ms: {url}") from e

        self.logger.debug("Page ready after %.1fs", time.monotonic() - started)
        return ElementNode(self.page)

    def close(self) -> None:
        """Release the browser. Errors while closing are logged, not raised."""
        if self.closed:
            return
        self.closed = True
        try:
            if self._browser is not None:
                self._browser.close()
        except PlaywrightError as e:
            self.logger.warning("Error closing browser: %s", e)
        finally:
            if self._playwright is not None:
                try:
                    self._playwright.stop()
                except PlaywrightError as e:
                    self.logger.warning("Error stopping Playwright: %s", e)
            self.page = None
            self._context = None
            self._browser = None
            self._playwright = None
        self.logger.debug("Browser session closed")
