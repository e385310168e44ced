"""
Page sources: how a GOAT product page's markup is obtained.

The collector renders pages in a stealth Chromium (GOAT sits behind
Cloudflare); the import coordinator's fallback uses a plain HTTP GET, which is
cheap but frequently blocked. Both feed the same extractor.
"""

import asyncio
import sys
from abc import ABC, abstractmethod
from typing import Optional

import aiohttp
from playwright.async_api import async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright_stealth import Stealth

from sneakin.config import CollectorConfig, ImportConfig
from sneakin.scrapers.goat.extractor import PageLoadFailed, PageLoadTimeout

# Runs before any page script; covers the probes GOAT's frontend makes
HIDE_AUTOMATION_SCRIPT = """
    Object.defineProperty(navigator, 'webdriver', { get: () => false });
    Object.defineProperty(navigator, 'plugins', { get: () => [1, 2, 3] });
    window.chrome = { runtime: {} };
"""


class PageSource(ABC):
    """
    Abstract base class for anything that can return a product page's HTML.
    Sources are async context managers; fetch_html is only valid inside one.
    """

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Short label used in logs, e.g. 'browser' or 'http'."""
        pass

    @abstractmethod
    async def fetch_html(self, url: str) -> str:
        """
        Load a page and return its markup.

        Raises:
            PageLoadTimeout: If the load exceeded the source's timeout
            PageLoadFailed: For any other navigation or HTTP failure
        """
        pass

    async def __aenter__(self) -> 'PageSource':
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None


class BrowserPageSource(PageSource):
    """Stealth Chromium with a realistic desktop identity; one page reused for every URL."""

    def __init__(self, config: Optional[CollectorConfig] = None):
        self.config = config or CollectorConfig()
        self._stealth_cm = None
        self._playwright = None
        self._browser = None
        self._page = None

    @property
    def source_name(self) -> str:
        return 'browser'

    async def __aenter__(self) -> 'BrowserPageSource':
        try:
            await self._launch()
            await self._after_launch()
        except Exception:
            await self.__aexit__(*sys.exc_info())
            raise
        return self

    async def _launch(self) -> None:
        self._stealth_cm = Stealth().use_async(async_playwright())
        self._playwright = await self._stealth_cm.__aenter__()

        self._browser = await self._playwright.chromium.launch(
            headless=self.config.headless,
            args=list(self.config.browser_args),
        )

        width, height = self.config.viewport
        context = await self._browser.new_context(
            user_agent=self.config.user_agent,
            viewport={'width': width, 'height': height},
            locale=self.config.locale,
            timezone_id=self.config.timezone_id,
            extra_http_headers=self.config.extra_http_headers,
        )
        await context.add_init_script(HIDE_AUTOMATION_SCRIPT)

        self._page = await context.new_page()

    async def _after_launch(self) -> None:
        """Hook for subclasses that need the page primed before use."""
        pass

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            if self._browser:
                await self._browser.close()
        finally:
            self._browser = None
            self._page = None
            if self._stealth_cm:
                await self._stealth_cm.__aexit__(exc_type, exc, tb)
                self._stealth_cm = None

    async def fetch_html(self, url: str) -> str:
        if self._page is None:
            raise RuntimeError("BrowserPageSource used outside 'async with'")

        try:
            await self._page.goto(url, wait_until='domcontentloaded', timeout=self.config.page_timeout_ms)
            # Let lazy scripts run
            await self._page.wait_for_timeout(self.config.settle_ms)
            return await self._page.content()
        except PlaywrightTimeoutError as e:
            raise PageLoadTimeout(f"Timed out loading {url}: {str(e)[:100]}") from e
        except PlaywrightError as e:
            raise PageLoadFailed(f"Failed to load {url}: {str(e)[:100]}") from e


class HttpPageSource(PageSource):
    """Plain GET with browser-like headers. Often answered with a Cloudflare challenge."""

    def __init__(self, config: Optional[ImportConfig] = None):
        self.config = config or ImportConfig()
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def source_name(self) -> str:
        return 'http'

    async def __aenter__(self) -> 'HttpPageSource':
        self._session = aiohttp.ClientSession(headers={
            'User-Agent': self.config.user_agent,
            'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
            'Accept-Language': self.config.page_accept_language,
        })
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._session:
            await self._session.close()
            self._session = None

    async def fetch_html(self, url: str) -> str:
        if self._session is None:
            raise RuntimeError("HttpPageSource used outside 'async with'")

        timeout = aiohttp.ClientTimeout(total=self.config.page_fetch_timeout)
        try:
            async with self._session.get(url, timeout=timeout) as response:
                if response.status != 200:
                    raise PageLoadFailed(f"GOAT page fetch failed: status {response.status}")
                return await response.text()
        except asyncio.TimeoutError as e:
            raise PageLoadTimeout(f"Timed out fetching {url}") from e
        except aiohttp.ClientError as e:
            raise PageLoadFailed(f"Failed to fetch {url}: {str(e)[:100]}") from e
