import logging
import os
import sys
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Dict, List, Mapping, Optional

from playwright.async_api import async_playwright, Browser, Page, Playwright

from mdfetch.constants import BROWSER_ARGS, PLAYWRIGHT_WAIT_UNTIL
from mdfetch.errors import BrowserError
from mdfetch.models.options import BrowserOptions

logger = logging.getLogger(__name__)

MAC_CHROME_PATHS = [
    "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
    "/Applications/Chromium.app/Contents/MacOS/Chromium",
]

LINUX_CHROME_PATHS = [
    "/usr/bin/google-chrome",
    "/usr/bin/google-chrome-stable",
    "/usr/bin/chromium",
    "/usr/bin/chromium-browser",
    "/snap/bin/chromium",
]


def chrome_search_paths(platform: str = sys.platform, environ: Optional[Mapping[str, str]] = None) -> List[str]:
    environ = os.environ if environ is None else environ
    if platform.startswith("win"):
        paths = [
            "C:\\Program Files\\Google\\Chrome\\Application\\chrome.exe",
            "C:\\Program Files (x86)\\Google\\Chrome\\Application\\chrome.exe",
        ]
        local_app_data = environ.get("LOCALAPPDATA")
        if local_app_data:
            paths.append(local_app_data + "\\Google\\Chrome\\Application\\chrome.exe")
        return paths
    if platform == "darwin":
        return list(MAC_CHROME_PATHS)
    return list(LINUX_CHROME_PATHS)


def find_chrome_path(
    platform: str = sys.platform,
    environ: Optional[Mapping[str, str]] = None,
    exists: Callable[[str], bool] = os.path.exists,
) -> Optional[str]:
    """
    Looks for a Chrome/Chromium binary in the usual install locations,
    then in CHROME_PATH / CHROMIUM_PATH.
    """
    environ = os.environ if environ is None else environ
    for path in chrome_search_paths(platform, environ):
        if exists(path):
            return path
    return environ.get("CHROME_PATH") or environ.get("CHROMIUM_PATH")


class BrowserClient:
    """
    Owns one headless Chromium process.

    Lifecycle:
    - The browser is launched lazily on first use and then reused
    - Every request gets its own page, closed afterwards
    - close() shuts the browser down and may be called any number of times
    """

    def __init__(self, options: Optional[BrowserOptions] = None):
        self.options = options or BrowserOptions()
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None

    @property
    def state(self) -> str:
        return "launched" if self._browser is not None else "absent"

    def is_launched(self) -> bool:
        return self._browser is not None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def launch(self) -> None:
        if self._browser is not None:
            return

        chrome_path = self.options.executable_path or find_chrome_path()
        if not chrome_path:
            raise BrowserError(
                "",
                "Chrome/Chromium not found. Please install Chrome or specify the path with --browser-path",
            )

        launch_kwargs = {
            "executable_path": chrome_path,
            "headless": self.options.headless,
            "timeout": self.options.timeout,
            "args": list(BROWSER_ARGS),
        }
        if self.options.proxy:
            launch_kwargs["proxy"] = {"server": self.options.proxy}

        logger.debug(f"Launching browser at {chrome_path}")
        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(**launch_kwargs)
        except Exception as e:
            await self._stop_playwright()
            raise BrowserError("", f"Failed to launch browser: {e}") from e

        logger.info("Browser launched")

    @asynccontextmanager
    async def open_page(
        self,
        url: str,
        viewport: Optional[Dict[str, int]] = None,
        device_scale_factor: Optional[float] = None,
    ) -> AsyncIterator[Page]:
        """
        Opens a new page, navigates to `url` and yields it. The page is closed
        on exit whatever happens inside the block.
        """
        await self.launch()

        page_kwargs = {}
        if self.options.user_agent:
            page_kwargs["user_agent"] = self.options.user_agent
        if viewport:
            page_kwargs["viewport"] = viewport
        if device_scale_factor:
            page_kwargs["device_scale_factor"] = device_scale_factor

        page = await self._browser.new_page(**page_kwargs)
        try:
            page.set_default_timeout(self.options.timeout)
            await page.goto(
                url,
                wait_until=PLAYWRIGHT_WAIT_UNTIL[self.options.wait_until],
                timeout=self.options.timeout,
            )
            yield page
        finally:
            await page.close()

    async def fetch_page(self, url: str) -> str:
        """
        Returns the fully rendered HTML of `url`.
        """
        await self.launch()
        try:
            async with self.open_page(url) as page:
                return await page.content()
        except Exception as e:
            raise BrowserError(url, f"Failed to fetch page: {e}") from e

    async def close(self) -> None:
        if self._browser is not None:
            try:
                await self._browser.close()
            finally:
                self._browser = None
                await self._stop_playwright()
            logger.info("Browser closed")

    async def _stop_playwright(self) -> None:
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None
