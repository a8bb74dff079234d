import asyncio
import logging
from io import BytesIO
from pathlib import Path
from typing import List, Optional

from PIL import Image
from playwright.async_api import Page

from mdfetch.errors import ScreenshotError
from mdfetch.models.options import ScreenshotOptions
from mdfetch.models.results import ErrorInfo, ScreenshotFailure, ScreenshotResult, ScreenshotSuccess
from mdfetch.probes.browser import BrowserClient
from mdfetch.renderer.filenames import generate_screenshot_filename

logger = logging.getLogger(__name__)

HIDE_ELEMENTS_JS = """
(selectors) => {
    for (const selector of selectors) {
        document.querySelectorAll(selector).forEach((el) => { el.style.display = 'none'; });
    }
}
"""


def _write_webp(data: bytes, filepath: Path, quality: Optional[int]) -> None:
    save_kwargs = {"format": "WEBP"}
    if quality is not None:
        save_kwargs["quality"] = quality
    with Image.open(BytesIO(data)) as image:
        image.save(filepath, **save_kwargs)


class Screenshotter:
    """
    Captures pages (or a single element) to image files, one browser for
    the whole batch.
    """

    def __init__(self, options: ScreenshotOptions, browser: Optional[BrowserClient] = None):
        self.options = options
        self.browser = browser or BrowserClient(options.browser_options)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _sleep(self, ms: int) -> None:
        await asyncio.sleep(ms / 1000)

    def _ensure_output_dir(self) -> Path:
        output_dir = Path(self.options.output_dir)
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ScreenshotError("", f"Failed to create output directory: {e}") from e
        return output_dir

    async def screenshot(self, url: str) -> ScreenshotResult:
        options = self.options
        viewport = {"width": options.width, "height": options.height}

        try:
            logger.info(f"Navigating to {url}...")
            async with self.browser.open_page(url, viewport=viewport, device_scale_factor=options.device_scale_factor) as page:
                if options.hide_selectors:
                    logger.info(f"Hiding elements: {', '.join(options.hide_selectors)}")
                    await page.evaluate(HIDE_ELEMENTS_JS, options.hide_selectors)

                if options.delay > 0:
                    logger.info(f"Waiting {options.delay}ms before screenshot...")
                    await self._sleep(options.delay)

                filepath = self._ensure_output_dir() / generate_screenshot_filename(url, options.format)

                logger.info("Taking screenshot...")
                await self._capture(page, url, filepath)
        except Exception as e:
            error = ScreenshotError(url, f"Failed to take screenshot: {e}")
            return ScreenshotFailure(url=url, error=ErrorInfo.from_exception(error))

        logger.info(f"Screenshot saved to: {filepath}")
        return ScreenshotSuccess(url=url, filepath=str(filepath))

    async def _capture(self, page: Page, url: str, filepath: Path) -> None:
        options = self.options
        # Playwright cannot encode WebP; capture PNG and re-encode with Pillow
        capture_kwargs = {"type": "png" if options.format == "webp" else options.format}
        if options.format == "jpeg" and options.quality is not None:
            capture_kwargs["quality"] = options.quality

        if options.selector:
            target = await page.query_selector(options.selector)
            if target is None:
                raise ScreenshotError(url, f"Element not found: {options.selector}")
        else:
            target = page
            capture_kwargs["full_page"] = options.full_page

        if options.format == "webp":
            data = await target.screenshot(**capture_kwargs)
            await asyncio.to_thread(_write_webp, data, filepath, options.quality)
        else:
            await target.screenshot(path=str(filepath), **capture_kwargs)

    async def screenshot_batch(self, urls: List[str]) -> List[ScreenshotResult]:
        results: List[ScreenshotResult] = []
        for url in urls:
            results.append(await self.screenshot(url))
        return results

    async def close(self) -> None:
        await self.browser.close()
