import logging
from typing import List, Optional
from mdfetch.models.options import BrowserOptions, ProcessOptions
from mdfetch.models.results import ErrorInfo, FetchFailure, FetchResult, FetchSuccess
from mdfetch.probes.browser import BrowserClient
from mdfetch.probes.web import Fetcher
from mdfetch.refinery.extractor import ContentExtractor
from mdfetch.renderer.frontmatter import generate_frontmatter
from mdfetch.renderer.markdown import MarkdownConverter

logger = logging.getLogger(__name__)


class ContentProcessor:
    """
    Runs fetch -> extract -> convert -> frontmatter for one URL or a batch.

    The browser client is created on the first browser-mode request and
    reused afterwards; cleanup() must run once the caller is done, which
    `async with ContentProcessor() as processor:` takes care of.
    """

    def __init__(self, fetcher: Optional[Fetcher] = None, extractor: Optional[ContentExtractor] = None):
        self.fetcher = fetcher or Fetcher()
        self.extractor = extractor or ContentExtractor()
        self.browser: Optional[BrowserClient] = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.cleanup()

    def _browser_client(self, options: Optional[BrowserOptions]) -> BrowserClient:
        if self.browser is None:
            self.browser = BrowserClient(options)
        return self.browser

    async def process(self, url: str, options: ProcessOptions) -> str:
        logger.info(f"Processing: {url}")

        if options.use_browser:
            logger.info("  Fetching HTML with browser...")
            html = await self._browser_client(options.browser_options).fetch_page(url)
        else:
            logger.info("  Fetching HTML...")
            html = await self.fetcher.fetch(url, options.fetch_options)

        logger.info("  Extracting content...")
        extracted = self.extractor.extract(
            html,
            url,
            use_readability=options.use_readability,
            selector=options.selector,
        )

        logger.info("  Converting to Markdown...")
        body = MarkdownConverter(options.conversion_options).convert(extracted.content)

        logger.info("  Generating frontmatter...")
        markdown = generate_frontmatter(extracted.metadata) + body

        logger.info("  Done")
        return markdown

    async def process_batch(self, urls: List[str], options: ProcessOptions) -> List[FetchResult]:
        """
        Processes URLs one after another. A failing URL is recorded and the
        batch moves on; this never raises for a single URL's error.
        """
        results: List[FetchResult] = []

        for url in urls:
            try:
                markdown = await self.process(url, options)
            except Exception as e:
                logger.info(f"  Error processing {url}: {e}")
                results.append(FetchFailure(url=url, error=ErrorInfo.from_exception(e)))
                continue
            results.append(FetchSuccess(url=url, markdown=markdown))

        return results

    async def cleanup(self) -> None:
        if self.browser is not None:
            browser, self.browser = self.browser, None
            await browser.close()
