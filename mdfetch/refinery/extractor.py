import logging
from typing import List, Optional
from bs4 import BeautifulSoup
from readability import Document
from readability.readability import Unparseable
from mdfetch.errors import ExtractionError
from mdfetch.models.page import ExtractedContent, PageMetadata

logger = logging.getLogger(__name__)

TITLE_META = ['meta[property="og:title"]', 'meta[name="twitter:title"]']
DESCRIPTION_META = ['meta[name="description"]', 'meta[property="og:description"]', 'meta[name="twitter:description"]']
AUTHOR_META = ['meta[name="author"]', 'meta[property="article:author"]']
PUBLISHED_META = ['meta[property="article:published_time"]', 'meta[name="publish_date"]', 'meta[property="og:published_time"]']
MODIFIED_META = ['meta[property="article:modified_time"]', 'meta[property="og:updated_time"]']
SITE_NAME_META = ['meta[property="og:site_name"]']
IMAGE_META = ['meta[property="og:image"]', 'meta[name="twitter:image"]']
LOCALE_META = ['meta[property="og:locale"]']
BYLINE_SELECTORS = ['[rel="author"]', '[itemprop="author"]', '.byline']
MAX_BYLINE_LENGTH = 100


def _parse(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")


def _body_html(soup: BeautifulSoup) -> str:
    return soup.body.decode_contents() if soup.body else ""


def _get_meta(soup: BeautifulSoup, selectors: List[str]) -> Optional[str]:
    for selector in selectors:
        element = soup.select_one(selector)
        if element is None:
            continue
        value = element.get("content") or element.get("value")
        if value:
            return value
    return None


def extract_keywords(soup: BeautifulSoup) -> Optional[List[str]]:
    element = soup.select_one('meta[name="keywords"]')
    content = element.get("content") if element else None
    if not content:
        return None
    keywords = [k.strip() for k in content.split(",")]
    return [k for k in keywords if k] or None


def _excerpt(document: Document) -> Optional[str]:
    """
    First non-empty paragraph of the readability article, used when the page
    has no description meta tag.
    """
    try:
        article_html = document.summary(html_partial=True)
    except Unparseable:
        return None
    for paragraph in _parse(article_html).find_all("p"):
        text = " ".join(paragraph.get_text(" ", strip=True).split())
        if text:
            return text
    return None


def _byline(soup: BeautifulSoup) -> Optional[str]:
    for selector in BYLINE_SELECTORS:
        element = soup.select_one(selector)
        if element is None:
            continue
        text = " ".join(element.get_text(" ", strip=True).split())
        if text and len(text) <= MAX_BYLINE_LENGTH:
            return text
    return None


class ContentExtractor:
    """
    Pulls the main content and page metadata out of raw HTML.

    Content strategy, first match wins:
    1. CSS selector: inner HTML of the first matching element
    2. Readability disabled: the whole <body>
    3. Readability: the detected article, or <body> if nothing usable was found
    """

    def extract(self, html: str, url: str, use_readability: bool = True, selector: Optional[str] = None) -> ExtractedContent:
        try:
            soup = _parse(html)
            metadata = self.extract_metadata(html, url)

            if selector:
                content = self._extract_by_selector(soup, selector, url)
            elif not use_readability:
                content = _body_html(soup)
            else:
                content = self._extract_with_readability(soup, html, url)

            return ExtractedContent(content=content, metadata=metadata)
        except ExtractionError:
            raise
        except Exception as e:
            raise ExtractionError(url, f"Failed to extract content: {e}") from e

    def _extract_by_selector(self, soup: BeautifulSoup, selector: str, url: str) -> str:
        element = soup.select_one(selector)
        if element is None:
            raise ExtractionError(url, f'Failed to extract content: Selector "{selector}" not found in the document')
        return element.decode_contents()

    def _extract_with_readability(self, soup: BeautifulSoup, html: str, url: str) -> str:
        # readability rewrites the tree it works on, so it gets its own parse
        # of the markup and `soup` stays intact for the body fallback.
        try:
            article_html = Document(html, url=url).summary(html_partial=True)
        except Unparseable as e:
            logger.warning(f"Readability failed for {url} ({e}), falling back to full body content")
            return _body_html(soup)

        if not article_html or not _parse(article_html).get_text(strip=True):
            logger.warning(f"Readability failed for {url}, falling back to full body content")
            return _body_html(soup)

        return article_html

    def extract_metadata(self, html: str, url: str) -> PageMetadata:
        """
        Collects title, description, author, dates, keywords, image and language.
        Never raises: on any failure only the URL is kept.
        """
        try:
            soup = _parse(html)
            document = Document(html, url=url)
            article_title = document.short_title()

            title_tag = soup.find("title")
            html_tag = soup.find("html")

            return PageMetadata(
                url=url,
                title=article_title
                or _get_meta(soup, TITLE_META)
                or (title_tag.get_text(strip=True) if title_tag else None)
                or None,
                description=_get_meta(soup, DESCRIPTION_META) or _excerpt(document),
                author=_get_meta(soup, AUTHOR_META) or _byline(soup),
                published_time=_get_meta(soup, PUBLISHED_META),
                modified_time=_get_meta(soup, MODIFIED_META),
                site_name=_get_meta(soup, SITE_NAME_META),
                keywords=extract_keywords(soup),
                image=_get_meta(soup, IMAGE_META),
                lang=(html_tag.get("lang") if html_tag else None) or _get_meta(soup, LOCALE_META),
            )
        except Exception as e:
            logger.debug(f"Metadata extraction failed for {url}: {e}")
            return PageMetadata(url=url)
