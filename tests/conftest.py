from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image

import mdfetch.probes.browser as browser_module


def png_bytes() -> bytes:
    buf = BytesIO()
    Image.new("RGB", (4, 4), "white").save(buf, "PNG")
    return buf.getvalue()


class FakeElement:
    def __init__(self):
        self.screenshots = []

    async def screenshot(self, path=None, **kwargs):
        self.screenshots.append(kwargs)
        if path:
            Path(path).write_bytes(png_bytes())
            return None
        return png_bytes()


class FakePage:
    def __init__(self, html, fail=False, elements=None):
        self.html = html
        self.fail = fail
        self.elements = elements or {}
        self.closed = False
        self.goto_calls = []
        self.evaluated = []
        self.screenshots = []
        self.default_timeout = None

    def set_default_timeout(self, timeout):
        self.default_timeout = timeout

    async def goto(self, url, wait_until=None, timeout=None):
        self.goto_calls.append({"url": url, "wait_until": wait_until, "timeout": timeout})
        if self.fail:
            raise RuntimeError("net::ERR_NAME_NOT_RESOLVED")

    async def content(self):
        return self.html

    async def evaluate(self, script, arg=None):
        self.evaluated.append(arg)

    async def query_selector(self, selector):
        return self.elements.get(selector)

    async def screenshot(self, path=None, **kwargs):
        self.screenshots.append(kwargs)
        if path:
            Path(path).write_bytes(png_bytes())
            return None
        return png_bytes()

    async def close(self):
        self.closed = True


class FakeBrowser:
    def __init__(self, page_factory):
        self.page_factory = page_factory
        self.pages = []
        self.page_kwargs = []
        self.closed = False

    async def new_page(self, **kwargs):
        self.page_kwargs.append(kwargs)
        page = self.page_factory()
        self.pages.append(page)
        return page

    async def close(self):
        self.closed = True


class FakeChromium:
    def __init__(self, browser):
        self.browser = browser
        self.launch_kwargs = []

    async def launch(self, **kwargs):
        self.launch_kwargs.append(kwargs)
        return self.browser


class FakePlaywright:
    def __init__(self, browser):
        self.chromium = FakeChromium(browser)
        self.stopped = False

    async def stop(self):
        self.stopped = True


class FakePlaywrightStarter:
    def __init__(self, playwright):
        self.playwright = playwright

    async def start(self):
        return self.playwright


class FakePlaywrightEnv:
    """
    Stands in for playwright.async_api.async_playwright inside mdfetch.probes.browser.
    Pages are produced by `page_factory`, which tests may replace.
    """

    def __init__(self):
        self.page_factory = lambda: FakePage("<html><body><p>rendered</p></body></html>")
        self.browser = FakeBrowser(lambda: self.page_factory())
        self.playwright = FakePlaywright(self.browser)

    def fail_navigation(self):
        self.page_factory = lambda: FakePage("", fail=True)

    @property
    def launches(self):
        return self.playwright.chromium.launch_kwargs


@pytest.fixture
def fake_playwright(monkeypatch):
    env = FakePlaywrightEnv()
    monkeypatch.setattr(browser_module, "async_playwright", lambda: FakePlaywrightStarter(env.playwright))
    monkeypatch.setattr(browser_module, "find_chrome_path", lambda: "/usr/bin/chromium")
    return env
