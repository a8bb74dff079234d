from typing import Optional


class MdFetchError(Exception):
    """Base class for everything mdfetch raises on purpose."""


class FetchError(MdFetchError):
    def __init__(self, url: str, status_code: Optional[int] = None, message: Optional[str] = None):
        self.url = url
        self.status_code = status_code
        super().__init__(message or f"Failed to fetch {url}")


class BrowserError(MdFetchError):
    def __init__(self, url: str, message: str):
        self.url = url
        super().__init__(message)


class ExtractionError(MdFetchError):
    def __init__(self, url: str, message: str):
        self.url = url
        super().__init__(message)


class ScreenshotError(MdFetchError):
    def __init__(self, url: str, message: str):
        self.url = url
        super().__init__(message)


class ConversionError(MdFetchError):
    pass


class ValidationError(MdFetchError):
    pass


class ConfigError(MdFetchError):
    pass
