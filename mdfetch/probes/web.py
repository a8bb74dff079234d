import asyncio
import logging
import httpx
from typing import Optional
from mdfetch.constants import RETRY_ATTEMPTS, RETRY_DELAY
from mdfetch.errors import FetchError
from mdfetch.models.options import FetchOptions
from mdfetch.probes.proxy import resolve_proxy

logger = logging.getLogger(__name__)


class Fetcher:
    """
    Plain HTTP fetcher with exponential backoff between attempts.
    """

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        # Tests hand in an httpx.MockTransport here
        self._transport = transport

    def _build_client(self, options: FetchOptions, proxy_url: Optional[str]) -> httpx.AsyncClient:
        headers = {"User-Agent": options.user_agent, **options.headers}
        kwargs = {}
        if self._transport is not None:
            kwargs["transport"] = self._transport
        elif proxy_url:
            kwargs["proxy"] = proxy_url
        return httpx.AsyncClient(
            headers=headers,
            timeout=httpx.Timeout(options.timeout / 1000),
            follow_redirects=True,
            # Proxy selection is done by resolve_proxy, not by httpx
            trust_env=False,
            **kwargs,
        )

    async def _sleep(self, ms: int) -> None:
        await asyncio.sleep(ms / 1000)

    async def _get(self, client: httpx.AsyncClient, url: str, timeout_ms: int) -> httpx.Response:
        # httpx timeouts apply per phase; this bounds the whole request, body included
        try:
            return await asyncio.wait_for(client.get(url), timeout_ms / 1000)
        except asyncio.TimeoutError:
            raise asyncio.TimeoutError(f"Request timed out after {timeout_ms}ms") from None

    async def fetch(self, url: str, options: Optional[FetchOptions] = None) -> str:
        """
        Fetches the HTML of a URL, retrying up to RETRY_ATTEMPTS times.
        """
        options = options or FetchOptions()
        proxy_url = resolve_proxy(url, options.proxy)
        if proxy_url:
            logger.debug(f"Using proxy {proxy_url} for {url}")

        last_error: Optional[Exception] = None

        try:
            client = self._build_client(options, proxy_url)
        except (ValueError, httpx.InvalidURL) as e:
            raise FetchError(url, None, f"Invalid proxy URL {proxy_url}: {e}") from e

        async with client:
            for attempt in range(RETRY_ATTEMPTS):
                try:
                    response = await self._get(client, url, options.timeout)
                    if not response.is_success:
                        raise FetchError(
                            url,
                            response.status_code,
                            f"HTTP {response.status_code}: {response.reason_phrase}",
                        )
                    return response.text
                except Exception as e:
                    last_error = e
                    if attempt == RETRY_ATTEMPTS - 1:
                        break
                    delay = RETRY_DELAY * 2 ** attempt
                    logger.debug(f"Attempt {attempt + 1} for {url} failed ({e}), retrying in {delay}ms")
                    await self._sleep(delay)

        if isinstance(last_error, FetchError):
            raise last_error
        raise FetchError(url, None, f"Failed to fetch after {RETRY_ATTEMPTS} attempts: {last_error}") from last_error
