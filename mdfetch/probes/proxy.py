import os
from typing import Mapping, Optional
from urllib.parse import urlparse


def _env(environ: Mapping[str, str], *names: str) -> Optional[str]:
    for name in names:
        value = environ.get(name)
        if value:
            return value
    return None


def is_no_proxy(hostname: str, no_proxy: str) -> bool:
    """
    Checks a hostname against a NO_PROXY list.
    Patterns are exact hostnames, '.suffix' matches, or '*' for everything.
    """
    for pattern in (p.strip() for p in no_proxy.split(",")):
        if not pattern:
            continue
        if pattern == "*":
            return True
        if pattern.startswith("."):
            if hostname.endswith(pattern):
                return True
        elif hostname == pattern:
            return True
    return False


def resolve_proxy(url: str, proxy: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """
    Returns the proxy URL to use for `url`, or None for a direct connection.
    An explicit proxy always wins over the environment.
    """
    if proxy:
        return proxy

    environ = os.environ if environ is None else environ
    parsed = urlparse(url)

    no_proxy = _env(environ, "NO_PROXY", "no_proxy")
    if no_proxy and is_no_proxy(parsed.hostname or "", no_proxy):
        return None

    if parsed.scheme == "https":
        return _env(environ, "HTTPS_PROXY", "https_proxy", "HTTP_PROXY", "http_proxy")
    return _env(environ, "HTTP_PROXY", "http_proxy")
