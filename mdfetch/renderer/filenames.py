import re
from datetime import datetime
from typing import Optional
from urllib.parse import urlparse

MAX_NAME_LENGTH = 50
FALLBACK_NAME = "screenshot"


def sanitize_url_for_filename(url: str) -> str:
    """
    Turns a URL into a filesystem-safe name prefix: host + path + query,
    illegal characters replaced, separator runs collapsed, at most 50 chars.

    >>> sanitize_url_for_filename("https://github.com/user/repo/issues/123")
    'github.com_user_repo_issues_123'
    """
    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
    except ValueError:
        return FALLBACK_NAME
    if not parsed.scheme:
        return FALLBACK_NAME

    full = (hostname or "") + (parsed.path or "/") + (f"?{parsed.query}" if parsed.query else "")

    name = re.sub(r'[<>:"/\\|?*\x00-\x1f]', "_", full)
    name = re.sub(r"\.{2,}", ".", name)
    name = re.sub(r"\s+", "_", name)
    name = re.sub(r"[/_]+", "_", name)
    name = re.sub(r"^[._]+|[._]+$", "", name)

    name = name[:MAX_NAME_LENGTH]
    name = re.sub(r"[._]+$", "", name)

    return name or FALLBACK_NAME


def generate_timestamp(now: Optional[datetime] = None) -> str:
    return (now or datetime.now()).strftime("%Y%m%d%H%M%S")


def generate_screenshot_filename(url: str, extension: str = "png", now: Optional[datetime] = None) -> str:
    """
    e.g. github.com_user_repo_issues_123_20251229143025.png
    """
    return f"{sanitize_url_for_filename(url)}_{generate_timestamp(now)}.{extension}"
