"""Opening verification URLs in the user's browser."""

from __future__ import annotations

__all__ = [
    "is_valid_url",
    "open_browser",
]

import webbrowser
from urllib.parse import urlparse

from auth0_mcp.telemetry.system.system_logger import get_system_logger

_ALLOWED_SCHEMES = frozenset({"http", "https"})


def is_valid_url(url: str | None) -> bool:
    """Return True for an absolute http(s) URL with a host."""
    if not url:
        return False
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in _ALLOWED_SCHEMES and bool(parsed.netloc)


def open_browser(url: str) -> bool:
    """Open url in the default browser.

    URLs with any scheme other than http or https are refused, since the
    URL comes from a network response.

    Returns:
        True if a browser was launched.
    """
    logger = get_system_logger()
    if not is_valid_url(url):
        logger.warning({"event": "browser_url_rejected", "message": "Refusing to open non-http(s) URL"})
        return False

    try:
        opened = webbrowser.open(url)
    except (OSError, webbrowser.Error) as e:
        logger.warning({"event": "browser_open_failed", "error": str(e), "message": f"Failed to open browser: {e}"})
        return False

    if not opened:
        logger.warning({"event": "browser_open_failed", "message": "No browser available"})
    return opened
