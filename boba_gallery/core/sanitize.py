"""
Field sanitization for rendering submissions into HTML.

None of these helpers raise on bad input: every malformed value resolves to
a safe default so one broken record never stops the rest of the gallery.
"""

import html
import ipaddress
from typing import Any
from urllib.parse import quote, urlsplit

VALID_STATUSES = frozenset({"approved", "pending", "rejected"})
DEFAULT_STATUS = "pending"
URL_FALLBACK = "#"

_ALLOWED_SCHEMES = frozenset({"http", "https"})
# Characters encodeURI leaves untouched, plus "%" so existing escapes are kept.
_URI_SAFE_CHARS = ";,/?:@&=+$-_.!~*'()#%"
# Host code points a browser URL parser refuses.
_FORBIDDEN_HOST_CHARS = frozenset(" \t\n\r\"#%/<>?@[\\]^|")


def _is_valid_host(host: str) -> bool:
    if any(ord(char) < 0x20 or ord(char) == 0x7F for char in host):
        return False
    if ":" in host:
        try:
            ipaddress.IPv6Address(host)
        except ValueError:
            return False
        return True
    return not any(char in _FORBIDDEN_HOST_CHARS for char in host)


def escape_html(text: Any) -> str:
    """
    Escape ``& < > " '`` for any HTML text or attribute context.

    Non-string input yields an empty string.
    """
    if not isinstance(text, str):
        return ""
    return html.escape(text, quote=True)


def escape_url(url: Any) -> str:
    """
    Validate and percent-encode a link or image URL.

    Only absolute ``http``/``https`` URLs with a host are accepted; anything
    else, including ``javascript:`` URLs and unparsable strings, becomes ``#``.

    Args:
        url: Candidate URL

    Returns:
        str: The encoded URL, or ``#``
    """
    if not isinstance(url, str):
        return URL_FALLBACK

    candidate = url.strip()
    try:
        parts = urlsplit(candidate)
        parts.port  # raises ValueError for an invalid port
    except ValueError:
        return URL_FALLBACK

    if parts.scheme.lower() not in _ALLOWED_SCHEMES or not parts.hostname:
        return URL_FALLBACK
    if not _is_valid_host(parts.hostname):
        return URL_FALLBACK

    return quote(candidate, safe=_URI_SAFE_CHARS)


def sanitize_status(status: Any) -> str:
    """Normalize a review status to approved, pending or rejected."""
    if not isinstance(status, str):
        return DEFAULT_STATUS
    lowered = status.lower()
    return lowered if lowered in VALID_STATUSES else DEFAULT_STATUS


def truncate_text(text: str, limit: int) -> str:
    """Cut ``text`` to ``limit`` characters, marking the cut with an ellipsis."""
    if len(text) <= limit:
        return text
    return f"{text[:limit]}..."
