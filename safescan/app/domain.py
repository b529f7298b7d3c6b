"""
domain.py

Best-effort hostname extraction for raw QR payloads.

Public function:
    extract_domain(url: str) -> str

Example:
    >>> extract_domain("foo.com/x")
    'foo.com'
"""

import re
from urllib.parse import urlsplit

SCHEME_RE = re.compile(r'^[a-zA-Z][a-zA-Z0-9+.-]*://')


def _ensure_scheme(url: str) -> str:
    """Prefix https:// so urlsplit sees a netloc for bare hostnames."""
    if not SCHEME_RE.match(url):
        return "https://" + url
    return url


def extract_domain(url: str) -> str:
    """
    Return the lowercased hostname of `url`, or the text before the first
    '/' when the string does not parse as a URL. Never raises.
    """
    try:
        host = urlsplit(_ensure_scheme(url)).hostname
    except ValueError:
        host = None
    if host:
        return host
    return url.split("/", 1)[0]


def normalize_url(url: str) -> str:
    """
    Normalize URL for history lookups: lowercase scheme and host, strip the
    trailing slash, drop the fragment.
    """
    try:
        parsed = urlsplit(_ensure_scheme(url.strip()))
        scheme = parsed.scheme.lower()
        netloc = parsed.netloc.lower()
    except ValueError:
        return url.strip().lower()
    path = parsed.path.rstrip("/")
    query = f"?{parsed.query}" if parsed.query else ""
    return f"{scheme}://{netloc}{path}{query}"
