from __future__ import annotations

import hashlib
from urllib.parse import parse_qsl, urlencode, urljoin, urlsplit, urlunsplit


# Per-visit query params; keeping them would split one posting into many ids.
# Any utm_* param is dropped as well.
TRACKING_PARAMS = frozenset(
    {
        # LinkedIn
        "trk",
        "trackingId",
        "refId",
        "position",
        "pageNum",
        # Indeed / Glassdoor
        "from",
        "advn",
        "vjs",
        "tk",
        "guid",
        "jrtk",
        "ao",
        # Upwork
        "referrer_url_path",
        # Ad clicks
        "gclid",
        "fbclid",
    }
)


def is_tracking_param(name: str) -> bool:
    return name in TRACKING_PARAMS or name.startswith("utm_")


def absolute_url(href: str, base: str) -> str:
    href = (href or "").strip()
    if not href:
        return ""
    if href.startswith(("http://", "https://")):
        return href
    return urljoin(base, href)


def canonicalize_url(url: str) -> str:
    """Stable form of a listing URL, used as provenance id when a board exposes none.

    Scheme and host are lowercased, a trailing slash and the fragment go away,
    tracking params are removed and the rest are sorted.
    """
    url = (url or "").strip()
    if not url:
        return ""

    parts = urlsplit(url)
    path = parts.path if parts.path in ("", "/") else parts.path.rstrip("/")
    query = sorted((k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if not is_tracking_param(k))
    return urlunsplit((parts.scheme.lower(), parts.netloc.lower(), path, urlencode(query), ""))


def stable_job_id(source: str, original_id: str) -> str:
    """Deterministic record id for one provenance (source + board id)."""
    joined = f"{source.strip().lower()}|{original_id.strip()}"
    return hashlib.sha256(joined.encode("utf-8")).hexdigest()[:24]
