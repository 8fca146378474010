from __future__ import annotations

import re
from typing import Any, Dict, Optional

import requests
from selectolax.parser import HTMLParser, Node


DEFAULT_UA = "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"

COMMON_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Referer": "https://www.google.com/",
    "User-Agent": DEFAULT_UA,
}


def clean_text(text: str) -> str:
    return re.sub(r"\s+", " ", text or "").strip()


def new_session(user_agent: str = DEFAULT_UA) -> requests.Session:
    s = requests.Session()
    s.headers.update({**COMMON_HEADERS, "User-Agent": user_agent})
    return s


def http_get(
    session: Any,
    url: str,
    *,
    params: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
    timeout_s: float = 30,
) -> requests.Response:
    """GET that turns any non-2xx status into ``requests.HTTPError``.

    Timeouts and connection failures propagate as raised by requests; callers
    treat all of these as transport failures of the whole request.
    """
    resp = session.get(url, params=params, headers=headers, timeout=timeout_s)
    resp.raise_for_status()
    return resp


def html_to_text(html: str) -> str:
    """Readable text from an HTML fragment (job descriptions often arrive as HTML)."""
    if not html:
        return ""
    if "<" not in html:
        return clean_text(html)
    tree = HTMLParser(html)
    for node in tree.css("script, style, noscript"):
        node.decompose()
    root = tree.body if tree.body is not None else tree.root
    return clean_text(root.text(separator=" ") if root is not None else "")


def node_text(node: Optional[Node], selector: str) -> str:
    if node is None or not selector:
        return ""
    found = node.css_first(selector)
    if found is None:
        return ""
    return clean_text(found.text(separator=" "))


def node_attr(node: Optional[Node], selector: str, attr: str) -> str:
    if node is None or not selector:
        return ""
    found = node.css_first(selector)
    if found is None:
        return ""
    return (found.attributes.get(attr) or "").strip()
