"""Recover the internal item hash that the chat needs.

The public API only exposes numeric ids and slugs.  The chat expects a
different, opaque id which only shows up in the Next.js hydration blob
(``__NEXT_DATA__``) embedded in the public item page.  Everything that
depends on the shape of that blob lives here.
"""

from __future__ import annotations

import json
import re
from typing import Any, Protocol

from bs4 import BeautifulSoup

from .errors import HashNotFoundError
from .log import logger
from .normalize import WEB_BASE, dig

NEXT_DATA_ID = "__NEXT_DATA__"
HASH_PATH = ("props", "pageProps", "item", "id")

_SCHEME = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://")


class PageFetcher(Protocol):
    async def fetch_page(self, url: str) -> str: ...


def page_url(url_or_slug: str) -> str:
    """Use full URLs verbatim, expand anything else as a slug."""
    if _SCHEME.match(url_or_slug):
        return url_or_slug
    return f"{WEB_BASE}/item/{url_or_slug.strip('/')}"


def extract_hash(html: str) -> str:
    """Pull the item hash out of a rendered item page."""
    soup = BeautifulSoup(html, "html.parser")
    script = soup.find("script", id=NEXT_DATA_ID)
    payload = script.string if script is not None else None
    if not payload or not payload.strip():
        raise HashNotFoundError(f"Could not find {NEXT_DATA_ID} in page")

    try:
        data: Any = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise HashNotFoundError(f"{NEXT_DATA_ID} is not valid JSON") from exc

    item_hash = dig(data, *HASH_PATH)
    if not isinstance(item_hash, str) or not item_hash:
        raise HashNotFoundError("Could not extract item hash from page data")
    return item_hash


async def resolve_hash(fetcher: PageFetcher, url_or_slug: str) -> str:
    url = page_url(url_or_slug)
    html = await fetcher.fetch_page(url)
    try:
        return extract_hash(html)
    except HashNotFoundError as exc:
        logger.warning("hash_not_found", extra={"url": url, "reason": exc.message})
        raise
