"""Map raw Wallapop API payloads onto the simplified response schema.

The upstream JSON is loosely typed: titles may be plain strings or
``{"original": ...}`` objects, flags live in nested objects that may be
missing, and prices come either flat or nested under ``cash``.  Everything
here is pure and total: a missing field yields a default, never an error.
"""

from __future__ import annotations

from typing import Any

from .schemas import Counters, ItemDetails, SearchResultItem, Seller

WEB_BASE = "https://es.wallapop.com"
DEFAULT_CURRENCY = "EUR"

_MISSING = object()


def dig(obj: Any, *path: str | int, default: Any = None) -> Any:
    """Follow ``path`` through nested dicts/lists, returning ``default`` on any miss.

    ``None`` values along the way count as a miss as well.
    """
    current = obj
    for key in path:
        if isinstance(key, int):
            if not isinstance(current, list) or not -len(current) <= key < len(current):
                return default
            current = current[key]
        else:
            if not isinstance(current, dict):
                return default
            current = current.get(key, _MISSING)
            if current is _MISSING:
                return default
        if current is None:
            return default
    return current


def as_text(value: Any) -> str | None:
    """Collapse ``str | {"original": str}`` into a plain string."""
    if isinstance(value, dict):
        value = value.get("original")
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def as_id(value: Any) -> str | None:
    """Upstream ids arrive as strings or numbers; expose them as strings."""
    if value is None or isinstance(value, (dict, list)):
        return None
    return str(value)


def flag(obj: Any, *path: str) -> bool:
    """Read a nested boolean flag; absent object or absent flag means ``False``."""
    return bool(dig(obj, *path, default=False))


def item_url(slug: str | None) -> str | None:
    """Canonical public URL for ``slug``; upstream-supplied URLs are ignored."""
    if not slug:
        return None
    return f"{WEB_BASE}/item/{slug}"


def _price(raw: Any, default: float | None) -> float | None:
    amount = dig(raw, "price", "cash", "amount")
    if amount is None:
        amount = dig(raw, "price", "amount")
    return default if amount is None else amount


def _currency(raw: Any) -> str:
    return (
        dig(raw, "price", "cash", "currency")
        or dig(raw, "price", "currency")
        or DEFAULT_CURRENCY
    )


def _counters(raw: Any) -> Counters | None:
    counters = dig(raw, "counters")
    if not isinstance(counters, dict):
        return None
    return Counters(
        views=counters.get("views") or 0,
        favorites=counters.get("favorites") or 0,
        conversations=counters.get("conversations") or 0,
    )


def normalize_search_item(raw: dict[str, Any]) -> SearchResultItem:
    slug = dig(raw, "web_slug")
    return SearchResultItem(
        id=as_id(dig(raw, "id")),
        title=as_text(dig(raw, "title")),
        price=_price(raw, default=None),
        currency=_currency(raw),
        city=dig(raw, "location", "city"),
        distance=dig(raw, "distance"),
        slug=slug,
        url=item_url(slug),
        image=dig(raw, "images", 0, "urls", "medium"),
        seller_id=as_id(dig(raw, "user_id")),
        reserved=flag(raw, "reserved", "flag"),
        shippable=flag(raw, "shipping", "user_allows_shipping"),
        created_at=dig(raw, "created_at"),
    )


def normalize_item_details(raw: dict[str, Any]) -> ItemDetails:
    slug = dig(raw, "web_slug")
    images = dig(raw, "images", default=[])
    return ItemDetails(
        id=as_id(dig(raw, "id")),
        title=as_text(dig(raw, "title")),
        description=as_text(dig(raw, "description")),
        price=_price(raw, default=0),
        currency=_currency(raw),
        city=dig(raw, "location", "city"),
        seller=Seller(id=as_id(dig(raw, "user", "id")), name=dig(raw, "user", "micro_name")),
        slug=slug,
        url=item_url(slug),
        # only the count, the full list is too heavy for agent consumers
        images=len(images) if isinstance(images, list) else 0,
        reserved=flag(raw, "reserved", "flag"),
        sold=flag(raw, "sold", "flag"),
        shippable=flag(raw, "shipping", "user_allows_shipping"),
        counters=_counters(raw),
        created_at=dig(raw, "creation_date"),
    )


def normalize_search_response(data: Any) -> tuple[list[SearchResultItem], str | None]:
    """Return the normalized items and the next-page cursor of a search payload."""
    raw_items = dig(data, "data", "section", "payload", "items", default=[])
    if not isinstance(raw_items, list):
        raw_items = []
    items = [normalize_search_item(item) for item in raw_items if isinstance(item, dict)]
    return items, dig(data, "meta", "next_page") or None
