"""Outbound access to the Wallapop JSON API and public item pages."""

from __future__ import annotations

import time
from typing import Any

import httpx

from .errors import UpstreamError
from .hashes import resolve_hash
from .log import logger
from .normalize import WEB_BASE, normalize_item_details, normalize_search_response
from .schemas import ItemDetails, SearchQuery, SearchResult

API_BASE = "https://api.wallapop.com/api/v3"
MESSAGING_BASE = "https://api.wallapop.com/bff/messaging"

# The API rejects server-originated traffic without these.
REQUIRED_HEADERS = {
    "Host": "api.wallapop.com",
    "X-DeviceOS": "0",
}

PAGE_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "es-ES,es;q=0.9",
}

MESSAGING_HEADERS = {
    "Accept": "application/json, text/plain, */*",
    "Referer": f"{WEB_BASE}/",
    "Accept-Language": "es,en-GB;q=0.9,en-US;q=0.8,en;q=0.7",
}

# Barcelona
DEFAULT_LATITUDE = 41.3891
DEFAULT_LONGITUDE = 2.1606

# Evaluated in an authenticated page, returns the bearer token or null.
TOKEN_EXTRACT_JS = """(() => {
  const match = document.cookie.split(';')
    .map(c => c.trim())
    .find(c => c.startsWith('accessToken='));
  return match ? match.slice('accessToken='.length) : null;
})()"""


def build_search_params(query: SearchQuery) -> dict[str, Any]:
    """Translate ``query`` into upstream ``/search`` parameters.

    A pagination cursor replaces every filter: the upstream ignores filters
    sent next to ``next_page``, so they are not sent at all.
    """
    params: dict[str, Any] = {"step": 1, "source": "keywords", "limit": query.limit}
    if query.next_page:
        params["next_page"] = query.next_page
        return params

    optional = {
        "keywords": query.keywords,
        "min_sale_price": query.min_price,
        "max_sale_price": query.max_price,
        "distance": query.distance,
        "category_id": query.category_id,
        "order_by": query.order_by,
    }
    params.update({k: v for k, v in optional.items() if v is not None and v != ""})
    params["latitude"] = query.latitude if query.latitude is not None else DEFAULT_LATITUDE
    params["longitude"] = query.longitude if query.longitude is not None else DEFAULT_LONGITUDE
    return params


def chat_url(item_hash: str) -> str:
    return f"{WEB_BASE}/app/chat?itemId={item_hash}"


class WallapopClient:
    """Issues one upstream request per call; holds configuration only.

    ``transport`` replaces the network layer, which is how tests fake the
    upstream.
    """

    def __init__(
        self,
        proxy_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.proxy_url = proxy_url or None
        self._transport = transport

    def _client_options(self, use_proxy: bool) -> dict[str, Any]:
        options: dict[str, Any] = {"follow_redirects": True}
        if self._transport is not None:
            options["transport"] = self._transport
        elif use_proxy and self.proxy_url:
            options["proxy"] = self.proxy_url
        return options

    async def _request(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str],
        use_proxy: bool,
    ) -> httpx.Response:
        started = time.monotonic()
        try:
            async with httpx.AsyncClient(**self._client_options(use_proxy)) as client:
                resp = await client.get(url, params=params, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("upstream_unreachable", extra={"url": url, "error": str(exc)})
            raise UpstreamError(f"Wallapop unreachable: {exc}") from exc

        logger.info(
            "upstream_request",
            extra={
                "method": "GET",
                "url": url,
                "status": resp.status_code,
                "elapsed_ms": round((time.monotonic() - started) * 1000, 1),
            },
        )
        if not resp.is_success:
            raise UpstreamError(
                f"Wallapop {resp.status_code}: {resp.text}",
                status_code=resp.status_code,
                body=resp.text,
            )
        return resp

    def _json(self, resp: httpx.Response) -> Any:
        try:
            return resp.json()
        except ValueError as exc:
            raise UpstreamError(
                "Wallapop returned a non-JSON body",
                status_code=resp.status_code,
                body=resp.text,
            ) from exc

    async def fetch_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """GET ``path`` on the JSON API with the required headers, via the proxy if set."""
        clean = {k: v for k, v in (params or {}).items() if v is not None}
        resp = await self._request(
            f"{API_BASE}{path}", params=clean, headers=REQUIRED_HEADERS, use_proxy=True
        )
        return self._json(resp)

    async def fetch_page(self, url: str) -> str:
        """GET a public HTML page with a browser user agent."""
        resp = await self._request(url, headers=PAGE_HEADERS, use_proxy=False)
        return resp.text

    async def search(self, query: SearchQuery) -> SearchResult:
        data = await self.fetch_json("/search", build_search_params(query))
        items, next_page = normalize_search_response(data)
        return SearchResult(items=items, next_page=next_page, total=len(items))

    async def get_item(self, item_id: str) -> ItemDetails:
        raw = await self.fetch_json(f"/items/{item_id}")
        return normalize_item_details(raw if isinstance(raw, dict) else {})

    async def get_user(self, user_id: str) -> Any:
        return await self.fetch_json(f"/users/{user_id}")

    async def get_user_stats(self, user_id: str) -> Any:
        return await self.fetch_json(f"/users/{user_id}/stats")

    async def get_user_items(
        self, user_id: str, limit: int | None = None, next_page: str | None = None
    ) -> Any:
        params = {"limit": limit or None, "next_page": next_page or None}
        return await self.fetch_json(f"/users/{user_id}/items", params)

    async def get_categories(self) -> Any:
        return await self.fetch_json("/categories")

    async def _messaging(
        self, path: str, bearer_token: str, params: dict[str, Any] | None = None
    ) -> Any:
        headers = {**MESSAGING_HEADERS, "Authorization": f"Bearer {bearer_token}"}
        resp = await self._request(
            f"{MESSAGING_BASE}{path}", params=params, headers=headers, use_proxy=True
        )
        return self._json(resp)

    async def get_inbox(
        self, bearer_token: str, page_size: int = 100, max_messages: int = 1
    ) -> Any:
        """Inbox of the account that owns ``bearer_token``."""
        return await self._messaging(
            "/inbox",
            bearer_token,
            {"page_size": page_size, "max_messages": max_messages},
        )

    async def get_conversation(self, bearer_token: str, conversation_id: str) -> Any:
        return await self._messaging(f"/conversations/{conversation_id}/messages", bearer_token)

    async def resolve_hash(self, url_or_slug: str) -> str:
        return await resolve_hash(self, url_or_slug)
