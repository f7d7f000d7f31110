import asyncio
import json
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from wallapop_agent.errors import HashNotFoundError
from wallapop_agent.hashes import extract_hash, page_url, resolve_hash


def _page(payload: str) -> str:
    return (
        "<html><head></head><body><div id='__next'></div>"
        f'<script id="__NEXT_DATA__" type="application/json">{payload}</script>'
        "</body></html>"
    )


def _next_data(item_hash: str) -> str:
    return json.dumps({"props": {"pageProps": {"item": {"id": item_hash, "title": "x"}}}})


class FakeFetcher:
    def __init__(self, html: str):
        self.html = html
        self.urls = []

    async def fetch_page(self, url: str) -> str:
        self.urls.append(url)
        return self.html


def test_extract_hash_returns_identifier():
    assert extract_hash(_page(_next_data("qzmmv570nlzv"))) == "qzmmv570nlzv"


@pytest.mark.parametrize(
    "html",
    [
        "<html><body>no data here</body></html>",
        _page("{not json"),
        _page(json.dumps({"props": {"pageProps": {}}})),
        _page(json.dumps({"props": {"pageProps": {"item": {"id": ""}}}})),
        _page(json.dumps([1, 2, 3])),
        _page(""),
    ],
)
def test_extract_hash_failures_are_hash_not_found(html):
    with pytest.raises(HashNotFoundError):
        extract_hash(html)


def test_page_url_from_slug():
    assert page_url("silla-1234") == "https://es.wallapop.com/item/silla-1234"


def test_page_url_keeps_full_urls():
    url = "https://es.wallapop.com/item/other-slug-99?utm=1"
    assert page_url(url) == url


def test_resolve_hash_uses_full_url_verbatim():
    fetcher = FakeFetcher(_page(_next_data("abc123")))
    url = "http://example.test/some/page"
    assert asyncio.run(resolve_hash(fetcher, url)) == "abc123"
    assert fetcher.urls == [url]


def test_resolve_hash_builds_url_from_slug():
    fetcher = FakeFetcher(_page(_next_data("abc123")))
    assert asyncio.run(resolve_hash(fetcher, "lampara-5555")) == "abc123"
    assert fetcher.urls == ["https://es.wallapop.com/item/lampara-5555"]


def test_resolve_hash_missing_script():
    fetcher = FakeFetcher("<html></html>")
    with pytest.raises(HashNotFoundError):
        asyncio.run(resolve_hash(fetcher, "lampara-5555"))
