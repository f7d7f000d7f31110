"""HTTP API for the Wallapop agent.

Proxies Wallapop's public search and item endpoints in a compact,
agent-friendly shape, resolves the internal item hash needed to open a chat,
and hands out declarative browser steps for actually sending a message.
The service itself never logs in and never sends anything.
"""

from __future__ import annotations

from typing import Any

from fastapi import Depends, FastAPI, Header, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .chat import build_chat_instructions, plan_contacts
from .client import TOKEN_EXTRACT_JS, WallapopClient, chat_url
from .config import Settings, load_settings
from .errors import HashNotFoundError, UpstreamError, ValidationError
from .log import configure_logging, logger
from .schemas import (
    ChatInstructions,
    ChatRequest,
    HashResponse,
    ItemDetails,
    OrderBy,
    SearchAndContactRequest,
    SearchAndContactResponse,
    SearchQuery,
    SearchResult,
)

MAX_CONTACT_RESULTS = 20


def get_client(request: Request) -> WallapopClient:
    return request.app.state.client


def _bearer_token(authorization: str | None) -> str:
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise ValidationError("Authorization: Bearer <token> header required")
    return token.strip()


async def _validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    logger.warning("bad_request", extra={"path": request.url.path, "error": exc.message})
    return JSONResponse(status_code=400, content={"error": exc.message})


async def _hash_not_found(request: Request, exc: HashNotFoundError) -> JSONResponse:
    logger.warning("hash_not_found", extra={"path": request.url.path, "error": exc.message})
    return JSONResponse(status_code=404, content={"error": exc.message})


async def _upstream_error(request: Request, exc: UpstreamError) -> JSONResponse:
    logger.warning(
        "upstream_error",
        extra={"path": request.url.path, "upstream_status": exc.status_code, "error": exc.message},
    )
    content: dict[str, Any] = {"error": exc.message}
    if exc.status_code is not None:
        content["upstreamStatus"] = exc.status_code
    return JSONResponse(status_code=502, content=content)


def create_app(
    settings: Settings | None = None, client: WallapopClient | None = None
) -> FastAPI:
    """Build the application around a single :class:`WallapopClient`."""
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="wallapop-agent")
    app.state.settings = settings
    app.state.client = client or WallapopClient(proxy_url=settings.proxy_url)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ValidationError, _validation_error)
    app.add_exception_handler(HashNotFoundError, _hash_not_found)
    app.add_exception_handler(UpstreamError, _upstream_error)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok", "service": "wallapop-agent"}

    @app.get("/api/search", response_model=SearchResult)
    async def search(
        q: str | None = None,
        keywords: str | None = None,
        min_price: float | None = Query(None, alias="minPrice", ge=0),
        max_price: float | None = Query(None, alias="maxPrice", ge=0),
        distance: int | None = Query(None, ge=0),
        lat: float | None = None,
        lng: float | None = None,
        category: int | None = None,
        order_by: OrderBy | None = Query(None, alias="orderBy"),
        limit: int = Query(20, ge=1),
        next_page: str | None = Query(None, alias="nextPage"),
        client: WallapopClient = Depends(get_client),  # noqa: B008
    ) -> SearchResult:
        """Search listings.

        ``nextPage`` is the cursor returned by a previous call; when present
        every other filter is dropped.
        """
        query = SearchQuery(
            keywords=q or keywords,
            min_price=min_price,
            max_price=max_price,
            distance=distance,
            latitude=lat,
            longitude=lng,
            category_id=category,
            order_by=order_by,
            limit=limit,
            next_page=next_page,
        )
        return await client.search(query)

    # Declared before /api/items/{item_id} so "hash" is not taken as an id.
    @app.get("/api/items/hash", response_model=HashResponse)
    async def item_hash(
        url: str | None = None,
        slug: str | None = None,
        client: WallapopClient = Depends(get_client),  # noqa: B008
    ) -> HashResponse:
        """Resolve the chat hash of an item from its public URL or slug."""
        target = url or slug
        if not target:
            raise ValidationError("url or slug query param required")
        resolved = await client.resolve_hash(target)
        return HashResponse(hash=resolved, chat_url=chat_url(resolved))

    @app.get("/api/items/{item_id}", response_model=ItemDetails)
    async def item(item_id: str, client: WallapopClient = Depends(get_client)) -> ItemDetails:  # noqa: B008
        return await client.get_item(item_id)

    @app.get("/api/users/{user_id}")
    async def user(user_id: str, client: WallapopClient = Depends(get_client)) -> Any:  # noqa: B008
        return await client.get_user(user_id)

    @app.get("/api/users/{user_id}/stats")
    async def user_stats(user_id: str, client: WallapopClient = Depends(get_client)) -> Any:  # noqa: B008
        return await client.get_user_stats(user_id)

    @app.get("/api/users/{user_id}/items")
    async def user_items(
        user_id: str,
        limit: int | None = Query(None, ge=1),
        next_page: str | None = Query(None, alias="nextPage"),
        client: WallapopClient = Depends(get_client),  # noqa: B008
    ) -> Any:
        return await client.get_user_items(user_id, limit=limit, next_page=next_page)

    @app.get("/api/categories")
    async def categories(client: WallapopClient = Depends(get_client)) -> Any:  # noqa: B008
        return await client.get_categories()

    @app.get("/api/inbox/token-script")
    async def token_script() -> dict[str, str]:
        """JavaScript that reads the bearer token inside a logged-in browser tab."""
        return {"script": TOKEN_EXTRACT_JS}

    @app.get("/api/inbox")
    async def inbox(
        page_size: int = Query(100, alias="pageSize", ge=1),
        max_messages: int = Query(1, alias="maxMessages", ge=0),
        authorization: str | None = Header(None),
        client: WallapopClient = Depends(get_client),  # noqa: B008
    ) -> Any:
        token = _bearer_token(authorization)
        return await client.get_inbox(token, page_size=page_size, max_messages=max_messages)

    @app.get("/api/inbox/{conversation_id}/messages")
    async def conversation(
        conversation_id: str,
        authorization: str | None = Header(None),
        client: WallapopClient = Depends(get_client),  # noqa: B008
    ) -> Any:
        token = _bearer_token(authorization)
        return await client.get_conversation(token, conversation_id)

    @app.post(
        "/api/chat", response_model=ChatInstructions, response_model_exclude_none=True
    )
    async def chat(
        body: ChatRequest, client: WallapopClient = Depends(get_client)  # noqa: B008
    ) -> ChatInstructions:
        """Browser steps that send ``message`` to the seller of an item.

        With ``itemUrl`` only, the hash is resolved first (one page fetch).
        """
        if not body.message:
            raise ValidationError("message required")
        if not body.item_url and not body.item_hash:
            raise ValidationError("itemUrl or itemHash required")
        resolved = body.item_hash or await client.resolve_hash(body.item_url)
        return build_chat_instructions(resolved, body.message)

    @app.post("/api/search-and-contact", response_model=SearchAndContactResponse)
    async def search_and_contact(
        body: SearchAndContactRequest,
        client: WallapopClient = Depends(get_client),  # noqa: B008
    ) -> SearchAndContactResponse:
        """Search, skip reserved items, and describe how to contact each one."""
        if not body.query:
            raise ValidationError("query required")
        if not body.message:
            raise ValidationError("message required")
        result = await client.search(
            SearchQuery(
                keywords=body.query,
                min_price=body.min_price,
                max_price=body.max_price,
                limit=min(body.limit, MAX_CONTACT_RESULTS),
                distance=body.distance,
                latitude=body.lat,
                longitude=body.lng,
            )
        )
        return plan_contacts(result, body.message)

    return app


app = create_app()


def run() -> None:
    import uvicorn

    settings = app.state.settings
    logger.info(
        "startup",
        extra={"port": settings.port, "proxy": "set" if settings.proxy_url else "not set"},
    )
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
