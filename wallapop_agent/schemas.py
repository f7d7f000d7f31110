from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

OrderBy = Literal["newest", "price_low_to_high", "price_high_to_low", "distance"]
StepAction = Literal["navigate", "snapshot", "click", "type"]


class _Schema(BaseModel):
    """Snake-case attributes, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SearchQuery(_Schema):
    keywords: str | None = None
    min_price: float | None = Field(default=None, ge=0)
    max_price: float | None = Field(default=None, ge=0)
    latitude: float | None = None
    longitude: float | None = None
    distance: int | None = Field(default=None, ge=0)
    category_id: int | None = None
    order_by: OrderBy | None = None
    limit: int = Field(default=20, ge=1)
    next_page: str | None = None


class SearchResultItem(_Schema):
    id: str | None = None
    title: str | None = None
    price: float | None = None
    currency: str = "EUR"
    city: str | None = None
    distance: float | None = None
    slug: str | None = None
    url: str | None = None
    image: str | None = None
    seller_id: str | None = None
    reserved: bool = False
    shippable: bool = False
    created_at: int | float | str | None = None


class SearchResult(_Schema):
    items: list[SearchResultItem]
    next_page: str | None = None
    total: int


class Seller(_Schema):
    id: str | None = None
    name: str | None = None


class Counters(_Schema):
    views: int = 0
    favorites: int = 0
    conversations: int = 0


class ItemDetails(_Schema):
    id: str | None = None
    title: str | None = None
    description: str | None = None
    price: float = 0
    currency: str = "EUR"
    city: str | None = None
    seller: Seller = Field(default_factory=Seller)
    slug: str | None = None
    url: str | None = None
    images: int = 0
    reserved: bool = False
    sold: bool = False
    shippable: bool = False
    counters: Counters | None = None
    created_at: int | float | str | None = None


class HashResponse(_Schema):
    hash: str
    chat_url: str


class ChatStep(_Schema):
    model_config = ConfigDict(frozen=True)

    action: StepAction
    url: str | None = None
    selector: str | None = None
    text: str | None = None
    submit: bool | None = None
    note: str


class ChatInstructions(_Schema):
    model_config = ConfigDict(frozen=True)

    hash: str
    chat_url: str
    message: str
    steps: tuple[ChatStep, ...]


class ChatRequest(_Schema):
    item_url: str | None = None
    item_hash: str | None = None
    message: str | None = None


class SearchAndContactRequest(_Schema):
    query: str | None = None
    message: str | None = None
    min_price: float | None = Field(default=None, ge=0)
    max_price: float | None = Field(default=None, ge=0)
    limit: int = Field(default=5, ge=1)
    distance: int | None = Field(default=None, ge=0)
    lat: float | None = None
    lng: float | None = None


class ChatFlow(_Schema):
    step1: str
    step2: str


class ContactCandidate(SearchResultItem):
    chat_flow: ChatFlow


class SearchAndContactResponse(_Schema):
    items: list[ContactCandidate]
    total: int
    next_page: str | None = None
