import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from wallapop_agent.chat import build_chat_instructions, plan_contacts
from wallapop_agent.schemas import SearchResult, SearchResultItem


def test_build_chat_instructions_fixed_steps():
    result = build_chat_instructions("qzmmv570nlzv", "Hola!")
    expected_url = "https://es.wallapop.com/app/chat?itemId=qzmmv570nlzv"

    assert result.hash == "qzmmv570nlzv"
    assert result.chat_url == expected_url
    assert result.message == "Hola!"
    assert [s.action for s in result.steps] == ["navigate", "snapshot", "click", "type", "snapshot"]
    assert result.steps[0].url == expected_url
    assert result.steps[2].selector
    assert result.steps[3].text == "Hola!"
    assert result.steps[3].submit is True
    assert all(s.note for s in result.steps)


def test_build_chat_instructions_is_deterministic_and_immutable():
    first = build_chat_instructions("h1", "msg")
    assert first == build_chat_instructions("h1", "msg")
    with pytest.raises(Exception):
        first.message = "other"


def test_plan_contacts_skips_reserved_items():
    result = SearchResult(
        items=[
            SearchResultItem(id="1", slug="a-1", reserved=False),
            SearchResultItem(id="2", slug="b-2", reserved=True),
            SearchResultItem(id="3", slug="c-3"),
        ],
        next_page="cursor",
        total=3,
    )
    plan = plan_contacts(result, 'Sigue disponible? "urgente"')

    assert [i.id for i in plan.items] == ["1", "3"]
    assert all(not i.reserved for i in plan.items)
    assert plan.total == 2
    assert plan.next_page == "cursor"
    assert plan.items[0].chat_flow.step1 == "GET /api/items/hash?slug=a-1"
    assert '\\"urgente\\"' in plan.items[0].chat_flow.step2


def test_plan_contacts_serializes_camel_case():
    result = SearchResult(items=[SearchResultItem(id="1", slug="a-1", seller_id="u1")], total=1)
    dumped = plan_contacts(result, "Hola").model_dump(by_alias=True)
    item = dumped["items"][0]
    assert item["sellerId"] == "u1"
    assert set(item["chatFlow"]) == {"step1", "step2"}
    assert dumped["nextPage"] is None


def test_plan_contacts_skips_items_without_slug_and_encodes_slug():
    result = SearchResult(
        items=[
            SearchResultItem(id="1"),
            SearchResultItem(id="2", slug="silla roja&co"),
        ],
        total=2,
    )
    plan = plan_contacts(result, "hi")

    assert [i.id for i in plan.items] == ["2"]
    step1 = plan.items[0].chat_flow.step1
    assert "None" not in step1
    assert step1.startswith("GET /api/items/hash?slug=silla")
    assert " " not in step1.split("?", 1)[1]
    assert "%26co" in step1
