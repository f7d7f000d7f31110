"""Browser steps for delivering a chat message, plus the search-and-contact plan."""

from __future__ import annotations

import json

import httpx

from .client import chat_url
from .schemas import (
    ChatFlow,
    ChatInstructions,
    ChatStep,
    ContactCandidate,
    SearchAndContactResponse,
    SearchResult,
)

MESSAGE_BOX = 'textbox "Escribe un mensaje..."'


def build_chat_instructions(item_hash: str, message: str) -> ChatInstructions:
    """Return the five steps an external browser agent runs to send ``message``.

    The order is fixed: every note assumes the previous step has completed.
    Nothing here touches a browser.
    """
    url = chat_url(item_hash)
    steps = (
        ChatStep(action="navigate", url=url, note="Opens chat thread with seller for this item"),
        ChatStep(
            action="snapshot",
            note=f"Wait for the chat page to render and locate {MESSAGE_BOX}",
        ),
        ChatStep(
            action="click",
            selector=MESSAGE_BOX,
            note="Focus the message input found in the previous snapshot",
        ),
        ChatStep(
            action="type",
            text=message,
            submit=True,
            note="Type the message into the focused input and press Enter to send",
        ),
        ChatStep(
            action="snapshot",
            note="Verify the sent message appears in the thread with a timestamp",
        ),
    )
    return ChatInstructions(hash=item_hash, chat_url=url, message=message, steps=steps)


def plan_contacts(result: SearchResult, message: str) -> SearchAndContactResponse:
    """Drop reserved items and attach the per-item follow-up calls.

    Items without a slug are dropped as well: their page, and so their
    hash, cannot be reached.

    Hashes are not resolved here; each one costs a page fetch, so the
    caller resolves only the items it actually wants to contact.
    """
    quoted = json.dumps(message, ensure_ascii=False)
    items = [
        ContactCandidate(
            **item.model_dump(),
            chat_flow=ChatFlow(
                step1=f"GET /api/items/hash?{httpx.QueryParams(slug=item.slug)}",
                step2=f'POST /api/chat {{ itemHash: "<hash>", message: {quoted} }}',
            ),
        )
        for item in result.items
        if not item.reserved and item.slug
    ]
    return SearchAndContactResponse(items=items, total=len(items), next_page=result.next_page)
