"""
Due-card scheduling.

Anki decides which card is due next; this module only asks it. Two
strategies share one interface:

    DueQueryScheduler   findCards 'deck:"X" is:due' + cardsInfo, answerCards
    ReviewerScheduler   drives Anki's own reviewer window (guiDeckReview,
                        guiCurrentCard, guiAnswerCard)

Anything with the same two coroutines can stand in for them:

    async get_next_due_card(deck) -> CardContent | None
    async answer(card_id, ease) -> bool

The blocking AnkiConnect calls run in worker threads so they don't stall
the event loop.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import IntEnum


class Ease(IntEnum):
    """Review grades, worst to best."""
    AGAIN = 1
    HARD = 2
    GOOD = 3
    EASY = 4

    @property
    def label(self) -> str:
        return self.name.capitalize()


@dataclass(frozen=True)
class CardContent:
    """One due card as fetched from Anki."""
    card_id: int
    question: str            # rendered question HTML
    answer: str              # rendered answer HTML (usually repeats the question)
    next_reviews: tuple[str, ...] = field(default_factory=tuple)


def card_from_info(info: dict) -> CardContent:
    """Build a CardContent from a cardsInfo / guiCurrentCard result."""
    return CardContent(
        card_id=info["cardId"],
        question=info.get("question", ""),
        answer=info.get("answer", ""),
        next_reviews=tuple(info.get("nextReviews") or ()),
    )


def due_query(deck: str) -> str:
    """Anki search query for the due cards of *deck*."""
    escaped = deck.replace('"', '\\"')
    return f'deck:"{escaped}" is:due'


class DueQueryScheduler:
    """Looks up due cards with a search query and answers them directly."""

    def __init__(self, client):
        self.client = client

    async def get_next_due_card(self, deck: str) -> CardContent | None:
        card_ids = await asyncio.to_thread(self.client.find_cards, due_query(deck))
        if not card_ids:
            return None

        # Several cards can be equally due; take the first one Anki lists
        infos = await asyncio.to_thread(self.client.cards_info, [card_ids[0]])
        if not infos:
            return None
        return card_from_info(infos[0])

    async def answer(self, card_id: int, ease: Ease) -> bool:
        results = await asyncio.to_thread(
            self.client.answer_cards, [(card_id, int(ease))]
        )
        return bool(results) and all(results)


class ReviewerScheduler:
    """Mirrors the card Anki's reviewer window is showing."""

    def __init__(self, client):
        self.client = client

    async def get_next_due_card(self, deck: str) -> CardContent | None:
        await asyncio.to_thread(self.client.gui_deck_review, deck)
        info = await asyncio.to_thread(self.client.gui_current_card)
        if not info or "cardId" not in info:
            return None
        return card_from_info(info)

    async def answer(self, card_id: int, ease: Ease) -> bool:
        info = await asyncio.to_thread(self.client.gui_current_card)
        if not info or info.get("cardId") != card_id:
            print(f"[study] Reviewer moved past card {card_id} — answer not sent")
            return False
        await asyncio.to_thread(self.client.gui_show_answer)
        return await asyncio.to_thread(self.client.gui_answer_card, int(ease))


SCHEDULERS = {
    "due": DueQueryScheduler,
    "reviewer": ReviewerScheduler,
}

DEFAULT_SCHEDULER = "due"


def make_scheduler(name: str, client):
    """Instantiate the scheduler strategy registered under *name*."""
    try:
        scheduler_cls = SCHEDULERS[name]
    except KeyError:
        raise ValueError(
            f"Unknown scheduler '{name}' (choose from: {', '.join(SCHEDULERS)})"
        ) from None
    return scheduler_cls(client)
