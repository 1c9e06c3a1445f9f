"""
Study session.

Fetches the next due card, converts both sides to markdown once, and keeps
track of what is on screen. Card loads are tagged with a request id, so a
load that was superseded (e.g. by a reload) never replaces a newer card.
Answer submissions are tagged with the card id they belong to.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from .ankiconnect import AnkiConnectError
from .markdown import convert
from .media import inline_media
from .scheduler import CardContent, Ease

NO_DUE_CARDS_MARKDOWN = "## No due cards\n\nYou're all caught up."


@dataclass(frozen=True)
class ConversionResult:
    """Markdown for both sides of a card."""
    question_markdown: str
    answer_markdown: str


@dataclass(frozen=True)
class ReviewCard:
    card: CardContent
    markdown: ConversionResult

    @property
    def card_id(self) -> int:
        return self.card.card_id


async def html_to_markdown(html: str, store=None) -> str:
    """Convert card HTML and, if a media store is given, inline its images."""
    markdown = convert(html)
    if store is None:
        return markdown
    return await inline_media(markdown, store)


async def convert_card(card: CardContent, store=None) -> ConversionResult:
    """Convert question and answer concurrently."""
    question_markdown, answer_markdown = await asyncio.gather(
        html_to_markdown(card.question, store),
        html_to_markdown(card.answer, store),
    )
    return ConversionResult(
        question_markdown=question_markdown,
        answer_markdown=answer_markdown,
    )


def render_card_markdown(review: ReviewCard | None, show_answer: bool = False) -> str:
    """Markdown for the study view: question, then the answer once revealed."""
    if review is None:
        return NO_DUE_CARDS_MARKDOWN

    parts = [f"## Question\n\n{review.markdown.question_markdown}"]
    if show_answer:
        parts.append(f"## Answer\n\n{review.markdown.answer_markdown}")
    return "\n\n---\n\n".join(parts)


def answer_label(review: ReviewCard, ease: Ease) -> str:
    """Button label for *ease*, with Anki's next interval when known."""
    reviews = review.card.next_reviews
    index = int(ease) - 1
    if index < len(reviews) and reviews[index]:
        return f"{ease.label} ({reviews[index]})"
    return ease.label


def notify_failure(title: str, error: Exception) -> None:
    print(f"[error] {title}: {error}")


class StudySession:
    """Review state for one deck."""

    def __init__(self, scheduler, deck_name: str, store=None, notify=notify_failure):
        self.scheduler = scheduler
        self.deck_name = deck_name
        self.store = store
        self.notify = notify

        self.current: ReviewCard | None = None
        self.show_answer = False
        self._request_id = 0
        self._pending_card_id: int | None = None

    async def _fetch(self) -> ReviewCard | None:
        card = await self.scheduler.get_next_due_card(self.deck_name)
        if card is None:
            return None
        return ReviewCard(card=card, markdown=await convert_card(card, self.store))

    async def load_next(self) -> bool:
        """
        Fetch and convert the next due card.

        Returns True if the result was applied. A failed load keeps the
        current card on screen; a load superseded by a newer one is dropped.
        """
        self._request_id += 1
        request_id = self._request_id

        try:
            review = await self._fetch()
        except AnkiConnectError as e:
            if request_id == self._request_id:
                self.notify("Failed to load due card", e)
            return False

        if request_id != self._request_id:
            return False

        self.current = review
        self.show_answer = False
        return True

    def reveal(self) -> None:
        if self.current is not None:
            self.show_answer = True

    async def answer(self, ease: Ease) -> bool:
        """
        Submit *ease* for the current card, then load the next one.

        Ignored while a submission for the same card is in flight. On
        failure the current card stays on screen.
        """
        review = self.current
        if review is None or not self.show_answer:
            return False
        if self._pending_card_id == review.card_id:
            return False

        self._pending_card_id = review.card_id
        try:
            ok = await self.scheduler.answer(review.card_id, ease)
        except AnkiConnectError as e:
            self.notify("Failed to submit review", e)
            return False
        finally:
            if self._pending_card_id == review.card_id:
                self._pending_card_id = None

        if not ok:
            self.notify("Failed to submit review", AnkiConnectError(
                f"Anki rejected the answer for card {review.card_id}"
            ))
            return False

        await self.load_next()
        return True

    def render(self) -> str:
        return render_card_markdown(self.current, self.show_answer)
