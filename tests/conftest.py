"""Shared fixtures for anki_markdown tests."""

import asyncio

import pytest
from unittest.mock import MagicMock

from anki_markdown.scheduler import CardContent


# ---------------------------------------------------------------------------
# Media store stubs
# ---------------------------------------------------------------------------

class StubMediaStore:
    """In-memory media store that records every lookup."""

    def __init__(self, files=None, delay=0.0, error=None):
        self.files = files or {}
        self.delay = delay
        self.error = error
        self.calls = []

    async def retrieve_media_file(self, filename):
        self.calls.append(filename)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.files.get(filename)


@pytest.fixture
def media_store():
    """Factory for StubMediaStore instances."""
    return StubMediaStore


# ---------------------------------------------------------------------------
# Card fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_card():
    return CardContent(
        card_id=1001,
        question="<style>.card { color: red; }</style><p>What is <b>DNA</b>?</p>",
        answer=(
            "<style>.card { color: red; }</style><p>What is <b>DNA</b>?</p>"
            '<hr id="answer">'
            "<p>Deoxyribonucleic acid</p>"
            '<img src="helix.png">'
        ),
        next_reviews=("<1m", "<6m", "<10m", "4d"),
    )


@pytest.fixture
def card_info():
    """A raw cardsInfo entry as AnkiConnect returns it."""
    return {
        "cardId": 1001,
        "question": "<p>Q</p>",
        "answer": '<p>Q</p><hr id=answer><p>A</p>',
        "deckName": "Science",
        "modelName": "Basic",
        "nextReviews": ["<1m", "<6m", "<10m", "4d"],
    }


# ---------------------------------------------------------------------------
# Mock AnkiConnect client
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_anki_client(card_info):
    """Return a MagicMock mimicking AnkiConnectClient."""
    client = MagicMock()
    client.ping.return_value = True
    client.version.return_value = 6
    client.deck_names.return_value = ["Default", "Science"]
    client.find_cards.return_value = [1001, 1002]
    client.cards_info.return_value = [card_info]
    client.answer_cards.return_value = [True]
    client.gui_deck_review.return_value = True
    client.gui_current_card.return_value = card_info
    client.gui_show_answer.return_value = True
    client.gui_answer_card.return_value = True
    client.retrieve_media_file.return_value = None
    return client
