"""
AnkiConnect HTTP client.

Minimal client using only urllib.request.
Communicates with Anki via the AnkiConnect add-on's JSON-RPC API.
"""

from __future__ import annotations

import json
import urllib.error
import urllib.request

DEFAULT_URL = "http://127.0.0.1:8765"


class AnkiConnectError(Exception):
    """Raised when AnkiConnect returns an error or is unreachable."""


class AnkiConnectClient:
    """HTTP client for the AnkiConnect add-on API."""

    def __init__(self, url: str = DEFAULT_URL, timeout: int = 10):
        self.url = url
        self.timeout = timeout

    def _invoke(self, action: str, **params):
        """Send a JSON-RPC request to AnkiConnect and return the result."""
        payload = {"action": action, "version": 6}
        if params:
            payload["params"] = params

        data = json.dumps(payload).encode("utf-8")
        req = urllib.request.Request(
            self.url,
            data=data,
            headers={"Content-Type": "application/json"},
        )

        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                body = json.loads(resp.read().decode("utf-8"))
        except (urllib.error.URLError, ConnectionError, OSError) as e:
            raise AnkiConnectError(
                f"Cannot reach AnkiConnect at {self.url} — "
                f"is Anki running with AnkiConnect installed? ({e})"
            ) from e

        if body.get("error"):
            raise AnkiConnectError(f"AnkiConnect error: {body['error']}")

        return body.get("result")

    # -- Connection checks --------------------------------------------------

    def ping(self) -> bool:
        """Check connectivity. Returns True if AnkiConnect responds."""
        try:
            self._invoke("version")
            return True
        except AnkiConnectError:
            return False

    def version(self) -> int:
        """Return the AnkiConnect API version."""
        return self._invoke("version")

    def deck_names(self) -> list[str]:
        """Return all deck names."""
        return self._invoke("deckNames")

    # -- Cards --------------------------------------------------------------

    def find_cards(self, query: str) -> list[int]:
        """Find card IDs matching an Anki search query."""
        return self._invoke("findCards", query=query) or []

    def cards_info(self, card_ids: list[int]) -> list[dict]:
        """Fetch raw card info dicts (question/answer HTML, nextReviews, ...)."""
        if not card_ids:
            return []
        raw = self._invoke("cardsInfo", cards=card_ids) or []
        # Unknown card IDs come back as empty objects
        return [item for item in raw if item and "cardId" in item]

    def answer_cards(self, answers: list[tuple[int, int]]) -> list[bool]:
        """Answer cards as (card_id, ease) pairs. Returns one success flag per card."""
        return self._invoke(
            "answerCards",
            answers=[{"cardId": card_id, "ease": ease} for card_id, ease in answers],
        )

    # -- Reviewer window ----------------------------------------------------

    def gui_deck_review(self, deck: str) -> bool:
        """Open the Anki reviewer on *deck*."""
        return bool(self._invoke("guiDeckReview", name=deck))

    def gui_current_card(self) -> dict | None:
        """Return the card shown in the reviewer, or None when not reviewing."""
        return self._invoke("guiCurrentCard")

    def gui_show_answer(self) -> bool:
        return bool(self._invoke("guiShowAnswer"))

    def gui_answer_card(self, ease: int) -> bool:
        return bool(self._invoke("guiAnswerCard", ease=ease))

    # -- Media --------------------------------------------------------------

    def retrieve_media_file(self, filename: str) -> str | None:
        """
        Return the base64-encoded content of a collection.media file.

        AnkiConnect answers False for missing files; that becomes None.
        """
        result = self._invoke("retrieveMediaFile", filename=filename)
        return result or None
