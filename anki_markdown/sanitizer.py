"""
HTML sanitizing.

Strips markup that a markdown viewer cannot apply (card CSS and JS) and
marks the <hr id="answer"> element Anki places between the front and back
of a card, so the translator can turn it into a markdown divider.
"""

from __future__ import annotations

import re

from bs4 import BeautifulSoup, Tag

from .media import RENDERABLE_SOURCE_RE

ANSWER_DIVIDER_ID = "answer"

# Elements removed together with their contents
STRIPPED_TAGS = ["style", "script"]

WHITESPACE_RE = re.compile(r"[ \t\n\r\f\v]")


def is_answer_divider(el) -> bool:
    """True if *el* is the <hr> separating question from answer."""
    if not isinstance(el, Tag) or el.name != "hr":
        return False
    return str(el.get("id", "")).lower() == ANSWER_DIVIDER_ID


def _encode_src_whitespace(src: str) -> str:
    """Percent-encode whitespace so the image source stays one markdown token."""
    return WHITESPACE_RE.sub(lambda m: "%{:02X}".format(ord(m.group(0))), src.strip())


def sanitize(html: str) -> str:
    """
    Prepare card HTML for markdown translation.

    - <style> and <script> elements are removed with their contents
    - the answer divider <hr> gets its id normalised to "answer"
    - whitespace in <img src> is percent-encoded, except in http(s)/data/file URLs

    Everything else passes through unchanged.
    """
    soup = BeautifulSoup(html or "", "html.parser")

    for el in soup.find_all(STRIPPED_TAGS):
        el.decompose()

    for hr in soup.find_all("hr"):
        if is_answer_divider(hr):
            hr["id"] = ANSWER_DIVIDER_ID

    for img in soup.find_all("img", src=True):
        src = str(img["src"])
        if not RENDERABLE_SOURCE_RE.match(src.strip()):
            img["src"] = _encode_src_whitespace(src)

    return str(soup)
