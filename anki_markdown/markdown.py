"""
HTML to Markdown translation.

Converts Anki's rendered card HTML into markdown a terminal viewer can
show: ATX headings, fenced code blocks, `-` bullets. Anki-specific bits
are handled on top of the generic conversion:

    <hr id="answer">    → ---  (front/back divider, blank lines around it)
    [sound:clip.mp3]    → Audio: `clip.mp3`
"""

from __future__ import annotations

import re

from markdownify import ATX, MarkdownConverter

from .sanitizer import is_answer_divider, sanitize

ANSWER_DIVIDER = "---"

SOUND_TAG_RE = re.compile(r"\\?\[sound:([^\]]+?)\\?\]")

# Backslash escapes markdownify adds to text (e.g. my\_clip.mp3)
MARKDOWN_ESCAPE_RE = re.compile(r"\\([\\`*_{}\[\]()#+\-.!])")


class AnkiMarkdownConverter(MarkdownConverter):
    """markdownify converter with a rule for Anki's answer divider."""

    def convert_hr(self, el, text, parent_tags):
        if is_answer_divider(el):
            return f"\n\n{ANSWER_DIVIDER}\n\n"
        return super().convert_hr(el, text, parent_tags)


_converter = AnkiMarkdownConverter(heading_style=ATX, bullets="-")


def _sound_replacement(match: re.Match) -> str:
    filename = MARKDOWN_ESCAPE_RE.sub(r"\1", match.group(1))
    return f"Audio: `{filename}`"


def rewrite_sound_tags(markdown: str) -> str:
    """Replace [sound:FILE] tags with readable text, since markdown can't play audio."""
    return SOUND_TAG_RE.sub(_sound_replacement, markdown)


def translate(html: str) -> str:
    """Translate sanitized HTML to trimmed markdown."""
    markdown = _converter.convert(html)
    return rewrite_sound_tags(markdown).strip()


def convert(html: str) -> str:
    """Convert raw card HTML to markdown (no media lookups)."""
    return translate(sanitize(html))
