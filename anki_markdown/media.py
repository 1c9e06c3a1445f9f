"""
Media inlining.

Finds image references in converted card markdown and rewrites relative
Anki media filenames into self-contained data: URLs, fetching the file
content from Anki's collection.media through AnkiConnect.

    ![chart](chart.png)             → ![chart](data:image/png;base64,...)
    ![logo](https://x/logo.png)     → unchanged (already renderable)

Each unique source is looked up once; lookups run concurrently.
"""

from __future__ import annotations

import asyncio
import re
from urllib.parse import unquote

MARKDOWN_IMAGE_RE = re.compile(r'!\[([^\]]*)\]\((\S+?)(?:\s+"([^"]*)")?\)')

# Sources a markdown viewer can render without a lookup
RENDERABLE_SOURCE_RE = re.compile(r"^(?:https?:|data:|file:)", re.IGNORECASE)

QUERY_OR_FRAGMENT_RE = re.compile(r"[?#].*$", re.DOTALL)

# A "%" not followed by two hex digits
MALFORMED_ESCAPE_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")

DEFAULT_MIME_TYPE = "application/octet-stream"

IMAGE_MIME_TYPES = {
    "apng": "image/apng",
    "avif": "image/avif",
    "gif": "image/gif",
    "jpeg": "image/jpeg",
    "jpg": "image/jpeg",
    "png": "image/png",
    "svg": "image/svg+xml",
    "svgz": "image/svg+xml",
    "webp": "image/webp",
}


class AnkiMediaStore:
    """Async media store backed by AnkiConnect's retrieveMediaFile."""

    def __init__(self, client):
        self.client = client

    async def retrieve_media_file(self, filename: str) -> str | None:
        """Return the base64 content of *filename*, or None if Anki has no such file."""
        return await asyncio.to_thread(self.client.retrieve_media_file, filename)


def guess_mime_type(filename: str) -> str:
    """Pick a MIME type for a data: URL from the filename extension."""
    extension = filename.rsplit(".", 1)[1].lower() if "." in filename else ""
    return IMAGE_MIME_TYPES.get(extension, DEFAULT_MIME_TYPE)


def _percent_decode(value: str) -> str:
    if MALFORMED_ESCAPE_RE.search(value):
        return value
    try:
        return unquote(value, errors="strict")
    except UnicodeDecodeError:
        return value


async def resolve_image_source(source: str, store) -> str:
    """
    Turn an image source into something the markdown viewer can render.

    http(s)/data/file URLs are returned unchanged. Anything else is treated
    as a collection.media filename (query string and fragment dropped,
    percent-decoded) and fetched from *store*. If the file is missing or
    the lookup fails, the original source is returned.
    """
    trimmed = source.strip()
    if not trimmed or RENDERABLE_SOURCE_RE.match(trimmed):
        return source

    filename = _percent_decode(QUERY_OR_FRAGMENT_RE.sub("", trimmed))
    if not filename:
        return source

    try:
        encoded = await store.retrieve_media_file(filename)
    except Exception:
        return source

    if not encoded:
        return source

    return f"data:{guess_mime_type(filename)};base64,{encoded}"


def extract_sources(markdown: str) -> set[str]:
    """Collect the unique image sources referenced in *markdown*."""
    return {m.group(2) for m in MARKDOWN_IMAGE_RE.finditer(markdown)}


async def inline_media(markdown: str, store) -> str:
    """Rewrite image sources in *markdown* to their resolved values."""
    sources = list(extract_sources(markdown))
    if not sources:
        return markdown

    resolved_values = await asyncio.gather(
        *(resolve_image_source(source, store) for source in sources)
    )
    resolved = dict(zip(sources, resolved_values))

    def _replace(m: re.Match) -> str:
        alt, source, title = m.groups()
        new_source = resolved.get(source)
        if not new_source or new_source == source:
            return m.group(0)
        title_part = f' "{title}"' if title else ""
        return f"![{alt}]({new_source}{title_part})"

    return MARKDOWN_IMAGE_RE.sub(_replace, markdown)
