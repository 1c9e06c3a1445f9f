"""Tests for anki_markdown.media."""

import time

import pytest
from unittest.mock import MagicMock

from anki_markdown.ankiconnect import AnkiConnectError
from anki_markdown.media import (
    AnkiMediaStore,
    extract_sources,
    guess_mime_type,
    inline_media,
    resolve_image_source,
)


# ── guess_mime_type ──────────────────────────────────────────────────────

class TestGuessMimeType:
    @pytest.mark.parametrize("filename, expected", [
        ("a.apng", "image/apng"),
        ("a.avif", "image/avif"),
        ("a.gif", "image/gif"),
        ("a.jpeg", "image/jpeg"),
        ("a.jpg", "image/jpeg"),
        ("a.png", "image/png"),
        ("a.svg", "image/svg+xml"),
        ("a.svgz", "image/svg+xml"),
        ("a.webp", "image/webp"),
    ])
    def test_known_extensions(self, filename, expected):
        assert guess_mime_type(filename) == expected

    def test_case_insensitive(self):
        assert guess_mime_type("a.PNG") == guess_mime_type("a.png") == "image/png"

    def test_unknown_extension(self):
        assert guess_mime_type("a.xyz") == "application/octet-stream"

    def test_no_extension(self):
        assert guess_mime_type("a") == "application/octet-stream"

    def test_uses_last_dot(self):
        assert guess_mime_type("archive.png.gif") == "image/gif"

    def test_trailing_dot(self):
        assert guess_mime_type("photo.") == "application/octet-stream"


# ── resolve_image_source ─────────────────────────────────────────────────

class TestResolveImageSource:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("source", [
        "https://x/y.png",
        "http://x/y.png",
        "HTTPS://X/Y.PNG",
        "data:image/png;base64,AAA",
        "file:///tmp/a.gif",
    ])
    async def test_renderable_sources_unchanged(self, source, media_store):
        store = media_store()
        assert await resolve_image_source(source, store) == source
        assert store.calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("source", ["", "   "])
    async def test_blank_source_unchanged(self, source, media_store):
        store = media_store()
        assert await resolve_image_source(source, store) == source
        assert store.calls == []

    @pytest.mark.asyncio
    async def test_media_file_becomes_data_url(self, media_store):
        store = media_store({"pic.png": "Zm9v"})
        assert await resolve_image_source("pic.png", store) == "data:image/png;base64,Zm9v"

    @pytest.mark.asyncio
    async def test_missing_file_returns_original(self, media_store):
        store = media_store()
        assert await resolve_image_source("pic.png", store) == "pic.png"
        assert store.calls == ["pic.png"]

    @pytest.mark.asyncio
    async def test_empty_payload_returns_original(self, media_store):
        store = media_store({"pic.png": ""})
        assert await resolve_image_source("pic.png", store) == "pic.png"

    @pytest.mark.asyncio
    async def test_store_error_returns_original(self, media_store):
        store = media_store(error=AnkiConnectError("Cannot reach AnkiConnect"))
        assert await resolve_image_source("pic.png", store) == "pic.png"

    @pytest.mark.asyncio
    async def test_unexpected_store_error_returns_original(self, media_store):
        store = media_store(error=RuntimeError("boom"))
        assert await resolve_image_source("pic.png", store) == "pic.png"

    @pytest.mark.asyncio
    async def test_strips_query_and_fragment(self, media_store):
        store = media_store({"pic.png": "Zm9v"})
        assert await resolve_image_source("pic.png?v=2", store) == "data:image/png;base64,Zm9v"
        assert await resolve_image_source("pic.png#top", store) == "data:image/png;base64,Zm9v"
        assert store.calls == ["pic.png", "pic.png"]

    @pytest.mark.asyncio
    async def test_percent_decodes_filename(self, media_store):
        store = media_store({"my pic.jpg": "YmFy"})
        result = await resolve_image_source("my%20pic.jpg", store)
        assert result == "data:image/jpeg;base64,YmFy"

    @pytest.mark.asyncio
    async def test_malformed_escape_falls_back_to_raw(self, media_store):
        store = media_store()
        assert await resolve_image_source("%E0%A4%A.png", store) == "%E0%A4%A.png"
        assert store.calls == ["%E0%A4%A.png"]

    @pytest.mark.asyncio
    async def test_invalid_escape_sequence_falls_back_to_raw(self, media_store):
        store = media_store({"a%zz%20b.png": "Zm9v"})
        result = await resolve_image_source("a%zz%20b.png", store)
        assert result == "data:image/png;base64,Zm9v"
        assert store.calls == ["a%zz%20b.png"]

    @pytest.mark.asyncio
    async def test_trailing_percent_falls_back_to_raw(self, media_store):
        store = media_store()
        assert await resolve_image_source("100%.png", store) == "100%.png"
        assert store.calls == ["100%.png"]

    @pytest.mark.asyncio
    async def test_query_only_source_unchanged(self, media_store):
        store = media_store()
        assert await resolve_image_source("?v=1", store) == "?v=1"
        assert store.calls == []

    @pytest.mark.asyncio
    async def test_trims_before_lookup(self, media_store):
        store = media_store({"pic.gif": "R0lG"})
        assert await resolve_image_source(" pic.gif ", store) == "data:image/gif;base64,R0lG"

    @pytest.mark.asyncio
    async def test_unknown_extension_uses_octet_stream(self, media_store):
        store = media_store({"blob.bin": "AAEC"})
        result = await resolve_image_source("blob.bin", store)
        assert result == "data:application/octet-stream;base64,AAEC"


# ── extract_sources ──────────────────────────────────────────────────────

class TestExtractSources:
    def test_collects_unique_sources(self):
        md = "![a](x.png) text ![b](y.png \"Y\") ![c](x.png)"
        assert extract_sources(md) == {"x.png", "y.png"}

    def test_no_images(self):
        assert extract_sources("[link](x.png) plain") == set()


# ── inline_media ─────────────────────────────────────────────────────────

class TestInlineMedia:
    @pytest.mark.asyncio
    async def test_no_images_returns_input(self, media_store):
        store = media_store()
        md = "# Title\n\nNo pictures here."
        assert await inline_media(md, store) == md
        assert store.calls == []

    @pytest.mark.asyncio
    async def test_rewrites_media_file(self, media_store):
        store = media_store({"cell.png": "Zm9v"})
        result = await inline_media("Look: ![Cell](cell.png)", store)
        assert result == "Look: ![Cell](data:image/png;base64,Zm9v)"

    @pytest.mark.asyncio
    async def test_duplicate_source_resolved_once(self, media_store):
        store = media_store({"cell.png": "Zm9v"})
        md = "![a](cell.png)\n\n![b](cell.png)\n\n![c](cell.png)"
        result = await inline_media(md, store)
        assert store.calls == ["cell.png"]
        assert result.count("data:image/png;base64,Zm9v") == 3

    @pytest.mark.asyncio
    async def test_preserves_title(self, media_store):
        store = media_store({"cell.png": "Zm9v"})
        result = await inline_media('![Cell](cell.png "A cell")', store)
        assert result == '![Cell](data:image/png;base64,Zm9v "A cell")'

    @pytest.mark.asyncio
    async def test_unresolved_left_byte_identical(self, media_store):
        store = media_store()
        md = 'Before ![Cell](missing.png   "Title") after'
        assert await inline_media(md, store) == md

    @pytest.mark.asyncio
    async def test_remote_and_local_mixed(self, media_store):
        store = media_store({"local.webp": "UklG"})
        md = "![r](https://example.com/r.png) ![l](local.webp)"
        result = await inline_media(md, store)
        assert result == "![r](https://example.com/r.png) ![l](data:image/webp;base64,UklG)"
        assert store.calls == ["local.webp"]

    @pytest.mark.asyncio
    async def test_failure_does_not_block_other_sources(self, media_store):
        class PartlyBrokenStore:
            calls = []

            async def retrieve_media_file(self, filename):
                self.calls.append(filename)
                if filename == "bad.png":
                    raise AnkiConnectError("broken")
                return "Zm9v"

        md = "![x](bad.png) ![y](good.png)"
        result = await inline_media(md, PartlyBrokenStore())
        assert result == "![x](bad.png) ![y](data:image/png;base64,Zm9v)"

    @pytest.mark.asyncio
    async def test_distinct_sources_resolved_concurrently(self, media_store):
        store = media_store({"a.png": "QQ==", "b.png": "Qg=="}, delay=0.2)
        start = time.perf_counter()
        result = await inline_media("![a](a.png) ![b](b.png)", store)
        elapsed = time.perf_counter() - start

        assert elapsed < 0.35
        assert sorted(store.calls) == ["a.png", "b.png"]
        assert "data:image/png;base64,QQ==" in result
        assert "data:image/png;base64,Qg==" in result


# ── AnkiMediaStore ───────────────────────────────────────────────────────

class TestAnkiMediaStore:
    @pytest.mark.asyncio
    async def test_delegates_to_client(self):
        client = MagicMock()
        client.retrieve_media_file.return_value = "Zm9v"
        store = AnkiMediaStore(client)

        assert await store.retrieve_media_file("pic.png") == "Zm9v"
        client.retrieve_media_file.assert_called_once_with("pic.png")

    @pytest.mark.asyncio
    async def test_end_to_end_with_client(self):
        client = MagicMock()
        client.retrieve_media_file.side_effect = lambda name: "Zm9v" if name == "pic.png" else None
        result = await inline_media("![p](pic.png) ![q](gone.png)", AnkiMediaStore(client))
        assert result == "![p](data:image/png;base64,Zm9v) ![q](gone.png)"
