# tests/unit/extraction/test_unit_extraction.py - v1
"""Tests for extraction: DOCX and text extractors, factory dispatch."""

from __future__ import annotations

import pytest

from casereview.core.errors import UnsupportedDocumentError
from casereview.extraction.docx_extractor import DocxExtractor, _heading_level, _table_markdown
from casereview.extraction.extractor_factory import (
    create_extractor,
    extract_text,
    supported_extensions,
)
from casereview.extraction.txt_extractor import TxtExtractor


class TestDocxExtractor:
    @pytest.mark.asyncio
    async def test_paragraphs_heading_and_table(self, docx_bytes):
        text = await DocxExtractor().extract(docx_bytes)
        assert text.startswith("# Decision")
        assert "The Arbitration Court of Moscow considered case A40-1/2025." in text
        assert "| Party | Role |" in text
        assert "| --- | --- |" in text
        assert "| LLC Alpha | Claimant |" in text

    @pytest.mark.asyncio
    async def test_single_row_table_skipped(self, docx_factory):
        data = docx_factory(["Body"], table=[["Only", "Row"]])
        assert await DocxExtractor().extract(data) == "Body"

    @pytest.mark.asyncio
    async def test_invalid_bytes(self):
        with pytest.raises(UnsupportedDocumentError, match="not a valid DOCX"):
            await DocxExtractor().extract(b"plain text, not a zip")

    def test_heading_levels(self):
        assert _heading_level("Heading 2") == 2
        assert _heading_level("Title") == 1
        assert _heading_level("Heading") == 1
        assert _heading_level("Heading 9") == 6
        assert _heading_level("Normal") == 0

    def test_table_markdown_pads(self):
        md = _table_markdown([["a", "b"], ["c"]])
        assert md.splitlines()[-1] == "| c |  |"


class TestTxtExtractor:
    @pytest.mark.asyncio
    async def test_strips_bom_and_whitespace(self):
        text = await TxtExtractor().extract("\ufeff  Decision text \n".encode())
        assert text == "Decision text"

    @pytest.mark.asyncio
    async def test_invalid_utf8_replaced(self):
        text = await TxtExtractor().extract(b"ok \xff")
        assert text.startswith("ok")


class TestFactory:
    def test_supported(self):
        assert supported_extensions() == [".docx", ".markdown", ".md", ".txt"]

    @pytest.mark.parametrize("ext,cls", [
        (".docx", DocxExtractor), ("DOCX", DocxExtractor), ("md", TxtExtractor),
    ])
    def test_create(self, ext, cls):
        assert isinstance(create_extractor(ext), cls)

    def test_unsupported(self):
        with pytest.raises(UnsupportedDocumentError, match=".pdf"):
            create_extractor(".pdf")

    @pytest.mark.asyncio
    async def test_extract_text_dispatches(self, docx_bytes):
        assert "LLC Alpha" in await extract_text("a.docx", docx_bytes)
        assert await extract_text("b.txt", b"hello") == "hello"

    @pytest.mark.asyncio
    async def test_error_names_file(self):
        with pytest.raises(UnsupportedDocumentError) as exc_info:
            await extract_text("broken.docx", b"nope")
        assert exc_info.value.name == "broken.docx"
        assert "broken.docx" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_empty_document(self):
        with pytest.raises(UnsupportedDocumentError, match="no text"):
            await extract_text("empty.txt", b"   \n")

    @pytest.mark.asyncio
    async def test_unknown_extension(self):
        with pytest.raises(UnsupportedDocumentError):
            await extract_text("scan.pdf", b"%PDF")
