# src/extraction/docx_extractor.py - v3
"""Word (.docx) decisions to plain text with python-docx.

Court decisions arrive as Word documents. Paragraph text is kept in document
order, heading styles become markdown ``#`` prefixes, and tables are
appended as markdown tables after the body text.
"""

from __future__ import annotations

import asyncio
import io
import logging
import zipfile

import docx
from docx.opc.exceptions import PackageNotFoundError
from docx.text.paragraph import Paragraph

from casereview.core.errors import UnsupportedDocumentError
from casereview.extraction.base_extractor import BaseExtractor

logger = logging.getLogger(__name__)


class DocxExtractor(BaseExtractor):
    @property
    def supported_extensions(self) -> list[str]:
        return [".docx"]

    async def extract(self, data: bytes) -> str:
        # python-docx is synchronous and parses the whole package
        return await asyncio.to_thread(self.extract_sync, data)

    def extract_sync(self, data: bytes) -> str:
        try:
            document = docx.Document(io.BytesIO(data))
        except (PackageNotFoundError, zipfile.BadZipFile, KeyError, ValueError) as e:
            raise UnsupportedDocumentError("<docx>", f"not a valid DOCX package ({e})") from e

        blocks = [line for line in map(_paragraph_line, document.paragraphs) if line]
        for table in document.tables:
            rows = [[cell.text.strip() for cell in row.cells] for row in table.rows]
            # a lone row is a layout artifact (signature blocks, letterheads)
            if len(rows) > 1:
                blocks.append(_table_markdown(rows))

        logger.debug("DOCX parsed: %d blocks from %d paragraphs and %d tables",
                     len(blocks), len(document.paragraphs), len(document.tables))
        return "\n\n".join(blocks)


def _paragraph_line(paragraph: Paragraph) -> str:
    text = paragraph.text.strip()
    if not text:
        return ""
    style = paragraph.style.name if paragraph.style is not None else ""
    level = _heading_level(style or "")
    return f"{'#' * level} {text}" if level else text


def _table_markdown(rows: list[list[str]]) -> str:
    """First row is the header; short rows are padded with empty cells."""
    width = max(map(len, rows))
    padded = [row + [""] * (width - len(row)) for row in rows]

    def fmt(cells: list[str]) -> str:
        return "| " + " | ".join(cells) + " |"

    return "\n".join([fmt(padded[0]), fmt(["---"] * width), *map(fmt, padded[1:])])


def _heading_level(style_name: str) -> int:
    """Heading level from a style name such as 'Heading 2'; 0 for body text."""
    name = style_name.lower()
    if name == "title":
        return 1
    if not name.startswith("heading"):
        return 0
    try:
        return max(1, min(6, int(name.replace("heading", "").strip())))
    except ValueError:
        return 1
