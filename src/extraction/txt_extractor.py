# src/extraction/txt_extractor.py - v3
"""Plain text and markdown extractor: decode and pass through."""

from __future__ import annotations

from casereview.extraction.base_extractor import BaseExtractor

_BOM = "\ufeff"


class TxtExtractor(BaseExtractor):
    """Extractor for plain text files (.txt, .md, .markdown)."""

    @property
    def supported_extensions(self) -> list[str]:
        return [".txt", ".md", ".markdown"]

    async def extract(self, data: bytes) -> str:
        text = data.decode("utf-8", errors="replace")
        return text.removeprefix(_BOM).strip()
