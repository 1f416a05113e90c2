# src/extraction/base_extractor.py - v2
"""Abstract extractor interface for decision file formats."""

from __future__ import annotations

from abc import ABC, abstractmethod


class BaseExtractor(ABC):
    """Turn the raw bytes of one uploaded file into plain text."""

    @property
    @abstractmethod
    def supported_extensions(self) -> list[str]:
        """File extensions this extractor handles (e.g., ['.docx'])."""

    @abstractmethod
    async def extract(self, data: bytes) -> str:
        """Extract the document text.

        Raises:
            UnsupportedDocumentError: If the bytes cannot be parsed.
        """
