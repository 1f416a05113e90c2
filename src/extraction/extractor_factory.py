# src/extraction/extractor_factory.py - v3
"""Factory: instantiate extractor from file extension."""

from __future__ import annotations

import logging
from pathlib import PurePath

from casereview.core.errors import UnsupportedDocumentError
from casereview.extraction.base_extractor import BaseExtractor
from casereview.extraction.docx_extractor import DocxExtractor
from casereview.extraction.txt_extractor import TxtExtractor

logger = logging.getLogger(__name__)

_EXTRACTOR_REGISTRY: dict[str, type[BaseExtractor]] = {
    ext.lower(): cls
    for cls in (DocxExtractor, TxtExtractor)
    for ext in cls().supported_extensions
}


def create_extractor(extension: str) -> BaseExtractor:
    """Create an extractor for the given file extension.

    Args:
        extension: File extension with or without the dot (".docx", "md").

    Raises:
        UnsupportedDocumentError: If no extractor is registered.
    """
    ext = extension.lower()
    if not ext.startswith("."):
        ext = f".{ext}"

    cls = _EXTRACTOR_REGISTRY.get(ext)
    if cls is None:
        raise UnsupportedDocumentError(
            ext or "<none>",
            f"no extractor for format. Supported: {', '.join(supported_extensions())}",
        )
    return cls()


def supported_extensions() -> list[str]:
    """Return list of supported file extensions."""
    return sorted(_EXTRACTOR_REGISTRY)


async def extract_text(file_name: str, data: bytes) -> str:
    """Extract the text of one document, chosen by its file extension.

    Raises:
        UnsupportedDocumentError: If the format is unknown, the bytes cannot
            be parsed, or the document holds no text.
    """
    extractor = create_extractor(PurePath(file_name).suffix)
    try:
        text = await extractor.extract(data)
    except UnsupportedDocumentError as e:
        raise UnsupportedDocumentError(file_name, e.reason) from e.__cause__
    if not text.strip():
        raise UnsupportedDocumentError(file_name, "document contains no text")
    logger.debug("Extracted %d chars from %s", len(text), file_name)
    return text
