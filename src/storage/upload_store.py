# src/storage/upload_store.py - v1
"""Local key -> bytes store for uploaded decisions.

Files are saved under a collision-resistant key made of a millisecond
timestamp and the original file name (``1718000000000-decision.docx``).
Reads run off the event loop and fan out concurrently.
"""

from __future__ import annotations

import asyncio
import logging
import re
import threading
import time
from pathlib import Path, PurePath

from pydantic import BaseModel

from casereview.core.errors import ResourceReadError, UploadValidationError
from casereview.core.models import Document

logger = logging.getLogger(__name__)

_KEY_PREFIX = re.compile(r"^\d+-")


class SavedUpload(BaseModel):
    """Result of saving one file."""

    saved_name: str
    file_name: str
    size: int


def original_name(saved_name: str) -> str:
    """Strip the timestamp prefix from a saved key."""
    return _KEY_PREFIX.sub("", saved_name, count=1)


class LocalUploadStore:
    """Filesystem-backed upload store.

    Args:
        root: Directory holding saved files; created on first save.
        allowed_extensions: Lower-case extensions accepted by save_many.
    """

    def __init__(self, root: str | Path, allowed_extensions: list[str] | None = None) -> None:
        self._root = Path(root)
        self._allowed = [e.lower() for e in (allowed_extensions or [".docx"])]
        self._lock = threading.Lock()
        self._last_ms = 0

    @property
    def root(self) -> Path:
        return self._root

    @property
    def allowed_extensions(self) -> list[str]:
        return list(self._allowed)

    def is_allowed(self, file_name: str) -> bool:
        return PurePath(file_name).suffix.lower() in self._allowed

    def save(self, file_name: str, data: bytes) -> SavedUpload:
        """Persist one file and return its saved key."""
        safe_name = PurePath(file_name).name
        if not safe_name:
            raise UploadValidationError([file_name], self._allowed)

        self._root.mkdir(parents=True, exist_ok=True)
        with self._lock:
            # Monotonic key even for saves within the same millisecond.
            stamp = max(int(time.time() * 1000), self._last_ms + 1)
            self._last_ms = stamp
        saved_name = f"{stamp}-{safe_name}"
        (self._root / saved_name).write_bytes(data)
        logger.info("Saved upload %s (%d bytes)", saved_name, len(data))
        return SavedUpload(saved_name=saved_name, file_name=safe_name, size=len(data))

    def save_many(self, files: list[tuple[str, bytes]]) -> list[SavedUpload]:
        """Validate and save a set of files.

        Raises:
            UploadValidationError: If any file has a non-conforming
                extension. Nothing is saved in that case.
        """
        rejected = [name for name, _ in files if not self.is_allowed(name)]
        if rejected:
            logger.warning("Upload rejected: %s", ", ".join(rejected))
            raise UploadValidationError(rejected, self._allowed)
        return [self.save(name, data) for name, data in files]

    def read_sync(self, saved_name: str) -> bytes:
        path = self._root / PurePath(saved_name).name
        try:
            return path.read_bytes()
        except OSError as e:
            raise ResourceReadError(saved_name, e.strerror or str(e)) from e

    async def read(self, saved_name: str) -> bytes:
        """Read saved bytes off the event loop.

        Raises:
            ResourceReadError: If the file is missing or unreadable.
        """
        return await asyncio.to_thread(self.read_sync, saved_name)


async def _read_one(store: LocalUploadStore, saved_name: str) -> Document:
    name = original_name(saved_name)
    try:
        data = await store.read(saved_name)
    except ResourceReadError as e:
        logger.warning("Cannot read %s: %s", saved_name, e)
        return Document(file_name=name, error=str(e))
    return Document(file_name=name, buffer=data)


async def read_documents(store: LocalUploadStore, saved_names: list[str]) -> list[Document]:
    """Read every saved file concurrently, one Document per name, in order.

    A failed read yields a Document with ``error`` already set.
    """
    return list(await asyncio.gather(*(_read_one(store, n) for n in saved_names)))
