# src/api/facade.py - v2
"""Public API facade: bootstrap and end-to-end review helpers.

Usage:
    from casereview.api.facade import review_files
    result = await review_files([Path("a.docx"), Path("b.docx")], context="...")
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from casereview.config.settings import Settings, load_settings
from casereview.core.errors import ResourceReadError
from casereview.core.models import PipelineResult
from casereview.llm.call_client import LLMCallClient
from casereview.llm.transport import OpenRouterTransport
from casereview.pipeline.batch_processor import DocumentBatchProcessor
from casereview.storage.upload_store import LocalUploadStore, SavedUpload, read_documents
from casereview.tracking.call_logger import CallLogger
from casereview.tracking.pricing import PricingResolver

logger = logging.getLogger(__name__)


def build_processor(
    settings: Settings | None = None,
    call_logger: CallLogger | None = None,
) -> DocumentBatchProcessor:
    """Wire transport, call client, pricing and processor from settings.

    Nothing touches the network or the credential here; the transport is
    initialized by the first model call.
    """
    settings = settings or load_settings()
    transport = OpenRouterTransport(settings)
    pricing = PricingResolver(default_model=settings.pricing_default_model)
    client = LLMCallClient(transport, pricing, temperature=settings.llm_temperature)
    return DocumentBatchProcessor(client, settings, call_logger=call_logger)


def build_upload_store(settings: Settings) -> LocalUploadStore:
    return LocalUploadStore(
        settings.resolved_uploads_dir, settings.upload_allowed_extensions_list,
    )


async def review_uploads(
    saved_names: Sequence[str],
    context: str | None = None,
    settings: Settings | None = None,
    store: LocalUploadStore | None = None,
    processor: DocumentBatchProcessor | None = None,
) -> PipelineResult:
    """Review already-uploaded files by their saved keys.

    Args:
        saved_names: Keys returned by the upload store.
        context: Optional reader context for the review.
        settings: Settings; loaded from .env if None.
        store: Upload store; built from settings if None.
        processor: Batch processor; built (and closed afterwards) if None.
    """
    settings = settings or load_settings()
    store = store or build_upload_store(settings)
    documents = await read_documents(store, list(saved_names))

    if processor is not None:
        return await processor.process_batch(documents, context)

    owned = build_processor(settings)
    try:
        return await owned.process_batch(documents, context)
    finally:
        await owned.aclose()


def upload_files(paths: Sequence[Path], store: LocalUploadStore) -> list[SavedUpload]:
    """Read local files and save them into the upload store.

    Raises:
        UploadValidationError: If any file has a non-conforming extension.
        ResourceReadError: If a local file cannot be read.
    """
    files: list[tuple[str, bytes]] = []
    for path in paths:
        try:
            files.append((path.name, path.read_bytes()))
        except OSError as e:
            raise ResourceReadError(str(path), e.strerror or str(e)) from e
    return store.save_many(files)


async def review_files(
    paths: Sequence[Path],
    context: str | None = None,
    settings: Settings | None = None,
    processor: DocumentBatchProcessor | None = None,
) -> PipelineResult:
    """Upload local files and review them in one batch.

    Raises:
        UploadValidationError: If any file has a non-conforming extension.
        ResourceReadError: If a local file cannot be read.
    """
    settings = settings or load_settings()
    store = build_upload_store(settings)
    saved = upload_files(paths, store)
    logger.info("Uploaded %d file(s) to %s", len(saved), store.root)
    return await review_uploads(
        [s.saved_name for s in saved],
        context=context,
        settings=settings,
        store=store,
        processor=processor,
    )
