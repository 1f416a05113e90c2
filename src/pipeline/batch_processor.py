# src/pipeline/batch_processor.py - v1
"""Document batch processor: the pipeline orchestrator.

Documents run concurrently, bounded by a semaphore. Within a document the
document-scoped steps run strictly in order, each step's output feeding the
next. Then the batch-scoped steps synthesize the review from the documents
that reached DONE.

Failure policy:
  - document-scoped fault: that document is FAILED, siblings continue.
  - systemic fault (``ReviewError.systemic``): every unfinished document
    is FAILED with the same message and nothing new is scheduled.
  - wall-clock budget exceeded: in-flight calls are cancelled, every
    unfinished document is FAILED with a timeout error.
  - batch error is set on systemic fault, timeout, zero successful
    documents, or a failing synthesis step.

process_batch() always returns a PipelineResult with whatever cost
statistics accrued, it never raises for pipeline faults.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections.abc import Sequence
from typing import Any

from casereview.config.settings import Settings
from casereview.core.errors import BatchTimeoutError, ReviewError, is_systemic
from casereview.core.models import Document, PipelineResult
from casereview.extraction.extractor_factory import extract_text
from casereview.llm.base_client import BaseLLMClient
from casereview.logging.context import set_batch_context, set_document_context
from casereview.pipeline.plugin_kit.base_step import BaseStep
from casereview.pipeline.runner import StepRunner
from casereview.pipeline.state import BatchState, DocumentRun
from casereview.pipeline.steps.registry import default_steps
from casereview.prompts.loader import PromptLoader, PromptMarkers
from casereview.tracking.call_logger import CallLogger
from casereview.tracking.cost_ledger import StepCostAccumulator

logger = logging.getLogger(__name__)

ALL_FAILED_MESSAGE = "All documents failed to process"


class DocumentBatchProcessor:
    """Drive a batch of documents through the review pipeline.

    Args:
        llm: Client issuing model calls, shared by all documents.
        settings: Batch limits, model routing, prompt location.
        prompts: Prompt loader; built from settings when omitted.
        steps: Step set; the built-in five steps when omitted.
        call_logger: Optional sink for per-call records.
    """

    def __init__(
        self,
        llm: BaseLLMClient,
        settings: Settings,
        prompts: PromptLoader | None = None,
        steps: Sequence[BaseStep] | None = None,
        call_logger: CallLogger | None = None,
    ) -> None:
        self._llm = llm
        self._settings = settings
        self._prompts = prompts or PromptLoader(
            settings.prompts_dir,
            PromptMarkers(
                system=settings.prompt_system_marker,
                user=settings.prompt_user_marker,
                terminator=settings.prompt_section_terminator or None,
            ),
        )
        ordered = sorted(steps if steps is not None else default_steps(), key=lambda s: s.index)
        self._document_steps = [s for s in ordered if s.scope == "document"]
        self._batch_steps = [s for s in ordered if s.scope == "batch"]
        self._call_logger = call_logger

    @property
    def call_logger(self) -> CallLogger | None:
        return self._call_logger

    async def aclose(self) -> None:
        """Close the model client."""
        await self._llm.aclose()

    async def process_batch(
        self,
        documents: Sequence[Document],
        context: str | None = None,
    ) -> PipelineResult:
        """Run every document through the pipeline and synthesize the review.

        Args:
            documents: Input documents; ones whose ``error`` is already set
                (unreadable uploads) are reported but never processed.
            context: Optional reader context passed to the synthesis steps.

        Returns:
            PipelineResult with per-document status, the review artifacts
            and the cost statistics accrued so far.
        """
        batch_id = uuid.uuid4().hex[:12]
        set_batch_context(batch_id)
        state = BatchState.create(batch_id, list(documents))
        accumulator = StepCostAccumulator()
        runner = StepRunner(
            self._llm, self._prompts, self._settings, accumulator, self._call_logger,
        )

        budget = self._settings.batch_timeout_s
        start_ms = time.monotonic_ns() // 1_000_000
        logger.info("Batch started: %d document(s), budget %.0fs", len(state.runs), budget)

        try:
            await asyncio.wait_for(self._run(state, runner, context), timeout=budget)
        except asyncio.TimeoutError:
            error = BatchTimeoutError(budget)
            failed = state.fail_unfinished(str(error))
            state.set_error(str(error))
            logger.error("%s; %d unfinished document(s) failed", error, failed)
        finally:
            set_batch_context(None)

        duration_ms = (time.monotonic_ns() // 1_000_000) - start_ms
        stats = accumulator.statistics()
        counts = state.counts()
        logger.info(
            "Batch %s finished: done=%d, failed=%d, cost=$%.6f, %dms",
            batch_id, counts["done"], counts["failed"], stats.total.cost.total_cost, duration_ms,
        )

        return PipelineResult(
            batch_id=batch_id,
            documents=state.documents,
            review=state.review,
            case_cards=state.case_cards,
            review_skeleton=state.review_skeleton,
            cost_statistics=stats,
            error=state.error,
            duration_ms=duration_ms,
        )

    async def _run(self, state: BatchState, runner: StepRunner, context: str | None) -> None:
        semaphore = asyncio.Semaphore(self._settings.max_concurrent_documents)
        await asyncio.gather(*(
            self._process_document(run, state, runner, semaphore)
            for run in state.runs
            if not run.is_terminal
        ))

        if state.halted:
            return
        if not state.done_runs():
            logger.error(ALL_FAILED_MESSAGE)
            state.set_error(ALL_FAILED_MESSAGE)
            return
        await self._synthesize(state, runner, context)

    async def _process_document(
        self,
        run: DocumentRun,
        state: BatchState,
        runner: StepRunner,
        semaphore: asyncio.Semaphore,
    ) -> None:
        async with semaphore:
            if state.halted:
                return
            name = run.document.file_name
            set_document_context(name)
            inputs: dict[str, Any] = {"document_name": name}
            try:
                run.advance(self._document_steps[0].index if self._document_steps else 0)
                inputs["document_text"] = await extract_text(name, run.document.buffer)
                for step in self._document_steps:
                    if run.is_terminal:
                        # failed by a systemic halt while this document waited
                        return
                    run.advance(step.index)
                    output = await runner.run(step, inputs)
                    inputs.update(output.data)
                if run.is_terminal:
                    return
                run.outputs = {k: v for k, v in inputs.items() if k != "document_text"}
                run.complete()
                logger.info("Document %s done", name)
            except Exception as exc:
                self._handle_document_failure(run, state, exc)
            finally:
                set_document_context(None)

    def _handle_document_failure(self, run: DocumentRun, state: BatchState, exc: Exception) -> None:
        message = str(exc)
        if is_systemic(exc):
            logger.error("Systemic failure on %s: %s", run.document.file_name, message)
            run.fail(message)
            state.halt(message)
            return
        if not run.fail(message):
            return
        if isinstance(exc, ReviewError):
            logger.warning(
                "Document %s failed at step %s: %s", run.document.file_name, run.failed_step, message,
            )
        else:
            logger.exception("Document %s failed at step %s", run.document.file_name, run.failed_step)

    async def _synthesize(self, state: BatchState, runner: StepRunner, context: str | None) -> None:
        inputs: dict[str, Any] = {
            "context": context or "",
            "case_cards": [run.outputs["case_card"] for run in state.done_runs()],
        }
        for step in self._batch_steps:
            try:
                output = await runner.run(step, inputs)
            except Exception as exc:
                message = f"Review synthesis failed at step {step.index} ({step.name}): {exc}"
                logger.error(message)
                state.set_error(message)
                return
            inputs.update(output.data)
            data = output.data
            state.case_cards = data.get("case_cards", state.case_cards)
            state.review_skeleton = data.get("review_skeleton", state.review_skeleton)
            state.review = data.get("review", state.review)
