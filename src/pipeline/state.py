# src/pipeline/state.py - v2
"""Per-document and per-batch run state.

Document state machine::

    PENDING -> RUNNING(step i) -> RUNNING(step i+1) ... -> DONE
                      \\-> FAILED(step i)

FAILED and DONE are terminal. A document's error is written once, by the
transition into FAILED.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from casereview.core.models import CaseCards, Document, ReviewSkeleton

logger = logging.getLogger(__name__)


class DocumentStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    FAILED = "failed"
    DONE = "done"


class InvalidTransitionError(RuntimeError):
    """A document run was moved out of a terminal state."""


class DocumentRun(BaseModel):
    """Progress of one document through the document-scoped steps."""

    document: Document
    status: DocumentStatus = DocumentStatus.PENDING
    current_step: int | None = None
    failed_step: int | None = None
    outputs: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_terminal(self) -> bool:
        return self.status in (DocumentStatus.FAILED, DocumentStatus.DONE)

    def advance(self, step: int) -> None:
        """Enter RUNNING(step)."""
        if self.is_terminal:
            raise InvalidTransitionError(
                f"{self.document.file_name}: cannot start step {step} from {self.status.value}"
            )
        self.status = DocumentStatus.RUNNING
        self.current_step = step

    def complete(self) -> None:
        if self.status is not DocumentStatus.RUNNING:
            raise InvalidTransitionError(
                f"{self.document.file_name}: cannot finish from {self.status.value}"
            )
        self.status = DocumentStatus.DONE
        self.current_step = None

    def fail(self, message: str) -> bool:
        """Enter FAILED and record the error. No-op on a terminal run.

        Returns:
            True if the run transitioned, False if it was already terminal.
        """
        if self.is_terminal:
            return False
        self.status = DocumentStatus.FAILED
        self.failed_step = self.current_step
        self.document.fail(message)
        return True


class BatchState(BaseModel):
    """Everything one batch accumulates before it becomes a PipelineResult."""

    batch_id: str
    runs: list[DocumentRun] = Field(default_factory=list)
    halted: bool = False
    error: str | None = None
    case_cards: CaseCards | None = None
    review_skeleton: ReviewSkeleton | None = None
    review: str = ""

    @classmethod
    def create(cls, batch_id: str, documents: list[Document]) -> BatchState:
        """One run per document; documents that arrive with an error start FAILED."""
        runs: list[DocumentRun] = []
        for doc in documents:
            run = DocumentRun(document=doc)
            if doc.error is not None:
                run.status = DocumentStatus.FAILED
            runs.append(run)
        return cls(batch_id=batch_id, runs=runs)

    @property
    def documents(self) -> list[Document]:
        return [run.document for run in self.runs]

    def done_runs(self) -> list[DocumentRun]:
        return [r for r in self.runs if r.status is DocumentStatus.DONE]

    def set_error(self, message: str) -> None:
        """Record the batch-level error; the first one wins."""
        if self.error is None:
            self.error = message

    def fail_unfinished(self, message: str) -> int:
        """Fail every run that is not terminal. Returns how many changed."""
        return sum(1 for run in self.runs if run.fail(message))

    def halt(self, message: str) -> None:
        """Systemic short-circuit: stop scheduling and fail the rest."""
        if self.halted:
            return
        self.halted = True
        changed = self.fail_unfinished(message)
        self.set_error(message)
        logger.error("Batch halted, %d unfinished document(s) failed: %s", changed, message)

    def counts(self) -> dict[str, int]:
        result = {status.value: 0 for status in DocumentStatus}
        for run in self.runs:
            result[run.status.value] += 1
        return result
