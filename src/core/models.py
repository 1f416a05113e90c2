# src/core/models.py - v2
"""Core domain models: Document, case cards, review skeleton, PipelineResult."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from casereview.tracking.models import CostStatistics

Outcome = Literal["satisfied", "partially_satisfied", "dismissed", "other"]


class Document(BaseModel):
    """One input document of a batch.

    ``error`` is set at most once, when reading or any pipeline step fails
    for this document.
    """

    model_config = ConfigDict(frozen=False)

    file_name: str
    buffer: bytes = Field(default=b"", repr=False, exclude=True)
    error: str | None = None

    @property
    def has_error(self) -> bool:
        return self.error is not None

    def fail(self, message: str) -> bool:
        """Record the document's error. Returns False if one was already set."""
        if self.error is not None:
            return False
        self.error = message
        return True


class CaseCard(BaseModel):
    """Structured summary of one court decision."""

    source_document: str
    case_number: str = ""
    court: str = ""
    decision_date: str = ""
    parties: list[str] = Field(default_factory=list)
    dispute_subject: str = ""
    claims: str = ""
    outcome: Outcome = "other"
    legal_positions: list[str] = Field(default_factory=list)
    cited_norms: list[str] = Field(default_factory=list)
    summary: str = ""
    degraded: bool = False

    @property
    def reference(self) -> str:
        """Short citation: case number, else source document name."""
        return self.case_number or self.source_document


class CaseCards(BaseModel):
    """All case cards of the successfully processed documents."""

    cards: list[CaseCard] = Field(default_factory=list)
    by_outcome: dict[str, list[str]] = Field(default_factory=dict)
    courts: list[str] = Field(default_factory=list)
    cited_norms: list[str] = Field(default_factory=list)


class SkeletonSection(BaseModel):
    """One planned section of the review."""

    heading: str
    thesis: str = ""
    case_numbers: list[str] = Field(default_factory=list)


class ReviewSkeleton(BaseModel):
    """Plan of the court practice review."""

    title: str = ""
    introduction: str = ""
    sections: list[SkeletonSection] = Field(default_factory=list)
    conclusions: list[str] = Field(default_factory=list)
    degraded: bool = False


class PipelineResult(BaseModel):
    """Outcome of one batch.

    ``error`` is set only for batch-fatal conditions; per-document failures
    live on the documents.
    """

    batch_id: str = ""
    documents: list[Document] = Field(default_factory=list)
    review: str = ""
    case_cards: CaseCards | None = None
    review_skeleton: ReviewSkeleton | None = None
    cost_statistics: CostStatistics = Field(default_factory=CostStatistics)
    error: str | None = None
    duration_ms: int = 0

    @property
    def succeeded(self) -> list[Document]:
        return [d for d in self.documents if d.error is None]

    @property
    def failed(self) -> list[Document]:
        return [d for d in self.documents if d.error is not None]
