# src/api/models.py - v3
"""API-level response shape of one review batch.

Keys serialize in camelCase (``fileName``, ``hasError``, ``caseCards``,
``costStatistics``) when dumped with ``by_alias=True``. The cost report uses
the nested ``stepName`` / ``tokens`` / ``cost`` wire view from tracking.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from casereview.core.models import CaseCards, Document, PipelineResult, ReviewSkeleton
from casereview.tracking.models import CostStatisticsView


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DocumentStatusView(_CamelModel):
    """Per-document outcome as reported to the caller."""

    file_name: str
    has_error: bool
    error: str | None = None

    @classmethod
    def from_document(cls, document: Document) -> DocumentStatusView:
        return cls(
            file_name=document.file_name,
            has_error=document.error is not None,
            error=document.error,
        )


class BatchResponse(_CamelModel):
    """Return value of a review request."""

    success: bool
    batch_id: str = ""
    error: str | None = None
    documents: list[DocumentStatusView] = Field(default_factory=list)
    review: str = ""
    case_cards: CaseCards | None = None
    review_skeleton: ReviewSkeleton | None = None
    cost_statistics: CostStatisticsView = Field(default_factory=CostStatisticsView)

    @classmethod
    def from_result(cls, result: PipelineResult) -> BatchResponse:
        return cls(
            success=result.error is None,
            batch_id=result.batch_id,
            error=result.error,
            documents=[DocumentStatusView.from_document(d) for d in result.documents],
            review=result.review,
            case_cards=result.case_cards,
            review_skeleton=result.review_skeleton,
            cost_statistics=result.cost_statistics.to_wire(),
        )

    @classmethod
    def from_error(cls, error: str) -> BatchResponse:
        """Response for a request rejected before the batch started."""
        return cls(success=False, error=error)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)
