# src/pipeline/steps/review_writing.py - v1
"""Step 4: write the final markdown review following the skeleton."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from casereview.core.models import CaseCards, ReviewSkeleton
from casereview.pipeline.plugin_kit.base_step import BaseStep, strip_code_fences
from casereview.pipeline.plugin_kit.models import StepOutput
from casereview.pipeline.steps.case_cards_merge import format_case_cards
from casereview.pipeline.steps.review_skeleton import NO_CONTEXT

if TYPE_CHECKING:
    from casereview.pipeline.runner import StepRunner


class ReviewWritingStep(BaseStep):
    """ReviewSkeleton + CaseCards -> review text."""

    step_index = 4

    async def execute(self, inputs: dict[str, Any], runner: StepRunner) -> StepOutput:
        skeleton: ReviewSkeleton = inputs["review_skeleton"]
        case_cards: CaseCards = inputs["case_cards"]
        response = await runner.complete(
            self.definition,
            {
                "context": inputs.get("context") or NO_CONTEXT,
                "review_skeleton": skeleton.model_dump_json(indent=2, exclude={"degraded"}),
                "case_cards": format_case_cards(case_cards),
            },
        )
        return StepOutput(
            data={"review": strip_code_fences(response.content)},
            metadata=self.metadata(response),
        )
