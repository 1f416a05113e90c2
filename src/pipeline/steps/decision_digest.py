# src/pipeline/steps/decision_digest.py - v1
"""Step 0: condense the full text of one decision into a factual digest."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from casereview.pipeline.plugin_kit.base_step import BaseStep, strip_code_fences
from casereview.pipeline.plugin_kit.models import StepOutput

if TYPE_CHECKING:
    from casereview.pipeline.runner import StepRunner


class DecisionDigestStep(BaseStep):
    """Document text -> decision digest (markdown)."""

    step_index = 0

    async def execute(self, inputs: dict[str, Any], runner: StepRunner) -> StepOutput:
        name = inputs["document_name"]
        response = await runner.complete(
            self.definition,
            {"document_name": name, "document_text": inputs["document_text"]},
            document=name,
        )
        return StepOutput(
            data={"decision_digest": strip_code_fences(response.content)},
            metadata=self.metadata(response),
        )
