# src/pipeline/plugin_kit/base_step.py - v1
"""Standard step interface for the review pipeline."""

from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from casereview.config.steps import StepDefinition, get_step
from casereview.pipeline.plugin_kit.models import StepMetadata, StepOutput

if TYPE_CHECKING:
    from casereview.llm.models import APIResponse
    from casereview.pipeline.runner import StepRunner

_FENCE = re.compile(r"^\s*```[\w-]*\s*$")


class BaseStep(ABC):
    """One stage of the pipeline, bound to a StepDefinition.

    Subclasses set ``step_index`` and implement execute(). Steps never
    catch model-call errors; the runner and batch processor decide what a
    failure means.
    """

    step_index: int

    def __init__(self, definition: StepDefinition | None = None) -> None:
        self._definition = definition or get_step(self.step_index)

    @property
    def definition(self) -> StepDefinition:
        return self._definition

    @property
    def index(self) -> int:
        return self._definition.index

    @property
    def name(self) -> str:
        return self._definition.name

    @property
    def scope(self) -> str:
        return self._definition.scope

    @property
    def prompt_file(self) -> str | None:
        return self._definition.prompt_file

    @abstractmethod
    async def execute(self, inputs: dict[str, Any], runner: StepRunner) -> StepOutput:
        """Execute the step.

        Args:
            inputs: Accumulated outputs of earlier steps plus batch inputs.
            runner: Issues model calls on behalf of the step and tracks cost.

        Returns:
            StepOutput whose data feeds the next step.
        """

    def metadata(self, *responses: APIResponse) -> StepMetadata:
        """Execution metadata for the model calls this step made."""
        return StepMetadata(
            step=self.index,
            step_name=self.name,
            llm_calls=len(responses),
            tokens_used=sum(r.usage.total_tokens for r in responses),
            model=responses[-1].model if responses else None,
        )


def strip_code_fences(content: str) -> str:
    """Drop markdown code fence lines around a model response."""
    text = content.strip()
    if text.startswith("```"):
        lines = [ln for ln in text.split("\n") if not _FENCE.match(ln)]
        text = "\n".join(lines)
    return text.strip()


def parse_json_response(content: str) -> dict[str, Any]:
    """Parse a JSON object from a model response.

    Raises:
        json.JSONDecodeError: If the response is not JSON.
        ValueError: If the JSON is not an object.
    """
    text = strip_code_fences(content)
    if not text.startswith("{"):
        start, end = text.find("{"), text.rfind("}")
        if start != -1 and end > start:
            text = text[start:end + 1]
    parsed = json.loads(text)
    if not isinstance(parsed, dict):
        raise ValueError(f"Expected a JSON object, got {type(parsed).__name__}")
    return parsed
