# src/pipeline/plugin_kit/models.py - v2
"""Step plugin models: StepMetadata, StepOutput."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class StepMetadata(BaseModel):
    """Metadata about a step execution, attached to every StepOutput."""

    step: int
    step_name: str
    execution_time_ms: int = 0
    llm_calls: int = 0
    tokens_used: int = 0
    model: str | None = None


class StepOutput(BaseModel):
    """Standard return type for all BaseStep.execute() calls.

    ``data`` keys are merged into the inputs of the next step.
    """

    data: dict[str, Any]
    metadata: StepMetadata
    warnings: list[str] = Field(default_factory=list)
