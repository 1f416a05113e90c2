# src/config/steps.py - v1
"""Declarative pipeline step table.

Step indices are stable identifiers used in cost statistics and model
routing. Step 2 is a pure merge step and never calls a model.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from casereview.config.settings import Settings


@dataclass(frozen=True)
class StepDefinition:
    """Static description of one pipeline step."""

    index: int
    name: str
    scope: Literal["document", "batch"]
    prompt_file: str | None
    default_model: str | None

    @property
    def uses_llm(self) -> bool:
        return self.default_model is not None


PIPELINE_STEPS: tuple[StepDefinition, ...] = (
    StepDefinition(
        index=0,
        name="decision_digest",
        scope="document",
        prompt_file="step0_decision_digest.md",
        default_model="x-ai/grok-4.1-fast",
    ),
    StepDefinition(
        index=1,
        name="case_card",
        scope="document",
        prompt_file="step1_case_card.md",
        default_model="google/gemini-2.5-flash-lite-preview-09-2025",
    ),
    StepDefinition(
        index=2,
        name="case_cards_merge",
        scope="batch",
        prompt_file=None,
        default_model=None,
    ),
    StepDefinition(
        index=3,
        name="review_skeleton",
        scope="batch",
        prompt_file="step3_review_skeleton.md",
        default_model="deepseek/deepseek-v3.2",
    ),
    StepDefinition(
        index=4,
        name="review_writing",
        scope="batch",
        prompt_file="step4_review_writing.md",
        default_model="google/gemini-2.5-flash-preview-09-2025",
    ),
)


def get_step(index: int) -> StepDefinition:
    """Look up a step definition by index."""
    for step in PIPELINE_STEPS:
        if step.index == index:
            return step
    raise KeyError(f"Unknown pipeline step: {index}")


def resolve_step_model(step: StepDefinition, settings: Settings) -> str:
    """Resolve the model for a step: per-step override, then step default.

    Raises:
        ValueError: If the step does not call a model.
    """
    if not step.uses_llm:
        raise ValueError(f"Step {step.index} ({step.name}) does not call a model")
    override = settings.step_model_override(step.index)
    return override or step.default_model  # type: ignore[return-value]


def configured_models(settings: Settings) -> dict[int, str]:
    """Map every LLM step index to its resolved model id."""
    return {
        step.index: resolve_step_model(step, settings)
        for step in PIPELINE_STEPS
        if step.uses_llm
    }
