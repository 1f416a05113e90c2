# src/pipeline/steps/registry.py - v1
"""Default step set, ordered by step index."""

from __future__ import annotations

from casereview.pipeline.plugin_kit.base_step import BaseStep
from casereview.pipeline.steps.case_card import CaseCardStep
from casereview.pipeline.steps.case_cards_merge import CaseCardsMergeStep
from casereview.pipeline.steps.decision_digest import DecisionDigestStep
from casereview.pipeline.steps.review_skeleton import ReviewSkeletonStep
from casereview.pipeline.steps.review_writing import ReviewWritingStep

DEFAULT_STEP_CLASSES: tuple[type[BaseStep], ...] = (
    DecisionDigestStep,
    CaseCardStep,
    CaseCardsMergeStep,
    ReviewSkeletonStep,
    ReviewWritingStep,
)


def default_steps() -> list[BaseStep]:
    """Instantiate the built-in steps."""
    return sorted((cls() for cls in DEFAULT_STEP_CLASSES), key=lambda s: s.index)
