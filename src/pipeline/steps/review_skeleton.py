# src/pipeline/steps/review_skeleton.py - v1
"""Step 3: plan the court practice review from the merged case cards."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from casereview.core.models import CaseCards, ReviewSkeleton, SkeletonSection
from casereview.pipeline.plugin_kit.base_step import BaseStep, parse_json_response
from casereview.pipeline.plugin_kit.models import StepOutput
from casereview.pipeline.steps.case_cards_merge import format_case_cards

if TYPE_CHECKING:
    from casereview.pipeline.runner import StepRunner

logger = logging.getLogger(__name__)

NO_CONTEXT = "(not provided)"

_OUTCOME_HEADINGS = {
    "satisfied": "Claims satisfied",
    "partially_satisfied": "Claims partially satisfied",
    "dismissed": "Claims dismissed",
    "other": "Other outcomes",
}


class ReviewSkeletonStep(BaseStep):
    """CaseCards + reader context -> ReviewSkeleton."""

    step_index = 3

    async def execute(self, inputs: dict[str, Any], runner: StepRunner) -> StepOutput:
        case_cards: CaseCards = inputs["case_cards"]
        response = await runner.complete(
            self.definition,
            {
                "context": inputs.get("context") or NO_CONTEXT,
                "case_cards": format_case_cards(case_cards),
            },
        )

        warnings: list[str] = []
        try:
            parsed = parse_json_response(response.content)
            skeleton = ReviewSkeleton(
                title=str(parsed.get("title") or ""),
                introduction=str(parsed.get("introduction") or ""),
                sections=[_to_section(s) for s in parsed.get("sections") or [] if isinstance(s, dict)],
                conclusions=[str(c) for c in parsed.get("conclusions") or [] if str(c).strip()],
            )
        except ValueError as exc:
            logger.warning("Review skeleton JSON parse failed: %s", exc)
            warnings.append(f"Unparseable review skeleton, grouped by outcome instead: {exc}")
            skeleton = fallback_skeleton(case_cards)

        unknown = _drop_unknown_references(skeleton, case_cards)
        if unknown:
            logger.warning("Review skeleton cites unknown cases: %s", ", ".join(unknown))
            warnings.append(f"Dropped unknown case references: {', '.join(unknown)}")

        return StepOutput(
            data={"review_skeleton": skeleton},
            metadata=self.metadata(response),
            warnings=warnings,
        )


def fallback_skeleton(case_cards: CaseCards) -> ReviewSkeleton:
    """One section per decision outcome."""
    sections = [
        SkeletonSection(heading=_OUTCOME_HEADINGS.get(outcome, outcome), case_numbers=refs)
        for outcome, refs in case_cards.by_outcome.items()
    ]
    return ReviewSkeleton(
        title="Court practice review",
        sections=sections,
        degraded=True,
    )


def _to_section(raw: dict[str, Any]) -> SkeletonSection:
    refs = raw.get("case_numbers") or []
    if isinstance(refs, str):
        refs = [refs]
    return SkeletonSection(
        heading=str(raw.get("heading") or "Untitled section"),
        thesis=str(raw.get("thesis") or ""),
        case_numbers=[str(r).strip() for r in refs if str(r).strip()],
    )


def _drop_unknown_references(skeleton: ReviewSkeleton, case_cards: CaseCards) -> list[str]:
    known = {card.reference for card in case_cards.cards}
    known.update(card.source_document for card in case_cards.cards)
    unknown: list[str] = []
    for section in skeleton.sections:
        kept = []
        for ref in section.case_numbers:
            if ref in known:
                kept.append(ref)
            elif ref not in unknown:
                unknown.append(ref)
        section.case_numbers = kept
    return unknown
