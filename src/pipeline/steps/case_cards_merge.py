# src/pipeline/steps/case_cards_merge.py - v1
"""Step 2: merge the case cards of all finished documents. No model call."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from casereview.core.models import CaseCard, CaseCards
from casereview.pipeline.plugin_kit.base_step import BaseStep
from casereview.pipeline.plugin_kit.models import StepOutput

if TYPE_CHECKING:
    from casereview.pipeline.runner import StepRunner


class CaseCardsMergeStep(BaseStep):
    """list[CaseCard] -> CaseCards, in document order."""

    step_index = 2

    async def execute(self, inputs: dict[str, Any], runner: StepRunner) -> StepOutput:
        return StepOutput(
            data={"case_cards": merge_case_cards(inputs["case_cards"])},
            metadata=self.metadata(),
        )


def merge_case_cards(cards: list[CaseCard]) -> CaseCards:
    by_outcome: dict[str, list[str]] = {}
    courts: list[str] = []
    norms: list[str] = []
    for card in cards:
        by_outcome.setdefault(card.outcome, []).append(card.reference)
        if card.court and card.court not in courts:
            courts.append(card.court)
        for norm in card.cited_norms:
            if norm not in norms:
                norms.append(norm)
    return CaseCards(cards=list(cards), by_outcome=by_outcome, courts=courts, cited_norms=norms)


def format_case_cards(case_cards: CaseCards) -> str:
    """Serialize cards for a prompt, dropping bookkeeping fields."""
    payload = [
        card.model_dump(exclude={"degraded"}) for card in case_cards.cards
    ]
    return json.dumps(payload, ensure_ascii=False, indent=2)
