# src/pipeline/steps/case_card.py - v1
"""Step 1: turn a decision digest into a structured case card.

The model answers in JSON. An unparseable answer does not fail the
document: the card degrades to the digest text with a warning.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from casereview.core.models import CaseCard
from casereview.pipeline.plugin_kit.base_step import BaseStep, parse_json_response
from casereview.pipeline.plugin_kit.models import StepOutput

if TYPE_CHECKING:
    from casereview.pipeline.runner import StepRunner

logger = logging.getLogger(__name__)

_OUTCOMES = {"satisfied", "partially_satisfied", "dismissed", "other"}
_OUTCOME_ALIASES = {
    "granted": "satisfied",
    "partially_granted": "partially_satisfied",
    "partial": "partially_satisfied",
    "rejected": "dismissed",
    "denied": "dismissed",
}


class CaseCardStep(BaseStep):
    """Decision digest -> CaseCard."""

    step_index = 1

    async def execute(self, inputs: dict[str, Any], runner: StepRunner) -> StepOutput:
        name = inputs["document_name"]
        digest = inputs["decision_digest"]
        response = await runner.complete(
            self.definition,
            {"document_name": name, "decision_digest": digest},
            document=name,
        )

        warnings: list[str] = []
        try:
            card = to_case_card(parse_json_response(response.content), name)
        except ValueError as exc:
            # json.JSONDecodeError is a ValueError
            logger.warning("Case card JSON parse failed for %s: %s", name, exc)
            warnings.append(f"Unparseable case card, digest used instead: {exc}")
            card = CaseCard(source_document=name, summary=digest, degraded=True)

        return StepOutput(
            data={"case_card": card},
            metadata=self.metadata(response),
            warnings=warnings,
        )


def to_case_card(parsed: dict[str, Any], source_document: str) -> CaseCard:
    """Build a CaseCard from loosely typed model JSON."""
    return CaseCard(
        source_document=source_document,
        case_number=_as_text(parsed.get("case_number")),
        court=_as_text(parsed.get("court")),
        decision_date=_as_text(parsed.get("decision_date")),
        parties=_as_list(parsed.get("parties")),
        dispute_subject=_as_text(parsed.get("dispute_subject")),
        claims=_as_text(parsed.get("claims")),
        outcome=_normalize_outcome(parsed.get("outcome")),
        legal_positions=_as_list(parsed.get("legal_positions")),
        cited_norms=_as_list(parsed.get("cited_norms")),
        summary=_as_text(parsed.get("summary")),
    )


def _normalize_outcome(value: Any) -> str:
    key = _as_text(value).lower().replace("-", "_").replace(" ", "_")
    key = _OUTCOME_ALIASES.get(key, key)
    return key if key in _OUTCOMES else "other"


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, list):
        return "; ".join(_as_list(value))
    if isinstance(value, dict):
        return json.dumps(value, ensure_ascii=False)
    return str(value).strip()


def _as_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if isinstance(value, (list, tuple)):
        items = [_as_text(v) for v in value]
        return [v for v in items if v]
    return [_as_text(value)]
