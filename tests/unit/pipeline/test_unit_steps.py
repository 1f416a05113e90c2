# tests/unit/pipeline/test_unit_steps.py - v1
"""Tests for the pipeline steps and their JSON handling."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from casereview.config.steps import get_step
from casereview.core.models import CaseCard, CaseCards, ReviewSkeleton, SkeletonSection
from casereview.llm.models import APIResponse, TokenUsage
from casereview.pipeline.plugin_kit.base_step import parse_json_response, strip_code_fences
from casereview.pipeline.steps.case_card import CaseCardStep, _normalize_outcome, to_case_card
from casereview.pipeline.steps.case_cards_merge import (
    CaseCardsMergeStep,
    format_case_cards,
    merge_case_cards,
)
from casereview.pipeline.steps.decision_digest import DecisionDigestStep
from casereview.pipeline.steps.registry import default_steps
from casereview.pipeline.steps.review_skeleton import (
    NO_CONTEXT,
    ReviewSkeletonStep,
    _drop_unknown_references,
    fallback_skeleton,
)
from casereview.pipeline.steps.review_writing import ReviewWritingStep
from casereview.tracking.models import CostBreakdown


def _response(content: str, model: str = "m") -> APIResponse:
    return APIResponse(
        content=content,
        usage=TokenUsage(prompt_tokens=10, completion_tokens=5, total_tokens=15),
        cost=CostBreakdown(),
        model=model,
    )


def _runner(content: str) -> MagicMock:
    runner = MagicMock()
    runner.complete = AsyncMock(return_value=_response(content))
    return runner


def _card(name: str, number: str = "", outcome: str = "satisfied", court: str = "", norms=()) -> CaseCard:
    return CaseCard(
        source_document=name, case_number=number, outcome=outcome, court=court,
        cited_norms=list(norms),
    )


class TestJsonHelpers:
    def test_strip_fences(self):
        assert strip_code_fences("```json\n{\"a\": 1}\n```") == '{"a": 1}'
        assert strip_code_fences("  plain  ") == "plain"

    def test_parse_embedded_object(self):
        assert parse_json_response('Here it is: {"a": 1} hope it helps') == {"a": 1}

    def test_parse_rejects_array(self):
        with pytest.raises(ValueError, match="JSON object"):
            parse_json_response("[1, 2]")

    def test_parse_invalid(self):
        with pytest.raises(json.JSONDecodeError):
            parse_json_response("no json here")


class TestRegistry:
    def test_default_order(self):
        steps = default_steps()
        assert [s.index for s in steps] == [0, 1, 2, 3, 4]
        assert [s.scope for s in steps] == ["document", "document", "batch", "batch", "batch"]
        assert steps[2].definition is get_step(2)


class TestDecisionDigestStep:
    @pytest.mark.asyncio
    async def test_execute(self):
        runner = _runner("```markdown\n## Digest\nFacts\n```")
        output = await DecisionDigestStep().execute(
            {"document_name": "a.docx", "document_text": "full text"}, runner,
        )
        assert output.data == {"decision_digest": "## Digest\nFacts"}
        assert output.metadata.llm_calls == 1
        assert output.metadata.tokens_used == 15
        definition, values = runner.complete.call_args.args
        assert definition.index == 0
        assert values == {"document_name": "a.docx", "document_text": "full text"}
        assert runner.complete.call_args.kwargs["document"] == "a.docx"


class TestCaseCardStep:
    @pytest.mark.asyncio
    async def test_parses_card(self):
        runner = _runner(json.dumps({
            "case_number": "A40-1/2025", "court": "AC Moscow", "outcome": "Partially satisfied",
            "parties": "LLC Alpha", "cited_norms": ["Art. 309", ""], "summary": None,
        }))
        output = await CaseCardStep().execute(
            {"document_name": "a.docx", "decision_digest": "digest"}, runner,
        )
        card = output.data["case_card"]
        assert card.case_number == "A40-1/2025"
        assert card.outcome == "partially_satisfied"
        assert card.parties == ["LLC Alpha"]
        assert card.cited_norms == ["Art. 309"]
        assert card.summary == ""
        assert card.degraded is False
        assert output.warnings == []

    @pytest.mark.asyncio
    async def test_unparseable_degrades(self):
        output = await CaseCardStep().execute(
            {"document_name": "a.docx", "decision_digest": "the digest"}, _runner("Sorry, no."),
        )
        card = output.data["case_card"]
        assert card.degraded is True
        assert card.summary == "the digest"
        assert card.reference == "a.docx"
        assert len(output.warnings) == 1

    @pytest.mark.parametrize("raw,expected", [
        ("satisfied", "satisfied"),
        ("DISMISSED", "dismissed"),
        ("denied", "dismissed"),
        ("partially-granted", "partially_satisfied"),
        ("settled", "other"),
        (None, "other"),
    ])
    def test_outcome_normalization(self, raw, expected):
        assert _normalize_outcome(raw) == expected

    def test_to_case_card_nested_values(self):
        card = to_case_card({"claims": ["a", "b"], "court": {"name": "X"}}, "d.docx")
        assert card.claims == "a; b"
        assert card.court == '{"name": "X"}'


class TestCaseCardsMerge:
    def test_merge(self):
        cards = [
            _card("a.docx", "A40-1", "satisfied", "AC Moscow", ["Art. 309"]),
            _card("b.docx", "", "dismissed", "AC Moscow", ["Art. 310", "Art. 309"]),
            _card("c.docx", "A40-3", "satisfied", "AC SPb"),
        ]
        merged = merge_case_cards(cards)
        assert merged.by_outcome == {"satisfied": ["A40-1", "A40-3"], "dismissed": ["b.docx"]}
        assert merged.courts == ["AC Moscow", "AC SPb"]
        assert merged.cited_norms == ["Art. 309", "Art. 310"]
        assert [c.source_document for c in merged.cards] == ["a.docx", "b.docx", "c.docx"]

    @pytest.mark.asyncio
    async def test_step_makes_no_call(self):
        runner = _runner("unused")
        output = await CaseCardsMergeStep().execute({"case_cards": [_card("a.docx")]}, runner)
        assert isinstance(output.data["case_cards"], CaseCards)
        assert output.metadata.llm_calls == 0
        runner.complete.assert_not_called()

    def test_format_drops_degraded_flag(self):
        payload = json.loads(format_case_cards(merge_case_cards([_card("a.docx")])))
        assert payload[0]["source_document"] == "a.docx"
        assert "degraded" not in payload[0]


class TestReviewSkeletonStep:
    @pytest.mark.asyncio
    async def test_parses_and_drops_unknown_refs(self):
        cards = merge_case_cards([_card("a.docx", "A40-1"), _card("b.docx")])
        runner = _runner("```json\n" + json.dumps({
            "title": "Review",
            "sections": [
                {"heading": "S1", "thesis": "T", "case_numbers": ["A40-1", "A40-999", "b.docx"]},
                "not a section",
            ],
            "conclusions": ["c1", " "],
        }) + "\n```")
        output = await ReviewSkeletonStep().execute({"case_cards": cards, "context": ""}, runner)

        skeleton = output.data["review_skeleton"]
        assert skeleton.title == "Review"
        assert [s.case_numbers for s in skeleton.sections] == [["A40-1", "b.docx"]]
        assert skeleton.conclusions == ["c1"]
        assert any("A40-999" in w for w in output.warnings)
        values = runner.complete.call_args.args[1]
        assert values["context"] == NO_CONTEXT

    @pytest.mark.asyncio
    async def test_passes_context(self):
        runner = _runner('{"title": "R"}')
        await ReviewSkeletonStep().execute(
            {"case_cards": merge_case_cards([]), "context": "For in-house counsel"}, runner,
        )
        assert runner.complete.call_args.args[1]["context"] == "For in-house counsel"

    @pytest.mark.asyncio
    async def test_unparseable_falls_back(self):
        cards = merge_case_cards([_card("a.docx", "A40-1"), _card("b.docx", "A40-2", "dismissed")])
        output = await ReviewSkeletonStep().execute({"case_cards": cards}, _runner("nope"))
        skeleton = output.data["review_skeleton"]
        assert skeleton.degraded is True
        assert [s.heading for s in skeleton.sections] == ["Claims satisfied", "Claims dismissed"]
        assert output.warnings

    def test_fallback_skeleton(self):
        skeleton = fallback_skeleton(merge_case_cards([_card("a.docx", "A40-1", "other")]))
        assert skeleton.sections[0].heading == "Other outcomes"
        assert skeleton.sections[0].case_numbers == ["A40-1"]

    def test_drop_unknown_reports_each_once(self):
        skeleton = ReviewSkeleton(sections=[
            SkeletonSection(heading="a", case_numbers=["X", "X"]),
            SkeletonSection(heading="b", case_numbers=["X"]),
        ])
        assert _drop_unknown_references(skeleton, merge_case_cards([])) == ["X"]
        assert all(s.case_numbers == [] for s in skeleton.sections)


class TestReviewWritingStep:
    @pytest.mark.asyncio
    async def test_execute(self):
        runner = _runner("```markdown\n# Review\n\nBody\n```")
        skeleton = ReviewSkeleton(title="Review", degraded=True)
        output = await ReviewWritingStep().execute(
            {"case_cards": merge_case_cards([_card("a.docx")]), "review_skeleton": skeleton, "context": "ctx"},
            runner,
        )
        assert output.data == {"review": "# Review\n\nBody"}
        values = runner.complete.call_args.args[1]
        assert values["context"] == "ctx"
        assert json.loads(values["review_skeleton"])["title"] == "Review"
        assert "degraded" not in values["review_skeleton"]
