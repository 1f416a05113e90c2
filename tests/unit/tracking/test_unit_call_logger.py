# tests/unit/tracking/test_unit_call_logger.py - v1
"""Tests for tracking/call_logger.py."""

from __future__ import annotations

import json

from casereview.llm.models import APIResponse, TokenUsage
from casereview.tracking.call_logger import CallLogger
from casereview.tracking.models import CostBreakdown


def _response(model: str = "x-ai/grok-4.1-fast", exact: bool = True) -> APIResponse:
    return APIResponse(
        content="test",
        usage=TokenUsage(prompt_tokens=100, completion_tokens=50, cached_tokens=20, total_tokens=150),
        cost=CostBreakdown(total_cost=0.0000414),
        model=model,
        priced_as=model,
        pricing_exact=exact,
        latency_ms=500,
    )


class TestCallLogger:
    def test_record(self):
        logger = CallLogger()
        record = logger.record(0, "decision_digest", _response(), document="a.docx")
        assert record.step == 0
        assert record.document == "a.docx"
        assert record.total_tokens == 150
        assert record.cost_usd == 0.0000414
        assert record.status == "success"

    def test_multiple_records(self):
        logger = CallLogger()
        logger.record(0, "decision_digest", _response())
        logger.record(3, "review_skeleton", _response())
        assert logger.total_calls == 2
        assert logger.total_tokens == 300

    def test_record_failure(self):
        logger = CallLogger()
        record = logger.record_failure(1, "case_card", "m", RuntimeError("502"), document="b.docx")
        assert record.status == "failed"
        assert record.error == "502"
        assert record.total_tokens == 0
        assert logger.failed_calls == 1

    def test_save(self, tmp_path):
        logger = CallLogger()
        logger.record(0, "decision_digest", _response(exact=False))
        out = tmp_path / "sub" / "calls.jsonl"
        logger.save(out)
        lines = out.read_text().strip().split("\n")
        assert len(lines) == 1
        assert json.loads(lines[0])["pricing_exact"] is False
