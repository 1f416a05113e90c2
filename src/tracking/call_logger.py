# src/tracking/call_logger.py - v3
"""Per-call journal of a batch, written out as JSON Lines.

Document workers run concurrently and may record from worker threads of the
HTTP stack, so the journal is guarded by a lock. Failed calls are journaled
with zero usage and zero cost; they never count toward cost statistics.
"""

from __future__ import annotations

import logging
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from casereview.llm.models import APIResponse
from casereview.tracking.models import LLMCallRecord

logger = logging.getLogger(__name__)


class CallLogger:
    def __init__(self) -> None:
        self._records: list[LLMCallRecord] = []
        self._lock = threading.Lock()

    def _add(self, step: int, step_name: str, document: str | None, **fields: Any) -> LLMCallRecord:
        entry = LLMCallRecord(
            call_id=uuid.uuid4().hex,
            timestamp=datetime.now(timezone.utc),
            document=document,
            step=step,
            step_name=step_name,
            **fields,
        )
        with self._lock:
            self._records.append(entry)
        return entry

    def record(
        self,
        step: int,
        step_name: str,
        response: APIResponse,
        document: str | None = None,
    ) -> LLMCallRecord:
        """Journal a completed call with its usage and cost.

        ``document`` is None for the batch-scope steps.
        """
        usage = response.usage
        return self._add(
            step, step_name, document,
            model=response.model,
            prompt_tokens=usage.prompt_tokens,
            completion_tokens=usage.completion_tokens,
            cached_tokens=usage.cached_tokens,
            total_tokens=usage.total_tokens,
            cost_usd=response.cost.total_cost,
            pricing_exact=response.pricing_exact,
            latency_ms=response.latency_ms,
            status="success",
        )

    def record_failure(
        self,
        step: int,
        step_name: str,
        model: str,
        error: Exception,
        document: str | None = None,
    ) -> LLMCallRecord:
        return self._add(step, step_name, document, model=model, status="failed", error=str(error))

    @property
    def records(self) -> list[LLMCallRecord]:
        """Snapshot of the journal in recording order."""
        with self._lock:
            return self._records.copy()

    @property
    def total_calls(self) -> int:
        return len(self.records)

    @property
    def failed_calls(self) -> int:
        return sum(r.status == "failed" for r in self.records)

    @property
    def total_tokens(self) -> int:
        return sum(r.total_tokens for r in self.records)

    def save(self, path: Path) -> None:
        """Write the journal to ``path``, one JSON object per line."""
        snapshot = self.records
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            "".join(r.model_dump_json() + "\n" for r in snapshot),
            encoding="utf-8",
        )
        logger.debug("Call journal: %d entries -> %s", len(snapshot), path)
