# src/tracking/cost_ledger.py - v1
"""Per-step cost accumulation and aggregation into CostStatistics.

StepCostAccumulator is safe to call from concurrent document workers: each
step counter has its own lock, so increments to the same step are
serialized while different steps never contend.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable

from casereview.llm.models import TokenUsage
from casereview.tracking.models import (
    CostBreakdown,
    CostStatistics,
    CostTotals,
    CostTotalsRecord,
    StepCostStatistics,
    TokenTotals,
)


class StepCostAccumulator:
    """Running totals per pipeline step."""

    def __init__(self) -> None:
        self._steps: dict[int, StepCostStatistics] = {}
        self._locks: dict[int, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, step: int, step_name: str) -> threading.Lock:
        with self._registry_lock:
            if step not in self._locks:
                self._locks[step] = threading.Lock()
                self._steps[step] = StepCostStatistics(step=step, step_name=step_name)
            return self._locks[step]

    def record(
        self,
        step: int,
        step_name: str,
        usage: TokenUsage,
        cost: CostBreakdown,
        exact: bool = True,
    ) -> None:
        """Merge one completed call into the step's running totals."""
        with self._lock_for(step, step_name):
            stats = self._steps[step]
            stats.calls += 1
            tokens = stats.tokens
            tokens.prompt_tokens += usage.prompt_tokens
            tokens.completion_tokens += usage.completion_tokens
            tokens.cached_tokens += usage.cached_tokens
            tokens.total_tokens += usage.total_tokens
            totals = stats.cost
            totals.input_cost += cost.input_cost
            totals.cached_input_cost += cost.cached_input_cost
            totals.output_cost += cost.output_cost
            totals.total_cost += cost.total_cost
            if not exact:
                stats.estimated = True

    def snapshot(self) -> list[StepCostStatistics]:
        """Copy of every step's totals, ordered by step index."""
        with self._registry_lock:
            indices = sorted(self._steps)
        result: list[StepCostStatistics] = []
        for idx in indices:
            with self._locks[idx]:
                result.append(self._steps[idx].model_copy(deep=True))
        return result

    def statistics(self) -> CostStatistics:
        """Aggregate the current snapshot."""
        return aggregate(self.snapshot())

    @property
    def total_calls(self) -> int:
        return sum(s.calls for s in self.snapshot())


def aggregate(steps: Iterable[StepCostStatistics]) -> CostStatistics:
    """Sum every step's totals into a grand total.

    Steps are ordered by pipeline step index regardless of the order in
    which they are supplied.
    """
    ordered = sorted((s.model_copy(deep=True) for s in steps), key=lambda s: s.step)

    tokens = TokenTotals()
    cost = CostTotals()
    estimated = False
    for s in ordered:
        tokens.prompt_tokens += s.tokens.prompt_tokens
        tokens.completion_tokens += s.tokens.completion_tokens
        tokens.cached_tokens += s.tokens.cached_tokens
        tokens.total_tokens += s.tokens.total_tokens
        cost.input_cost += s.cost.input_cost
        cost.cached_input_cost += s.cost.cached_input_cost
        cost.output_cost += s.cost.output_cost
        cost.total_cost += s.cost.total_cost
        estimated = estimated or s.estimated

    return CostStatistics(
        steps=ordered,
        total=CostTotalsRecord(tokens=tokens, cost=cost, estimated=estimated),
    )
