# src/tracking/models.py - v3
"""Tracking domain models: pricing, cost breakdowns, per-step statistics, call records.

All prices are expressed per single token, not per million.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ModelPricing(BaseModel):
    """Per-token price triple for one model."""

    input: float
    cached_input: float
    output: float


class ResolvedPricing(BaseModel):
    """Pricing together with the provenance of the lookup."""

    requested_model: str
    priced_as: str
    pricing: ModelPricing
    exact: bool


class CostBreakdown(BaseModel):
    """Cost of one call. total_cost is the sum of the three components."""

    input_cost: float = 0.0
    cached_input_cost: float = 0.0
    output_cost: float = 0.0
    total_cost: float = 0.0


class TokenTotals(BaseModel):
    """Summed token usage over many calls."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    cached_tokens: int = 0
    total_tokens: int = 0

    @property
    def input_tokens(self) -> int:
        """Prompt tokens billed at the full input rate."""
        return self.prompt_tokens - self.cached_tokens


class CostTotals(BaseModel):
    """Summed cost over many calls."""

    input_cost: float = 0.0
    cached_input_cost: float = 0.0
    output_cost: float = 0.0
    total_cost: float = 0.0


class StepCostStatistics(BaseModel):
    """Per-step accumulation across every document that reached the step."""

    step: int
    step_name: str
    calls: int = 0
    tokens: TokenTotals = Field(default_factory=TokenTotals)
    cost: CostTotals = Field(default_factory=CostTotals)
    estimated: bool = False


class CostTotalsRecord(BaseModel):
    """Grand total over all steps."""

    tokens: TokenTotals = Field(default_factory=TokenTotals)
    cost: CostTotals = Field(default_factory=CostTotals)
    estimated: bool = False


class CostStatistics(BaseModel):
    """Cost report: steps in pipeline order plus their element-wise total."""

    steps: list[StepCostStatistics] = Field(default_factory=list)
    total: CostTotalsRecord = Field(default_factory=CostTotalsRecord)

    def to_wire(self) -> CostStatisticsView:
        """camelCase view sent to API callers and written to cost_statistics.json."""
        return CostStatisticsView.from_statistics(self)


class LLMCallRecord(BaseModel):
    """Individual model call log entry."""

    call_id: str
    timestamp: datetime
    document: str | None = None
    step: int
    step_name: str
    model: str
    prompt_tokens: int = 0
    completion_tokens: int = 0
    cached_tokens: int = 0
    total_tokens: int = 0
    cost_usd: float = 0.0
    pricing_exact: bool = True
    latency_ms: int = 0
    status: Literal["success", "failed"]
    error: str | None = None


# --- wire views ---
# Token and cost groups share the keys input / cachedInput / output / total.
# tokens.input counts prompt tokens billed at the full rate, so it lines up
# with cost.input and input + cachedInput + output == total for both groups.


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TokenCountsView(_WireModel):
    input: int = 0
    cached_input: int = 0
    output: int = 0
    total: int = 0

    @classmethod
    def from_totals(cls, tokens: TokenTotals) -> TokenCountsView:
        return cls(
            input=tokens.input_tokens,
            cached_input=tokens.cached_tokens,
            output=tokens.completion_tokens,
            total=tokens.total_tokens,
        )


class CostAmountsView(_WireModel):
    input: float = 0.0
    cached_input: float = 0.0
    output: float = 0.0
    total: float = 0.0

    @classmethod
    def from_totals(cls, cost: CostTotals) -> CostAmountsView:
        return cls(
            input=cost.input_cost,
            cached_input=cost.cached_input_cost,
            output=cost.output_cost,
            total=cost.total_cost,
        )


class StepCostView(_WireModel):
    step: int
    step_name: str
    calls: int = 0
    tokens: TokenCountsView = Field(default_factory=TokenCountsView)
    cost: CostAmountsView = Field(default_factory=CostAmountsView)
    estimated: bool = False


class CostTotalsView(_WireModel):
    tokens: TokenCountsView = Field(default_factory=TokenCountsView)
    cost: CostAmountsView = Field(default_factory=CostAmountsView)
    estimated: bool = False


class CostStatisticsView(_WireModel):
    """``{steps: [{step, stepName, calls, tokens, cost}], total: {tokens, cost}}``."""

    steps: list[StepCostView] = Field(default_factory=list)
    total: CostTotalsView = Field(default_factory=CostTotalsView)

    @classmethod
    def from_statistics(cls, stats: CostStatistics) -> CostStatisticsView:
        return cls(
            steps=[
                StepCostView(
                    step=s.step,
                    step_name=s.step_name,
                    calls=s.calls,
                    tokens=TokenCountsView.from_totals(s.tokens),
                    cost=CostAmountsView.from_totals(s.cost),
                    estimated=s.estimated,
                )
                for s in stats.steps
            ],
            total=CostTotalsView(
                tokens=TokenCountsView.from_totals(stats.total.tokens),
                cost=CostAmountsView.from_totals(stats.total.cost),
                estimated=stats.total.estimated,
            ),
        )

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)
