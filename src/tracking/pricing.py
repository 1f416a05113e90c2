# src/tracking/pricing.py - v1
"""Model pricing table, pricing resolution and per-call cost computation.

Prices come from the OpenRouter model catalog and are per token. Legacy
entries published per 1M tokens are converted at import time.
"""

from __future__ import annotations

import logging
from typing import Mapping

from casereview.llm.models import TokenUsage
from casereview.tracking.models import CostBreakdown, ModelPricing, ResolvedPricing

logger = logging.getLogger(__name__)

DEFAULT_PRICING_MODEL = "x-ai/grok-4.1-fast"

_PER_MILLION = 1_000_000

MODEL_PRICING: dict[str, ModelPricing] = {
    "x-ai/grok-4.1-fast": ModelPricing(
        input=0.0000002, cached_input=0.00000002, output=0.0000005,
    ),
    "google/gemini-2.5-flash-lite-preview-09-2025": ModelPricing(
        input=0.0000001, cached_input=0.00000001, output=0.0000004,
    ),
    "deepseek/deepseek-v3.2": ModelPricing(
        input=0.00000026, cached_input=0.000000026, output=0.00000039,
    ),
    "google/gemini-2.5-flash-preview-09-2025": ModelPricing(
        input=0.0000003, cached_input=0.00000003, output=0.0000025,
    ),
    # Legacy models, published per 1M tokens
    "openai/gpt-5-mini": ModelPricing(
        input=0.25 / _PER_MILLION, cached_input=0.025 / _PER_MILLION,
        output=2.0 / _PER_MILLION,
    ),
    "openai/gpt-5": ModelPricing(
        input=1.25 / _PER_MILLION, cached_input=0.125 / _PER_MILLION,
        output=10.0 / _PER_MILLION,
    ),
    "openai/gpt-5.1": ModelPricing(
        input=1.25 / _PER_MILLION, cached_input=0.125 / _PER_MILLION,
        output=10.0 / _PER_MILLION,
    ),
}


class PricingResolver:
    """Resolve a model id to its pricing, falling back to a default model.

    Resolution never fails. A fallback is logged and flagged as not exact
    so cost reports can mark the figures as estimated.

    Args:
        table: Pricing table keyed by model id.
        default_model: Model whose pricing is used for unknown ids.
    """

    def __init__(
        self,
        table: Mapping[str, ModelPricing] | None = None,
        default_model: str = DEFAULT_PRICING_MODEL,
    ) -> None:
        self._table = dict(MODEL_PRICING if table is None else table)
        if default_model not in self._table:
            logger.warning(
                "Default pricing model %s not in pricing table, using %s",
                default_model, DEFAULT_PRICING_MODEL,
            )
            default_model = DEFAULT_PRICING_MODEL
            self._table.setdefault(default_model, MODEL_PRICING[DEFAULT_PRICING_MODEL])
        self._default_model = default_model
        self._warned: set[str] = set()

    @property
    def default_model(self) -> str:
        return self._default_model

    @property
    def table(self) -> dict[str, ModelPricing]:
        return dict(self._table)

    def resolve(self, model_id: str) -> ResolvedPricing:
        """Return exact pricing for model_id, or the default model's pricing."""
        pricing = self._table.get(model_id)
        if pricing is not None:
            return ResolvedPricing(
                requested_model=model_id, priced_as=model_id,
                pricing=pricing, exact=True,
            )

        if model_id not in self._warned:
            self._warned.add(model_id)
            logger.warning(
                "No pricing for model %s, estimating with %s pricing",
                model_id, self._default_model,
            )
        return ResolvedPricing(
            requested_model=model_id,
            priced_as=self._default_model,
            pricing=self._table[self._default_model],
            exact=False,
        )


def compute_cost(usage: TokenUsage, pricing: ModelPricing) -> CostBreakdown:
    """Convert token usage into a cost breakdown.

    Cached prompt tokens are billed at the cached rate, the rest of the
    prompt at the full input rate.
    """
    input_tokens = usage.prompt_tokens - usage.cached_tokens
    input_cost = input_tokens * pricing.input
    cached_input_cost = usage.cached_tokens * pricing.cached_input
    output_cost = usage.completion_tokens * pricing.output
    return CostBreakdown(
        input_cost=input_cost,
        cached_input_cost=cached_input_cost,
        output_cost=output_cost,
        total_cost=input_cost + cached_input_cost + output_cost,
    )
