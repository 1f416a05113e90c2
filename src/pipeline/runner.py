# src/pipeline/runner.py - v2
"""Step runner: prompt rendering, model routing, cost and call tracking.

Steps describe what to ask; the runner owns how a call is made. Every
successful call is merged into the batch's StepCostAccumulator, every call
is recorded in the CallLogger when one is configured.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from casereview.config.steps import StepDefinition, resolve_step_model
from casereview.core.errors import LLMCallError
from casereview.llm.retry import with_retry
from casereview.logging.context import set_step_context
from casereview.prompts.loader import render_prompt

if TYPE_CHECKING:
    from casereview.config.settings import Settings
    from casereview.llm.base_client import BaseLLMClient
    from casereview.llm.models import APIResponse
    from casereview.pipeline.plugin_kit.base_step import BaseStep
    from casereview.pipeline.plugin_kit.models import StepOutput
    from casereview.prompts.loader import PromptLoader
    from casereview.tracking.call_logger import CallLogger
    from casereview.tracking.cost_ledger import StepCostAccumulator

logger = logging.getLogger(__name__)


class StepRunner:
    """Execute steps for one batch.

    Args:
        llm: Client issuing model calls.
        prompts: Loader resolving step prompt files.
        settings: Model routing and retry configuration.
        accumulator: Batch-scoped per-step cost ledger.
        call_logger: Optional per-call record sink.
    """

    def __init__(
        self,
        llm: BaseLLMClient,
        prompts: PromptLoader,
        settings: Settings,
        accumulator: StepCostAccumulator,
        call_logger: CallLogger | None = None,
    ) -> None:
        self._llm = llm
        self._prompts = prompts
        self._settings = settings
        self._accumulator = accumulator
        self._call_logger = call_logger

    @property
    def accumulator(self) -> StepCostAccumulator:
        return self._accumulator

    async def run(self, step: BaseStep, inputs: dict) -> StepOutput:
        """Execute one step with step-level log context."""
        set_step_context(step.name)
        start_ms = time.monotonic_ns() // 1_000_000
        try:
            output = await step.execute(inputs, self)
        finally:
            set_step_context(None)
        output.metadata.execution_time_ms = (time.monotonic_ns() // 1_000_000) - start_ms

        logger.info(
            "Step %d '%s' completed: calls=%d, tokens=%d, time=%dms",
            step.index,
            step.name,
            output.metadata.llm_calls,
            output.metadata.tokens_used,
            output.metadata.execution_time_ms,
        )
        for warning in output.warnings:
            logger.warning("Step '%s': %s", step.name, warning)
        return output

    async def complete(
        self,
        step: StepDefinition,
        values: dict[str, str],
        document: str | None = None,
    ) -> APIResponse:
        """Render the step prompt, call the step model, record the cost.

        Raises:
            PromptLoadError: If the step prompt cannot be read.
            ConfigurationError: If the provider credential is missing.
            LLMCallError: On any model-call fault.
        """
        if step.prompt_file is None:
            raise ValueError(f"Step {step.index} ({step.name}) has no prompt")

        parts = self._prompts.load_with_parts(step.prompt_file)
        user_content = render_prompt(parts.user_prompt, values)
        model = resolve_step_model(step, self._settings)

        try:
            if self._settings.llm_max_retries > 0:
                response = await with_retry(
                    self._llm.call,
                    parts.system_prompt,
                    user_content,
                    model,
                    step=step.name,
                    max_retries=self._settings.llm_max_retries,
                )
            else:
                response = await self._llm.call(parts.system_prompt, user_content, model)
        except LLMCallError as exc:
            if self._call_logger is not None:
                self._call_logger.record_failure(step.index, step.name, model, exc, document=document)
            raise

        self._accumulator.record(
            step.index,
            step.name,
            response.usage,
            response.cost,
            exact=response.pricing_exact,
        )
        if self._call_logger is not None:
            self._call_logger.record(step.index, step.name, response, document=document)
        return response
