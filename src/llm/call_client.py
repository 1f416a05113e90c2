# src/llm/call_client.py - v1
"""Chat-completion client: one model call, usage extraction, cost computation.

Uses the official openai SDK against the OpenRouter endpoint. Exactly one
outbound request per call; retries are left to the caller.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any

import openai
from pydantic import ValidationError

from casereview.core.errors import EmptyResponseError, MissingUsageError, TransportError
from casereview.llm.base_client import BaseLLMClient
from casereview.llm.models import APIResponse, Message, ProviderUsage
from casereview.tracking.pricing import PricingResolver, compute_cost

if TYPE_CHECKING:
    from casereview.llm.transport import OpenRouterTransport

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 0.7


class LLMCallClient(BaseLLMClient):
    """Issue model calls and price them.

    Args:
        transport: Lazily initialized API handle.
        pricing: Resolver used to price every call.
        temperature: Sampling temperature sent with every request.
    """

    def __init__(
        self,
        transport: OpenRouterTransport,
        pricing: PricingResolver | None = None,
        temperature: float = DEFAULT_TEMPERATURE,
    ) -> None:
        self._transport = transport
        self._pricing = pricing or PricingResolver()
        self._temperature = temperature

    @property
    def pricing(self) -> PricingResolver:
        return self._pricing

    async def aclose(self) -> None:
        await self._transport.aclose()

    async def call(
        self,
        system_prompt: str,
        user_content: str,
        model: str,
    ) -> APIResponse:
        """Send system prompt + user content to model.

        Raises:
            ConfigurationError: If the credential is missing (first call only).
            TransportError: On any network or provider API fault.
            EmptyResponseError: If the provider returned no content.
            MissingUsageError: If the response carries no usage statistics.
        """
        client = self._transport.get()

        t0 = time.monotonic()
        try:
            resp = await client.chat.completions.create(
                model=model,
                messages=[
                    Message(role="system", content=system_prompt).model_dump(),
                    Message(role="user", content=user_content).model_dump(),
                ],
                temperature=self._temperature,
            )
        except (openai.OpenAIError, OSError, TimeoutError) as exc:
            logger.warning("Model call to %s failed: %s", model, exc)
            raise TransportError(str(exc)) from exc
        latency = int((time.monotonic() - t0) * 1000)

        content = _first_choice_content(resp)
        if not content:
            raise EmptyResponseError(model)

        usage_payload = getattr(resp, "usage", None)
        if usage_payload is None:
            raise MissingUsageError(model)
        try:
            usage = ProviderUsage.model_validate(_as_dict(usage_payload)).to_token_usage()
        except ValidationError as exc:
            logger.warning("Malformed usage payload from %s: %s", model, exc)
            raise MissingUsageError(model) from exc

        resolved = self._pricing.resolve(model)
        cost = compute_cost(usage, resolved.pricing)

        logger.debug(
            "Model %s: %d prompt (%d cached) + %d completion tokens, $%.6f, %dms",
            model, usage.prompt_tokens, usage.cached_tokens,
            usage.completion_tokens, cost.total_cost, latency,
        )

        return APIResponse(
            content=content,
            usage=usage,
            cost=cost,
            model=model,
            priced_as=resolved.priced_as,
            pricing_exact=resolved.exact,
            latency_ms=latency,
            raw_response=resp,
        )


def _first_choice_content(resp: Any) -> str | None:
    choices = getattr(resp, "choices", None) or []
    if not choices:
        return None
    message = getattr(choices[0], "message", None)
    if message is None:
        return None
    return getattr(message, "content", None)


def _as_dict(payload: Any) -> Any:
    """Turn an SDK usage object into plain data for schema validation."""
    if isinstance(payload, dict):
        return payload
    if hasattr(payload, "model_dump"):
        return payload.model_dump()
    return vars(payload)
