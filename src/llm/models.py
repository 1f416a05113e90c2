# src/llm/models.py - v2
"""LLM-specific types: Message, TokenUsage, ProviderUsage, APIResponse."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from casereview.tracking.models import CostBreakdown


class Message(BaseModel):
    """Single message in a conversation."""

    role: Literal["user", "assistant", "system"]
    content: str


class TokenUsage(BaseModel):
    """Normalized token usage of one call.

    total_tokens is taken from the provider as-is; it is expected to equal
    prompt_tokens + completion_tokens but is not recomputed.
    """

    prompt_tokens: int = 0
    completion_tokens: int = 0
    cached_tokens: int = 0
    total_tokens: int = 0


class PromptTokensDetails(BaseModel):
    """Nested prompt token details of the OpenAI usage payload."""

    model_config = ConfigDict(extra="ignore")

    cached_tokens: int = 0

    @field_validator("cached_tokens", mode="before")
    @classmethod
    def _none_to_zero(cls, v: Any) -> Any:  # noqa: N805
        return 0 if v is None else v


class ProviderUsage(BaseModel):
    """Schema of the provider usage payload, validated on receipt.

    Cached tokens are reported either at the top level (OpenRouter) or in
    prompt_tokens_details (OpenAI). Missing numbers default to zero.
    """

    model_config = ConfigDict(extra="ignore")

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    cached_tokens: int = 0
    prompt_tokens_details: PromptTokensDetails | None = None

    @field_validator("prompt_tokens", "completion_tokens", "total_tokens", "cached_tokens", mode="before")
    @classmethod
    def _none_to_zero(cls, v: Any) -> Any:  # noqa: N805
        return 0 if v is None else v

    def to_token_usage(self) -> TokenUsage:
        """Normalize into TokenUsage, keeping cached_tokens <= prompt_tokens."""
        cached = self.cached_tokens
        if not cached and self.prompt_tokens_details is not None:
            cached = self.prompt_tokens_details.cached_tokens
        cached = max(0, min(cached, self.prompt_tokens))
        return TokenUsage(
            prompt_tokens=self.prompt_tokens,
            completion_tokens=self.completion_tokens,
            cached_tokens=cached,
            total_tokens=self.total_tokens,
        )


class APIResponse(BaseModel):
    """Result of one model call: content, usage and its cost."""

    content: str
    usage: TokenUsage
    cost: CostBreakdown
    model: str = ""
    priced_as: str = ""
    pricing_exact: bool = True
    latency_ms: int = 0
    raw_response: Any = Field(default=None, exclude=True)
