# src/llm/retry.py - v4
"""Opt-in retry of transient provider faults for one step call.

LLMCallClient issues exactly one request per call. The runner wraps that call
with ``with_retry`` when LLM_MAX_RETRIES > 0. Only TransportError is
considered, and only when ``classify_error`` maps it to a transient type.
Everything else surfaces on the first failure.
"""

from __future__ import annotations

import asyncio
import logging
import random
import re
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

import openai

from casereview.core.errors import LLMCallError, TransportError

logger = logging.getLogger(__name__)


class LLMRetryExhausted(LLMCallError):
    def __init__(self, step: str, error_type: str, attempts: int, last_error: Exception):
        self.step = step
        self.error_type = error_type
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Step '{step}' gave up after {attempts} attempts ({error_type}): {last_error}")


@dataclass(frozen=True)
class RetryConfig:
    """Wait before retry n (0-based) is ``base_delay_s * backoff_factor**n``."""

    base_delay_s: float
    backoff_factor: float = 2.0
    jitter: bool = True


DEFAULT_RETRY_CONFIGS: dict[str, RetryConfig] = {
    "rate_limit": RetryConfig(base_delay_s=2.0),
    "timeout": RetryConfig(base_delay_s=1.0, backoff_factor=1.0),
    "server_error": RetryConfig(base_delay_s=5.0),
}

# (error type, exception class name fragments, message pattern), first match wins
_TRANSIENT_MARKERS: tuple[tuple[str, tuple[str, ...], re.Pattern[str]], ...] = (
    ("rate_limit", ("ratelimit",), re.compile(r"\b429\b|rate limit")),
    ("timeout", ("timeout",), re.compile(r"timed out|timeout")),
    ("server_error", ("internalserver",), re.compile(r"\b50[0234]\b")),
)


def _classify_status(status: int) -> str:
    if status == 429:
        return "rate_limit"
    if status == 408:
        return "timeout"
    if status >= 500:
        return "server_error"
    return "unknown"


def classify_error(error: Exception) -> str:
    """Map a transport fault to a DEFAULT_RETRY_CONFIGS key, or "unknown".

    An HTTP status on the wrapped provider error decides on its own; the
    message text is only consulted when there is none.
    """
    cause = error.__cause__ or error
    if isinstance(cause, openai.APIStatusError):
        return _classify_status(cause.status_code)

    cause_name = type(cause).__name__.lower()
    text = str(error).lower()
    for error_type, names, pattern in _TRANSIENT_MARKERS:
        if any(n in cause_name for n in names) or pattern.search(text):
            return error_type
    return "unknown"


def _compute_delay(config: RetryConfig, attempt: int) -> float:
    delay = config.base_delay_s * config.backoff_factor**attempt
    if not config.jitter:
        return delay
    return delay * random.uniform(0.5, 1.5)  # noqa: S311


async def with_retry(
    fn: Callable[..., Awaitable[Any]],
    *args: Any,
    step: str = "unknown",
    max_retries: int = 0,
    retry_configs: dict[str, RetryConfig] | None = None,
    **kwargs: Any,
) -> Any:
    """Await ``fn(*args, **kwargs)``, retrying transient transport faults.

    Raises:
        LLMRetryExhausted: A transient fault was still there after
            ``max_retries`` retries.
        TransportError: Retries are off or the fault is not transient.
    """
    configs = retry_configs or DEFAULT_RETRY_CONFIGS
    max_retries = max(max_retries, 0)

    for attempt in range(max_retries + 1):
        try:
            return await fn(*args, **kwargs)
        except TransportError as exc:
            error_type = classify_error(exc)
            config = configs.get(error_type)
            if max_retries == 0 or config is None:
                raise
            if attempt == max_retries:
                raise LLMRetryExhausted(step, error_type, attempt + 1, exc) from exc

            delay = _compute_delay(config, attempt)
            logger.warning(
                "Step '%s': %s on attempt %d of %d, next try in %.1fs",
                step, error_type, attempt + 1, max_retries + 1, delay,
            )
            await asyncio.sleep(delay)

    raise AssertionError("unreachable")
