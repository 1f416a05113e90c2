# tests/integration/conftest.py - v1
"""Shared fixtures for integration tests.

The real transport, call client, pricing and processor are wired as in
production; only ``openai.AsyncOpenAI`` is replaced by a fake handle whose
completions answer with the canned per-model responses.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

OPENROUTER_USAGE = {
    "prompt_tokens": 100,
    "completion_tokens": 50,
    "total_tokens": 150,
    "cached_tokens": 20,
}


@pytest.fixture
def fake_openai(openai_handle_factory, completion_factory, canned_content):
    """Patch openai.AsyncOpenAI; yields (factory mock, handle)."""

    async def create(*, model, messages, temperature):
        user = next(m["content"] for m in messages if m["role"] == "user")
        return completion_factory(canned_content(model, user), OPENROUTER_USAGE)

    handle = openai_handle_factory(AsyncMock(side_effect=create))
    with patch("openai.AsyncOpenAI", return_value=handle) as factory:
        yield factory, handle
