# tests/conftest.py - v1
"""Shared test fixtures for all unit and integration tests.

Provides a mock LLM client, sample decisions, settings without .env and a
fake OpenAI handle. No network: every model call is mocked.
"""

from __future__ import annotations

import asyncio
import io
import json
import re
from pathlib import Path
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock

import docx
import pytest

from casereview.config.settings import Settings
from casereview.config.steps import get_step
from casereview.core.models import Document
from casereview.llm.base_client import BaseLLMClient
from casereview.llm.models import APIResponse, TokenUsage
from casereview.tracking.pricing import PricingResolver, compute_cost

STEP0_MODEL = get_step(0).default_model
STEP1_MODEL = get_step(1).default_model
STEP3_MODEL = get_step(3).default_model
STEP4_MODEL = get_step(4).default_model

_DOCUMENT_LINE = re.compile(r"^Document: (.+)$", re.MULTILINE)


def case_number_for(document: str) -> str:
    return f"A40-{document}"


def default_content(model: str, user_content: str) -> str:
    """Canned response per pipeline model."""
    match = _DOCUMENT_LINE.search(user_content)
    document = match.group(1).strip() if match else "?"
    if model == STEP0_MODEL:
        return f"## Digest of {document}\n\nThe court satisfied the claim."
    if model == STEP1_MODEL:
        return json.dumps({
            "case_number": case_number_for(document),
            "court": "Arbitration Court of Moscow",
            "decision_date": "2025-03-01",
            "parties": ["LLC Alpha", "LLC Beta"],
            "dispute_subject": "supply contract debt",
            "claims": "recover 1,000,000 RUB",
            "outcome": "satisfied",
            "legal_positions": ["Delivery is proven by signed waybills"],
            "cited_norms": ["Art. 309 Civil Code"],
            "summary": f"Summary of {document}",
        })
    if model == STEP3_MODEL:
        return "```json\n" + json.dumps({
            "title": "Supply disputes review",
            "introduction": "Practice on supply contract debts.",
            "sections": [{"heading": "Proof of delivery", "thesis": "Waybills suffice", "case_numbers": []}],
            "conclusions": ["Keep signed waybills"],
        }) + "\n```"
    if model == STEP4_MODEL:
        return "# Supply disputes review\n\nCourts consistently satisfy such claims."
    return "ok"


class MockLLMClient(BaseLLMClient):
    """BaseLLMClient returning canned responses with real pricing.

    Args:
        responses: Content per model id, overriding the defaults.
        fail_on: Exception to raise when its key occurs in the user content
            or equals the model id.
        usage: Token usage reported for every call.
        delay_s: Simulated latency per call.
    """

    def __init__(
        self,
        responses: dict[str, str] | None = None,
        fail_on: dict[str, Exception] | None = None,
        usage: TokenUsage | None = None,
        delay_s: float = 0.0,
    ) -> None:
        self.responses = responses or {}
        self.fail_on = fail_on or {}
        self.usage = usage or TokenUsage(
            prompt_tokens=100, completion_tokens=50, cached_tokens=20, total_tokens=150,
        )
        self.delay_s = delay_s
        self.calls: list[dict[str, Any]] = []
        self.closed = False
        self._pricing = PricingResolver()

    async def call(self, system_prompt: str, user_content: str, model: str) -> APIResponse:
        self.calls.append({"system": system_prompt, "user": user_content, "model": model})
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        for needle, exc in self.fail_on.items():
            if needle == model or needle in user_content:
                raise exc
        content = self.responses.get(model) or default_content(model, user_content)
        resolved = self._pricing.resolve(model)
        return APIResponse(
            content=content,
            usage=self.usage,
            cost=compute_cost(self.usage, resolved.pricing),
            model=model,
            priced_as=resolved.priced_as,
            pricing_exact=resolved.exact,
            latency_ms=1,
        )

    async def aclose(self) -> None:
        self.closed = True

    def calls_for(self, model: str) -> list[dict[str, Any]]:
        return [c for c in self.calls if c["model"] == model]


def make_completion(content: str | None, usage: dict[str, Any] | None) -> SimpleNamespace:
    """Object shaped like an openai ChatCompletion."""
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=usage,
    )


def make_openai_handle(create: AsyncMock | None = None) -> SimpleNamespace:
    """Object shaped like openai.AsyncOpenAI."""
    return SimpleNamespace(
        chat=SimpleNamespace(completions=SimpleNamespace(create=create or AsyncMock())),
        models=SimpleNamespace(list=AsyncMock()),
        close=AsyncMock(),
    )


def make_docx_bytes(paragraphs: list[str], heading: str | None = None,
                    table: list[list[str]] | None = None) -> bytes:
    document = docx.Document()
    if heading:
        document.add_heading(heading, level=1)
    for text in paragraphs:
        document.add_paragraph(text)
    if table:
        tbl = document.add_table(rows=len(table), cols=len(table[0]))
        for r, row in enumerate(table):
            for c, value in enumerate(row):
                tbl.cell(r, c).text = value
    buf = io.BytesIO()
    document.save(buf)
    return buf.getvalue()


# === FIXTURES: Settings ===


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings without .env, with a dummy key and a temp upload dir."""
    return Settings(
        _env_file=None,
        openrouter_api_key="test-key",
        uploads_dir=tmp_path / "uploads",
        batch_timeout_s=30,
        max_concurrent_documents=4,
        vercel="",
        app_env="development",
    )


# === FIXTURES: Documents ===


@pytest.fixture
def sample_documents() -> list[Document]:
    """Three plain-text decisions."""
    return [
        Document(
            file_name=f"decision_{i}.txt",
            buffer=f"Decision {i}. The court satisfied the claim of LLC Alpha.".encode(),
        )
        for i in (1, 2, 3)
    ]


@pytest.fixture
def docx_bytes() -> bytes:
    return make_docx_bytes(
        ["The Arbitration Court of Moscow considered case A40-1/2025.", "The claim is satisfied."],
        heading="Decision",
        table=[["Party", "Role"], ["LLC Alpha", "Claimant"]],
    )


# === FIXTURES: Mock LLM ===


@pytest.fixture
def mock_llm() -> MockLLMClient:
    return MockLLMClient()


@pytest.fixture
def mock_llm_factory() -> type[MockLLMClient]:
    """The MockLLMClient class, for tests that need custom behaviour."""
    return MockLLMClient


# === FIXTURES: Fake OpenAI SDK objects ===


@pytest.fixture
def completion_factory():
    return make_completion


@pytest.fixture
def openai_handle_factory():
    return make_openai_handle


@pytest.fixture
def docx_factory():
    return make_docx_bytes


@pytest.fixture
def canned_content():
    """default_content(model, user_content), for fakes built outside MockLLMClient."""
    return default_content
