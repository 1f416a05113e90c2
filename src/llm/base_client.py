# src/llm/base_client.py - v2
"""Abstract LLM client interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from casereview.llm.models import APIResponse


class BaseLLMClient(ABC):
    """Unified interface for a single model invocation."""

    @abstractmethod
    async def call(
        self,
        system_prompt: str,
        user_content: str,
        model: str,
    ) -> APIResponse:
        """Send one system + user exchange and return content, usage and cost."""

    async def aclose(self) -> None:
        """Release network resources. Clients without any keep the default."""
        return None
