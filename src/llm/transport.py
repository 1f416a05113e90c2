# src/llm/transport.py - v1
"""Lazily constructed OpenRouter transport handle.

The openai.AsyncOpenAI handle is created on first use, at most once, under a
lock. The transport object itself is built at bootstrap and injected into the
call client, so there is no module-level mutable client.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any

from casereview.core.errors import ConfigurationError

if TYPE_CHECKING:
    from casereview.config.settings import Settings

logger = logging.getLogger(__name__)


def missing_key_message(settings: Settings) -> str:
    """Operator-facing message for a missing credential, by runtime environment."""
    if settings.is_hosted:
        env_name = settings.vercel_env or "Production"
        return (
            "OPENROUTER_API_KEY is not set in the hosting environment variables. "
            "Add it in the project settings (Settings -> Environment Variables) "
            f'for the "{env_name}" environment and redeploy.'
        )
    return (
        "OPENROUTER_API_KEY is not set. Create a .env file and add "
        "OPENROUTER_API_KEY=your_key"
    )


class OpenRouterTransport:
    """Process-wide, once-initialized handle to the OpenAI-compatible API.

    Args:
        settings: Application settings holding the credential and endpoint.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._client: Any = None
        self._lock = threading.Lock()

    @property
    def initialized(self) -> bool:
        return self._client is not None

    def get(self) -> Any:
        """Return the client handle, creating it on first use.

        Raises:
            ConfigurationError: If the API key is not configured.
        """
        client = self._client
        if client is not None:
            return client
        with self._lock:
            if self._client is None:
                self._client = self._create()
            return self._client

    def _create(self) -> Any:
        settings = self._settings
        if not settings.openrouter_api_key:
            logger.error(
                "OPENROUTER_API_KEY missing (hosted=%s, app_env=%s, vercel_env=%s)",
                settings.is_hosted, settings.app_env, settings.vercel_env or "-",
            )
            raise ConfigurationError(missing_key_message(settings))

        import openai

        client = openai.AsyncOpenAI(
            base_url=settings.openrouter_base_url,
            api_key=settings.openrouter_api_key,
            default_headers={
                "HTTP-Referer": settings.openrouter_http_referer,
                "X-Title": settings.openrouter_app_title,
            },
            timeout=settings.llm_request_timeout_s,
            max_retries=0,
        )
        logger.info(
            "OpenRouter client initialized (hosted=%s, base_url=%s)",
            settings.is_hosted, settings.openrouter_base_url,
        )
        return client

    async def aclose(self) -> None:
        """Close the underlying HTTP client if it was created."""
        with self._lock:
            client, self._client = self._client, None
        if client is not None:
            await client.close()
