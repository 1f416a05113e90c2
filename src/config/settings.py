# src/config/settings.py - v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for deployment-specific settings: provider
credential, per-step model routing, prompt location, batch limits,
upload storage and logging.
"""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Literal

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from casereview.core.errors import ConfigurationError

_PACKAGED_PROMPTS_DIR = Path(__file__).resolve().parent.parent / "prompts" / "templates"


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === PROVIDER (OpenRouter, OpenAI-compatible) ===
    # Read lazily at the first model call, never at construction.
    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    openrouter_http_referer: str = "https://github.com/apelevin/review"
    openrouter_app_title: str = "Legal Review Service"

    # === RUNTIME ENVIRONMENT ===
    app_env: Literal["development", "production"] = "development"
    vercel: str = ""
    vercel_env: str = ""

    # === LLM ===
    # Per-step model override (empty = step default from config/steps.py)
    llm_step_0: str = ""
    llm_step_1: str = ""
    llm_step_3: str = ""
    llm_step_4: str = ""
    llm_temperature: float = 0.7
    llm_request_timeout_s: float = 120.0
    llm_max_retries: int = 0

    # === PRICING ===
    pricing_default_model: str = "x-ai/grok-4.1-fast"

    # === PROMPTS ===
    prompts_dir: Path = _PACKAGED_PROMPTS_DIR
    prompt_system_marker: str = "SYSTEM PROMPT"
    prompt_user_marker: str = "USER PROMPT"
    prompt_section_terminator: str = "---"

    # === BATCH ===
    batch_timeout_s: float = 300.0
    max_concurrent_documents: int = 4

    # === UPLOADS ===
    uploads_dir: Path | None = None
    upload_allowed_extensions: str = ".docx"

    # === OUTPUT ===
    calls_log_path: Path | None = None

    # === LOGGING ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate value ranges and cross-field consistency."""
        errors: list[str] = []

        if not 0.0 <= self.llm_temperature <= 2.0:
            errors.append("LLM_TEMPERATURE must be within [0, 2]")
        if self.llm_request_timeout_s <= 0:
            errors.append("LLM_REQUEST_TIMEOUT_S must be > 0")
        if self.llm_max_retries < 0:
            errors.append("LLM_MAX_RETRIES must be >= 0")
        if self.batch_timeout_s <= 0:
            errors.append("BATCH_TIMEOUT_S must be > 0")
        if self.max_concurrent_documents < 1:
            errors.append("MAX_CONCURRENT_DOCUMENTS must be >= 1")

        system_marker = self.prompt_system_marker.strip()
        user_marker = self.prompt_user_marker.strip()
        if not system_marker or not user_marker:
            errors.append("Prompt section markers must not be empty")
        elif system_marker == user_marker:
            errors.append("PROMPT_SYSTEM_MARKER and PROMPT_USER_MARKER must differ")

        if not self.upload_allowed_extensions_list:
            errors.append("UPLOAD_ALLOWED_EXTENSIONS must list at least one extension")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def is_hosted(self) -> bool:
        """True when running on the hosted (serverless) deployment."""
        return bool(self.vercel) or self.app_env == "production"

    @property
    def resolved_uploads_dir(self) -> Path:
        """Upload directory; hosted deployments only allow writes under tmp."""
        if self.uploads_dir is not None:
            return Path(self.uploads_dir).expanduser()
        if self.is_hosted:
            return Path(tempfile.gettempdir()) / "uploads"
        return Path.cwd() / "uploads"

    @property
    def upload_allowed_extensions_list(self) -> list[str]:
        """Parse comma-separated extensions, normalized to lowercase with a dot."""
        result: list[str] = []
        for ext in self.upload_allowed_extensions.split(","):
            ext = ext.strip().lower()
            if not ext:
                continue
            result.append(ext if ext.startswith(".") else f".{ext}")
        return result

    def step_model_override(self, step: int) -> str:
        """Return the configured model override for a step, or ''."""
        return getattr(self, f"llm_step_{step}", "").strip()


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-batch config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
