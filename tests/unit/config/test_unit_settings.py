# tests/unit/config/test_unit_settings.py - v1
"""Tests for config/settings.py: defaults, validation, helpers."""

from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from casereview.config.settings import Settings, load_settings
from casereview.core.errors import ConfigurationError


class TestSettingsDefaults:
    def test_llm_defaults(self):
        s = Settings(_env_file=None)
        assert s.llm_temperature == 0.7
        assert s.llm_max_retries == 0

    def test_batch_defaults(self):
        s = Settings(_env_file=None)
        assert s.batch_timeout_s == 300
        assert s.max_concurrent_documents == 4

    def test_pricing_default_model(self):
        assert Settings(_env_file=None).pricing_default_model == "x-ai/grok-4.1-fast"

    def test_prompts_dir_is_packaged(self):
        s = Settings(_env_file=None)
        assert (s.prompts_dir / "step0_decision_digest.md").is_file()

    def test_missing_key_does_not_fail_construction(self):
        s = Settings(_env_file=None, openrouter_api_key="")
        assert s.openrouter_api_key == ""


class TestSettingsValidation:
    def test_temperature_range(self):
        with pytest.raises(ConfigurationError, match="TEMPERATURE"):
            Settings(_env_file=None, llm_temperature=3.0)

    def test_concurrency_positive(self):
        with pytest.raises(ConfigurationError, match="MAX_CONCURRENT_DOCUMENTS"):
            Settings(_env_file=None, max_concurrent_documents=0)

    def test_timeout_positive(self):
        with pytest.raises(ConfigurationError, match="BATCH_TIMEOUT_S"):
            Settings(_env_file=None, batch_timeout_s=0)

    def test_markers_must_differ(self):
        with pytest.raises(ConfigurationError, match="must differ"):
            Settings(_env_file=None, prompt_system_marker="X", prompt_user_marker="X")

    def test_markers_not_empty(self):
        with pytest.raises(ConfigurationError, match="must not be empty"):
            Settings(_env_file=None, prompt_user_marker="  ")

    def test_errors_are_collected(self):
        with pytest.raises(ConfigurationError) as exc_info:
            Settings(_env_file=None, llm_temperature=-1, llm_max_retries=-1)
        assert "TEMPERATURE" in str(exc_info.value)
        assert "MAX_RETRIES" in str(exc_info.value)


class TestSettingsHelpers:
    def test_is_hosted_from_vercel_marker(self):
        assert Settings(_env_file=None, vercel="1").is_hosted is True
        assert Settings(_env_file=None, vercel="", app_env="development").is_hosted is False

    def test_is_hosted_in_production(self):
        assert Settings(_env_file=None, vercel="", app_env="production").is_hosted is True

    def test_uploads_dir_local(self):
        s = Settings(_env_file=None, vercel="", app_env="development")
        assert s.resolved_uploads_dir == Path.cwd() / "uploads"

    def test_uploads_dir_hosted(self):
        s = Settings(_env_file=None, vercel="1")
        assert s.resolved_uploads_dir == Path(tempfile.gettempdir()) / "uploads"

    def test_uploads_dir_explicit(self, tmp_path):
        s = Settings(_env_file=None, uploads_dir=tmp_path)
        assert s.resolved_uploads_dir == tmp_path

    def test_allowed_extensions_parsing(self):
        s = Settings(_env_file=None, upload_allowed_extensions="DOCX, .txt,")
        assert s.upload_allowed_extensions_list == [".docx", ".txt"]

    def test_step_model_override(self):
        s = Settings(_env_file=None, llm_step_1=" openai/gpt-5 ")
        assert s.step_model_override(1) == "openai/gpt-5"
        assert s.step_model_override(0) == ""
        assert s.step_model_override(2) == ""

    def test_load_settings_overrides(self):
        s = load_settings(_env_file=None, batch_timeout_s=12)
        assert s.batch_timeout_s == 12
