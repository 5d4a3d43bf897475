"""
Unit tests for environment-driven settings and fallback reporting.
"""

from pathlib import Path

from workflows.common.fallback import FallbackContext, create_fallback_context, wrap_fallback
from workflows.io.config_store import get_settings, is_dev_mode, reload_settings


class TestSettings:
    def test_defaults(self):
        settings = reload_settings()

        assert settings.culture == "en-us"
        assert settings.state_path is None
        assert settings.min_lead_hours == 1.0
        assert settings.fallback_diagnostics is False
        assert settings.log_level == "INFO"

    def test_environment_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("PROMPT_BOT_CULTURE", " FR-FR ")
        monkeypatch.setenv("PROMPT_BOT_STATE_PATH", str(tmp_path / "state.json"))
        monkeypatch.setenv("PROMPT_BOT_MIN_LEAD_HOURS", "2.5")
        monkeypatch.setenv("PROMPT_BOT_FALLBACK_DIAGNOSTICS", "true")
        monkeypatch.setenv("LOG_LEVEL", "warning")

        settings = reload_settings()

        assert settings.culture == "fr-fr"
        assert settings.state_path == Path(tmp_path / "state.json")
        assert settings.min_lead_hours == 2.5
        assert settings.fallback_diagnostics is True
        assert settings.log_level == "WARNING"

    def test_bad_lead_hours_falls_back_to_default(self, monkeypatch):
        monkeypatch.setenv("PROMPT_BOT_MIN_LEAD_HOURS", "soon")

        assert reload_settings().min_lead_hours == 1.0

    def test_settings_are_cached_until_reload(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("PROMPT_BOT_CULTURE", "de-de")

        assert get_settings() is first
        assert reload_settings().culture == "de-de"

    def test_dev_mode_lowers_default_log_level(self, monkeypatch):
        monkeypatch.setenv("ENV", "dev")

        assert is_dev_mode() is True
        assert reload_settings().log_level == "DEBUG"


class TestFallback:
    def test_context_records_error_type(self):
        ctx = create_fallback_context(
            "validation.date", "recognizer_failed", question="date", error=KeyError("values")
        )

        assert isinstance(ctx, FallbackContext)
        assert ctx.to_dict()["error"] == "KeyError: 'values'"
        assert ctx.to_dict()["question"] == "date"
        assert ctx.timestamp.endswith("Z")

    def test_plain_message_by_default(self, caplog):
        ctx = create_fallback_context("api.messages", "turn_failed", conversation_id="c1")

        with caplog.at_level("WARNING"):
            message = wrap_fallback("Something went wrong.", ctx)

        assert message == "Something went wrong."
        assert "[FALLBACK] source=api.messages trigger=turn_failed" in caplog.text

    def test_dev_info_on_request(self):
        ctx = create_fallback_context("api.messages", "turn_failed")

        message = wrap_fallback("Something went wrong.", ctx, include_dev_info=True)

        assert message == "Something went wrong.\n\n[DEV] Fallback: api.messages | turn_failed"
