# tests/unit/config/test_settings.py
"""Tests for config/settings.py: typed Settings and validation rules."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from inspectorbroker.config.settings import ConfigurationError, Settings, load_settings


class TestSettingsDefaults:
    def test_default_modes(self):
        s = Settings(_env_file=None)
        assert s.completion_approval_mode == "ask"
        assert s.elicitation_approval_mode == "ask"
        assert s.testing_profile_id == ""

    def test_default_server_name(self):
        assert Settings(_env_file=None).elicitation_server_name == "MCP Server"

    def test_default_logging(self):
        s = Settings(_env_file=None)
        assert s.log_level == "INFO"
        assert s.log_format == "text"
        assert s.log_file is None
        assert s.log_rotation == "10MB"


class TestSettingsNormalization:
    def test_mode_case_insensitive(self):
        s = Settings(_env_file=None, completion_approval_mode=" AUTO ")
        assert s.completion_approval_mode == "auto"

    def test_level_uppercased(self):
        assert Settings(_env_file=None, log_level="debug").log_level == "DEBUG"

    def test_unknown_mode_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, elicitation_approval_mode="sometimes")

    def test_negative_retention(self):
        with pytest.raises(ValidationError, match="log_retention"):
            Settings(_env_file=None, log_retention=-1)


class TestSettingsValidation:
    def test_profile_without_auto_mode(self):
        with pytest.raises(ConfigurationError, match="TESTING_PROFILE_ID"):
            Settings(_env_file=None, testing_profile_id="auto-approve")

    def test_profile_with_one_auto_mode(self):
        s = Settings(
            _env_file=None,
            testing_profile_id="auto-approve",
            elicitation_approval_mode="auto",
        )
        assert s.testing_profile_id == "auto-approve"

    def test_blank_server_name(self):
        with pytest.raises(ConfigurationError, match="ELICITATION_SERVER_NAME"):
            Settings(_env_file=None, elicitation_server_name="   ")

    def test_bad_rotation(self):
        with pytest.raises(ConfigurationError, match="LOG_ROTATION"):
            Settings(_env_file=None, log_rotation="huge")

    def test_errors_are_joined(self):
        with pytest.raises(ConfigurationError) as exc_info:
            Settings(_env_file=None, elicitation_server_name="", log_rotation="huge")
        assert "; " in str(exc_info.value)


class TestEnvironment:
    def test_reads_env_vars(self, monkeypatch):
        monkeypatch.setenv("COMPLETION_APPROVAL_MODE", "deny")
        monkeypatch.setenv("ELICITATION_SERVER_NAME", "Weather")
        s = Settings(_env_file=None)
        assert s.completion_approval_mode == "deny"
        assert s.elicitation_server_name == "Weather"

    def test_reads_env_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text(
            "ELICITATION_APPROVAL_MODE=Auto\nTESTING_PROFILE_ID=auto-approve\nUNRELATED=1\n",
            encoding="utf-8",
        )
        s = Settings(_env_file=env_file)
        assert s.elicitation_approval_mode == "auto"
        assert s.testing_profile_id == "auto-approve"

    def test_load_settings_overrides(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("COMPLETION_APPROVAL_MODE", "deny")
        s = load_settings(completion_approval_mode="auto")
        assert s.completion_approval_mode == "auto"
