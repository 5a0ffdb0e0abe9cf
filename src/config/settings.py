# src/config/settings.py
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for approval modes, the active testing profile and
logging. Cross-field rules raise ConfigurationError.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from inspectorbroker.logging.handlers import parse_size


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Broker settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Approval ===
    completion_approval_mode: Literal["ask", "auto", "deny"] = "ask"
    elicitation_approval_mode: Literal["ask", "auto", "deny"] = "ask"
    testing_profile_id: str = ""

    # === Elicitation ===
    elicitation_server_name: str = "MCP Server"

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 5

    # --- Validators ---

    @field_validator("completion_approval_mode", "elicitation_approval_mode", mode="before")
    @classmethod
    def normalize_mode(cls, v: object) -> object:  # noqa: N805
        """Accept ASK/Auto/etc. from env files."""
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_level(cls, v: object) -> object:  # noqa: N805
        return v.strip().upper() if isinstance(v, str) else v

    @field_validator("log_retention")
    @classmethod
    def validate_retention(cls, v: int) -> int:  # noqa: N805
        if v < 0:
            raise ValueError("log_retention must be >= 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Cross-field rules."""
        errors: list[str] = []

        if not self.elicitation_server_name.strip():
            errors.append("ELICITATION_SERVER_NAME must not be blank")

        try:
            parse_size(self.log_rotation)
        except ValueError as exc:
            errors.append(f"LOG_ROTATION: {exc}")

        # A profile only matters in auto mode
        if self.testing_profile_id and "auto" not in (
            self.completion_approval_mode,
            self.elicitation_approval_mode,
        ):
            errors.append(
                "TESTING_PROFILE_ID is set but no approval mode is 'auto'"
            )

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
