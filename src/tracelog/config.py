"""Configuration loading and validation.

This module is responsible for:

- Loading `.env` into the process environment (without overriding existing vars).
- Converting environment variables into a strongly-typed Pydantic model.
- Resolving the minimum severity a default sink outputs.
"""

from __future__ import annotations

import os

import dotenv
from pydantic import BaseModel, Field, field_validator

from .models import LogLevel, is_log_level

# `warning` is accepted as an alias for people used to the stdlib level names.
_LEVEL_ALIASES = {"warning": "warn"}


def _get_env_str(name: str, default: str | None = None) -> str | None:
    """Read an optional env var, treating blank values as unset."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip()


def _normalize_level(name: str, raw: str | None) -> str | None:
    if raw is None:
        return None
    normalized = raw.strip().lower()
    normalized = _LEVEL_ALIASES.get(normalized, normalized)
    if not is_log_level(normalized):
        raise ValueError(f"{name} must be one of debug/info/warn/error. Got: {raw!r}")
    return normalized


class LoggerConfig(BaseModel):
    """Configuration for default log sinks."""

    level: LogLevel | None = Field(default=None, description="Explicit minimum severity override")
    environment: str = Field(default="production", description="Deployment mode (e.g. local, staging, production)")

    @field_validator("level", mode="before")
    def validate_level(cls, v: str | None) -> str | None:
        """Normalize case and aliases before the literal check."""
        if v is None or not isinstance(v, str):
            return v
        return _normalize_level("LOGGER_LEVEL", v)

    @property
    def is_local(self) -> bool:
        return self.environment.strip().lower() == "local"

    @property
    def threshold(self) -> LogLevel:
        """Minimum severity to output: explicit override, else debug locally and info elsewhere."""
        if self.level is not None:
            return self.level
        return "debug" if self.is_local else "info"


def load_config(*, strict: bool = True) -> LoggerConfig:
    """Load logger configuration from environment variables.

    Notes:
    - Calls `dotenv.load_dotenv()` so local `.env` values are visible to the process.
    - `LOGGER_LEVEL` overrides the threshold; otherwise `APP_ENV=local` selects
      `debug` and anything else `info`.
    - Raises `ValueError` with an actionable message for an unknown level, unless
      `strict=False`, in which case the unknown level is ignored.
    """
    # Load variables from `.env` into the process environment (without overriding
    # already-set env vars).
    dotenv.load_dotenv()

    environment = _get_env_str("APP_ENV", "production")
    try:
        return LoggerConfig(level=_get_env_str("LOGGER_LEVEL"), environment=environment)
    except ValueError:
        if strict:
            raise
        return LoggerConfig(environment=environment)
