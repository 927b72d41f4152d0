"""Settings for spine-tasks.

The runners have no tunables that affect scheduling; settings only govern
how much the library logs about what it does.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.

    - **Pydantic validation:** Type-checked when first loaded
    - **Environment-driven:** ``TASKSPINE_*`` env vars and ``.env`` files
    - **Sensible defaults:** Works out of the box for development

Examples:
    >>> from taskspine.core.settings import get_settings
    >>> get_settings().log_level
    'INFO'

Tags:
    settings, configuration, pydantic, environment, spine-tasks

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from taskspine.core.errors import ConfigError


class TaskSpineSettings(BaseSettings):
    """spine-tasks configuration.

    Fields
    ──────
    log_level            : Log level for the ``taskspine`` loggers
    log_format           : ``console`` or ``json`` renderer
    log_discarded        : Log outcomes that arrive after a runner already failed
    log_late_settlements : Log handle calls made after a unit already settled
    """

    model_config = SettingsConfigDict(
        env_prefix="TASKSPINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Logging ──────────────────────────────────────────────────
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    log_format: Literal["console", "json"] = Field(default="console")

    # ── Diagnostics ──────────────────────────────────────────────
    log_discarded: bool = Field(
        default=True,
        description="Log results and failures discarded after a runner already failed",
    )
    log_late_settlements: bool = Field(
        default=True,
        description="Log resolve/reject calls ignored because the unit already settled",
    )

    @field_validator("log_level", "log_format", mode="before")
    @classmethod
    def _normalize_case(cls, value: object) -> object:
        if not isinstance(value, str):
            return value
        return value.upper() if value.lower() in {"debug", "info", "warning", "error"} else value.lower()


# ── Settings factory with caching ────────────────────────────────────────

_settings_cache: dict[str, TaskSpineSettings] = {}


def get_settings(*, _force_reload: bool = False) -> TaskSpineSettings:
    """Load, validate, and cache a :class:`TaskSpineSettings` instance.

    Parameters
    ----------
    _force_reload:
        Bypass cache and reload from the environment.

    Raises
    ------
    ConfigError
        A ``TASKSPINE_*`` value failed validation.
    """
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]

    try:
        settings = TaskSpineSettings()
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise ConfigError(f"Invalid settings: {fields}", cause=e) from e
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Drop the cached settings (tests, reconfiguration)."""
    _settings_cache.clear()
