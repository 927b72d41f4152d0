"""Tests for core.settings module.

Covers:
- TaskSpineSettings defaults
- Environment variable override and case normalization
- Validation errors
- get_settings caching
"""

import pytest
from pydantic import ValidationError

from taskspine.core.errors import ConfigError, ErrorCategory
from taskspine.core.settings import TaskSpineSettings, clear_settings_cache, get_settings


class TestTaskSpineSettingsDefaults:
    def test_default_log_level(self):
        assert TaskSpineSettings().log_level == "INFO"

    def test_default_log_format(self):
        assert TaskSpineSettings().log_format == "console"

    def test_diagnostics_on_by_default(self):
        s = TaskSpineSettings()
        assert s.log_discarded is True
        assert s.log_late_settlements is True


class TestTaskSpineSettingsEnvOverride:
    def test_log_level_from_env(self, monkeypatch):
        monkeypatch.setenv("TASKSPINE_LOG_LEVEL", "DEBUG")
        assert TaskSpineSettings().log_level == "DEBUG"

    def test_log_level_case_insensitive(self, monkeypatch):
        monkeypatch.setenv("TASKSPINE_LOG_LEVEL", "warning")
        assert TaskSpineSettings().log_level == "WARNING"

    def test_log_format_case_insensitive(self, monkeypatch):
        monkeypatch.setenv("TASKSPINE_LOG_FORMAT", "JSON")
        assert TaskSpineSettings().log_format == "json"

    def test_bool_from_env(self, monkeypatch):
        monkeypatch.setenv("TASKSPINE_LOG_DISCARDED", "false")
        assert TaskSpineSettings().log_discarded is False

    def test_unprefixed_env_ignored(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        assert TaskSpineSettings().log_level == "INFO"

    def test_invalid_level_rejected(self, monkeypatch):
        monkeypatch.setenv("TASKSPINE_LOG_LEVEL", "LOUD")
        with pytest.raises(ValidationError):
            TaskSpineSettings()

    def test_invalid_format_rejected(self):
        with pytest.raises(ValidationError):
            TaskSpineSettings(log_format="xml")


class TestGetSettings:
    def test_cached(self):
        assert get_settings() is get_settings()

    def test_force_reload(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("TASKSPINE_LOG_LEVEL", "ERROR")
        assert get_settings().log_level == first.log_level
        reloaded = get_settings(_force_reload=True)
        assert reloaded is not first
        assert reloaded.log_level == "ERROR"

    def test_clear_cache(self, monkeypatch):
        first = get_settings()
        clear_settings_cache()
        monkeypatch.setenv("TASKSPINE_LOG_FORMAT", "json")
        second = get_settings()
        assert second is not first
        assert second.log_format == "json"

    def test_invalid_env_raises_config_error(self, monkeypatch):
        monkeypatch.setenv("TASKSPINE_LOG_LEVEL", "LOUD")
        with pytest.raises(ConfigError) as exc_info:
            get_settings()
        assert "log_level" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, ValidationError)
        assert exc_info.value.category == ErrorCategory.CONFIG
