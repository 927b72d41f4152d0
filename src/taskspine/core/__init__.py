"""
spine-tasks core primitives: error hierarchy and settings.
"""

from taskspine.core.errors import (
    ConfigError,
    ErrorCategory,
    ErrorContext,
    OrchestrationError,
    TaskFailure,
    TaskSpineError,
    as_exception,
    categorize_error,
    failure_reason,
)
from taskspine.core.settings import TaskSpineSettings, clear_settings_cache, get_settings

__all__ = [
    # Errors
    "ErrorCategory",
    "ErrorContext",
    "TaskSpineError",
    "TaskFailure",
    "OrchestrationError",
    "ConfigError",
    "as_exception",
    "failure_reason",
    "categorize_error",
    # Settings
    "TaskSpineSettings",
    "get_settings",
    "clear_settings_cache",
]
