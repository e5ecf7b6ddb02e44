"""Application configuration helpers."""

from __future__ import annotations

from .backend import (
    APPLICATION_DOCUMENTS_BUCKET,
    STATUS_NOTIFICATION_FUNCTION,
    BackendConfig,
    SessionContext,
    default_backend_resilience,
    get_backend_config,
)
from .env import optional_env_var, require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging

__all__ = [
    "APPLICATION_DOCUMENTS_BUCKET",
    "STATUS_NOTIFICATION_FUNCTION",
    "BackendConfig",
    "ConfigurationError",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "SessionContext",
    "configure_logging",
    "default_backend_resilience",
    "get_backend_config",
    "optional_env_var",
    "require_env_var",
    "require_env_vars",
]
