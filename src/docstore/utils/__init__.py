"""Configuration, resilience and credential helpers."""

from .config import AppConfig, CacheConfig, ConfigError, ResilienceConfig, ServerConfig, SessionConfig, StorageConfig
from .resilience import CircuitBreaker, CircuitBreakerConfig, CircuitOpenError, CircuitState, with_retries
from .security import hash_password, validate_login_format, validate_password_strength, verify_password

__all__ = [
    "AppConfig",
    "CacheConfig",
    "ConfigError",
    "ResilienceConfig",
    "ServerConfig",
    "SessionConfig",
    "StorageConfig",
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitOpenError",
    "CircuitState",
    "with_retries",
    "hash_password",
    "verify_password",
    "validate_login_format",
    "validate_password_strength",
]
