from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional


REDIS_URL_SCHEMES = ("redis://", "rediss://", "unix://")


class ConfigError(ValueError):
    """Raised when the service cannot start with the given configuration."""


@dataclass
class CacheConfig:
    default_ttl_seconds: float = 300.0
    sweep_interval_seconds: float = 600.0
    sweep_batch_size: int = 500


@dataclass
class SessionConfig:
    ttl_seconds: Optional[float] = None  # falls back to the cache default
    token_bytes: int = 32


@dataclass
class ResilienceConfig:
    circuit_breaker_enabled: bool = True
    failure_threshold: int = 5
    reset_timeout_seconds: float = 30.0
    retry_max_attempts: int = 3
    retry_backoff_ms: List[int] = dataclasses.field(default_factory=lambda: [100, 500, 2000])


@dataclass
class StorageConfig:
    type: str = "memory"  # memory | redis
    connection_string: Optional[str] = None
    prefix: str = "docstore"


@dataclass
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 8080
    admin_token: Optional[str] = None
    max_upload_bytes: int = 10 << 20


@dataclass
class AppConfig:
    storage: StorageConfig = dataclasses.field(default_factory=StorageConfig)
    cache: CacheConfig = dataclasses.field(default_factory=CacheConfig)
    session: SessionConfig = dataclasses.field(default_factory=SessionConfig)
    resilience: ResilienceConfig = dataclasses.field(default_factory=ResilienceConfig)
    server: ServerConfig = dataclasses.field(default_factory=ServerConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppConfig":
        def build(dc_cls, key):
            values = data.get(key, {})
            return dc_cls(**values)

        return cls(
            storage=build(StorageConfig, "storage"),
            cache=build(CacheConfig, "cache"),
            session=build(SessionConfig, "session"),
            resilience=build(ResilienceConfig, "resilience"),
            server=build(ServerConfig, "server"),
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AppConfig":
        env = os.environ if environ is None else environ
        config = cls()
        config.server.admin_token = env.get("DOCSTORE_ADMIN_TOKEN") or env.get("ADMIN_TOKEN") or None
        config.server.host = env.get("DOCSTORE_HOST", config.server.host)
        config.server.port = _number(env, "DOCSTORE_PORT", int, config.server.port)

        url = env.get("DOCSTORE_STORAGE_URL") or env.get("DATABASE_URL")
        if url:
            config.storage.connection_string = url
            if not url.startswith(REDIS_URL_SCHEMES):
                scheme = url.split(":", 1)[0]
                raise ConfigError(f"unsupported storage URL scheme {scheme!r}; expected redis, rediss or unix")
            config.storage.type = "redis"
        config.storage.type = env.get("DOCSTORE_STORAGE", config.storage.type)
        config.storage.prefix = env.get("DOCSTORE_REDIS_PREFIX", config.storage.prefix)

        config.cache.default_ttl_seconds = _number(env, "DOCSTORE_CACHE_TTL", float, config.cache.default_ttl_seconds)
        config.cache.sweep_interval_seconds = _number(
            env, "DOCSTORE_SWEEP_INTERVAL", float, config.cache.sweep_interval_seconds
        )
        return config

    def validate(self) -> "AppConfig":
        if not self.server.admin_token:
            raise ConfigError("an admin token must be configured (DOCSTORE_ADMIN_TOKEN or ADMIN_TOKEN)")
        if self.cache.sweep_interval_seconds <= self.cache.default_ttl_seconds:
            raise ConfigError("cache sweep interval must be longer than the default TTL")
        if self.storage.type not in ("memory", "redis"):
            raise ConfigError(f"unknown storage type: {self.storage.type}")
        if self.storage.type == "redis" and not self.storage.connection_string:
            raise ConfigError("redis storage requires a connection string")
        if self.storage.type == "redis" and not self.storage.connection_string.startswith(REDIS_URL_SCHEMES):
            raise ConfigError("redis storage requires a redis://, rediss:// or unix:// URL")
        return self


def _number(env: Mapping[str, str], name: str, cast: Any, default: Any) -> Any:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from exc
