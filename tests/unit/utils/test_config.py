"""Unit tests for AppConfig."""

import pytest

from docstore.utils.config import AppConfig, ConfigError


class TestFromEnv:
    def test_defaults(self):
        config = AppConfig.from_env({})

        assert config.server.admin_token is None
        assert config.server.port == 8080
        assert config.storage.type == "memory"
        assert config.cache.default_ttl_seconds == 300.0
        assert config.cache.sweep_interval_seconds == 600.0

    def test_admin_token_fallback(self):
        assert AppConfig.from_env({"ADMIN_TOKEN": "a"}).server.admin_token == "a"
        env = {"ADMIN_TOKEN": "a", "DOCSTORE_ADMIN_TOKEN": "b"}
        assert AppConfig.from_env(env).server.admin_token == "b"

    def test_redis_url_selects_redis(self):
        config = AppConfig.from_env({"DATABASE_URL": "redis://cache:6379/1", "DOCSTORE_REDIS_PREFIX": "ds"})

        assert config.storage.type == "redis"
        assert config.storage.connection_string == "redis://cache:6379/1"
        assert config.storage.prefix == "ds"

    def test_explicit_storage_overrides_url(self):
        env = {"DOCSTORE_STORAGE_URL": "redis://x", "DOCSTORE_STORAGE": "memory"}
        assert AppConfig.from_env(env).storage.type == "memory"

    def test_numbers(self):
        env = {"DOCSTORE_PORT": "9000", "DOCSTORE_CACHE_TTL": "60", "DOCSTORE_SWEEP_INTERVAL": "120"}
        config = AppConfig.from_env(env)

        assert config.server.port == 9000
        assert config.cache.default_ttl_seconds == 60.0
        assert config.cache.sweep_interval_seconds == 120.0

    @pytest.mark.parametrize(
        "env",
        [
            {"DATABASE_URL": "postgres://user:pw@db:5432/docs"},
            {"DOCSTORE_STORAGE_URL": "mysql://db/docs"},
            {"DATABASE_URL": "localhost:6379"},
        ],
    )
    def test_non_redis_url_is_rejected(self, env):
        with pytest.raises(ConfigError, match="scheme"):
            AppConfig.from_env(env)

    @pytest.mark.parametrize("url", ["redis://h:6379/0", "rediss://h:6380/0", "unix:///tmp/redis.sock"])
    def test_redis_schemes_accepted(self, url):
        config = AppConfig.from_env({"DATABASE_URL": url, "DOCSTORE_ADMIN_TOKEN": "secret"})
        assert config.validate().storage.type == "redis"

    def test_bad_number(self):
        with pytest.raises(ConfigError, match="DOCSTORE_PORT"):
            AppConfig.from_env({"DOCSTORE_PORT": "eighty"})


class TestValidate:
    def _config(self, **server):
        config = AppConfig.from_dict({"server": {"admin_token": "secret", **server}})
        return config

    def test_valid(self):
        config = self._config()
        assert config.validate() is config

    def test_missing_admin_token(self):
        with pytest.raises(ConfigError, match="admin token"):
            AppConfig().validate()

    def test_sweep_interval_not_longer_than_ttl(self):
        config = self._config()
        config.cache.sweep_interval_seconds = config.cache.default_ttl_seconds
        with pytest.raises(ConfigError):
            config.validate()

    def test_unknown_storage(self):
        config = self._config()
        config.storage.type = "sqlite"
        with pytest.raises(ConfigError):
            config.validate()

    def test_redis_needs_connection_string(self):
        config = self._config()
        config.storage.type = "redis"
        with pytest.raises(ConfigError):
            config.validate()

    def test_redis_needs_redis_url(self):
        config = self._config()
        config.storage.type = "redis"
        config.storage.connection_string = "postgres://db/docs"
        with pytest.raises(ConfigError, match="redis://"):
            config.validate()

    def test_from_dict_nested_sections(self):
        config = AppConfig.from_dict(
            {
                "cache": {"default_ttl_seconds": 10, "sweep_interval_seconds": 20},
                "session": {"ttl_seconds": 5},
                "resilience": {"circuit_breaker_enabled": False},
            }
        )
        assert config.cache.default_ttl_seconds == 10
        assert config.session.ttl_seconds == 5
        assert config.resilience.circuit_breaker_enabled is False
        assert config.server.admin_token is None
