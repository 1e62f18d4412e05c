"""Unit tests for SessionRegistry."""

import re
from unittest.mock import patch

import pytest

from docstore.core.errors import GenerationError
from docstore.core.session_registry import SessionRegistry
from docstore.monitoring import metrics


class TestSessionRegistry:
    def test_create_and_resolve(self, registry, owner):
        token = registry.create_session(owner)

        assert re.fullmatch(r"[0-9a-f]{64}", token)
        assert registry.resolve(token) == owner
        assert metrics.sessions_total.get(event="created") == 1

    def test_tokens_are_unique_per_session(self, registry, owner):
        tokens = {registry.create_session(owner) for _ in range(50)}
        assert len(tokens) == 50
        for token in tokens:
            assert registry.resolve(token) == owner

    def test_token_length_follows_token_bytes(self, cache, owner):
        registry = SessionRegistry(cache, token_bytes=16)
        assert len(registry.create_session(owner)) == 32

    def test_session_is_not_refreshed_on_use(self, registry, owner, clock):
        token = registry.create_session(owner)
        clock.advance(200)
        assert registry.resolve(token) == owner
        clock.advance(100)
        assert registry.resolve(token) is None

    def test_custom_session_ttl(self, cache, owner, clock):
        registry = SessionRegistry(cache, ttl_seconds=30)
        token = registry.create_session(owner)
        clock.advance(30)
        assert registry.resolve(token) is None

    def test_revoke(self, registry, owner):
        token = registry.create_session(owner)
        assert registry.revoke(token) is True
        assert registry.resolve(token) is None

    def test_revoke_is_idempotent(self, registry, owner):
        token = registry.create_session(owner)
        assert registry.revoke(token) is True
        assert registry.revoke(token) is True
        assert registry.revoke("never-issued") is True

    def test_revoke_only_affects_that_token(self, registry, owner, stranger):
        mine = registry.create_session(owner)
        theirs = registry.create_session(stranger)
        registry.revoke(mine)
        assert registry.resolve(theirs) == stranger

    @pytest.mark.parametrize("token", ["", None])
    def test_empty_token_resolves_to_none(self, registry, token):
        assert registry.resolve(token) is None

    def test_unknown_expired_and_revoked_are_indistinguishable(self, registry, owner, clock):
        revoked = registry.create_session(owner)
        registry.revoke(revoked)
        expired = registry.create_session(owner)
        clock.advance(301)

        results = [registry.resolve(tok) for tok in (revoked, expired, "f" * 64)]

        assert results == [None, None, None]

    def test_generation_failure(self, registry, owner):
        with patch("docstore.core.session_registry.secrets.token_hex", side_effect=OSError("no entropy")):
            with pytest.raises(GenerationError) as excinfo:
                registry.create_session(owner)

        assert excinfo.value.status == 500
        assert metrics.sessions_total.get(event="created") == 0
