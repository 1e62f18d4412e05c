from __future__ import annotations

import logging
import secrets
import typing as t

from docstore.cache import ExpiringCache, session_key
from docstore.monitoring import metrics

from .errors import GenerationError
from .models import Identity

_logger = logging.getLogger(__name__)


class SessionRegistry:
    """Maps opaque bearer tokens to authenticated identities.

    Sessions live in the shared expiring cache with a fixed TTL that is not
    refreshed on use. Expired, revoked and never-issued tokens all resolve to
    ``None`` so callers cannot tell them apart.
    """

    def __init__(
        self,
        cache: ExpiringCache,
        ttl_seconds: t.Optional[float] = None,
        token_bytes: int = 32,
    ) -> None:
        self._cache = cache
        self._ttl = ttl_seconds
        self._token_bytes = token_bytes

    def create_session(self, identity: Identity) -> str:
        try:
            token = secrets.token_hex(self._token_bytes)
        except (NotImplementedError, OSError) as exc:
            raise GenerationError() from exc
        self._cache.set(session_key(token), identity, self._ttl)
        metrics.sessions_total.inc(event="created")
        _logger.info("Session created user_id=%s token=%s...", identity.user_id, token[:6])
        return token

    def resolve(self, token: t.Optional[str]) -> t.Optional[Identity]:
        if not token:
            return None
        identity, found = self._cache.get(session_key(token))
        if not found:
            return None
        return identity

    def revoke(self, token: str) -> bool:
        if token:
            self._cache.delete(session_key(token))
        metrics.sessions_total.inc(event="revoked")
        return True
