from __future__ import annotations

import base64
import json
import logging
import time
import typing as t
from datetime import datetime

from redis.asyncio import Redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from docstore.core.errors import DuplicateLoginError
from docstore.core.models import Document, DocumentSummary, User, sort_and_limit
from docstore.monitoring import metrics
from docstore.utils.resilience import CircuitBreaker, CircuitBreakerConfig, with_retries

from .base import StorageAdapter

_logger = logging.getLogger(__name__)

T = t.TypeVar("T")

_TRANSIENT = (RedisConnectionError, RedisTimeoutError)


def document_to_json(document: Document) -> str:
    payload: t.Any = document.payload
    if document.is_file:
        payload = base64.b64encode(bytes(payload)).decode("ascii")
    return json.dumps(
        {
            "id": document.id,
            "owner_id": document.owner_id,
            "name": document.name,
            "mime": document.mime,
            "file": document.is_file,
            "public": document.is_public,
            "grant": list(document.grant),
            "created_at": document.created_at.isoformat(),
            "payload": payload,
        }
    )


def document_from_json(raw: t.Union[str, bytes]) -> Document:
    data = json.loads(raw)
    payload = data["payload"]
    if data["file"]:
        payload = base64.b64decode(payload)
    return Document(
        id=data["id"],
        owner_id=int(data["owner_id"]),
        name=data["name"],
        mime=data["mime"],
        is_file=bool(data["file"]),
        is_public=bool(data["public"]),
        grant=tuple(data.get("grant") or ()),
        payload=payload,
        created_at=datetime.fromisoformat(data["created_at"]),
    )


class RedisStorage(StorageAdapter):
    """Redis-backed storage adapter.

    - Users are JSON strings at `{prefix}:user:{id}`; ids come from `INCR {prefix}:user_seq`
    - Logins are claimed with `SET NX` at `{prefix}:login:{login}` -> user id
    - Documents are JSON strings at `{prefix}:doc:{id}` (file payloads base64-encoded)
    - Each owner's document ids are kept in the set `{prefix}:owner_docs:{owner_id}`

    Transient connection errors are retried with backoff behind a circuit breaker.
    """

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        *,
        prefix: str = "docstore",
        client: t.Optional[t.Any] = None,
        retry_attempts: int = 3,
        retry_backoff_ms: t.Optional[t.List[int]] = None,
        circuit_breaker: t.Optional[CircuitBreaker] = None,
        use_circuit_breaker: bool = True,
    ) -> None:
        self._url = url
        self._prefix = prefix.rstrip(":")
        self._redis = client if client is not None else Redis.from_url(url, decode_responses=True)
        self._retry_attempts = retry_attempts
        self._retry_backoff_ms = retry_backoff_ms or [100, 500, 2000]
        self._breaker: t.Optional[CircuitBreaker] = None
        if use_circuit_breaker:
            self._breaker = circuit_breaker or CircuitBreaker(CircuitBreakerConfig(), name="redis")

    def _user_key(self, user_id: int) -> str:
        return f"{self._prefix}:user:{user_id}"

    def _login_key(self, login: str) -> str:
        return f"{self._prefix}:login:{login}"

    def _seq_key(self) -> str:
        return f"{self._prefix}:user_seq"

    def _doc_key(self, document_id: str) -> str:
        return f"{self._prefix}:doc:{document_id}"

    def _owner_key(self, owner_id: int) -> str:
        return f"{self._prefix}:owner_docs:{owner_id}"

    async def _call(self, operation: str, fn: t.Callable[[], t.Awaitable[T]]) -> T:
        started = time.perf_counter()
        try:
            attempt = lambda: with_retries(fn, self._retry_attempts, self._retry_backoff_ms, retry_on=_TRANSIENT)  # noqa: E731
            if self._breaker is None:
                return await attempt()
            return await self._breaker.run(attempt)
        finally:
            metrics.storage_latency_seconds.observe(time.perf_counter() - started, operation=operation)

    async def insert_user(self, login: str, password_hash: str) -> int:
        # the id is allocated once so a retried claim can recognise its own earlier write
        user_id = int(await self._call("insert_user", lambda: self._redis.incr(self._seq_key())))
        marker = str(user_id)

        async def _op() -> bool:
            claimed = await self._redis.set(self._login_key(login), marker, nx=True)
            if not claimed and await self._redis.get(self._login_key(login)) != marker:
                return False
            record = {"id": user_id, "login": login, "password_hash": password_hash}
            await self._redis.set(self._user_key(user_id), json.dumps(record))
            return True

        if not await self._call("insert_user", _op):
            raise DuplicateLoginError(login)
        return user_id

    async def find_user_by_login(self, login: str) -> t.Optional[User]:
        raw_id = await self._call("find_user_by_login", lambda: self._redis.get(self._login_key(login)))
        if raw_id is None:
            return None
        return await self.find_user_by_id(int(raw_id))

    async def find_user_by_id(self, user_id: int) -> t.Optional[User]:
        raw = await self._call("find_user_by_id", lambda: self._redis.get(self._user_key(user_id)))
        if raw is None:
            return None
        data = json.loads(raw)
        return User(id=int(data["id"]), login=data["login"], password_hash=data["password_hash"])

    async def insert_document(self, document: Document) -> None:
        async def _op() -> None:
            await self._redis.set(self._doc_key(document.id), document_to_json(document))
            await self._redis.sadd(self._owner_key(document.owner_id), document.id)

        await self._call("insert_document", _op)

    async def find_document_by_id(self, document_id: str) -> t.Optional[Document]:
        raw = await self._call("find_document_by_id", lambda: self._redis.get(self._doc_key(document_id)))
        return None if raw is None else document_from_json(raw)

    async def find_document_owner_id(self, document_id: str) -> t.Optional[int]:
        document = await self.find_document_by_id(document_id)
        return None if document is None else document.owner_id

    async def delete_document(self, document_id: str) -> None:
        document = await self.find_document_by_id(document_id)
        if document is None:
            return

        async def _op() -> None:
            await self._redis.delete(self._doc_key(document_id))
            await self._redis.srem(self._owner_key(document.owner_id), document_id)

        await self._call("delete_document", _op)

    async def list_documents(
        self,
        owner_id: int,
        filter_key: t.Optional[str],
        filter_value: t.Optional[str],
        limit: int,
    ) -> t.List[DocumentSummary]:
        async def _op() -> t.List[t.Optional[str]]:
            ids = await self._redis.smembers(self._owner_key(owner_id))
            if not ids:
                return []
            return await self._redis.mget([self._doc_key(i) for i in sorted(ids)])

        rows = await self._call("list_documents", _op)
        summaries = [document_from_json(raw).summary() for raw in rows if raw is not None]
        return sort_and_limit((s for s in summaries if s.matches(filter_key, filter_value)), limit)

    async def is_healthy(self) -> bool:
        try:
            pong = await self._redis.ping()
            return bool(pong)
        except Exception:
            return False

    async def close(self) -> None:
        await self._redis.aclose()
        _logger.info("RedisStorage: connection closed")
