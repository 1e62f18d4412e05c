"""Shared fixtures and mocks for unit tests."""

from __future__ import annotations

import typing as t
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from docstore.cache import ExpiringCache
from docstore.core.document_cache import DocumentCache
from docstore.core.models import Document, DocumentSummary, Identity, ListingResult
from docstore.core.service import DocumentService
from docstore.core.session_registry import SessionRegistry
from docstore.monitoring import metrics

ADMIN_TOKEN = "admin-secret"


class FakeClock:
    """Manually advanced monotonic clock for TTL tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def _reset_metrics():
    metrics.reset_all()
    yield
    metrics.reset_all()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    """Cache with a 300s default TTL driven by the fake clock; the sweeper is not started."""
    c = ExpiringCache(default_ttl_seconds=300, sweep_interval_seconds=600, sweep_batch_size=2, clock=clock)
    yield c
    c.close()


@pytest.fixture
def registry(cache):
    return SessionRegistry(cache)


@pytest.fixture
def document_cache(cache):
    return DocumentCache(cache)


@pytest.fixture
def owner():
    return Identity(user_id=1, login="ownerlogin1")


@pytest.fixture
def stranger():
    return Identity(user_id=2, login="strangerlogin2")


@pytest.fixture
def mock_storage():
    """Mock storage adapter."""
    storage = AsyncMock()
    storage.is_healthy = AsyncMock(return_value=True)
    storage.insert_user = AsyncMock(return_value=1)
    storage.find_user_by_login = AsyncMock(return_value=None)
    storage.find_user_by_id = AsyncMock(return_value=None)
    storage.insert_document = AsyncMock(return_value=None)
    storage.find_document_by_id = AsyncMock(return_value=None)
    storage.find_document_owner_id = AsyncMock(return_value=None)
    storage.delete_document = AsyncMock(return_value=None)
    storage.list_documents = AsyncMock(return_value=[])
    storage.close = AsyncMock(return_value=None)
    return storage


@pytest.fixture
def service(mock_storage, registry, document_cache):
    return DocumentService(mock_storage, registry, document_cache, ADMIN_TOKEN, password_iterations=1000)


# Helper functions for tests
def make_document(
    owner_id: int = 1,
    *,
    name: str = "report",
    is_file: bool = False,
    is_public: bool = False,
    grant: t.Iterable[str] = (),
    payload: t.Any = None,
    mime: str = "application/json",
    document_id: t.Optional[str] = None,
    created_at: t.Optional[datetime] = None,
) -> Document:
    if payload is None:
        payload = b"binary-bytes" if is_file else {"title": name}
    return Document(
        id=document_id or f"doc-{name}-{owner_id}",
        owner_id=owner_id,
        name=name,
        mime=mime,
        is_file=is_file,
        is_public=is_public,
        grant=tuple(grant),
        payload=payload,
        created_at=created_at or datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


def make_summaries(owner_id: int, names: t.Iterable[str]) -> t.List[DocumentSummary]:
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    return [
        make_document(owner_id, name=name, created_at=base + timedelta(minutes=i)).summary()
        for i, name in enumerate(names)
    ]


def make_listing(
    owner_id: int,
    filter_key: t.Optional[str] = None,
    filter_value: t.Optional[str] = None,
    limit: int = 10,
    names: t.Iterable[str] = ("a",),
) -> ListingResult:
    return ListingResult(
        owner_id=owner_id,
        filter_key=filter_key,
        filter_value=filter_value,
        limit=limit,
        documents=tuple(make_summaries(owner_id, names)),
    )


@pytest.fixture
def doc_factory():
    return make_document


@pytest.fixture
def listing_factory():
    return make_listing
