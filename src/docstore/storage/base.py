from __future__ import annotations

import threading
import typing as t
from abc import ABC, abstractmethod

from ..core.errors import DuplicateLoginError
from ..core.models import Document, DocumentSummary, User, sort_and_limit


class StorageAdapter(ABC):
    """Durable store consumed by the service layer.

    Lookups return ``None`` when the row does not exist; any other failure
    is raised as-is and surfaced by the caller as an internal error.
    """

    @abstractmethod
    async def insert_user(self, login: str, password_hash: str) -> int:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    async def find_user_by_login(self, login: str) -> t.Optional[User]:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    async def find_user_by_id(self, user_id: int) -> t.Optional[User]:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    async def insert_document(self, document: Document) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    async def find_document_by_id(self, document_id: str) -> t.Optional[Document]:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    async def find_document_owner_id(self, document_id: str) -> t.Optional[int]:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    async def delete_document(self, document_id: str) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    async def list_documents(
        self,
        owner_id: int,
        filter_key: t.Optional[str],
        filter_value: t.Optional[str],
        limit: int,
    ) -> t.List[DocumentSummary]:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    async def is_healthy(self) -> bool:  # pragma: no cover - interface
        raise NotImplementedError

    async def close(self) -> None:
        return None


class InMemoryStorage(StorageAdapter):
    """A simple in-memory adapter for dev/test.

    Not intended for production, but implements the same async interface.
    """

    def __init__(self) -> None:
        self._users: t.Dict[int, User] = {}
        self._logins: t.Dict[str, int] = {}
        self._documents: t.Dict[str, Document] = {}
        self._next_user_id = 1
        self._lock = threading.Lock()

    async def insert_user(self, login: str, password_hash: str) -> int:
        with self._lock:
            if login in self._logins:
                raise DuplicateLoginError(login)
            user_id = self._next_user_id
            self._next_user_id += 1
            self._users[user_id] = User(id=user_id, login=login, password_hash=password_hash)
            self._logins[login] = user_id
            return user_id

    async def find_user_by_login(self, login: str) -> t.Optional[User]:
        user_id = self._logins.get(login)
        return None if user_id is None else self._users.get(user_id)

    async def find_user_by_id(self, user_id: int) -> t.Optional[User]:
        return self._users.get(user_id)

    async def insert_document(self, document: Document) -> None:
        self._documents[document.id] = document

    async def find_document_by_id(self, document_id: str) -> t.Optional[Document]:
        return self._documents.get(document_id)

    async def find_document_owner_id(self, document_id: str) -> t.Optional[int]:
        document = self._documents.get(document_id)
        return None if document is None else document.owner_id

    async def delete_document(self, document_id: str) -> None:
        self._documents.pop(document_id, None)

    async def list_documents(
        self,
        owner_id: int,
        filter_key: t.Optional[str],
        filter_value: t.Optional[str],
        limit: int,
    ) -> t.List[DocumentSummary]:
        summaries = (
            doc.summary()
            for doc in list(self._documents.values())
            if doc.owner_id == owner_id
        )
        return sort_and_limit((s for s in summaries if s.matches(filter_key, filter_value)), limit)

    async def is_healthy(self) -> bool:
        return True
