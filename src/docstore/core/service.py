from __future__ import annotations

import asyncio
import dataclasses
import hmac
import logging
import typing as t

from docstore.utils import security

from . import access
from .document_cache import DocumentCache
from .errors import (
    ConflictError,
    DocstoreError,
    DuplicateLoginError,
    ForbiddenError,
    InternalError,
    InvalidInputError,
    NotFoundError,
    UnauthorizedError,
)
from .models import Document, DocumentMeta, Identity, ListingResult, ServedDocument, normalize_filter, parse_limit
from .session_registry import SessionRegistry

if t.TYPE_CHECKING:  # pragma: no cover
    from docstore.storage import StorageAdapter

T = t.TypeVar("T")

_logger = logging.getLogger(__name__)


class DocumentService:
    """Request-level operations over the store, the session registry and the document cache.

    Every protected operation takes the caller's ``Identity`` explicitly; it is
    obtained once per request through ``authenticate``. Reads go through the
    document cache first and always re-check visibility before returning data.
    Store failures surface as ``InternalError`` and are not retried here.
    """

    def __init__(
        self,
        storage: StorageAdapter,
        sessions: SessionRegistry,
        documents: DocumentCache,
        admin_token: str,
        *,
        password_iterations: t.Optional[int] = None,
    ) -> None:
        self._storage = storage
        self._sessions = sessions
        self._documents = documents
        self._admin_token = admin_token
        self._password_iterations = password_iterations

    @property
    def storage(self) -> StorageAdapter:
        return self._storage

    async def _store(self, operation: str, fn: t.Callable[[], t.Awaitable[T]]) -> T:
        try:
            return await fn()
        except (DocstoreError, DuplicateLoginError):
            raise
        except Exception as exc:
            _logger.exception("Store operation failed op=%s", operation)
            raise InternalError() from exc

    # Authentication

    def authenticate(self, token: t.Optional[str]) -> Identity:
        identity = self._sessions.resolve(token)
        if identity is None:
            raise UnauthorizedError()
        return identity

    async def register(self, admin_token: t.Optional[str], login: t.Any, password: t.Any) -> str:
        if not admin_token or not hmac.compare_digest(str(admin_token), self._admin_token):
            raise UnauthorizedError()
        if not security.validate_login_format(login) or not security.validate_password_strength(password):
            raise InvalidInputError()
        kwargs = {} if self._password_iterations is None else {"iterations": self._password_iterations}
        password_hash = await asyncio.to_thread(security.hash_password, password, **kwargs)
        try:
            user_id = await self._store("insert_user", lambda: self._storage.insert_user(login, password_hash))
        except DuplicateLoginError as exc:
            raise ConflictError() from exc
        _logger.info("User registered user_id=%s login=%s", user_id, login)
        return login

    async def login(self, login: t.Any, password: t.Any) -> str:
        if not isinstance(login, str) or not isinstance(password, str):
            raise InvalidInputError()
        user = await self._store("find_user_by_login", lambda: self._storage.find_user_by_login(login))
        if user is None:
            raise UnauthorizedError()
        if not await asyncio.to_thread(security.verify_password, password, user.password_hash):
            raise UnauthorizedError()
        return self._sessions.create_session(Identity(user_id=user.id, login=user.login))

    def logout(self, token: str) -> bool:
        return self._sessions.revoke(token)

    # Documents

    async def upload(self, identity: Identity, meta: DocumentMeta, payload: t.Any) -> Document:
        document = Document.new(identity.user_id, meta, payload)
        await self._store("insert_document", lambda: self._storage.insert_document(document))
        self._documents.on_document_created(identity.user_id)
        _logger.info("Document created id=%s owner_id=%s file=%s", document.id, document.owner_id, document.is_file)
        return document

    async def list_documents(
        self,
        identity: Identity,
        login: t.Optional[str] = None,
        filter_key: t.Optional[str] = None,
        filter_value: t.Optional[str] = None,
        limit: t.Union[str, int, None] = None,
    ) -> ListingResult:
        filter_key, filter_value = normalize_filter(filter_key, filter_value)
        effective_limit = parse_limit(limit)
        owner_id = await self._resolve_owner(identity, login)

        listing, found = self._documents.get_listing(owner_id, filter_key, filter_value, effective_limit)
        if not found:
            generation = self._documents.listing_generation(owner_id)
            summaries = await self._store(
                "list_documents",
                lambda: self._storage.list_documents(owner_id, filter_key, filter_value, effective_limit),
            )
            listing = ListingResult(
                owner_id=owner_id,
                filter_key=filter_key,
                filter_value=filter_value,
                limit=effective_limit,
                documents=tuple(summaries),
            )
            self._documents.put_listing(listing, generation)

        assert listing is not None
        return dataclasses.replace(listing, documents=tuple(access.visible_summaries(identity, listing.documents)))

    async def get_document(self, identity: Identity, document_id: str) -> ServedDocument:
        document, found = self._documents.get_document(document_id)
        if not found:
            generation = self._documents.document_generation()
            document = await self._store(
                "find_document_by_id", lambda: self._storage.find_document_by_id(document_id)
            )
            if document is None:
                raise NotFoundError("Document not found")
            self._documents.put_document(document, generation)
        assert document is not None
        return access.serve(document, identity)

    async def delete_document(self, identity: Identity, document_id: str) -> bool:
        owner_id = await self._store(
            "find_document_owner_id", lambda: self._storage.find_document_owner_id(document_id)
        )
        if owner_id is None:
            raise NotFoundError("Document not found")
        if owner_id != identity.user_id:
            raise ForbiddenError()
        try:
            await self._store("delete_document", lambda: self._storage.delete_document(document_id))
        finally:
            # a failed delete may still have been partly applied by the store
            self._documents.on_document_deleted(owner_id, document_id)
        _logger.info("Document deleted id=%s owner_id=%s", document_id, owner_id)
        return True

    async def _resolve_owner(self, identity: Identity, login: t.Optional[str]) -> int:
        if not login or login == identity.login:
            return identity.user_id
        user = await self._store("find_user_by_login", lambda: self._storage.find_user_by_login(login))
        if user is None:
            raise NotFoundError("User not found")
        return user.id
