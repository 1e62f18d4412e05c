"""docstore

A token-authenticated document store whose reads and writes are mediated by
a short-lived in-memory cache: an expiring key-value cache serves both as the
session registry and as a read-through cache for documents and listings, and
every document released to a caller passes the visibility rule first.
"""

from .cache import ExpiringCache
from .core import (
    AccessDenied,
    ConflictError,
    DocstoreError,
    Document,
    DocumentCache,
    DocumentMeta,
    DocumentService,
    DocumentSummary,
    ForbiddenError,
    GenerationError,
    Identity,
    InternalError,
    InvalidInputError,
    ListingResult,
    NotFoundError,
    ServedDocument,
    SessionRegistry,
    UnauthorizedError,
    can_view,
    serve,
)
from .storage import InMemoryStorage, RedisStorage, StorageAdapter

__all__ = [
    "ExpiringCache",
    "SessionRegistry",
    "DocumentCache",
    "DocumentService",
    "can_view",
    "serve",
    "Identity",
    "Document",
    "DocumentMeta",
    "DocumentSummary",
    "ListingResult",
    "ServedDocument",
    "StorageAdapter",
    "InMemoryStorage",
    "RedisStorage",
    "DocstoreError",
    "UnauthorizedError",
    "ForbiddenError",
    "AccessDenied",
    "NotFoundError",
    "ConflictError",
    "InvalidInputError",
    "InternalError",
    "GenerationError",
]

__version__ = "0.1.0"
