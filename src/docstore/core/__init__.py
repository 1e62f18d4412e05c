"""Core module: session registry, document cache, access evaluation and request orchestration."""

from .access import can_view, serve, visible_summaries
from .document_cache import DocumentCache
from .errors import (
    AccessDenied,
    ConflictError,
    DocstoreError,
    DuplicateLoginError,
    ForbiddenError,
    GenerationError,
    InternalError,
    InvalidInputError,
    NotFoundError,
    UnauthorizedError,
)
from .models import Document, DocumentMeta, DocumentSummary, Identity, ListingResult, ServedDocument, User
from .service import DocumentService
from .session_registry import SessionRegistry

__all__ = [
    # Sessions and caching
    "SessionRegistry",
    "DocumentCache",
    "DocumentService",
    # Access evaluation
    "can_view",
    "serve",
    "visible_summaries",
    # Models
    "Identity",
    "User",
    "Document",
    "DocumentMeta",
    "DocumentSummary",
    "ListingResult",
    "ServedDocument",
    # Errors
    "DocstoreError",
    "UnauthorizedError",
    "ForbiddenError",
    "AccessDenied",
    "NotFoundError",
    "ConflictError",
    "InvalidInputError",
    "InternalError",
    "GenerationError",
    "DuplicateLoginError",
]
