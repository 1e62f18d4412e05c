from __future__ import annotations

import typing as t
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from .errors import InvalidInputError

CREATED_FORMAT = "%Y-%m-%d %H:%M:%S"
FILTER_KEYS = frozenset({"name", "mime", "file", "public", "created"})
DEFAULT_LISTING_LIMIT = 10

_TRUE = {"true", "1"}
_FALSE = {"false", "0"}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Identity:
    """Authenticated caller, resolved from a session token."""

    user_id: int
    login: str


@dataclass
class User:
    id: int
    login: str
    password_hash: str


@dataclass(frozen=True)
class DocumentSummary:
    id: str
    owner_id: int
    name: str
    mime: str
    is_file: bool
    is_public: bool
    grant: t.Tuple[str, ...]
    created_at: datetime

    def matches(self, filter_key: t.Optional[str], filter_value: t.Optional[str]) -> bool:
        if not filter_key or not filter_value:
            return True
        if filter_key == "name":
            return self.name == filter_value
        if filter_key == "mime":
            return self.mime == filter_value
        if filter_key == "file":
            return self.is_file == parse_bool(filter_value)
        if filter_key == "public":
            return self.is_public == parse_bool(filter_value)
        if filter_key == "created":
            return self.created_at.strftime(CREATED_FORMAT) == filter_value
        raise InvalidInputError(f"Unsupported filter key: {filter_key}")

    def to_dict(self) -> t.Dict[str, t.Any]:
        return {
            "id": self.id,
            "name": self.name,
            "mime": self.mime,
            "file": self.is_file,
            "public": self.is_public,
            "created": self.created_at.strftime(CREATED_FORMAT),
            "grant": list(self.grant),
        }


@dataclass(frozen=True)
class Document:
    """A stored document.

    Exactly one payload shape holds: ``is_file`` documents carry raw bytes,
    all others carry JSON-compatible structured data. Documents are never
    updated after creation.
    """

    id: str
    owner_id: int
    name: str
    mime: str
    is_file: bool
    is_public: bool
    grant: t.Tuple[str, ...]
    payload: t.Any
    created_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        if self.is_file and not isinstance(self.payload, (bytes, bytearray)):
            raise InvalidInputError("File documents require a binary payload")
        if not self.is_file and isinstance(self.payload, (bytes, bytearray)):
            raise InvalidInputError("Structured documents require JSON data")
        if not isinstance(self.grant, tuple):
            object.__setattr__(self, "grant", tuple(self.grant))

    @classmethod
    def new(
        cls,
        owner_id: int,
        meta: "DocumentMeta",
        payload: t.Any,
        created_at: t.Optional[datetime] = None,
    ) -> "Document":
        return cls(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            name=meta.name,
            mime=meta.mime,
            is_file=meta.is_file,
            is_public=meta.is_public,
            grant=tuple(meta.grant),
            payload=payload,
            created_at=created_at or _utcnow(),
        )

    def summary(self) -> DocumentSummary:
        return DocumentSummary(
            id=self.id,
            owner_id=self.owner_id,
            name=self.name,
            mime=self.mime,
            is_file=self.is_file,
            is_public=self.is_public,
            grant=self.grant,
            created_at=self.created_at,
        )


@dataclass(frozen=True)
class DocumentMeta:
    name: str
    mime: str = ""
    is_file: bool = False
    is_public: bool = False
    grant: t.Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: t.Any) -> "DocumentMeta":
        if not isinstance(data, dict):
            raise InvalidInputError("Invalid metadata")
        name = data.get("name")
        mime = data.get("mime", "")
        grant = data.get("grant") or []
        if not isinstance(name, str) or not name:
            raise InvalidInputError("Invalid metadata")
        if not isinstance(mime, str):
            raise InvalidInputError("Invalid metadata")
        if not isinstance(grant, list) or not all(isinstance(g, str) for g in grant):
            raise InvalidInputError("Invalid metadata")
        for flag in ("file", "public"):
            if not isinstance(data.get(flag, False), bool):
                raise InvalidInputError("Invalid metadata")
        return cls(
            name=name,
            mime=mime,
            is_file=data.get("file", False),
            is_public=data.get("public", False),
            grant=tuple(g for g in grant if g),
        )


@dataclass(frozen=True)
class ListingResult:
    owner_id: int
    filter_key: t.Optional[str]
    filter_value: t.Optional[str]
    limit: int
    documents: t.Tuple[DocumentSummary, ...] = ()

    def to_dict(self) -> t.Dict[str, t.Any]:
        return {"data": {"docs": [doc.to_dict() for doc in self.documents]}}


@dataclass(frozen=True)
class ServedDocument:
    media_type: str
    body: bytes


def parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise InvalidInputError(f"Invalid boolean filter value: {value}")


def normalize_filter(
    filter_key: t.Optional[str], filter_value: t.Optional[str]
) -> t.Tuple[t.Optional[str], t.Optional[str]]:
    """Return the effective (key, value) pair; a filter needs both parts."""
    if not filter_key or not filter_value:
        return None, None
    if filter_key not in FILTER_KEYS:
        raise InvalidInputError(f"Unsupported filter key: {filter_key}")
    if filter_key in ("file", "public"):
        filter_value = "true" if parse_bool(filter_value) else "false"
    return filter_key, filter_value


def parse_limit(raw: t.Union[str, int, None]) -> int:
    if raw is None or raw == "":
        return DEFAULT_LISTING_LIMIT
    try:
        limit = int(raw)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError("Invalid limit") from exc
    if limit < 0:
        raise InvalidInputError("Invalid limit")
    return limit or DEFAULT_LISTING_LIMIT


def sort_and_limit(summaries: t.Iterable[DocumentSummary], limit: int) -> t.List[DocumentSummary]:
    ordered = sorted(summaries, key=lambda s: (s.name, s.created_at))
    return ordered[:limit]
