"""Structured cache keys.

Every key is a tuple of typed fields encoded as a compact JSON array, so
user-controlled values (tokens, filter values) can never make two different
key shapes collide the way naive string concatenation can.
"""

from __future__ import annotations

import json
import typing as t

KeyPart = t.Union[str, int, None]

SESSION = "session"
DOCUMENT = "doc"
LISTING = "docs_list"


def encode_key(*parts: KeyPart) -> str:
    for part in parts:
        if part is not None and not isinstance(part, (str, int)):
            raise TypeError(f"unsupported cache key part: {type(part).__name__}")
    return json.dumps(list(parts), separators=(",", ":"), ensure_ascii=False)


def session_key(token: str) -> str:
    return encode_key(SESSION, token)


def document_key(document_id: str) -> str:
    return encode_key(DOCUMENT, document_id)


def listing_key(
    owner_id: int,
    filter_key: t.Optional[str],
    filter_value: t.Optional[str],
    limit: int,
) -> str:
    return encode_key(LISTING, owner_id, filter_key, filter_value, limit)
