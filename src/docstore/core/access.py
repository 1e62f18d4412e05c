"""Visibility rule applied to every document released to a caller.

Caching is an optimization over retrieval only: these checks run on cache
hits and store loads alike.
"""

from __future__ import annotations

import json
import typing as t

from .errors import AccessDenied
from .models import Document, DocumentSummary, Identity, ServedDocument

Viewable = t.Union[Document, DocumentSummary]


def can_view(caller: Identity, document: Viewable) -> bool:
    return caller.user_id == document.owner_id or document.is_public or caller.login in document.grant


def visible_summaries(caller: Identity, summaries: t.Iterable[DocumentSummary]) -> t.List[DocumentSummary]:
    return [summary for summary in summaries if can_view(caller, summary)]


def serve(document: Document, caller: Identity) -> ServedDocument:
    if not can_view(caller, document):
        raise AccessDenied()
    if document.is_file:
        return ServedDocument(media_type=document.mime or "application/octet-stream", body=bytes(document.payload))
    body = json.dumps({"data": document.payload}).encode("utf-8")
    return ServedDocument(media_type="application/json", body=body)
