"""Unit tests for domain models and listing helpers."""

from datetime import datetime, timezone

import pytest

from docstore.core.errors import InvalidInputError
from docstore.core.models import (
    DEFAULT_LISTING_LIMIT,
    Document,
    DocumentMeta,
    normalize_filter,
    parse_bool,
    parse_limit,
    sort_and_limit,
)


class TestDocument:
    def test_file_requires_bytes(self, doc_factory):
        with pytest.raises(InvalidInputError):
            doc_factory(1, is_file=True, payload={"not": "bytes"})

    def test_structured_rejects_bytes(self, doc_factory):
        with pytest.raises(InvalidInputError):
            doc_factory(1, is_file=False, payload=b"bytes")

    def test_grant_coerced_to_tuple(self):
        doc = Document(
            id="x", owner_id=1, name="n", mime="", is_file=False,
            is_public=False, grant=["a", "b"], payload={},
        )
        assert doc.grant == ("a", "b")

    def test_new_assigns_unique_ids(self):
        meta = DocumentMeta(name="n")
        a = Document.new(1, meta, {})
        b = Document.new(1, meta, {})
        assert a.id != b.id
        assert a.created_at.tzinfo is not None

    def test_summary_to_dict(self, doc_factory):
        doc = doc_factory(1, name="report", grant=("friendlogin",), is_public=True)
        assert doc.summary().to_dict() == {
            "id": doc.id,
            "name": "report",
            "mime": "application/json",
            "file": False,
            "public": True,
            "created": "2024-01-01 00:00:00",
            "grant": ["friendlogin"],
        }


class TestDocumentMeta:
    def test_from_dict(self):
        meta = DocumentMeta.from_dict(
            {"name": "photo.jpg", "mime": "image/jpeg", "file": True, "public": False, "grant": ["login1", ""]}
        )
        assert meta == DocumentMeta(name="photo.jpg", mime="image/jpeg", is_file=True, grant=("login1",))

    @pytest.mark.parametrize(
        "data",
        [
            None,
            [],
            {},
            {"name": ""},
            {"name": 5},
            {"name": "n", "mime": 3},
            {"name": "n", "grant": "login"},
            {"name": "n", "grant": [1]},
            {"name": "n", "file": "yes"},
            {"name": "n", "public": 1},
        ],
    )
    def test_invalid(self, data):
        with pytest.raises(InvalidInputError):
            DocumentMeta.from_dict(data)


class TestFilters:
    @pytest.mark.parametrize("raw,expected", [("true", True), ("1", True), ("FALSE", False), ("0", False)])
    def test_parse_bool(self, raw, expected):
        assert parse_bool(raw) is expected

    def test_parse_bool_invalid(self):
        with pytest.raises(InvalidInputError):
            parse_bool("maybe")

    def test_filter_needs_both_parts(self):
        assert normalize_filter("name", None) == (None, None)
        assert normalize_filter(None, "x") == (None, None)
        assert normalize_filter("", "") == (None, None)

    def test_unknown_filter_key(self):
        with pytest.raises(InvalidInputError):
            normalize_filter("owner", "1")

    def test_boolean_filter_normalized(self):
        assert normalize_filter("public", "1") == ("public", "true")
        assert normalize_filter("file", "False") == ("file", "false")
        assert normalize_filter("name", "x") == ("name", "x")

    @pytest.mark.parametrize(
        "key,value,expected",
        [
            ("name", "report", True),
            ("name", "other", False),
            ("mime", "application/json", True),
            ("file", "false", True),
            ("public", "true", False),
            ("created", "2024-01-01 00:00:00", True),
            ("created", "2024-01-02 00:00:00", False),
        ],
    )
    def test_summary_matches(self, doc_factory, key, value, expected):
        assert doc_factory(1).summary().matches(key, value) is expected


class TestLimit:
    @pytest.mark.parametrize("raw", [None, "", "0", 0])
    def test_default(self, raw):
        assert parse_limit(raw) == DEFAULT_LISTING_LIMIT

    def test_explicit(self):
        assert parse_limit("3") == 3

    @pytest.mark.parametrize("raw", ["abc", "-1", "1.5"])
    def test_invalid(self, raw):
        with pytest.raises(InvalidInputError):
            parse_limit(raw)

    def test_sort_and_limit_orders_by_name_then_created(self, doc_factory):
        early = datetime(2024, 1, 1, tzinfo=timezone.utc)
        late = datetime(2024, 6, 1, tzinfo=timezone.utc)
        summaries = [
            doc_factory(1, name="b", document_id="b1").summary(),
            doc_factory(1, name="a", document_id="a-late", created_at=late).summary(),
            doc_factory(1, name="a", document_id="a-early", created_at=early).summary(),
        ]
        assert [s.id for s in sort_and_limit(summaries, 2)] == ["a-early", "a-late"]
