"""Unit tests for structured cache keys."""

import json

import pytest

from docstore.cache.keys import document_key, encode_key, listing_key, session_key


class TestCacheKeys:
    def test_encode_key_is_compact_json_array(self):
        assert encode_key("doc", 7, None) == '["doc",7,null]'

    def test_encode_key_rejects_unsupported_parts(self):
        with pytest.raises(TypeError):
            encode_key("doc", 1.5)
        with pytest.raises(TypeError):
            encode_key(["nested"])

    def test_key_families_never_collide(self):
        token = "abc"
        assert session_key(token) != document_key(token)

    def test_separator_characters_in_values_do_not_collide(self):
        # naive "docs_list" + owner + key + value concatenation would merge these
        a = listing_key(1, "name", "x:y", 10)
        b = listing_key(1, "name:x", "y", 10)
        assert a != b

    def test_listing_key_distinguishes_filter_and_limit(self):
        base = listing_key(1, None, None, 10)
        assert base != listing_key(1, None, None, 5)
        assert base != listing_key(2, None, None, 10)
        assert base != listing_key(1, "name", None, 10)

    def test_listing_key_round_trips_fields(self):
        key = listing_key(3, "mime", "image/png", 4)
        assert json.loads(key) == ["docs_list", 3, "mime", "image/png", 4]

    def test_unicode_values_are_preserved(self):
        assert json.loads(document_key("документ")) == ["doc", "документ"]
