"""Tests for parameter flattening and form encoding."""

from collections import OrderedDict

import pytest

from paygate_sdk._internal.dispatch.params import decode_query, encode_query, flatten_params
from paygate_sdk.exceptions import PaygateValidationError


class TestFlattenParams:
    """Tests for flatten_params()."""

    def test_none_is_empty(self):
        """Should return no pairs for None."""
        assert flatten_params(None) == []

    def test_scalars(self):
        """Should stringify scalar values."""
        assert flatten_params({"amount": 100, "currency": "usd", "rate": 1.5}) == [
            ("amount", "100"),
            ("currency", "usd"),
            ("rate", "1.5"),
        ]

    def test_nested_mapping_and_list(self):
        """Should expand nested groups in place with bracket keys."""
        assert flatten_params({"a": {"b": 1, "c": [2, 3]}}) == [
            ("a[b]", "1"),
            ("a[c][0]", "2"),
            ("a[c][1]", "3"),
        ]

    def test_nested_groups_expand_before_next_sibling(self):
        """Should finish a nested group before moving to the next key."""
        params = {"first": 1, "meta": {"x": "1", "y": {"z": "2"}}, "last": 3}
        assert [key for key, _ in flatten_params(params)] == [
            "first",
            "meta[x]",
            "meta[y][z]",
            "last",
        ]

    def test_preserves_source_order(self):
        """Should follow the iteration order of each mapping."""
        params = OrderedDict([("z", 1), ("a", OrderedDict([("y", 2), ("b", 3)]))])
        assert flatten_params(params) == [("z", "1"), ("a[y]", "2"), ("a[b]", "3")]

    def test_tuples_are_lists(self):
        """Should treat tuples like lists."""
        assert flatten_params({"ids": ("x", "y")}) == [("ids[0]", "x"), ("ids[1]", "y")]

    def test_list_of_mappings(self):
        """Should index mappings inside lists."""
        params = {"items": [{"price": "p_1"}, {"price": "p_2", "quantity": 2}]}
        assert flatten_params(params) == [
            ("items[0][price]", "p_1"),
            ("items[1][price]", "p_2"),
            ("items[1][quantity]", "2"),
        ]

    def test_none_becomes_empty_string(self):
        """Should emit an empty value for None."""
        assert flatten_params({"x": None}) == [("x", "")]

    def test_empty_string_rejected(self):
        """Should reject explicit empty strings, naming the key."""
        with pytest.raises(PaygateValidationError) as exc_info:
            flatten_params({"x": ""})
        assert exc_info.value.param == "x"
        assert "'x'" in str(exc_info.value)

    def test_nested_empty_string_names_full_key(self):
        """Should report the bracketed key of a nested empty string."""
        with pytest.raises(PaygateValidationError) as exc_info:
            flatten_params({"metadata": {"note": ""}})
        assert exc_info.value.param == "metadata[note]"

    def test_booleans_are_lowercase(self):
        """Should encode booleans as true/false."""
        assert flatten_params({"capture": True, "refund": False}) == [
            ("capture", "true"),
            ("refund", "false"),
        ]

    def test_bytes_are_decoded(self):
        """Should send bytes values as their decoded text."""
        assert flatten_params({"description": b"caf\xc3\xa9", "tags": [b"a"]}) == [
            ("description", "caf\u00e9"),
            ("tags[0]", "a"),
        ]

    def test_empty_bytes_rejected(self):
        """Should treat empty bytes like an empty string."""
        with pytest.raises(PaygateValidationError):
            flatten_params({"x": b""})

    def test_empty_nested_mapping_emits_nothing(self):
        """Should drop empty nested groups."""
        assert flatten_params({"metadata": {}, "tags": []}) == []

    def test_deterministic(self):
        """Should produce identical output for the same structure."""
        params = {"a": {"b": [1, {"c": None}]}, "d": True}
        assert flatten_params(params) == flatten_params(params)


class TestEncodeQuery:
    """Tests for encode_query()."""

    def test_empty(self):
        """Should return an empty string for no params."""
        assert encode_query(None) == ""
        assert encode_query({}) == ""

    def test_brackets_and_spaces_are_encoded(self):
        """Should percent-encode keys and values with form rules."""
        assert encode_query({"a": {"b": "hello world"}}) == "a%5Bb%5D=hello+world"

    def test_joins_with_ampersand(self):
        """Should join pairs with '&' in order."""
        assert encode_query({"limit": 3, "starting_after": "ch_1"}) == (
            "limit=3&starting_after=ch_1"
        )

    def test_non_ascii_uses_charset(self):
        """Should encode non-ASCII text as UTF-8."""
        assert encode_query({"name": "café"}) == "name=caf%C3%A9"

    def test_reserved_characters(self):
        """Should escape '&', '=' and '/' inside values."""
        assert encode_query({"q": "a&b=c/d"}) == "q=a%26b%3Dc%2Fd"


class TestDecodeQuery:
    """Tests for decode_query()."""

    def test_round_trip_matches_flatten(self):
        """Decoding an encoded query should give back the flattened pairs."""
        params = {
            "amount": 2000,
            "metadata": {"order id": "A&B", "empty": None},
            "items": [{"price": "p_1"}, "plain"],
            "name": "café",
        }
        assert decode_query(encode_query(params)) == flatten_params(params)
