"""
Tests for the shape normalizer.

Covers id derivation and the three route shapes: single typed entities,
keyed bulk mappings and typed lists.
"""

import pytest

from ingest_gateway.exceptions import MalformedInputError, MissingIdFieldError
from ingest_gateway.ingest.normalizer import (
    RouteParams,
    ShapeVariant,
    dash_id,
    normalize,
    underscore_id,
)


@pytest.mark.unit
class TestIdDerivation:
    """Tests for the id helpers."""

    @pytest.mark.parametrize("raw", ["a b", "a  b", "a\tb", "a \n b"])
    def test_whitespace_variants_share_an_id(self, raw):
        """Test every whitespace run collapses to a single underscore."""
        assert underscore_id(raw) == "a_b"

    def test_underscore_id_is_idempotent(self):
        """Test deriving twice yields the same id."""
        once = underscore_id("book flight")
        assert underscore_id("book flight") == once
        assert underscore_id(once) == once

    def test_dash_id_joins_tokens(self):
        assert dash_id("greet user") == "greet-user"

    def test_dash_id_collapses_punctuation(self):
        """Test punctuation and whitespace boundaries collapse into one dash."""
        assert dash_id("  greet,   user!! ") == "greet-user"
        assert dash_id("snake_case value") == "snake-case-value"

    def test_dash_id_keeps_unicode_letters(self):
        assert dash_id("café au lait") == "café-au-lait"

    def test_dash_id_splits_on_apostrophes(self):
        """Test punctuation inside a word is a boundary, not deleted."""
        assert dash_id("don't stop") == "don-t-stop"

    def test_dash_id_of_punctuation_only_is_empty(self):
        assert dash_id("?!") == ""


@pytest.mark.unit
class TestSingleTyped:
    """Tests for SINGLE_TYPED payloads."""

    params = RouteParams("intents", "intent")

    def test_unwraps_nlu(self):
        batch = normalize(
            {"nlu": [{"intent": "book flight"}]}, ShapeVariant.SINGLE_TYPED, self.params
        )

        assert batch.documents == [{"intent": "book flight", "id": "book_flight"}]
        assert batch.rejected == []

    def test_unwraps_nlu_then_data(self):
        parsed = {"nlu": {"data": [{"intent": "greet", "examples": ["hi"]}]}}

        batch = normalize(parsed, ShapeVariant.SINGLE_TYPED, self.params)

        assert batch.documents == [{"intent": "greet", "examples": ["hi"], "id": "greet"}]

    def test_unwraps_data_without_nlu(self):
        batch = normalize(
            {"data": [{"intent": "bye"}]}, ShapeVariant.SINGLE_TYPED, self.params
        )
        assert batch.documents[0]["id"] == "bye"

    def test_top_level_list(self):
        batch = normalize([{"intent": "a b"}], ShapeVariant.SINGLE_TYPED, self.params)
        assert batch.documents[0]["id"] == "a_b"

    def test_only_first_entity_is_written(self):
        parsed = {"nlu": [{"intent": "first"}, {"intent": "second"}]}

        batch = normalize(parsed, ShapeVariant.SINGLE_TYPED, self.params)

        assert [d["id"] for d in batch.documents] == ["first"]

    def test_data_is_not_unwrapped_before_nlu(self):
        """Test the unwrap order: ``data`` inside the list is left alone."""
        parsed = {"nlu": [{"intent": "x", "data": [{"intent": "inner"}]}]}

        batch = normalize(parsed, ShapeVariant.SINGLE_TYPED, self.params)

        assert batch.documents[0]["id"] == "x"

    def test_input_is_not_mutated(self):
        entity = {"intent": "book flight"}

        normalize([entity], ShapeVariant.SINGLE_TYPED, self.params)

        assert "id" not in entity

    def test_numeric_id_field(self):
        batch = normalize(
            [{"code": 42}], ShapeVariant.SINGLE_TYPED, RouteParams("codes", "code")
        )
        assert batch.documents[0]["id"] == "42"

    @pytest.mark.parametrize(
        "entity",
        [{}, {"intent": None}, {"intent": ""}, {"intent": "   "}, {"intent": ["a"]}],
    )
    def test_missing_id_field_raises(self, entity):
        with pytest.raises(MissingIdFieldError) as exc_info:
            normalize({"nlu": [entity]}, ShapeVariant.SINGLE_TYPED, self.params)
        assert exc_info.value.status_code == 400

    @pytest.mark.parametrize(
        "parsed", [None, "text", 5, {"intent": "x"}, {"nlu": []}, [], ["not a map"]]
    )
    def test_malformed_input_raises(self, parsed):
        with pytest.raises(MalformedInputError):
            normalize(parsed, ShapeVariant.SINGLE_TYPED, self.params)


@pytest.mark.unit
class TestKeyedBulk:
    """Tests for KEYED_BULK payloads."""

    params = RouteParams("config")

    def test_version_is_never_emitted(self):
        parsed = {"version": 1, "timeout": 30, "retries": 3}

        batch = normalize(parsed, ShapeVariant.KEYED_BULK, self.params)

        assert batch.documents == [
            {"timeout": 30, "id": "timeout"},
            {"retries": 3, "id": "retries"},
        ]

    def test_every_other_key_appears_once_in_order(self):
        parsed = {"b": {"x": 1}, "version": "3.1", "a": [1, 2], "c": None}

        batch = normalize(parsed, ShapeVariant.KEYED_BULK, self.params)

        assert [d["id"] for d in batch.documents] == ["b", "a", "c"]
        for doc in batch.documents:
            assert doc[doc["id"]] == parsed[doc["id"]]

    def test_non_string_keys_become_string_ids(self):
        batch = normalize({1: "one"}, ShapeVariant.KEYED_BULK, self.params)
        assert batch.documents == [{1: "one", "id": "1"}]

    def test_only_version(self):
        batch = normalize({"version": 2}, ShapeVariant.KEYED_BULK, self.params)
        assert batch.documents == []

    def test_blank_key_is_rejected(self):
        batch = normalize({"": 1, "ok": 2}, ShapeVariant.KEYED_BULK, self.params)

        assert [d["id"] for d in batch.documents] == ["ok"]
        assert len(batch.rejected) == 1

    @pytest.mark.parametrize("parsed", [None, [1, 2], "text"])
    def test_requires_mapping(self, parsed):
        with pytest.raises(MalformedInputError):
            normalize(parsed, ShapeVariant.KEYED_BULK, self.params)


@pytest.mark.unit
class TestListBulk:
    """Tests for LIST_BULK payloads."""

    params = RouteParams("rules", "rule")

    def test_element_without_field_is_skipped(self):
        parsed = {"rules": [{"rule": "greet user"}, {}]}

        batch = normalize(parsed, ShapeVariant.LIST_BULK, self.params)

        assert batch.documents == [{"rule": "greet user", "id": "greet-user"}]
        assert len(batch.rejected) == 1
        assert batch.rejected[0].position == 1
        assert isinstance(batch.rejected[0].error, MissingIdFieldError)
        assert batch.rejected[0].reason == "missing_id_field"

    def test_skipped_element_does_not_stop_later_ones(self):
        parsed = {"rules": [{}, {"steps": []}, {"rule": "a"}, "oops", {"rule": "b c"}]}

        batch = normalize(parsed, ShapeVariant.LIST_BULK, self.params)

        assert [d["id"] for d in batch.documents] == ["a", "b-c"]
        assert [r.position for r in batch.rejected] == [0, 1, 3]
        assert batch.rejected[2].reason == "not_a_mapping"

    def test_punctuation_only_field_is_rejected(self):
        batch = normalize({"rules": [{"rule": "!!"}]}, ShapeVariant.LIST_BULK, self.params)

        assert batch.documents == []
        assert isinstance(batch.rejected[0].error, MissingIdFieldError)

    def test_duplicate_ids_are_all_emitted(self):
        """Test duplicates are left to the store's upsert semantics."""
        parsed = {"rules": [{"rule": "a b"}, {"rule": "a, b"}]}

        batch = normalize(parsed, ShapeVariant.LIST_BULK, self.params)

        assert [d["id"] for d in batch.documents] == ["a-b", "a-b"]

    def test_other_top_level_keys_are_ignored(self):
        parsed = {"version": "3.1", "rules": [{"rule": "x"}], "stories": [{"rule": "y"}]}

        batch = normalize(parsed, ShapeVariant.LIST_BULK, self.params)

        assert [d["id"] for d in batch.documents] == ["x"]

    def test_empty_list(self):
        batch = normalize({"rules": []}, ShapeVariant.LIST_BULK, self.params)
        assert batch.documents == [] and batch.rejected == []

    @pytest.mark.parametrize(
        "parsed", [None, [], {"stories": []}, {"rules": {"rule": "x"}}, {"rules": None}]
    )
    def test_requires_list_under_index_name(self, parsed):
        with pytest.raises(MalformedInputError):
            normalize(parsed, ShapeVariant.LIST_BULK, self.params)
