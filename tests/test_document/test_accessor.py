"""Tests for dotted-path access to configuration documents."""

from __future__ import annotations

import pytest

from apizza import document
from apizza.document import Record, SchemaBuilder, Sequence
from apizza.exceptions import (
    DocumentError,
    IndexOutOfRangeError,
    InvalidKeyError,
    InvalidTargetError,
    KeyNotFoundError,
    TypeMismatchError,
)
from apizza.profile import new_profile


@pytest.fixture
def profile() -> Record:
    return new_profile()


@pytest.fixture
def typed_doc() -> Record:
    schema = (
        SchemaBuilder()
        .text("label")
        .integer("count")
        .number("ratio")
        .boolean("enabled")
        .integer("retries", default=3)
        .build()
    )
    return schema.new_document()


def _add_order(doc: Record, name: str) -> None:
    seq = doc.child("myorders")
    assert isinstance(seq, Sequence)
    seq.append()
    document.set(doc, f"myorders.{len(seq.items) - 1}.name", name)


# ------------------------------------------------------------------ #
# get / set
# ------------------------------------------------------------------ #


class TestGetSet:
    def test_set_then_get_nested(self, profile: Record) -> None:
        document.set(profile, "address.street", "1 Main St")
        assert document.get(profile, "address.street") == "1 Main St"

    def test_paths_are_case_insensitive(self, profile: Record) -> None:
        document.set(profile, "Address.Street", "1 Main St")
        assert document.get(profile, "ADDRESS.street") == "1 Main St"

    def test_default_served_when_unset(self, profile: Record) -> None:
        assert document.get(profile, "service") == "Delivery"

    def test_set_overrides_default(self, profile: Record) -> None:
        document.set(profile, "service", "Carryout")
        assert document.get(profile, "service") == "Carryout"

    def test_unset_values_read_as_zero(self, typed_doc: Record) -> None:
        assert document.get(typed_doc, "label") == ""
        assert document.get(typed_doc, "count") == "0"
        assert document.get(typed_doc, "ratio") == "0"
        assert document.get(typed_doc, "enabled") == "false"
        assert document.get(typed_doc, "retries") == "3"

    def test_empty_string_is_a_set_value(self, profile: Record) -> None:
        document.set(profile, "service", "")
        assert document.get(profile, "service") == ""

    def test_sequence_element_access(self, profile: Record) -> None:
        _add_order(profile, "friday")
        _add_order(profile, "party")
        assert document.get(profile, "myorders.1.name") == "party"
        document.set(profile, "myorders.0.name", "weekend")
        assert document.get(profile, "myorders.0.name") == "weekend"


class TestCoercion:
    def test_integer_parsed(self, typed_doc: Record) -> None:
        document.set(typed_doc, "count", "42")
        assert document.get(typed_doc, "count") == "42"
        assert typed_doc.child("count").value == 42

    def test_float_formatting(self, typed_doc: Record) -> None:
        document.set(typed_doc, "ratio", "2.50")
        assert document.get(typed_doc, "ratio") == "2.5"
        document.set(typed_doc, "ratio", "3")
        assert document.get(typed_doc, "ratio") == "3"

    @pytest.mark.parametrize("word", ["true", "TRUE", "yes", "on", "1", "t"])
    def test_boolean_true_words(self, typed_doc: Record, word: str) -> None:
        document.set(typed_doc, "enabled", word)
        assert document.get(typed_doc, "enabled") == "true"

    @pytest.mark.parametrize("word", ["false", "No", "off", "0", "f"])
    def test_boolean_false_words(self, typed_doc: Record, word: str) -> None:
        document.set(typed_doc, "enabled", "true")
        document.set(typed_doc, "enabled", word)
        assert document.get(typed_doc, "enabled") == "false"

    def test_type_mismatch_leaves_value_unchanged(self, typed_doc: Record) -> None:
        document.set(typed_doc, "count", "7")
        with pytest.raises(TypeMismatchError) as exc_info:
            document.set(typed_doc, "count", "seven")
        assert exc_info.value.path == "count"
        assert document.get(typed_doc, "count") == "7"

    @pytest.mark.parametrize("value", ["nan", "inf", "abc", ""])
    def test_bad_floats_rejected(self, typed_doc: Record, value: str) -> None:
        with pytest.raises(TypeMismatchError):
            document.set(typed_doc, "ratio", value)

    def test_bad_boolean_rejected(self, typed_doc: Record) -> None:
        with pytest.raises(TypeMismatchError):
            document.set(typed_doc, "enabled", "maybe")


# ------------------------------------------------------------------ #
# Errors
# ------------------------------------------------------------------ #


class TestErrors:
    @pytest.mark.parametrize("path", ["", "   ", "address.", ".name", "address..street"])
    def test_malformed_paths(self, profile: Record, path: str) -> None:
        with pytest.raises(InvalidKeyError):
            document.get(profile, path)
        with pytest.raises(InvalidKeyError):
            document.set(profile, path, "x")

    def test_unknown_field(self, profile: Record) -> None:
        with pytest.raises(KeyNotFoundError):
            document.get(profile, "address.country")

    def test_descending_into_scalar(self, profile: Record) -> None:
        with pytest.raises(KeyNotFoundError):
            document.get(profile, "name.first")

    def test_non_integer_sequence_segment(self, profile: Record) -> None:
        _add_order(profile, "friday")
        with pytest.raises(KeyNotFoundError):
            document.get(profile, "myorders.first.name")

    def test_get_past_end_is_index_out_of_range(self, profile: Record) -> None:
        with pytest.raises(IndexOutOfRangeError) as exc_info:
            document.get(profile, "myorders.0.name")
        assert isinstance(exc_info.value, KeyNotFoundError)

    def test_set_past_end_is_invalid_target(self, profile: Record) -> None:
        with pytest.raises(InvalidTargetError):
            document.set(profile, "myorders.0.name", "friday")
        seq = profile.child("myorders")
        assert isinstance(seq, Sequence)
        assert seq.items == []

    @pytest.mark.parametrize("path", ["address", "myorders"])
    def test_non_scalar_targets(self, profile: Record, path: str) -> None:
        with pytest.raises(InvalidTargetError):
            document.get(profile, path)
        with pytest.raises(InvalidTargetError):
            document.set(profile, path, "x")

    def test_errors_share_a_base_and_exit_code(self, profile: Record) -> None:
        with pytest.raises(DocumentError) as exc_info:
            document.get(profile, "nope")
        assert exc_info.value.exit_code == 2


# ------------------------------------------------------------------ #
# enumerate_values
# ------------------------------------------------------------------ #


class TestEnumerate:
    def test_flattens_every_leaf(self, profile: Record) -> None:
        _add_order(profile, "friday")
        document.set(profile, "name", "Bob")
        values = document.enumerate_values(profile)
        assert values["name"] == "Bob"
        assert values["service"] == "Delivery"
        assert values["address.zipcode"] == ""
        assert values["myorders.0.name"] == "friday"
        assert "address" not in values

    def test_every_entry_round_trips_through_get(self, profile: Record) -> None:
        _add_order(profile, "friday")
        for path, text in document.enumerate_values(profile).items():
            assert document.get(profile, path) == text

    def test_subtree(self, profile: Record) -> None:
        document.set(profile, "card.cvv", "123")
        values = document.enumerate_values(profile, "card")
        assert set(values) == {"card.number", "card.expiration", "card.cvv"}
        assert values["card.cvv"] == "123"
