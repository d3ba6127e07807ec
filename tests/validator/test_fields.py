# tests/validator/test_fields.py
from __future__ import annotations

import math

import pytest

from alchemist.validator.fields import (
    is_number,
    is_valid_json,
    parse_list_field,
    parse_numbers,
    record_key,
    skill_set,
    slot_list,
    split_tokens,
    to_number,
)


@pytest.mark.parametrize(
    "value, expected",
    [(3, 3.0), ("3", 3.0), (" 2.5 ", 2.5), ("", None), ("abc", None), (None, None), (True, None)],
)
def test_to_number(value, expected) -> None:
    """
    @brief
    Verify spreadsheet-style numeric coercion.

    @details
    Numeric text counts as a number; blanks, text and booleans do not.
    """
    assert to_number(value) == expected


def test_to_number_treats_nan_as_missing() -> None:
    assert to_number(math.nan) is None
    assert to_number("nan") is None


def test_is_number_only_for_native_numbers() -> None:
    assert is_number(1) and is_number(1.5)
    assert not is_number("1")
    assert not is_number(False)


def test_split_tokens_drops_empties_and_brackets() -> None:
    """
    @brief
    Verify list-cell tokenisation.

    @details
    Commas and whitespace both separate tokens, empty tokens disappear and
    JSON-looking text yields its bare elements.
    """
    # --- Arrange ---
    cells = ["T1, T2  T3,,", "[2,4]", ["a", "b"], None]

    # --- Act ---
    result = [split_tokens(c) for c in cells]

    # --- Assert ---
    assert result == [["T1", "T2", "T3"], ["2", "4"], ["a", "b"], []]


def test_parse_numbers_drops_junk_tokens() -> None:
    assert parse_numbers("1, x, 3") == [1.0, 3.0]


def test_parse_list_field_variants() -> None:
    assert parse_list_field("[1, 2]") == [1, 2]
    assert parse_list_field([1]) == [1]
    assert parse_list_field("") == []
    assert parse_list_field('"x"') == "x"
    with pytest.raises(ValueError):
        parse_list_field("[1,")


def test_slot_list_never_raises() -> None:
    assert slot_list("[1,2]") == [1, 2]
    assert slot_list("nope") == []
    assert slot_list("5") == []


def test_is_valid_json() -> None:
    assert is_valid_json("")
    assert is_valid_json('{"a": 1}')
    assert is_valid_json({"a": 1})
    assert not is_valid_json("{bad json")


def test_record_key_trims_and_defaults() -> None:
    assert record_key({"TaskID": " T1 "}, "TaskID") == "T1"
    assert record_key({"TaskID": 7}, "TaskID") == "7"
    assert record_key({}, "TaskID") == ""


def test_skill_set_reads_both_columns_lower_cased() -> None:
    workers = [{"Skills": "Coding, Design"}, {"Skill": "TESTING"}]
    assert skill_set(workers) == {"coding", "design", "testing"}


@pytest.mark.parametrize("value", ["inf", "-Infinity", "1e309", math.inf])
def test_to_number_rejects_infinities(value) -> None:
    assert to_number(value) is None


def test_deep_nesting_is_a_parse_error_not_a_crash() -> None:
    nested = "[" * 200_000
    with pytest.raises(ValueError):
        parse_list_field(nested)
    assert slot_list(nested) == []
    assert not is_valid_json(nested)
