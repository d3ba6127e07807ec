# src/alchemist/validator/fields.py
"""
@brief
Permissive parsers for spreadsheet cell values.

@details
Uploaded cells are free text, so every parser here tolerates junk:
    - list fields are split on commas and whitespace, empty tokens dropped;
    - numeric list fields drop tokens that are not numbers (malformed tokens
      are dropped, not reported);
    - numbers follow spreadsheet intuition: "3", " 3 ", 3 and 3.0 are numbers,
      while blanks, booleans and text are not.
Checks that must report a malformed value do so themselves; these helpers never
raise except where documented (parse_list_field).
"""

from __future__ import annotations

import json
import math
import re
from collections.abc import Mapping
from typing import Any

_TOKEN_SPLIT = re.compile(r"[,\s]+")
_TOKEN_STRIP = "[]\"'"


def to_number(value: Any) -> float | None:
    """
    @brief
    Convert a cell value to float, or None when it is not numeric.

    @details
    Booleans are rejected even though Python treats them as ints; NaN and
    infinities are treated as "not a number" so callers can rely on ordinary
    comparisons and integer conversion.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    return number if math.isfinite(number) else None


def is_number(value: Any) -> bool:
    """True for native int/float values (not bool, not numeric text)."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def split_tokens(value: Any) -> list[str]:
    """
    @brief
    Split a delimited list cell into tokens.

    @details
    Accepts text ("T1, T2 T3"), JSON-looking text ("[1,2]") and native
    sequences. Surrounding brackets and quotes are stripped from each token.
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        text = ",".join(str(v) for v in value)
    else:
        text = str(value)

    tokens = []
    for raw in _TOKEN_SPLIT.split(text):
        token = raw.strip(_TOKEN_STRIP)
        if token:
            tokens.append(token)
    return tokens


def parse_numbers(value: Any) -> list[float]:
    """Numeric tokens of a list cell; non-numeric tokens are dropped."""
    numbers = []
    for token in split_tokens(value):
        number = to_number(token)
        if number is not None:
            numbers.append(number)
    return numbers


def parse_list_field(value: Any) -> Any:
    """
    @brief
    Deserialize a list-typed cell such as AvailableSlots.

    @details
    Native lists are returned as-is, blanks become an empty list, everything
    else goes through json.loads. The result is NOT guaranteed to be a list;
    callers decide how to treat other JSON values.

    @raises
        ValueError
            If the text is not valid JSON or nests too deeply to decode.
    """
    if isinstance(value, (list, tuple)):
        return list(value)
    if value is None or value == "":
        return []
    if is_number(value):
        return value
    try:
        return json.loads(str(value))
    except RecursionError as e:
        raise ValueError("list value nested too deeply") from e


def slot_list(value: Any) -> list[Any]:
    """AvailableSlots as a list; unparsable or non-list values give []."""
    try:
        parsed = parse_list_field(value)
    except ValueError:
        return []
    return parsed if isinstance(parsed, list) else []


def is_valid_json(value: Any) -> bool:
    """True if value is blank, already structured, or JSON text."""
    if value is None or value == "" or isinstance(value, (dict, list)):
        return True
    try:
        json.loads(str(value))
    except (ValueError, RecursionError):
        return False
    return True


def record_key(row: Mapping[str, Any], field: str) -> str:
    """Primary-key form of a field: trimmed text, '' when missing."""
    value = row.get(field)
    return "" if value is None else str(value).strip()


def skill_set(workers: Any) -> set[str]:
    """Lower-cased skill tokens across the Skill and Skills columns of all workers."""
    skills: set[str] = set()
    for worker in workers:
        for column in ("Skill", "Skills"):
            skills.update(token.lower() for token in split_tokens(worker.get(column)))
    return skills


__all__ = [
    "to_number",
    "is_number",
    "split_tokens",
    "parse_numbers",
    "parse_list_field",
    "slot_list",
    "is_valid_json",
    "record_key",
    "skill_set",
]
