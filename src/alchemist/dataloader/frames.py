# src/alchemist/dataloader/frames.py
from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import pandas as pd

from alchemist.errors import DataError
from alchemist.validator.types import Violation

VIOLATION_COLUMNS = ("entity", "row", "field", "message", "weight", "kind", "rule_id")


def records_from_frame(df: pd.DataFrame) -> list[dict[str, Any]]:
    """
    @brief
    Convert an ingested DataFrame into engine records.

    @details
    Upstream ingestion (CSV/XLSX readers) typically hands over a DataFrame.
    Column names are stripped of surrounding whitespace and empty cells
    (NaN/None) become "" so blank spreadsheet cells look the same whatever
    reader produced them.

    @raises
        DataError
            If df is not a DataFrame or has duplicate column names.
    """
    if not isinstance(df, pd.DataFrame):
        raise DataError(
            f"Expected a pandas DataFrame, got {type(df).__name__}",
            source="frames.records_from_frame",
            suggested_action="Pass the frame returned by pandas.read_csv / read_excel.",
        )

    # (1) Normalize headers
    frame = df.copy()
    frame.columns = [str(c).strip() for c in frame.columns]
    if frame.columns.duplicated().any():
        dupes = sorted(set(frame.columns[frame.columns.duplicated()]))
        raise DataError(
            f"Duplicate column names: {dupes}",
            source="frames.records_from_frame",
            suggested_action="Rename or drop duplicated columns before loading.",
        )

    # (2) Blank cells → ""
    frame = frame.astype(object).where(frame.notna(), "")
    return frame.to_dict(orient="records")


def violations_frame(violations: Iterable[Violation]) -> pd.DataFrame:
    """
    @brief
    Tabular view of ranked violations for grid-style consumers.

    @details
    Keeps the ranked order; the index is the rank position.
    """
    rows = [v.as_dict() for v in violations]
    return pd.DataFrame(rows, columns=list(VIOLATION_COLUMNS))


__all__ = ["records_from_frame", "violations_frame"]
