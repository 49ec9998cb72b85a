"""
CSV import for the scheduling tables.

Accepts teacher or student exports, validates every row, and upserts the
cleaned rows by id into the processed tables read by the snapshot store.
Rows without an id are inserted with a generated one.
"""

from __future__ import annotations

import argparse
import logging
import uuid
from pathlib import Path
from typing import Any, List

import pandas as pd

from ..recommendations.data_store import TABLE_COLUMNS
from .config import DEFAULT_INGESTION_CONFIG, IngestionConfig

logger = logging.getLogger(__name__)

SUPPORTED_TYPES: List[str] = ["teachers", "students"]

_BOOL_COLUMNS = {
    "teachers": {"active": True, "allow_pair": False},
    "students": {"active": True, "requires_one_on_one": False},
}
_INT_COLUMNS = {
    "teachers": ["cap_week_slots", "cap_students"],
    "students": ["grade"],
}
_ID_PREFIX = {"teachers": "t", "students": "s"}
_TRUE_VALUES = {"true", "t", "1", "yes", "y"}
_FALSE_VALUES = {"false", "f", "0", "no", "n"}


class ImportValidationError(Exception):
    """Raised when one or more rows of an import fail validation."""

    def __init__(self, errors: list[dict[str, Any]]) -> None:
        super().__init__(f"{len(errors)} invalid field(s) in import")
        self.errors = errors


def _is_number(value: str) -> bool:
    return bool(value) and not pd.isna(pd.to_numeric(value, errors="coerce"))


def validate_rows(df: pd.DataFrame, data_type: str) -> list[dict[str, Any]]:
    """Return one error dict per invalid field; row numbers count the header as row 1."""
    if data_type not in SUPPORTED_TYPES:
        return [{"row": 0, "field": "", "message": f"Unsupported data type: {data_type}"}]

    errors: list[dict[str, Any]] = []
    for index, row in df.iterrows():
        row_num = int(index) + 2
        if not row.get("name"):
            errors.append({"row": row_num, "field": "name", "message": "name is required"})
        if data_type == "teachers":
            for col in ("cap_week_slots", "cap_students"):
                if col == "cap_students" and not row.get(col):
                    continue
                if not _is_number(row.get(col, "")):
                    errors.append({"row": row_num, "field": col, "message": f"{col} must be a number"})
        else:
            if not _is_number(row.get("grade", "")):
                errors.append({"row": row_num, "field": "grade", "message": "grade must be a number"})
        for col in _BOOL_COLUMNS[data_type]:
            value = row.get(col, "").lower()
            if value and value not in _TRUE_VALUES | _FALSE_VALUES:
                errors.append({"row": row_num, "field": col, "message": f"{col} must be a boolean"})
    return errors


def _normalize(df: pd.DataFrame, data_type: str) -> pd.DataFrame:
    canonical = pd.DataFrame(index=df.index)
    for col in TABLE_COLUMNS[data_type]:
        canonical[col] = df[col] if col in df.columns else ""

    # rows without an id are inserted as new records
    missing = canonical["id"] == ""
    if missing.any():
        canonical.loc[missing, "id"] = [
            f"{_ID_PREFIX[data_type]}-{uuid.uuid4().hex[:12]}" for _ in range(int(missing.sum()))
        ]

    for col, default in _BOOL_COLUMNS[data_type].items():
        canonical[col] = canonical[col].apply(
            lambda v, d=default: str(v.lower() in _TRUE_VALUES if v else d).lower()
        )
    for col in _INT_COLUMNS[data_type]:
        # cap_students falls back to the weekly slot cap when omitted
        fallback = canonical["cap_week_slots"] if col == "cap_students" else 0
        numbers = pd.to_numeric(canonical[col], errors="coerce")
        canonical[col] = numbers.fillna(pd.to_numeric(fallback, errors="coerce")).astype(int).astype(str)
    return canonical


def import_csv(
    raw_path: Path,
    data_type: str,
    config: IngestionConfig = DEFAULT_INGESTION_CONFIG,
) -> int:
    """
    Import one CSV export.

    Steps:
    - Read the raw file and trim every cell.
    - Validate rows; nothing is written when any row is invalid.
    - Upsert normalized rows by id into the processed table; rows without
      an id get a generated one and are always inserted.
    """
    raw = pd.read_csv(raw_path, dtype=str, keep_default_na=False)
    raw.columns = [c.strip() for c in raw.columns]
    if raw.empty:
        raise ImportValidationError(
            [{"row": 1, "field": "", "message": "CSV must have a header row and at least one data row"}]
        )
    raw = raw.apply(lambda col: col.str.strip())

    errors = validate_rows(raw, data_type)
    if errors:
        raise ImportValidationError(errors)

    rows = _normalize(raw, data_type)

    config.processed_data_dir.mkdir(parents=True, exist_ok=True)
    output_path = config.processed_path(data_type)
    if output_path.exists():
        existing = pd.read_csv(output_path, dtype=str, keep_default_na=False)
        rows = pd.concat([existing, rows], ignore_index=True)
    rows = rows.drop_duplicates(subset=["id"], keep="last")
    rows[TABLE_COLUMNS[data_type]].to_csv(output_path, index=False)

    logger.info("Imported %d %s row(s) into %s", len(raw), data_type, output_path)
    return len(raw)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Import a teacher or student CSV export.")
    parser.add_argument("data_type", choices=SUPPORTED_TYPES)
    parser.add_argument("path", type=Path)
    args = parser.parse_args()
    count = import_csv(args.path, args.data_type)
    print(f"Import complete. {count} {args.data_type} row(s) saved.")
