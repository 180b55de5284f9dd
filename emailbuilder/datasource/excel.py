"""Data source helpers for loading recipient spreadsheets."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

import pandas as pd

EMAIL_COLUMN = "email"
NAME_COLUMN = "name"


def _clean_column_name(column: str) -> str:
    return str(column).strip()


def _normalize_columns(columns: Iterable[str]) -> dict[str, str]:
    lower_map = {_clean_column_name(column).lower(): column for column in columns}
    if EMAIL_COLUMN not in lower_map:
        raise ValueError(
            f"Invalid spreadsheet: required column '{EMAIL_COLUMN}' is missing."
        )
    rename_map = {lower_map[EMAIL_COLUMN]: EMAIL_COLUMN}
    if NAME_COLUMN in lower_map:
        rename_map[lower_map[NAME_COLUMN]] = NAME_COLUMN
    return rename_map


def _read_table(file_path: Path, sheet: str | None) -> pd.DataFrame:
    if file_path.suffix.lower() == ".csv":
        return pd.read_csv(file_path, dtype=str).fillna("")
    if sheet and sheet.strip():
        return pd.read_excel(file_path, sheet_name=sheet.strip(), dtype=str).fillna("")
    with pd.ExcelFile(file_path) as workbook:
        if not workbook.sheet_names:
            raise ValueError("No sheet found in the Excel file.")
        first_sheet = workbook.sheet_names[0]
        return pd.read_excel(workbook, sheet_name=first_sheet, dtype=str).fillna("")


def load_addresses(path: str | Path, sheet: str | None = None) -> list[tuple[str, str | None]]:
    """Load ``(email, name)`` pairs from an XLSX or CSV file.

    The ``email`` column is required, ``name`` is optional. Rows with a
    blank email are skipped.
    """
    file_path = Path(path)

    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    data = _read_table(file_path, sheet)
    data = data.rename(columns=_normalize_columns(data.columns))

    recipients: list[tuple[str, str | None]] = []
    for record in data.to_dict(orient="records"):
        email = str(record.get(EMAIL_COLUMN, "")).strip()
        if not email:
            continue
        name = str(record.get(NAME_COLUMN, "") or "").strip() or None
        recipients.append((email, name))
    return recipients
