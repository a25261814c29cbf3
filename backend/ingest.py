"""
Spreadsheet ingestion: turn an uploaded CSV or Excel file into a header row,
raw data rows, and an inferred column schema.
"""
from __future__ import annotations

from datetime import date, datetime, time
from io import BytesIO, StringIO
import logging
import math
from typing import Any

import numpy as np
import pandas as pd

from backend.analytics import is_blank, to_number, to_timestamp
from backend.schemas import ColumnDefinition, ColumnType

logger = logging.getLogger(__name__)

CSV_CONTENT_TYPES = {"text/csv", "application/csv"}
EXCEL_CONTENT_TYPES = {
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-excel",
}


class SpreadsheetError(ValueError):
    """Base class for uploads that cannot be turned into a dataset."""


class UnsupportedFileType(SpreadsheetError):
    def __init__(self) -> None:
        super().__init__("Unsupported file type. Please upload CSV or Excel files.")


class EmptyFileError(SpreadsheetError):
    def __init__(self) -> None:
        super().__init__("File appears to be empty")


class SpreadsheetParseError(SpreadsheetError):
    pass


def _normalize_cell(value: Any) -> Any:
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, np.datetime64):
        value = pd.Timestamp(value)
        if value is pd.NaT:
            return None
    elif isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, str) and not value.strip():
        return None
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return value


def _header_name(value: Any, index: int) -> str:
    if is_blank(value):
        return f"Column {index + 1}"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _dedupe_headers(headers: list[str]) -> list[str]:
    used: set[str] = set()
    result = []
    for header in headers:
        name = header
        suffix = 2
        while name in used:
            name = f"{header} ({suffix})"
            suffix += 1
        used.add(name)
        result.append(name)
    return result


def _is_csv(filename: str, content_type: str | None) -> bool:
    return (content_type or "").lower() in CSV_CONTENT_TYPES or filename.lower().endswith(".csv")


def _is_excel(filename: str, content_type: str | None) -> bool:
    return (content_type or "").lower() in EXCEL_CONTENT_TYPES or filename.lower().endswith((".xlsx", ".xls"))


def _read_csv(content: bytes) -> pd.DataFrame:
    text = content.decode("utf-8-sig", errors="replace")
    try:
        # The header row fixes the width; wider data rows lose their extra cells.
        width = pd.read_csv(StringIO(text), header=None, nrows=1, dtype=str).shape[1]
        return pd.read_csv(
            StringIO(text),
            header=None,
            names=list(range(width)),
            index_col=False,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            engine="python",
            on_bad_lines=lambda bad_line: bad_line[:width],
        )
    except pd.errors.EmptyDataError as exc:
        raise EmptyFileError() from exc
    except Exception as exc:
        raise SpreadsheetParseError(f"CSV parsing failed: {exc}") from exc


def _read_excel(content: bytes) -> pd.DataFrame:
    try:
        return pd.read_excel(BytesIO(content), sheet_name=0, header=None)
    except Exception as exc:
        raise SpreadsheetParseError(f"Excel parsing failed: {exc}") from exc


def parse_upload(filename: str, content_type: str | None, content: bytes) -> tuple[list[str], list[list[Any]]]:
    """Read an uploaded spreadsheet into ``(headers, rows)``.

    The first non-empty row of the file is the header. Cells are normalized
    so that blanks become ``None`` and timestamps become ISO strings.
    """
    filename = filename or ""
    if _is_csv(filename, content_type):
        df = _read_csv(content)
    elif _is_excel(filename, content_type):
        df = _read_excel(content)
    else:
        raise UnsupportedFileType()

    grid = [
        [_normalize_cell(value) for value in record]
        for record in df.itertuples(index=False, name=None)
    ]
    grid = [row for row in grid if any(value is not None for value in row)]
    if not grid:
        raise EmptyFileError()

    headers = _dedupe_headers([_header_name(value, idx) for idx, value in enumerate(grid[0])])
    rows = grid[1:]
    logger.debug("parsed %s: %d columns, %d rows", filename, len(headers), len(rows))
    return headers, rows


def infer_column_type(values: list[Any]) -> ColumnType:
    non_empty = [value for value in values if not is_blank(value)]
    if not non_empty:
        return "text"
    if all(to_number(value) is not None for value in non_empty):
        return "number"
    if all(to_timestamp(value) is not None for value in non_empty):
        return "date"
    return "text"


def infer_schema(headers: list[str], rows: list[list[Any]], sample_size: int = 100) -> list[ColumnDefinition]:
    sample = rows[:sample_size]
    columns = []
    for index, header in enumerate(headers):
        values = [row[index] if index < len(row) else None for row in sample]
        columns.append(ColumnDefinition(name=header, type=infer_column_type(values), index=index))
    return columns


def rows_to_records(headers: list[str], rows: list[list[Any]]) -> list[dict[str, Any]]:
    records = []
    for row in rows:
        records.append(
            {header: (row[index] if index < len(row) else None) for index, header in enumerate(headers)}
        )
    return records
