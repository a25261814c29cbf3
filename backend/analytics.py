from __future__ import annotations

from datetime import datetime
import math
import re
from typing import Any

import numpy as np
import pandas as pd

from backend.schemas import ChartDataCreate, ColumnDefinition, MetricCreate

CATEGORY_CHART_LIMIT = 5
DISTRIBUTION_CHART_LIMIT = 3
UNKNOWN_LABEL = "Unknown"

_CURRENCY_PREFIXES = ("$", "€", "£", "¥")

# dateutil turns bare words such as "Mon" or "March" into dates, so a value
# has to carry a day or year number next to its month before we try it.
_DATE_HINT = re.compile(
    r"\d{1,4}[-/.]\d{1,2}"
    r"|\d{1,2}\s+[A-Za-z]{3,}"
    r"|[A-Za-z]{3,}\.?\s+\d{1,2}"
)


def _safe_number(value: Any) -> float | None:
    if value is None or pd.isna(value):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if np.isinf(number):
        return None
    return number


def to_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, np.number)):
        return _safe_number(value)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if text.startswith(_CURRENCY_PREFIXES):
        text = text[1:].strip()
    text = text.replace(",", "")
    if not text or "_" in text:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return number


def to_timestamp(value: Any) -> pd.Timestamp | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        text = value.strip()
        if not _DATE_HINT.search(text):
            return None
        try:
            stamp = pd.Timestamp(pd.to_datetime(text))
        except (ValueError, TypeError, OverflowError):
            return None
    elif isinstance(value, datetime):
        stamp = pd.Timestamp(value)
    else:
        return None

    if pd.isna(stamp):
        return None
    if stamp.tzinfo is not None:
        stamp = stamp.tz_convert(None)
    return stamp


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return isinstance(value, float) and math.isnan(value)


def _label(value: Any) -> str:
    return UNKNOWN_LABEL if is_blank(value) else str(value)


def format_number(value: float) -> str:
    """Group thousands and keep at most three fraction digits: ``1,234.5``."""
    text = f"{value:,.3f}".rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def _decimal_string(value: float) -> str:
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def _first_of_type(columns: list[ColumnDefinition], column_type: str) -> ColumnDefinition | None:
    return next((col for col in columns if col.type == column_type), None)


def generate_metrics(
    columns: list[ColumnDefinition],
    rows: list[dict[str, Any]],
    total_rows: int | None = None,
) -> list[MetricCreate]:
    if not rows:
        return []

    now = datetime.now()
    metrics: list[MetricCreate] = []
    for col in columns:
        if col.type != "number":
            continue
        values = [number for number in (to_number(row.get(col.name)) for row in rows) if number is not None]
        if not values:
            continue

        array = np.asarray(values, dtype=float)
        metrics.append(MetricCreate(name=f"Total {col.name}", value=format_number(float(array.sum())), date=now))
        metrics.append(MetricCreate(name=f"Avg {col.name}", value=f"{float(array.mean()):.2f}", date=now))

    record_count = len(rows) if total_rows is None else total_rows
    metrics.append(MetricCreate(name="Total Records", value=f"{record_count:,}", date=now))
    return metrics


def _revenue_series(
    rows: list[dict[str, Any]],
    date_col: ColumnDefinition,
    value_col: ColumnDefinition,
    now: datetime,
) -> list[ChartDataCreate]:
    days = []
    for row in rows:
        stamp = to_timestamp(row.get(date_col.name))
        days.append(stamp.date().isoformat() if stamp is not None else None)

    frame = pd.DataFrame(
        {
            "day": days,
            "value": [to_number(row.get(value_col.name)) or 0.0 for row in rows],
        }
    ).dropna(subset=["day"])
    if frame.empty:
        return []

    grouped = frame.groupby("day", sort=True)["value"].sum()
    return [
        ChartDataCreate(type="revenue", label=day, value=_decimal_string(float(total)), date=now)
        for day, total in grouped.items()
    ]


def _category_series(
    rows: list[dict[str, Any]],
    label_col: ColumnDefinition,
    value_col: ColumnDefinition,
    now: datetime,
) -> list[ChartDataCreate]:
    frame = pd.DataFrame(
        {
            "label": [_label(row.get(label_col.name)) for row in rows],
            "value": [to_number(row.get(value_col.name)) or 0.0 for row in rows],
        }
    )
    grouped = (
        frame.groupby("label", sort=False)["value"]
        .sum()
        .sort_values(ascending=False, kind="stable")
        .head(CATEGORY_CHART_LIMIT)
    )
    return [
        ChartDataCreate(type="category", label=label, value=_decimal_string(float(total)), date=now)
        for label, total in grouped.items()
    ]


def _distribution_series(
    rows: list[dict[str, Any]],
    label_col: ColumnDefinition,
    now: datetime,
) -> list[ChartDataCreate]:
    labels = pd.Series([_label(row.get(label_col.name)) for row in rows], dtype=object)
    counts = (
        labels.groupby(labels, sort=False)
        .size()
        .sort_values(ascending=False, kind="stable")
        .head(DISTRIBUTION_CHART_LIMIT)
    )
    total = len(rows)
    return [
        ChartDataCreate(type="distribution", label=label, value=f"{count / total * 100:.1f}", date=now)
        for label, count in counts.items()
    ]


def generate_charts(columns: list[ColumnDefinition], rows: list[dict[str, Any]]) -> dict[str, list[ChartDataCreate]]:
    charts: dict[str, list[ChartDataCreate]] = {"revenue": [], "category": [], "distribution": []}
    if not rows:
        return charts

    now = datetime.now()
    date_col = _first_of_type(columns, "date")
    number_col = _first_of_type(columns, "number")
    text_col = _first_of_type(columns, "text")

    if date_col and number_col:
        charts["revenue"] = _revenue_series(rows, date_col, number_col, now)

    if text_col and number_col:
        charts["category"] = _category_series(rows, text_col, number_col, now)

    if text_col:
        charts["distribution"] = _distribution_series(rows, text_col, now)

    return charts


def profile_columns(columns: list[ColumnDefinition], rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    names = [col.name for col in columns]
    df = pd.DataFrame.from_records(rows, columns=names) if rows else pd.DataFrame(columns=names)

    profile = []
    for col in columns:
        series = df[col.name]
        non_null = series.dropna()
        example = None
        if not non_null.empty:
            example = non_null.iloc[0]
            if isinstance(example, np.generic):
                example = example.item()

        entry: dict[str, Any] = {
            "name": col.name,
            "type": col.type,
            "missing": int(series.isna().sum()),
            "unique": int(non_null.astype(str).nunique()),
            "example": example,
        }

        if col.type == "number":
            numbers = pd.Series([to_number(value) for value in series], dtype="float64").dropna()
            if not numbers.empty:
                entry.update(
                    {
                        "min": _safe_number(numbers.min()),
                        "max": _safe_number(numbers.max()),
                        "mean": _safe_number(numbers.mean()),
                        "sum": _safe_number(numbers.sum()),
                    }
                )
        elif col.type == "date":
            stamps = [stamp for stamp in (to_timestamp(value) for value in series) if stamp is not None]
            if stamps:
                entry["earliest"] = min(stamps).date().isoformat()
                entry["latest"] = max(stamps).date().isoformat()

        profile.append(entry)
    return profile
