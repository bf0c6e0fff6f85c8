"""Timestamp and numeric coercion shared by the time-based queries."""

from __future__ import annotations

from typing import Iterable, List, Optional

import numpy as np
import pandas as pd

from tabular_source import TabularDataset


def to_instant(value: object) -> pd.Timestamp:
    """Return a UTC timestamp, or ``NaT`` for blank or unparseable input.

    Naive timestamps are taken to be UTC.
    """

    if value is None or (isinstance(value, float) and pd.isna(value)):
        return pd.NaT
    text = str(value).strip()
    if not text:
        return pd.NaT
    try:
        return pd.to_datetime(text, utc=True)
    except (ValueError, TypeError, OverflowError):
        return pd.NaT


def parse_instants(values: Iterable[object]) -> pd.Series:
    """Vectorised :func:`to_instant` over a column of raw cells."""

    raw = pd.Series(list(values), dtype=object)
    if raw.empty:
        return pd.Series([], dtype="datetime64[ns, UTC]")
    text = raw.fillna("").astype(str).str.strip()
    return pd.to_datetime(text.where(text != ""), errors="coerce", utc=True, format="mixed")


def to_number(value: object) -> float:
    """Return ``value`` as a float; non-numeric or blank cells become NaN."""

    if value is None:
        return np.nan
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    text = str(value).strip()
    if not text:
        return np.nan
    try:
        return float(text)
    except ValueError:
        return np.nan


def timed_records(dataset: TabularDataset, timestamp_col: int) -> pd.DataFrame:
    """Return ``DateTime``/``Row`` pairs for rows with a valid timestamp.

    Rows whose timestamp cell is missing or unparseable are dropped; the
    remaining rows are sorted ascending by time, keeping file order for ties.
    """

    rows = dataset.data_rows
    cells = [TabularDataset.cell(row, timestamp_col) for row in rows]
    work = pd.DataFrame({"DateTime": parse_instants(cells), "Row": range(len(rows))})
    work = work.dropna(subset=["DateTime"])
    return work.sort_values("DateTime", kind="mergesort").reset_index(drop=True)


def column_values(
    dataset: TabularDataset, rows: Iterable[int], column: Optional[int]
) -> List[float]:
    data = dataset.data_rows
    return [to_number(TabularDataset.cell(data[i], column)) for i in rows]


def isoformat_utc(ts: pd.Timestamp) -> str:
    """Render an instant as ``YYYY-MM-DDTHH:MM:SS[.fff]Z``."""

    ts = pd.Timestamp(ts)
    if ts.tzinfo is None:
        ts = ts.tz_localize("UTC")
    ts = ts.tz_convert("UTC")
    if ts.microsecond:
        return ts.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ts.microsecond // 1000:03d}Z"
    return ts.strftime("%Y-%m-%dT%H:%M:%SZ")
