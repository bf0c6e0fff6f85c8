import sys
from pathlib import Path

import pandas as pd
import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from column_roles import resolve_columns
from errors import UnresolvedTimestampError
from offline import compute_offline_report, detect_offline_intervals
from tabular_source import TabularDataset

NOW = pd.Timestamp("2024-01-01T00:21:00Z")


def _report(rows, now=NOW):
    dataset = TabularDataset(rows=rows)
    return compute_offline_report(dataset, resolve_columns(dataset.header), now, "DEV1")


def test_sample_scenario_single_gap():
    report = _report(
        [
            ["Timestamp", "Temp", "CHR0"],
            ["2024-01-01T00:00:00Z", "20", "5"],
            ["2024-01-01T00:20:00Z", "21", "6"],
        ]
    )

    assert report.data_points == 2
    assert report.to_payload()["intervals"] == [
        {
            "start": "2024-01-01T00:00:00Z",
            "end": "2024-01-01T00:20:00Z",
            "durationMinutes": 20,
            "isOngoing": False,
        }
    ]


def test_single_gap_between_dense_clusters():
    first = pd.date_range("2024-01-01 00:00", periods=5, freq="1min", tz="UTC")
    second = pd.date_range("2024-01-01 00:34", periods=5, freq="30s", tz="UTC")
    instants = pd.Series(first.append(second))
    now = second[-1] + pd.Timedelta(seconds=30)

    report = detect_offline_intervals(instants, now)

    assert len(report.intervals) == 1
    gap = report.intervals[0]
    assert gap.start == first[-1]
    assert gap.end == second[0]
    assert gap.duration_minutes == 30
    assert not gap.is_ongoing


def test_stale_last_sample_is_ongoing():
    instants = pd.Series(pd.to_datetime(["2024-01-01 00:00:00", "2024-01-01 00:00:30"], utc=True))
    now = pd.Timestamp("2024-01-01 00:45:30", tz="UTC")

    report = detect_offline_intervals(instants, now)

    ongoing = [interval for interval in report.intervals if interval.is_ongoing]
    assert len(ongoing) == 1
    assert ongoing[0].end == now
    assert ongoing[0].duration_minutes == 45


def test_single_stale_sample_still_reports_ongoing_gap():
    report = _report([["Timestamp"], ["2024-01-01T00:10:00Z"]])

    assert report.data_points == 1
    assert len(report.intervals) == 1
    assert report.intervals[0].is_ongoing
    assert report.intervals[0].duration_minutes == 11


def test_unsorted_rows_and_invalid_timestamps():
    report = _report(
        [
            ["Date"],
            ["2024-01-01T00:20:00Z"],
            ["not a date"],
            [""],
            ["2024-01-01T00:00:00Z"],
            ["2024-01-01T00:10:00Z"],
        ]
    )

    assert report.data_points == 3
    assert [i.duration_minutes for i in report.intervals] == [10, 10]


def test_samples_older_than_window_are_ignored():
    report = _report(
        [
            ["Timestamp"],
            ["2023-12-31T11:00:00Z"],
            ["2024-01-01T00:20:30Z"],
        ]
    )

    assert report.data_points == 1
    assert report.intervals == []


def test_no_surviving_samples():
    report = _report([["Timestamp"], ["2023-01-01T00:00:00Z"], ["garbage"]])

    assert report.data_points == 0
    assert report.to_payload() == {"intervals": [], "dataPoints": 0}


def test_gap_exactly_at_threshold_is_not_offline():
    instants = pd.Series(pd.to_datetime(["2024-01-01 00:00", "2024-01-01 00:01"], utc=True))

    report = detect_offline_intervals(instants, pd.Timestamp("2024-01-01 00:02", tz="UTC"))

    assert report.intervals == []


def test_requires_timestamp_column():
    with pytest.raises(UnresolvedTimestampError, match='No timestamp column found in "DEV1"'):
        _report([["Temp"], ["20"]])
