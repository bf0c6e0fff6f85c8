"""Utilities for deriving a device's offline intervals from its sample times."""

from dataclasses import dataclass
from typing import Dict, List

import numpy as np
import pandas as pd

from column_roles import ColumnRoleMap
from config import dprint
from errors import UnresolvedTimestampError
from tabular_source import TabularDataset
from timeseries import isoformat_utc, timed_records


@dataclass(frozen=True)
class OfflineInterval:
    start: pd.Timestamp
    end: pd.Timestamp
    duration_minutes: int
    is_ongoing: bool = False

    def to_payload(self) -> Dict[str, object]:
        return {
            "start": isoformat_utc(self.start),
            "end": isoformat_utc(self.end),
            "durationMinutes": self.duration_minutes,
            "isOngoing": self.is_ongoing,
        }


@dataclass(frozen=True)
class OfflineReport:
    intervals: List[OfflineInterval]
    data_points: int

    def to_payload(self) -> Dict[str, object]:
        return {
            "intervals": [interval.to_payload() for interval in self.intervals],
            "dataPoints": self.data_points,
        }


def _round_minutes(delta: pd.Timedelta) -> int:
    """Whole minutes, halves rounded up."""

    return int(np.floor(delta.total_seconds() / 60.0 + 0.5))


def detect_offline_intervals(
    instants: pd.Series,
    now: pd.Timestamp,
    window_hours: float = 12.0,
    gap_threshold_minutes: float = 1.0,
) -> OfflineReport:
    """Return the gaps longer than the threshold within the trailing window.

    ``instants`` may be unsorted and may contain ``NaT``. Each gap between
    consecutive valid samples longer than the threshold becomes an interval;
    a final interval ending at ``now`` is flagged ongoing when the last
    sample is itself stale.
    """

    now = pd.Timestamp(now)
    if now.tzinfo is None:
        now = now.tz_localize("UTC")
    floor = now - pd.Timedelta(hours=window_hours)
    threshold = pd.Timedelta(minutes=gap_threshold_minutes)

    times = pd.to_datetime(instants, utc=True).dropna()
    times = times[times >= floor].sort_values(kind="mergesort").reset_index(drop=True)
    if times.empty:
        return OfflineReport(intervals=[], data_points=0)

    intervals: List[OfflineInterval] = []
    gaps = times.diff().iloc[1:]
    for pos in np.flatnonzero((gaps > threshold).to_numpy()):
        start = times.iloc[pos]
        end = times.iloc[pos + 1]
        intervals.append(
            OfflineInterval(start=start, end=end, duration_minutes=_round_minutes(end - start))
        )

    last = times.iloc[-1]
    if now - last > threshold:
        intervals.append(
            OfflineInterval(
                start=last,
                end=now,
                duration_minutes=_round_minutes(now - last),
                is_ongoing=True,
            )
        )

    dprint(f"[offline] {len(times)} samples since {floor}, {len(intervals)} intervals")
    return OfflineReport(intervals=intervals, data_points=int(len(times)))


def compute_offline_report(
    dataset: TabularDataset,
    roles: ColumnRoleMap,
    now: pd.Timestamp,
    source_name: str = "",
    window_hours: float = 12.0,
    gap_threshold_minutes: float = 1.0,
) -> OfflineReport:
    if roles.timestamp is None:
        raise UnresolvedTimestampError(f'No timestamp column found in "{source_name}"')
    records = timed_records(dataset, roles.timestamp)
    return detect_offline_intervals(
        records["DateTime"],
        now,
        window_hours=window_hours,
        gap_threshold_minutes=gap_threshold_minutes,
    )
