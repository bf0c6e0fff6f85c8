"""Latest-row health snapshot for a device."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Tuple, Union

import pandas as pd

from column_roles import ColumnRoleMap
from file_store import FileEntry
from tabular_source import TabularDataset
from timeseries import isoformat_utc, to_number

TIME_SOURCE_DATA = "data"
TIME_SOURCE_FILE = "file"

Scalar = Union[str, float, int]


@dataclass(frozen=True)
class HealthSnapshot:
    source_file_name: str
    observed_at: str
    time_source: str
    temperature: Scalar
    humidity: Scalar
    battery: Scalar
    channels: List[Tuple[str, float]] = field(default_factory=list)

    def to_payload(self) -> Dict[str, object]:
        return {
            "fileName": self.source_file_name,
            "lastUpdated": self.observed_at,
            "timeSource": self.time_source,
            "temperature": self.temperature,
            "humidity": self.humidity,
            "battery": self.battery,
            "channels": {
                "labels": [label for label, _ in self.channels],
                "values": [value for _, value in self.channels],
            },
        }


def build_health_snapshot(
    dataset: TabularDataset,
    roles: ColumnRoleMap,
    entry: FileEntry,
    unavailable: str = "N/A",
) -> HealthSnapshot:
    """Summarise the last data row of ``dataset``.

    The row's own timestamp cell wins when present; otherwise the file's
    last-modified time is reported with ``timeSource == "file"``. Scalar
    readings are passed through verbatim, channels are coerced to numbers.
    """

    last = dataset.last_row

    def scalar(index):
        value = TabularDataset.cell(last, index)
        return unavailable if value is None else value

    observed_at = isoformat_utc(pd.Timestamp(entry.modified))
    time_source = TIME_SOURCE_FILE
    raw_time = TabularDataset.cell(last, roles.timestamp)
    if raw_time:
        observed_at = str(raw_time)
        time_source = TIME_SOURCE_DATA

    channels = [
        (label, to_number(TabularDataset.cell(last, col)))
        for label, col in roles.resolved_channels()
    ]

    return HealthSnapshot(
        source_file_name=entry.name,
        observed_at=observed_at,
        time_source=time_source,
        temperature=scalar(roles.temperature),
        humidity=scalar(roles.humidity),
        battery=scalar(roles.battery),
        channels=channels,
    )
