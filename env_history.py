"""Trailing-window environmental history for a device."""

from dataclasses import dataclass, field
from typing import Dict, List

import pandas as pd

from column_roles import ColumnRoleMap
from config import dprint
from errors import UnresolvedTimestampError
from tabular_source import TabularDataset
from timeseries import column_values, isoformat_utc, timed_records


@dataclass(frozen=True)
class EnvHistory:
    """Aligned series; every value list has one entry per timestamp."""

    timestamps: List[pd.Timestamp] = field(default_factory=list)
    temperature: List[float] = field(default_factory=list)
    humidity: List[float] = field(default_factory=list)
    gasr0: List[float] = field(default_factory=list)
    battery: List[float] = field(default_factory=list)

    def to_payload(self) -> Dict[str, object]:
        return {
            "timestamps": [isoformat_utc(ts) for ts in self.timestamps],
            "temperature": list(self.temperature),
            "humidity": list(self.humidity),
            "gasr0": list(self.gasr0),
            "battery": list(self.battery),
        }


def extract_env_history(
    dataset: TabularDataset,
    roles: ColumnRoleMap,
    source_name: str = "",
    window_hours: float = 3.0,
) -> EnvHistory:
    """Return readings from the last ``window_hours`` before the newest sample.

    The window is anchored on the latest valid timestamp in the file rather
    than the current time, so an offline device still shows its final hours.
    Only rows without a usable timestamp are dropped; missing readings come
    back as NaN.
    """

    if roles.timestamp is None:
        raise UnresolvedTimestampError(f'No timestamp column found in "{source_name}"')

    records = timed_records(dataset, roles.timestamp)
    if records.empty:
        return EnvHistory()

    floor = records["DateTime"].iloc[-1] - pd.Timedelta(hours=window_hours)
    window = records[records["DateTime"] >= floor]
    rows = window["Row"].tolist()
    dprint(f"[env] {len(rows)} of {len(records)} samples since {floor}")

    return EnvHistory(
        timestamps=list(window["DateTime"]),
        temperature=column_values(dataset, rows, roles.temperature),
        humidity=column_values(dataset, rows, roles.humidity),
        gasr0=column_values(dataset, rows, roles.gas_resistance),
        battery=column_values(dataset, rows, roles.battery),
    )
