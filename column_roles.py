"""Resolve semantic column roles from a device file header.

Device firmware versions name their columns differently (``Temp`` vs
``Temperature(C)``, ``Bat(%)`` vs ``Battery``), so every role is matched by
a set of case-insensitive substrings rather than a fixed header. Channel
columns are the exception: they must be exactly ``CHR0`` .. ``CHR31``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from config import dprint

ROLE_TIMESTAMP = "timestamp"
ROLE_TEMPERATURE = "temperature"
ROLE_HUMIDITY = "humidity"
ROLE_BATTERY = "battery"
ROLE_GAS_RESISTANCE = "gas_resistance"

# Case-insensitive substring patterns per scalar role.
ROLE_PATTERNS: Dict[str, re.Pattern] = {
    ROLE_TIMESTAMP: re.compile(r"Timestamp|Time|Date|Created", re.IGNORECASE),
    ROLE_TEMPERATURE: re.compile(r"Temperature|Temp", re.IGNORECASE),
    ROLE_HUMIDITY: re.compile(r"Humidity|Hum", re.IGNORECASE),
    ROLE_BATTERY: re.compile(
        r"Bat\(%\)|Bat%|Battery|Batt|Charge|Voltage", re.IGNORECASE
    ),
    ROLE_GAS_RESISTANCE: re.compile(r"GASR0|Gas\(Res\)", re.IGNORECASE),
}


def channel_label(index: int) -> str:
    return f"CHR{index}"


@dataclass(frozen=True)
class ColumnRoleMap:
    """Zero-based column index per role; ``None`` means the role is unresolved."""

    timestamp: Optional[int] = None
    temperature: Optional[int] = None
    humidity: Optional[int] = None
    battery: Optional[int] = None
    gas_resistance: Optional[int] = None
    channels: Dict[int, int] = field(default_factory=dict)

    def resolved_channels(self) -> List[tuple]:
        """Return ``(label, column)`` pairs in ascending channel order."""

        return [(channel_label(i), self.channels[i]) for i in sorted(self.channels)]


def _first_match(header: Sequence[str], pattern: re.Pattern) -> Optional[int]:
    return next(
        (idx for idx, col in enumerate(header) if pattern.search(col)),
        None,
    )


def resolve_columns(
    header: Iterable[object],
    channel_slots: int = 32,
    patterns: Mapping[str, re.Pattern] = ROLE_PATTERNS,
) -> ColumnRoleMap:
    """Map a header row to a :class:`ColumnRoleMap`.

    Every scalar role takes the leftmost header containing one of its
    patterns, independently of the other roles; channels need an exact
    ``CHR{i}`` header. Unmatched roles stay ``None``.
    """

    cols = [str(col).strip() if col is not None else "" for col in header]

    channels: Dict[int, int] = {}
    for i in range(channel_slots):
        if channel_label(i) in cols:
            channels[i] = cols.index(channel_label(i))

    resolved: Dict[str, Optional[int]] = {
        role: _first_match(cols, pattern) for role, pattern in patterns.items()
    }

    dprint(f"[columns] roles={resolved} channels={sorted(channels)}")
    return ColumnRoleMap(channels=channels, **resolved)
