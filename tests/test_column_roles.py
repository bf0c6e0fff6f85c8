import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from column_roles import ROLE_PATTERNS, ColumnRoleMap, resolve_columns


def test_resolves_scalar_roles_case_insensitively():
    header = ["created_at", "TEMP (C)", "humidity %", "Bat(%)", "GASR0", "CHR0", "CHR2"]

    roles = resolve_columns(header)

    assert roles.timestamp == 0
    assert roles.temperature == 1
    assert roles.humidity == 2
    assert roles.battery == 3
    assert roles.gas_resistance == 4
    assert roles.channels == {0: 5, 2: 6}
    assert roles.resolved_channels() == [("CHR0", 5), ("CHR2", 6)]


def test_unmatched_roles_stay_unresolved():
    roles = resolve_columns(["Device", "CHR1"])

    assert roles.timestamp is None
    assert roles.temperature is None
    assert roles.humidity is None
    assert roles.battery is None
    assert roles.gas_resistance is None
    assert roles.channels == {1: 1}


def test_first_matching_column_wins():
    roles = resolve_columns(["Date", "Timestamp", "Temperature", "Temp2"])

    assert roles.timestamp == 0
    assert roles.temperature == 2


def test_channels_require_exact_header():
    roles = resolve_columns(["chr0", "CHR0 ", "CHR00", "CHR31", "CHR32"])

    # Header cells are trimmed, so "CHR0 " still counts; lower case does not.
    assert roles.channels == {0: 1, 31: 3}


def test_channel_slots_limit_resolution():
    roles = resolve_columns(["CHR0", "CHR5"], channel_slots=4)

    assert roles.channels == {0: 0}


def test_each_role_takes_its_own_leftmost_match():
    roles = resolve_columns(["Temp Time", "Temperature"])

    assert roles.timestamp == 0
    assert roles.temperature == 0


def test_role_evaluation_order_does_not_change_result():
    header = ["Date/Temp", "Humidity Time", "Bat% Hum", "GASR0", "Voltage", "CHR1", "CHR0"]
    reordered = dict(reversed(list(ROLE_PATTERNS.items())))

    assert resolve_columns(header, patterns=reordered) == resolve_columns(header)
    assert list(reordered) != list(ROLE_PATTERNS)



def test_battery_aliases():
    for header in ("Bat%", "Battery level", "Batt", "Charge", "Voltage"):
        assert resolve_columns(["Timestamp", header]).battery == 1


def test_resolution_is_idempotent():
    header = ["Timestamp", "Temp", "Hum", "Voltage", "Gas(Res)", "CHR3"]

    first = resolve_columns(header)
    second = resolve_columns(header)

    assert first == second
    assert isinstance(first, ColumnRoleMap)
    assert first.gas_resistance == 4
