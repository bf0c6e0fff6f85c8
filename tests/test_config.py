import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from config import ServiceConfig, load_config


def test_defaults():
    config = load_config({})

    assert config == ServiceConfig()
    assert config.offline_window_hours == 12.0
    assert config.env_window_hours == 3.0
    assert config.gap_threshold_minutes == 1.0
    assert config.channel_slots == 32
    assert config.accept_flat_text_sources is False


def test_environment_overrides():
    config = load_config(
        {
            "WCS_DATA_ROOT": "/srv/drive",
            "WCS_SENSOR_FOLDER": "Sensors",
            "WCS_ANNOTATION_FOLDER": "Notes",
            "WCS_OFFLINE_WINDOW_HOURS": "6",
            "WCS_GAP_THRESHOLD_MINUTES": "2.5",
            "WCS_CHANNEL_SLOTS": "8",
            "WCS_ACCEPT_FLAT_TEXT": "yes",
            "WCS_DISPLAY_TZ": "Europe/Oslo",
        }
    )

    assert config.data_root == "/srv/drive"
    assert config.sensor_folder_name == "Sensors"
    assert config.annotation_folder_name == "Notes"
    assert config.offline_window_hours == 6.0
    assert config.gap_threshold_minutes == 2.5
    assert config.channel_slots == 8
    assert config.accept_flat_text_sources is True
    assert config.display_timezone == "Europe/Oslo"


def test_bad_numeric_override():
    with pytest.raises(ValueError, match="WCS_ENV_WINDOW_HOURS"):
        load_config({"WCS_ENV_WINDOW_HOURS": "three"})
