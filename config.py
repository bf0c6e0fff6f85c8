"""Runtime configuration for the wearable context service."""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

# Debug toggler: set WCS_DEBUG=1 to enable verbose service logs
DEBUG = os.getenv("WCS_DEBUG", "0") == "1"


def dprint(*args, **kwargs):
    if DEBUG:
        print(*args, **kwargs)


@dataclass(frozen=True)
class ServiceConfig:
    """Folder names, analysis windows and thresholds used by the service.

    Defaults mirror the deployed web app: a 12 hour offline analysis window,
    a 3 hour environmental window, a 1 minute gap threshold and 32 channel
    slots (``CHR0`` .. ``CHR31``).
    """

    data_root: str = "./drive"
    sensor_folder_name: str = "Wearable sensor data"
    annotation_folder_name: str = "Wearable_deepskin_context"
    offline_window_hours: float = 12.0
    env_window_hours: float = 3.0
    gap_threshold_minutes: float = 1.0
    channel_slots: int = 32
    accept_flat_text_sources: bool = False
    display_timezone: Optional[str] = None
    unavailable_value: str = "N/A"


def _env_float(environ: Mapping[str, str], key: str, default: float) -> float:
    raw = environ.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{key} must be numeric, got {raw!r}") from exc


def _env_flag(environ: Mapping[str, str], key: str, default: bool) -> bool:
    raw = environ.get(key)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def load_config(environ: Optional[Mapping[str, str]] = None) -> ServiceConfig:
    """Build a :class:`ServiceConfig` from ``WCS_*`` environment variables."""

    env = os.environ if environ is None else environ
    defaults = ServiceConfig()

    channel_slots = _env_float(env, "WCS_CHANNEL_SLOTS", defaults.channel_slots)
    return ServiceConfig(
        data_root=env.get("WCS_DATA_ROOT", defaults.data_root),
        sensor_folder_name=env.get("WCS_SENSOR_FOLDER", defaults.sensor_folder_name),
        annotation_folder_name=env.get(
            "WCS_ANNOTATION_FOLDER", defaults.annotation_folder_name
        ),
        offline_window_hours=_env_float(
            env, "WCS_OFFLINE_WINDOW_HOURS", defaults.offline_window_hours
        ),
        env_window_hours=_env_float(env, "WCS_ENV_WINDOW_HOURS", defaults.env_window_hours),
        gap_threshold_minutes=_env_float(
            env, "WCS_GAP_THRESHOLD_MINUTES", defaults.gap_threshold_minutes
        ),
        channel_slots=int(channel_slots),
        accept_flat_text_sources=_env_flag(
            env, "WCS_ACCEPT_FLAT_TEXT", defaults.accept_flat_text_sources
        ),
        display_timezone=env.get("WCS_DISPLAY_TZ") or defaults.display_timezone,
    )
