"""Route requests to the device queries and the annotation log."""

from __future__ import annotations

import math
from typing import Callable, Dict, Optional, Tuple

import pandas as pd

from annotation_log import annotation_payload, append_annotation, build_record
from column_roles import ColumnRoleMap, resolve_columns
from config import ServiceConfig, dprint
from device_locator import locate_device_file
from env_history import extract_env_history
from errors import ServiceError
from file_store import FileEntry, FileStore
from health import build_health_snapshot
from offline import compute_offline_report
from request_models import (
    ACTION_DEVICE_HEALTH,
    ACTION_ENV_HISTORY,
    ACTION_OFFLINE_DATA,
    AnnotationSubmission,
    EnvHistoryQuery,
    HealthQuery,
    OfflineQuery,
    parse_request,
)
from tabular_source import TabularDataset, open_source

Payload = Dict[str, object]


def _utc_now() -> pd.Timestamp:
    return pd.Timestamp.now(tz="UTC")


def json_safe(value):
    """Replace NaN/inf with ``None`` so the payload is strict JSON."""

    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {key: json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [json_safe(item) for item in value]
    return value


class SensorService:
    """Stateless request handler; every call re-reads the store."""

    def __init__(
        self,
        store: FileStore,
        config: Optional[ServiceConfig] = None,
        clock: Callable[[], pd.Timestamp] = _utc_now,
    ) -> None:
        self.store = store
        self.config = config or ServiceConfig()
        self.clock = clock

    def _load_device(self, device_id: str) -> Tuple[FileEntry, TabularDataset, ColumnRoleMap]:
        entry = locate_device_file(self.store, device_id, self.config)
        dataset = open_source(self.store, entry).read_all()
        roles = resolve_columns(dataset.header, self.config.channel_slots)
        return entry, dataset, roles

    def device_health(self, device_id: str) -> Payload:
        entry, dataset, roles = self._load_device(device_id)
        snapshot = build_health_snapshot(
            dataset, roles, entry, unavailable=self.config.unavailable_value
        )
        return snapshot.to_payload()

    def offline_data(self, device_id: str) -> Payload:
        entry, dataset, roles = self._load_device(device_id)
        report = compute_offline_report(
            dataset,
            roles,
            self.clock(),
            source_name=entry.name,
            window_hours=self.config.offline_window_hours,
            gap_threshold_minutes=self.config.gap_threshold_minutes,
        )
        return report.to_payload()

    def env_history(self, device_id: str) -> Payload:
        entry, dataset, roles = self._load_device(device_id)
        history = extract_env_history(
            dataset,
            roles,
            source_name=entry.name,
            window_hours=self.config.env_window_hours,
        )
        return history.to_payload()

    def submit_annotation(self, request: AnnotationSubmission) -> Payload:
        record = build_record(
            request.userName,
            request.deviceId,
            request.eventId,
            context=request.context,
            timestamp=request.timestamp,
            now=self.clock(),
        )
        result = append_annotation(self.store, record, self.config)
        return annotation_payload(result)

    def describe(self) -> Payload:
        return {
            "status": "Annotation App API is running",
            "message": (
                'Send POST requests with action="submit_annotation", '
                f'"{ACTION_DEVICE_HEALTH}", "{ACTION_OFFLINE_DATA}" '
                f'or "{ACTION_ENV_HISTORY}"'
            ),
            "actions": [
                "submit_annotation",
                ACTION_DEVICE_HEALTH,
                ACTION_OFFLINE_DATA,
                ACTION_ENV_HISTORY,
            ],
        }

    def dispatch(self, payload: object) -> Payload:
        request = parse_request(payload)
        if isinstance(request, HealthQuery):
            return self.device_health(request.deviceId)
        if isinstance(request, OfflineQuery):
            return self.offline_data(request.deviceId)
        if isinstance(request, EnvHistoryQuery):
            return self.env_history(request.deviceId)
        return self.submit_annotation(request)

    def handle(self, payload: object) -> Payload:
        """Run one request and always answer with a ``success`` flag."""

        try:
            result = self.dispatch(payload)
        except ServiceError as exc:
            dprint(f"[service] {type(exc).__name__}: {exc}")
            return {"success": False, "message": str(exc)}
        except Exception as exc:
            print(f"Error: {exc}")
            return {"success": False, "message": f"Error: {exc}"}
        return json_safe({"success": True, **result})
