"""Append human-entered context annotations to per-user, per-device logs.

Each (user, device) pair owns one CSV log in the annotation folder, named
``{user}_{device}.csv`` after sanitising both parts. The log is created with
a fixed quoted header on first submission and then grows by one row per
submission.

Appends are read-modify-write: the whole log is read, the new row is added
in memory and the file is rewritten. There is no locking, so two
simultaneous submissions for the same log can lose one of the rows. Callers
that need concurrent writers should serialise appends per log name.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional, Sequence
from zoneinfo import ZoneInfo

import pandas as pd

from config import ServiceConfig, dprint
from errors import MissingFieldError, UnexpectedError
from file_store import CSV_MIME, FileStore
from timeseries import to_instant

ANNOTATION_HEADER = '"Timestamp","User Name","Device ID","Event ID","Context"\n'

_UNSAFE_NAME_CHARS = re.compile(r"[^a-zA-Z0-9_-]")


@dataclass(frozen=True)
class AnnotationRecord:
    timestamp: pd.Timestamp
    user_name: str
    device_id: str
    event_id: str
    context: str = ""


@dataclass(frozen=True)
class AppendResult:
    file_name: str
    folder_name: str


def sanitize_file_name(text: str) -> str:
    return _UNSAFE_NAME_CHARS.sub("_", text)


def log_file_name(user_name: str, device_id: str) -> str:
    return f"{sanitize_file_name(user_name)}_{sanitize_file_name(device_id)}.csv"


def format_csv_row(fields: Sequence[object]) -> str:
    """Render one log row; a field is quoted only when it holds a quote, comma or line break."""

    row = pd.DataFrame([[str(value) for value in fields]], dtype=object)
    # Both CR and LF in the terminator make the writer quote either one.
    text = row.to_csv(header=False, index=False, lineterminator="\r\n")
    return text[: -len("\r\n")] + "\n"


def format_locale_timestamp(ts: pd.Timestamp, timezone: Optional[str] = None) -> str:
    """Render ``ts`` as ``M/D/YYYY, h:mm:ss AM`` in ``timezone`` (server local if unset)."""

    moment = pd.Timestamp(ts)
    if moment.tzinfo is None:
        moment = moment.tz_localize("UTC")
    if timezone:
        local: datetime = moment.tz_convert(ZoneInfo(timezone)).to_pydatetime()
    else:
        local = moment.to_pydatetime().astimezone()
    hour = local.hour % 12 or 12
    meridiem = "AM" if local.hour < 12 else "PM"
    return (
        f"{local.month}/{local.day}/{local.year}, "
        f"{hour}:{local.minute:02d}:{local.second:02d} {meridiem}"
    )


def build_record(
    user_name: Optional[str],
    device_id: Optional[str],
    event_id: Optional[str],
    context: Optional[str] = None,
    timestamp: Optional[object] = None,
    now: Optional[pd.Timestamp] = None,
) -> AnnotationRecord:
    """Validate raw submission fields, defaulting context and timestamp."""

    if not user_name or not device_id or not event_id:
        raise MissingFieldError("Missing required fields")

    if timestamp is None or (isinstance(timestamp, str) and not timestamp.strip()):
        moment = pd.Timestamp.now(tz="UTC") if now is None else pd.Timestamp(now)
    else:
        moment = to_instant(timestamp)
        if pd.isna(moment):
            raise UnexpectedError(f"Invalid timestamp: {timestamp!r}")

    return AnnotationRecord(
        timestamp=moment,
        user_name=str(user_name),
        device_id=str(device_id),
        event_id=str(event_id),
        context="" if context is None else str(context),
    )


def append_annotation(
    store: FileStore, record: AnnotationRecord, config: ServiceConfig
) -> AppendResult:
    """Append ``record`` to its log, creating the log with a header if needed."""

    folder = store.get_or_create_folder(config.annotation_folder_name)
    file_name = log_file_name(record.user_name, record.device_id)
    row = format_csv_row(
        [
            format_locale_timestamp(record.timestamp, config.display_timezone),
            record.user_name,
            record.device_id,
            record.event_id,
            record.context,
        ]
    )

    existing = store.find_file(folder, file_name)
    if existing is not None:
        store.overwrite(existing, store.read_text(existing) + row)
        dprint(f"[annotations] appended to {file_name}")
    else:
        store.create_file(folder, file_name, ANNOTATION_HEADER + row, mime_type=CSV_MIME)
        dprint(f"[annotations] created {file_name}")

    return AppendResult(file_name=file_name, folder_name=folder.name)


def annotation_payload(result: AppendResult) -> Dict[str, object]:
    return {"message": "Data saved successfully", "fileName": result.file_name}
