"""Pick the authoritative source file for a device."""

from __future__ import annotations

from typing import List, Optional

from config import ServiceConfig, dprint
from errors import DeviceNotFoundError, FolderNotFoundError
from file_store import FileEntry, FileStore, Folder


def sensor_folder(store: FileStore, config: ServiceConfig) -> Folder:
    folder = store.find_folder(config.sensor_folder_name)
    if folder is None:
        raise FolderNotFoundError(f'Folder "{config.sensor_folder_name}" not found')
    return folder


def _candidates(
    store: FileStore, folder: Folder, device_id: str, accept_flat_text: bool
) -> List[FileEntry]:
    matches = store.search_files(folder, device_id)
    if accept_flat_text:
        return matches
    return [entry for entry in matches if entry.is_spreadsheet]


def select_device_file(
    candidates: List[FileEntry], device_id: str, accept_flat_text: bool = False
) -> Optional[FileEntry]:
    """Prefer a file named exactly ``device_id``, else the first candidate.

    ``DEV1`` must not pick up ``DEV10`` when a canonical ``DEV1`` sheet
    exists. With flat text accepted, ``DEV1.csv`` also counts as exact.
    """

    if not candidates:
        return None
    exact_names = {device_id}
    if accept_flat_text:
        exact_names.add(f"{device_id}.csv")
    for entry in candidates:
        if entry.name in exact_names:
            return entry
    return candidates[0]


def locate_device_file(
    store: FileStore, device_id: str, config: ServiceConfig
) -> FileEntry:
    folder = sensor_folder(store, config)
    candidates = _candidates(store, folder, device_id, config.accept_flat_text_sources)
    dprint(f"[locator] '{device_id}': candidates={[c.name for c in candidates]}")

    target = select_device_file(candidates, device_id, config.accept_flat_text_sources)
    if target is None:
        raise DeviceNotFoundError(f'No files found matching Device ID "{device_id}"')
    dprint(f"[locator] '{device_id}' -> {target.name}")
    return target
