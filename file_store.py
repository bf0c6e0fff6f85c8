"""Hierarchical file store used for sensor sources and annotation logs.

Two stores are provided. ``LocalFileStore`` maps folders onto directories
beneath a root path; ``InMemoryFileStore`` keeps everything in dictionaries
and is what the tests and embedded callers use. Both enumerate files in a
stable order (by name on disk, by insertion in memory) and report deleted
files through ``trashed``.
"""

from __future__ import annotations

import abc
from datetime import datetime
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pandas as pd

from config import dprint

SPREADSHEET_MIME = "application/vnd.google-apps.spreadsheet"
CSV_MIME = "text/csv"
PLAIN_TEXT_MIME = "text/plain"

TRASH_DIR = ".trash"
_WORKBOOK_SUFFIXES = (".xlsx", ".xlsm", ".xls")


@dataclass(frozen=True)
class Folder:
    name: str
    key: str


@dataclass(frozen=True)
class FileEntry:
    """Metadata for one file in a folder."""

    name: str
    key: str
    modified: pd.Timestamp
    mime_type: str
    trashed: bool = False

    @property
    def is_spreadsheet(self) -> bool:
        return self.mime_type == SPREADSHEET_MIME


class FileStore(abc.ABC):
    """Blocking operations against an external folder/file store."""

    @abc.abstractmethod
    def find_folder(self, name: str) -> Optional[Folder]:
        """Return the first folder called ``name`` or ``None``."""

    @abc.abstractmethod
    def create_folder(self, name: str) -> Folder:
        ...

    def get_or_create_folder(self, name: str) -> Folder:
        folder = self.find_folder(name)
        if folder is not None:
            return folder
        dprint(f"[store] creating folder '{name}'")
        return self.create_folder(name)

    @abc.abstractmethod
    def list_files(self, folder: Folder) -> List[FileEntry]:
        """Return every file in ``folder`` (trashed ones included)."""

    def search_files(self, folder: Folder, name_contains: str) -> List[FileEntry]:
        """Return non-trashed files whose name contains ``name_contains``."""

        return [
            entry
            for entry in self.list_files(folder)
            if not entry.trashed and name_contains in entry.name
        ]

    def find_file(self, folder: Folder, name: str) -> Optional[FileEntry]:
        for entry in self.list_files(folder):
            if not entry.trashed and entry.name == name:
                return entry
        return None

    @abc.abstractmethod
    def read_text(self, entry: FileEntry) -> str:
        ...

    @abc.abstractmethod
    def read_grid(self, entry: FileEntry) -> List[List[str]]:
        """Return the first sheet of a spreadsheet as a matrix of cell text."""

    @abc.abstractmethod
    def overwrite(self, entry: FileEntry, text: str) -> FileEntry:
        ...

    @abc.abstractmethod
    def create_file(
        self, folder: Folder, name: str, text: str, mime_type: str = CSV_MIME
    ) -> FileEntry:
        ...


def _cell_text(value: object) -> str:
    if value is None or value is pd.NaT:
        return ""
    if isinstance(value, float) and pd.isna(value):
        return ""
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _mime_for(path: Path) -> str:
    suffix = path.suffix.lower()
    if suffix in _WORKBOOK_SUFFIXES:
        return SPREADSHEET_MIME
    if suffix in (".csv", ".tsv"):
        return CSV_MIME
    return PLAIN_TEXT_MIME


class LocalFileStore(FileStore):
    """Folders are directories directly under ``root``.

    Workbooks are listed under their stem, the way a document store lists
    native sheets, so a device sheet saved as ``DEV1.xlsx`` is named ``DEV1``.
    Files moved into a folder's ``.trash`` directory are reported as trashed.
    """

    def __init__(self, root) -> None:
        self.root = Path(root).expanduser()

    def find_folder(self, name: str) -> Optional[Folder]:
        path = self.root / name
        if path.is_dir():
            return Folder(name=name, key=str(path))
        return None

    def create_folder(self, name: str) -> Folder:
        path = self.root / name
        path.mkdir(parents=True, exist_ok=True)
        return Folder(name=name, key=str(path))

    def _entry(self, path: Path, trashed: bool = False) -> FileEntry:
        mime_type = _mime_for(path)
        name = path.stem if mime_type == SPREADSHEET_MIME else path.name
        modified = pd.Timestamp(path.stat().st_mtime, unit="s", tz="UTC")
        return FileEntry(
            name=name,
            key=str(path),
            modified=modified,
            mime_type=mime_type,
            trashed=trashed,
        )

    def list_files(self, folder: Folder) -> List[FileEntry]:
        base = Path(folder.key)
        entries = [self._entry(p) for p in sorted(base.iterdir()) if p.is_file()]
        trash = base / TRASH_DIR
        if trash.is_dir():
            entries.extend(
                self._entry(p, trashed=True) for p in sorted(trash.iterdir()) if p.is_file()
            )
        return entries

    def read_text(self, entry: FileEntry) -> str:
        raw = Path(entry.key).read_bytes()
        return raw.decode("utf-8-sig", errors="replace")

    def read_grid(self, entry: FileEntry) -> List[List[str]]:
        frame = pd.read_excel(entry.key, sheet_name=0, header=None, dtype=object)
        return [[_cell_text(value) for value in row] for row in frame.itertuples(index=False)]

    def overwrite(self, entry: FileEntry, text: str) -> FileEntry:
        path = Path(entry.key)
        path.write_text(text, encoding="utf-8")
        return self._entry(path)

    def create_file(
        self, folder: Folder, name: str, text: str, mime_type: str = CSV_MIME
    ) -> FileEntry:
        path = Path(folder.key) / name
        path.write_text(text, encoding="utf-8")
        return self._entry(path)


@dataclass
class _StoredFile:
    entry: FileEntry
    text: str = ""
    grid: List[List[str]] = field(default_factory=list)


class InMemoryFileStore(FileStore):
    """Dictionary-backed store; spreadsheets hold their grid directly."""

    def __init__(self) -> None:
        self._folders: Dict[str, Folder] = {}
        self._files: Dict[str, List[_StoredFile]] = {}
        self._counter = 0

    def _next_key(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}-{self._counter}"

    def find_folder(self, name: str) -> Optional[Folder]:
        return self._folders.get(name)

    def create_folder(self, name: str) -> Folder:
        folder = Folder(name=name, key=self._next_key("folder"))
        self._folders[name] = folder
        self._files[folder.key] = []
        return folder

    def add_file(
        self,
        folder: Folder,
        name: str,
        *,
        text: str = "",
        grid: Optional[Sequence[Sequence[object]]] = None,
        mime_type: Optional[str] = None,
        modified: Optional[pd.Timestamp] = None,
        trashed: bool = False,
    ) -> FileEntry:
        """Place a file in ``folder``; a ``grid`` makes it a spreadsheet."""

        if mime_type is None:
            mime_type = SPREADSHEET_MIME if grid is not None else CSV_MIME
        entry = FileEntry(
            name=name,
            key=self._next_key("file"),
            modified=modified if modified is not None else pd.Timestamp.now(tz="UTC"),
            mime_type=mime_type,
            trashed=trashed,
        )
        rows = [[_cell_text(value) for value in row] for row in (grid or [])]
        self._files[folder.key].append(_StoredFile(entry=entry, text=text, grid=rows))
        return entry

    def _stored(self, entry: FileEntry) -> _StoredFile:
        for files in self._files.values():
            for stored in files:
                if stored.entry.key == entry.key:
                    return stored
        raise FileNotFoundError(f"No such file: {entry.name}")

    def list_files(self, folder: Folder) -> List[FileEntry]:
        return [stored.entry for stored in self._files.get(folder.key, [])]

    def read_text(self, entry: FileEntry) -> str:
        return self._stored(entry).text

    def read_grid(self, entry: FileEntry) -> List[List[str]]:
        return [list(row) for row in self._stored(entry).grid]

    def overwrite(self, entry: FileEntry, text: str) -> FileEntry:
        stored = self._stored(entry)
        stored.text = text
        stored.entry = replace(stored.entry, modified=pd.Timestamp.now(tz="UTC"))
        return stored.entry

    def create_file(
        self, folder: Folder, name: str, text: str, mime_type: str = CSV_MIME
    ) -> FileEntry:
        return self.add_file(folder, name, text=text, mime_type=mime_type)
