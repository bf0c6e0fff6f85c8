"""Normalise spreadsheet grids and delimited text into one row matrix."""

from __future__ import annotations

import abc
import io
from dataclasses import dataclass
from typing import List, Optional, Sequence

import pandas as pd

from config import dprint
from errors import EmptySourceError
from file_store import FileEntry, FileStore

_ZERO_WIDTH_CHARS = ("\ufeff", "\u200b", "\u200c", "\u200d")


def _strip_bom_and_zero_width(text: str) -> str:
    for char in _ZERO_WIDTH_CHARS:
        text = text.replace(char, "")
    return text


@dataclass(frozen=True)
class TabularDataset:
    """Row 0 is the header; every other row is a data row of cell strings."""

    rows: List[List[str]]

    @property
    def header(self) -> List[str]:
        return self.rows[0] if self.rows else []

    @property
    def data_rows(self) -> List[List[str]]:
        return self.rows[1:]

    @property
    def last_row(self) -> List[str]:
        return self.rows[-1]

    def __len__(self) -> int:
        return len(self.rows)

    @staticmethod
    def cell(row: Sequence[str], index: Optional[int]) -> Optional[str]:
        """Return the cell at ``index`` or ``None`` when unresolved or ragged."""

        if index is None or index < 0 or index >= len(row):
            return None
        return row[index]


class TabularSource(abc.ABC):
    def __init__(self, store: FileStore, entry: FileEntry) -> None:
        self.store = store
        self.entry = entry

    @abc.abstractmethod
    def _read_rows(self) -> List[List[str]]:
        ...

    def read_all(self) -> TabularDataset:
        """Return the file as a dataset, refusing header-only or empty files."""

        rows = self._read_rows()
        if rows:
            rows[0] = [_strip_bom_and_zero_width(str(col)).strip() for col in rows[0]]
        dprint(f"[reader] {self.entry.name}: {len(rows)} rows ({type(self).__name__})")
        if len(rows) < 2:
            raise EmptySourceError("File is empty or has no data")
        return TabularDataset(rows=rows)


class SpreadsheetSource(TabularSource):
    """A structured sheet; the store hands back the grid directly."""

    def _read_rows(self) -> List[List[str]]:
        grid = self.store.read_grid(self.entry)
        # Sheets pad their used range with blank trailing rows.
        while grid and not any(str(cell).strip() for cell in grid[-1]):
            grid.pop()
        return grid


def _read_matrix(text: str, names=None, on_bad_lines="error") -> pd.DataFrame:
    return pd.read_csv(
        io.StringIO(text),
        engine="python",
        header=None,
        names=names,
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
        index_col=False,
        on_bad_lines=on_bad_lines,
    )


def parse_delimited_text(text: str) -> List[List[str]]:
    """Split CSV text into rows honouring quotes, doubled quotes and embedded newlines.

    Rows wider than the first one are kept by re-reading with the widest
    row count as column names; short rows are padded with empty cells.
    """

    wide_rows: List[int] = []

    def _note_width(bad_line: List[str]) -> None:
        wide_rows.append(len(bad_line))
        return None

    try:
        df = _read_matrix(text, on_bad_lines=_note_width)
        if wide_rows:
            df = _read_matrix(text, names=list(range(max(wide_rows))))
    except pd.errors.EmptyDataError:
        return []
    return df.fillna("").values.tolist()


class DelimitedTextSource(TabularSource):
    """A flat comma-separated export (the historical device file format)."""

    def _read_rows(self) -> List[List[str]]:
        return parse_delimited_text(self.store.read_text(self.entry))


def open_source(store: FileStore, entry: FileEntry) -> TabularSource:
    """Pick the reader from the file's declared type, never from its content."""

    if entry.is_spreadsheet:
        return SpreadsheetSource(store, entry)
    return DelimitedTextSource(store, entry)
