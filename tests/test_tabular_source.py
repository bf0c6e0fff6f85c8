import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from errors import EmptySourceError
from file_store import InMemoryFileStore
from tabular_source import (
    DelimitedTextSource,
    SpreadsheetSource,
    TabularDataset,
    open_source,
    parse_delimited_text,
)


@pytest.fixture
def store():
    return InMemoryFileStore()


def test_parse_delimited_text_honours_quoting():
    text = 'a,b,c\n"x, y","say ""hi""","line1\nline2"\n'

    rows = parse_delimited_text(text)

    assert rows == [["a", "b", "c"], ["x, y", 'say "hi"', "line1\nline2"]]


def test_parse_delimited_text_keeps_ragged_rows():
    text = "Timestamp,Temp\n2024-01-01,20,extra\n2024-01-02\n\n"

    rows = parse_delimited_text(text)

    assert rows == [
        ["Timestamp", "Temp", ""],
        ["2024-01-01", "20", "extra"],
        ["2024-01-02", "", ""],
    ]


def test_parse_delimited_text_empty():
    assert parse_delimited_text("") == []


def test_open_source_uses_declared_type(store):
    folder = store.create_folder("data")
    sheet = store.add_file(folder, "DEV1", grid=[["Timestamp", "Temp"], ["t", 20]])
    text = store.add_file(folder, "DEV1.csv", text="Timestamp,Temp\nt,20\n")

    assert isinstance(open_source(store, sheet), SpreadsheetSource)
    assert isinstance(open_source(store, text), DelimitedTextSource)


def test_spreadsheet_grid_read_as_text_matrix(store):
    folder = store.create_folder("data")
    entry = store.add_file(
        folder,
        "DEV1",
        grid=[["\ufeffTimestamp", "Temp"], ["2024-01-01T00:00:00Z", 20.5], ["", ""]],
    )

    dataset = open_source(store, entry).read_all()

    assert dataset.header == ["Timestamp", "Temp"]
    assert dataset.data_rows == [["2024-01-01T00:00:00Z", "20.5"]]


def test_header_only_source_is_empty(store):
    folder = store.create_folder("data")
    entry = store.add_file(folder, "DEV1.csv", text="Timestamp,Temp\n")

    with pytest.raises(EmptySourceError, match="File is empty or has no data"):
        open_source(store, entry).read_all()


def test_blank_source_is_empty(store):
    folder = store.create_folder("data")
    entry = store.add_file(folder, "DEV1", grid=[])

    with pytest.raises(EmptySourceError):
        open_source(store, entry).read_all()


def test_ragged_rows_yield_missing_cells():
    dataset = TabularDataset(rows=[["a", "b", "c"], ["1"]])

    assert TabularDataset.cell(dataset.data_rows[0], 0) == "1"
    assert TabularDataset.cell(dataset.data_rows[0], 2) is None
    assert TabularDataset.cell(dataset.data_rows[0], None) is None
