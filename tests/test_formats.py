from __future__ import annotations

from pathlib import Path

import pytest

from sheet_persist.stores.base_store import NoExtensionError, UnsupportedFormatError
from sheet_persist.utils.formats import (
    Intent,
    SpreadsheetFormat,
    file_extension,
    is_html_routed_to_csv,
    reader_format,
    resolve_format,
    writer_format,
)


@pytest.mark.parametrize(
    ("filename", "expected"),
    [
        ("a.xlsx", SpreadsheetFormat.XLSX),
        ("a.XLSM", SpreadsheetFormat.XLSX),
        ("a.xltx", SpreadsheetFormat.XLSX),
        ("a.xlt", SpreadsheetFormat.XLS),
        ("a.ots", SpreadsheetFormat.ODS),
        ("a.slk", SpreadsheetFormat.SLK),
        ("a.xml", SpreadsheetFormat.XML),
        ("a.gnumeric", SpreadsheetFormat.GNUMERIC),
        ("a.htm", SpreadsheetFormat.HTML),
        ("a.csv", SpreadsheetFormat.CSV),
    ],
)
def test_reader_formats(filename: str, expected: SpreadsheetFormat) -> None:
    assert reader_format(filename) is expected


@pytest.mark.parametrize(
    ("filename", "expected"),
    [
        ("a.xls", SpreadsheetFormat.XLS),
        ("a.xltm", SpreadsheetFormat.XLSX),
        ("a.ods", SpreadsheetFormat.ODS),
        ("a.html", SpreadsheetFormat.CSV),
        ("report.PDF", SpreadsheetFormat.PDF),
    ],
)
def test_writer_formats(filename: str, expected: SpreadsheetFormat) -> None:
    assert writer_format(filename) is expected


def test_write_only_and_read_only_extensions() -> None:
    with pytest.raises(UnsupportedFormatError):
        reader_format("report.pdf")
    for name in ("a.slk", "a.xml", "a.gnumeric"):
        with pytest.raises(UnsupportedFormatError) as excinfo:
            resolve_format(name, Intent.WRITE)
        assert excinfo.value.filename == name


def test_extension_uses_last_dot_of_file_name() -> None:
    assert file_extension(Path("dir.v2") / "archive.tar.CSV") == "csv"
    assert is_html_routed_to_csv("page.HTM") is True
    assert is_html_routed_to_csv("page.csv") is False


@pytest.mark.parametrize("filename", ["people", "people.", "dir.d/people"])
def test_missing_extension(filename: str) -> None:
    with pytest.raises(NoExtensionError):
        reader_format(filename)
