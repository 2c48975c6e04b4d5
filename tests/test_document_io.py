from __future__ import annotations

import gzip
from datetime import datetime
from pathlib import Path

import pytest
from openpyxl import Workbook

from sheet_persist.stores.base_store import InvalidPdfBackendError, UnsupportedFormatError
from sheet_persist.utils.document_io import copy_document, load_document, save_document
from sheet_persist.utils.formats import SpreadsheetFormat

SPREADSHEETML = """<?xml version="1.0"?>
<Workbook xmlns="urn:schemas-microsoft-com:office:spreadsheet"
          xmlns:ss="urn:schemas-microsoft-com:office:spreadsheet">
 <Worksheet ss:Name="People">
  <Table>
   <Row>
    <Cell><Data ss:Type="String">name</Data></Cell>
    <Cell><Data ss:Type="String">age</Data></Cell>
   </Row>
   <Row>
    <Cell><Data ss:Type="String">Ann</Data></Cell>
    <Cell><Data ss:Type="Number">42</Data></Cell>
   </Row>
   <Row ss:Index="4">
    <Cell ss:Index="2"><Data ss:Type="Boolean">1</Data></Cell>
   </Row>
  </Table>
 </Worksheet>
</Workbook>
"""

GNUMERIC = """<?xml version="1.0" encoding="UTF-8"?>
<gnm:Workbook xmlns:gnm="http://www.gnumeric.org/v10.dtd">
 <gnm:Sheets>
  <gnm:Sheet>
   <gnm:Name>People</gnm:Name>
   <gnm:Cells>
    <gnm:Cell Row="0" Col="0" ValueType="60">name</gnm:Cell>
    <gnm:Cell Row="1" Col="0" ValueType="60">Ann</gnm:Cell>
    <gnm:Cell Row="1" Col="1" ValueType="40">42</gnm:Cell>
    <gnm:Cell Row="1" Col="2" ValueType="20">TRUE</gnm:Cell>
   </gnm:Cells>
  </gnm:Sheet>
 </gnm:Sheets>
</gnm:Workbook>
"""


def _values(workbook: Workbook, title: str | None = None) -> list[tuple[object, ...]]:
    worksheet = workbook[title] if title else workbook.active
    return list(worksheet.iter_rows(values_only=True))


def test_reads_sylk_cells(tmp_path: Path) -> None:
    path = tmp_path / "people.slk"
    path.write_text(
        "\n".join(
            [
                "ID;PWXL;N;E",
                'C;Y1;X1;K"name"',
                'C;X2;K"age"',
                'C;Y2;X1;K"Ann"',
                "C;X2;K42",
                'C;Y3;X1;K"a;;b"',
                "C;X2;K1.5",
                "E",
            ]
        ),
        encoding="utf-8",
    )

    rows = _values(load_document(path, SpreadsheetFormat.SLK))

    assert rows == [("name", "age"), ("Ann", 42), ("a;b", 1.5)]


def test_reads_spreadsheetml(tmp_path: Path) -> None:
    path = tmp_path / "people.xml"
    path.write_text(SPREADSHEETML, encoding="utf-8")

    workbook = load_document(path, SpreadsheetFormat.XML)

    assert workbook.sheetnames == ["People"]
    rows = _values(workbook, "People")
    assert rows[0] == ("name", "age")
    assert rows[1] == ("Ann", 42)
    assert rows[3] == (None, True)


def test_reads_gzipped_gnumeric(tmp_path: Path) -> None:
    path = tmp_path / "people.gnumeric"
    path.write_bytes(gzip.compress(GNUMERIC.encode("utf-8")))

    workbook = load_document(path, SpreadsheetFormat.GNUMERIC)

    assert workbook.sheetnames == ["People"]
    assert _values(workbook) == [("name", None, None), ("Ann", 42, True)]


def test_reads_one_sheet_per_html_table(tmp_path: Path) -> None:
    path = tmp_path / "tables.html"
    path.write_text(
        "<table><tr><th>a</th></tr><tr><td>1</td></tr></table>"
        "<p>between</p>"
        "<table><tr><td>b</td><td></td></tr></table>",
        encoding="utf-8",
    )

    workbook = load_document(path, SpreadsheetFormat.HTML)

    assert len(workbook.worksheets) == 2
    assert list(workbook.worksheets[0].values) == [("a",), ("1",)]
    assert list(workbook.worksheets[1].values) == [("b", None)]


def test_html_without_tables_yields_one_sheet(tmp_path: Path) -> None:
    path = tmp_path / "empty.html"
    path.write_text("<p>nothing here</p>", encoding="utf-8")

    assert len(load_document(path, SpreadsheetFormat.HTML).worksheets) == 1


def test_csv_blank_cells_read_as_none(tmp_path: Path) -> None:
    path = tmp_path / "data.csv"
    path.write_bytes("\ufeffname,age\nAnn,\n".encode("utf-8"))

    assert _values(load_document(path, SpreadsheetFormat.CSV)) == [("name", "age"), ("Ann", None)]


def test_xls_round_trip_keeps_dates(tmp_path: Path) -> None:
    workbook = Workbook()
    workbook.active.title = "Log"
    workbook.active.append(["when", "count"])
    workbook.active.append([datetime(2024, 5, 1, 12, 30), 3])
    path = tmp_path / "log.xls"

    save_document(workbook, path, SpreadsheetFormat.XLS)
    loaded = load_document(path, SpreadsheetFormat.XLS)

    assert loaded.sheetnames == ["Log"]
    assert _values(loaded) == [("when", "count"), (datetime(2024, 5, 1, 12, 30), 3)]


def test_ods_round_trip_keeps_every_sheet(tmp_path: Path) -> None:
    workbook = Workbook()
    workbook.active.title = "One"
    workbook.active.append(["a", 1])
    workbook.create_sheet("Two").append(["b", 2])
    path = tmp_path / "book.ods"

    save_document(workbook, path, SpreadsheetFormat.ODS)
    loaded = load_document(path, SpreadsheetFormat.ODS)

    assert loaded.sheetnames == ["One", "Two"]
    assert _values(loaded, "Two") == [("b", 2)]


def test_save_creates_parent_and_leaves_no_tmp(tmp_path: Path) -> None:
    workbook = Workbook()
    workbook.active.append(["x"])
    path = tmp_path / "nested" / "out.csv"

    save_document(workbook, path, SpreadsheetFormat.CSV)

    assert path.read_text(encoding="utf-8").strip() == "x"
    assert not (tmp_path / "nested" / "out.csv.tmp").exists()


def test_save_without_writer_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "out.slk"

    with pytest.raises(UnsupportedFormatError):
        save_document(Workbook(), path, SpreadsheetFormat.SLK)

    assert not path.exists()
    assert not (tmp_path / "out.slk.tmp").exists()


def test_failed_write_keeps_previous_file(tmp_path: Path) -> None:
    path = tmp_path / "out.pdf"
    path.write_bytes(b"previous")

    with pytest.raises(InvalidPdfBackendError):
        save_document(Workbook(), path, SpreadsheetFormat.PDF, pdf_backend="unknown")

    assert path.read_bytes() == b"previous"
    assert not (tmp_path / "out.pdf.tmp").exists()


def test_copy_document_is_independent() -> None:
    workbook = Workbook()
    workbook.active["A1"] = "original"

    snapshot = copy_document(workbook)
    snapshot.active["A1"] = "changed"

    assert workbook.active["A1"].value == "original"
