"""
RESPONSIBILITIES
- Load spreadsheet files of every supported read format into an openpyxl Workbook.
- Persist a Workbook in every supported write format, atomically.
PROCESS OVERVIEW
1. load_document() dispatches on the resolved reader format (openpyxl, pandas
   engines, csv, BeautifulSoup, ElementTree for the XML dialects, a SYLK parser).
2. save_document() renders into a temporary sibling file, then swaps it in place.
3. copy_document() snapshots a Workbook through an in-memory XLSX buffer.
"""

from __future__ import annotations

import csv
import gzip
import io
import os
from datetime import date, datetime
from pathlib import Path
from typing import BinaryIO, Callable, Iterable
from xml.etree import ElementTree

import pandas as pd
import xlwt
from bs4 import BeautifulSoup
from openpyxl import Workbook, load_workbook
from openpyxl.worksheet.worksheet import Worksheet

from sheet_persist.stores.base_store import UnsupportedFormatError
from sheet_persist.utils.formats import SpreadsheetFormat
from sheet_persist.utils.pdf_render import render_pdf

Reader = Callable[[Path], Workbook]
Writer = Callable[..., None]

_SS_NS = "{urn:schemas-microsoft-com:office:spreadsheet}"
_GNM_NS = "{http://www.gnumeric.org/v10.dtd}"

_XLS_DATETIME_STYLE = xlwt.easyxf(num_format_str="YYYY-MM-DD HH:MM:SS")
_XLS_DATE_STYLE = xlwt.easyxf(num_format_str="YYYY-MM-DD")


def _tmp_path(path: Path) -> Path:
    return path.with_name(path.name + ".tmp")


def _empty_workbook() -> Workbook:
    workbook = Workbook()
    workbook.remove(workbook.active)
    return workbook


def _ensure_sheet(workbook: Workbook) -> Workbook:
    if not workbook.worksheets:
        workbook.create_sheet()
    return workbook


def _number(text: str) -> int | float | str:
    try:
        return int(text)
    except ValueError:
        pass
    try:
        value = float(text)
    except ValueError:
        return text
    return int(value) if value.is_integer() else value


def _native(value: object) -> object:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if value == "":
        return None
    return value


# Readers ---------------------------------------------------------------------------


def _read_xlsx(path: Path) -> Workbook:
    return load_workbook(path)


def _read_with_pandas(engine: str) -> Reader:
    def _read(path: Path) -> Workbook:
        frames = pd.read_excel(path, sheet_name=None, header=None, engine=engine)
        workbook = _empty_workbook()
        for title, frame in frames.items():
            worksheet = workbook.create_sheet(title=str(title))
            for values in frame.to_numpy(dtype=object).tolist():
                worksheet.append([_native(value) for value in values])
        return _ensure_sheet(workbook)

    return _read


def _read_csv(path: Path) -> Workbook:
    workbook = Workbook()
    worksheet = workbook.active
    with path.open("r", encoding="utf-8-sig", newline="") as handle:
        for row in csv.reader(handle):
            worksheet.append([value if value != "" else None for value in row])
    return workbook


def _read_html(path: Path) -> Workbook:
    soup = BeautifulSoup(path.read_text(encoding="utf-8"), "html.parser")
    workbook = _empty_workbook()
    for table in soup.find_all("table"):
        worksheet = workbook.create_sheet()
        for tr in table.find_all("tr"):
            cells = tr.find_all(["td", "th"])
            worksheet.append([cell.get_text(strip=True) or None for cell in cells])
    return _ensure_sheet(workbook)


def _split_sylk(line: str) -> list[str]:
    # ";;" escapes a literal semicolon inside a field
    return [part.replace("\x00", ";") for part in line.replace(";;", "\x00").split(";")]


def _sylk_value(raw: str) -> object:
    if raw.startswith('"'):
        return raw[1:-1] if raw.endswith('"') else raw[1:]
    if raw in ("TRUE", "FALSE"):
        return raw == "TRUE"
    return _number(raw)


def _read_slk(path: Path) -> Workbook:
    workbook = Workbook()
    worksheet = workbook.active
    row = col = 1
    for line in path.read_text(encoding="utf-8", errors="replace").splitlines():
        fields = _split_sylk(line)
        if fields[0] not in ("C", "F"):
            continue
        value: object = None
        has_value = False
        for item in fields[1:]:
            if not item:
                continue
            key, rest = item[0], item[1:]
            if key == "Y":
                row = int(rest)
            elif key == "X":
                col = int(rest)
            elif key == "K":
                value, has_value = _sylk_value(rest), True
        if fields[0] == "C" and has_value:
            worksheet.cell(row=row, column=col, value=value)
    return workbook


def _spreadsheetml_value(kind: str | None, text: str) -> object:
    if kind == "Number":
        return _number(text)
    if kind == "Boolean":
        return text.strip() == "1"
    if kind == "DateTime":
        return datetime.fromisoformat(text)
    return text


def _read_spreadsheetml(path: Path) -> Workbook:
    root = ElementTree.parse(path).getroot()
    workbook = _empty_workbook()
    for sheet_el in root.iter(f"{_SS_NS}Worksheet"):
        worksheet = workbook.create_sheet(title=sheet_el.get(f"{_SS_NS}Name"))
        table = sheet_el.find(f"{_SS_NS}Table")
        if table is None:
            continue
        row_idx = 0
        for row_el in table.findall(f"{_SS_NS}Row"):
            row_idx = int(row_el.get(f"{_SS_NS}Index", row_idx + 1))
            col_idx = 0
            for cell_el in row_el.findall(f"{_SS_NS}Cell"):
                col_idx = int(cell_el.get(f"{_SS_NS}Index", col_idx + 1))
                data = cell_el.find(f"{_SS_NS}Data")
                if data is not None and data.text is not None:
                    value = _spreadsheetml_value(data.get(f"{_SS_NS}Type"), data.text)
                    worksheet.cell(row=row_idx, column=col_idx, value=value)
                col_idx += int(cell_el.get(f"{_SS_NS}MergeAcross", 0))
    return _ensure_sheet(workbook)


def _gnumeric_value(value_type: str | None, text: str) -> object:
    if value_type == "20":
        return text.strip().upper() == "TRUE"
    if value_type in ("30", "40"):
        return _number(text)
    return text


def _read_gnumeric(path: Path) -> Workbook:
    raw = path.read_bytes()
    if raw[:2] == b"\x1f\x8b":
        raw = gzip.decompress(raw)
    root = ElementTree.fromstring(raw)
    workbook = _empty_workbook()
    for sheet_el in root.iter(f"{_GNM_NS}Sheet"):
        worksheet = workbook.create_sheet(title=sheet_el.findtext(f"{_GNM_NS}Name"))
        for cell_el in sheet_el.iter(f"{_GNM_NS}Cell"):
            if cell_el.text is None:
                continue
            worksheet.cell(
                row=int(cell_el.get("Row", 0)) + 1,
                column=int(cell_el.get("Col", 0)) + 1,
                value=_gnumeric_value(cell_el.get("ValueType"), cell_el.text),
            )
    return _ensure_sheet(workbook)


# Writers ---------------------------------------------------------------------------


def _rows(worksheet: Worksheet) -> Iterable[tuple[object, ...]]:
    return worksheet.iter_rows(values_only=True)


def _write_xlsx(workbook: Workbook, handle: BinaryIO, **_: object) -> None:
    workbook.save(handle)


def _write_xls(workbook: Workbook, handle: BinaryIO, **_: object) -> None:
    book = xlwt.Workbook(encoding="utf-8")
    for worksheet in workbook.worksheets:
        sheet = book.add_sheet(worksheet.title[:31], cell_overwrite_ok=True)
        for r_index, row in enumerate(_rows(worksheet)):
            for c_index, value in enumerate(row):
                if value is None:
                    continue
                if isinstance(value, datetime):
                    sheet.write(r_index, c_index, value, _XLS_DATETIME_STYLE)
                elif isinstance(value, date):
                    sheet.write(r_index, c_index, value, _XLS_DATE_STYLE)
                elif isinstance(value, (bool, int, float, str)):
                    sheet.write(r_index, c_index, value)
                else:
                    sheet.write(r_index, c_index, str(value))
    book.save(handle)


def _write_ods(workbook: Workbook, handle: BinaryIO, **_: object) -> None:
    with pd.ExcelWriter(handle, engine="odf") as writer:
        for worksheet in workbook.worksheets:
            frame = pd.DataFrame(list(_rows(worksheet)))
            frame.to_excel(writer, sheet_name=worksheet.title, header=False, index=False)


def _write_csv(workbook: Workbook, handle: BinaryIO, **_: object) -> None:
    text = io.TextIOWrapper(handle, encoding="utf-8", newline="")
    writer = csv.writer(text)
    for row in _rows(workbook.active):
        writer.writerow(["" if value is None else value for value in row])
    text.flush()
    text.detach()


def _write_pdf(workbook: Workbook, handle: BinaryIO, *, pdf_backend: str | None = None, **_: object) -> None:
    worksheet = workbook.active
    render_pdf(pdf_backend or "", list(_rows(worksheet)), handle, title=worksheet.title)


_READERS: dict[SpreadsheetFormat, Reader] = {
    SpreadsheetFormat.XLSX: _read_xlsx,
    SpreadsheetFormat.XLS: _read_with_pandas("xlrd"),
    SpreadsheetFormat.ODS: _read_with_pandas("odf"),
    SpreadsheetFormat.CSV: _read_csv,
    SpreadsheetFormat.HTML: _read_html,
    SpreadsheetFormat.SLK: _read_slk,
    SpreadsheetFormat.XML: _read_spreadsheetml,
    SpreadsheetFormat.GNUMERIC: _read_gnumeric,
}

_WRITERS: dict[SpreadsheetFormat, Writer] = {
    SpreadsheetFormat.XLSX: _write_xlsx,
    SpreadsheetFormat.XLS: _write_xls,
    SpreadsheetFormat.ODS: _write_ods,
    SpreadsheetFormat.CSV: _write_csv,
    SpreadsheetFormat.PDF: _write_pdf,
}


def load_document(path: Path, fmt: SpreadsheetFormat) -> Workbook:
    """Decode *path* with the reader registered for *fmt*."""

    reader = _READERS.get(fmt)
    if reader is None:
        raise UnsupportedFormatError(f"No reader for format {fmt.value}", str(path))
    return reader(Path(path))


def save_document(
    workbook: Workbook,
    path: Path,
    fmt: SpreadsheetFormat,
    *,
    pdf_backend: str | None = None,
) -> None:
    """Encode *workbook* to *path*, swapping a temporary file into place."""

    writer = _WRITERS.get(fmt)
    if writer is None:
        raise UnsupportedFormatError(f"No writer for format {fmt.value}", str(path))
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = _tmp_path(path)
    try:
        with tmp_path.open("wb") as handle:
            writer(workbook, handle, pdf_backend=pdf_backend)
        os.replace(tmp_path, path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()


def copy_document(workbook: Workbook) -> Workbook:
    """Return an independent copy of *workbook*."""

    buffer = io.BytesIO()
    workbook.save(buffer)
    buffer.seek(0)
    return load_workbook(buffer)
