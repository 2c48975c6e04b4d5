"""
RESPONSIBILITIES
- Map spreadsheet file names to reader/writer format identifiers.
PROCESS OVERVIEW
1. file_extension() extracts the lowercase extension after the last dot.
2. resolve_format() looks the extension up in the read or write table.
3. reader_format()/writer_format() are shorthands used by the stores.
"""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path

from sheet_persist.stores.base_store import NoExtensionError, UnsupportedFormatError


class SpreadsheetFormat(str, Enum):
    XLSX = "Xlsx"
    XLS = "Xls"
    ODS = "Ods"
    CSV = "Csv"
    HTML = "Html"
    SLK = "Slk"
    XML = "Xml"
    GNUMERIC = "Gnumeric"
    PDF = "Pdf"


class Intent(str, Enum):
    READ = "read"
    WRITE = "write"


READ_FORMATS: dict[str, SpreadsheetFormat] = {
    "xlsx": SpreadsheetFormat.XLSX,  # Excel (OfficeOpenXML) Spreadsheet
    "xlsm": SpreadsheetFormat.XLSX,  # macros are discarded
    "xltx": SpreadsheetFormat.XLSX,  # Excel (OfficeOpenXML) Template
    "xltm": SpreadsheetFormat.XLSX,
    "xls": SpreadsheetFormat.XLS,  # Excel (BIFF) Spreadsheet
    "xlt": SpreadsheetFormat.XLS,
    "ods": SpreadsheetFormat.ODS,  # Open/Libre Office Calc
    "ots": SpreadsheetFormat.ODS,
    "slk": SpreadsheetFormat.SLK,
    "xml": SpreadsheetFormat.XML,  # Excel 2003 SpreadsheetML
    "gnumeric": SpreadsheetFormat.GNUMERIC,
    "htm": SpreadsheetFormat.HTML,
    "html": SpreadsheetFormat.HTML,
    "csv": SpreadsheetFormat.CSV,
}

WRITE_FORMATS: dict[str, SpreadsheetFormat] = {
    "xls": SpreadsheetFormat.XLS,
    "xlt": SpreadsheetFormat.XLS,
    "xlsx": SpreadsheetFormat.XLSX,
    "xlsm": SpreadsheetFormat.XLSX,
    "xltx": SpreadsheetFormat.XLSX,
    "xltm": SpreadsheetFormat.XLSX,
    "ods": SpreadsheetFormat.ODS,
    "ots": SpreadsheetFormat.ODS,
    "csv": SpreadsheetFormat.CSV,
    # html-named targets go through the CSV encoder
    "htm": SpreadsheetFormat.CSV,
    "html": SpreadsheetFormat.CSV,
    "pdf": SpreadsheetFormat.PDF,
}

_TABLES = {Intent.READ: READ_FORMATS, Intent.WRITE: WRITE_FORMATS}


def file_extension(filename: str | os.PathLike[str]) -> str:
    """Return the lowercase extension of *filename* without the dot."""

    name = Path(filename).name
    _, dot, ext = name.rpartition(".")
    if not dot or not ext:
        raise NoExtensionError(f"File extension not found: {filename}", str(filename))
    return ext.lower()


def resolve_format(filename: str | os.PathLike[str], intent: Intent) -> SpreadsheetFormat:
    """Resolve the format used to read or write *filename*."""

    ext = file_extension(filename)
    fmt = _TABLES[Intent(intent)].get(ext)
    if fmt is None:
        raise UnsupportedFormatError(
            f"File type '{ext}' not allowed for {Intent(intent).value}: {filename}", str(filename)
        )
    return fmt


def reader_format(filename: str | os.PathLike[str]) -> SpreadsheetFormat:
    return resolve_format(filename, Intent.READ)


def writer_format(filename: str | os.PathLike[str]) -> SpreadsheetFormat:
    return resolve_format(filename, Intent.WRITE)


def is_html_routed_to_csv(filename: str | os.PathLike[str]) -> bool:
    """True when *filename* is html-named but will be written as CSV."""

    return file_extension(filename) in {"htm", "html"}
