"""
RESPONSIBILITIES
- Persist records as rows of one worksheet in a spreadsheet file (row 1 = header).
- Own the document lifecycle: lazy open, immediate flush after each mutation, final flush on close.
- Enforce a single IO direction per store so the read cursor never drifts from the header offset.
PROCESS OVERVIEW
1. __init__ resolves reader/writer formats and validates the PDF backend eagerly.
2. ensure_open() loads (or creates) the document, activates the sheet, freezes a header found in row 1.
3. insert() freezes the header from the schema when needed and appends after the last row.
4. iterate()/try_load_any() advance the cursor row by row; record id = row - header offset.
5. close() (or leaving the context manager) flushes once and disconnects the workbook.
"""

from __future__ import annotations

import importlib.util
import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Mapping, Sequence

from openpyxl import Workbook
from openpyxl.worksheet.worksheet import Worksheet
from pydantic import BaseModel

from sheet_persist.schemas.record import RecordSchema, as_mapping
from sheet_persist.stores.base_store import (
    BaseStore,
    CannotOpenForReadingError,
    CannotOpenForWritingError,
    DirectionConflictError,
    HeaderRowMismatchError,
    MissingColumnError,
    MissingPdfBackendError,
    PersistHealth,
    SheetIndexError,
    StoreClosedError,
)
from sheet_persist.utils.document_io import copy_document, load_document, save_document
from sheet_persist.utils.formats import (
    SpreadsheetFormat,
    is_html_routed_to_csv,
    reader_format,
    writer_format,
)
from sheet_persist.utils.log import get_logger
from sheet_persist.utils.pdf_render import PDF_BACKENDS, validate_pdf_backend

if TYPE_CHECKING:
    from sheet_persist.config import StoreSettings

HEADER_ROW_OFFSET = 1
NEW_SHEET_TITLE = "Data"
# sheet_index sentinels
APPEND_SHEET = None
PREPEND_SHEET = -1

_CODEC_MODULES: tuple[str, ...] = ("openpyxl", "pandas", "xlrd", "xlwt", "odf", "bs4", "reportlab")


class IODirection(Enum):
    UNSET = "unset"
    READ = "read"
    WRITE = "write"


@dataclass(frozen=True)
class HeaderState:
    """Column names of the active sheet; empty until frozen."""

    names: tuple[str, ...] = ()

    @property
    def frozen(self) -> bool:
        return bool(self.names)


def _is_null_or_empty(value: object) -> bool:
    return value is None or value == ""


def _header_candidate(row: Sequence[object] | None) -> list[str]:
    if not row:
        return []
    values = list(row)
    while values and _is_null_or_empty(values[-1]):
        values.pop()
    return ["" if value is None else str(value) for value in values]


class RecordIterator:
    """Single-pass pull iterator over the records of a store."""

    def __init__(self, store: "SpreadsheetStore", schema: RecordSchema) -> None:
        self._store = store
        self._schema = schema
        self._exhausted = False

    def __iter__(self) -> "RecordIterator":
        return self

    def __next__(self) -> dict[str, object]:
        record = self.next_record()
        if record is None:
            raise StopIteration
        return record

    def next_record(self) -> dict[str, object] | None:
        """Return the next record, or None once the data rows are exhausted."""

        if self._exhausted:
            return None
        record = self._store._next_record(self._schema)
        if record is None:
            self._exhausted = True
            self._store._reset_cursor()
        return record


class SpreadsheetStore(BaseStore):
    """Record store backed by one worksheet of a spreadsheet file."""

    def __init__(
        self,
        reader_file: str | os.PathLike[str],
        writer_file: str | os.PathLike[str] | None = None,
        sheet_index: int | None = 1,
        pdf_backend: str | None = None,
        *,
        logger: logging.Logger | None = None,
        root: Path | None = None,
    ) -> None:
        super().__init__(logger=logger or get_logger("spreadsheet_store", root))
        if pdf_backend is not None:
            validate_pdf_backend(pdf_backend)
        self._pdf_backend = pdf_backend

        self.reader_file = Path(reader_file)
        self.reader_format = reader_format(self.reader_file)
        self.writer_file = Path(writer_file) if writer_file is not None else self.reader_file
        self.writer_format = writer_format(self.writer_file)
        if self.writer_format is SpreadsheetFormat.PDF:
            self._require_pdf_backend(self._pdf_backend)
        if is_html_routed_to_csv(self.writer_file):
            self.logger.warning("%s is html-named; it will be written as CSV", self.writer_file)

        self._sheet_index = sheet_index
        self._sheet_position: int | None = None
        self._document: Workbook | None = None
        self._header = HeaderState()
        self._cursor = 1
        self._direction = IODirection.UNSET
        self._closed = False

    @classmethod
    def from_settings(cls, settings: StoreSettings, *, logger: logging.Logger | None = None) -> "SpreadsheetStore":
        return cls(
            settings.reader_file,
            settings.writer_file,
            settings.sheet_index,
            settings.pdf_backend,
            logger=logger,
            root=settings.root,
        )

    def __enter__(self) -> "SpreadsheetStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # State ------------------------------------------------------------------------

    @property
    def direction(self) -> IODirection:
        return self._direction

    @property
    def header(self) -> tuple[str, ...]:
        return self._header.names

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def sheet_position(self) -> int | None:
        """0-based index of the active sheet once the document is open."""

        return self._sheet_position

    @property
    def record_id(self) -> int:
        return self._cursor - HEADER_ROW_OFFSET

    def lock_direction(self, direction: IODirection) -> None:
        if self._direction is IODirection.UNSET:
            self._direction = direction
            return
        if self._direction is not direction:
            raise DirectionConflictError(
                f"IO direction already set to {self._direction.value} and cannot be changed"
            )

    def _reset_cursor(self) -> None:
        self._cursor = 1

    # Document lifecycle -----------------------------------------------------------

    def ensure_open(self) -> None:
        if self._closed:
            raise StoreClosedError(f"Store for {self.reader_file} is closed")
        if self._document is not None:
            return

        if self.reader_file.exists():
            self.logger.info("Opening %s as %s", self.reader_file, self.reader_format.value)
            try:
                document = load_document(self.reader_file, self.reader_format)
            except Exception as exc:  # noqa: BLE001 - decoder faults vary per library
                raise CannotOpenForReadingError(str(self.reader_file), self.reader_format.value) from exc
        else:
            self.logger.info("%s not found, starting an empty document", self.reader_file)
            document = Workbook()

        self._activate_sheet(document)
        self._document = document

        if self.set_header(_header_candidate(self.read_row_at(1))):
            self._reset_cursor()

    def _activate_sheet(self, document: Workbook) -> None:
        if self._sheet_index is APPEND_SHEET:
            worksheet = document.create_sheet(NEW_SHEET_TITLE)
        elif self._sheet_index == PREPEND_SHEET:
            worksheet = document.create_sheet(NEW_SHEET_TITLE, 0)
        else:
            position = self._sheet_index - 1
            if not 0 <= position < len(document.worksheets):
                raise SheetIndexError(
                    f"Sheet index {self._sheet_index} out of range; "
                    f"{self.reader_file} has {len(document.worksheets)} sheet(s)"
                )
            worksheet = document.worksheets[position]
        document.active = worksheet
        self._sheet_position = document.worksheets.index(worksheet)

    def _active_sheet(self) -> Worksheet:
        self.ensure_open()
        return self._document.active

    def flush_if_needed(self) -> None:
        self.ensure_open()
        if not self._document.worksheets:
            return
        self.save_as()

    def save_as(self, filename: str | os.PathLike[str] | None = None, pdf_backend: str | None = None) -> None:
        """Write the document to the writer file, or to *filename* for this call only."""

        self.ensure_open()
        if pdf_backend is not None:
            validate_pdf_backend(pdf_backend)

        target = self.writer_file
        fmt = self.writer_format
        if filename is not None:
            target = Path(filename)
            fmt = writer_format(target)

        backend = None
        if fmt is SpreadsheetFormat.PDF:
            backend = self._require_pdf_backend(pdf_backend or self._pdf_backend)

        try:
            save_document(self._document, target, fmt, pdf_backend=backend)
        except Exception as exc:  # noqa: BLE001 - encoder faults vary per library
            raise CannotOpenForWritingError(str(target), fmt.value) from exc
        self.logger.debug("Saved %s as %s", target, fmt.value)

    @staticmethod
    def _require_pdf_backend(backend: str | None) -> str:
        if backend is None:
            raise MissingPdfBackendError(
                "PDF writing needs a backend name in the constructor or in save_as(), "
                f"one of : {' | '.join(PDF_BACKENDS)}"
            )
        return validate_pdf_backend(backend)

    def set_active_sheet_title(self, title: str) -> None:
        self._active_sheet().title = title
        self.flush_if_needed()

    def get_document(self) -> Workbook:
        """Return a copy of the document; the live workbook stays private."""

        self.ensure_open()
        return copy_document(self._document)

    def close(self) -> None:
        if self._closed:
            return
        try:
            if self._document is not None:
                self.flush_if_needed()
        finally:
            self._disconnect()
            self._closed = True

    def _disconnect(self) -> None:
        if self._document is None:
            return
        self._document.close()
        self._document = None

    # Header -----------------------------------------------------------------------

    def set_header(self, candidate: Sequence[str]) -> bool:
        if not candidate or self._header.frozen:
            return False
        self._header = HeaderState(tuple(candidate))
        return True

    def try_set_header_from_schema(self, schema: RecordSchema) -> None:
        if self._header.frozen:
            return
        header = schema.header_names()
        if self.set_header(header):
            self.write_row_at(header, 1)
            self._reset_cursor()

    def column_count(self) -> int:
        if self._header.frozen:
            return len(self._header.names)
        return self._active_sheet().max_column

    # Rows -------------------------------------------------------------------------

    def read_row_at(self, row_index: int) -> list[object] | None:
        """Return the cell values of *row_index*, or None for an empty row."""

        worksheet = self._active_sheet()
        col_max = self.column_count()
        # reading past max_row would create cells and grow the sheet
        if col_max < 1 or row_index > worksheet.max_row:
            return None
        values = next(
            worksheet.iter_rows(
                min_row=row_index, max_row=row_index, min_col=1, max_col=col_max, values_only=True
            )
        )
        data = list(values)
        if all(_is_null_or_empty(value) for value in data):
            return None
        return data

    def read_next_row(self) -> list[object] | None:
        self._cursor += 1
        return self.read_row_at(self._cursor)

    def write_row_at(self, values: Sequence[object], row_index: int) -> None:
        worksheet = self._active_sheet()
        for col_index, value in enumerate(values, start=1):
            worksheet.cell(row=row_index, column=col_index, value=value)
        self.logger.debug("Wrote row %d (%d values)", row_index, len(values))
        self.flush_if_needed()

    # Record translation -----------------------------------------------------------

    def row_to_record(
        self, row: Sequence[object] | Mapping[str, object], schema: RecordSchema
    ) -> dict[str, object]:
        id_value = None
        if isinstance(row, Mapping):
            values = dict(row)
            id_value = values.pop(schema.id_field, None)
            row = list(values.values())

        names = self._header.names
        if len(names) != len(row):
            raise HeaderRowMismatchError(
                f"Cannot combine header ({len(names)} columns) with row ({len(row)} values)"
            )
        record: dict[str, object] = dict(zip(names, row))
        if id_value is not None:
            record[schema.id_field] = id_value

        for key in list(record):
            value = record[key]
            if value is None:
                continue
            field = schema.get_field(key)
            if field is not None:
                record[key] = field.typecast_load(value)
        return record

    def record_to_row(self, record: Mapping[str, object] | BaseModel) -> list[object]:
        data = as_mapping(record)
        row: list[object] = []
        for name in self._header.names:
            if name not in data:
                raise MissingColumnError(name)
            row.append(data[name])
        return row

    def _next_record(self, schema: RecordSchema) -> dict[str, object] | None:
        row = self.read_next_row()
        if row is None:
            return None
        record = self.row_to_record(row, schema)
        record[schema.id_field] = self.record_id
        return record

    # BaseStore API ----------------------------------------------------------------

    def insert(self, schema: RecordSchema, record: Mapping[str, object] | BaseModel) -> int:
        self.lock_direction(IODirection.WRITE)
        self.ensure_open()
        self.try_set_header_from_schema(schema)

        row = self.record_to_row(record)
        row_index = self._active_sheet().max_row + 1
        self.write_row_at(row, row_index)
        return row_index - HEADER_ROW_OFFSET

    def iterate(self, schema: RecordSchema) -> RecordIterator:
        self.lock_direction(IODirection.READ)
        self.ensure_open()
        self.try_set_header_from_schema(schema)
        self._reset_cursor()
        return RecordIterator(self, schema)

    def export(self, schema: RecordSchema, fields: Sequence[str] | None = None) -> list[dict[str, object]]:
        records: list[dict[str, object]] = []
        for record in self.iterate(schema):
            if fields:
                record = {key: value for key, value in record.items() if key in fields}
            records.append(record)
        self.flush_if_needed()
        return records

    def try_load_any(self, schema: RecordSchema) -> dict[str, object] | None:
        self.lock_direction(IODirection.READ)
        self.ensure_open()
        self.try_set_header_from_schema(schema)
        return self._next_record(schema)

    def load_model(self, schema: RecordSchema) -> BaseModel:
        """Load the next record as an instance of the schema's pydantic model."""

        return schema.build(self.load_any(schema))

    def healthcheck(self) -> PersistHealth:
        issues: list[str] = []
        dependencies = {name: importlib.util.find_spec(name) is not None for name in _CODEC_MODULES}
        for name, available in dependencies.items():
            if not available:
                issues.append(f"Missing codec dependency: {name}")

        if self.reader_file.exists() and not os.access(self.reader_file, os.R_OK):
            issues.append(f"Reader file is not readable: {self.reader_file}")

        target_dir = self.writer_file.parent.resolve()
        # missing directories are created on save, so probe the closest existing one
        probe = target_dir
        while not probe.exists() and probe != probe.parent:
            probe = probe.parent
        writable_paths = {str(target_dir): os.access(probe, os.W_OK | os.X_OK)}
        locked: list[str] = []
        pending = self.writer_file.with_name(self.writer_file.name + ".tmp")
        if pending.exists():
            locked.append(str(pending))
            issues.append(f"Unfinished write found: {pending}")

        return PersistHealth(
            dependencies=dependencies,
            writable_paths=writable_paths,
            locked_paths=locked,
            issues=issues,
        )
