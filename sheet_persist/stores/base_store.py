"""
RESPONSIBILITIES
- Define shared interfaces and exceptions for spreadsheet-backed record stores.
- Outline the record workflow (insert/iterate/load/export) used by concrete stores.
PROCESS OVERVIEW
1. insert -> append a single record after the last populated row.
2. iterate -> stream records row by row, starting after the header row.
3. try_load_any/load_any -> pull the next record from the read cursor.
4. export -> collect every record, optionally projected to a field subset.
5. update/delete -> rejected, rows are append-only and positional.
6. healthcheck -> verify codec dependencies and writable target directories.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterator, Mapping, Sequence

if TYPE_CHECKING:
    from sheet_persist.schemas.record import RecordSchema


class StoreError(RuntimeError):
    """Base exception type for persistence-layer failures."""


class StoreValidationError(StoreError):
    """Raised when input data fails validation rules."""


class TypecastError(StoreValidationError):
    """Raised when a cell value cannot be converted to its field type."""

    def __init__(self, field_name: str, value: object, reason: str) -> None:
        super().__init__(f"Cannot convert {value!r} for field '{field_name}': {reason}")
        self.field_name = field_name
        self.value = value


class DirectionConflictError(StoreError):
    """Raised when a store used for reading is asked to write, or vice versa."""


class FormatError(StoreError):
    """Base class for file format resolution failures."""

    def __init__(self, message: str, filename: str) -> None:
        super().__init__(message)
        self.filename = filename


class NoExtensionError(FormatError):
    """Raised when a file name carries no extension to resolve a format from."""


class UnsupportedFormatError(FormatError):
    """Raised when an extension maps to no reader or writer format."""


class _DocumentIOError(StoreError):
    def __init__(self, message: str, filename: str, fmt: str) -> None:
        super().__init__(f"{message} {filename} (type => {fmt})")
        self.filename = filename
        self.fmt = fmt


class CannotOpenForReadingError(_DocumentIOError):
    """Raised when the spreadsheet decoder fails on the reader file."""

    def __init__(self, filename: str, fmt: str) -> None:
        super().__init__("can't open file for reading", filename, fmt)


class CannotOpenForWritingError(_DocumentIOError):
    """Raised when the spreadsheet encoder fails on the writer file."""

    def __init__(self, filename: str, fmt: str) -> None:
        super().__init__("can't open file for writing", filename, fmt)


class PdfBackendError(StoreError):
    """Base class for PDF backend configuration errors."""


class MissingPdfBackendError(PdfBackendError):
    """Raised when writing PDF without a backend name."""


class InvalidPdfBackendError(PdfBackendError):
    """Raised when a PDF backend name is not in the allow-list."""


class NoMoreRecordsError(StoreError):
    """Raised by strict loads once the read cursor is exhausted."""


class HeaderRowMismatchError(StoreError):
    """Raised when a row cannot be aligned positionally with the header."""


class MissingColumnError(StoreError):
    """Raised when a record lacks a value for one of the header columns."""

    def __init__(self, column: str) -> None:
        super().__init__(f"Record has no value for header column '{column}'")
        self.column = column


class UnsupportedOperationError(StoreError):
    """Raised by operations the store cannot perform."""


class SheetIndexError(StoreError):
    """Raised when the requested sheet index does not exist in the document."""


class StoreClosedError(StoreError):
    """Raised when a closed store is used again."""


@dataclass(slots=True)
class PersistHealth:
    """Structured report produced by health checks."""

    dependencies: dict[str, bool]
    writable_paths: dict[str, bool]
    locked_paths: list[str]
    issues: list[str] = field(default_factory=list)

    def is_healthy(self) -> bool:
        """Return True when no issues are observed."""

        return not self.issues and all(self.dependencies.values()) and all(
            self.writable_paths.values()
        )


class BaseStore(ABC):
    """Abstract class shared by concrete spreadsheet-backed stores."""

    def __init__(self, *, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def insert(self, schema: RecordSchema, record: Mapping[str, object]) -> int:
        """Append a record, returning its id."""

    @abstractmethod
    def export(self, schema: RecordSchema, fields: Sequence[str] | None = None) -> list[dict[str, object]]:
        """Return every record, optionally restricted to *fields*."""

    @abstractmethod
    def iterate(self, schema: RecordSchema) -> Iterator[dict[str, object]]:
        """Stream records one row at a time."""

    @abstractmethod
    def try_load_any(self, schema: RecordSchema) -> dict[str, object] | None:
        """Load the next record, returning None when exhausted."""

    def load_any(self, schema: RecordSchema) -> dict[str, object]:
        """Load the next record, raising NoMoreRecordsError when exhausted."""

        data = self.try_load_any(schema)
        if data is None:
            raise NoMoreRecordsError("No more records")
        return data

    def update(self, schema: RecordSchema, record_id: object, data: Mapping[str, object]) -> None:
        raise UnsupportedOperationError(
            f"Updating records is not supported in {self.__class__.__name__}."
        )

    def delete(self, schema: RecordSchema, record_id: object) -> None:
        raise UnsupportedOperationError(
            f"Deleting records is not supported in {self.__class__.__name__}."
        )

    @abstractmethod
    def healthcheck(self) -> PersistHealth:
        """Run diagnostics for the store and return a structured report."""
