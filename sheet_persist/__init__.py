"""
Persistence facade exposing spreadsheet-backed record stores.
"""

from .config import ConfigError, StoreSettings, load_settings
from .schemas.record import Field, RecordSchema
from .stores.base_store import (
    CannotOpenForReadingError,
    CannotOpenForWritingError,
    DirectionConflictError,
    HeaderRowMismatchError,
    InvalidPdfBackendError,
    MissingColumnError,
    MissingPdfBackendError,
    NoExtensionError,
    NoMoreRecordsError,
    PersistHealth,
    SheetIndexError,
    StoreClosedError,
    StoreError,
    StoreValidationError,
    TypecastError,
    UnsupportedFormatError,
    UnsupportedOperationError,
)
from .stores.spreadsheet_store import IODirection, RecordIterator, SpreadsheetStore
from .utils.formats import SpreadsheetFormat, reader_format, resolve_format, writer_format
from .utils.pdf_render import PDF_BACKENDS, register_pdf_backend

__all__ = [
    "SpreadsheetStore",
    "RecordIterator",
    "IODirection",
    "RecordSchema",
    "Field",
    "StoreSettings",
    "load_settings",
    "ConfigError",
    "SpreadsheetFormat",
    "resolve_format",
    "reader_format",
    "writer_format",
    "PDF_BACKENDS",
    "register_pdf_backend",
    "PersistHealth",
    "StoreError",
    "StoreValidationError",
    "TypecastError",
    "DirectionConflictError",
    "NoExtensionError",
    "UnsupportedFormatError",
    "CannotOpenForReadingError",
    "CannotOpenForWritingError",
    "MissingPdfBackendError",
    "InvalidPdfBackendError",
    "NoMoreRecordsError",
    "HeaderRowMismatchError",
    "MissingColumnError",
    "UnsupportedOperationError",
    "SheetIndexError",
    "StoreClosedError",
]

__version__ = "0.1.0"
