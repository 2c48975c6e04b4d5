"""Settings loader for spreadsheet stores.

Reads a YAML file describing which spreadsheet a store reads and writes,
validates it with pydantic and hands back a ``StoreSettings`` instance that
``SpreadsheetStore.from_settings`` accepts.

Example::

    reader_file: data/people.xlsx
    writer_file: out/people.ods
    sheet_index: 1
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from sheet_persist.utils.pdf_render import PDF_BACKENDS


class ConfigError(Exception):
    """Configuration related error."""


class StoreSettings(BaseModel):
    """Constructor arguments of a SpreadsheetStore."""

    model_config = ConfigDict(extra="forbid")

    reader_file: Path
    writer_file: Path | None = None
    sheet_index: int | None = 1
    pdf_backend: str | None = None
    root: Path | None = None

    @field_validator("sheet_index")
    @classmethod
    def _check_sheet_index(cls, value: int | None) -> int | None:
        if value is not None and value != -1 and value < 1:
            raise ValueError("sheet_index must be >= 1, -1 (prepend) or null (append)")
        return value

    @field_validator("pdf_backend")
    @classmethod
    def _check_pdf_backend(cls, value: str | None) -> str | None:
        if value is not None and value not in PDF_BACKENDS:
            raise ValueError(f"pdf_backend must be one of: {', '.join(PDF_BACKENDS)}")
        return value


def _resolve_relative(settings: StoreSettings, base_dir: Path) -> StoreSettings:
    updates: dict[str, Any] = {}
    for name in ("reader_file", "writer_file", "root"):
        value = getattr(settings, name)
        if value is not None and not value.expanduser().is_absolute():
            updates[name] = base_dir / value
        elif value is not None:
            updates[name] = value.expanduser()
    return settings.model_copy(update=updates)


def parse_settings(data: Mapping[str, Any], *, base_dir: Path | None = None) -> StoreSettings:
    """Validate a settings mapping; relative paths are joined onto *base_dir*."""

    try:
        settings = StoreSettings.model_validate(dict(data))
    except ValidationError as exc:
        raise ConfigError(f"invalid store settings: {exc}") from exc
    if base_dir is not None:
        settings = _resolve_relative(settings, base_dir)
    return settings


def load_settings(path: str | Path) -> StoreSettings:
    """Load store settings from a YAML file, resolving paths against its directory."""

    path = Path(path)
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid yaml: {exc}") from exc
    if not isinstance(data, Mapping):
        raise ConfigError(f"config root must be a mapping: {path}")
    return parse_settings(data, base_dir=path.resolve().parent)
