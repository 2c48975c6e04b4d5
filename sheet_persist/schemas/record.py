"""
RESPONSIBILITIES
- Describe the record shape a store reads and writes (ordered fields + identity field).
- Provide the load-time typecast hook applied to every non-null cell value.
PROCESS OVERVIEW
1. Callers build a RecordSchema from a pydantic model or from plain field names.
2. Stores derive the header from field_names() minus the identity field.
3. Field.typecast_load() converts raw cell values through a cached pydantic TypeAdapter.
4. build() turns a loaded record back into the schema's pydantic model.
"""

from __future__ import annotations

from dataclasses import dataclass, field, is_dataclass
from typing import Any, Iterable, Mapping, MutableMapping

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError

from sheet_persist.stores.base_store import StoreValidationError, TypecastError

DEFAULT_ID_FIELD = "id"

# Spreadsheet cells hand back numbers for text columns (e.g. zip codes).
_LOAD_CONFIG = ConfigDict(coerce_numbers_to_str=True)


def _build_adapter(annotation: Any) -> TypeAdapter[Any]:
    if isinstance(annotation, type) and (issubclass(annotation, BaseModel) or is_dataclass(annotation)):
        return TypeAdapter(annotation)
    return TypeAdapter(annotation, config=_LOAD_CONFIG)


@dataclass
class Field:
    """A named record field with its load-time type."""

    name: str
    annotation: Any = Any
    _adapter: TypeAdapter[Any] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._adapter = _build_adapter(self.annotation)

    def typecast_load(self, value: object) -> object:
        """Convert a raw cell value to the field's Python type."""

        try:
            return self._adapter.validate_python(value)
        except ValidationError as exc:
            reason = "; ".join(err["msg"] for err in exc.errors())
            raise TypecastError(self.name, value, reason) from exc


@dataclass
class RecordSchema:
    """Ordered field list plus the name of the identity field."""

    fields: tuple[Field, ...]
    id_field: str = DEFAULT_ID_FIELD
    model: type[BaseModel] | None = None

    @classmethod
    def from_model(cls, model: type[BaseModel], *, id_field: str = DEFAULT_ID_FIELD) -> "RecordSchema":
        fields = tuple(Field(name, info.annotation) for name, info in model.model_fields.items())
        return cls(fields=fields, id_field=id_field, model=model)

    @classmethod
    def from_names(cls, names: Iterable[str], *, id_field: str = DEFAULT_ID_FIELD) -> "RecordSchema":
        return cls(fields=tuple(Field(name) for name in names), id_field=id_field)

    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    def header_names(self) -> list[str]:
        """Field names in declaration order, identity field excluded."""

        return [f.name for f in self.fields if f.name != self.id_field]

    def get_field(self, name: str) -> Field | None:
        for candidate in self.fields:
            if candidate.name == name:
                return candidate
        return None

    def build(self, data: Mapping[str, object]) -> BaseModel:
        """Instantiate the bound pydantic model from a loaded record."""

        if self.model is None:
            raise StoreValidationError("RecordSchema has no model bound; use from_model()")
        try:
            return self.model.model_validate(dict(data))
        except ValidationError as exc:
            raise StoreValidationError(f"Invalid {self.model.__name__} record: {exc}") from exc


def as_mapping(record: Mapping[str, object] | BaseModel) -> MutableMapping[str, object]:
    """Return a plain dict for a mapping or pydantic model instance."""

    if isinstance(record, BaseModel):
        return record.model_dump()
    return dict(record)
