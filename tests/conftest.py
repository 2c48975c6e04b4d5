from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, Iterable, Sequence

import pytest
from openpyxl import Workbook
from pydantic import BaseModel

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from sheet_persist.schemas.record import RecordSchema
from sheet_persist.utils.log import reset_logging
from sheet_persist.utils.paths import HOME_ENV_VAR


class Person(BaseModel):
    id: int | None = None
    name: str
    age: int | None = None
    city: str | None = None


@pytest.fixture(autouse=True, scope="session")
def _isolated_home(tmp_path_factory: pytest.TempPathFactory) -> Iterable[Path]:
    """Keep log files out of the real home directory."""

    home = tmp_path_factory.mktemp("sheet_persist_home")
    with pytest.MonkeyPatch.context() as mp:
        mp.setenv(HOME_ENV_VAR, str(home))
        reset_logging()
        yield home
    reset_logging()


@pytest.fixture()
def person_schema() -> RecordSchema:
    return RecordSchema.from_model(Person)


@pytest.fixture()
def write_xlsx() -> Callable[..., Path]:
    """Build an .xlsx file from a list of rows per sheet title."""

    def _write(path: Path, sheets: dict[str, Sequence[Sequence[object]]]) -> Path:
        wb = Workbook()
        wb.remove(wb.active)
        for title, rows in sheets.items():
            ws = wb.create_sheet(title)
            for row in rows:
                ws.append(list(row))
        path.parent.mkdir(parents=True, exist_ok=True)
        wb.save(path)
        return path

    return _write


@pytest.fixture()
def people_rows() -> list[list[object]]:
    return [
        ["name", "age", "city"],
        ["Alice", 30, "Paris"],
        ["Bob", 41, "Berlin"],
        ["Chloe", 27, None],
    ]
