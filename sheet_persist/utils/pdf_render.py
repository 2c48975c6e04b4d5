"""
RESPONSIBILITIES
- Keep the fixed allow-list of PDF backends and their reportlab renderers.
- Render the rows of one worksheet into a PDF byte stream.
PROCESS OVERVIEW
1. validate_pdf_backend() rejects names outside PDF_BACKENDS.
2. register_pdf_backend() swaps the renderer bound to an allow-listed name.
3. render_pdf() dispatches to the renderer with stringified cell values.
"""

from __future__ import annotations

from typing import BinaryIO, Callable, Sequence

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.pdfgen.canvas import Canvas
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle

from sheet_persist.stores.base_store import InvalidPdfBackendError

PdfRenderer = Callable[[Sequence[Sequence[str]], BinaryIO, str], None]

PDF_BACKENDS: tuple[str, ...] = ("platypus", "canvas")

_MARGIN = 72
_LINE_HEIGHT = 14


def _render_platypus(rows: Sequence[Sequence[str]], handle: BinaryIO, title: str) -> None:
    doc = SimpleDocTemplate(handle, pagesize=landscape(A4), title=title)
    data = [list(row) for row in rows] or [[""]]
    table = Table(data, repeatRows=1)
    table.setStyle(
        TableStyle(
            [
                ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ]
        )
    )
    doc.build([table])


def _render_canvas(rows: Sequence[Sequence[str]], handle: BinaryIO, title: str) -> None:
    _, height = A4
    pdf = Canvas(handle, pagesize=A4)
    pdf.setTitle(title)
    y = height - _MARGIN
    for row in rows:
        if y < _MARGIN:
            pdf.showPage()
            y = height - _MARGIN
        pdf.drawString(_MARGIN, y, "    ".join(row))
        y -= _LINE_HEIGHT
    pdf.save()


_RENDERERS: dict[str, PdfRenderer] = {
    "platypus": _render_platypus,
    "canvas": _render_canvas,
}


def validate_pdf_backend(name: str) -> str:
    if name not in PDF_BACKENDS:
        raise InvalidPdfBackendError(
            f"PDF backend must be one of : {' | '.join(PDF_BACKENDS)} (got {name!r})"
        )
    return name


def register_pdf_backend(name: str, renderer: PdfRenderer) -> None:
    """Bind *renderer* to an allow-listed backend name."""

    _RENDERERS[validate_pdf_backend(name)] = renderer


def render_pdf(backend: str, rows: Sequence[Sequence[object]], handle: BinaryIO, *, title: str = "") -> None:
    renderer = _RENDERERS[validate_pdf_backend(backend)]
    text_rows = [["" if value is None else str(value) for value in row] for row in rows]
    renderer(text_rows, handle, title)
