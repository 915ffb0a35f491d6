"""
Coordinate Placement
=====================
Draws field values at absolute page positions.

Text is collected per page while the render runs, then drawn with ReportLab
onto one transparent overlay page per touched page and merged over the
target page with pikepdf. ReportLab runs in invariant mode so the same
input always produces the same overlay content.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass

import pikepdf
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfgen import canvas

from .document import FormDocument
from ..exceptions import PlacementError
from ..models.annotation import Alignment, FieldDefinition
from ..models.result import RenderOptions

logger = logging.getLogger(__name__)

CODE_PAGE_NOT_FOUND = "RF-004"
CODE_NO_POSITION = "RF-005"


@dataclass(frozen=True)
class TextOp:
    """One string drawn at a baseline origin, in page coordinates."""
    x: float
    y: float
    text: str
    font_name: str
    font_size: float


def text_width(text: str, font_name: str, font_size: float) -> float:
    """Rendered width of ``text`` in points."""
    return pdfmetrics.stringWidth(text, font_name, font_size)


class CoordinatePlacer:
    """Collects text/mark placements for a document and merges them on :meth:`apply`."""

    def __init__(self, document: FormDocument, options: RenderOptions | None = None) -> None:
        self._document = document
        self._options = options or RenderOptions()
        self._ops: dict[int, list[TextOp]] = {}

    @property
    def pending(self) -> dict[int, list[TextOp]]:
        """Queued operations keyed by 1-based page number."""
        return self._ops

    def place(self, definition: FieldDefinition, value: str | bool) -> TextOp:
        """Queue ``value`` for ``definition``'s rectangle. Returns the queued op."""
        if self._document.page(definition.page) is None:
            raise PlacementError(
                f"Page {definition.page} not found "
                f"(document has {self._document.page_count})",
                code=CODE_PAGE_NOT_FOUND,
            )
        if definition.position is None:
            raise PlacementError(
                "No position declared for coordinate placement", code=CODE_NO_POSITION
            )

        x, y, width, height = definition.position.to_points()
        fmt = definition.format
        font_name = self._font(fmt.font_name)
        font_size = fmt.font_size or self._options.font_size

        if definition.is_toggle:
            mark = fmt.check_mark or self._options.check_mark
            mark_width = text_width(mark, font_name, font_size)
            op = TextOp(
                x=x + (width - mark_width) / 2,
                y=y + height / 2 - font_size / 3,
                text=mark,
                font_name=font_name,
                font_size=font_size,
            )
        else:
            text = str(value)
            measured = text_width(text, font_name, font_size)
            inset = self._options.text_inset
            alignment = fmt.alignment
            if alignment is Alignment.RIGHT:
                text_x = x + width - measured - inset
            elif alignment is Alignment.CENTER:
                text_x = x + (width - measured) / 2
            else:
                text_x = x + inset
            op = TextOp(
                x=text_x,
                y=y + (height - font_size) / 2,
                text=text,
                font_name=font_name,
                font_size=font_size,
            )

        self._ops.setdefault(definition.page, []).append(op)
        return op

    def apply(self) -> int:
        """Merge queued operations into the document. Returns the number of pages touched."""
        for number in sorted(self._ops):
            page = self._document.page(number)
            mediabox = [float(v) for v in page.mediabox]
            overlay = self._draw_overlay(self._ops[number], mediabox)
            self._document.retain(overlay)
            formx = self._document.pdf.copy_foreign(overlay.pages[0].as_form_xobject())
            page.add_overlay(formx, pikepdf.Rectangle(*mediabox))
            logger.debug("Merged %d overlay item(s) onto page %d", len(self._ops[number]), number)
        touched = len(self._ops)
        self._ops = {}
        return touched

    def _draw_overlay(self, ops: list[TextOp], mediabox: list[float]) -> pikepdf.Pdf:
        x0, y0, x1, y1 = mediabox
        buffer = io.BytesIO()
        c = canvas.Canvas(buffer, pagesize=(x1 - x0, y1 - y0), invariant=1)
        c.setFillColorRGB(0, 0, 0)
        for op in ops:
            c.setFont(op.font_name, op.font_size)
            # Field coordinates are absolute; the overlay origin is the mediabox corner.
            c.drawString(op.x - x0, op.y - y0, op.text)
        c.showPage()
        c.save()
        return pikepdf.open(io.BytesIO(buffer.getvalue()))

    def _font(self, requested: str | None) -> str:
        if requested and requested in pdfmetrics.standardFonts:
            return requested
        if requested:
            logger.warning("Font %r is not a standard PDF font, using %s", requested, self._options.font_name)
        return self._options.font_name
