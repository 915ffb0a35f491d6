"""
Shared fixtures: small PDFs built on the fly with pikepdf.
"""

from __future__ import annotations

import io
import sys
from pathlib import Path

import pikepdf
import pytest
from pikepdf import Array, Dictionary, Name, String

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


def _to_bytes(pdf: pikepdf.Pdf) -> bytes:
    buffer = io.BytesIO()
    pdf.save(buffer)
    pdf.close()
    return buffer.getvalue()


def _button_appearance(pdf: pikepdf.Pdf, on_state: str) -> Dictionary:
    return Dictionary(
        N=Dictionary({f"/{on_state}": pdf.make_stream(b""), "/Off": pdf.make_stream(b"")})
    )


@pytest.fixture
def blank_pdf() -> bytes:
    """Two US-letter pages, no form."""
    pdf = pikepdf.new()
    pdf.add_blank_page(page_size=(612, 792))
    pdf.add_blank_page(page_size=(612, 792))
    return _to_bytes(pdf)


@pytest.fixture
def form_pdf() -> bytes:
    """
    One page with an AcroForm:

    - ``name``                       text
    - ``ssn``                        text, /MaxLen 9
    - ``ein``                        text, /MaxLen 9
    - ``dependent``                  checkbox, on-state /Yes
    - ``filing``                     radio group, states /Single and /MFJ
    - ``state``                      choice, options CA, NY
    - ``topmostSubform.f1_01``       text nested under a non-terminal parent
    """
    pdf = pikepdf.new()
    pdf.add_blank_page(page_size=(612, 792))
    page = pdf.pages[0]

    def widget(**entries) -> pikepdf.Dictionary:
        return pdf.make_indirect(Dictionary(
            Type=Name.Annot, Subtype=Name.Widget, P=page.obj, **entries
        ))

    name = widget(FT=Name.Tx, T=String("name"), Rect=Array([100, 700, 300, 716]))
    ssn = widget(FT=Name.Tx, T=String("ssn"), MaxLen=9, Rect=Array([100, 680, 200, 696]))
    ein = widget(FT=Name.Tx, T=String("ein"), MaxLen=9, Rect=Array([100, 660, 200, 676]))
    dependent = widget(
        FT=Name.Btn, T=String("dependent"), Rect=Array([100, 640, 110, 650]),
        AP=_button_appearance(pdf, "Yes"), AS=Name.Off,
    )
    state = widget(
        FT=Name.Ch, T=String("state"), Ff=1 << 17, Opt=Array([String("CA"), String("NY")]),
        Rect=Array([100, 620, 160, 636]),
    )

    filing = pdf.make_indirect(Dictionary(
        FT=Name.Btn, T=String("filing"), Ff=1 << 15, Kids=Array([]),
    ))
    single = widget(Parent=filing, Rect=Array([100, 600, 110, 610]),
                    AP=_button_appearance(pdf, "Single"), AS=Name.Off)
    joint = widget(Parent=filing, Rect=Array([120, 600, 130, 610]),
                   AP=_button_appearance(pdf, "MFJ"), AS=Name.Off)
    filing.Kids = Array([single, joint])

    subform = pdf.make_indirect(Dictionary(T=String("topmostSubform"), Kids=Array([])))
    nested = widget(FT=Name.Tx, T=String("f1_01"), Parent=subform, Rect=Array([300, 700, 400, 716]))
    subform.Kids = Array([nested])

    pdf.Root.AcroForm = Dictionary(
        Fields=Array([name, ssn, ein, dependent, state, filing, subform]),
    )
    page.Annots = Array([name, ssn, ein, dependent, state, single, joint, nested])
    return _to_bytes(pdf)


def overlay_text_ops(pdf: pikepdf.Pdf, page_index: int = 0) -> list[tuple[str, float, float]]:
    """(text, x, y) of every string drawn by overlay form XObjects on a page."""
    page = pdf.pages[page_index]
    ops: list[tuple[str, float, float]] = []
    if "/Resources" not in page.obj or "/XObject" not in page.Resources:
        return ops
    for _, xobj in page.Resources.XObject.items():
        origin = (0.0, 0.0)
        for operands, operator in pikepdf.parse_content_stream(xobj):
            if operator == pikepdf.Operator("Tm"):
                origin = (float(operands[4]), float(operands[5]))
            elif operator == pikepdf.Operator("Tj"):
                ops.append((str(operands[0]), origin[0], origin[1]))
    return ops
