"""
Form Document
==============
In-memory PDF opened for filling, using pikepdf.

Provides:
- Loading from bytes or a path (load failures raise :class:`DocumentLoadError`)
- 1-based page access
- Native AcroForm field discovery, each field classified once into a
  :class:`NativeFieldKind`
- Serialization back to bytes, with deterministic document IDs

Example::

    from pdf_taxfill.pdf.document import FormDocument

    with FormDocument.open("f1040.pdf") as doc:
        for field in doc.native_fields():
            print(field.name, field.kind.value, field.states)
        doc.save("copy.pdf")
"""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Iterator

import pikepdf

from ..exceptions import DocumentLoadError

# Field flag bits (ISO 32000-1, tables 226-230), zero-based.
FF_RADIO = 1 << 15
FF_PUSHBUTTON = 1 << 16
FF_COMBO = 1 << 17
FF_EDIT = 1 << 18

_MAX_FIELD_DEPTH = 32


class NativeFieldKind(str, Enum):
    """Kind of an interactive field, resolved from /FT and /Ff."""
    TEXT = "text"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    CHOICE = "choice"
    PUSHBUTTON = "pushbutton"
    SIGNATURE = "signature"
    UNKNOWN = "unknown"


@dataclass
class NativeField:
    """A terminal AcroForm field and its widget annotations."""
    name: str
    kind: NativeFieldKind
    obj: pikepdf.Dictionary
    widgets: list[pikepdf.Dictionary] = field(default_factory=list)
    flags: int = 0
    max_length: int | None = None
    options: list[str] = field(default_factory=list)

    @property
    def states(self) -> list[str]:
        """On-state names of the field's widgets (buttons only), in widget order."""
        seen: list[str] = []
        for widget in self.widgets:
            for state in widget_states(widget):
                if state not in seen:
                    seen.append(state)
        return seen

    @property
    def allows_free_text(self) -> bool:
        """Editable combo boxes accept values outside /Opt."""
        return bool(self.flags & FF_COMBO and self.flags & FF_EDIT)


def widget_states(widget: pikepdf.Dictionary) -> list[str]:
    """Appearance state names of a button widget, excluding /Off."""
    ap = widget.get("/AP")
    if not isinstance(ap, pikepdf.Dictionary):
        return []
    normal = ap.get("/N")
    if not isinstance(normal, pikepdf.Dictionary):
        return []
    return [str(k).lstrip("/") for k in sorted(normal.keys()) if k != "/Off"]


class FormDocument:
    """
    Context-manager-based wrapper around a pikepdf document being filled.

    Overlay PDFs merged into the document are retained until the document is
    closed, since pikepdf copies foreign objects lazily at save time.
    """

    def __init__(self, pdf: pikepdf.Pdf) -> None:
        self._pdf = pdf
        self._fields: dict[str, NativeField] | None = None
        self._retained: list[pikepdf.Pdf] = []

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def load(cls, data: bytes) -> "FormDocument":
        """Open a PDF held in memory."""
        try:
            return cls(pikepdf.open(io.BytesIO(data)))
        except (pikepdf.PdfError, ValueError) as exc:
            raise DocumentLoadError(f"Cannot open PDF: {exc}") from exc

    @classmethod
    def open(cls, path: str | Path) -> "FormDocument":
        """Open a PDF file. The file is read fully so it may be overwritten on save."""
        try:
            data = Path(path).read_bytes()
        except OSError as exc:
            raise DocumentLoadError(f"Cannot read {path}: {exc}") from exc
        return cls.load(data)

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    def __enter__(self) -> "FormDocument":
        return self

    def __exit__(self, *_: Any) -> None:
        self.close()

    def close(self) -> None:
        for other in self._retained:
            other.close()
        self._retained.clear()
        self._pdf.close()

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------

    @property
    def page_count(self) -> int:
        return len(self._pdf.pages)

    def page(self, number: int) -> pikepdf.Page | None:
        """Return the page with 1-based ``number``, or None."""
        if 1 <= number <= len(self._pdf.pages):
            return self._pdf.pages[number - 1]
        return None

    # ------------------------------------------------------------------
    # Native fields
    # ------------------------------------------------------------------

    def native_fields(self) -> list[NativeField]:
        """All terminal AcroForm fields, in document order."""
        return list(self._field_index().values())

    def native_field(self, name: str) -> NativeField | None:
        """Look up a terminal field by its fully qualified name."""
        return self._field_index().get(name)

    def has_form(self) -> bool:
        return "/AcroForm" in self._pdf.Root

    def set_need_appearances(self) -> None:
        """Flag the AcroForm so viewers regenerate field appearances."""
        if self.has_form():
            self._pdf.Root["/AcroForm"]["/NeedAppearances"] = True

    def _field_index(self) -> dict[str, NativeField]:
        if self._fields is None:
            self._fields = {}
            acroform = self._pdf.Root.get("/AcroForm")
            if isinstance(acroform, pikepdf.Dictionary) and "/Fields" in acroform:
                for node in acroform["/Fields"]:
                    for native in _walk_fields(node, "", {}, 0):
                        self._fields.setdefault(native.name, native)
        return self._fields

    # ------------------------------------------------------------------
    # Save
    # ------------------------------------------------------------------

    def retain(self, other: pikepdf.Pdf) -> None:
        """Keep ``other`` open until this document is closed."""
        self._retained.append(other)

    def to_bytes(self) -> bytes:
        """Serialize the document."""
        buffer = io.BytesIO()
        self._pdf.save(buffer, deterministic_id=True)
        return buffer.getvalue()

    def save(self, output: str | Path) -> None:
        Path(output).write_bytes(self.to_bytes())

    @property
    def pdf(self) -> pikepdf.Pdf:
        """Direct access to the underlying pikepdf.Pdf object."""
        return self._pdf


# ---------------------------------------------------------------------------
# Field tree traversal
# ---------------------------------------------------------------------------


def _walk_fields(
    node: pikepdf.Object,
    parent_name: str,
    inherited: dict[str, Any],
    depth: int,
) -> Iterator[NativeField]:
    if not isinstance(node, pikepdf.Dictionary) or depth > _MAX_FIELD_DEPTH:
        return

    partial = str(node["/T"]) if "/T" in node else ""
    name = ".".join(p for p in (parent_name, partial) if p)

    attrs = dict(inherited)
    for key in ("/FT", "/Ff", "/MaxLen"):
        if key in node:
            attrs[key] = node[key]

    kids = list(node["/Kids"]) if "/Kids" in node else []
    child_fields = [k for k in kids if isinstance(k, pikepdf.Dictionary) and "/T" in k]
    if child_fields:
        for kid in child_fields:
            yield from _walk_fields(kid, name, attrs, depth + 1)
        return

    widgets = [k for k in kids if isinstance(k, pikepdf.Dictionary)] or [node]
    flags = int(attrs.get("/Ff", 0))
    max_length = int(attrs["/MaxLen"]) if "/MaxLen" in attrs else None
    yield NativeField(
        name=name,
        kind=_classify(attrs.get("/FT"), flags),
        obj=node,
        widgets=widgets,
        flags=flags,
        max_length=max_length,
        options=_choice_options(node),
    )


def _classify(field_type: Any, flags: int) -> NativeFieldKind:
    if field_type == pikepdf.Name("/Tx"):
        return NativeFieldKind.TEXT
    if field_type == pikepdf.Name("/Ch"):
        return NativeFieldKind.CHOICE
    if field_type == pikepdf.Name("/Sig"):
        return NativeFieldKind.SIGNATURE
    if field_type == pikepdf.Name("/Btn"):
        if flags & FF_PUSHBUTTON:
            return NativeFieldKind.PUSHBUTTON
        if flags & FF_RADIO:
            return NativeFieldKind.RADIO
        return NativeFieldKind.CHECKBOX
    return NativeFieldKind.UNKNOWN


def _choice_options(node: pikepdf.Dictionary) -> list[str]:
    options: list[str] = []
    if "/Opt" not in node:
        return options
    for entry in node["/Opt"]:
        if isinstance(entry, pikepdf.Array) and len(entry) > 0:
            options.append(str(entry[0]))
        else:
            options.append(str(entry))
    return options
