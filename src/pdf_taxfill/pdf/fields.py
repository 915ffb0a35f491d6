"""
Native-Field Placement
=======================
Writes formatted values into a document's existing AcroForm fields.

The target field's :class:`NativeFieldKind` is resolved once at lookup and
matched exhaustively against the annotated field type:

====================  ==========================================
annotated type        accepted native kinds
====================  ==========================================
checkbox              CHECKBOX (check), RADIO (select exportValue)
radio                 RADIO (select exportValue), CHECKBOX, CHOICE
text-like types       TEXT (set text), CHOICE (select value)
====================  ==========================================

Anything else raises :class:`NativeFieldError`, which the render engine
reports as a per-field error.
"""

from __future__ import annotations

import re

import pikepdf

from .document import NativeField, NativeFieldKind, widget_states
from ..exceptions import NativeFieldError
from ..models.annotation import FieldDefinition, FieldType

_SEPARATOR_RE = re.compile(r"[-\s]")

CODE_NOT_FOUND = "RF-001"
CODE_KIND_MISMATCH = "RF-002"
CODE_VALUE_REJECTED = "RF-003"


def place_native(native: NativeField, definition: FieldDefinition, value: str | bool) -> None:
    """
    Write ``value`` into ``native``.

    ``value`` is the formatted value; toggles (checkbox/radio) only ever
    arrive here as True since unchecked states are not placed.
    """
    kind = native.kind
    if definition.is_toggle:
        if kind is NativeFieldKind.CHECKBOX:
            check(native)
        elif kind in (NativeFieldKind.RADIO, NativeFieldKind.CHOICE):
            option = definition.format.export_value
            if not option:
                raise NativeFieldError(
                    f"Field '{native.name}' is a {kind.value} field but no exportValue is declared",
                    code=CODE_VALUE_REJECTED,
                )
            select(native, option)
        elif kind in (
            NativeFieldKind.TEXT,
            NativeFieldKind.PUSHBUTTON,
            NativeFieldKind.SIGNATURE,
            NativeFieldKind.UNKNOWN,
        ):
            raise _mismatch(native, definition)
        return

    text = str(value)
    if kind is NativeFieldKind.TEXT:
        set_text(native, _fit_text(native, definition, text))
    elif kind is NativeFieldKind.CHOICE:
        select(native, text)
    elif kind in (
        NativeFieldKind.CHECKBOX,
        NativeFieldKind.RADIO,
        NativeFieldKind.PUSHBUTTON,
        NativeFieldKind.SIGNATURE,
        NativeFieldKind.UNKNOWN,
    ):
        raise _mismatch(native, definition)


def set_text(native: NativeField, text: str) -> None:
    """Set a text field's value."""
    if native.max_length is not None and len(text) > native.max_length:
        raise NativeFieldError(
            f"Value of length {len(text)} exceeds /MaxLen {native.max_length} of '{native.name}'",
            code=CODE_VALUE_REJECTED,
        )
    native.obj["/V"] = pikepdf.String(text)


def check(native: NativeField) -> None:
    """Turn a checkbox on. Each widget uses its own on-state name."""
    on_value = None
    for widget in native.widgets:
        states = widget_states(widget)
        state = states[0] if states else "Yes"
        widget["/AS"] = pikepdf.Name(f"/{state}")
        on_value = on_value or state
    native.obj["/V"] = pikepdf.Name(f"/{on_value or 'Yes'}")


def select(native: NativeField, option: str) -> None:
    """Select ``option`` on a radio group or choice field."""
    if native.kind is NativeFieldKind.CHOICE:
        if native.options and option not in native.options and not native.allows_free_text:
            raise NativeFieldError(
                f"'{option}' is not an option of '{native.name}' "
                f"(options: {', '.join(native.options)})",
                code=CODE_VALUE_REJECTED,
            )
        native.obj["/V"] = pikepdf.String(option)
        return

    if option not in native.states:
        raise NativeFieldError(
            f"'{option}' is not a state of '{native.name}' "
            f"(states: {', '.join(native.states) or 'none'})",
            code=CODE_VALUE_REJECTED,
        )
    for widget in native.widgets:
        selected = option in widget_states(widget)
        widget["/AS"] = pikepdf.Name(f"/{option}" if selected else "/Off")
    native.obj["/V"] = pikepdf.Name(f"/{option}")


def _fit_text(native: NativeField, definition: FieldDefinition, text: str) -> str:
    # SSN boxes on IRS forms are comb fields sized for the bare digits.
    if definition.type == FieldType.SSN:
        return text.replace("-", "")
    if native.max_length is not None and len(text) > native.max_length:
        return _SEPARATOR_RE.sub("", text)
    return text


def _mismatch(native: NativeField, definition: FieldDefinition) -> NativeFieldError:
    return NativeFieldError(
        f"Native field '{native.name}' is a {native.kind.value} field, "
        f"cannot place a {definition.type} value",
        code=CODE_KIND_MISMATCH,
    )
