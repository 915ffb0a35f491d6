"""
Annotation – Core Model
========================
Pydantic models for the annotation wire contract: the static description of
a form's fields, their positions on the page and their data bindings.

The JSON shape (camelCase keys) is the interchange format between annotation
authors and the renderer::

    {
      "form": {"id": "f1040", "name": "U.S. Individual Income Tax Return",
               "taxYear": 2024, "pageCount": 2,
               "pageSize": {"width": 612, "height": 792, "unit": "pt"}},
      "fields": [
        {"id": "wages", "type": "currency", "page": 1,
         "position": {"x": 504, "y": 430, "width": 72, "height": 12},
         "binding": {"path": "income.w2[*].wages", "transform": "sum"},
         "format": {"align": "right"},
         "nativeFieldId": "topmostSubform[0].Page1[0].f1_32[0]"}
      ]
    }

Binding paths and conditions are compiled when the model is validated, so a
render never re-parses them.
"""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    ValidationError,
    field_validator,
)

from ..binding.conditions import Condition, parse_condition
from ..binding.paths import FieldPath, parse_path
from ..exceptions import AnnotationError


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class FieldType(str, Enum):
    """Semantic field types. Governs formatting and placement."""
    TEXT = "text"
    CURRENCY = "currency"
    NUMBER = "number"
    SSN = "ssn"
    EIN = "ein"
    DATE = "date"
    CHECKBOX = "checkbox"
    RADIO = "radio"


class Unit(str, Enum):
    """Units accepted in ``position.unit``."""
    POINTS = "pt"
    INCHES = "in"
    MILLIMETERS = "mm"

    @property
    def points(self) -> float:
        """Size of one unit in PDF points."""
        return {Unit.POINTS: 1.0, Unit.INCHES: 72.0, Unit.MILLIMETERS: 72.0 / 25.4}[self]


_UNIT_ALIASES = {
    "pt": Unit.POINTS, "point": Unit.POINTS, "points": Unit.POINTS,
    "in": Unit.INCHES, "inch": Unit.INCHES, "inches": Unit.INCHES,
    "mm": Unit.MILLIMETERS, "millimeter": Unit.MILLIMETERS, "millimeters": Unit.MILLIMETERS,
}


class Alignment(str, Enum):
    LEFT = "left"
    RIGHT = "right"
    CENTER = "center"


# ---------------------------------------------------------------------------
# Sub-models
# ---------------------------------------------------------------------------

class Position(BaseModel):
    """Field rectangle. Origin is the page's bottom-left corner."""
    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    width: float = 0.0
    height: float = 0.0
    unit: Unit = Unit.POINTS

    @field_validator("unit", mode="before")
    @classmethod
    def normalise_unit(cls, v: Any) -> Any:
        if v is None:
            return Unit.POINTS
        if isinstance(v, str) and v.lower() in _UNIT_ALIASES:
            return _UNIT_ALIASES[v.lower()]
        return v

    def to_points(self) -> tuple[float, float, float, float]:
        """Return ``(x, y, width, height)`` in PDF points."""
        k = self.unit.points
        return self.x * k, self.y * k, self.width * k, self.height * k


class Binding(BaseModel):
    """How a field obtains its value from the data document."""
    model_config = ConfigDict(frozen=True)

    path: str = ""
    transform: str | None = None
    condition: str | None = None
    fallback: Any = None

    _path: FieldPath = PrivateAttr()
    _condition: Condition | None = PrivateAttr(default=None)

    @field_validator("path")
    @classmethod
    def check_path(cls, v: str) -> str:
        # PathSyntaxError is a ValueError, reported as a validation error.
        parse_path(v)
        return v

    def model_post_init(self, __context: Any) -> None:
        self._path = parse_path(self.path)
        self._condition = parse_condition(self.condition)

    @property
    def compiled_path(self) -> FieldPath:
        return self._path

    @property
    def compiled_condition(self) -> Condition | None:
        return self._condition


class FieldFormat(BaseModel):
    """
    Type-specific rendering options. Free-form: unknown keys are kept and
    passed through to the formatter.
    """
    model_config = ConfigDict(populate_by_name=True, extra="allow", frozen=True)

    decimal_places: int | None = Field(None, alias="decimalPlaces", ge=0)
    currency_symbol: bool | str | None = Field(None, alias="currencySymbol")
    align: str | None = Field(None, description="left | right | center")
    date_format: str | None = Field(None, alias="dateFormat", description="Tokens MM, DD, YYYY")
    check_mark: str | None = Field(None, alias="checkMark")
    font_size: float | None = Field(None, alias="fontSize", gt=0)
    font_name: str | None = Field(None, alias="fontName")
    export_value: str | None = Field(
        None, alias="exportValue", description="Option selected on a native radio/choice field"
    )
    suppress_zero: bool | None = Field(None, alias="suppressZero")

    def as_options(self) -> dict[str, Any]:
        """The options keyed by their JSON names, unset entries dropped."""
        return self.model_dump(by_alias=True, exclude_none=True)

    @property
    def alignment(self) -> Alignment:
        try:
            return Alignment((self.align or "left").lower())
        except ValueError:
            return Alignment.LEFT


class PageSize(BaseModel):
    width: float
    height: float
    unit: str = "pt"


class FormMetadata(BaseModel):
    """Descriptive form metadata. Not consumed by rendering."""
    model_config = ConfigDict(populate_by_name=True)

    id: str | None = None
    name: str | None = None
    tax_year: int | None = Field(None, alias="taxYear")
    page_count: int | None = Field(None, alias="pageCount", ge=1)
    page_size: PageSize | None = Field(None, alias="pageSize")


# ---------------------------------------------------------------------------
# Field definition and annotation
# ---------------------------------------------------------------------------

class FieldDefinition(BaseModel):
    """One annotated field."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    type: str = Field(FieldType.TEXT.value, description="One of FieldType, or any string")
    page: int = Field(1, description="1-based page number")
    position: Position | None = None
    binding: Binding = Field(default_factory=Binding)
    format: FieldFormat = Field(default_factory=FieldFormat)
    native_field_id: str | None = Field(None, alias="nativeFieldId")

    @field_validator("type", mode="before")
    @classmethod
    def coerce_type(cls, v: Any) -> Any:
        if isinstance(v, FieldType):
            return v.value
        return v.lower() if isinstance(v, str) else v

    @property
    def field_type(self) -> FieldType | None:
        """The known type, or None for free-form types."""
        try:
            return FieldType(self.type)
        except ValueError:
            return None

    @property
    def is_toggle(self) -> bool:
        """Checkbox and radio fields carry a boolean state instead of text."""
        return self.type in (FieldType.CHECKBOX, FieldType.RADIO)


class Annotation(BaseModel):
    """A form annotation: metadata plus the ordered field list."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    form: FormMetadata = Field(default_factory=FormMetadata)
    fields: list[FieldDefinition] = Field(default_factory=list)

    def has_native_fields(self) -> bool:
        """True if at least one field declares a native field identifier."""
        return any(f.native_field_id for f in self.fields)

    def field(self, field_id: str) -> FieldDefinition | None:
        return next((f for f in self.fields if f.id == field_id), None)

    @classmethod
    def from_dict(cls, data: Any) -> "Annotation":
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise AnnotationError(f"Invalid annotation: {exc}") from exc

    @classmethod
    def from_json(cls, text: str | bytes) -> "Annotation":
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as exc:
            raise AnnotationError(f"Annotation is not valid JSON: {exc}") from exc
        return cls.from_dict(raw)

    @classmethod
    def load(cls, path: str | Path) -> "Annotation":
        """Read and validate an annotation JSON file."""
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            raise AnnotationError(f"Cannot read annotation {path}: {exc}") from exc
        return cls.from_json(text)

    def __repr__(self) -> str:
        return f"Annotation(form={self.form.id!r}, fields={len(self.fields)})"
