"""
Annotation Builder
===================
Fluent builder API for constructing annotations in code.

Example::

    from pdf_taxfill.builder.annotation_builder import AnnotationBuilder, FieldBuilder

    annotation = (
        AnnotationBuilder("f1040", name="U.S. Individual Income Tax Return", tax_year=2024)
        .pages(2)
        .add(
            FieldBuilder.currency("total_income")
            .on_page(1, rect=(504, 430, 72, 12))
            .bind("income.total")
            .align("right")
        )
        .add(
            FieldBuilder.checkbox("digital_assets_yes")
            .on_page(1, rect=(540, 600, 8, 8))
            .bind("digitalAssets.hasActivity")
            .native("topmostSubform[0].Page1[0].c1_5[0]")
        )
        .build()
    )
"""

from __future__ import annotations

from typing import Any

from ..models.annotation import (
    Annotation,
    Binding,
    FieldDefinition,
    FieldFormat,
    FieldType,
    FormMetadata,
    Position,
)


class FieldBuilder:
    """
    Fluent builder for one FieldDefinition.

    Typically instantiated via the factory class methods (e.g. FieldBuilder.currency()).
    """

    def __init__(self, field_id: str, field_type: FieldType | str = FieldType.TEXT) -> None:
        self._id = field_id
        self._type = field_type.value if isinstance(field_type, FieldType) else field_type
        self._page = 1
        self._position: Position | None = None
        self._path = ""
        self._transform: str | None = None
        self._condition: str | None = None
        self._fallback: Any = None
        self._format: dict[str, Any] = {}
        self._native_field_id: str | None = None

    # ------------------------------------------------------------------
    # Factory methods
    # ------------------------------------------------------------------

    @classmethod
    def text(cls, field_id: str) -> "FieldBuilder":
        return cls(field_id, FieldType.TEXT)

    @classmethod
    def currency(cls, field_id: str) -> "FieldBuilder":
        """Dollar amount, 2 decimals, grouped by thousands."""
        return cls(field_id, FieldType.CURRENCY)

    @classmethod
    def number(cls, field_id: str) -> "FieldBuilder":
        return cls(field_id, FieldType.NUMBER)

    @classmethod
    def ssn(cls, field_id: str) -> "FieldBuilder":
        """Social Security number, rendered DDD-DD-DDDD."""
        return cls(field_id, FieldType.SSN)

    @classmethod
    def ein(cls, field_id: str) -> "FieldBuilder":
        """Employer Identification Number, rendered DD-DDDDDDD."""
        return cls(field_id, FieldType.EIN)

    @classmethod
    def date(cls, field_id: str, pattern: str | None = None) -> "FieldBuilder":
        b = cls(field_id, FieldType.DATE)
        if pattern:
            b._format["dateFormat"] = pattern
        return b

    @classmethod
    def checkbox(cls, field_id: str) -> "FieldBuilder":
        return cls(field_id, FieldType.CHECKBOX)

    @classmethod
    def radio(cls, field_id: str, export_value: str | None = None) -> "FieldBuilder":
        """One option of a radio group; export_value selects it on a native field."""
        b = cls(field_id, FieldType.RADIO)
        if export_value:
            b._format["exportValue"] = export_value
        return b

    # ------------------------------------------------------------------
    # Builder chain methods
    # ------------------------------------------------------------------

    def on_page(
        self,
        page: int,
        rect: tuple[float, float, float, float] | None = None,
        unit: str = "pt",
    ) -> "FieldBuilder":
        """
        Place the field on 1-based ``page``.
        rect is (x, y, width, height) from the bottom-left corner.
        """
        self._page = page
        if rect is not None:
            x, y, width, height = rect
            self._position = Position(x=x, y=y, width=width, height=height, unit=unit)
        return self

    def bind(
        self,
        path: str,
        *,
        transform: str | None = None,
        fallback: Any = None,
    ) -> "FieldBuilder":
        """Data path, optional transform and fallback value."""
        self._path = path
        self._transform = transform
        self._fallback = fallback
        return self

    def when(self, condition: str) -> "FieldBuilder":
        """Only fill when ``condition`` holds, e.g. ``"filingStatus === MFJ"``."""
        self._condition = condition
        return self

    def native(self, field_id: str) -> "FieldBuilder":
        """Fully qualified name of the PDF form field to fill."""
        self._native_field_id = field_id
        return self

    def align(self, alignment: str) -> "FieldBuilder":
        self._format["align"] = alignment
        return self

    def with_format(self, **options: Any) -> "FieldBuilder":
        """Extra format options, by their JSON names (``decimalPlaces=0``)."""
        self._format.update(options)
        return self

    # --- Build ---

    def build(self) -> FieldDefinition:
        return FieldDefinition(
            id=self._id,
            type=self._type,
            page=self._page,
            position=self._position,
            binding=Binding(
                path=self._path,
                transform=self._transform,
                condition=self._condition,
                fallback=self._fallback,
            ),
            format=FieldFormat.model_validate(self._format),
            native_field_id=self._native_field_id,
        )


class AnnotationBuilder:
    """Fluent builder for an Annotation."""

    def __init__(
        self,
        form_id: str | None = None,
        *,
        name: str | None = None,
        tax_year: int | None = None,
    ) -> None:
        self._form: dict[str, Any] = {"id": form_id, "name": name, "taxYear": tax_year}
        self._fields: list[FieldDefinition] = []

    def pages(self, count: int, width: float | None = None, height: float | None = None) -> "AnnotationBuilder":
        self._form["pageCount"] = count
        if width is not None and height is not None:
            self._form["pageSize"] = {"width": width, "height": height, "unit": "pt"}
        return self

    def add(self, field: FieldBuilder | FieldDefinition) -> "AnnotationBuilder":
        self._fields.append(field.build() if isinstance(field, FieldBuilder) else field)
        return self

    def build(self) -> Annotation:
        return Annotation(
            form=FormMetadata.model_validate(self._form),
            fields=list(self._fields),
        )
