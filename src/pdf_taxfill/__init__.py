"""
pdf-taxfill – Annotation-driven tax form filling
=================================================
Fills fixed-layout government tax forms by binding a JSON annotation (field
positions, types, data paths) to an arbitrary nested data document, then
writing the values into the PDF's native form fields or as overlaid text at
fixed coordinates.

Quick Start::

    from pathlib import Path
    from pdf_taxfill import Annotation, RenderOptions, render

    annotation = Annotation.load("annotations/f1040.json")
    data = {"taxpayer": {"ssn": "123456789"}, "income": {"total": 57890.5}}

    result = render(Path("forms/f1040.pdf").read_bytes(), annotation, data,
                    RenderOptions(suppress_zero=True))
    print(result.filled_count, result.fallback_count, result.error_count)
    Path("filled.pdf").write_bytes(result.output)
"""

__version__ = "0.1.0"

# Core models
from .models.annotation import (
    Alignment,
    Annotation,
    Binding,
    FieldDefinition,
    FieldFormat,
    FieldType,
    FormMetadata,
    Position,
    Unit,
)
from .models.result import (
    RenderIssue,
    RenderOptions,
    RenderResult,
    Severity,
)

# Value pipeline
from .binding.paths import FieldPath, PathSyntaxError, parse_path, resolve
from .binding.transforms import Transform, apply_transform
from .binding.formatting import format_value
from .binding.conditions import Condition, evaluate_condition, parse_condition

# PDF
from .pdf.document import FormDocument, NativeField, NativeFieldKind

# Rendering
from .render.engine import FormRenderer, load_data, render, render_file

# Builders
from .builder.annotation_builder import AnnotationBuilder, FieldBuilder

# Validator
from .validator.annotation import (
    AnnotationValidator,
    ValidationIssue,
    ValidationResult,
)

# Errors
from .exceptions import (
    AnnotationError,
    DataLoadError,
    DocumentLoadError,
    NativeFieldError,
    PlacementError,
    TaxFillError,
)

__all__ = [
    # Models
    "Alignment",
    "Annotation",
    "Binding",
    "FieldDefinition",
    "FieldFormat",
    "FieldType",
    "FormMetadata",
    "Position",
    "Unit",
    "RenderIssue",
    "RenderOptions",
    "RenderResult",
    "Severity",
    # Value pipeline
    "FieldPath",
    "PathSyntaxError",
    "parse_path",
    "resolve",
    "Transform",
    "apply_transform",
    "format_value",
    "Condition",
    "evaluate_condition",
    "parse_condition",
    # PDF
    "FormDocument",
    "NativeField",
    "NativeFieldKind",
    # Rendering
    "FormRenderer",
    "load_data",
    "render",
    "render_file",
    # Builders
    "AnnotationBuilder",
    "FieldBuilder",
    # Validation
    "AnnotationValidator",
    "ValidationIssue",
    "ValidationResult",
    # Errors
    "AnnotationError",
    "DataLoadError",
    "DocumentLoadError",
    "NativeFieldError",
    "PlacementError",
    "TaxFillError",
]
