"""
Examples for pdf-taxfill
=========================
Three complete examples of annotation-driven form filling.

Run:
    python examples/examples.py
"""

from __future__ import annotations

import io
import sys
import tempfile
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from reportlab.pdfgen import canvas

from pdf_taxfill import (
    AnnotationBuilder,
    AnnotationValidator,
    FieldBuilder,
    FormDocument,
    RenderOptions,
    render,
)


TAXPAYER = {
    "taxpayer": {"firstName": "Jordan", "lastName": "Rivera", "ssn": "123456789"},
    "filingStatus": "MFJ",
    "income": {
        "w2": [
            {"employer": "Acme Corp", "wages": 52000},
            {"employer": "Globex", "wages": "5890.50"},
        ],
        "interest": 0,
    },
    "digitalAssets": {"hasActivity": True},
}


def _blank_form(with_fields: bool = False) -> bytes:
    """A one-page US-letter PDF, optionally with AcroForm fields."""
    buffer = io.BytesIO()
    c = canvas.Canvas(buffer, pagesize=(612, 792), invariant=1)
    c.setFont("Helvetica-Bold", 14)
    c.drawString(36, 750, "Form 1040 (sample)")
    c.setFont("Helvetica", 9)
    c.drawString(36, 702, "First name and last name")
    c.drawString(36, 682, "Your social security number")
    c.drawString(36, 432, "1a  Total amount from Form(s) W-2")
    c.drawString(36, 412, "2b  Taxable interest")
    c.drawString(36, 602, "Digital assets: at any time during 2024, did you receive...?")
    if with_fields:
        form = c.acroForm
        form.textfield(name="f1_01", x=200, y=698, width=200, height=14, borderWidth=0)
        form.textfield(name="f1_02", x=200, y=678, width=100, height=14, maxlen=9, borderWidth=0)
        form.checkbox(name="c1_5", x=540, y=598, size=10, buttonStyle="cross")
    c.showPage()
    c.save()
    return buffer.getvalue()


def _annotation(native: bool):
    builder = AnnotationBuilder("f1040-sample", name="Form 1040 (sample)", tax_year=2024).pages(1, 612, 792)

    name = FieldBuilder.text("full_name").on_page(1, rect=(200, 698, 200, 14)).bind("taxpayer.firstName")
    ssn = FieldBuilder.ssn("ssn").on_page(1, rect=(200, 678, 100, 14)).bind("taxpayer.ssn")
    digital = (
        FieldBuilder.checkbox("digital_assets_yes")
        .on_page(1, rect=(540, 598, 10, 10))
        .bind("digitalAssets.hasActivity")
        .when("digitalAssets.hasActivity === true")
    )
    if native:
        name.native("f1_01")
        ssn.native("f1_02")
        digital.native("c1_5")

    return (
        builder
        .add(name)
        .add(ssn)
        .add(digital)
        .add(
            FieldBuilder.currency("wages")
            .on_page(1, rect=(504, 430, 72, 12))
            .bind("income.w2[*].wages", transform="sum")
            .align("right")
        )
        .add(
            FieldBuilder.currency("interest")
            .on_page(1, rect=(504, 410, 72, 12))
            .bind("income.interest", fallback=0)
            .align("right")
        )
        .build()
    )


# ---------------------------------------------------------------------------
# Example 1: Coordinate overlay
# ---------------------------------------------------------------------------


def example_coordinate_overlay() -> None:
    """
    Example 1: Filling a flat PDF by coordinates.

    The form has no interactive fields, so every value is drawn as text at
    the position the annotation declares.
    """
    print("\n" + "="*60)
    print("EXAMPLE 1: Coordinate overlay")
    print("="*60)

    annotation = _annotation(native=False)
    result = render(_blank_form(), annotation, TAXPAYER, RenderOptions(suppress_zero=True))

    print(f"  Annotation: {annotation!r}")
    print(f"  Result:     {result}")
    for issue in result.issues:
        print(f"    {issue}")

    with tempfile.NamedTemporaryFile(suffix=".pdf", delete=False) as f:
        f.write(result.output)
    print(f"  Written to: {f.name}")
    Path(f.name).unlink(missing_ok=True)
    print("  ✓ Example 1 complete")


# ---------------------------------------------------------------------------
# Example 2: Native AcroForm fields with coordinate fallback
# ---------------------------------------------------------------------------


def example_native_fields() -> None:
    """
    Example 2: Filling a fillable PDF.

    Fields with a nativeFieldId are written into the form's own fields; the
    amount lines have none and fall back to coordinate placement.
    """
    print("\n" + "="*60)
    print("EXAMPLE 2: Native fields + fallback")
    print("="*60)

    pdf_bytes = _blank_form(with_fields=True)
    with FormDocument.load(pdf_bytes) as doc:
        for field in doc.native_fields():
            print(f"  Native field: {field.name:<8} {field.kind.value:<9} maxLen={field.max_length}")

    result = render(pdf_bytes, _annotation(native=True), TAXPAYER)
    print(f"  Result: {result}")
    print(f"  Counts: {result.as_dict()}")

    with FormDocument.load(result.output) as doc:
        ssn = doc.native_field("f1_02")
        print(f"  SSN field value: {ssn.obj.get('/V')}")
    print("  ✓ Example 2 complete")


# ---------------------------------------------------------------------------
# Example 3: Annotation validation
# ---------------------------------------------------------------------------


def example_validation() -> None:
    """
    Example 3: Linting an annotation before rendering.

    Duplicate ids and unplaceable fields are errors; unsupported conditions
    and unknown transforms are warnings.
    """
    print("\n" + "="*60)
    print("EXAMPLE 3: Annotation validation")
    print("="*60)

    annotation = (
        AnnotationBuilder("f1040-draft")
        .pages(2)
        .add(FieldBuilder.text("name").on_page(1, rect=(36, 700, 200, 14)).bind("taxpayer.firstName"))
        .add(FieldBuilder.text("name").on_page(1, rect=(36, 680, 200, 14)).bind("taxpayer.lastName"))
        .add(FieldBuilder.currency("refund").on_page(3).bind("refund", transform="round"))
        .add(
            FieldBuilder.checkbox("joint")
            .on_page(1, rect=(300, 600, 8, 8))
            .when("filingStatus === MFJ || filingStatus === QSS")
        )
        .build()
    )

    result = AnnotationValidator().validate(annotation)
    print(f"  {result}")
    for issue in result.issues:
        print(f"    [{issue.severity.value}] {issue.rule_id} {issue.field}: {issue.message}")
    print("  ✓ Example 3 complete")


# ---------------------------------------------------------------------------
# Run all examples
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    example_coordinate_overlay()
    example_native_fields()
    example_validation()

    print("\n" + "="*60)
    print("All examples completed successfully.")
    print("="*60 + "\n")
