"""
pdf-taxfill CLI
================
Command-line interface for the pdf-taxfill library.

Commands:
    render      Fill a PDF from an annotation and a data document
    validate    Lint an annotation (optionally against a target PDF)
    fields      List the native form fields of a PDF
    version     Show version information

Usage::

    pdf-taxfill render forms/f1040.pdf annotations/1040.json data/taxpayer.json -o filled.pdf
    pdf-taxfill validate annotations/1040.json --pdf forms/f1040.pdf
    pdf-taxfill fields forms/f1040.pdf --format json
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .. import __version__
from ..exceptions import TaxFillError

console = Console()

STANDARD_FONTS = (
    "Helvetica", "Helvetica-Bold", "Helvetica-Oblique", "Helvetica-BoldOblique",
    "Times-Roman", "Times-Bold", "Times-Italic", "Times-BoldItalic",
    "Courier", "Courier-Bold", "Courier-Oblique", "Courier-BoldOblique",
)


@click.group()
@click.version_option(version=__version__, prog_name="pdf-taxfill")
@click.option("-v", "--verbose", is_flag=True, help="Log every field (DEBUG)")
def cli(verbose: bool) -> None:
    """
    pdf-taxfill – annotation-driven tax form filling.

    Binds a JSON annotation (field positions, types, data paths) to a JSON
    data document and writes the values into a PDF.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


# ---------------------------------------------------------------------------
# render
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("pdf_path", type=click.Path(exists=True, path_type=Path))
@click.argument("annotation_path", type=click.Path(exists=True, path_type=Path))
@click.argument("data_path", type=click.Path(exists=True, path_type=Path))
@click.option("--output", "-o", type=click.Path(path_type=Path), default=Path("filled.pdf"),
              show_default=True, help="Output PDF path")
@click.option("--native/--coordinates", "prefer_native", default=None,
              help="Force native field filling or coordinate overlay (default: auto)")
@click.option("--suppress-zero", is_flag=True, help="Leave zero amounts blank")
@click.option("--font", "font_name", type=click.Choice(STANDARD_FONTS), default="Helvetica",
              show_default=True)
@click.option("--font-size", type=float, default=10.0, show_default=True)
@click.option("--json-output", is_flag=True, help="Output results as JSON")
def render(
    pdf_path: Path,
    annotation_path: Path,
    data_path: Path,
    output: Path,
    prefer_native: bool | None,
    suppress_zero: bool,
    font_name: str,
    font_size: float,
    json_output: bool,
) -> None:
    """Fill PDF_PATH using ANNOTATION_PATH and DATA_PATH."""
    from ..models.result import RenderOptions
    from ..render.engine import render_file

    options = RenderOptions(
        prefer_native_fields=prefer_native,
        suppress_zero=suppress_zero,
        font_name=font_name,
        font_size=font_size,
    )

    try:
        result = render_file(pdf_path, annotation_path, data_path, output, options)
    except TaxFillError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    if json_output:
        payload = {
            "output": str(output),
            **result.as_dict(),
            "issues": [
                {"code": i.code, "severity": i.severity.value, "field": i.field_id, "msg": i.message}
                for i in result.issues
            ],
        }
        click.echo(json.dumps(payload, indent=2))
        return

    console.print()
    console.print(Panel(
        f"[bold]{output}[/bold]\n"
        f"Filled: [cyan]{result.filled_count}[/cyan]  |  "
        f"Fallback: [cyan]{result.fallback_count}[/cyan]  |  "
        f"Errors: [{'red' if result.error_count else 'cyan'}]{result.error_count}[/]",
        title="pdf-taxfill Render",
        border_style="blue",
    ))
    if result.issues:
        t = Table(box=box.SIMPLE, title="Field Issues")
        t.add_column("Code", style="dim")
        t.add_column("Severity")
        t.add_column("Field")
        t.add_column("Message")
        for issue in result.issues:
            color = "red" if issue.severity.value == "ERROR" else "yellow"
            t.add_row(issue.code, f"[{color}]{issue.severity.value}[/{color}]",
                      issue.field_id or "—", issue.message)
        console.print(t)
    console.print()


# ---------------------------------------------------------------------------
# validate
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("annotation_path", type=click.Path(exists=True, path_type=Path))
@click.option("--pdf", "pdf_path", type=click.Path(exists=True, path_type=Path), default=None,
              help="Target PDF, used to check page numbers and native field ids")
@click.option("--strict", is_flag=True, help="Exit with code 1 if any warnings")
def validate(annotation_path: Path, pdf_path: Path | None, strict: bool) -> None:
    """Validate an annotation file."""
    from ..models.annotation import Annotation
    from ..pdf.document import FormDocument
    from ..validator.annotation import AnnotationValidator

    try:
        annotation = Annotation.load(annotation_path)
    except TaxFillError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    page_count = None
    missing_native: list[str] = []
    if pdf_path:
        try:
            with FormDocument.open(pdf_path) as doc:
                page_count = doc.page_count
                missing_native = [
                    f.id for f in annotation.fields
                    if f.native_field_id and doc.native_field(f.native_field_id) is None
                ]
        except TaxFillError as e:
            console.print(f"[red]{e}[/red]")
            sys.exit(1)

    result = AnnotationValidator().validate(annotation, page_count=page_count)

    status_str = "[bold green]PASS[/bold green]" if result.passed else "[bold red]FAIL[/bold red]"
    console.print(Panel(
        f"[bold]{annotation_path.name}[/bold]\n"
        f"Status: {status_str}  |  Fields: {result.field_count}",
        title="Annotation Validation",
        border_style="blue",
    ))
    for issue in result.issues:
        color = "red" if issue.severity.value == "ERROR" else "yellow" if issue.severity.value == "WARNING" else "blue"
        console.print(f"  [{color}]{issue.severity.value}[/{color}] [{issue.rule_id}] "
                      f"{issue.field or ''}: {issue.message}")
    for fid in missing_native:
        console.print(f"  [yellow]WARNING[/yellow] {fid}: nativeFieldId not found in {pdf_path.name}")

    exit_code = 0
    if not result.passed:
        exit_code = 1
    elif strict and (result.warnings or missing_native):
        exit_code = 1
    sys.exit(exit_code)


# ---------------------------------------------------------------------------
# fields
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("pdf_path", type=click.Path(exists=True, path_type=Path))
@click.option("--format", "output_format", type=click.Choice(["rich", "json"]), default="rich")
def fields(pdf_path: Path, output_format: str) -> None:
    """List the native form fields of a PDF, for annotation authors."""
    from ..pdf.document import FormDocument

    try:
        with FormDocument.open(pdf_path) as doc:
            page_count = doc.page_count
            native = [
                {
                    "name": f.name,
                    "kind": f.kind.value,
                    "states": f.states,
                    "options": f.options,
                    "maxLength": f.max_length,
                }
                for f in doc.native_fields()
            ]
    except TaxFillError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    if output_format == "json":
        click.echo(json.dumps({"file": str(pdf_path), "pages": page_count, "fields": native}, indent=2))
        return

    t = Table(title=f"{pdf_path.name} – {len(native)} field(s), {page_count} page(s)", box=box.ROUNDED)
    t.add_column("Name")
    t.add_column("Kind")
    t.add_column("States / Options")
    t.add_column("MaxLen")
    for f in native:
        t.add_row(
            f["name"],
            f"[cyan]{f['kind']}[/cyan]",
            ", ".join(f["states"] or f["options"]) or "—",
            str(f["maxLength"]) if f["maxLength"] is not None else "—",
        )
    console.print(t)


# ---------------------------------------------------------------------------
# version info
# ---------------------------------------------------------------------------


@cli.command("version")
def show_version() -> None:
    """Show detailed version information."""
    console.print(Panel(
        f"[bold cyan]pdf-taxfill[/bold cyan] v{__version__}\n\n"
        "Annotation-driven filling of fixed-layout tax form PDFs\n"
        "Native AcroForm filling with coordinate overlay fallback\n\n"
        "License:  Apache 2.0",
        title="pdf-taxfill",
        border_style="cyan",
    ))
