"""
Render Engine
==============
Binds an annotation to a data document and writes the values into a PDF.

Per field, in annotation order::

    condition -> resolve path (or fallback) -> transform -> format -> place

Placement is native (AcroForm fields) when the render prefers native fields
and the annotation declares any ``nativeFieldId``; fields without one are
then placed by coordinates in a second pass. Otherwise every field is
placed by coordinates. No field is placed twice.

Per-field failures are counted and reported as diagnostics on the
:class:`RenderResult`; only a document that cannot be opened aborts.

Example::

    from pdf_taxfill import Annotation, render

    annotation = Annotation.load("annotations/f1040.json")
    result = render(pdf_bytes, annotation, {"income": {"total": 57890.5}})
    print(result)                      # 1 filled, 0 fallback, 0 error(s), 0 skipped
    Path("filled.pdf").write_bytes(result.output)
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from ..binding.formatting import format_value
from ..binding.paths import JsonValue, resolve
from ..binding.transforms import apply_transform
from ..exceptions import DataLoadError, DocumentLoadError, NativeFieldError, PlacementError
from ..models.annotation import Annotation, FieldDefinition
from ..models.result import RenderOptions, RenderResult
from ..pdf.document import FormDocument
from ..pdf.fields import CODE_NOT_FOUND, place_native
from ..pdf.overlay import CoordinatePlacer

logger = logging.getLogger(__name__)

CODE_UNSUPPORTED_CONDITION = "RF-006"


class FormRenderer:
    """
    Renders one annotation into open :class:`FormDocument` instances.

    The renderer holds no per-render state; each :meth:`render` call returns
    a fresh :class:`RenderResult`. Concurrent renders must use separate
    documents.
    """

    def __init__(self, annotation: Annotation, options: RenderOptions | None = None) -> None:
        self.annotation = annotation
        self.options = options or RenderOptions()

    @property
    def uses_native_fields(self) -> bool:
        """Whether renders run in native mode."""
        prefer = self.options.prefer_native_fields
        if prefer is False:
            return False
        return self.annotation.has_native_fields()

    def render(self, document: FormDocument, data: JsonValue) -> RenderResult:
        """Fill ``document`` in place from ``data``."""
        result = RenderResult()
        placer = CoordinatePlacer(document, self.options)

        if self.uses_native_fields:
            logger.info("Filling native form fields")
            deferred: list[FieldDefinition] = []
            for definition in self.annotation.fields:
                if not definition.native_field_id:
                    if self._is_active(definition, data, result):
                        result.fallback_count += 1
                        deferred.append(definition)
                    else:
                        result.skipped_count += 1
                    continue
                self._render_field(definition, data, result, document, placer, native=True)

            if deferred:
                logger.info("Falling back to coordinates for %d field(s)", len(deferred))
                for definition in deferred:
                    self._render_field(
                        definition, data, result, document, placer, native=False, checked=True
                    )
            if self.options.need_appearances:
                document.set_need_appearances()
        else:
            logger.info("Using coordinate-based rendering")
            for definition in self.annotation.fields:
                self._render_field(definition, data, result, document, placer, native=False)

        placer.apply()
        logger.info("Render complete: %s", result)
        return result

    # ------------------------------------------------------------------
    # Per-field pipeline
    # ------------------------------------------------------------------

    def _render_field(
        self,
        definition: FieldDefinition,
        data: JsonValue,
        result: RenderResult,
        document: FormDocument,
        placer: CoordinatePlacer,
        *,
        native: bool,
        checked: bool = False,
    ) -> None:
        if not checked and not self._is_active(definition, data, result):
            result.skipped_count += 1
            return

        value = self.field_value(definition, data)
        if value == "" or value is False:
            logger.debug("Field %s: nothing to place", definition.id)
            result.skipped_count += 1
            return

        try:
            if native:
                target = document.native_field(definition.native_field_id)
                if target is None:
                    raise NativeFieldError(
                        f"Native field '{definition.native_field_id}' not found",
                        code=CODE_NOT_FOUND,
                    )
                place_native(target, definition, value)
            else:
                placer.place(definition, value)
        except (NativeFieldError, PlacementError) as exc:
            logger.warning("Could not fill field %s: %s", definition.id, exc)
            result.add_error(exc.code, str(exc), definition.id)
            return

        logger.debug("Field %s: placed %r (%s)", definition.id, value, "native" if native else "coordinates")
        result.filled_count += 1

    def field_value(self, definition: FieldDefinition, data: JsonValue) -> str | bool:
        """Resolve, transform and format the value of ``definition``."""
        binding = definition.binding
        value = resolve(data, binding.compiled_path, binding.fallback)
        value = apply_transform(value, binding.transform)
        return format_value(
            value,
            definition.type,
            definition.format.as_options(),
            suppress_zero=self.options.suppress_zero,
        )

    def _is_active(self, definition: FieldDefinition, data: JsonValue, result: RenderResult) -> bool:
        condition = definition.binding.compiled_condition
        if condition is None:
            return True
        if condition.unsupported:
            result.add_warning(
                CODE_UNSUPPORTED_CONDITION,
                f"Condition {condition.source!r} treated as always true: {condition.unsupported}",
                definition.id,
            )
        return condition.evaluate(data)


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def render(
    document: bytes,
    annotation: Annotation,
    data: JsonValue,
    options: RenderOptions | None = None,
) -> RenderResult:
    """
    Fill the PDF in ``document`` and return the result with ``output`` set.

    Raises :class:`DocumentLoadError` when the PDF cannot be opened.
    """
    with FormDocument.load(document) as doc:
        result = FormRenderer(annotation, options).render(doc, data)
        result.output = doc.to_bytes()
    return result


def load_data(path: str | Path) -> Any:
    """Read a JSON data document."""
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise DataLoadError(f"Cannot load data from {path}: {exc}") from exc


def render_file(
    pdf_path: str | Path,
    annotation_path: str | Path,
    data_path: str | Path,
    output_path: str | Path,
    options: RenderOptions | None = None,
) -> RenderResult:
    """Render from files on disk and write the filled PDF to ``output_path``."""
    logger.info("Loading PDF: %s", pdf_path)
    try:
        pdf_bytes = Path(pdf_path).read_bytes()
    except OSError as exc:
        raise DocumentLoadError(f"Cannot read {pdf_path}: {exc}") from exc
    annotation = Annotation.load(annotation_path)
    data = load_data(data_path)

    result = render(pdf_bytes, annotation, data, options)
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(result.output or b"")
    logger.info("PDF generated: %s", output)
    return result
