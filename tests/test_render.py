"""
Render engine tests: coordinate overlays, native AcroForm filling, mixed
mode, diagnostics and the CLI.
"""

from __future__ import annotations

import io
import json

import pikepdf
import pytest
from click.testing import CliRunner
from pydantic import ValidationError
from reportlab.pdfbase.pdfmetrics import stringWidth

from conftest import overlay_text_ops
from pdf_taxfill import (
    Annotation,
    DataLoadError,
    DocumentLoadError,
    FormDocument,
    FormRenderer,
    NativeFieldKind,
    RenderOptions,
    Severity,
    load_data,
    render,
    render_file,
)
from pdf_taxfill.cli.main import cli
from pdf_taxfill.pdf.overlay import CoordinatePlacer


def make_annotation(*fields: dict) -> Annotation:
    return Annotation.from_dict({"form": {"id": "test", "pageCount": 2}, "fields": list(fields)})


def reopen(result) -> pikepdf.Pdf:
    return pikepdf.open(io.BytesIO(result.output))


def native_value(result, name: str):
    with FormDocument.load(result.output) as doc:
        field = doc.native_field(name)
        return field.obj.get("/V"), [w.get("/AS") for w in field.widgets]


TOTAL_INCOME = {
    "id": "total_income", "type": "currency", "page": 1,
    "position": {"x": 504, "y": 430, "width": 72, "height": 12},
    "binding": {"path": "income.total"},
    "format": {"align": "right"},
}


# ===========================================================================
# Coordinate rendering
# ===========================================================================


class TestCoordinateRendering:

    def test_right_aligned_currency(self, blank_pdf: bytes) -> None:
        result = render(blank_pdf, make_annotation(TOTAL_INCOME), {"income": {"total": 57890.5}})

        assert result.as_dict() == {"filledCount": 1, "fallbackCount": 0, "errorCount": 0}
        ops = overlay_text_ops(reopen(result))
        assert len(ops) == 1
        text, x, y = ops[0]
        assert text == "57,890.50"
        expected_x = 504 + 72 - stringWidth("57,890.50", "Helvetica", 10) - 2
        assert x == pytest.approx(expected_x, abs=0.01)
        assert y == pytest.approx(431, abs=0.01)

    def test_left_and_center_alignment(self, blank_pdf: bytes) -> None:
        left = {"id": "name", "type": "text", "page": 1,
                "position": {"x": 36, "y": 700, "width": 200, "height": 14},
                "binding": {"path": "name"}}
        center = {**left, "id": "centered", "format": {"align": "center"}}
        result = render(blank_pdf, make_annotation(left, center), {"name": "Ada"})

        ops = overlay_text_ops(reopen(result))
        width = stringWidth("Ada", "Helvetica", 10)
        assert [op[0] for op in ops] == ["Ada", "Ada"]
        assert ops[0][1] == pytest.approx(38, abs=0.01)
        assert ops[1][1] == pytest.approx(36 + (200 - width) / 2, abs=0.01)
        assert ops[0][2] == pytest.approx(702, abs=0.01)

    def test_checkbox_draws_mark(self, blank_pdf: bytes) -> None:
        box = {"id": "digital_assets", "type": "checkbox", "page": 2,
               "position": {"x": 540, "y": 600, "width": 10, "height": 10},
               "binding": {"path": "digitalAssets.hasActivity"}}
        result = render(blank_pdf, make_annotation(box), {"digitalAssets": {"hasActivity": True}})

        assert result.filled_count == 1
        pdf = reopen(result)
        assert overlay_text_ops(pdf, 0) == []
        [(mark, x, y)] = overlay_text_ops(pdf, 1)
        assert mark == "X"
        assert x == pytest.approx(540 + (10 - stringWidth("X", "Helvetica", 10)) / 2, abs=0.01)
        assert y == pytest.approx(605 - 10 / 3, abs=0.01)

    def test_unchecked_and_empty_values_are_skipped(self, blank_pdf: bytes) -> None:
        box = {"id": "box", "type": "checkbox", "page": 1,
               "position": {"x": 1, "y": 1, "width": 8, "height": 8},
               "binding": {"path": "flag"}}
        amount = {**TOTAL_INCOME, "id": "zero", "binding": {"path": "amount"}}
        result = render(blank_pdf, make_annotation(box, amount), {"flag": False, "amount": 0},
                        RenderOptions(suppress_zero=True))

        assert result.filled_count == 0
        assert result.skipped_count == 2
        assert overlay_text_ops(reopen(result)) == []

    def test_font_options(self, blank_pdf: bytes) -> None:
        field = {**TOTAL_INCOME, "format": {"fontSize": 8, "fontName": "Courier"}}
        renderer = FormRenderer(make_annotation(field))
        with FormDocument.load(blank_pdf) as doc:
            placer = CoordinatePlacer(doc)
            op = placer.place(renderer.annotation.fields[0], "100.00")
        assert op.font_name == "Courier"
        assert op.font_size == 8
        assert op.x == pytest.approx(506)

    def test_unknown_font_falls_back(self, blank_pdf: bytes) -> None:
        field = {**TOTAL_INCOME, "format": {"fontName": "Comic Sans"}}
        result = render(blank_pdf, make_annotation(field), {"income": {"total": 1}})
        assert result.filled_count == 1
        assert result.error_count == 0

    def test_page_not_found(self, blank_pdf: bytes) -> None:
        field = {**TOTAL_INCOME, "page": 3}
        result = render(blank_pdf, make_annotation(field, TOTAL_INCOME), {"income": {"total": 5}})

        assert result.error_count == 1
        assert result.filled_count == 1
        [error] = result.errors
        assert error.code == "RF-004"
        assert error.field_id == "total_income"

    def test_page_zero_does_not_block_other_fields(self, blank_pdf: bytes) -> None:
        field = {**TOTAL_INCOME, "id": "page_zero", "page": 0}
        result = render(blank_pdf, make_annotation(field, TOTAL_INCOME), {"income": {"total": 5}})

        assert result.filled_count == 1
        assert [(i.code, i.field_id) for i in result.errors] == [("RF-004", "page_zero")]
        assert [op[0] for op in overlay_text_ops(reopen(result))] == ["5.00"]

    def test_missing_path_uses_fallback(self, blank_pdf: bytes) -> None:
        text = {"id": "note", "type": "text", "page": 1,
                "position": {"x": 36, "y": 700, "width": 200, "height": 14},
                "binding": {"fallback": "N/A"}}
        box = {"id": "box", "type": "checkbox", "page": 1,
               "position": {"x": 1, "y": 1, "width": 8, "height": 8},
               "binding": {}}
        result = render(blank_pdf, make_annotation(text, box), {"ssn": "123456789", "name": "Ada"})

        assert result.filled_count == 1
        assert result.skipped_count == 1
        assert [op[0] for op in overlay_text_ops(reopen(result))] == ["N/A"]

    def test_non_standard_default_font_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RenderOptions(font_name="Arial")
        assert RenderOptions(font_name="Courier-Bold").font_name == "Courier-Bold"

    def test_missing_position(self, blank_pdf: bytes) -> None:
        field = {"id": "floating", "type": "text", "binding": {"path": "name"}}
        result = render(blank_pdf, make_annotation(field), {"name": "Ada"})
        assert [i.code for i in result.errors] == ["RF-005"]

    def test_render_is_repeatable(self, blank_pdf: bytes) -> None:
        annotation = make_annotation(TOTAL_INCOME)
        data = {"income": {"total": 1234.5}}
        first = overlay_text_ops(reopen(render(blank_pdf, annotation, data)))
        second = overlay_text_ops(reopen(render(blank_pdf, annotation, data)))
        assert first == second

    def test_data_document_not_modified(self, blank_pdf: bytes) -> None:
        data = {"income": {"total": 10, "w2": [{"wages": 1}]}}
        snapshot = json.dumps(data, sort_keys=True)
        render(blank_pdf, make_annotation(TOTAL_INCOME), data)
        assert json.dumps(data, sort_keys=True) == snapshot


# ===========================================================================
# Conditions and diagnostics
# ===========================================================================


class TestConditionsInRender:

    def test_inactive_field_skipped(self, blank_pdf: bytes) -> None:
        field = {**TOTAL_INCOME, "binding": {"path": "income.total",
                                             "condition": "digitalAssets.hasActivity === true"}}
        result = render(blank_pdf, make_annotation(field), {"income": {"total": 5}})

        assert result.filled_count == 0
        assert result.skipped_count == 1
        assert result.issues == []

    def test_compound_condition_warns_and_fills(self, blank_pdf: bytes) -> None:
        field = {**TOTAL_INCOME, "binding": {"path": "income.total",
                                             "condition": "a === 1 && b === 2"}}
        result = render(blank_pdf, make_annotation(field), {"income": {"total": 5}})

        assert result.filled_count == 1
        assert result.error_count == 0
        [warning] = result.warnings
        assert warning.code == "RF-006"
        assert warning.severity is Severity.WARNING

    def test_fallback_value_used(self, blank_pdf: bytes) -> None:
        field = {**TOTAL_INCOME, "binding": {"path": "income.missing", "fallback": 0},
                 "format": {"decimalPlaces": 0}}
        result = render(blank_pdf, make_annotation(field), {})
        assert [op[0] for op in overlay_text_ops(reopen(result))] == ["0"]


# ===========================================================================
# Native field rendering
# ===========================================================================


class TestNativeRendering:

    def test_text_field(self, form_pdf: bytes) -> None:
        field = {"id": "name", "type": "text", "nativeFieldId": "name",
                 "binding": {"path": "taxpayer.name", "transform": "uppercase"}}
        result = render(form_pdf, make_annotation(field), {"taxpayer": {"name": "Ada"}})

        assert result.filled_count == 1
        value, _ = native_value(result, "name")
        assert str(value) == "ADA"

    def test_need_appearances(self, form_pdf: bytes) -> None:
        field = {"id": "name", "nativeFieldId": "name", "binding": {"path": "n"}}
        result = render(form_pdf, make_annotation(field), {"n": "x"})
        assert reopen(result).Root.AcroForm.NeedAppearances is True

        result = render(form_pdf, make_annotation(field), {"n": "x"},
                        RenderOptions(need_appearances=False))
        assert "/NeedAppearances" not in reopen(result).Root.AcroForm

    def test_ssn_dashes_removed(self, form_pdf: bytes) -> None:
        field = {"id": "ssn", "type": "ssn", "nativeFieldId": "ssn", "binding": {"path": "ssn"}}
        result = render(form_pdf, make_annotation(field), {"ssn": 123456789})
        value, _ = native_value(result, "ssn")
        assert str(value) == "123456789"

    def test_ein_separators_removed_to_fit(self, form_pdf: bytes) -> None:
        field = {"id": "ein", "type": "ein", "nativeFieldId": "ein", "binding": {"path": "ein"}}
        result = render(form_pdf, make_annotation(field), {"ein": "12-3456789"})
        value, _ = native_value(result, "ein")
        assert str(value) == "123456789"

    def test_text_too_long_rejected(self, form_pdf: bytes) -> None:
        field = {"id": "ssn", "type": "text", "nativeFieldId": "ssn", "binding": {"path": "v"}}
        result = render(form_pdf, make_annotation(field), {"v": "ABCDEFGHIJ"})
        assert result.filled_count == 0
        assert [i.code for i in result.errors] == ["RF-003"]

    def test_nested_field_name(self, form_pdf: bytes) -> None:
        field = {"id": "line1", "type": "currency", "nativeFieldId": "topmostSubform.f1_01",
                 "binding": {"path": "wages"}}
        result = render(form_pdf, make_annotation(field), {"wages": 1500})
        value, _ = native_value(result, "topmostSubform.f1_01")
        assert str(value) == "1,500.00"

    def test_checkbox(self, form_pdf: bytes) -> None:
        field = {"id": "dependent", "type": "checkbox", "nativeFieldId": "dependent",
                 "binding": {"path": "hasDependents"}}
        result = render(form_pdf, make_annotation(field), {"hasDependents": True})

        value, states = native_value(result, "dependent")
        assert value == pikepdf.Name("/Yes")
        assert states == [pikepdf.Name("/Yes")]

    def test_radio_selects_export_value(self, form_pdf: bytes) -> None:
        field = {"id": "mfj", "type": "radio", "nativeFieldId": "filing",
                 "binding": {"path": "filingStatus", "condition": "filingStatus === MFJ"},
                 "format": {"exportValue": "MFJ"}}
        result = render(form_pdf, make_annotation(field), {"filingStatus": "MFJ"})

        assert result.filled_count == 1
        value, states = native_value(result, "filing")
        assert value == pikepdf.Name("/MFJ")
        assert states == [pikepdf.Name("/Off"), pikepdf.Name("/MFJ")]

    def test_radio_rejects_unknown_state(self, form_pdf: bytes) -> None:
        field = {"id": "hoh", "type": "radio", "nativeFieldId": "filing",
                 "binding": {"path": "hoh"}, "format": {"exportValue": "HOH"}}
        result = render(form_pdf, make_annotation(field), {"hoh": True})
        assert [i.code for i in result.errors] == ["RF-003"]

    def test_radio_without_export_value(self, form_pdf: bytes) -> None:
        field = {"id": "single", "type": "radio", "nativeFieldId": "filing", "binding": {"path": "s"}}
        result = render(form_pdf, make_annotation(field), {"s": True})
        assert [i.code for i in result.errors] == ["RF-003"]

    def test_choice_field(self, form_pdf: bytes) -> None:
        ok = {"id": "state", "type": "text", "nativeFieldId": "state", "binding": {"path": "state"}}
        bad = {**ok, "id": "state2", "binding": {"path": "other"}}
        result = render(form_pdf, make_annotation(ok, bad), {"state": "NY", "other": "TX"})

        assert result.filled_count == 1
        assert [(i.code, i.field_id) for i in result.errors] == [("RF-003", "state2")]
        value, _ = native_value(result, "state")
        assert str(value) == "NY"

    def test_kind_mismatch(self, form_pdf: bytes) -> None:
        amount = {"id": "amount", "type": "currency", "nativeFieldId": "dependent",
                  "binding": {"path": "amount"}}
        toggle = {"id": "toggle", "type": "checkbox", "nativeFieldId": "name",
                  "binding": {"path": "flag"}}
        result = render(form_pdf, make_annotation(amount, toggle), {"amount": 10, "flag": True})
        assert [i.code for i in result.errors] == ["RF-002", "RF-002"]

    def test_missing_native_field_does_not_stop_render(self, form_pdf: bytes) -> None:
        fields = [
            {"id": "name", "type": "text", "nativeFieldId": "name", "binding": {"path": "name"}},
            {"id": "ghost", "type": "checkbox", "nativeFieldId": "no_such_box",
             "binding": {"path": "flag"}},
            {"id": "dependent", "type": "checkbox", "nativeFieldId": "dependent",
             "binding": {"path": "flag"}},
        ]
        result = render(form_pdf, make_annotation(*fields), {"name": "Ada", "flag": True})

        assert result.error_count == 1
        assert result.filled_count == 2
        [error] = result.errors
        assert error.code == "RF-001"
        assert error.field_id == "ghost"


# ===========================================================================
# Mixed mode
# ===========================================================================


class TestMixedMode:

    NATIVE_NAME = {"id": "name", "type": "text", "nativeFieldId": "name",
                   "position": {"x": 100, "y": 700, "width": 200, "height": 16},
                   "binding": {"path": "name"}}

    def test_fields_without_native_id_fall_back(self, form_pdf: bytes) -> None:
        result = render(form_pdf, make_annotation(self.NATIVE_NAME, TOTAL_INCOME),
                        {"name": "Ada", "income": {"total": 57890.5}})

        assert result.as_dict() == {"filledCount": 2, "fallbackCount": 1, "errorCount": 0}
        assert [op[0] for op in overlay_text_ops(reopen(result))] == ["57,890.50"]
        value, _ = native_value(result, "name")
        assert str(value) == "Ada"

    def test_inactive_fallback_field_not_counted(self, form_pdf: bytes) -> None:
        inactive = {**TOTAL_INCOME, "binding": {"path": "income.total", "condition": "show === true"}}
        result = render(form_pdf, make_annotation(self.NATIVE_NAME, inactive),
                        {"name": "Ada", "income": {"total": 1}})
        assert result.fallback_count == 0
        assert result.skipped_count == 1

    def test_fallback_without_position(self, form_pdf: bytes) -> None:
        floating = {"id": "floating", "type": "text", "binding": {"path": "name"}}
        result = render(form_pdf, make_annotation(self.NATIVE_NAME, floating), {"name": "Ada"})
        assert result.fallback_count == 1
        assert [i.code for i in result.errors] == ["RF-005"]

    def test_prefer_native_false_uses_coordinates(self, form_pdf: bytes) -> None:
        result = render(form_pdf, make_annotation(self.NATIVE_NAME), {"name": "Ada"},
                        RenderOptions(prefer_native_fields=False))

        assert result.fallback_count == 0
        assert [op[0] for op in overlay_text_ops(reopen(result))] == ["Ada"]
        value, _ = native_value(result, "name")
        assert value is None

    def test_no_native_ids_uses_coordinates(self, form_pdf: bytes) -> None:
        renderer = FormRenderer(make_annotation(TOTAL_INCOME), RenderOptions(prefer_native_fields=True))
        assert not renderer.uses_native_fields


# ===========================================================================
# Document loading and native field discovery
# ===========================================================================


class TestFormDocument:

    def test_invalid_pdf(self) -> None:
        with pytest.raises(DocumentLoadError):
            render(b"not a pdf at all", make_annotation(TOTAL_INCOME), {})

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(DocumentLoadError):
            FormDocument.open(tmp_path / "missing.pdf")

    def test_pages(self, blank_pdf: bytes) -> None:
        with FormDocument.load(blank_pdf) as doc:
            assert doc.page_count == 2
            assert doc.page(2) is not None
            assert doc.page(0) is None
            assert doc.page(3) is None
            assert not doc.has_form()
            assert doc.native_fields() == []

    def test_native_fields(self, form_pdf: bytes) -> None:
        with FormDocument.load(form_pdf) as doc:
            kinds = {f.name: f.kind for f in doc.native_fields()}
            assert kinds == {
                "name": NativeFieldKind.TEXT,
                "ssn": NativeFieldKind.TEXT,
                "ein": NativeFieldKind.TEXT,
                "dependent": NativeFieldKind.CHECKBOX,
                "state": NativeFieldKind.CHOICE,
                "filing": NativeFieldKind.RADIO,
                "topmostSubform.f1_01": NativeFieldKind.TEXT,
            }
            assert doc.native_field("ssn").max_length == 9
            assert doc.native_field("filing").states == ["Single", "MFJ"]
            assert doc.native_field("state").options == ["CA", "NY"]
            assert doc.native_field("f1_01") is None


# ===========================================================================
# File entry points and CLI
# ===========================================================================


@pytest.fixture
def render_inputs(tmp_path, blank_pdf: bytes):
    pdf_path = tmp_path / "form.pdf"
    pdf_path.write_bytes(blank_pdf)
    annotation_path = tmp_path / "form.json"
    annotation_path.write_text(json.dumps({"form": {"id": "test"}, "fields": [TOTAL_INCOME]}))
    data_path = tmp_path / "data.json"
    data_path.write_text(json.dumps({"income": {"total": 57890.5}}))
    return pdf_path, annotation_path, data_path


class TestEntryPoints:

    def test_render_file(self, tmp_path, render_inputs) -> None:
        output = tmp_path / "out" / "filled.pdf"
        result = render_file(*render_inputs, output)
        assert result.filled_count == 1
        assert output.read_bytes() == result.output

    def test_load_data_errors(self, tmp_path) -> None:
        bad = tmp_path / "bad.json"
        bad.write_text("{oops")
        with pytest.raises(DataLoadError):
            load_data(bad)
        with pytest.raises(DataLoadError):
            load_data(tmp_path / "missing.json")


class TestCLI:

    def test_render_json(self, tmp_path, render_inputs) -> None:
        output = tmp_path / "filled.pdf"
        runner = CliRunner()
        result = runner.invoke(cli, ["render", *map(str, render_inputs), "-o", str(output), "--json-output"])

        assert result.exit_code == 0, result.output
        payload = json.loads(result.output)
        assert payload["filledCount"] == 1
        assert payload["errorCount"] == 0
        assert output.exists()

    def test_render_bad_pdf(self, tmp_path, render_inputs) -> None:
        pdf_path, annotation_path, data_path = render_inputs
        pdf_path.write_bytes(b"garbage")
        result = CliRunner().invoke(cli, ["render", str(pdf_path), str(annotation_path), str(data_path),
                                          "-o", str(tmp_path / "x.pdf")])
        assert result.exit_code == 1

    def test_validate(self, render_inputs) -> None:
        pdf_path, annotation_path, _ = render_inputs
        result = CliRunner().invoke(cli, ["validate", str(annotation_path), "--pdf", str(pdf_path)])
        assert result.exit_code == 0
        assert "PASS" in result.output

    def test_validate_fails_on_errors(self, tmp_path) -> None:
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"fields": [{"id": "a"}, {"id": "a"}]}))
        result = CliRunner().invoke(cli, ["validate", str(path)])
        assert result.exit_code == 1

    def test_fields_json(self, tmp_path, form_pdf: bytes) -> None:
        pdf_path = tmp_path / "form.pdf"
        pdf_path.write_bytes(form_pdf)
        result = CliRunner().invoke(cli, ["fields", str(pdf_path), "--format", "json"])

        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert payload["pages"] == 1
        by_name = {f["name"]: f for f in payload["fields"]}
        assert by_name["filing"]["kind"] == "radio"
        assert by_name["ssn"]["maxLength"] == 9
