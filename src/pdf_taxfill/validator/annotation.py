"""
Annotation Validator
=====================
Lints an annotation before it is used for rendering.

Rendering never fails on these findings; the validator reports what would
be skipped, counted as an error, or silently treated as always active.

Example::

    from pdf_taxfill.validator.annotation import AnnotationValidator

    result = AnnotationValidator().validate(annotation, page_count=2)
    if not result.passed:
        for issue in result.issues:
            print(f"[{issue.severity}] {issue.rule_id}: {issue.message}")
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ..binding.transforms import Transform
from ..models.annotation import Alignment, Annotation, FieldDefinition, FieldType
from ..models.result import Severity


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


@dataclass
class ValidationIssue:
    rule_id: str
    severity: Severity
    message: str
    field: str | None = None


@dataclass
class ValidationResult:
    """Result of an annotation validation run."""
    passed: bool
    field_count: int
    issues: list[ValidationIssue] = field(default_factory=list)
    rule_count: int = 0

    @property
    def errors(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == Severity.WARNING]

    def __str__(self) -> str:
        status = "PASS" if self.passed else "FAIL"
        return (
            f"[{status}] {self.field_count} field(s) "
            f"– {len(self.errors)} error(s), {len(self.warnings)} warning(s)"
        )


# ---------------------------------------------------------------------------
# Validator
# ---------------------------------------------------------------------------


class AnnotationValidator:
    """
    Validates an annotation.

    Rules implemented:
    - AN-001  Field ids must be unique
    - AN-002  Field type should be a known type
    - AN-003  Transform should be a known name
    - AN-004  Page must exist in the target document
    - AN-005  Fields without nativeFieldId need a position
    - AN-006  Position rectangle should have a positive size
    - AN-007  Condition should follow the supported grammar
    - AN-008  Native radio fields need an exportValue
    - AN-009  Alignment should be left, right or center
    """

    RULE_COUNT = 9

    def validate(self, annotation: Annotation, *, page_count: int | None = None) -> ValidationResult:
        """
        Parameters
        ----------
        annotation:
            The annotation to check.
        page_count:
            Page count of the target PDF. Falls back to ``form.pageCount``;
            only pages below 1 are flagged when neither is known.
        """
        issues: list[ValidationIssue] = []
        pages = page_count if page_count is not None else annotation.form.page_count
        seen: set[str] = set()

        for definition in annotation.fields:
            fid = definition.id
            if fid in seen:
                issues.append(ValidationIssue(
                    "AN-001", Severity.ERROR, f"Duplicate field id '{fid}'", fid,
                ))
            seen.add(fid)
            issues.extend(self._check_field(definition, pages))

        return ValidationResult(
            passed=not any(i.severity == Severity.ERROR for i in issues),
            field_count=len(annotation.fields),
            issues=issues,
            rule_count=self.RULE_COUNT,
        )

    def _check_field(self, definition: FieldDefinition, pages: int | None) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        fid = definition.id

        def add(rule_id: str, sev: Severity, msg: str) -> None:
            issues.append(ValidationIssue(rule_id, sev, msg, fid))

        if definition.field_type is None:
            add("AN-002", Severity.WARNING, f"Unknown type '{definition.type}' is rendered as plain text")

        transform = definition.binding.transform
        if transform and transform not in {t.value for t in Transform}:
            add("AN-003", Severity.WARNING, f"Unknown transform '{transform}' is ignored")

        if definition.page < 1:
            add("AN-004", Severity.ERROR, f"Page {definition.page} is not a 1-based page number")
        elif pages is not None and definition.page > pages:
            add("AN-004", Severity.ERROR, f"Page {definition.page} exceeds page count {pages}")

        position = definition.position
        if position is None:
            if not definition.native_field_id:
                add("AN-005", Severity.ERROR, "No position and no nativeFieldId: field cannot be placed")
        elif position.width <= 0 or position.height <= 0:
            add("AN-006", Severity.WARNING, "Position rectangle has no area")

        condition = definition.binding.compiled_condition
        if condition is not None and condition.always_true:
            reason = condition.unsupported or "no comparison operator found"
            add("AN-007", Severity.WARNING, f"Condition {condition.source!r} is always true: {reason}")

        if (
            definition.type == FieldType.RADIO
            and definition.native_field_id
            and not definition.format.export_value
        ):
            add("AN-008", Severity.WARNING, "Radio field with nativeFieldId should declare format.exportValue")

        align = definition.format.align
        if align and align.lower() not in {a.value for a in Alignment}:
            add("AN-009", Severity.WARNING, f"Unknown alignment '{align}', using left")

        return issues

    def validate_batch(self, annotations: list[Annotation]) -> list[ValidationResult]:
        """Validate several annotations."""
        return [self.validate(a) for a in annotations]
