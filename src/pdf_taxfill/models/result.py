"""
Render options and results
===========================
Configuration for one render call and the structured outcome it returns.

Per-field problems never raise; they are collected as :class:`RenderIssue`
diagnostics on the :class:`RenderResult` so the caller decides whether a
partial fill is acceptable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from reportlab.pdfbase import pdfmetrics


class Severity(str, Enum):
    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"


class RenderOptions(BaseModel):
    """Options recognised by the render engine."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    prefer_native_fields: bool | None = Field(
        None,
        alias="preferNativeFields",
        description="Fill native form fields first. None: only when the annotation declares any.",
    )
    suppress_zero: bool = Field(
        False, alias="suppressZero", description="Omit currency/number amounts equal to zero"
    )
    font_name: str = Field("Helvetica", alias="fontName", description="Standard PDF font for overlays")
    font_size: float = Field(10.0, alias="fontSize", gt=0)
    text_inset: float = Field(2.0, alias="textInset", ge=0, description="Horizontal inset in points")
    check_mark: str = Field("X", alias="checkMark")
    need_appearances: bool = Field(
        True,
        alias="needAppearances",
        description="Ask viewers to regenerate appearances of filled native fields",
    )

    @field_validator("font_name")
    @classmethod
    def check_font(cls, v: str) -> str:
        if v not in pdfmetrics.standardFonts:
            raise ValueError(f"{v!r} is not one of the standard PDF fonts")
        return v


@dataclass
class RenderIssue:
    """A per-field diagnostic."""
    code: str
    severity: Severity
    message: str
    field_id: str | None = None

    def __str__(self) -> str:
        where = f" [{self.field_id}]" if self.field_id else ""
        return f"{self.severity.value} {self.code}{where}: {self.message}"


@dataclass
class RenderResult:
    """Outcome of one render invocation."""
    filled_count: int = 0
    fallback_count: int = 0
    error_count: int = 0
    skipped_count: int = 0
    issues: list[RenderIssue] = field(default_factory=list)
    output: bytes | None = field(default=None, repr=False)

    @property
    def errors(self) -> list[RenderIssue]:
        return [i for i in self.issues if i.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[RenderIssue]:
        return [i for i in self.issues if i.severity == Severity.WARNING]

    def add_error(self, code: str, message: str, field_id: str | None = None) -> None:
        self.error_count += 1
        self.issues.append(RenderIssue(code, Severity.ERROR, message, field_id))

    def add_warning(self, code: str, message: str, field_id: str | None = None) -> None:
        self.issues.append(RenderIssue(code, Severity.WARNING, message, field_id))

    def as_dict(self) -> dict[str, int]:
        return {
            "filledCount": self.filled_count,
            "fallbackCount": self.fallback_count,
            "errorCount": self.error_count,
        }

    def __str__(self) -> str:
        return (
            f"{self.filled_count} filled, {self.fallback_count} fallback, "
            f"{self.error_count} error(s), {self.skipped_count} skipped"
        )
