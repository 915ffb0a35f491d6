"""
Exceptions
===========
Error types raised by pdf-taxfill.

Structural errors (:class:`DocumentLoadError`, :class:`AnnotationError`,
:class:`DataLoadError`) abort a render. Per-field errors
(:class:`NativeFieldError`, :class:`PlacementError`) are caught by the
render engine and reported as diagnostics.
"""

from __future__ import annotations


class TaxFillError(Exception):
    """Base exception for pdf-taxfill."""


class DocumentLoadError(TaxFillError):
    """The target PDF could not be opened."""


class AnnotationError(TaxFillError):
    """The annotation JSON is malformed or violates the wire contract."""


class DataLoadError(TaxFillError):
    """The data document could not be read or parsed."""


class NativeFieldError(TaxFillError):
    """A native form field rejected an operation."""

    def __init__(self, message: str, *, code: str = "RF-003") -> None:
        super().__init__(message)
        self.code = code


class PlacementError(TaxFillError):
    """A coordinate placement could not be carried out."""

    def __init__(self, message: str, *, code: str = "RF-004") -> None:
        super().__init__(message)
        self.code = code
