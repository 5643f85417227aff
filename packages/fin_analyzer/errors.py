"""Exception taxonomy for the ``fin_analyzer`` pipeline.

Failures are detected at a small number of boundaries (parsing, validation,
upload checks, the analysis call) and surfaced as structured exceptions so
callers can present field-level detail to end users. Classification and
cleaning are total functions and never raise.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import FieldError


class FinancialDataError(Exception):
    """Base class for all errors raised by ``fin_analyzer``."""


class ParseError(FinancialDataError):
    """Malformed textual input (JSON or CSV)."""


class NormalizationError(FinancialDataError):
    """Unexpected structural problem while assembling canonical data."""


class ValidationError(FinancialDataError):
    """Structural schema violation.

    Carries the full list of field-level errors rather than a single opaque
    message.
    """

    def __init__(self, errors: Sequence[FieldError]) -> None:
        self.errors: list[FieldError] = list(errors)
        fields = ", ".join(e.field for e in self.errors[:5])
        more = "" if len(self.errors) <= 5 else f" (+{len(self.errors) - 5} more)"
        super().__init__(f"Data validation failed: {fields}{more}")


class UploadError(FinancialDataError):
    """An uploaded file was rejected before parsing."""

    def __init__(self, errors: Sequence[str]) -> None:
        self.errors: list[str] = list(errors)
        super().__init__("; ".join(self.errors) or "Upload rejected")


class AnalysisError(FinancialDataError):
    """The analysis backend failed terminally."""


__all__ = [
    "AnalysisError",
    "FinancialDataError",
    "NormalizationError",
    "ParseError",
    "UploadError",
    "ValidationError",
]
