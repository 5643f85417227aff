"""Public API orchestration for the ``fin_analyzer`` package.

The pipeline is: (CSV adapter) → normalizer → validator → analysis client.

- :func:`prepare_financial_data` runs everything up to validation and raises
  on structural errors, so callers can map failures to a 400-class response.
- :func:`analyze` and :func:`analyze_file` additionally hand the validated
  canonical data to the analysis backend.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Literal, NamedTuple, TypeAlias

from openai import OpenAI

from .analysis import analyze_financial_data
from .csv_adapter import parse_csv
from .errors import ParseError, UploadError
from .intake import check_upload, decode_upload
from .logging_setup import get_logger
from .models import CanonicalFinancialData, ValidationResult
from .normalizer import iso_timestamp, normalize
from .settings import Settings, load_settings
from .validation import validate

InputFormat: TypeAlias = Literal["json", "csv"]

_logger = get_logger("fin_analyzer.api")


class PreparedData(NamedTuple):
    data: CanonicalFinancialData
    validation: ValidationResult


@dataclass(frozen=True, slots=True)
class AnalysisReport:
    """Result of a full pipeline run, shaped like the HTTP success response."""

    data: CanonicalFinancialData
    analysis: Mapping[str, Any]
    warnings: tuple[str, ...]
    timestamp: str
    filename: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"success": True}
        if self.filename is not None:
            out["filename"] = self.filename
        out["data"] = self.data.to_dict()
        out["analysis"] = dict(self.analysis)
        out["warnings"] = list(self.warnings)
        out["timestamp"] = self.timestamp
        return out


def prepare_financial_data(
    data: str | bytes | Mapping[str, Any] | Sequence[Any],
    *,
    fmt: InputFormat = "json",
    source: str | None = None,
) -> PreparedData:
    """Parse, normalize and validate ``data``.

    With ``fmt="csv"`` the input must be delimited text and is converted to
    flat records first; otherwise it is handed to the normalizer as-is.

    Raises
    ------
    ParseError
        Malformed JSON/CSV text.
    NormalizationError
        Unexpected structural problems during normalization.
    ValidationError
        Structural schema violations (carries the field-level errors).
    """

    if fmt == "csv":
        if not isinstance(data, (str, bytes)):
            raise ParseError("Invalid CSV format: expected delimited text")
        data = parse_csv(data)
    elif fmt != "json":
        raise ValueError(f"unknown input format: {fmt!r}")

    canonical = normalize(data, source=source)
    result = validate(canonical)
    if not result.is_valid:
        _logger.warning("prepare:invalid errors=%d", len(result.errors))
    result.raise_for_errors()
    return PreparedData(data=canonical, validation=result)


def analyze(
    data: str | bytes | Mapping[str, Any] | Sequence[Any],
    *,
    fmt: InputFormat = "json",
    source: str | None = None,
    settings: Settings | None = None,
    client: OpenAI | None = None,
) -> AnalysisReport:
    """Run the full pipeline on request-body data and return the report."""

    settings = settings or load_settings()
    prepared = prepare_financial_data(data, fmt=fmt, source=source)
    analysis = analyze_financial_data(prepared.data, settings=settings, client=client)
    _logger.info("analyze:completed records=%d", prepared.data.metadata.record_count)
    return AnalysisReport(
        data=prepared.data,
        analysis=analysis,
        warnings=prepared.validation.warnings,
        timestamp=iso_timestamp(datetime.now(UTC)),
    )


def analyze_file(
    filename: str,
    content: bytes,
    content_type: str | None,
    *,
    settings: Settings | None = None,
    client: OpenAI | None = None,
) -> AnalysisReport:
    """Run the full pipeline on an uploaded CSV or JSON file.

    Raises
    ------
    UploadError
        When the upload fails the size or MIME-type checks.
    """

    settings = settings or load_settings()
    check = check_upload(filename, len(content), content_type, settings=settings)
    if not check.is_valid:
        raise UploadError(check.errors)

    payload = decode_upload(filename, content, content_type)
    prepared = prepare_financial_data(payload)
    analysis = analyze_financial_data(prepared.data, settings=settings, client=client)
    _logger.info(
        "analyze_file:completed filename=%s records=%d",
        filename,
        prepared.data.metadata.record_count,
    )
    return AnalysisReport(
        data=prepared.data,
        analysis=analysis,
        warnings=prepared.validation.warnings,
        timestamp=iso_timestamp(datetime.now(UTC)),
        filename=filename,
    )


__all__ = [
    "AnalysisReport",
    "InputFormat",
    "PreparedData",
    "analyze",
    "analyze_file",
    "prepare_financial_data",
]
