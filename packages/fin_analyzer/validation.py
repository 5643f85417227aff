"""Structural validation and data-quality checks for canonical financial data.

Two passes run over the data:

- Structural (hard failures): the document must carry ``invoices`` and
  ``expenses`` arrays and every record must satisfy its strict shape from
  :mod:`fin_analyzer.models`. All violations are collected as
  :class:`~fin_analyzer.models.FieldError` entries with JSON-pointer paths.
- Quality (soft warnings): only run when the structure is valid. Warnings
  never affect ``is_valid``.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

import pydantic

from .logging_setup import get_logger
from .models import (
    RECORD_MODELS,
    CanonicalFinancialData,
    Category,
    FieldError,
    MetadataModel,
    ValidationResult,
)

REQUIRED_KEYS: tuple[str, ...] = ("invoices", "expenses")

# Amounts above this are flagged as outliers (never rejected).
UNUSUAL_AMOUNT_THRESHOLD: float = 1_000_000

_logger = get_logger("fin_analyzer.validation")


# ---------------------------------------------------------------------------
# Structural pass
# ---------------------------------------------------------------------------


def _field_errors(exc: pydantic.ValidationError, prefix: str) -> list[FieldError]:
    out: list[FieldError] = []
    for err in exc.errors(include_url=False):
        loc = "/".join(str(part) for part in err["loc"])
        ctx = {k: v for k, v in (err.get("ctx") or {}).items() if k != "error"}
        missing = err["type"] == "missing"
        out.append(
            FieldError(
                field=f"{prefix}/{loc}" if loc else prefix,
                message=err["msg"],
                value=None if missing else err.get("input"),
                constraint={"type": err["type"], **ctx},
            )
        )
    return out


def _check_records(key: str, category: Category, records: Any) -> list[FieldError]:
    if not isinstance(records, Sequence) or isinstance(records, (str, bytes)):
        return [
            FieldError(
                field=f"/{key}",
                message="must be array",
                value=records,
                constraint={"type": "array"},
            )
        ]

    model = RECORD_MODELS[category]
    errors: list[FieldError] = []
    for i, record in enumerate(records):
        path = f"/{key}/{i}"
        if not isinstance(record, Mapping):
            errors.append(
                FieldError(
                    field=path, message="must be object", value=record, constraint={"type": "object"}
                )
            )
            continue
        try:
            model.model_validate(dict(record))
        except pydantic.ValidationError as exc:
            errors.extend(_field_errors(exc, path))
    return errors


def _check_structure(doc: Mapping[str, Any]) -> list[FieldError]:
    errors: list[FieldError] = []
    for key in REQUIRED_KEYS:
        if key not in doc:
            errors.append(
                FieldError(
                    field="",
                    message=f"must have required property '{key}'",
                    value=None,
                    constraint={"type": "missing", "missingProperty": key},
                )
            )

    for category in Category:
        key = category.bucket
        if key not in doc:
            continue
        errors.extend(_check_records(key, category, doc[key]))

    if "metadata" in doc:
        metadata = doc["metadata"]
        if not isinstance(metadata, Mapping):
            errors.append(
                FieldError(
                    field="/metadata",
                    message="must be object",
                    value=metadata,
                    constraint={"type": "object"},
                )
            )
        else:
            try:
                MetadataModel.model_validate(dict(metadata))
            except pydantic.ValidationError as exc:
                errors.extend(_field_errors(exc, "/metadata"))
    return errors


# ---------------------------------------------------------------------------
# Quality pass
# ---------------------------------------------------------------------------


def _is_unusual(amount: Any) -> bool:
    if isinstance(amount, bool) or not isinstance(amount, (int, float)) or not amount:
        return False
    return amount < 0 or amount > UNUSUAL_AMOUNT_THRESHOLD


def check_data_quality(doc: Mapping[str, Any]) -> list[str]:
    """Return non-blocking data-quality warnings for a structurally valid document."""

    warnings: list[str] = []

    if not doc.get("invoices"):
        warnings.append("No invoice data provided - cash flow projections may be inaccurate")
    if not doc.get("expenses"):
        warnings.append("No expense data provided - cost analysis will be limited")

    records: list[Mapping[str, Any]] = [
        *(doc.get("invoices") or ()),
        *(doc.get("expenses") or ()),
        *(doc.get("payments") or ()),
    ]

    missing_dates = sum(1 for r in records if not r.get("date"))
    if missing_dates:
        warnings.append(
            f"{missing_dates} records missing dates - timeline analysis may be affected"
        )

    unusual = sum(1 for r in records if _is_unusual(r.get("amount")))
    if unusual:
        warnings.append(f"{unusual} records with unusual amounts detected")

    return warnings


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------


def validate(data: CanonicalFinancialData | Mapping[str, Any]) -> ValidationResult:
    """Validate canonical financial data.

    Accepts either the normalizer's :class:`CanonicalFinancialData` or a
    JSON-shaped mapping (e.g. a previously exported payload). Quality warnings
    are computed only when no structural errors were found.
    """

    doc: Any = data.to_dict() if isinstance(data, CanonicalFinancialData) else data

    if isinstance(doc, Mapping):
        errors = _check_structure(doc)
    else:
        errors = [
            FieldError(field="", message="must be object", value=doc, constraint={"type": "object"})
        ]
    warnings = check_data_quality(doc) if not errors else []
    result = ValidationResult(is_valid=not errors, errors=tuple(errors), warnings=tuple(warnings))

    _logger.info(
        "validate:done is_valid=%s errors=%d warnings=%d",
        result.is_valid,
        len(result.errors),
        len(result.warnings),
    )
    return result


__all__ = ["UNUSUAL_AMOUNT_THRESHOLD", "check_data_quality", "validate"]
