"""Data models and type aliases for ``fin_analyzer``.

Two layers are defined here:

- Semi-structured records (:data:`RawRecord`) that flow through
  classification and cleaning with an open field set, and the immutable
  :class:`CanonicalFinancialData` snapshot the normalizer assembles from them.
- Strict per-category shapes (:class:`Invoice`, :class:`Expense`,
  :class:`Payment`, :class:`Balance`) used only at validation time to narrow
  records into their final contract.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date as _date
from datetime import datetime
from enum import StrEnum
from typing import Annotated, Any, Literal, TypeAlias

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import ValidationError

# ---------------------------------------------------------------------------
# Semi-structured records
# ---------------------------------------------------------------------------

Scalar: TypeAlias = str | int | float | None
"""A single raw cell value: text, a number, or null."""

RawRecord: TypeAlias = Mapping[str, Scalar]
"""An untyped, open field mapping before classification/cleaning.

No field is required; any subset may be present. Values are scalars as
parsed from JSON or produced by :func:`fin_analyzer.csv_adapter.parse_csv`.
"""


class Category(StrEnum):
    """The four record categories of the canonical structure."""

    INVOICE = "invoice"
    EXPENSE = "expense"
    PAYMENT = "payment"
    BALANCE = "balance"

    @property
    def bucket(self) -> str:
        """Key of the category's sequence in the canonical structure."""

        return f"{self.value}s"


# Bucket keys in canonical (serialization) order.
CATEGORY_KEYS: tuple[str, ...] = ("invoices", "expenses", "payments", "balances")

DEFAULT_SOURCE = "manual_input"


# ---------------------------------------------------------------------------
# Canonical financial data (normalizer output)
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FinancialMetadata:
    source: str
    timestamp: str
    record_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "timestamp": self.timestamp,
            "recordCount": self.record_count,
        }


@dataclass(frozen=True, slots=True)
class CanonicalFinancialData:
    """The normalized four-category record set plus metadata.

    Instances are read-only snapshots: category sequences are tuples and each
    record is a read-only mapping. ``metadata.record_count`` is computed once
    at assembly and equals the sum of the four sequence lengths.
    """

    invoices: tuple[RawRecord, ...]
    expenses: tuple[RawRecord, ...]
    payments: tuple[RawRecord, ...]
    balances: tuple[RawRecord, ...]
    metadata: FinancialMetadata

    def records(self, category: Category) -> tuple[RawRecord, ...]:
        return getattr(self, category.bucket)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready payload handed to the analysis client and UI."""

        out: dict[str, Any] = {
            key: [dict(r) for r in getattr(self, key)] for key in CATEGORY_KEYS
        }
        out["metadata"] = self.metadata.to_dict()
        return out


# ---------------------------------------------------------------------------
# Validation results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FieldError:
    """A single structural violation.

    Attributes
    ----------
    field:
        JSON-pointer style path of the failing value (e.g.
        ``"/invoices/0/amount"``).
    message:
        Human-readable description of the violation.
    value:
        The offending value, or ``None`` when the field is missing.
    constraint:
        The violated constraint (error type plus any parameters such as
        ``{"type": "greater_than_equal", "ge": 0}``).
    """

    field: str
    message: str
    value: Any = None
    constraint: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "field": self.field,
            "message": self.message,
            "value": self.value,
            "constraint": dict(self.constraint),
        }


@dataclass(frozen=True, slots=True)
class ValidationResult:
    is_valid: bool
    errors: tuple[FieldError, ...] = ()
    warnings: tuple[str, ...] = ()

    def raise_for_errors(self) -> None:
        if self.errors:
            raise ValidationError(self.errors)

    def to_dict(self) -> dict[str, Any]:
        return {
            "isValid": self.is_valid,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": list(self.warnings),
        }


# ---------------------------------------------------------------------------
# Strict record shapes (validation-time narrowing)
# ---------------------------------------------------------------------------

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$", re.ASCII)

# Numbers are strict so numeric-looking strings and booleans are rejected
# rather than silently coerced; ints are still accepted as floats. NaN and
# infinities have no JSON form and are rejected too.
Text = Annotated[str, Field(strict=True)]
Number = Annotated[float, Field(strict=True, allow_inf_nan=False)]
NonNegativeNumber = Annotated[float, Field(strict=True, ge=0, allow_inf_nan=False)]
RecordId = Text | Number


def _check_date(v: str) -> str:
    if not _ISO_DATE_RE.fullmatch(v):
        raise ValueError('must match format "date"')
    try:
        _date.fromisoformat(v)
    except ValueError as exc:
        raise ValueError('must match format "date"') from exc
    return v


class _SchemaModel(BaseModel):
    """Base for validation shapes.

    Optional fields may be omitted but not sent as an explicit ``null``.
    """

    @field_validator("*", mode="before")
    @classmethod
    def _reject_null(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("must not be null")
        return v


class _RecordModel(_SchemaModel):
    model_config = ConfigDict(extra="allow")

    date: Text

    @field_validator("date")
    @classmethod
    def _date_format(cls, v: str) -> str:
        return _check_date(v)


class Invoice(_RecordModel):
    amount: NonNegativeNumber
    id: RecordId | None = None
    description: Text | None = None
    customer: Text | None = None
    status: Literal["pending", "paid", "overdue", "cancelled"] | None = None


class Expense(_RecordModel):
    amount: NonNegativeNumber
    id: RecordId | None = None
    description: Text | None = None
    category: Text | None = None
    vendor: Text | None = None


class Payment(_RecordModel):
    amount: Number
    type: Literal["inbound", "outbound"]
    id: RecordId | None = None
    description: Text | None = None
    method: Text | None = None


class Balance(_RecordModel):
    account: Text
    balance: Number
    currency: Text = "USD"


class MetadataModel(_SchemaModel):
    """Shape of ``metadata`` when present on validated input."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    source: Text | None = None
    timestamp: Text | None = None
    record_count: NonNegativeNumber | None = Field(
        default=None, alias="recordCount"
    )

    @field_validator("timestamp")
    @classmethod
    def _timestamp_format(cls, v: str | None) -> str | None:
        if v is None:
            return None
        try:
            datetime.fromisoformat(v.replace("Z", "+00:00"))
        except ValueError as exc:
            raise ValueError('must match format "date-time"') from exc
        return v


RECORD_MODELS: dict[Category, type[_RecordModel]] = {
    Category.INVOICE: Invoice,
    Category.EXPENSE: Expense,
    Category.PAYMENT: Payment,
    Category.BALANCE: Balance,
}


__all__ = [
    "CATEGORY_KEYS",
    "DEFAULT_SOURCE",
    "RECORD_MODELS",
    "Balance",
    "CanonicalFinancialData",
    "Category",
    "Expense",
    "FieldError",
    "FinancialMetadata",
    "Invoice",
    "MetadataModel",
    "Payment",
    "RawRecord",
    "Scalar",
    "ValidationResult",
]
