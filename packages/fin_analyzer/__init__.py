"""Public interface for the ``fin_analyzer`` package.

This module exposes the package's API functions and public models/types as the
stable import surface. There is no runtime logic here, only symbol re-exports.
"""

from .api import (
    AnalysisReport,
    PreparedData,
    analyze,
    analyze_file,
    prepare_financial_data,
)
from .classifier import classify
from .cleaner import clean
from .csv_adapter import parse_csv
from .errors import (
    AnalysisError,
    FinancialDataError,
    NormalizationError,
    ParseError,
    UploadError,
    ValidationError,
)
from .models import (
    Balance,
    CanonicalFinancialData,
    Category,
    Expense,
    FieldError,
    FinancialMetadata,
    Invoice,
    Payment,
    RawRecord,
    ValidationResult,
)
from .normalizer import normalize
from .validation import validate

__all__ = [
    # API
    "analyze",
    "analyze_file",
    "classify",
    "clean",
    "normalize",
    "parse_csv",
    "prepare_financial_data",
    "validate",
    # Models / types
    "AnalysisReport",
    "Balance",
    "CanonicalFinancialData",
    "Category",
    "Expense",
    "FieldError",
    "FinancialMetadata",
    "Invoice",
    "Payment",
    "PreparedData",
    "RawRecord",
    "ValidationResult",
    # Errors
    "AnalysisError",
    "FinancialDataError",
    "NormalizationError",
    "ParseError",
    "UploadError",
    "ValidationError",
]
