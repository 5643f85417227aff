"""Delimited text → flat raw records for the normalizer.

Parsing follows RFC 4180 rules via the stdlib :mod:`csv` module (quoted
fields with embedded commas and newlines, doubled quotes). The first
non-blank row is the header. Each data row becomes one record keyed by the
(trimmed) header names, with cell values auto-cast where unambiguous:

- integers and plain decimals → ``int`` / ``float``;
- ``YYYY-MM-DD``, ``YYYY/MM/DD`` and ``MM/DD/YYYY`` dates → ISO ``YYYY-MM-DD``;
- empty cells → ``None``;
- anything else stays a trimmed string.
"""

from __future__ import annotations

import csv
import re
from datetime import datetime
from io import StringIO

from .errors import ParseError
from .logging_setup import get_logger
from .models import Scalar

_INT_RE = re.compile(r"^[-+]?\d+$", re.ASCII)
_DECIMAL_RE = re.compile(r"^[-+]?(?:\d+\.\d*|\.\d+)$", re.ASCII)
_DATE_FORMATS: tuple[str, ...] = ("%Y-%m-%d", "%Y/%m/%d", "%m/%d/%Y")

_logger = get_logger("fin_analyzer.csv_adapter")


def _normalize_date(value: str) -> str | None:
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date().isoformat()
        except ValueError:
            continue
    return None


def cast_cell(raw: str) -> Scalar:
    """Trim a cell and cast it to a number or ISO date when unambiguous."""

    s = raw.strip()
    if not s:
        return None
    if _INT_RE.fullmatch(s):
        return int(s)
    if _DECIMAL_RE.fullmatch(s):
        return float(s)
    return _normalize_date(s) or s


def parse_csv(csv_text: str | bytes) -> list[dict[str, Scalar]]:
    """Parse delimited text with a header row into raw records.

    Blank lines are skipped. A row whose column count differs from the
    header is rejected rather than silently padded or truncated.

    Raises
    ------
    ParseError
        On undecodable bytes, a missing header, malformed quoting, or an
        inconsistent column count.
    """

    if isinstance(csv_text, bytes):
        try:
            csv_text = csv_text.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise ParseError(f"Invalid CSV format: input is not UTF-8 ({exc})") from exc
    else:
        csv_text = csv_text.removeprefix("\ufeff")

    records: list[dict[str, Scalar]] = []
    header: list[str] | None = None
    try:
        with StringIO(csv_text, newline="") as f:
            reader = csv.reader(f, strict=True)
            for row in reader:
                if not any(cell.strip() for cell in row):
                    continue
                if header is None:
                    header = [name.strip() for name in row]
                    if not all(header):
                        raise ParseError(
                            f"Invalid CSV format: empty column name in header on line "
                            f"{reader.line_num}"
                        )
                    continue
                if len(row) != len(header):
                    raise ParseError(
                        f"Invalid CSV format: invalid record length on line {reader.line_num}: "
                        f"expected {len(header)} columns, got {len(row)}"
                    )
                records.append({name: cast_cell(cell) for name, cell in zip(header, row)})
    except csv.Error as exc:
        _logger.error("parse_csv:failed error=%s", exc)
        raise ParseError(f"Invalid CSV format: {exc}") from exc

    if header is None:
        raise ParseError("Invalid CSV format: no header row")

    _logger.info("parse_csv:done records=%d columns=%d", len(records), len(header))
    return records


__all__ = ["cast_cell", "parse_csv"]
