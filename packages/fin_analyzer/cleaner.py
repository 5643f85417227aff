"""Per-record cleaning: drop empty fields and coerce numeric strings."""

from __future__ import annotations

import re

from .models import RawRecord, Scalar

# Optional leading minus, digits, optional single decimal point with trailing
# digits. No exponent, no thousands separators, no leading "+".
_NUMERIC_RE = re.compile(r"^-?\d+\.?\d*$", re.ASCII)


def _clean_value(value: Scalar) -> Scalar:
    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        if _NUMERIC_RE.fullmatch(s):
            return float(s)
        return s
    return value


def clean(record: RawRecord) -> dict[str, Scalar]:
    """Return a cleaned copy of ``record``.

    Rules per field, in order:
    - drop the field when its value is ``None``;
    - strip strings and drop the field when nothing remains;
    - convert strings matching the strict numeric pattern to ``float``.

    Surviving fields keep their insertion order. The input is not mutated and
    ``clean(clean(r)) == clean(r)``.
    """

    out: dict[str, Scalar] = {}
    for key, value in record.items():
        cleaned = _clean_value(value)
        if cleaned is None:
            continue
        out[key] = cleaned
    return out


__all__ = ["clean"]
