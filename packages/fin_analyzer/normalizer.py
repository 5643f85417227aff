"""Assemble heterogeneous financial input into :class:`CanonicalFinancialData`.

Accepted inputs:

- JSON text (``str`` or UTF-8 ``bytes``), parsed first;
- a mapping already shaped as ``{invoices, expenses, payments, balances,
  metadata?}`` (used as-is; missing categories become empty);
- a flat sequence of untyped records (e.g. rows from
  :func:`fin_analyzer.csv_adapter.parse_csv`), each classified once.

Every record then passes through :func:`fin_analyzer.cleaner.clean` and the
result is frozen into a read-only snapshot with metadata.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Any

from .classifier import classify
from .cleaner import clean
from .errors import NormalizationError, ParseError
from .logging_setup import get_logger
from .models import (
    CATEGORY_KEYS,
    DEFAULT_SOURCE,
    CanonicalFinancialData,
    FinancialMetadata,
    RawRecord,
)

_logger = get_logger("fin_analyzer.normalizer")


def _reject_constant(token: str) -> Any:
    # NaN and Infinity are JavaScript literals, not JSON values.
    raise ParseError(f"Invalid JSON format: unexpected token {token}")


def _parse_text(raw: str | bytes) -> Any:
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ParseError(f"Invalid JSON format: input is not UTF-8 ({exc})") from exc
    try:
        return json.loads(raw, parse_constant=_reject_constant)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Invalid JSON format: {exc.msg} at line {exc.lineno}") from exc


def _is_flat_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def _only_records(items: Sequence[Any], *, where: str) -> list[RawRecord]:
    records = [item for item in items if isinstance(item, Mapping)]
    dropped = len(items) - len(records)
    if dropped:
        _logger.warning("normalize:dropped_non_records where=%s count=%d", where, dropped)
    return records


def _bucket_flat(items: Sequence[Any]) -> dict[str, list[RawRecord]]:
    buckets: dict[str, list[RawRecord]] = {key: [] for key in CATEGORY_KEYS}
    for record in _only_records(items, where="input"):
        buckets[classify(record).bucket].append(record)
    return buckets


def _bucket_shaped(data: Mapping[str, Any]) -> dict[str, list[RawRecord]]:
    buckets: dict[str, list[RawRecord]] = {}
    for key in CATEGORY_KEYS:
        value = data.get(key)
        if value is None:
            buckets[key] = []
        elif _is_flat_sequence(value):
            buckets[key] = _only_records(value, where=key)
        else:
            raise NormalizationError(
                f"'{key}' must be an array of records, got {type(value).__name__}"
            )
    return buckets


def _resolve_source(data: Any, explicit: str | None) -> str:
    if explicit:
        return explicit
    if isinstance(data, Mapping):
        top = data.get("source")
        if isinstance(top, str) and top.strip():
            return top.strip()
        meta = data.get("metadata")
        if isinstance(meta, Mapping):
            nested = meta.get("source")
            if isinstance(nested, str) and nested.strip():
                return nested.strip()
    return DEFAULT_SOURCE


def iso_timestamp(moment: datetime) -> str:
    # Millisecond precision with a literal "Z", e.g. 2024-02-01T10:00:00.000Z
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def normalize(
    raw: str | bytes | Mapping[str, Any] | Sequence[Any],
    *,
    source: str | None = None,
    now: datetime | None = None,
) -> CanonicalFinancialData:
    """Normalize raw financial input into the canonical structure.

    Parameters
    ----------
    raw:
        JSON text, an already-categorized mapping, or a flat sequence of
        records.
    source:
        Optional source label; overrides any ``source`` carried by the input.
        Defaults to ``"manual_input"`` when neither is present.
    now:
        Assembly time used for ``metadata.timestamp`` (defaults to the current
        UTC time).

    Raises
    ------
    ParseError
        When textual input is not valid JSON.
    NormalizationError
        For any other structural problem (e.g. a top-level value that is
        neither an object nor an array).
    """

    data = _parse_text(raw) if isinstance(raw, (str, bytes)) else raw

    try:
        if isinstance(data, Mapping):
            buckets = _bucket_shaped(data)
        elif _is_flat_sequence(data):
            buckets = _bucket_flat(data)
        else:
            raise NormalizationError(
                f"expected a JSON object or array at top level, got {type(data).__name__}"
            )

        cleaned = {
            key: tuple(MappingProxyType(clean(record)) for record in records)
            for key, records in buckets.items()
        }
        metadata = FinancialMetadata(
            source=_resolve_source(data, source),
            timestamp=iso_timestamp(now or datetime.now(UTC)),
            record_count=sum(len(v) for v in cleaned.values()),
        )
        result = CanonicalFinancialData(
            invoices=cleaned["invoices"],
            expenses=cleaned["expenses"],
            payments=cleaned["payments"],
            balances=cleaned["balances"],
            metadata=metadata,
        )
    except Exception as exc:  # noqa: BLE001 - surfaced with the underlying message
        _logger.error("normalize:failed error=%s: %s", exc.__class__.__name__, exc)
        raise NormalizationError(f"Data normalization failed: {exc}") from exc

    _logger.info(
        "normalize:done source=%s invoices=%d expenses=%d payments=%d balances=%d",
        metadata.source,
        len(result.invoices),
        len(result.expenses),
        len(result.payments),
        len(result.balances),
    )
    return result


__all__ = ["iso_timestamp", "normalize"]
