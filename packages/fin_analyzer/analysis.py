"""Narrative analysis of canonical financial data via an OpenAI-compatible backend.

Public API:
    - :func:`analyze_financial_data`

The backend (OpenRouter by default) is reached through the ``openai`` SDK's
chat-completions interface. Only HTTP 429 and 5xx failures are retried;
everything else is terminal. No side effects occur at import time (no client
creation, no environment reads).
"""

from __future__ import annotations

import json
import random
import re
import time
from collections.abc import Mapping
from typing import Any

from openai import OpenAI

from . import prompting
from .errors import AnalysisError
from .logging_setup import get_logger
from .models import CanonicalFinancialData
from .settings import Settings

# ---- Tunables (private) ------------------------------------------------------

_MAX_ATTEMPTS: int = 3
_BACKOFF_SCHEDULE_SEC: tuple[float, ...] = (0.5, 2.0)
_JITTER_PCT: float = 0.20

_DEFAULT_HEADERS: dict[str, str] = {
    "HTTP-Referer": "https://financial-analyzer.com",
    "X-Title": "Financial Analysis App",
}

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)

_logger = get_logger("fin_analyzer.analysis")


# ---- Internal helpers --------------------------------------------------------


def _create_client(settings: Settings) -> OpenAI:
    return OpenAI(
        api_key=settings.require_api_key(),
        base_url=settings.base_url,
        default_headers=_DEFAULT_HEADERS,
    )


def _is_retryable(exc: BaseException) -> bool:
    """Return True only for HTTP 429 and 5xx errors."""

    sc = getattr(exc, "status_code", None)
    return isinstance(sc, int) and (sc == 429 or 500 <= sc < 600)


def _sleep_backoff(attempt_no: int) -> None:
    if attempt_no - 1 < len(_BACKOFF_SCHEDULE_SEC):
        base = _BACKOFF_SCHEDULE_SEC[attempt_no - 1]
    else:
        base = _BACKOFF_SCHEDULE_SEC[-1]
    jitter = base * _JITTER_PCT
    time.sleep(max(0.0, base + random.uniform(-jitter, jitter)))


def _extract_content(resp: Any) -> str:
    try:
        content = resp.choices[0].message.content
    except (AttributeError, IndexError, TypeError) as e:
        raise AnalysisError("Unexpected chat completion shape; no message content") from e
    if not isinstance(content, str):
        raise AnalysisError("Unexpected chat completion shape; message content is not text")
    return content


def _decode_analysis(content: str) -> dict[str, Any]:
    """Decode the model reply, tolerating a surrounding Markdown code fence.

    Unparseable replies are returned as ``{"error", "rawResponse"}`` rather
    than raised so the caller can still show the raw text.
    """

    text = content.strip()
    fenced = _FENCE_RE.match(text)
    if fenced:
        text = fenced.group(1)
    try:
        decoded = json.loads(text)
    except json.JSONDecodeError:
        _logger.error("analyze:parse_failed chars=%d", len(content))
        return {"error": "Analysis parsing failed", "rawResponse": content}
    if not isinstance(decoded, dict):
        _logger.error("analyze:parse_failed reason=not_an_object")
        return {"error": "Analysis parsing failed", "rawResponse": content}
    return decoded


# ---- Public API --------------------------------------------------------------


def analyze_financial_data(
    data: CanonicalFinancialData | Mapping[str, Any],
    *,
    settings: Settings,
    client: OpenAI | None = None,
) -> dict[str, Any]:
    """Request a narrative analysis of ``data`` and return the decoded JSON.

    Parameters
    ----------
    data:
        Validated canonical data (or its ``to_dict()`` payload).
    settings:
        Backend configuration; ``settings.api_key`` is required unless a
        ``client`` is supplied.
    client:
        Optional pre-built client (used by tests and long-lived callers).

    Raises
    ------
    AnalysisError
        When the backend fails terminally (non-retryable error, or retries
        exhausted) or returns a reply without text content.
    """

    payload = data.to_dict() if isinstance(data, CanonicalFinancialData) else dict(data)
    messages = prompting.build_messages(payload)
    client = client or _create_client(settings)

    _logger.info("analyze:start model=%s keys=%s", settings.model, ",".join(payload))

    attempt = 1
    while True:
        t0 = time.perf_counter()
        try:
            resp = client.chat.completions.create(
                model=settings.model,
                messages=messages,
                max_tokens=settings.max_tokens,
                temperature=settings.temperature,
            )
            content = _extract_content(resp)
        except AnalysisError:
            raise
        except Exception as e:  # noqa: BLE001
            dt_ms = (time.perf_counter() - t0) * 1000.0
            if attempt >= _MAX_ATTEMPTS or not _is_retryable(e):
                _logger.error(
                    "analyze:failed_terminal attempt=%d latency_ms=%.2f error=%s",
                    attempt,
                    dt_ms,
                    e.__class__.__name__,
                )
                raise AnalysisError(f"Financial analysis failed: {e}") from e
            _logger.warning(
                "analyze:retry attempt=%d latency_ms=%.2f error=%s",
                attempt,
                dt_ms,
                e.__class__.__name__,
            )
            _sleep_backoff(attempt)
            attempt += 1
            continue

        dt_ms = (time.perf_counter() - t0) * 1000.0
        _logger.info("analyze:done attempt=%d latency_ms=%.2f", attempt, dt_ms)
        return _decode_analysis(content)


__all__ = ["analyze_financial_data"]
