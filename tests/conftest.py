"""Pytest configuration for test isolation.

Makes the workspace ``packages/`` dir importable (so ``fin_analyzer`` resolves
without an install) and keeps tests hermetic with respect to environment
configuration: a developer's ``.env`` or shell exports must not leak API keys
or model settings into tests.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

_ROOT = Path(__file__).resolve().parents[1]
_PKG_DIR = _ROOT / "packages"
# Ensure `packages/` precedes the repo root on sys.path so local packages resolve first.
sys.path[:0] = [p for p in [str(_PKG_DIR), str(_ROOT)] if p not in sys.path]

_ENV_VARS = (
    "OPENROUTER_API_KEY",
    "OPENROUTER_API_URL",
    "FIN_ANALYZER_MODEL",
    "FIN_ANALYZER_TEMPERATURE",
    "FIN_ANALYZER_MAX_TOKENS",
    "FIN_ANALYZER_MAX_UPLOAD_BYTES",
    "FIN_ANALYZER_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clear package-related environment variables for every test."""

    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
