"""Runtime configuration read from environment variables.

Entrypoints load ``.env`` (via ``python-dotenv``) before calling
:func:`load_settings`; library code receives the resulting :class:`Settings`
as an explicit argument instead of reading the environment itself.

Variables
---------
``OPENROUTER_API_KEY``
    API key for the analysis backend. Only required when analysis runs.
``OPENROUTER_API_URL``
    Backend URL; a trailing ``/chat/completions`` is stripped to form the SDK
    base URL. Default: ``https://openrouter.ai/api/v1``.
``FIN_ANALYZER_MODEL``
    Model identifier. Default: ``qwen/qwen3-235b-a22b:free``.
``FIN_ANALYZER_TEMPERATURE`` / ``FIN_ANALYZER_MAX_TOKENS``
    Sampling temperature (default ``0.1``) and completion cap (default
    ``4000``).
``FIN_ANALYZER_MAX_UPLOAD_BYTES``
    Upload size limit in bytes. Default: 10 MiB.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

DEFAULT_API_URL = "https://openrouter.ai/api/v1"
DEFAULT_MODEL = "qwen/qwen3-235b-a22b:free"
DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024
ALLOWED_MIME_TYPES: tuple[str, ...] = ("text/csv", "application/json", "text/plain")


@dataclass(frozen=True, slots=True)
class Settings:
    api_key: str | None = None
    api_url: str = DEFAULT_API_URL
    model: str = DEFAULT_MODEL
    temperature: float = 0.1
    max_tokens: int = 4000
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    allowed_mime_types: tuple[str, ...] = ALLOWED_MIME_TYPES

    @property
    def base_url(self) -> str:
        return self.api_url.rstrip("/").removesuffix("/chat/completions")

    def require_api_key(self) -> str:
        if not self.api_key:
            raise RuntimeError("Missing required environment variable: OPENROUTER_API_KEY")
        return self.api_key


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    try:
        return float(raw) if raw else default
    except ValueError:
        return default


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    try:
        value = int(raw) if raw else default
    except ValueError:
        return default
    return value if value > 0 else default


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    """Build :class:`Settings` from ``env`` (defaults to ``os.environ``).

    Malformed numeric values fall back to their defaults.
    """

    env = os.environ if env is None else env
    return Settings(
        api_key=(env.get("OPENROUTER_API_KEY") or "").strip() or None,
        api_url=(env.get("OPENROUTER_API_URL") or "").strip() or DEFAULT_API_URL,
        model=(env.get("FIN_ANALYZER_MODEL") or "").strip() or DEFAULT_MODEL,
        temperature=_env_float(env, "FIN_ANALYZER_TEMPERATURE", 0.1),
        max_tokens=_env_int(env, "FIN_ANALYZER_MAX_TOKENS", 4000),
        max_upload_bytes=_env_int(env, "FIN_ANALYZER_MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES),
    )


__all__ = ["ALLOWED_MIME_TYPES", "Settings", "load_settings"]
