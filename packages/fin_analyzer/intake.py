"""Upload checks and payload decoding for file-based input.

An uploaded file is first checked against the configured size limit and MIME
allow-list, then decoded: CSV uploads (by MIME type or ``.csv`` name) are
turned into flat raw records, everything else is treated as JSON text and
left for the normalizer to parse.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .csv_adapter import parse_csv
from .errors import ParseError
from .settings import Settings


@dataclass(frozen=True, slots=True)
class UploadCheck:
    is_valid: bool
    errors: tuple[str, ...] = ()


def _format_limit(n_bytes: int) -> str:
    mb = n_bytes / (1024 * 1024)
    return f"{mb:g}MB"


def check_upload(
    filename: str | None,
    size: int | None,
    content_type: str | None,
    *,
    settings: Settings,
) -> UploadCheck:
    """Check an uploaded file's presence, size and MIME type."""

    if not filename and size is None:
        return UploadCheck(is_valid=False, errors=("No file provided",))

    errors: list[str] = []
    if size is not None and size > settings.max_upload_bytes:
        errors.append(f"File size exceeds {_format_limit(settings.max_upload_bytes)} limit")
    if (content_type or "") not in settings.allowed_mime_types:
        errors.append(
            "Invalid file type. Allowed types: " + ", ".join(settings.allowed_mime_types)
        )
    return UploadCheck(is_valid=not errors, errors=tuple(errors))


def is_csv_upload(filename: str | None, content_type: str | None) -> bool:
    return content_type == "text/csv" or (filename or "").lower().endswith(".csv")


def decode_upload(filename: str | None, content: bytes, content_type: str | None) -> Any:
    """Decode an upload into normalizer input.

    Returns a list of raw records for CSV uploads, otherwise the decoded JSON
    text.
    """

    if is_csv_upload(filename, content_type):
        return parse_csv(content)
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ParseError(f"Invalid JSON format: file is not UTF-8 ({exc})") from exc


__all__ = ["UploadCheck", "check_upload", "decode_upload", "is_csv_upload"]
