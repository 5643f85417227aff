"""CLI for the ``fin_analyzer`` package.

This module exposes callable command handlers (``cmd_normalize``,
``cmd_validate``, ``cmd_analyze``) and a Typer-based console interface.
Environment variables (notably ``OPENROUTER_API_KEY``) are loaded from a
local ``.env`` using ``python-dotenv`` before delegating to command logic.
Business logic lives in ``fin_analyzer.api`` and related modules.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Annotated, Any

import typer
from dotenv import load_dotenv
from typer.models import OptionInfo

from .errors import FinancialDataError, ValidationError
from .logging_setup import configure_logging

# ---- Small module-level helpers used by CLI commands -------------------------


def _resolve_format(path: Path, fmt: str | None) -> str:
    if fmt:
        value = fmt.strip().lower()
        if value not in {"json", "csv"}:
            raise ValueError(f"unknown format {fmt!r}; expected 'json' or 'csv'")
        return value
    return "csv" if path.suffix.lower() == ".csv" else "json"


def _read_input(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        print(f"Error: File not found: {path}", file=sys.stderr)
    except PermissionError:
        print(f"Error: Permission denied: {path}", file=sys.stderr)
    except UnicodeDecodeError:
        print(f"Error: File is not valid UTF-8 text: {path}", file=sys.stderr)
    return None


def _emit(obj: Any) -> None:
    typer.echo(json.dumps(obj, indent=2, ensure_ascii=False))


def _load_raw(text: str, fmt: str) -> Any:
    from .csv_adapter import parse_csv

    return parse_csv(text) if fmt == "csv" else text


# ---- Command handlers --------------------------------------------------------


def cmd_normalize(input_path: str, *, fmt: str | None = None, source: str | None = None) -> int:
    """Normalize a CSV/JSON file and print the canonical JSON to stdout."""

    from .normalizer import normalize

    path = Path(input_path)
    text = _read_input(path)
    if text is None:
        return 1
    try:
        data = normalize(_load_raw(text, _resolve_format(path, fmt)), source=source)
    except (FinancialDataError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    _emit(data.to_dict())
    return 0


def cmd_validate(input_path: str, *, fmt: str | None = None) -> int:
    """Normalize and validate a file; print ``{isValid, errors, warnings}``.

    Returns ``1`` when the data has structural errors.
    """

    from .normalizer import normalize
    from .validation import validate

    path = Path(input_path)
    text = _read_input(path)
    if text is None:
        return 1
    try:
        result = validate(normalize(_load_raw(text, _resolve_format(path, fmt))))
    except (FinancialDataError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    _emit(result.to_dict())
    return 0 if result.is_valid else 1


def cmd_analyze(input_path: str, *, fmt: str | None = None) -> int:
    """Run the full pipeline, including the analysis backend, on a file."""

    from .api import analyze
    from .settings import load_settings

    settings = load_settings()
    # Validate environment early so failures are clear
    if not settings.api_key:
        print("Error: OPENROUTER_API_KEY is not set in the environment.", file=sys.stderr)
        return 1

    path = Path(input_path)
    text = _read_input(path)
    if text is None:
        return 1
    try:
        report = analyze(text, fmt=_resolve_format(path, fmt), settings=settings)
    except ValidationError as e:
        print("Error: Data validation failed", file=sys.stderr)
        _emit({"error": "Data validation failed", "details": [x.to_dict() for x in e.errors]})
        return 1
    except (FinancialDataError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    _emit(report.to_dict())
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Normalize, validate and analyze financial records (invoices, expenses, "
        "payments, balances) from CSV or JSON files."
    ),
)

# Shared option objects, attached to parameters through `Annotated`.
INPUT_OPTION: OptionInfo = typer.Option(
    ...,  # required
    "--input",
    "-i",
    help="Path to a CSV or JSON file with financial records",
    dir_okay=False,
    file_okay=True,
    exists=False,  # allow non-existent here; the handler will report nice errors
)
FORMAT_OPTION: OptionInfo = typer.Option(
    "--format", "-f", help="Input format: json or csv (default: from file suffix)."
)


@app.command("normalize")
def normalize_cmd(
    input_path: Annotated[Path, INPUT_OPTION],
    fmt: Annotated[str | None, FORMAT_OPTION] = None,
    source: str | None = typer.Option(None, help="Source label stored in metadata."),
) -> None:
    """Print the canonical JSON for a file."""

    raise typer.Exit(cmd_normalize(str(input_path), fmt=fmt, source=source))


@app.command("validate")
def validate_cmd(
    input_path: Annotated[Path, INPUT_OPTION],
    fmt: Annotated[str | None, FORMAT_OPTION] = None,
) -> None:
    """Validate a file; exits non-zero on structural errors."""

    raise typer.Exit(cmd_validate(str(input_path), fmt=fmt))


@app.command("analyze")
def analyze_cmd(
    input_path: Annotated[Path, INPUT_OPTION],
    fmt: Annotated[str | None, FORMAT_OPTION] = None,
) -> None:
    """Normalize, validate and send a file to the analysis backend."""

    raise typer.Exit(cmd_analyze(str(input_path), fmt=fmt))


@app.callback()
def _root(
    log_level: str | None = typer.Option(
        None, help="Log level (falls back to FIN_ANALYZER_LOG_LEVEL, then INFO)."
    ),
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures logging.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging(log_level)


def main() -> None:  # pragma: no cover - console entry point
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
