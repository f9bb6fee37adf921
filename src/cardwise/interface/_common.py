"""Shared helpers for CLI commands."""

import json
from typing import Any, NoReturn

import typer
from pydantic_core import to_jsonable_python

from cardwise.application.config import AppConfig, resolve_config
from cardwise.domain.errors import (
    CardNotFoundError,
    CardwiseError,
    InvalidQualityError,
    NoCardsAvailableError,
    StorageError,
    UnknownStudyModeError,
)


def _resolve_with_overrides(**overrides: Any) -> AppConfig:
    """Resolve config, letting non-None CLI values take precedence."""
    return resolve_config({k: v for k, v in overrides.items() if v is not None})


def humanize_error(err: Exception) -> str:
    """Turn a domain error into a one-line message for the terminal."""
    if isinstance(err, NoCardsAvailableError):
        return f"{err} Add cards or try another mode."
    if isinstance(err, UnknownStudyModeError):
        return str(err)
    if isinstance(err, InvalidQualityError):
        return "Quality must be a whole number from 0 (blackout) to 5 (perfect)."
    if isinstance(err, CardNotFoundError):
        return str(err)
    if isinstance(err, StorageError):
        return f"Storage problem: {err}"
    return str(err)


def fail(err: CardwiseError) -> NoReturn:
    """Print a humanized error and exit with status 1."""
    typer.secho(humanize_error(err), fg="red", err=True)
    raise typer.Exit(1)


def echo_json(data: Any) -> None:
    typer.echo(json.dumps(to_jsonable_python(data), indent=2))
