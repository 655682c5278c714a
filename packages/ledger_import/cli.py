# ruff: noqa: I001
"""CLI for the ``ledger_import`` package.

A Typer console interface over :mod:`ledger_import.api`. Environment variables
(notably ``DATABASE_URL``) are loaded from a local ``.env`` using
``python-dotenv`` before any command runs. Command handlers (``cmd_*``) return
a process exit code and print ``Error: ...`` to stderr on failure; the Typer
commands turn that code into the process exit status.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from typer.models import OptionInfo

from .logging_setup import configure_logging


def cmd_import_statement(file: Path, user_id: str, *, database_url: str | None = None) -> int:
    """Import a statement file and print the result as JSON to stdout."""

    from .api import import_statement_file
    from .models import ImportState

    try:
        result = import_statement_file(file, user_id, database_url=database_url)
    except FileNotFoundError:
        print(f"Error: File not found: {file}", file=sys.stderr)
        return 2
    except PermissionError:
        print(f"Error: Permission denied: {file}", file=sys.stderr)
        return 2

    print(result.model_dump_json(indent=2))
    if result.state in (ImportState.COMPLETED, ImportState.EMPTY):
        return 0
    for message in result.error_messages:
        print(f"Error: {message}", file=sys.stderr)
    return 1


def cmd_revert_batch(user_id: str, batch_id: str, *, database_url: str | None = None) -> int:
    from .api import revert_import
    from .errors import BatchNotFoundError

    try:
        removed = revert_import(user_id, batch_id, database_url=database_url)
    except BatchNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(json.dumps({"batch_id": batch_id, "removed": removed}))
    return 0


def cmd_list_batches(user_id: str, *, database_url: str | None = None) -> int:
    from .api import list_import_batches

    batches = list_import_batches(user_id, database_url=database_url)
    rows = [
        {
            "id": b.id,
            "source_file_name": b.source_file_name,
            "imported_at": b.imported_at.isoformat(),
            "candidate_count": b.candidate_count,
            "total_amount": f"{b.total_amount:f}",
            "status": b.status.value,
        }
        for b in batches
    ]
    print(json.dumps(rows, indent=2, ensure_ascii=False))
    return 0


# ---- Typer app ---------------------------------------------------------------

app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Import bank statements (CSV or text PDF) into a user's ledger. "
        "Loads DATABASE_URL from a local .env before running."
    ),
)

# Module-level option objects keep calls out of parameter defaults (ruff B008).
FILE_OPTION: OptionInfo = typer.Option(
    ...,
    "--file",
    help="Path to a CSV or PDF bank statement",
    dir_okay=False,
    file_okay=True,
    exists=False,  # the handler reports a friendlier error
)
USER_ID_OPTION: OptionInfo = typer.Option(..., "--user-id", help="Ledger owner id")
DATABASE_URL_OPTION: OptionInfo = typer.Option(
    None, "--database-url", help="Override DATABASE_URL (falls back to env var)."
)


def _exit(code: int) -> None:
    if code:
        raise typer.Exit(code)


@app.command("import-statement")
def import_statement_cmd(
    file: Annotated[Path, FILE_OPTION],
    user_id: Annotated[str, USER_ID_OPTION],
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Import a statement and print the import result."""

    _exit(cmd_import_statement(file, user_id, database_url=database_url))


@app.command("revert-batch")
def revert_batch_cmd(
    user_id: Annotated[str, USER_ID_OPTION],
    batch_id: Annotated[str, typer.Option(..., "--batch-id", help="Import batch id")],
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Delete an import batch and every ledger row it created."""

    _exit(cmd_revert_batch(user_id, batch_id, database_url=database_url))


@app.command("list-batches")
def list_batches_cmd(
    user_id: Annotated[str, USER_ID_OPTION],
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """List a user's import batches, newest first."""

    _exit(cmd_list_batches(user_id, database_url=database_url))


@app.callback()
def _root() -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding
    already-set environment variables) and configures package logging.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()


if __name__ == "__main__":  # pragma: no cover
    app()
