"""CLI helper functions for session management and error handling."""

from collections.abc import Generator
from contextlib import contextmanager
from datetime import date, datetime
from typing import Any

from rich.console import Console
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from polyaccess.core.collaborators import (
    CollaboratorError,
    CollaboratorNotFoundError,
    CollaboratorRegistry,
    ExtractionPayloadError,
)
from polyaccess.core.database import init_database, session_scope
from polyaccess.core.services import (
    ConfigLoadError,
    MaterializationError,
    NoStatementsGeneratedError,
    TargetDatabaseExistsError,
    TargetDatabaseNotFoundError,
    TargetExistsError,
)
from polyaccess.core.services.exceptions import ImportServiceError

err_console = Console(stderr=True)

EXIT_CONFLICT = 3


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """Get a database session, initializing the admin tables if needed.

    Yields:
        SQLAlchemy Session that commits on success and rolls back on exception.
    """
    init_database()

    with session_scope() as session:
        yield session


def handle_error(error: Exception) -> int:
    """Print an error message for an exception.

    Returns:
        Exit code: 1 for handled errors, 3 when the target already exists,
        2 for unexpected errors.
    """
    if isinstance(error, TargetExistsError):
        err_console.print(f"[red]Conflict:[/red] {error}")
        err_console.print("[dim]Re-run with --force to replace it.[/dim]")
        return EXIT_CONFLICT

    elif isinstance(error, TargetDatabaseNotFoundError):
        err_console.print(f"[red]Error:[/red] Target database not found: {error.database_id!r}")
        err_console.print("[dim]Run 'polyaccess db list' to see registered databases.[/dim]")
        return 1

    elif isinstance(error, TargetDatabaseExistsError):
        err_console.print(f"[red]Error:[/red] {error}")
        return 1

    elif isinstance(error, NoStatementsGeneratedError):
        err_console.print(f"[red]Error:[/red] {error}")
        for warning in error.warnings:
            err_console.print(f"[yellow]Warning:[/yellow] {warning}")
        return 1

    elif isinstance(error, MaterializationError):
        err_console.print(f"[red]Import failed and was rolled back:[/red] {error.message}")
        if error.statement:
            err_console.print(f"[dim]Statement: {error.statement[:500]}[/dim]")
        return 1

    elif isinstance(error, ImportServiceError):
        err_console.print(f"[red]Error:[/red] {error}")
        return 1

    elif isinstance(error, CollaboratorNotFoundError):
        err_console.print(f"[red]Error:[/red] {error.message}")
        available = [info.name for info in CollaboratorRegistry.list_collaborators(error.kind)]
        if available:
            err_console.print(f"[dim]Available: {', '.join(available)}[/dim]")
        return 1

    elif isinstance(error, ExtractionPayloadError):
        err_console.print(f"[red]Malformed extraction output:[/red] {error.message}")
        return 1

    elif isinstance(error, CollaboratorError):
        err_console.print(f"[red]Error:[/red] {error.message}")
        return 1

    elif isinstance(error, ConfigLoadError):
        err_console.print(f"[red]Configuration error:[/red] {error}")
        return 1

    elif isinstance(error, FileNotFoundError):
        err_console.print(f"[red]Error:[/red] File not found: {error.filename}")
        return 1

    elif isinstance(error, SQLAlchemyError):
        err_console.print(f"[red]Database error:[/red] {error}")
        return 1

    else:
        err_console.print(f"[red]Unexpected error:[/red] {error}")
        err_console.print("[dim]This may be a bug. Please report it.[/dim]")
        return 2


def serialize_for_json(obj: Any) -> Any:
    """Serialize an object to JSON-compatible format."""
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    elif hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json")
    elif isinstance(obj, dict):
        return {k: serialize_for_json(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [serialize_for_json(item) for item in obj]
    else:
        return obj
