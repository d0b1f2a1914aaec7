"""Main CLI entry point for polyaccess."""

import json
from enum import Enum
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.table import Table

from polyaccess import __version__
from polyaccess.cli.helpers import get_session, handle_error, serialize_for_json
from polyaccess.config import get_settings
from polyaccess.core.collaborators import CollaboratorRegistry, SavedOutputExtractor
from polyaccess.core.database import get_engine
from polyaccess.core.logging_config import configure_logging
from polyaccess.core.services import (
    AuditService,
    ImportPlanService,
    QueryImportService,
    TableImportService,
    TargetDatabaseService,
)

# Console instances for stdout/stderr
console = Console()
err_console = Console(stderr=True)


class OutputFormat(str, Enum):
    """Output format options."""

    json = "json"
    table = "table"


# Main app
app = typer.Typer(
    name="polyaccess",
    help="Import legacy desktop databases into PostgreSQL schemas.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Command groups
import_app = typer.Typer(
    help="Import tables, queries and plans.",
    no_args_is_help=True,
)
log_app = typer.Typer(
    help="Inspect the import audit log.",
    no_args_is_help=True,
)
db_app = typer.Typer(
    help="Manage target databases.",
    no_args_is_help=True,
)
collaborators_app = typer.Typer(
    help="List registered extractors and converters.",
    no_args_is_help=True,
)

app.add_typer(import_app, name="import")
app.add_typer(log_app, name="log")
app.add_typer(db_app, name="db")
app.add_typer(collaborators_app, name="collaborators")


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"polyaccess {__version__}")
        raise typer.Exit()


def output_result(data: dict | list, format: OutputFormat | None) -> None:
    """Output data in the specified format, or the configured default."""
    if format is None:
        format = OutputFormat(get_settings().default_format)
    if format == OutputFormat.json:
        console.print_json(json.dumps(serialize_for_json(data)))
    else:
        if isinstance(data, list) and data:
            table = Table()
            for key in data[0]:
                table.add_column(key)
            for row in data:
                table.add_row(*[str(v) if v is not None else "" for v in row.values()])
            console.print(table)
        elif isinstance(data, dict):
            table = Table(show_header=False)
            table.add_column("Key", style="bold")
            table.add_column("Value")
            for key, value in data.items():
                table.add_row(key, str(value) if value is not None else "")
            console.print(table)
        else:
            console.print(data)


def _extractor(name: str, payload_file: Path | None = None) -> Any:
    if payload_file is not None:
        return SavedOutputExtractor(payload_file)
    return CollaboratorRegistry.create("extractor", name, settings=get_settings())


def _query_converter(name: str) -> Any:
    return CollaboratorRegistry.create("query_converter", name, settings=get_settings())


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="Override the configured log level."),
    ] = None,
) -> None:
    """polyaccess - legacy database import engine."""
    configure_logging(log_level.upper() if log_level else None)


# =============================================================================
# Import commands
# =============================================================================


@import_app.command("table")
def import_table(
    source_path: Annotated[str, typer.Argument(help="Path to the legacy database file.")],
    table_name: Annotated[str, typer.Argument(help="Legacy table name.")],
    database_id: Annotated[
        str, typer.Option("--database", "-d", help="Target database id.")
    ],
    force: Annotated[
        bool, typer.Option("--force", help="Replace the table if it already exists.")
    ] = False,
    payload_file: Annotated[
        Path | None,
        typer.Option("--payload", "-p", help="Use saved extraction output instead of running the extractor."),
    ] = None,
    extractor: Annotated[
        str, typer.Option("--extractor", help="Extractor to run.")
    ] = "subprocess",
    format: Annotated[
        OutputFormat | None, typer.Option("--format", "-f", help="Output format (default: settings).")
    ] = None,
) -> None:
    """Import one table: create it, load its rows, reset sequences, build indexes."""
    try:
        with get_session() as session:
            service = TableImportService(session, engine=get_engine())
            source = _extractor(extractor, payload_file)
            with console.status(f"Importing table [bold]{table_name}[/bold]..."):
                result = service.import_from_source(
                    source_path, table_name, database_id, source, force=force
                )
            output_result(result.model_dump(), format)
    except Exception as e:
        code = handle_error(e)
        raise typer.Exit(code) from None


@import_app.command("query")
def import_query(
    source_path: Annotated[str, typer.Argument(help="Path to the legacy database file.")],
    query_name: Annotated[str, typer.Argument(help="Legacy query name.")],
    database_id: Annotated[
        str, typer.Option("--database", "-d", help="Target database id.")
    ],
    force: Annotated[
        bool, typer.Option("--force", help="Skip the existing view/function check.")
    ] = False,
    payload_file: Annotated[
        Path | None,
        typer.Option("--payload", "-p", help="Use saved extraction output instead of running the extractor."),
    ] = None,
    extractor: Annotated[
        str, typer.Option("--extractor", help="Extractor to run.")
    ] = "subprocess",
    converter: Annotated[
        str, typer.Option("--converter", help="Query converter to use.")
    ] = "subprocess",
    format: Annotated[
        OutputFormat | None, typer.Option("--format", "-f", help="Output format (default: settings).")
    ] = None,
) -> None:
    """Import one stored query as a view or function."""
    try:
        with get_session() as session:
            service = QueryImportService(session, _query_converter(converter), engine=get_engine())
            source = _extractor(extractor, payload_file)
            with console.status(f"Importing query [bold]{query_name}[/bold]..."):
                result = service.import_from_source(
                    source_path, query_name, database_id, source, force=force
                )
            output_result(result.model_dump(), format)
    except Exception as e:
        code = handle_error(e)
        raise typer.Exit(code) from None


@import_app.command("plan")
def import_plan(
    plan_file: Annotated[Path, typer.Argument(help="Path to the import plan YAML.")],
    extractor: Annotated[
        str, typer.Option("--extractor", help="Extractor to run.")
    ] = "subprocess",
    converter: Annotated[
        str, typer.Option("--converter", help="Query converter to use.")
    ] = "subprocess",
    format: Annotated[
        OutputFormat | None, typer.Option("--format", "-f", help="Output format (default: settings).")
    ] = None,
) -> None:
    """Import every table, then every query, listed in a plan file."""
    try:
        with get_session() as session:
            engine = get_engine()
            service = ImportPlanService(
                table_service=TableImportService(session, engine=engine),
                query_service=QueryImportService(session, _query_converter(converter), engine=engine),
                extractor=_extractor(extractor),
            )
            results = service.run_file(plan_file)
            output_result(
                [
                    {
                        "kind": r.kind,
                        "name": r.name,
                        "success": r.success,
                        "target": r.target_name,
                        "warnings": len(r.warnings),
                        "error": r.error,
                    }
                    for r in results
                ],
                format,
            )
    except Exception as e:
        code = handle_error(e)
        raise typer.Exit(code) from None

    if any(not r.success for r in results):
        raise typer.Exit(1)


# =============================================================================
# Audit log commands
# =============================================================================


@log_app.command("list")
def log_list(
    database_id: Annotated[
        str | None, typer.Option("--database", "-d", help="Filter by target database.")
    ] = None,
    source_path: Annotated[
        str | None, typer.Option("--source", "-s", help="Filter by legacy file.")
    ] = None,
    status: Annotated[
        str | None, typer.Option("--status", help="Filter by status (success or error).")
    ] = None,
    limit: Annotated[
        int, typer.Option("--limit", "-n", help="Maximum entries to show.")
    ] = 50,
    format: Annotated[
        OutputFormat | None, typer.Option("--format", "-f", help="Output format (default: settings).")
    ] = None,
) -> None:
    """List import log entries, newest first."""
    try:
        with get_session() as session:
            entries = AuditService(session).list_entries(
                source_path=source_path,
                database_id=database_id,
                status=status,
                limit=limit,
            )
            result = [
                {
                    "id": e.id,
                    "object": e.source_object_name,
                    "type": e.source_object_type,
                    "database": e.target_database_id,
                    "status": e.status,
                    "error": e.error_message,
                    "created_at": e.created_at,
                }
                for e in entries
            ]
            output_result(result, format)
    except Exception as e:
        code = handle_error(e)
        raise typer.Exit(code) from None


@log_app.command("issues")
def log_issues(
    database_id: Annotated[
        str, typer.Option("--database", "-d", help="Target database id.")
    ],
    category: Annotated[
        str | None, typer.Option("--category", help="Filter by issue category.")
    ] = None,
    include_resolved: Annotated[
        bool, typer.Option("--all", help="Include resolved issues.")
    ] = False,
    format: Annotated[
        OutputFormat | None, typer.Option("--format", "-f", help="Output format (default: settings).")
    ] = None,
) -> None:
    """List issues recorded for a target database."""
    try:
        with get_session() as session:
            issues = AuditService(session).issues_for_database(
                database_id, category=category, include_resolved=include_resolved
            )
            result = [
                {
                    "id": i.id,
                    "object": i.object_name,
                    "severity": i.severity,
                    "category": i.category,
                    "message": i.message,
                }
                for i in issues
            ]
            output_result(result, format)
    except Exception as e:
        code = handle_error(e)
        raise typer.Exit(code) from None


# =============================================================================
# Target database commands
# =============================================================================


@db_app.command("register")
def db_register(
    database_id: Annotated[str, typer.Argument(help="Unique id for the target database.")],
    name: Annotated[
        str | None, typer.Option("--name", "-n", help="Human-readable name.")
    ] = None,
    schema_name: Annotated[
        str | None, typer.Option("--schema", help="Target schema (defaults to the sanitized id).")
    ] = None,
    description: Annotated[
        str | None, typer.Option("--description", help="Description.")
    ] = None,
    format: Annotated[
        OutputFormat | None, typer.Option("--format", "-f", help="Output format (default: settings).")
    ] = None,
) -> None:
    """Register a target database."""
    try:
        with get_session() as session:
            database = TargetDatabaseService(session).register(
                database_id, name=name, schema_name=schema_name, description=description
            )
            session.commit()
            output_result(
                {
                    "database_id": database.database_id,
                    "name": database.name,
                    "schema_name": database.schema_name,
                    "description": database.description,
                },
                format,
            )
    except Exception as e:
        code = handle_error(e)
        raise typer.Exit(code) from None


@db_app.command("list")
def db_list(
    format: Annotated[
        OutputFormat | None, typer.Option("--format", "-f", help="Output format (default: settings).")
    ] = None,
) -> None:
    """List registered target databases."""
    try:
        with get_session() as session:
            databases = TargetDatabaseService(session).list_databases()
            result = [
                {
                    "database_id": d.database_id,
                    "name": d.name,
                    "schema_name": d.schema_name,
                    "description": d.description,
                }
                for d in databases
            ]
            output_result(result, format)
    except Exception as e:
        code = handle_error(e)
        raise typer.Exit(code) from None


# =============================================================================
# Collaborator commands
# =============================================================================


@collaborators_app.command("list")
def collaborators_list(
    format: Annotated[
        OutputFormat | None, typer.Option("--format", "-f", help="Output format (default: settings).")
    ] = None,
) -> None:
    """List registered extractors and converters."""
    result = [
        {"kind": info.kind, "name": info.name, "display_name": info.display_name}
        for info in CollaboratorRegistry.list_collaborators()
    ]
    output_result(result, format)


if __name__ == "__main__":
    app()
