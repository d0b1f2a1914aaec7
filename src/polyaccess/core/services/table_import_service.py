"""Service for importing legacy tables into a target schema."""

import logging
from collections.abc import Mapping
from typing import Any, cast

from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session

from polyaccess.config import Settings, get_settings
from polyaccess.core.collaborators import (
    CollaboratorError,
    CollaboratorRegistry,
    ExpressionConverter,
    ExtractionAdapter,
    parse_extraction_payload,
)
from polyaccess.core.migration.catalog import (
    execute_verbatim,
    is_duplicate_object_error,
    lock_object_name,
    object_exists,
)
from polyaccess.core.migration.ddl import (
    build_create_schema,
    build_create_table,
    build_drop_table,
)
from polyaccess.core.migration.identifiers import sanitize_name
from polyaccess.core.migration.loader import BatchLoader
from polyaccess.core.migration.plan import build_column_plan, primary_key_columns
from polyaccess.core.migration.reconciler import PostLoadReconciler
from polyaccess.core.migration.state import ImportSession, ImportState
from polyaccess.core.models import IssueCreate, TableImportResult, TablePayload
from polyaccess.core.services.audit_service import AuditService
from polyaccess.core.services.exceptions import (
    ImportServiceError,
    InvalidIdentifierError,
    MaterializationError,
    MissingParameterError,
    NoImportableColumnsError,
    TargetExistsError,
)
from polyaccess.core.services.target_database_service import TargetDatabaseService

logger = logging.getLogger(__name__)


class TableImportService:
    """Materializes one legacy table per call: DDL, rows, sequences and indexes.

    Handles:
    - Column planning (type mapping and name sanitization)
    - Conflict detection and forced replacement
    - Creation, loading and reconciliation in a single transaction
    - Audit entries and issues for every attempt, successful or not
    """

    def __init__(
        self,
        session: Session,
        engine: Engine | None = None,
        settings: Settings | None = None,
        expression_converter: ExpressionConverter | None = None,
        loader: BatchLoader | None = None,
        reconciler: PostLoadReconciler | None = None,
    ) -> None:
        """Initialize table import service.

        Args:
            session: Session for the admin tables (registry and audit log).
            engine: Engine for the target store; defaults to the session's bind.
            settings: Application settings.
            expression_converter: Converter for calculated-column formulas.
            loader: Row loader; defaults to one using the configured batch size.
            reconciler: Post-load reconciler.
        """
        self.session = session
        self.engine = engine if engine is not None else cast(Engine, session.get_bind())
        self.settings = settings or get_settings()
        self.databases = TargetDatabaseService(session)
        self.audit = AuditService(session)
        self.expression_converter = expression_converter or CollaboratorRegistry.create(
            "expression_converter", "basic"
        )
        self.loader = loader or BatchLoader(self.settings.batch_size)
        self.reconciler = reconciler or PostLoadReconciler()

    def import_from_source(
        self,
        source_path: str,
        table_name: str,
        database_id: str,
        extractor: ExtractionAdapter,
        force: bool = False,
    ) -> TableImportResult:
        """Extract a table with ``extractor`` and import it.

        Extraction failures are recorded in the audit log like any other
        rejected import.
        """
        try:
            payload = extractor.extract_table(source_path, table_name)
        except CollaboratorError as e:
            logger.error(f"Extraction of table {table_name!r} failed: {e.message}")
            self.audit.record(
                source_path, table_name, "table", database_id, "error", error_message=e.message
            )
            raise
        return self.import_table(source_path, table_name, database_id, payload, force=force)

    def import_table(
        self,
        source_path: str,
        table_name: str,
        database_id: str,
        payload: TablePayload | Mapping[str, Any],
        force: bool = False,
    ) -> TableImportResult:
        """Import one table from an already-extracted payload.

        Args:
            source_path: Legacy file the table came from.
            table_name: Legacy table name.
            database_id: Registered target database id.
            payload: Extraction payload, typed or as decoded JSON.
            force: Replace an existing target table.

        Returns:
            TableImportResult describing the new table.

        Raises:
            MissingParameterError: If a required argument is empty.
            ExtractionPayloadError: If a raw payload does not parse.
            TargetDatabaseNotFoundError: If the database id is not registered.
            NoImportableColumnsError: If no column can be materialized.
            TargetExistsError: If the table exists and force is False.
            MaterializationError: If a statement fails; nothing is left behind.
        """
        session = ImportSession(source_path, table_name, "table")
        issues: list[IssueCreate] = []
        skipped: list[str] = []
        schema_name = target_name = ""

        try:
            for parameter, value in (
                ("source_path", source_path),
                ("table_name", table_name),
                ("database_id", database_id),
            ):
                if not value:
                    raise MissingParameterError(parameter)
            session.advance(ImportState.VALIDATING)

            if not isinstance(payload, TablePayload):
                payload = cast(TablePayload, parse_extraction_payload(dict(payload), "table"))

            target_name = sanitize_name(table_name)
            if not target_name:
                raise InvalidIdentifierError(table_name)
            schema_name = self.databases.resolve_schema(database_id)

            for column in payload.skipped_columns:
                skipped.append(column.name)
                issues.append(
                    IssueCreate(
                        category="skipped-column",
                        message=(
                            f"Column '{column.name}' skipped (legacy type: {column.type}) "
                            "- not importable"
                        ),
                        suggestion="Migrate this column's contents manually.",
                    )
                )

            plan = build_column_plan(payload.fields)
            planned = {col.original_name for col in plan}
            for field in payload.fields:
                if field.name not in planned:
                    skipped.append(field.name)
                    issues.append(
                        IssueCreate(
                            category="skipped-column",
                            message=f"Column '{field.name}' skipped - name has no usable characters",
                            suggestion="Rename the column in the source database and re-import.",
                        )
                    )
            if not plan:
                raise NoImportableColumnsError(table_name)

            statement = build_create_table(
                schema_name,
                target_name,
                plan,
                primary_key_columns(payload.indexes),
                self.expression_converter,
            )
            issues.extend(statement.warnings)

            with self.engine.begin() as connection:
                self._execute(connection, build_create_schema(schema_name))
                lock_object_name(connection, schema_name, target_name)
                exists = object_exists(connection, schema_name, target_name, "table")
                if exists and not force:
                    raise TargetExistsError(schema_name, target_name, "table")

                session.advance(ImportState.MATERIALIZING)
                if exists:
                    logger.info(f"Replacing existing table {schema_name}.{target_name}")
                    self._execute(connection, build_drop_table(schema_name, target_name))
                self._execute(connection, statement.sql)

                session.advance(ImportState.LOADING)
                row_count = self.loader.load(
                    connection, schema_name, target_name, plan, payload.rows
                )

                session.advance(ImportState.RECONCILING)
                issues.extend(
                    self.reconciler.reconcile(
                        connection, schema_name, target_name, plan, payload.indexes, row_count
                    )
                )
            session.advance(ImportState.COMMITTED)

        except DBAPIError as e:
            session.fail()
            if is_duplicate_object_error(e):
                error: ImportServiceError = TargetExistsError(
                    schema_name, target_name, "table"
                )
            else:
                error = MaterializationError(str(e.orig), statement=e.statement)
                logger.error(f"Import of table {table_name!r} failed: {e.orig}")
                if e.statement:
                    logger.error(f"Failing statement: {e.statement[:500]}")
            self._record_failure(session, database_id, str(error))
            raise error from e

        except (ImportServiceError, CollaboratorError) as e:
            session.fail()
            logger.error(f"Import of table {table_name!r} rejected: {e}")
            self._record_failure(session, database_id, str(e))
            raise

        calculated_columns = [col.original_name for col in plan if col.is_calculated]
        calculated_warnings = [i.message for i in issues if i.category == "calculated-column"]
        details = {
            "field_count": len(plan),
            "row_count": row_count,
            "skipped_columns": skipped,
            "calculated_columns": calculated_columns,
            "generated_columns": statement.generated_columns,
            "calculated_warnings": calculated_warnings,
            **session.summary(),
        }
        log_id = self.audit.record(
            source_path,
            table_name,
            "table",
            database_id,
            "success",
            details=details,
            issues=issues,
        )
        logger.info(
            f"Imported table {table_name!r} as {schema_name}.{target_name}: "
            f"{len(plan)} columns, {row_count} rows, {len(issues)} issues"
        )

        return TableImportResult(
            table_name=target_name,
            field_count=len(plan),
            row_count=row_count,
            skipped_columns=skipped,
            calculated_columns=calculated_columns,
            generated_columns=statement.generated_columns,
            calculated_warnings=calculated_warnings,
            warnings=[i.message for i in issues],
            import_log_id=log_id,
        )

    def _execute(self, connection: Connection, sql: str) -> None:
        logger.debug(sql)
        execute_verbatim(connection, sql)

    def _record_failure(
        self,
        session: ImportSession,
        database_id: str,
        message: str,
    ) -> None:
        self.audit.record(
            session.source_path,
            session.object_name,
            session.object_type,
            database_id,
            "error",
            error_message=message,
            details=session.summary(),
        )
