"""Service for importing legacy stored queries as views or functions."""

import logging
from collections.abc import Mapping
from typing import Any, cast

from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session

from polyaccess.core.collaborators import (
    CollaboratorError,
    ExtractionAdapter,
    QueryConverter,
    parse_extraction_payload,
)
from polyaccess.core.migration.catalog import (
    ObjectKind,
    column_types,
    execute_verbatim,
    is_duplicate_object_error,
    lock_object_name,
    object_exists,
)
from polyaccess.core.migration.state import ImportSession, ImportState
from polyaccess.core.models import ConvertedQuery, IssueCreate, QueryImportResult, QueryPayload
from polyaccess.core.services.audit_service import AuditService
from polyaccess.core.services.exceptions import (
    ImportServiceError,
    MaterializationError,
    MissingParameterError,
    NoStatementsGeneratedError,
    TargetExistsError,
)
from polyaccess.core.services.target_database_service import TargetDatabaseService

logger = logging.getLogger(__name__)

COMMENT_ONLY_WARNING = "Skipped comment-only statement"


def is_comment_only(statement: str) -> bool:
    """True when every non-blank line of ``statement`` is a ``--`` comment."""
    lines = [line.strip() for line in statement.splitlines() if line.strip()]
    return all(line.startswith("--") for line in lines)


def _existing_kind(pg_object_type: str) -> ObjectKind | None:
    if pg_object_type == "view":
        return "view"
    if pg_object_type == "function":
        return "function"
    return None


class QueryImportService:
    """Converts a legacy query through the converter and executes the result."""

    def __init__(
        self,
        session: Session,
        converter: QueryConverter,
        engine: Engine | None = None,
    ) -> None:
        """Initialize query import service.

        Args:
            session: Session for the admin tables.
            converter: Dialect-conversion collaborator.
            engine: Engine for the target store; defaults to the session's bind.
        """
        self.session = session
        self.converter = converter
        self.engine = engine if engine is not None else cast(Engine, session.get_bind())
        self.databases = TargetDatabaseService(session)
        self.audit = AuditService(session)

    def import_from_source(
        self,
        source_path: str,
        query_name: str,
        database_id: str,
        extractor: ExtractionAdapter,
        force: bool = False,
    ) -> QueryImportResult:
        """Extract a query with ``extractor`` and import it."""
        try:
            payload = extractor.extract_query(source_path, query_name)
        except CollaboratorError as e:
            logger.error(f"Extraction of query {query_name!r} failed: {e.message}")
            self.audit.record(
                source_path, query_name, "query", database_id, "error", error_message=e.message
            )
            raise
        return self.import_query(source_path, query_name, database_id, payload, force=force)

    def import_query(
        self,
        source_path: str,
        query_name: str,
        database_id: str,
        payload: QueryPayload | Mapping[str, Any],
        force: bool = False,
    ) -> QueryImportResult:
        """Import one query from an already-extracted payload.

        Args:
            source_path: Legacy file the query came from.
            query_name: Legacy query name.
            database_id: Registered target database id.
            payload: Extraction payload, typed or as decoded JSON.
            force: Skip the existing-object check.

        Returns:
            QueryImportResult for the created object.

        Raises:
            MissingParameterError: If a required argument is empty.
            ExtractionPayloadError: If a raw payload does not parse.
            TargetDatabaseNotFoundError: If the database id is not registered.
            ConversionError: If the converter fails.
            NoStatementsGeneratedError: If the converter produced no statements.
            TargetExistsError: If the view or function exists and force is False.
            MaterializationError: If a statement fails; all are rolled back.
        """
        session = ImportSession(source_path, query_name, "query")
        warnings: list[str] = []
        statements: list[str] = []
        source_sql = ""
        schema_name = ""
        converted: ConvertedQuery | None = None

        try:
            for parameter, value in (
                ("source_path", source_path),
                ("query_name", query_name),
                ("database_id", database_id),
            ):
                if not value:
                    raise MissingParameterError(parameter)
            session.advance(ImportState.VALIDATING)

            if not isinstance(payload, QueryPayload):
                payload = cast(QueryPayload, parse_extraction_payload(dict(payload), "query"))
            if payload.query_name is None:
                payload.query_name = query_name
            source_sql = payload.sql

            schema_name = self.databases.resolve_schema(database_id)
            control_mapping = self.databases.control_mapping(database_id)
            with self.engine.connect() as connection:
                types = column_types(connection, schema_name)

            converted = self.converter.convert(payload, schema_name, types, control_mapping)
            warnings.extend(converted.warnings)
            if payload.param_warning:
                warnings.append(payload.param_warning)
            statements = converted.statements
            if not statements:
                raise NoStatementsGeneratedError(query_name, warnings)

            pg_name = converted.pg_object_name
            kind = _existing_kind(converted.pg_object_type)

            with self.engine.begin() as connection:
                lock_object_name(connection, schema_name, pg_name)
                if not force and kind is not None:
                    if object_exists(connection, schema_name, pg_name, kind):
                        raise TargetExistsError(schema_name, pg_name, kind)

                session.advance(ImportState.MATERIALIZING)
                for stmt in statements:
                    if is_comment_only(stmt):
                        warnings.append(COMMENT_ONLY_WARNING)
                        continue
                    logger.debug(stmt)
                    execute_verbatim(connection, stmt)
            session.advance(ImportState.COMMITTED)

        except DBAPIError as e:
            session.fail()
            if converted is not None and is_duplicate_object_error(e):
                error: ImportServiceError = TargetExistsError(
                    schema_name, converted.pg_object_name, converted.pg_object_type
                )
            else:
                error = MaterializationError(str(e.orig), statement=e.statement, source_sql=source_sql)
                logger.error(f"Import of query {query_name!r} failed: {e.orig}")
                logger.error(f"Failed SQL statements for query {query_name!r}:")
                for stmt in statements:
                    logger.error(stmt[:500])
                if source_sql:
                    logger.error(f"Original SQL for query {query_name!r}: {source_sql[:300]}")
            self._record_failure(session, database_id, str(error), warnings)
            raise error from e

        except (ImportServiceError, CollaboratorError) as e:
            session.fail()
            logger.error(f"Import of query {query_name!r} rejected: {e}")
            self._record_failure(session, database_id, str(e), warnings)
            raise

        function_names = [f.name for f in converted.extracted_functions]
        details: dict[str, Any] = {
            "pg_object_type": converted.pg_object_type,
            "original_type": payload.query_type,
            **session.summary(),
        }
        if warnings:
            details["warnings"] = warnings
        if function_names:
            details["extracted_functions"] = function_names

        log_id = self.audit.record(
            source_path,
            query_name,
            "query",
            database_id,
            "success",
            details=details,
            issues=[IssueCreate(category="conversion-warning", message=w) for w in warnings],
        )
        logger.info(
            f"Imported query {query_name!r} as {converted.pg_object_type} "
            f"{schema_name}.{pg_name} ({len(warnings)} warnings)"
        )

        return QueryImportResult(
            query_name=pg_name,
            pg_object_type=converted.pg_object_type,
            warnings=warnings,
            original_type=payload.query_type,
            extracted_functions=function_names,
            import_log_id=log_id,
        )

    def _record_failure(
        self,
        session: ImportSession,
        database_id: str,
        message: str,
        warnings: list[str],
    ) -> None:
        details: dict[str, Any] = session.summary()
        if warnings:
            details["warnings"] = warnings
        self.audit.record(
            session.source_path,
            session.object_name,
            session.object_type,
            database_id,
            "error",
            error_message=message,
            details=details,
        )
