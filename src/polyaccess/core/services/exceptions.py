"""Exceptions raised by the import services."""

from polyaccess.core.collaborators.exceptions import ExtractionPayloadError


class ImportServiceError(Exception):
    """Raised when an import service operation fails."""

    pass


class MissingParameterError(ImportServiceError):
    """Raised when a required import parameter is missing or empty."""

    def __init__(self, parameter: str) -> None:
        super().__init__(f"Missing required parameter: {parameter}")
        self.parameter = parameter


class InvalidIdentifierError(ImportServiceError):
    """Raised when a legacy name sanitizes to an empty identifier."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Name {name!r} has no usable identifier characters")
        self.name = name


class NoImportableColumnsError(ImportServiceError):
    """Raised when a table has no column that can be materialized."""

    def __init__(self, table_name: str) -> None:
        super().__init__(f"Table {table_name!r} has no importable columns")
        self.table_name = table_name


class TargetDatabaseNotFoundError(ImportServiceError):
    """Raised when a target database id is not registered."""

    def __init__(self, database_id: str) -> None:
        super().__init__(f"Target database not found: {database_id!r}")
        self.database_id = database_id


class TargetDatabaseExistsError(ImportServiceError):
    """Raised when registering a database id or schema that is already taken."""

    def __init__(self, identifier: str) -> None:
        super().__init__(f"Target database already exists: {identifier!r}")
        self.identifier = identifier


class NoStatementsGeneratedError(ImportServiceError):
    """Raised when the query converter produced nothing to execute."""

    def __init__(self, query_name: str, warnings: list[str] | None = None) -> None:
        super().__init__("No SQL statements generated")
        self.query_name = query_name
        self.warnings = warnings or []


class TargetExistsError(ImportServiceError):
    """Raised when the target object already exists and force was not requested."""

    def __init__(self, schema_name: str, object_name: str, kind: str = "table") -> None:
        super().__init__(
            f'{kind.capitalize()} "{object_name}" already exists in target database'
        )
        self.schema_name = schema_name
        self.object_name = object_name
        self.kind = kind


class MaterializationError(ImportServiceError):
    """Raised when a statement fails inside the import transaction.

    The transaction has been rolled back; ``statement`` is the failing SQL.
    """

    def __init__(
        self,
        message: str,
        statement: str | None = None,
        source_sql: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.statement = statement
        self.source_sql = source_sql


__all__ = [
    "ImportServiceError",
    "MissingParameterError",
    "InvalidIdentifierError",
    "NoImportableColumnsError",
    "TargetDatabaseNotFoundError",
    "TargetDatabaseExistsError",
    "NoStatementsGeneratedError",
    "TargetExistsError",
    "MaterializationError",
    "ExtractionPayloadError",
]
