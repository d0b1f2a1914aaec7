"""Service for the target database registry."""

from sqlalchemy.orm import Session

from polyaccess.core.migration.identifiers import MAX_IDENTIFIER_LENGTH, sanitize_name
from polyaccess.core.models import TargetDatabase
from polyaccess.core.repositories import ControlColumnMapRepository, TargetDatabaseRepository
from polyaccess.core.services.exceptions import (
    InvalidIdentifierError,
    MissingParameterError,
    TargetDatabaseExistsError,
    TargetDatabaseNotFoundError,
)


class TargetDatabaseService:
    """Maps target database ids to the PostgreSQL schema that holds their objects."""

    def __init__(self, session: Session) -> None:
        self.session = session
        self.repo = TargetDatabaseRepository(session)
        self.control_repo = ControlColumnMapRepository(session)

    def register(
        self,
        database_id: str,
        name: str | None = None,
        schema_name: str | None = None,
        description: str | None = None,
    ) -> TargetDatabase:
        """Register a new target database.

        Args:
            database_id: Unique id used by every import call.
            name: Human-readable name (defaults to the id).
            schema_name: Target schema (defaults to the sanitized id).
            description: Optional description.

        Returns:
            Created TargetDatabase instance.

        Raises:
            MissingParameterError: If database_id is empty.
            InvalidIdentifierError: If the schema name sanitizes to nothing.
            TargetDatabaseExistsError: If the id or schema is already registered.
        """
        if not database_id:
            raise MissingParameterError("database_id")

        schema = sanitize_name(schema_name or database_id)[:MAX_IDENTIFIER_LENGTH]
        if not schema:
            raise InvalidIdentifierError(schema_name or database_id)

        if self.repo.exists(database_id):
            raise TargetDatabaseExistsError(database_id)
        if self.repo.get_by_schema(schema) is not None:
            raise TargetDatabaseExistsError(schema)

        database = self.repo.create(
            database_id=database_id,
            name=name or database_id,
            schema_name=schema,
            description=description,
        )
        self.repo.flush()
        return database

    def list_databases(self) -> list[TargetDatabase]:
        return self.repo.list_ordered()

    def get_database(self, database_id: str) -> TargetDatabase:
        """Get a registered database.

        Raises:
            TargetDatabaseNotFoundError: If the id is not registered.
        """
        database = self.repo.get_by_id(database_id)
        if database is None:
            raise TargetDatabaseNotFoundError(database_id)
        return database

    def resolve_schema(self, database_id: str) -> str:
        return self.get_database(database_id).schema_name

    def control_mapping(self, database_id: str) -> dict[str, dict[str, str]]:
        return self.control_repo.get_mapping(database_id)
