"""Repositories for registered target databases and control mappings."""

from sqlalchemy import select

from polyaccess.core.models import ControlColumnMap, TargetDatabase
from polyaccess.core.repositories.base import BaseRepository


class TargetDatabaseRepository(BaseRepository[TargetDatabase]):
    """Repository for TargetDatabase records."""

    model = TargetDatabase

    def get_by_schema(self, schema_name: str) -> TargetDatabase | None:
        stmt = select(TargetDatabase).where(TargetDatabase.schema_name == schema_name)
        return self.session.scalar(stmt)

    def exists(self, database_id: str) -> bool:
        return self.get_by_id(database_id) is not None

    def create(
        self,
        database_id: str,
        name: str,
        schema_name: str,
        description: str | None = None,
    ) -> TargetDatabase:
        database = TargetDatabase(
            database_id=database_id,
            name=name,
            schema_name=schema_name,
            description=description,
        )
        self.add(database)
        return database

    def list_ordered(self) -> list[TargetDatabase]:
        stmt = select(TargetDatabase).order_by(TargetDatabase.database_id)
        return list(self.session.scalars(stmt))


class ControlColumnMapRepository(BaseRepository[ControlColumnMap]):
    """Repository for form control → column bindings."""

    model = ControlColumnMap

    def get_mapping(self, database_id: str) -> dict[str, dict[str, str]]:
        """Build the ``form.control`` → ``{"table", "column"}`` lookup for one database."""
        stmt = select(ControlColumnMap).where(ControlColumnMap.database_id == database_id)
        return {
            f"{row.form_name}.{row.control_name}": {
                "table": row.table_name,
                "column": row.column_name,
            }
            for row in self.session.scalars(stmt)
        }
