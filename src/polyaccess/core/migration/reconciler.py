"""Post-load reconciliation: identity sequences and secondary indexes."""

import logging

from sqlalchemy import text
from sqlalchemy.engine import Connection

from polyaccess.core.migration.catalog import execute_verbatim
from polyaccess.core.migration.identifiers import (
    index_name,
    qualified_name,
    quote_ident,
    sanitize_name,
)
from polyaccess.core.migration.plan import ColumnPlan
from polyaccess.core.models.import_log import IssueCreate
from polyaccess.core.models.schemas import IndexDescriptor

logger = logging.getLogger(__name__)


def build_sequence_reset(schema_name: str, table_name: str, column_name: str) -> str:
    """SQL moving a column's identity sequence past the highest loaded value.

    Legacy autonumbers may be negative; the sequence floor is 1.
    """
    target = qualified_name(schema_name, table_name)
    return (
        f"SELECT setval(pg_get_serial_sequence(:table_name, :column_name), "
        f"(SELECT GREATEST(MAX({quote_ident(column_name)}), 1) FROM {target}))"
    )


def build_create_index(schema_name: str, table_name: str, index: IndexDescriptor) -> str:
    unique = "UNIQUE " if index.unique else ""
    columns = ", ".join(quote_ident(sanitize_name(name)) for name in index.fields)
    return (
        f"CREATE {unique}INDEX IF NOT EXISTS {quote_ident(index_name(table_name, index.name))} "
        f"ON {qualified_name(schema_name, table_name)} ({columns})"
    )


class PostLoadReconciler:
    """Brings a loaded table's sequences and indexes in line with its data."""

    def reconcile(
        self,
        connection: Connection,
        schema_name: str,
        table_name: str,
        plan: list[ColumnPlan],
        indexes: list[IndexDescriptor],
        row_count: int,
    ) -> list[IssueCreate]:
        """Reset identity sequences and create secondary indexes.

        Returns:
            Warnings for indexes that could not be created.
        """
        if row_count > 0:
            self.reset_sequences(connection, schema_name, table_name, plan)
        return self.create_indexes(connection, schema_name, table_name, plan, indexes)

    def reset_sequences(
        self,
        connection: Connection,
        schema_name: str,
        table_name: str,
        plan: list[ColumnPlan],
    ) -> None:
        for col in plan:
            if not col.is_auto_number:
                continue
            connection.execute(
                text(build_sequence_reset(schema_name, table_name, col.target_name)),
                {
                    "table_name": qualified_name(schema_name, table_name),
                    "column_name": col.target_name,
                },
            )
            logger.debug(f"Reset identity sequence for {table_name}.{col.target_name}")

    def create_indexes(
        self,
        connection: Connection,
        schema_name: str,
        table_name: str,
        plan: list[ColumnPlan],
        indexes: list[IndexDescriptor],
    ) -> list[IssueCreate]:
        known = {col.target_name for col in plan}
        warnings: list[IssueCreate] = []
        for index in indexes:
            if index.primary:
                continue
            missing = [name for name in index.fields if sanitize_name(name) not in known]
            if missing:
                warnings.append(
                    IssueCreate(
                        category="index-warning",
                        message=(
                            f'Index "{index.name}" skipped: references columns not in the '
                            f"imported table ({', '.join(missing)})"
                        ),
                        suggestion="Recreate the index after importing the missing columns.",
                    )
                )
                continue
            execute_verbatim(connection, build_create_index(schema_name, table_name, index))
        return warnings
