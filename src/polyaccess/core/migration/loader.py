"""Batched row loading into a freshly materialized table."""

import logging
from collections.abc import Iterator
from typing import Any

from sqlalchemy import text
from sqlalchemy.engine import Connection

from polyaccess.core.migration.identifiers import qualified_name, quote_ident
from polyaccess.core.migration.plan import ColumnPlan

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 500

# PostgreSQL wire protocol limit on bind parameters per statement.
MAX_BIND_PARAMETERS = 65535


def rows_per_batch(batch_size: int, column_count: int) -> int:
    """Rows per INSERT, capped so one statement stays under the bind limit."""
    if column_count <= 0:
        return batch_size
    return max(1, min(batch_size, MAX_BIND_PARAMETERS // column_count))


def build_insert(
    schema_name: str,
    table_name: str,
    columns: list[ColumnPlan],
    rows: list[dict[str, Any]],
    overriding_identity: bool = False,
) -> tuple[str, dict[str, Any]]:
    """Build one multi-row INSERT with named bind parameters.

    Values are looked up by each column's original legacy name; a missing key
    binds NULL.

    Returns:
        Tuple of (sql, params).
    """
    column_sql = ", ".join(quote_ident(col.target_name) for col in columns)
    params: dict[str, Any] = {}
    value_groups: list[str] = []
    n = 0
    for row in rows:
        placeholders: list[str] = []
        for col in columns:
            key = f"p{n}"
            params[key] = row.get(col.original_name)
            placeholders.append(f":{key}")
            n += 1
        value_groups.append(f"({', '.join(placeholders)})")

    overriding = " OVERRIDING SYSTEM VALUE" if overriding_identity else ""
    sql = (
        f"INSERT INTO {qualified_name(schema_name, table_name)} ({column_sql})"
        f"{overriding} VALUES {', '.join(value_groups)}"
    )
    return sql, params


def _chunks(rows: list[dict[str, Any]], size: int) -> Iterator[list[dict[str, Any]]]:
    for start in range(0, len(rows), size):
        yield rows[start : start + size]


class BatchLoader:
    """Inserts extracted rows in fixed-size batches inside the caller's transaction."""

    def __init__(self, batch_size: int = DEFAULT_BATCH_SIZE) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.batch_size = batch_size

    def load(
        self,
        connection: Connection,
        schema_name: str,
        table_name: str,
        plan: list[ColumnPlan],
        rows: list[dict[str, Any]],
    ) -> int:
        """Insert all rows, preserving legacy identity values.

        Args:
            connection: Connection with an open transaction.
            schema_name: Target namespace.
            table_name: Sanitized target table name.
            plan: Column plan; generated columns are excluded from the insert.
            rows: Extracted rows keyed by legacy column name.

        Returns:
            Number of rows inserted.
        """
        if not rows:
            return 0

        columns = [col for col in plan if col.is_insertable]
        target = qualified_name(schema_name, table_name)

        if not columns:
            for _ in rows:
                connection.execute(text(f"INSERT INTO {target} DEFAULT VALUES"))
            return len(rows)

        overriding = any(col.is_auto_number for col in columns)
        size = rows_per_batch(self.batch_size, len(columns))
        inserted = 0
        for batch in _chunks(rows, size):
            sql, params = build_insert(schema_name, table_name, columns, batch, overriding)
            connection.execute(text(sql), params)
            inserted += len(batch)
            logger.debug(f"Inserted {inserted}/{len(rows)} rows into {target}")
        return inserted
