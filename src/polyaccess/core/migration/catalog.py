"""Target-store introspection and locking used around materialization."""

from typing import Literal

from sqlalchemy import text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import DBAPIError

ObjectKind = Literal["table", "view", "function"]

# No parameter set reaches the driver, so psycopg does not scan the text for
# placeholders and a bare % (LIKE patterns, modulo) survives.
VERBATIM_OPTIONS = {"no_parameters": True}

_EXISTS_QUERIES: dict[str, str] = {
    "table": """
        SELECT 1 FROM information_schema.tables
        WHERE table_schema = :schema_name AND table_name = :object_name
    """,
    "view": """
        SELECT 1 FROM information_schema.views
        WHERE table_schema = :schema_name AND table_name = :object_name
    """,
    "function": """
        SELECT 1 FROM information_schema.routines
        WHERE routine_schema = :schema_name AND routine_name = :object_name
    """,
}


def object_exists(
    connection: Connection,
    schema_name: str,
    object_name: str,
    kind: ObjectKind = "table",
) -> bool:
    """Check whether an object of the given kind exists in the namespace."""
    row = connection.execute(
        text(_EXISTS_QUERIES[kind]),
        {"schema_name": schema_name, "object_name": object_name},
    ).first()
    return row is not None


def lock_object_name(connection: Connection, schema_name: str, object_name: str) -> None:
    """Serialize imports of the same target name for the rest of the transaction.

    The existence check and the CREATE that follows are only atomic with
    respect to other imports holding the same advisory lock.
    """
    connection.execute(
        text("SELECT pg_advisory_xact_lock(hashtext(:lock_key))"),
        {"lock_key": f"{schema_name}.{object_name}"},
    )


def column_types(connection: Connection, schema_name: str) -> dict[str, str]:
    """Map ``table.column`` and bare ``column`` → data type for a namespace.

    Bare column keys resolve to whichever table information_schema lists last,
    matching how the query converter falls back when a reference is unqualified.
    """
    rows = connection.execute(
        text(
            """
            SELECT table_name, column_name, data_type
            FROM information_schema.columns
            WHERE table_schema = :schema_name
            ORDER BY table_name, ordinal_position
            """
        ),
        {"schema_name": schema_name},
    )
    types: dict[str, str] = {}
    for table_name, column_name, data_type in rows:
        types[f"{table_name}.{column_name}"] = data_type
        types[column_name] = data_type
    return types


# duplicate_table, duplicate_object, duplicate_function
DUPLICATE_OBJECT_SQLSTATES = frozenset({"42P07", "42710", "42723"})


def is_duplicate_object_error(error: DBAPIError) -> bool:
    """True when the store rejected a CREATE because the name is taken."""
    orig = error.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    return code in DUPLICATE_OBJECT_SQLSTATES


def execute_verbatim(connection: Connection, sql: str) -> None:
    """Run generated or converter-supplied SQL exactly as written."""
    connection.exec_driver_sql(sql, execution_options=VERBATIM_OPTIONS)
