"""Table materialization engine: type mapping, naming, DDL, loading and reconciliation."""

from polyaccess.core.migration.identifiers import (
    index_name,
    qualified_name,
    quote_ident,
    sanitize_name,
)
from polyaccess.core.migration.type_mapper import (
    SemanticType,
    map_legacy_type,
    resolve_type,
    target_type_for,
)
from polyaccess.core.migration.plan import ColumnPlan, build_column_plan, primary_key_columns
from polyaccess.core.migration.state import ImportSession, ImportState, InvalidStateTransition
from polyaccess.core.migration.ddl import (
    CreateTableStatement,
    build_create_schema,
    build_create_table,
    build_drop_table,
    render_default,
)
from polyaccess.core.migration.loader import BatchLoader, build_insert
from polyaccess.core.migration.reconciler import PostLoadReconciler

__all__ = [
    # Identifiers
    "sanitize_name",
    "quote_ident",
    "qualified_name",
    "index_name",
    # Type mapping
    "SemanticType",
    "map_legacy_type",
    "resolve_type",
    "target_type_for",
    # Column plan
    "ColumnPlan",
    "build_column_plan",
    "primary_key_columns",
    # Lifecycle
    "ImportState",
    "ImportSession",
    "InvalidStateTransition",
    # DDL
    "CreateTableStatement",
    "build_create_table",
    "build_drop_table",
    "build_create_schema",
    "render_default",
    # Loading
    "BatchLoader",
    "build_insert",
    "PostLoadReconciler",
]
