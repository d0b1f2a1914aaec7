"""Admin tables: target database registry, control mapping, import log and issues.

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

from polyaccess.config import get_settings

# Revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _admin_schema() -> str | None:
    if op.get_bind().dialect.name != "postgresql":
        return None
    return get_settings().admin_schema


def upgrade() -> None:
    schema = _admin_schema()
    if schema is not None:
        op.execute(sa.text(f'CREATE SCHEMA IF NOT EXISTS "{schema}"'))

    op.create_table(
        "databases",
        sa.Column("database_id", sa.String(length=100), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("schema_name", sa.String(length=63), nullable=False),
        sa.Column("description", sa.String(length=1000), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.PrimaryKeyConstraint("database_id"),
        sa.UniqueConstraint("schema_name"),
        schema=schema,
    )

    op.create_table(
        "control_column_map",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("database_id", sa.String(length=100), nullable=False),
        sa.Column("form_name", sa.String(length=255), nullable=False),
        sa.Column("control_name", sa.String(length=255), nullable=False),
        sa.Column("table_name", sa.String(length=255), nullable=False),
        sa.Column("column_name", sa.String(length=255), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "database_id", "form_name", "control_name", name="uq_control_column_map_control"
        ),
        schema=schema,
    )
    op.create_index(
        "ix_control_column_map_database_id",
        "control_column_map",
        ["database_id"],
        schema=schema,
    )

    op.create_table(
        "import_log",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("source_path", sa.Text(), nullable=False),
        sa.Column("source_object_name", sa.String(length=255), nullable=False),
        sa.Column("source_object_type", sa.String(length=20), nullable=False),
        sa.Column("target_database_id", sa.String(length=100), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.PrimaryKeyConstraint("id"),
        schema=schema,
    )
    op.create_index("ix_import_log_source_path", "import_log", ["source_path"], schema=schema)
    op.create_index(
        "ix_import_log_target_database_id", "import_log", ["target_database_id"], schema=schema
    )

    op.create_table(
        "import_issues",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("import_log_id", sa.Integer(), nullable=True),
        sa.Column("database_id", sa.String(length=100), nullable=False),
        sa.Column("object_name", sa.String(length=255), nullable=False),
        sa.Column("object_type", sa.String(length=20), nullable=False),
        sa.Column("severity", sa.String(length=20), nullable=False),
        sa.Column("category", sa.String(length=50), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("suggestion", sa.Text(), nullable=True),
        sa.Column("resolved", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "created_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.ForeignKeyConstraint(
            ["import_log_id"],
            [f"{schema}.import_log.id" if schema else "import_log.id"],
        ),
        sa.PrimaryKeyConstraint("id"),
        schema=schema,
    )
    op.create_index(
        "ix_import_issues_import_log_id", "import_issues", ["import_log_id"], schema=schema
    )
    op.create_index(
        "ix_import_issues_database_id", "import_issues", ["database_id"], schema=schema
    )


def downgrade() -> None:
    schema = _admin_schema()
    op.drop_table("import_issues", schema=schema)
    op.drop_table("import_log", schema=schema)
    op.drop_table("control_column_map", schema=schema)
    op.drop_table("databases", schema=schema)
