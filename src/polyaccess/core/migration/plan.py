"""Column plan: the per-import view of a legacy table's columns."""

from dataclasses import dataclass
from typing import Any

from polyaccess.core.migration.identifiers import sanitize_name
from polyaccess.core.migration.type_mapper import target_type_for
from polyaccess.core.models.schemas import FieldDescriptor, IndexDescriptor


@dataclass(frozen=True)
class ColumnPlan:
    """One target column, computed once and shared by DDL, DML and reconciliation."""

    original_name: str
    target_name: str
    target_type: str
    required: bool = False
    is_auto_number: bool = False
    is_calculated: bool = False
    expression: str | None = None
    default_value: Any = None

    @property
    def is_insertable(self) -> bool:
        """Generated columns are computed by the store and never inserted."""
        return not self.is_calculated


def build_column_plan(fields: list[FieldDescriptor]) -> list[ColumnPlan]:
    """Build the column plan for a list of legacy fields.

    Columns whose sanitized name is empty (names made only of punctuation)
    are dropped; the caller decides whether anything importable is left.
    """
    plan: list[ColumnPlan] = []
    for field in fields:
        target_name = sanitize_name(field.name)
        if not target_name:
            continue
        classification = field.classification
        plan.append(
            ColumnPlan(
                original_name=field.name,
                target_name=target_name,
                target_type=target_type_for(field),
                required=field.required,
                is_auto_number=classification == "autonumber",
                is_calculated=classification == "calculated",
                expression=field.expression if classification == "calculated" else None,
                default_value=field.default_value,
            )
        )
    return plan


def primary_key_columns(indexes: list[IndexDescriptor]) -> list[str]:
    """Sanitized primary key column names, empty when no primary index exists."""
    primary = next((idx for idx in indexes if idx.primary), None)
    if primary is None:
        return []
    return [sanitize_name(name) for name in primary.fields]
