"""DDL synthesis for imported tables."""

import math
import re
from collections.abc import Collection
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from polyaccess.core.collaborators.exceptions import ExpressionConversionError
from polyaccess.core.migration.identifiers import qualified_name, quote_ident
from polyaccess.core.migration.plan import ColumnPlan
from polyaccess.core.models.import_log import IssueCreate

if TYPE_CHECKING:
    from polyaccess.core.collaborators.expressions import ExpressionConverter

IDENTITY_CLAUSE = "integer GENERATED BY DEFAULT AS IDENTITY"

_NUMERIC_LITERAL = re.compile(r"^-?\d+(\.\d+)?$")
_QUOTED_LITERAL = re.compile(r"""^(["'])(.*)\1$""", re.DOTALL)
_NUMERIC_TYPES = ("smallint", "integer", "bigint", "real", "double precision", "numeric")
_TEXT_TYPES = ("character", "varchar", "text")
_TEMPORAL_TYPES = ("timestamp", "date", "time")
_TRUE_WORDS = {"true", "yes", "-1", "on"}
_FALSE_WORDS = {"false", "no", "0", "off"}
_CLOCK_DEFAULTS = {
    "now()": "CURRENT_TIMESTAMP",
    "date()": "CURRENT_DATE",
    "time()": "CURRENT_TIME",
}


@dataclass
class CreateTableStatement:
    """A CREATE TABLE statement plus the deviations made while building it."""

    sql: str
    warnings: list[IssueCreate] = field(default_factory=list)
    generated_columns: list[str] = field(default_factory=list)


def render_default(value: Any, target_type: str) -> str | None:
    """Render a legacy default value as a SQL literal for ``target_type``.

    Returns None when there is no default.

    Raises:
        ValueError: If the default cannot be expressed safely or does not
            fit the column type.
    """
    if value is None:
        return None
    is_boolean = target_type == "boolean"
    is_numeric = target_type.startswith(_NUMERIC_TYPES)
    is_text = target_type.startswith(_TEXT_TYPES)

    if isinstance(value, bool):
        if not is_boolean:
            raise ValueError(f"boolean default {value!r} for {target_type} column")
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        if is_boolean:
            return "false" if value == 0 else "true"
        if is_numeric and math.isfinite(value):
            return repr(value)
        if is_text:
            return f"'{value!r}'"
        raise ValueError(f"numeric default {value!r} for {target_type} column")

    text = str(value).strip()
    if text.startswith("="):
        text = text[1:].strip()
    if not text:
        return None

    if text.lower() in _CLOCK_DEFAULTS and target_type.startswith(_TEMPORAL_TYPES):
        return _CLOCK_DEFAULTS[text.lower()]

    if is_boolean:
        if text.lower() in _TRUE_WORDS:
            return "true"
        if text.lower() in _FALSE_WORDS:
            return "false"
        raise ValueError(f"unsupported boolean default {text!r}")

    quoted = _QUOTED_LITERAL.match(text)
    if quoted:
        if not is_text:
            raise ValueError(f"string default {text} for {target_type} column")
        return "'" + quoted.group(2).replace("'", "''") + "'"

    if _NUMERIC_LITERAL.match(text):
        if is_numeric:
            return text
        if is_text:
            return f"'{text}'"
        raise ValueError(f"numeric default {text!r} for {target_type} column")

    raise ValueError(f"unsupported default expression {text!r}")


def column_clause(
    column: ColumnPlan,
    expression_converter: "ExpressionConverter",
    warnings: list[IssueCreate],
    generated_columns: list[str],
    stored_columns: Collection[str] | None = None,
) -> str:
    """Render one column definition.

    Calculated columns whose formula is missing, cannot be converted, or reads
    a column outside ``stored_columns`` fall back to a nullable column of the
    mapped type and add a warning.
    """
    clause = f"{quote_ident(column.target_name)} "

    if column.is_calculated:
        if not column.expression:
            warnings.append(
                IssueCreate(
                    category="calculated-column",
                    message=(
                        f'Column "{column.original_name}": no expression extracted from '
                        f"the legacy database, created as nullable {column.target_type} instead"
                    ),
                    suggestion="Recreate the formula as a view or application-side computation.",
                )
            )
            return clause + column.target_type
        try:
            converted = expression_converter.convert(column.expression, stored_columns)
        except ExpressionConversionError as e:
            warnings.append(
                IssueCreate(
                    category="calculated-column",
                    message=(
                        f'Column "{column.original_name}": expression conversion failed '
                        f"({e.message}), created as nullable {column.target_type} instead"
                    ),
                    suggestion=f"Original expression: {column.expression}",
                )
            )
            return clause + column.target_type
        generated_columns.append(column.target_name)
        return clause + f"{column.target_type} GENERATED ALWAYS AS ({converted}) STORED"

    if column.is_auto_number:
        return clause + IDENTITY_CLAUSE

    clause += column.target_type
    try:
        default = render_default(column.default_value, column.target_type)
    except ValueError as e:
        default = None
        warnings.append(
            IssueCreate(
                category="default-value",
                message=f'Column "{column.original_name}": default value dropped ({e})',
                suggestion="Set the default manually if the application relies on it.",
            )
        )
    if default is not None:
        clause += f" DEFAULT {default}"
    if column.required:
        clause += " NOT NULL"
    return clause


def build_create_table(
    schema_name: str,
    table_name: str,
    plan: list[ColumnPlan],
    primary_key: list[str],
    expression_converter: "ExpressionConverter",
) -> CreateTableStatement:
    """Build the CREATE TABLE statement for a column plan.

    Args:
        schema_name: Target namespace.
        table_name: Sanitized target table name.
        plan: Column plan for the table.
        primary_key: Sanitized primary key column names (may be empty).
        expression_converter: Converter for calculated-column formulas.

    Returns:
        CreateTableStatement with the SQL and any warnings.
    """
    warnings: list[IssueCreate] = []
    generated_columns: list[str] = []
    stored_columns = {column.target_name for column in plan if not column.is_calculated}
    definitions = [
        column_clause(column, expression_converter, warnings, generated_columns, stored_columns)
        for column in plan
    ]
    if primary_key:
        definitions.append(f"PRIMARY KEY ({', '.join(quote_ident(n) for n in primary_key)})")

    sql = (
        f"CREATE TABLE {qualified_name(schema_name, table_name)} (\n  "
        + ",\n  ".join(definitions)
        + "\n)"
    )
    return CreateTableStatement(sql=sql, warnings=warnings, generated_columns=generated_columns)


def build_drop_table(schema_name: str, table_name: str) -> str:
    return f"DROP TABLE IF EXISTS {qualified_name(schema_name, table_name)} CASCADE"


def build_create_schema(schema_name: str) -> str:
    return f"CREATE SCHEMA IF NOT EXISTS {quote_ident(schema_name)}"
