"""Pydantic schemas for collaborator payloads and import results."""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

CALCULATED_TYPE_CODE = 18

FieldClassification = Literal["plain", "autonumber", "calculated"]


class _Payload(BaseModel):
    """Shared config: accept camelCase keys from the extractor, ignore unknowns."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# =============================================================================
# Extraction Payloads
# =============================================================================


class FieldDescriptor(_Payload):
    """A legacy column as reported by the extractor."""

    name: str = Field(..., min_length=1, description="Legacy column name")
    type: int | str | None = Field(None, description="Legacy type code or symbolic type name")
    size: int | None = Field(None, description="Declared size for text columns")
    max_length: int | None = Field(None, alias="maxLength")
    precision: int | None = None
    scale: int | None = None
    field_size: str | None = Field(None, alias="fieldSize")
    result_type: int | str | None = Field(None, alias="resultType")
    is_auto_number: bool = Field(False, alias="isAutoNumber")
    is_calculated: bool = Field(False, alias="isCalculated")
    expression: str | None = None
    required: bool = False
    default_value: Any = Field(None, alias="defaultValue")

    @property
    def classification(self) -> FieldClassification:
        """Exactly one of plain / autonumber / calculated applies."""
        if self.is_calculated or self.type == CALCULATED_TYPE_CODE:
            return "calculated"
        if self.is_auto_number:
            return "autonumber"
        return "plain"


class IndexDescriptor(_Payload):
    """A legacy index. The primary one defines the target primary key."""

    name: str = Field(..., min_length=1)
    fields: list[str] = Field(..., min_length=1)
    unique: bool = False
    primary: bool = False


class SkippedColumn(_Payload):
    """A column the extractor could not export (attachments, OLE objects, ...)."""

    name: str
    type: int | str | None = None


class TablePayload(_Payload):
    """Structure and rows of one legacy table."""

    kind: Literal["table"] = "table"
    fields: list[FieldDescriptor] = Field(default_factory=list)
    indexes: list[IndexDescriptor] = Field(default_factory=list)
    rows: list[dict[str, Any]] = Field(default_factory=list)
    skipped_columns: list[SkippedColumn] = Field(default_factory=list, alias="skippedColumns")

    @model_validator(mode="after")
    def validate_single_primary(self) -> "TablePayload":
        """At most one index may be flagged primary."""
        primaries = [idx.name for idx in self.indexes if idx.primary]
        if len(primaries) > 1:
            raise ValueError(f"More than one primary index: {', '.join(primaries)}")
        return self

    @property
    def primary_index(self) -> IndexDescriptor | None:
        return next((idx for idx in self.indexes if idx.primary), None)


class QueryPayload(_Payload):
    """Definition of one legacy stored query."""

    kind: Literal["query"] = "query"
    query_name: str | None = Field(None, alias="queryName")
    sql: str = ""
    query_type: str | None = Field(None, alias="queryType")
    query_type_code: int | None = Field(None, alias="queryTypeCode")
    parameters: list[dict[str, Any]] = Field(default_factory=list)
    param_warning: str | None = Field(None, alias="paramWarning")


ExtractionPayload = Annotated[TablePayload | QueryPayload, Field(discriminator="kind")]


# =============================================================================
# Dialect Conversion
# =============================================================================


class ExtractedFunction(_Payload):
    """A helper routine the query converter had to synthesize."""

    name: str


class ConvertedQuery(_Payload):
    """Statements produced by the query converter for one legacy query."""

    statements: list[str] = Field(default_factory=list)
    pg_object_name: str = Field(..., alias="pgObjectName")
    pg_object_type: str = Field("view", alias="pgObjectType")
    warnings: list[str] = Field(default_factory=list)
    extracted_functions: list[ExtractedFunction] = Field(
        default_factory=list, alias="extractedFunctions"
    )

    @field_validator("statements")
    @classmethod
    def drop_blank_statements(cls, value: list[str]) -> list[str]:
        return [stmt for stmt in value if stmt and stmt.strip()]


# =============================================================================
# Results
# =============================================================================


class TableImportResult(BaseModel):
    """Outcome of a successful table import."""

    success: bool = True
    table_name: str
    field_count: int
    row_count: int
    skipped_columns: list[str] = Field(default_factory=list)
    calculated_columns: list[str] = Field(default_factory=list)
    generated_columns: list[str] = Field(default_factory=list)
    calculated_warnings: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    import_log_id: int | None = None


class QueryImportResult(BaseModel):
    """Outcome of a successful query import."""

    success: bool = True
    query_name: str
    pg_object_type: str
    warnings: list[str] = Field(default_factory=list)
    original_type: str | None = None
    extracted_functions: list[str] = Field(default_factory=list)
    import_log_id: int | None = None


# =============================================================================
# Import Plans
# =============================================================================


class ImportPlanEntry(BaseModel):
    """One table or query in an import plan."""

    name: str = Field(..., min_length=1)
    force: bool | None = Field(None, description="Overrides the plan-level force flag")


class ImportPlan(BaseModel):
    """A YAML-described batch of imports from one legacy file into one target."""

    source_path: str = Field(..., min_length=1)
    database_id: str = Field(..., min_length=1)
    force: bool = False
    stop_on_error: bool = False
    tables: list[ImportPlanEntry] = Field(default_factory=list)
    queries: list[ImportPlanEntry] = Field(default_factory=list)

    @field_validator("tables", "queries", mode="before")
    @classmethod
    def expand_bare_names(cls, value: Any) -> Any:
        """Allow ``- Customers`` as shorthand for ``- name: Customers``."""
        if isinstance(value, list):
            return [{"name": item} if isinstance(item, str) else item for item in value]
        return value


class ImportPlanItemResult(BaseModel):
    """Outcome of one plan entry."""

    kind: Literal["table", "query"]
    name: str
    success: bool
    error: str | None = None
    target_name: str | None = None
    warnings: list[str] = Field(default_factory=list)
