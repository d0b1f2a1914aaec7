"""Data models for polyaccess."""

from polyaccess.core.models.base import Base, TimestampMixin
from polyaccess.core.models.import_log import (
    ImportIssue,
    ImportIssueResponse,
    ImportLog,
    ImportLogResponse,
    IssueCreate,
)
from polyaccess.core.models.schemas import (
    ConvertedQuery,
    ExtractedFunction,
    ExtractionPayload,
    FieldDescriptor,
    ImportPlan,
    ImportPlanEntry,
    ImportPlanItemResult,
    IndexDescriptor,
    QueryImportResult,
    QueryPayload,
    SkippedColumn,
    TableImportResult,
    TablePayload,
)
from polyaccess.core.models.target_database import ControlColumnMap, TargetDatabase

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    # Admin tables
    "ImportLog",
    "ImportIssue",
    "TargetDatabase",
    "ControlColumnMap",
    # Audit schemas
    "IssueCreate",
    "ImportLogResponse",
    "ImportIssueResponse",
    # Collaborator payloads
    "FieldDescriptor",
    "IndexDescriptor",
    "SkippedColumn",
    "TablePayload",
    "QueryPayload",
    "ExtractionPayload",
    "ConvertedQuery",
    "ExtractedFunction",
    # Results
    "TableImportResult",
    "QueryImportResult",
    # Import plans
    "ImportPlan",
    "ImportPlanEntry",
    "ImportPlanItemResult",
]
