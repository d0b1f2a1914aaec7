"""Import audit log and issue models."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects.sqlite import JSON
from sqlalchemy.orm import Mapped, mapped_column

from polyaccess.core.models.base import Base

# =============================================================================
# Type Aliases
# =============================================================================

SourceObjectType = Literal["table", "query", "form", "report", "module", "macro"]
ImportStatus = Literal["success", "error"]
Severity = Literal["warning", "error"]
IssueCategory = Literal[
    "skipped-column",
    "calculated-column",
    "conversion-warning",
    "default-value",
    "index-warning",
]


# =============================================================================
# SQLAlchemy Models
# =============================================================================


class ImportLog(Base):
    """One row per import attempt. Append-only: never updated after insert."""

    __tablename__ = "import_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    source_path: Mapped[str] = mapped_column(Text, nullable=False)
    source_object_name: Mapped[str] = mapped_column(String(255), nullable=False)
    source_object_type: Mapped[str] = mapped_column(String(20), nullable=False)
    target_database_id: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    details: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
    )

    __table_args__ = (
        Index("ix_import_log_source_path", "source_path"),
        Index("ix_import_log_target_database_id", "target_database_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<ImportLog(id={self.id}, object={self.source_object_name!r}, "
            f"status={self.status!r})>"
        )


class ImportIssue(Base):
    """A warning or error attached to one import attempt.

    Issues reference their log entry without cascading deletes so the
    history survives independently.
    """

    __tablename__ = "import_issues"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    import_log_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("import_log.id"),
        nullable=True,
    )
    database_id: Mapped[str] = mapped_column(String(100), nullable=False)
    object_name: Mapped[str] = mapped_column(String(255), nullable=False)
    object_type: Mapped[str] = mapped_column(String(20), nullable=False)
    severity: Mapped[str] = mapped_column(String(20), nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    suggestion: Mapped[str | None] = mapped_column(Text, nullable=True)
    resolved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
    )

    __table_args__ = (
        Index("ix_import_issues_import_log_id", "import_log_id"),
        Index("ix_import_issues_database_id", "database_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<ImportIssue(id={self.id}, severity={self.severity!r}, "
            f"category={self.category!r})>"
        )


# =============================================================================
# Pydantic Schemas
# =============================================================================


class IssueCreate(BaseModel):
    """An issue collected during an import, persisted with its log entry."""

    severity: Severity = "warning"
    category: IssueCategory
    message: str
    suggestion: str | None = None


class ImportLogResponse(BaseModel):
    """Response for an import log entry."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    source_path: str
    source_object_name: str
    source_object_type: str
    target_database_id: str
    status: str
    error_message: str | None = None
    details: dict[str, Any] | None = None
    created_at: datetime


class ImportIssueResponse(BaseModel):
    """Response for an import issue."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    import_log_id: int | None = None
    database_id: str
    object_name: str
    object_type: str
    severity: str
    category: str
    message: str
    suggestion: str | None = None
    resolved: bool = Field(False, description="Toggled by the review workflow")
    created_at: datetime
