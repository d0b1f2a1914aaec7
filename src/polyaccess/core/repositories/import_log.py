"""Repositories for the import audit log and its issues."""

from typing import Any

from sqlalchemy import select

from polyaccess.core.models import ImportIssue, ImportLog, IssueCreate
from polyaccess.core.repositories.base import BaseRepository


class ImportLogRepository(BaseRepository[ImportLog]):
    """Repository for append-only import log entries."""

    model = ImportLog

    def create(
        self,
        source_path: str,
        source_object_name: str,
        source_object_type: str,
        target_database_id: str,
        status: str,
        error_message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> ImportLog:
        """Append a new log entry.

        Returns:
            The created ImportLog instance (id populated after flush).
        """
        entry = ImportLog(
            source_path=source_path,
            source_object_name=source_object_name,
            source_object_type=source_object_type,
            target_database_id=target_database_id,
            status=status,
            error_message=error_message,
            details=details,
        )
        self.add(entry)
        return entry

    def list_entries(
        self,
        source_path: str | None = None,
        target_database_id: str | None = None,
        status: str | None = None,
        limit: int | None = None,
    ) -> list[ImportLog]:
        """List entries newest first, optionally filtered.

        Args:
            source_path: Only entries for this legacy file.
            target_database_id: Only entries for this target database.
            status: Only entries with this status ('success' or 'error').
            limit: Maximum number of entries to return.
        """
        stmt = select(ImportLog)
        if source_path is not None:
            stmt = stmt.where(ImportLog.source_path == source_path)
        if target_database_id is not None:
            stmt = stmt.where(ImportLog.target_database_id == target_database_id)
        if status is not None:
            stmt = stmt.where(ImportLog.status == status)
        stmt = stmt.order_by(ImportLog.created_at.desc(), ImportLog.id.desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.session.scalars(stmt))


class ImportIssueRepository(BaseRepository[ImportIssue]):
    """Repository for import issues."""

    model = ImportIssue

    def create_many(
        self,
        import_log_id: int | None,
        database_id: str,
        object_name: str,
        object_type: str,
        issues: list[IssueCreate],
    ) -> list[ImportIssue]:
        """Persist a batch of collected issues against one log entry."""
        rows = [
            ImportIssue(
                import_log_id=import_log_id,
                database_id=database_id,
                object_name=object_name,
                object_type=object_type,
                severity=issue.severity,
                category=issue.category,
                message=issue.message,
                suggestion=issue.suggestion,
            )
            for issue in issues
        ]
        self.session.add_all(rows)
        return rows

    def list_issues(
        self,
        database_id: str | None = None,
        import_log_id: int | None = None,
        category: str | None = None,
        include_resolved: bool = False,
    ) -> list[ImportIssue]:
        """List issues oldest first, optionally filtered."""
        stmt = select(ImportIssue)
        if database_id is not None:
            stmt = stmt.where(ImportIssue.database_id == database_id)
        if import_log_id is not None:
            stmt = stmt.where(ImportIssue.import_log_id == import_log_id)
        if category is not None:
            stmt = stmt.where(ImportIssue.category == category)
        if not include_resolved:
            stmt = stmt.where(ImportIssue.resolved == False)  # noqa: E712
        stmt = stmt.order_by(ImportIssue.id)
        return list(self.session.scalars(stmt))
