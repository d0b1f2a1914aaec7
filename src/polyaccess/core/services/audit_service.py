"""Service for the import audit log."""

import logging
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from polyaccess.core.models import ImportIssueResponse, ImportLogResponse, IssueCreate
from polyaccess.core.repositories import ImportIssueRepository, ImportLogRepository

logger = logging.getLogger(__name__)

NO_DATABASE = "_none"


class AuditService:
    """Records import attempts and their issues, and answers history queries.

    Entries are committed as soon as they are written so that a failed
    import still leaves its error entry behind. A failure to write the audit
    trail is logged and never replaces the import's own outcome.
    """

    def __init__(self, session: Session) -> None:
        self.session = session
        self.log_repo = ImportLogRepository(session)
        self.issue_repo = ImportIssueRepository(session)

    def record(
        self,
        source_path: str,
        object_name: str,
        object_type: str,
        database_id: str | None,
        status: str,
        error_message: str | None = None,
        details: dict[str, Any] | None = None,
        issues: list[IssueCreate] | None = None,
    ) -> int | None:
        """Append one log entry with its issues.

        Args:
            source_path: Legacy file the object came from.
            object_name: Legacy object name.
            object_type: 'table', 'query', ...
            database_id: Target database id; recorded as '_none' when absent.
            status: 'success' or 'error'.
            error_message: Failure message for error entries.
            details: Free-form JSON details.
            issues: Issues to attach to the entry.

        Returns:
            The new entry's id, or None if the audit write failed.
        """
        target = database_id or NO_DATABASE
        try:
            entry = self.log_repo.create(
                source_path=source_path or "",
                source_object_name=object_name or "",
                source_object_type=object_type,
                target_database_id=target,
                status=status,
                error_message=error_message,
                details=details,
            )
            self.log_repo.flush()
            entry_id = entry.id
            if issues:
                self.issue_repo.create_many(
                    import_log_id=entry_id,
                    database_id=target,
                    object_name=object_name or "",
                    object_type=object_type,
                    issues=issues,
                )
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception(f"Failed to write import log entry for {object_type} {object_name!r}")
            return None

        logger.info(f"Import log: {object_type} {object_name!r} → {status}")
        return entry_id

    def history_for_source(
        self, source_path: str, limit: int | None = None
    ) -> list[ImportLogResponse]:
        """Entries for one legacy file, newest first."""
        entries = self.log_repo.list_entries(source_path=source_path, limit=limit)
        return [ImportLogResponse.model_validate(e) for e in entries]

    def history_for_database(
        self,
        database_id: str,
        status: str | None = None,
        limit: int | None = None,
    ) -> list[ImportLogResponse]:
        """Entries for one target database, newest first."""
        entries = self.log_repo.list_entries(
            target_database_id=database_id, status=status, limit=limit
        )
        return [ImportLogResponse.model_validate(e) for e in entries]

    def list_entries(
        self,
        source_path: str | None = None,
        database_id: str | None = None,
        status: str | None = None,
        limit: int | None = None,
    ) -> list[ImportLogResponse]:
        entries = self.log_repo.list_entries(
            source_path=source_path,
            target_database_id=database_id,
            status=status,
            limit=limit,
        )
        return [ImportLogResponse.model_validate(e) for e in entries]

    def issues_for_database(
        self,
        database_id: str,
        category: str | None = None,
        include_resolved: bool = False,
    ) -> list[ImportIssueResponse]:
        """Open issues for one target database, oldest first."""
        issues = self.issue_repo.list_issues(
            database_id=database_id,
            category=category,
            include_resolved=include_resolved,
        )
        return [ImportIssueResponse.model_validate(i) for i in issues]

    def issues_for_entry(self, import_log_id: int) -> list[ImportIssueResponse]:
        issues = self.issue_repo.list_issues(import_log_id=import_log_id, include_resolved=True)
        return [ImportIssueResponse.model_validate(i) for i in issues]
