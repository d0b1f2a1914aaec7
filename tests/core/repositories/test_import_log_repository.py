"""Tests for the import log and issue repositories."""

from sqlalchemy.orm import Session

from polyaccess.core.models import IssueCreate
from polyaccess.core.repositories import ImportIssueRepository, ImportLogRepository


def _entry(repo: ImportLogRepository, name: str, status: str = "success", **kwargs):
    defaults = {
        "source_path": "C:/data/nw.accdb",
        "source_object_name": name,
        "source_object_type": "table",
        "target_database_id": "northwind",
        "status": status,
    }
    defaults.update(kwargs)
    entry = repo.create(**defaults)
    repo.flush()
    return entry


class TestImportLogRepository:
    """Test cases for ImportLogRepository."""

    def test_create(self, test_db: Session):
        """Entries persist with their details."""
        repo = ImportLogRepository(test_db)
        entry = _entry(repo, "Customers", details={"row_count": 2})

        assert entry.id is not None
        assert entry.created_at is not None
        assert repo.get_by_id(entry.id).details == {"row_count": 2}
        assert repo.count() == 1

    def test_list_newest_first(self, test_db: Session):
        """Entries are returned newest first."""
        repo = ImportLogRepository(test_db)
        first = _entry(repo, "Customers")
        second = _entry(repo, "Orders")

        entries = repo.list_entries()
        assert [e.id for e in entries][:2] == sorted([first.id, second.id], reverse=True)

    def test_filters(self, test_db: Session):
        """Entries filter by file, database and status."""
        repo = ImportLogRepository(test_db)
        _entry(repo, "Customers")
        _entry(repo, "Orders", status="error", error_message="boom")
        _entry(repo, "Other", source_path="C:/data/hr.accdb", target_database_id="hr")

        assert len(repo.list_entries(source_path="C:/data/nw.accdb")) == 2
        assert len(repo.list_entries(target_database_id="hr")) == 1
        errors = repo.list_entries(status="error")
        assert [e.source_object_name for e in errors] == ["Orders"]
        assert len(repo.list_entries(limit=1)) == 1


class TestImportIssueRepository:
    """Test cases for ImportIssueRepository."""

    def test_create_many_and_filter(self, test_db: Session):
        """Issues attach to a log entry and filter by category."""
        log_repo = ImportLogRepository(test_db)
        entry = _entry(log_repo, "Orders")
        repo = ImportIssueRepository(test_db)
        repo.create_many(
            entry.id,
            "northwind",
            "Orders",
            "table",
            [
                IssueCreate(category="skipped-column", message="Column 'Invoice' skipped"),
                IssueCreate(category="index-warning", message="Index skipped"),
            ],
        )
        repo.flush()

        assert len(repo.list_issues(database_id="northwind")) == 2
        assert len(repo.list_issues(import_log_id=entry.id)) == 2
        skipped = repo.list_issues(database_id="northwind", category="skipped-column")
        assert skipped[0].severity == "warning"
        assert skipped[0].object_name == "Orders"

    def test_resolved_hidden_by_default(self, test_db: Session):
        """Resolved issues are only listed on request."""
        repo = ImportIssueRepository(test_db)
        issues = repo.create_many(
            None, "northwind", "Orders", "table",
            [IssueCreate(category="default-value", message="dropped")],
        )
        repo.flush()
        issues[0].resolved = True
        repo.flush()

        assert repo.list_issues(database_id="northwind") == []
        assert len(repo.list_issues(database_id="northwind", include_resolved=True)) == 1
