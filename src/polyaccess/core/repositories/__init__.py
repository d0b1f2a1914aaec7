"""Data access repositories for polyaccess."""

from polyaccess.core.repositories.base import BaseRepository
from polyaccess.core.repositories.import_log import ImportIssueRepository, ImportLogRepository
from polyaccess.core.repositories.target_database import (
    ControlColumnMapRepository,
    TargetDatabaseRepository,
)

__all__ = [
    "BaseRepository",
    "ImportLogRepository",
    "ImportIssueRepository",
    "TargetDatabaseRepository",
    "ControlColumnMapRepository",
]
