"""Import services for polyaccess."""

from polyaccess.core.services.audit_service import AuditService
from polyaccess.core.services.config_loader import (
    ConfigLoadError,
    load_import_plan,
    load_yaml_config,
    substitute_env_vars,
)
from polyaccess.core.services.exceptions import (
    ExtractionPayloadError,
    ImportServiceError,
    InvalidIdentifierError,
    MaterializationError,
    MissingParameterError,
    NoImportableColumnsError,
    NoStatementsGeneratedError,
    TargetDatabaseExistsError,
    TargetDatabaseNotFoundError,
    TargetExistsError,
)
from polyaccess.core.services.target_database_service import TargetDatabaseService
from polyaccess.core.services.table_import_service import TableImportService
from polyaccess.core.services.query_import_service import QueryImportService
from polyaccess.core.services.import_plan_service import ImportPlanService

__all__ = [
    # Services
    "AuditService",
    "TargetDatabaseService",
    "TableImportService",
    "QueryImportService",
    "ImportPlanService",
    # Exceptions
    "ImportServiceError",
    "MissingParameterError",
    "InvalidIdentifierError",
    "NoImportableColumnsError",
    "TargetDatabaseNotFoundError",
    "TargetDatabaseExistsError",
    "NoStatementsGeneratedError",
    "TargetExistsError",
    "MaterializationError",
    "ExtractionPayloadError",
    # Config loader
    "load_yaml_config",
    "load_import_plan",
    "substitute_env_vars",
    "ConfigLoadError",
]
