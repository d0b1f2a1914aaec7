"""Service for running YAML import plans."""

import logging
from pathlib import Path

from polyaccess.core.collaborators import CollaboratorError, ExtractionAdapter
from polyaccess.core.models import ImportPlan, ImportPlanEntry, ImportPlanItemResult
from polyaccess.core.services.config_loader import load_import_plan
from polyaccess.core.services.exceptions import ImportServiceError
from polyaccess.core.services.query_import_service import QueryImportService
from polyaccess.core.services.table_import_service import TableImportService

logger = logging.getLogger(__name__)


class ImportPlanService:
    """Imports the tables and then the queries listed in a plan, in order.

    Every entry is its own import with its own transaction and audit entry;
    a failed entry does not undo earlier ones. Queries run after tables so
    views can reference the freshly imported tables.
    """

    def __init__(
        self,
        table_service: TableImportService,
        query_service: QueryImportService | None,
        extractor: ExtractionAdapter,
    ) -> None:
        self.table_service = table_service
        self.query_service = query_service
        self.extractor = extractor

    def run_file(self, path: Path) -> list[ImportPlanItemResult]:
        """Load a plan file and run it.

        Raises:
            ConfigLoadError: If the plan file is invalid.
        """
        return self.run(load_import_plan(path))

    def run(self, plan: ImportPlan) -> list[ImportPlanItemResult]:
        """Run a validated plan.

        Returns:
            One result per attempted entry. With ``stop_on_error`` the list ends
            at the first failure.

        Raises:
            ImportServiceError: If the plan lists queries but no query converter is configured.
        """
        if plan.queries and self.query_service is None:
            raise ImportServiceError("Import plan lists queries but no query converter is configured")

        results: list[ImportPlanItemResult] = []
        for entry in plan.tables:
            result = self._run_table(plan, entry)
            results.append(result)
            if not result.success and plan.stop_on_error:
                return results

        for entry in plan.queries:
            result = self._run_query(plan, entry)
            results.append(result)
            if not result.success and plan.stop_on_error:
                return results

        succeeded = sum(1 for r in results if r.success)
        logger.info(f"Import plan finished: {succeeded}/{len(results)} entries succeeded")
        return results

    def _force(self, plan: ImportPlan, entry: ImportPlanEntry) -> bool:
        return plan.force if entry.force is None else entry.force

    def _run_table(self, plan: ImportPlan, entry: ImportPlanEntry) -> ImportPlanItemResult:
        try:
            result = self.table_service.import_from_source(
                plan.source_path,
                entry.name,
                plan.database_id,
                self.extractor,
                force=self._force(plan, entry),
            )
        except (ImportServiceError, CollaboratorError) as e:
            return ImportPlanItemResult(kind="table", name=entry.name, success=False, error=str(e))
        return ImportPlanItemResult(
            kind="table",
            name=entry.name,
            success=True,
            target_name=result.table_name,
            warnings=result.warnings,
        )

    def _run_query(self, plan: ImportPlan, entry: ImportPlanEntry) -> ImportPlanItemResult:
        if self.query_service is None:
            raise ImportServiceError("No query converter is configured")
        try:
            result = self.query_service.import_from_source(
                plan.source_path,
                entry.name,
                plan.database_id,
                self.extractor,
                force=self._force(plan, entry),
            )
        except (ImportServiceError, CollaboratorError) as e:
            return ImportPlanItemResult(kind="query", name=entry.name, success=False, error=str(e))
        return ImportPlanItemResult(
            kind="query",
            name=entry.name,
            success=True,
            target_name=result.query_name,
            warnings=result.warnings,
        )
