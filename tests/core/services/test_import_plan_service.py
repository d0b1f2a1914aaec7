"""Tests for the import plan service."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from polyaccess.core.models import (
    ImportPlan,
    QueryImportResult,
    TableImportResult,
)
from polyaccess.core.services import (
    ImportPlanService,
    ImportServiceError,
    TargetExistsError,
)


@pytest.fixture
def table_service() -> MagicMock:
    service = MagicMock()
    service.import_from_source.side_effect = lambda source, name, db, extractor, force: (
        TableImportResult(table_name=name.lower(), field_count=1, row_count=0, warnings=["w"])
    )
    return service


@pytest.fixture
def query_service() -> MagicMock:
    service = MagicMock()
    service.import_from_source.side_effect = lambda source, name, db, extractor, force: (
        QueryImportResult(query_name=name.lower(), pg_object_type="view")
    )
    return service


def plan(**overrides) -> ImportPlan:
    data = {
        "source_path": "C:/data/nw.accdb",
        "database_id": "northwind",
        "tables": ["Customers", {"name": "Orders", "force": True}],
        "queries": ["qryActive"],
    }
    data.update(overrides)
    return ImportPlan.model_validate(data)


class TestImportPlanService:
    """Test cases for ImportPlanService."""

    def test_tables_then_queries(self, table_service, query_service, mock_extractor):
        """Tables run before queries, each with its own force flag."""
        results = ImportPlanService(table_service, query_service, mock_extractor).run(plan())

        assert [(r.kind, r.name) for r in results] == [
            ("table", "Customers"),
            ("table", "Orders"),
            ("query", "qryActive"),
        ]
        assert all(r.success for r in results)
        forces = [c.kwargs["force"] for c in table_service.import_from_source.call_args_list]
        assert forces == [False, True]
        assert results[0].target_name == "customers"
        assert results[0].warnings == ["w"]

    def test_failure_continues(self, table_service, query_service, mock_extractor):
        """A failed entry is reported and the rest still run."""
        table_service.import_from_source.side_effect = [
            TargetExistsError("northwind", "customers"),
            TableImportResult(table_name="orders", field_count=1, row_count=0),
        ]

        results = ImportPlanService(table_service, query_service, mock_extractor).run(plan())

        assert [r.success for r in results] == [False, True, True]
        assert results[0].error == 'Table "customers" already exists in target database'

    def test_stop_on_error(self, table_service, query_service, mock_extractor):
        """With stop_on_error the run ends at the first failure."""
        table_service.import_from_source.side_effect = TargetExistsError("northwind", "customers")

        results = ImportPlanService(table_service, query_service, mock_extractor).run(
            plan(stop_on_error=True)
        )

        assert len(results) == 1
        query_service.import_from_source.assert_not_called()

    def test_plan_level_force(self, table_service, query_service, mock_extractor):
        """The plan force flag applies unless an entry overrides it."""
        ImportPlanService(table_service, query_service, mock_extractor).run(
            plan(force=True, tables=["Customers", {"name": "Orders", "force": False}])
        )
        forces = [c.kwargs["force"] for c in table_service.import_from_source.call_args_list]
        assert forces == [True, False]

    def test_queries_without_converter(self, table_service, mock_extractor):
        """Plans with queries need a query service."""
        with pytest.raises(ImportServiceError):
            ImportPlanService(table_service, None, mock_extractor).run(plan())

    def test_run_file(self, table_service, query_service, mock_extractor, tmp_path: Path):
        """Plans load from YAML files."""
        plan_file = tmp_path / "plan.yaml"
        plan_file.write_text(
            "source_path: C:/data/nw.accdb\n"
            "database_id: northwind\n"
            "tables:\n"
            "  - Customers\n"
        )

        results = ImportPlanService(table_service, query_service, mock_extractor).run_file(
            plan_file
        )

        assert [r.name for r in results] == ["Customers"]
