"""Pytest configuration and shared fixtures."""

import os
from collections.abc import Generator, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session, sessionmaker
from typer.testing import CliRunner

# Import models to ensure all tables are registered with Base before create_all
from polyaccess.core import models  # noqa: F401
from polyaccess.core.models import Base, TargetDatabase
from polyaccess.core.services import TargetDatabaseService


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a CLI runner for testing Typer commands."""
    return CliRunner()


@pytest.fixture
def test_db() -> Generator[Session, None, None]:
    """Create an in-memory SQLite database holding the admin tables."""
    engine = create_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(engine)

    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def temp_data_dir(tmp_path: Path) -> Generator[Path, None, None]:
    """Point the application at a temporary SQLite admin database.

    Sets POLYACCESS_DATABASE_URL and resets the global engine and cached
    settings before and after the test.
    """
    from polyaccess.config.settings import get_settings
    from polyaccess.core.database import reset_engine

    get_settings.cache_clear()

    data_dir = tmp_path / "polyaccess"
    data_dir.mkdir()

    old_value = os.environ.get("POLYACCESS_DATABASE_URL")
    os.environ["POLYACCESS_DATABASE_URL"] = f"sqlite:///{data_dir / 'admin.db'}"

    reset_engine()

    try:
        yield data_dir
    finally:
        reset_engine()

        if old_value is not None:
            os.environ["POLYACCESS_DATABASE_URL"] = old_value
        else:
            os.environ.pop("POLYACCESS_DATABASE_URL", None)

        get_settings.cache_clear()


@pytest.fixture
def northwind(test_db: Session) -> TargetDatabase:
    """Register the 'northwind' target database (schema 'northwind')."""
    database = TargetDatabaseService(test_db).register("northwind", name="Northwind")
    test_db.commit()
    return database


# =============================================================================
# Recording target store
# =============================================================================


class FakeDriverError(Exception):
    """Stands in for a driver exception carrying a SQLSTATE."""

    def __init__(self, message: str, sqlstate: str | None = None) -> None:
        super().__init__(message)
        self.sqlstate = sqlstate


class RecordingConnection:
    """Connection double that records every statement sent to it."""

    def __init__(self, engine: "RecordingEngine") -> None:
        self.engine = engine

    def execute(self, statement: Any, parameters: dict[str, Any] | None = None) -> MagicMock:
        sql = str(statement)
        self.engine.record(sql, parameters)

        result = MagicMock()
        if "information_schema.columns" in sql:
            result.__iter__.return_value = iter(self.engine.columns)
        elif "information_schema" in sql:
            name = (parameters or {}).get("object_name")
            result.first.return_value = (1,) if name in self.engine.existing else None
        return result

    def exec_driver_sql(
        self,
        sql: str,
        parameters: Any = None,
        execution_options: dict[str, Any] | None = None,
    ) -> MagicMock:
        self.engine.driver_options.append(dict(execution_options or {}))
        self.engine.record(sql, parameters)
        return MagicMock()


class RecordingEngine:
    """Engine double for the target store.

    Attributes:
        log: (sql, params) for every statement, in order.
        existing: Object names reported as already present by catalog lookups.
        columns: Rows returned for information_schema.columns lookups.
        fail_on: Substring; the first statement containing it raises DBAPIError.
        fail_sqlstate: SQLSTATE carried by that error.
        driver_options: Execution options of every exec_driver_sql call.
    """

    def __init__(self) -> None:
        self.log: list[tuple[str, dict[str, Any] | None]] = []
        self.driver_options: list[dict[str, Any]] = []
        self.existing: set[str] = set()
        self.columns: list[tuple[str, str, str]] = []
        self.fail_on: str | None = None
        self.fail_sqlstate: str | None = None
        self.committed = 0
        self.rolled_back = 0

    def record(self, sql: str, parameters: dict[str, Any] | None) -> None:
        self.log.append((sql, parameters))
        if self.fail_on is not None and self.fail_on in sql:
            raise DBAPIError(
                sql,
                parameters,
                FakeDriverError("simulated failure", sqlstate=self.fail_sqlstate),
            )

    @contextmanager
    def begin(self) -> Iterator[RecordingConnection]:
        try:
            yield RecordingConnection(self)
        except Exception:
            self.rolled_back += 1
            raise
        else:
            self.committed += 1

    @contextmanager
    def connect(self) -> Iterator[RecordingConnection]:
        yield RecordingConnection(self)

    @property
    def statements(self) -> list[str]:
        return [sql for sql, _ in self.log]

    def statements_containing(self, fragment: str) -> list[str]:
        return [sql for sql in self.statements if fragment in sql]


@pytest.fixture
def recording_engine() -> RecordingEngine:
    """A fake target store that records statements instead of running them."""
    return RecordingEngine()


# =============================================================================
# Extraction payloads
# =============================================================================


@pytest.fixture
def customers_payload() -> dict[str, Any]:
    """Extractor output for a two-row Customers table."""
    return {
        "fields": [
            {"name": "CustomerID", "type": 4, "isAutoNumber": True, "required": True},
            {"name": "Name", "type": 10, "size": 50},
        ],
        "indexes": [
            {"name": "PrimaryKey", "fields": ["CustomerID"], "unique": True, "primary": True},
        ],
        "rows": [
            {"CustomerID": 1, "Name": "Acme"},
            {"CustomerID": 2, "Name": "Globex"},
        ],
    }


@pytest.fixture
def orders_payload() -> dict[str, Any]:
    """Extractor output for an Orders table with a calculated column and skipped attachment."""
    return {
        "fields": [
            {"name": "OrderID", "type": 4, "isAutoNumber": True, "required": True},
            {"name": "Customer ID", "type": 4, "required": True},
            {"name": "Qty", "type": 3, "defaultValue": "1"},
            {"name": "Unit Price", "type": 5},
            {
                "name": "Line Total",
                "type": 18,
                "resultType": 5,
                "isCalculated": True,
                "expression": "[Qty]*[Unit Price]",
            },
        ],
        "indexes": [
            {"name": "PrimaryKey", "fields": ["OrderID"], "unique": True, "primary": True},
            {"name": "idx1", "fields": ["Customer ID"], "unique": False, "primary": False},
        ],
        "rows": [
            {"OrderID": 10, "Customer ID": 1, "Qty": 2, "Unit Price": 9.5},
            {"OrderID": 12, "Customer ID": 2, "Qty": 1, "Unit Price": 20},
        ],
        "skippedColumns": [{"name": "Invoice", "type": 101}],
    }


@pytest.fixture
def mock_extractor(customers_payload: dict[str, Any]) -> MagicMock:
    """Extractor double returning the Customers payload."""
    from polyaccess.core.models import QueryPayload, TablePayload

    extractor = MagicMock()
    extractor.extract_table.return_value = TablePayload.model_validate(customers_payload)
    extractor.extract_query.return_value = QueryPayload.model_validate(
        {"queryName": "qryActive", "sql": "SELECT * FROM Customers", "queryType": "Select"}
    )
    return extractor
