"""Tests for the target database service."""

import pytest
from sqlalchemy.orm import Session

from polyaccess.core.services import (
    InvalidIdentifierError,
    MissingParameterError,
    TargetDatabaseExistsError,
    TargetDatabaseNotFoundError,
    TargetDatabaseService,
)


class TestTargetDatabaseService:
    """Test cases for TargetDatabaseService."""

    def test_register_defaults(self, test_db: Session):
        """Name defaults to the id and schema to the sanitized id."""
        database = TargetDatabaseService(test_db).register("North Wind")
        assert database.name == "North Wind"
        assert database.schema_name == "north_wind"

    def test_register_explicit_schema(self, test_db: Session):
        """An explicit schema is sanitized too."""
        database = TargetDatabaseService(test_db).register("nw", schema_name="NW Legacy")
        assert database.schema_name == "nw_legacy"

    def test_register_truncates_schema(self, test_db: Session):
        """Schemas are cut to the identifier limit."""
        database = TargetDatabaseService(test_db).register("x" * 80)
        assert len(database.schema_name) == 63

    def test_register_missing_id(self, test_db: Session):
        """An empty id is rejected."""
        with pytest.raises(MissingParameterError):
            TargetDatabaseService(test_db).register("")

    def test_register_unusable_schema(self, test_db: Session):
        """Schemas that sanitize to nothing are rejected."""
        with pytest.raises(InvalidIdentifierError):
            TargetDatabaseService(test_db).register("###")

    def test_register_duplicate_id(self, test_db: Session, northwind):
        """Ids are unique."""
        with pytest.raises(TargetDatabaseExistsError):
            TargetDatabaseService(test_db).register("northwind", schema_name="other")

    def test_register_duplicate_schema(self, test_db: Session, northwind):
        """Schemas are unique across databases."""
        with pytest.raises(TargetDatabaseExistsError):
            TargetDatabaseService(test_db).register("nw2", schema_name="northwind")

    def test_resolve_schema(self, test_db: Session, northwind):
        """Registered ids resolve to their schema."""
        assert TargetDatabaseService(test_db).resolve_schema("northwind") == "northwind"

    def test_resolve_unknown(self, test_db: Session):
        """Unknown ids raise TargetDatabaseNotFoundError."""
        with pytest.raises(TargetDatabaseNotFoundError):
            TargetDatabaseService(test_db).resolve_schema("missing")

    def test_list_databases(self, test_db: Session, northwind):
        """Registered databases are listed."""
        assert [d.database_id for d in TargetDatabaseService(test_db).list_databases()] == [
            "northwind"
        ]
