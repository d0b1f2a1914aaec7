"""Tests for the target database and control mapping repositories."""

from sqlalchemy.orm import Session

from polyaccess.core.models import ControlColumnMap
from polyaccess.core.repositories import ControlColumnMapRepository, TargetDatabaseRepository


class TestTargetDatabaseRepository:
    """Test cases for TargetDatabaseRepository."""

    def test_create_and_lookup(self, test_db: Session):
        """Databases are found by id and by schema."""
        repo = TargetDatabaseRepository(test_db)
        repo.create("northwind", "Northwind", "northwind", description="Sample")
        repo.flush()

        assert repo.exists("northwind")
        assert not repo.exists("hr")
        assert repo.get_by_schema("northwind").name == "Northwind"
        assert repo.get_by_schema("missing") is None

    def test_list_ordered(self, test_db: Session):
        """Databases list by id."""
        repo = TargetDatabaseRepository(test_db)
        repo.create("zeta", "Zeta", "zeta")
        repo.create("alpha", "Alpha", "alpha")
        repo.flush()

        assert [d.database_id for d in repo.list_ordered()] == ["alpha", "zeta"]


class TestControlColumnMapRepository:
    """Test cases for ControlColumnMapRepository."""

    def test_get_mapping(self, test_db: Session):
        """Bindings are keyed by form.control and scoped by database."""
        test_db.add_all(
            [
                ControlColumnMap(
                    database_id="northwind",
                    form_name="frmorders",
                    control_name="txtcustomer",
                    table_name="orders",
                    column_name="customer_id",
                ),
                ControlColumnMap(
                    database_id="hr",
                    form_name="frmstaff",
                    control_name="txtid",
                    table_name="staff",
                    column_name="id",
                ),
            ]
        )
        test_db.flush()

        mapping = ControlColumnMapRepository(test_db).get_mapping("northwind")
        assert mapping == {"frmorders.txtcustomer": {"table": "orders", "column": "customer_id"}}

    def test_empty_mapping(self, test_db: Session):
        """Databases without bindings map to an empty dict."""
        assert ControlColumnMapRepository(test_db).get_mapping("northwind") == {}
