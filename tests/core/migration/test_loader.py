"""Tests for the batch data loader."""

import pytest

from polyaccess.core.migration.loader import (
    MAX_BIND_PARAMETERS,
    BatchLoader,
    build_insert,
    rows_per_batch,
)
from polyaccess.core.migration.plan import ColumnPlan


@pytest.fixture
def plan() -> list[ColumnPlan]:
    return [
        ColumnPlan("ID", "id", "integer", is_auto_number=True),
        ColumnPlan("Full Name", "full_name", "character varying(50)"),
        ColumnPlan("Total", "total", "numeric(19,4)", is_calculated=True, expression="[A]"),
    ]


class TestRowsPerBatch:
    """Test cases for rows_per_batch."""

    def test_small_tables_use_batch_size(self):
        """Narrow tables use the configured batch size."""
        assert rows_per_batch(500, 5) == 500

    def test_wide_tables_capped_by_bind_limit(self):
        """Wide tables shrink the batch to stay under the bind limit."""
        size = rows_per_batch(500, 200)
        assert size * 200 <= MAX_BIND_PARAMETERS
        assert size == MAX_BIND_PARAMETERS // 200

    def test_at_least_one_row(self):
        """Batches never drop below one row."""
        assert rows_per_batch(500, MAX_BIND_PARAMETERS + 1) == 1


class TestBuildInsert:
    """Test cases for build_insert."""

    def test_multi_row_insert(self, plan):
        """Rows share one statement with positional parameter names."""
        sql, params = build_insert(
            "s", "t", plan[:2], [{"ID": 1, "Full Name": "A"}, {"ID": 2, "Full Name": "B"}]
        )
        assert sql == 'INSERT INTO "s"."t" ("id", "full_name") VALUES (:p0, :p1), (:p2, :p3)'
        assert params == {"p0": 1, "p1": "A", "p2": 2, "p3": "B"}

    def test_overriding_identity(self, plan):
        """Identity values from the legacy table are kept."""
        sql, _ = build_insert("s", "t", plan[:1], [{"ID": 7}], overriding_identity=True)
        assert "OVERRIDING SYSTEM VALUE VALUES" in sql

    def test_missing_value_binds_null(self, plan):
        """Columns absent from a row insert NULL."""
        _, params = build_insert("s", "t", plan[:2], [{"ID": 1}])
        assert params == {"p0": 1, "p1": None}


class TestBatchLoader:
    """Test cases for BatchLoader."""

    def test_rejects_zero_batch_size(self):
        """Batch size must be positive."""
        with pytest.raises(ValueError):
            BatchLoader(batch_size=0)

    def test_no_rows(self, recording_engine, plan):
        """Empty tables issue no statements."""
        with recording_engine.begin() as conn:
            assert BatchLoader().load(conn, "s", "t", plan, []) == 0
        assert recording_engine.log == []

    def test_batches_and_skips_generated(self, recording_engine, plan):
        """Rows are split into batches and generated columns are not inserted."""
        rows = [{"ID": i, "Full Name": f"n{i}", "Total": 99} for i in range(5)]
        with recording_engine.begin() as conn:
            inserted = BatchLoader(batch_size=2).load(conn, "s", "t", plan, rows)

        assert inserted == 5
        inserts = recording_engine.statements_containing("INSERT INTO")
        assert len(inserts) == 3
        assert all('"total"' not in sql for sql in inserts)
        assert all("OVERRIDING SYSTEM VALUE" in sql for sql in inserts)
        assert recording_engine.log[-1][1] == {"p0": 4, "p1": "n4"}

    def test_no_identity_no_overriding(self, recording_engine):
        """Tables without autonumbers insert plainly."""
        plan = [ColumnPlan("Name", "name", "text")]
        with recording_engine.begin() as conn:
            BatchLoader().load(conn, "s", "t", plan, [{"Name": "x"}])
        assert "OVERRIDING" not in recording_engine.statements[0]

    def test_only_generated_columns(self, recording_engine):
        """A table of generated columns inserts default rows."""
        plan = [ColumnPlan("T", "t", "integer", is_calculated=True, expression="1")]
        with recording_engine.begin() as conn:
            inserted = BatchLoader().load(conn, "s", "t", plan, [{}, {}])

        assert inserted == 2
        assert recording_engine.statements == ['INSERT INTO "s"."t" DEFAULT VALUES'] * 2
