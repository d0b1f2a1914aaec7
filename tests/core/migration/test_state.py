"""Tests for the import session state machine."""

import pytest

from polyaccess.core.migration.state import (
    ImportSession,
    ImportState,
    InvalidStateTransition,
)


@pytest.fixture
def session() -> ImportSession:
    return ImportSession("C:/data/nw.accdb", "Customers", "table")


class TestImportSession:
    """Test cases for ImportSession."""

    def test_starts_requested(self, session):
        """New sessions start in REQUESTED with one history entry."""
        assert session.state is ImportState.REQUESTED
        assert [h["state"] for h in session.history] == ["requested"]
        assert not session.is_terminal

    def test_table_happy_path(self, session):
        """A table import walks every stage to COMMITTED."""
        for state in (
            ImportState.VALIDATING,
            ImportState.MATERIALIZING,
            ImportState.LOADING,
            ImportState.RECONCILING,
            ImportState.COMMITTED,
        ):
            session.advance(state)

        assert session.is_terminal
        assert session.summary()["final_state"] == "committed"
        assert len(session.summary()["state_history"]) == 6

    def test_query_skips_loading(self, session):
        """Query imports commit straight from MATERIALIZING."""
        session.advance(ImportState.VALIDATING)
        session.advance(ImportState.MATERIALIZING)
        session.advance(ImportState.COMMITTED)
        assert session.state is ImportState.COMMITTED

    def test_invalid_transition(self, session):
        """Skipping stages is rejected."""
        with pytest.raises(InvalidStateTransition) as exc_info:
            session.advance(ImportState.LOADING)
        assert exc_info.value.current is ImportState.REQUESTED
        assert exc_info.value.target is ImportState.LOADING

    def test_terminal_states_are_final(self, session):
        """Nothing leaves a terminal state."""
        session.advance(ImportState.REJECTED)
        with pytest.raises(InvalidStateTransition):
            session.advance(ImportState.VALIDATING)

    def test_fail_before_materializing_rejects(self, session):
        """Failures during validation reject the request."""
        session.advance(ImportState.VALIDATING)
        assert session.fail() is ImportState.REJECTED

    def test_fail_after_materializing_rolls_back(self, session):
        """Failures with an open transaction roll back."""
        session.advance(ImportState.VALIDATING)
        session.advance(ImportState.MATERIALIZING)
        session.advance(ImportState.LOADING)
        assert session.fail() is ImportState.ROLLED_BACK

    def test_fail_is_idempotent(self, session):
        """Failing a terminal session keeps its state."""
        session.fail()
        history = list(session.history)
        assert session.fail() is ImportState.REJECTED
        assert session.history == history
