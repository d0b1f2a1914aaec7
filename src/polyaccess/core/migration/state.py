"""Lifecycle of a single import request."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ImportState(str, Enum):
    REQUESTED = "requested"
    VALIDATING = "validating"
    MATERIALIZING = "materializing"
    LOADING = "loading"
    RECONCILING = "reconciling"
    COMMITTED = "committed"
    REJECTED = "rejected"
    ROLLED_BACK = "rolled_back"


TERMINAL_STATES = frozenset({ImportState.COMMITTED, ImportState.REJECTED, ImportState.ROLLED_BACK})

_TRANSITIONS: dict[ImportState, frozenset[ImportState]] = {
    ImportState.REQUESTED: frozenset({ImportState.VALIDATING, ImportState.REJECTED}),
    ImportState.VALIDATING: frozenset({ImportState.MATERIALIZING, ImportState.REJECTED}),
    ImportState.MATERIALIZING: frozenset(
        {ImportState.LOADING, ImportState.COMMITTED, ImportState.ROLLED_BACK}
    ),
    ImportState.LOADING: frozenset({ImportState.RECONCILING, ImportState.ROLLED_BACK}),
    ImportState.RECONCILING: frozenset({ImportState.COMMITTED, ImportState.ROLLED_BACK}),
}


class InvalidStateTransition(Exception):
    """Raised when an import session is moved along an edge that does not exist."""

    def __init__(self, current: ImportState, target: ImportState) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Cannot move import from {current.value} to {target.value}")


class ImportSession:
    """Tracks one import request through its states.

    REJECTED means the request failed before anything was written to the
    target store; ROLLED_BACK means a transaction was opened and undone.
    Query imports go straight from MATERIALIZING to COMMITTED.
    """

    def __init__(self, source_path: str, object_name: str, object_type: str) -> None:
        self.source_path = source_path
        self.object_name = object_name
        self.object_type = object_type
        self.state = ImportState.REQUESTED
        self.history: list[dict[str, Any]] = [self._entry(ImportState.REQUESTED)]

    @staticmethod
    def _entry(state: ImportState) -> dict[str, Any]:
        return {"state": state.value, "at": datetime.now(timezone.utc).isoformat()}

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def advance(self, target: ImportState) -> None:
        """Move to ``target``.

        Raises:
            InvalidStateTransition: If the transition is not allowed.
        """
        if target not in _TRANSITIONS.get(self.state, frozenset()):
            raise InvalidStateTransition(self.state, target)
        self.state = target
        self.history.append(self._entry(target))

    def fail(self) -> ImportState:
        """Move to the failure state matching the current stage and return it."""
        if self.is_terminal:
            return self.state
        if self.state in (ImportState.REQUESTED, ImportState.VALIDATING):
            self.advance(ImportState.REJECTED)
        else:
            self.advance(ImportState.ROLLED_BACK)
        return self.state

    def summary(self) -> dict[str, Any]:
        """Final state and transition history for the audit record."""
        return {"final_state": self.state.value, "state_history": list(self.history)}
