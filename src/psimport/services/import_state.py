"""Import lifecycle state and guarded transitions.

The server owns the import state. The client only ever holds the state
echoed by the last response and re-fetches it immediately before every
guarded transition.

Forward chain as seen by the client:

    PREPARING_DATA_COPY -> COPYING_DATA -> (copy complete)
        -> SWITCH_TRAFFIC_PENDING   running as replica
        -> SWITCH_TRAFFIC_COMPLETED running as primary
        -> READY                    external database detached

Guards are total lookup tables over ``ImportState``; a state missing from
a table fails at import time.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

from psimport.core.exceptions import (
    DetachBlockedError,
    InconsistencyError,
    PromotionBlockedError,
)

if TYPE_CHECKING:
    from psimport.services.planetscale import DataImportsAPI


class ImportState(Enum):
    """Server-reported import states."""

    UNKNOWN = "unknown"
    PREPARING_DATA_COPY = "prepare_data_copy_pending"
    COPYING_DATA = "data_copying"
    SWITCH_TRAFFIC_PENDING = "switch_traffic_pending"
    SWITCH_TRAFFIC_COMPLETED = "switch_traffic_completed"
    READY = "ready"

    @classmethod
    def parse(cls, value: Optional[str]) -> "ImportState":
        """Parse a wire value; unrecognised values become UNKNOWN."""
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN

    @property
    def description(self) -> str:
        """Human-readable name of the state."""
        descriptions = {
            "unknown": "Unknown",
            "prepare_data_copy_pending": "Preparing data copy",
            "data_copying": "Copying data",
            "switch_traffic_pending": "Running as Replica",
            "switch_traffic_completed": "Running as Primary",
            "ready": "Detached external database",
        }
        return descriptions[self.value]


class GuardResult(Enum):
    """Outcome of evaluating a transition guard."""

    ALLOWED = "allowed"
    BLOCKED_STILL_COPYING = "blocked_still_copying"
    BLOCKED_NOT_PRIMARY = "blocked_not_primary"
    BLOCKED_ALREADY_PRIMARY = "blocked_already_primary"
    BLOCKED_ALREADY_COMPLETE = "blocked_already_complete"

    @property
    def allowed(self) -> bool:
        return self is GuardResult.ALLOWED

    @property
    def reason(self) -> str:
        """User-facing reason the transition is blocked."""
        reasons = {
            "allowed": "",
            "blocked_still_copying": "we are still copying data from upstream database",
            "blocked_not_primary": "it is not yet switched to Primary",
            "blocked_already_primary": "it is already switched to Primary",
            "blocked_already_complete": "this import has completed",
        }
        return reasons[self.value]


PROMOTION_GUARD: dict[ImportState, GuardResult] = {
    ImportState.UNKNOWN: GuardResult.BLOCKED_STILL_COPYING,
    ImportState.PREPARING_DATA_COPY: GuardResult.BLOCKED_STILL_COPYING,
    ImportState.COPYING_DATA: GuardResult.BLOCKED_STILL_COPYING,
    ImportState.SWITCH_TRAFFIC_PENDING: GuardResult.ALLOWED,
    ImportState.SWITCH_TRAFFIC_COMPLETED: GuardResult.BLOCKED_ALREADY_PRIMARY,
    ImportState.READY: GuardResult.BLOCKED_ALREADY_COMPLETE,
}

DETACH_GUARD: dict[ImportState, GuardResult] = {
    ImportState.UNKNOWN: GuardResult.BLOCKED_STILL_COPYING,
    ImportState.PREPARING_DATA_COPY: GuardResult.BLOCKED_STILL_COPYING,
    ImportState.COPYING_DATA: GuardResult.BLOCKED_STILL_COPYING,
    ImportState.SWITCH_TRAFFIC_PENDING: GuardResult.BLOCKED_NOT_PRIMARY,
    ImportState.SWITCH_TRAFFIC_COMPLETED: GuardResult.ALLOWED,
    ImportState.READY: GuardResult.BLOCKED_ALREADY_COMPLETE,
}


def _check_total(table: dict[ImportState, GuardResult], name: str) -> None:
    missing = set(ImportState) - set(table)
    if missing:
        raise RuntimeError(
            f"{name} has no entry for: {', '.join(sorted(s.name for s in missing))}"
        )


_check_total(PROMOTION_GUARD, "PROMOTION_GUARD")
_check_total(DETACH_GUARD, "DETACH_GUARD")


def guard_promotion(state: ImportState) -> GuardResult:
    """Decide whether an import in ``state`` may be promoted to primary."""
    return PROMOTION_GUARD[state]


def guard_detach(state: ImportState) -> GuardResult:
    """Decide whether the external database may be detached in ``state``."""
    return DETACH_GUARD[state]


@dataclass(frozen=True)
class DataImport:
    """Point-in-time snapshot of an import as reported by the server."""

    id: str
    state: ImportState
    organization: Optional[str] = None
    database: Optional[str] = None
    # State exactly as sent by the server
    raw_state: Optional[str] = None

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        organization: Optional[str] = None,
        database: Optional[str] = None,
    ) -> "DataImport":
        """Create from an import response body."""
        return cls(
            id=str(data.get("id", "")),
            state=ImportState.parse(data.get("state")),
            organization=organization,
            database=database,
            raw_state=data.get("state"),
        )


class ImportStateMachine:
    """Fetches import state and invokes guarded, one-way transitions.

    Transitions are never retried: a promotion or detach whose outcome is
    ambiguous must be inspected by the operator, not re-sent.
    """

    def __init__(self, api: "DataImportsAPI") -> None:
        self.api = api

    def fetch(self, org: str, database: str) -> DataImport:
        """Fetch the current import state from the server."""
        return self.api.get_import(org, database)

    def check_promotion(self, org: str, database: str, current: DataImport) -> None:
        """Raise PromotionBlockedError unless ``current`` may be promoted."""
        result = guard_promotion(current.state)
        if not result.allowed:
            raise PromotionBlockedError(
                f"cannot make PlanetScale Database {org}/{database} Primary "
                f"because {result.reason}",
                state=current.state,
            )

    def check_detach(self, org: str, database: str, current: DataImport) -> None:
        """Raise DetachBlockedError unless ``current`` may be detached."""
        result = guard_detach(current.state)
        if not result.allowed:
            raise DetachBlockedError(
                f"cannot detach external database from PlanetScale Database "
                f"{org}/{database} because {result.reason}",
                state=current.state,
            )

    def promote(self, org: str, database: str, current: DataImport) -> DataImport:
        """Switch traffic to the PlanetScale database.

        Args:
            org: Organization name
            database: PlanetScale database name
            current: Snapshot fetched immediately before this call

        Raises:
            PromotionBlockedError: If the guard rejects ``current.state``
            InconsistencyError: If the server does not report Running as Primary
        """
        self.check_promotion(org, database, current)

        updated = self.api.make_primary(org, database)
        self._expect(updated, ImportState.SWITCH_TRAFFIC_COMPLETED, "promotion")
        return updated

    def detach(self, org: str, database: str, current: DataImport) -> DataImport:
        """Detach the external database once the import runs as primary.

        Raises:
            DetachBlockedError: If the guard rejects ``current.state``
            InconsistencyError: If the server does not report Ready
        """
        self.check_detach(org, database, current)

        updated = self.api.detach_external_database(org, database)
        self._expect(updated, ImportState.READY, "detach")
        return updated

    @staticmethod
    def _expect(updated: DataImport, expected: ImportState, operation: str) -> None:
        if updated.state is not expected:
            raise InconsistencyError(
                f"Unexpected import state after {operation}: "
                f"{updated.state.description} (expected {expected.description})",
                expected=expected,
                actual=updated.state,
                hint="Check the import with 'psimport data-imports get' before retrying",
            )
