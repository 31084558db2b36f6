"""Import lifecycle services and the PlanetScale API client."""

from psimport.services.compatibility import (
    CompatibilityPrechecker,
    CompatibilityVerdict,
    IncompatibilityFinding,
    evaluate_verdict,
)
from psimport.services.import_state import (
    DataImport,
    GuardResult,
    ImportState,
    ImportStateMachine,
    guard_detach,
    guard_promotion,
)
from psimport.services.orchestrator import ImportOrchestrator
from psimport.services.planetscale import DataImportsAPI, PlanetScaleClient
from psimport.services.progress import IMPORT_STAGES, render_progress
from psimport.services.source import SSLMode, SourceConnection

__all__ = [
    "CompatibilityPrechecker",
    "CompatibilityVerdict",
    "IncompatibilityFinding",
    "evaluate_verdict",
    "DataImport",
    "GuardResult",
    "ImportState",
    "ImportStateMachine",
    "guard_detach",
    "guard_promotion",
    "ImportOrchestrator",
    "DataImportsAPI",
    "PlanetScaleClient",
    "IMPORT_STAGES",
    "render_progress",
    "SSLMode",
    "SourceConnection",
]
