"""Staged checklist rendering of an import state."""

from psimport.services.import_state import ImportState


IMPORT_STAGES: tuple[str, ...] = (
    "Started Data Copy",
    "Copied Data",
    "Running as Replica",
    "Running as Primary",
    "Detached external database",
)

CURRENT_MARKER = "> "

# Stage index (0-based) shown as current for each state. "Copied Data"
# is never current: the server moves straight from copying to replica.
STAGE_FOR_STATE: dict[ImportState, int] = {
    ImportState.UNKNOWN: 0,
    ImportState.PREPARING_DATA_COPY: 0,
    ImportState.COPYING_DATA: 0,
    ImportState.SWITCH_TRAFFIC_PENDING: 2,
    ImportState.SWITCH_TRAFFIC_COMPLETED: 3,
    ImportState.READY: 4,
}


def render_progress(state: ImportState) -> list[str]:
    """Render the five import stages, marking the one for ``state``.

    >>> render_progress(ImportState.SWITCH_TRAFFIC_COMPLETED)[3]
    '> 4. Running as Primary'
    """
    current = STAGE_FOR_STATE[state]
    lines = []
    for index, stage in enumerate(IMPORT_STAGES):
        line = f"{index + 1}. {stage}"
        if index == current:
            line = CURRENT_MARKER + line
        lines.append(line)
    return lines
