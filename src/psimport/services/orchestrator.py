"""Import orchestration.

Sequences:

    lint:          precheck -> decision rule
    start:         precheck -> decision rule -> [dry run: guidance]
                                               [else: StartImport -> checklist]
    status:        fetch -> checklist
    make_primary:  fetch -> guard -> promote -> checklist
    detach:        fetch -> guard -> detach -> checklist

Progress notices go to the injected console as they happen. Each method
returns the result lines for the caller to print, or raises. Any error
aborts the rest of the sequence.
"""

from contextlib import nullcontext
from typing import TYPE_CHECKING, Any, ContextManager, Optional

from psimport.core.audit import AuditEventType, AuditLogger
from psimport.core.exceptions import PSImportError, TransitionBlockedError
from psimport.core.output import Console
from psimport.core.validation import validate_name
from psimport.services.compatibility import CompatibilityPrechecker, evaluate_verdict
from psimport.services.import_state import DataImport, ImportState, ImportStateMachine
from psimport.services.progress import render_progress
from psimport.services.source import SourceConnection

if TYPE_CHECKING:
    from psimport.services.planetscale import DataImportsAPI


class ImportOrchestrator:
    """Runs the data-import commands against a ``DataImportsAPI``."""

    def __init__(
        self,
        api: "DataImportsAPI",
        console: Console,
        organization: str,
        audit: Optional[AuditLogger] = None,
    ) -> None:
        self.api = api
        self.console = console
        self.org = validate_name(organization, "organization")
        self.audit = audit
        self.prechecker = CompatibilityPrechecker(api)
        self.state_machine = ImportStateMachine(api)

    def lint(self, name: str, source: SourceConnection) -> list[str]:
        """Check that ``source`` can be imported into database ``name``."""
        name = validate_name(name, "database")
        try:
            self._precheck(name, source)
        except PSImportError as e:
            self._audit_failure(AuditEventType.IMPORT_LINT, name, e, source)
            raise
        if self.audit:
            self.audit.log_success(
                AuditEventType.IMPORT_LINT, self.org, name,
                message=f"{source.database} is compatible",
                parameters=self._source_params(source),
            )
        return [self._compatible_line(name, source)]

    def start(self, name: str, source: SourceConnection, dry_run: bool = True) -> list[str]:
        """Precheck ``source`` and, unless ``dry_run``, start the import."""
        name = validate_name(name, "database")
        try:
            self._precheck(name, source)
        except PSImportError as e:
            self._audit_failure(AuditEventType.IMPORT_START, name, e, source)
            raise

        if dry_run:
            if self.audit:
                self.audit.log_dry_run(
                    AuditEventType.IMPORT_START, self.org, name,
                    message=f"{source.database} is compatible",
                )
            return [
                self._compatible_line(name, source),
                "Please run this command with --no-dry-run to start the import",
            ]

        self.console.line(self._compatible_line(name, source))
        self.console.line(
            f"Starting import of contents from database {source.database} "
            f"into PlanetScale database {name}..."
        )
        try:
            data_import = self.api.start_import(self.org, name, source)
        except PSImportError as e:
            self._audit_failure(AuditEventType.IMPORT_START, name, e, source)
            raise

        if self.audit:
            self.audit.log_success(
                AuditEventType.IMPORT_START, self.org, name,
                message=f"Started import {data_import.id} from {source.address}",
                parameters=self._source_params(source),
            )
        return [
            f"Successfully started importing database {source.database} "
            f"into PlanetScale database {name}",
            *render_progress(data_import.state),
        ]

    def status(self, name: str) -> list[str]:
        """Fetch the current import state and render the checklist."""
        data_import = self._fetch(name)
        if data_import.state is ImportState.UNKNOWN and data_import.raw_state not in (
            None, ImportState.UNKNOWN.value,
        ):
            self.console.warn(
                f"Server reported import state '{data_import.raw_state}', "
                "which this version of psimport does not recognise"
            )
        self.console.verbose(f"Import {data_import.id}: {data_import.state.description}")
        return render_progress(data_import.state)

    def make_primary(self, name: str) -> list[str]:
        """Promote the PlanetScale database to primary if its state allows."""
        name = validate_name(name, "database")
        with self._correlated("make_primary"):
            return self._make_primary(name)

    def _make_primary(self, name: str) -> list[str]:
        try:
            current = self._fetch(name)
            self.state_machine.check_promotion(self.org, name, current)
            self.console.line(f"Switching PlanetScale database {name} to Primary...")
            updated = self.state_machine.promote(self.org, name, current)
        except TransitionBlockedError as e:
            if self.audit:
                self.audit.log_blocked("make_primary", e.message, self.org, name)
            raise
        except PSImportError as e:
            self._audit_failure(AuditEventType.IMPORT_MAKE_PRIMARY, name, e)
            raise

        self.console.line(f"Successfully switched PlanetScale database {name} to Primary.")
        if self.audit:
            self.audit.log_success(
                AuditEventType.IMPORT_MAKE_PRIMARY, self.org, name,
                message=f"Import {updated.id or current.id} switched to Primary",
            )
        return render_progress(updated.state)

    def detach_external_database(self, name: str) -> list[str]:
        """Detach the external database once the import runs as primary."""
        name = validate_name(name, "database")
        with self._correlated("detach_external_database"):
            return self._detach_external_database(name)

    def _detach_external_database(self, name: str) -> list[str]:
        try:
            current = self._fetch(name)
            self.state_machine.check_detach(self.org, name, current)
            self.console.line(
                f"Detaching external database from PlanetScale database {name}..."
            )
            updated = self.state_machine.detach(self.org, name, current)
        except TransitionBlockedError as e:
            if self.audit:
                self.audit.log_blocked("detach_external_database", e.message, self.org, name)
            raise
        except PSImportError as e:
            self._audit_failure(AuditEventType.IMPORT_DETACH, name, e)
            raise

        self.console.line(
            f"Successfully detached external database from PlanetScale database {name}."
        )
        if self.audit:
            self.audit.log_success(
                AuditEventType.IMPORT_DETACH, self.org, name,
                message=f"Import {updated.id or current.id} detached",
            )
        return render_progress(updated.state)

    # Helpers
    def _correlated(self, operation: str) -> ContextManager[Any]:
        """Share one audit correlation id across the events of an operation."""
        if self.audit:
            return self.audit.correlation(operation)
        return nullcontext()

    def _precheck(self, name: str, source: SourceConnection) -> None:
        self.console.line(
            f"Testing Compatibility of database {source.database} "
            f"with user {source.username}..."
        )
        verdict = self.prechecker.check(self.org, source)
        self.console.debug(
            f"Verdict: can_connect={verdict.can_connect} findings={len(verdict.findings)}"
        )
        evaluate_verdict(verdict)

    @staticmethod
    def _compatible_line(name: str, source: SourceConnection) -> str:
        return (
            f"Database {source.database} is compatible and can be imported "
            f"into PlanetScale database {name}"
        )

    def _fetch(self, name: str) -> DataImport:
        name = validate_name(name, "database")
        self.console.line(f"Getting current import status for PlanetScale database {name}...")
        return self.state_machine.fetch(self.org, name)

    @staticmethod
    def _source_params(source: SourceConnection) -> dict:
        return {
            "source_database": source.database,
            "host": source.address,
            "username": source.username,
            "ssl_mode": source.ssl_mode.value,
        }

    def _audit_failure(
        self,
        event_type: AuditEventType,
        name: str,
        error: PSImportError,
        source: Optional[SourceConnection] = None,
    ) -> None:
        if self.audit:
            self.audit.log_failure(
                event_type, self.org, name, error.message,
                parameters=self._source_params(source) if source else None,
            )
