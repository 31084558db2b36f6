"""Audit trail of import lifecycle operations.

Every lint, start, make-primary and detach attempt is appended to a local
JSON-lines file together with its outcome. Source passwords and service
tokens are redacted before anything is written.
"""

import fcntl
import getpass
import json
import os
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Iterator, Optional, TextIO

from psimport.core.config import DEFAULT_AUDIT_LOG_PATH
from psimport.core.output import console


DEFAULT_MAX_SIZE_MB = 10
DEFAULT_BACKUP_COUNT = 5

REDACTED = "***REDACTED***"

# Parameter names containing any of these are never written
SENSITIVE_KEYS = frozenset({"password", "passwd", "secret", "token", "credential"})


class AuditEventType(Enum):
    """Audited import operations."""
    IMPORT_LINT = "import.lint"
    IMPORT_START = "import.start"
    IMPORT_MAKE_PRIMARY = "import.make_primary"
    IMPORT_DETACH = "import.detach"
    SECURITY_BLOCKED = "security.blocked"


class AuditResult(Enum):
    """Outcome of an audited operation."""
    SUCCESS = "success"
    FAILURE = "failure"
    BLOCKED = "blocked"
    DRY_RUN = "dry_run"


def redact(key: str, value: Any) -> Any:
    """Replace secret values, descending into nested mappings and lists."""
    if any(marker in key.lower() for marker in SENSITIVE_KEYS):
        return REDACTED
    if isinstance(value, dict):
        return {k: redact(k, v) for k, v in value.items()}
    if isinstance(value, list):
        return [redact(key, item) for item in value]
    return value


def _operator() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return str(os.getuid())


@dataclass
class AuditEvent:
    """One line of the audit trail."""
    event_type: AuditEventType
    result: AuditResult
    organization: Optional[str] = None
    database: Optional[str] = None
    operation: Optional[str] = None
    parameters: dict[str, Any] = field(default_factory=dict)
    message: Optional[str] = None
    error: Optional[str] = None
    session_id: Optional[str] = None
    correlation_id: Optional[str] = None
    actor: str = field(default_factory=_operator)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "result": self.result.value,
            "actor": self.actor,
            "target": {"organization": self.organization, "database": self.database},
            "operation": self.operation,
            "parameters": redact("parameters", self.parameters),
            "message": self.message,
            "error": self.error,
            "session_id": self.session_id,
            "correlation_id": self.correlation_id,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


class AuditLogger:
    """Appends audit events to a locked, size-rotated JSON-lines file.

    A failure to write the trail is reported at debug level only; it never
    turns a successful import operation into a failed one.
    """

    def __init__(
        self,
        log_path: Optional[Path] = None,
        max_size_mb: int = DEFAULT_MAX_SIZE_MB,
        backup_count: int = DEFAULT_BACKUP_COUNT,
        enabled: bool = True,
    ) -> None:
        self.log_path = log_path or DEFAULT_AUDIT_LOG_PATH
        self.max_size_bytes = max_size_mb * 1024 * 1024
        self.backup_count = backup_count
        self.enabled = enabled
        self.session_id = str(uuid.uuid4())
        self._correlations: list[str] = []

    def log(self, event: AuditEvent) -> None:
        """Stamp ``event`` with session and correlation ids and append it."""
        if not self.enabled:
            return

        event.session_id = self.session_id
        event.correlation_id = self._correlations[-1] if self._correlations else None

        try:
            self.log_path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
            with self._locked_append() as handle:
                handle.write(event.to_json() + "\n")
            if self.log_path.stat().st_size > self.max_size_bytes:
                self._rotate()
        except OSError as e:
            console.debug(f"Audit log not written ({self.log_path}): {e}")

    @contextmanager
    def _locked_append(self) -> Iterator[TextIO]:
        fd = os.open(self.log_path, os.O_WRONLY | os.O_APPEND | os.O_CREAT, 0o600)
        with os.fdopen(fd, "a") as handle:
            fcntl.flock(handle.fileno(), fcntl.LOCK_EX)
            yield handle
            handle.flush()
            os.fsync(handle.fileno())

    def _backup(self, index: int) -> Path:
        return self.log_path.with_suffix(f".{index}")

    def _rotate(self) -> None:
        """Shift audit.N to audit.N+1, dropping the oldest, and start a new file."""
        self._backup(self.backup_count).unlink(missing_ok=True)
        for index in reversed(range(1, self.backup_count)):
            if self._backup(index).exists():
                os.replace(self._backup(index), self._backup(index + 1))
        os.replace(self.log_path, self._backup(1))
        self.log_path.touch(mode=0o600)

    @contextmanager
    def correlation(self, operation: str) -> Iterator[str]:
        """Give every event logged inside the block the same correlation id."""
        correlation_id = f"{operation}_{uuid.uuid4().hex[:8]}"
        self._correlations.append(correlation_id)
        try:
            yield correlation_id
        finally:
            self._correlations.pop()

    def log_success(
        self,
        event_type: AuditEventType,
        organization: str,
        database: str,
        message: Optional[str] = None,
        parameters: Optional[dict[str, Any]] = None,
    ) -> None:
        self.log(AuditEvent(
            event_type, AuditResult.SUCCESS, organization, database,
            parameters=parameters or {}, message=message,
        ))

    def log_failure(
        self,
        event_type: AuditEventType,
        organization: str,
        database: str,
        error: str,
        parameters: Optional[dict[str, Any]] = None,
    ) -> None:
        self.log(AuditEvent(
            event_type, AuditResult.FAILURE, organization, database,
            parameters=parameters or {}, error=error,
        ))

    def log_blocked(
        self,
        operation: str,
        reason: str,
        organization: Optional[str] = None,
        database: Optional[str] = None,
    ) -> None:
        """Record a transition rejected by a state guard."""
        self.log(AuditEvent(
            AuditEventType.SECURITY_BLOCKED, AuditResult.BLOCKED, organization, database,
            operation=operation, message=reason,
        ))

    def log_dry_run(
        self,
        event_type: AuditEventType,
        organization: str,
        database: str,
        message: Optional[str] = None,
    ) -> None:
        self.log(AuditEvent(
            event_type, AuditResult.DRY_RUN, organization, database, message=message,
        ))

