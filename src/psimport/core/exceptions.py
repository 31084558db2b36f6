"""Custom exceptions for the psimport CLI.

All exceptions provide:
- Clear error messages
- Optional hints for resolution
- Optional details for debugging
- Exit codes for proper shell integration
"""

from typing import Optional


class PSImportError(Exception):
    """Base exception for all psimport errors.

    Attributes:
        message: Human-readable error description
        hint: Suggested action to resolve the error
        details: Additional context for debugging
        exit_code: Shell exit code (1-127)
    """

    exit_code: int = 1

    def __init__(
        self,
        message: str,
        *,
        hint: Optional[str] = None,
        details: Optional[list[str]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.details = details or []

    def __str__(self) -> str:
        return self.message


class ConfigurationError(PSImportError):
    """Configuration file or settings errors.

    Raised when:
    - Config file unreadable or invalid YAML
    - Missing organization or service token
    - Invalid configuration values
    """
    exit_code = 2


class ValidationError(PSImportError):
    """Input validation errors.

    Raised before any network call when:
    - Port is outside 1-65535
    - SSL mode is not a known value
    - A required argument is empty
    - A database name is malformed
    """
    exit_code = 3


class TransportError(PSImportError):
    """Network, authentication or unexpected remote failures.

    Never retried. The remote message is carried verbatim.
    """
    exit_code = 5

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        hint: Optional[str] = None,
        details: Optional[list[str]] = None,
    ) -> None:
        if not details:
            details = []
        if status_code is not None:
            details.append(f"HTTP status: {status_code}")
        super().__init__(message, hint=hint, details=details)
        self.status_code = status_code


class NotFoundError(TransportError):
    """The requested organization, database or import does not exist."""


# Import lifecycle errors

class SourceUnreachableError(PSImportError):
    """The verification service could not connect to the external database.

    The message is the remote connect error, unmodified.
    """
    exit_code = 20


class SchemaIncompatibleError(PSImportError):
    """The external database schema cannot be imported as-is."""
    exit_code = 21

    def __init__(
        self,
        message: str,
        *,
        findings: Optional[list] = None,
        hint: Optional[str] = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.findings = list(findings or [])


class TransitionBlockedError(PSImportError):
    """A guarded import transition was rejected for the current state."""
    exit_code = 22

    def __init__(
        self,
        message: str,
        *,
        state: Optional[object] = None,
        hint: Optional[str] = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.state = state


class PromotionBlockedError(TransitionBlockedError):
    """Promote-to-primary is not possible in the current state."""


class DetachBlockedError(TransitionBlockedError):
    """Detaching the external database is not possible in the current state."""


class InconsistencyError(PSImportError):
    """A mutating call left the import in an unexpected state.

    Raised when:
    - Promote returned a state other than Running as Primary
    - Detach returned a state other than Ready
    - The server reported a conflicting concurrent change
    """
    exit_code = 23

    def __init__(
        self,
        message: str,
        *,
        expected: Optional[object] = None,
        actual: Optional[object] = None,
        hint: Optional[str] = None,
        details: Optional[list[str]] = None,
    ) -> None:
        super().__init__(message, hint=hint, details=details)
        self.expected = expected
        self.actual = actual
