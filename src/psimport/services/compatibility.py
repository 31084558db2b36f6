"""Compatibility precheck of an external database.

The remote verification service answers with a verdict value. Turning
that verdict into success or a typed error is a separate pure step
(``evaluate_verdict``) so it can be tested without a network.

A verdict with ``can_connect = False`` is a normal answer, not a failed
call. Only transport failures raise from ``CompatibilityPrechecker.check``.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterable, Optional

from psimport.core.exceptions import SchemaIncompatibleError, SourceUnreachableError
from psimport.core.validation import validate_name
from psimport.services.source import SourceConnection

if TYPE_CHECKING:
    from psimport.services.planetscale import DataImportsAPI


INCOMPATIBLE_HEADER = (
    "External database compatibility check failed. "
    "Fix the following errors and then try again:"
)
BULLET = "•"


@dataclass(frozen=True)
class IncompatibilityFinding:
    """One schema problem reported by the verification service."""

    code: str
    description: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "IncompatibilityFinding":
        return cls(
            code=data.get("lint_error", ""),
            description=data.get("error_description", ""),
        )


@dataclass(frozen=True)
class CompatibilityVerdict:
    """Result of testing an external database.

    ``connect_error`` is only meaningful when ``can_connect`` is False;
    ``findings`` only when it is True.
    """

    can_connect: bool
    connect_error: Optional[str] = None
    findings: tuple[IncompatibilityFinding, ...] = field(default_factory=tuple)

    @property
    def compatible(self) -> bool:
        return self.can_connect and not self.findings

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CompatibilityVerdict":
        """Create from a test-connection response body."""
        return cls(
            can_connect=bool(data.get("can_connect", False)),
            connect_error=data.get("error") or None,
            findings=tuple(
                IncompatibilityFinding.from_dict(item)
                for item in data.get("lint_errors") or []
            ),
        )


def format_findings(findings: Iterable[IncompatibilityFinding]) -> str:
    """Render findings as the header, a blank line and one bullet per finding."""
    bullets = "".join(f"{BULLET} {finding.description}\n" for finding in findings)
    return f"{INCOMPATIBLE_HEADER}\n\n{bullets}"


def evaluate_verdict(verdict: CompatibilityVerdict) -> None:
    """Apply the precheck decision rule.

    Raises:
        SourceUnreachableError: The service could not connect; the message
            is the remote connect error verbatim
        SchemaIncompatibleError: The schema has blocking findings, listed
            in the order the service reported them
    """
    if not verdict.can_connect:
        raise SourceUnreachableError(verdict.connect_error or "")

    if verdict.findings:
        raise SchemaIncompatibleError(
            format_findings(verdict.findings),
            findings=list(verdict.findings),
        )


class CompatibilityPrechecker:
    """Runs the remote connectivity and schema check for a source."""

    def __init__(self, api: "DataImportsAPI") -> None:
        self.api = api

    def check(self, org: str, source: SourceConnection) -> CompatibilityVerdict:
        """Ask the verification service about ``source``.

        Single round trip with no retries; does not touch import state.

        Raises:
            ValidationError: If ``org`` is empty or malformed
            TransportError: If the call itself fails
        """
        validate_name(org, "organization")
        return self.api.test_source(org, source)
