"""Core framework components for the psimport CLI."""

from psimport.core.exceptions import (
    PSImportError,
    ConfigurationError,
    ValidationError,
    TransportError,
    NotFoundError,
    SourceUnreachableError,
    SchemaIncompatibleError,
    TransitionBlockedError,
    PromotionBlockedError,
    DetachBlockedError,
    InconsistencyError,
)

from psimport.core.context import ExecutionContext, create_context
from psimport.core.output import console, Console, Verbosity
from psimport.core.config import AppConfig, ClientConfig
from psimport.core.audit import (
    AuditLogger,
    AuditEvent,
    AuditEventType,
    AuditResult,
)

__all__ = [
    # Exceptions
    "PSImportError",
    "ConfigurationError",
    "ValidationError",
    "TransportError",
    "NotFoundError",
    "SourceUnreachableError",
    "SchemaIncompatibleError",
    "TransitionBlockedError",
    "PromotionBlockedError",
    "DetachBlockedError",
    "InconsistencyError",
    # Context
    "ExecutionContext",
    "create_context",
    # Output
    "console",
    "Console",
    "Verbosity",
    # Config
    "AppConfig",
    "ClientConfig",
    # Audit
    "AuditLogger",
    "AuditEvent",
    "AuditEventType",
    "AuditResult",
]
