"""Execution context for commands.

The ExecutionContext holds the flags that affect how a command runs and
lazily builds the configuration, audit logger and API client from them.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from psimport.core.audit import AuditLogger
from psimport.core.config import AppConfig, DEFAULT_CONFIG_PATH
from psimport.core.output import Console, console, Verbosity

if TYPE_CHECKING:
    from psimport.services.planetscale import PlanetScaleClient


@dataclass
class ExecutionContext:
    """Execution context passed to all commands.

    Attributes:
        dry_run: If True, validate without starting anything
        force: If True, skip confirmation of one-way operations
        verbosity: Output verbosity level (0-3)
        no_color: If True, disable colored output
        config_path: Path to configuration file
        organization: Organization override from the command line
    """

    # Runtime flags
    dry_run: bool = False
    force: bool = False
    verbosity: int = 1
    no_color: bool = False

    # Configuration
    config_path: Path = field(default_factory=lambda: DEFAULT_CONFIG_PATH)
    organization: Optional[str] = None

    # Internal state (initialized lazily)
    _config: Optional[AppConfig] = field(default=None, repr=False)
    _console: Console = field(default_factory=lambda: console, repr=False)
    _audit: Optional[AuditLogger] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        """Configure console after initialization."""
        self._console.configure(
            verbosity=self.verbosity,
            no_color=self.no_color,
        )

    @property
    def config(self) -> AppConfig:
        """Get application configuration (lazy loaded)."""
        if self._config is None:
            self._config = AppConfig(config_path=self.config_path)
        return self._config

    @property
    def console(self) -> Console:
        """Get console for output."""
        return self._console

    @property
    def audit(self) -> AuditLogger:
        """Get the audit logger configured from the config file."""
        if self._audit is None:
            audit_config = self.config.audit
            self._audit = AuditLogger(
                log_path=audit_config.log_path,
                enabled=audit_config.enabled,
            )
        return self._audit

    @property
    def org(self) -> str:
        """Resolved organization for remote calls."""
        return self.config.require_organization(self.organization)

    @property
    def is_verbose(self) -> bool:
        """Check if verbose output is enabled."""
        return self.verbosity >= Verbosity.VERBOSE

    def client(self) -> "PlanetScaleClient":
        """Build an authenticated API client from the configuration."""
        from psimport.services.planetscale import PlanetScaleClient

        token_id, token = self.config.require_service_token()
        return PlanetScaleClient(
            token_id=token_id,
            token=token,
            base_url=self.config.api.base_url,
            timeout=self.config.api.timeout,
            console=self._console,
        )


def create_context(
    dry_run: bool = False,
    force: bool = False,
    verbose: int = 0,
    quiet: bool = False,
    no_color: bool = False,
    config: Optional[Path] = None,
    org: Optional[str] = None,
) -> ExecutionContext:
    """Create an execution context from CLI options.

    Args:
        dry_run: Validate without starting anything
        force: Skip confirmation prompts
        verbose: Increase verbosity (can be repeated)
        quiet: Suppress non-essential output
        no_color: Disable colored output
        config: Path to configuration file
        org: Organization override

    Returns:
        Configured execution context
    """
    if quiet:
        verbosity = Verbosity.QUIET
    else:
        verbosity = min(Verbosity.NORMAL + verbose, Verbosity.DEBUG)

    return ExecutionContext(
        dry_run=dry_run,
        force=force,
        verbosity=verbosity,
        no_color=no_color,
        config_path=config or DEFAULT_CONFIG_PATH,
        organization=org,
    )
