"""Configuration management using Pydantic.

Provides:
- Typed configuration models with validation
- YAML file loading with defaults
- Environment variable overrides for the organization and service token
- Configuration initialization and display
"""

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from psimport.core.exceptions import ConfigurationError, PSImportError
from psimport.core.validation import validate_name, validate_url


# Default configuration paths
DEFAULT_CONFIG_PATH = Path.home() / ".config" / "psimport" / "config.yaml"
DEFAULT_AUDIT_LOG_PATH = Path.home() / ".psimport" / "audit.log"
DEFAULT_API_URL = "https://api.planetscale.com/v1"


class APIConfig(BaseModel):
    """PlanetScale API settings."""

    base_url: str = DEFAULT_API_URL
    timeout: int = 30  # seconds

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        try:
            return validate_url(v).rstrip("/")
        except PSImportError as e:
            raise ValueError(e.message) from e

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        if not 1 <= v <= 300:
            raise ValueError("timeout must be between 1 and 300 seconds")
        return v


class AuditConfig(BaseModel):
    """Audit log settings."""

    enabled: bool = True
    log_path: Path = DEFAULT_AUDIT_LOG_PATH

    @field_validator("log_path")
    @classmethod
    def expand_log_path(cls, v: Path) -> Path:
        return v.expanduser()


class ClientConfig(BaseModel):
    """Root configuration model loaded from the YAML config file.

    The service token is NOT stored in this file - it comes from
    environment variables.
    """

    organization: Optional[str] = None

    api: APIConfig = Field(default_factory=APIConfig)
    audit: AuditConfig = Field(default_factory=AuditConfig)

    @field_validator("organization")
    @classmethod
    def validate_organization(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        try:
            return validate_name(v, "organization")
        except PSImportError as e:
            raise ValueError(e.message) from e

    @classmethod
    def load(cls, path: Path) -> "ClientConfig":
        """Load configuration from YAML file.

        Args:
            path: Path to configuration file

        Returns:
            Loaded configuration

        Raises:
            ConfigurationError: If file not found or invalid
        """
        if not path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {path}",
                hint="Create it with: psimport config init",
            )

        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in configuration file: {path}",
                details=[str(e)],
            ) from e
        except PermissionError as e:
            raise ConfigurationError(
                f"Cannot read configuration file: {path}",
                hint="Check file permissions",
            ) from e

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Invalid configuration file: {path}",
                hint="The top level of the file must be a mapping",
            )

        try:
            return cls(**data)
        except Exception as e:
            raise ConfigurationError(
                f"Invalid configuration: {path}",
                details=[str(e)],
            ) from e

    @classmethod
    def load_or_default(cls, path: Optional[Path] = None) -> "ClientConfig":
        """Load configuration, falling back to defaults if file doesn't exist."""
        if path is None:
            path = DEFAULT_CONFIG_PATH

        if path.exists():
            return cls.load(path)
        return cls()

    def to_yaml(self) -> str:
        """Convert configuration to YAML string."""
        data = self.model_dump(mode="json", exclude_none=True)
        return yaml.dump(data, default_flow_style=False, sort_keys=False)


class SecretsConfig(BaseSettings):
    """Service token and organization override from environment variables.

    The token is NEVER stored in config files.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    service_token_id: Optional[str] = Field(None, alias="PLANETSCALE_SERVICE_TOKEN_ID")
    service_token: Optional[str] = Field(None, alias="PLANETSCALE_SERVICE_TOKEN")
    organization: Optional[str] = Field(None, alias="PLANETSCALE_ORG")


class AppConfig:
    """Application configuration combining config file and secrets.

    This is the main interface for accessing configuration throughout the app.
    """

    def __init__(
        self,
        config_path: Optional[Path] = None,
        config: Optional[ClientConfig] = None,
        secrets: Optional[SecretsConfig] = None,
    ) -> None:
        """Initialize application configuration.

        Args:
            config_path: Path to config file (uses default if None)
            config: Pre-loaded config (skips file loading if provided)
            secrets: Pre-loaded secrets (skips environment lookup if provided)
        """
        self.config_path = config_path or DEFAULT_CONFIG_PATH
        self._config = config or ClientConfig.load_or_default(self.config_path)
        self._secrets = secrets if secrets is not None else SecretsConfig()

    @property
    def config(self) -> ClientConfig:
        """Get the file configuration."""
        return self._config

    @property
    def secrets(self) -> SecretsConfig:
        """Get the secrets configuration."""
        return self._secrets

    @property
    def api(self) -> APIConfig:
        """Shortcut to API config."""
        return self._config.api

    @property
    def audit(self) -> AuditConfig:
        """Shortcut to audit config."""
        return self._config.audit

    @property
    def organization(self) -> Optional[str]:
        """Organization from the environment, else from the config file."""
        return self._secrets.organization or self._config.organization

    def has_service_token(self) -> bool:
        """Check if the service token is configured."""
        return bool(self._secrets.service_token_id and self._secrets.service_token)

    def require_organization(self, override: Optional[str] = None) -> str:
        """Resolve the organization, preferring an explicit override.

        Raises:
            ConfigurationError: If no organization is configured
            ValidationError: If the organization name is malformed
        """
        org = override or self.organization
        if not org:
            raise ConfigurationError(
                "No organization configured",
                hint="Pass --org, set PLANETSCALE_ORG, or add 'organization' to the config file",
            )
        return validate_name(org, "organization")

    def require_service_token(self) -> tuple[str, str]:
        """Return (token_id, token).

        Raises:
            ConfigurationError: If the token is not configured
        """
        if not self.has_service_token():
            raise ConfigurationError(
                "PlanetScale service token not configured",
                hint="Set PLANETSCALE_SERVICE_TOKEN_ID and PLANETSCALE_SERVICE_TOKEN",
            )
        return self._secrets.service_token_id or "", self._secrets.service_token or ""


def get_example_config() -> str:
    """Generate example configuration file content."""
    return """# psimport configuration
# The service token is loaded from environment variables, NOT stored here:
#   PLANETSCALE_SERVICE_TOKEN_ID, PLANETSCALE_SERVICE_TOKEN
# PLANETSCALE_ORG overrides 'organization' below.

organization: my-org

# PlanetScale API
api:
  base_url: https://api.planetscale.com/v1
  timeout: 30  # seconds, 1-300

# Audit log of mutating import operations (JSON lines)
audit:
  enabled: true
  # log_path: ~/.psimport/audit.log
"""


def init_config(path: Path, force: bool = False) -> None:
    """Initialize a new configuration file.

    Args:
        path: Path to create config file
        force: Overwrite if exists

    Raises:
        ConfigurationError: If file exists and force is False
    """
    if path.exists() and not force:
        raise ConfigurationError(
            f"Configuration file already exists: {path}",
            hint="Use --force to overwrite",
        )

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(get_example_config())
    os.chmod(path, 0o600)
