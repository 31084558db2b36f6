"""External database connection descriptor."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from psimport.core.exceptions import ValidationError
from psimport.core.validation import require_value, validate_hostname, validate_port


DEFAULT_MYSQL_PORT = 3306


class SSLMode(Enum):
    """TLS mode used by the platform when connecting to the external database."""

    DISABLED = "disabled"
    PREFERRED = "preferred"
    REQUIRED = "required"
    VERIFY_CA = "verify_ca"
    VERIFY_IDENTITY = "verify_identity"

    @classmethod
    def parse(cls, value: Union[str, "SSLMode"]) -> "SSLMode":
        """Parse an SSL mode, accepting dashes for underscores.

        Raises:
            ValidationError: If the mode is not one of the known values
        """
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower().replace("-", "_")
        try:
            return cls(normalized)
        except ValueError:
            raise ValidationError(
                f"Invalid SSL mode: '{value}'",
                hint=f"Use one of: {', '.join(m.value for m in cls)}",
            ) from None


@dataclass(frozen=True)
class SourceConnection:
    """Immutable description of an external MySQL-compatible database.

    Values are validated on construction, so an instance is always safe to
    send to the verification service. The password is kept out of repr.
    """

    database: str
    host: str
    username: str
    password: str = field(repr=False)
    port: int = DEFAULT_MYSQL_PORT
    ssl_mode: SSLMode = SSLMode.PREFERRED

    def __post_init__(self) -> None:
        object.__setattr__(self, "database", require_value(self.database, "database"))
        object.__setattr__(self, "host", validate_hostname(self.host))
        object.__setattr__(self, "username", require_value(self.username, "username"))
        if not self.password:
            raise ValidationError(
                "Password is required",
                hint="Pass --password or set PSIMPORT_SOURCE_PASSWORD",
            )
        validate_port(self.port)
        object.__setattr__(self, "ssl_mode", SSLMode.parse(self.ssl_mode))

    @property
    def address(self) -> str:
        """host:port for display."""
        return f"{self.host}:{self.port}"

    def to_payload(self) -> dict[str, Any]:
        """Build the wire representation sent to the PlanetScale API."""
        return {
            "database": self.database,
            "hostname": self.host,
            "port": self.port,
            "username": self.username,
            "password": self.password,
            "ssl_mode": self.ssl_mode.value,
        }
