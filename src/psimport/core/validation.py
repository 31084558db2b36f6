"""Input validation utilities.

Provides validation for:
- PlanetScale organization and database names
- External database hosts, ports and credentials
- API URLs

All validators return the validated value or raise ValidationError.
Validation always happens before any network call.
"""

import re
from typing import Optional
from urllib.parse import urlparse

from psimport.core.exceptions import ValidationError


# PlanetScale resource names: lowercase letters, digits and dashes
NAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9-]*$")

# Maximum resource name length
MAX_NAME_LENGTH = 63

# RFC 1123 hostname label
HOSTNAME_LABEL = re.compile(r"^(?!-)[A-Za-z0-9-]{1,63}(?<!-)$")

MAX_HOSTNAME_LENGTH = 253


def require_value(value: Optional[str], field_name: str) -> str:
    """Validate that a required string argument is present and non-blank.

    Args:
        value: The value to check
        field_name: Name used in error messages (e.g., "username")

    Returns:
        The value with surrounding whitespace removed

    Raises:
        ValidationError: If the value is missing or blank
    """
    if value is None or not value.strip():
        raise ValidationError(
            f"{field_name.capitalize()} is required",
            hint=f"Provide a non-empty {field_name}",
        )
    return value.strip()


def validate_name(value: str, name_type: str = "database") -> str:
    """Validate a PlanetScale organization or database name.

    Rules:
    - Must start with a lowercase letter or digit
    - Can contain lowercase letters, digits and dashes
    - Max 63 characters

    Args:
        value: The name to validate
        name_type: Type for error messages (e.g., "database", "organization")

    Returns:
        The validated name

    Raises:
        ValidationError: If validation fails
    """
    value = require_value(value, f"{name_type} name")

    if len(value) > MAX_NAME_LENGTH:
        raise ValidationError(
            f"{name_type.title()} name exceeds maximum length "
            f"({len(value)} > {MAX_NAME_LENGTH})",
            hint=f"Use a name with {MAX_NAME_LENGTH} or fewer characters",
        )

    if not NAME_PATTERN.match(value):
        raise ValidationError(
            f"Invalid {name_type} name: '{value}'",
            hint="Use lowercase letters, digits and dashes only",
            details=[_suggest_valid_name(value)],
        )

    return value


def _suggest_valid_name(name: str) -> str:
    """Generate a suggestion for a valid name from an invalid one."""
    cleaned = re.sub(r"[^a-z0-9-]", "-", name.lower()).lstrip("-")

    if not cleaned:
        cleaned = "unnamed"

    return f"Suggestion: {cleaned[:MAX_NAME_LENGTH]}"


def validate_hostname(value: str) -> str:
    """Validate the host of an external database.

    Accepts DNS names and IPv4 addresses. Schemes, paths and ports are
    rejected because the port is a separate argument.

    Raises:
        ValidationError: If the host is malformed
    """
    value = require_value(value, "host")

    if len(value) > MAX_HOSTNAME_LENGTH:
        raise ValidationError(
            f"Host name exceeds maximum length ({len(value)} > {MAX_HOSTNAME_LENGTH})",
        )

    if "://" in value or "/" in value or ":" in value:
        raise ValidationError(
            f"Invalid host: {value}",
            hint="Provide only the host name, e.g. db.example.com, and pass the port with --port",
        )

    labels = value.rstrip(".").split(".")
    if not all(HOSTNAME_LABEL.match(label) for label in labels):
        raise ValidationError(
            f"Invalid host: {value}",
            hint="Host names may contain letters, digits, dashes and dots",
        )

    return value


def validate_port(value: int) -> int:
    """Validate a TCP port number.

    Args:
        value: Port number to validate

    Returns:
        The validated port number

    Raises:
        ValidationError: If port is out of valid range
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(
            f"Invalid port number: {value!r}",
            hint="Port must be an integer between 1 and 65535",
        )

    if not 1 <= value <= 65535:
        raise ValidationError(
            f"Invalid port number: {value}",
            hint="Port must be between 1 and 65535",
        )

    return value


def validate_url(
    value: str,
    require_https: bool = False,
    allowed_schemes: Optional[frozenset[str]] = None,
) -> str:
    """Validate a URL.

    Args:
        value: URL to validate
        require_https: If True, only HTTPS URLs are allowed
        allowed_schemes: Set of allowed schemes (default: http, https)

    Returns:
        The validated URL

    Raises:
        ValidationError: If validation fails
    """
    value = value.strip()

    if not allowed_schemes:
        allowed_schemes = frozenset({"http", "https"})

    parsed = urlparse(value)

    if not parsed.scheme:
        raise ValidationError(
            f"URL must include a scheme: {value}",
            hint=f"Use https://{value}",
        )

    if parsed.scheme.lower() not in allowed_schemes:
        raise ValidationError(
            f"URL scheme '{parsed.scheme}' not allowed",
            hint=f"Use one of: {', '.join(sorted(allowed_schemes))}",
        )

    if require_https and parsed.scheme.lower() != "https":
        raise ValidationError(
            "HTTPS is required for security",
            hint=f"Change {parsed.scheme}:// to https://",
        )

    if not parsed.netloc:
        raise ValidationError(
            f"URL must include a host: {value}",
            hint="Provide a complete URL like https://api.planetscale.com/v1",
        )

    return value
