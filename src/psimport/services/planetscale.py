"""PlanetScale data-imports API client.

``DataImportsAPI`` is the interface the import controller depends on;
``PlanetScaleClient`` implements it over HTTPS with requests. Every call is
a single round trip. Nothing here retries.
"""

from typing import Any, Optional, Protocol

import requests

from psimport import __version__
from psimport.core.config import DEFAULT_API_URL
from psimport.core.exceptions import InconsistencyError, NotFoundError, TransportError
from psimport.core.output import Console, console as default_console
from psimport.services.compatibility import CompatibilityVerdict
from psimport.services.import_state import DataImport, ImportState
from psimport.services.source import SourceConnection


class DataImportsAPI(Protocol):
    """Remote operations consumed by the import controller."""

    def test_source(self, org: str, source: SourceConnection) -> CompatibilityVerdict:
        ...

    def start_import(self, org: str, database: str, source: SourceConnection) -> DataImport:
        ...

    def get_import(self, org: str, database: str) -> DataImport:
        ...

    def make_primary(self, org: str, database: str) -> DataImport:
        ...

    def detach_external_database(self, org: str, database: str) -> DataImport:
        ...


class PlanetScaleClient:
    """HTTP client for the data-imports endpoints.

    Error mapping:
        404          -> NotFoundError
        409          -> InconsistencyError (concurrent change on the server)
        other errors -> TransportError with the server message verbatim
    """

    def __init__(
        self,
        token_id: str,
        token: str,
        base_url: str = DEFAULT_API_URL,
        timeout: int = 30,
        session: Optional[requests.Session] = None,
        console: Optional[Console] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.console = console or default_console
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"{token_id}:{token}",
                "Accept": "application/json",
                "Content-Type": "application/json",
                "User-Agent": f"psimport/{__version__}",
            }
        )

    # Remote operations
    def test_source(self, org: str, source: SourceConnection) -> CompatibilityVerdict:
        """Test connectivity and schema compatibility of an external database."""
        data = self._request(
            "POST",
            f"/organizations/{org}/data-imports/test-connection",
            json={"connection": source.to_payload()},
        )
        return CompatibilityVerdict.from_dict(data)

    def start_import(self, org: str, database: str, source: SourceConnection) -> DataImport:
        """Start importing ``source`` into a new PlanetScale database."""
        data = self._request(
            "POST",
            f"/organizations/{org}/databases/{database}/data-imports/new",
            json={"connection": source.to_payload()},
        )
        return self._data_import(data, org, database)

    def get_import(self, org: str, database: str) -> DataImport:
        """Fetch the import attached to a PlanetScale database."""
        data = self._request(
            "GET",
            f"/organizations/{org}/databases/{database}/data-imports",
        )
        return self._data_import(data, org, database)

    def make_primary(self, org: str, database: str) -> DataImport:
        """Switch traffic so the PlanetScale database becomes primary."""
        data = self._request(
            "POST",
            f"/organizations/{org}/databases/{database}/data-imports/make-primary",
        )
        return self._data_import(data, org, database)

    def detach_external_database(self, org: str, database: str) -> DataImport:
        """Stop replicating with the external database and finish the import."""
        data = self._request(
            "POST",
            f"/organizations/{org}/databases/{database}/data-imports/detach-external-database",
        )
        return self._data_import(data, org, database)

    # HTTP mechanics
    def _request(
        self,
        method: str,
        path: str,
        json: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        self.console.debug(f"{method} {url}")

        try:
            response = self._session.request(method, url, json=json, timeout=self.timeout)
        except requests.Timeout as e:
            raise TransportError(
                f"Request to PlanetScale API timed out after {self.timeout}s",
                hint="Check your network connection or raise api.timeout in the config file",
            ) from e
        except requests.RequestException as e:
            raise TransportError(
                f"Cannot reach PlanetScale API: {e}",
                hint="Check your network connection and api.base_url",
            ) from e

        self.console.debug(f"{method} {url} -> {response.status_code}")

        if response.status_code == 404:
            raise NotFoundError(self._error_message(response), status_code=404)
        if response.status_code == 409:
            raise InconsistencyError(
                self._error_message(response),
                hint="The import was changed concurrently; check its state before retrying",
            )
        if response.status_code in (401, 403):
            raise TransportError(
                self._error_message(response),
                status_code=response.status_code,
                hint="Check PLANETSCALE_SERVICE_TOKEN_ID and PLANETSCALE_SERVICE_TOKEN",
            )
        if not response.ok:
            raise TransportError(
                self._error_message(response),
                status_code=response.status_code,
            )

        if not response.content:
            return {}
        try:
            data = response.json()
        except ValueError as e:
            raise TransportError(
                "PlanetScale API returned a malformed response",
                status_code=response.status_code,
                details=[response.text[:200]],
            ) from e
        if not isinstance(data, dict):
            raise TransportError(
                "PlanetScale API returned an unexpected response",
                status_code=response.status_code,
            )
        return data

    def _data_import(self, data: dict[str, Any], org: str, database: str) -> DataImport:
        data_import = DataImport.from_dict(data, organization=org, database=database)
        if data_import.state is ImportState.UNKNOWN:
            self.console.debug(f"Unrecognised import state from server: {data_import.raw_state!r}")
        return data_import

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        """Extract the server's error message, falling back to the raw body."""
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return response.text.strip() or f"HTTP {response.status_code} {response.reason}"
