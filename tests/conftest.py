"""Shared fixtures: an in-memory DataImportsAPI and a capturing console."""

import io
from typing import Optional

import pytest

from psimport.core.exceptions import PSImportError
from psimport.core.output import Console
from psimport.services.compatibility import CompatibilityVerdict
from psimport.services.import_state import DataImport, ImportState
from psimport.services.source import SourceConnection, SSLMode


class FakeDataImportsAPI:
    """Records every remote call and answers from preset values.

    Set ``*_error`` attributes to make the matching call raise.
    """

    def __init__(
        self,
        verdict: Optional[CompatibilityVerdict] = None,
        state: ImportState = ImportState.COPYING_DATA,
        promoted_state: ImportState = ImportState.SWITCH_TRAFFIC_COMPLETED,
        detached_state: ImportState = ImportState.READY,
        started_state: ImportState = ImportState.PREPARING_DATA_COPY,
    ) -> None:
        self.verdict = verdict or CompatibilityVerdict(can_connect=True)
        self.state = state
        self.promoted_state = promoted_state
        self.detached_state = detached_state
        self.started_state = started_state
        self.test_source_error: Optional[PSImportError] = None
        self.get_error: Optional[PSImportError] = None
        self.promote_error: Optional[PSImportError] = None
        # Wire value reported by get_import; defaults to the state's own value
        self.raw_state: Optional[str] = None
        self.calls: list[tuple] = []

    def calls_to(self, operation: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == operation]

    def test_source(self, org: str, source: SourceConnection) -> CompatibilityVerdict:
        self.calls.append(("test_source", org, source))
        if self.test_source_error:
            raise self.test_source_error
        return self.verdict

    def start_import(self, org: str, database: str, source: SourceConnection) -> DataImport:
        self.calls.append(("start_import", org, database, source))
        self.state = self.started_state
        return DataImport(id="imp-1", state=self.state, organization=org, database=database)

    def get_import(self, org: str, database: str) -> DataImport:
        self.calls.append(("get_import", org, database))
        if self.get_error:
            raise self.get_error
        return DataImport(
            id="imp-1",
            state=self.state,
            organization=org,
            database=database,
            raw_state=self.raw_state or self.state.value,
        )

    def make_primary(self, org: str, database: str) -> DataImport:
        self.calls.append(("make_primary", org, database))
        if self.promote_error:
            raise self.promote_error
        self.state = self.promoted_state
        return DataImport(id="imp-1", state=self.state, organization=org, database=database)

    def detach_external_database(self, org: str, database: str) -> DataImport:
        self.calls.append(("detach_external_database", org, database))
        self.state = self.detached_state
        return DataImport(id="imp-1", state=self.state, organization=org, database=database)


class CapturedConsole(Console):
    """Console writing to in-memory buffers."""

    def __init__(self) -> None:
        self.out = io.StringIO()
        self.err = io.StringIO()
        super().__init__(file=self.out, err_file=self.err)

    @property
    def output(self) -> str:
        return self.out.getvalue()

    @property
    def errors(self) -> str:
        return self.err.getvalue()


@pytest.fixture(autouse=True)
def plain_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep terminal and PlanetScale settings from leaking into tests."""
    for var in (
        "FORCE_COLOR",
        "PLANETSCALE_ORG",
        "PLANETSCALE_SERVICE_TOKEN_ID",
        "PLANETSCALE_SERVICE_TOKEN",
        "PSIMPORT_SOURCE_PASSWORD",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def fake_api() -> FakeDataImportsAPI:
    return FakeDataImportsAPI()


@pytest.fixture
def captured_console() -> CapturedConsole:
    return CapturedConsole()


@pytest.fixture
def source() -> SourceConnection:
    return SourceConnection(
        database="aws-upstream-database",
        host="rds.amazonaws.com",
        port=3306,
        username="aws-user",
        password="aws-password",
        ssl_mode=SSLMode.PREFERRED,
    )
