"""Integration tests for the data-imports commands.

Runs the CLI end to end with the remote API replaced by the in-memory
fake from conftest.
"""

from pathlib import Path
from typing import Generator
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from psimport.cli import app
from psimport.core.exceptions import NotFoundError
from psimport.services.compatibility import CompatibilityVerdict, IncompatibilityFinding
from psimport.services.import_state import ImportState


runner = CliRunner()

SOURCE_ARGS = [
    "--host", "rds.amazonaws.com",
    "--database", "aws-upstream-database",
    "--username", "aws-user",
    "--password", "aws-password",
]


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """Config file with an organization and a private audit log."""
    path = tmp_path / "config.yaml"
    path.write_text(
        "organization: planetscale\n"
        "audit:\n"
        f"  log_path: {tmp_path / 'audit.log'}\n"
    )
    return path


@pytest.fixture
def patched_api(fake_api) -> Generator:
    """Route every command to the fake API."""
    with patch("psimport.commands.data_imports._get_api", return_value=fake_api):
        yield fake_api


def _invoke(config_file: Path, *args: str, input: str = None):
    return runner.invoke(
        app, ["data-imports", *args, "--config", str(config_file)], input=input
    )


class TestLintCommand:
    """Tests for data-imports lint."""

    def test_compatible(self, config_file, patched_api):
        """A compatible database should exit 0."""
        result = _invoke(config_file, "lint", "-n", "employees", *SOURCE_ARGS)

        assert result.exit_code == 0
        assert "Testing Compatibility of database aws-upstream-database with user aws-user..." \
            in result.output
        assert (
            "Database aws-upstream-database is compatible and can be imported "
            "into PlanetScale database employees"
        ) in result.output

    def test_unreachable(self, config_file, patched_api):
        """An unreachable source should exit 20 with the remote message."""
        patched_api.verdict = CompatibilityVerdict(can_connect=False, connect_error="AWS RDS is down")

        result = _invoke(config_file, "lint", "-n", "employees", *SOURCE_ARGS)

        assert result.exit_code == 20
        assert "AWS RDS is down" in result.output

    def test_incompatible(self, config_file, patched_api):
        """Schema findings should exit 21 and list every finding."""
        patched_api.verdict = CompatibilityVerdict(
            can_connect=True,
            findings=(
                IncompatibilityFinding("NO_PRIMARY_KEY", "Table a has no primary key"),
                IncompatibilityFinding("NO_PRIMARY_KEY", "Table b has no primary key"),
            ),
        )

        result = _invoke(config_file, "lint", "-n", "employees", *SOURCE_ARGS)

        assert result.exit_code == 21
        assert "External database compatibility check failed." in result.output
        assert "• Table a has no primary key" in result.output
        assert "• Table b has no primary key" in result.output

    def test_invalid_port(self, config_file, patched_api):
        """A bad port should exit 3 before any remote call."""
        result = _invoke(
            config_file, "lint", "-n", "employees", *SOURCE_ARGS, "--port", "70000"
        )

        assert result.exit_code == 3
        assert patched_api.calls == []

    def test_invalid_ssl_mode(self, config_file, patched_api):
        """An unknown SSL mode should exit 3."""
        result = _invoke(
            config_file, "lint", "-n", "employees", *SOURCE_ARGS, "--ssl-mode", "sometimes"
        )

        assert result.exit_code == 3
        assert "Invalid SSL mode" in result.output

    def test_password_from_environment(self, config_file, patched_api, monkeypatch):
        """The password can come from PSIMPORT_SOURCE_PASSWORD."""
        monkeypatch.setenv("PSIMPORT_SOURCE_PASSWORD", "from-env")
        args = SOURCE_ARGS[:-2]

        result = _invoke(config_file, "lint", "-n", "employees", *args)

        assert result.exit_code == 0
        source = patched_api.calls_to("test_source")[0][2]
        assert source.password == "from-env"


class TestStartCommand:
    """Tests for data-imports start."""

    def test_dry_run_by_default(self, config_file, patched_api):
        """Without --no-dry-run nothing should be started."""
        result = _invoke(config_file, "start", "-n", "employees", *SOURCE_ARGS)

        assert result.exit_code == 0
        assert "Please run this command with --no-dry-run to start the import" in result.output
        assert patched_api.calls_to("start_import") == []

    def test_no_dry_run_starts(self, config_file, patched_api):
        """--no-dry-run should start the import and show stage 1."""
        result = _invoke(
            config_file, "start", "-n", "employees", *SOURCE_ARGS, "--no-dry-run"
        )

        assert result.exit_code == 0
        assert "Successfully started importing database aws-upstream-database" in result.output
        assert "> 1. Started Data Copy" in result.output
        assert len(patched_api.calls_to("start_import")) == 1


class TestGetCommand:
    """Tests for data-imports get."""

    def test_shows_checklist(self, config_file, patched_api):
        """The checklist should mark the current stage."""
        patched_api.state = ImportState.SWITCH_TRAFFIC_PENDING

        result = _invoke(config_file, "get", "-n", "employees")

        assert result.exit_code == 0
        assert "> 3. Running as Replica" in result.output
        assert "1. Started Data Copy" in result.output

    def test_not_found(self, config_file, patched_api):
        """A missing import should exit with the transport code."""
        patched_api.get_error = NotFoundError("Database not found")

        result = _invoke(config_file, "get", "-n", "employees")

        assert result.exit_code == 5
        assert "Database not found" in result.output

    def test_org_flag_overrides_config(self, config_file, patched_api):
        """--org should be used for the remote call."""
        result = _invoke(config_file, "get", "-n", "employees", "--org", "other-org")

        assert result.exit_code == 0
        assert patched_api.calls_to("get_import") == [("get_import", "other-org", "employees")]

    def test_missing_organization(self, tmp_path, patched_api):
        """Without any organization the command should exit 2."""
        config_file = tmp_path / "empty.yaml"
        config_file.write_text(f"audit:\n  log_path: {tmp_path / 'audit.log'}\n")

        result = _invoke(config_file, "get", "-n", "employees")

        assert result.exit_code == 2
        assert "No organization configured" in result.output


class TestMakePrimaryCommand:
    """Tests for data-imports make-primary."""

    def test_promotes_replica(self, config_file, patched_api):
        """A replica should be promoted with --force."""
        patched_api.state = ImportState.SWITCH_TRAFFIC_PENDING

        result = _invoke(config_file, "make-primary", "-n", "employees", "--force")

        assert result.exit_code == 0
        assert "Getting current import status for PlanetScale database employees..." \
            in result.output
        assert "Switching PlanetScale database employees to Primary..." in result.output
        assert "> 4. Running as Primary" in result.output

    def test_blocked_while_copying(self, config_file, patched_api):
        """Promotion while copying should exit 22 without a promote call."""
        patched_api.state = ImportState.COPYING_DATA

        result = _invoke(config_file, "make-primary", "-n", "employees", "--force")

        assert result.exit_code == 22
        assert "because we are still copying data from upstream database" in result.output
        assert patched_api.calls_to("make_primary") == []

    def test_declined_confirmation(self, config_file, patched_api):
        """Declining the prompt should cancel without any remote call."""
        patched_api.state = ImportState.SWITCH_TRAFFIC_PENDING

        result = _invoke(config_file, "make-primary", "-n", "employees", input="n\n")

        assert result.exit_code == 0
        assert "Operation cancelled" in result.output
        assert patched_api.calls == []

    def test_confirmed(self, config_file, patched_api):
        """Answering yes should promote."""
        patched_api.state = ImportState.SWITCH_TRAFFIC_PENDING

        result = _invoke(config_file, "make-primary", "-n", "employees", input="y\n")

        assert result.exit_code == 0
        assert len(patched_api.calls_to("make_primary")) == 1

    def test_inconsistent_result(self, config_file, patched_api):
        """An unexpected post-promotion state should exit 23."""
        patched_api.state = ImportState.SWITCH_TRAFFIC_PENDING
        patched_api.promoted_state = ImportState.SWITCH_TRAFFIC_PENDING

        result = _invoke(config_file, "make-primary", "-n", "employees", "--force")

        assert result.exit_code == 23


class TestDetachCommand:
    """Tests for data-imports detach-external-database."""

    def test_detaches_primary(self, config_file, patched_api):
        """A primary import should be detached."""
        patched_api.state = ImportState.SWITCH_TRAFFIC_COMPLETED

        result = _invoke(
            config_file, "detach-external-database", "-n", "employees", "--force"
        )

        assert result.exit_code == 0
        assert "> 5. Detached external database" in result.output

    def test_blocked_on_replica(self, config_file, patched_api):
        """Detach before promotion should exit 22."""
        patched_api.state = ImportState.SWITCH_TRAFFIC_PENDING

        result = _invoke(
            config_file, "detach-external-database", "-n", "employees", "--force"
        )

        assert result.exit_code == 22
        assert patched_api.calls_to("detach_external_database") == []


class TestAuditLog:
    """Tests for the audit log written by commands."""

    def test_promotion_is_audited(self, config_file, patched_api, tmp_path):
        """A promotion should append to the configured audit log."""
        patched_api.state = ImportState.SWITCH_TRAFFIC_PENDING

        _invoke(config_file, "make-primary", "-n", "employees", "--force")

        assert "import.make_primary" in (tmp_path / "audit.log").read_text()


class TestConfigCommands:
    """Tests for the config command group."""

    def test_init_and_validate(self, tmp_path):
        """init should write a file that validate accepts."""
        path = tmp_path / "config.yaml"

        init_result = runner.invoke(app, ["config", "init", "--config", str(path)])
        validate_result = runner.invoke(app, ["config", "validate", "--config", str(path)])

        assert init_result.exit_code == 0
        assert path.exists()
        assert validate_result.exit_code == 0
        assert "Configuration is valid" in validate_result.output
        assert "Service token not set" in validate_result.output

    def test_validate_missing_file(self, tmp_path):
        """A missing file should exit 2."""
        result = runner.invoke(
            app, ["config", "validate", "--config", str(tmp_path / "missing.yaml")]
        )

        assert result.exit_code == 2

    def test_version(self):
        """--version should print the version."""
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert "psimport version" in result.output


class TestQuietMode:
    """Tests for -q on commands that return a result."""

    def test_get_still_prints_checklist(self, config_file, patched_api):
        """Quiet mode hides notices but never the status result."""
        patched_api.state = ImportState.SWITCH_TRAFFIC_PENDING

        result = _invoke(config_file, "get", "-n", "employees", "-q")

        assert result.exit_code == 0
        assert "> 3. Running as Replica" in result.output
        assert "Getting current import status" not in result.output

    def test_make_primary_prints_only_checklist(self, config_file, patched_api):
        """Quiet promotion should print the checklist without progress notices."""
        patched_api.state = ImportState.SWITCH_TRAFFIC_PENDING

        result = _invoke(config_file, "make-primary", "-n", "employees", "--force", "-q")

        assert result.exit_code == 0
        assert "> 4. Running as Primary" in result.output
        assert "Switching PlanetScale database" not in result.output
        assert len(result.output.splitlines()) == 5

    def test_dry_run_guidance_printed(self, config_file, patched_api):
        """The dry-run guidance is part of the result."""
        result = _invoke(config_file, "start", "-n", "employees", *SOURCE_ARGS, "-q")

        assert result.exit_code == 0
        assert "Please run this command with --no-dry-run to start the import" in result.output
        assert "Testing Compatibility" not in result.output
