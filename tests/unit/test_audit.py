"""Unit tests for the audit log."""

import json

from psimport.core.audit import (
    AuditEvent,
    AuditEventType,
    AuditLogger,
    AuditResult,
)


def _read(path):
    return [json.loads(line) for line in path.read_text().splitlines()]


class TestAuditEvent:
    """Tests for AuditEvent serialization."""

    def test_sensitive_parameters_redacted(self):
        """Password and token values should be redacted."""
        event = AuditEvent(
            event_type=AuditEventType.IMPORT_START,
            result=AuditResult.SUCCESS,
            parameters={
                "host": "db.example.com",
                "password": "s3cret",
                "nested": {"service_token": "tok"},
            },
        )

        data = event.to_dict()

        assert data["parameters"]["host"] == "db.example.com"
        assert data["parameters"]["password"] == "***REDACTED***"
        assert data["parameters"]["nested"]["service_token"] == "***REDACTED***"

    def test_to_json(self):
        """Events should serialize to a single JSON object."""
        event = AuditEvent(
            event_type=AuditEventType.IMPORT_DETACH,
            result=AuditResult.FAILURE,
            organization="planetscale",
            database="employees",
            error="boom",
        )

        data = json.loads(event.to_json())

        assert data["event_type"] == "import.detach"
        assert data["result"] == "failure"
        assert data["error"] == "boom"


class TestAuditLogger:
    """Tests for AuditLogger."""

    def test_appends_json_lines(self, tmp_path):
        """Each event should be one line with the session id."""
        logger = AuditLogger(log_path=tmp_path / "logs" / "audit.log")

        logger.log_success(AuditEventType.IMPORT_LINT, "planetscale", "employees", message="ok")
        logger.log_dry_run(AuditEventType.IMPORT_START, "planetscale", "employees")

        events = _read(logger.log_path)
        assert [e["result"] for e in events] == ["success", "dry_run"]
        assert {e["session_id"] for e in events} == {logger.session_id}

    def test_disabled_writes_nothing(self, tmp_path):
        """A disabled logger should not create the file."""
        logger = AuditLogger(log_path=tmp_path / "audit.log", enabled=False)

        logger.log_blocked("make_primary", "still copying", "planetscale", "employees")

        assert not logger.log_path.exists()

    def test_correlation(self, tmp_path):
        """Events inside a correlation block share its id."""
        logger = AuditLogger(log_path=tmp_path / "audit.log")

        with logger.correlation("make_primary") as correlation_id:
            logger.log_success(AuditEventType.IMPORT_MAKE_PRIMARY, "planetscale", "employees")
        logger.log_success(AuditEventType.IMPORT_DETACH, "planetscale", "employees")

        events = _read(logger.log_path)
        assert correlation_id.startswith("make_primary_")
        assert events[0]["correlation_id"] == correlation_id
        assert events[1]["correlation_id"] is None

    def test_rotation(self, tmp_path):
        """The log should rotate once it exceeds the size limit."""
        logger = AuditLogger(log_path=tmp_path / "audit.log", max_size_mb=0, backup_count=2)

        logger.log_failure(AuditEventType.IMPORT_START, "planetscale", "employees", "first")
        logger.log_failure(AuditEventType.IMPORT_START, "planetscale", "employees", "second")

        assert (tmp_path / "audit.1").exists()
        assert (tmp_path / "audit.2").exists()
        assert logger.log_path.read_text() == ""
