"""Unit tests for JSON logging and operation id correlation"""

import json
import logging
import sys

import pytest

from docflow.config import Settings
from docflow.observability import JSONFormatter, configure_logging_from_settings, get_operation_id, operation_scope
from docflow.observability.logging_config import OperationIDFilter


def _record(msg="Document 1: 1 -> 2", **extra):
    record = logging.LogRecord(
        name="docflow.workflow.engine",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=msg,
        args=(),
        exc_info=None,
        func="apply",
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Test JSON log line layout"""

    def test_basic_fields(self):
        """Standard fields appear in every line"""
        formatter = JSONFormatter(service_name="docflow")

        data = json.loads(formatter.format(_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "docflow.workflow.engine"
        assert data["function"] == "apply"
        assert data["message"] == "Document 1: 1 -> 2"
        assert data["service"] == "docflow"
        assert data["operation_id"] == "no-operation-id"

    def test_extra_fields(self):
        """Known extra fields are copied and absent ones omitted"""
        formatter = JSONFormatter()

        data = json.loads(formatter.format(_record(document_id=42, user_id=7, action_id=3)))

        assert data["document_id"] == 42
        assert data["user_id"] == 7
        assert data["action_id"] == 3
        assert "group_id" not in data
        assert "service" not in data

    def test_exception_info(self):
        """Exceptions add error and traceback fields"""
        formatter = JSONFormatter()
        try:
            raise RuntimeError("disk full")
        except RuntimeError:
            record = _record()
            record.exc_info = sys.exc_info()

        data = json.loads(formatter.format(record))

        assert data["error"] == "disk full"
        assert "RuntimeError" in data["traceback"]


class TestOperationScope:
    """Test operation id binding"""

    def test_no_scope(self):
        """Outside a scope the placeholder id is answered"""
        assert get_operation_id() == "no-operation-id"

    def test_scope_binds_and_resets(self):
        """A scope binds a fresh id and restores the placeholder"""
        with operation_scope() as op_id:
            assert get_operation_id() == op_id
            assert op_id != "no-operation-id"

        assert get_operation_id() == "no-operation-id"

    def test_nested_scope_keeps_outer_id(self):
        """Nested scopes reuse the outer id"""
        with operation_scope("outer") as outer:
            with operation_scope() as inner:
                assert inner == outer == "outer"
            assert get_operation_id() == "outer"

    def test_filter_stamps_record(self):
        """The filter copies the bound id onto records"""
        record = _record()

        with operation_scope("op-1"):
            assert OperationIDFilter().filter(record)

        assert record.operation_id == "op-1"


class TestConfigureLogging:
    """Test process-wide logging setup"""

    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_from_settings(self):
        """Settings select level, JSON output and service name"""
        configure_logging_from_settings(Settings(LOG_LEVEL="debug", LOG_JSON=True, SERVICE_NAME="svc"))

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        formatter = root.handlers[0].formatter
        assert isinstance(formatter, JSONFormatter)
        assert formatter.service_name == "svc"

    def test_plain_format(self):
        """LOG_JSON=False installs a plain text formatter"""
        configure_logging_from_settings(Settings(LOG_JSON=False))

        assert not isinstance(logging.getLogger().handlers[0].formatter, JSONFormatter)


class TestSettings:
    """Test settings defaults and environment overrides"""

    def test_defaults(self, monkeypatch):
        """Defaults apply without environment overrides"""
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.delenv("APPLY_MAX_RETRIES", raising=False)

        settings = Settings(_env_file=None)

        assert settings.DATABASE_URL.startswith("sqlite")
        assert settings.INITIAL_STATE_NAME == "INITIAL"
        assert settings.APPLY_MAX_RETRIES == 3

    def test_environment_override(self, monkeypatch):
        """Environment variables override defaults"""
        monkeypatch.setenv("APPLY_MAX_RETRIES", "5")
        monkeypatch.setenv("INITIAL_STATE_NAME", "DRAFT")

        settings = Settings(_env_file=None)

        assert settings.APPLY_MAX_RETRIES == 5
        assert settings.INITIAL_STATE_NAME == "DRAFT"
