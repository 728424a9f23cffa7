"""Tests for structured logging module.

Log output is one JSON object per line with timestamp, level and event,
plus request_id / caller_ip while a request context is bound.
"""

import json
from io import StringIO

import pytest

from src.core.logging import (
    bind_request_context,
    clear_request_context,
    configure_logging,
    get_caller_ip,
    get_logger,
    get_request_id,
    reset_logging,
)


@pytest.fixture
def stream() -> StringIO:
    output = StringIO()
    reset_logging()
    configure_logging(level="DEBUG", stream=output, force=True)
    return output


def _records(stream: StringIO) -> list[dict]:
    return [json.loads(line) for line in stream.getvalue().splitlines() if line]


class TestConfigureLogging:
    """Test configure_logging() singleton behaviour."""

    def test_second_call_is_noop(self) -> None:
        first = StringIO()
        second = StringIO()
        reset_logging()
        configure_logging(level="INFO", stream=first)
        configure_logging(level="INFO", stream=second)

        get_logger("noop.test").info("hello")

        assert first.getvalue()
        assert not second.getvalue()

    def test_force_reconfigures(self) -> None:
        first = StringIO()
        second = StringIO()
        reset_logging()
        configure_logging(level="INFO", stream=first)
        configure_logging(level="INFO", stream=second, force=True)

        get_logger("force.test").info("hello")

        assert not first.getvalue()
        assert second.getvalue()

    def test_level_filters(self) -> None:
        output = StringIO()
        reset_logging()
        configure_logging(level="WARNING", stream=output, force=True)

        logger = get_logger("level.test")
        logger.info("dropped")
        logger.warning("kept")

        records = _records(output)
        assert [r["event"] for r in records] == ["kept"]


class TestJSONOutput:
    """Test that log output is valid JSON with the expected fields."""

    def test_record_fields(self, stream: StringIO) -> None:
        get_logger("json.test").info("Test message", containers=3)

        record = _records(stream)[0]
        assert record["event"] == "Test message"
        assert record["level"] == "info"
        assert record["logger"] == "json.test"
        assert record["containers"] == 3
        assert "timestamp" in record

    def test_bound_logger_keeps_name(self, stream: StringIO) -> None:
        logger = get_logger("bind.test").bind(container_id="abc")
        logger.warning("bound")

        record = _records(stream)[0]
        assert record["logger"] == "bind.test"
        assert record["container_id"] == "abc"

    def test_module_loggers_created_on_import(self) -> None:
        from src.api import error_handlers
        from src.services import docker_client, metadata, resolver

        for module in (resolver, metadata, docker_client, error_handlers):
            assert module.logger is not None


class TestRequestContext:
    """Test request context binding."""

    def test_context_added_to_events(self, stream: StringIO) -> None:
        bind_request_context("req-1", "172.17.0.2")
        try:
            get_logger("ctx.test").info("inside request")
        finally:
            clear_request_context()

        record = _records(stream)[0]
        assert record["request_id"] == "req-1"
        assert record["caller_ip"] == "172.17.0.2"

    def test_no_context_outside_request(self, stream: StringIO) -> None:
        clear_request_context()
        get_logger("ctx.test").info("outside request")

        record = _records(stream)[0]
        assert "request_id" not in record
        assert "caller_ip" not in record

    def test_explicit_field_wins(self, stream: StringIO) -> None:
        bind_request_context("req-2", "172.17.0.2")
        try:
            get_logger("ctx.test").info("override", caller_ip="10.0.0.1")
        finally:
            clear_request_context()

        assert _records(stream)[0]["caller_ip"] == "10.0.0.1"

    def test_accessors(self) -> None:
        bind_request_context("req-3", "10.1.1.1")
        assert get_request_id() == "req-3"
        assert get_caller_ip() == "10.1.1.1"

        clear_request_context()
        assert get_request_id() is None
        assert get_caller_ip() is None
