"""Unit tests for structured logging utilities in ``observability``.

Validates the null handler, trace binding, and event construction behaviour
downstream log processors rely on.
"""

from __future__ import annotations

import logging

import pytest

from lib_live_config import REDACTED, bind_trace_id, get_logger, trace_scope
from lib_live_config.observability import TRACE_ID, log_info, log_warning, make_event, redact_value


def test_null_handler_present() -> None:
    """Package logger should always include a NullHandler to avoid surprises."""

    logger = get_logger()
    assert logger.name == "lib_live_config"
    assert any(isinstance(handler, logging.NullHandler) for handler in logger.handlers)


def test_trace_id_in_log(caplog: pytest.LogCaptureFixture) -> None:
    """Structured logs should include the bound trace identifier and contextual fields."""

    caplog.set_level(logging.INFO, logger="lib_live_config")
    bind_trace_id("trace-123")
    try:
        log_info("prop_updated", source="env", key="port")
    finally:
        bind_trace_id(None)
    record = caplog.records[-1]
    assert record.getMessage() == "prop_updated"
    assert getattr(record, "context") == {"trace_id": "trace-123", "source": "env", "key": "port"}


def test_warning_level_is_preserved(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING, logger="lib_live_config")
    log_warning("resolve_timeout", **make_event(None, "port", {"waited": 1.0}))
    assert caplog.records[-1].levelno == logging.WARNING
    assert getattr(caplog.records[-1], "context")["waited"] == 1.0


def test_bind_trace_id_clears_context() -> None:
    """Clearing the trace ID should reset the context variable to None."""

    bind_trace_id("trace-temp")
    bind_trace_id(None)
    assert TRACE_ID.get() is None


def test_make_event_merges_optional_payload() -> None:
    """make_event should merge optional metadata without mutating base keys."""

    assert make_event("env", None, {"keys": 3}) == {"source": "env", "key": None, "keys": 3}
    assert make_event(None, "port") == {"source": None, "key": "port"}


def test_redaction_marker_is_stable() -> None:
    assert REDACTED == "<redacted>"


def test_trace_scope_restores_previous_binding() -> None:
    bind_trace_id("outer")
    try:
        with trace_scope("inner"):
            assert TRACE_ID.get() == "inner"
        assert TRACE_ID.get() == "outer"
    finally:
        bind_trace_id(None)


def test_redact_value_only_hides_present_secrets() -> None:
    assert redact_value("hunter2", True) == REDACTED
    assert redact_value("public", False) == "public"
    assert redact_value(None, True) is None


def test_disabled_level_emits_nothing(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING, logger="lib_live_config")
    log_info("source_reloaded", **make_event("env", None))
    assert not [record for record in caplog.records if record.getMessage() == "source_reloaded"]
