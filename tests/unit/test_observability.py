"""Tests for structured logging and the metrics hook."""

from __future__ import annotations

import io
import json
import logging
import sys

from notehistory.observability import (
    MetricsHook,
    NoopMetricsHook,
    StructuredFormatter,
    get_logger,
    resolve_metrics,
)


def make_record(msg, exc_info=None, extra_fields=None, stack_info=None):
    record = logging.LogRecord(
        name="notehistory.test",
        level=logging.INFO,
        pathname="",
        lineno=0,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )
    if extra_fields is not None:
        record.extra_fields = extra_fields
    if stack_info is not None:
        record.stack_info = stack_info
    return record


class TestStructuredFormatter:
    def test_basic_format(self):
        result = json.loads(StructuredFormatter().format(make_record("hello world")))
        assert result["message"] == "hello world"
        assert result["level"] == "INFO"
        assert result["logger"] == "notehistory.test"
        assert result["ts"].endswith("+00:00")

    def test_extra_fields_merged(self):
        record = make_record("msg", extra_fields={"document_id": "doc", "evicted": 2})
        result = json.loads(StructuredFormatter().format(record))
        assert (result["document_id"], result["evicted"]) == ("doc", 2)

    def test_exception_included(self):
        try:
            raise ValueError("bad state")
        except ValueError:
            exc_info = sys.exc_info()
        result = json.loads(StructuredFormatter().format(make_record("err", exc_info=exc_info)))
        assert "ValueError" in result["exception"]

    def test_stack_info_included(self):
        result = json.loads(StructuredFormatter().format(make_record("m", stack_info="trace")))
        assert result["stack_info"] == "trace"

    def test_unserializable_fields_use_str(self):
        record = make_record("m", extra_fields={"obj": object()})
        assert json.loads(StructuredFormatter().format(record))["obj"].startswith("<object")


class TestGetLogger:
    def test_idempotent(self):
        first = get_logger("notehistory.test.idempotent")
        second = get_logger("notehistory.test.idempotent")
        assert first is second
        assert len(first.handlers) == 1
        assert first.propagate is False

    def test_writes_json_lines(self):
        stream = io.StringIO()
        log = get_logger("notehistory.test.stream", level="info", stream=stream)
        log.debug("hidden")
        log.info("shown", extra={"extra_fields": {"op": "test"}})
        lines = stream.getvalue().splitlines()
        assert len(lines) == 1
        assert json.loads(lines[0])["op"] == "test"


class TestMetricsHook:
    def test_noop_satisfies_protocol(self):
        hook = NoopMetricsHook()
        assert isinstance(hook, MetricsHook)
        hook.increment("x")
        hook.timing("x", 1.0, tags={"a": "b"})
        hook.gauge("x", 2.0)

    def test_resolve(self, metrics):
        assert isinstance(resolve_metrics(None), NoopMetricsHook)
        assert resolve_metrics(metrics) is metrics
        assert isinstance(metrics, MetricsHook)
