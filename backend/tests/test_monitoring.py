"""JSON log formatting and the timing decorator."""

import json
import logging

import pytest

from app.core.monitoring import JSONFormatter, track_performance


def test_json_formatter_includes_context():
    record = logging.LogRecord("app.test", logging.INFO, __file__, 1, "Planning trip %s", (7,), None)
    record.trip_id = 7
    record.duration_ms = 12.5
    payload = json.loads(JSONFormatter().format(record))
    assert payload["message"] == "Planning trip 7"
    assert payload["level"] == "INFO"
    assert payload["trip_id"] == 7
    assert payload["duration_ms"] == 12.5
    assert "exception" not in payload


def test_track_performance_logs_and_reraises(caplog):
    @track_performance("demo_op")
    def work(fail):
        if fail:
            raise RuntimeError("nope")
        return "done"

    with caplog.at_level(logging.INFO, logger="app.core.monitoring"):
        assert work(False) == "done"
        with pytest.raises(RuntimeError):
            work(True)

    completed, failed = caplog.records[-2:]
    assert completed.getMessage().startswith("demo_op completed in")
    assert failed.levelname == "ERROR"
    assert failed.operation == "demo_op"
    assert failed.duration_ms >= 0
