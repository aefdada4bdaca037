"""Tests for CLI logging setup."""
import json
import logging
import sys

from longgauge.main import build_log_formatter, build_parser


def make_record(message, exc_info=None):
    return logging.LogRecord(
        "longgauge.engine", logging.ERROR, __file__, 1, message, None, exc_info
    )


def test_json_format_survives_quotes_and_tracebacks():
    formatter = build_log_formatter("json")

    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = make_record('Error in tick: "boom"', sys.exc_info())

    payload = json.loads(formatter.format(record))
    assert payload["message"] == 'Error in tick: "boom"'
    assert payload["level"] == "ERROR"
    assert payload["logger"] == "longgauge.engine"
    assert "time" in payload
    assert "RuntimeError: boom" in payload["exc_info"]


def test_text_format():
    line = build_log_formatter("text").format(make_record("Tick 60"))
    assert line.endswith("| ERROR    | longgauge.engine | Tick 60")


def test_parser_requires_config():
    args = build_parser().parse_args(["-c", "configs/queue_gauges.yaml"])
    assert args.config == "configs/queue_gauges.yaml"
