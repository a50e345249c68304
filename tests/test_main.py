"""Tests for logging setup."""
import json
import logging

from prom_sink.main import build_formatter


def make_record(message: str) -> logging.LogRecord:
    return logging.LogRecord("prom_sink.records", logging.ERROR, __file__, 1, message, None, None)


def test_json_format_escapes_message():
    formatter = build_formatter("json")
    line = formatter.format(make_record('Record source "static" failed:\nboom'))

    payload = json.loads(line)
    assert payload["message"] == 'Record source "static" failed:\nboom'
    assert payload["level"] == "ERROR"
    assert payload["logger"] == "prom_sink.records"
    assert "time" in payload


def test_text_format():
    line = build_formatter("text").format(make_record("hello"))
    assert line.endswith("| ERROR    | prom_sink.records | hello")
