"""Tests for configuration loading."""
from pathlib import Path

import pytest

from prom_sink.config import Config, load_config
from prom_sink.records import MetricKind

EXAMPLE_CONFIG = Path(__file__).parent.parent / "configs" / "example.yaml"


def test_example_config_loads():
    config = load_config(str(EXAMPLE_CONFIG))

    assert isinstance(config, Config)
    assert config.exporter.port == 9464
    assert config.naming.to_rules().opaque_prefixes == ("rocksdb",)
    records = config.static_records()
    assert records[0].name == "RpcMetrics"
    assert records[0].tags == (("PORT", "1234"), ("Context", "rpc"))
    assert records[0].metrics[0].kind is MetricKind.COUNTER


def test_defaults():
    config = Config()
    assert config.global_.log_level == "INFO"
    assert config.labels.excluded_tags == ["numopenconnectionsperuser"]
    assert config.collection.interval_s == 10.0


def test_env_overrides(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    path.write_text("global:\n  log_level: INFO\n")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("PROM_SINK_PORT", "9999")

    config = load_config(str(path))

    assert config.global_.log_level == "DEBUG"
    assert config.exporter.port == 9999


def test_empty_file_uses_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("PROM_SINK_PORT", raising=False)
    path = tmp_path / "config.yaml"
    path.write_text("")

    assert load_config(str(path)).exporter.port == 9464


def test_invalid_config(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("collection:\n  interval_s: 0\n")

    with pytest.raises(ValueError, match="validation failed"):
        load_config(str(path))


def test_missing_file():
    with pytest.raises(FileNotFoundError):
        load_config("does/not/exist.yaml")
