"""Tests for metric name canonicalization."""
import pytest

from prom_sink.naming import (
    NamingMode, NamingRules, canonicalize, naming_mode, normalize_name,
    sanitize_label_name
)


def test_camel_case():
    """Camel-case record and metric names split into tokens."""
    assert canonicalize("RpcTime", "SomeMetrics") == "rpc_time_some_metrics"
    assert canonicalize("OMRpcTime", "OMInfoKeys") == "om_rpc_time_om_info_keys"
    assert canonicalize("RpcTime", "small") == "rpc_time_small"


def test_rocksdb_names_are_opaque():
    """RocksDB record names keep their dot and are only lowercased."""
    assert canonicalize("Rocksdb_om.db", "num_open_connections") == \
        "rocksdb_om.db_num_open_connections"


def test_pipeline_name_with_uuid():
    metric = "NumBlocksAllocated-RATIS-THREE-47659e3d-40c9-43b3-9792-4982fc279aba"
    assert canonicalize("SCMPipelineMetrics", metric) == (
        "scm_pipeline_metrics_num_blocks_allocated_"
        "ratis_three_47659e3d_40c9_43b3_9792_4982fc279aba"
    )


def test_spaces_and_digits():
    """Digits stay attached to the acronym they trail."""
    assert canonicalize("JvmMetrics", "GcTimeMillisG1 Young Generation") == \
        "jvm_metrics_gc_time_millis_g1_young_generation"


@pytest.mark.parametrize("record,metric", [
    ("RpcTime", "SomeMetrics"),
    ("OMRpcTime", "OMInfoKeys"),
    ("Rocksdb_om.db", "num_open_connections"),
    ("JvmMetrics", "GcTimeMillisG1 Young Generation"),
])
def test_deterministic(record, metric):
    assert canonicalize(record, metric) == canonicalize(record, metric)


def test_already_canonical_is_unchanged():
    assert canonicalize("rpc_time", "some_metrics") == "rpc_time_some_metrics"
    assert canonicalize("rocksdb_om.db", "num_open_connections") == \
        "rocksdb_om.db_num_open_connections"


def test_all_uppercase_tokens_are_not_split():
    assert normalize_name("RATIS-THREE") == "ratis_three"
    assert normalize_name("SCM") == "scm"


def test_no_double_underscores():
    assert canonicalize("Rpc__Time", "--Some  Metrics--") == "rpc_time_some_metrics"


def test_empty_inputs_never_fail():
    assert canonicalize("", "NumOps") == "num_ops"
    assert canonicalize("RpcMetrics", "") == "rpc_metrics"
    assert canonicalize("", "") == "unnamed"
    assert canonicalize("!!", "??") == "unnamed"


def test_leading_digit_is_prefixed():
    assert canonicalize("3Way", "Count") == "_3_way_count"


def test_naming_mode_rules():
    assert naming_mode("Rocksdb_om.db") is NamingMode.OPAQUE
    assert naming_mode("ROCKSDB_scm") is NamingMode.OPAQUE
    assert naming_mode("some.dotted") is NamingMode.OPAQUE
    assert naming_mode("RpcMetrics") is NamingMode.STRUCTURED


def test_custom_rules():
    """Opaque triggers are configurable."""
    rules = NamingRules(opaque_prefixes=("Raw",), dotted_names_opaque=False)

    assert canonicalize("RawStats", "BytesIn", rules) == "rawstats_bytesin"
    assert canonicalize("Some.Dotted", "NumOps", rules) == "some_dotted_num_ops"


def test_opaque_mode_maps_invalid_characters():
    assert canonicalize("Rocksdb_om.db", "num open-files") == "rocksdb_om.db_num_open_files"


def test_sanitize_label_name():
    assert sanitize_label_name("PORT") == "port"
    assert sanitize_label_name("Session-Id") == "session_id"
    assert sanitize_label_name("1st") == "_1st"
    assert sanitize_label_name("") == "_"


def test_opaque_mode_collapses_invalid_runs():
    assert canonicalize("Rocksdb_om.db", "num  open--files") == "rocksdb_om.db_num_open_files"
