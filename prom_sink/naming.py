"""Canonicalization of record/metric identifiers into Prometheus names."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple
import re

# Anything that is not an ASCII letter or digit
_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")
# Acronym followed by a capitalized word: OMRpc -> OM_Rpc
_ACRONYM_BOUNDARY = re.compile(r"(?<=[A-Z])(?=[A-Z][a-z])")
# Lowercase letter or digit followed by an uppercase letter: RpcTime -> Rpc_Time
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_UNDERSCORES = re.compile(r"_+")
# Opaque names keep dots, everything else outside the grammar is mapped
_OPAQUE_INVALID = re.compile(r"[^a-z0-9_.]")
_LABEL_INVALID = re.compile(r"[^a-z0-9_]")

FALLBACK_NAME = "unnamed"


class NamingMode(Enum):
    """Which naming rule applies to a record."""
    OPAQUE = "opaque"
    STRUCTURED = "structured"


@dataclass(frozen=True)
class NamingRules:
    """
    Decides when a record name is already formatted upstream.

    A record name is opaque when, lowercased, it starts with one of
    ``opaque_prefixes`` or (with ``dotted_names_opaque``) contains a dot.
    """
    opaque_prefixes: Tuple[str, ...] = ("rocksdb",)
    dotted_names_opaque: bool = True

    def __post_init__(self):
        object.__setattr__(
            self, "opaque_prefixes", tuple(p.lower() for p in self.opaque_prefixes)
        )


DEFAULT_RULES = NamingRules()


def naming_mode(record_name: str, rules: NamingRules = DEFAULT_RULES) -> NamingMode:
    """Return the naming mode for a record name."""
    lowered = record_name.lower()
    if rules.dotted_names_opaque and "." in lowered:
        return NamingMode.OPAQUE
    if any(prefix and lowered.startswith(prefix) for prefix in rules.opaque_prefixes):
        return NamingMode.OPAQUE
    return NamingMode.STRUCTURED


def normalize_name(name: str) -> str:
    """
    Split a camel-case identifier into lowercase underscore tokens.

    Non-alphanumeric characters become separators, case transitions become
    token boundaries and runs of separators collapse to one ``_``.

    Examples:
        >>> normalize_name("OMRpcTime")
        'om_rpc_time'
        >>> normalize_name("GcTimeMillisG1 Young Generation")
        'gc_time_millis_g1_young_generation'
    """
    result = _NON_ALNUM.sub("_", name)
    result = _ACRONYM_BOUNDARY.sub("_", result)
    result = _CAMEL_BOUNDARY.sub("_", result)
    result = _UNDERSCORES.sub("_", result).strip("_")
    return result.lower()


def _opaque_part(name: str) -> str:
    return _UNDERSCORES.sub("_", _OPAQUE_INVALID.sub("_", name.lower()))


def _join(parts) -> str:
    name = "_".join(part for part in parts if part)
    if not name:
        return FALLBACK_NAME
    if not (name[0].isalpha() or name[0] == "_"):
        name = f"_{name}"
    return name


def canonicalize(
    record_name: str,
    metric_name: str,
    rules: Optional[NamingRules] = None
) -> str:
    """
    Map a (record name, metric name) pair to a Prometheus metric name.

    Never raises for string input; degenerate names fall back to a
    best-effort identifier.

    Args:
        record_name: Name of the record the metric was reported in
        metric_name: Name of the metric inside the record
        rules: Opaque-mode trigger, defaults to DEFAULT_RULES

    Returns:
        Name matching ``[a-z_][a-z0-9_.]*``
    """
    rules = rules or DEFAULT_RULES
    record_name = record_name or ""
    metric_name = metric_name or ""

    if naming_mode(record_name, rules) is NamingMode.OPAQUE:
        return _join([_opaque_part(record_name), _opaque_part(metric_name)])

    return _join([normalize_name(record_name), normalize_name(metric_name)])


def sanitize_label_name(key: str) -> str:
    """Lowercase a tag key and map it into ``[a-z_][a-z0-9_]*``."""
    name = _LABEL_INVALID.sub("_", (key or "").lower())
    if not name:
        return "_"
    if name[0].isdigit():
        name = f"_{name}"
    return name
