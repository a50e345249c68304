"""Metric record value types and the Record Source capability."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Protocol, Sequence, Tuple, runtime_checkable
import logging

logger = logging.getLogger(__name__)

Tag = Tuple[str, str]


class MetricKind(str, Enum):
    """Kind of a reported metric, rendered in the `# TYPE` line."""
    COUNTER = "counter"
    GAUGE = "gauge"


@dataclass(frozen=True)
class RecordMetric:
    """A single named numeric value inside a record."""
    name: str
    value: float
    kind: MetricKind = MetricKind.GAUGE

    def __post_init__(self):
        if not isinstance(self.name, str):
            raise TypeError(f"Metric name must be a string, got {type(self.name).__name__}")
        if isinstance(self.value, bool) or not isinstance(self.value, (int, float)):
            raise TypeError(f"Metric '{self.name}' has non-numeric value {self.value!r}")
        object.__setattr__(self, "value", float(self.value))
        object.__setattr__(self, "kind", MetricKind(self.kind))


@dataclass(frozen=True)
class MetricRecord:
    """One snapshot record: a name, ordered tags and ordered metrics."""
    name: str
    tags: Tuple[Tag, ...] = field(default_factory=tuple)
    metrics: Tuple[RecordMetric, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not isinstance(self.name, str):
            raise TypeError(f"Record name must be a string, got {type(self.name).__name__}")
        object.__setattr__(self, "tags", tuple((str(k), str(v)) for k, v in self.tags))
        object.__setattr__(self, "metrics", tuple(self.metrics))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MetricRecord":
        """
        Build a record from plain mappings, as found in YAML config.

        Args:
            data: Mapping with ``name``, optional ``tags`` (mapping or
                sequence of key/value pairs) and
                ``metrics`` (list of mappings with name/value/kind)

        Returns:
            MetricRecord
        """
        if "name" not in data:
            raise ValueError("Record is missing 'name'")

        tags = data.get("tags") or ()
        if isinstance(tags, Mapping):
            tags = tags.items()
        metrics = [
            RecordMetric(m["name"], m["value"], m.get("kind", MetricKind.GAUGE))
            for m in data.get("metrics") or []
        ]
        return cls(data["name"], tuple(tags), tuple(metrics))


@runtime_checkable
class RecordSource(Protocol):
    """Anything that can hand over the current list of records."""

    def collect(self) -> List[MetricRecord]:
        ...


class StaticRecordSource:
    """Record source that always reports the same records."""

    def __init__(self, records: Iterable[MetricRecord] = ()):
        self.records = list(records)

    def collect(self) -> List[MetricRecord]:
        return list(self.records)


class CallbackRecordSource:
    """Adapts a zero-argument callable returning records."""

    def __init__(self, callback: Callable[[], Sequence[MetricRecord]], name: str = "callback"):
        self.callback = callback
        self.name = name

    def collect(self) -> List[MetricRecord]:
        return list(self.callback())


class CompositeRecordSource:
    """Concatenates records from many independently instrumented components."""

    def __init__(self, sources: Dict[str, RecordSource] = None):
        self.sources: Dict[str, RecordSource] = dict(sources or {})
        self.failures: Dict[str, int] = {}

    def register(self, name: str, source: RecordSource):
        """Register a child source under a unique name."""
        if name in self.sources:
            raise ValueError(f"Record source '{name}' is already registered")
        self.sources[name] = source
        logger.info(f"Registered record source: {name}")

    def collect(self) -> List[MetricRecord]:
        records: List[MetricRecord] = []
        for name, source in self.sources.items():
            try:
                records.extend(source.collect())
            except Exception as e:
                # One broken component must not hide the others
                self.failures[name] = self.failures.get(name, 0) + 1
                logger.error(f"Record source '{name}' failed: {e}")
        return records
