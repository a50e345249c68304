"""Thread-safe store of metric families and their latest samples."""
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
import logging
import threading

from prom_sink.naming import NamingRules, canonicalize, sanitize_label_name
from prom_sink.records import MetricKind, MetricRecord, Tag

logger = logging.getLogger(__name__)

LabelSet = Tuple[Tuple[str, str], ...]

DEFAULT_EXCLUDED_TAGS = ("numopenconnectionsperuser",)


def label_set_from_tags(tags: Iterable[Tag], excluded_tags: Iterable[str] = DEFAULT_EXCLUDED_TAGS) -> LabelSet:
    """
    Build a label set from record tags.

    Tag keys are lowercased into valid label names and excluded tags are
    dropped. A repeated key keeps its first position and its last value.
    """
    excluded = {t.lower() for t in excluded_tags}
    labels: Dict[str, str] = {}
    for key, value in tags:
        name = sanitize_label_name(key)
        if name in excluded:
            continue
        labels[name] = value
    return tuple(labels.items())


def label_key(labels: LabelSet) -> LabelSet:
    """Order-insensitive identity of a label set."""
    return tuple(sorted(labels))


@dataclass
class Sample:
    """Latest value of one time series."""
    labels: LabelSet
    value: float


@dataclass
class MetricFamily:
    """All time series sharing one canonical name."""
    name: str
    kind: MetricKind
    samples: Dict[LabelSet, Sample] = field(default_factory=dict)

    def copy(self) -> "MetricFamily":
        return MetricFamily(
            self.name,
            self.kind,
            {k: Sample(s.labels, s.value) for k, s in self.samples.items()}
        )


class SampleStore:
    """
    Process-wide store merged on every collection cycle and read on every scrape.

    One lock serializes merges against each other and against snapshots, so
    a reader never sees half of a merge call. Families are never removed:
    a metric that stops being reported keeps its last known samples.
    """

    def __init__(
        self,
        rules: Optional[NamingRules] = None,
        excluded_tags: Sequence[str] = DEFAULT_EXCLUDED_TAGS
    ):
        self.rules = rules or NamingRules()
        self.excluded_tags = tuple(excluded_tags)
        self._families: Dict[str, MetricFamily] = {}
        self._lock = threading.Lock()
        self._conflicting: set = set()
        self.kind_conflicts = 0

    def merge(self, records: Iterable[MetricRecord]) -> int:
        """
        Merge a batch of records into the store.

        Args:
            records: Records from one collection cycle

        Returns:
            Number of samples inserted or replaced
        """
        records = list(records)
        # Resolve names and labels first so a bad record fails the whole call
        updates = []
        for record in records:
            labels = label_set_from_tags(record.tags, self.excluded_tags)
            key = label_key(labels)
            for metric in record.metrics:
                name = canonicalize(record.name, metric.name, self.rules)
                updates.append((name, key, labels, MetricKind(metric.kind), float(metric.value)))

        with self._lock:
            for name, key, labels, kind, value in updates:
                family = self._families.get(name)

                if family is None:
                    family = MetricFamily(name, kind)
                    self._families[name] = family
                    logger.debug(f"New metric family: {name} ({kind.value})")
                elif family.kind is not kind:
                    self._record_kind_conflict(family, kind)

                sample = family.samples.get(key)
                if sample is None:
                    family.samples[key] = Sample(labels, value)
                else:
                    sample.value = value

        return len(updates)

    def _record_kind_conflict(self, family: MetricFamily, reported: MetricKind):
        self.kind_conflicts += 1
        if family.name not in self._conflicting:
            self._conflicting.add(family.name)
            logger.warning(
                f"Metric family '{family.name}' was first seen as {family.kind.value} "
                f"but is now reported as {reported.value}; keeping {family.kind.value}"
            )

    def snapshot(self) -> List[MetricFamily]:
        """Return copies of all families in first-seen order."""
        with self._lock:
            return [family.copy() for family in self._families.values()]

    @property
    def family_count(self) -> int:
        with self._lock:
            return len(self._families)

    @property
    def sample_count(self) -> int:
        with self._lock:
            return sum(len(f.samples) for f in self._families.values())
