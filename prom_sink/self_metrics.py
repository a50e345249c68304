"""Self-monitoring metrics for the exporter, kept in a private registry."""
from prometheus_client import (
    CollectorRegistry, Counter, Gauge, Histogram, generate_latest
)


class SelfMetrics:
    """Self-monitoring metrics for collection cycles and scrapes."""

    def __init__(self, registry=None, prefix="prom_sink_"):
        if registry is None:
            registry = CollectorRegistry()
        self.registry = registry

        self.cycles_total = Counter(
            f"{prefix}collection_cycles_total",
            "Total number of collection cycles run",
            registry=registry
        )

        self.records_total = Counter(
            f"{prefix}records_merged_total",
            "Total number of records merged into the sample store",
            registry=registry
        )

        self.collection_errors_total = Counter(
            f"{prefix}collection_errors_total",
            "Total number of failed collection cycles",
            registry=registry
        )

        self.merge_duration_seconds = Histogram(
            f"{prefix}merge_duration_seconds",
            "Duration of each merge in seconds",
            buckets=[0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0],
            registry=registry
        )

        self.families = Gauge(
            f"{prefix}metric_families",
            "Number of metric families in the sample store",
            registry=registry
        )

        self.samples = Gauge(
            f"{prefix}samples",
            "Number of samples in the sample store",
            registry=registry
        )

        self.kind_conflicts = Gauge(
            f"{prefix}kind_conflicts",
            "Number of samples reported with a kind different from their family",
            registry=registry
        )

        self.scrapes_total = Counter(
            f"{prefix}scrapes_total",
            "Total number of scrapes served",
            registry=registry
        )

    def record_cycle(self, records: int, duration: float):
        """Record a successful collection cycle."""
        self.cycles_total.inc()
        self.records_total.inc(records)
        self.merge_duration_seconds.observe(duration)

    def record_collection_error(self):
        self.collection_errors_total.inc()

    def set_store_size(self, families: int, samples: int, kind_conflicts: int):
        """Set the sample store gauges."""
        self.families.set(families)
        self.samples.set(samples)
        self.kind_conflicts.set(kind_conflicts)

    def record_scrape(self):
        self.scrapes_total.inc()

    def render(self) -> bytes:
        return generate_latest(self.registry)
