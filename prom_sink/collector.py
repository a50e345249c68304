"""Collection cycle driver: pulls records and merges them into the store."""
import time
import logging
from typing import Optional

from prom_sink.config import Config
from prom_sink.records import RecordSource
from prom_sink.self_metrics import SelfMetrics
from prom_sink.store import SampleStore

logger = logging.getLogger(__name__)


class CollectionEngine:
    """Periodically pulls the record source into the sample store."""

    def __init__(
        self,
        config: Config,
        source: RecordSource,
        store: Optional[SampleStore] = None,
        self_metrics: Optional[SelfMetrics] = None
    ):
        self.config = config
        self.source = source
        self.store = store or SampleStore(
            rules=config.naming.to_rules(),
            excluded_tags=config.labels.excluded_tags
        )
        self.self_metrics = self_metrics
        self.running = False
        self.cycle_count = 0
        self.error_count = 0
        self.last_cycle_time: Optional[float] = None
        self.start_time = time.time()

        logger.info("Collection engine initialized")

    def tick(self) -> int:
        """
        Run one collection cycle.

        Returns:
            Number of samples inserted or replaced

        Raises:
            Whatever collecting or merging raises; the store is left untouched
        """
        try:
            records = self.source.collect()
            merge_start = time.time()
            upserts = self.store.merge(records)
        except Exception:
            self.error_count += 1
            if self.self_metrics:
                self.self_metrics.record_collection_error()
            raise

        duration = time.time() - merge_start

        self.cycle_count += 1
        self.last_cycle_time = time.time()

        if self.self_metrics:
            self.self_metrics.record_cycle(len(records), duration)
            self.self_metrics.set_store_size(
                self.store.family_count,
                self.store.sample_count,
                self.store.kind_conflicts
            )

        logger.debug(
            f"Cycle {self.cycle_count}: merged {len(records)} records "
            f"({upserts} samples) in {duration:.3f}s"
        )
        return upserts

    def run(self):
        """Run collection cycles until stopped."""
        self.running = True
        self.start_time = time.time()

        logger.info("Starting collection engine")

        interval = self.config.collection.interval_s

        while self.running:
            tick_start = time.time()

            try:
                self.tick()
            except Exception as e:
                logger.error(f"Error in collection cycle: {e}", exc_info=True)

            # Sleep for remaining time in the interval
            tick_duration = time.time() - tick_start
            sleep_time = max(0, interval - tick_duration)

            if sleep_time > 0:
                time.sleep(sleep_time)
            else:
                logger.warning(
                    f"Collection took {tick_duration:.3f}s, longer than interval {interval}s"
                )

    def stop(self):
        """Stop the collection engine."""
        logger.info("Stopping collection engine")
        self.running = False


def run_engine_thread(engine: CollectionEngine):
    """Run engine in a separate thread."""
    try:
        engine.run()
    except Exception as e:
        logger.error(f"Engine thread error: {e}", exc_info=True)
        engine.stop()
