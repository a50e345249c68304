"""Main entry point for the Prometheus metrics sink."""
import argparse
import logging
import sys
import threading
import signal

from pythonjsonlogger.json import JsonFormatter

from prom_sink.config import load_config
from prom_sink.collector import CollectionEngine, run_engine_thread
from prom_sink.http_api import MetricsAPI
from prom_sink.records import CompositeRecordSource, StaticRecordSource
from prom_sink.self_metrics import SelfMetrics


def build_formatter(log_format: str) -> logging.Formatter:
    """Create the log formatter for the configured format."""
    if log_format == "json":
        return JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={"asctime": "time", "levelname": "level", "name": "logger"},
            datefmt="%Y-%m-%d %H:%M:%S"
        )
    return logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )


def setup_logging(log_level: str, log_format: str):
    """Setup logging configuration."""
    level = getattr(logging, log_level.upper(), logging.INFO)

    handler = logging.StreamHandler()
    handler.setFormatter(build_formatter(log_format))
    logging.basicConfig(level=level, handlers=[handler])

    # Reduce noise from some libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def main():
    """Main function."""
    parser = argparse.ArgumentParser(
        description="Prometheus Metrics Sink - Expose metric records for scraping"
    )
    parser.add_argument(
        "--config",
        "-c",
        required=True,
        help="Path to configuration YAML file"
    )

    args = parser.parse_args()

    # Load configuration
    try:
        config = load_config(args.config)
    except Exception as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(config.global_.log_level, config.global_.log_format)
    logger = logging.getLogger(__name__)

    logger.info("=" * 60)
    logger.info("Prometheus Metrics Sink")
    logger.info("=" * 60)
    logger.info(f"Configuration loaded from: {args.config}")
    logger.info(f"Collection interval: {config.collection.interval_s}s")
    logger.info(f"Static records configured: {len(config.records)}")

    source = CompositeRecordSource()
    source.register("static", StaticRecordSource(config.static_records()))

    engine = CollectionEngine(config, source, self_metrics=SelfMetrics())
    api = MetricsAPI(engine)

    engine_thread = threading.Thread(
        target=run_engine_thread,
        args=(engine,),
        daemon=True
    )
    engine_thread.start()
    logger.info("Collection engine started")

    def signal_handler(signum, frame):
        logger.info(f"Received signal {signum}, shutting down...")
        engine.stop()
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    # Serve scrapes (blocking)
    logger.info(
        f"Serving metrics on {config.exporter.bind_address}:{config.exporter.port}/metrics"
    )
    try:
        api.run(host=config.exporter.bind_address, port=config.exporter.port)
    except Exception as e:
        logger.error(f"HTTP server error: {e}", exc_info=True)
        engine.stop()
        sys.exit(1)


if __name__ == "__main__":
    main()
