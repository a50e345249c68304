"""Scrape endpoint and runtime control API using FastAPI."""
from fastapi import FastAPI, HTTPException
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST
from pydantic import BaseModel
import logging
import time

from prom_sink.collector import CollectionEngine
from prom_sink.exposition import CONTENT_TYPE, render

logger = logging.getLogger(__name__)


class LogLevelRequest(BaseModel):
    """Request to change log level."""
    level: str


class MetricsAPI:
    """FastAPI app serving the exposition text and a small control surface."""

    def __init__(self, engine: CollectionEngine):
        """
        Initialize the API.

        Args:
            engine: Collection engine owning the sample store
        """
        self.engine = engine
        self.store = engine.store
        self.include_type = engine.config.exporter.include_type_lines
        self.app = FastAPI(title="Prometheus Metrics Sink")

        self._setup_routes()

    def _setup_routes(self):
        """Setup API routes."""

        @self.app.get("/metrics")
        def metrics():
            """Prometheus scrape endpoint."""
            # Rendered in full before any byte is sent
            body = render(self.store.snapshot(), include_type=self.include_type)
            if self.engine.self_metrics:
                self.engine.self_metrics.record_scrape()
            return Response(content=body, media_type=CONTENT_TYPE)

        @self.app.get("/healthz")
        async def healthz():
            """Health check endpoint."""
            return {"status": "healthy", "timestamp": time.time()}

        @self.app.get("/status")
        def status():
            """Get current collection status."""
            return {
                "uptime_seconds": time.time() - self.engine.start_time,
                "cycle_count": self.engine.cycle_count,
                "error_count": self.engine.error_count,
                "last_cycle_time": self.engine.last_cycle_time,
                "metric_families": self.store.family_count,
                "samples": self.store.sample_count,
                "kind_conflicts": self.store.kind_conflicts,
                "config": {
                    "interval_s": self.engine.config.collection.interval_s,
                    "include_type_lines": self.include_type,
                }
            }

        @self.app.post("/control/collect")
        def collect_now():
            """Run one collection cycle immediately."""
            try:
                upserts = self.engine.tick()
            except Exception as e:
                logger.error(f"Error running collection cycle: {e}")
                raise HTTPException(status_code=500, detail=str(e))

            return {
                "status": "collected",
                "samples_merged": upserts,
                "cycle_count": self.engine.cycle_count,
            }

        @self.app.post("/control/loglevel")
        async def set_log_level(request: LogLevelRequest):
            """Change log level at runtime."""
            level = request.level.upper()

            if level not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
                raise HTTPException(
                    status_code=400,
                    detail=f"Invalid log level: {level}"
                )

            logging.getLogger().setLevel(getattr(logging, level))
            logger.info(f"Log level changed to: {level}")

            return {
                "status": "log_level_changed",
                "level": level,
                "timestamp": time.time()
            }

        @self.app.get("/internal/metrics")
        def internal_metrics():
            """The exporter's own metrics."""
            if not self.engine.self_metrics:
                raise HTTPException(status_code=404, detail="Self metrics disabled")
            return Response(
                content=self.engine.self_metrics.render(),
                media_type=CONTENT_TYPE_LATEST
            )

    def run(self, host: str = "0.0.0.0", port: int = 9464):
        """Run the API server."""
        import uvicorn
        uvicorn.run(self.app, host=host, port=port, log_level="info")
