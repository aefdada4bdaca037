"""Control API for runtime management using FastAPI."""
from typing import List, Optional
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel
import logging
import time

from longgauge.errors import InvalidLabelCount
from longgauge.gauge import LongGauge, TimeSeries

logger = logging.getLogger(__name__)


class AddRequest(BaseModel):
    """Request to add to a gauge series. No label values means the default series."""
    label_values: Optional[List[Optional[str]]] = None
    amount: int


class SetRequest(BaseModel):
    """Request to set a gauge series. No label values means the default series."""
    label_values: Optional[List[Optional[str]]] = None
    value: int


class LogLevelRequest(BaseModel):
    """Request to change log level."""
    level: str


class ControlAPI:
    """FastAPI-based control API for reading and updating gauges."""

    def __init__(self, engine):
        """
        Initialize control API.

        Args:
            engine: Reference to the reporting engine
        """
        self.engine = engine
        self.app = FastAPI(title="LongGauge Control API")

        self._setup_routes()

    def _get_gauge(self, name: str) -> LongGauge:
        gauge = self.engine.metric_registry.get(name)
        if gauge is None:
            available = [g.name for g in self.engine.metric_registry.gauges()]
            raise HTTPException(
                status_code=404,
                detail=f"Gauge '{name}' not found. Available gauges: {available}"
            )
        return gauge

    def _get_series(self, gauge: LongGauge, label_values) -> TimeSeries:
        if label_values is None:
            return gauge.get_default_time_series()
        try:
            return gauge.get_or_create_time_series(label_values)
        except InvalidLabelCount as e:
            raise HTTPException(status_code=400, detail=str(e))

    def _setup_routes(self):
        """Setup API routes."""

        @self.app.get("/healthz")
        async def healthz():
            """Health check endpoint."""
            return {"status": "healthy", "timestamp": time.time()}

        @self.app.get("/status")
        async def status():
            """Get current engine status."""
            gauges = self.engine.metric_registry.gauges()
            return {
                "uptime_seconds": time.time() - self.engine.start_time,
                "tick_count": self.engine.tick_count,
                "gauges": [g.name for g in gauges],
                "total_series": sum(len(g) for g in gauges),
                "config": {
                    "tick_interval_s": self.engine.config.global_.tick_interval_s,
                }
            }

        @self.app.get("/gauges")
        async def list_gauges():
            """List declared gauges."""
            return [
                {
                    "name": g.name,
                    "description": g.description,
                    "unit": g.unit,
                    "label_keys": [k.key for k in g.label_keys],
                    "series": len(g),
                }
                for g in self.engine.metric_registry.gauges()
            ]

        @self.app.get("/gauges/{name}")
        async def read_gauge(name: str):
            """Read every series of one gauge."""
            gauge = self._get_gauge(name)
            return {
                "name": gauge.name,
                "series": [
                    {
                        "label_values": list(p.label_values),
                        "labels": p.labels,
                        "value": p.value,
                        "timestamp": p.timestamp,
                    }
                    for p in gauge.snapshot()
                ]
            }

        @self.app.post("/gauges/{name}/add")
        async def add_to_gauge(name: str, request: AddRequest):
            """Add to a gauge series."""
            series = self._get_series(self._get_gauge(name), request.label_values)
            series.add(request.amount)
            logger.debug(f"Added {request.amount} to {name}{request.label_values or []}")
            return {"name": name, "label_values": request.label_values, "value": series.get()}

        @self.app.post("/gauges/{name}/set")
        async def set_gauge(name: str, request: SetRequest):
            """Set a gauge series."""
            series = self._get_series(self._get_gauge(name), request.label_values)
            series.set(request.value)
            logger.debug(f"Set {name}{request.label_values or []} to {request.value}")
            return {"name": name, "label_values": request.label_values, "value": series.get()}

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

    def run(self, host: str = "0.0.0.0", port: int = 8081):
        """Run the API server."""
        import uvicorn
        uvicorn.run(self.app, host=host, port=port, log_level="info")
