"""Prometheus metrics service owning the exporter's collector registry.

Every Marathon exporter is registered in one explicitly owned
CollectorRegistry rather than the global default registry, so several
exporter instances can live in the same process without colliding.
"""

import logging

from prometheus_client import CollectorRegistry, ProcessCollector, generate_latest

from marathon_exporter.metrics.exporter import MarathonExporter

logger = logging.getLogger(__name__)


class MetricsService:
    """Holds the collector registry and renders the text exposition."""

    def __init__(self, exporters: list[MarathonExporter], process_metrics: bool = True):
        """Initialize metrics service.

        Args:
            exporters: One exporter per configured Marathon source
            process_metrics: Also expose process_* series for this process
        """
        self.registry = CollectorRegistry()
        self.exporters: list[MarathonExporter] = []

        if process_metrics:
            ProcessCollector(registry=self.registry)

        for exporter in exporters:
            self.register_exporter(exporter)

    def register_exporter(self, exporter: MarathonExporter) -> None:
        """Add an exporter to the registry."""
        self.registry.register(exporter)
        self.exporters.append(exporter)
        logger.debug(f"Registered exporter for {exporter.fetcher.source.url}")

    def get_metrics_text(self) -> str:
        """Generate metrics in Prometheus text format.

        Exporters that scrape on collect run their scrape cycle here.
        """
        return generate_latest(self.registry).decode("utf-8")
