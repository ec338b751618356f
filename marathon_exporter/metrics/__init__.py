"""Metric registry, translation engine and scrape coordination.

Exporters own their series in explicitly constructed registries:

    counters = CounterRegistry("marathon")
    counter, created = counters.fetch("foo_count", "Marathon counter foo.count")
    counter.set(5)
"""

from marathon_exporter.metrics.exporter import MarathonExporter, ScrapeOutcome
from marathon_exporter.metrics.registry import CounterRegistry, GaugeRegistry
from marathon_exporter.metrics.translation import TranslationEngine

__all__ = [
    "CounterRegistry",
    "GaugeRegistry",
    "MarathonExporter",
    "ScrapeOutcome",
    "TranslationEngine",
]
