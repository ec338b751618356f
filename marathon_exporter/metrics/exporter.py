"""Scrape coordinator: one Marathon source republished as Prometheus series.

Each scrape cycle fetches the source's metrics document, translates it into a
newly constructed pair of registries and then publishes that pair in
place of the previous one. A collect() still reading the previous pair is
unaffected. Series that vanished from the source are therefore absent
from the next exposition without any bookkeeping.
"""

import logging
import threading
import time
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from prometheus_client import Counter, Gauge
from prometheus_client.core import Metric
from prometheus_client.registry import Collector

from marathon_exporter.exceptions import ParseError, ScrapeException, SourceReportedError
from marathon_exporter.metrics.apps import APPS_PATH, AppsTranslator
from marathon_exporter.metrics.registry import CounterRegistry, GaugeRegistry
from marathon_exporter.metrics.translation import TranslationEngine, TranslationReport
from marathon_exporter.services.fetcher import FetcherProtocol, MetricsFetcher, parse_document

if TYPE_CHECKING:
    from marathon_exporter.config import Settings

logger = logging.getLogger(__name__)

METRICS_PATH = "/metrics"


class ScrapeState(str, Enum):
    """Phases of a scrape cycle."""

    IDLE = "idle"
    FETCHING = "fetching"
    PARSING = "parsing"
    TRANSLATING = "translating"
    PUBLISHING = "publishing"


@dataclass
class ScrapeOutcome:
    """Result of one scrape cycle."""

    duration: float
    error: Exception | None
    published: int
    report: TranslationReport | None = None
    failed_in: ScrapeState | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class MarathonExporter(Collector):
    """Scrapes one Marathon source and exposes its series to a CollectorRegistry.

    Scrape cycles are serialized. Each cycle fills a new pair of
    registries and publishes it by reference once complete, so collect()
    never observes a registry that is being populated or reused.
    """

    def __init__(
        self,
        fetcher: FetcherProtocol,
        namespace: str = "marathon",
        const_labels: dict[str, str] | None = None,
        scrape_on_collect: bool = True,
        scrape_apps: bool = False,
    ) -> None:
        """Initialize exporter.

        Args:
            fetcher: Fetcher bound to the Marathon source
            namespace: Prefix of every exposed metric name
            const_labels: Labels attached to every series (e.g. instance)
            scrape_on_collect: Run a scrape on every collect() call
            scrape_apps: Also translate the applications document
        """
        self.fetcher = fetcher
        self.namespace = namespace
        self.const_labels = dict(const_labels or {})
        self.scrape_on_collect = scrape_on_collect
        self.scrape_apps = scrape_apps

        self._published = self._new_registries()
        self._publish_lock = threading.Lock()
        self._scrape_lock = threading.Lock()
        self._known_series: set[str] = set()

        self.state = ScrapeState.IDLE
        self.last_outcome: ScrapeOutcome | None = None

        self._instrumentation: list[Counter | Gauge] = []
        self._duration = self._instrument(
            Gauge,
            "last_scrape_duration_seconds",
            "Duration of the last scrape of metrics from Marathon.",
        )
        self._scrape_error = self._instrument(
            Gauge,
            "last_scrape_error",
            "Whether the last scrape of metrics from Marathon resulted in an error "
            "(1 for error, 0 for success).",
        )
        self._scrapes_total = self._instrument(
            Counter,
            "scrapes_total",
            "Total number of times Marathon was scraped for metrics.",
        )
        self._errors_total = self._instrument(
            Counter,
            "errors_total",
            "Total number of times the exporter experienced errors collecting Marathon metrics.",
        )
        self._up = self._instrument(
            Gauge,
            "up",
            "Whether the last scrape of Marathon succeeded (1 for up, 0 for down).",
            subsystem="",
        )

    def _new_registries(self) -> tuple[CounterRegistry, GaugeRegistry]:
        return (
            CounterRegistry(self.namespace, self.const_labels),
            GaugeRegistry(self.namespace, self.const_labels),
        )

    def _instrument(
        self,
        metric_class: type[Counter] | type[Gauge],
        name: str,
        documentation: str,
        subsystem: str = "exporter",
    ) -> Counter | Gauge:
        metric = metric_class(
            name,
            documentation,
            list(self.const_labels),
            namespace=self.namespace,
            subsystem=subsystem,
            registry=None,
        )
        self._instrumentation.append(metric)
        if self.const_labels:
            return metric.labels(**self.const_labels)
        return metric

    @property
    def counters(self) -> CounterRegistry:
        with self._publish_lock:
            return self._published[0]

    @property
    def gauges(self) -> GaugeRegistry:
        with self._publish_lock:
            return self._published[1]

    def scrape(self) -> ScrapeOutcome:
        """Run one complete scrape cycle and publish its result."""
        with self._scrape_lock:
            return self._scrape()

    def _scrape(self) -> ScrapeOutcome:
        self._scrapes_total.inc()
        start = time.perf_counter()

        # Fresh pair every cycle; a published pair is never mutated again
        counters, gauges = self._new_registries()

        error: Exception | None = None
        report: TranslationReport | None = None
        failed_in: ScrapeState | None = None
        try:
            report = self._translate_source(counters, gauges)
        except SourceReportedError as e:
            logger.error(e.message)
            error = e
        except ScrapeException as e:
            logger.warning(f"{e.message} (while {self.state.value})")
            error = e
        except Exception as e:
            logger.error(
                f"Unexpected error while {self.state.value} {self.fetcher.source.url}: {e}",
                exc_info=True,
            )
            error = e

        if error is not None:
            failed_in = self.state
            # A failed cycle publishes no source series
            counters.rebuild()
            gauges.rebuild()
        self.state = ScrapeState.PUBLISHING

        duration = time.perf_counter() - start
        self._duration.set(duration)
        if error is None:
            self._scrape_error.set(0)
            self._up.set(1)
        else:
            self._errors_total.inc()
            self._scrape_error.set(1)
            self._up.set(0)

        with self._publish_lock:
            self._published = (counters, gauges)

        if report is not None:
            self._log_new_series(report)

        outcome = ScrapeOutcome(
            duration=duration,
            error=error,
            published=len(counters) + len(gauges),
            report=report,
            failed_in=failed_in,
        )
        self.last_outcome = outcome
        self.state = ScrapeState.IDLE
        return outcome

    def _translate_source(
        self, counters: CounterRegistry, gauges: GaugeRegistry
    ) -> TranslationReport:
        document = self._fetch_document(METRICS_PATH)

        self.state = ScrapeState.TRANSLATING
        report = TranslationEngine(counters, gauges).translate(document)
        logger.debug(
            f"Translated {report.total_translated} metrics from {self.fetcher.source.url} "
            f"({report.total_skipped} skipped)"
        )

        if self.scrape_apps:
            apps_document = self._fetch_document(APPS_PATH)

            self.state = ScrapeState.TRANSLATING
            try:
                apps = AppsTranslator(gauges).translate(apps_document)
            except ValueError as e:
                raise ParseError(f"{self.fetcher.source.url}{APPS_PATH}", str(e)) from e
            logger.debug(f"Translated {apps} apps from {self.fetcher.source.url}")

        return report

    def _fetch_document(self, path: str) -> dict:
        self.state = ScrapeState.FETCHING
        body = self.fetcher.fetch(path)

        self.state = ScrapeState.PARSING
        return parse_document(f"{self.fetcher.source.url}{path}", body)

    def _log_new_series(self, report: TranslationReport) -> None:
        for name in report.created:
            if name not in self._known_series:
                self._known_series.add(name)
                logger.info(f"Added {name}")

    def describe(self) -> Iterable[Metric]:
        # Describing would require a scrape
        return []

    def collect(self) -> Iterator[Metric]:
        if self.scrape_on_collect:
            self.scrape()

        with self._publish_lock:
            counters, gauges = self._published

        yield from counters.collect()
        yield from gauges.collect()
        for metric in self._instrumentation:
            yield from metric.collect()


def build_exporters(settings: "Settings") -> list[MarathonExporter]:
    """Create one exporter per configured source.

    With more than one source, every series carries an ``instance`` label
    so the sources do not collide.
    """
    sources = settings.sources
    exporters = []

    for source in sources:
        fetcher = MetricsFetcher(
            source, timeout=settings.scrape_timeout, verify_tls=settings.tls_verify
        )
        exporters.append(
            MarathonExporter(
                fetcher,
                namespace=settings.namespace,
                const_labels={"instance": source.instance} if len(sources) > 1 else None,
                scrape_on_collect=settings.scrape_interval <= 0,
                scrape_apps=settings.scrape_apps,
            )
        )

    return exporters
