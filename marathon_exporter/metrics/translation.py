"""Translation of a Marathon metrics document into counter and gauge series.

The document holds up to five metric families (counters, gauges, meters,
histograms, timers). Each family has its own decoder; adding a family means
adding a ``MetricFamily`` member and a ``FamilyDecoder`` subclass.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from marathon_exporter.exceptions import FieldDecodeError, SourceReportedError
from marathon_exporter.metrics.naming import normalize_name, normalize_rate_window
from marathon_exporter.metrics.registry import (
    CounterRegistry,
    GaugeRegistry,
    Series,
    SeriesRegistry,
)

logger = logging.getLogger(__name__)

COUNTER_HELP = "Marathon counter {key}"
GAUGE_HELP = "Marathon gauge {key}"
METER_HELP = "Marathon meter {key} ({units})"
HISTOGRAM_HELP = "Marathon histogram {key}"
TIMER_HELP = "Marathon timer {key} ({units})"
VERSION_HELP = "Marathon metrics version"

PERCENTILES = ("p50", "p75", "p95", "p98", "p99", "p999")
STATISTICS = ("max", "mean", "min", "stddev")
TIMER_RATES = ("mean_rate", "m1_rate", "m5_rate", "m15_rate")


class MetricFamily(str, Enum):
    """Metric families of the source document, valued by their top-level key."""

    COUNTER = "counters"
    GAUGE = "gauges"
    METER = "meters"
    HISTOGRAM = "histograms"
    TIMER = "timers"

    @property
    def singular(self) -> str:
        return self.value[:-1]


def is_number(value: Any) -> bool:
    """JSON numbers decode to int or float; bool is excluded."""
    return isinstance(value, int | float) and not isinstance(value, bool)


@dataclass
class TranslationReport:
    """Outcome of translating one document."""

    translated: dict[MetricFamily, int] = field(default_factory=dict)
    skipped: dict[MetricFamily, int] = field(default_factory=dict)
    created: list[str] = field(default_factory=list)
    version: str | None = None

    @property
    def total_translated(self) -> int:
        return sum(self.translated.values())

    @property
    def total_skipped(self) -> int:
        return sum(self.skipped.values())


class FamilyDecoder(ABC):
    """Decodes the metrics of one family into the current registries."""

    family: MetricFamily

    def __init__(self, counters: CounterRegistry, gauges: GaugeRegistry) -> None:
        self.counters = counters
        self.gauges = gauges

    def translate(self, key: str, node: Any) -> bool:
        """Decode one metric and populate its series.

        Returns:
            True when the metric's primary series was created by this call.

        Raises:
            FieldDecodeError: If the metric shape is invalid.
        """
        if not isinstance(node, dict):
            raise FieldDecodeError(self.family.singular, key, f"unexpected value {node!r}")
        try:
            return self.decode(key, node)
        except ValueError as e:
            raise FieldDecodeError(self.family.singular, key, str(e)) from e

    @abstractmethod
    def decode(self, key: str, node: dict[str, Any]) -> bool:
        pass

    def number(self, key: str, node: dict[str, Any], name: str) -> float:
        value = node.get(name)
        if not is_number(value):
            raise FieldDecodeError(
                self.family.singular, key, f'unexpected value "{value}" for {name}'
            )
        return float(value)

    def string(self, key: str, node: dict[str, Any], name: str) -> str:
        value = node.get(name)
        if not isinstance(value, str):
            raise FieldDecodeError(self.family.singular, key, f"has no {name}")
        return value

    def counter(self, name: str, help_text: str) -> tuple[Series, bool]:
        return self._fetch(self.counters, name, help_text)

    def gauge(self, name: str, help_text: str, *labelnames: str) -> tuple[Series, bool]:
        return self._fetch(self.gauges, name, help_text, *labelnames)

    @staticmethod
    def _fetch(
        registry: SeriesRegistry, name: str, help_text: str, *labelnames: str
    ) -> tuple[Series, bool]:
        return registry.fetch(normalize_name(name), help_text, *labelnames)

    def distribution(self, name: str, help_text: str, node: dict[str, Any]) -> None:
        """Populate the percentile gauge and the scalar statistic gauges."""
        percentiles, _ = self.gauge(name, help_text, "percentile")
        for percentile in PERCENTILES:
            value = node.get(percentile)
            if is_number(value):
                percentiles.labels("0." + percentile[1:]).set(value)

        for statistic in STATISTICS:
            value = node.get(statistic)
            if is_number(value):
                gauge, _ = self.gauge(f"{name}_{statistic}", help_text)
                gauge.set(value)


class CounterDecoder(FamilyDecoder):
    family = MetricFamily.COUNTER

    def decode(self, key: str, node: dict[str, Any]) -> bool:
        count = self.number(key, node, "count")
        counter, created = self.counter(key, COUNTER_HELP.format(key=key))
        counter.set(count)
        return created


class GaugeDecoder(FamilyDecoder):
    family = MetricFamily.GAUGE

    def decode(self, key: str, node: dict[str, Any]) -> bool:
        # Older sources report "max" instead of "value"
        field_name = "value" if "value" in node else "max"
        value = self.number(key, node, field_name)
        gauge, created = self.gauge(key, GAUGE_HELP.format(key=key))
        gauge.set(value)
        return created


class MeterDecoder(FamilyDecoder):
    family = MetricFamily.METER

    def decode(self, key: str, node: dict[str, Any]) -> bool:
        count = self.number(key, node, "count")
        units = self.string(key, node, "units")

        name = normalize_name(key)
        help_text = METER_HELP.format(key=key, units=units)
        counter, created = self.counter(f"{name}_count", help_text)
        counter.set(count)

        rates, _ = self.gauge(name, help_text, "rate")
        for field_name, value in node.items():
            if "rate" in field_name and is_number(value):
                rates.labels(normalize_rate_window(field_name)).set(value)
        return created


class HistogramDecoder(FamilyDecoder):
    family = MetricFamily.HISTOGRAM

    def decode(self, key: str, node: dict[str, Any]) -> bool:
        count = self.number(key, node, "count")

        name = normalize_name(key)
        help_text = HISTOGRAM_HELP.format(key=key)
        counter, created = self.counter(f"{name}_count", help_text)
        counter.set(count)

        self.distribution(name, help_text, node)
        return created


class TimerDecoder(FamilyDecoder):
    family = MetricFamily.TIMER

    def decode(self, key: str, node: dict[str, Any]) -> bool:
        count = self.number(key, node, "count")
        units = self.string(key, node, "rate_units")

        name = normalize_name(key)
        help_text = TIMER_HELP.format(key=key, units=units)
        counter, created = self.counter(f"{name}_count", help_text)
        counter.set(count)

        rates, _ = self.gauge(f"{name}_rate", help_text, "rate")
        for rate in TIMER_RATES:
            value = node.get(rate)
            if is_number(value):
                rates.labels(normalize_rate_window(rate)).set(value)

        self.distribution(name, help_text, node)
        return created


class TranslationEngine:
    """Drives the family decoders over a parsed metrics document."""

    decoder_classes: tuple[type[FamilyDecoder], ...] = (
        CounterDecoder,
        GaugeDecoder,
        MeterDecoder,
        HistogramDecoder,
        TimerDecoder,
    )

    def __init__(self, counters: CounterRegistry, gauges: GaugeRegistry) -> None:
        self.counters = counters
        self.gauges = gauges
        self.decoders: dict[MetricFamily, FamilyDecoder] = {
            cls.family: cls(counters, gauges) for cls in self.decoder_classes
        }

    def translate(self, document: dict[str, Any]) -> TranslationReport:
        """Populate the registries from a metrics document.

        Raises:
            SourceReportedError: If the document carries a ``message`` field;
                nothing is translated in that case.
        """
        if document.get("message") is not None:
            raise SourceReportedError(str(document["message"]))

        report = TranslationReport()

        if "version" in document:
            report.version = self.translate_version(document["version"])

        for family in MetricFamily:
            if family.value in document:
                self.translate_family(family, document[family.value], report)

        return report

    def translate_version(self, version: Any) -> str | None:
        if not isinstance(version, str):
            logger.error(f'Bad conversion! Unexpected value "{version}" for version')
            return None

        gauge, _ = self.gauges.fetch("metrics_version", VERSION_HELP, "version")
        gauge.labels(version).set(1)
        return version

    def translate_family(
        self, family: MetricFamily, elements: Any, report: TranslationReport
    ) -> None:
        if not isinstance(elements, dict):
            logger.warning(f"Ignoring {family.value}: expected an object, got {elements!r}")
            return

        decoder = self.decoders[family]
        translated = skipped = 0

        for key, node in elements.items():
            try:
                created = decoder.translate(key, node)
            except FieldDecodeError as e:
                logger.debug(str(e))
                skipped += 1
                continue

            translated += 1
            if created:
                report.created.append(f"{family.singular} {normalize_name(key)}")

        report.translated[family] = translated
        report.skipped[family] = skipped
