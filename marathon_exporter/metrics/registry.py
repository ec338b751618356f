"""Thread-safe registries of lazily created counter and gauge series.

A registry maps a series key (metric name plus the sorted label keys) to a
series object. Every scrape cycle fills a freshly constructed pair of
registries, so only series touched during that cycle are ever published.
"""

import threading
from collections.abc import Iterable, Iterator
from enum import Enum

from prometheus_client import Gauge
from prometheus_client.core import Metric


class SeriesKind(str, Enum):
    """Kinds of series held by a registry."""

    COUNTER = "counter"
    GAUGE = "gauge"


def series_key(name: str, labelnames: Iterable[str]) -> str:
    """Build the registry key for a metric name and its label keys.

    Label keys are sorted, so ``("b", "a")`` and ``("a", "b")`` share a key.
    """
    return f"{name}{{{','.join(sorted(labelnames))}}}"


class Series:
    """A named series backed by an unregistered prometheus_client Gauge.

    Constant labels (``instance``) are label names of the backing gauge
    whose values are filled in by the series, so callers only pass the
    values of their own label keys.
    """

    kind = SeriesKind.GAUGE

    def __init__(
        self,
        namespace: str,
        name: str,
        documentation: str,
        labelnames: Iterable[str] = (),
        const_labels: dict[str, str] | None = None,
    ) -> None:
        self.name = f"{namespace}_{name}" if namespace else name
        self.documentation = documentation
        self.labelnames = tuple(labelnames)
        self.const_labels = dict(const_labels or {})

        # The namespace prefix would otherwise hide an empty name
        if not name:
            raise ValueError("Metric name should not be empty")
        if set(self.labelnames) & set(self.const_labels):
            raise ValueError(f"Label keys of {self.name} overlap its constant labels")

        # Raises ValueError on invalid metric or label names
        self._gauge = Gauge(
            name,
            documentation,
            [*self.const_labels, *self.labelnames],
            namespace=namespace,
            registry=None,
        )
        # A label-less gauge always exposes a sample; only publish once written
        self._written = False

    def labels(self, *labelvalues: str, **labelkwargs: str) -> "SeriesChild":
        """Return the child for the given label values, by position or by key."""
        if not self.labelnames:
            raise ValueError(f"No label names were set when constructing {self.name}")
        if labelvalues and labelkwargs:
            raise ValueError("Can't pass both positional and keyword label values")

        if labelkwargs:
            return SeriesChild(self, self._gauge.labels(**self.const_labels, **labelkwargs))
        return SeriesChild(self, self._gauge.labels(*self.const_labels.values(), *labelvalues))

    def set(self, value: float) -> None:
        """Set the value of a series without label keys."""
        if self.labelnames:
            raise ValueError(f"{self.name} is labelled; use labels() to set a value")

        child = self._gauge.labels(**self.const_labels) if self.const_labels else self._gauge
        SeriesChild(self, child).set(value)

    def _check_value(self, value: float) -> None:
        pass

    def samples(self) -> dict[tuple[str, ...], float]:
        """Current values keyed by the values of the series' own label keys."""
        family = self.collect()
        if family is None:
            return {}
        return {
            tuple(sample.labels[label] for label in self.labelnames): sample.value
            for sample in family.samples
        }

    def collect(self) -> Metric | None:
        """Build the metric family for this series, or None when it holds no values."""
        if not self._written:
            return None

        (family,) = self._gauge.collect()
        return family


class SeriesChild:
    """A single label combination of a series."""

    __slots__ = ("_series", "_gauge")

    def __init__(self, series: Series, gauge: Gauge) -> None:
        self._series = series
        self._gauge = gauge

    def set(self, value: float) -> None:
        value = float(value)
        self._series._check_value(value)
        self._gauge.set(value)
        self._series._written = True


class CounterSeries(Series):
    """A cumulative total reported by the source and re-asserted every scrape.

    The value is set, never incremented, and is exposed with gauge typing
    under its own name (no ``_total`` suffix).
    """

    kind = SeriesKind.COUNTER

    def _check_value(self, value: float) -> None:
        if value < 0:
            raise ValueError(f"Counter {self.name} cannot be set to negative value {value}")


class GaugeSeries(Series):
    """An arbitrary current value per label combination."""

    kind = SeriesKind.GAUGE


class SeriesRegistry:
    """Fetch-or-create mapping from series key to series, for one namespace."""

    series_class: type[Series] = GaugeSeries

    def __init__(self, namespace: str, const_labels: dict[str, str] | None = None) -> None:
        self.namespace = namespace
        self.const_labels = dict(const_labels or {})
        self._series: dict[str, Series] = {}
        self._lock = threading.Lock()

    def fetch(self, name: str, documentation: str, *labelnames: str) -> tuple[Series, bool]:
        """Return the series for name and label keys, creating it when missing.

        Returns:
            Tuple of (series, created). An existing series is never modified;
            the same name with other label keys is a different series.

        Raises:
            ValueError: If the metric or label names are not valid.
        """
        key = series_key(name, labelnames)
        with self._lock:
            series = self._series.get(key)
            if series is not None:
                return series, False

            series = self.series_class(
                self.namespace, name, documentation, labelnames, self.const_labels
            )
            self._series[key] = series
            return series, True

    def rebuild(self) -> None:
        """Drop every series by replacing the mapping with an empty one."""
        with self._lock:
            self._series = {}

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._series)

    def __len__(self) -> int:
        with self._lock:
            return len(self._series)

    def collect(self) -> Iterator[Metric]:
        """Yield a metric family for every series that holds a value."""
        with self._lock:
            series_list = list(self._series.values())

        for series in series_list:
            family = series.collect()
            if family is not None:
                yield family


class CounterRegistry(SeriesRegistry):
    """Registry of counter series."""

    series_class = CounterSeries


class GaugeRegistry(SeriesRegistry):
    """Registry of gauge series."""

    series_class = GaugeSeries
