"""Tests for counter and gauge series registries."""

import threading

import pytest

from marathon_exporter.metrics.registry import (
    CounterRegistry,
    CounterSeries,
    GaugeRegistry,
    GaugeSeries,
    SeriesKind,
    series_key,
)


class TestSeriesKey:
    """Tests for series_key()."""

    def test_without_labels(self) -> None:
        assert series_key("foo", ()) == "foo{}"

    def test_with_labels(self) -> None:
        assert series_key("foo", ("color", "value")) == "foo{color,value}"

    def test_label_order_does_not_matter(self) -> None:
        """Test label keys are sorted into the key."""
        assert series_key("foo", ("value", "color")) == "foo{color,value}"


class TestSeriesRegistry:
    """Tests for fetch-or-create behavior."""

    def test_fetch_creates_then_reuses(self) -> None:
        """Test the first fetch creates a series and the second returns it."""
        gauges = GaugeRegistry("marathon")

        first, created = gauges.fetch("foo", "Marathon gauge foo")
        second, created_again = gauges.fetch("foo", "Marathon gauge foo")

        assert created is True
        assert created_again is False
        assert first is second

    def test_label_order_returns_same_series(self) -> None:
        """Test fetching with reordered label keys returns the same series."""
        gauges = GaugeRegistry("marathon")

        first, _ = gauges.fetch("foo", "help", "color", "value")
        second, created = gauges.fetch("foo", "help", "value", "color")

        assert created is False
        assert first is second

    def test_same_name_other_labels_is_distinct(self) -> None:
        """Test a name with different label keys is a separate series."""
        gauges = GaugeRegistry("marathon")

        plain, _ = gauges.fetch("foo", "help")
        labelled, created = gauges.fetch("foo", "help", "percentile")

        assert created is True
        assert plain is not labelled
        assert sorted(gauges.keys()) == ["foo{percentile}", "foo{}"]

    def test_existing_series_keeps_first_help(self) -> None:
        """Test an existing series is never modified by a later fetch."""
        gauges = GaugeRegistry("marathon")

        gauges.fetch("foo", "first help")
        series, _ = gauges.fetch("foo", "second help")

        assert series.documentation == "first help"

    def test_series_name_is_namespaced(self) -> None:
        counters = CounterRegistry("marathon")

        series, _ = counters.fetch("foo_count", "help")

        assert series.name == "marathon_foo_count"

    def test_registry_creates_matching_series_class(self) -> None:
        """Test counter and gauge registries create their own series kinds."""
        counter, _ = CounterRegistry("marathon").fetch("foo", "help")
        gauge, _ = GaugeRegistry("marathon").fetch("foo", "help")

        assert isinstance(counter, CounterSeries)
        assert counter.kind == SeriesKind.COUNTER
        assert isinstance(gauge, GaugeSeries)
        assert gauge.kind == SeriesKind.GAUGE

    def test_rebuild_drops_every_series(self) -> None:
        """Test rebuild empties the registry and fetch creates afresh."""
        gauges = GaugeRegistry("marathon")
        old, _ = gauges.fetch("foo", "help")

        gauges.rebuild()

        assert len(gauges) == 0
        new, created = gauges.fetch("foo", "help")
        assert created is True
        assert new is not old

    def test_invalid_name_rejected(self) -> None:
        gauges = GaugeRegistry("marathon")

        with pytest.raises(ValueError):
            gauges.fetch("", "help")

    def test_invalid_label_rejected(self) -> None:
        gauges = GaugeRegistry("marathon")

        with pytest.raises(ValueError):
            gauges.fetch("foo", "help", "__reserved")

    def test_label_overlapping_const_label_rejected(self) -> None:
        gauges = GaugeRegistry("marathon", const_labels={"instance": "a:8080"})

        with pytest.raises(ValueError):
            gauges.fetch("foo", "help", "instance")

    def test_concurrent_fetch_creates_one_series(self) -> None:
        """Test concurrent fetches of the same key agree on one series."""
        gauges = GaugeRegistry("marathon")
        results: list[object] = []
        barrier = threading.Barrier(8)

        def worker() -> None:
            barrier.wait()
            series, _ = gauges.fetch("foo", "help", "a", "b")
            results.append(series)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(results) == 8
        assert all(series is results[0] for series in results)
        assert len(gauges) == 1


class TestSeries:
    """Tests for setting values and building metric families."""

    def test_counter_rejects_negative_value(self) -> None:
        counter, _ = CounterRegistry("marathon").fetch("foo", "help")

        with pytest.raises(ValueError):
            counter.set(-1)

        assert counter.collect() is None

    def test_gauge_accepts_negative_value(self) -> None:
        gauge, _ = GaugeRegistry("marathon").fetch("foo", "help")

        gauge.set(-1)

        assert gauge.samples() == {(): -1.0}

    def test_set_on_labelled_series_requires_labels(self) -> None:
        gauge, _ = GaugeRegistry("marathon").fetch("foo", "help", "rate")

        with pytest.raises(ValueError):
            gauge.set(1)

    def test_labels_by_position_and_keyword(self) -> None:
        gauge, _ = GaugeRegistry("marathon").fetch("foo", "help", "app", "version")

        gauge.labels("/a", "v1").set(1)
        gauge.labels(version="v2", app="/b").set(2)

        assert gauge.samples() == {("/a", "v1"): 1.0, ("/b", "v2"): 2.0}

    def test_labels_with_wrong_count_rejected(self) -> None:
        gauge, _ = GaugeRegistry("marathon").fetch("foo", "help", "rate")

        with pytest.raises(ValueError):
            gauge.labels("1m", "extra")

    def test_set_replaces_value(self) -> None:
        counter, _ = CounterRegistry("marathon").fetch("foo", "help")

        counter.set(5)
        counter.set(3)

        assert counter.samples() == {(): 3.0}

    def test_collect_skips_series_without_values(self) -> None:
        """Test series that were never set produce no metric family."""
        gauges = GaugeRegistry("marathon")
        gauges.fetch("empty", "help")
        used, _ = gauges.fetch("used", "help")
        used.set(1)

        families = list(gauges.collect())

        assert [family.name for family in families] == ["marathon_used"]

    def test_collect_includes_const_labels(self) -> None:
        """Test constant labels come first on every sample."""
        gauges = GaugeRegistry("marathon", const_labels={"instance": "a:8080"})
        gauge, _ = gauges.fetch("foo", "Marathon gauge foo", "rate")
        gauge.labels("1m").set(2)

        (family,) = gauges.collect()

        assert family.type == "gauge"
        assert family.documentation == "Marathon gauge foo"
        (sample,) = family.samples
        assert sample.name == "marathon_foo"
        assert sample.labels == {"instance": "a:8080", "rate": "1m"}
        assert sample.value == 2.0
