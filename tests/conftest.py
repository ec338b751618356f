"""Pytest configuration and fixtures."""

from collections.abc import Generator
from typing import Any

import pytest
from dependency_injector import providers
from flask.testing import FlaskClient
from prometheus_client import CollectorRegistry

from marathon_exporter import create_app
from marathon_exporter.config import Settings
from marathon_exporter.core.container import ExporterContainer
from marathon_exporter.core.flask_app import App
from marathon_exporter.metrics.exporter import MarathonExporter
from tests.testing_utils import StubFetcher


def _build_test_settings() -> Settings:
    """Construct base Settings object for tests."""
    return Settings(
        marathon_uris=["http://marathon:8080"],
        flask_env="testing",
        skip_connection_check=True,
        graceful_shutdown_timeout=1,
    )


def _build_metrics_document() -> dict[str, Any]:
    """A metrics document carrying one metric of every family."""
    return {
        "version": "3.0.0",
        "counters": {
            "foo.count": {"count": 5},
        },
        "gauges": {
            "jvm.memory.heap-used": {"value": 1024},
        },
        "meters": {
            "mesosphere.marathon.api.v2.AppsResource.index": {
                "count": 1,
                "m15_rate": 2,
                "m1_rate": 3,
                "m5_rate": 4,
                "mean_rate": 5,
                "units": "events/second",
            },
        },
        "histograms": {
            "service.mesosphere.marathon.state.AppRepository.read-request-time": {
                "count": 2,
                "max": 9,
                "mean": 5,
                "min": 1,
                "p50": 4,
                "p75": 6,
                "p95": 8,
                "p98": 8.5,
                "p99": 8.9,
                "p999": 9,
                "stddev": 1.5,
            },
        },
        "timers": {
            "org.eclipse.jetty.servlet.ServletContextHandler.get-requests": {
                "count": 7,
                "max": 0.3,
                "mean": 0.1,
                "min": 0.01,
                "p50": 0.09,
                "p75": 0.12,
                "p95": 0.2,
                "p98": 0.25,
                "p99": 0.28,
                "p999": 0.3,
                "stddev": 0.05,
                "m15_rate": 0.5,
                "m1_rate": 0.7,
                "m5_rate": 0.6,
                "mean_rate": 0.4,
                "duration_units": "seconds",
                "rate_units": "calls/second",
            },
        },
    }


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings."""
    return _build_test_settings()


@pytest.fixture
def metrics_document() -> dict[str, Any]:
    """Create a metrics document covering every family."""
    return _build_metrics_document()


@pytest.fixture
def fetcher(metrics_document: dict[str, Any]) -> StubFetcher:
    """Fetcher answering /metrics with the test document."""
    return StubFetcher({"/metrics": metrics_document})


@pytest.fixture
def exporter(fetcher: StubFetcher) -> MarathonExporter:
    """Exporter that only scrapes when scrape() is called."""
    return MarathonExporter(fetcher, scrape_on_collect=False)


@pytest.fixture
def registry(exporter: MarathonExporter) -> CollectorRegistry:
    """Isolated collector registry holding the exporter."""
    registry = CollectorRegistry()
    registry.register(exporter)
    return registry


@pytest.fixture
def app(test_settings: Settings, fetcher: StubFetcher) -> Generator[App, None, None]:
    """Create Flask app for testing with a stubbed Marathon source."""
    container = ExporterContainer()
    container.exporters.override(providers.Object([MarathonExporter(fetcher)]))

    application = create_app(test_settings, container=container)

    try:
        yield application
    finally:
        application.container.shutdown_coordinator().shutdown()
        container.exporters.reset_override()


@pytest.fixture
def client(app: App) -> FlaskClient:
    """Create test client."""
    return app.test_client()


@pytest.fixture
def container(app: App) -> ExporterContainer:
    """Access to the DI container for testing."""
    return app.container
