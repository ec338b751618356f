"""Tests for the HTTP endpoints."""

from dependency_injector import providers
from flask.testing import FlaskClient

from marathon_exporter import create_app
from marathon_exporter.config import Settings
from marathon_exporter.core.container import ExporterContainer
from marathon_exporter.core.flask_app import App
from marathon_exporter.exceptions import TransportError
from marathon_exporter.metrics.exporter import MarathonExporter
from tests.testing_utils import StubFetcher


class TestMetricsEndpoint:
    """Tests for the telemetry endpoint."""

    def test_metrics_endpoint_returns_exposition(self, client: FlaskClient) -> None:
        response = client.get("/metrics")

        assert response.status_code == 200
        assert response.content_type == "text/plain; version=0.0.4; charset=utf-8"
        text = response.get_data(as_text=True)
        assert "marathon_foo_count 5.0" in text
        assert 'marathon_metrics_version{version="3.0.0"} 1.0' in text
        assert "marathon_up 1.0" in text

    def test_source_failure_still_answers(
        self, client: FlaskClient, fetcher: StubFetcher
    ) -> None:
        """Test an unreachable source yields up=0, not an HTTP error."""
        fetcher.set_response(
            "/metrics", TransportError("http://marathon:8080/metrics", "refused")
        )

        response = client.get("/metrics")

        assert response.status_code == 200
        text = response.get_data(as_text=True)
        assert "marathon_up 0.0" in text
        assert "marathon_foo_count" not in text

    def test_custom_telemetry_path(self, test_settings: Settings, fetcher: StubFetcher) -> None:
        container = ExporterContainer()
        container.exporters.override(providers.Object([MarathonExporter(fetcher)]))
        app = create_app(
            test_settings.model_copy(update={"telemetry_path": "/prom"}),
            container=container,
        )
        client = app.test_client()

        assert client.get("/prom").status_code == 200
        assert client.get("/metrics").status_code == 404


class TestHealthEndpoints:
    """Tests for liveness and readiness probes."""

    def test_healthz(self, client: FlaskClient) -> None:
        response = client.get("/health/healthz")

        assert response.status_code == 200
        assert response.get_json() == {"status": "alive", "ready": True}

    def test_readyz(self, client: FlaskClient) -> None:
        response = client.get("/health/readyz")

        assert response.status_code == 200
        assert response.get_json() == {"status": "ready", "ready": True}

    def test_readyz_during_shutdown(self, app: App, client: FlaskClient) -> None:
        """Test readiness turns false once shutdown starts."""
        app.container.shutdown_coordinator().shutdown()

        response = client.get("/health/readyz")

        assert response.status_code == 503
        assert response.get_json() == {"status": "shutting down", "ready": False}


class TestLandingPage:
    """Tests for the landing page."""

    def test_links_to_telemetry_path(self, client: FlaskClient) -> None:
        response = client.get("/")

        assert response.status_code == 200
        assert "text/html" in response.content_type
        text = response.get_data(as_text=True)
        assert "Marathon Exporter" in text
        assert "href='/metrics'" in text
