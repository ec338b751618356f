"""Flask application factory."""

import logging

from marathon_exporter.config import Settings
from marathon_exporter.core.container import ExporterContainer
from marathon_exporter.core.flask_app import App

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    container: ExporterContainer | None = None,
) -> App:
    """Create and configure the Flask application.

    Args:
        settings: Optional settings instance (loaded from the environment if not provided)
        container: Optional pre-built container (tests override providers on it)

    Returns:
        Configured Flask application instance

    Raises:
        ConfigurationError: If the settings are invalid
    """
    app = App(__name__)

    if settings is None:
        settings = Settings.load()

    settings.validate_config()

    if container is None:
        container = ExporterContainer()
    container.config.override(settings)

    from marathon_exporter.api import health, landing, metrics

    container.wire(modules=[health, landing, metrics])
    app.container = container

    app.register_blueprint(landing.landing_bp)
    app.register_blueprint(health.health_bp)
    app.register_blueprint(metrics.metrics_bp, url_prefix=settings.telemetry_path)

    # Build the exporters eagerly so a bad source fails at startup
    metrics_service = container.metrics_service()
    logger.info(
        f"Exporting {len(metrics_service.exporters)} Marathon source(s) "
        f"at {settings.telemetry_path}"
    )

    return app
