"""Exporter dependency injection container."""

from dependency_injector import containers, providers

from marathon_exporter.config import Settings
from marathon_exporter.core.shutdown import ShutdownCoordinator
from marathon_exporter.metrics.coordinator import MetricsUpdateCoordinator
from marathon_exporter.metrics.exporter import build_exporters
from marathon_exporter.metrics.service import MetricsService


class ExporterContainer(containers.DeclarativeContainer):
    """Container with the exporter's services.

    The settings must be provided before any service is resolved:

        container = ExporterContainer()
        container.config.override(settings)
    """

    # Configuration - must be overridden
    config = providers.Dependency(instance_of=Settings)

    # Shutdown coordinator
    shutdown_coordinator = providers.Singleton(
        ShutdownCoordinator,
        graceful_shutdown_timeout=config.provided.graceful_shutdown_timeout,
    )

    # One exporter per Marathon source, each with its own registries
    exporters = providers.Singleton(build_exporters, settings=config)

    # Metrics service - owns the CollectorRegistry
    metrics_service = providers.Singleton(
        MetricsService,
        exporters=exporters,
    )

    # Background scrapes when a scrape interval is configured
    metrics_coordinator = providers.Singleton(
        MetricsUpdateCoordinator,
        shutdown_coordinator=shutdown_coordinator,
    )
