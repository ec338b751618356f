"""Exporter runner with graceful shutdown support."""

import logging
import os
import threading

from waitress import serve

from marathon_exporter.config import Settings
from marathon_exporter.core.shutdown import LifetimeEvent
from marathon_exporter.services.connectivity import wait_for_connection


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def run(settings: Settings) -> None:
    """Run the exporter until SIGTERM/SIGINT.

    This handles:
    - Logging setup
    - App creation via create_app()
    - Waiting for every Marathon source to answer before serving
    - Background scrapes when a scrape interval is configured
    - Development vs production server selection

    Raises:
        ConfigurationError: If the settings are invalid
    """
    configure_logging(settings.log_level)

    # Import here to avoid circular imports
    from marathon_exporter.core.app import create_app

    app = create_app(settings)
    container = app.container

    shutdown_coordinator = container.shutdown_coordinator()
    shutdown_coordinator.initialize()

    exporters = container.metrics_service().exporters

    if not settings.skip_connection_check:
        for exporter in exporters:
            connected = wait_for_connection(
                exporter.fetcher,
                retry_interval=settings.connect_retry_interval,
                stop_event=shutdown_coordinator.stop_event,
            )
            if not connected:
                return

    if settings.scrape_interval > 0:
        coordinator = container.metrics_coordinator()
        for exporter in exporters:
            coordinator.register_updater(exporter.scrape)
        coordinator.start(interval_seconds=settings.scrape_interval)

    host, port = settings.host, settings.port
    app.logger.info(f"Starting server on {host}:{port}")

    if settings.is_development:
        app.logger.info("Running in debug mode")

        def signal_shutdown(lifetime_event: LifetimeEvent) -> None:
            if lifetime_event == LifetimeEvent.AFTER_SHUTDOWN:
                # Flask's development server has no stop hook
                os._exit(0)

        shutdown_coordinator.register_lifetime_notification(signal_shutdown)

        app.run(host=host, port=port, debug=False)
    else:
        def runner() -> None:
            app.logger.info(
                f"Using Waitress WSGI server with {settings.waitress_threads} threads"
            )
            serve(app, host=host, port=port, threads=settings.waitress_threads)

        # Wait for shutdown signal
        event = threading.Event()

        def signal_shutdown_prod(lifetime_event: LifetimeEvent) -> None:
            if lifetime_event == LifetimeEvent.AFTER_SHUTDOWN:
                event.set()

        shutdown_coordinator.register_lifetime_notification(signal_shutdown_prod)

        # Run server in daemon thread so shutdown coordinator controls exit
        thread = threading.Thread(target=runner, daemon=True)
        thread.start()

        event.wait()
