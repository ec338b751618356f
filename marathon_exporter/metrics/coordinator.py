"""Periodic scrapes on a background thread.

Only used when SCRAPE_INTERVAL is positive. Exporters then run with
scrape_on_collect disabled and every exposition serves the last finished
cycle.
"""

import logging
import threading
from collections.abc import Callable
from typing import TYPE_CHECKING

from marathon_exporter.core.shutdown import LifetimeEvent

if TYPE_CHECKING:
    from marathon_exporter.core.shutdown import ShutdownCoordinatorProtocol

logger = logging.getLogger(__name__)

Updater = Callable[[], object]


class MetricsUpdateCoordinator:
    """Runs every registered updater, then sleeps for the interval.

        coordinator.register_updater(exporter.scrape)
        coordinator.start(interval_seconds=30)

    The thread stops on the SHUTDOWN lifetime event.
    """

    def __init__(self, shutdown_coordinator: "ShutdownCoordinatorProtocol"):
        self._updaters: list[Updater] = []
        self._lock = threading.Lock()
        self._wakeup = threading.Event()
        self._thread: threading.Thread | None = None

        shutdown_coordinator.register_lifetime_notification(self._on_lifetime_event)

    def register_updater(self, updater: Updater) -> None:
        with self._lock:
            self._updaters.append(updater)
        logger.debug(f"Scheduled {getattr(updater, '__qualname__', repr(updater))}")

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, interval_seconds: int) -> None:
        if self.is_running:
            logger.warning("Background scrapes already running")
            return

        self._wakeup.clear()
        self._thread = threading.Thread(
            target=self._loop,
            args=(interval_seconds,),
            name="MetricsUpdateCoordinator",
            daemon=True,
        )
        self._thread.start()
        logger.info(f"Scraping every {interval_seconds}s in the background")

    def stop(self) -> None:
        self._wakeup.set()
        if self._thread is None:
            return

        self._thread.join(timeout=5)
        self._thread = None
        logger.info("Stopped background scrapes")

    def _loop(self, interval_seconds: int) -> None:
        # First cycle runs immediately so the first exposition has data
        while not self._wakeup.is_set():
            self.run_updaters()
            self._wakeup.wait(interval_seconds)

    def run_updaters(self) -> None:
        """Run one cycle; a failing updater is logged and the rest still run."""
        with self._lock:
            updaters = list(self._updaters)

        for updater in updaters:
            try:
                updater()
            except Exception as e:
                logger.error(f"Background scrape failed: {e}", exc_info=True)

    def _on_lifetime_event(self, event: LifetimeEvent) -> None:
        if event == LifetimeEvent.SHUTDOWN:
            self.stop()
