"""Process lifetime: signal handling and ordered shutdown notifications."""

import logging
import signal
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from enum import Enum

logger = logging.getLogger(__name__)

LifetimeCallback = Callable[["LifetimeEvent"], None]


class LifetimeEvent(str, Enum):
    """Phases raised, in order, once shutdown starts."""

    PREPARE_SHUTDOWN = "prepare-shutdown"
    SHUTDOWN = "shutdown"
    AFTER_SHUTDOWN = "after-shutdown"


def _callback_name(callback: LifetimeCallback) -> str:
    return getattr(callback, "__name__", repr(callback))


class ShutdownCoordinatorProtocol(ABC):
    """Protocol for shutdown coordinator implementations."""

    @abstractmethod
    def initialize(self) -> None:
        """Install the SIGTERM/SIGINT handlers."""
        pass

    @abstractmethod
    def register_lifetime_notification(self, callback: LifetimeCallback) -> None:
        pass

    @abstractmethod
    def is_shutting_down(self) -> bool:
        pass

    @property
    @abstractmethod
    def stop_event(self) -> threading.Event:
        """Set when shutdown starts; blocking waits should use it."""
        pass

    @abstractmethod
    def shutdown(self) -> None:
        pass


class ShutdownCoordinator(ShutdownCoordinatorProtocol):
    """Turns a termination signal into the three lifetime events.

    PREPARE_SHUTDOWN flips readiness and wakes anything waiting on
    ``stop_event`` (the startup connection check). SHUTDOWN stops the
    background scrape thread. AFTER_SHUTDOWN releases the runner so the
    process can exit.
    """

    def __init__(self, graceful_shutdown_timeout: int):
        """Initialize shutdown coordinator.

        Args:
            graceful_shutdown_timeout: Seconds the SHUTDOWN phase may take
                before it is reported as too slow
        """
        self._graceful_shutdown_timeout = graceful_shutdown_timeout
        self._stop_event = threading.Event()
        self._lock = threading.RLock()
        self._callbacks: list[LifetimeCallback] = []

    def initialize(self) -> None:
        for signum in (signal.SIGTERM, signal.SIGINT):
            signal.signal(signum, self._handle_signal)

    def register_lifetime_notification(self, callback: LifetimeCallback) -> None:
        with self._lock:
            self._callbacks.append(callback)
        logger.debug(f"Registered lifetime notification: {_callback_name(callback)}")

    def is_shutting_down(self) -> bool:
        return self._stop_event.is_set()

    @property
    def stop_event(self) -> threading.Event:
        return self._stop_event

    def _handle_signal(self, signum: int, frame: object) -> None:
        logger.info(f"Received signal {signum}, initiating graceful shutdown")
        self.shutdown()

    def shutdown(self) -> None:
        with self._lock:
            if self._stop_event.is_set():
                logger.warning("Shutdown already in progress, ignoring signal")
                return
            self._stop_event.set()

        started = time.perf_counter()
        self._notify(LifetimeEvent.PREPARE_SHUTDOWN)
        self._notify(LifetimeEvent.SHUTDOWN)

        elapsed = time.perf_counter() - started
        if elapsed > self._graceful_shutdown_timeout:
            logger.error(
                f"Shutdown took {elapsed:.1f}s, longer than the "
                f"{self._graceful_shutdown_timeout}s timeout"
            )

        logger.info("Shutting down")
        self._notify(LifetimeEvent.AFTER_SHUTDOWN)

    def _notify(self, event: LifetimeEvent) -> None:
        logger.info(f"Raising lifetime event {event.value}")

        with self._lock:
            callbacks = list(self._callbacks)

        for callback in callbacks:
            try:
                callback(event)
            except Exception as e:
                logger.error(
                    f"Lifetime callback {_callback_name(callback)} "
                    f"failed on {event.value}: {e}"
                )
