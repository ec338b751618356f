"""Startup connectivity check against the Marathon info endpoint."""

import logging
import threading
from typing import Any

from marathon_exporter.exceptions import ScrapeException
from marathon_exporter.services.fetcher import FetcherProtocol, parse_document

logger = logging.getLogger(__name__)

INFO_PATH = "/v2/info"


def probe(fetcher: FetcherProtocol) -> dict[str, Any]:
    """Fetch the source's info document.

    Raises:
        TransportError: If the source is unreachable or answers with an error status
        ParseError: If the info document is not a JSON object
    """
    body = fetcher.fetch(INFO_PATH, check_status=True)
    return parse_document(f"{fetcher.source.url}{INFO_PATH}", body)


def wait_for_connection(
    fetcher: FetcherProtocol,
    retry_interval: float,
    stop_event: threading.Event | None = None,
) -> bool:
    """Block until the source answers the info probe.

    Args:
        fetcher: Fetcher bound to the source
        retry_interval: Seconds to wait between attempts
        stop_event: Aborts the wait when set (shutdown)

    Returns:
        True once connected, False if stop_event was set first.
    """
    stop_event = stop_event or threading.Event()

    while not stop_event.is_set():
        try:
            info = probe(fetcher)
        except ScrapeException as e:
            logger.debug(f"Problem connecting to Marathon: {e}")
            logger.info(
                f"Couldn't connect to Marathon at {fetcher.source.instance}! "
                f"Trying again in {retry_interval}s"
            )
            stop_event.wait(retry_interval)
            continue

        logger.info(
            f"Connected to Marathon! Name={info.get('name')}, Version={info.get('version')}"
        )
        return True

    return False
