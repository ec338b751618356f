"""HTTP collaborator fetching JSON documents from a Marathon source."""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from marathon_exporter.config import MarathonSource
from marathon_exporter.exceptions import ParseError, TransportError

logger = logging.getLogger(__name__)


class FetcherProtocol(ABC):
    """Protocol for fetcher implementations."""

    source: MarathonSource

    @abstractmethod
    def fetch(self, path: str, check_status: bool = False) -> bytes:
        """Return the response body for a path relative to the source URL."""
        pass


class MetricsFetcher(FetcherProtocol):
    """Authenticated GET with TLS settings and a bounded timeout."""

    def __init__(
        self, source: MarathonSource, timeout: float = 10.0, verify_tls: bool = False
    ) -> None:
        """Initialize fetcher.

        Args:
            source: The Marathon source to fetch from
            timeout: Connect and read timeout in seconds
            verify_tls: Whether to verify the server certificate
        """
        self.source = source
        self.timeout = timeout
        self.verify_tls = verify_tls

    def fetch(self, path: str, check_status: bool = False) -> bytes:
        """Fetch a path relative to the source URL.

        Args:
            path: Absolute path such as "/metrics"
            check_status: Treat non-2xx responses as transport errors

        Raises:
            TransportError: On network, TLS or timeout failures
        """
        url = f"{self.source.url}{path}"
        try:
            response = httpx.get(
                url,
                auth=self.source.auth,
                timeout=self.timeout,
                verify=self.verify_tls,
            )
        except httpx.HTTPError as e:
            raise TransportError(url, str(e)) from e

        if check_status and response.is_error:
            raise TransportError(url, f"HTTP {response.status_code}")

        logger.debug(f"Fetched {len(response.content)} bytes from {url}")
        return response.content


def parse_document(url: str, body: bytes) -> dict[str, Any]:
    """Parse a response body as a JSON object.

    Raises:
        ParseError: If the body is not JSON or not an object
    """
    try:
        document = json.loads(body)
    except ValueError as e:
        raise ParseError(url, str(e)) from e

    if not isinstance(document, dict):
        raise ParseError(url, f"expected a JSON object, got {type(document).__name__}")
    return document
