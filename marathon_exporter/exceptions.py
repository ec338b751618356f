"""Exporter exceptions with log-ready messages."""


class ConfigurationError(Exception):
    """Raised when exporter configuration is invalid."""

    pass


class ScrapeException(Exception):
    """Base exception class for failures that abort a scrape cycle."""

    def __init__(self, message: str, error_code: str) -> None:
        self.message = message
        self.error_code = error_code
        super().__init__(message)


class TransportError(ScrapeException):
    """Exception raised when the source could not be reached (network, TLS, timeout)."""

    def __init__(self, url: str, cause: str) -> None:
        self.url = url
        message = f"Problem connecting to {url}: {cause}"
        super().__init__(message, error_code="TRANSPORT_ERROR")


class ParseError(ScrapeException):
    """Exception raised when a response body is not a valid document."""

    def __init__(self, url: str, cause: str) -> None:
        self.url = url
        message = f"Problem parsing response body from {url}: {cause}"
        super().__init__(message, error_code="PARSE_ERROR")


class SourceReportedError(ScrapeException):
    """Exception raised when the source reports an error instead of metrics."""

    def __init__(self, source_message: str) -> None:
        self.source_message = source_message
        message = f"Problem collecting metrics: {source_message}"
        super().__init__(message, error_code="SOURCE_REPORTED_ERROR")


class FieldDecodeError(Exception):
    """Raised when a single metric has a missing or mistyped field.

    This never aborts a scrape; the metric is skipped.
    """

    def __init__(self, family: str, key: str, cause: str) -> None:
        self.family = family
        self.key = key
        self.error_code = "FIELD_DECODE_ERROR"
        super().__init__(f"Bad {family} {key}: {cause}")
