"""Structured log events for the stream session lifecycle.

Every record carries an event type in brackets followed by ``key=value``
fields so connection churn can be followed in aggregated logs:

>>> event_logger = StreamEventLogger()
>>> event_logger.log_connect_started(endpoint="https://mstdn.jp/api/v1/streaming/user")

"""

from __future__ import annotations

import enum

import httpx

from mstdn.logging import get_logger, log_debug, log_error, log_info, log_warning

from .errors import (
    StreamAuthorizationError,
    StreamConfigError,
    StreamEndedError,
    StreamHTTPError,
    StreamLivenessError,
)

logger = get_logger(__name__)

# HTTP status code threshold for server errors (5xx)
_HTTP_SERVER_ERROR_THRESHOLD = 500


class StreamEventType(enum.StrEnum):
    """Structured log event types for stream sessions."""

    CONNECT_STARTED = "stream.connect.started"
    CONNECTED = "stream.connected"
    DISCONNECTED = "stream.disconnected"
    RECONNECT_SCHEDULED = "stream.reconnect.scheduled"
    AUTHORIZATION_REJECTED = "stream.authorization.rejected"
    SESSION_CLOSED = "stream.session.closed"
    UNKNOWN_FRAME = "stream.frame.unknown"


class ErrorCategory(enum.StrEnum):
    """Categories used to classify disconnect causes."""

    TRANSIENT = "transient"
    CLIENT_ERROR = "client_error"
    AUTHORIZATION = "authorization"
    CONFIGURATION = "configuration"
    STALLED = "stalled"
    UNKNOWN = "unknown"


_EXCEPTION_CATEGORY_MAP: tuple[tuple[type[BaseException], ErrorCategory], ...] = (
    (StreamConfigError, ErrorCategory.CONFIGURATION),
    (httpx.InvalidURL, ErrorCategory.CONFIGURATION),
    (httpx.UnsupportedProtocol, ErrorCategory.CONFIGURATION),
    (StreamLivenessError, ErrorCategory.STALLED),
    (StreamEndedError, ErrorCategory.TRANSIENT),
    (httpx.TransportError, ErrorCategory.TRANSIENT),
)


def categorize_error(exc: BaseException) -> ErrorCategory:
    """Categorize a session failure for logging.

    Returns:
        ErrorCategory describing why the connection was lost.

    """
    # Status-bearing errors need the code to tell retryable from rejected.
    if isinstance(exc, StreamAuthorizationError):
        return ErrorCategory.AUTHORIZATION
    if isinstance(exc, StreamHTTPError):
        if exc.status_code >= _HTTP_SERVER_ERROR_THRESHOLD:
            return ErrorCategory.TRANSIENT
        return ErrorCategory.CLIENT_ERROR

    for exc_type, category in _EXCEPTION_CATEGORY_MAP:
        if isinstance(exc, exc_type):
            return category

    return ErrorCategory.UNKNOWN


class StreamEventLogger:
    """Emit structured stream session events via femtologging."""

    def log_connect_started(self, *, endpoint: str, attempt: int = 0) -> None:
        """Log a connection attempt."""
        log_info(
            logger,
            "[%s] endpoint=%s attempt=%d",
            StreamEventType.CONNECT_STARTED,
            endpoint,
            attempt,
        )

    def log_connected(self, *, endpoint: str, status_code: int) -> None:
        """Log a successful connection."""
        log_info(
            logger,
            "[%s] endpoint=%s status_code=%d",
            StreamEventType.CONNECTED,
            endpoint,
            status_code,
        )

    def log_disconnected(self, *, endpoint: str, error: BaseException) -> None:
        """Log a lost connection with its categorised cause."""
        log_warning(
            logger,
            "[%s] endpoint=%s error_type=%s error_category=%s error_message=%s",
            StreamEventType.DISCONNECTED,
            endpoint,
            type(error).__name__,
            categorize_error(error),
            str(error),
            exc_info=error,
        )

    def log_reconnect_scheduled(
        self, *, attempt: int, ceiling_s: float, delay_s: float
    ) -> None:
        """Log the backoff chosen before the next attempt."""
        log_info(
            logger,
            "[%s] attempt=%d ceiling_seconds=%.3f delay_seconds=%.3f",
            StreamEventType.RECONNECT_SCHEDULED,
            attempt,
            ceiling_s,
            delay_s,
        )

    def log_authorization_rejected(self, *, endpoint: str, status_code: int) -> None:
        """Log a fatal credential rejection."""
        log_error(
            logger,
            "[%s] endpoint=%s status_code=%d",
            StreamEventType.AUTHORIZATION_REJECTED,
            endpoint,
            status_code,
        )

    def log_session_closed(
        self, *, endpoint: str, error: BaseException | None = None
    ) -> None:
        """Log the terminal transition of a session."""
        if error is None:
            log_info(
                logger,
                "[%s] endpoint=%s reason=stopped",
                StreamEventType.SESSION_CLOSED,
                endpoint,
            )
            return
        log_error(
            logger,
            "[%s] endpoint=%s reason=fatal error_type=%s error_category=%s "
            "error_message=%s",
            StreamEventType.SESSION_CLOSED,
            endpoint,
            type(error).__name__,
            categorize_error(error),
            str(error),
            exc_info=error,
        )

    def log_unknown_frame(self, *, raw_type: str, reason: str) -> None:
        """Log a frame that decoded to an unknown event."""
        log_debug(
            logger,
            "[%s] raw_type=%s reason=%s",
            StreamEventType.UNKNOWN_FRAME,
            raw_type,
            reason,
        )


__all__ = [
    "ErrorCategory",
    "StreamEventLogger",
    "StreamEventType",
    "categorize_error",
]
