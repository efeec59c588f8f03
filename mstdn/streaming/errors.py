"""Errors raised and recorded by the streaming event client."""

from __future__ import annotations


class StreamError(RuntimeError):
    """Base class for every streaming failure.

    Transport failures are recorded on the session as ``last_error`` and
    absorbed by the reconnect loop; only configuration and authorization
    failures end a session.
    """


class StreamHTTPError(StreamError):
    """Raised when the stream endpoint answers with a non-2xx status."""

    def __init__(self, message: str, *, status_code: int) -> None:
        """Initialise with a message and the HTTP status code."""
        self.status_code = status_code
        super().__init__(message)

    @classmethod
    def http_error(cls, status_code: int) -> StreamHTTPError:
        """Return an error for a retryable non-2xx response."""
        return cls(f"stream endpoint HTTP {status_code}", status_code=status_code)


class StreamAuthorizationError(StreamHTTPError):
    """Raised when the server rejects the bearer credential."""

    @classmethod
    def rejected(cls, status_code: int) -> StreamAuthorizationError:
        """Return an error for 401/403 responses."""
        return cls(
            f"stream endpoint rejected the access token (HTTP {status_code})",
            status_code=status_code,
        )


class StreamEndedError(StreamError):
    """Raised when the server closes the event stream."""

    @classmethod
    def closed(cls, *, partial_frame: bool) -> StreamEndedError:
        """Return an error describing how the stream ended."""
        if partial_frame:
            return cls("stream ended without a clean frame boundary")
        return cls("stream ended by server")


class StreamLivenessError(StreamError):
    """Raised when no frame arrives within the liveness window."""

    @classmethod
    def silent_for(cls, window_s: float) -> StreamLivenessError:
        """Return an error for a stalled connection."""
        return cls(f"no frame received within {window_s:.1f}s liveness window")


class StreamConnectError(StreamError):
    """Raised when the transport fails to reach or read from the endpoint."""

    @classmethod
    def transport(cls, detail: str) -> StreamConnectError:
        """Return an error wrapping an httpx transport failure."""
        return cls(f"stream transport error: {detail}")


class StreamConfigError(StreamError):
    """Raised when streaming configuration is invalid."""

    @classmethod
    def invalid_endpoint(cls, endpoint: str) -> StreamConfigError:
        """Return an error for endpoints that are not http(s) URLs."""
        return cls(f"stream endpoint must be an http(s) URL: {endpoint!r}")

    @classmethod
    def empty_credential(cls) -> StreamConfigError:
        """Return an error when the bearer credential is empty."""
        return cls("stream credential must be non-empty")

    @classmethod
    def invalid_value(cls, field: str, value: object) -> StreamConfigError:
        """Return an error for an out-of-range numeric setting."""
        return cls(f"invalid {field}: {value!r}")

    @classmethod
    def missing_tag(cls, timeline: str) -> StreamConfigError:
        """Return an error for hashtag timelines without a tag."""
        return cls(f"timeline {timeline!r} requires a hashtag")

    @classmethod
    def unknown_timeline(cls, timeline: str) -> StreamConfigError:
        """Return an error for timelines the service does not stream."""
        return cls(f"unknown timeline: {timeline!r}")


class SessionStateError(StreamError):
    """Raised when a session operation is invalid in its current state."""

    @classmethod
    def already_running(cls) -> SessionStateError:
        """Return an error for a second ``start`` on a live session."""
        return cls("stream session is already running")

    @classmethod
    def stopped(cls) -> SessionStateError:
        """Return an error for ``start`` after ``stop``."""
        return cls("stream session was stopped and cannot be restarted")


class SubscriptionClosedError(StreamError):
    """Signal returned to readers of a closed subscription."""

    @classmethod
    def closed(cls) -> SubscriptionClosedError:
        """Return the closed-subscription signal."""
        return cls("subscription is closed")
