"""Configuration for the streaming event client."""

from __future__ import annotations

import dataclasses
import os
import typing as typ

import httpx

from .errors import StreamConfigError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

# Default configuration values - single source of truth
_DEFAULT_BASE_BACKOFF_S = 1.0
_DEFAULT_MAX_BACKOFF_S = 60.0
# The server emits a keep-alive comment roughly every 15 seconds.
_DEFAULT_LIVENESS_WINDOW_S = 90.0
_DEFAULT_QUEUE_CAPACITY = 256
_DEFAULT_CONNECT_TIMEOUT_S = 10.0
_DEFAULT_USER_AGENT = "mstdn/0.1"

_ALLOWED_SCHEMES = frozenset({"http", "https"})

_TIMELINE_PATHS: dict[str, str] = {
    "user": "/api/v1/streaming/user",
    "public": "/api/v1/streaming/public",
    "public:local": "/api/v1/streaming/public/local",
    "hashtag": "/api/v1/streaming/hashtag",
    "hashtag:local": "/api/v1/streaming/hashtag/local",
}
_TAGGED_TIMELINES = frozenset({"hashtag", "hashtag:local"})

TIMELINES: tuple[str, ...] = tuple(_TIMELINE_PATHS)


def stream_endpoint(server: str, timeline: str = "user", tag: str | None = None) -> str:
    """Return the event-stream URL for ``timeline`` on ``server``.

    Raises
    ------
    StreamConfigError
        If the timeline is unknown or a hashtag timeline has no tag.

    """
    path = _TIMELINE_PATHS.get(timeline)
    if path is None:
        raise StreamConfigError.unknown_timeline(timeline)

    params: dict[str, str] = {}
    if timeline in _TAGGED_TIMELINES:
        cleaned = (tag or "").strip().lstrip("#")
        if not cleaned:
            raise StreamConfigError.missing_tag(timeline)
        params["tag"] = cleaned

    return str(httpx.URL(server.rstrip("/") + path, params=params))


def _validate_endpoint(endpoint: str) -> None:
    try:
        url = httpx.URL(endpoint)
    except httpx.InvalidURL as exc:
        raise StreamConfigError.invalid_endpoint(endpoint) from exc
    if url.scheme not in _ALLOWED_SCHEMES or not url.host:
        raise StreamConfigError.invalid_endpoint(endpoint)


def _parse_float(
    env: cabc.Mapping[str, str], name: str, default: float
) -> float:
    raw = env.get(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise StreamConfigError.invalid_value(name, raw) from exc


def _parse_int(env: cabc.Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise StreamConfigError.invalid_value(name, raw) from exc


@dataclasses.dataclass(frozen=True, slots=True)
class StreamConfig:
    """Construction-time settings for a :class:`StreamSession`.

    Attributes
    ----------
    endpoint
        Event-stream URL, see :func:`stream_endpoint`.
    credential
        Bearer token sent in the ``Authorization`` header.
    base_backoff_s
        Delay ceiling for the first reconnect attempt.
    max_backoff_s
        Cap for the exponentially growing delay ceiling.
    liveness_window_s
        Longest tolerated silence before a connection is presumed dead.
    queue_capacity
        Bound on each subscriber's undelivered events.
    connect_timeout_s
        Timeout for establishing the HTTP connection.
    user_agent
        ``User-Agent`` header value.

    """

    endpoint: str
    credential: str = dataclasses.field(repr=False)
    base_backoff_s: float = _DEFAULT_BASE_BACKOFF_S
    max_backoff_s: float = _DEFAULT_MAX_BACKOFF_S
    liveness_window_s: float = _DEFAULT_LIVENESS_WINDOW_S
    queue_capacity: int = _DEFAULT_QUEUE_CAPACITY
    connect_timeout_s: float = _DEFAULT_CONNECT_TIMEOUT_S
    user_agent: str = _DEFAULT_USER_AGENT

    def __post_init__(self) -> None:
        """Reject configuration the session could never recover from."""
        _validate_endpoint(self.endpoint)
        if not self.credential.strip():
            raise StreamConfigError.empty_credential()
        if self.base_backoff_s <= 0:
            raise StreamConfigError.invalid_value("base_backoff_s", self.base_backoff_s)
        if self.max_backoff_s < self.base_backoff_s:
            raise StreamConfigError.invalid_value("max_backoff_s", self.max_backoff_s)
        if self.liveness_window_s <= 0:
            raise StreamConfigError.invalid_value(
                "liveness_window_s", self.liveness_window_s
            )
        if self.queue_capacity < 1:
            raise StreamConfigError.invalid_value("queue_capacity", self.queue_capacity)
        if self.connect_timeout_s <= 0:
            raise StreamConfigError.invalid_value(
                "connect_timeout_s", self.connect_timeout_s
            )

    @classmethod
    def from_env(
        cls,
        endpoint: str,
        credential: str,
        env: cabc.Mapping[str, str] | None = None,
    ) -> StreamConfig:
        """Build configuration, reading tuning overrides from the environment.

        Reads the following environment variables:

        - ``MSTDN_STREAM_BASE_BACKOFF``: First reconnect delay ceiling (seconds)
        - ``MSTDN_STREAM_MAX_BACKOFF``: Reconnect delay cap (seconds)
        - ``MSTDN_STREAM_LIVENESS``: Liveness window (seconds)
        - ``MSTDN_STREAM_QUEUE``: Per-subscriber queue capacity

        Raises
        ------
        StreamConfigError
            If any value fails to parse or is out of range.

        """
        environ = os.environ if env is None else env
        return cls(
            endpoint=endpoint,
            credential=credential,
            base_backoff_s=_parse_float(
                environ, "MSTDN_STREAM_BASE_BACKOFF", _DEFAULT_BASE_BACKOFF_S
            ),
            max_backoff_s=_parse_float(
                environ, "MSTDN_STREAM_MAX_BACKOFF", _DEFAULT_MAX_BACKOFF_S
            ),
            liveness_window_s=_parse_float(
                environ, "MSTDN_STREAM_LIVENESS", _DEFAULT_LIVENESS_WINDOW_S
            ),
            queue_capacity=_parse_int(
                environ, "MSTDN_STREAM_QUEUE", _DEFAULT_QUEUE_CAPACITY
            ),
        )


__all__ = ["TIMELINES", "StreamConfig", "stream_endpoint"]
