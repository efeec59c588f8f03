"""Long-lived stream session with liveness tracking and reconnection.

A :class:`StreamSession` owns one logical subscription to the event-stream
endpoint across many physical connections. A single background task runs
the connect/read/reconnect loop and is the only writer of the connection
state and of the frame decoder. Consumers read events through
subscriptions taken from the session.

Example:
>>> import asyncio
>>> from mstdn.streaming import StreamConfig, StreamSession
>>> async def tail() -> None:
...     config = StreamConfig(endpoint="https://mstdn.jp/api/v1/streaming/user",
...                           credential="token")
...     async with StreamSession(config) as session:
...         async for event in session.subscribe():
...             print(event)
>>> # asyncio.run(tail())

"""

from __future__ import annotations

import asyncio
import dataclasses
import enum
import random
import typing as typ

import httpx

from .backoff import ReconnectBackoff
from .errors import (
    SessionStateError,
    StreamAuthorizationError,
    StreamConfigError,
    StreamConnectError,
    StreamEndedError,
    StreamHTTPError,
    StreamLivenessError,
)
from .events import Heartbeat, UnknownEvent, decode_event
from .frames import FrameDecoder
from .observability import StreamEventLogger
from .sink import DispatchSink

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    import types

    from .config import StreamConfig
    from .frames import RawFrame
    from .sink import Subscription

_UNAUTHORIZED_STATUSES = frozenset({401, 403})
_FATAL_ERRORS: tuple[type[BaseException], ...] = (
    StreamAuthorizationError,
    StreamConfigError,
)

Sleeper = typ.Callable[[float], typ.Awaitable[object]]


class ConnectionPhase(enum.StrEnum):
    """Lifecycle phases of a stream session."""

    IDLE = "idle"
    CONNECTING = "connecting"
    STREAMING = "streaming"
    RECONNECTING = "reconnecting"
    CLOSED = "closed"


@dataclasses.dataclass(frozen=True, slots=True)
class ConnectionState:
    """Snapshot of a session's connection lifecycle.

    ``attempt`` and ``next_delay_s`` are only meaningful while
    ``phase`` is :attr:`ConnectionPhase.RECONNECTING`.
    """

    phase: ConnectionPhase
    attempt: int = 0
    next_delay_s: float | None = None

    @classmethod
    def reconnecting(cls, attempt: int, next_delay_s: float) -> ConnectionState:
        """Return a reconnecting state for ``attempt`` after ``next_delay_s``."""
        return cls(ConnectionPhase.RECONNECTING, attempt, next_delay_s)


_IDLE = ConnectionState(ConnectionPhase.IDLE)
_CONNECTING = ConnectionState(ConnectionPhase.CONNECTING)
_STREAMING = ConnectionState(ConnectionPhase.STREAMING)
_CLOSED = ConnectionState(ConnectionPhase.CLOSED)


class StreamSession:
    """Resilient consumer of the server's event stream.

    Parameters
    ----------
    config
        Endpoint, credential and tuning values.
    http_client
        Optional ``httpx.AsyncClient``. If not provided, the session creates
        one and closes it on :meth:`stop`.
    rng
        Random source for backoff jitter.
    sleep
        Awaitable used for backoff delays; must be cancellable.
    event_logger
        Structured logger for lifecycle events.

    """

    def __init__(  # noqa: PLR0913
        self,
        config: StreamConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
        rng: random.Random | None = None,
        sleep: Sleeper = asyncio.sleep,
        event_logger: StreamEventLogger | None = None,
    ) -> None:
        """Initialise an idle session."""
        self._config = config
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(config.connect_timeout_s, read=None),
            headers={"User-Agent": config.user_agent},
        )
        self._sink = DispatchSink(config.queue_capacity)
        self._backoff = ReconnectBackoff(
            base_s=config.base_backoff_s,
            max_s=config.max_backoff_s,
            rng=rng or random.Random(),
        )
        self._sleep = sleep
        self._event_logger = event_logger or StreamEventLogger()
        self._state = _IDLE
        self._task: asyncio.Task[None] | None = None
        self._stopped = False
        self._last_error: BaseException | None = None
        self._last_event_id: str | None = None
        self._last_activity: float | None = None
        self._heartbeats = 0

    @property
    def config(self) -> StreamConfig:
        """Configuration currently used for connections."""
        return self._config

    @property
    def state(self) -> ConnectionState:
        """Current connection state; safe to read at any time."""
        return self._state

    @property
    def last_error(self) -> BaseException | None:
        """Most recent connection failure, or ``None``."""
        return self._last_error

    @property
    def attempt(self) -> int:
        """Consecutive failed attempts since the last healthy connection."""
        return self._backoff.attempt

    @property
    def heartbeats_received(self) -> int:
        """Heartbeat frames observed by the liveness tracker."""
        return self._heartbeats

    @property
    def last_activity(self) -> float | None:
        """Event-loop time of the last frame or keep-alive received."""
        return self._last_activity

    @property
    def last_event_id(self) -> str | None:
        """Identifier of the last frame that carried an ``id`` field."""
        return self._last_event_id

    def subscribe(self) -> Subscription:
        """Register a consumer and return its subscription."""
        return self._sink.subscribe()

    def start(self, *, endpoint: str | None = None, credential: str | None = None) -> None:
        """Begin streaming in a background task.

        ``endpoint`` and ``credential`` override the configured values; a
        session closed by a fatal error may be started again this way.

        Raises
        ------
        SessionStateError
            If the session is running or was stopped.
        StreamConfigError
            If the overriding endpoint or credential is invalid.

        """
        if self._stopped:
            raise SessionStateError.stopped()
        if self._task is not None and not self._task.done():
            raise SessionStateError.already_running()

        if endpoint is not None or credential is not None:
            self._config = dataclasses.replace(
                self._config,
                endpoint=endpoint or self._config.endpoint,
                credential=credential or self._config.credential,
            )
        if self._sink.closed:
            self._sink = DispatchSink(self._config.queue_capacity)

        self._backoff.reset()
        self._last_error = None
        self._state = _CONNECTING
        self._task = asyncio.create_task(self._run(), name="mstdn-stream-session")

    async def stop(self) -> None:
        """Cancel streaming, release the connection and close subscribers.

        Safe to call at any time and more than once. Once it has been called
        no subscriber receives another event and :attr:`state` stays closed.
        """
        if self._stopped:
            return
        self._stopped = True
        self._state = _CLOSED
        self._sink.close()

        task = self._task
        if task is not None and not task.done():
            task.cancel()
            await asyncio.wait({task})
        if self._owns_client:
            await self._client.aclose()
        self._event_logger.log_session_closed(endpoint=self._config.endpoint)

    async def wait_closed(self) -> None:
        """Wait until the background task ends (fatal error or stop)."""
        task = self._task
        if task is not None:
            await asyncio.wait({task})

    async def __aenter__(self) -> typ.Self:
        """Start the session on context entry."""
        self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: types.TracebackType | None,
    ) -> None:
        """Stop the session on context exit."""
        await self.stop()

    def _set_state(self, state: ConnectionState) -> None:
        if self._stopped:
            return
        self._state = state

    async def _run(self) -> None:
        """Connect, read and reconnect until stopped or fatally rejected."""
        while not self._stopped:
            try:
                await self._stream_once()
            except _FATAL_ERRORS as exc:
                self._close_fatally(exc)
                return
            except Exception as exc:  # noqa: BLE001 - every other fault means reconnect
                self._last_error = exc
                self._event_logger.log_disconnected(
                    endpoint=self._config.endpoint, error=exc
                )

            if self._stopped:
                return
            attempt, ceiling, delay = self._backoff.next_delay()
            self._set_state(ConnectionState.reconnecting(attempt, delay))
            self._event_logger.log_reconnect_scheduled(
                attempt=attempt, ceiling_s=ceiling, delay_s=delay
            )
            await self._sleep(delay)
            self._set_state(_CONNECTING)

    def _close_fatally(self, exc: BaseException) -> None:
        self._last_error = exc
        if isinstance(exc, StreamAuthorizationError):
            self._event_logger.log_authorization_rejected(
                endpoint=self._config.endpoint, status_code=exc.status_code
            )
        self._set_state(_CLOSED)
        self._sink.close()
        self._event_logger.log_session_closed(endpoint=self._config.endpoint, error=exc)

    def _headers(self) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self._config.credential}",
            "Accept": "text/event-stream",
            "Cache-Control": "no-cache",
        }
        if self._last_event_id is not None:
            headers["Last-Event-ID"] = self._last_event_id
        return headers

    async def _stream_once(self) -> None:
        """Run one physical connection until it fails.

        Always raises: a clean end of stream is reported as
        :class:`StreamEndedError` so the caller reconnects.
        """
        endpoint = self._config.endpoint
        self._event_logger.log_connect_started(
            endpoint=endpoint, attempt=self._backoff.attempt
        )
        try:
            async with self._client.stream(
                "GET", endpoint, headers=self._headers()
            ) as response:
                _check_status(response)
                self._set_state(_STREAMING)
                self._event_logger.log_connected(
                    endpoint=endpoint, status_code=response.status_code
                )
                await self._read_frames(response.aiter_bytes())
        except httpx.InvalidURL as exc:
            raise StreamConfigError.invalid_endpoint(endpoint) from exc
        except httpx.UnsupportedProtocol as exc:
            raise StreamConfigError.invalid_endpoint(endpoint) from exc
        except httpx.HTTPError as exc:
            raise StreamConnectError.transport(str(exc)) from exc

    async def _read_frames(self, chunks: cabc.AsyncIterator[bytes]) -> None:
        loop = asyncio.get_running_loop()
        window = self._config.liveness_window_s
        connected_at = loop.time()
        decoder = FrameDecoder()
        try:
            async with asyncio.timeout(window) as deadline:
                async for chunk in chunks:
                    comments_before = decoder.comment_count
                    frames = decoder.feed(chunk)
                    if not frames and decoder.comment_count == comments_before:
                        continue
                    now = loop.time()
                    self._last_activity = now
                    deadline.reschedule(now + window)
                    if now - connected_at >= window:
                        # Survived a full liveness window: connection is healthy.
                        self._backoff.reset()
                    for frame in frames:
                        self._deliver(frame)
        except TimeoutError as exc:
            raise StreamLivenessError.silent_for(window) from exc
        raise StreamEndedError.closed(partial_frame=decoder.close())

    def _deliver(self, frame: RawFrame) -> None:
        if frame.id is not None:
            self._last_event_id = frame.id
        event = decode_event(frame)
        if isinstance(event, Heartbeat):
            self._heartbeats += 1
            return
        if isinstance(event, UnknownEvent):
            self._event_logger.log_unknown_frame(
                raw_type=event.raw_type, reason=event.reason
            )
        self._backoff.reset()
        if not self._stopped:
            self._sink.publish(event)


def _check_status(response: httpx.Response) -> None:
    if response.status_code in _UNAUTHORIZED_STATUSES:
        raise StreamAuthorizationError.rejected(response.status_code)
    if not response.is_success:
        raise StreamHTTPError.http_error(response.status_code)


__all__ = ["ConnectionPhase", "ConnectionState", "StreamSession"]
