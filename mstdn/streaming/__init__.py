"""Streaming event client: frame decoding, typed events, fan-out and sessions."""

from __future__ import annotations

from .backoff import ReconnectBackoff, backoff_ceiling
from .config import TIMELINES, StreamConfig, stream_endpoint
from .errors import (
    SessionStateError,
    StreamAuthorizationError,
    StreamConfigError,
    StreamConnectError,
    StreamEndedError,
    StreamError,
    StreamHTTPError,
    StreamLivenessError,
    SubscriptionClosedError,
)
from .events import (
    Deletion,
    DomainEvent,
    Heartbeat,
    NotificationEvent,
    StatusUpdate,
    UnknownEvent,
    decode_event,
)
from .frames import FrameDecoder, RawFrame, iter_frames
from .observability import (
    ErrorCategory,
    StreamEventLogger,
    StreamEventType,
    categorize_error,
)
from .session import ConnectionPhase, ConnectionState, StreamSession
from .sink import DispatchSink, Subscription

__all__ = [
    "TIMELINES",
    "ConnectionPhase",
    "ConnectionState",
    "Deletion",
    "DispatchSink",
    "DomainEvent",
    "ErrorCategory",
    "FrameDecoder",
    "Heartbeat",
    "NotificationEvent",
    "RawFrame",
    "ReconnectBackoff",
    "SessionStateError",
    "StatusUpdate",
    "StreamAuthorizationError",
    "StreamConfig",
    "StreamConfigError",
    "StreamConnectError",
    "StreamEndedError",
    "StreamError",
    "StreamEventLogger",
    "StreamEventType",
    "StreamHTTPError",
    "StreamLivenessError",
    "StreamSession",
    "Subscription",
    "SubscriptionClosedError",
    "UnknownEvent",
    "backoff_ceiling",
    "categorize_error",
    "decode_event",
    "iter_frames",
    "stream_endpoint",
]
