"""Typed domain events decoded from raw stream frames.

:func:`decode_event` is total: every :class:`RawFrame` maps to exactly one
event and malformed input becomes :class:`UnknownEvent` instead of raising.
"""

from __future__ import annotations

import dataclasses
import typing as typ

import msgspec

from mstdn.models import Notification, Status, decode_notification, decode_status

from .frames import DEFAULT_EVENT_TYPE

if typ.TYPE_CHECKING:
    from .frames import RawFrame

_HEARTBEAT_PAYLOADS = frozenset({"", "thump", "heartbeat", "ping", "keepalive"})
# Deeply nested reblog chains make the decoder raise RecursionError.
_PAYLOAD_ERRORS: tuple[type[Exception], ...] = (msgspec.DecodeError, RecursionError)


@dataclasses.dataclass(frozen=True, slots=True)
class StatusUpdate:
    """A status was published or boosted onto the timeline."""

    status: Status


@dataclasses.dataclass(frozen=True, slots=True)
class NotificationEvent:
    """The account received a mention, follow, favourite or reblog."""

    notification: Notification


@dataclasses.dataclass(frozen=True, slots=True)
class Deletion:
    """A status was deleted."""

    status_id: str


@dataclasses.dataclass(frozen=True, slots=True)
class Heartbeat:
    """Keep-alive signal; used for liveness only, never delivered."""


@dataclasses.dataclass(frozen=True, slots=True)
class UnknownEvent:
    """Frame whose type is unrecognised or whose payload failed to decode."""

    raw_type: str
    raw_payload: str
    reason: str = dataclasses.field(default="unrecognised event type", compare=False)


DomainEvent = StatusUpdate | NotificationEvent | Deletion | Heartbeat | UnknownEvent


def _decode_update(frame: RawFrame) -> DomainEvent:
    try:
        return StatusUpdate(decode_status(frame.data))
    except _PAYLOAD_ERRORS as exc:
        return UnknownEvent(frame.event_type, frame.data, reason=str(exc))


def _decode_notification(frame: RawFrame) -> DomainEvent:
    try:
        return NotificationEvent(decode_notification(frame.data))
    except _PAYLOAD_ERRORS as exc:
        return UnknownEvent(frame.event_type, frame.data, reason=str(exc))


def _decode_delete(frame: RawFrame) -> DomainEvent:
    status_id = frame.data.strip()
    if not status_id:
        return UnknownEvent(frame.event_type, frame.data, reason="empty status id")
    return Deletion(status_id)


def _decode_message(frame: RawFrame) -> DomainEvent:
    if frame.data.strip().lower() in _HEARTBEAT_PAYLOADS:
        return Heartbeat()
    return UnknownEvent(frame.event_type, frame.data, reason="unexpected message")


_DECODERS: dict[str, typ.Callable[[RawFrame], DomainEvent]] = {
    "update": _decode_update,
    "notification": _decode_notification,
    "delete": _decode_delete,
    DEFAULT_EVENT_TYPE: _decode_message,
}


def decode_event(frame: RawFrame) -> DomainEvent:
    """Map ``frame`` to exactly one domain event without raising.

    Payloads spanning several lines are never valid on this stream and decode
    to :class:`UnknownEvent`.
    """
    if "\n" in frame.data:
        return UnknownEvent(frame.event_type, frame.data, reason="multi-line payload")

    decoder = _DECODERS.get(frame.event_type)
    if decoder is None:
        return UnknownEvent(frame.event_type, frame.data)
    return decoder(frame)


__all__ = [
    "Deletion",
    "DomainEvent",
    "Heartbeat",
    "NotificationEvent",
    "StatusUpdate",
    "UnknownEvent",
    "decode_event",
]
