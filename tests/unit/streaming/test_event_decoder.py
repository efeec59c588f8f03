"""Unit tests for mapping raw frames onto typed domain events."""

from __future__ import annotations

import datetime as dt

import msgspec
import pytest

from mstdn.models import Account, Notification, Status
from mstdn.streaming.events import (
    Deletion,
    Heartbeat,
    NotificationEvent,
    StatusUpdate,
    UnknownEvent,
    decode_event,
)
from mstdn.streaming.frames import FrameDecoder, RawFrame

_ACCOUNT = Account(id="7", username="gargron", acct="Gargron", display_name="Eugen")
_STATUS = Status(
    id="103270115826048975",
    account=_ACCOUNT,
    content="<p>hello</p>",
    created_at=dt.datetime(2019, 12, 8, 3, 48, 33, tzinfo=dt.UTC),
    favourites_count=3,
)
_NOTIFICATION = Notification(
    id="34975861", type="mention", account=_ACCOUNT, status=_STATUS
)


def _wire(event_type: str, payload: str) -> bytes:
    return f"event: {event_type}\ndata: {payload}\n\n".encode()


def _decode_wire(raw: bytes) -> list[object]:
    return [decode_event(frame) for frame in FrameDecoder().feed(raw)]


class TestRecognisedEvents:
    """Events the stream defines decode to their typed variants."""

    def test_update_round_trip(self) -> None:
        """An encoded status decodes back to an equal status."""
        payload = msgspec.json.encode(_STATUS).decode()
        assert _decode_wire(_wire("update", payload)) == [StatusUpdate(_STATUS)]

    def test_notification_round_trip(self) -> None:
        """An encoded notification decodes back to an equal notification."""
        payload = msgspec.json.encode(_NOTIFICATION).decode()
        assert _decode_wire(_wire("notification", payload)) == [
            NotificationEvent(_NOTIFICATION)
        ]

    def test_delete_round_trip(self) -> None:
        """A bare identifier decodes to a deletion."""
        assert _decode_wire(_wire("delete", "103270115826048975")) == [
            Deletion("103270115826048975")
        ]

    def test_minimal_status_payload(self) -> None:
        """A status with only an id decodes with defaults."""
        event = decode_event(RawFrame("update", '{"id":"1"}'))
        assert event == StatusUpdate(Status(id="1"))

    def test_unknown_json_fields_are_tolerated(self) -> None:
        """Extra fields from newer servers do not break decoding."""
        event = decode_event(RawFrame("update", '{"id":"1","filtered":[]}'))
        assert isinstance(event, StatusUpdate)

    @pytest.mark.parametrize("payload", ["", "thump", "HEARTBEAT", " ping "])
    def test_heartbeat_shaped_messages(self, payload: str) -> None:
        """Default-type frames with keep-alive payloads are heartbeats."""
        assert decode_event(RawFrame("message", payload)) == Heartbeat()


class TestUnknownEvents:
    """Everything else is preserved as an unknown event."""

    def test_unrecognised_type(self) -> None:
        """Unknown event types keep their type and payload."""
        event = decode_event(RawFrame("filters_changed", "{}"))
        assert event == UnknownEvent("filters_changed", "{}")

    @pytest.mark.parametrize(
        ("event_type", "payload"),
        [
            ("update", "{not json"),
            ("update", "[]"),
            ("update", '{"content":"no id"}'),
            ("notification", '{"id": 5}'),
        ],
    )
    def test_malformed_payload(self, event_type: str, payload: str) -> None:
        """Undecodable payloads become unknown events carrying the raw text."""
        event = decode_event(RawFrame(event_type, payload))
        assert isinstance(event, UnknownEvent)
        assert event.raw_type == event_type
        assert event.raw_payload == payload
        assert event.reason

    @pytest.mark.parametrize(
        ("event_type", "prefix", "suffix"),
        [
            ("update", "", ""),
            ("notification", '{"id":"9","type":"mention","status":', "}"),
        ],
    )
    def test_deeply_nested_reblogs(
        self, event_type: str, prefix: str, suffix: str
    ) -> None:
        """Reblog chains too deep to decode become unknown events."""
        depth = 5000
        chain = '{"id":"1","reblog":' * depth + '{"id":"x"}' + "}" * depth
        payload = prefix + chain + suffix

        event = decode_event(RawFrame(event_type, payload))

        assert isinstance(event, UnknownEvent)
        assert event.raw_type == event_type
        assert event.raw_payload == payload

    def test_nested_reblog_does_not_swallow_following_frames(self) -> None:
        """A too-deep frame is followed by the frames decoded after it."""
        depth = 5000
        chain = '{"id":"1","reblog":' * depth + '{"id":"x"}' + "}" * depth
        raw = _wire("update", chain) + _wire("delete", "42")

        events = _decode_wire(raw)

        assert isinstance(events[0], UnknownEvent)
        assert events[1] == Deletion("42")

    def test_multi_line_payload(self) -> None:
        """Payloads assembled from several data lines are never valid."""
        event = decode_event(RawFrame("update", '{"id":\n"1"}'))
        assert isinstance(event, UnknownEvent)
        assert event.reason == "multi-line payload"

    def test_empty_delete(self) -> None:
        """A deletion without an identifier is unknown."""
        assert isinstance(decode_event(RawFrame("delete", " ")), UnknownEvent)

    def test_message_with_payload(self) -> None:
        """Default-type frames with business data are not guessed at."""
        event = decode_event(RawFrame("message", '{"id":"1"}'))
        assert event == UnknownEvent("message", '{"id":"1"}')
