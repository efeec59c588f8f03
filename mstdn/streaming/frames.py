"""Incremental decoder for the line-oriented event-stream protocol.

Bytes arrive in arbitrary chunks. :class:`FrameDecoder` buffers incomplete
lines between reads and emits a :class:`RawFrame` each time a blank line
closes a frame that carried at least one ``data`` field. Splitting the same
bytes at different boundaries always yields the same frames.

Example:
>>> decoder = FrameDecoder()
>>> decoder.feed(b"event: delete\\nda")
[]
>>> decoder.feed(b"ta: 42\\n\\n")
[RawFrame(event_type='delete', data='42', id=None, retry=None)]

"""

from __future__ import annotations

import codecs
import dataclasses
import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc

DEFAULT_EVENT_TYPE = "message"


@dataclasses.dataclass(frozen=True, slots=True)
class RawFrame:
    """One protocol unit as received, before typed decoding."""

    event_type: str
    data: str
    id: str | None = None
    retry: int | None = None


@dataclasses.dataclass(slots=True)
class _PendingFrame:
    """Fields accumulated for the frame under construction."""

    event_type: str | None = None
    data_lines: list[str] = dataclasses.field(default_factory=list)
    id: str | None = None
    retry: int | None = None
    touched: bool = False

    def build(self) -> RawFrame | None:
        if not self.data_lines:
            return None
        return RawFrame(
            event_type=self.event_type or DEFAULT_EVENT_TYPE,
            data="\n".join(self.data_lines),
            id=self.id,
            retry=self.retry,
        )


def _split_field(line: str) -> tuple[str, str]:
    """Split ``field: value``; a single space after the colon is dropped."""
    name, sep, value = line.partition(":")
    if not sep:
        return (line, "")
    if value.startswith(" "):
        value = value[1:]
    return (name, value)


class FrameDecoder:
    """State machine turning raw byte chunks into :class:`RawFrame` objects.

    One decoder serves exactly one physical connection; the session discards
    it on disconnect so no partial state leaks into the next connection.

    Attributes
    ----------
    comment_count : int
        Number of comment lines seen. The server sends its keep-alives as
        comments, so the session treats a change here as liveness activity.

    """

    def __init__(self) -> None:
        """Initialise an empty decoder."""
        self._text = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._pending = _PendingFrame()
        self.comment_count = 0

    @property
    def has_partial_frame(self) -> bool:
        """Return True when buffered input has not yet formed a frame."""
        return bool(self._buffer) or self._pending.touched

    def feed(self, chunk: bytes) -> list[RawFrame]:
        """Consume ``chunk`` and return every frame it completes."""
        *lines, self._buffer = (self._buffer + self._text.decode(chunk)).split("\n")
        frames: list[RawFrame] = []
        for line in lines:
            frame = self._process_line(line.removesuffix("\r"))
            if frame is not None:
                frames.append(frame)
        return frames

    def close(self) -> bool:
        """Signal end of stream and discard any incomplete frame.

        Returns
        -------
        bool
            True when a partially received frame was dropped.

        """
        self._buffer += self._text.decode(b"", final=True)
        dropped = self.has_partial_frame
        self._buffer = ""
        self._pending = _PendingFrame()
        return dropped

    def _process_line(self, line: str) -> RawFrame | None:
        if not line:
            frame = self._pending.build()
            self._pending = _PendingFrame()
            return frame

        if line.startswith(":"):
            self.comment_count += 1
            return None

        name, value = _split_field(line)
        pending = self._pending
        if name == "event":
            pending.event_type = value
        elif name == "data":
            pending.data_lines.append(value)
        elif name == "id":
            pending.id = value
        elif name == "retry":
            if value.isdigit():
                pending.retry = int(value)
        else:
            # Unrecognised fields are ignored.
            return None
        pending.touched = True
        return None


async def iter_frames(
    chunks: cabc.AsyncIterable[bytes],
    decoder: FrameDecoder | None = None,
) -> cabc.AsyncIterator[RawFrame]:
    """Yield frames decoded from an async byte stream.

    A frame left incomplete when the stream ends is dropped.
    """
    frame_decoder = decoder or FrameDecoder()
    async for chunk in chunks:
        for frame in frame_decoder.feed(chunk):
            yield frame
    frame_decoder.close()


__all__ = ["DEFAULT_EVENT_TYPE", "FrameDecoder", "RawFrame", "iter_frames"]
