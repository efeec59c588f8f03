"""Unit tests for the incremental event-stream frame decoder."""

from __future__ import annotations

import pytest

from mstdn.streaming.frames import FrameDecoder, RawFrame, iter_frames

_STREAM = (
    "event: update\n"
    'data: {"id":"1","content":"café ☕"}\n'
    "\n"
    ":thump\n"
    "event: delete\r\n"
    "data: 1\r\n"
    "\r\n"
    "id: 9\n"
    "retry: 1500\n"
    "data: first\n"
    "data: second\n"
    "\n"
).encode()

_EXPECTED = [
    RawFrame("update", '{"id":"1","content":"café ☕"}'),
    RawFrame("delete", "1"),
    RawFrame("message", "first\nsecond", id="9", retry=1500),
]


def _decode_chunks(chunks: list[bytes]) -> list[RawFrame]:
    decoder = FrameDecoder()
    frames: list[RawFrame] = []
    for chunk in chunks:
        frames.extend(decoder.feed(chunk))
    return frames


class TestFrameBoundaries:
    """Frames are closed by blank lines regardless of read sizes."""

    def test_whole_stream_in_one_read(self) -> None:
        """A single chunk yields every complete frame."""
        assert _decode_chunks([_STREAM]) == _EXPECTED

    @pytest.mark.parametrize("size", [1, 2, 3, 5, 7, 16])
    def test_fixed_chunk_sizes(self, size: int) -> None:
        """Chunking at any fixed size, including mid-character, is invisible."""
        chunks = [_STREAM[i : i + size] for i in range(0, len(_STREAM), size)]
        assert _decode_chunks(chunks) == _EXPECTED

    def test_every_two_way_split(self) -> None:
        """Splitting the stream at every offset yields identical frames."""
        for offset in range(len(_STREAM) + 1):
            chunks = [_STREAM[:offset], _STREAM[offset:]]
            assert _decode_chunks(chunks) == _EXPECTED, f"split at {offset}"

    def test_blank_lines_alone_yield_nothing(self) -> None:
        """Blank lines without fields produce no frames."""
        assert _decode_chunks([b"\n\n\r\n\n"]) == []

    def test_large_read_with_trailing_partial_line(self) -> None:
        """One read carrying many frames keeps its unterminated tail buffered."""
        count = 20_000
        decoder = FrameDecoder()
        body = b"event: delete\ndata: 1\n\n" * count

        frames = decoder.feed(body + b"event: del")

        assert len(frames) == count
        assert decoder.has_partial_frame
        assert decoder.feed(b"ete\ndata: 2\n\n") == [RawFrame("delete", "2")]


class TestFieldHandling:
    """Field parsing rules."""

    def test_missing_event_defaults_to_message(self) -> None:
        """Frames without an event field take the default type."""
        assert _decode_chunks([b"data: x\n\n"]) == [RawFrame("message", "x")]

    def test_frame_without_data_is_discarded(self) -> None:
        """A frame that only names an event carries no payload."""
        assert _decode_chunks([b"event: update\n\ndata: y\n\n"]) == [
            RawFrame("message", "y")
        ]

    def test_unknown_fields_are_ignored(self) -> None:
        """Unrecognised field names do not affect the frame."""
        frames = _decode_chunks([b"foo: bar\nevent: delete\nbaz\ndata: 5\n\n"])
        assert frames == [RawFrame("delete", "5")]

    def test_only_one_leading_space_is_stripped(self) -> None:
        """Values keep whitespace beyond the single separator space."""
        assert _decode_chunks([b"data:  padded\n\n"]) == [
            RawFrame("message", " padded")
        ]

    def test_value_without_space_after_colon(self) -> None:
        """``data:value`` is accepted."""
        assert _decode_chunks([b"event:delete\ndata:3\n\n"]) == [
            RawFrame("delete", "3")
        ]

    def test_invalid_retry_is_ignored(self) -> None:
        """Non-numeric retry values leave the field unset."""
        assert _decode_chunks([b"retry: soon\ndata: z\n\n"]) == [
            RawFrame("message", "z")
        ]

    def test_comments_are_counted_not_emitted(self) -> None:
        """Comment lines only bump the keep-alive counter."""
        decoder = FrameDecoder()
        assert decoder.feed(b":thump\n:thump\n\n") == []
        assert decoder.comment_count == 2


class TestEndOfStream:
    """Behaviour when the connection ends."""

    def test_partial_frame_is_dropped(self) -> None:
        """An unterminated frame is discarded and reported."""
        decoder = FrameDecoder()
        assert decoder.feed(b"event: update\ndata: {") == []
        assert decoder.close() is True
        assert decoder.feed(b"\n\n") == []

    def test_clean_boundary_reports_no_loss(self) -> None:
        """A stream ending on a frame boundary drops nothing."""
        decoder = FrameDecoder()
        decoder.feed(b"data: a\n\n")
        assert decoder.close() is False


async def _chunks(*parts: bytes):  # noqa: ANN202
    for part in parts:
        yield part


@pytest.mark.asyncio
async def test_iter_frames_decodes_async_stream() -> None:
    """iter_frames yields frames from an async byte source."""
    frames = [
        frame
        async for frame in iter_frames(_chunks(b"event: delete\nda", b"ta: 4\n\n", b"data: x"))
    ]
    assert frames == [RawFrame("delete", "4")]
