"""Scripted ``httpx.MockTransport`` backends for stream session tests."""

from __future__ import annotations

import asyncio
import dataclasses
import typing as typ

import httpx

if typ.TYPE_CHECKING:
    import collections.abc as cabc


@dataclasses.dataclass(frozen=True, slots=True)
class StreamReply:
    """One scripted answer to a connection attempt.

    ``chunks`` are streamed in order; with ``hang`` set the body then stays
    open without sending anything. ``error`` makes the transport raise
    instead of answering.
    """

    status_code: int = 200
    chunks: tuple[bytes, ...] = ()
    hang: bool = False
    error: Exception | None = None


async def _body(reply: StreamReply) -> cabc.AsyncIterator[bytes]:
    for chunk in reply.chunks:
        yield chunk
        await asyncio.sleep(0)
    if reply.hang:
        await asyncio.Event().wait()


class ScriptedStream:
    """Serve replies to successive connections; the last reply repeats."""

    def __init__(self, replies: list[StreamReply]) -> None:
        self.replies = replies
        self.requests: list[httpx.Request] = []

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        reply = self.replies[min(len(self.requests), len(self.replies)) - 1]
        # Yield so a failing reconnect loop never starves other tasks.
        await asyncio.sleep(0)
        if reply.error is not None:
            raise reply.error
        return httpx.Response(
            status_code=reply.status_code,
            headers={"Content-Type": "text/event-stream"},
            content=_body(reply),
        )

    def client(self) -> httpx.AsyncClient:
        """Return an async client routed through this script."""
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


def ok(*chunks: bytes, hang: bool = True) -> StreamReply:
    """Return a 200 reply streaming ``chunks``."""
    return StreamReply(chunks=chunks, hang=hang)


def status(code: int) -> StreamReply:
    """Return a reply with an empty body and ``code``."""
    return StreamReply(status_code=code)


async def wait_until(
    predicate: typ.Callable[[], bool], *, timeout: float = 2.0
) -> None:
    """Poll ``predicate`` on the event loop until it holds or time runs out."""
    async with asyncio.timeout(timeout):
        while not predicate():
            await asyncio.sleep(0.001)
