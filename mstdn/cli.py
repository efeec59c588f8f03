"""Command-line entry point: tail a timeline from the event stream.

Run ``mstdn stream --help`` for options. Settings are read from
``settings.json`` (see :mod:`mstdn.config`) and ``MSTDN_*`` environment
variables; ``MSTDN_LOG_LEVEL`` controls diagnostic output on stderr.
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
import typing as typ

import msgspec

from mstdn.config import load_client_settings
from mstdn.errors import ConfigError
from mstdn.logging import configure_logging, get_logger, log_warning
from mstdn.streaming import (
    TIMELINES,
    Deletion,
    NotificationEvent,
    StatusUpdate,
    StreamConfig,
    StreamConfigError,
    StreamSession,
    UnknownEvent,
    stream_endpoint,
)
from mstdn.text import text_content

if typ.TYPE_CHECKING:
    import httpx

    from mstdn.models import Status
    from mstdn.streaming import DomainEvent

logger = get_logger(__name__)

Renderer = typ.Callable[["DomainEvent"], str | None]


class _SimpleStatus(msgspec.Struct):
    """Flat status shape printed by ``--simplejson``."""

    id: str
    username: str
    acct: str
    display_name: str
    content: str


def _encode(value: object) -> str:
    return msgspec.json.encode(value).decode("utf-8")


def render_json(event: DomainEvent) -> str | None:
    """Render an event as the JSON payload received from the server."""
    match event:
        case StatusUpdate(status=status):
            return _encode(status)
        case NotificationEvent(notification=notification):
            return _encode(notification)
        case Deletion(status_id=status_id):
            return _encode({"event": "delete", "status_id": status_id})
        case UnknownEvent(raw_type=raw_type, raw_payload=raw_payload):
            return _encode({"event": raw_type, "data": raw_payload})
    return None


def _simple_status(status: Status) -> _SimpleStatus:
    account = status.account
    return _SimpleStatus(
        id=status.id,
        username=account.username if account else "",
        acct=account.acct if account else "",
        display_name=account.display_name if account else "",
        content=text_content(status.content),
    )


def render_simple_json(event: DomainEvent) -> str | None:
    """Render statuses as flat JSON objects and other events as ``--json``."""
    if isinstance(event, StatusUpdate):
        return _encode(_simple_status(event.status))
    return render_json(event)


def render_text(event: DomainEvent) -> str | None:
    """Render an event for reading in a terminal."""
    match event:
        case StatusUpdate(status=status):
            account = status.account
            header = f"@{account.acct} {account.display_name}" if account else "@?"
            return f"{header}\n{text_content(status.content)}"
        case NotificationEvent(notification=notification):
            who = f"@{notification.account.acct}" if notification.account else "@?"
            return f"{notification.type}: {who}"
        case Deletion(status_id=status_id):
            return f"deleted: {status_id}"
    return None


async def run_stream(
    config: StreamConfig,
    render: Renderer,
    *,
    out: typ.TextIO,
    http_client: httpx.AsyncClient | None = None,
) -> int:
    """Print events until the session closes; return the exit code."""
    session = StreamSession(config, http_client=http_client)
    subscription = session.subscribe()
    session.start()
    try:
        async for event in subscription:
            line = render(event)
            if line is not None:
                print(line, file=out, flush=True)
    finally:
        error = session.last_error
        await session.stop()

    if error is not None:
        print(f"mstdn: {error}", file=sys.stderr)
        return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser for the ``mstdn`` command."""
    parser = argparse.ArgumentParser(prog="mstdn", description="mastodon client")
    subcommands = parser.add_subparsers(dest="command", required=True)

    stream = subcommands.add_parser("stream", help="stream statuses")
    stream.add_argument(
        "--timeline",
        choices=TIMELINES,
        default="user",
        help="Timeline to stream (default: user)",
    )
    stream.add_argument("--tag", default=None, help="Hashtag for hashtag timelines")
    output = stream.add_mutually_exclusive_group()
    output.add_argument("--json", action="store_true", help="output JSON")
    output.add_argument(
        "--simplejson", action="store_true", help="output simple JSON"
    )
    return parser


def _select_renderer(args: argparse.Namespace) -> Renderer:
    if args.json:
        return render_json
    if args.simplejson:
        return render_simple_json
    return render_text


def main(argv: list[str] | None = None) -> int:
    """Run the command line.

    Parameters
    ----------
    argv : list[str] | None, optional
        Command-line arguments. ``None`` defaults to ``sys.argv``.

    Returns
    -------
    int
        Exit code: 0 on success or interrupt, 1 on configuration or fatal
        stream errors.

    """
    args = build_parser().parse_args(argv)

    raw_level = os.environ.get("MSTDN_LOG_LEVEL")
    normalized_level, invalid_level = configure_logging(raw_level)
    if invalid_level and raw_level:
        log_warning(
            logger,
            "Invalid MSTDN_LOG_LEVEL %r, falling back to %s",
            raw_level,
            normalized_level,
        )

    try:
        settings = load_client_settings()
        config = StreamConfig.from_env(
            stream_endpoint(settings.server, args.timeline, args.tag),
            settings.require_access_token(),
        )
    except (ConfigError, StreamConfigError) as exc:
        print(f"mstdn: {exc}", file=sys.stderr)
        return 1

    try:
        return asyncio.run(
            run_stream(config, _select_renderer(args), out=sys.stdout)
        )
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    raise SystemExit(main())
