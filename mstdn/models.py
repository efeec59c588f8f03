"""Wire models for the Mastodon REST and streaming APIs.

The service serialises identifiers as JSON strings; every field other than
``id`` carries a default so partial payloads still decode.
"""

from __future__ import annotations

import datetime as dt

import msgspec


class Account(msgspec.Struct, kw_only=True):
    """Account as published by the server.

    Attributes
    ----------
    id : str
        Server-local account identifier.
    username : str
        Local part of the account handle.
    acct : str
        ``username`` for local accounts, ``username@domain`` for remote ones.
    display_name : str
        Profile display name, may be empty.

    """

    id: str
    username: str = ""
    acct: str = ""
    display_name: str = ""
    locked: bool = False
    created_at: dt.datetime | None = None
    followers_count: int = 0
    following_count: int = 0
    statuses_count: int = 0
    note: str = ""
    url: str = ""
    avatar: str = ""
    avatar_static: str = ""
    header: str = ""
    header_static: str = ""


class Attachment(msgspec.Struct, kw_only=True):
    """Media attached to a status."""

    id: str
    type: str = "unknown"
    url: str = ""
    remote_url: str | None = None
    preview_url: str = ""
    text_url: str | None = None
    description: str | None = None


class Mention(msgspec.Struct, kw_only=True):
    """Account mentioned in a status."""

    id: str
    url: str = ""
    username: str = ""
    acct: str = ""


class Tag(msgspec.Struct, kw_only=True):
    """Hashtag used in a status."""

    name: str
    url: str = ""


class Application(msgspec.Struct, kw_only=True):
    """Application that published a status."""

    name: str
    website: str | None = None


class Status(msgspec.Struct, kw_only=True):
    """Status (toot) as delivered by timelines and the event stream.

    Attributes
    ----------
    id : str
        Server-local status identifier.
    account : Account | None
        Author of the status.
    reblog : Status | None
        Original status when this status is a boost.
    content : str
        HTML body of the status.

    """

    id: str
    uri: str = ""
    url: str | None = None
    account: Account | None = None
    in_reply_to_id: str | None = None
    in_reply_to_account_id: str | None = None
    reblog: Status | None = None
    content: str = ""
    created_at: dt.datetime | None = None
    reblogs_count: int = 0
    favourites_count: int = 0
    reblogged: bool | None = None
    favourited: bool | None = None
    sensitive: bool = False
    spoiler_text: str = ""
    visibility: str = "public"
    media_attachments: list[Attachment] = msgspec.field(default_factory=list)
    mentions: list[Mention] = msgspec.field(default_factory=list)
    tags: list[Tag] = msgspec.field(default_factory=list)
    application: Application | None = None


class Notification(msgspec.Struct, kw_only=True):
    """Mention, follow, favourite or reblog alert."""

    id: str
    type: str = ""
    created_at: dt.datetime | None = None
    account: Account | None = None
    status: Status | None = None


def decode_status(payload: str | bytes) -> Status:
    """Decode a JSON status object.

    Raises
    ------
    msgspec.DecodeError
        If the payload is not valid JSON or does not match the schema.

    """
    return msgspec.json.decode(payload, type=Status)


def decode_notification(payload: str | bytes) -> Notification:
    """Decode a JSON notification object."""
    return msgspec.json.decode(payload, type=Notification)


__all__ = [
    "Account",
    "Application",
    "Attachment",
    "Mention",
    "Notification",
    "Status",
    "Tag",
    "decode_notification",
    "decode_status",
]
