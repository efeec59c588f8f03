"""Mastodon command-line client built around a resilient event-stream core."""

from __future__ import annotations

from .streaming import (
    ConnectionPhase,
    ConnectionState,
    DispatchSink,
    StreamConfig,
    StreamSession,
    Subscription,
)

__all__ = [
    "ConnectionPhase",
    "ConnectionState",
    "DispatchSink",
    "StreamConfig",
    "StreamSession",
    "Subscription",
]
