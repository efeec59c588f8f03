"""Unit tests for streaming error construction."""

from __future__ import annotations

import pytest

from mstdn.streaming.errors import (
    SessionStateError,
    StreamAuthorizationError,
    StreamConfigError,
    StreamEndedError,
    StreamError,
    StreamHTTPError,
    StreamLivenessError,
    SubscriptionClosedError,
)


def test_authorization_error_is_an_http_error() -> None:
    """Rejections keep their status code and the HTTP error base."""
    error = StreamAuthorizationError.rejected(403)
    assert isinstance(error, StreamHTTPError)
    assert error.status_code == 403
    assert "403" in str(error)


@pytest.mark.parametrize(
    ("partial_frame", "fragment"),
    [(True, "clean frame boundary"), (False, "ended by server")],
)
def test_ended_error_describes_partial_frames(
    *, partial_frame: bool, fragment: str
) -> None:
    """The message distinguishes truncated frames from clean closes."""
    assert fragment in str(StreamEndedError.closed(partial_frame=partial_frame))


def test_liveness_error_mentions_window() -> None:
    """Stall errors name the window that elapsed."""
    assert "90.0s" in str(StreamLivenessError.silent_for(90.0))


@pytest.mark.parametrize(
    "error",
    [
        StreamConfigError.empty_credential(),
        SessionStateError.already_running(),
        SessionStateError.stopped(),
        SubscriptionClosedError.closed(),
        StreamHTTPError.http_error(502),
    ],
)
def test_errors_share_a_base(error: StreamError) -> None:
    """Every streaming failure can be caught as StreamError."""
    assert isinstance(error, StreamError)
