"""Unit tests for status HTML to text conversion."""

from __future__ import annotations

import pytest

from mstdn.text import text_content


@pytest.mark.parametrize(
    ("html", "expected"),
    [
        ("<p>hello world</p>", "hello world"),
        ("<p>one<br>two<br />three</p>", "one\ntwo\nthree"),
        ("<p>a &amp; b &lt;3</p>", "a & b <3"),
        ("<p>line\r\n</p><p>next</p>", "linenext"),
        ('<p><a href="https://example.test/@x">@<span>x</span></a> hi</p>', "@x hi"),
        ("plain text", "plain text"),
        ("", ""),
    ],
)
def test_text_content(html: str, expected: str) -> None:
    """Markup is stripped and <br> becomes a newline."""
    assert text_content(html) == expected


def test_unclosed_markup_keeps_text() -> None:
    """Malformed HTML still yields its text."""
    assert text_content("<p>open <b>bold") == "open bold"
