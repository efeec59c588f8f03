"""Plain-text rendering of status HTML."""

from __future__ import annotations

from html.parser import HTMLParser


class _TextExtractor(HTMLParser):
    """Collect text nodes, turning ``<br>`` into newlines."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.parts: list[str] = []

    def handle_data(self, data: str) -> None:
        text = data.strip("\r\n")
        if text:
            self.parts.append(text)

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if tag == "br":
            self.parts.append("\n")

    def handle_startendtag(
        self, tag: str, attrs: list[tuple[str, str | None]]
    ) -> None:
        self.handle_starttag(tag, attrs)


def text_content(html: str) -> str:
    """Return the text of ``html`` with line breaks for ``<br>`` elements.

    The parser is lenient, so malformed markup still yields its text.

    Examples
    --------
    >>> text_content("<p>hello<br>world</p>")
    'hello\\nworld'

    """
    extractor = _TextExtractor()
    extractor.feed(html)
    extractor.close()
    return "".join(extractor.parts)


__all__ = ["text_content"]
