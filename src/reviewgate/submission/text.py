"""Plain-text projection of rich-text review content.

The review editor produces HTML. Every length and spam rule runs on the text
a reader would actually see, so markup and entities are removed first.
"""

from __future__ import annotations

import re
from html.parser import HTMLParser

# Tags whose bodies are never visible text
_INVISIBLE_TAGS = frozenset({"script", "style", "template"})

_SENTENCE_END = re.compile(r"[.!?]")


class _TextExtractor(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self._chunks: list[str] = []
        self._skip_depth = 0

    def handle_starttag(self, tag: str, attrs) -> None:
        if tag in _INVISIBLE_TAGS:
            self._skip_depth += 1

    def handle_endtag(self, tag: str) -> None:
        if tag in _INVISIBLE_TAGS and self._skip_depth:
            self._skip_depth -= 1

    def handle_data(self, data: str) -> None:
        if not self._skip_depth:
            self._chunks.append(data)

    def text(self) -> str:
        return "".join(self._chunks)


def to_plain_text(content: str | None) -> str:
    """Strip markup from rich-text content and unescape entities.

    Whitespace is preserved as-is; callers decide whether to trim.
    Plain strings without markup come back unchanged.
    """
    if not content:
        return ""
    if "<" not in content and "&" not in content:
        return content
    parser = _TextExtractor()
    parser.feed(content)
    parser.close()
    return parser.text()


def first_sentence(text: str) -> str:
    """Return the text up to the first sentence terminator, trimmed."""
    return _SENTENCE_END.split(text, maxsplit=1)[0].strip()
