"""Markup stripping for user-supplied text fields."""
from html.parser import HTMLParser

# Elements whose content is dropped along with the tags.
_SKIPPED_ELEMENTS = {"script", "style"}


class _TextExtractor(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self._parts = []
        self._skip_depth = 0

    def handle_starttag(self, tag, attrs):
        if tag in _SKIPPED_ELEMENTS:
            self._skip_depth += 1

    def handle_endtag(self, tag):
        if tag in _SKIPPED_ELEMENTS and self._skip_depth:
            self._skip_depth -= 1

    def handle_data(self, data):
        if not self._skip_depth:
            self._parts.append(data)

    def text(self) -> str:
        return "".join(self._parts)


def _strip_once(value: str) -> str:
    parser = _TextExtractor()
    parser.feed(value)
    parser.close()
    return parser.text()


def sanitize(value: str) -> str:
    """Strip all markup from *value* and trim surrounding whitespace.

    Character references are decoded, so ``"a &amp; b"`` becomes ``"a & b"``.
    Decoding can expose new markup (``"&lt;b&gt;"`` decodes to ``"<b>"``), so
    stripping repeats until the text no longer changes. Every pass that
    changes the text makes it shorter, and ``sanitize(sanitize(x))`` always
    equals ``sanitize(x)``.
    """
    current = value.strip()
    while True:
        stripped = _strip_once(current).strip()
        if stripped == current:
            return current
        current = stripped
