"""
Codec for the ``{key: "value", ...}`` metadata suffix written by the editor.

    - [ ] Write docs {priority: "high", estimate: 3, tags: ["api", "docs"]}

Grammar (a restricted JSON5-like subset, parsed by hand; nothing is ever
evaluated):

    object  := "{" [ pair ( "," pair )* [ "," ] ] "}"
    pair    := key ":" value
    key     := identifier | string
    value   := string | number | "true" | "false" | "null" | "undefined" | array
    array   := "[" [ value ( "," value )* [ "," ] ] "]"
    string  := '"' ... '"' | "'" ... "'"     (backslash escapes the next char)

Rendering mirrors what the editor has always produced: strings in double
quotes with no escaping, arrays of quoted strings, everything else via str().
"""

import re
from typing import Any, Dict, List, Mapping

_RE_IDENTIFIER = re.compile(r"[A-Za-z_$][\w$]*")
_RE_NUMBER = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

_KEYWORDS = {
    "true": True,
    "false": False,
    "null": None,
    "undefined": None,
}


class MetadataLiteralError(ValueError):
    """Raised when a metadata suffix is not a valid object literal."""

    def __init__(self, message: str, text: str, pos: int) -> None:
        super().__init__(f"{message} at position {pos} in {text!r}")
        self.text = text
        self.pos = pos


class _Parser:
    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def error(self, message: str) -> MetadataLiteralError:
        return MetadataLiteralError(message, self.text, self.pos)

    def skip_ws(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos].isspace():
            self.pos += 1

    def peek(self) -> str:
        self.skip_ws()
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def expect(self, char: str) -> None:
        if self.peek() != char:
            raise self.error(f"expected {char!r}")
        self.pos += 1

    def parse_object(self) -> Dict[str, Any]:
        self.expect("{")
        result: Dict[str, Any] = {}
        while self.peek() != "}":
            key = self.parse_key()
            self.expect(":")
            result[key] = self.parse_value()
            if self.peek() == ",":
                self.pos += 1
            elif self.peek() != "}":
                raise self.error("expected ',' or '}'")
        self.pos += 1
        return result

    def parse_key(self) -> str:
        char = self.peek()
        if char in ("'", '"'):
            return self.parse_string()
        m = _RE_IDENTIFIER.match(self.text, self.pos)
        if not m:
            raise self.error("expected a key")
        self.pos = m.end()
        return m.group()

    def parse_value(self) -> Any:
        char = self.peek()
        if char in ("'", '"'):
            return self.parse_string()
        if char == "[":
            return self.parse_array()
        m = _RE_NUMBER.match(self.text, self.pos)
        if m:
            self.pos = m.end()
            raw = m.group()
            if any(c in raw for c in ".eE"):
                return float(raw)
            return int(raw)
        m = _RE_IDENTIFIER.match(self.text, self.pos)
        if m and m.group() in _KEYWORDS:
            self.pos = m.end()
            return _KEYWORDS[m.group()]
        raise self.error("expected a value")

    def parse_array(self) -> List[Any]:
        self.expect("[")
        items: List[Any] = []
        while self.peek() != "]":
            items.append(self.parse_value())
            if self.peek() == ",":
                self.pos += 1
            elif self.peek() != "]":
                raise self.error("expected ',' or ']'")
        self.pos += 1
        return items

    def parse_string(self) -> str:
        quote = self.text[self.pos]
        self.pos += 1
        chars: List[str] = []
        while self.pos < len(self.text):
            char = self.text[self.pos]
            if char == "\\" and self.pos + 1 < len(self.text):
                chars.append(self.text[self.pos + 1])
                self.pos += 2
                continue
            if char == quote:
                self.pos += 1
                return "".join(chars)
            chars.append(char)
            self.pos += 1
        raise self.error("unterminated string")


def parse_metadata_literal(text: str) -> Dict[str, Any]:
    """
    Parse a ``{...}`` suffix into a dict.

    Raises:
        MetadataLiteralError: on any syntax error or trailing garbage
    """
    parser = _Parser(text)
    result = parser.parse_object()
    parser.skip_ws()
    if parser.pos != len(text):
        raise parser.error("unexpected trailing text")
    return result


def _render_value(value: Any) -> str:
    if isinstance(value, str):
        return f'"{value}"'
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(f'"{v}"' for v in value) + "]"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def render_metadata_literal(metadata: Mapping[str, Any]) -> str:
    """
    Render metadata as ``{key: value, ...}``, skipping None values.

    Returns an empty string when nothing is left to render.
    """
    entries = [
        f"{key}: {_render_value(value)}"
        for key, value in metadata.items()
        if value is not None
    ]
    if not entries:
        return ""
    return "{" + ", ".join(entries) + "}"
