"""extract.py – Classify a single initializer expression as a flag value.

Given a tree-sitter expression node, returns the literal value and the type
it implies, or ``None`` for any shape that is not a plain literal (identifier
references, template strings, arrays, calls, BigInts, ...).  Unsupported
shapes are never an error: the owning property is simply dropped.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from tree_sitter import Node

from localflag.models import FlagType, FlagValue

_RADIX_PREFIXES = {"0x": 16, "0o": 8, "0b": 2}

_SIMPLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
}

_LINE_CONTINUATIONS = ("\r\n", "\n", "\r", "\u2028", "\u2029")

_LEGACY_OCTAL_RE = re.compile(r"[0-7]{1,3}")


@dataclass(frozen=True)
class ExtractedValue:
    value: FlagValue
    type: FlagType


def node_text(node: Node, source: bytes) -> str:
    """Return the source text spanned by *node*."""
    return source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def extract_value(node: Node, source: bytes) -> ExtractedValue | None:
    """Return the literal value of *node*, or ``None`` if the shape is unsupported."""
    kind = node.type
    if kind == "true":
        return ExtractedValue(True, FlagType.BOOLEAN)
    if kind == "false":
        return ExtractedValue(False, FlagType.BOOLEAN)
    if kind == "string":
        return ExtractedValue(string_literal_text(node, source), FlagType.STRING)
    if kind == "number":
        number = parse_number(node_text(node, source))
        if number is None:
            return None
        return ExtractedValue(number, FlagType.NUMBER)
    if kind == "unary_expression":
        operator = node.child_by_field_name("operator")
        argument = node.child_by_field_name("argument")
        if operator is None or argument is None or operator.type != "-":
            return None
        if argument.type != "number":
            return None
        number = parse_number(node_text(argument, source))
        if number is None:
            return None
        return ExtractedValue(-number, FlagType.NUMBER)
    return None


def string_literal_text(node: Node, source: bytes) -> str:
    """Decode a ``string`` node into the text it denotes."""
    parts: list[str] = []
    for child in node.children:
        if child.type == "string_fragment":
            parts.append(node_text(child, source))
        elif child.type == "escape_sequence":
            parts.append(decode_escape(node_text(child, source)))
    text = "".join(parts)
    if any("\ud800" <= ch <= "\udfff" for ch in text):
        # \uXXXX escapes outside the BMP arrive as two lone surrogates.
        text = text.encode("utf-16", "surrogatepass").decode("utf-16", errors="replace")
    return text


def decode_escape(sequence: str) -> str:
    """Decode one backslash escape sequence such as ``\\n`` or ``\\u{1F600}``."""
    body = sequence[1:]
    if not body:
        return ""
    if body in _LINE_CONTINUATIONS:
        return ""
    if body in _SIMPLE_ESCAPES:
        return _SIMPLE_ESCAPES[body]
    try:
        if body.startswith("u{") and body.endswith("}"):
            return chr(int(body[2:-1], 16))
        if body[0] == "u" and len(body) == 5:
            return chr(int(body[1:], 16))
        if body[0] == "x" and len(body) == 3:
            return chr(int(body[1:], 16))
    except (ValueError, OverflowError):
        return body
    if _LEGACY_OCTAL_RE.fullmatch(body):
        return chr(int(body, 8))
    return body


def parse_number(text: str) -> float | None:
    """Parse a numeric literal's source text as a 64-bit float.

    Handles numeric separators and ``0x``/``0o``/``0b`` prefixes.  BigInt
    literals (``10n``) are not numbers here and yield ``None``.
    """
    cleaned = text.replace("_", "")
    if not cleaned or cleaned.endswith("n"):
        return None
    radix = _RADIX_PREFIXES.get(cleaned[:2].lower())
    try:
        if radix is not None:
            return float(int(cleaned[2:], radix))
        return float(cleaned)
    except (ValueError, OverflowError):
        return None
