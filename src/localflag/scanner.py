"""scanner.py – Find feature-flag declarations in TypeScript source via tree-sitter.

Walks every node of the parsed tree (not only top-level statements) and
classifies each variable declarator with an initializer into one of four
declaration idioms, first match wins:

1. ``as-const``     – ``{ ... } as const``
2. ``defineFlags``  – ``defineFlags({ ... })``
3. ``createFlags``  – ``createFlags({ name: { value, description? } })``
4. ``unknown``      – any other bare ``{ ... }`` initializer

Declarations that end up with zero extracted flags are omitted.  Scanning is
a pure function of the file text: the same text always yields the same
definitions.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

from localflag.extract import extract_value, node_text, string_literal_text
from localflag.models import DetectedFlag, FlagDefinition, FlagLocation, FlagPattern

TS_LANGUAGE = Language(tree_sitter_typescript.language_typescript())
TSX_LANGUAGE = Language(tree_sitter_typescript.language_tsx())

# JSX needs the TSX grammar; everything else parses with plain TypeScript.
_TSX_SUFFIXES = {".tsx", ".jsx"}

_DEFINE_FLAGS = "defineFlags"
_CREATE_FLAGS = "createFlags"


class LocalFlagError(Exception):
    """Base class for localflag errors."""


class FlagParseError(LocalFlagError):
    """A flag definition file could not be read or decoded."""

    def __init__(self, path: str | Path, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = str(path)
        self.reason = reason


def language_for(file_path: str | Path) -> Language:
    """Pick the grammar for *file_path* based on its suffix."""
    if Path(file_path).suffix.lower() in _TSX_SUFFIXES:
        return TSX_LANGUAGE
    return TS_LANGUAGE


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------


def scan_file(path: str | Path) -> list[FlagDefinition]:
    """Read *path* and scan it for flag definitions.

    Raises:
        FlagParseError: the file is unreadable or not UTF-8 text.
    """
    path = Path(path)
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise FlagParseError(path, exc.strerror or str(exc)) from exc
    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise FlagParseError(path, f"not valid UTF-8 text ({exc.reason})") from exc
    return scan_text(str(path), text)


def scan_text(file_path: str, text: str) -> list[FlagDefinition]:
    """Scan source *text* (attributed to *file_path*) for flag definitions."""
    source = text.encode("utf-8")
    parser = Parser(language_for(file_path))
    tree = parser.parse(source)

    definitions: list[FlagDefinition] = []
    for declarator in _iter_declarators(tree.root_node):
        definition = _analyze_declarator(declarator, source, file_path)
        if definition is not None:
            definitions.append(definition)
    return definitions


# ---------------------------------------------------------------------------
# Traversal and classification
# ---------------------------------------------------------------------------


def _iter_declarators(root: Node) -> Iterator[Node]:
    """Yield every ``variable_declarator`` in source (pre-)order."""
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "variable_declarator":
            yield node
        # Reversed so the leftmost child is visited first.
        stack.extend(reversed(node.children))


def _analyze_declarator(
    declarator: Node, source: bytes, file_path: str
) -> FlagDefinition | None:
    initializer = declarator.child_by_field_name("value")
    name_node = declarator.child_by_field_name("name")
    if initializer is None or name_node is None:
        return None
    variable_name = node_text(name_node, source)

    def make(flags: list[DetectedFlag], pattern: FlagPattern) -> FlagDefinition | None:
        if not flags:
            return None
        return FlagDefinition(
            file_path=file_path,
            variable_name=variable_name,
            flags=tuple(flags),
            pattern=pattern,
        )

    if _is_const_assertion(initializer, source):
        expression = initializer.named_children[0]
        if expression.type == "object":
            definition = make(
                _flags_from_object(expression, source, file_path), FlagPattern.AS_CONST
            )
            if definition is not None:
                return definition

    if initializer.type == "call_expression":
        callee = initializer.child_by_field_name("function")
        argument = _first_argument(initializer)
        callee_name = node_text(callee, source) if callee is not None else ""
        if argument is not None and argument.type == "object":
            if callee_name == _DEFINE_FLAGS:
                definition = make(
                    _flags_from_object(argument, source, file_path), FlagPattern.DEFINE_FLAGS
                )
                if definition is not None:
                    return definition
            if callee_name == _CREATE_FLAGS:
                definition = make(
                    _flags_from_create_flags(argument, source, file_path),
                    FlagPattern.CREATE_FLAGS,
                )
                if definition is not None:
                    return definition

    if initializer.type == "object":
        return make(_flags_from_object(initializer, source, file_path), FlagPattern.UNKNOWN)

    return None


def _is_const_assertion(node: Node, source: bytes) -> bool:
    if node.type != "as_expression" or not node.children:
        return False
    return node_text(node.children[-1], source) == "const" and bool(node.named_children)


def _first_argument(call: Node) -> Node | None:
    arguments = call.child_by_field_name("arguments")
    if arguments is None:
        return None
    for child in arguments.named_children:
        if child.type != "comment":
            return child
    return None


def _pairs(obj: Node) -> Iterator[Node]:
    """Yield the ``key: value`` property assignments of an object literal."""
    for child in obj.named_children:
        if child.type == "pair":
            yield child


def _location(node: Node, source: bytes, file_path: str) -> FlagLocation:
    """Convert a node's start into a 1-indexed line / 0-indexed character column."""
    row, byte_column = node.start_point
    line_start = node.start_byte - byte_column
    column = len(source[line_start : node.start_byte].decode("utf-8", errors="replace"))
    return FlagLocation(file_path=file_path, line=row + 1, column=column)


def _flags_from_object(obj: Node, source: bytes, file_path: str) -> list[DetectedFlag]:
    flags: list[DetectedFlag] = []
    for pair in _pairs(obj):
        key = pair.child_by_field_name("key")
        value = pair.child_by_field_name("value")
        if key is None or value is None:
            continue
        extracted = extract_value(value, source)
        if extracted is None:
            continue
        flags.append(
            DetectedFlag(
                name=node_text(key, source),
                value=extracted.value,
                type=extracted.type,
                location=_location(pair, source, file_path),
            )
        )
    return flags


def _flags_from_create_flags(obj: Node, source: bytes, file_path: str) -> list[DetectedFlag]:
    """Extract ``name: { value: <literal>, description?: "<text>" }`` entries.

    Entries without a supported ``value`` are skipped individually.
    """
    flags: list[DetectedFlag] = []
    for pair in _pairs(obj):
        key = pair.child_by_field_name("key")
        entry = pair.child_by_field_name("value")
        if key is None or entry is None or entry.type != "object":
            continue

        extracted = None
        description: str | None = None
        for inner in _pairs(entry):
            inner_key = inner.child_by_field_name("key")
            inner_value = inner.child_by_field_name("value")
            if inner_key is None or inner_value is None:
                continue
            prop = node_text(inner_key, source)
            if prop == "value":
                candidate = extract_value(inner_value, source)
                if candidate is not None:
                    extracted = candidate
            elif prop == "description" and inner_value.type == "string":
                description = string_literal_text(inner_value, source)

        if extracted is None:
            continue
        flags.append(
            DetectedFlag(
                name=node_text(key, source),
                value=extracted.value,
                type=extracted.type,
                location=_location(pair, source, file_path),
                description=description,
            )
        )
    return flags
