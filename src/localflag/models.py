"""models.py – Data model shared by the scanner, registry, mutator and CLI.

Every record is a frozen dataclass: definitions are rebuilt from scratch on
each registry refresh and never mutated in place.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any

FlagValue = bool | str | float


class FlagPattern(str, Enum):
    """Declaration idiom a flag definition was written in."""

    AS_CONST = "as-const"
    DEFINE_FLAGS = "defineFlags"
    CREATE_FLAGS = "createFlags"
    UNKNOWN = "unknown"


class FlagType(str, Enum):
    """Type inferred from a flag's literal value."""

    BOOLEAN = "boolean"
    STRING = "string"
    NUMBER = "number"


@dataclass(frozen=True)
class FlagLocation:
    """Start of a property assignment: 1-indexed line, 0-indexed column."""

    file_path: str
    line: int
    column: int

    def to_dict(self) -> dict[str, Any]:
        return {"file_path": self.file_path, "line": self.line, "column": self.column}


@dataclass(frozen=True)
class DetectedFlag:
    """A single flag property extracted from a definition."""

    name: str
    value: FlagValue
    type: FlagType
    location: FlagLocation
    description: str | None = None

    @property
    def is_boolean(self) -> bool:
        return self.type is FlagType.BOOLEAN

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "value": _json_value(self.value),
            "type": self.type.value,
            "location": self.location.to_dict(),
        }
        if self.description is not None:
            data["description"] = self.description
        return data


@dataclass(frozen=True)
class FlagDefinition:
    """One declaration holding flags, with flags in source property order."""

    file_path: str
    variable_name: str
    flags: tuple[DetectedFlag, ...]
    pattern: FlagPattern

    def to_dict(self) -> dict[str, Any]:
        return {
            "file_path": self.file_path,
            "variable_name": self.variable_name,
            "pattern": self.pattern.value,
            "flags": [flag.to_dict() for flag in self.flags],
        }


def _json_value(value: FlagValue) -> FlagValue | int:
    # Integral floats serialise as ints so JSON output reads like the source.
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    return value


def format_value(value: FlagValue) -> str:
    """Render *value* the way it would be written as a source literal.

    >>> format_value(True), format_value(10.0), format_value(-2.5), format_value("v1")
    ('true', '10', '-2.5', '"v1"')
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value.is_integer():
        return str(int(value))
    return repr(value)
