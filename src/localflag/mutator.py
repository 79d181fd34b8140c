"""mutator.py – Flip a boolean flag's literal in place in its source file.

Only the single line recorded in the flag's location is ever rewritten.  The
substitution is a two-stage cascade:

1. **strict** – ``<name>\\s*:\\s*<old>`` on that line, replacing only the literal;
2. **permissive** – the first occurrence of the old literal anywhere on the line.

If neither stage changes the line the file is left untouched and the toggle
reports ``False``.  A one-line createFlags entry
(``name: { value: <old>, ... }``) has its ``value`` literal patched directly,
ahead of the cascade.  There is no locking: the file is read and rewritten as it
is at call time, and a concurrent edit of the same line is last-write-wins.
The in-memory registry is not updated; callers refresh it afterwards.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from localflag.models import DetectedFlag
from localflag.scanner import LocalFlagError
from localflag.utils import atomic_write_text, read_text_exact

logger = logging.getLogger(__name__)

_OPPOSITE = {"true": "false", "false": "true"}


class FlagWriteError(LocalFlagError):
    """Persisting a toggled flag failed."""

    def __init__(self, path: str | Path, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = str(path)
        self.reason = reason


@dataclass(frozen=True)
class TogglePlan:
    """A computed, not yet written, toggle of one flag."""

    path: Path
    line: int
    old_line: str
    new_line: str
    old_literal: str
    new_literal: str
    new_text: str


def _key_prefix(flag_name: str) -> str:
    return r"(?<![\w$])" + re.escape(flag_name) + r"\s*:\s*"


def _entry_value_re(flag_name: str) -> re.Pattern[str]:
    # createFlags entry on one line: name: { ..., value: <literal>, ... }
    return re.compile(
        "(" + _key_prefix(flag_name) + r"\{[^{}]*?(?<![\w$])value\s*:\s*)(true|false)(?![\w$])"
    )


def patch_line(line: str, flag_name: str, old_literal: str, new_literal: str) -> str | None:
    """Replace *old_literal* with *new_literal* on *line*, or return None.

    Tries the key-anchored substitution first and falls back to a blind
    first-occurrence replacement.  Pure: no I/O.

    >>> patch_line("  darkMode: false,", "darkMode", "false", "true")
    '  darkMode: true,'
    >>> patch_line("  renamed: false,", "darkMode", "false", "true")
    '  renamed: true,'
    >>> patch_line("  darkMode: 1,", "darkMode", "false", "true") is None
    True
    """
    strict = re.compile("(" + _key_prefix(flag_name) + ")" + re.escape(old_literal) + r"(?![\w$])")
    patched, count = strict.subn(lambda m: m.group(1) + new_literal, line, count=1)
    if count and patched != line:
        return patched

    if old_literal in line:
        patched = line.replace(old_literal, new_literal, 1)
        if patched != line:
            return patched
    return None


def current_literal(line: str, flag_name: str) -> str | None:
    """Return the boolean literal of *flag_name* on *line*, if any.

    Looks for ``name: <literal>`` first, then for a one-line createFlags
    entry ``name: { value: <literal> }``.
    """
    match = re.search(_key_prefix(flag_name) + r"(true|false)(?![\w$])", line)
    if match:
        return match.group(1)
    match = _entry_value_re(flag_name).search(line)
    return match.group(2) if match else None


def _patch_entry_value(line: str, flag_name: str, old_literal: str, new_literal: str) -> str | None:
    match = _entry_value_re(flag_name).search(line)
    if match is None or match.group(2) != old_literal:
        return None
    return line[: match.start(2)] + new_literal + line[match.end(2) :]


def plan_toggle(flag: DetectedFlag) -> TogglePlan | None:
    """Compute the rewrite that toggles *flag*, without writing anything.

    Returns None for non-boolean flags and whenever the recorded line can no
    longer be patched (file unreadable, line gone, literal gone).
    """
    if not flag.is_boolean:
        return None

    path = Path(flag.location.file_path)
    try:
        text = read_text_exact(path)
    except (OSError, UnicodeDecodeError) as exc:
        logger.debug("Cannot read %s to toggle %s: %s", path, flag.name, exc)
        return None

    # Lines are split on "\n" only, matching the scanner's line numbering;
    # a "\r\n" line keeps its "\r" as content and it survives the rewrite.
    lines = text.split("\n")
    index = flag.location.line - 1
    if not 0 <= index < len(lines):
        logger.debug("%s:%d is past the end of the file", path, flag.location.line)
        return None
    old_line = lines[index]

    old_literal = current_literal(old_line, flag.name) or ("true" if flag.value else "false")
    new_literal = _OPPOSITE[old_literal]

    # A createFlags entry keeps its literal under "value", never next to the
    # flag's own key, so it is patched there before the generic cascade runs.
    new_line = _patch_entry_value(
        old_line, flag.name, old_literal, new_literal
    ) or patch_line(old_line, flag.name, old_literal, new_literal)
    if new_line is None:
        logger.debug("No %r literal left on %s:%d", old_literal, path, flag.location.line)
        return None

    lines[index] = new_line
    return TogglePlan(
        path=path,
        line=flag.location.line,
        old_line=old_line,
        new_line=new_line,
        old_literal=old_literal,
        new_literal=new_literal,
        new_text="\n".join(lines),
    )


def apply_toggle(plan: TogglePlan) -> None:
    """Persist *plan*.

    Raises:
        FlagWriteError: the file could not be written.
    """
    try:
        atomic_write_text(plan.path, plan.new_text)
    except OSError as exc:
        raise FlagWriteError(plan.path, exc.strerror or str(exc)) from exc


def toggle_boolean_flag(flag: DetectedFlag) -> bool:
    """Flip *flag*'s literal in its source file.

    Returns True when the file was rewritten, False for non-boolean flags,
    stale locations and write failures (the latter are logged).
    """
    plan = plan_toggle(flag)
    if plan is None:
        return False
    try:
        apply_toggle(plan)
    except FlagWriteError as exc:
        logger.error("Error toggling flag %s: %s", flag.name, exc)
        return False
    logger.info(
        "Toggled %s: %s -> %s (%s:%d)",
        flag.name,
        plan.old_literal,
        plan.new_literal,
        plan.path,
        plan.line,
    )
    return True
