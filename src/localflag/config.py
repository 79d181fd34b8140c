"""Centralised project configuration loader for localflag.

Reads ``localflag.toml`` from the project root and exposes the scan settings
as simple attributes.  The root is found by walking up from the current
directory, the same way ``git`` locates ``.git/``.  A project without a
``localflag.toml`` gets the defaults below, rooted at the current directory.

Example ``localflag.toml``::

    [scan]
    patterns = ["**/flags.ts", "**/flags.config.ts", "**/*.flags.ts"]
    exclude = ["**/node_modules/**"]
    jobs = 4

Usage::

    from localflag.config import load_config

    cfg = load_config()
    cfg.patterns      # ["**/flags.ts", ...]
    cfg.root          # Path of the directory holding localflag.toml
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path, PurePath
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

CONFIG_FILENAME = "localflag.toml"

DEFAULT_PATTERNS: list[str] = [
    "**/flags.ts",
    "**/flags.config.ts",
    "**/*.flags.ts",
]

DEFAULT_EXCLUDE: list[str] = ["**/node_modules/**"]


@dataclass
class ProjectConfig:
    """Parsed project configuration."""

    # Directory the glob patterns are evaluated against
    root: Path

    patterns: list[str] = field(default_factory=lambda: list(DEFAULT_PATTERNS))
    exclude: list[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE))

    # Number of files scanned concurrently during a refresh
    jobs: int = 1

    # None when running on defaults (no localflag.toml found)
    config_path: Path | None = None


def find_config_root(start: Path | None = None) -> Path | None:
    """Walk up from *start* (or cwd) to the first directory holding localflag.toml."""
    candidate = (start or Path.cwd()).resolve()
    while True:
        if (candidate / CONFIG_FILENAME).exists():
            return candidate
        if candidate == candidate.parent:
            return None
        candidate = candidate.parent


def check_pattern(pattern: str) -> str:
    """Return *pattern* if it can be globbed under the project root.

    Raises:
        ValueError: the pattern is empty or absolute.
    """
    if not pattern.strip():
        raise ValueError("scan patterns must not be empty")
    if PurePath(pattern).is_absolute() or pattern.startswith(("/", "\\")):
        raise ValueError(f"scan pattern {pattern!r} must be relative to the project root")
    return pattern


def _string_list(scan: dict[str, Any], key: str, default: list[str]) -> list[str]:
    value = scan.get(key, default)
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError(f"[scan].{key} in {CONFIG_FILENAME} must be a list of strings")
    return list(value)


def parse_scan_settings(raw: dict[str, Any]) -> tuple[list[str], list[str], int]:
    """Validate the ``[scan]`` table of a parsed localflag.toml.

    Returns ``(patterns, exclude, jobs)`` with defaults filled in.

    Raises:
        ValueError: a ``[scan]`` key has the wrong type or value.
    """
    scan = raw.get("scan", {})
    if not isinstance(scan, dict):
        raise ValueError(f"[scan] in {CONFIG_FILENAME} must be a table")

    jobs = scan.get("jobs", 1)
    if isinstance(jobs, bool) or not isinstance(jobs, int) or jobs < 1:
        raise ValueError(f"[scan].jobs in {CONFIG_FILENAME} must be a positive integer")

    patterns = _string_list(scan, "patterns", DEFAULT_PATTERNS)
    for pattern in patterns:
        try:
            check_pattern(pattern)
        except ValueError as exc:
            raise ValueError(f"[scan].patterns in {CONFIG_FILENAME}: {exc}") from None

    return patterns, _string_list(scan, "exclude", DEFAULT_EXCLUDE), jobs


def load_config(root: Path | None = None) -> ProjectConfig:
    """Load localflag.toml.

    Args:
        root: Project root directory.  When ``None``, the nearest ancestor of
              the current directory holding ``localflag.toml`` is used, or the
              current directory itself (with defaults) if there is none.

    Raises:
        ValueError: a ``[scan]`` key has the wrong type or value.
    """
    if root is None:
        root = find_config_root() or Path.cwd().resolve()
    toml_path = root / CONFIG_FILENAME
    if not toml_path.exists():
        return ProjectConfig(root=root)

    with open(toml_path, "rb") as f:
        raw = tomllib.load(f)

    patterns, exclude, jobs = parse_scan_settings(raw)
    return ProjectConfig(
        root=root,
        patterns=patterns,
        exclude=exclude,
        jobs=jobs,
        config_path=toml_path,
    )
