"""registry.py – Project-wide index of detected flag definitions.

A :class:`FlagRegistry` owns the current snapshot of every
:class:`~localflag.models.FlagDefinition` found in the configured flag files.
``refresh()`` rescans the files and replaces the snapshot wholesale; readers
always see either the previous or the new snapshot, never a mix.

Usage::

    registry = FlagRegistry(["**/flags.ts"], root=Path("."))
    registry.refresh()
    for flag in registry.get_all_flags():
        print(flag.name, flag.value)
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path

from localflag.config import DEFAULT_EXCLUDE, DEFAULT_PATTERNS, ProjectConfig, check_pattern
from localflag.models import DetectedFlag, FlagDefinition
from localflag.scanner import FlagParseError, scan_file

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegistrySnapshot:
    """Immutable result of one refresh."""

    definitions: tuple[FlagDefinition, ...] = ()
    # (file path, reason) for every file that failed to parse
    errors: tuple[tuple[str, str], ...] = ()
    generation: int = 0


def is_excluded(rel_path: str, exclude: Sequence[str]) -> bool:
    """Return True if the posix *rel_path* matches any exclude glob.

    A leading ``**/`` also matches at the root, so ``**/node_modules/**``
    excludes ``node_modules/pkg/flags.ts`` as well as ``web/node_modules/...``.
    """
    for pattern in exclude:
        if fnmatchcase(rel_path, pattern):
            return True
        if pattern.startswith("**/") and fnmatchcase(rel_path, pattern[3:]):
            return True
    return False


class FlagRegistry:
    """Scans flag definition files and holds the latest snapshot."""

    def __init__(
        self,
        patterns: Sequence[str] | None = None,
        *,
        root: Path | None = None,
        exclude: Sequence[str] | None = None,
        jobs: int = 1,
    ) -> None:
        self.root = (root or Path.cwd()).resolve()
        self._patterns = [
            check_pattern(p) for p in (DEFAULT_PATTERNS if patterns is None else patterns)
        ]
        self._exclude = list(DEFAULT_EXCLUDE if exclude is None else exclude)
        self.jobs = max(1, jobs)
        self._snapshot = RegistrySnapshot()
        self._lock = threading.Lock()
        self._started = 0

    @classmethod
    def from_config(cls, cfg: ProjectConfig) -> FlagRegistry:
        return cls(cfg.patterns, root=cfg.root, exclude=cfg.exclude, jobs=cfg.jobs)

    # -- patterns -----------------------------------------------------------

    @property
    def patterns(self) -> list[str]:
        return list(self._patterns)

    def update_patterns(self, patterns: Sequence[str]) -> None:
        """Replace the glob patterns used by the next discovery-based refresh."""
        self._patterns = [check_pattern(p) for p in patterns]

    def discover_files(self) -> list[Path]:
        """Expand the patterns under root, minus excluded paths, without duplicates."""
        seen: set[Path] = set()
        files: list[Path] = []
        for pattern in self._patterns:
            for path in sorted(self.root.glob(pattern)):
                if path in seen or not path.is_file():
                    continue
                if is_excluded(path.relative_to(self.root).as_posix(), self._exclude):
                    continue
                seen.add(path)
                files.append(path)
        return files

    # -- refresh ------------------------------------------------------------

    def refresh(self, files: Iterable[str | Path] | None = None) -> None:
        """Rescan *files* (default: discovered files) and publish a new snapshot.

        A file that fails to parse is logged and contributes no definitions;
        the remaining files are still scanned.  If a newer refresh has already
        published by the time this one finishes, this result is discarded.
        """
        with self._lock:
            self._started += 1
            generation = self._started

        paths = [Path(f) for f in files] if files is not None else self.discover_files()

        if self.jobs > 1 and len(paths) > 1:
            with ThreadPoolExecutor(max_workers=self.jobs) as executor:
                results = list(executor.map(self._scan_one, paths))
        else:
            results = [self._scan_one(path) for path in paths]

        definitions: list[FlagDefinition] = []
        errors: list[tuple[str, str]] = []
        for file_defs, error in results:
            definitions.extend(file_defs)
            if error is not None:
                errors.append(error)

        snapshot = RegistrySnapshot(
            definitions=tuple(definitions),
            errors=tuple(errors),
            generation=generation,
        )
        with self._lock:
            if generation < self._snapshot.generation:
                logger.debug("Discarding superseded refresh #%d", generation)
                return
            self._snapshot = snapshot
        logger.debug(
            "Refresh #%d: %d definition(s) from %d file(s), %d error(s)",
            generation,
            len(definitions),
            len(paths),
            len(errors),
        )

    @staticmethod
    def _scan_one(path: Path) -> tuple[list[FlagDefinition], tuple[str, str] | None]:
        try:
            return scan_file(path), None
        except FlagParseError as exc:
            logger.warning("Error parsing %s: %s", path, exc.reason)
            return [], (str(path), exc.reason)
        except Exception as exc:
            # A scanner bug on one file must not abort the whole refresh.
            logger.warning("Unexpected error scanning %s: %s", path, exc, exc_info=True)
            return [], (str(path), f"{type(exc).__name__}: {exc}")

    # -- queries ------------------------------------------------------------

    @property
    def snapshot(self) -> RegistrySnapshot:
        return self._snapshot

    def get_definitions(self) -> tuple[FlagDefinition, ...]:
        """All definitions, in file-scan order."""
        return self._snapshot.definitions

    def get_errors(self) -> tuple[tuple[str, str], ...]:
        return self._snapshot.errors

    def get_all_flags(self) -> list[DetectedFlag]:
        """Every flag of every definition, concatenated; duplicate names are kept."""
        return [flag for definition in self._snapshot.definitions for flag in definition.flags]

    def find_flags(self, name: str, file_path: str | Path | None = None) -> list[DetectedFlag]:
        """Flags called *name*, optionally restricted to one file."""
        wanted = str(Path(file_path).resolve()) if file_path is not None else None
        matches = []
        for flag in self.get_all_flags():
            if flag.name != name:
                continue
            if wanted is not None and str(Path(flag.location.file_path).resolve()) != wanted:
                continue
            matches.append(flag)
        return matches
