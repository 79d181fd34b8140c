"""Shared CLI utilities for localflag commands.

Provides common Typer options, config-loading helpers, and standardised
output / error helpers so that every command gets consistent ``--root``
support, error reporting, and JSON output without boilerplate.

Usage in a command module::

    import typer
    from localflag.cli import RootOption, get_config, error_exit, json_print

    app = typer.Typer()

    @app.callback(invoke_without_command=True)
    def main(root: str | None = RootOption) -> None:
        cfg = get_config(root)
        ...
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.logging import RichHandler

from localflag.config import ProjectConfig, load_config
from localflag.registry import FlagRegistry

# Re-usable Typer option for --root
RootOption: str | None = typer.Option(
    None,
    "--root",
    "-r",
    help="Project root (default: nearest directory with localflag.toml, else cwd).",
)

JsonOption: bool = typer.Option(False, "--json", help="Output results as JSON.")


def get_config(root: str | None = None, *, json_mode: bool = False) -> ProjectConfig:
    """Load the project config, exiting with a message if it is invalid."""
    try:
        return load_config(Path(root).resolve() if root else None)
    except ValueError as exc:
        error_exit(str(exc), json_mode=json_mode)


def build_registry(cfg: ProjectConfig, jobs: int | None = None) -> FlagRegistry:
    """Create a registry for *cfg*, with an optional ``--jobs`` override."""
    registry = FlagRegistry.from_config(cfg)
    if jobs is not None:
        registry.jobs = max(1, jobs)
    return registry


# ---------------------------------------------------------------------------
# Standardised output helpers
# ---------------------------------------------------------------------------

_err_console = Console(stderr=True)


def error_exit(msg: str, *, json_mode: bool = False, code: int = 1) -> NoReturn:
    """Print *msg* as an error and ``raise typer.Exit(code)``."""
    if json_mode:
        print(json.dumps({"error": msg}, indent=2))
    else:
        _err_console.print(f"[red bold]error:[/red bold] {msg}")
    raise typer.Exit(code=code)


def json_print(data: dict[str, Any] | list[Any]) -> None:
    """Print *data* as pretty-printed JSON to stdout."""
    print(json.dumps(data, indent=2, ensure_ascii=False))


def rel_display_path(filepath: str | Path, base_dir: Path | None = None) -> str:
    """Return a display-friendly path, relative to *base_dir* when possible."""
    path = Path(filepath)
    if base_dir is not None:
        try:
            return path.resolve().relative_to(base_dir.resolve()).as_posix()
        except ValueError:
            pass
    return str(path)


def setup_logging(verbose: bool = False) -> None:
    """Route library logging through a rich handler on stderr."""
    root_logger = logging.getLogger("localflag")
    root_logger.handlers.clear()
    root_logger.addHandler(
        RichHandler(console=_err_console, show_time=False, show_path=False, markup=False)
    )
    root_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    root_logger.propagate = False
