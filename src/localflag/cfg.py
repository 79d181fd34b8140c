"""localflag cfg: Programmatic editor for localflag.toml.

Uses tomlkit for format-preserving round-trip editing (comments,
ordering, and whitespace are retained).

Usage::

    localflag cfg path
    localflag cfg show [KEY]
    localflag cfg add-pattern "src/**/*.flags.ts"
    localflag cfg remove-pattern "**/flags.config.ts"
    localflag cfg add-exclude "**/dist/**"
    localflag cfg remove-exclude "**/dist/**"
    localflag cfg set scan.jobs 4
"""

import contextlib
from pathlib import Path

import tomlkit
import typer

from localflag.config import (
    CONFIG_FILENAME,
    DEFAULT_EXCLUDE,
    DEFAULT_PATTERNS,
    check_pattern,
    find_config_root,
    parse_scan_settings,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _find_root() -> Path:
    """Walk up from cwd to find localflag.toml."""
    root = find_config_root()
    if root is None:
        typer.secho(
            f"Error: Could not find {CONFIG_FILENAME} in any parent directory.\n"
            "Run this command from within a project, or use 'localflag init' first.",
            fg=typer.colors.RED,
            err=True,
        )
        raise typer.Exit(code=1)
    return root


def _load_toml(root: Path | None = None) -> tuple[tomlkit.TOMLDocument, Path]:
    """Load localflag.toml as a tomlkit document, preserving formatting."""
    if root is None:
        root = _find_root()
    toml_path = root / CONFIG_FILENAME
    if not toml_path.exists():
        typer.secho(f"Error: {toml_path} not found.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    doc = tomlkit.parse(toml_path.read_text(encoding="utf-8"))
    return doc, toml_path


def _save_toml(doc: tomlkit.TOMLDocument, path: Path) -> None:
    """Write tomlkit document back, preserving formatting.

    The edited document must still pass ``load_config``'s checks; otherwise
    nothing is written.
    """
    try:
        parse_scan_settings(doc.unwrap())
    except ValueError as exc:
        typer.secho(f"Error: {exc} (not saved)", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from None
    path.write_text(tomlkit.dumps(doc), encoding="utf-8")


def _scan_list(doc: tomlkit.TOMLDocument, key: str, default: list[str]):
    """Return the ``[scan].<key>`` array, creating it (seeded with *default*) if absent."""
    scan = doc.get("scan")
    if scan is None:
        scan = tomlkit.table()
        doc["scan"] = scan
    values = scan.get(key)
    if values is None:
        values = tomlkit.array()
        values.extend(default)
        scan[key] = values
    return values


def _add_to_list(key: str, value: str, default: list[str]) -> None:
    doc, toml_path = _load_toml()
    values = _scan_list(doc, key, default)
    if value in values:
        typer.secho(f"'{value}' already in scan.{key}.", fg=typer.colors.YELLOW)
        return
    values.append(value)
    _save_toml(doc, toml_path)
    typer.secho(f"Added '{value}' to scan.{key}: {list(values)}", fg=typer.colors.GREEN)


def _remove_from_list(key: str, value: str, default: list[str]) -> None:
    doc, toml_path = _load_toml()
    values = _scan_list(doc, key, default)
    if value not in values:
        typer.secho(f"'{value}' not in scan.{key} (already removed).", fg=typer.colors.YELLOW)
        return
    values.remove(value)
    _save_toml(doc, toml_path)
    typer.secho(f"Removed '{value}' from scan.{key}: {list(values)}", fg=typer.colors.GREEN)


# ---------------------------------------------------------------------------
# Typer app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="Read and edit localflag.toml programmatically.",
    rich_markup_mode="rich",
    epilog="""\
[bold]Examples:[/bold]
  localflag cfg show scan.patterns             Read a config value
  localflag cfg add-pattern "**/*.flags.tsx"   Scan another kind of file
  localflag cfg add-exclude "**/dist/**"       Skip build output
  localflag cfg set scan.jobs 4                Scan four files at a time
  localflag cfg path                           Print path to localflag.toml

[dim]Supports dotted key paths for nested TOML tables (e.g. 'scan.jobs').[/dim]""",
)


@app.command("path")
def path() -> None:
    """Print the path to localflag.toml."""
    typer.echo(str(_find_root() / CONFIG_FILENAME))


@app.command("show")
def show(
    key: str | None = typer.Argument(None, help="Dot-separated key to show, e.g. 'scan.patterns'"),
) -> None:
    """Show the current config, or a specific key."""
    doc, _ = _load_toml()

    if key is None:
        typer.echo(tomlkit.dumps(doc))
        return

    current = doc
    for part in key.split("."):
        if isinstance(current, dict) and part in current:
            current = current[part]
        else:
            typer.secho(f"Key '{key}' not found.", fg=typer.colors.RED, err=True)
            raise typer.Exit(code=1)

    if isinstance(current, dict):
        typer.echo(tomlkit.dumps(current))
    elif isinstance(current, list):
        for item in current:
            typer.echo(str(item))
    else:
        typer.echo(str(current))


@app.command("add-pattern")
def add_pattern(
    pattern: str = typer.Argument(..., help="Glob pattern, relative to the project root."),
) -> None:
    """Add a flag-file glob pattern (idempotent)."""
    try:
        check_pattern(pattern)
    except ValueError as exc:
        typer.secho(f"Error: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from None
    _add_to_list("patterns", pattern, DEFAULT_PATTERNS)


@app.command("remove-pattern")
def remove_pattern(
    pattern: str = typer.Argument(..., help="Glob pattern to remove."),
) -> None:
    """Remove a flag-file glob pattern (idempotent)."""
    _remove_from_list("patterns", pattern, DEFAULT_PATTERNS)


@app.command("add-exclude")
def add_exclude(
    pattern: str = typer.Argument(..., help="Glob of paths to skip."),
) -> None:
    """Add an exclude glob (idempotent)."""
    _add_to_list("exclude", pattern, DEFAULT_EXCLUDE)


@app.command("remove-exclude")
def remove_exclude(
    pattern: str = typer.Argument(..., help="Exclude glob to remove."),
) -> None:
    """Remove an exclude glob (idempotent)."""
    _remove_from_list("exclude", pattern, DEFAULT_EXCLUDE)


@app.command("set")
def set_value(
    key: str = typer.Argument(..., help="Dot-separated key, e.g. 'scan.jobs'."),
    value: str = typer.Argument(..., help="Value to set."),
) -> None:
    """Set a scalar config key."""
    doc, toml_path = _load_toml()

    parts = key.split(".")
    current = doc
    for part in parts[:-1]:
        if part not in current:
            current[part] = tomlkit.table()
        current = current[part]

    # Try to coerce value to int/float/bool
    parsed_value: str | int | float | bool = value
    if value.lower() in ("true", "false"):
        parsed_value = value.lower() == "true"
    else:
        try:
            parsed_value = int(value)
        except ValueError:
            with contextlib.suppress(ValueError):
                parsed_value = float(value)

    current[parts[-1]] = parsed_value
    _save_toml(doc, toml_path)
    typer.secho(f"Set {key} = {parsed_value!r}", fg=typer.colors.GREEN)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main_entry() -> None:
    app()


if __name__ == "__main__":
    main_entry()
