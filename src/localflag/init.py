"""Initialize localflag configuration in a project directory.

Usage:
    localflag init [--pattern GLOB ...] [--jobs N] [--force]
"""

from pathlib import Path

import tomlkit
import typer

from localflag.cli import error_exit
from localflag.config import CONFIG_FILENAME, DEFAULT_EXCLUDE, DEFAULT_PATTERNS

app = typer.Typer(
    help="Create a localflag.toml in the current directory.",
    rich_markup_mode="rich",
    epilog="""\
[bold]Examples:[/bold]

localflag init                                   Default patterns

localflag init --pattern "src/**/*.flags.ts"     Custom flag-file pattern (repeatable)

localflag init --force                           Overwrite an existing localflag.toml

[dim]Run this once at the root of the project that holds your flag files.[/dim]""",
)

DEFAULT_LOCALFLAG_TOML = """\
# localflag configuration
# Glob patterns are evaluated relative to the directory holding this file.

[scan]
# Files that declare flag defaults (as const / defineFlags / createFlags / plain objects)
patterns = []
# Paths never scanned
exclude = []
# Number of files scanned concurrently
jobs = 1
"""


def render_config(patterns: list[str], exclude: list[str], jobs: int = 1) -> str:
    """Return the text of a fresh localflag.toml."""
    doc = tomlkit.parse(DEFAULT_LOCALFLAG_TOML)
    doc["scan"]["patterns"] = patterns
    doc["scan"]["exclude"] = exclude
    doc["scan"]["jobs"] = jobs
    return tomlkit.dumps(doc)


@app.callback(invoke_without_command=True)
def main(
    patterns: list[str] | None = typer.Option(
        None, "--pattern", "-p", help="Flag-file glob (repeatable; default: built-in set)."
    ),
    jobs: int = typer.Option(1, "--jobs", "-j", min=1, help="Files scanned concurrently."),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing localflag.toml."),
) -> None:
    """Create a localflag.toml in the current directory."""
    cwd = Path.cwd()
    toml_path = cwd / CONFIG_FILENAME

    if toml_path.exists() and not force:
        error_exit(f"A {CONFIG_FILENAME} already exists in {cwd} (use --force to overwrite)")

    toml_path.write_text(
        render_config(list(patterns or DEFAULT_PATTERNS), list(DEFAULT_EXCLUDE), jobs),
        encoding="utf-8",
    )
    typer.secho(f"Created {toml_path}", fg=typer.colors.GREEN)
    typer.echo("\nNext: localflag scan")


def main_entry() -> None:
    """Run the Typer CLI application."""
    app()


if __name__ == "__main__":
    main_entry()
