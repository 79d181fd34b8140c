"""main.py – Umbrella CLI entry point for localflag.

Lazily imports and registers all subcommand typer apps so that a broken or
missing dependency in one command doesn't prevent the entire CLI from loading.

Single-command modules are registered as flat ``app.command()`` entries;
only true multi-command modules (currently only ``cfg``) use ``add_typer()``.
"""

import importlib
import sys
from collections.abc import Callable

import typer

from localflag.cli import setup_logging

app = typer.Typer(
    help="Find feature-flag definitions in TypeScript sources and toggle their defaults.",
    rich_markup_mode="rich",
    epilog="""\
[bold]Typical workflow:[/bold]
  localflag init                 Create localflag.toml with default patterns
  localflag scan                 List every flag definition found
  localflag flags --type boolean List boolean flags across all files
  localflag toggle darkMode      Flip a boolean default in place

[dim]All subcommands read project settings from localflag.toml when present.
Run 'localflag <cmd> --help' for details.[/dim]""",
)

# ---------------------------------------------------------------------------
# Subcommand registry
# ---------------------------------------------------------------------------

# Single-command modules – registered as flat commands via app.command().
_SINGLE_COMMANDS: list[tuple[str, str, str]] = [
    ("scan", "localflag.scan", "Scan flag definition files and list detected definitions."),
    ("flags", "localflag.flags", "List every detected flag (flattened, duplicates kept)."),
    ("toggle", "localflag.toggle_cli", "Toggle a boolean flag's default value in place."),
    ("init", "localflag.init", "Create a localflag.toml in the current directory."),
]

# Multi-command modules – registered as groups via app.add_typer().
_MULTI_COMMANDS: list[tuple[str, str, str]] = [
    ("cfg", "localflag.cfg", "Read and edit localflag.toml programmatically."),
]


def _make_stub_cmd(mod_name: str, err: ImportError) -> Callable[[], None]:
    """Create a stub command function that reports a missing dependency."""

    def _stub() -> None:
        print(f"Error: could not load '{mod_name}': {err}", file=sys.stderr)
        raise typer.Exit(code=1)

    return _stub


def _make_stub_app(mod_name: str, err: ImportError) -> typer.Typer:
    """Create a stub Typer app that reports a missing dependency."""
    stub = typer.Typer(help=f"[unavailable] {mod_name}")

    @stub.callback(invoke_without_command=True)
    def _stub_main() -> None:
        print(f"Error: could not load '{mod_name}': {err}", file=sys.stderr)
        raise typer.Exit(code=1)

    return stub


@app.callback()
def _global_options(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging."),
) -> None:
    setup_logging(verbose)


# Register single-command modules as flat commands.
for _name, _module, _help in _SINGLE_COMMANDS:
    try:
        _mod = importlib.import_module(_module)
        _epilog = getattr(_mod.app.info, "epilog", None)
        if not isinstance(_epilog, str):
            _epilog = None
        app.command(name=_name, help=_help, epilog=_epilog)(_mod.main)
    except ImportError as _exc:
        app.command(name=_name, help=f"[unavailable] {_help}")(_make_stub_cmd(_module, _exc))

# Register multi-command modules as groups (Typer sub-apps).
for _name, _module, _help in _MULTI_COMMANDS:
    try:
        _mod = importlib.import_module(_module)
        app.add_typer(_mod.app, name=_name, help=_help)
    except ImportError as _exc:
        app.add_typer(_make_stub_app(_module, _exc), name=_name, help=f"[unavailable] {_help}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
