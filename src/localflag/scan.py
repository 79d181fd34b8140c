"""scan.py – Scan flag definition files and print every definition found.

Usage:
    localflag scan
    localflag scan src/flags.ts src/other.flags.ts
    localflag scan --json
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table
from rich.text import Text

from localflag.cli import (
    JsonOption,
    RootOption,
    build_registry,
    get_config,
    json_print,
    rel_display_path,
)
from localflag.models import FlagDefinition, FlagType, format_value

_EPILOG = """\
[bold]Examples:[/bold]

localflag scan                          Scan files matching the configured patterns

localflag scan src/flags.ts             Scan specific files only

localflag scan --jobs 8                 Scan files concurrently

localflag scan --json                   Definitions as JSON

[dim]Patterns and excludes come from [scan] in localflag.toml
(default: **/flags.ts, **/flags.config.ts, **/*.flags.ts).[/dim]"""

app = typer.Typer(
    help="Scan flag definition files and list detected definitions.",
    rich_markup_mode="rich",
    epilog=_EPILOG,
)

console = Console()

_TYPE_STYLES = {
    FlagType.BOOLEAN: "cyan",
    FlagType.STRING: "green",
    FlagType.NUMBER: "magenta",
}


def _render_definition(definition: FlagDefinition, root: Path) -> None:
    count = len(definition.flags)
    title = Text.assemble(
        (rel_display_path(definition.file_path, root), "bold"),
        "  ",
        (definition.variable_name, "yellow"),
        f"  [{definition.pattern.value}]  ",
        (f"{count} flag{'s' if count != 1 else ''}", "dim"),
    )
    tbl = Table(title=title, title_justify="left", header_style="bold", box=None, padding=(0, 2))
    tbl.add_column("Flag")
    tbl.add_column("Type")
    tbl.add_column("Value")
    tbl.add_column("Line", justify="right", style="dim")
    tbl.add_column("Description", style="dim")
    for flag in definition.flags:
        style = _TYPE_STYLES.get(flag.type, "white")
        tbl.add_row(
            Text(flag.name),
            f"[{style}]{flag.type.value}[/]",
            Text(format_value(flag.value), style=style),
            f"{flag.location.line}:{flag.location.column}",
            Text(flag.description or ""),
        )
    console.print(tbl)
    console.print()


@app.callback(invoke_without_command=True)
def main(
    files: list[str] | None = typer.Argument(
        None, help="Files to scan (default: discover via configured patterns)."
    ),
    jobs: int | None = typer.Option(None, "--jobs", "-j", help="Files scanned concurrently."),
    json_output: bool = JsonOption,
    root: str | None = RootOption,
) -> None:
    """Scan flag definition files and list detected definitions."""
    cfg = get_config(root, json_mode=json_output)
    registry = build_registry(cfg, jobs)
    if files:
        registry.refresh([Path(f).resolve() for f in files])
    else:
        registry.refresh()

    definitions = registry.get_definitions()
    errors = registry.get_errors()

    if json_output:
        json_print(
            {
                "root": str(cfg.root),
                "definitions": [d.to_dict() for d in definitions],
                "errors": [{"file_path": path, "reason": reason} for path, reason in errors],
            }
        )
    else:
        if not definitions:
            console.print("[dim]No flag definitions found.[/dim]")
        for definition in definitions:
            _render_definition(definition, cfg.root)
        total = sum(len(d.flags) for d in definitions)
        console.print(f"[bold]{total}[/] flag(s) in [bold]{len(definitions)}[/] definition(s)")
        for path, reason in errors:
            typer.echo(f"error: {rel_display_path(path, cfg.root)}: {reason}", err=True)

    if errors:
        raise typer.Exit(code=1)


def main_entry() -> None:
    """Run the scan CLI app."""
    app()


if __name__ == "__main__":
    main_entry()
