"""flags.py – Flattened list of every detected flag across all definitions.

Flags are listed in file order, then property order.  Names are not merged:
the same flag name declared in two files (or two definitions) shows up twice.

Usage:
    localflag flags
    localflag flags --type boolean
    localflag flags --name darkMode --json
"""

from enum import Enum

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
from localflag.models import DetectedFlag, format_value

app = typer.Typer(
    help="List every detected flag (flattened, duplicates kept).",
    rich_markup_mode="rich",
)

console = Console()


class TypeFilter(str, Enum):
    boolean = "boolean"
    string = "string"
    number = "number"


def select_flags(
    flags: list[DetectedFlag],
    type_filter: str | None = None,
    name: str | None = None,
) -> list[DetectedFlag]:
    """Filter *flags* by type and/or exact name, keeping order."""
    selected = flags
    if type_filter is not None:
        selected = [f for f in selected if f.type.value == type_filter]
    if name is not None:
        selected = [f for f in selected if f.name == name]
    return selected


@app.callback(invoke_without_command=True)
def main(
    type_filter: TypeFilter | None = typer.Option(
        None, "--type", help="Only flags of this type."
    ),
    name: str | None = typer.Option(None, "--name", "-n", help="Only flags with this name."),
    json_output: bool = JsonOption,
    root: str | None = RootOption,
) -> None:
    """List every detected flag (flattened, duplicates kept)."""
    cfg = get_config(root, json_mode=json_output)
    registry = build_registry(cfg)
    registry.refresh()

    flags = select_flags(
        registry.get_all_flags(),
        type_filter.value if type_filter is not None else None,
        name,
    )

    if json_output:
        json_print([f.to_dict() for f in flags])
        return

    if not flags:
        console.print("[dim]No flags found.[/dim]")
        return

    tbl = Table(header_style="bold")
    tbl.add_column("Flag")
    tbl.add_column("Type")
    tbl.add_column("Value")
    tbl.add_column("Location", style="dim")
    tbl.add_column("Description", style="dim")
    for flag in flags:
        loc = flag.location
        tbl.add_row(
            Text(flag.name),
            flag.type.value,
            Text(format_value(flag.value)),
            Text(f"{rel_display_path(loc.file_path, cfg.root)}:{loc.line}:{loc.column}"),
            Text(flag.description or ""),
        )
    console.print(tbl)


def main_entry() -> None:
    """Run the flags CLI app."""
    app()


if __name__ == "__main__":
    main_entry()
