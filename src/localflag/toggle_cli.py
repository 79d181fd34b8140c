"""toggle_cli.py – Flip a boolean flag's default value in its source file.

Scans the project, resolves NAME to exactly one boolean flag, rewrites the
literal on the flag's line and reports the change.

Usage:
    localflag toggle darkMode
    localflag toggle darkMode --file src/flags.ts
    localflag toggle darkMode --dry-run --json
"""

from pathlib import Path

import typer

from localflag.cli import (
    JsonOption,
    RootOption,
    build_registry,
    error_exit,
    get_config,
    json_print,
    rel_display_path,
)
from localflag.models import DetectedFlag
from localflag.mutator import FlagWriteError, apply_toggle, plan_toggle
from localflag.registry import FlagRegistry

_EPILOG = """\
[bold]Examples:[/bold]

localflag toggle darkMode                       Flip darkMode (true <-> false)

localflag toggle darkMode --file src/flags.ts   Pick the flag declared in one file

localflag toggle darkMode --line 12             Pick the flag declared on line 12

localflag toggle darkMode --dry-run             Show the rewritten line only

[dim]Only boolean flags can be toggled.  Only the flag's own line is rewritten;
the rest of the file is left byte-for-byte intact.[/dim]"""

app = typer.Typer(
    help="Toggle a boolean flag's default value in place.",
    rich_markup_mode="rich",
    epilog=_EPILOG,
)


def resolve_flag(
    registry: FlagRegistry,
    name: str,
    file_path: str | None = None,
    line: int | None = None,
    *,
    json_mode: bool = False,
) -> DetectedFlag:
    """Pick the single flag NAME refers to, exiting with a message otherwise."""
    candidates = registry.find_flags(name, file_path)
    if line is not None:
        candidates = [f for f in candidates if f.location.line == line]
    if not candidates:
        error_exit(f"Flag not found: {name}", json_mode=json_mode)
    if len(candidates) > 1:
        places = ", ".join(
            f"{rel_display_path(f.location.file_path, registry.root)}:{f.location.line}"
            for f in candidates
        )
        error_exit(
            f"Flag {name} is defined {len(candidates)} times ({places}); "
            "narrow it down with --file or --line",
            json_mode=json_mode,
        )
    flag = candidates[0]
    if not flag.is_boolean:
        error_exit(
            f"Only boolean flags can be toggled ({name} is a {flag.type.value})",
            json_mode=json_mode,
        )
    return flag


@app.callback(invoke_without_command=True)
def main(
    name: str = typer.Argument(..., help="Flag name as written in the definition."),
    file: str | None = typer.Option(None, "--file", "-f", help="Only consider this file."),
    line: int | None = typer.Option(None, "--line", "-l", help="Only consider this line."),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show what would change without writing"),
    json_output: bool = JsonOption,
    root: str | None = RootOption,
) -> None:
    """Toggle a boolean flag's default value in place."""
    cfg = get_config(root, json_mode=json_output)
    registry = build_registry(cfg)
    registry.refresh()

    file_path = str(Path(file).resolve()) if file else None
    flag = resolve_flag(registry, name, file_path, line, json_mode=json_output)
    location = f"{rel_display_path(flag.location.file_path, cfg.root)}:{flag.location.line}"

    plan = plan_toggle(flag)
    if plan is None:
        error_exit(f"Failed to toggle flag: {name}", json_mode=json_output)

    if not dry_run:
        try:
            apply_toggle(plan)
        except FlagWriteError as exc:
            error_exit(f"Failed to toggle flag: {name} ({exc.reason})", json_mode=json_output)

    if json_output:
        json_print(
            {
                "name": name,
                "file_path": flag.location.file_path,
                "line": plan.line,
                "old_value": plan.old_literal,
                "new_value": plan.new_literal,
                "old_line": plan.old_line,
                "new_line": plan.new_line,
                "action": "would_update" if dry_run else "updated",
            }
        )
        return

    verb = "Would toggle" if dry_run else "Toggled"
    typer.echo(f"{verb} {name}: {plan.old_literal} -> {plan.new_literal} ({location})")
    if dry_run:
        typer.echo(f"  - {plan.old_line.strip()}")
        typer.echo(f"  + {plan.new_line.strip()}")


def main_entry() -> None:
    """Run the toggle CLI app."""
    app()


if __name__ == "__main__":
    main_entry()
