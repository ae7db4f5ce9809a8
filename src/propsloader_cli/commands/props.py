"""
props.py - Evaluate, check and resolve properties documents.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from propsloader_core.errors import LoadError, ParseError, PropsLoaderError
from propsloader_core.store import PropertyStore
from propsloader_ops.environment import masked_items
from propsloader_ops.loading import load_chain, load_config_files, parse_file

from ..util import get_global_settings, parse_assignments, resolve_files, root_store

app = typer.Typer()
console = Console()

EXIT_EVALUATION_ERROR = 1
EXIT_PARSE_ERROR = 2
OUTPUT_FORMATS = ("plain", "json", "table")


@dataclass
class CheckOutcome:
    path: Path
    ok: bool
    statements: int = 0
    error: Optional[str] = None


def _exit_for(error: PropsLoaderError) -> typer.Exit:
    typer.echo(f"Error: {error}", err=True)
    if isinstance(error, (ParseError, LoadError)):
        return typer.Exit(code=EXIT_PARSE_ERROR)
    return typer.Exit(code=EXIT_EVALUATION_ERROR)


def _check_format(output_format: str) -> None:
    if output_format not in OUTPUT_FORMATS:
        raise typer.BadParameter(
            f"{output_format!r} is not one of: {', '.join(OUTPUT_FORMATS)}", param_hint="--format"
        )


def _print_store(title: str, store: PropertyStore, output_format: str, mask_keys: List[str]) -> None:
    items = masked_items(store, mask_keys)
    if output_format == "table":
        table = Table(title=title, show_header=True)
        table.add_column("Key", style="bold")
        table.add_column("Value")
        for key, value in items:
            table.add_row(key, value)
        console.print(table)
    else:
        typer.echo(f"{title}:")
        for key, value in items:
            typer.echo(f" {key} = {value}")


@app.command()
def show(
    files: Optional[List[Path]] = typer.Argument(
        None, help="Documents evaluated in order; each inherits from the previous one"
    ),
    set_values: Optional[List[str]] = typer.Option(
        None, "--set", help="Seed property key=value (repeatable)"
    ),
    env: Optional[bool] = typer.Option(
        None, "--env/--no-env", help="Inherit the process environment as root properties"
    ),
    output_format: str = typer.Option("plain", "--format", "-f", help="plain|json|table"),
) -> None:
    """Evaluate documents and print each one's own properties (secrets masked)."""
    _check_format(output_format)
    settings = get_global_settings()
    paths = resolve_files(files, settings)
    if not paths:
        typer.echo("Error: no files given and none configured in settings", err=True)
        raise typer.Exit(code=EXIT_PARSE_ERROR)

    inherit = settings.inherit_environment if env is None else env
    parent = root_store(inherit, parse_assignments(set_values))
    try:
        loaded = load_chain(paths, parent=parent)
    except PropsLoaderError as e:
        raise _exit_for(e)

    if output_format == "json":
        data = {str(f.path): dict(masked_items(f.store, settings.mask_keys)) for f in loaded}
        typer.echo(json.dumps(data, indent=2, ensure_ascii=False))
        return
    for f in loaded:
        _print_store(str(f.path), f.store, output_format, settings.mask_keys)


@app.command()
def check(
    files: List[Path] = typer.Argument(..., help="Documents to compile"),
) -> None:
    """Compile documents without evaluating them."""
    outcomes: List[CheckOutcome] = []
    for path in files:
        try:
            document = parse_file(path)
            outcomes.append(CheckOutcome(path=path, ok=True, statements=len(document.block)))
        except (ParseError, LoadError) as e:
            outcomes.append(CheckOutcome(path=path, ok=False, error=str(e)))

    for outcome in outcomes:
        if outcome.ok:
            typer.echo(f"OK: {outcome.path} ({outcome.statements} statement(s))")
        else:
            typer.echo(f"FAIL: {outcome.error}", err=True)
    if not all(o.ok for o in outcomes):
        raise typer.Exit(code=EXIT_PARSE_ERROR)


@app.command()
def resolve(
    file_name: str = typer.Argument(..., help="Config file name, e.g. jdbc.xml"),
    config_dir: Optional[Path] = typer.Option(
        None, "--config-dir", help="Config directory (defaults to settings, then ./config)"
    ),
    set_values: Optional[List[str]] = typer.Option(
        None, "--set", help="Seed property key=value (repeatable)"
    ),
    output_format: str = typer.Option("plain", "--format", "-f", help="plain|json|table"),
) -> None:
    """Merge every copy of FILE_NAME found in the ordered config directories."""
    _check_format(output_format)
    settings = get_global_settings()
    directory = config_dir or settings.resolve_config_dir(Path.cwd()) or Path("config")
    store = PropertyStore(parent=root_store(settings.inherit_environment, parse_assignments(set_values)))
    try:
        load_config_files(directory, file_name, store)
    except PropsLoaderError as e:
        raise _exit_for(e)

    if output_format == "json":
        typer.echo(json.dumps(dict(masked_items(store, settings.mask_keys)), indent=2, ensure_ascii=False))
        return
    _print_store(file_name, store, output_format, settings.mask_keys)
