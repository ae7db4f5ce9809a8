from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from propsloader_core import __version__
from propsloader_core.errors import LoadError

from .util import configure_logging, configure_stdio, set_global_settings

app = typer.Typer(help="propsloader: evaluate templated properties documents")


def _print_version(value: bool) -> None:
    if value:
        typer.echo(f"propsloader {__version__}")
        raise typer.Exit()


@app.callback()
def _init(
    settings_file: Optional[Path] = typer.Option(
        None,
        "--settings",
        help="Path to settings file (default: ./.propsloader.toml)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    version: bool = typer.Option(
        False, "--version", callback=_print_version, is_eager=True, help="Show version and exit"
    ),
):
    configure_stdio()
    configure_logging(verbose)

    from propsloader_ops.settings import load_settings

    try:
        set_global_settings(load_settings(settings_file))
    except LoadError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=2)


from .commands import props as props_cmd  # noqa: E402

app.command(name="show")(props_cmd.show)
app.command(name="check")(props_cmd.check)
app.command(name="resolve")(props_cmd.resolve)


def main():
    app()
