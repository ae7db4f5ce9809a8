from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional

import typer
from rich.logging import RichHandler

from propsloader_core.store import PropertyStore
from propsloader_ops.environment import environment_properties
from propsloader_ops.settings import LoaderSettings, load_settings

# Settings resolved by the app callback
_global_settings: Optional[LoaderSettings] = None


def set_global_settings(settings: LoaderSettings) -> None:
    global _global_settings
    _global_settings = settings


def get_global_settings() -> LoaderSettings:
    """Settings from --settings or .propsloader.toml, loaded lazily."""
    global _global_settings
    if _global_settings is None:
        _global_settings = load_settings()
    return _global_settings


def configure_stdio() -> None:
    """Replace unencodable characters instead of crashing on non-UTF8 Windows consoles."""

    if os.name != "nt":
        return

    for stream in (sys.stdout, sys.stderr):
        reconfigure = getattr(stream, "reconfigure", None)
        if reconfigure is not None:
            reconfigure(errors="replace")


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(show_path=False, rich_tracebacks=False)],
        force=True,
    )


def parse_assignments(values: Optional[List[str]]) -> Dict[str, str]:
    """Parse repeated ``--set key=value`` options."""
    result: Dict[str, str] = {}
    for item in values or []:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Expected key=value, got {item!r}", param_hint="--set")
        result[key] = value
    return result


def root_store(inherit_environment: bool, seeds: Dict[str, str]) -> Optional[PropertyStore]:
    """Root parent for evaluation: ``env.*`` process environment and/or --set values."""
    store: Optional[PropertyStore] = None
    if inherit_environment:
        store = environment_properties()
    if seeds:
        store = PropertyStore(seeds, parent=store)
    return store


def resolve_files(files: Optional[List[Path]], settings: LoaderSettings) -> List[Path]:
    if files:
        return files
    config_dir = settings.resolve_config_dir(Path.cwd()) or Path.cwd()
    return [config_dir / name for name in settings.files]
