"""Loader settings read from an optional ``.propsloader.toml`` file.

Example::

    config_dir = "config"
    files = ["env.xml", "jdbc.xml"]
    mask_keys = ["password", "secret", "token"]
    inherit_environment = false
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from propsloader_core.errors import LoadError

from .environment import DEFAULT_MASK_KEYS

# Conditional TOML import: stdlib tomllib (3.11+) or fallback tomli (<3.11)
try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib  # type: ignore

logger = logging.getLogger(__name__)

SETTINGS_FILE_NAME = ".propsloader.toml"


class LoaderSettings(BaseModel):
    """Settings shared by the ops helpers and the CLI."""

    config_dir: Optional[Path] = Field(
        default=None, description="Directory holding config files and ordered subdirectories"
    )
    files: List[str] = Field(default_factory=list, description="Files evaluated in chain order")
    mask_keys: List[str] = Field(
        default_factory=lambda: list(DEFAULT_MASK_KEYS),
        description="Key substrings whose values are masked on output",
    )
    inherit_environment: bool = Field(
        default=False, description="Use the process environment as the root parent store"
    )

    model_config = ConfigDict(extra="forbid")

    @field_validator("mask_keys")
    @classmethod
    def _non_empty_markers(cls, v: List[str]) -> List[str]:
        if any(not marker.strip() for marker in v):
            raise ValueError("mask_keys entries cannot be empty")
        return v

    def resolve_config_dir(self, base: Path) -> Optional[Path]:
        if self.config_dir is None:
            return None
        if self.config_dir.is_absolute():
            return self.config_dir
        return base / self.config_dir


def _read_toml_optional(path: Path) -> Dict[str, Any]:
    """Read a TOML file; return {} if not found."""
    if not path.exists():
        return {}
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise LoadError(f"Failed to load TOML from {path}: {e}", path) from e


def load_settings(path: Optional[Path] = None, start: Optional[Path] = None) -> LoaderSettings:
    """Load settings from ``path``, or from ``.propsloader.toml`` in ``start`` (cwd)."""
    if path is None:
        path = (start or Path.cwd()) / SETTINGS_FILE_NAME
    data = _read_toml_optional(Path(path))
    if not data:
        return LoaderSettings()
    logger.debug("Loaded settings from %s", path)
    try:
        return LoaderSettings(**data)
    except ValidationError as e:
        raise LoadError(f"Invalid settings in {path}: {e}", path) from e
