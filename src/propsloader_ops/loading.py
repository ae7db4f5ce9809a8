"""File-level loading of properties documents.

Config directory layout: a top-level ``config`` directory followed by its
immediate, non-hidden subdirectories in name order, e.g.::

    config/jdbc.xml
    config/10-localhost/jdbc.xml
    config/20-overrides-dev/jdbc.properties
    config/30-common/jdbc.xml

Every copy of a file that exists is concatenated in that order, so later
directories override earlier ones unless they use ``<default>``. An ``.xml``
name falls back to the ``.properties`` sibling when the XML file is missing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional

from propsloader_core.decryption import Decryptor
from propsloader_core.document import (
    PROPERTIES_FORMAT,
    XML_FORMAT,
    Document,
    compile_document,
    concat,
)
from propsloader_core.errors import LoadError
from propsloader_core.store import PropertyStore

logger = logging.getLogger(__name__)


@dataclass
class LoadedFile:
    """A file evaluated into its own store by ``load_chain``."""

    path: Path
    store: PropertyStore


def parse_file(path: Path, decryptor: Optional[Decryptor] = None) -> Document:
    """Parse an ``.xml`` document or a regular ``.properties`` file."""
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise LoadError(f"Failed to read {path}: {e}", path) from e
    fmt = XML_FORMAT if path.suffix.lower() == ".xml" else PROPERTIES_FORMAT
    logger.debug("Compiling %s as %s", path, fmt)
    return compile_document(data, source=str(path), format=fmt, decryptor=decryptor)


def ordered_config_dirs(config_dir: Path) -> List[Path]:
    """``config_dir`` followed by its visible subdirectories sorted by name."""
    config_dir = Path(config_dir)
    if not config_dir.is_dir():
        raise LoadError(f"Config directory not found: {config_dir}", config_dir)
    subdirs = sorted(
        p for p in config_dir.iterdir() if p.is_dir() and not p.name.startswith(".")
    )
    return [config_dir] + subdirs


def _resolve_candidate(path: Path) -> Optional[Path]:
    # prefer .xml, but use the .properties variant if only that one exists
    if not path.exists() and path.suffix == ".xml":
        path = path.with_suffix(".properties")
    return path if path.exists() else None


def locate_config_files(config_dir: Path, file_name: str) -> List[Path]:
    found = []
    for directory in ordered_config_dirs(config_dir):
        candidate = _resolve_candidate(directory / file_name)
        if candidate is not None:
            found.append(candidate)
    return found


def parse_config_templates(
    config_dir: Path, file_name: str, decryptor: Optional[Decryptor] = None
) -> Document:
    """Locate every copy of ``file_name`` and concatenate them into one document."""
    paths = locate_config_files(config_dir, file_name)
    if not paths:
        dirs = [str(d) for d in ordered_config_dirs(config_dir)]
        raise LoadError(
            f"Unable to find {file_name} in the configuration directories: {dirs}",
            Path(config_dir) / file_name,
        )
    documents = []
    for path in paths:
        logger.info("Loading properties from %s", path)
        documents.append(parse_file(path))
    return concat(documents, decryptor=decryptor)


def load_config_files(
    config_dir: Path,
    file_name: str,
    store: PropertyStore,
    decryptor: Optional[Decryptor] = None,
) -> PropertyStore:
    return parse_config_templates(config_dir, file_name, decryptor).evaluate(store)


def load_chain(
    paths: Iterable[Path],
    parent: Optional[PropertyStore] = None,
    decryptor: Optional[Decryptor] = None,
) -> List[LoadedFile]:
    """Evaluate each file into a new store whose parent is the previous file's store."""
    loaded: List[LoadedFile] = []
    for path in paths:
        path = Path(path)
        store = PropertyStore(parent=parent)
        parse_file(path, decryptor).evaluate(store)
        loaded.append(LoadedFile(path=path, store=store))
        parent = store
    return loaded
