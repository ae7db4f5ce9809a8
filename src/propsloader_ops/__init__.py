"""
propsloader_ops - File-level operations on properties documents.

CLI commands delegate to these functions.

Modules:
    loading: parse files, ordered config directories, chained loading
    environment: env.* properties, masking, logging and prefix-based environment extension
    settings: optional .propsloader.toml settings
"""

from .loading import (
    LoadedFile,
    load_chain,
    load_config_files,
    locate_config_files,
    ordered_config_dirs,
    parse_config_templates,
    parse_file,
)
from .environment import (
    DEFAULT_MASK_KEYS,
    ENV_PREFIX,
    environment_properties,
    extend_environment,
    log_properties,
    mask_value,
    masked_items,
)
from .settings import LoaderSettings, load_settings

__all__ = [
    "LoadedFile",
    "load_chain",
    "load_config_files",
    "locate_config_files",
    "ordered_config_dirs",
    "parse_config_templates",
    "parse_file",
    "DEFAULT_MASK_KEYS",
    "ENV_PREFIX",
    "environment_properties",
    "extend_environment",
    "log_properties",
    "mask_value",
    "masked_items",
    "LoaderSettings",
    "load_settings",
]
