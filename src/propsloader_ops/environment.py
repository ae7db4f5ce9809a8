"""Helpers for publishing and logging resolved properties."""

from __future__ import annotations

import logging
import os
import socket
from typing import Iterable, List, Mapping, Optional, Tuple

from propsloader_core.store import PropertyStore

DEFAULT_MASK_KEYS: Tuple[str, ...] = ("password", "secret")
ENV_PREFIX = "env."


def mask_value(key: str, value: str, mask_keys: Iterable[str] = DEFAULT_MASK_KEYS) -> str:
    """Obscure secrets, keeping one '*' per character so length bugs stay visible."""
    lowered = key.lower()
    if any(marker.lower() in lowered for marker in mask_keys):
        return "*" * len(value)
    return value


def masked_items(
    store: PropertyStore, mask_keys: Iterable[str] = DEFAULT_MASK_KEYS
) -> List[Tuple[str, str]]:
    """Local entries of ``store`` sorted by key, with secrets masked."""
    mask_keys = tuple(mask_keys)
    return [(key, mask_value(key, value, mask_keys)) for key, value in sorted(store.items())]


def log_properties(
    title: str,
    store: PropertyStore,
    log: Optional[logging.Logger] = None,
    mask_keys: Iterable[str] = DEFAULT_MASK_KEYS,
) -> None:
    log = log or logging.getLogger(__name__)
    if not log.isEnabledFor(logging.INFO):
        return
    log.info(title)
    for key, value in masked_items(store, mask_keys):
        log.info(" %s = %s", key, value)


def extend_environment(
    environment: PropertyStore, store: PropertyStore, key_prefix: str
) -> int:
    """Copy entries whose key starts with ``key_prefix + "."`` into ``environment``.

    Returns the number of copied entries.
    """
    prefix = key_prefix + "."
    copied = 0
    for key, value in store.items():
        if key.startswith(prefix):
            environment.put(key, value)
            copied += 1
    log_properties(f"{key_prefix} properties :", store)
    return copied


def environment_properties(
    environ: Optional[Mapping[str, str]] = None, hostname: Optional[str] = None
) -> PropertyStore:
    """Process environment published as ``env.<NAME>`` properties.

    ``env.HOSTNAME`` is always present; a ``HOSTNAME`` variable takes precedence
    over the resolved host name.
    """
    environ = os.environ if environ is None else environ
    store = PropertyStore({ENV_PREFIX + "HOSTNAME": hostname or socket.gethostname()})
    for name, value in environ.items():
        store.put(ENV_PREFIX + name, value)
    return store
