from pathlib import Path
from typing import Dict, Optional

import pytest
from hypothesis import settings

from propsloader_core.store import PropertyStore

# Prevent Hypothesis from writing a local example database (e.g. `.hypothesis/`) during tests.
settings.register_profile("propsloader-tests", database=None)
settings.load_profile("propsloader-tests")


def write_config_tree(config_dir: Path, files: Dict[str, str]) -> Path:
    """Write ``{relative_path: content}`` under ``config_dir`` for tests.

    Args:
        config_dir: Directory that plays the role of ``<home>/config``.
        files: Mapping of relative path (e.g. ``"10-local/jdbc.xml"``) -> content.

    Returns:
        ``config_dir``
    """
    for rel, content in files.items():
        path = config_dir / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return config_dir


def props_xml(body: str) -> str:
    return f'<?xml version="1.0" encoding="UTF-8"?>\n<properties>\n{body}\n</properties>\n'


@pytest.fixture
def store() -> PropertyStore:
    return PropertyStore()


class RecordingDecryptor:
    """Decryptor double that reverses the ciphertext and records calls."""

    def __init__(self, fail_on: Optional[str] = None) -> None:
        self.calls = []
        self.fail_on = fail_on

    def decrypt(self, key: str, ciphertext: str) -> str:
        self.calls.append((key, ciphertext))
        if key == self.fail_on:
            raise RuntimeError("bad key material")
        return ciphertext[::-1]
