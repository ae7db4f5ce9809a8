"""Decryptor capability consumed by encrypted assignments.

Encryption itself is out of scope; callers supply an object implementing
``Decryptor`` to ``compile_document`` or ``Document.evaluate``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from .errors import DecryptionFailure, MissingDecryptorError


class Decryptor(Protocol):
    """Reverses the encryption applied to a stored value."""

    def decrypt(self, key: str, ciphertext: str) -> str:
        ...


@dataclass(frozen=True)
class CallableDecryptor:
    """Adapts a plain ``(key, ciphertext) -> plaintext`` function."""

    func: Callable[[str, str], str]

    def decrypt(self, key: str, ciphertext: str) -> str:
        return self.func(key, ciphertext)


def decrypt_value(decryptor: Optional[Decryptor], key: str, ciphertext: str) -> str:
    if decryptor is None:
        raise MissingDecryptorError(key)
    try:
        return decryptor.decrypt(key, ciphertext)
    except Exception as e:
        raise DecryptionFailure(key, e) from e
