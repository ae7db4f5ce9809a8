"""Compiled properties documents and the evaluation entry points."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Union

from .decryption import Decryptor
from .evaluator import execute
from .nodes import Block
from .parser import parse_properties, parse_xml
from .store import PropertyStore

logger = logging.getLogger(__name__)

XML_FORMAT = "xml"
PROPERTIES_FORMAT = "properties"


@dataclass(frozen=True)
class Document:
    """An immutable compiled document; evaluate it once per ``PropertyStore``."""

    block: Block
    source: Optional[str] = None
    decryptor: Optional[Decryptor] = None

    def evaluate(
        self, store: PropertyStore, decryptor: Optional[Decryptor] = None
    ) -> PropertyStore:
        """Populate ``store`` in place and return it.

        A ``decryptor`` passed here takes precedence over the one bound at
        compile time.
        """
        execute(self.block, store, decryptor if decryptor is not None else self.decryptor)
        return store

    def load(self, parent: Optional[PropertyStore] = None) -> PropertyStore:
        """Evaluate into a fresh store chained to ``parent``."""
        return self.evaluate(PropertyStore(parent=parent))


def compile_document(
    text: Union[str, bytes],
    *,
    source: Optional[str] = None,
    format: str = XML_FORMAT,
    decryptor: Optional[Decryptor] = None,
) -> Document:
    """Compile a document; raises ``ParseError`` or ``TemplateSyntaxError``."""
    if format == XML_FORMAT:
        block = parse_xml(text, source)
    elif format == PROPERTIES_FORMAT:
        if isinstance(text, bytes):
            text = text.decode("latin-1")
        block = parse_properties(text, source)
    else:
        raise ValueError(f"Unknown document format: {format!r}")
    return Document(block, source, decryptor)


def concat(documents: Iterable[Document], decryptor: Optional[Decryptor] = None) -> Document:
    """Concatenate documents into one whose block runs each root block in order."""
    documents = list(documents)
    if decryptor is None:
        decryptor = next((d.decryptor for d in documents if d.decryptor is not None), None)
    block = Block(tuple(d.block for d in documents))
    sources = [d.source for d in documents if d.source]
    logger.debug("Concatenated %d document(s)", len(documents))
    return Document(block, ", ".join(sources) or None, decryptor)
