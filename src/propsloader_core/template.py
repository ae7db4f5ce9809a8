"""
Template compiler for ``${name}`` string templates.

A template string such as ``"abc${def}ghi${jkl}mno"`` compiles into interleaved
literals and variable names::

    Template(literals=("abc", "ghi", "mno"), variables=("def", "jkl"))
    Template(literals=("", "", ""), variables=("abc", "def"))   # "${abc}${def}"

Backslash escapes: ``\\t``, ``\\r``, ``\\n`` and ``\\f`` map to control
characters, any other escaped character is copied through literally. An
escaped ``$`` never begins a variable reference.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

from .errors import TemplateSyntaxError
from .store import PropertyStore

_ESCAPES = {"t": "\t", "r": "\r", "n": "\n", "f": "\f"}


@dataclass(frozen=True)
class Template:
    """Compiled template. Invariant: ``len(literals) == len(variables) + 1``."""

    literals: Tuple[str, ...]
    variables: Tuple[str, ...]

    def __post_init__(self) -> None:
        if len(self.literals) != len(self.variables) + 1:
            raise ValueError("Template requires exactly one more literal than variables")

    @property
    def is_constant(self) -> bool:
        return not self.variables

    def expand(self, store: PropertyStore) -> str:
        """Expand against ``store``; undefined variables expand to ``""``."""
        if not self.variables:
            return self.literals[0]
        parts: List[str] = []
        for literal, name in zip(self.literals, self.variables):
            parts.append(literal)
            parts.append(store.get(name) or "")
        parts.append(self.literals[-1])
        return "".join(parts)

    def __str__(self) -> str:
        out = [_escape(self.literals[0])]
        for name, literal in zip(self.variables, self.literals[1:]):
            out.append("${" + _escape(name).replace("}", "\\}") + "}")
            out.append(_escape(literal))
        return "".join(out)


def _escape(text: str) -> str:
    text = text.replace("\\", "\\\\").replace("$", "\\$")
    for letter, char in _ESCAPES.items():
        text = text.replace(char, "\\" + letter)
    return text


def _read_until(text: str, pos: int, delim: str, out: List[str]) -> Tuple[int, bool]:
    """Append unescaped characters from ``pos`` up to ``delim``.

    Returns the index of the delimiter (or ``len(text)``) and whether it was found.
    """
    length = len(text)
    while pos < length:
        ch = text[pos]
        if ch == delim:
            return pos, True
        if ch == "\\":
            pos += 1
            if pos == length:
                raise TemplateSyntaxError("Template with trailing unescaped backslash", text)
            ch = text[pos]
            ch = _ESCAPES.get(ch, ch)
        out.append(ch)
        pos += 1
    return pos, False


def compile_template(text: str) -> Template:
    """Compile a raw string into a ``Template``."""
    literals: List[str] = []
    variables: List[str] = []
    buf: List[str] = []
    pos = 0
    length = len(text)
    while pos < length:
        pos, found = _read_until(text, pos, "$", buf)
        if not found:
            break
        pos += 1  # consume '$'
        if pos < length and text[pos] == "{":
            pos += 1  # consume '{'
            name: List[str] = []
            pos, found = _read_until(text, pos, "}", name)
            if not found:
                raise TemplateSyntaxError(
                    "Unclosed variable expansion after '${', expected '}'", text
                )
            pos += 1  # consume '}'
            literals.append("".join(buf))
            variables.append("".join(name))
            buf = []
        else:
            buf.append("$")
    literals.append("".join(buf))
    return Template(tuple(literals), tuple(variables))
