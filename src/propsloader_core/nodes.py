"""
Abstract syntax tree for properties documents.

Three closed families of immutable nodes:

- Statements mutate a ``PropertyStore``: ``Assignment``, ``Block``, ``Choose``,
  ``Table``, ``MatchPattern``, ``ErrorStatement``.
- Expressions evaluate to a string: ``TemplateExpr``, ``Literal``.
- Tests evaluate to a boolean: ``Truthiness``, ``Equals``, ``Matches``, ``Not``.

Evaluation lives in ``propsloader_core.evaluator``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Pattern, Tuple, Union

from .template import Template


# Expressions


@dataclass(frozen=True)
class TemplateExpr:
    template: Template


@dataclass(frozen=True)
class Literal:
    value: str


Expression = Union[TemplateExpr, Literal]


# Tests


@dataclass(frozen=True)
class Truthiness:
    """False iff the trimmed value is empty, "0" or "false" (any case)."""

    key: Expression


@dataclass(frozen=True)
class Equals:
    key: Expression
    value: Expression
    case_sensitive: bool = False


@dataclass(frozen=True)
class Matches:
    key: Expression
    pattern: Pattern[str]


@dataclass(frozen=True)
class Not:
    test: "Test"


Test = Union[Truthiness, Equals, Matches, Not]


# Statements


@dataclass(frozen=True)
class Assignment:
    """``key = value``; with ``default_only`` the value is used only if the key is empty."""

    key: Expression
    value: Expression
    default_only: bool = False
    encrypted: bool = False


@dataclass(frozen=True)
class Block:
    statements: Tuple["Statement", ...] = ()

    def __len__(self) -> int:
        return len(self.statements)


@dataclass(frozen=True)
class When:
    test: Test
    body: "Statement"


@dataclass(frozen=True)
class Choose:
    """``if test1 then body1 else if test2 then body2 ... else otherwise``."""

    whens: Tuple[When, ...] = ()
    otherwise: Optional["Statement"] = None


@dataclass(frozen=True)
class TableEntry:
    pattern: Pattern[str]
    body: "Statement"


@dataclass(frozen=True)
class Table:
    """Dispatch on a multi-field selector; fields are delimited by ``separator``."""

    selector: Expression
    separator: Optional[str]
    entries: Tuple[TableEntry, ...] = ()
    nomatch: Optional["Statement"] = None


@dataclass(frozen=True)
class MatchPattern:
    """Binds ``${0}``, ``${1}``... to the regex groups while ``body`` executes."""

    value: Expression
    pattern: Pattern[str]
    body: Block


@dataclass(frozen=True)
class ErrorStatement:
    message: Expression


Statement = Union[Assignment, Block, Choose, Table, MatchPattern, ErrorStatement]


def compile_field_pattern(
    pattern: str, separator: Optional[str], case_sensitive: bool = False
) -> Pattern[str]:
    """Compile a table row pattern so a wildcard cannot cross a field boundary.

    Each field is wrapped in a group and fields are joined with ``\\n``, which
    is also what the separator becomes in the selector. A field consisting of
    exactly ``*`` expands to ``.*``.
    """
    fields = pattern.split(separator) if separator else [pattern]
    joined = "\n".join("(.*)" if field == "*" else f"({field})" for field in fields)
    flags = 0 if case_sensitive else re.IGNORECASE
    return re.compile(joined, flags)


def split_selector(selector: str, separator: Optional[str]) -> str:
    """Replace every separator occurrence with a newline."""
    if not separator:
        return selector
    return selector.replace(separator, "\n")
