"""Evaluation semantics for the properties AST.

Dispatch is exhaustive over the closed node families in ``nodes``; an
unrecognized node is a programming error and raises ``TypeError``. The
evaluator keeps no state of its own, so a tree can be evaluated from several
threads as long as each evaluation uses its own store.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

from .decryption import Decryptor, decrypt_value
from .errors import ConfigurationError
from .nodes import (
    Assignment,
    Block,
    Choose,
    Equals,
    ErrorStatement,
    Expression,
    Literal,
    Matches,
    MatchPattern,
    Not,
    Statement,
    Table,
    TemplateExpr,
    Test,
    Truthiness,
    split_selector,
)
from .store import PropertyStore

logger = logging.getLogger(__name__)

_FALSE_VALUES = ("", "0")


def evaluate_expression(expr: Expression, store: PropertyStore) -> str:
    if isinstance(expr, TemplateExpr):
        return expr.template.expand(store)
    if isinstance(expr, Literal):
        return expr.value
    raise TypeError(f"Unknown expression node: {type(expr).__name__}")


def is_truthy(value: str) -> bool:
    value = value.strip()
    return value not in _FALSE_VALUES and value.lower() != "false"


def equals_ignore_case(a: str, b: str) -> bool:
    """Character-wise comparison; one character never matches a multi-character folding."""
    if len(a) != len(b):
        return False
    return all(
        x == y or x.upper() == y.upper() or x.lower() == y.lower() for x, y in zip(a, b)
    )


def evaluate_test(test: Test, store: PropertyStore) -> bool:
    if isinstance(test, Truthiness):
        return is_truthy(_lookup(test.key, store))
    if isinstance(test, Equals):
        actual = _lookup(test.key, store)
        expected = evaluate_expression(test.value, store)
        if test.case_sensitive:
            return actual == expected
        return equals_ignore_case(actual, expected)
    if isinstance(test, Matches):
        return test.pattern.fullmatch(_lookup(test.key, store)) is not None
    if isinstance(test, Not):
        return not evaluate_test(test.test, store)
    raise TypeError(f"Unknown test node: {type(test).__name__}")


def execute(
    stmt: Statement, store: PropertyStore, decryptor: Optional[Decryptor] = None
) -> None:
    """Execute ``stmt`` against ``store``.

    Errors propagate immediately; changes already made to ``store`` are kept.
    """
    if isinstance(stmt, Assignment):
        _assign(stmt, store, decryptor)
    elif isinstance(stmt, Block):
        for child in stmt.statements:
            execute(child, store, decryptor)
    elif isinstance(stmt, Choose):
        selected = stmt.otherwise
        for when in stmt.whens:
            if evaluate_test(when.test, store):
                selected = when.body
                break
        if selected is not None:
            execute(selected, store, decryptor)
    elif isinstance(stmt, Table):
        selector = split_selector(evaluate_expression(stmt.selector, store), stmt.separator)
        selected = stmt.nomatch
        for entry in stmt.entries:
            if entry.pattern.fullmatch(selector) is not None:
                selected = entry.body
                break
        if selected is not None:
            execute(selected, store, decryptor)
    elif isinstance(stmt, MatchPattern):
        _match_pattern(stmt, store, decryptor)
    elif isinstance(stmt, ErrorStatement):
        message = evaluate_expression(stmt.message, store)
        logger.debug("Configuration error raised by document: %s", message)
        raise ConfigurationError(message)
    else:
        raise TypeError(f"Unknown statement node: {type(stmt).__name__}")


def _lookup(key: Expression, store: PropertyStore) -> str:
    return store.get(evaluate_expression(key, store)) or ""


def _assign(stmt: Assignment, store: PropertyStore, decryptor: Optional[Decryptor]) -> None:
    key = evaluate_expression(stmt.key, store)
    value = store.get(key) or ""
    if not stmt.default_only or value == "":
        value = evaluate_expression(stmt.value, store)
        if stmt.encrypted:
            value = decrypt_value(decryptor, key, value)
    # written locally even when a default leaves the inherited value unchanged
    store.put(key, value)


def _match_pattern(
    stmt: MatchPattern, store: PropertyStore, decryptor: Optional[Decryptor]
) -> None:
    match = stmt.pattern.fullmatch(evaluate_expression(stmt.value, store))
    if match is None:
        return

    # ${0}, ${1}, ... share the namespace with ordinary keys; save and restore them.
    saved: Dict[str, Optional[str]] = {}
    for index in range(stmt.pattern.groups + 1):
        key = str(index)
        group = match.group(index)
        if group is not None:
            saved[key] = store.put(key, group)
        else:
            saved[key] = store.remove(key)
    try:
        execute(stmt.body, store, decryptor)
    finally:
        for key, old in saved.items():
            if old is not None:
                store.put(key, old)
            else:
                store.remove(key)
