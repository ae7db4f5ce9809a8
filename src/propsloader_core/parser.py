"""
Document parser: maps the properties XML grammar onto AST nodes.

Grammar (root ``<properties>``)::

    <!ELEMENT properties   (%STMT;)*>
    <!ENTITY % STMT "entry|default|if|unless|choose|entryTable|defaultTable|matchPattern|error|comment">
    <!ELEMENT entry        (#PCDATA)>       key #REQUIRED, value, encrypted
    <!ELEMENT default      (#PCDATA)>       key #REQUIRED, value, encrypted
    <!ELEMENT if|unless    (%STMT;)*>       key #REQUIRED, value | match, casesensitive, invert
    <!ELEMENT choose       ((when|unless)*, otherwise?)>
    <!ELEMENT entryTable   (match*, nomatch?)>  key, selector #REQUIRED, separator, casesensitive
    <!ELEMENT match        (#PCDATA)>       pattern #REQUIRED, value, encrypted
    <!ELEMENT nomatch      (#PCDATA)>       value, encrypted
    <!ELEMENT matchPattern (%STMT;)*>       value, match #REQUIRED, casesensitive
    <!ELEMENT error        (#PCDATA)>       message

The JDK ``properties.dtd`` format (``<entry key="...">value</entry>`` plus an
ignored ``<comment>``) is a subset of this grammar.

The legacy flat ``key=value`` format is handled by ``parse_properties``; its keys
and values are literals and never expanded.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Dict, Iterator, List, Optional, Pattern, Tuple, Union

from lxml import etree

from .errors import ParseError, TemplateSyntaxError
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
    TableEntry,
    TemplateExpr,
    Test,
    Truthiness,
    When,
    compile_field_pattern,
)
from .template import compile_template

logger = logging.getLogger(__name__)

ROOT_TAG = "properties"

_Element = etree._Element


def _to_bool(value: Optional[str]) -> bool:
    return value is not None and value.lower() == "true"


class _XmlParser:
    def __init__(self, source: Optional[str]) -> None:
        self.source = source
        self._statements: Dict[str, Callable[[_Element], Optional[Statement]]] = {
            "entry": lambda el: self._parse_entry(el, default_only=False),
            "default": lambda el: self._parse_entry(el, default_only=True),
            "if": lambda el: Choose((self._parse_when(el, invert=False),)),
            "unless": lambda el: Choose((self._parse_when(el, invert=True),)),
            "choose": self._parse_choose,
            "entryTable": lambda el: self._parse_table(el, default_only=False),
            "defaultTable": lambda el: self._parse_table(el, default_only=True),
            "matchPattern": self._parse_match_pattern,
            "error": self._parse_error,
            # JDK properties XML compatibility; ignored like the JDK does
            "comment": lambda el: None,
        }

    def parse(self, data: bytes) -> Block:
        xml_parser = etree.XMLParser(
            resolve_entities=False,
            no_network=True,
            load_dtd=False,
            remove_blank_text=False,
        )
        try:
            root = etree.fromstring(data, parser=xml_parser)
        except etree.XMLSyntaxError as e:
            line, column = e.position if e.position else (None, None)
            raise ParseError(e.msg or str(e), self.source, line, column) from None
        if root.tag != ROOT_TAG:
            raise self._error(root, f"Expected root element <{ROOT_TAG}>, found <{root.tag}>")
        return self._parse_block(root)

    # Structure helpers

    def _error(self, el: _Element, message: str) -> ParseError:
        return ParseError(message, self.source, el.sourceline)

    def _children(self, el: _Element) -> Iterator[_Element]:
        """Element children of a container; stray text is an error."""
        self._check_no_text(el, el.text)
        for child in el:
            if isinstance(child.tag, str):
                yield child
            self._check_no_text(el, child.tail)

    def _check_no_text(self, el: _Element, text: Optional[str]) -> None:
        if text and text.strip():
            raise self._error(el, f"<{el.tag}> tag may not contain text: {text.strip()!r}")

    def _text(self, el: _Element) -> str:
        """Text-only body of a leaf element, stripped."""
        parts = [el.text or ""]
        for child in el:
            if isinstance(child.tag, str):
                raise self._error(child, f"<{el.tag}> tag may not contain <{child.tag}>")
            parts.append(child.tail or "")
        return "".join(parts).strip()

    def _required(self, el: _Element, name: str) -> str:
        value = el.get(name)
        if value is None:
            raise self._error(el, f"<{el.tag}> tag without '{name}' attribute")
        return value

    def _attr_or_body(self, el: _Element, name: str) -> str:
        attr = el.get(name)
        body = self._text(el)
        if attr is not None and body:
            raise self._error(
                el, f"<{el.tag}> tag may not have both a {name} attribute and text in the body"
            )
        return attr if attr is not None else body

    def _template(self, el: _Element, text: str) -> Expression:
        try:
            return TemplateExpr(compile_template(text))
        except TemplateSyntaxError as e:
            raise TemplateSyntaxError(e.reason, e.template, self.source, el.sourceline) from None

    def _regex(self, el: _Element, pattern: str, case_sensitive: bool) -> Pattern[str]:
        try:
            return re.compile(pattern, 0 if case_sensitive else re.IGNORECASE)
        except re.error as e:
            raise self._error(el, f"Invalid regular expression {pattern!r}: {e}") from None

    # Statements

    def _parse_block(self, el: _Element) -> Block:
        statements: List[Statement] = []
        for child in self._children(el):
            handler = self._statements.get(child.tag)
            if handler is None:
                raise self._error(child, f"Unexpected tag: {child.tag}")
            stmt = handler(child)
            if stmt is not None:
                statements.append(stmt)
        return Block(tuple(statements))

    def _parse_entry(self, el: _Element, default_only: bool) -> Assignment:
        key = self._required(el, "key")
        encrypted = _to_bool(el.get("encrypted"))
        value = self._attr_or_body(el, "value")
        return Assignment(
            self._template(el, key), self._template(el, value), default_only, encrypted
        )

    def _parse_when(self, el: _Element, invert: bool) -> When:
        key = self._required(el, "key")
        value = el.get("value")
        match = el.get("match")
        if value is not None and match is not None:
            raise self._error(el, f"<{el.tag}> tag may not have both value and match attributes")
        case_sensitive = _to_bool(el.get("casesensitive"))
        invert ^= _to_bool(el.get("invert"))

        body = self._parse_block(el)

        key_expr = self._template(el, key)
        test: Test
        if value is not None:
            test = Equals(key_expr, self._template(el, value), case_sensitive)
        elif match is not None:
            test = Matches(key_expr, self._regex(el, match, case_sensitive))
        else:
            test = Truthiness(key_expr)
        if invert:
            test = Not(test)
        return When(test, body)

    def _parse_choose(self, el: _Element) -> Choose:
        whens: List[When] = []
        otherwise: Optional[Block] = None
        for child in self._children(el):
            if child.tag not in ("when", "unless", "otherwise"):
                raise self._error(child, "Expected one of <when>, <unless>, <otherwise>")
            if otherwise is not None:
                raise self._error(child, f"<otherwise> must be the last tag in <{el.tag}>")
            if child.tag == "otherwise":
                otherwise = self._parse_block(child)
            else:
                whens.append(self._parse_when(child, invert=child.tag == "unless"))
        return Choose(tuple(whens), otherwise)

    def _parse_table(self, el: _Element, default_only: bool) -> Table:
        key_expr = self._template(el, self._required(el, "key"))
        selector_expr = self._template(el, self._required(el, "selector"))
        # the separator delimits fields in both the selector and the <match> patterns
        separator = el.get("separator") or None
        case_sensitive = _to_bool(el.get("casesensitive"))

        entries: List[TableEntry] = []
        nomatch: Optional[Assignment] = None
        for child in self._children(el):
            if child.tag not in ("match", "nomatch"):
                raise self._error(child, "Expected one of <match>, <nomatch>")
            if nomatch is not None:
                raise self._error(child, f"<nomatch> must be the last tag in <{el.tag}>")
            pattern = self._required(child, "pattern") if child.tag == "match" else None
            encrypted = _to_bool(child.get("encrypted"))
            value_expr = self._template(child, self._attr_or_body(child, "value"))

            # a matching row is a regular assignment to the table's key
            stmt = Assignment(key_expr, value_expr, default_only, encrypted)
            if pattern is None:
                nomatch = stmt
                continue
            try:
                compiled = compile_field_pattern(pattern, separator, case_sensitive)
            except re.error as e:
                raise self._error(child, f"Invalid match pattern {pattern!r}: {e}") from None
            entries.append(TableEntry(compiled, stmt))
        return Table(selector_expr, separator, tuple(entries), nomatch)

    def _parse_match_pattern(self, el: _Element) -> MatchPattern:
        value = self._required(el, "value")
        match = self._required(el, "match")
        case_sensitive = _to_bool(el.get("casesensitive"))
        body = self._parse_block(el)
        return MatchPattern(
            self._template(el, value), self._regex(el, match, case_sensitive), body
        )

    def _parse_error(self, el: _Element) -> ErrorStatement:
        return ErrorStatement(self._template(el, self._attr_or_body(el, "message")))


def parse_xml(data: Union[str, bytes], source: Optional[str] = None) -> Block:
    """Parse an XML properties document into its root ``Block``."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    block = _XmlParser(source).parse(data)
    logger.debug("Parsed %d statement(s) from %s", len(block), source or "<string>")
    return block


# Legacy flat "key=value" format

_WHITESPACE = " \t\f"
# only CR, LF and CRLF end a line
_LINE_BREAK = re.compile(r"\r\n|\r|\n")
_PROPERTY_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}


def _continues(line: str) -> bool:
    trailing = len(line) - len(line.rstrip("\\"))
    return trailing % 2 == 1


def _logical_lines(text: str) -> Iterator[str]:
    lines = _LINE_BREAK.split(text)
    i = 0
    while i < len(lines):
        line = lines[i].lstrip(_WHITESPACE)
        i += 1
        if not line or line[0] in "#!":
            continue
        while _continues(line) and i < len(lines):
            line = line[:-1] + lines[i].lstrip(_WHITESPACE)
            i += 1
        if _continues(line):
            line = line[:-1]
        yield line


def _unescape(text: str, source: Optional[str]) -> str:
    out: List[str] = []
    i = 0
    while i < len(text):
        ch = text[i]
        i += 1
        if ch != "\\" or i == len(text):
            out.append(ch)
            continue
        ch = text[i]
        i += 1
        if ch == "u":
            digits = text[i : i + 4]
            if len(digits) != 4 or not all(c in "0123456789abcdefABCDEF" for c in digits):
                raise ParseError(f"Malformed \\uxxxx encoding: {text!r}", source)
            out.append(chr(int(digits, 16)))
            i += 4
        else:
            out.append(_PROPERTY_ESCAPES.get(ch, ch))
    return "".join(out)


def _split_entry(line: str) -> Tuple[str, str]:
    n = len(line)
    idx = 0
    has_separator = False
    while idx < n:
        ch = line[idx]
        if ch == "\\":
            idx += 2
            continue
        if ch in "=:":
            has_separator = True
            break
        if ch in _WHITESPACE:
            break
        idx += 1
    key_end = min(idx, n)
    pos = key_end
    if has_separator:
        pos += 1
    else:
        while pos < n and line[pos] in _WHITESPACE:
            pos += 1
        if pos < n and line[pos] in "=:":
            pos += 1
    while pos < n and line[pos] in _WHITESPACE:
        pos += 1
    return line[:key_end], line[pos:]


def iter_properties(text: str, source: Optional[str] = None) -> Iterator[Tuple[str, str]]:
    """Yield ``(key, value)`` pairs of a ``.properties`` document in file order."""
    for line in _logical_lines(text):
        key, value = _split_entry(line)
        yield _unescape(key, source), _unescape(value, source)


def parse_properties(text: str, source: Optional[str] = None) -> Block:
    """Parse the legacy flat format into unconditional literal assignments."""
    block = Block(
        tuple(
            Assignment(Literal(key), Literal(value))
            for key, value in iter_properties(text, source)
        )
    )
    logger.debug("Parsed %d legacy entr(ies) from %s", len(block), source or "<string>")
    return block
