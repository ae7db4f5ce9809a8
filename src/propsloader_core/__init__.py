"""Propsloader Core - templated properties documents compiled to an evaluable AST."""

from .__version__ import __version__, __version_info__

from .store import PropertyStore
from .template import Template, compile_template
from .nodes import (
    Assignment,
    Block,
    Choose,
    Equals,
    ErrorStatement,
    Literal,
    Matches,
    MatchPattern,
    Not,
    Table,
    TableEntry,
    TemplateExpr,
    Truthiness,
    When,
    compile_field_pattern,
)
from .evaluator import evaluate_expression, evaluate_test, execute
from .decryption import CallableDecryptor, Decryptor
from .parser import iter_properties, parse_properties, parse_xml
from .document import Document, compile_document, concat
from .errors import (
    ConfigurationError,
    DecryptionFailure,
    LoadError,
    MissingDecryptorError,
    ParseError,
    PropsLoaderError,
    TemplateSyntaxError,
)

__all__ = [
    # Version
    "__version__",
    "__version_info__",
    # Store
    "PropertyStore",
    # Templates
    "Template",
    "compile_template",
    # AST
    "Assignment",
    "Block",
    "Choose",
    "Equals",
    "ErrorStatement",
    "Literal",
    "Matches",
    "MatchPattern",
    "Not",
    "Table",
    "TableEntry",
    "TemplateExpr",
    "Truthiness",
    "When",
    "compile_field_pattern",
    # Evaluation
    "evaluate_expression",
    "evaluate_test",
    "execute",
    "CallableDecryptor",
    "Decryptor",
    # Parsing
    "iter_properties",
    "parse_properties",
    "parse_xml",
    # Documents
    "Document",
    "compile_document",
    "concat",
    # Errors
    "ConfigurationError",
    "DecryptionFailure",
    "LoadError",
    "MissingDecryptorError",
    "ParseError",
    "PropsLoaderError",
    "TemplateSyntaxError",
]
