"""Parsing module for the record definition language."""

from typed_sheets.parsing.schema_lexer import SchemaLexer
from typed_sheets.parsing.schema_parser import SchemaParser

__all__ = [
    "SchemaLexer",
    "SchemaParser",
]
