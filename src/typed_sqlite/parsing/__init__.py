"""Parsing module for SQL placeholders and date format patterns."""

from typed_sqlite.parsing.date_pattern_lexer import DatePatternLexer
from typed_sqlite.parsing.sql_lexer import SQLLexer, SQLParameter, number_parameters

__all__ = [
    "DatePatternLexer",
    "SQLLexer",
    "SQLParameter",
    "number_parameters",
]
