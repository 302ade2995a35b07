"""Tolerant TypeScript parsing for SST config files.

Only the syntax that appears in configuration code is modelled; type-level
syntax is skipped. Parsing never fails on malformed input.
"""

from .nodes import Node, Program
from .parser import parse_text
from .source import ParseError, SourceUnit, parse
from .tokenizer import Token, TokenKind, tokenize

__all__ = [
    "Node",
    "ParseError",
    "Program",
    "SourceUnit",
    "Token",
    "TokenKind",
    "parse",
    "parse_text",
    "tokenize",
]
