# Copyright 2026 wRPC Contributors
# SPDX-License-Identifier: Apache-2.0

"""Lexer and parser for .wrpc source files."""

from wrpc.parser.errors import GrammarError, GrammarErrorKind, ParseError
from wrpc.parser.lexer import LexItem, Token, TokenError, TokenErrorKind, TokenType, lex, tokenize
from wrpc.parser.parser import parse

__all__ = [
    "GrammarError",
    "GrammarErrorKind",
    "LexItem",
    "ParseError",
    "Token",
    "TokenError",
    "TokenErrorKind",
    "TokenType",
    "lex",
    "parse",
    "tokenize",
]
