# Copyright 2026 wRPC Contributors
# SPDX-License-Identifier: Apache-2.0

"""Lexical scanner for .wrpc files.

Converts raw source text into a lazy stream of tokens. Malformed tokens do
not abort the scan: they are produced as :class:`TokenError` items in the
stream and scanning continues after them.
"""

from __future__ import annotations

import enum
import re
from collections.abc import Iterator
from dataclasses import dataclass

from wrpc.model.region import Position, Region
from wrpc.reporting.report import Report, SnippetBlock, TextBlock

# ###############
# Public Interface
# ###############


class TokenType(enum.Enum):
    """All token types produced by the wRPC lexer."""

    # Keywords
    DATA = "data"
    SERVICE = "service"
    ENUM = "enum"
    DEF = "def"

    # Punctuation
    LPAREN = "("
    RPAREN = ")"
    LBRACE = "{"
    RBRACE = "}"
    LANGLE = "<"
    RANGLE = ">"
    COMMA = ","
    COLON = ":"
    HASH = "#"

    # Literals
    STRING = "STRING"
    NUMBER = "NUMBER"
    BOOLEAN = "BOOLEAN"
    KEYWORD = "KEYWORD"

    # Names
    IDENTIFIER = "IDENTIFIER"
    SYMBOL = "SYMBOL"

    COMMENT = "COMMENT"
    EOF = "EOF"


@dataclass(frozen=True)
class Token:
    """A lexical token with its source region.

    Attributes:
        type: The kind of token.
        value: The raw text of the token. STRING tokens hold the decoded
            content, KEYWORD tokens the name without its leading colon and
            COMMENT tokens the text after ``//``.
        region: Where the token was scanned from.
    """

    type: TokenType
    value: str
    region: Region

    @property
    def line(self) -> int:
        return self.region.start.line

    @property
    def column(self) -> int:
        return self.region.start.column


class TokenErrorKind(enum.Enum):
    """Ways in which a single token can be malformed."""

    UNTERMINATED_STRING = "unterminated-string"
    UNKNOWN_ESCAPE = "unknown-escape"
    BAD_NUMBER = "bad-number"
    BAD_CHAR = "bad-char"


@dataclass(frozen=True)
class TokenError:
    """A malformed token.

    Attributes:
        kind: What went wrong.
        line: 1-based line where the problem starts.
        column: 1-based column where the problem starts.
        text: The offending text (a character, an escape or a numeric run).
    """

    kind: TokenErrorKind
    line: int
    column: int
    text: str = ""

    @property
    def position(self) -> Position:
        return Position(line=self.line, column=self.column)

    @property
    def region(self) -> Region:
        return Region.line_span(self.line, self.column, self.column + max(len(self.text), 1))

    def to_report(self, filename: str | None = None) -> Report:
        """Describe the malformed token as a :class:`Report`."""
        title, text = _TOKEN_ERROR_MESSAGES[self.kind]
        return Report(
            title=title,
            blocks=[
                TextBlock(text=text.format(text=self.text)),
                SnippetBlock(region=self.region),
            ],
            filename=filename,
        )


LexItem = Token | TokenError


def lex(source: str) -> Iterator[LexItem]:
    """Lazily scan *source* into tokens and token errors.

    The stream is single-pass and always ends with exactly one EOF token.
    Whitespace is skipped; ``//`` comments are produced as COMMENT tokens.

    Args:
        source: The full text of a .wrpc file.

    Yields:
        :class:`Token` items, or :class:`TokenError` items for malformed tokens.
    """
    return _Lexer(source).scan()


def tokenize(source: str) -> list[LexItem]:
    """Scan *source* completely and return all items including the final EOF."""
    return list(lex(source))


# ################
# Implementation
# ################

_KEYWORDS: dict[str, TokenType] = {
    "data": TokenType.DATA,
    "service": TokenType.SERVICE,
    "enum": TokenType.ENUM,
    "def": TokenType.DEF,
}

_BOOLEANS = {"true", "false"}

_SINGLE_CHAR_TOKENS: dict[str, TokenType] = {
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    ",": TokenType.COMMA,
    "#": TokenType.HASH,
}

# Characters after which ``:name`` is read as a keyword literal rather than
# a colon followed by a type name.
_KEYWORD_PRECEDERS = frozenset(" \t\r\n([{")

_NUMBER_RE = re.compile(r"-?[0-9]+(\.[0-9]+)?")

_ESCAPES: dict[str, str] = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "\\": "\\",
    '"': '"',
    "/": "/",
}

_TOKEN_ERROR_MESSAGES: dict[TokenErrorKind, tuple[str, str]] = {
    TokenErrorKind.UNTERMINATED_STRING: (
        "UNTERMINATED STRING",
        "I found a string that is never closed. Strings end with a double quote on the same line.",
    ),
    TokenErrorKind.UNKNOWN_ESCAPE: (
        "UNKNOWN STRING ESCAPE",
        "I do not know the escape sequence `{text}`. "
        'Valid escapes are \\n, \\t, \\r, \\\\, \\" and \\/.',
    ),
    TokenErrorKind.BAD_NUMBER: (
        "BAD NUMBER",
        "I cannot read `{text}` as a number. Numbers look like `42`, `-7` or `3.14`.",
    ),
    TokenErrorKind.BAD_CHAR: (
        "UNEXPECTED CHARACTER",
        "I do not know what to do with the character `{text}` here.",
    ),
}


def _is_ident_start(ch: str) -> bool:
    return ch.isalpha() or ch == "_"


def _is_ident_char(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


class _Lexer:
    """Internal scanner state machine."""

    def __init__(self, source: str) -> None:
        self._source = source
        self._pos = 0
        self._line = 1
        self._column = 1

    def scan(self) -> Iterator[LexItem]:
        """Yield every token or token error, then the terminal EOF."""
        while True:
            self._skip_whitespace()
            if self._pos >= len(self._source):
                break
            yield self._scan_item()
        yield Token(TokenType.EOF, "", Region.point(self._line, self._column))

    # ------------------------------------------------------------------
    # Low-level character access helpers
    # ------------------------------------------------------------------

    def _current(self) -> str:
        """Return the character at the current position, or '' at end of input."""
        if self._pos < len(self._source):
            return self._source[self._pos]
        return ""

    def _peek(self) -> str:
        """Return the character one position ahead, or '' at end of input."""
        if self._pos + 1 < len(self._source):
            return self._source[self._pos + 1]
        return ""

    def _previous(self) -> str:
        """Return the character before the current position, or '' at the start."""
        if self._pos > 0:
            return self._source[self._pos - 1]
        return ""

    def _advance(self) -> str:
        """Consume the current character, update position tracking, and return it."""
        ch = self._source[self._pos]
        self._pos += 1
        if ch == "\n":
            self._line += 1
            self._column = 1
        else:
            self._column += 1
        return ch

    def _skip_whitespace(self) -> None:
        while self._pos < len(self._source) and self._current() in " \t\r\n":
            self._advance()

    def _token(self, token_type: TokenType, value: str, line: int, col: int) -> Token:
        """Build a token spanning from (line, col) to the current position."""
        region = Region(
            start=Position(line=line, column=col),
            end=Position(line=self._line, column=self._column),
        )
        return Token(token_type, value, region)

    # ------------------------------------------------------------------
    # Token scanning dispatcher
    # ------------------------------------------------------------------

    def _scan_item(self) -> LexItem:
        """Dispatch to the appropriate handler based on the current character."""
        ch = self._current()
        line = self._line
        col = self._column

        if ch in _SINGLE_CHAR_TOKENS:
            self._advance()
            return self._token(_SINGLE_CHAR_TOKENS[ch], ch, line, col)
        if ch == "/" and self._peek() == "/":
            return self._scan_comment(line, col)
        if ch in "<>":
            self._advance()
            if self._current() == "=":
                self._advance()
                return self._token(TokenType.SYMBOL, ch + "=", line, col)
            token_type = TokenType.LANGLE if ch == "<" else TokenType.RANGLE
            return self._token(token_type, ch, line, col)
        if ch == "!" and self._peek() == "=":
            self._advance()
            self._advance()
            return self._token(TokenType.SYMBOL, "!=", line, col)
        if ch == "-" and self._peek().isdigit():
            return self._scan_number(line, col)
        if ch in "=+-*/":
            self._advance()
            return self._token(TokenType.SYMBOL, ch, line, col)
        if ch == ":":
            if _is_ident_start(self._peek()) and (self._pos == 0 or self._previous() in _KEYWORD_PRECEDERS):
                self._advance()  # :
                name = self._scan_name()
                return self._token(TokenType.KEYWORD, name, line, col)
            self._advance()
            return self._token(TokenType.COLON, ":", line, col)
        if ch == "." and _is_ident_start(self._peek()):
            self._advance()  # .
            name = self._scan_name()
            return self._token(TokenType.SYMBOL, "." + name, line, col)
        if ch == '"':
            return self._scan_string(line, col)
        if ch.isdigit():
            return self._scan_number(line, col)
        if _is_ident_start(ch):
            return self._scan_identifier_or_keyword(line, col)

        self._advance()
        return TokenError(TokenErrorKind.BAD_CHAR, line, col, ch)

    # ------------------------------------------------------------------
    # Scanners
    # ------------------------------------------------------------------

    def _scan_name(self) -> str:
        start = self._pos
        while self._pos < len(self._source) and _is_ident_char(self._current()):
            self._advance()
        return self._source[start : self._pos]

    def _scan_comment(self, line: int, col: int) -> Token:
        """Consume from '//' through end-of-line (exclusive of the newline itself)."""
        self._advance()  # /
        self._advance()  # /
        start = self._pos
        while self._pos < len(self._source) and self._current() != "\n":
            self._advance()
        return self._token(TokenType.COMMENT, self._source[start : self._pos], line, col)

    def _scan_string(self, line: int, col: int) -> LexItem:
        """Scan a double-quoted string literal with escape sequences.

        An unknown escape does not end the scan: the rest of the string is
        consumed so the following token starts in a sane place.
        """
        self._advance()  # opening "
        chars: list[str] = []
        bad_escape: TokenError | None = None
        while self._pos < len(self._source):
            ch = self._current()
            if ch == '"':
                self._advance()  # closing "
                if bad_escape is not None:
                    return bad_escape
                return self._token(TokenType.STRING, "".join(chars), line, col)
            if ch == "\n":
                break
            if ch == "\\":
                esc_line, esc_col = self._line, self._column
                self._advance()
                esc = self._current()
                if esc == "" or esc == "\n":
                    break
                if esc in _ESCAPES:
                    chars.append(_ESCAPES[esc])
                elif bad_escape is None:
                    bad_escape = TokenError(TokenErrorKind.UNKNOWN_ESCAPE, esc_line, esc_col, "\\" + esc)
                self._advance()
            else:
                chars.append(ch)
                self._advance()
        return TokenError(TokenErrorKind.UNTERMINATED_STRING, line, col, '"')

    def _scan_number(self, line: int, col: int) -> LexItem:
        """Scan a numeric literal, rejecting runs such as ``1.2.3`` or ``12ab``."""
        start = self._pos
        if self._current() == "-":
            self._advance()
        while self._pos < len(self._source) and (_is_ident_char(self._current()) or self._current() == "."):
            self._advance()
        text = self._source[start : self._pos]
        if _NUMBER_RE.fullmatch(text) is None:
            return TokenError(TokenErrorKind.BAD_NUMBER, line, col, text)
        return self._token(TokenType.NUMBER, text, line, col)

    def _scan_identifier_or_keyword(self, line: int, col: int) -> Token:
        """Scan an identifier and map it to a keyword or boolean token type if applicable."""
        value = self._scan_name()
        if value in _BOOLEANS:
            return self._token(TokenType.BOOLEAN, value, line, col)
        token_type = _KEYWORDS.get(value, TokenType.IDENTIFIER)
        return self._token(token_type, value, line, col)
