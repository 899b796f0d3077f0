# Copyright 2026 wRPC Contributors
# SPDX-License-Identifier: Apache-2.0

"""Recursive-descent parser for .wrpc files.

Converts the lexer's token stream into a :class:`~wrpc.model.source.Module`.
Errors are recovered per declaration: after a failure the parser skips to
the next ``data``, ``enum`` or ``service`` keyword and carries on, so one
pass reports every broken declaration exactly once.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterator
from contextlib import contextmanager

from wrpc.model.region import Position, Region
from wrpc.model.source import (
    Annotation,
    BooleanExpr,
    Data,
    Decl,
    Enum,
    Expr,
    KeywordExpr,
    ListExpr,
    MapExpr,
    Method,
    Module,
    Name,
    NumberExpr,
    Parameter,
    Property,
    Service,
    StringExpr,
    SymbolExpr,
    Type,
    Variant,
)
from wrpc.parser.errors import MAX_EXPR_DEPTH, GrammarError, GrammarErrorKind, ParseError
from wrpc.parser.lexer import LexItem, Token, TokenError, TokenType, lex

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############


def parse(source: str, filename: str | None = None) -> Module:
    """Parse wRPC source text into a source-level Module.

    Args:
        source: The full text of a .wrpc file.
        filename: Name of the file, attached to the raised error for reporting.

    Returns:
        The parsed Module.

    Raises:
        ParseError: If the source contains syntax errors. The exception
            carries every error found in the file.
    """
    module, errors = _Parser(lex(source)).parse_module()
    if errors:
        logger.debug("parsed %s with %d syntax error(s)", filename or "<string>", len(errors))
        raise ParseError(errors, filename)
    logger.debug("parsed %s: %d declaration(s)", filename or "<string>", len(module.declarations))
    return module


# ################
# Implementation
# ################

K = GrammarErrorKind

# Token types treated as plain symbols inside annotation expressions.
_SYMBOL_TOKENS: frozenset[TokenType] = frozenset(
    {
        TokenType.IDENTIFIER,
        TokenType.SYMBOL,
        TokenType.LANGLE,
        TokenType.RANGLE,
        TokenType.DATA,
        TokenType.SERVICE,
        TokenType.ENUM,
        TokenType.DEF,
    }
)

# Tokens at which declaration-level recovery stops skipping.
_RECOVERY_TOKENS = (TokenType.DATA, TokenType.SERVICE, TokenType.ENUM, TokenType.EOF)


class _Failure(Exception):
    """Unwinds a failed production up to the declaration being parsed."""

    def __init__(self, error: GrammarError) -> None:
        super().__init__(error.kind.value)
        self.error = error


class _Parser:
    """Recursive-descent parser over a lazy token stream."""

    def __init__(self, items: Iterator[LexItem]) -> None:
        self._items = items
        self._buffer: deque[LexItem] = deque()
        self._eof = Token(TokenType.EOF, "", Region.point(1, 1))
        self._errors: list[GrammarError] = []
        self._last_position = Position(line=1, column=1)
        self._depth = 0

    def parse_module(self) -> tuple[Module, list[GrammarError]]:
        """Parse declarations until EOF, recovering after each failure."""
        declarations: list[Decl] = []
        while True:
            try:
                decl = self._parse_decl()
            except _Failure as failure:
                self._errors.append(failure.error)
                self._recover()
                continue
            if decl is None:
                break
            declarations.append(decl)
        return Module(declarations=declarations), self._errors

    def _recover(self) -> None:
        """Discard items until a token that can start a declaration, or EOF."""
        while not self._check(*_RECOVERY_TOKENS):
            self._advance()

    # ------------------------------------------------------------------
    # Token access helpers
    # ------------------------------------------------------------------

    def _peek(self) -> LexItem:
        """Return the next item without consuming it."""
        if not self._buffer:
            item = next(self._items, None)
            if item is None:
                item = self._eof
            elif isinstance(item, Token) and item.type is TokenType.EOF:
                self._eof = item
            self._buffer.append(item)
        return self._buffer[0]

    def _advance(self) -> LexItem:
        """Consume and return the next item, stopping at EOF."""
        item = self._peek()
        if isinstance(item, Token) and item.type is TokenType.EOF:
            return item
        self._buffer.popleft()
        self._last_position = item.region.end
        return item

    def _check(self, *types: TokenType) -> bool:
        """Return True if the next item is a token of one of the given types."""
        item = self._peek()
        return isinstance(item, Token) and item.type in types

    def _matches(self, token_type: TokenType) -> bool:
        """Consume the next token if it has the given type."""
        if self._check(token_type):
            self._advance()
            return True
        return False

    def _fail(self, kind: GrammarErrorKind, name: str | None = None) -> _Failure:
        """Build a failure of *kind* located at the next (offending) item."""
        item = self._peek()
        if isinstance(item, TokenError):
            return _Failure(GrammarError(kind, item.position, name, item))
        if item.type is TokenType.EOF:
            eof = GrammarError(K.UNEXPECTED_EOF, self._last_position)
            return _Failure(GrammarError(kind, self._last_position, name, eof))
        return _Failure(GrammarError(kind, item.region.start, name))

    def _expect(self, token_type: TokenType, kind: GrammarErrorKind, name: str | None = None) -> Token:
        """Consume a token of *token_type* or fail with *kind*."""
        item = self._peek()
        if isinstance(item, Token) and item.type is token_type:
            self._advance()
            return item
        raise self._fail(kind, name)

    def _expect_name(self, kind: GrammarErrorKind, name: str | None = None) -> Name:
        """Consume an identifier or fail with *kind*."""
        token = self._expect(TokenType.IDENTIFIER, kind, name)
        return Name(region=token.region, value=token.value)

    @contextmanager
    def _context(self, kind: GrammarErrorKind, name: str | None = None) -> Iterator[None]:
        """Wrap failures of a nested production into a *kind* error."""
        try:
            yield
        except _Failure as failure:
            inner = failure.error
            raise _Failure(GrammarError(kind, inner.position, name, inner)) from None

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def _parse_decl(self) -> Decl | None:
        """Parse one declaration, or return None at the end of input."""
        doc_comment, annotations = self._parse_leading(K.DECL_BAD_ANNOTATION)
        if self._check(TokenType.EOF) and not annotations:
            return None
        if self._check(TokenType.DATA):
            return self._parse_data(doc_comment, annotations)
        if self._check(TokenType.ENUM):
            return self._parse_enum(doc_comment, annotations)
        if self._check(TokenType.SERVICE):
            return self._parse_service(doc_comment, annotations)
        raise self._fail(K.DECL_START)

    def _parse_data(self, doc_comment: str | None, annotations: list[Annotation]) -> Data:
        """Parse: data <Name> [<T, ...>] [{ properties }]"""
        self._advance()  # data
        name = self._expect_name(K.DATA_NAME)
        type_variables = self._parse_type_params(name)
        properties: list[Property] = []
        if self._matches(TokenType.LBRACE):
            with self._context(K.DATA_BAD_PROPERTY, name.value):
                properties = self._parse_properties()
            self._expect(TokenType.RBRACE, K.DATA_END, name.value)
        return Data(
            name=name,
            type_variables=type_variables,
            properties=properties,
            annotations=annotations,
            doc_comment=doc_comment,
        )

    def _parse_enum(self, doc_comment: str | None, annotations: list[Annotation]) -> Enum:
        """Parse: enum <Name> [<T, ...>] { variant* }"""
        self._advance()  # enum
        name = self._expect_name(K.ENUM_NAME)
        type_variables = self._parse_type_params(name)
        self._expect(TokenType.LBRACE, K.ENUM_START, name.value)
        variants: list[Variant] = []
        while not self._check(TokenType.RBRACE, TokenType.EOF):
            with self._context(K.ENUM_BAD_VARIANT, name.value):
                variant = self._parse_variant()
            if variant is not None:
                variants.append(variant)
            self._matches(TokenType.COMMA)
        self._expect(TokenType.RBRACE, K.ENUM_END, name.value)
        return Enum(
            name=name,
            type_variables=type_variables,
            variants=variants,
            annotations=annotations,
            doc_comment=doc_comment,
        )

    def _parse_variant(self) -> Variant | None:
        """Parse: <Name> [{ properties }]"""
        doc_comment, annotations = self._parse_leading(K.VARIANT_BAD_ANNOTATION)
        if self._check(TokenType.RBRACE, TokenType.EOF) and not annotations:
            return None
        name = self._expect_name(K.VARIANT_NAME)
        properties: list[Property] = []
        if self._matches(TokenType.LBRACE):
            with self._context(K.VARIANT_BAD_PROPERTY, name.value):
                properties = self._parse_properties()
            self._expect(TokenType.RBRACE, K.VARIANT_END, name.value)
        return Variant(
            name=name,
            properties=properties,
            annotations=annotations,
            doc_comment=doc_comment,
        )

    def _parse_service(self, doc_comment: str | None, annotations: list[Annotation]) -> Service:
        """Parse: service <Name> { method* }"""
        self._advance()  # service
        name = self._expect_name(K.SERVICE_NAME)
        self._expect(TokenType.LBRACE, K.SERVICE_START, name.value)
        methods: list[Method] = []
        while not self._check(TokenType.RBRACE, TokenType.EOF):
            with self._context(K.SERVICE_BAD_METHOD, name.value):
                method = self._parse_method()
            if method is not None:
                methods.append(method)
        self._expect(TokenType.RBRACE, K.SERVICE_END, name.value)
        return Service(
            name=name,
            methods=methods,
            annotations=annotations,
            doc_comment=doc_comment,
        )

    def _parse_method(self) -> Method | None:
        """Parse: def <name>(properties) [: <Type>]"""
        doc_comment, annotations = self._parse_leading(K.METHOD_BAD_ANNOTATION)
        if self._check(TokenType.RBRACE, TokenType.EOF) and not annotations:
            return None
        self._expect(TokenType.DEF, K.METHOD_MISSING_DEF)
        name = self._expect_name(K.METHOD_NAME)
        self._expect(TokenType.LPAREN, K.METHOD_MISSING_PARAM_START, name.value)
        with self._context(K.METHOD_BAD_PARAM, name.value):
            properties = self._parse_properties()
        self._expect(TokenType.RPAREN, K.METHOD_MISSING_PARAM_END, name.value)

        return_type: Type | None = None
        if self._matches(TokenType.COLON):
            with self._context(K.METHOD_BAD_RETURN_TYPE, name.value):
                return_type = self._parse_type()

        parameters = [
            Parameter(
                name=prop.name,
                type=prop.type,
                annotations=prop.annotations,
                doc_comment=prop.doc_comment,
            )
            for prop in properties
        ]
        return Method(
            name=name,
            parameters=parameters,
            return_type=return_type,
            annotations=annotations,
            doc_comment=doc_comment,
        )

    # ------------------------------------------------------------------
    # Properties and types
    # ------------------------------------------------------------------

    def _parse_properties(self) -> list[Property]:
        """Parse properties until '}', ')' or EOF. Commas between them are optional."""
        properties: list[Property] = []
        while not self._check(TokenType.RBRACE, TokenType.RPAREN, TokenType.EOF):
            prop = self._parse_property()
            if prop is not None:
                properties.append(prop)
            self._matches(TokenType.COMMA)
        return properties

    def _parse_property(self) -> Property | None:
        """Parse: <name>: <Type>, or return None for a trailing comment."""
        doc_comment, annotations = self._parse_leading(K.PROPERTY_BAD_ANNOTATION)
        if self._check(TokenType.RBRACE, TokenType.RPAREN, TokenType.EOF) and not annotations:
            return None
        name = self._expect_name(K.PROPERTY_NAME)
        self._expect(TokenType.COLON, K.PROPERTY_MISSING_COLON, name.value)
        with self._context(K.PROPERTY_BAD_TYPE, name.value):
            type_ = self._parse_type()
        return Property(
            name=name,
            type=type_,
            annotations=annotations,
            doc_comment=doc_comment,
        )

    def _parse_type(self) -> Type:
        """Parse a type reference such as ``String`` or ``Map<String, List<Int32>>``."""
        name = self._expect_name(K.TYPE_NAME)
        variables: list[Type] = []
        if self._matches(TokenType.LANGLE):
            while not self._check(TokenType.RANGLE):
                with self._context(K.TYPE_BAD_ARGUMENT, name.value):
                    variables.append(self._parse_type())
                if not self._matches(TokenType.COMMA):
                    break
            self._expect(TokenType.RANGLE, K.TYPE_ARGUMENTS_END, name.value)
        return Type(name=name, variables=variables)

    def _parse_type_params(self, owner: Name) -> list[Name]:
        """Parse the optional generic parameter list ``<A, B>`` of a declaration."""
        params: list[Name] = []
        if self._matches(TokenType.LANGLE):
            while not self._check(TokenType.RANGLE):
                params.append(self._expect_name(K.TYPE_PARAMS_NAME, owner.value))
                if not self._matches(TokenType.COMMA):
                    break
            self._expect(TokenType.RANGLE, K.TYPE_PARAMS_END, owner.value)
        return params

    # ------------------------------------------------------------------
    # Doc comments and annotations
    # ------------------------------------------------------------------

    def _parse_leading(self, annotation_kind: GrammarErrorKind) -> tuple[str | None, list[Annotation]]:
        """Collect the comments and ``#expr`` annotations in front of a construct.

        Comment lines are trimmed, blank ones dropped, and the rest joined
        with newlines into the doc comment.
        """
        lines: list[str] = []
        annotations: list[Annotation] = []
        while True:
            if self._check(TokenType.COMMENT):
                lines.append(self._advance().value.strip())
            elif self._matches(TokenType.HASH):
                with self._context(annotation_kind):
                    annotations.append(Annotation(expr=self._parse_expr()))
            else:
                break
        doc_comment = "\n".join(line for line in lines if line)
        return (doc_comment or None), annotations

    def _skip_comments(self) -> None:
        while self._check(TokenType.COMMENT):
            self._advance()

    def _parse_expr(self) -> Expr:
        """Parse one S-expression: a literal, a symbol, a list or a map."""
        self._skip_comments()
        item = self._peek()
        if isinstance(item, TokenError):
            raise self._fail(K.EXPR_START)
        if item.type in (TokenType.LPAREN, TokenType.LBRACE):
            if self._depth >= MAX_EXPR_DEPTH:
                raise self._fail(K.EXPR_TOO_DEEP)
            self._depth += 1
            try:
                return self._parse_list() if item.type is TokenType.LPAREN else self._parse_map()
            finally:
                self._depth -= 1

        region = item.region
        if item.type is TokenType.STRING:
            expr: Expr = StringExpr(region=region, value=item.value)
        elif item.type is TokenType.NUMBER:
            expr = NumberExpr(region=region, value=float(item.value))
        elif item.type is TokenType.BOOLEAN:
            expr = BooleanExpr(region=region, value=item.value == "true")
        elif item.type is TokenType.KEYWORD:
            expr = KeywordExpr(region=region, value=item.value)
        elif item.type in _SYMBOL_TOKENS:
            expr = SymbolExpr(region=region, value=item.value)
        else:
            raise self._fail(K.EXPR_START)
        self._advance()
        return expr

    def _parse_list(self) -> ListExpr:
        start = self._advance()  # (
        items: list[Expr] = []
        while True:
            self._skip_comments()
            if self._check(TokenType.RPAREN):
                break
            if self._check(TokenType.EOF):
                raise self._unclosed(K.EXPR_UNCLOSED_LIST, start)
            items.append(self._parse_expr())
        end = self._advance()  # )
        return ListExpr(region=start.region.merge(end.region), items=items)

    def _parse_map(self) -> MapExpr:
        start = self._advance()  # {
        entries: list[tuple[Expr, Expr]] = []
        while True:
            self._skip_comments()
            if self._check(TokenType.RBRACE):
                break
            if self._check(TokenType.EOF):
                raise self._unclosed(K.EXPR_UNCLOSED_MAP, start)
            key = self._parse_expr()
            self._skip_comments()
            if self._check(TokenType.RBRACE):
                raise self._fail(K.EXPR_MAP_MISSING_VALUE)
            entries.append((key, self._parse_expr()))
        end = self._advance()  # }
        return MapExpr(region=start.region.merge(end.region), entries=entries)

    def _unclosed(self, kind: GrammarErrorKind, opening: LexItem) -> _Failure:
        """Build a failure pointing at the bracket that was never closed."""
        eof = GrammarError(K.UNEXPECTED_EOF, self._last_position)
        return _Failure(GrammarError(kind, opening.region.start, None, eof))
