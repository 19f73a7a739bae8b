"""
Parser combinators over ``Cursor``.

A parser is any callable taking a cursor and returning ``(value, cursor)``
where the returned cursor sits after the consumed tokens. Failure is a
``ParserError``; since cursors are immutable, a caller recovers from a
failure by simply retrying with the cursor it still holds.

Example:
    >>> field = sequence(ident, punct(":"), type_)
    >>> fields = braces(punctuated(field))
    >>> (delim, items), rest = fields(cursor)
"""

from functools import partial
from typing import Any, Callable, Optional, TypeVar

from declsyn.compiler.ast_nodes import Delimiter, Pair, Punctuated
from declsyn.compiler.cursor import Cursor
from declsyn.compiler.tokens import (
    KEYWORDS,
    OPEN_DELIMITERS,
    TOKEN_TEXT,
    TokenType,
    describe_token,
    describe_token_type,
)
from declsyn.utils.errors import ParserError

T = TypeVar("T")
U = TypeVar("U")

Parser = Callable[[Cursor], tuple[T, Cursor]]

# Nesting limit errors are never recovered from by alternation
FATAL_CODES = frozenset({"E0209"})

_SPELLINGS = {text: token_type for token_type, text in TOKEN_TEXT.items()}


# -----------------------------------------------------------------------------
# Primitive parsers
# -----------------------------------------------------------------------------


def token(token_type: TokenType, what: Optional[str] = None) -> Parser:
    """Match a single token of the given type."""
    expected = what or describe_token_type(token_type)

    def parse(cursor: Cursor):
        if not cursor.check(token_type):
            raise cursor.expected(expected)
        return cursor.advance()

    return parse


def keyword(name: str) -> Parser:
    """Match a reserved word, e.g. ``keyword("pub")``."""
    return token(KEYWORDS[name])


def punct(text: str) -> Parser:
    """Match a punctuation mark by its spelling, e.g. ``punct("::")``."""
    token_type = _SPELLINGS[text]
    if token_type in OPEN_DELIMITERS:
        raise ValueError(f"{text!r} opens a group; use delimited() instead")
    return token(token_type)


def epsilon(cursor: Cursor) -> tuple[None, Cursor]:
    """Consume nothing and always succeed."""
    return None, cursor


# -----------------------------------------------------------------------------
# Combinators
# -----------------------------------------------------------------------------


def sequence(*parsers: Parser) -> Parser:
    """Run parsers one after another, collecting their values in a tuple."""

    def parse(cursor: Cursor):
        values = []
        for parser in parsers:
            value, cursor = parser(cursor)
            values.append(value)
        return tuple(values), cursor

    return parse


def alt(*parsers: Parser, description: Optional[str] = None) -> Parser:
    """
    Ordered choice: the first alternative to succeed wins.

    When every alternative fails, the failure that got furthest into the
    input is reported, with ties going to the earliest alternative.
    """

    def parse(cursor: Cursor):
        best: Optional[ParserError] = None
        for parser in parsers:
            try:
                return parser(cursor)
            except ParserError as err:
                if err.code in FATAL_CODES:
                    raise
                if best is None or err.position > best.position:
                    best = err
        if best is None:
            raise cursor.error("no alternatives to try")
        raise best.with_description(description)

    return parse


def many0(parser: Parser) -> Parser:
    """Match ``parser`` zero or more times; stops at the first failure."""

    def parse(cursor: Cursor):
        values = []
        while True:
            try:
                value, next_cursor = parser(cursor)
            except ParserError as err:
                if err.code in FATAL_CODES:
                    raise
                break
            if next_cursor.pos == cursor.pos:
                break
            values.append(value)
            cursor = next_cursor
        return tuple(values), cursor

    return parse


def option(parser: Parser) -> Parser:
    """Match ``parser`` or nothing, yielding None in the latter case."""

    def parse(cursor: Cursor):
        try:
            return parser(cursor)
        except ParserError as err:
            if err.code in FATAL_CODES:
                raise
            return None, cursor

    return parse


def map_(parser: Parser, func: Callable[[Any], U]) -> Parser:
    """Transform the value produced by ``parser``."""

    def parse(cursor: Cursor):
        value, cursor = parser(cursor)
        return func(value), cursor

    return parse


def described(parser: Parser, description: Optional[str]) -> Parser:
    """Label failures of ``parser`` with the construct it recognizes."""

    def parse(cursor: Cursor):
        try:
            return parser(cursor)
        except ParserError as err:
            raise err.with_description(description) from None

    return parse


def recursive(parser: Parser) -> Parser:
    """
    Count one nesting level around ``parser``, for rules that can reach
    themselves (types inside types, expressions inside expressions).
    """

    def parse(cursor: Cursor):
        value, rest = parser(cursor.nested())
        return value, rest.at_depth(cursor.depth)

    return parse


def delimited(open_type: TokenType, inner: Parser) -> Parser:
    """
    Match a delimited group whose contents ``inner`` consumes completely.

    Yields ``(Delimiter, value)``.
    """
    close_type = OPEN_DELIMITERS[open_type]

    def parse(cursor: Cursor):
        open_token, contents, close_token, after = cursor.enter_group(open_type)
        value, rest = inner(contents)
        if not rest.at_end:
            raise rest.error(
                f"expected {describe_token_type(close_type)}, "
                f"found {describe_token(rest.current)}"
            )
        return (Delimiter(open_token, close_token), value), after

    return parse


parens = partial(delimited, TokenType.LPAREN)
braces = partial(delimited, TokenType.LBRACE)
brackets = partial(delimited, TokenType.LBRACKET)


def punctuated(item: Parser, separator: TokenType = TokenType.COMMA) -> Parser:
    """
    Match ``item`` repeatedly up to the end of the enclosing group,
    separated by ``separator``. A trailing separator is allowed and an
    empty list is accepted.
    """

    def parse(cursor: Cursor):
        pairs = []
        while not cursor.at_end:
            value, cursor = item(cursor)
            if not cursor.check(separator):
                pairs.append(Pair(value))
                break
            sep, cursor = cursor.advance()
            pairs.append(Pair(value, sep))
        return Punctuated(tuple(pairs)), cursor

    return parse


def complete(parser: Parser, what: str = "input") -> Parser:
    """Require ``parser`` to consume every token visible to the cursor."""

    def parse(cursor: Cursor):
        value, rest = parser(cursor)
        if not rest.at_end:
            raise rest.error(
                f"unexpected {describe_token(rest.current)} after {what}",
                code="E0206",
            )
        return value, rest

    return parse
