"""
Pytest configuration and shared fixtures for declsyn tests.
"""

import pytest

from declsyn.compiler.ast_nodes import ASTNode
from declsyn.compiler.cursor import TokenStream
from declsyn.compiler.lexer import Lexer
from declsyn.compiler.parser import Parser
from declsyn.compiler.printer import print_node
from declsyn.compiler.tokens import Token, TokenType


@pytest.fixture
def lexer_factory():
    """Factory fixture for creating lexers."""

    def _create_lexer(source: str, filename: str = "test.rs") -> Lexer:
        return Lexer(source, filename)

    return _create_lexer


@pytest.fixture
def tokenize(lexer_factory):
    """Fixture to tokenize source code."""

    def _tokenize(source: str) -> list[Token]:
        return lexer_factory(source).tokenize()

    return _tokenize


@pytest.fixture
def stream(tokenize):
    """Fixture to build a delimiter-checked token stream from source."""

    def _stream(source: str, max_depth: int = 128) -> TokenStream:
        return TokenStream(tokenize(source), max_depth=max_depth, source=source)

    return _stream


@pytest.fixture
def parser_factory(tokenize):
    """Factory fixture for creating parsers from source."""

    def _create_parser(source: str, **kwargs) -> Parser:
        return Parser(tokenize(source), source, "test.rs", **kwargs)

    return _create_parser


@pytest.fixture
def parse(parser_factory):
    """Fixture to parse source with a named rule (default: a single variant)."""

    def _parse(source: str, rule: str = "variant") -> ASTNode:
        return parser_factory(source).parse(rule)

    return _parse


@pytest.fixture
def roundtrip(parse, tokenize):
    """
    Fixture that parses, prints and checks that the printed text lexes to
    the same tokens as the input. Returns the printed text.
    """

    def _roundtrip(source: str, rule: str = "variant") -> str:
        printed = print_node(parse(source, rule))
        expected = [t for t in tokenize(source) if t.type != TokenType.EOF]
        actual = [t for t in tokenize(printed) if t.type != TokenType.EOF]
        assert actual == expected, f"round trip drift:\n  in:  {source!r}\n  out: {printed!r}"
        return printed

    return _roundtrip
