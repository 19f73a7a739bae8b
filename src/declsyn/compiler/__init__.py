"""
declsyn Compiler Package.

This package contains the parsing and printing components:
- Lexer: Tokenizes declaration source text
- Cursor: Immutable positions over a delimiter-checked token stream
- AST: Node definitions for the declaration syntax tree
- Combinators: Backtracking parser building blocks
- Parser: Declaration grammar and the ``Parser`` facade
- Printer: Emits a syntax tree back to tokens and text
"""

from pathlib import Path
from typing import Optional

from declsyn.compiler.ast_nodes import (
    AngleBracketedArgs,
    ASTNode,
    ASTVisitor,
    Attribute,
    DeclFile,
    Delimiter,
    DocComment,
    ExprBinary,
    ExprCast,
    Expression,
    ExprLit,
    ExprParen,
    ExprPath,
    ExprUnary,
    Field,
    Fields,
    FieldsNamed,
    FieldsUnit,
    FieldsUnnamed,
    Ident,
    Item,
    ItemEnum,
    ItemStruct,
    Lifetime,
    Pair,
    PathSegment,
    Punctuated,
    Type,
    TypeArray,
    TypeNever,
    TypePath,
    TypePtr,
    TypeReference,
    TypeSlice,
    TypeTuple,
    Variant,
    VisCrate,
    VisInherited,
    Visibility,
    VisPublic,
    VisRestricted,
)
from declsyn.compiler.ast_nodes import Path as DeclPath
from declsyn.compiler.cursor import DEFAULT_MAX_DEPTH, Cursor, TokenStream
from declsyn.compiler.lexer import Lexer, tokenize
from declsyn.compiler.parser import RULES, Parser, parse, parse_str
from declsyn.compiler.printer import TokenPrinter, emit, print_node, render_tokens
from declsyn.compiler.tokens import Token, TokenType


def parse_file_path(
    filepath: str,
    rule: str = "file",
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> ASTNode:
    """
    Parse a declaration file from disk.

    Args:
        filepath: Path to the source file
        rule: Grammar rule the whole file must match (see ``RULES``)
        max_depth: Nesting limit for groups, types and expressions

    Raises:
        FileNotFoundError: If the file does not exist
        LexerError: If the file cannot be tokenized
        ParserError: If the tokens do not match ``rule``
    """
    path = Path(filepath)
    source = path.read_text(encoding="utf-8")
    return parse_str(source, rule, filename=str(path), max_depth=max_depth)


def roundtrip(source: str, rule: str = "file", filename: Optional[str] = None) -> str:
    """Parse ``source`` and print it back."""
    return print_node(parse_str(source, rule, filename=filename))


__all__ = [
    # Entry points
    "parse",
    "parse_str",
    "parse_file_path",
    "roundtrip",
    "tokenize",
    "emit",
    "render_tokens",
    "print_node",
    "RULES",
    # Components
    "Lexer",
    "Parser",
    "TokenPrinter",
    "TokenStream",
    "Cursor",
    "DEFAULT_MAX_DEPTH",
    "Token",
    "TokenType",
    # Nodes
    "ASTNode",
    "ASTVisitor",
    "Delimiter",
    "Pair",
    "Punctuated",
    "Ident",
    "Lifetime",
    "DeclPath",
    "PathSegment",
    "AngleBracketedArgs",
    "Type",
    "TypePath",
    "TypeReference",
    "TypePtr",
    "TypeTuple",
    "TypeSlice",
    "TypeArray",
    "TypeNever",
    "Expression",
    "ExprLit",
    "ExprPath",
    "ExprUnary",
    "ExprBinary",
    "ExprParen",
    "ExprCast",
    "Attribute",
    "DocComment",
    "Visibility",
    "VisPublic",
    "VisCrate",
    "VisRestricted",
    "VisInherited",
    "Field",
    "Fields",
    "FieldsNamed",
    "FieldsUnnamed",
    "FieldsUnit",
    "Variant",
    "Item",
    "ItemStruct",
    "ItemEnum",
    "DeclFile",
]
