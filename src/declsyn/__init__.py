"""
declsyn - Syntax trees for Rust-style declarations.

declsyn parses struct and enum declarations (variants, named and tuple
fields, visibility qualifiers, explicit discriminants) into an immutable
syntax tree and prints trees back to the exact token sequence they came
from.
"""

from declsyn.compiler import parse_file_path, parse_str, print_node, roundtrip
from declsyn.compiler.lexer import Lexer, tokenize
from declsyn.compiler.parser import Parser
from declsyn.compiler.printer import emit, render_tokens

__version__ = "0.1.0"
__all__ = [
    "parse_str",
    "parse_file_path",
    "print_node",
    "roundtrip",
    "emit",
    "render_tokens",
    "tokenize",
    "Lexer",
    "Parser",
]
