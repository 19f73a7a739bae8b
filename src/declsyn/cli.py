"""
declsyn Command-Line Interface.

Provides commands to check, inspect and reprint declaration files.

Usage:
    declsyn check shapes.rs                  # Report syntax errors
    declsyn tokens shapes.rs                 # Dump the token stream
    declsyn ast shapes.rs                    # Dump the syntax tree
    declsyn print shapes.rs                  # Parse and print back
    declsyn print shapes.rs --check          # Verify the round trip
    declsyn ast variant.txt --rule variant   # Parse a single fragment
"""

import argparse
import dataclasses
import logging
import os
import sys
from pathlib import Path
from typing import Any, Optional

from declsyn import __version__
from declsyn.compiler.ast_nodes import ASTNode, Delimiter, Punctuated
from declsyn.compiler.cursor import DEFAULT_MAX_DEPTH
from declsyn.compiler.lexer import Lexer
from declsyn.compiler.parser import RULES, Parser
from declsyn.compiler.printer import print_node
from declsyn.compiler.tokens import Token, TokenType
from declsyn.utils.errors import DeclSynError, LexerError

logger = logging.getLogger("declsyn")

# Failures reading the input file, including undecodable bytes
INPUT_ERRORS = (OSError, UnicodeDecodeError)


# =============================================================================
# ANSI Color Codes for Terminal Output
# =============================================================================


class Colors:
    """ANSI escape codes for colored terminal output."""

    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    CYAN = "\033[96m"
    GRAY = "\033[90m"

    BOLD = "\033[1m"
    RESET = "\033[0m"

    @classmethod
    def disable(cls) -> None:
        """Disable all colors (for non-TTY output)."""
        cls.RED = ""
        cls.GREEN = ""
        cls.YELLOW = ""
        cls.CYAN = ""
        cls.GRAY = ""
        cls.BOLD = ""
        cls.RESET = ""


def _init_colors() -> None:
    """Initialize colors based on terminal capabilities."""
    if not sys.stdout.isatty() or os.environ.get("NO_COLOR"):
        Colors.disable()


_init_colors()


def _use_color(args: argparse.Namespace) -> bool:
    return not args.no_color and sys.stderr.isatty() and not os.environ.get("NO_COLOR")


# =============================================================================
# Argument Parsing
# =============================================================================


def _positive_int(text: str) -> int:
    value = int(text)
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return value


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    shared = argparse.ArgumentParser(add_help=False)
    shared.add_argument(
        "input",
        type=Path,
        help="Input file ('-' reads standard input)",
    )
    shared.add_argument(
        "--rule",
        choices=sorted(RULES),
        default="file",
        help="Grammar rule the whole input must match (default: file)",
    )
    shared.add_argument(
        "--max-depth",
        type=_positive_int,
        default=DEFAULT_MAX_DEPTH,
        help=f"Nesting limit for groups, types and expressions (default: {DEFAULT_MAX_DEPTH})",
    )
    shared.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log parser activity to stderr",
    )
    shared.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output",
    )

    parser = argparse.ArgumentParser(
        prog="declsyn",
        description="declsyn - parse and print Rust-style struct and enum declarations",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser(
        "check",
        parents=[shared],
        help="Check a file for syntax errors",
    )
    subparsers.add_parser(
        "tokens",
        parents=[shared],
        help="Show the token stream (debug)",
    )
    subparsers.add_parser(
        "ast",
        parents=[shared],
        help="Show the syntax tree (debug)",
    )
    print_parser = subparsers.add_parser(
        "print",
        aliases=["p"],
        parents=[shared],
        help="Parse a file and print it back",
    )
    print_parser.add_argument(
        "--check",
        action="store_true",
        help="Verify that the printed output lexes to the input's tokens",
    )

    return parser


def _configure(args: argparse.Namespace) -> None:
    if args.no_color:
        Colors.disable()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _read_input(input_path: Path) -> tuple[str, str]:
    """Read the input file, returning (source, display name)."""
    if str(input_path) == "-":
        return sys.stdin.read(), "<stdin>"
    return input_path.read_text(encoding="utf-8"), str(input_path)


def _input_missing(input_path: Path) -> bool:
    if str(input_path) != "-" and not input_path.exists():
        print(f"Error: File not found: {input_path}", file=sys.stderr)
        return True
    return False


def _input_error(input_path: Path, error: Exception) -> int:
    print(f"{Colors.RED}Error:{Colors.RESET} cannot read {input_path}: {error}", file=sys.stderr)
    return 1


def _parse(args: argparse.Namespace) -> tuple[ASTNode, str]:
    """
    Lex and parse the input with the selected rule.

    Diagnostics are printed to stderr before the error propagates.
    """
    source, filename = _read_input(args.input)
    parser: Optional[Parser] = None
    try:
        tokens = Lexer(source, filename).tokenize()
        parser = Parser(tokens, source, filename, max_depth=args.max_depth)
        return parser.parse(args.rule), source
    except DeclSynError as e:
        _report_error(e, parser, source, _use_color(args))
        raise


def _report_error(
    error: DeclSynError,
    parser: Optional[Parser],
    source: str,
    use_color: bool,
) -> None:
    if parser is not None and parser.diagnostics:
        for diagnostic in parser.diagnostics:
            print(diagnostic.render(source, use_color=use_color), file=sys.stderr)
            print(file=sys.stderr)
    else:
        print(f"{Colors.RED}Error:{Colors.RESET} {error}", file=sys.stderr)


# =============================================================================
# Commands
# =============================================================================


def cmd_check(args: argparse.Namespace) -> int:
    """Handle the check command."""
    if _input_missing(args.input):
        return 1

    try:
        _parse(args)
        print(f"{Colors.GREEN}OK:{Colors.RESET} {args.input} (no syntax errors)")
        return 0
    except DeclSynError:
        return 1
    except INPUT_ERRORS as e:
        return _input_error(args.input, e)


def cmd_tokens(args: argparse.Namespace) -> int:
    """Handle the tokens command (debug)."""
    if _input_missing(args.input):
        return 1

    try:
        source, filename = _read_input(args.input)
        for token in Lexer(source, filename).tokenize():
            joint = f" {Colors.GRAY}(joint){Colors.RESET}" if token.joint else ""
            print(f"{Colors.GRAY}{token.location}{Colors.RESET}  "
                  f"{token.type.name:<14} {token.lexeme!r}{joint}")
        return 0
    except LexerError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except INPUT_ERRORS as e:
        return _input_error(args.input, e)


def cmd_ast(args: argparse.Namespace) -> int:
    """Handle the ast command (debug)."""
    if _input_missing(args.input):
        return 1

    try:
        node, _ = _parse(args)
    except DeclSynError:
        return 1
    except INPUT_ERRORS as e:
        return _input_error(args.input, e)

    _print_ast(node)
    return 0


def cmd_print(args: argparse.Namespace) -> int:
    """Handle the print command: parse, then print the tree back."""
    if _input_missing(args.input):
        return 1

    try:
        node, source = _parse(args)
    except DeclSynError:
        return 1
    except INPUT_ERRORS as e:
        return _input_error(args.input, e)

    output = print_node(node)
    print(output)

    if not args.check:
        return 0

    expected = _significant(Lexer(source).tokenize())
    actual = _significant(Lexer(output).tokenize())
    if expected == actual:
        print(f"{Colors.GREEN}OK:{Colors.RESET} round trip preserved {len(expected)} tokens",
              file=sys.stderr)
        return 0

    index = next(
        (i for i, (a, b) in enumerate(zip(expected, actual)) if a != b),
        min(len(expected), len(actual)),
    )
    print(
        f"{Colors.RED}Error:{Colors.RESET} round trip drift at token {index}: "
        f"expected {_token_text(expected, index)}, printed {_token_text(actual, index)}",
        file=sys.stderr,
    )
    return 1


def _significant(tokens: list[Token]) -> list[Token]:
    return [token for token in tokens if token.type != TokenType.EOF]


def _token_text(tokens: list[Token], index: int) -> str:
    if index < len(tokens):
        return repr(tokens[index].lexeme)
    return "end of input"


# =============================================================================
# AST Dump
# =============================================================================


def _format_leaf(value: Any) -> str:
    if isinstance(value, Token):
        return repr(value.lexeme)
    if isinstance(value, Delimiter):
        return f"{value.open.lexeme}{value.close.lexeme}"
    return repr(value)


def _print_ast(node: ASTNode, indent: int = 0, label: str = "") -> None:
    """Pretty print an AST node."""
    prefix = "  " * indent
    head = f"{prefix}{label}: " if label else prefix
    fields = dataclasses.fields(node) if dataclasses.is_dataclass(node) else ()

    if not fields:
        print(f"{head}{type(node).__name__}")
        return

    print(f"{head}{type(node).__name__}")
    for field in fields:
        _print_value(field.name, getattr(node, field.name), indent + 1)


def _print_value(name: str, value: Any, indent: int) -> None:
    prefix = "  " * indent
    if isinstance(value, ASTNode):
        _print_ast(value, indent, name)
    elif isinstance(value, Punctuated):
        _print_sequence(name, list(value), indent)
    elif isinstance(value, tuple) and value and all(isinstance(v, Token) for v in value):
        print(f"{prefix}{name}: {' '.join(repr(v.lexeme) for v in value)}")
    elif isinstance(value, tuple) and value:
        _print_sequence(name, list(value), indent)
    elif value is None or value == ():
        return
    else:
        print(f"{prefix}{name}: {_format_leaf(value)}")


def _print_sequence(name: str, values: list[Any], indent: int) -> None:
    prefix = "  " * indent
    if not values:
        print(f"{prefix}{name}: []")
        return
    print(f"{prefix}{name}: [")
    for value in values:
        if isinstance(value, ASTNode):
            _print_ast(value, indent + 1)
        else:
            print(f"{prefix}  {_format_leaf(value)}")
    print(f"{prefix}]")


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    _configure(args)

    command_handlers = {
        "check": cmd_check,
        "tokens": cmd_tokens,
        "ast": cmd_ast,
        "print": cmd_print,
        "p": cmd_print,
    }

    handler = command_handlers.get(args.command)
    if handler:
        logger.debug("running %s on %s (rule=%s)", args.command, args.input, args.rule)
        return handler(args)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
