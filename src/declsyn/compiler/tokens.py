"""
Token definitions for the declsyn lexer.

This module defines the token types of the declaration grammar: keywords,
punctuation, delimiters and literals, plus the tables the lexer and printer
use to map between token types and their spelling.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Optional

from declsyn.utils.errors import SourceLocation


class TokenType(Enum):
    """Enumeration of all token types."""

    # End of file
    EOF = auto()

    # Literals
    INTEGER = auto()
    FLOAT = auto()
    STRING = auto()
    CHAR = auto()

    # Identifiers
    IDENTIFIER = auto()
    LIFETIME = auto()      # 'a

    # Keywords
    PUB = auto()
    CRATE = auto()
    SELF_VALUE = auto()    # self
    SELF_TYPE = auto()     # Self
    SUPER = auto()
    IN = auto()
    STRUCT = auto()
    ENUM = auto()
    MUT = auto()
    CONST = auto()
    AS = auto()
    TRUE = auto()
    FALSE = auto()

    # Delimiters
    LPAREN = auto()        # (
    RPAREN = auto()        # )
    LBRACE = auto()        # {
    RBRACE = auto()        # }
    LBRACKET = auto()      # [
    RBRACKET = auto()      # ]

    # Punctuation
    COMMA = auto()         # ,
    SEMICOLON = auto()     # ;
    COLON = auto()         # :
    DOUBLE_COLON = auto()  # ::
    DOT = auto()           # .
    ASSIGN = auto()        # =
    POUND = auto()         # #
    BANG = auto()          # !
    QUESTION = auto()      # ?
    AT = auto()            # @
    AMPERSAND = auto()     # &
    PIPE = auto()          # |
    CARET = auto()         # ^
    PLUS = auto()          # +
    MINUS = auto()         # -
    STAR = auto()          # *
    SLASH = auto()         # /
    PERCENT = auto()       # %
    LT = auto()            # <
    GT = auto()            # >
    THIN_ARROW = auto()    # ->
    FAT_ARROW = auto()     # =>
    EQ = auto()            # ==
    NE = auto()            # !=
    LE = auto()            # <=
    GE = auto()            # >=

    # Comments that survive lexing
    DOC_COMMENT = auto()   # /// text


# Mapping of keywords to token types
KEYWORDS: dict[str, TokenType] = {
    "pub": TokenType.PUB,
    "crate": TokenType.CRATE,
    "self": TokenType.SELF_VALUE,
    "Self": TokenType.SELF_TYPE,
    "super": TokenType.SUPER,
    "in": TokenType.IN,
    "struct": TokenType.STRUCT,
    "enum": TokenType.ENUM,
    "mut": TokenType.MUT,
    "const": TokenType.CONST,
    "as": TokenType.AS,
    "true": TokenType.TRUE,
    "false": TokenType.FALSE,
}

# Single character punctuation
SINGLE_CHAR_TOKENS: dict[str, TokenType] = {
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    ",": TokenType.COMMA,
    ";": TokenType.SEMICOLON,
    ":": TokenType.COLON,
    ".": TokenType.DOT,
    "=": TokenType.ASSIGN,
    "#": TokenType.POUND,
    "!": TokenType.BANG,
    "?": TokenType.QUESTION,
    "@": TokenType.AT,
    "&": TokenType.AMPERSAND,
    "|": TokenType.PIPE,
    "^": TokenType.CARET,
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.STAR,
    "/": TokenType.SLASH,
    "%": TokenType.PERCENT,
    "<": TokenType.LT,
    ">": TokenType.GT,
}

# Two character punctuation (checked before single char).
# `<<` and `>>` are deliberately absent: they are lexed as two joint `<`/`>`
# tokens so that nested generic arguments such as `Vec<Vec<T>>` close cleanly.
DOUBLE_CHAR_TOKENS: dict[str, TokenType] = {
    "::": TokenType.DOUBLE_COLON,
    "->": TokenType.THIN_ARROW,
    "=>": TokenType.FAT_ARROW,
    "==": TokenType.EQ,
    "!=": TokenType.NE,
    "<=": TokenType.LE,
    ">=": TokenType.GE,
}

# Canonical spelling of every fixed-text token type
TOKEN_TEXT: dict[TokenType, str] = {
    **{token_type: text for text, token_type in KEYWORDS.items()},
    **{token_type: text for text, token_type in SINGLE_CHAR_TOKENS.items()},
    **{token_type: text for text, token_type in DOUBLE_CHAR_TOKENS.items()},
}

OPEN_DELIMITERS: dict[TokenType, TokenType] = {
    TokenType.LPAREN: TokenType.RPAREN,
    TokenType.LBRACE: TokenType.RBRACE,
    TokenType.LBRACKET: TokenType.RBRACKET,
}

CLOSE_DELIMITERS: dict[TokenType, TokenType] = {
    close: open_ for open_, close in OPEN_DELIMITERS.items()
}

PUNCTUATION_CHARS = frozenset(SINGLE_CHAR_TOKENS) - frozenset("(){}[]")


@dataclass(slots=True)
class Token:
    """
    Represents a single token from the source code.

    Attributes:
        type: The type of this token
        value: The literal value (for literals) or lexeme text
        location: Source location of this token (None for synthesized tokens)
        text: Raw source spelling, kept so literals print back exactly
        joint: True when the next token followed without intervening
            whitespace; only tracked for punctuation
    """

    type: TokenType
    value: Any
    location: Optional[SourceLocation] = None
    text: str = ""
    joint: bool = False

    def __repr__(self) -> str:
        if self.value is not None:
            return f"Token({self.type.name}, {self.value!r}, {self.location})"
        return f"Token({self.type.name}, {self.location})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Token):
            return self.type == other.type and self.value == other.value
        if isinstance(other, TokenType):
            return self.type == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash((self.type, self.value))

    @classmethod
    def synthetic(cls, token_type: TokenType, value: Any = None) -> "Token":
        """Create a token that did not come from source text."""
        if value is None:
            value = TOKEN_TEXT.get(token_type)
        return cls(token_type, value)

    @property
    def lexeme(self) -> str:
        """The source spelling of this token."""
        if self.text:
            return self.text
        if self.type in TOKEN_TEXT:
            return TOKEN_TEXT[self.type]
        if self.type == TokenType.DOC_COMMENT:
            return f"/// {self.value}" if self.value else "///"
        if self.type == TokenType.EOF:
            return ""
        return str(self.value)

    @property
    def is_literal(self) -> bool:
        """Check if this token represents a literal value."""
        return self.type in {
            TokenType.INTEGER,
            TokenType.FLOAT,
            TokenType.STRING,
            TokenType.CHAR,
            TokenType.TRUE,
            TokenType.FALSE,
        }

    @property
    def is_keyword(self) -> bool:
        """Check if this token is a reserved word."""
        return self.type in TOKEN_TEXT and self.value in KEYWORDS

    @property
    def is_punctuation(self) -> bool:
        """Check if this token is an operator or punctuation mark."""
        return self.type in TOKEN_TEXT and not self.is_keyword


def describe_token_type(token_type: TokenType) -> str:
    """Human readable name for a token type, used in error messages."""
    if token_type in TOKEN_TEXT:
        return f"`{TOKEN_TEXT[token_type]}`"
    if token_type == TokenType.EOF:
        return "end of input"
    return token_type.name.lower().replace("_", " ")


def describe_token(token: Token) -> str:
    """Human readable rendering of a concrete token, used in error messages."""
    if token.type == TokenType.EOF:
        return "end of input"
    if token.type == TokenType.DOC_COMMENT:
        return "doc comment"
    return f"`{token.lexeme}`"
