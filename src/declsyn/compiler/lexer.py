"""
declsyn Lexer (Tokenizer).

Transforms declaration source text into a stream of tokens. Besides the
token type and value, each token remembers its raw spelling and whether it
was immediately followed by another punctuation mark, which lets the printer
reproduce text that re-lexes into the same token sequence.
"""

from typing import Iterator, Optional

from declsyn.compiler.tokens import (
    DOUBLE_CHAR_TOKENS,
    KEYWORDS,
    PUNCTUATION_CHARS,
    SINGLE_CHAR_TOKENS,
    Token,
    TokenType,
)
from declsyn.utils.diagnostics import ErrorCode
from declsyn.utils.errors import LexerError, SourceLocation


class Lexer:
    """
    Tokenizer for declaration source code.

    The lexer supports:
    - Identifiers, keywords and lifetimes ('a)
    - Integer literals (decimal, 0x, 0o, 0b, with `_` separators and suffixes)
    - Float literals (1.5, 2e10, 1.0f32)
    - String and character literals
    - Comments (// line, /* block */ with nesting); /// doc comments are kept
    - Punctuation and delimiters

    Usage:
        lexer = Lexer(source_code)
        tokens = lexer.tokenize()
    """

    def __init__(self, source: str, filename: Optional[str] = None) -> None:
        """
        Initialize the lexer with source code.

        Args:
            source: The source code to tokenize
            filename: Optional filename for error reporting
        """
        self.source = source
        self.filename = filename
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens: list[Token] = []

        # Track the start of the current line for error reporting
        self._line_start = 0

    @property
    def _current_char(self) -> Optional[str]:
        """Return the current character or None if at end."""
        if self.pos >= len(self.source):
            return None
        return self.source[self.pos]

    @property
    def _peek_char(self) -> Optional[str]:
        """Return the next character without consuming it."""
        return self._peek_ahead(1)

    def _peek_ahead(self, n: int) -> Optional[str]:
        """Return the character n positions ahead."""
        peek_pos = self.pos + n
        if peek_pos >= len(self.source):
            return None
        return self.source[peek_pos]

    def _location(self) -> SourceLocation:
        """Create a SourceLocation for the current position."""
        return SourceLocation(
            line=self.line,
            column=self.column,
            offset=self.pos,
            filename=self.filename,
        )

    def _current_line_text(self) -> str:
        """Extract the current line of source for error messages."""
        end = self.source.find("\n", self._line_start)
        if end == -1:
            end = len(self.source)
        return self.source[self._line_start:end]

    def _error(self, message: str, location: SourceLocation, code: str) -> LexerError:
        return LexerError(message, location, self._current_line_text(), code=code)

    def _advance(self) -> str:
        """Consume and return the current character."""
        char = self.source[self.pos]
        self.pos += 1

        if char == "\n":
            self.line += 1
            self.column = 1
            self._line_start = self.pos
        else:
            self.column += 1

        return char

    def _skip_whitespace(self) -> None:
        """Skip whitespace characters, newlines included."""
        while self._current_char is not None and self._current_char.isspace():
            self._advance()

    def _is_doc_comment(self) -> bool:
        """`///` starts a doc comment, but `////` is an ordinary comment."""
        return (
            self._current_char == "/"
            and self._peek_char == "/"
            and self._peek_ahead(2) == "/"
            and self._peek_ahead(3) != "/"
        )

    def _skip_line_comment(self) -> bool:
        """Skip a // comment. Returns True if a comment was skipped."""
        if self._current_char == "/" and self._peek_char == "/" and not self._is_doc_comment():
            while self._current_char is not None and self._current_char != "\n":
                self._advance()
            return True
        return False

    def _skip_block_comment(self) -> bool:
        """
        Skip a /* ... */ comment, honouring nesting.

        Returns:
            True if a block comment was skipped, False otherwise.
        """
        if not (self._current_char == "/" and self._peek_char == "*"):
            return False

        start_loc = self._location()
        self._advance()  # /
        self._advance()  # *
        depth = 1

        while depth > 0:
            if self._current_char is None:
                raise self._error("Unterminated block comment", start_loc, ErrorCode.E0102)
            if self._current_char == "/" and self._peek_char == "*":
                self._advance()
                self._advance()
                depth += 1
            elif self._current_char == "*" and self._peek_char == "/":
                self._advance()
                self._advance()
                depth -= 1
            else:
                self._advance()

        return True

    def _read_doc_comment(self) -> Token:
        """Read a /// comment. The value is the text after one optional space."""
        start_loc = self._location()
        start = self.pos
        for _ in range(3):
            self._advance()

        while self._current_char is not None and self._current_char != "\n":
            self._advance()

        raw = self.source[start:self.pos].rstrip()
        content = raw[3:]
        if content.startswith(" "):
            content = content[1:]
        return Token(TokenType.DOC_COMMENT, content, start_loc, raw)

    def _read_quoted(self, quote_char: str, token_type: TokenType) -> Token:
        """
        Read a string or character literal.

        The value holds the unescaped contents, the raw text keeps the quotes
        and escapes exactly as written.
        """
        start_loc = self._location()
        start = self.pos
        self._advance()  # opening quote

        value_chars: list[str] = []
        escape_sequences = {
            "n": "\n",
            "t": "\t",
            "r": "\r",
            "\\": "\\",
            "'": "'",
            '"': '"',
            "0": "\0",
        }
        kind = "string" if token_type == TokenType.STRING else "character"

        while True:
            if self._current_char is None:
                raise self._error(f"Unterminated {kind} literal", start_loc, ErrorCode.E0101)

            if self._current_char == "\n" and token_type == TokenType.CHAR:
                raise self._error(
                    "Newline in character literal", self._location(), ErrorCode.E0101
                )

            if self._current_char == quote_char:
                self._advance()
                break

            if self._current_char == "\\":
                self._advance()
                if self._current_char is None:
                    raise self._error(
                        "Unterminated escape sequence", self._location(), ErrorCode.E0101
                    )
                escaped = escape_sequences.get(self._current_char)
                if escaped is None:
                    raise self._error(
                        f"Invalid escape sequence: \\{self._current_char}",
                        self._location(),
                        ErrorCode.E0101,
                    )
                value_chars.append(escaped)
                self._advance()
            else:
                value_chars.append(self._advance())

        return Token(token_type, "".join(value_chars), start_loc, self.source[start:self.pos])

    def _read_char_or_lifetime(self) -> Token:
        """Disambiguate `'a'` (character) from `'a` (lifetime)."""
        if self._peek_char == "\\" or self._peek_ahead(2) == "'":
            return self._read_quoted("'", TokenType.CHAR)

        start_loc = self._location()
        if self._peek_char is None or not (self._peek_char.isalpha() or self._peek_char == "_"):
            raise self._error("Expected lifetime name after `'`", start_loc, ErrorCode.E0104)

        start = self.pos
        self._advance()  # '
        while self._current_char is not None and (
            self._current_char.isalnum() or self._current_char == "_"
        ):
            self._advance()
        text = self.source[start:self.pos]
        return Token(TokenType.LIFETIME, text, start_loc, text)

    def _read_number(self) -> Token:
        """
        Read a numeric literal (integer or float).

        Supports:
        - Decimal integers: 123, 1_000_000
        - Prefixed integers: 0xFF, 0o17, 0b1010
        - Floats: 1.5, 1e10, 2.5E-3
        - Type suffixes: 1u8, 2i64, 1.0f32

        Returns:
            An INTEGER or FLOAT token.
        """
        start_loc = self._location()
        start = self.pos
        base = 10

        if self._current_char == "0" and self._peek_char in ("x", "o", "b"):
            base = {"x": 16, "o": 8, "b": 2}[self._peek_char]
            self._advance()
            self._advance()
            digits: list[str] = []
            while self._current_char is not None and (
                self._current_char.isalnum() or self._current_char == "_"
            ):
                char = self._advance()
                if char != "_":
                    digits.append(char)
            text = self.source[start:self.pos]
            literal, _suffix = _split_suffix("".join(digits))
            try:
                value = int(literal, base)
            except ValueError:
                raise self._error(f"Invalid number: {text}", start_loc, ErrorCode.E0103) from None
            return Token(TokenType.INTEGER, value, start_loc, text)

        num_chars: list[str] = []
        is_float = False

        while self._current_char is not None and (
            self._current_char.isdigit() or self._current_char == "_"
        ):
            char = self._advance()
            if char != "_":
                num_chars.append(char)

        # A dot only continues the number when a digit follows (`1.5`, not `1..2`)
        if self._current_char == "." and self._peek_char is not None and self._peek_char.isdigit():
            is_float = True
            num_chars.append(self._advance())
            while self._current_char is not None and (
                self._current_char.isdigit() or self._current_char == "_"
            ):
                char = self._advance()
                if char != "_":
                    num_chars.append(char)

        if self._current_char is not None and self._current_char in "eE":
            is_float = True
            num_chars.append(self._advance())
            if self._current_char is not None and self._current_char in "+-":
                num_chars.append(self._advance())
            if self._current_char is None or not self._current_char.isdigit():
                raise self._error(
                    "Invalid number: expected exponent digits",
                    self._location(),
                    ErrorCode.E0103,
                )
            while self._current_char is not None and self._current_char.isdigit():
                num_chars.append(self._advance())

        # Type suffix such as u8 or f64
        suffix_chars: list[str] = []
        while self._current_char is not None and (
            self._current_char.isalnum() or self._current_char == "_"
        ):
            suffix_chars.append(self._advance())
        suffix = "".join(suffix_chars)
        if suffix.startswith("f"):
            is_float = True

        text = self.source[start:self.pos]
        value_str = "".join(num_chars)

        if is_float:
            return Token(TokenType.FLOAT, float(value_str), start_loc, text)
        return Token(TokenType.INTEGER, int(value_str), start_loc, text)

    def _read_identifier_or_keyword(self) -> Token:
        """
        Read an identifier or keyword.

        Returns:
            An IDENTIFIER token or the appropriate keyword token.
        """
        start_loc = self._location()
        start = self.pos

        while self._current_char is not None and (
            self._current_char.isalnum() or self._current_char == "_"
        ):
            self._advance()

        identifier = self.source[start:self.pos]

        if identifier in KEYWORDS:
            return Token(KEYWORDS[identifier], identifier, start_loc)
        return Token(TokenType.IDENTIFIER, identifier, start_loc)

    def _read_operator(self) -> Optional[Token]:
        """
        Read a punctuation token (single or double character).

        Returns:
            A punctuation token, or None if the current character is not one.
        """
        if self._current_char is None:
            return None

        start_loc = self._location()

        if self._peek_char is not None:
            two_char = self._current_char + self._peek_char
            if two_char in DOUBLE_CHAR_TOKENS:
                self._advance()
                self._advance()
                return Token(DOUBLE_CHAR_TOKENS[two_char], two_char, start_loc)

        if self._current_char in SINGLE_CHAR_TOKENS:
            char = self._advance()
            return Token(SINGLE_CHAR_TOKENS[char], char, start_loc)

        return None

    def _next_token(self) -> Token:
        """
        Extract the next token from the source.

        Returns:
            The next token; an EOF token at the end of the source.
        """
        while True:
            self._skip_whitespace()
            if self._is_doc_comment():
                return self._read_doc_comment()
            if self._skip_line_comment():
                continue
            if self._skip_block_comment():
                continue
            break

        if self._current_char is None:
            return Token(TokenType.EOF, None, self._location())

        char = self._current_char

        if char == '"':
            return self._read_quoted('"', TokenType.STRING)

        if char == "'":
            return self._read_char_or_lifetime()

        if char.isdigit():
            return self._read_number()

        if char.isalpha() or char == "_":
            return self._read_identifier_or_keyword()

        op_token = self._read_operator()
        if op_token is not None:
            op_token.joint = (
                op_token.type not in _DELIMITER_TYPES
                and self._current_char is not None
                and self._current_char in PUNCTUATION_CHARS
                and not self._at_comment_start()
            )
            return op_token

        raise self._error(
            f"Unexpected character: {char!r}", self._location(), ErrorCode.E0104
        )

    def _at_comment_start(self) -> bool:
        return self._current_char == "/" and self._peek_char in ("/", "*")

    def tokenize(self) -> list[Token]:
        """
        Tokenize the entire source code.

        Returns:
            A list of all tokens including the final EOF token.
        """
        self.tokens = []
        self.pos = 0
        self.line = 1
        self.column = 1
        self._line_start = 0

        while True:
            token = self._next_token()
            self.tokens.append(token)
            if token.type == TokenType.EOF:
                break

        return self.tokens

    def __iter__(self) -> Iterator[Token]:
        """Iterate over tokens (re-tokenizes if necessary)."""
        if not self.tokens:
            self.tokenize()
        return iter(self.tokens)


_DELIMITER_TYPES = frozenset(
    {
        TokenType.LPAREN,
        TokenType.RPAREN,
        TokenType.LBRACE,
        TokenType.RBRACE,
        TokenType.LBRACKET,
        TokenType.RBRACKET,
    }
)


def _split_suffix(digits: str) -> tuple[str, str]:
    """Split a prefixed integer body into its digits and a `u`/`i` type suffix."""
    for index, char in enumerate(digits):
        if char in "uUiI":
            return digits[:index], digits[index:]
    return digits, ""


def tokenize(source: str, filename: Optional[str] = None) -> list[Token]:
    """
    Convenience function to tokenize source code.

    Args:
        source: Declaration source code
        filename: Optional filename for error reporting

    Returns:
        List of tokens
    """
    return Lexer(source, filename).tokenize()
