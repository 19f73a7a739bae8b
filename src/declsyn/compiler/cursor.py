"""
Token stream and immutable cursor for the declsyn parser.

A ``TokenStream`` is built once from lexer output. Construction pairs every
opening delimiter with its closer, so unbalanced input is rejected before
any grammar rule runs and parse routines can treat `(...)`, `{...}` and
`[...]` as opaque groups.

A ``Cursor`` is a cheap immutable position in a stream. Parse routines take
a cursor and return the cursor after what they consumed; backtracking is
just keeping the old one.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from declsyn.compiler.tokens import (
    CLOSE_DELIMITERS,
    OPEN_DELIMITERS,
    Token,
    TokenType,
    describe_token,
    describe_token_type,
)
from declsyn.utils.errors import ParserError, SourceLocation

DEFAULT_MAX_DEPTH = 128


class TokenStream:
    """
    A token sequence with precomputed delimiter pairs.

    Raises:
        ParserError: E0202 for an unclosed delimiter, E0203 for a closer
            of the wrong kind, E0204 for a closer with no opener.
    """

    def __init__(
        self,
        tokens: Sequence[Token],
        *,
        max_depth: int = DEFAULT_MAX_DEPTH,
        source: Optional[str] = None,
    ) -> None:
        tokens = tuple(tokens)
        if not tokens or tokens[-1].type != TokenType.EOF:
            last = tokens[-1].location if tokens else None
            tokens = tokens + (Token(TokenType.EOF, None, last),)
        self.tokens: tuple[Token, ...] = tokens
        self.max_depth = max_depth
        self.source = source
        self._lines: list[str] = source.splitlines() if source is not None else []
        self._closers = self._pair_delimiters()

    def __repr__(self) -> str:
        return f"TokenStream({len(self.tokens)} tokens, max_depth={self.max_depth})"

    def _pair_delimiters(self) -> dict[int, int]:
        closers: dict[int, int] = {}
        stack: list[int] = []

        for index, token in enumerate(self.tokens):
            if token.type in OPEN_DELIMITERS:
                stack.append(index)
            elif token.type in CLOSE_DELIMITERS:
                if not stack:
                    raise self._error(
                        f"unexpected closing delimiter {describe_token(token)}",
                        index,
                        code="E0204",
                    )
                open_index = stack.pop()
                expected = OPEN_DELIMITERS[self.tokens[open_index].type]
                if token.type != expected:
                    raise self._error(
                        f"mismatched closing delimiter: expected "
                        f"{describe_token_type(expected)}, found {describe_token(token)}",
                        index,
                        code="E0203",
                        opened_at=self.tokens[open_index].location,
                    )
                closers[open_index] = index
            elif token.type == TokenType.EOF and stack:
                open_index = stack[-1]
                opener = self.tokens[open_index]
                raise self._error(
                    f"unclosed delimiter {describe_token(opener)}: expected "
                    f"{describe_token_type(OPEN_DELIMITERS[opener.type])}, found end of input",
                    index,
                    code="E0202",
                    opened_at=opener.location,
                )

        return closers

    def __len__(self) -> int:
        return len(self.tokens)

    def closer_of(self, index: int) -> int:
        """Index of the closing delimiter matching the opener at ``index``."""
        return self._closers[index]

    def location_of(self, index: int) -> Optional[SourceLocation]:
        return self.tokens[min(index, len(self.tokens) - 1)].location

    def source_line(self, location: Optional[SourceLocation]) -> Optional[str]:
        if location is None:
            return None
        if 0 < location.line <= len(self._lines):
            return self._lines[location.line - 1]
        return None

    def _error(
        self,
        message: str,
        index: int,
        *,
        code: str = "E0201",
        opened_at: Optional[SourceLocation] = None,
    ) -> ParserError:
        location = self.location_of(index)
        return ParserError(
            message,
            location,
            self.source_line(location),
            position=index,
            code=code,
            opened_at=opened_at,
        )

    def begin(self) -> "Cursor":
        """A cursor spanning the whole stream, excluding the trailing EOF."""
        return Cursor(self, 0, len(self.tokens) - 1)


@dataclass(frozen=True, slots=True)
class Cursor:
    """
    Immutable position within a token stream.

    Attributes:
        stream: The stream being parsed
        pos: Index of the current token
        end: Index one past the last token visible to this cursor; inside a
            delimited group this is the closing delimiter
        depth: Current group/recursion nesting depth
    """

    stream: TokenStream
    pos: int
    end: int
    depth: int = 0

    @property
    def current(self) -> Token:
        """The current token, or an end marker when the cursor is exhausted."""
        if self.pos >= self.end:
            # The closer of the enclosing group, or EOF at top level
            return self.stream.tokens[self.end]
        return self.stream.tokens[self.pos]

    @property
    def at_end(self) -> bool:
        return self.pos >= self.end

    def peek(self, offset: int = 1) -> Optional[Token]:
        """Look ahead ``offset`` tokens without leaving the current group."""
        index = self.pos + offset
        if index >= self.end:
            return None
        return self.stream.tokens[index]

    def check(self, *types: TokenType) -> bool:
        """Check if the current token is one of the given types."""
        return not self.at_end and self.current.type in types

    def advance(self) -> tuple[Token, "Cursor"]:
        """Consume one token. Consuming an opener skips its whole group."""
        if self.at_end:
            raise self.error("unexpected end of input", code="E0205")
        token = self.current
        next_pos = self.pos + 1
        if token.type in OPEN_DELIMITERS:
            next_pos = self.stream.closer_of(self.pos) + 1
        return token, Cursor(self.stream, next_pos, self.end, self.depth)

    def enter_group(self, open_type: TokenType) -> tuple[Token, "Cursor", Token, "Cursor"]:
        """
        Enter the delimited group at the cursor.

        Returns:
            (open token, cursor over the group contents, close token,
            cursor after the group)
        """
        if not self.check(open_type):
            raise self.expected(describe_token_type(open_type))
        close_index = self.stream.closer_of(self.pos)
        inner = Cursor(self.stream, self.pos + 1, close_index, self.depth).nested()
        after = Cursor(self.stream, close_index + 1, self.end, self.depth)
        return self.current, inner, self.stream.tokens[close_index], after

    def nested(self) -> "Cursor":
        """One level deeper; fails once the stream's nesting limit is exceeded."""
        depth = self.depth + 1
        if depth > self.stream.max_depth:
            raise self.error(
                f"nesting limit of {self.stream.max_depth} exceeded",
                code="E0209",
            )
        return Cursor(self.stream, self.pos, self.end, depth)

    def at_depth(self, depth: int) -> "Cursor":
        """Same position, with the nesting depth reset to ``depth``."""
        return Cursor(self.stream, self.pos, self.end, depth)

    def remaining(self) -> tuple[Token, ...]:
        """Tokens from the cursor to the end of its range."""
        return self.stream.tokens[self.pos:self.end]

    def skip_rest(self) -> "Cursor":
        """A cursor with every remaining token consumed."""
        return Cursor(self.stream, self.end, self.end, self.depth)

    # -------------------------------------------------------------------------
    # Error construction
    # -------------------------------------------------------------------------

    def error(self, message: str, *, code: str = "E0201") -> ParserError:
        return self.stream._error(message, self.pos if not self.at_end else self.end, code=code)

    def expected(self, what: str) -> ParserError:
        """An ``expected X, found Y`` error at the current token."""
        if self.at_end:
            return self.error(f"expected {what}, found {self._describe_end()}", code="E0205")
        return self.error(f"expected {what}, found {describe_token(self.current)}")

    def _describe_end(self) -> str:
        end_token = self.stream.tokens[self.end]
        if end_token.type == TokenType.EOF:
            return "end of input"
        return f"end of group ({describe_token(end_token)})"
