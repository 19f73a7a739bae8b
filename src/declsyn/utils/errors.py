"""
Error types and source location tracking for declsyn.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, slots=True)
class SourceLocation:
    """
    Represents a location in the source code.

    Attributes:
        line: 1-indexed line number
        column: 1-indexed column number
        offset: 0-indexed character offset from start of source
        filename: Optional filename for error reporting
    """

    line: int
    column: int
    offset: int = 0
    filename: Optional[str] = None

    def __str__(self) -> str:
        if self.filename:
            return f"{self.filename}:{self.line}:{self.column}"
        return f"{self.line}:{self.column}"


class DeclSynError(Exception):
    """Base exception for all declsyn errors."""

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ) -> None:
        self.message = message
        self.location = location
        self.source_line = source_line
        super().__init__(message)

    def __str__(self) -> str:
        # Formatted lazily
        return self._format_message()

    def _format_message(self) -> str:
        parts = []

        if self.location:
            parts.append(f"[{self.location}]")

        parts.append(self.message)

        if self.source_line and self.location:
            parts.append(f"\n    {self.source_line}")
            # Add caret pointing to the error column
            padding = " " * (4 + self.location.column - 1)
            parts.append(f"\n{padding}^")

        return " ".join(parts) if not self.source_line else parts[0] + " " + "".join(parts[1:])


class LexerError(DeclSynError):
    """Raised when the lexer encounters an invalid token or character."""

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        *,
        code: str = "E0104",
    ) -> None:
        self.code = code
        super().__init__(message, location, source_line)


class ParserError(DeclSynError):
    """
    Raised when a parse routine fails to recognize its construct.

    Every parse failure is recoverable by an enclosing alternation; it only
    becomes terminal when it reaches the caller with no alternative left.

    Attributes:
        position: Index of the offending token in the token stream. Used to
            rank failures of competing alternatives (deeper wins).
        description: Label of the construct that was being recognized,
            e.g. "enum variant". The innermost label is kept.
        code: Diagnostic error code (see ``ErrorCode``).
        opened_at: For unclosed delimiters, where the group was opened.
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        *,
        position: int = 0,
        description: Optional[str] = None,
        code: str = "E0201",
        opened_at: Optional[SourceLocation] = None,
    ) -> None:
        self.position = position
        self.description = description
        self.code = code
        self.opened_at = opened_at
        super().__init__(message, location, source_line)

    def _format_message(self) -> str:
        text = super()._format_message()
        if self.description:
            return f"{text} (while parsing {self.description})"
        return text

    def with_description(self, description: Optional[str]) -> "ParserError":
        """Return this error labelled with ``description`` unless already labelled."""
        if description is None or self.description is not None:
            return self
        return ParserError(
            self.message,
            self.location,
            self.source_line,
            position=self.position,
            description=description,
            code=self.code,
            opened_at=self.opened_at,
        )
