"""
Rust-like Rich Error Diagnostics for declsyn.

This module turns parse and lex failures into readable diagnostics with
source code context and suggestions.

Example output:
    error[E0202]: unclosed delimiter '('
      --> types.rs:3:15
       |
     3 |     pub(crate T
       |        -      ^
       |
       = help: add matching closing ')'
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


# =============================================================================
# Error Codes Catalog
# =============================================================================


class ErrorCode:
    """
    Centralized catalog of error codes for declsyn diagnostics.

    Error codes are organized by category:
    - E01xx: Lexical errors
    - E02xx: Syntax errors
    """

    # Lexical errors: E01xx
    E0101 = "E0101"  # unterminated string
    E0102 = "E0102"  # unterminated comment
    E0103 = "E0103"  # invalid number
    E0104 = "E0104"  # unexpected character

    # Syntax errors: E02xx
    E0201 = "E0201"  # unexpected token
    E0202 = "E0202"  # unclosed delimiter
    E0203 = "E0203"  # mismatched closing delimiter
    E0204 = "E0204"  # unexpected closing delimiter
    E0205 = "E0205"  # unexpected end of input
    E0206 = "E0206"  # trailing tokens
    E0209 = "E0209"  # nesting limit exceeded


ERROR_DESCRIPTIONS: dict[str, str] = {
    ErrorCode.E0101: "unterminated string",
    ErrorCode.E0102: "unterminated comment",
    ErrorCode.E0103: "invalid number",
    ErrorCode.E0104: "unexpected character",
    ErrorCode.E0201: "unexpected token",
    ErrorCode.E0202: "unclosed delimiter",
    ErrorCode.E0203: "mismatched closing delimiter",
    ErrorCode.E0204: "unexpected closing delimiter",
    ErrorCode.E0205: "unexpected end of input",
    ErrorCode.E0206: "trailing tokens",
    ErrorCode.E0209: "nesting limit exceeded",
}


# =============================================================================
# Diagnostic Types
# =============================================================================


class DiagnosticLevel(Enum):
    """Severity level of a diagnostic message."""

    ERROR = "error"
    WARNING = "warning"
    NOTE = "note"
    HELP = "help"

    def color_code(self) -> str:
        """Get ANSI color code for this level."""
        colors = {
            DiagnosticLevel.ERROR: "\033[91m",  # Red
            DiagnosticLevel.WARNING: "\033[93m",  # Yellow
            DiagnosticLevel.NOTE: "\033[96m",  # Cyan
            DiagnosticLevel.HELP: "\033[92m",  # Green
        }
        return colors.get(self, "")


@dataclass(frozen=True, slots=True)
class SourceSpan:
    """
    A span of source code, representing a range of characters.

    Attributes:
        start_line: 1-indexed starting line number
        start_col: 1-indexed starting column number
        end_line: 1-indexed ending line number
        end_col: 1-indexed ending column number (exclusive)
        filename: Optional filename for display
    """

    start_line: int
    start_col: int
    end_line: int
    end_col: int
    filename: str = "<input>"

    @classmethod
    def from_location(
        cls, line: int, col: int, length: int = 1, filename: str = "<input>"
    ) -> "SourceSpan":
        """Create a span from a single location with a given length."""
        return cls(
            start_line=line,
            start_col=col,
            end_line=line,
            end_col=col + length,
            filename=filename,
        )

    def __str__(self) -> str:
        return f"{self.filename}:{self.start_line}:{self.start_col}"

    @property
    def is_multiline(self) -> bool:
        """Check if this span covers multiple lines."""
        return self.start_line != self.end_line

    @property
    def length(self) -> int:
        """Get the length of the span on a single line."""
        if self.is_multiline:
            return 1
        return max(1, self.end_col - self.start_col)


@dataclass(slots=True)
class DiagnosticLabel:
    """
    A label pointing to a specific span of source code.

    Attributes:
        span: The source span this label points to
        message: Optional message to display with the label
        is_primary: Whether this is the primary label (shown with ^^^)
    """

    span: SourceSpan
    message: str = ""
    is_primary: bool = True


@dataclass
class Diagnostic:
    """
    A rich diagnostic message with source context.

    Attributes:
        code: Error code (e.g., "E0201")
        level: Severity level (ERROR, WARNING, NOTE, HELP)
        message: The main diagnostic message
        labels: List of source code labels
        notes: Additional notes to display
        helps: Help messages with suggestions
    """

    code: str
    level: DiagnosticLevel
    message: str
    labels: list[DiagnosticLabel] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)
    helps: list[str] = field(default_factory=list)

    @property
    def primary_label(self) -> Optional[DiagnosticLabel]:
        """The primary label, falling back to the first one."""
        if not self.labels:
            return None
        return next((label for label in self.labels if label.is_primary), self.labels[0])

    def render(self, source_code: str, use_color: bool = True) -> str:
        """
        Render this diagnostic as a formatted string.

        Args:
            source_code: The original source code for context
            use_color: Whether to use ANSI color codes

        Returns:
            A formatted multi-line string representation
        """
        lines: list[str] = []
        source_lines = source_code.splitlines()

        reset = "\033[0m" if use_color else ""
        bold = "\033[1m" if use_color else ""
        green = "\033[92m" if use_color else ""
        blue = "\033[94m" if use_color else ""
        level_color = self.level.color_code() if use_color else ""

        # Header line: error[E0201]: expected identifier, found '('
        level_str = self.level.value
        if self.code in ERROR_DESCRIPTIONS:
            header = (
                f"{level_color}{bold}{level_str}[{self.code}]{reset}: {bold}{self.message}{reset}"
            )
        else:
            header = f"{level_color}{bold}{level_str}{reset}: {bold}{self.message}{reset}"
        lines.append(header)

        primary = self.primary_label
        if primary is not None:
            lines.append(f"  {blue}-->{reset} {primary.span}")

        if self.labels and source_lines:
            lines.append(f"   {blue}|{reset}")

            labels_by_line: dict[int, list[DiagnosticLabel]] = {}
            for label in self.labels:
                labels_by_line.setdefault(label.span.start_line, []).append(label)

            for line_num in sorted(labels_by_line):
                if not 1 <= line_num <= len(source_lines):
                    continue
                lines.append(f"{blue}{line_num:3} |{reset} {source_lines[line_num - 1]}")

                for label in labels_by_line[line_num]:
                    underline_char = "^" if label.is_primary else "-"
                    underline_color = level_color if label.is_primary else blue
                    padding = " " * (label.span.start_col - 1)
                    underline = underline_char * label.span.length

                    underline_line = (
                        f"   {blue}|{reset} {padding}{underline_color}{underline}{reset}"
                    )
                    if label.message:
                        underline_line += f" {underline_color}{label.message}{reset}"
                    lines.append(underline_line)

            lines.append(f"   {blue}|{reset}")

        for note in self.notes:
            lines.append(f"   {blue}={reset} {bold}note:{reset} {note}")

        for help_msg in self.helps:
            lines.append(f"   {blue}={reset} {green}help:{reset} {help_msg}")

        return "\n".join(lines)

    def to_simple_message(self) -> str:
        """Get a simple one-line error message for compatibility."""
        return f"[{self.code}] {self.message}"


# =============================================================================
# Diagnostic Builder (Fluent API)
# =============================================================================


class DiagnosticBuilder:
    """
    Fluent builder for constructing Diagnostic objects.

        emitter.error("E0201", "expected identifier, found '('", span)
            .secondary_label(other, "visibility ends here")
            .help("remove the parentheses")
            .emit()
    """

    def __init__(
        self,
        emitter: "DiagnosticEmitter",
        code: str,
        level: DiagnosticLevel,
        message: str,
        primary_span: Optional[SourceSpan] = None,
    ) -> None:
        self._emitter = emitter
        self._code = code
        self._level = level
        self._message = message
        self._labels: list[DiagnosticLabel] = []
        self._notes: list[str] = []
        self._helps: list[str] = []

        if primary_span:
            self._labels.append(DiagnosticLabel(primary_span, "", True))

    def primary_label(self, span: SourceSpan, message: str = "") -> "DiagnosticBuilder":
        """Add a primary label (replaces any existing primary)."""
        self._labels = [label for label in self._labels if not label.is_primary]
        self._labels.insert(0, DiagnosticLabel(span, message, True))
        return self

    def secondary_label(self, span: SourceSpan, message: str = "") -> "DiagnosticBuilder":
        """Add a secondary label."""
        self._labels.append(DiagnosticLabel(span, message, False))
        return self

    def note(self, message: str) -> "DiagnosticBuilder":
        """Add a note."""
        self._notes.append(message)
        return self

    def help(self, message: str) -> "DiagnosticBuilder":
        """Add a help message."""
        self._helps.append(message)
        return self

    def build(self) -> Diagnostic:
        """Build the diagnostic without emitting."""
        return Diagnostic(
            code=self._code,
            level=self._level,
            message=self._message,
            labels=self._labels,
            notes=self._notes,
            helps=self._helps,
        )

    def emit(self) -> Diagnostic:
        """Build and emit the diagnostic to the emitter."""
        diagnostic = self.build()
        self._emitter.add_diagnostic(diagnostic)
        return diagnostic


# =============================================================================
# Diagnostic Emitter
# =============================================================================


class DiagnosticEmitter:
    """
    Collects and renders diagnostics for a source file.

    Usage:
        emitter = DiagnosticEmitter(source, "types.rs")
        emitter.error("E0201", "expected identifier", span).emit()
        print(emitter.render_all())
    """

    def __init__(self, source: str, filename: str = "<input>") -> None:
        self.source = source
        self.filename = filename
        self.source_lines = source.splitlines()
        self.diagnostics: list[Diagnostic] = []

    def add_diagnostic(self, diagnostic: Diagnostic) -> None:
        """Add a diagnostic to the collection."""
        self.diagnostics.append(diagnostic)

    def error(
        self, code: str, message: str, span: Optional[SourceSpan] = None
    ) -> DiagnosticBuilder:
        """Create an error diagnostic builder."""
        return DiagnosticBuilder(self, code, DiagnosticLevel.ERROR, message, span)

    def warning(
        self, code: str, message: str, span: Optional[SourceSpan] = None
    ) -> DiagnosticBuilder:
        """Create a warning diagnostic builder."""
        return DiagnosticBuilder(self, code, DiagnosticLevel.WARNING, message, span)

    def has_errors(self) -> bool:
        """Check if any error diagnostics have been emitted."""
        return any(d.level == DiagnosticLevel.ERROR for d in self.diagnostics)

    def error_count(self) -> int:
        """Count the number of error diagnostics."""
        return sum(1 for d in self.diagnostics if d.level == DiagnosticLevel.ERROR)

    def get_line(self, line_num: int) -> str:
        """Get a source line by number (1-indexed)."""
        if 1 <= line_num <= len(self.source_lines):
            return self.source_lines[line_num - 1]
        return ""

    def render_all(self, use_color: bool = True) -> str:
        """Render all diagnostics as a single string."""
        return "\n\n".join(d.render(self.source, use_color) for d in self.diagnostics)

    def clear(self) -> None:
        """Clear all diagnostics."""
        self.diagnostics.clear()


# =============================================================================
# String Similarity (Levenshtein Distance)
# =============================================================================


def levenshtein_distance(s1: str, s2: str) -> int:
    """
    Compute the edit distance between two strings.

    Examples:
        >>> levenshtein_distance("crate", "crat")
        1
        >>> levenshtein_distance("super", "supper")
        1
    """
    if len(s1) < len(s2):
        return levenshtein_distance(s2, s1)
    if not s2:
        return len(s1)

    previous_row = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1):
        current_row = [i + 1]
        for j, c2 in enumerate(s2):
            insertions = previous_row[j + 1] + 1
            deletions = current_row[j] + 1
            substitutions = previous_row[j] + (c1 != c2)
            current_row.append(min(insertions, deletions, substitutions))
        previous_row = current_row

    return previous_row[-1]


def suggest_similar(
    name: str,
    candidates: list[str],
    max_distance: int = 2,
) -> Optional[str]:
    """
    Find the closest candidate to ``name`` within ``max_distance`` edits.

    Returns:
        The best match, or None if nothing is close enough.
    """
    best: Optional[str] = None
    best_distance = max_distance + 1
    for candidate in candidates:
        if candidate == name:
            continue
        distance = levenshtein_distance(name.lower(), candidate.lower())
        if distance < best_distance:
            best = candidate
            best_distance = distance
    return best


# =============================================================================
# Helpers for Common Diagnostics
# =============================================================================


def create_unclosed_delimiter_diagnostic(
    emitter: DiagnosticEmitter,
    delimiter: str,
    open_span: SourceSpan,
    error_span: SourceSpan,
) -> Diagnostic:
    """Create a diagnostic for unclosed delimiter."""
    builder = emitter.error(
        ErrorCode.E0202,
        f"unclosed delimiter '{delimiter}'",
        error_span,
    )
    builder.secondary_label(open_span, f"unclosed '{delimiter}' starts here")
    builder.help(f"add matching closing '{matching_delimiter(delimiter)}'")
    return builder.emit()


def matching_delimiter(opening: str) -> str:
    """Get the matching closing delimiter."""
    matches = {"(": ")", "[": "]", "{": "}"}
    return matches.get(opening, opening)


__all__ = [
    "ErrorCode",
    "ERROR_DESCRIPTIONS",
    "DiagnosticLevel",
    "SourceSpan",
    "DiagnosticLabel",
    "Diagnostic",
    "DiagnosticBuilder",
    "DiagnosticEmitter",
    "levenshtein_distance",
    "suggest_similar",
    "create_unclosed_delimiter_diagnostic",
    "matching_delimiter",
]
