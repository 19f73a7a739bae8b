"""
declsyn Utilities Package.

Common utilities for error handling, source locations, and diagnostics.
"""

from declsyn.utils.diagnostics import (
    ERROR_DESCRIPTIONS,
    Diagnostic,
    DiagnosticBuilder,
    DiagnosticEmitter,
    DiagnosticLabel,
    DiagnosticLevel,
    ErrorCode,
    SourceSpan,
    create_unclosed_delimiter_diagnostic,
    levenshtein_distance,
    suggest_similar,
)
from declsyn.utils.errors import (
    DeclSynError,
    LexerError,
    ParserError,
    SourceLocation,
)

__all__ = [
    # Errors
    "DeclSynError",
    "LexerError",
    "ParserError",
    "SourceLocation",
    # Error codes
    "ErrorCode",
    "ERROR_DESCRIPTIONS",
    # Core diagnostic types
    "DiagnosticLevel",
    "SourceSpan",
    "DiagnosticLabel",
    "Diagnostic",
    # Builder and emitter
    "DiagnosticBuilder",
    "DiagnosticEmitter",
    # String similarity utilities
    "levenshtein_distance",
    "suggest_similar",
    # Helper functions
    "create_unclosed_delimiter_diagnostic",
]
