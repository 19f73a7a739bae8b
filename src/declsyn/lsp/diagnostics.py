"""
Diagnostic generation for the declsyn LSP.

This module converts lexer and parser errors into LSP-compatible diagnostic
messages for display in editors.
"""

from typing import Optional

from lsprotocol import types

from declsyn.compiler.ast_nodes import DeclFile
from declsyn.compiler.lexer import Lexer
from declsyn.compiler.parser import Parser
from declsyn.utils.diagnostics import Diagnostic as SyntaxDiagnostic
from declsyn.utils.diagnostics import DiagnosticLevel
from declsyn.utils.errors import DeclSynError, LexerError, ParserError

SOURCE_NAME = "declsyn"

SEVERITY_MAP: dict[DiagnosticLevel, types.DiagnosticSeverity] = {
    DiagnosticLevel.ERROR: types.DiagnosticSeverity.Error,
    DiagnosticLevel.WARNING: types.DiagnosticSeverity.Warning,
    DiagnosticLevel.NOTE: types.DiagnosticSeverity.Information,
    DiagnosticLevel.HELP: types.DiagnosticSeverity.Hint,
}


class DiagnosticProvider:
    """
    Generates LSP diagnostics from declaration source code.

    Runs the lexer and parser over a document. The parsed file, if any, is
    kept in ``self.tree`` for other features (document symbols).
    """

    def __init__(self, source: str, uri: str) -> None:
        self.source = source
        self.uri = uri
        self.tree: Optional[DeclFile] = None
        self._diagnostics: list[types.Diagnostic] = []

    def get_diagnostics(self) -> list[types.Diagnostic]:
        """
        Get all diagnostics for the document.

        Returns:
            List of LSP diagnostic objects; empty when the document parses
        """
        self._diagnostics = []
        self.tree = None

        # Phase 1: Lexer errors
        try:
            tokens = Lexer(self.source, filename=self.uri).tokenize()
        except LexerError as e:
            self._add_error(e)
            return self._diagnostics

        # Phase 2: Parser errors, with rich diagnostics where available
        parser = Parser(tokens, source=self.source, filename=self.uri)
        try:
            self.tree = parser.parse_file()
        except ParserError as e:
            if parser.diagnostics:
                for diag in parser.diagnostics:
                    self._add_syntax_diagnostic(diag)
            else:
                self._add_error(e)

        return self._diagnostics

    def _add_error(self, error: DeclSynError) -> None:
        """Add a lexer/parser error as an LSP diagnostic."""
        line = 0
        character = 0

        if error.location:
            line = max(0, error.location.line - 1)  # Convert to 0-indexed
            character = max(0, error.location.column - 1)

        # Underline up to the end of the offending word
        end_character = character + 1
        if error.source_line:
            rest_of_line = error.source_line[character:]
            for i, c in enumerate(rest_of_line):
                if c.isspace() or c in "()[]{},:;":
                    end_character = character + max(1, i)
                    break
            else:
                end_character = character + max(1, len(rest_of_line))

        self._diagnostics.append(
            types.Diagnostic(
                range=types.Range(
                    start=types.Position(line=line, character=character),
                    end=types.Position(line=line, character=end_character),
                ),
                message=error.message,
                severity=types.DiagnosticSeverity.Error,
                source=SOURCE_NAME,
                code=getattr(error, "code", None),
            )
        )

    def _add_syntax_diagnostic(self, diag: SyntaxDiagnostic) -> None:
        """Add a rich parser diagnostic as an LSP diagnostic."""
        severity = SEVERITY_MAP.get(diag.level, types.DiagnosticSeverity.Error)

        line = 0
        character = 0
        end_line = 0
        end_character = 1

        primary = diag.primary_label
        if primary is not None:
            span = primary.span
            line = max(0, span.start_line - 1)
            character = max(0, span.start_col - 1)
            end_line = max(0, span.end_line - 1)
            end_character = max(character + 1, span.end_col - 1)

        related = [
            types.DiagnosticRelatedInformation(
                location=types.Location(
                    uri=self.uri,
                    range=types.Range(
                        start=types.Position(
                            line=max(0, label.span.start_line - 1),
                            character=max(0, label.span.start_col - 1),
                        ),
                        end=types.Position(
                            line=max(0, label.span.end_line - 1),
                            character=max(0, label.span.end_col - 1),
                        ),
                    ),
                ),
                message=label.message,
            )
            for label in diag.labels
            if not label.is_primary
        ]

        message_parts = [diag.message]
        for note in diag.notes:
            message_parts.append(f"note: {note}")
        for help_msg in diag.helps:
            message_parts.append(f"help: {help_msg}")

        self._diagnostics.append(
            types.Diagnostic(
                range=types.Range(
                    start=types.Position(line=line, character=character),
                    end=types.Position(line=end_line, character=end_character),
                ),
                message="\n".join(message_parts),
                severity=severity,
                source=SOURCE_NAME,
                code=diag.code,
                related_information=related or None,
            )
        )


def get_diagnostics_for_document(source: str, uri: str) -> list[types.Diagnostic]:
    """Convenience function to get diagnostics for a document."""
    return DiagnosticProvider(source, uri).get_diagnostics()
