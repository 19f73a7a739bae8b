"""
Per-document analysis state for the declsyn LSP.
"""

from typing import Optional

from lsprotocol import types

from declsyn.compiler.ast_nodes import DeclFile
from declsyn.lsp.diagnostics import DiagnosticProvider
from declsyn.lsp.symbols import document_symbols


class DocumentAnalyzer:
    """
    Parses one document and caches what the server reports about it.

    Attributes:
        diagnostics: LSP diagnostics from the last analysis
        tree: The parsed file, or None if parsing failed
    """

    def __init__(self, source: str, uri: str) -> None:
        self.source = source
        self.uri = uri
        self.diagnostics: list[types.Diagnostic] = []
        self.tree: Optional[DeclFile] = None

    def analyze(self) -> None:
        provider = DiagnosticProvider(self.source, self.uri)
        self.diagnostics = provider.get_diagnostics()
        self.tree = provider.tree

    def get_document_symbols(self) -> list[types.DocumentSymbol]:
        if self.tree is None:
            return []
        return document_symbols(self.tree)
