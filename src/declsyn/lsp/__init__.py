"""
declsyn Language Server Protocol (LSP) implementation.

This package provides a language server for declaration files, offering:
- Syntax error diagnostics
- Document outline (structs, enums, variants, fields)

Usage:
    # Start the LSP server (stdio mode)
    declsyn-lsp

    # Or run as a module
    python -m declsyn.lsp
"""

from declsyn.lsp.server import DeclSynLanguageServer, create_server, main

__all__ = [
    "DeclSynLanguageServer",
    "create_server",
    "main",
]
