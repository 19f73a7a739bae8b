"""
Entry point for running the declsyn LSP server as a module.

Usage:
    python -m declsyn.lsp
    python -m declsyn.lsp --tcp --port 2087
"""

from declsyn.lsp.server import main

if __name__ == "__main__":
    main()
