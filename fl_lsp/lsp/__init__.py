"""
Language Server Protocol (LSP) implementation.

Provides the document lifecycle, settings cache, coordinate translation and
diagnostic publishing behind the fl-lsp language server.
"""

from fl_lsp.lsp.server import FlLanguageServer, create_server

__all__ = [
    'FlLanguageServer',
    'create_server',
]
