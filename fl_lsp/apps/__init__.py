"""Command line applications for fl-lsp."""
