"""Core types shared across the fl-lsp components."""
