"""Structured run logging for fl-lsp."""

from .structured_logger import StructuredLogger, get_run_logger

__all__ = ["StructuredLogger", "get_run_logger"]
