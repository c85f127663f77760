"""Utility functions and shared resources for fl-lsp.

This module provides common utilities that can be used across the application.
"""

import logging

# Configure logger for this module
logger = logging.getLogger(__name__)
