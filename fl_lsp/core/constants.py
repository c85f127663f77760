"""
Constants used throughout fl-lsp.
"""

SERVER_NAME = "fl-lsp"

# Value of the ``source`` field on every published diagnostic
DIAGNOSTIC_SOURCE = "cargo-fl"

# Settings section requested from the client
CONFIG_SECTION = "cargoFl"

# Only documents with this extension are analyzed
SOURCE_EXTENSION = ".rs"

# Project configuration file read by the engine
PROJECT_CONFIG_FILE = ".fl.toml"

ENGINE_NAME = "cargo-fl"
ENGINE_JSON_FLAG = "--json"

# Exit codes the engine uses for "no issues" and "issues found"
ENGINE_OK_EXIT_CODES = (0, 1)

DEFAULT_ENGINE_TIMEOUT = 5.0

DEFAULT_MAX_PROBLEMS = 1000

MAX_LINE_LENGTH = 100
