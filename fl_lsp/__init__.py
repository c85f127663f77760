"""
fl-lsp - language server that publishes cargo-fl diagnostics for Rust files.

This package bridges the cargo-fl analysis engine (or a built-in fallback rule
set when the engine is unavailable) to editors through the Language Server
Protocol.
"""

import logging
import logging.handlers
import os
import sys
from dotenv import load_dotenv

# Configure logger for this module
logger = logging.getLogger(__name__)

__version__ = "0.3.0"

# Load environment variables from .env file if present
load_dotenv()

if "pytest" not in sys.modules:
    FL_HOME = os.environ.get("FL_HOME", os.path.expanduser("~/.fl"))
else:
    FL_HOME = "/tmp/.fl"


def setup_logging() -> None:
    """
    Configure centralized logging for the entire application.

    This function sets up:
    - File logging for all messages in {FL_HOME}/logs/stdout.log
    - File logging for warnings and above in {FL_HOME}/logs/stderr.log
    - Console logging to stderr only if LOG_TO_CONSOLE=1 is set (disabled by default,
      stdout belongs to the LSP stream)
    - Conservative logging levels for noisy third-party libraries
    """
    # Get log level from environment or use INFO as default
    log_level_name = os.environ.get("LOG_LEVEL", "INFO").upper()
    log_level = getattr(logging, log_level_name, logging.INFO)

    # Create log directory if it doesn't exist
    log_dir = os.path.join(FL_HOME, "logs")
    os.makedirs(log_dir, exist_ok=True)

    stdout_log_file = os.path.join(log_dir, "stdout.log")
    stderr_log_file = os.path.join(log_dir, "stderr.log")

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Configure root logger and remove any existing handlers
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    root_logger.setLevel(log_level)

    stdout_handler = logging.handlers.RotatingFileHandler(
        stdout_log_file,
        maxBytes=10485760,  # 10MB
        backupCount=3,
    )
    stdout_handler.setFormatter(formatter)
    stdout_handler.setLevel(log_level)

    # Warnings and above also go to a separate file
    stderr_handler = logging.handlers.RotatingFileHandler(
        stderr_log_file,
        maxBytes=10485760,  # 10MB
        backupCount=3,
    )
    stderr_handler.setFormatter(formatter)
    stderr_handler.setLevel(logging.WARNING)

    root_logger.addHandler(stdout_handler)
    root_logger.addHandler(stderr_handler)

    if os.environ.get("LOG_TO_CONSOLE", "0") == "1":
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        console_handler.setLevel(log_level)
        root_logger.addHandler(console_handler)
        logger.debug("Console logging enabled")

    # Set conservative default levels for noisy libraries
    logging.getLogger("pygls").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    logger.debug("Logging configured successfully")
    logger.debug(f"Standard output logs will be saved to {stdout_log_file}")
    logger.debug(f"Standard error logs will be saved to {stderr_log_file}")


def set_trace_level(trace: str) -> None:
    """Map the editor's trace.server setting onto the package logger level."""
    if trace == "verbose":
        logger.setLevel(logging.DEBUG)
    elif trace == "messages":
        logger.setLevel(logging.INFO)
    else:
        logger.setLevel(logging.NOTSET)


setup_logging()
