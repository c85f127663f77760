"""
Structured logging module for fl-lsp.

This module provides a StructuredLogger class for recording engine runs
to a single YAML file, one keyed entry per run.
"""

import logging
import os
import re
import threading
from pathlib import Path
from typing import Any, Optional

import yaml

# Configure logger
logger = logging.getLogger(__name__)


class StructuredLogger:
    """
    A logger that records structured data to a YAML file.

    The StructuredLogger maintains a single YAML file with multiple entries,
    each identified by a unique key built from a base name and a counter.
    """

    def __init__(self, log_path: str, file_name: str = "engine_runs.yaml"):
        """
        Initialize a structured logger with the specified log path.

        Args:
            log_path: Directory path where the log file will be stored
            file_name: Name of the YAML file inside log_path
        """
        self.log_dir = Path(log_path)
        self.log_file = self.log_dir / file_name
        self.counter = 0
        self.lock = threading.Lock()

        self.log_dir.mkdir(parents=True, exist_ok=True)

        if not self.log_file.exists():
            with open(self.log_file, "w", encoding="utf-8") as f:
                f.write("# fl-lsp structured logs\n")
            logger.info(f"Created new log file at {self.log_file}")
        else:
            # Count existing entries to continue numbering
            self._count_existing_entries()
            logger.info(f"Using existing log file at {self.log_file} with {self.counter} entries")

    def _count_existing_entries(self) -> None:
        """Continue numbering after the highest existing entry."""
        try:
            with open(self.log_file, "r", encoding="utf-8") as f:
                content = f.read()
            matches = re.findall(r"^\w+?_(\d+):", content, flags=re.MULTILINE)
            if matches:
                self.counter = max(int(m) for m in matches) + 1
        except OSError as e:
            logger.warning(f"Error counting existing entries: {e}. Starting from 0.")
            self.counter = 0

    def record(self, key: str, data: Any) -> str:
        """
        Record structured data with the given key.

        Args:
            key: Base key for the log entry (will be appended with counter)
            data: Structured data to log

        Returns:
            The complete key used for the entry
        """
        with self.lock:
            entry_key = f"{key}_{self.counter}"
            self.counter += 1

            try:
                with open(self.log_file, "a", encoding="utf-8") as f:
                    f.write("\n")
                    yaml.safe_dump({entry_key: data}, f, default_flow_style=False, sort_keys=False)
                logger.debug(f"Recorded entry with key {entry_key}")
                return entry_key
            except (OSError, yaml.YAMLError) as e:
                logger.error(f"Failed to record entry {entry_key}: {e}")
                raise


_run_logger: Optional[StructuredLogger] = None


def get_run_logger() -> Optional[StructuredLogger]:
    """
    Return the shared engine run logger, or None when FL_RECORD_RUNS is not set.
    """
    global _run_logger
    if os.environ.get("FL_RECORD_RUNS", "0") != "1":
        return None
    if _run_logger is None:
        from .. import FL_HOME
        _run_logger = StructuredLogger(os.path.join(FL_HOME, "logs"))
    return _run_logger
