"""
Client for the out-of-process cargo-fl analysis engine.

The client locates the engine executable, runs it on a scratch copy of the
document and decodes its newline-delimited JSON output. Every failure (missing
executable, crash, timeout, unreadable output, scratch file trouble) degrades
to the built-in fallback rules, so callers always get a list of issues back.
"""

import asyncio
import json
import logging
import os
import shutil
import sys
import tempfile
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from ..core.constants import (
    DEFAULT_ENGINE_TIMEOUT,
    ENGINE_JSON_FLAG,
    ENGINE_NAME,
    ENGINE_OK_EXIT_CODES,
    SOURCE_EXTENSION,
)
from ..core.exceptions import (
    EngineCrashError,
    EngineError,
    EngineOutputError,
    EngineUnavailableError,
    ScratchFileError,
)
from ..core.models import EngineRecord, Issue, decode_record, flatten_records
from ..runlog.structured_logger import get_run_logger
from ..utils.subprocess import run_command
from . import rules

# Configure logging
logger = logging.getLogger(__name__)


class EngineState(Enum):
    """Progress of a single engine invocation."""
    UNRESOLVED = "unresolved"
    LOCATING = "locating"
    INVOKING = "invoking"
    SUCCESS = "success"
    DEGRADED = "degraded"


@dataclass
class EngineOutcome:
    """Result of one invocation: the issues and how they were obtained."""
    state: EngineState
    issues: List[Issue] = field(default_factory=list)
    executable: Optional[str] = None
    error: Optional[EngineError] = None


def _default_timeout() -> float:
    raw = os.environ.get("FL_ENGINE_TIMEOUT")
    if not raw:
        return DEFAULT_ENGINE_TIMEOUT
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Invalid FL_ENGINE_TIMEOUT {raw!r}, using {DEFAULT_ENGINE_TIMEOUT}s")
        return DEFAULT_ENGINE_TIMEOUT


def parse_output(output: str) -> List[Issue]:
    """
    Decode the engine's newline-delimited JSON output.

    Each line is either ``{"issues": [...]}`` or a single issue object. Lines
    that are not valid JSON, or JSON of neither shape, are skipped.

    Args:
        output: Captured stdout of the engine

    Returns:
        All issues found in the output

    Raises:
        EngineOutputError: If the output is non-empty and no line is valid JSON
    """
    lines = [line for line in output.splitlines() if line.strip()]
    if not lines:
        return []

    records: List[EngineRecord] = []
    parsed_lines = 0
    for line in lines:
        try:
            data = json.loads(line)
        except json.JSONDecodeError:
            logger.debug(f"Skipping invalid JSON line: {line[:200]}")
            continue
        parsed_lines += 1
        try:
            record = decode_record(data)
        except (KeyError, TypeError, ValueError, OverflowError) as e:
            logger.debug(f"Skipping undecodable record ({e}): {line[:200]}")
            continue
        if record is None:
            logger.debug(f"Skipping unrecognized JSON record: {line[:200]}")
            continue
        records.append(record)

    if parsed_lines == 0:
        raise EngineOutputError(f"None of {len(lines)} output lines could be parsed as JSON")

    return flatten_records(records)


class EngineClient:
    """Runs cargo-fl on document content and falls back to built-in rules on failure."""

    def __init__(
        self,
        project_root: Optional[str] = None,
        timeout: Optional[float] = None,
        fallback: Callable[[str], List[Issue]] = rules.analyze,
        runner: Callable[..., Awaitable] = run_command,
    ):
        """
        Initialize the engine client.

        Args:
            project_root: Directory probed for target/release and target/debug builds
            timeout: Seconds to wait for the engine; defaults to FL_ENGINE_TIMEOUT or 5
            fallback: Analysis used in degraded mode
            runner: Coroutine function that runs a command (see utils.subprocess.run_command)
        """
        self.project_root = project_root or os.getcwd()
        self.timeout = timeout if timeout is not None else _default_timeout()
        self.fallback = fallback
        self.runner = runner
        self.state = EngineState.UNRESOLVED

    def candidates(self, executable_path: Optional[str] = None) -> List[str]:
        """
        Ordered list of file-system locations probed for the engine.

        Explicit overrides (the executablePath setting, then FL_ENGINE_PATH) come
        first, followed by release and debug builds, then the Windows variants.
        """
        paths: List[str] = []
        if executable_path:
            paths.append(executable_path)
        env_path = os.environ.get("FL_ENGINE_PATH")
        if env_path:
            paths.append(env_path)

        target = os.path.join(self.project_root, "target")
        paths.append(os.path.join(target, "release", ENGINE_NAME))
        paths.append(os.path.join(target, "debug", ENGINE_NAME))
        paths.append(os.path.join(target, "release", f"{ENGINE_NAME}.exe"))
        paths.append(os.path.join(target, "debug", f"{ENGINE_NAME}.exe"))
        return paths

    def locate(self, executable_path: Optional[str] = None) -> str:
        """
        Find the engine executable.

        Returns:
            Path of the first existing candidate, or the PATH-resolved command

        Raises:
            EngineUnavailableError: If no candidate exists
        """
        for candidate in self.candidates(executable_path):
            if os.path.isfile(candidate):
                return candidate

        resolved = shutil.which(ENGINE_NAME)
        if resolved:
            return resolved

        raise EngineUnavailableError(f"{ENGINE_NAME} executable not found")

    async def analyze_file(
        self, path: str, content: str, executable_path: Optional[str] = None
    ) -> List[Issue]:
        """
        Analyze document content, never raising.

        Args:
            path: Path of the document (used for logging and the scratch file name)
            content: Current document text
            executable_path: Optional user override for the engine location

        Returns:
            Issues from the engine, or from the fallback rules if the engine failed
        """
        outcome = await self.run(path, content, executable_path)
        return outcome.issues

    async def run(
        self, path: str, content: str, executable_path: Optional[str] = None
    ) -> EngineOutcome:
        """Analyze document content and report how the issues were obtained."""
        started = time.monotonic()
        self.state = EngineState.LOCATING
        executable = None

        try:
            executable = self.locate(executable_path)
            self.state = EngineState.INVOKING
            issues = await self._invoke(executable, path, content)
            self.state = EngineState.SUCCESS
            outcome = EngineOutcome(state=self.state, issues=issues, executable=executable)
        except EngineUnavailableError as e:
            logger.debug(f"{e}; using fallback rules for {path}")
            outcome = self._degrade(content, e, executable)
        except EngineError as e:
            logger.warning(f"{ENGINE_NAME} failed on {path}: {e.message}")
            if e.stderr:
                logger.debug(f"{ENGINE_NAME} stderr: {e.stderr[:500]}")
            outcome = self._degrade(content, e, executable)
        except Exception as e:
            logger.error(f"Unexpected error running {ENGINE_NAME} on {path}: {e}", exc_info=True)
            outcome = self._degrade(content, EngineCrashError(str(e)), executable)

        self._record(path, outcome, time.monotonic() - started)
        return outcome

    def _degrade(
        self, content: str, error: EngineError, executable: Optional[str]
    ) -> EngineOutcome:
        self.state = EngineState.DEGRADED
        issues = self.fallback(content)
        return EngineOutcome(state=self.state, issues=issues, executable=executable, error=error)

    async def _invoke(self, executable: str, path: str, content: str) -> List[Issue]:
        """Run the engine on a scratch copy of the content and parse its output."""
        scratch = self._write_scratch(path, content)
        try:
            try:
                result = await self.runner(
                    [executable, ENGINE_JSON_FLAG, scratch], timeout=self.timeout
                )
            except asyncio.TimeoutError:
                # Checked first: on 3.11+ TimeoutError is an OSError subclass
                raise EngineCrashError(f"{executable} timed out after {self.timeout}s")
            except OSError as e:
                raise EngineCrashError(f"Failed to start {executable}: {e}")

            if result.returncode not in ENGINE_OK_EXIT_CODES:
                raise EngineCrashError(
                    f"{executable} exited with code {result.returncode}",
                    returncode=result.returncode,
                    stderr=result.stderr,
                )

            return parse_output(result.stdout)
        finally:
            self._remove_scratch(scratch)

    def _write_scratch(self, path: str, content: str) -> str:
        """Persist content to a scratch file unique to this invocation."""
        stem = os.path.splitext(os.path.basename(path))[0] or "document"
        try:
            with tempfile.NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                prefix=f"fl_{stem}_",
                suffix=SOURCE_EXTENSION,
                delete=False,
            ) as scratch:
                scratch.write(content)
                return scratch.name
        except OSError as e:
            raise ScratchFileError(f"Failed to write scratch file for {path}: {e}")

    @staticmethod
    def _remove_scratch(scratch: str) -> None:
        try:
            os.unlink(scratch)
        except OSError as e:
            logger.debug(f"Ignoring scratch file cleanup error for {scratch}: {e}")

    @staticmethod
    def _record(path: str, outcome: EngineOutcome, duration: float) -> None:
        run_logger = get_run_logger()
        if run_logger is None:
            return
        try:
            run_logger.record(
                "run",
                {
                    "path": path,
                    "state": outcome.state.value,
                    "executable": outcome.executable,
                    "issues": len(outcome.issues),
                    "error": outcome.error.message if outcome.error else None,
                    "duration_ms": round(duration * 1000, 1),
                    "platform": sys.platform,
                },
            )
        except Exception as e:
            logger.debug(f"Could not record engine run: {e}")
