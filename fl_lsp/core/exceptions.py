"""
Core exceptions module.

This module defines custom exceptions used throughout fl-lsp. Engine errors
are raised and caught inside the engine client; they never reach the editor.
"""


class FatalError(Exception):
    """
    A fatal error that should not be caught and converted to a degraded result.

    These errors represent programming errors, such as using an analysis
    context after it has been torn down, and are propagated up the call stack.
    """
    pass


class EngineError(Exception):
    """Base class for failures of the external cargo-fl engine."""

    def __init__(self, message, stderr=None):
        self.message = message
        self.stderr = stderr
        super().__init__(self.message)


class EngineUnavailableError(EngineError):
    """No cargo-fl executable could be located."""
    pass


class EngineCrashError(EngineError):
    """The engine could not be spawned, timed out, or exited with an unrecognized code."""

    def __init__(self, message, returncode=None, stderr=None):
        self.returncode = returncode
        super().__init__(message, stderr=stderr)


class EngineOutputError(EngineError):
    """The engine produced output but none of it could be decoded."""
    pass


class ScratchFileError(EngineError):
    """The document content could not be written to a scratch file."""
    pass
