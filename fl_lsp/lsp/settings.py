"""
Per-document settings cache.

Settings are requested from the client through ``workspace/configuration`` and
cached per document URI. When the client does not support scoped
configuration, a single global Settings instance is used instead, updated from
``workspace/didChangeConfiguration`` notifications.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

from ..core.constants import DEFAULT_MAX_PROBLEMS

# Configure logging
logger = logging.getLogger(__name__)


@dataclass
class Settings:
    """Editor settings for one document (section ``cargoFl``)."""
    max_number_of_problems: int = DEFAULT_MAX_PROBLEMS
    enable_linting: bool = True
    executable_path: Optional[str] = None
    trace_server: str = "off"

    @classmethod
    def from_dict(cls, data: Any) -> "Settings":
        """
        Build settings from the client's camelCase configuration object.

        Missing or invalid values fall back to the defaults.
        """
        if not isinstance(data, dict):
            return cls()

        defaults = cls()

        max_problems = data.get("maxNumberOfProblems", defaults.max_number_of_problems)
        if isinstance(max_problems, bool) or not isinstance(max_problems, int) or max_problems < 0:
            logger.warning(f"Ignoring invalid maxNumberOfProblems: {max_problems!r}")
            max_problems = defaults.max_number_of_problems

        enable = data.get("enableLinting", defaults.enable_linting)
        if not isinstance(enable, bool):
            logger.warning(f"Ignoring invalid enableLinting: {enable!r}")
            enable = defaults.enable_linting

        executable = data.get("executablePath") or None
        if executable is not None and not isinstance(executable, str):
            logger.warning(f"Ignoring invalid executablePath: {executable!r}")
            executable = None

        # VS Code nests dotted keys, other clients send them flat
        trace = data.get("trace")
        trace = trace.get("server") if isinstance(trace, dict) else data.get("trace.server")
        if not isinstance(trace, str):
            trace = defaults.trace_server

        return cls(
            max_number_of_problems=max_problems,
            enable_linting=enable,
            executable_path=executable,
            trace_server=trace,
        )


class SettingsCache:
    """Caches settings per document URI.

    Entries hold the pending fetch itself, so a document closed while its
    settings are still being fetched never gets an entry re-added afterwards.
    """

    def __init__(self, fetch: Optional[Callable[[str], Awaitable[Any]]] = None):
        """
        Args:
            fetch: Coroutine function returning the raw configuration for a URI,
                or None when the client does not support scoped configuration
        """
        self._fetch = fetch
        self.global_settings = Settings()
        self._entries: Dict[str, "asyncio.Future[Settings]"] = {}
        self._last_known: Dict[str, Settings] = {}

    @property
    def supports_scoped(self) -> bool:
        return self._fetch is not None

    def enable_scoped(self, fetch: Callable[[str], Awaitable[Any]]) -> None:
        """Switch to per-document configuration once the client advertises support."""
        self._fetch = fetch
        self._entries.clear()

    def __contains__(self, uri: str) -> bool:
        return uri in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, uri: str) -> Settings:
        """
        Get the settings for a document, fetching them from the client if needed.

        Never raises: a failed fetch falls back to the last known settings for the
        URI, then to the global settings.
        """
        if not self.supports_scoped:
            return self.global_settings

        entry = self._entries.get(uri)
        if entry is None:
            entry = asyncio.ensure_future(self._load(uri))
            self._entries[uri] = entry
        return await asyncio.shield(entry)

    async def _load(self, uri: str) -> Settings:
        try:
            raw = await self._fetch(uri)
            return Settings.from_dict(raw)
        except Exception as e:
            logger.warning(f"Failed to retrieve settings for {uri}: {e}")
            # Do not cache the failure; the next cycle retries
            if self._entries.get(uri) is asyncio.current_task():
                self._entries.pop(uri, None)
            return self._last_known.get(uri, self.global_settings)

    def update_global(self, raw: Any) -> None:
        """Replace the global settings from a didChangeConfiguration payload."""
        self.global_settings = Settings.from_dict(raw)
        logger.info(f"Global settings updated: {self.global_settings}")

    def invalidate(self) -> None:
        """Drop all cached entries, remembering resolved ones as last known."""
        for uri, entry in self._entries.items():
            if entry.done() and not entry.cancelled() and entry.exception() is None:
                self._last_known[uri] = entry.result()
        self._entries.clear()

    def evict(self, uri: str) -> None:
        """Forget everything about a document; called exactly when it closes."""
        self._entries.pop(uri, None)
        self._last_known.pop(uri, None)

    def clear(self) -> None:
        self._entries.clear()
        self._last_known.clear()
