"""
Document lifecycle manager.

Tracks open documents and runs one analysis cycle per meaningful edit. A new
edit supersedes any cycle still in flight for the same document; superseded
results are dropped at the publish step instead of cancelling the engine.
"""

import asyncio
import logging
from typing import List, Optional, Set

from pygls.uris import to_fs_path

from .. import set_trace_level
from ..analysis.engine import EngineClient
from ..core.constants import SOURCE_EXTENSION
from ..core.context import AnalysisContext, AnalysisCycle, Document
from .publisher import DiagnosticPublisher, to_diagnostics
from .settings import SettingsCache

# Configure logging
logger = logging.getLogger(__name__)


def is_target_document(uri: str) -> bool:
    """Only Rust source files are analyzed."""
    path = to_fs_path(uri) or uri
    return path.endswith(SOURCE_EXTENSION)


class DocumentManager:
    """Dispatches analysis on open/change/save/close events."""

    def __init__(
        self,
        engine: EngineClient,
        publisher: DiagnosticPublisher,
        settings: SettingsCache,
    ):
        self.engine = engine
        self.publisher = publisher
        self.ctx = AnalysisContext(_settings=settings)
        self.related_support = False
        self._tasks: Set[asyncio.Task] = set()

    def open(self, uri: str, version: int, text: str) -> Optional[asyncio.Task]:
        """Start tracking a document and analyze it."""
        if not is_target_document(uri):
            logger.debug(f"Ignoring non-Rust document {uri}")
            return None

        document = Document(uri=uri, version=version, text=text)
        self.ctx.documents[uri] = document
        logger.info(f"Opened {uri} (version {version})")
        return self._schedule(document)

    def change(self, uri: str, version: int, text: str) -> Optional[asyncio.Task]:
        """
        Replace a document's text and version, analyzing it if the text changed.

        Stale notifications (version not newer than the current one) are ignored.
        """
        document = self.ctx.documents.get(uri)
        if document is None:
            return None
        if version <= document.version:
            logger.debug(f"Ignoring stale change for {uri}: {version} <= {document.version}")
            return None

        text_changed = text != document.text
        document.version, document.text = version, text
        if not text_changed:
            # The in-flight or last published result still describes this text
            logger.debug(f"Text of {uri} unchanged at version {version}; coalescing")
            return None
        return self._schedule(document)

    def save(self, uri: str, text: Optional[str] = None) -> Optional[asyncio.Task]:
        """Re-analyze a saved document at its current version."""
        document = self.ctx.documents.get(uri)
        if document is None:
            return None
        if text is not None:
            document.text = text
        return self._schedule(document)

    def close(self, uri: str) -> None:
        """Stop tracking a document; nothing is published for it afterwards."""
        if uri not in self.ctx.documents:
            return
        self.ctx.forget(uri)
        self.publisher.forget(uri)
        logger.info(f"Closed {uri}")

    def refresh_all(self) -> List[asyncio.Task]:
        """Re-analyze every open document, e.g. after a configuration change."""
        return [self._schedule(document) for document in self.ctx.open_documents()]

    async def drain(self) -> None:
        """Wait until every scheduled cycle has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def shutdown(self) -> None:
        self.ctx.teardown()
        self.publisher.clear()

    def _schedule(self, document: Document) -> asyncio.Task:
        cycle = self.ctx.begin_cycle(document)
        task = asyncio.ensure_future(self._run_cycle(cycle))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run_cycle(self, cycle: AnalysisCycle) -> None:
        try:
            diagnostics = await self._analyze(cycle)
        except Exception as e:
            logger.error(f"Analysis of {cycle.uri} failed: {e}", exc_info=True)
            diagnostics = []

        if not self.ctx.is_current(cycle):
            logger.debug(f"Discarding stale result for {cycle.uri} (version {cycle.version})")
            return

        self.publisher.publish(cycle.uri, diagnostics, version=cycle.version)

    async def _analyze(self, cycle: AnalysisCycle):
        if not self.ctx.is_current(cycle):
            # Closed or superseded before the cycle started; keep the cache untouched
            return []

        settings = await self.ctx.settings.get(cycle.uri)
        set_trace_level(settings.trace_server)

        if not settings.enable_linting:
            return []
        if not self.ctx.is_current(cycle):
            # Superseded while waiting for settings; skip the engine run
            return []

        path = to_fs_path(cycle.uri) or cycle.uri
        issues = await self.engine.analyze_file(path, cycle.text, settings.executable_path)
        return to_diagnostics(
            cycle.text,
            issues,
            cycle.uri,
            max_problems=settings.max_number_of_problems,
            related_support=self.related_support,
        )
