"""
Context module providing the state shared by one document lifecycle manager.

The context replaces process-wide caches: it is created at startup, cleared per
document on close and torn down at shutdown.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional, TYPE_CHECKING

from .exceptions import FatalError

# For type checking only - not imported at runtime
if TYPE_CHECKING:
    from ..lsp.settings import SettingsCache


@dataclass
class Document:
    """An open document. Text and version are always replaced together."""
    uri: str
    version: int
    text: str


@dataclass(eq=False)
class AnalysisCycle:
    """One scheduled analysis of a document at a given version.

    Cycles compare by identity: a cycle is current only while it is the last
    one scheduled for its URI.
    """
    uri: str
    version: int
    text: str


@dataclass
class AnalysisContext:
    """
    State needed across the lifecycle manager's components.

    Attributes:
        _settings: Per-document settings cache
        documents: Open documents by URI
        latest_cycles: Most recently scheduled cycle per URI
    """

    _settings: Optional["SettingsCache"] = None
    documents: Dict[str, Document] = field(default_factory=dict)
    latest_cycles: Dict[str, AnalysisCycle] = field(default_factory=dict)

    @property
    def settings(self) -> "SettingsCache":
        """Get the settings cache, raising an error if the context was torn down."""
        if self._settings is None:
            raise FatalError("Settings cache not available in context")
        return self._settings

    @property
    def active(self) -> bool:
        return self._settings is not None

    def expected_version(self, uri: str) -> Optional[int]:
        """Version whose diagnostics may currently be published for a URI."""
        cycle = self.latest_cycles.get(uri)
        return cycle.version if cycle else None

    def begin_cycle(self, document: Document) -> AnalysisCycle:
        """Supersede any earlier cycle for the document with a new one."""
        cycle = AnalysisCycle(uri=document.uri, version=document.version, text=document.text)
        self.latest_cycles[document.uri] = cycle
        return cycle

    def is_current(self, cycle: AnalysisCycle) -> bool:
        return (
            cycle.uri in self.documents
            and self.latest_cycles.get(cycle.uri) is cycle
        )

    def open_documents(self) -> Iterator[Document]:
        return iter(list(self.documents.values()))

    def forget(self, uri: str) -> None:
        """Evict everything held for a closed document."""
        self.documents.pop(uri, None)
        self.latest_cycles.pop(uri, None)
        if self._settings is not None:
            self._settings.evict(uri)

    def teardown(self) -> None:
        self.documents.clear()
        self.latest_cycles.clear()
        if self._settings is not None:
            self._settings.clear()
        self._settings = None
