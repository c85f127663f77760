"""
Conversion of issues into editor diagnostics and publishing them.
"""

import logging
from typing import Callable, Dict, List, Optional

from lsprotocol import types as lsp

from ..core.constants import DIAGNOSTIC_SOURCE
from ..core.models import Issue, Severity
from .coordinates import location_to_range

# Configure logging
logger = logging.getLogger(__name__)


SEVERITY_MAP = {
    Severity.ERROR: lsp.DiagnosticSeverity.Error,
    Severity.WARNING: lsp.DiagnosticSeverity.Warning,
    Severity.INFO: lsp.DiagnosticSeverity.Information,
    Severity.HINT: lsp.DiagnosticSeverity.Hint,
}


def to_lsp_severity(severity: Severity) -> lsp.DiagnosticSeverity:
    return SEVERITY_MAP.get(severity, lsp.DiagnosticSeverity.Warning)


def to_diagnostic(
    text: str, issue: Issue, uri: str, related_support: bool = False
) -> lsp.Diagnostic:
    """
    Convert one issue into a diagnostic against the given document text.

    Args:
        text: Document text the issue was computed on
        issue: The raw issue
        uri: Document URI, used for related information locations
        related_support: Whether the client accepts relatedInformation

    Returns:
        A publish-ready diagnostic
    """
    related = None
    if related_support and issue.related:
        related = [
            lsp.DiagnosticRelatedInformation(
                location=lsp.Location(uri=uri, range=location_to_range(text, r.location)),
                message=r.message,
            )
            for r in issue.related
        ]

    data = None
    if issue.fix:
        data = {"fix": {"description": issue.fix.description, "newText": issue.fix.new_text}}

    return lsp.Diagnostic(
        range=location_to_range(text, issue.location),
        message=issue.message,
        severity=to_lsp_severity(issue.severity),
        code=issue.rule or None,
        source=DIAGNOSTIC_SOURCE,
        related_information=related,
        data=data,
    )


def to_diagnostics(
    text: str,
    issues: List[Issue],
    uri: str,
    max_problems: Optional[int] = None,
    related_support: bool = False,
) -> List[lsp.Diagnostic]:
    """Convert issues one to one, keeping at most max_problems of them."""
    if max_problems is not None and len(issues) > max_problems:
        logger.debug(f"Truncating {len(issues)} issues to {max_problems} for {uri}")
        issues = issues[:max_problems]
    return [to_diagnostic(text, issue, uri, related_support) for issue in issues]


class DiagnosticPublisher:
    """Publishes full diagnostic sets, replacing whatever was published before."""

    def __init__(self, sink: Callable[[lsp.PublishDiagnosticsParams], None]):
        """
        Args:
            sink: Callable that delivers the notification to the client, e.g. the
                server's text_document_publish_diagnostics
        """
        self.sink = sink
        self._published: Dict[str, List[lsp.Diagnostic]] = {}

    def publish(
        self, uri: str, diagnostics: List[lsp.Diagnostic], version: Optional[int] = None
    ) -> bool:
        """
        Replace the diagnostic set for a URI.

        Returns:
            False if the same set was already published and nothing was sent
        """
        if self._published.get(uri) == diagnostics:
            logger.debug(f"Diagnostics for {uri} unchanged; not republishing")
            return False

        self._published[uri] = list(diagnostics)
        logger.debug(f"Publishing {len(diagnostics)} diagnostics for {uri} (version {version})")
        self.sink(
            lsp.PublishDiagnosticsParams(uri=uri, diagnostics=list(diagnostics), version=version)
        )
        return True

    def published(self, uri: str) -> Optional[List[lsp.Diagnostic]]:
        return self._published.get(uri)

    def forget(self, uri: str) -> None:
        self._published.pop(uri, None)

    def clear(self) -> None:
        self._published.clear()
