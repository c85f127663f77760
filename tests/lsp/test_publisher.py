"""Tests for issue to diagnostic conversion and publishing."""

import pytest
from lsprotocol import types as lsp

from fl_lsp.core.models import Fix, Issue, Location, RelatedIssue, Severity
from fl_lsp.lsp.publisher import DiagnosticPublisher, to_diagnostic, to_diagnostics, to_lsp_severity

URI = "file:///work/src/main.rs"
TEXT = "fn main() {\n    let unused = 5;\n}\n"


def _issue(rule="unused_variable", severity=Severity.WARNING, line=2, column=9, **kwargs):
    return Issue(
        rule=rule,
        severity=severity,
        message=f"{rule} message",
        location=Location(line=line, column=column, end_line=line, end_column=column + 6),
        **kwargs,
    )


@pytest.mark.parametrize(
    "severity,expected",
    [
        (Severity.ERROR, lsp.DiagnosticSeverity.Error),
        (Severity.WARNING, lsp.DiagnosticSeverity.Warning),
        (Severity.INFO, lsp.DiagnosticSeverity.Information),
        (Severity.HINT, lsp.DiagnosticSeverity.Hint),
        ("critical", lsp.DiagnosticSeverity.Warning),
    ],
)
def test_severity_mapping(severity, expected):
    assert to_lsp_severity(severity) == expected


def test_to_diagnostic():
    diagnostic = to_diagnostic(TEXT, _issue(), URI)
    assert diagnostic.range == lsp.Range(
        start=lsp.Position(line=1, character=8), end=lsp.Position(line=1, character=14)
    )
    assert diagnostic.code == "unused_variable"
    assert diagnostic.source == "cargo-fl"
    assert diagnostic.message == "unused_variable message"
    assert diagnostic.related_information is None
    assert diagnostic.data is None


def test_fix_is_carried_in_data():
    issue = _issue(fix=Fix(description="Rename to '_unused'", replacement="_unused"))
    diagnostic = to_diagnostic(TEXT, issue, URI)
    assert diagnostic.data == {"fix": {"description": "Rename to '_unused'", "newText": "_unused"}}


def test_related_information_only_when_supported():
    issue = _issue(related=[RelatedIssue(message="declared here", location=Location(line=1, column=4))])
    assert to_diagnostic(TEXT, issue, URI).related_information is None

    related = to_diagnostic(TEXT, issue, URI, related_support=True).related_information
    assert len(related) == 1
    assert related[0].message == "declared here"
    assert related[0].location.uri == URI
    assert related[0].location.range.start == lsp.Position(line=0, character=3)


def test_to_diagnostics_is_one_to_one():
    issues = [_issue(line=1, column=1), _issue(line=2, column=9), _issue(line=3, column=1)]
    assert len(to_diagnostics(TEXT, issues, URI)) == 3


def test_to_diagnostics_truncates():
    issues = [_issue(rule=f"rule_{i}", line=1, column=1) for i in range(5)]
    diagnostics = to_diagnostics(TEXT, issues, URI, max_problems=2)
    assert [d.code for d in diagnostics] == ["rule_0", "rule_1"]
    assert to_diagnostics(TEXT, issues, URI, max_problems=0) == []


class TestDiagnosticPublisher:
    def setup_method(self):
        self.sent = []
        self.publisher = DiagnosticPublisher(self.sent.append)

    def test_publish_replaces_whole_set(self):
        first = to_diagnostics(TEXT, [_issue()], URI)
        assert self.publisher.publish(URI, first, version=1)
        assert self.publisher.publish(URI, [], version=2)

        assert len(self.sent) == 2
        assert self.sent[0].uri == URI
        assert self.sent[0].version == 1
        assert len(self.sent[0].diagnostics) == 1
        assert self.sent[1].diagnostics == []
        assert self.publisher.published(URI) == []

    def test_publishing_same_set_twice_is_a_no_op(self):
        diagnostics = to_diagnostics(TEXT, [_issue()], URI)
        assert self.publisher.publish(URI, diagnostics, version=1)
        assert not self.publisher.publish(URI, to_diagnostics(TEXT, [_issue()], URI), version=2)
        assert len(self.sent) == 1

    def test_forget(self):
        diagnostics = to_diagnostics(TEXT, [_issue()], URI)
        self.publisher.publish(URI, diagnostics)
        self.publisher.forget(URI)
        assert self.publisher.published(URI) is None
        assert self.publisher.publish(URI, diagnostics)
        assert len(self.sent) == 2

    def test_uris_are_independent(self):
        other = "file:///work/src/lib.rs"
        self.publisher.publish(URI, [])
        assert self.publisher.publish(other, [])
        self.publisher.clear()
        assert self.publisher.published(URI) is None
