"""Tests for the fallback rule engine."""

import unittest

import pytest

from fl_lsp.analysis.rules import RULE_REGISTRY, RuleBase, analyze, get_rule_ids
from fl_lsp.core.models import Severity


def _by_rule(issues, rule):
    return [issue for issue in issues if issue.rule == rule]


class TestFallbackRules(unittest.TestCase):
    """Unit tests for each fallback rule."""

    def test_unused_variable(self):
        issues = analyze("let unused = 5;\n")
        self.assertEqual(len(issues), 1)
        issue = issues[0]
        self.assertEqual(issue.rule, "unused_variable")
        self.assertEqual(issue.severity, Severity.WARNING)
        self.assertEqual(issue.location.line, 1)
        self.assertEqual(issue.location.column, 5)
        self.assertEqual(issue.location.end_column, 11)
        self.assertIn("unused", issue.message)

    def test_unused_variable_offers_rename_fix(self):
        issue = analyze("let unused = 5;")[0]
        self.assertIsNotNone(issue.fix)
        self.assertEqual(issue.fix.new_text, "_unused")

    def test_unused_variable_mut_and_type(self):
        issues = _by_rule(analyze("    let mut count: u32 = 0;"), "unused_variable")
        self.assertEqual(len(issues), 1)
        self.assertEqual(issues[0].location.column, 13)

    def test_underscore_binding_is_ignored(self):
        self.assertEqual(analyze("let _ignored = 5;"), [])
        self.assertEqual(analyze("let _ = compute();"), [])

    def test_line_too_long(self):
        line = "// " + "a" * 102
        self.assertEqual(len(line), 105)
        issues = analyze(line)
        self.assertEqual(len(issues), 1)
        issue = issues[0]
        self.assertEqual(issue.rule, "line_too_long")
        self.assertEqual(issue.severity, Severity.INFO)
        self.assertEqual(issue.location.column, 101)
        self.assertEqual(issue.location.end_column, 106)

    def test_line_of_exactly_max_length_is_fine(self):
        self.assertEqual(analyze("/" * 100), [])

    def test_todo_and_fixme(self):
        issues = analyze("// TODO: later\n// FIXME broken\n")
        self.assertEqual([i.rule for i in issues], ["todo_comment", "todo_comment"])
        self.assertEqual(issues[0].message, "TODO comment found")
        self.assertEqual(issues[1].message, "FIXME comment found")
        self.assertEqual(issues[0].location.column, 4)
        self.assertEqual(issues[1].location.line, 2)

    def test_todo_anchors_at_last_marker(self):
        issues = analyze("// TODO: remove once FIXME lands")
        self.assertEqual(len(issues), 1)
        self.assertEqual(issues[0].message, "FIXME comment found")
        self.assertEqual(issues[0].location.column, 22)

        issues = analyze("// FIXME: see TODO below")
        self.assertEqual(issues[0].message, "TODO comment found")
        self.assertEqual(issues[0].location.column, 15)

    def test_unsafe_code(self):
        issues = _by_rule(analyze("    unsafe { ptr.read() }"), "unsafe_code")
        self.assertEqual(len(issues), 1)
        location = issues[0].location
        self.assertEqual((location.column, location.end_column), (5, 11))
        self.assertEqual(issues[0].severity, Severity.WARNING)

    def test_missing_docs(self):
        text = "use std::io;\npub fn run() {}\n"
        issues = _by_rule(analyze(text), "missing_docs")
        self.assertEqual(len(issues), 1)
        self.assertEqual(issues[0].location.line, 2)
        self.assertEqual(issues[0].severity, Severity.INFO)

    def test_documented_public_item(self):
        text = "use std::io;\n/// Runs it.\npub fn run() {}\n//! crate\npub struct Thing;\n"
        self.assertEqual(_by_rule(analyze(text), "missing_docs"), [])

    def test_private_item_and_first_line_need_no_docs(self):
        self.assertEqual(_by_rule(analyze("pub fn first() {}"), "missing_docs"), [])
        self.assertEqual(_by_rule(analyze("\nfn private() {}"), "missing_docs"), [])

    def test_type_naming(self):
        issues = _by_rule(analyze("struct my_type;\nenum Color {}\ntrait bad_trait {}"), "naming_convention")
        self.assertEqual([i.location.line for i in issues], [1, 3])
        self.assertEqual(issues[0].location.column, 8)
        self.assertIn("PascalCase", issues[0].message)

    def test_function_naming(self):
        issues = _by_rule(analyze("fn doThing() {}\nfn do_thing() {}\nfn _helper() {}"), "naming_convention")
        self.assertEqual(len(issues), 1)
        self.assertEqual(issues[0].location.line, 1)
        self.assertEqual(issues[0].location.column, 4)
        self.assertIn("snake_case", issues[0].message)

    def test_clean_code_has_no_issues(self):
        text = "/// Entry point.\nfn main() {\n    println!(\"hi\");\n}\n"
        self.assertEqual(analyze(text), [])

    def test_crlf_line_endings(self):
        issues = analyze("let unused = 5;\r\nfn main() {}\r\n")
        self.assertEqual(len(issues), 1)
        self.assertEqual(issues[0].location.line, 1)

    def test_issues_are_in_line_order_and_not_deduplicated(self):
        text = "let a = 1; // TODO\nlet a = 1; // TODO\n"
        issues = analyze(text)
        self.assertEqual([i.location.line for i in issues], [1, 1, 2, 2])
        self.assertEqual(
            [i.rule for i in issues],
            ["unused_variable", "todo_comment", "unused_variable", "todo_comment"],
        )


def test_analyze_is_deterministic():
    text = "struct bad;\nlet x = 1; // FIXME unsafe\n" + "x" * 120
    assert analyze(text) == analyze(text)


def test_rule_ids():
    assert get_rule_ids() == [
        "unused_variable",
        "line_too_long",
        "todo_comment",
        "unsafe_code",
        "missing_docs",
        "naming_convention",
    ]


@pytest.mark.parametrize("rule_class", list(RULE_REGISTRY.values()))
def test_registered_rules_subclass_base(rule_class):
    assert issubclass(rule_class, RuleBase)
    assert rule_class.rule != RuleBase.rule


def test_base_rule_is_abstract():
    with pytest.raises(NotImplementedError):
        RuleBase().check("", 1, [""])
