"""
Fallback rules for checking Rust code quality without the cargo-fl engine.

These checks run line by line on raw text. They are not scope-aware and may
report issues inside string literals or comments; the fallback is only used
when the engine is missing or failed.

Implementation uses a registry pattern to make it easy to add new rules.

To add a new rule:
1. Create a new class that inherits from RuleBase
2. Implement the check() method
3. Register it with @register_rule('key')
"""

import logging
import re
from typing import Callable, Dict, List, Optional, Type

from ..core.constants import MAX_LINE_LENGTH
from ..core.models import Fix, Issue, Location, Severity

# Configure logging
logger = logging.getLogger(__name__)


# Registry to store all rule classes, applied in registration order
RULE_REGISTRY: Dict[str, Type["RuleBase"]] = {}


def register_rule(key: str) -> Callable:
    """
    Decorator to register a rule class under a unique key.

    Args:
        key: Registry key; several keys may share one rule id

    Returns:
        Decorator function
    """

    def decorator(rule_class):
        RULE_REGISTRY[key] = rule_class
        return rule_class

    return decorator


class RuleBase:
    """Base class for all fallback rules."""

    rule = "base"
    severity = Severity.WARNING

    def check(self, line: str, line_number: int, lines: List[str]) -> List[Issue]:
        """
        Check a single line.

        Args:
            line: The line content without its terminator
            line_number: 1-based number of the line
            lines: All lines of the document, for rules that look at neighbours

        Returns:
            Issues found on this line
        """
        raise NotImplementedError("Subclasses must implement this method")

    def _issue(
        self,
        message: str,
        line_number: int,
        column: int,
        end_column: int,
        fix: Optional[Fix] = None,
    ) -> Issue:
        return Issue(
            rule=self.rule,
            severity=self.severity,
            message=message,
            location=Location(
                line=line_number,
                column=column,
                end_line=line_number,
                end_column=end_column,
            ),
            fix=fix,
        )


@register_rule("unused_variable")
class UnusedVariableRule(RuleBase):
    """Bindings whose name does not start with the ignore marker."""

    rule = "unused_variable"
    severity = Severity.WARNING

    PATTERN = re.compile(r"\blet\s+(?:mut\s+)?([A-Za-z_]\w*)\s*(?::[^=]+)?=(?!=)")

    def check(self, line: str, line_number: int, lines: List[str]) -> List[Issue]:
        match = self.PATTERN.search(line)
        if not match or match.group(1).startswith("_"):
            return []
        name = match.group(1)
        column = match.start(1) + 1
        return [
            self._issue(
                f"Variable '{name}' appears to be unused. Consider prefixing with underscore.",
                line_number,
                column,
                column + len(name),
                fix=Fix(description=f"Rename to '_{name}'", replacement=f"_{name}"),
            )
        ]


@register_rule("line_too_long")
class LineTooLongRule(RuleBase):
    rule = "line_too_long"
    severity = Severity.INFO

    def check(self, line: str, line_number: int, lines: List[str]) -> List[Issue]:
        if len(line) <= MAX_LINE_LENGTH:
            return []
        return [
            self._issue(
                f"Line too long ({len(line)} > {MAX_LINE_LENGTH} characters)",
                line_number,
                MAX_LINE_LENGTH + 1,
                len(line) + 1,
            )
        ]


@register_rule("todo_comment")
class TodoCommentRule(RuleBase):
    rule = "todo_comment"
    severity = Severity.INFO

    MARKERS = ("TODO", "FIXME")

    def check(self, line: str, line_number: int, lines: List[str]) -> List[Issue]:
        # Anchor at the marker that appears last on the line
        index, marker = max((line.find(m), m) for m in self.MARKERS)
        if index < 0:
            return []
        return [
            self._issue(
                f"{marker} comment found",
                line_number,
                index + 1,
                len(line) + 1,
            )
        ]


@register_rule("unsafe_code")
class UnsafeCodeRule(RuleBase):
    rule = "unsafe_code"
    severity = Severity.WARNING

    MARKER = "unsafe"

    def check(self, line: str, line_number: int, lines: List[str]) -> List[Issue]:
        index = line.find(self.MARKER)
        if index < 0:
            return []
        return [
            self._issue(
                "Unsafe code detected. Ensure safety invariants are maintained.",
                line_number,
                index + 1,
                index + len(self.MARKER) + 1,
            )
        ]


@register_rule("missing_docs")
class MissingDocsRule(RuleBase):
    """Public items whose previous line is not a doc comment."""

    rule = "missing_docs"
    severity = Severity.INFO

    PATTERN = re.compile(r"^\s*pub(?:\([^)]*\))?\s+(?:fn|struct|enum|trait)\s+\w+")
    DOC_PREFIXES = ("///", "//!")

    def check(self, line: str, line_number: int, lines: List[str]) -> List[Issue]:
        # The first line has nothing before it to hold documentation
        if line_number == 1 or not self.PATTERN.match(line):
            return []
        previous = lines[line_number - 2].strip()
        if previous.startswith(self.DOC_PREFIXES):
            return []
        return [
            self._issue(
                "Public item should have documentation",
                line_number,
                1,
                len(line) + 1,
            )
        ]


@register_rule("naming_convention.type")
class TypeNamingRule(RuleBase):
    rule = "naming_convention"
    severity = Severity.WARNING

    PATTERN = re.compile(r"\b(struct|enum|trait)\s+(\w+)")
    VALID = re.compile(r"^[A-Z][a-zA-Z0-9]*$")

    def check(self, line: str, line_number: int, lines: List[str]) -> List[Issue]:
        match = self.PATTERN.search(line)
        if not match or self.VALID.match(match.group(2)):
            return []
        kind, name = match.group(1), match.group(2)
        column = match.start(2) + 1
        return [
            self._issue(
                f"{kind.capitalize()} name '{name}' should be PascalCase",
                line_number,
                column,
                column + len(name),
            )
        ]


@register_rule("naming_convention.function")
class FunctionNamingRule(RuleBase):
    rule = "naming_convention"
    severity = Severity.WARNING

    PATTERN = re.compile(r"\bfn\s+(\w+)")
    VALID = re.compile(r"^_?[a-z][a-z0-9_]*$")

    def check(self, line: str, line_number: int, lines: List[str]) -> List[Issue]:
        match = self.PATTERN.search(line)
        if not match or self.VALID.match(match.group(1)):
            return []
        name = match.group(1)
        column = match.start(1) + 1
        return [
            self._issue(
                f"Function name '{name}' should be snake_case",
                line_number,
                column,
                column + len(name),
            )
        ]


def analyze(text: str) -> List[Issue]:
    """
    Run every registered rule against every line of the text.

    Args:
        text: Full document text

    Returns:
        Issues in line order, then rule registration order. Nothing is deduplicated.
    """
    lines = [line.rstrip("\r") for line in text.split("\n")]
    rules = [rule_class() for rule_class in RULE_REGISTRY.values()]

    issues: List[Issue] = []
    for index, line in enumerate(lines):
        for rule in rules:
            issues.extend(rule.check(line, index + 1, lines))

    logger.debug(f"Fallback analysis found {len(issues)} issues in {len(lines)} lines")
    return issues


def get_rule_ids() -> List[str]:
    """
    Get the distinct rule ids the fallback engine can report.

    Returns:
        List of rule ids (e.g., ['unused_variable', 'line_too_long', ...])
    """
    ids: List[str] = []
    for rule_class in RULE_REGISTRY.values():
        if rule_class.rule not in ids:
            ids.append(rule_class.rule)
    return ids
