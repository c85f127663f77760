#!/usr/bin/env python3
"""
Data models for analysis results.

This module contains dataclasses representing raw issues produced by either
analysis path (the cargo-fl engine or the fallback rules), and the tagged
records the engine's newline-delimited JSON output is decoded into.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger(__name__)


class Severity(str, Enum):
    """Severity of an issue as reported by an analysis path."""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    HINT = "hint"

    @classmethod
    def parse(cls, value: Any) -> "Severity":
        """Parse a severity string, defaulting to WARNING for unknown values."""
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        logger.debug(f"Unknown severity {value!r}, using warning")
        return cls.WARNING


def _positive_int(value: Any, default: Optional[int] = 1) -> Optional[int]:
    """Coerce a wire value to an int >= 1, or return the default."""
    if isinstance(value, bool):
        return default
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        return default
    return max(1, number)


@dataclass
class Location:
    """Location of an issue expressed as 1-based line and column.

    ``end_line`` and ``end_column`` are optional; when absent the issue
    covers a single character.
    """
    line: int
    column: int
    end_line: Optional[int] = None
    end_column: Optional[int] = None

    @property
    def has_end(self) -> bool:
        return self.end_line is not None and self.end_column is not None

    @classmethod
    def from_dict(cls, data: Any) -> "Location":
        if not isinstance(data, dict):
            return cls(line=1, column=1)
        return cls(
            line=_positive_int(data.get("line")),
            column=_positive_int(data.get("column")),
            end_line=_positive_int(data.get("end_line"), None),
            end_column=_positive_int(data.get("end_column"), None),
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"line": self.line, "column": self.column}
        if self.end_line is not None:
            d["end_line"] = self.end_line
        if self.end_column is not None:
            d["end_column"] = self.end_column
        return d


@dataclass
class Fix:
    """A suggested edit that replaces the issue's range."""
    description: str
    replacement: Optional[str] = None

    @property
    def new_text(self) -> str:
        # Without a replacement the description is the new text
        return self.replacement if self.replacement is not None else self.description

    @classmethod
    def from_dict(cls, data: Any) -> Optional["Fix"]:
        if not isinstance(data, dict) or not isinstance(data.get("description"), str):
            return None
        replacement = data.get("replacement")
        return cls(
            description=data["description"],
            replacement=replacement if isinstance(replacement, str) else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"description": self.description}
        if self.replacement is not None:
            d["replacement"] = self.replacement
        return d


@dataclass
class RelatedIssue:
    """Secondary location in the same document that explains an issue."""
    message: str
    location: Location


@dataclass
class Issue:
    """A raw analysis result in line/column form."""
    rule: str
    severity: Severity
    message: str
    location: Location
    fix: Optional[Fix] = None
    related: List[RelatedIssue] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Issue":
        """Build an issue from one decoded engine JSON object."""
        related = []
        entries = data.get("related")
        for entry in entries if isinstance(entries, list) else []:
            if isinstance(entry, dict) and isinstance(entry.get("message"), str):
                related.append(
                    RelatedIssue(
                        message=entry["message"],
                        location=Location.from_dict(entry.get("location")),
                    )
                )
        return cls(
            rule=str(data["rule"]),
            severity=Severity.parse(data.get("severity")),
            message=str(data["message"]),
            location=Location.from_dict(data.get("location")),
            fix=Fix.from_dict(data.get("fix")),
            related=related,
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "rule": self.rule,
            "severity": self.severity.value,
            "message": self.message,
            "location": self.location.to_dict(),
        }
        if self.fix:
            d["fix"] = self.fix.to_dict()
        if self.related:
            d["related"] = [
                {"message": r.message, "location": r.location.to_dict()} for r in self.related
            ]
        return d


@dataclass
class SingleIssue:
    """One line of engine output holding a single issue object."""
    issue: Issue


@dataclass
class IssueBatch:
    """One line of engine output holding ``{"issues": [...]}``."""
    issues: List[Issue]


EngineRecord = Union[SingleIssue, IssueBatch]


def _is_issue_object(data: Any) -> bool:
    return isinstance(data, dict) and "rule" in data and "message" in data


def decode_record(data: Any) -> Optional[EngineRecord]:
    """
    Decode one parsed JSON value from the engine into a tagged record.

    Args:
        data: A value produced by ``json.loads`` on a single output line

    Returns:
        An IssueBatch, a SingleIssue, or None if the value is neither shape
    """
    if isinstance(data, dict) and isinstance(data.get("issues"), list):
        issues = []
        for entry in data["issues"]:
            if _is_issue_object(entry):
                issues.append(Issue.from_dict(entry))
            else:
                logger.debug(f"Skipping malformed issue entry in batch: {entry!r}")
        return IssueBatch(issues=issues)
    if _is_issue_object(data):
        return SingleIssue(issue=Issue.from_dict(data))
    return None


def flatten_records(records: List[EngineRecord]) -> List[Issue]:
    """Normalize decoded records into one list of issues."""
    issues: List[Issue] = []
    for record in records:
        if isinstance(record, IssueBatch):
            issues.extend(record.issues)
        else:
            issues.append(record.issue)
    return issues
