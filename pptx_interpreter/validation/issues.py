"""
Validation issue model.

Issues are plain, hashable values so results of two validation runs can be
compared as sets.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional, Union
import json


class ValidationLevel(Enum):
    """Validation levels."""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class Category(Enum):
    """Validation pass that produced an issue."""
    SCHEMA = "schema"
    REFERENCE = "reference"
    OVERFLOW = "overflow"


@dataclass(frozen=True)
class Issue:
    """
    One validation finding.

    Equality and hashing use severity, category, location and message only;
    ``details`` carries extra data such as the overflow amount.
    """

    severity: ValidationLevel
    category: Category
    location: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def overflow(self) -> Optional[float]:
        return self.details.get("overflow_pt")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        data = {
            "severity": self.severity.value,
            "category": self.category.value,
            "location": self.location,
            "message": self.message,
        }
        if self.details:
            data["details"] = dict(self.details)
        return data

    def __str__(self) -> str:
        text = f"[{self.severity.value.upper()}] {self.category.value} {self.location}: {self.message}"
        if self.overflow is not None:
            text += f" (by {self.overflow:.1f} pt)"
        return text


def schema_issue(location: str, message: str, severity: ValidationLevel = ValidationLevel.ERROR,
                 **details: Any) -> Issue:
    return Issue(severity, Category.SCHEMA, location, message, details)


def reference_issue(location: str, message: str, severity: ValidationLevel = ValidationLevel.ERROR,
                    **details: Any) -> Issue:
    return Issue(severity, Category.REFERENCE, location, message, details)


def overflow_issue(location: str, message: str, severity: ValidationLevel = ValidationLevel.WARNING,
                   **details: Any) -> Issue:
    return Issue(severity, Category.OVERFLOW, location, message, details)


class IssueSet:
    """Insertion-ordered set of issues."""

    def __init__(self, issues: Iterable[Issue] = ()):
        self._issues: Dict[Issue, None] = {}
        self.extend(issues)

    def add(self, issue: Issue) -> None:
        self._issues.setdefault(issue, None)

    def extend(self, issues: Iterable[Issue]) -> None:
        for issue in issues:
            self.add(issue)

    def __iter__(self) -> Iterator[Issue]:
        return iter(self._issues)

    def __len__(self) -> int:
        return len(self._issues)

    def __bool__(self) -> bool:
        return bool(self._issues)

    def __contains__(self, issue: object) -> bool:
        return issue in self._issues

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, IssueSet):
            return NotImplemented
        return set(self._issues) == set(other._issues)

    def __sub__(self, other: "IssueSet") -> "IssueSet":
        return IssueSet(issue for issue in self if issue not in other)

    def __or__(self, other: "IssueSet") -> "IssueSet":
        return IssueSet(list(self) + list(other))

    def __repr__(self) -> str:
        return f"IssueSet({len(self)} issues)"

    def by_category(self, category: Category) -> "IssueSet":
        return IssueSet(issue for issue in self if issue.category == category)

    def by_severity(self, severity: ValidationLevel) -> "IssueSet":
        return IssueSet(issue for issue in self if issue.severity == severity)

    def errors(self) -> "IssueSet":
        return self.by_severity(ValidationLevel.ERROR)

    def warnings(self) -> "IssueSet":
        return self.by_severity(ValidationLevel.WARNING)

    def to_list(self) -> List[Dict[str, Any]]:
        return [issue.to_dict() for issue in self]


class ValidationResult:
    """Issues of one validation run plus report generation."""

    def __init__(self, issues: Optional[IssueSet] = None, passes: Iterable[str] = ()):
        self.issues = issues if issues is not None else IssueSet()
        self.passes = list(passes)

    @property
    def is_valid(self) -> bool:
        """True when no error-level issue was found."""
        return not self.issues.errors()

    def has_errors(self) -> bool:
        return bool(self.issues.errors())

    def has_warnings(self) -> bool:
        return bool(self.issues.warnings())

    def summary(self) -> Dict[str, int]:
        summary = {
            "total_issues": len(self.issues),
            "errors": len(self.issues.errors()),
            "warnings": len(self.issues.warnings()),
            "info": len(self.issues.by_severity(ValidationLevel.INFO)),
        }
        for category in Category:
            summary[category.value] = len(self.issues.by_category(category))
        return summary

    def generate_report(self, format: str = "json") -> Union[str, Dict[str, Any]]:
        """
        Generate validation report.

        Args:
            format: Report format ("json", "text", anything else returns the dict)

        Returns:
            Validation report
        """
        report = {
            "summary": self.summary(),
            "passes": self.passes,
            "issues": self.issues.to_list(),
        }

        if format == "json":
            return json.dumps(report, indent=2, ensure_ascii=False)
        elif format == "text":
            text_parts = []
            text_parts.append("Validation Report")
            text_parts.append(f"Total Issues: {report['summary']['total_issues']}")
            text_parts.append(f"Errors: {report['summary']['errors']}")
            text_parts.append(f"Warnings: {report['summary']['warnings']}")
            text_parts.append(f"Info: {report['summary']['info']}")
            text_parts.append("")

            for issue in self.issues:
                text_parts.append(str(issue))

            return "\n".join(text_parts)
        else:
            return report
