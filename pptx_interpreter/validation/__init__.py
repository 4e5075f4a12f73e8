"""
Validation package.

Schema, reference and overflow passes plus the regression check.
"""

from .issues import Category, Issue, IssueSet, ValidationLevel, ValidationResult
from .validator import ALL_PASSES, PresentationValidator, check_regressions, validate

__all__ = [
    "ALL_PASSES",
    "Category",
    "Issue",
    "IssueSet",
    "PresentationValidator",
    "ValidationLevel",
    "ValidationResult",
    "check_regressions",
    "validate",
]
