"""
Presentation validator.

Runs the schema, reference and overflow passes over a (possibly edited)
presentation and aggregates every finding. Passes are independent and
total: each reports all of its issues and none stops the others.
"""

from typing import Iterable, Optional, Sequence
import logging

from ..document import Presentation
from ..inventory import extract
from ..options import PipelineOptions
from .issues import Category, IssueSet, ValidationResult
from .overflow import overflow_pass
from .references import reference_pass
from .schema import schema_pass

logger = logging.getLogger(__name__)

ALL_PASSES = tuple(category.value for category in Category)


class PresentationValidator:
    """
    Comprehensive presentation validator.

    Validates markup structure, cross-part references and text overflow.
    """

    def __init__(self, options: Optional[PipelineOptions] = None):
        """
        Initialize validator.

        Args:
            options: Pipeline options (document options are used when omitted)
        """
        self.options = options

    def validate(self, document: Presentation, passes: Sequence[str] = ALL_PASSES) -> ValidationResult:
        """
        Validate a presentation.

        Args:
            document: Presentation to validate
            passes: Any of ``"schema"``, ``"reference"``, ``"overflow"``

        Returns:
            ValidationResult with the issues of every requested pass

        Raises:
            ValueError: for an unknown pass name
        """
        unknown = set(passes) - set(ALL_PASSES)
        if unknown:
            raise ValueError(f"Unknown validation passes: {', '.join(sorted(unknown))}")

        options = self.options or document.options
        issues = IssueSet()
        if Category.SCHEMA.value in passes:
            issues.extend(schema_pass(document.parts.values(), options.schema_dir))
        if Category.REFERENCE.value in passes:
            issues.extend(reference_pass(document, options.check_media))
        if Category.OVERFLOW.value in passes:
            records = extract(document, options)
            issues.extend(overflow_pass(records, options.overflow_tolerance_pt, options.line_spacing))

        logger.info(f"Validation completed: {len(issues)} issues found")
        return ValidationResult(issues, [name for name in ALL_PASSES if name in passes])


def validate(document: Presentation, passes: Sequence[str] = ALL_PASSES,
             options: Optional[PipelineOptions] = None) -> IssueSet:
    """Run the requested validation passes; an empty set means the document is clean."""
    return PresentationValidator(options).validate(document, passes).issues


def check_regressions(baseline: Iterable, current: Iterable) -> IssueSet:
    """
    Return the issues of ``current`` that are absent from ``baseline``.

    Issues already present in the original document are not regressions.
    """
    baseline_set = baseline if isinstance(baseline, IssueSet) else IssueSet(baseline)
    current_set = current if isinstance(current, IssueSet) else IssueSet(current)
    regressions = current_set - baseline_set
    logger.debug(f"Regression check: {len(regressions)} new issues")
    return regressions
