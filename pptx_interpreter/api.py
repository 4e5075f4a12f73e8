"""
High-level API for PPTX Interpreter.

Main entry point for users: the inventory, replace and validate workflow
in a few calls.

Example:
    >>> from pptx_interpreter import api
    >>>
    >>> # Read-only inspection
    >>> document = api.open_presentation('deck.pptx')
    >>> records = api.extract_inventory(document)
    >>>
    >>> # Read-modify-validate-write
    >>> session = api.EditSession('deck.pptx')
    >>> session.apply([{"locator": str(records[0].locator), "text": "New title"}])
    >>> outcome = session.save('deck-edited.pptx')
    >>> outcome.written
    True
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, List, Optional, Sequence, Union
import logging

from .applier import ApplyReport, ReplacementApplier
from .document import Presentation
from .inventory import extract
from .models.directive import Directive, load_directives
from .models.record import ContentRecord
from .options import PipelineOptions
from .validation import ALL_PASSES, IssueSet, PresentationValidator, ValidationResult
from .validation import check_regressions as _check_regressions

logger = logging.getLogger(__name__)

__all__ = [
    "EditOutcome",
    "EditSession",
    "apply_replacements",
    "check_regressions",
    "extract_inventory",
    "open_presentation",
    "save_presentation",
    "validate",
]

DirectiveInput = Union[str, Path, List[Any], dict, Iterable[Directive]]


def open_presentation(path: Union[str, Path], options: Optional[PipelineOptions] = None) -> Presentation:
    """
    Open and parse a presentation.

    Raises:
        FileNotFoundError: if ``path`` does not exist
        ArchiveError: if the file is not a readable zip archive
        MalformedXml: if any XML part is not well-formed
    """
    return Presentation.open(path, options)


def extract_inventory(document: Presentation, options: Optional[PipelineOptions] = None) -> List[ContentRecord]:
    """Return the content records of ``document`` in reading order."""
    return extract(document, options)


def _as_directives(directives: DirectiveInput) -> List[Directive]:
    if isinstance(directives, (str, Path, dict)):
        return load_directives(directives)
    items = list(directives)
    if all(isinstance(item, Directive) for item in items):
        return items
    return load_directives([item.to_dict() if isinstance(item, Directive) else item for item in items])


def apply_replacements(document: Presentation, directives: DirectiveInput) -> ApplyReport:
    """
    Apply replacement directives.

    Args:
        document: Presentation to edit in place
        directives: Directive objects, decoded JSON data, JSON text or a JSON file path

    Returns:
        ApplyReport listing applied, unresolved and superseded directives
    """
    return ReplacementApplier(document).apply(_as_directives(directives))


def validate(document: Presentation, passes: Sequence[str] = ALL_PASSES,
             options: Optional[PipelineOptions] = None) -> ValidationResult:
    """Validate ``document``; see :class:`PresentationValidator`."""
    return PresentationValidator(options).validate(document, passes)


def check_regressions(baseline: Union[IssueSet, ValidationResult],
                      current: Union[IssueSet, ValidationResult]) -> IssueSet:
    """Issues in ``current`` that ``baseline`` does not have."""
    if isinstance(baseline, ValidationResult):
        baseline = baseline.issues
    if isinstance(current, ValidationResult):
        current = current.issues
    return _check_regressions(baseline, current)


def save_presentation(document: Presentation, path: Union[str, Path]) -> Path:
    """Write ``document`` atomically; unmodified members keep their original bytes."""
    return document.save(path)


@dataclass
class EditOutcome:
    """Result of :meth:`EditSession.save`."""

    written: bool
    path: Optional[Path]
    regressions: IssueSet
    validation: ValidationResult
    reports: List[ApplyReport] = field(default_factory=list)

    @property
    def unresolved(self) -> list:
        return [finding for report in self.reports for finding in report.unresolved]


class EditSession:
    """
    Read-modify-validate-write workflow for one presentation.

    The original document is validated when the session opens so that
    :meth:`save` can block only on issues the edits introduced.
    """

    def __init__(self, path: Union[str, Path], options: Optional[PipelineOptions] = None):
        """
        Open a presentation for editing.

        Args:
            path: Input ``.pptx`` file
            options: Pipeline options
        """
        self.source = Path(path)
        self.options = options or PipelineOptions()
        self.document = open_presentation(self.source, self.options)
        self.validator = PresentationValidator(self.options)
        self.baseline = self.validator.validate(self.document)
        self.reports: List[ApplyReport] = []
        logger.info(f"Edit session opened for {self.source} ({len(self.baseline.issues)} baseline issues)")

    def inventory(self) -> List[ContentRecord]:
        """Current inventory; locators from earlier calls are stale after :meth:`apply`."""
        return extract(self.document, self.options)

    def apply(self, directives: DirectiveInput) -> ApplyReport:
        report = apply_replacements(self.document, directives)
        self.reports.append(report)
        return report

    def validate(self) -> ValidationResult:
        return self.validator.validate(self.document)

    def regressions(self) -> IssueSet:
        return check_regressions(self.baseline, self.validate())

    def save(self, path: Union[str, Path], allow_errors: bool = False) -> EditOutcome:
        """
        Validate the edited document and write it.

        Nothing is written when the edits introduced error-level issues,
        unless ``allow_errors`` is set.

        Args:
            path: Output path
            allow_errors: Write even if new error-level issues were found

        Returns:
            EditOutcome with the regression set and whether the file was written
        """
        result = self.validate()
        regressions = check_regressions(self.baseline, result)
        blocking = regressions.errors()
        if blocking and not allow_errors:
            logger.error(f"Not writing {path}: {len(blocking)} new error-level issues")
            return EditOutcome(False, None, regressions, result, list(self.reports))

        written = save_presentation(self.document, path)
        logger.info(f"Saved {written} ({len(regressions)} new issues)")
        return EditOutcome(True, written, regressions, result, list(self.reports))
