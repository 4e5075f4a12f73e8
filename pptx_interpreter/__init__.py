"""
PPTX Interpreter - structural editing pipeline for PresentationML files.

This package extracts an addressable inventory of slide text and its
resolved formatting, applies externally authored replacements while
preserving surrounding formatting, validates the result and writes the
archive back atomically.

Main Components:
- Parser: archive codec, XML parts and relationships
- Presentation: parsed document with slide / layout / master / theme chains
- Inventory: content records with resolved formatting
- Applier: replacement directives
- Validation: schema, reference and overflow passes
- Export: inventory JSON
"""

from .exceptions import (
    ArchiveError,
    DirectiveError,
    InvalidLocator,
    MalformedXml,
    MissingMember,
    ParsingError,
    PptxInterpreterError,
)
from .document import Presentation
from .options import PipelineOptions
from .models import ContainerInfo, ContentRecord, Directive, Locator, RunRecord, load_directives
from .inventory import extract
from .applier import ApplyReport, UnresolvedLocator, apply
from .validation import (
    Category,
    Issue,
    IssueSet,
    ValidationLevel,
    ValidationResult,
    check_regressions,
    validate,
)
from .api import (
    EditOutcome,
    EditSession,
    apply_replacements,
    extract_inventory,
    open_presentation,
    save_presentation,
)

__version__ = "0.1.0"

__all__ = [
    "ApplyReport",
    "ArchiveError",
    "Category",
    "ContainerInfo",
    "ContentRecord",
    "Directive",
    "DirectiveError",
    "EditOutcome",
    "EditSession",
    "InvalidLocator",
    "Issue",
    "IssueSet",
    "Locator",
    "MalformedXml",
    "MissingMember",
    "ParsingError",
    "PipelineOptions",
    "PptxInterpreterError",
    "Presentation",
    "RunRecord",
    "UnresolvedLocator",
    "ValidationLevel",
    "ValidationResult",
    "apply",
    "apply_replacements",
    "check_regressions",
    "extract",
    "extract_inventory",
    "load_directives",
    "open_presentation",
    "save_presentation",
    "validate",
]
