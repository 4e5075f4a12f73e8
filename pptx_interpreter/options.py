"""Pipeline options for inventory extraction, replacement and validation."""

import os
from pathlib import Path
from typing import Iterable, Optional, Union

from .styles import defaults

SCHEMA_DIR_ENV = "PPTX_INTERPRETER_SCHEMA_DIR"


class PipelineOptions:
    """Options shared by the extractor, applier and validator."""

    def __init__(
        self,
        skip_placeholder_types: Iterable[str] = defaults.SKIPPED_PLACEHOLDER_TYPES,
        default_font_size: float = defaults.DEFAULT_FONT_SIZE_PT,
        default_font: str = defaults.DEFAULT_FONT,
        line_spacing: float = defaults.DEFAULT_LINE_SPACING,
        overflow_tolerance_pt: float = defaults.OVERFLOW_TOLERANCE_PT,
        schema_dir: Optional[Union[str, Path]] = None,
        check_media: bool = True,
    ):
        """
        Initializes pipeline options.

        Args:
            skip_placeholder_types: Placeholder types left out of the inventory
            default_font_size: Size in points when nothing in the cascade sets one
            default_font: Typeface when neither the cascade nor the theme sets one
            line_spacing: Single line height as a multiple of the font size
            overflow_tolerance_pt: Overflow below this amount is not reported
            schema_dir: Folder of OOXML XSD files for strict schema validation;
                falls back to the PPTX_INTERPRETER_SCHEMA_DIR environment variable
            check_media: Whether the reference pass decodes image targets
        """
        self.skip_placeholder_types = frozenset(skip_placeholder_types)
        self.default_font_size = float(default_font_size)
        self.default_font = default_font
        self.line_spacing = float(line_spacing)
        self.overflow_tolerance_pt = float(overflow_tolerance_pt)
        if schema_dir is None and os.environ.get(SCHEMA_DIR_ENV):
            schema_dir = os.environ[SCHEMA_DIR_ENV]
        self.schema_dir = Path(schema_dir) if schema_dir else None
        self.check_media = check_media

    def __repr__(self) -> str:
        return (
            f"PipelineOptions(skip_placeholder_types={sorted(self.skip_placeholder_types)}, "
            f"default_font_size={self.default_font_size}, default_font={self.default_font!r}, "
            f"schema_dir={self.schema_dir})"
        )
