"""
Styles package.

Formatting cascade resolution and theme lookups.
"""

from .style_resolver import (
    ResolvedFormat,
    StyleLayer,
    layer_from_level,
    layer_from_paragraph,
    layer_from_run,
    paragraph_level,
    resolve_formatting,
)
from .theme import Theme

__all__ = [
    "ResolvedFormat",
    "StyleLayer",
    "Theme",
    "layer_from_level",
    "layer_from_paragraph",
    "layer_from_run",
    "paragraph_level",
    "resolve_formatting",
]
