"""
Replacement directive model.

A directive names a paragraph by locator and carries new text and/or
formatting overrides. Only the override fields actually present are applied.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from ..exceptions import DirectiveError
from ..styles.defaults import ALIGNMENT_CODES
from .locator import Locator

OVERRIDE_FIELDS = ("bold", "italic", "underline", "size", "font", "color", "alignment", "bullet", "level")

# Inventory record keys that may appear when a record is fed back as a directive.
RECORD_ONLY_KEYS = frozenset({
    "slide_index", "paragraph_index", "container", "runs", "margin_left", "indent",
    "line_spacing", "line_spacing_pt", "space_before", "space_after",
})

_HEX_COLOR = re.compile(r"^#?[0-9A-Fa-f]{6}$")

SCHEME_COLOR_PREFIX = "scheme:"
SCHEME_COLORS = frozenset({
    "bg1", "tx1", "bg2", "tx2", "accent1", "accent2", "accent3", "accent4", "accent5", "accent6",
    "hlink", "folHlink", "phClr", "dk1", "lt1", "dk2", "lt2",
})


@dataclass(frozen=True)
class Directive:
    """Replace the text and/or formatting of the paragraph at ``locator``."""

    locator: Locator
    text: Optional[str] = None
    overrides: Dict[str, Any] = field(default_factory=dict)
    bullet_char: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"locator": str(self.locator)}
        if self.text is not None:
            data["text"] = self.text
        data.update(self.overrides)
        if self.bullet_char is not None:
            data["bullet_char"] = self.bullet_char
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], locator: Any = None) -> "Directive":
        """
        Build a directive from its JSON form.

        Args:
            data: Directive mapping
            locator: Locator when the mapping is keyed externally

        Raises:
            DirectiveError: for missing or unparseable locators, unknown keys or bad values
        """
        if not isinstance(data, Mapping):
            raise DirectiveError("Directive must be a mapping", repr(data))

        raw_locator = locator if locator is not None else data.get("locator")
        if raw_locator is None:
            raise DirectiveError("Directive has no locator", repr(dict(data)))
        try:
            parsed_locator = Locator.parse(raw_locator)
        except ValueError as exc:
            raise DirectiveError("Unparseable locator", str(exc)) from exc

        unknown = set(data) - set(OVERRIDE_FIELDS) - RECORD_ONLY_KEYS - {"locator", "text", "bullet_char"}
        if unknown:
            raise DirectiveError(f"Unknown directive fields for {parsed_locator}", ", ".join(sorted(unknown)))

        text = data.get("text")
        if text is not None and not isinstance(text, str):
            raise DirectiveError(f"Directive text must be a string for {parsed_locator}", repr(text))

        # Absent and null fields both leave the formatting alone.
        overrides = {key: _check_override(key, data[key], parsed_locator)
                     for key in OVERRIDE_FIELDS if data.get(key) is not None}
        bullet_char = data.get("bullet_char")
        if bullet_char is not None and not isinstance(bullet_char, str):
            raise DirectiveError(f"bullet_char must be a string for {parsed_locator}", repr(bullet_char))
        return cls(parsed_locator, text, overrides, bullet_char)


def _check_override(key: str, value: Any, locator: Locator) -> Any:
    def fail(expected: str):
        raise DirectiveError(f"Invalid {key} for {locator}", f"expected {expected}, got {value!r}")

    if key in ("bold", "italic", "underline"):
        if not isinstance(value, bool):
            fail("a boolean")
        return value
    if key == "size":
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not 1 <= value <= 4000:
            fail("a point size between 1 and 4000")
        return float(value)
    if key == "font":
        if not isinstance(value, str) or not value.strip():
            fail("a typeface name")
        return value
    if key == "color":
        if isinstance(value, str) and value.startswith(SCHEME_COLOR_PREFIX):
            if value[len(SCHEME_COLOR_PREFIX):] not in SCHEME_COLORS:
                fail("a known theme color slot")
            return value
        if not isinstance(value, str) or not _HEX_COLOR.match(value):
            fail("an RRGGBB hex color or scheme:<slot>")
        return value.lstrip("#").upper()
    if key == "alignment":
        if value not in ALIGNMENT_CODES:
            fail(f"one of {', '.join(ALIGNMENT_CODES)}")
        return value
    if key == "bullet":
        if not isinstance(value, (bool, str)) or (isinstance(value, str) and not value):
            fail("a boolean or a bullet character")
        return value
    if key == "level":
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 8:
            fail("an integer level between 0 and 8")
        return value
    return value


def load_directives(source: Union[str, Path, List[Any], Dict[str, Any]]) -> List[Directive]:
    """
    Load directives from JSON text, a JSON file, or already decoded data.

    Accepts a list of ``{"locator": ..., "text": ..., ...}`` objects, a
    mapping ``{locator: {"text": ..., ...}}``, or ``{"directives": [...]}``
    / ``{"records": [...]}`` wrappers.

    Raises:
        DirectiveError: if the input cannot be decoded or a directive is malformed
    """
    data = source
    if isinstance(source, Path):
        data = _decode(source.read_text(encoding="utf-8"), str(source))
    elif isinstance(source, str):
        text = source.lstrip()
        if text.startswith(("[", "{")):
            data = _decode(source, "<string>")
        else:
            path = Path(source)
            data = _decode(path.read_text(encoding="utf-8"), str(path))

    if isinstance(data, dict):
        for wrapper in ("directives", "records"):
            if isinstance(data.get(wrapper), list):
                data = data[wrapper]
                break

    if isinstance(data, list):
        return [Directive.from_dict(item) for item in data]
    if isinstance(data, dict):
        return [Directive.from_dict(value if isinstance(value, Mapping) else {"text": value}, locator=key)
                for key, value in data.items()]
    raise DirectiveError("Directives must be a JSON list or object", type(data).__name__)


def _decode(text: str, label: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise DirectiveError(f"Invalid directive JSON in {label}", str(exc)) from exc
