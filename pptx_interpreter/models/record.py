"""
Content record models.

A content record is the flattened, self-describing view of one text
paragraph: its plain text, its resolved formatting and the container it
lives in. Records never hold references to tree nodes; they address the
tree only through their locator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from ..styles.style_resolver import ResolvedFormat
from .locator import Locator


@dataclass(frozen=True)
class RunRecord:
    """Text and resolved formatting of one run."""

    text: str
    format: ResolvedFormat

    def to_dict(self) -> Dict[str, Any]:
        data = {"text": self.text}
        data.update(self.format.run_fields())
        return data


@dataclass(frozen=True)
class ContainerInfo:
    """The text container (shape or table cell) a paragraph belongs to."""

    locator: Locator
    kind: str = "shape"
    shape_id: Optional[str] = None
    name: Optional[str] = None
    placeholder_type: Optional[str] = None
    placeholder_idx: Optional[str] = None
    # x, y, cx, cy in EMU; None when no geometry resolves.
    box: Optional[Tuple[int, int, int, int]] = None
    # left, top, right, bottom insets in EMU.
    insets: Tuple[int, int, int, int] = (91440, 45720, 91440, 45720)
    autofit: str = "none"
    font_scale: float = 1.0
    line_reduction: float = 0.0
    wrap: bool = True

    @property
    def has_fixed_size(self) -> bool:
        return self.box is not None and self.autofit != "shape"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "locator": str(self.locator),
            "kind": self.kind,
            "shape_id": self.shape_id,
            "name": self.name,
            "placeholder_type": self.placeholder_type,
            "placeholder_idx": self.placeholder_idx,
            "box": list(self.box) if self.box else None,
            "insets": list(self.insets),
            "autofit": self.autofit,
            "font_scale": self.font_scale,
            "wrap": self.wrap,
        }


@dataclass(frozen=True)
class ContentRecord:
    """One paragraph of the inventory."""

    locator: Locator
    text: str
    format: ResolvedFormat
    container: ContainerInfo
    slide_index: Optional[int] = None
    paragraph_index: int = 0
    runs: Tuple[RunRecord, ...] = field(default_factory=tuple)

    # Flattened accessors for the most used formatting fields.
    @property
    def bold(self) -> bool:
        return self.format.bold

    @property
    def size(self) -> float:
        return self.format.size

    @property
    def font(self) -> str:
        return self.format.font

    @property
    def alignment(self) -> str:
        return self.format.alignment

    @property
    def bullet(self) -> bool:
        return self.format.bullet

    @property
    def level(self) -> int:
        return self.format.level

    def to_dict(self) -> Dict[str, Any]:
        """Serialize as ``{locator, text, formatting-fields..., container, runs}``."""
        data: Dict[str, Any] = {
            "locator": str(self.locator),
            "text": self.text,
            "slide_index": self.slide_index,
            "paragraph_index": self.paragraph_index,
        }
        data.update(self.format.to_dict())
        data["container"] = self.container.to_dict()
        data["runs"] = [run.to_dict() for run in self.runs]
        return data
