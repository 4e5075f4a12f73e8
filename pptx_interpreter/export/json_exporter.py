"""
JSON exporter for presentation inventories.

Produces the flat ``{"records": [...]}`` document consumed by the replacement
applier, and a grouped slide → shape view for people authoring directives.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Union
import logging

from ..models.record import ContentRecord

logger = logging.getLogger(__name__)


def inventory_to_dict(records: List[ContentRecord], source: str = None) -> Dict[str, Any]:
    """Flat inventory document: one entry per paragraph, in reading order."""
    data: Dict[str, Any] = {"records": [record.to_dict() for record in records]}
    if source is not None:
        data["source"] = source
    return data


def group_by_shape(records: List[ContentRecord]) -> Dict[str, Any]:
    """
    Group records by slide and container.

    Returns:
        ``{"slides": [{"index", "part", "shapes": [{..container.., "paragraphs": [...]}]}]}``
    """
    slides: Dict[str, Dict[str, Any]] = {}
    shapes: Dict[str, Dict[str, Any]] = {}
    for record in records:
        slide = slides.get(record.locator.part)
        if slide is None:
            slide = {"index": record.slide_index, "part": record.locator.part, "shapes": []}
            slides[record.locator.part] = slide

        container_key = str(record.container.locator)
        shape = shapes.get(container_key)
        if shape is None:
            shape = record.container.to_dict()
            shape["paragraphs"] = []
            shapes[container_key] = shape
            slide["shapes"].append(shape)

        shape["paragraphs"].append({
            "locator": str(record.locator),
            "text": record.text,
            "bold": record.format.bold,
            "size": record.format.size,
            "font": record.format.font,
            "alignment": record.format.alignment,
            "bullet": record.format.bullet,
            "level": record.format.level,
        })
    return {"slides": list(slides.values())}


class InventoryExporter:
    """
    Writes an inventory to JSON.

    Handles the flat record document and the grouped authoring view.
    """

    def __init__(self, records: List[ContentRecord], indent: int = 2, ensure_ascii: bool = False,
                 grouped: bool = False):
        """
        Initialize exporter.

        Args:
            records: Content records in reading order
            indent: JSON indentation level
            ensure_ascii: Whether to escape non-ASCII characters
            grouped: Emit the slide / shape grouped view instead of flat records
        """
        self.records = records
        self.indent = indent
        self.ensure_ascii = ensure_ascii
        self.grouped = grouped

    def to_dict(self, source: str = None) -> Dict[str, Any]:
        data = group_by_shape(self.records) if self.grouped else inventory_to_dict(self.records)
        data["metadata"] = {
            "source": source,
            "exported_at": datetime.now().isoformat(timespec="seconds"),
            "record_count": len(self.records),
        }
        return data

    def to_json(self, source: str = None) -> str:
        return json.dumps(self.to_dict(source), indent=self.indent, ensure_ascii=self.ensure_ascii)

    def export(self, output_path: Union[str, Path], source: str = None) -> Path:
        """
        Write the inventory to ``output_path``.

        Returns:
            The written path
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(self.to_json(source), encoding="utf-8")
        logger.info(f"Inventory exported to JSON: {output_path} ({len(self.records)} records)")
        return output_path
