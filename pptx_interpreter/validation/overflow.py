"""
Layout overflow pass.

Estimates the rendered extent of each fixed-size text container from its
inventory records and reports containers whose text exceeds their bounds.
"""

from collections import OrderedDict
from typing import Dict, List, Optional
import logging

from ..engine.text_metrics import TextMetricsEngine
from ..models.locator import Locator
from ..models.record import ContainerInfo, ContentRecord
from ..styles import defaults
from ..utils.units import emu_to_pt
from .issues import Issue, IssueSet, overflow_issue

logger = logging.getLogger(__name__)


class OverflowEstimator:
    """
    Estimates text extent per container.

    Text is wrapped against the container width minus insets and paragraph
    margin; heights add up line heights and paragraph spacing. The first
    paragraph whose bottom edge crosses the container bound carries the issue.
    """

    def __init__(self, tolerance_pt: float = defaults.OVERFLOW_TOLERANCE_PT,
                 metrics: Optional[TextMetricsEngine] = None):
        """
        Args:
            tolerance_pt: Overflow at or below this amount is ignored
            metrics: Text metrics engine (a default one is created if omitted)
        """
        self.tolerance_pt = tolerance_pt
        self.metrics = metrics or TextMetricsEngine()

    def check(self, records: List[ContentRecord]) -> IssueSet:
        issues = IssueSet()
        for container, container_records in self.group_by_container(records).items():
            issue = self.check_container(container, container_records)
            if issue is not None:
                issues.add(issue)
        logger.debug(f"Overflow pass: {len(issues)} issues")
        return issues

    @staticmethod
    def group_by_container(records: List[ContentRecord]) -> "OrderedDict[ContainerInfo, List[ContentRecord]]":
        grouped: "OrderedDict[Locator, List[ContentRecord]]" = OrderedDict()
        containers: Dict[Locator, ContainerInfo] = {}
        for record in records:
            key = record.container.locator
            containers.setdefault(key, record.container)
            grouped.setdefault(key, []).append(record)
        return OrderedDict((containers[key], grouped[key]) for key in grouped)

    def check_container(self, container: ContainerInfo, records: List[ContentRecord]) -> Optional[Issue]:
        if not container.has_fixed_size:
            return None

        _, _, cx, cy = container.box
        left, top, right, bottom = container.insets
        available_width = emu_to_pt(cx - left - right)
        available_height = emu_to_pt(cy - top - bottom)
        label = container.name or str(container.locator)

        used_height = 0.0
        first_wide: Optional[tuple] = None
        for record in records:
            margin = emu_to_pt(record.format.margin_left)
            width = available_width - margin
            layout = self.metrics.layout_paragraph(
                record.text,
                record.format,
                max_width=width if container.wrap else None,
                font_scale=container.font_scale,
                line_reduction=container.line_reduction,
            )
            used_height += layout.height
            overflow = used_height - available_height
            if overflow > self.tolerance_pt:
                return overflow_issue(
                    str(record.locator),
                    f"Text overflows container '{label}' vertically",
                    overflow_pt=round(overflow, 2),
                    container=str(container.locator),
                    direction="vertical",
                )
            if not container.wrap:
                horizontal = layout.width - width
                if first_wide is None and horizontal > self.tolerance_pt:
                    first_wide = (record, horizontal)

        if first_wide is not None:
            record, horizontal = first_wide
            return overflow_issue(
                str(record.locator),
                f"Text overflows container '{label}' horizontally",
                overflow_pt=round(horizontal, 2),
                container=str(container.locator),
                direction="horizontal",
            )
        return None


def overflow_pass(records: List[ContentRecord], tolerance_pt: float = defaults.OVERFLOW_TOLERANCE_PT,
                  line_spacing: float = defaults.DEFAULT_LINE_SPACING) -> IssueSet:
    """Run the overflow pass over inventory records."""
    return OverflowEstimator(tolerance_pt, TextMetricsEngine(line_spacing)).check(records)
