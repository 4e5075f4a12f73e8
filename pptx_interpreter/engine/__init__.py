"""Text measurement used by the overflow check."""

from .text_metrics import TextLayout, TextMetricsEngine

__all__ = ["TextLayout", "TextMetricsEngine"]
