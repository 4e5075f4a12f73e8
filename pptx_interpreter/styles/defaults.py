"""
Default formatting values for PresentationML text.

Used as the last layer of the formatting cascade when neither the slide,
its layout and master, nor the presentation default text style set a
property.
"""

DEFAULT_FONT_SIZE_PT = 18.0
DEFAULT_FONT = "Calibri"
DEFAULT_LINE_SPACING = 1.2
OVERFLOW_TOLERANCE_PT = 0.5

# Auto-generated placeholder content is not editable text.
SKIPPED_PLACEHOLDER_TYPES = ("sldNum", "dt", "ftr")

# a:bodyPr inset defaults, in EMU.
DEFAULT_LEFT_INSET = 91440
DEFAULT_RIGHT_INSET = 91440
DEFAULT_TOP_INSET = 45720
DEFAULT_BOTTOM_INSET = 45720

ALIGNMENT_NAMES = {
    "l": "left",
    "ctr": "center",
    "r": "right",
    "just": "justify",
    "justLow": "justify",
    "dist": "distributed",
    "thaiDist": "distributed",
}
ALIGNMENT_CODES = {
    "left": "l",
    "center": "ctr",
    "right": "r",
    "justify": "just",
    "distributed": "dist",
}

# Placeholder type -> master text style used for its cascade.
TITLE_PLACEHOLDERS = frozenset({"title", "ctrTitle"})
BODY_PLACEHOLDERS = frozenset({"body", "subTitle", "obj"})
