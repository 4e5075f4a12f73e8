"""
Units used in PresentationML documents.

EMU (English Metric Unit) is the DrawingML length unit; font sizes are
stored in hundredths of a point and percentages in thousandths.
"""

from typing import Optional, Union

EMU_PER_POINT = 12700


def emu_to_pt(emu_value: Union[int, float]) -> float:
    """Convert EMU to points."""
    return float(emu_value) / EMU_PER_POINT


def hundredths_to_pt(value: Optional[str]) -> Optional[float]:
    """Convert a ``sz``-style attribute (1/100 pt) to points."""
    number = parse_int(value)
    if number is None:
        return None
    return number / 100.0


def pt_to_hundredths(pt_value: Union[int, float]) -> str:
    return str(int(round(float(pt_value) * 100)))


def thousandths_to_ratio(value: Optional[str]) -> Optional[float]:
    """Convert an ST_Percentage value (1/1000 %) to a ratio, ``100000`` -> ``1.0``."""
    number = parse_int(value)
    if number is None:
        return None
    return number / 100000.0


def parse_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def parse_bool(value: Optional[str]) -> Optional[bool]:
    """Parse an xsd:boolean attribute value."""
    if value is None:
        return None
    token = str(value).strip().lower()
    if token in ("1", "true", "on"):
        return True
    if token in ("0", "false", "off"):
        return False
    return None
