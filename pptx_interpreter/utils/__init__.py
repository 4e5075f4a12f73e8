"""Utility helpers: namespaces, units and logging."""

from .logger import configure_logging
from .namespaces import NSMAP, local_name, namespace_of, qn
from .units import emu_to_pt

__all__ = [
    "configure_logging",
    "NSMAP",
    "local_name",
    "namespace_of",
    "qn",
    "emu_to_pt",
]
