"""Data models: locators, content records and replacement directives."""

from .directive import Directive, load_directives
from .locator import Locator
from .record import ContainerInfo, ContentRecord, RunRecord

__all__ = [
    "ContainerInfo",
    "ContentRecord",
    "Directive",
    "Locator",
    "RunRecord",
    "load_directives",
]
