"""
Locator model.

A locator addresses one element of a part by the child indices walked from
the part root. It is plain data: it can be written to JSON, authored by hand
and replayed against any parse of the same, unmodified part.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Sequence, Tuple, Union

SEPARATOR = "#"


@dataclass(frozen=True, order=True)
class Locator:
    """Index path from a part root to one element."""

    part: str
    path: Tuple[int, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", tuple(int(step) for step in self.path))

    def child(self, index: int) -> "Locator":
        return Locator(self.part, self.path + (index,))

    def parent(self) -> "Locator":
        if not self.path:
            raise ValueError(f"Root locator has no parent: {self}")
        return Locator(self.part, self.path[:-1])

    def is_within(self, other: "Locator") -> bool:
        """True if this locator addresses ``other`` or one of its descendants."""
        return self.part == other.part and self.path[:len(other.path)] == other.path

    def __str__(self) -> str:
        return f"{self.part}{SEPARATOR}{'/'.join(str(step) for step in self.path)}"

    def to_dict(self) -> Dict[str, Any]:
        return {"part": self.part, "path": list(self.path)}

    @classmethod
    def parse(cls, value: Union[str, "Locator", Dict[str, Any], Sequence[Any]]) -> "Locator":
        """
        Parse a locator from its string, dict or list form.

        Accepted forms: ``"ppt/slides/slide1.xml#0/2/3"``,
        ``{"part": ..., "path": [...]}`` and ``[part, i, j, ...]``.
        """
        if isinstance(value, Locator):
            return value
        if isinstance(value, str):
            part, sep, steps = value.rpartition(SEPARATOR)
            if not sep or not part:
                raise ValueError(f"Locator string must look like 'part{SEPARATOR}i/j/...': {value!r}")
            path = tuple(int(step) for step in steps.split("/") if step != "") if steps else ()
            return cls(part, path)
        if isinstance(value, dict):
            if "part" not in value:
                raise ValueError(f"Locator mapping needs a 'part' key: {value!r}")
            return cls(str(value["part"]), tuple(value.get("path") or ()))
        if isinstance(value, (list, tuple)) and value and isinstance(value[0], str):
            return cls(value[0], tuple(value[1:]))
        raise ValueError(f"Unsupported locator value: {value!r}")
