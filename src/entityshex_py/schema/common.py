"""Shared types for the parsed EntitySchema model."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional


UNBOUNDED = -1  # Sentinel for unbounded max cardinality

_BRACE_MARKER = re.compile(r"\{\s*(\d+)\s*(?:(,)\s*(\d+|\*)?\s*)?\}")


@dataclass(frozen=True)
class Cardinality:
    min: int = 1
    max: int = 1  # UNBOUNDED = unlimited

    @classmethod
    def from_marker(cls, marker: Optional[str]) -> Cardinality:
        """Resolve a ShExC cardinality marker: none, ?, *, +, {m,n}, {m,}, {m}.

        Raises:
            ValueError: unrecognised marker, or a brace form with max < min.
        """
        if marker is None or marker == "":
            return cls(min=1, max=1)
        if marker == "?":
            return cls(min=0, max=1)
        if marker == "*":
            return cls(min=0, max=UNBOUNDED)
        if marker == "+":
            return cls(min=1, max=UNBOUNDED)

        m = _BRACE_MARKER.fullmatch(marker.strip())
        if not m:
            raise ValueError(f"Unrecognised cardinality {marker!r}")
        mn = int(m.group(1))
        if m.group(2) is None:
            mx = mn  # {n} means exactly n
        elif m.group(3) is None or m.group(3) == "*":
            mx = UNBOUNDED
        else:
            mx = int(m.group(3))
        if mx != UNBOUNDED and mx < mn:
            raise ValueError(f"Cardinality max {mx} is lower than min {mn}")
        return cls(min=mn, max=mx)

    @property
    def is_required(self) -> bool:
        return self.min >= 1

    @property
    def is_unbounded(self) -> bool:
        return self.max == UNBOUNDED

    def to_shex_string(self) -> str:
        mn, mx = self.min, self.max
        if mn == 0 and mx == UNBOUNDED:
            return "*"
        if mn == 0 and mx == 1:
            return "?"
        if mn == 1 and mx == UNBOUNDED:
            return "+"
        if mn == 1 and mx == 1:
            return ""
        if mx == UNBOUNDED:
            return f"{{{mn},}}"
        if mn == mx:
            return f"{{{mn}}}"
        return f"{{{mn},{mx}}}"

    def to_dict(self) -> dict:
        return {"min": self.min, "max": self.max}
