"""Types de base : points et series (sans dependances tierces)."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any, Literal

from core.constants import POINT_KIND_FIX, POINT_KIND_GAP


PointKind = Literal["original", "gap", "fix"]
BoundaryPolicy = Literal["nearest_non_gap", "immediate_neighbor"]


def is_absent(value: Any) -> bool:
    """None et NaN sont consideres comme des valeurs absentes."""

    if value is None:
        return True
    try:
        return math.isnan(value)
    except TypeError:
        return False


@dataclass(frozen=True)
class Point:
    x: float
    y: float | None
    kind: PointKind = "original"
    # Drapeaux de rendu (desactives sur les points de correction).
    marker_enabled: bool = True
    hover_enabled: bool = True

    @property
    def is_fix(self) -> bool:
        return self.kind == POINT_KIND_FIX

    def as_gap(self) -> "Point":
        if self.kind == POINT_KIND_GAP:
            return self
        return replace(self, kind=POINT_KIND_GAP)


def make_fix_point(x: float, y: float | None) -> Point:
    return Point(x=x, y=y, kind=POINT_KIND_FIX, marker_enabled=False, hover_enabled=False)


@dataclass
class Series:
    points: list[Point] = field(default_factory=list)
    id: str | None = None

    def __len__(self) -> int:
        return len(self.points)

    @property
    def xs(self) -> list[float]:
        return [p.x for p in self.points]

    @property
    def ys(self) -> list[float | None]:
        return [p.y for p in self.points]

    def data_points(self) -> list[Point]:
        """Points reels et trous (hors points de correction)."""
        return [p for p in self.points if not p.is_fix]

    @classmethod
    def from_xy(cls, xs: list[float], ys: list[float | None], *, id: str | None = None) -> "Series":
        if len(xs) != len(ys):
            raise ValueError("xs et ys doivent avoir la meme longueur")
        return cls(points=[Point(x=x, y=y) for x, y in zip(xs, ys)], id=id)
