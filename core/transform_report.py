from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class TransformStep:
    """Une etape d'`expand` : globale (decouverte) ou propre a une serie (series_id)."""

    name: str
    points_in: int
    points_out: int
    reason: str
    series_id: str | None = None
    details: dict[str, Any] | None = None

    @property
    def fixes_inserted(self) -> int:
        return self.points_out - self.points_in


@dataclass
class TransformReport:
    steps: list[TransformStep] = field(default_factory=list)

    def add(
        self,
        name: str,
        *,
        points_in: int,
        points_out: int,
        reason: str,
        series_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.steps.append(
            TransformStep(
                name=str(name),
                points_in=int(points_in),
                points_out=int(points_out),
                reason=str(reason),
                series_id=series_id,
                details=details,
            )
        )

    def step(self, name: str) -> TransformStep | None:
        return next((s for s in self.steps if s.name == name), None)

    def inserted_by_series(self) -> dict[str, int]:
        """Points de correction ajoutes, par identifiant de serie."""

        return {s.series_id: s.fixes_inserted for s in self.steps if s.series_id is not None}

    @property
    def points_added(self) -> int:
        return sum(step.fixes_inserted for step in self.steps)
