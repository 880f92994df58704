from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from core.constants import DEFAULT_FIX_DISTANCE
from core.series_types import BoundaryPolicy, Series
from core.transform_report import TransformReport


@dataclass(frozen=True)
class GapFixParams:
    fix_distance: float = DEFAULT_FIX_DISTANCE
    policy: BoundaryPolicy = "nearest_non_gap"


@dataclass(frozen=True)
class GapFixResult:
    series: list[Series]
    report: TransformReport
    params: GapFixParams

    @property
    def points_added(self) -> int:
        return self.report.points_added

    def summary(self) -> dict[str, Any]:
        discovery = self.report.step("gap_discovery")
        details = (discovery.details or {}) if discovery is not None else {}
        return {
            "series_count": len(self.series),
            "gaps": len(details.get("gaps", [])),
            "regions": int(details.get("regions", 0)),
            "points_added": self.points_added,
            "inserted": self.report.inserted_by_series(),
            "policy": self.params.policy,
            "fix_distance": self.params.fix_distance,
        }
