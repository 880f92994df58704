from pydantic import BaseModel, Field
from typing import Dict, Optional, List, Literal

from core.constants import DEFAULT_FIX_DISTANCE


# POST /series/gap-fix - Request
class PointIn(BaseModel):
    x: float
    y: Optional[float] = None
    type: Optional[Literal["original", "gap", "fix"]] = None


class SeriesIn(BaseModel):
    id: Optional[str] = None
    data: List[PointIn]


class GapFixRequest(BaseModel):
    series: List[SeriesIn]
    fix_distance: float = Field(DEFAULT_FIX_DISTANCE, gt=0, description="Decalage x des points de correction")
    policy: Literal["nearest_non_gap", "immediate_neighbor"] = "nearest_non_gap"


# POST /series/gap-fix - Response
class HoverState(BaseModel):
    enabled: bool


class MarkerStates(BaseModel):
    hover: HoverState


class PointMarker(BaseModel):
    enabled: bool
    states: MarkerStates


class PointOut(BaseModel):
    x: float
    y: Optional[float] = None
    type: Literal["original", "gap", "fix"] = "original"
    marker: Optional[PointMarker] = None  # Present uniquement sur les points de correction


class SeriesOut(BaseModel):
    id: Optional[str] = None
    data: List[PointOut]


class GapFixMeta(BaseModel):
    series_count: int
    gaps: int
    regions: int
    points_added: int
    inserted: Dict[str, int] = Field(default_factory=dict)
    policy: Literal["nearest_non_gap", "immediate_neighbor"]
    fix_distance: float


class GapFixResponse(BaseModel):
    series: List[SeriesOut]
    meta: GapFixMeta


# POST /series/gap-fix/figure - Request (la reponse est la figure Plotly JSON)
class GapFixFigureRequest(GapFixRequest):
    title: Optional[str] = None
    x_is_epoch_ms: bool = Field(False, description="x en millisecondes epoch (axe de type date)")
