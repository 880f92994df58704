"""Helpers de serialisation.

Convertit les Series/Points (et les figures plotly, avec leurs tableaux numpy)
en structures 100% JSON-serialisables, et decode les series
recues sous forme d'enregistrements `{"id": ..., "data": [{"x": .., "y": ..}, ...]}`.

Format d'un point de correction (compatible Highcharts) :
    {"x": .., "y": .., "type": "fix",
     "marker": {"enabled": false, "states": {"hover": {"enabled": false}}}}
"""

from __future__ import annotations

from typing import Any

import numpy as np

from core.constants import POINT_KIND_FIX, POINT_KIND_GAP, POINT_KIND_ORIGINAL
from core.errors import InvalidSeriesError
from core.series_types import Point, Series, is_absent


_KNOWN_KINDS = (POINT_KIND_ORIGINAL, POINT_KIND_GAP, POINT_KIND_FIX)


def _number_or_none(value: Any) -> float | int | None:
    if is_absent(value):
        return None
    if isinstance(value, np.generic):
        return value.item()
    return value


def point_to_record(point: Point) -> dict[str, Any]:
    record: dict[str, Any] = {"x": _number_or_none(point.x), "y": _number_or_none(point.y)}
    if point.kind != POINT_KIND_ORIGINAL:
        record["type"] = point.kind
    if not point.marker_enabled or not point.hover_enabled:
        record["marker"] = {
            "enabled": bool(point.marker_enabled),
            "states": {"hover": {"enabled": bool(point.hover_enabled)}},
        }
    return record


def series_to_record(series: Series) -> dict[str, Any]:
    return {"id": series.id, "data": [point_to_record(p) for p in series.points]}


def _point_from_record(raw: Any, *, series_label: str, index: int) -> Point:
    # Formats acceptes : {"x": .., "y": .., "type": ..} ou [x, y].
    if isinstance(raw, dict):
        if "x" not in raw:
            raise InvalidSeriesError(
                f"{series_label}[{index}] sans x",
                details={"series": series_label, "index": index},
            )
        kind = raw.get("type") or POINT_KIND_ORIGINAL
        if kind not in _KNOWN_KINDS:
            raise InvalidSeriesError(
                f"{series_label}[{index}] type de point inconnu: {kind!r}",
                details={"series": series_label, "index": index},
            )
        marker = raw.get("marker")
        if not isinstance(marker, dict):
            marker = {}
        hover = (marker.get("states") or {}).get("hover") or {}
        # Un point de correction sans marker explicite reste non rendu.
        default_enabled = kind != POINT_KIND_FIX
        return Point(
            x=raw["x"],
            y=_number_or_none(raw.get("y")),
            kind=kind,
            marker_enabled=bool(marker.get("enabled", default_enabled)),
            hover_enabled=bool(hover.get("enabled", default_enabled)),
        )
    if isinstance(raw, (list, tuple)) and len(raw) == 2:
        return Point(x=raw[0], y=_number_or_none(raw[1]))
    raise InvalidSeriesError(
        f"{series_label}[{index}] point mal forme: {raw!r}",
        details={"series": series_label, "index": index},
    )


def series_from_record(record: Any, *, position: int = 0) -> Series:
    if not isinstance(record, dict) or not isinstance(record.get("data"), (list, tuple)):
        raise InvalidSeriesError(
            f"Serie {position} mal formee (attendu: {{'id': ..., 'data': [...]}})",
            details={"index": position},
        )
    series_id = record.get("id")
    label = str(series_id) if series_id is not None else f"#{position}"
    points = [_point_from_record(raw, series_label=label, index=i) for i, raw in enumerate(record["data"])]
    return Series(points=points, id=None if series_id is None else str(series_id))


def series_list_from_records(records: list[Any]) -> list[Series]:
    return [series_from_record(r, position=i) for i, r in enumerate(records)]


def series_list_to_records(series_list: list[Series]) -> list[dict[str, Any]]:
    return [series_to_record(s) for s in series_list]


def to_jsonable(obj: Any) -> Any:
    """Convertit obj (figure plotly, scalaires numpy, conteneurs) en primitives JSON.

    Retourne uniquement dict/list/str/int/float/bool/None ; NaN devient None.
    """

    if obj is None:
        return None

    # Scalaire numpy
    if isinstance(obj, np.generic):
        value = obj.item()
        return None if is_absent(value) else value

    # Scalaires de base
    if isinstance(obj, (str, int, bool)):
        return obj
    if isinstance(obj, float):
        return None if is_absent(obj) else obj

    # Conteneurs
    if isinstance(obj, np.ndarray):
        return [to_jsonable(v) for v in obj.tolist()]
    if isinstance(obj, dict):
        return {str(k): to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(v) for v in obj]

    # Figures Plotly (ou tout objet exposant to_plotly_json)
    to_plotly_json = getattr(obj, "to_plotly_json", None)
    if callable(to_plotly_json):
        return {"type": "plotly", "figure": to_jsonable(to_plotly_json())}

    # Fallback
    return str(obj)
