"""Points d'entree de haut niveau pour la correction des trous.

Ce module expose des points d'entree compatibles FastAPI qui travaillent sur des
Series, des enregistrements JSON ou des DataFrames, et renvoient des objets
metier ou des payloads JSON-serialisables.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import asdict
from typing import Any, Sequence

import pandas as pd
import plotly.graph_objects as go

from core.constants import LOGGER_NAME
from core.gap_fix import expand
from core.series_types import Series
from core.transform_report import TransformReport
from services.cache import KeyValueCache, NullCache, make_cache_key
from services.chart_service import build_stacked_area_figure
from services.frame_adapter import series_from_frame, series_to_frame
from services.models import GapFixParams, GapFixResult
from services.serialization import series_list_from_records, series_list_to_records, to_jsonable


logger = logging.getLogger(f"{LOGGER_NAME}.service")

# A incrementer si le format de sortie change (invalide le cache).
PAYLOAD_VERSION = "v1"

# Duree de vie des payloads corriges en cache (secondes).
CACHE_TTL_S = 15 * 60.0


def fix_series(series_list: list[Series], params: GapFixParams | None = None) -> GapFixResult:
    params = params or GapFixParams()
    report = TransformReport()
    fixed = expand(series_list, fix_distance=params.fix_distance, policy=params.policy, report=report)
    return GapFixResult(series=fixed, report=report, params=params)


def fix_series_records(
    records: list[Any],
    params: GapFixParams | None = None,
    *,
    cache: KeyValueCache | None = None,
    ttl_s: float | None = CACHE_TTL_S,
) -> dict[str, Any]:
    """Decode, corrige et re-encode des series JSON.

    Retourne {"series": [...], "meta": {...}}. Le payload est mis en cache
    `ttl_s` secondes (None = sans expiration).
    """

    params = params or GapFixParams()
    cache = cache or NullCache()
    key = make_cache_key(
        namespace="series:gap-fix",
        version=PAYLOAD_VERSION,
        payload={"records": records, "params": asdict(params)},
    )
    cached = cache.get(key)
    if isinstance(cached, dict):
        logger.debug("gap_fix_cache_hit key=%s", key)
        return copy.deepcopy(cached)

    result = fix_series(series_list_from_records(records), params)
    payload = {"series": series_list_to_records(result.series), "meta": result.summary()}
    cache.set(key, copy.deepcopy(payload), ttl_s=ttl_s)
    logger.info(
        "gap_fix series=%d gaps=%d points_added=%d",
        payload["meta"]["series_count"],
        payload["meta"]["gaps"],
        payload["meta"]["points_added"],
    )
    return payload


def fix_frame(
    df: pd.DataFrame,
    *,
    x_column: str = "x",
    value_columns: Sequence[str] | None = None,
    params: GapFixParams | None = None,
) -> pd.DataFrame:
    """Corrige un DataFrame large (une colonne par serie) ; ajoute une colonne `kind`.

    Une colonne x datetime est rendue en datetime (UTC si elle etait tz-aware).
    """

    series_list = series_from_frame(df, x_column=x_column, value_columns=value_columns)
    result = fix_series(series_list, params)
    out = series_to_frame(result.series, x_column=x_column)

    x_col = df[x_column]
    if pd.api.types.is_datetime64_any_dtype(x_col) and not out.empty:
        stamps = pd.to_datetime(out[x_column], unit="ms")
        if getattr(x_col.dt, "tz", None) is not None:
            stamps = stamps.dt.tz_localize("UTC")
        out[x_column] = stamps
    return out


def fixed_stacked_area_figure(
    series_list: list[Series],
    params: GapFixParams | None = None,
    **figure_kwargs: Any,
) -> go.Figure:
    result = fix_series(series_list, params)
    return build_stacked_area_figure(result.series, **figure_kwargs)


def stacked_area_figure_payload(
    records: list[Any],
    params: GapFixParams | None = None,
    **figure_kwargs: Any,
) -> dict[str, Any]:
    """Figure Plotly des series JSON corrigees, en primitives JSON ({"type": "plotly", "figure": ...})."""

    fig = fixed_stacked_area_figure(series_list_from_records(records), params, **figure_kwargs)
    return to_jsonable(fig)
