"""Adaptateur pandas <-> Series.

Format "large" : une colonne x (numerique ou datetime) + une colonne par serie.
Les NaN/NaT deviennent des valeurs absentes. Les x datetime sont convertis en
millisecondes epoch (convention Highcharts ; DEFAULT_FIX_DISTANCE = 1 s).
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
import pandas as pd

from core.constants import POINT_KIND_FIX, POINT_KIND_ORIGINAL
from core.contracts.series_contract import resolve_series_ids
from core.errors import InvalidSeriesError, MisalignedSeriesError
from core.series_types import Point, Series


def _x_values(col: pd.Series) -> list[float]:
    if pd.api.types.is_datetime64_any_dtype(col):
        if col.isna().any():
            raise InvalidSeriesError("La colonne x contient des dates manquantes")
        stamps = pd.to_datetime(col)
        if getattr(stamps.dt, "tz", None) is not None:
            stamps = stamps.dt.tz_convert("UTC").dt.tz_localize(None)
        ms = (stamps - pd.Timestamp("1970-01-01")) // pd.Timedelta(milliseconds=1)
        return [float(v) for v in ms.to_numpy()]
    values = pd.to_numeric(col, errors="coerce").to_numpy(dtype=float)
    if not np.all(np.isfinite(values)):
        raise InvalidSeriesError("La colonne x doit etre numerique et finie")
    return values.tolist()


def series_from_frame(
    df: pd.DataFrame,
    *,
    x_column: str = "x",
    value_columns: Sequence[str] | None = None,
) -> list[Series]:
    """Une Series par colonne de valeurs (id = nom de colonne)."""

    if not isinstance(df, pd.DataFrame):
        raise TypeError("df doit etre un pandas.DataFrame")
    if x_column not in df.columns:
        raise InvalidSeriesError(f"Colonne x manquante: {x_column}")

    columns = list(value_columns) if value_columns is not None else [c for c in df.columns if c != x_column]
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise InvalidSeriesError(f"Colonnes de valeurs manquantes: {', '.join(map(str, missing))}")

    xs = _x_values(df[x_column])
    out: list[Series] = []
    for col in columns:
        values = pd.to_numeric(df[col], errors="coerce").astype(object)
        values = values.where(pd.notna(values), None)
        out.append(Series(points=[Point(x=x, y=y) for x, y in zip(xs, values.to_list())], id=str(col)))
    return out


def series_to_frame(series_list: list[Series], *, x_column: str = "x", kind_column: str = "kind") -> pd.DataFrame:
    """Reconstruit le format large apres correction.

    Toutes les series doivent avoir les memes x point a point (cas de la sortie
    d'`expand`, ou les corrections sont inserees dans chaque serie).
    """

    if not series_list:
        return pd.DataFrame(columns=[x_column, kind_column])

    ids = resolve_series_ids(series_list)
    reference = series_list[0]
    for sid, series in zip(ids, series_list):
        if series.xs != reference.xs:
            raise MisalignedSeriesError(f"{sid} n'a pas les memes x que {ids[0]}")

    data: dict[str, list] = {
        x_column: reference.xs,
        # Les trous sont propres a chaque serie : la colonne ne distingue que les corrections.
        kind_column: [POINT_KIND_FIX if p.is_fix else POINT_KIND_ORIGINAL for p in reference.points],
    }
    for sid, series in zip(ids, series_list):
        data[sid] = [np.nan if p.y is None else p.y for p in series.points]

    out = pd.DataFrame(data)
    out[kind_column] = out[kind_column].astype("category")
    return out


def fix_rows_mask(df: pd.DataFrame, *, kind_column: str = "kind") -> pd.Series:
    """Masque des lignes ajoutees par la correction."""

    return df[kind_column].astype(str) == POINT_KIND_FIX
