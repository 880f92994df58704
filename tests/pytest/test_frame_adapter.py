from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from tests.unit._bootstrap import ensure_project_on_path


ensure_project_on_path()


def _make_df() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "time": pd.date_range("2026-01-01", periods=5, freq="min"),
            "solar": [1.0, 2.0, np.nan, 2.0, 1.0],
            "wind": [3.0, 3.0, 3.0, 3.0, 3.0],
        }
    )


def test_series_from_frame_converts_datetime_to_epoch_ms() -> None:
    from services.frame_adapter import series_from_frame

    series = series_from_frame(_make_df(), x_column="time")

    assert [s.id for s in series] == ["solar", "wind"]
    start = int(pd.Timestamp("2026-01-01").value // 1_000_000)
    assert series[0].xs == [float(start + i * 60_000) for i in range(5)]
    assert series[0].ys[2] is None


def test_fix_frame_adds_fix_rows() -> None:
    from services.frame_adapter import fix_rows_mask
    from services.gap_fix_service import fix_frame

    out = fix_frame(_make_df(), x_column="time")

    assert len(out) == 7
    assert list(out.columns) == ["time", "kind", "solar", "wind"]
    mask = fix_rows_mask(out)
    assert int(mask.sum()) == 2
    assert out.loc[mask, "solar"].isna().all()
    assert out.loc[mask, "wind"].tolist() == [3.0, 3.0]
    # La colonne x reste datetime ; corrections a 1 s des bornes du trou.
    assert pd.api.types.is_datetime64_any_dtype(out["time"])
    assert out.loc[mask, "time"].tolist() == [
        pd.Timestamp("2026-01-01 00:01:01"),
        pd.Timestamp("2026-01-01 00:02:59"),
    ]
    # Les lignes d'origine sont inchangees.
    original = out.loc[~mask].reset_index(drop=True)
    pd.testing.assert_series_equal(original["wind"], _make_df()["wind"], check_names=True)


def test_series_from_frame_rejects_missing_columns() -> None:
    from core.errors import InvalidSeriesError
    from services.frame_adapter import series_from_frame

    with pytest.raises(InvalidSeriesError):
        series_from_frame(_make_df(), x_column="x")
    with pytest.raises(InvalidSeriesError):
        series_from_frame(_make_df(), x_column="time", value_columns=["hydro"])


def test_series_to_frame_requires_aligned_series() -> None:
    from core.errors import MisalignedSeriesError
    from core.series_types import Series
    from services.frame_adapter import series_to_frame

    with pytest.raises(MisalignedSeriesError):
        series_to_frame([Series.from_xy([0, 1], [1, 1]), Series.from_xy([0, 2], [1, 1])])


def test_fix_frame_keeps_timezone_aware_x_as_utc() -> None:
    from services.gap_fix_service import fix_frame

    df = _make_df()
    df["time"] = pd.date_range("2026-01-01 01:00", periods=5, freq="min", tz="Europe/Paris")
    out = fix_frame(df, x_column="time")

    assert str(out["time"].dt.tz) == "UTC"
    assert out["time"].iloc[0] == pd.Timestamp("2026-01-01 00:00", tz="UTC")


def test_fix_frame_keeps_numeric_x() -> None:
    from services.gap_fix_service import fix_frame
    from services.models import GapFixParams

    df = pd.DataFrame({"x": [0.0, 10.0, 20.0], "a": [1.0, np.nan, 1.0]})
    out = fix_frame(df, params=GapFixParams(fix_distance=1))

    assert out["x"].dtype.kind == "f"
    assert out["x"].tolist() == [0.0, 1.0, 10.0, 19.0, 20.0]
