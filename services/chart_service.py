"""Figure Plotly "aire empilee" a partir de series corrigees."""

from __future__ import annotations

import plotly.graph_objects as go

from core.contracts.series_contract import resolve_series_ids
from core.series_types import Series


DEFAULT_MARKER_SIZE = 5


def build_stacked_area_figure(
    series_list: list[Series],
    *,
    title: str | None = None,
    x_is_epoch_ms: bool = False,
    y_title: str | None = None,
) -> go.Figure:
    """Une trace par serie, empilees dans le meme stackgroup.

    Les points de correction n'ont ni marqueur ni survol ; les valeurs absentes
    restent des coupures (connectgaps=False). Avec `x_is_epoch_ms`, les x restent
    numeriques et l'axe passe en type "date" (Plotly lit des millisecondes epoch).
    """

    if not series_list:
        return go.Figure()

    fig = go.Figure()
    for sid, series in zip(resolve_series_ids(series_list), series_list):
        fig.add_trace(
            go.Scatter(
                x=series.xs,
                y=series.ys,
                name=sid,
                mode="lines+markers",
                stackgroup="stack",
                connectgaps=False,
                marker=dict(size=[DEFAULT_MARKER_SIZE if p.marker_enabled else 0 for p in series.points]),
                hoverinfo=["x+y+name" if p.hover_enabled else "skip" for p in series.points],
            )
        )

    fig.update_layout(
        title=title,
        xaxis_title="Temps" if x_is_epoch_ms else "x",
        yaxis_title=y_title,
        hovermode="x unified",
        margin=dict(t=40, b=40),
    )
    if x_is_epoch_ms:
        fig.update_xaxes(type="date")
    return fig
