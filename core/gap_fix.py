"""Correction des trous pour les aires empilees.

Un moteur de rendu "aire empilee" interpole lineairement entre deux points non nuls
consecutifs et traite un trou comme un zero implicite : la zone autour d'un trou
est alors remplie par un triangle parasite. On insere donc, de chaque cote d'un
trou, un point de correction a `fix_distance` de la borne reelle pour reduire la
zone interpolee a une bande negligeable.

Deux passes :
1. decouverte : une seule table de trous pour toutes les series (cle = x), puis
   regroupement, serie par serie, en regions avec leurs bornes precedente / suivante
2. reecriture : l'union des emplacements de correction est appliquee a chaque
   serie (meme celles sans trou), par fusion des points existants avec les
   points de correction tries

Aucune serie d'entree n'est modifiee : `expand` retourne de nouvelles Series.
"""

from __future__ import annotations

import heapq
import logging
import math
from dataclasses import dataclass, field

import numpy as np

from core.constants import (
    BOUNDARY_POLICY_IMMEDIATE_NEIGHBOR,
    BOUNDARY_POLICY_NEAREST_NON_GAP,
    DEFAULT_FIX_DISTANCE,
    LOGGER_NAME,
)
from core.contracts.series_contract import assert_series_contract, resolve_series_ids
from core.errors import InvalidSeriesError
from core.series_types import BoundaryPolicy, Point, Series, is_absent, make_fix_point
from core.transform_report import TransformReport


logger = logging.getLogger(f"{LOGGER_NAME}.gap_fix")

BOUNDARY_POLICIES: tuple[str, ...] = (BOUNDARY_POLICY_NEAREST_NON_GAP, BOUNDARY_POLICY_IMMEDIATE_NEIGHBOR)


@dataclass
class GapRecord:
    index: int
    x: float
    series_ids: set[str] = field(default_factory=set)


@dataclass(frozen=True)
class GapRegion:
    """Indices [first_index, last_index] de la grille, avec leurs bornes (ou None)."""

    first_index: int
    last_index: int
    pre_index: int | None
    post_index: int | None


def discover_gaps(ids: list[str], data: list[list[Point]]) -> dict[float, GapRecord]:
    """Table des trous partagee par toutes les series, indexee par x."""

    gaps: dict[float, GapRecord] = {}
    for sid, points in zip(ids, data):
        for idx, point in enumerate(points):
            if not is_absent(point.y):
                continue
            record = gaps.get(point.x)
            if record is None:
                record = GapRecord(index=idx, x=point.x)
                gaps[point.x] = record
            record.series_ids.add(sid)
    return gaps


def find_gap_regions(gap_indices: list[int], size: int, policy: BoundaryPolicy) -> list[GapRegion]:
    """Regroupe les indices de trous d'une serie en regions et cherche leurs bornes.

    - nearest_non_gap : une suite d'indices consecutifs forme une seule region,
      bornee par le premier indice sans trou de chaque cote
    - immediate_neighbor : chaque indice est sa propre region, bornee par index-1 /
      index+1 meme si ces points sont eux-memes des trous
    """

    indices = sorted(set(gap_indices))
    regions: list[GapRegion] = []

    if policy == BOUNDARY_POLICY_IMMEDIATE_NEIGHBOR:
        for idx in indices:
            regions.append(
                GapRegion(
                    first_index=idx,
                    last_index=idx,
                    pre_index=idx - 1 if idx > 0 else None,
                    post_index=idx + 1 if idx + 1 < size else None,
                )
            )
        return regions

    gap_set = set(indices)
    for idx in indices:
        if idx - 1 in gap_set:
            # Deja couvert par la region qui commence plus tot.
            continue
        last = idx
        while last + 1 in gap_set:
            last += 1
        regions.append(
            GapRegion(
                first_index=idx,
                last_index=last,
                pre_index=idx - 1 if idx > 0 else None,
                post_index=last + 1 if last + 1 < size else None,
            )
        )
    return regions


# Rang de tri a x egal : correction "avant" < point existant < correction "apres".
_RANK_PRE, _RANK_DATA, _RANK_POST = 0, 1, 2


@dataclass(frozen=True)
class FixSlot:
    """Emplacement d'une correction : a fix_distance de `anchor_index`, cote `neighbor_index`."""

    anchor_index: int
    neighbor_index: int
    rank: int


def fix_slots(regions: list[GapRegion]) -> set[FixSlot]:
    """Union des emplacements de correction de toutes les regions (toutes series confondues)."""

    slots: set[FixSlot] = set()
    for region in regions:
        if region.pre_index is not None:
            slots.add(FixSlot(anchor_index=region.pre_index, neighbor_index=region.first_index, rank=_RANK_PRE))
        if region.post_index is not None:
            slots.add(FixSlot(anchor_index=region.post_index, neighbor_index=region.last_index, rank=_RANK_POST))
    return slots


def _fix_value(points: list[Point], slot: FixSlot) -> float | None:
    # La correction se trouve entre la borne et son voisin : nulle si la serie a un
    # trou d'un cote ou de l'autre, sinon on prolonge la valeur reelle de la borne.
    if is_absent(points[slot.neighbor_index].y):
        return None
    value = points[slot.anchor_index].y
    return None if is_absent(value) else value


def _fix_points_for_series(
    grid: list[float],
    points: list[Point],
    slots: set[FixSlot],
    fix_distance: float,
) -> list[tuple[float, int, Point]]:
    fixes: list[tuple[float, int, Point]] = []
    # Ordre decroissant : meme convention que l'insertion par indice.
    for slot in sorted(slots, key=lambda s: (s.anchor_index, s.rank), reverse=True):
        if slot.rank == _RANK_PRE:
            x = grid[slot.anchor_index] + fix_distance
        else:
            x = grid[slot.anchor_index] - fix_distance
        fixes.append((x, slot.rank, make_fix_point(x, _fix_value(points, slot))))
    fixes.sort(key=lambda item: (item[0], item[1]))
    return fixes


def _check_fix_distance(fix_distance: float) -> float:
    try:
        value = float(fix_distance)
    except (TypeError, ValueError) as exc:
        raise InvalidSeriesError(f"fix_distance invalide: {fix_distance!r}") from exc
    if not math.isfinite(value) or value <= 0:
        raise InvalidSeriesError(
            f"fix_distance doit etre un nombre fini > 0 (recu {fix_distance!r})",
            details={"fix_distance": fix_distance},
        )
    return value


def expand(
    series_list: list[Series],
    *,
    fix_distance: float = DEFAULT_FIX_DISTANCE,
    policy: BoundaryPolicy = "nearest_non_gap",
    report: TransformReport | None = None,
) -> list[Series]:
    """Insere les points de correction autour de chaque trou, dans toutes les series.

    Retourne une nouvelle liste de nouvelles Series ; l'entree n'est jamais modifiee.
    Appeler `expand` sur sa propre sortie ne change rien (les points de correction
    deja presents au x cible ne sont pas dupliques).

    `fix_distance` doit rester inferieur a l'espacement minimal des x ; sinon les
    corrections tombent sur des x existants (avertissement dans les logs, ordre
    correction avant < point < correction apres conserve).

    Leve InvalidSeriesError (x invalide, point mal forme, fix_distance <= 0) ou
    MisalignedSeriesError (grilles de x differentes), avant toute reecriture.
    """

    if policy not in BOUNDARY_POLICIES:
        raise ValueError(f"Politique de bornes inconnue: {policy!r} (attendu: {', '.join(BOUNDARY_POLICIES)})")
    if not series_list:
        return []

    delta = _check_fix_distance(fix_distance)
    assert_series_contract(series_list)

    ids = resolve_series_ids(list(series_list))
    data = [s.data_points() for s in series_list]
    grid = [p.x for p in data[0]]

    # Passe 1 : decouverte (lecture seule).
    gaps = discover_gaps(ids, data)
    # Regions propres a chaque serie (ses propres bornes), puis union des
    # emplacements de correction pour garder des grilles de x alignees.
    regions: set[GapRegion] = set()
    for points in data:
        absent = [idx for idx, p in enumerate(points) if is_absent(p.y)]
        regions.update(find_gap_regions(absent, len(grid), policy))
    slots = fix_slots(list(regions))

    if report is not None:
        report.add(
            "gap_discovery",
            points_in=sum(len(s.points) for s in series_list),
            points_out=sum(len(s.points) for s in series_list),
            reason="Trous detectes sur la grille commune",
            details={
                "policy": policy,
                "gaps": [{"x": g.x, "index": g.index, "series": sorted(g.series_ids)} for g in gaps.values()],
                "regions": len(regions),
            },
        )

    # Passe 2 : nouvelles sequences par fusion (points existants + corrections triees).
    out: list[Series] = []
    for sid, series, points in zip(ids, series_list, data):
        existing_fix_x = {p.x for p in series.points if p.is_fix}
        candidates = _fix_points_for_series(grid, points, slots, delta)
        fixes = [item for item in candidates if item[0] not in existing_fix_x]

        current = [
            (p.x, _RANK_DATA, p.as_gap() if (not p.is_fix and is_absent(p.y)) else p)
            for p in series.points
        ]
        merged = [item[2] for item in heapq.merge(current, fixes, key=lambda item: (item[0], item[1]))]

        xs = np.asarray([p.x for p in merged], dtype=float)
        if xs.size >= 2 and np.any(np.diff(xs) <= 0):
            # fix_distance >= espacement des x : precondition de l'appelant non respectee.
            idx = int(np.flatnonzero(np.diff(xs) <= 0)[0]) + 1
            logger.warning(
                "gap_fix_collision series=%s x=%g fix_distance=%g",
                sid,
                float(xs[idx]),
                delta,
            )

        if report is not None:
            report.add(
                "gap_fix",
                points_in=len(series.points),
                points_out=len(merged),
                reason="Points de correction inseres aux bornes des trous",
                series_id=sid,
                details={"inserted": len(fixes), "skipped_existing": len(candidates) - len(fixes)},
            )
        out.append(Series(points=merged, id=series.id))

    logger.debug(
        "gap_fix_done series=%d gaps=%d regions=%d policy=%s",
        len(out),
        len(gaps),
        len(regions),
        policy,
    )
    return out
