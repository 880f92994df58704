"""Contrat d'entree du correcteur de trous.

Une liste de series est valide si :
- chaque element est une Series dont les points ont un x numerique fini et un y
  numerique ou absent (None/NaN)
- x est strictement croissant sur les points de donnees de chaque serie, et non
  decroissant en comptant les points de correction
- les identifiants sont uniques
- toutes les series partagent la meme grille de x (hors points de correction)

La validation ne modifie jamais les series : elle tourne avant toute reecriture.
"""

from __future__ import annotations

import numbers
from collections import Counter
from dataclasses import dataclass
from typing import Any

import numpy as np

from core.constants import SERIES_ID_PREFIX
from core.errors import InvalidSeriesError, MisalignedSeriesError
from core.series_types import Point, Series, is_absent


# Codes qui relevent d'un defaut d'alignement entre series (les autres sont des series invalides).
MISALIGNED_CODES: tuple[str, ...] = ("misaligned_length", "misaligned_x")


@dataclass(frozen=True)
class ValidationIssue:
    code: str
    message: str
    details: dict[str, Any] | None = None


@dataclass(frozen=True)
class ValidationReport:
    ok: bool
    issues: list[ValidationIssue]

    def raise_for_issues(self) -> None:
        if self.ok:
            return
        lines = ["Echec de validation des series:"]
        for issue in self.issues:
            lines.append(f"- {issue.code}: {issue.message}")
        message = "\n".join(lines)
        first = self.issues[0]
        details = {"issues": [i.code for i in self.issues], **(first.details or {})}
        if first.code in MISALIGNED_CODES:
            raise MisalignedSeriesError(message, details=details)
        raise InvalidSeriesError(message, details=details)


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def resolve_series_ids(series_list: list[Series]) -> list[str]:
    """Identifiant explicite, sinon attribue par position (series_<i>)."""

    return [s.id if s.id is not None else f"{SERIES_ID_PREFIX}{i}" for i, s in enumerate(series_list)]


def _check_points(series_id: str, points: list[Point]) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    for idx, point in enumerate(points):
        if not isinstance(point, Point):
            issues.append(
                ValidationIssue(
                    code="malformed_point",
                    message=f"{series_id}[{idx}] n'est pas un Point",
                    details={"series": series_id, "index": idx},
                )
            )
            return issues
        if not _is_number(point.x) or not np.isfinite(float(point.x)):
            issues.append(
                ValidationIssue(
                    code="x_non_numeric",
                    message=f"{series_id}[{idx}].x doit etre un nombre fini (recu {point.x!r})",
                    details={"series": series_id, "index": idx},
                )
            )
            return issues
        if not is_absent(point.y) and not _is_number(point.y):
            issues.append(
                ValidationIssue(
                    code="y_non_numeric",
                    message=f"{series_id}[{idx}].y doit etre un nombre ou absent (recu {point.y!r})",
                    details={"series": series_id, "index": idx},
                )
            )
            return issues

    # Ordre global non decroissant : une correction peut partager le x d'un point
    # (sortie d'`expand` avec fix_distance egal a l'espacement).
    xs = np.asarray([float(p.x) for p in points], dtype=float)
    if xs.size >= 2:
        bad = np.flatnonzero(np.diff(xs) < 0)
        if bad.size:
            idx = int(bad[0]) + 1
            issues.append(
                ValidationIssue(
                    code="x_non_monotone",
                    message=f"x doit etre croissant ({series_id}[{idx}])",
                    details={"series": series_id, "index": idx},
                )
            )
            return issues

    # Strictement croissant sur les points de donnees.
    data_positions = [idx for idx, p in enumerate(points) if not p.is_fix]
    data_xs = xs[data_positions] if data_positions else xs[:0]
    if data_xs.size >= 2:
        bad = np.flatnonzero(np.diff(data_xs) <= 0)
        if bad.size:
            idx = data_positions[int(bad[0]) + 1]
            issues.append(
                ValidationIssue(
                    code="x_non_monotone",
                    message=f"x doit etre strictement croissant ({series_id}[{idx}])",
                    details={"series": series_id, "index": idx},
                )
            )
    return issues


def validate_series_list(series_list: list[Series]) -> ValidationReport:
    issues: list[ValidationIssue] = []

    if not isinstance(series_list, (list, tuple)):
        return ValidationReport(
            ok=False,
            issues=[ValidationIssue(code="type", message="series_list doit etre une liste de Series")],
        )

    for i, series in enumerate(series_list):
        if not isinstance(series, Series):
            issues.append(
                ValidationIssue(
                    code="type",
                    message=f"Element {i} n'est pas une Series",
                    details={"index": i},
                )
            )
    if issues:
        return ValidationReport(ok=False, issues=issues)

    ids = resolve_series_ids(list(series_list))
    duplicates = sorted(sid for sid, count in Counter(ids).items() if count > 1)
    if duplicates:
        issues.append(
            ValidationIssue(
                code="duplicate_series_id",
                message=f"Identifiants de series en double: {', '.join(duplicates)}",
                details={"duplicates": duplicates},
            )
        )

    for sid, series in zip(ids, series_list):
        issues.extend(_check_points(sid, series.points))
    if issues:
        return ValidationReport(ok=False, issues=issues)

    # Alignement : meme grille de x (hors points de correction) pour toutes les series.
    reference_id = ids[0] if ids else None
    reference_xs: np.ndarray | None = None
    for sid, series in zip(ids, series_list):
        xs = np.asarray([float(p.x) for p in series.data_points()], dtype=float)
        if reference_xs is None:
            reference_xs = xs
            continue
        if xs.size != reference_xs.size:
            issues.append(
                ValidationIssue(
                    code="misaligned_length",
                    message=(
                        f"{sid} a {xs.size} points, {reference_id} en a {reference_xs.size}"
                    ),
                    details={"series": sid, "reference": reference_id},
                )
            )
        elif not np.array_equal(xs, reference_xs):
            idx = int(np.flatnonzero(xs != reference_xs)[0])
            issues.append(
                ValidationIssue(
                    code="misaligned_x",
                    message=f"{sid}[{idx}].x differe de {reference_id}[{idx}].x",
                    details={"series": sid, "reference": reference_id, "index": idx},
                )
            )

    return ValidationReport(ok=(len(issues) == 0), issues=issues)


def assert_series_contract(series_list: list[Series]) -> None:
    """Valide et leve InvalidSeriesError / MisalignedSeriesError en cas d'echec."""

    validate_series_list(series_list).raise_for_issues()
