"""Erreurs du correcteur de trous.

Toutes heritent de ValueError pour que les frontieres service/API les traitent
comme des entrees invalides (HTTP 400).
"""

from __future__ import annotations

from typing import Any


class GapFixError(ValueError):
    def __init__(self, message: str, *, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.details = details or {}


class InvalidSeriesError(GapFixError):
    """x non numerique / non monotone, point mal forme, ou decalage trop grand."""


class MisalignedSeriesError(GapFixError):
    """Les series ne partagent pas la meme grille de x."""


class EmptyInputError(GapFixError):
    """Liste de series vide.

    `expand([])` ne la leve jamais (no-op) ; conservee pour les appelants qui
    veulent refuser explicitement une entree vide.
    """
