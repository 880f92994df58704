"""Constantes partagees (sans dependances).

Ce module centralise les valeurs par defaut utilisees dans core/, services/ et api/.
Garder ce module sans dependances (hors stdlib).
"""

from __future__ import annotations


# Decalage (unites de x) entre une borne reelle et le point de correction insere.
# Doit rester inferieur a l'espacement minimal des x (1000 = 1 s pour des timestamps en ms).
DEFAULT_FIX_DISTANCE: float = 1000.0

# Politique de recherche des bornes d'un trou.
BOUNDARY_POLICY_NEAREST_NON_GAP: str = "nearest_non_gap"
BOUNDARY_POLICY_IMMEDIATE_NEIGHBOR: str = "immediate_neighbor"

# Types de points.
POINT_KIND_ORIGINAL: str = "original"
POINT_KIND_GAP: str = "gap"
POINT_KIND_FIX: str = "fix"

# Identifiant attribue par position quand une serie n'en a pas.
SERIES_ID_PREFIX: str = "series_"

# Nom du logger applicatif.
LOGGER_NAME: str = "stackgap"
