"""
Motor de scoring.

Calcula un score 0-100 por listing a partir de tres sub-scores independientes:
compatibilidad con los criterios, comportamiento del usuario y sensibilidad temporal.
"""

from imoscore.scoring.engine import (
    BaseScoringEngine,
    ScoringEngine,
    default_weights,
    validate_weights,
)

__all__ = [
    "BaseScoringEngine",
    "ScoringEngine",
    "default_weights",
    "validate_weights",
]
