"""
imoscore: scoring, ranking y optimización de pesos para listings inmobiliarios.
"""

from imoscore.exceptions import InvalidWeightsError, ScoringError
from imoscore.optimizer import WeightOptimizer
from imoscore.ranking import RankingService
from imoscore.scoring import BaseScoringEngine, ScoringEngine

__version__ = "0.1.0"

__all__ = [
    "BaseScoringEngine",
    "ScoringEngine",
    "RankingService",
    "WeightOptimizer",
    "ScoringError",
    "InvalidWeightsError",
]
