"""
Optimizador de pesos.

Aprende los pesos de los componentes a partir de muestras etiquetadas con
su resultado y compara configuraciones de pesos con A/B tests offline.
"""

from imoscore.optimizer.weights import (
    OUTCOME_REWARDS,
    WeightOptimizer,
    evaluate_weights,
    outcome_reward,
    ranking_agreement,
)

__all__ = [
    "OUTCOME_REWARDS",
    "WeightOptimizer",
    "evaluate_weights",
    "outcome_reward",
    "ranking_agreement",
]
