"""
Optimizador de pesos.

Aprende cómo ponderar los tres sub-scores a partir de muestras etiquetadas
con su resultado. El paso de aprendizaje es una heurística simple y auditable:

1. Mapear cada resultado a un reward (converted > contacted > viewed > ignored)
2. Correlacionar cada componente con el reward sobre todas las muestras
3. Ajustar cada peso en learning_rate * correlación
4. Aplicar el piso min_weight a cada peso y renormalizar a suma 1.0

La persistencia pasa sólo por get_model_state()/load_model_state().
"""

import bisect
import statistics
from collections import defaultdict
from datetime import datetime, timezone
from typing import Optional, Sequence, Union

import structlog

from imoscore.config import Settings, get_settings
from imoscore.models import (
    ABTestResult,
    Evaluation,
    ModelState,
    Outcome,
    TrainingSample,
    WeightConfig,
    WeightSuggestion,
)
from imoscore.scoring.engine import WeightsInput, default_weights, validate_weights

logger = structlog.get_logger()

OUTCOME_REWARDS: dict[Outcome, float] = {
    Outcome.CONVERTED: 1.0,
    Outcome.CONTACTED: 0.7,
    Outcome.VIEWED: 0.3,
    Outcome.IGNORED: 0.0,
}

DIMENSIONS = ("compatibility", "behavior", "temporal")

DIMENSION_LABELS = {
    "compatibility": "compatibility factors",
    "behavior": "user behavior signals",
    "temporal": "timing and urgency factors",
}

AB_TIE_THRESHOLD = 0.1


def outcome_reward(outcome: Outcome) -> float:
    return OUTCOME_REWARDS[Outcome(outcome)]


def _correlation(xs: Sequence[float], ys: Sequence[float]) -> float:
    """Correlación de Pearson, 0.0 si alguno de los lados es constante."""
    try:
        return statistics.correlation(xs, ys)
    except statistics.StatisticsError:
        return 0.0


def ranking_agreement(samples: Sequence[TrainingSample], weights: WeightConfig) -> float:
    """
    Fracción de pares de muestras cuyos scores ponderados se ordenan igual que sus rewards.

    Sólo se comparan pares con rewards distintos; scores ponderados iguales
    cuentan como medio acuerdo. Devuelve 0.0 si no hay pares comparables.
    """
    levels: dict[float, list[float]] = defaultdict(list)
    for sample in samples:
        levels[outcome_reward(sample.outcome)].append(sample.components.weighted(weights))
    for scores in levels.values():
        scores.sort()

    rewards = sorted(levels)
    agree = 0.0
    comparable = 0
    for i, low in enumerate(rewards):
        for high in rewards[i + 1 :]:
            higher_scores = levels[high]
            comparable += len(levels[low]) * len(higher_scores)
            for score in levels[low]:
                left = bisect.bisect_left(higher_scores, score)
                right = bisect.bisect_right(higher_scores, score)
                agree += (len(higher_scores) - right) + 0.5 * (right - left)

    return agree / comparable if comparable else 0.0


def evaluate_weights(weights: WeightConfig, samples: Sequence[TrainingSample]) -> Evaluation:
    """Accuracy y error absoluto medio de una configuración de pesos sobre las muestras."""
    if not samples:
        return Evaluation(accuracy=0.0, avg_error=0.0, sample_count=0, weights=weights)

    total_error = 0.0
    for sample in samples:
        target = outcome_reward(sample.outcome) * 100
        total_error += abs(sample.components.weighted(weights) - target)

    return Evaluation(
        accuracy=ranking_agreement(samples, weights),
        avg_error=total_error / len(samples),
        sample_count=len(samples),
        weights=weights,
    )


class WeightOptimizer:
    """
    Acumula muestras de entrenamiento y deriva pesos ajustados.

    Sin sincronización: quien comparta un optimizador entre threads debe
    tomar un lock alrededor de add_training_sample() y train().
    """

    def __init__(
        self,
        initial_weights: Optional[WeightsInput] = None,
        learning_rate: Optional[float] = None,
        min_samples: Optional[int] = None,
        min_weight: Optional[float] = None,
        auto_train_interval: Optional[int] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.learning_rate = (
            learning_rate if learning_rate is not None else self.settings.optimizer_learning_rate
        )
        self.min_samples = (
            min_samples if min_samples is not None else self.settings.optimizer_min_samples
        )
        self.min_weight = min_weight if min_weight is not None else self.settings.optimizer_min_weight
        self.auto_train_interval = (
            auto_train_interval
            if auto_train_interval is not None
            else self.settings.optimizer_auto_train_interval
        )
        self._tolerance = self.settings.weight_sum_tolerance

        self._weights = self._initial_weights(initial_weights)
        self._training_data: list[TrainingSample] = []
        self._last_trained_at: Optional[datetime] = None
        self._accuracy: Optional[float] = None

    @property
    def training_data(self) -> list[TrainingSample]:
        return list(self._training_data)

    @property
    def last_trained_at(self) -> Optional[datetime]:
        return self._last_trained_at

    @property
    def accuracy(self) -> Optional[float]:
        return self._accuracy

    def add_training_sample(self, sample: Union[TrainingSample, dict]) -> None:
        if isinstance(sample, dict):
            sample = TrainingSample.model_validate(sample)
        self._training_data.append(sample)

        count = len(self._training_data)
        if (
            self.auto_train_interval
            and count >= self.min_samples
            and count % self.auto_train_interval == 0
        ):
            self.train()

    def train(self) -> bool:
        """
        Ajusta los pesos a partir de las muestras acumuladas.

        Returns:
            True si se actualizaron los pesos, False si no había suficientes
            muestras (los pesos quedan igual)
        """
        available = len(self._training_data)
        if available < self.min_samples:
            logger.warning(
                "Muestras insuficientes para entrenar",
                required=self.min_samples,
                available=available,
            )
            return False

        logger.info("Entrenando modelo de pesos", samples=available)
        new_weights, correlations = self._propose_weights(self._training_data)

        self._weights = new_weights
        self._last_trained_at = datetime.now(timezone.utc)
        self._accuracy = ranking_agreement(self._training_data, new_weights)

        logger.info(
            "Entrenamiento completo",
            accuracy=round(self._accuracy, 4),
            correlations={k: round(v, 4) for k, v in correlations.items()},
            **new_weights.as_dict(),
        )
        return True

    def evaluate(self) -> Evaluation:
        return evaluate_weights(self._weights, self._training_data)

    def get_feature_importance(self) -> WeightConfig:
        """Importancia de cada componente; igual a su peso actual."""
        return self._weights

    def get_optimized_weights(self) -> WeightConfig:
        return self._weights

    def suggest_weight_adjustments(self) -> WeightSuggestion:
        """Pesos candidatos con la misma lógica que train(), sin aplicarlos."""
        available = len(self._training_data)
        if available < self.min_samples:
            return WeightSuggestion(
                current=self._weights,
                suggested=self._weights,
                rationale=(
                    f"Insufficient data for suggestions: {available} of "
                    f"{self.min_samples} samples collected"
                ),
            )

        suggested, correlations = self._propose_weights(self._training_data)
        strongest = max(DIMENSIONS, key=lambda dim: correlations[dim])

        if all(value == 0 for value in correlations.values()):
            rationale = (
                f"Based on {available} samples, no component correlates with outcomes; "
                "weights stay as they are."
            )
        else:
            rationale = (
                f"Based on {available} samples, {DIMENSION_LABELS[strongest]} correlate "
                f"most with positive outcomes (r={correlations[strongest]:+.2f}). "
                f"Suggested: compatibility {suggested.compatibility:.2f}, "
                f"behavior {suggested.behavior:.2f}, temporal {suggested.temporal:.2f}."
            )

        return WeightSuggestion(current=self._weights, suggested=suggested, rationale=rationale)

    def reset(self, weights: Optional[WeightsInput] = None) -> None:
        new_weights = self._initial_weights(weights)
        self._weights = new_weights
        self._training_data = []
        self._last_trained_at = None
        self._accuracy = None

    def load_model_state(self, state: Union[ModelState, dict]) -> None:
        """Reemplaza pesos, muestras, fecha del último entrenamiento y accuracy."""
        if isinstance(state, dict):
            state = ModelState.model_validate(state)
        weights = validate_weights(state.weights, self._tolerance)

        self._weights = weights
        self._training_data = list(state.training_data)
        self._last_trained_at = state.last_trained_at
        self._accuracy = state.accuracy
        logger.info(
            "Estado del modelo cargado",
            samples=len(self._training_data),
            last_trained_at=self._last_trained_at.isoformat() if self._last_trained_at else None,
        )

    def get_model_state(self) -> ModelState:
        return ModelState(
            weights=self._weights,
            training_data=list(self._training_data),
            last_trained_at=self._last_trained_at,
            accuracy=self._accuracy,
        )

    @staticmethod
    async def ab_test(
        weights_a: WeightsInput,
        weights_b: WeightsInput,
        samples: Sequence[TrainingSample],
    ) -> ABTestResult:
        """
        Compara dos configuraciones de pesos sobre las mismas muestras.

        Cada configuración puntúa 100 - avg_error; menos de 0.1 de diferencia es empate.
        No modifica el estado del optimizador.
        """
        tolerance = get_settings().weight_sum_tolerance
        config_a = validate_weights(weights_a, tolerance)
        config_b = validate_weights(weights_b, tolerance)

        score_a = 100.0 - evaluate_weights(config_a, samples).avg_error
        score_b = 100.0 - evaluate_weights(config_b, samples).avg_error

        if abs(score_a - score_b) < AB_TIE_THRESHOLD:
            winner = "tie"
        elif score_a > score_b:
            winner = "A"
        else:
            winner = "B"

        return ABTestResult(
            score_a=round(score_a, 4),
            score_b=round(score_b, 4),
            winner=winner,
            winner_weights=config_b if winner == "B" else config_a,
        )

    def _initial_weights(self, weights: Optional[WeightsInput]) -> WeightConfig:
        if weights is None:
            return default_weights(self.settings)
        return validate_weights(weights, self._tolerance)

    def _propose_weights(
        self, samples: Sequence[TrainingSample]
    ) -> tuple[WeightConfig, dict[str, float]]:
        """Correlación -> ajuste acotado -> piso -> renormalización."""
        rewards = [outcome_reward(sample.outcome) for sample in samples]
        correlations = {
            dim: _correlation([getattr(s.components, dim) for s in samples], rewards)
            for dim in DIMENSIONS
        }

        current = self._weights.as_dict()
        nudged = {
            dim: max(self.min_weight, current[dim] + self.learning_rate * correlations[dim])
            for dim in DIMENSIONS
        }
        total = sum(nudged.values())
        compatibility = nudged["compatibility"] / total
        behavior = nudged["behavior"] / total

        return (
            WeightConfig(
                compatibility=compatibility,
                behavior=behavior,
                temporal=1.0 - compatibility - behavior,
            ),
            correlations,
        )
