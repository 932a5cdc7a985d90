"""
Valores del optimizador de pesos: muestras de entrenamiento, estado
persistido y los reportes de evaluación, sugerencias y A/B tests.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from imoscore.models.scoring import ScoreComponents, WeightConfig


class Outcome(str, Enum):
    """Qué hizo el usuario después de ver un listing, de mejor a peor."""

    CONVERTED = "converted"
    CONTACTED = "contacted"
    VIEWED = "viewed"
    IGNORED = "ignored"


class TrainingSample(BaseModel):
    """Sub-scores observados de un listing y el resultado al que llevaron."""

    model_config = ConfigDict(frozen=True)

    listing_id: str
    components: ScoreComponents
    outcome: Outcome
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ModelState(BaseModel):
    """
    Snapshot del optimizador para el colaborador de persistencia.

    Cargar un snapshot y exportarlo de nuevo lo reproduce exactamente.
    """

    weights: WeightConfig
    training_data: list[TrainingSample] = Field(default_factory=list)
    last_trained_at: Optional[datetime] = None
    accuracy: Optional[float] = Field(None, ge=0, le=1)


class Evaluation(BaseModel):
    """Calidad de una configuración de pesos sobre un set de muestras."""

    accuracy: float = Field(0.0, ge=0, le=1, description="Acuerdo de ranking por pares")
    avg_error: float = Field(0.0, ge=0, description="Media de |reward*100 - score ponderado|")
    sample_count: int = 0
    weights: Optional[WeightConfig] = None


class WeightSuggestion(BaseModel):
    current: WeightConfig
    suggested: WeightConfig
    rationale: str = Field(..., min_length=1)


class ABTestResult(BaseModel):
    score_a: float
    score_b: float
    winner: Literal["A", "B", "tie"]
    winner_weights: WeightConfig
