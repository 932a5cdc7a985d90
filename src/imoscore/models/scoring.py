"""
Valores de scoring y ranking.

WeightConfig, ScoreComponents y ScoringResult son inmutables: cada
llamada de scoring construye un resultado nuevo y nada lo modifica después.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from imoscore.models.listing import Listing


class WeightConfig(BaseModel):
    """Pesos de los tres componentes. Un set válido suma 1.0."""

    model_config = ConfigDict(frozen=True)

    compatibility: float = Field(..., description="Peso del score de compatibilidad")
    behavior: float = Field(..., description="Peso del score de comportamiento")
    temporal: float = Field(..., description="Peso del score temporal")

    @property
    def total(self) -> float:
        return self.compatibility + self.behavior + self.temporal

    def is_valid(self, tolerance: float = 1e-3) -> bool:
        if min(self.compatibility, self.behavior, self.temporal) < 0:
            return False
        return abs(self.total - 1.0) <= tolerance

    def as_dict(self) -> dict[str, float]:
        return self.model_dump()


class ScoreComponents(BaseModel):
    """Sub-scores, cada uno acotado a 0-100."""

    model_config = ConfigDict(frozen=True)

    compatibility: float = Field(..., ge=0, le=100)
    behavior: float = Field(..., ge=0, le=100)
    temporal: float = Field(..., ge=0, le=100)

    def weighted(self, weights: WeightConfig) -> float:
        """Suma ponderada de los componentes con los pesos dados."""
        return (
            self.compatibility * weights.compatibility
            + self.behavior * weights.behavior
            + self.temporal * weights.temporal
        )


class ScoringResult(BaseModel):
    """Score de un listing contra un set de criterios."""

    model_config = ConfigDict(frozen=True)

    listing_id: str
    components: ScoreComponents
    weights: WeightConfig
    final_score: float = Field(..., ge=0, le=100)
    confidence: float = Field(..., ge=0, le=1, description="Completitud de los inputs")
    reasons: tuple[str, ...] = Field(..., min_length=1)
    calculated_at: datetime


class RankedListing(BaseModel):
    """Listing scoreado y su posición (desde 1) en una llamada de ranking."""

    listing: Listing
    result: ScoringResult
    rank: int = Field(..., ge=1)
    adjusted_score: Optional[float] = Field(
        None, description="Score tras la penalización por diversidad, si se re-rankeó"
    )

    @property
    def final_score(self) -> float:
        return self.result.final_score


class RankingOptions(BaseModel):
    """Filtrado y paginación de una llamada de ranking."""

    limit: Optional[int] = Field(None, ge=1, description="Tamaño de página (None = todo)")
    offset: int = Field(0, ge=0, description="Items a saltear")
    min_score: Optional[float] = Field(None, description="Descarta resultados por debajo de este score")


class RankingResult(BaseModel):
    """Página ordenada de listings rankeados."""

    ranked: list[RankedListing] = Field(default_factory=list)
    total: int = Field(0, description="Cantidad de listings recibidos")
    matched: int = Field(0, description="Listings que pasan min_score, antes de paginar")
    page: int = 1
    per_page: int = 0
    average_score: float = 0.0
    top_score: float = 0.0


class ScoreGroups(BaseModel):
    """Partición de listings rankeados por score final."""

    excellent: list[RankedListing] = Field(default_factory=list)  # >= 80
    good: list[RankedListing] = Field(default_factory=list)  # [60, 80)
    fair: list[RankedListing] = Field(default_factory=list)  # [40, 60)
    poor: list[RankedListing] = Field(default_factory=list)  # < 40

    def count(self) -> int:
        return len(self.excellent) + len(self.good) + len(self.fair) + len(self.poor)


class PropertyComparison(BaseModel):
    """Scores lado a lado de dos listings con los mismos criterios."""

    first: ScoringResult
    second: ScoringResult
    winner: Literal["a", "b", "tie"]
    score_difference: float = Field(..., ge=0)
