"""
Modelos de datos.

- Inputs: Listing, SearchCriteria, UserBehavior, TemporalFactors
- Scoring: WeightConfig, ScoreComponents, ScoringResult
- Ranking: RankedListing, RankingOptions, RankingResult, ScoreGroups
- Entrenamiento: TrainingSample, ModelState y reportes del optimizador
"""

from imoscore.models.criteria import (
    Characteristics,
    LocationCriteria,
    PriceRange,
    SearchCriteria,
)
from imoscore.models.listing import Listing
from imoscore.models.scoring import (
    PropertyComparison,
    RankedListing,
    RankingOptions,
    RankingResult,
    ScoreComponents,
    ScoreGroups,
    ScoringResult,
    WeightConfig,
)
from imoscore.models.signals import Interactions, TemporalFactors, UserBehavior
from imoscore.models.training import (
    ABTestResult,
    Evaluation,
    ModelState,
    Outcome,
    TrainingSample,
    WeightSuggestion,
)

__all__ = [
    # Inputs
    "Listing",
    "SearchCriteria",
    "LocationCriteria",
    "PriceRange",
    "Characteristics",
    "UserBehavior",
    "Interactions",
    "TemporalFactors",
    # Scoring
    "WeightConfig",
    "ScoreComponents",
    "ScoringResult",
    # Ranking
    "RankedListing",
    "RankingOptions",
    "RankingResult",
    "ScoreGroups",
    "PropertyComparison",
    # Entrenamiento
    "Outcome",
    "TrainingSample",
    "ModelState",
    "Evaluation",
    "WeightSuggestion",
    "ABTestResult",
]
