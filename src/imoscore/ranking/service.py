"""
Servicio de ranking.

Convierte un batch de listings en un resultado ordenado y paginado:
1. Calcular el score de cada listing por separado con el motor de scoring
2. Ordenar por score final, descendente (el orden de entrada desempata)
3. Descartar resultados por debajo de min_score
4. Paginar con offset/limit
También agrupa, compara y re-rankea por diversidad.
"""

from datetime import datetime, timezone
from typing import Mapping, Optional, Sequence, Union

import structlog

from imoscore.config import Settings, get_settings
from imoscore.models import (
    Listing,
    PropertyComparison,
    RankedListing,
    RankingOptions,
    RankingResult,
    ScoreGroups,
    ScoringResult,
    SearchCriteria,
    TemporalFactors,
    UserBehavior,
)
from imoscore.ranking.diversity import diversify
from imoscore.scoring import BaseScoringEngine, ScoringEngine

logger = structlog.get_logger()

BehaviorMap = Mapping[str, UserBehavior]
TemporalMap = Mapping[str, TemporalFactors]

EXCELLENT_SCORE = 80
GOOD_SCORE = 60
FAIR_SCORE = 40
TIE_THRESHOLD = 1.0


class RankingService:
    """
    Ordena listings con un motor de scoring intercambiable.

    Cambiar el motor sólo afecta a las llamadas posteriores al cambio.
    """

    def __init__(
        self,
        scoring_engine: Optional[BaseScoringEngine] = None,
        settings: Optional[Settings] = None,
        diversity_factor: Optional[float] = None,
    ):
        self.settings = settings or get_settings()
        self._engine = scoring_engine or ScoringEngine(settings=self.settings)
        self.diversity_factor = (
            diversity_factor if diversity_factor is not None else self.settings.diversity_factor
        )

    def rank_properties(
        self,
        listings: Sequence[Listing],
        criteria: Optional[SearchCriteria] = None,
        behavior_map: Optional[BehaviorMap] = None,
        temporal_map: Optional[TemporalMap] = None,
        options: Optional[Union[RankingOptions, dict]] = None,
        now: Optional[datetime] = None,
    ) -> RankingResult:
        """
        Rankea listings contra criterios.

        Args:
            listings: Listings a rankear
            criteria: Criterios de búsqueda (None = criterios vacíos)
            behavior_map: UserBehavior por id de listing (ausente = sin comportamiento)
            temporal_map: TemporalFactors por id de listing (ausente = derivado del listing)
            options: min_score, offset y limit
            now: Momento de referencia común a todos los listings de la llamada

        Returns:
            RankingResult; los ranks siguen el orden filtrado, así que el primer
            item de la página 2 con limit 5 tiene rank 6
        """
        if options is None:
            options = RankingOptions()
        elif isinstance(options, dict):
            options = RankingOptions.model_validate(options)

        scored = self._score_all(listings, criteria, behavior_map, temporal_map, now)

        if options.min_score is not None:
            scored = [item for item in scored if item[1].final_score >= options.min_score]

        matched = len(scored)
        offset = options.offset
        limit = options.limit
        page_items = scored[offset : offset + limit] if limit else scored[offset:]

        ranked = [
            RankedListing(listing=listing, result=result, rank=offset + index + 1)
            for index, (listing, result) in enumerate(page_items)
        ]
        scores = [item.final_score for item in ranked]

        logger.debug(
            "Ranking calculado",
            total=len(listings),
            matched=matched,
            returned=len(ranked),
        )

        return RankingResult(
            ranked=ranked,
            total=len(listings),
            matched=matched,
            page=offset // limit + 1 if limit else 1,
            per_page=limit if limit else len(ranked),
            average_score=round(sum(scores) / len(scores), 2) if scores else 0.0,
            top_score=round(max(scores), 2) if scores else 0.0,
        )

    def rerank(
        self,
        result: RankingResult,
        criteria: Optional[SearchCriteria] = None,
        behavior_map: Optional[BehaviorMap] = None,
        temporal_map: Optional[TemporalMap] = None,
        options: Optional[Union[RankingOptions, dict]] = None,
    ) -> RankingResult:
        """Recalcula los scores de un resultado previo con el motor actual."""
        listings = [item.listing for item in result.ranked]
        return self.rank_properties(listings, criteria, behavior_map, temporal_map, options)

    def get_top_properties(
        self,
        listings: Sequence[Listing],
        criteria: Optional[SearchCriteria] = None,
        top_n: int = 10,
        behavior_map: Optional[BehaviorMap] = None,
        temporal_map: Optional[TemporalMap] = None,
    ) -> list[RankedListing]:
        """Las top_n mejores propiedades; top_n <= 0 devuelve una lista vacía."""
        if top_n <= 0:
            return []
        result = self.rank_properties(
            listings, criteria, behavior_map, temporal_map, RankingOptions(limit=top_n)
        )
        return result.ranked

    def filter_by_score_threshold(
        self,
        listings: Sequence[Listing],
        criteria: Optional[SearchCriteria],
        threshold: float,
        behavior_map: Optional[BehaviorMap] = None,
        temporal_map: Optional[TemporalMap] = None,
    ) -> list[RankedListing]:
        result = self.rank_properties(
            listings, criteria, behavior_map, temporal_map, RankingOptions(min_score=threshold)
        )
        return result.ranked

    def group_by_score_range(
        self,
        listings: Sequence[Listing],
        criteria: Optional[SearchCriteria] = None,
        behavior_map: Optional[BehaviorMap] = None,
        temporal_map: Optional[TemporalMap] = None,
    ) -> ScoreGroups:
        """Separa los listings en excellent (>=80), good, fair y poor (<40)."""
        groups = ScoreGroups()
        for item in self.rank_properties(listings, criteria, behavior_map, temporal_map).ranked:
            score = item.final_score
            if score >= EXCELLENT_SCORE:
                groups.excellent.append(item)
            elif score >= GOOD_SCORE:
                groups.good.append(item)
            elif score >= FAIR_SCORE:
                groups.fair.append(item)
            else:
                groups.poor.append(item)
        return groups

    def compare_properties(
        self,
        first: Listing,
        second: Listing,
        criteria: Optional[SearchCriteria] = None,
        behavior_first: Optional[UserBehavior] = None,
        behavior_second: Optional[UserBehavior] = None,
        temporal_first: Optional[TemporalFactors] = None,
        temporal_second: Optional[TemporalFactors] = None,
    ) -> PropertyComparison:
        """Compara dos listings con los mismos criterios. Menos de 1 punto de diferencia es empate."""
        engine = self._engine
        now = datetime.now(timezone.utc)
        score_a = engine.calculate_score(first, criteria, behavior_first, temporal_first, now=now)
        score_b = engine.calculate_score(second, criteria, behavior_second, temporal_second, now=now)

        difference = abs(score_a.final_score - score_b.final_score)
        if difference < TIE_THRESHOLD:
            winner = "tie"
        elif score_a.final_score > score_b.final_score:
            winner = "a"
        else:
            winner = "b"

        return PropertyComparison(
            first=score_a,
            second=score_b,
            winner=winner,
            score_difference=round(difference, 2),
        )

    def get_diversified_ranking(
        self,
        listings: Sequence[Listing],
        criteria: Optional[SearchCriteria] = None,
        diversity_factor: Optional[float] = None,
        behavior_map: Optional[BehaviorMap] = None,
        temporal_map: Optional[TemporalMap] = None,
    ) -> list[RankedListing]:
        """
        Rankea los listings y después baja los casi duplicados del elegido anterior.

        Un diversity_factor más alto penaliza más. Siempre devuelve tantos
        items como recibió.
        """
        factor = diversity_factor if diversity_factor is not None else self.diversity_factor
        standard = self.rank_properties(listings, criteria, behavior_map, temporal_map)
        return diversify(
            standard.ranked,
            factor,
            price_tolerance=self.settings.diversity_price_tolerance,
            area_tolerance=self.settings.diversity_area_tolerance,
        )

    def update_scoring_engine(self, scoring_engine: BaseScoringEngine) -> None:
        self._engine = scoring_engine
        logger.info("Motor de scoring reemplazado", weights=scoring_engine.get_weights().as_dict())

    def get_scoring_engine(self) -> BaseScoringEngine:
        return self._engine

    def _score_all(
        self,
        listings: Sequence[Listing],
        criteria: Optional[SearchCriteria],
        behavior_map: Optional[BehaviorMap],
        temporal_map: Optional[TemporalMap],
        now: Optional[datetime],
    ) -> list[tuple[Listing, ScoringResult]]:
        """Calcula el score de cada listing y ordena por score final (estable)."""
        engine = self._engine
        now = now or datetime.now(timezone.utc)
        behavior_map = behavior_map or {}
        temporal_map = temporal_map or {}

        scored = [
            (
                listing,
                engine.calculate_score(
                    listing,
                    criteria,
                    behavior_map.get(listing.id),
                    temporal_map.get(listing.id),
                    now=now,
                ),
            )
            for listing in listings
        ]
        scored.sort(key=lambda item: item[1].final_score, reverse=True)
        return scored
