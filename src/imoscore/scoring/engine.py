"""
Motor de scoring.

Combina los tres componentes en un score final ponderado:

    final = compatibility * w.compatibility
          + behavior * w.behavior
          + temporal * w.temporal

y le agrega una confianza (completitud de inputs) y razones legibles.
El motor es dueño de sus pesos; se reemplazan con update_weights().
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional, Union

import structlog
from pydantic import ValidationError

from imoscore.config import Settings, get_settings
from imoscore.exceptions import InvalidWeightsError
from imoscore.models import (
    Listing,
    ScoreComponents,
    ScoringResult,
    SearchCriteria,
    TemporalFactors,
    UserBehavior,
    WeightConfig,
)
from imoscore.scoring import components as calc

logger = structlog.get_logger()

WeightsInput = Union[WeightConfig, dict]


def default_weights(settings: Optional[Settings] = None) -> WeightConfig:
    """Pesos por defecto desde la configuración (0.4 / 0.3 / 0.3 salvo override)."""
    settings = settings or get_settings()
    return WeightConfig(
        compatibility=settings.default_weight_compatibility,
        behavior=settings.default_weight_behavior,
        temporal=settings.default_weight_temporal,
    )


def validate_weights(weights: WeightsInput, tolerance: float) -> WeightConfig:
    """
    Convierte a WeightConfig y valida la invariante.

    Raises:
        InvalidWeightsError: pesos mal formados, negativos o con suma fuera de 1.0 ± tolerancia
    """
    if isinstance(weights, WeightConfig):
        config = weights
    else:
        try:
            config = WeightConfig.model_validate(weights)
        except ValidationError as e:
            raise InvalidWeightsError(f"Pesos mal formados: {e.error_count()} errores") from e
    if not config.is_valid(tolerance):
        raise InvalidWeightsError(
            f"Los pesos deben ser no negativos y sumar 1.0 (suman {config.total:.4f})",
            weights=config,
        )
    return config


class BaseScoringEngine(ABC):
    """Estrategia de scoring que usa el servicio de ranking."""

    @abstractmethod
    def calculate_score(
        self,
        listing: Listing,
        criteria: Optional[SearchCriteria] = None,
        behavior: Optional[UserBehavior] = None,
        temporal: Optional[TemporalFactors] = None,
        now: Optional[datetime] = None,
    ) -> ScoringResult:
        """
        Calcula el score de un listing contra un set de criterios.

        Args:
            listing: Listing normalizado
            criteria: Criterios de búsqueda (None = criterios vacíos)
            behavior: Engagement del usuario con el listing, si lo hay
            temporal: Inputs de sensibilidad temporal, si los hay
            now: Momento de referencia (por defecto, ahora en UTC)

        Returns:
            ScoringResult con componentes, score final, confianza y razones
        """

    @abstractmethod
    def get_weights(self) -> WeightConfig:
        """Devuelve los pesos activos."""

    @abstractmethod
    def update_weights(self, weights: WeightsInput) -> None:
        """Instala pesos nuevos o lanza InvalidWeightsError."""


class ScoringEngine(BaseScoringEngine):
    """
    Motor de scoring por defecto.

    Un escritor, muchos lectores: update_weights() reemplaza un WeightConfig
    inmutable, así que cada score se calcula con un único set consistente
    de pesos. Quien comparta el motor entre threads debe serializar las
    actualizaciones de pesos.
    """

    def __init__(
        self,
        weights: Optional[WeightsInput] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self._tolerance = self.settings.weight_sum_tolerance
        self._weights = validate_weights(
            weights if weights is not None else default_weights(self.settings),
            self._tolerance,
        )

    def calculate_score(
        self,
        listing: Listing,
        criteria: Optional[SearchCriteria] = None,
        behavior: Optional[UserBehavior] = None,
        temporal: Optional[TemporalFactors] = None,
        now: Optional[datetime] = None,
    ) -> ScoringResult:
        criteria = criteria or SearchCriteria()
        now = calc.ensure_utc(now) if now else datetime.now(timezone.utc)
        weights = self._weights

        components = ScoreComponents(
            compatibility=round(
                calc.compatibility_score(
                    listing, criteria, self.settings.default_search_radius_km
                ),
                2,
            ),
            behavior=round(calc.behavior_score(behavior, now), 2),
            temporal=round(calc.temporal_score(listing, temporal, now), 2),
        )
        final_score = round(calc.clamp(components.weighted(weights)), 2)

        return ScoringResult(
            listing_id=listing.id,
            components=components,
            weights=weights,
            final_score=final_score,
            confidence=self._confidence(listing, criteria, behavior, temporal),
            reasons=tuple(
                self._reasons(listing, criteria, components, final_score, temporal, now)
            ),
            calculated_at=now,
        )

    def get_weights(self) -> WeightConfig:
        return self._weights

    def update_weights(self, weights: WeightsInput) -> None:
        try:
            new_weights = validate_weights(weights, self._tolerance)
        except InvalidWeightsError as e:
            logger.warning("Pesos rechazados", error=str(e))
            raise
        self._weights = new_weights
        logger.info("Pesos actualizados", **new_weights.as_dict())

    def _confidence(
        self,
        listing: Listing,
        criteria: SearchCriteria,
        behavior: Optional[UserBehavior],
        temporal: Optional[TemporalFactors],
    ) -> float:
        """0.4 sin ningún input útil, 1.0 con todos los inputs esperados."""
        checks = [
            listing.has_coordinates,
            listing.price is not None,
            bool(listing.typology),
            listing.area_m2 is not None,
            listing.bedrooms is not None,
            any([listing.district, listing.municipality, listing.parish]),
            listing.first_seen_at is not None or listing.availability_probability is not None,
            not criteria.is_empty(),
            behavior is not None and behavior.has_signal(),
            temporal is not None,
        ]
        return round(0.4 + 0.6 * sum(checks) / len(checks), 3)

    def _reasons(
        self,
        listing: Listing,
        criteria: SearchCriteria,
        components: ScoreComponents,
        final_score: float,
        temporal: Optional[TemporalFactors],
        now: datetime,
    ) -> list[str]:
        reasons = []

        # Compatibilidad
        if components.compatibility >= 80:
            reasons.append("Excellent match with your search criteria")
        elif components.compatibility >= 60:
            reasons.append("Good match with your preferences")

        if criteria.location is not None and listing.parish:
            place = ", ".join(p for p in [listing.parish, listing.municipality] if p)
            reasons.append(f"Located in {place}")

        price_range = criteria.price
        if price_range is not None and listing.price is not None:
            low = price_range.min if price_range.min is not None else 0.0
            high = price_range.max if price_range.max is not None else float("inf")
            if (price_range.min is not None or price_range.max is not None) and low <= listing.price <= high:
                reasons.append("Price within your preferred range")

        if criteria.typology and listing.typology:
            if calc.normalize_text(criteria.typology) == calc.normalize_text(listing.typology):
                reasons.append(f"Typology {listing.typology} as requested")

        # Comportamiento
        if components.behavior >= 70:
            reasons.append("High level of interest shown")

        # Temporal
        if components.temporal >= 80:
            reasons.append("Time-sensitive opportunity")

        days = temporal.days_on_market if temporal and temporal.days_on_market is not None else None
        if days is None:
            days = calc.days_on_market(listing, now)
        if days is not None and days < calc.NEW_LISTING_DAYS:
            reasons.append("New on the market")

        if temporal is not None and temporal.recent_price_drop_pct:
            reasons.append(f"Price recently dropped {temporal.recent_price_drop_pct:.0f}%")

        availability = listing.availability_probability
        if temporal is not None and temporal.availability_probability is not None:
            availability = temporal.availability_probability
        if availability is not None and availability > 0.7:
            reasons.append("High probability of being available")

        if listing.portal_count and listing.portal_count > 3:
            reasons.append(f"Listed on {listing.portal_count} different portals")

        if not reasons:
            reasons.append(f"Overall score {final_score:.0f}/100 from the available data")

        return reasons[: self.settings.max_reasons]
