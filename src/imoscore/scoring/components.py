"""
Calculadores de los componentes del score.

Funciones puras que calculan los tres sub-scores (0-100) de un listing:

- Compatibilidad: ubicación, precio, tipología y características
- Comportamiento: vistas, tiempo de vista, interacciones y recencia
- Temporal: antigüedad, disponibilidad y movimientos de precio
"""

import re
import unicodedata
from datetime import datetime, timezone
from math import asin, cos, radians, sin, sqrt
from typing import Any, Optional

from imoscore.models import (
    Characteristics,
    Listing,
    LocationCriteria,
    PriceRange,
    SearchCriteria,
    TemporalFactors,
    UserBehavior,
)

# Compatibilidad: puntos por criterio (suman 100). Un criterio ausente suma la mitad.
LOCATION_POINTS = 30.0
PRICE_POINTS = 30.0
TYPOLOGY_POINTS = 20.0
CHARACTERISTICS_POINTS = 20.0

PREFERRED_PRICE_TOLERANCE = 0.10  # llega a 0 al 10% del precio preferido
OVER_MAX_TOLERANCE = 0.20  # llega a 0 al 20% por encima del máximo
UNDER_MIN_TOLERANCE = 0.50  # llega a 0 al 50% por debajo del mínimo

TYPOLOGY_STEP_PENALTY = 0.25  # por ambiente de diferencia (T2 vs T3)
TYPOLOGY_MISMATCH_FLOOR = 0.25

BEDROOM_SHORTFALL_PENALTY = 0.2
BATHROOM_SHORTFALL_PENALTY = 0.3

# Comportamiento
NEUTRAL_BEHAVIOR_SCORE = 50.0
POINTS_PER_VIEW = 10.0
MAX_VIEW_POINTS = 30.0
SECONDS_PER_POINT = 10.0
MAX_DURATION_POINTS = 30.0
POINTS_PER_INTERACTION = 10.0
MAX_INTERACTION_POINTS = 30.0
RECENCY_BONUS = 10.0
RECENCY_WINDOW_HOURS = 24.0

# Temporal
NEUTRAL_TEMPORAL_SCORE = 50.0
NEW_LISTING_DAYS = 7
NEW_LISTING_BONUS = 25.0
FRESH_DAYS, FRESH_BONUS = 30, 15.0
RECENT_DAYS, RECENT_BONUS = 90, 5.0
STALE_BASE_PENALTY = 10.0
STALE_DAYS_PER_POINT = 6.0
MAX_STALE_PENALTY = 30.0
STALE_AVAILABILITY_OFFSET = 0.5  # disponibilidad 1.0 reduce a la mitad la penalización
DEFAULT_AVAILABILITY = 0.5
AVAILABILITY_POINTS = 20.0
PRICE_DROP_POINTS_PER_PCT = 2.0
MAX_PRICE_DROP_POINTS = 20.0
POINTS_PER_PRICE_CHANGE = 3.0
MAX_PRICE_CHANGE_POINTS = 10.0

EARTH_RADIUS_KM = 6371.0

_TYPOLOGY_RE = re.compile(r"^\s*t\s*(\d+)", re.IGNORECASE)


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def ensure_utc(value: datetime) -> datetime:
    """Los timestamps naive se toman como UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def normalize_text(value: Any) -> Optional[str]:
    """Minúsculas, sin acentos y espacios colapsados: 'Olivais ' -> 'olivais'."""
    if not isinstance(value, str):
        return None
    stripped = value.strip().lower()
    if not stripped:
        return None
    normalized = unicodedata.normalize("NFKD", stripped)
    ascii_text = "".join(ch for ch in normalized if not unicodedata.combining(ch))
    return " ".join(ascii_text.split()) or None


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    dlat = radians(lat2 - lat1)
    dlon = radians(lon2 - lon1)
    a = sin(dlat / 2) ** 2 + cos(radians(lat1)) * cos(radians(lat2)) * sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_KM * asin(sqrt(a))


def typology_rooms(typology: Optional[str]) -> Optional[int]:
    if not typology:
        return None
    match = _TYPOLOGY_RE.match(typology)
    return int(match.group(1)) if match else None


def days_on_market(listing: Listing, now: datetime) -> Optional[float]:
    if listing.first_seen_at is None:
        return None
    elapsed = ensure_utc(now) - ensure_utc(listing.first_seen_at)
    return max(0.0, elapsed.total_seconds() / 86400)


# ---------------------------------------------------------------------------
# Compatibilidad
# ---------------------------------------------------------------------------


def location_match(
    listing: Listing, location: LocationCriteria, default_radius_km: float = 10.0
) -> float:
    """
    Ajuste de ubicación (0-1).

    Cada área administrativa pedida cuenta como un factor (match exacto, sin
    importar acentos). Un punto pedido suma otro factor que decae linealmente
    con la distancia y llega a 0 en el radio.
    """
    score = 0.0
    factors = 0

    for wanted, actual in (
        (location.district, listing.district),
        (location.municipality, listing.municipality),
        (location.parish, listing.parish),
    ):
        wanted_key = normalize_text(wanted)
        if wanted_key is None:
            continue
        factors += 1
        if wanted_key == normalize_text(actual):
            score += 1.0

    if location.has_point and listing.has_coordinates:
        factors += 1
        radius = location.radius_km or default_radius_km
        distance = haversine_km(location.lat, location.lon, listing.lat, listing.lon)
        if distance <= radius:
            score += 1.0 - distance / radius

    return score / factors if factors else 0.5


def price_match(price: float, price_range: PriceRange) -> float:
    """Ajuste de precio (0-1): completo dentro del rango, decae linealmente fuera."""
    if price_range.preferred is not None:
        tolerance = price_range.preferred * PREFERRED_PRICE_TOLERANCE
        return max(0.0, 1.0 - abs(price - price_range.preferred) / tolerance)

    if price_range.max is not None and price > price_range.max:
        if price_range.max <= 0:
            return 0.0
        overshoot = (price - price_range.max) / price_range.max
        return max(0.0, 1.0 - overshoot / OVER_MAX_TOLERANCE)

    if price_range.min is not None and price < price_range.min:
        undershoot = (price_range.min - price) / price_range.min
        return max(0.0, 1.0 - undershoot / UNDER_MIN_TOLERANCE)

    return 1.0


def typology_match(listing_typology: str, target: str) -> float:
    """Ajuste de tipología (0-1): 1 si coincide, crédito parcial por diferencia de ambientes."""
    if normalize_text(listing_typology) == normalize_text(target):
        return 1.0
    listing_rooms = typology_rooms(listing_typology)
    target_rooms = typology_rooms(target)
    if listing_rooms is None or target_rooms is None:
        return TYPOLOGY_MISMATCH_FLOOR
    credit = 1.0 - TYPOLOGY_STEP_PENALTY * abs(listing_rooms - target_rooms)
    return max(TYPOLOGY_MISMATCH_FLOOR, credit)


def characteristics_match(listing: Listing, wanted: Characteristics) -> float:
    """Ajuste de características (0-1), promedio de los chequeos que aplican."""
    score = 0.0
    factors = 0

    if wanted.bedrooms is not None and listing.bedrooms is not None:
        factors += 1
        shortfall = wanted.bedrooms - listing.bedrooms
        score += 1.0 if shortfall <= 0 else max(0.0, 1.0 - shortfall * BEDROOM_SHORTFALL_PENALTY)

    if wanted.bathrooms is not None and listing.bathrooms is not None:
        factors += 1
        shortfall = wanted.bathrooms - listing.bathrooms
        score += 1.0 if shortfall <= 0 else max(0.0, 1.0 - shortfall * BATHROOM_SHORTFALL_PENALTY)

    if listing.area_m2:
        if wanted.area_min:
            factors += 1
            score += min(1.0, listing.area_m2 / wanted.area_min)
        if wanted.area_max:
            factors += 1
            score += min(1.0, wanted.area_max / listing.area_m2)

    if wanted.features:
        factors += 1
        matched = [name for name in wanted.features if listing.features.get(name)]
        score += len(matched) / len(wanted.features)

    return score / factors if factors else 0.5


def compatibility_score(
    listing: Listing, criteria: SearchCriteria, default_radius_km: float = 10.0
) -> float:
    """Score de compatibilidad (0-100). Criterios vacíos dan el neutro 50."""
    score = 0.0

    location = criteria.location
    if location is not None and not location.is_empty():
        score += location_match(listing, location, default_radius_km) * LOCATION_POINTS
    else:
        score += LOCATION_POINTS / 2

    price_range = criteria.price
    if price_range is not None and not price_range.is_empty() and listing.price is not None:
        score += price_match(listing.price, price_range) * PRICE_POINTS
    else:
        score += PRICE_POINTS / 2

    if criteria.typology and listing.typology:
        score += typology_match(listing.typology, criteria.typology) * TYPOLOGY_POINTS
    else:
        score += TYPOLOGY_POINTS / 2

    characteristics = criteria.characteristics
    if characteristics is not None and not characteristics.is_empty():
        score += characteristics_match(listing, characteristics) * CHARACTERISTICS_POINTS
    else:
        score += CHARACTERISTICS_POINTS / 2

    return clamp(score)


# ---------------------------------------------------------------------------
# Comportamiento
# ---------------------------------------------------------------------------


def recency_bonus(last_viewed_at: Optional[datetime], now: datetime) -> float:
    """Bonus por vista reciente, decae linealmente a 0 dentro de la ventana."""
    if last_viewed_at is None:
        return 0.0
    elapsed = ensure_utc(now) - ensure_utc(last_viewed_at)
    hours = max(0.0, elapsed.total_seconds() / 3600)
    if hours >= RECENCY_WINDOW_HOURS:
        return 0.0
    return RECENCY_BONUS * (1.0 - hours / RECENCY_WINDOW_HOURS)


def behavior_score(behavior: Optional[UserBehavior], now: datetime) -> float:
    """
    Score de comportamiento (0-100).

    Sin datos de comportamiento el score es el neutro 50. Con datos es la
    suma de aportes acotados por separado, sin base neutra.
    """
    if behavior is None:
        return NEUTRAL_BEHAVIOR_SCORE

    score = min(MAX_VIEW_POINTS, behavior.views * POINTS_PER_VIEW)
    score += min(MAX_DURATION_POINTS, behavior.total_view_time / SECONDS_PER_POINT)
    score += min(MAX_INTERACTION_POINTS, behavior.interactions.count() * POINTS_PER_INTERACTION)
    score += recency_bonus(behavior.last_viewed_at, now)
    return clamp(score)


# ---------------------------------------------------------------------------
# Temporal
# ---------------------------------------------------------------------------


def stale_penalty(days: float, availability: float) -> float:
    """Penalización para listings con 90+ días publicados, atenuada por la disponibilidad."""
    penalty = min(MAX_STALE_PENALTY, STALE_BASE_PENALTY + (days - RECENT_DAYS) / STALE_DAYS_PER_POINT)
    return penalty * (1.0 - STALE_AVAILABILITY_OFFSET * availability)


def temporal_score(
    listing: Listing, temporal: Optional[TemporalFactors], now: datetime
) -> float:
    """
    Score temporal (0-100).

    Parte de 50 y aplica ajustes con signo. Los inputs que faltan en
    TemporalFactors se derivan del propio listing.
    """
    temporal = temporal or TemporalFactors()

    days = temporal.days_on_market
    if days is None:
        days = days_on_market(listing, now)

    is_new = temporal.is_new_listing
    if is_new is None:
        is_new = days is not None and days < NEW_LISTING_DAYS

    availability = temporal.availability_probability
    if availability is None:
        availability = listing.availability_probability
    if availability is None:
        availability = DEFAULT_AVAILABILITY

    score = NEUTRAL_TEMPORAL_SCORE

    if is_new:
        score += NEW_LISTING_BONUS
    elif days is None:
        pass
    elif days < FRESH_DAYS:
        score += FRESH_BONUS
    elif days < RECENT_DAYS:
        score += RECENT_BONUS
    else:
        score -= stale_penalty(days, availability)

    score += availability * AVAILABILITY_POINTS

    if temporal.recent_price_drop_pct:
        score += min(MAX_PRICE_DROP_POINTS, temporal.recent_price_drop_pct * PRICE_DROP_POINTS_PER_PCT)

    if temporal.price_changes:
        score += min(MAX_PRICE_CHANGE_POINTS, temporal.price_changes * POINTS_PER_PRICE_CHANGE)

    return clamp(score)
