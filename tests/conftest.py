"""
Fixtures compartidos de los tests de scoring, ranking y optimizador.
"""

from datetime import datetime, timedelta, timezone

import pytest

from imoscore.models import (
    Characteristics,
    Listing,
    LocationCriteria,
    Outcome,
    PriceRange,
    ScoreComponents,
    SearchCriteria,
    TrainingSample,
)

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def listing() -> Listing:
    """T2 en Alameda, Lisboa, 5 días publicado."""
    return Listing(
        id="prop-123",
        lat=38.7223,
        lon=-9.1393,
        parish="Alameda",
        municipality="Lisboa",
        district="Lisboa",
        typology="T2",
        area_m2=75,
        bedrooms=2,
        bathrooms=1,
        price=250_000,
        portal_count=3,
        first_seen_at=NOW - timedelta(days=5),
        availability_probability=0.8,
    )


@pytest.fixture
def poor_listing() -> Listing:
    """T5 caro en Porto, 200 días publicado."""
    return Listing(
        id="prop-999",
        parish="Cedofeita",
        municipality="Porto",
        district="Porto",
        typology="T5",
        area_m2=40,
        bedrooms=1,
        price=600_000,
        first_seen_at=NOW - timedelta(days=200),
        availability_probability=0.2,
    )


@pytest.fixture
def criteria() -> SearchCriteria:
    return SearchCriteria(
        location=LocationCriteria(district="Lisboa", municipality="Lisboa"),
        price=PriceRange(min=200_000, max=300_000),
        typology="T2",
        characteristics=Characteristics(bedrooms=2, area_min=70),
    )


@pytest.fixture
def listings() -> list[Listing]:
    """Diez listings de ajuste decreciente con los criterios por defecto."""
    out = []
    for i in range(10):
        out.append(
            Listing(
                id=f"prop-{i}",
                parish="Alameda" if i % 2 == 0 else "Arroios",
                municipality="Lisboa",
                district="Lisboa",
                typology=f"T{1 + i % 4}",
                area_m2=60 + i * 5,
                bedrooms=1 + i % 4,
                price=180_000 + i * 25_000,
                first_seen_at=NOW - timedelta(days=i * 15),
                availability_probability=round(0.9 - i * 0.08, 2),
            )
        )
    return out


def make_sample(
    listing_id: str,
    outcome: Outcome,
    compatibility: float = 50.0,
    behavior: float = 50.0,
    temporal: float = 50.0,
) -> TrainingSample:
    return TrainingSample(
        listing_id=listing_id,
        components=ScoreComponents(
            compatibility=compatibility, behavior=behavior, temporal=temporal
        ),
        outcome=outcome,
        timestamp=NOW,
    )


REWARD_BY_OUTCOME = {
    Outcome.CONVERTED: 1.0,
    Outcome.CONTACTED: 0.7,
    Outcome.VIEWED: 0.3,
    Outcome.IGNORED: 0.0,
}


@pytest.fixture
def behavior_driven_samples() -> list[TrainingSample]:
    """
    60 muestras donde behavior sigue al resultado, temporal va a la inversa
    y compatibility es constante.
    """
    outcomes = list(REWARD_BY_OUTCOME)
    samples = []
    for i in range(60):
        outcome = outcomes[i % len(outcomes)]
        reward = REWARD_BY_OUTCOME[outcome]
        samples.append(
            make_sample(
                f"prop-{i}",
                outcome,
                compatibility=50.0,
                behavior=reward * 100,
                temporal=100 - reward * 100,
            )
        )
    return samples
