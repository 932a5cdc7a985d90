"""
Re-ranking por diversidad.

Reordenamiento greedy que baja los casi duplicados del listing elegido
anteriormente (misma freguesia o concelho, misma tipología, precio y
superficie parecidos). Nunca se descarta nada.
"""

from typing import Optional

from imoscore.models import Listing, RankedListing
from imoscore.scoring.components import normalize_text

SAME_PARISH_SIMILARITY = 0.35
SAME_MUNICIPALITY_SIMILARITY = 0.25
SAME_TYPOLOGY_SIMILARITY = 0.30
CLOSE_PRICE_SIMILARITY = 0.20
CLOSE_AREA_SIMILARITY = 0.15


def _relative_gap(a: Optional[float], b: Optional[float]) -> Optional[float]:
    if not a or not b:
        return None
    return abs(a - b) / ((a + b) / 2)


def listing_similarity(
    first: Listing,
    second: Listing,
    price_tolerance: float = 0.10,
    area_tolerance: float = 0.15,
) -> float:
    """Similitud entre dos listings (0-1)."""
    similarity = 0.0

    parish = normalize_text(first.parish)
    municipality = normalize_text(first.municipality)
    if parish and parish == normalize_text(second.parish):
        similarity += SAME_PARISH_SIMILARITY
    elif municipality and municipality == normalize_text(second.municipality):
        similarity += SAME_MUNICIPALITY_SIMILARITY

    typology = normalize_text(first.typology)
    if typology and typology == normalize_text(second.typology):
        similarity += SAME_TYPOLOGY_SIMILARITY

    price_gap = _relative_gap(first.price, second.price)
    if price_gap is not None and price_gap < price_tolerance:
        similarity += CLOSE_PRICE_SIMILARITY

    area_gap = _relative_gap(first.area_m2, second.area_m2)
    if area_gap is not None and area_gap < area_tolerance:
        similarity += CLOSE_AREA_SIMILARITY

    return min(1.0, similarity)


def diversify(
    ranked: list[RankedListing],
    diversity_factor: float,
    price_tolerance: float = 0.10,
    area_tolerance: float = 0.15,
) -> list[RankedListing]:
    """
    Reordena un ranking para que listings similares no aparezcan seguidos.

    En cada paso, cada candidato restante se puntúa como
    final_score * (1 - diversity_factor * similarity(candidate, last_selected))
    y se toma el mejor (ante empate, el primero del input).

    Returns:
        Los mismos listings, con ranks nuevos desde 1 y adjusted_score completo
    """
    factor = max(0.0, min(1.0, diversity_factor))
    remaining = list(ranked)
    output: list[RankedListing] = []
    last: Optional[RankedListing] = None

    while remaining:
        best_index = 0
        best_score = None
        for index, candidate in enumerate(remaining):
            penalty = 0.0
            if last is not None:
                penalty = factor * listing_similarity(
                    candidate.listing, last.listing, price_tolerance, area_tolerance
                )
            adjusted = candidate.final_score * (1.0 - penalty)
            if best_score is None or adjusted > best_score:
                best_index, best_score = index, adjusted

        last = remaining.pop(best_index)
        output.append(
            last.model_copy(
                update={"rank": len(output) + 1, "adjusted_score": round(best_score, 2)}
            )
        )

    return output
