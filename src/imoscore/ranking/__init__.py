"""
Servicio de ranking.

Ordena, pagina, agrupa y diversifica listings scoreados.
"""

from imoscore.ranking.diversity import diversify, listing_similarity
from imoscore.ranking.service import RankingService

__all__ = [
    "RankingService",
    "diversify",
    "listing_similarity",
]
