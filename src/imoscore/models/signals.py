"""
Señales por listing que provee el colaborador de analytics.

Ambas son opcionales al momento del scoring: sin UserBehavior no hay
señal de comportamiento, sin TemporalFactors el score temporal se
deriva del propio listing.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class Interactions(BaseModel):
    """Flags de interacción de un usuario con un listing."""

    saved: bool = False
    contacted: bool = False
    shared: bool = False
    scheduled_visit: bool = False

    def count(self) -> int:
        return sum([self.saved, self.contacted, self.shared, self.scheduled_visit])


class UserBehavior(BaseModel):
    """Engagement observado con un listing."""

    listing_id: Optional[str] = Field(None, description="Listing al que refiere el comportamiento")
    views: int = Field(0, ge=0, description="Cantidad de vistas")
    total_view_time: float = Field(0.0, ge=0, description="Tiempo de vista acumulado en segundos")
    interactions: Interactions = Field(default_factory=Interactions)
    last_viewed_at: Optional[datetime] = Field(None, description="Timestamp de la última vista")

    def has_signal(self) -> bool:
        return bool(self.views or self.total_view_time or self.interactions.count())


class TemporalFactors(BaseModel):
    """Inputs de sensibilidad temporal de un listing."""

    days_on_market: Optional[float] = Field(None, ge=0, description="Días desde que se vio por primera vez")
    is_new_listing: Optional[bool] = Field(None, description="Publicado recientemente")
    availability_probability: Optional[float] = Field(None, ge=0, le=1)
    recent_price_drop_pct: Optional[float] = Field(
        None, ge=0, description="Última baja de precio, en porcentaje"
    )
    price_changes: Optional[int] = Field(None, ge=0, description="Cantidad de cambios de precio")
