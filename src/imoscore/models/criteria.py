"""
Criterios de búsqueda

Todos los campos son opcionales. Un SearchCriteria vacío es válido y
da un score de compatibilidad neutro: un criterio ausente no se
puede incumplir.
"""

from typing import Optional

from pydantic import BaseModel, Field, model_validator


class LocationCriteria(BaseModel):
    """Ubicación buscada: áreas administrativas y/o un punto con radio."""

    district: Optional[str] = Field(None, description="Distrito")
    municipality: Optional[str] = Field(None, description="Concelho")
    parish: Optional[str] = Field(None, description="Freguesia")
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lon: Optional[float] = Field(None, ge=-180, le=180)
    radius_km: Optional[float] = Field(None, gt=0, description="Radio de búsqueda en km")

    @property
    def has_point(self) -> bool:
        return self.lat is not None and self.lon is not None

    def is_empty(self) -> bool:
        return not any([self.district, self.municipality, self.parish, self.has_point])


class PriceRange(BaseModel):
    """Rango de precio en EUR, opcionalmente con un precio preferido."""

    min: Optional[float] = Field(None, ge=0, description="Precio mínimo")
    max: Optional[float] = Field(None, ge=0, description="Precio máximo")
    preferred: Optional[float] = Field(None, gt=0, description="Precio preferido")

    @model_validator(mode="after")
    def _check_bounds(self) -> "PriceRange":
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError("price.min no puede ser mayor que price.max")
        return self

    def is_empty(self) -> bool:
        return self.min is None and self.max is None and self.preferred is None


class Characteristics(BaseModel):
    """Características físicas buscadas (mínimos y máximos)."""

    bedrooms: Optional[int] = Field(None, ge=0, description="Mínimo de dormitorios")
    bathrooms: Optional[int] = Field(None, ge=0, description="Mínimo de baños")
    area_min: Optional[float] = Field(None, ge=0, description="Superficie mínima m²")
    area_max: Optional[float] = Field(None, ge=0, description="Superficie máxima m²")
    features: list[str] = Field(
        default_factory=list, description="Amenities requeridos: ['elevator', 'parking']"
    )

    def is_empty(self) -> bool:
        return (
            self.bedrooms is None
            and self.bathrooms is None
            and self.area_min is None
            and self.area_max is None
            and not self.features
        )


class SearchCriteria(BaseModel):
    """Combinación de ubicación, precio, tipología y características."""

    location: Optional[LocationCriteria] = None
    price: Optional[PriceRange] = None
    typology: Optional[str] = Field(None, description="Tipología buscada: T0, T1, T2...")
    characteristics: Optional[Characteristics] = None

    def is_empty(self) -> bool:
        return (
            (self.location is None or self.location.is_empty())
            and (self.price is None or self.price.is_empty())
            and not self.typology
            and (self.characteristics is None or self.characteristics.is_empty())
        )
