"""
Modelo de Listing normalizado

Input de sólo lectura que produce la capa de conectores/normalización.
Cualquier campo salvo el id puede faltar: los datos faltantes bajan la
confianza del score pero nunca rompen el scoring.
"""

from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class Listing(BaseModel):
    """
    Propiedad tal como la ve el motor de scoring.

    Acepta los nombres de campo en inglés y también las claves
    administrativas portuguesas de los conectores de portales
    (distrito, concelho, freguesia, price_main, first_seen, last_seen).
    """

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    # Identificación
    id: str = Field(..., description="ID del listing en el store")

    # Ubicación
    district: Optional[str] = Field(
        None, validation_alias=AliasChoices("district", "distrito"), description="Distrito"
    )
    municipality: Optional[str] = Field(
        None, validation_alias=AliasChoices("municipality", "concelho"), description="Concelho"
    )
    parish: Optional[str] = Field(
        None, validation_alias=AliasChoices("parish", "freguesia"), description="Freguesia"
    )
    lat: Optional[float] = Field(None, ge=-90, le=90, description="Latitud")
    lon: Optional[float] = Field(
        None, ge=-180, le=180, validation_alias=AliasChoices("lon", "lng"), description="Longitud"
    )

    # Características físicas
    typology: Optional[str] = Field(None, description="Tipología: T0, T1, T2...")
    area_m2: Optional[float] = Field(None, ge=0, description="Superficie en m²")
    bedrooms: Optional[int] = Field(None, ge=0, description="Cantidad de dormitorios")
    bathrooms: Optional[int] = Field(None, ge=0, description="Cantidad de baños")
    features: dict[str, bool] = Field(
        default_factory=dict, description="Amenities booleanos: {'elevator': True, ...}"
    )

    # Datos de mercado
    price: Optional[float] = Field(
        None, ge=0, validation_alias=AliasChoices("price", "price_main"), description="Precio en EUR"
    )
    portal_count: Optional[int] = Field(
        None, ge=0, description="Cantidad de portales que publican el listing"
    )
    first_seen_at: Optional[datetime] = Field(
        None,
        validation_alias=AliasChoices("first_seen_at", "first_seen"),
        description="Primera vez que un conector vio el listing",
    )
    last_seen_at: Optional[datetime] = Field(
        None,
        validation_alias=AliasChoices("last_seen_at", "last_seen"),
        description="Última vez que un conector vio el listing",
    )
    availability_probability: Optional[float] = Field(
        None, ge=0, le=1, description="Probabilidad de que el listing siga disponible"
    )

    @property
    def has_coordinates(self) -> bool:
        return self.lat is not None and self.lon is not None
