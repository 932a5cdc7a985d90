"""
Configuración centralizada del sistema.
Carga variables de entorno y define los defaults de construcción
del motor de scoring, el servicio de ranking y el optimizador de pesos.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Encontrar la raíz del proyecto (donde está el .env)
# config.py -> imoscore/ -> src/ -> project root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Configuración principal de la aplicación."""

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Pesos por defecto (deben sumar 1.0)
    default_weight_compatibility: float = Field(
        0.4, ge=0.0, le=1.0, description="Peso por defecto del score de compatibilidad"
    )
    default_weight_behavior: float = Field(
        0.3, ge=0.0, le=1.0, description="Peso por defecto del score de comportamiento"
    )
    default_weight_temporal: float = Field(
        0.3, ge=0.0, le=1.0, description="Peso por defecto del score temporal"
    )
    weight_sum_tolerance: float = Field(
        1e-3, gt=0.0, description="Desvío permitido de la suma de pesos respecto de 1.0"
    )

    # Scoring
    default_search_radius_km: float = Field(
        10.0, gt=0.0, description="Radio de búsqueda cuando el criterio trae lat/lon sin radio"
    )
    max_reasons: int = Field(5, ge=1, description="Máximo de razones por score")

    # Ranking / diversidad
    diversity_factor: float = Field(
        0.3, ge=0.0, le=1.0, description="Penalización por defecto a listings similares consecutivos"
    )
    diversity_price_tolerance: float = Field(
        0.10, ge=0.0, description="Diferencia relativa de precio bajo la cual dos listings son similares"
    )
    diversity_area_tolerance: float = Field(
        0.15, ge=0.0, description="Diferencia relativa de superficie bajo la cual dos listings son similares"
    )

    # Optimizador de pesos
    optimizer_min_samples: int = Field(
        50, ge=1, description="Muestras necesarias antes de que el entrenamiento ajuste pesos"
    )
    optimizer_learning_rate: float = Field(
        0.1, ge=0.0, le=1.0, description="Learning rate del ajuste por correlación"
    )
    optimizer_min_weight: float = Field(
        0.01, gt=0.0, lt=1.0 / 3, description="Piso aplicado a cada peso tras el ajuste"
    )
    optimizer_auto_train_interval: int = Field(
        0, ge=0, description="Entrenar cada N muestras agregadas una vez alcanzado min_samples (0 = off)"
    )

    # Logging
    log_level: str = Field("INFO", description="Nivel de logging")


@lru_cache
def get_settings() -> Settings:
    """Obtiene la configuración cacheada."""
    return Settings()
