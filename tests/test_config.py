import pytest
from pydantic import ValidationError

from imoscore.config import Settings, get_settings
from imoscore.optimizer import WeightOptimizer
from imoscore.ranking import RankingService


def test_defaults():
    settings = Settings()

    assert settings.default_weight_compatibility == 0.4
    assert settings.default_weight_behavior == 0.3
    assert settings.default_weight_temporal == 0.3
    assert settings.max_reasons == 5
    assert settings.diversity_factor == 0.3
    assert settings.optimizer_min_samples == 50
    assert settings.optimizer_learning_rate == 0.1
    assert settings.optimizer_auto_train_interval == 0


def test_get_settings_is_cached():
    assert get_settings() is get_settings()


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("OPTIMIZER_MIN_SAMPLES", "7")
    monkeypatch.setenv("diversity_factor", "0.5")

    settings = Settings()
    assert settings.optimizer_min_samples == 7
    assert WeightOptimizer(settings=settings).min_samples == 7
    assert RankingService(settings=settings).diversity_factor == 0.5


def test_explicit_arguments_beat_settings():
    settings = Settings(optimizer_min_samples=7, diversity_factor=0.5)

    assert WeightOptimizer(min_samples=3, settings=settings).min_samples == 3
    assert RankingService(settings=settings, diversity_factor=0.1).diversity_factor == 0.1


@pytest.mark.parametrize(
    "field,value",
    [
        ("diversity_factor", 1.5),
        ("optimizer_min_weight", 0.5),
        ("max_reasons", 0),
        ("default_weight_behavior", -0.1),
    ],
)
def test_out_of_range_values_rejected(field, value):
    with pytest.raises(ValidationError):
        Settings(**{field: value})
