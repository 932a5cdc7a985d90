"""
Script para ejecutar una pasada de entrenamiento del optimizador de pesos.

Carga un snapshot de ModelState, agrega muestras nuevas etiquetadas con su
resultado, entrena, loguea la evaluación y escribe el snapshot actualizado.

Uso:
    python -m imoscore.scripts.run_training --state model_state.json
    python -m imoscore.scripts.run_training --state model_state.json --samples new_samples.json
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

import structlog
from pydantic import TypeAdapter, ValidationError

from imoscore.config import get_settings
from imoscore.exceptions import ScoringError
from imoscore.models import ModelState, TrainingSample
from imoscore.optimizer import WeightOptimizer

logger = structlog.get_logger()

_SAMPLES_ADAPTER = TypeAdapter(list[TrainingSample])


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
        force=True,
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def run_training(
    state_path: Path,
    samples_path: Optional[Path] = None,
    output_path: Optional[Path] = None,
) -> dict:
    """
    Ejecuta una pasada de entrenamiento sobre un snapshot persistido.

    Args:
        state_path: JSON de ModelState (si no existe = optimizador nuevo)
        samples_path: Lista JSON de TrainingSample a agregar
        output_path: Dónde escribir el snapshot nuevo (default: state_path)

    Returns:
        Evaluación de los pesos resultantes y si se entrenó
    """
    optimizer = WeightOptimizer()

    if state_path.exists():
        optimizer.load_model_state(ModelState.model_validate_json(state_path.read_text("utf-8")))

    if samples_path is not None:
        samples = _SAMPLES_ADAPTER.validate_json(samples_path.read_text("utf-8"))
        for sample in samples:
            optimizer.add_training_sample(sample)
        logger.info("Muestras agregadas", count=len(samples))

    trained = optimizer.train()
    evaluation = optimizer.evaluate()

    target = output_path or state_path
    target.write_text(optimizer.get_model_state().model_dump_json(indent=2), "utf-8")
    logger.info("Estado del modelo escrito", path=str(target))

    stats = evaluation.model_dump(mode="json")
    stats["trained"] = trained
    return stats


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point del script."""
    parser = argparse.ArgumentParser(description="Entrena los pesos del score de listings")
    parser.add_argument("--state", required=True, type=Path, help="Archivo JSON de ModelState")
    parser.add_argument("--samples", type=Path, help="Lista JSON de muestras nuevas")
    parser.add_argument("--output", type=Path, help="Archivo de salida (default: --state)")
    args = parser.parse_args(argv)

    configure_logging(get_settings().log_level)

    try:
        stats = run_training(args.state, args.samples, args.output)
    except (ScoringError, ValidationError, OSError) as e:
        logger.error("Error en el entrenamiento", error=str(e))
        return 1

    logger.info(
        "Entrenamiento finalizado",
        trained=stats["trained"],
        samples=stats["sample_count"],
        accuracy=round(stats["accuracy"], 4),
        avg_error=round(stats["avg_error"], 2),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
