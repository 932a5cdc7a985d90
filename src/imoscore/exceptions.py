"""
Errores del scoring.

Sólo los pesos inválidos son fallas duras. Datos faltantes, inputs
vacíos y sets de entrenamiento chicos degradan a resultados neutros.
"""


class ScoringError(Exception):
    """Clase base de los errores de scoring."""

    code: str = "SCORING_ERROR"


class InvalidWeightsError(ScoringError, ValueError):
    """Pesos negativos, mal formados o que no suman 1.0 dentro de la tolerancia."""

    code = "INVALID_WEIGHTS"

    def __init__(self, message: str, weights: object = None):
        super().__init__(message)
        self.weights = weights
