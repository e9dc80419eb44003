"""
Exceptions raised by the genetic algorithm engine.

All errors are fatal to a run: the engine never retries and never hands out
a partially populated result.
"""

from typing import Optional


class GeneticAlgorithmError(Exception):
    """Base for all engine exceptions."""

    pass


class ConfigurationError(GeneticAlgorithmError, ValueError):
    """Invalid parameter combination, raised before any generation runs."""

    pass


class EvaluationError(GeneticAlgorithmError):
    """The fitness function failed for a genome."""

    def __init__(
        self,
        message: str,
        generation: Optional[int] = None,
        index: Optional[int] = None,
    ):
        super().__init__(message)
        self.generation = generation
        self.index = index


class SelectionExhaustion(GeneticAlgorithmError):
    """Fitness-proportional selection cannot proceed (aggregate fitness <= 0 or NaN)."""

    pass
