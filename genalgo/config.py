"""
Run configuration for the genetic algorithm.

Every option is optional. Options left as None take their defaults when the
config is resolved, so explicit zeros (elite_size=0, mutation_rate=0,
max_generation_count=0) are honored rather than replaced.
"""

from dataclasses import dataclass, replace
from typing import Any, Dict, Optional
import logging
import math

from .exceptions import ConfigurationError
from .genome import (
    FitnessFunction,
    MutationFunction,
    RandomFunction,
    mutate_random_gene,
    random_vector_genome,
    target_sum_fitness,
)

logger = logging.getLogger(__name__)

FITNESS_PROPORTIONAL = 'fitness-proportional'
RANK_PROPORTIONAL = 'rank-proportional'
TOURNAMENT = 'tournament'
SELECTION_METHODS = (FITNESS_PROPORTIONAL, RANK_PROPORTIONAL, TOURNAMENT)
SELECTION_ALIASES = {'fitness-prop': FITNESS_PROPORTIONAL}

ONE_POINT = '1-point'
TWO_POINT = '2-point'
CROSSOVER_METHODS = (ONE_POINT, TWO_POINT)

GENERATION_COUNT = 'generation-count'
FITNESS_STATIC = 'fitness-static'
STOP_CONDITIONS = (GENERATION_COUNT, FITNESS_STATIC)

DEFAULT_POP_SIZE = 100
DEFAULT_MUTATION_RATE = 0.05
DEFAULT_MAX_GENERATION_COUNT = 100
DEFAULT_MAX_STATIC_GENERATIONS = 0


@dataclass
class GAConfig:
    """Configuration for a genetic algorithm run."""
    # Population parameters
    pop_size: int = DEFAULT_POP_SIZE
    elite_size: Optional[int] = None       # default: ceil(pop_size / 2)
    tournament_size: Optional[int] = None  # default: ceil(pop_size / 10)

    # Problem definition
    random_function: Optional[RandomFunction] = None
    mutation_function: Optional[MutationFunction] = None
    fitness_function: Optional[FitnessFunction] = None

    # Operators
    mutation_rate: Optional[float] = None
    selection_method: str = FITNESS_PROPORTIONAL
    crossover_method: str = TWO_POINT

    # Stopping
    stop_condition: str = GENERATION_COUNT
    max_generation_count: Optional[int] = None
    max_static_generations: Optional[int] = None

    # Runtime
    seed: Optional[int] = None
    n_workers: Optional[int] = None
    debug: bool = False

    def resolved(self) -> 'GAConfig':
        """
        Return a validated copy with every derived default filled in.

        Raises:
            ConfigurationError: if any option or combination is invalid
        """
        pop_size = self.pop_size
        if not _is_int(pop_size) or pop_size <= 0:
            raise ConfigurationError(f"pop_size must be a positive integer, got {pop_size!r}")

        elite_size = self.elite_size
        if elite_size is None:
            elite_size = math.ceil(pop_size / 2)
        if not _is_int(elite_size) or not 0 <= elite_size <= pop_size:
            raise ConfigurationError(
                f"elite_size must be in [0, pop_size={pop_size}], got {elite_size!r}"
            )

        tournament_size = self.tournament_size
        if tournament_size is None:
            tournament_size = math.ceil(pop_size / 10)
        if not _is_int(tournament_size) or not 1 <= tournament_size <= pop_size:
            raise ConfigurationError(
                f"tournament_size must be in [1, pop_size={pop_size}], got {tournament_size!r}"
            )

        mutation_rate = self.mutation_rate
        if mutation_rate is None:
            mutation_rate = DEFAULT_MUTATION_RATE
        elif not _is_number(mutation_rate) or mutation_rate != mutation_rate or mutation_rate < 0:
            raise ConfigurationError(f"mutation_rate must be a number >= 0, got {mutation_rate!r}")
        elif mutation_rate >= 1:
            logger.warning(
                "mutation_rate %s is not below 1, using default %s",
                mutation_rate, DEFAULT_MUTATION_RATE,
            )
            mutation_rate = DEFAULT_MUTATION_RATE

        selection_method = SELECTION_ALIASES.get(self.selection_method, self.selection_method)
        if selection_method not in SELECTION_METHODS:
            raise ConfigurationError(
                f"Unknown selection_method {self.selection_method!r}, "
                f"expected one of {SELECTION_METHODS}"
            )
        if self.crossover_method not in CROSSOVER_METHODS:
            raise ConfigurationError(
                f"Unknown crossover_method {self.crossover_method!r}, "
                f"expected one of {CROSSOVER_METHODS}"
            )
        if self.stop_condition not in STOP_CONDITIONS:
            raise ConfigurationError(
                f"Unknown stop_condition {self.stop_condition!r}, "
                f"expected one of {STOP_CONDITIONS}"
            )

        max_generation_count = _non_negative(
            'max_generation_count', self.max_generation_count, DEFAULT_MAX_GENERATION_COUNT
        )
        max_static_generations = _non_negative(
            'max_static_generations', self.max_static_generations, DEFAULT_MAX_STATIC_GENERATIONS
        )

        if self.n_workers is not None and (not _is_int(self.n_workers) or self.n_workers < 1):
            raise ConfigurationError(f"n_workers must be >= 1, got {self.n_workers!r}")

        functions = {
            'random_function': self.random_function or random_vector_genome,
            'mutation_function': self.mutation_function or mutate_random_gene,
            'fitness_function': self.fitness_function or target_sum_fitness,
        }
        for name, fn in functions.items():
            if not callable(fn):
                raise ConfigurationError(f"{name} must be callable, got {type(fn).__name__}")

        return replace(
            self,
            elite_size=elite_size,
            tournament_size=tournament_size,
            mutation_rate=mutation_rate,
            selection_method=selection_method,
            max_generation_count=max_generation_count,
            max_static_generations=max_static_generations,
            **functions,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Scalar options only; pluggable functions are reported by name."""
        return {
            'pop_size': self.pop_size,
            'elite_size': self.elite_size,
            'tournament_size': self.tournament_size,
            'mutation_rate': self.mutation_rate,
            'selection_method': self.selection_method,
            'crossover_method': self.crossover_method,
            'stop_condition': self.stop_condition,
            'max_generation_count': self.max_generation_count,
            'max_static_generations': self.max_static_generations,
            'random_function': _function_name(self.random_function),
            'mutation_function': _function_name(self.mutation_function),
            'fitness_function': _function_name(self.fitness_function),
            'seed': self.seed,
            'n_workers': self.n_workers,
            'debug': self.debug,
        }


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _non_negative(name: str, value: Optional[int], default: int) -> int:
    if value is None:
        return default
    if not _is_int(value) or value < 0:
        raise ConfigurationError(f"{name} must be a non-negative integer, got {value!r}")
    return value


def _function_name(fn: Any) -> Optional[str]:
    if fn is None:
        return None
    return getattr(fn, '__name__', type(fn).__name__)
