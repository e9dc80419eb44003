"""
Per-generation fitness statistics.

Records, for every bred generation:
- max fitness
- mean fitness
- population standard deviation of fitness
and keeps the stagnation counter used by the fitness-static stop condition.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Sequence, Tuple
import math

import numpy as np


@dataclass
class GenerationStats:
    """Statistics for a single generation."""
    generation: int
    max_fitness: float
    mean_fitness: float
    std_fitness: float
    evaluations: int
    mutations: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def running_max(values: Sequence[float], seed: float = -math.inf) -> float:
    """Largest value by strict comparison, starting from seed. NaN never wins."""
    best = seed
    for value in values:
        if value > best:
            best = value
    return float(best)


def fitness_statistics(fitnesses: Sequence[float], elite_size: int) -> Tuple[float, float, float]:
    """
    Compute (max, mean, std) for a completed generation.

    The max is seeded from the elites' carried-over fitness (negative
    infinity without elites) and then updated with the evaluated individuals.
    Mean and standard deviation divide by the population size.

    Args:
        fitnesses: Fitness of every individual, elites first
        elite_size: Number of carried-over individuals at the front

    Returns:
        Tuple of max, mean and population standard deviation
    """
    values = np.asarray(fitnesses, dtype=float)
    max_fitness = running_max(values[elite_size:], seed=running_max(values[:elite_size]))
    mean = float(np.sum(values) / len(values))

    if np.all(np.isfinite(values)):
        std = float(np.std(values))
    elif np.any(np.isnan(values)):
        std = math.nan
    elif np.all(values == values[0]):
        std = 0.0
    else:
        # deviation from an infinite mean is unbounded
        std = math.inf
    return max_fitness, mean, std


class FitnessHistory:
    """
    Tracks fitness statistics over bred generations.

    Generation 0 is never recorded here; the engine keeps its statistics
    separately as EvolutionResult.initial_stats.
    """

    def __init__(self):
        self.generations: List[GenerationStats] = []
        self.max_fitness: List[float] = []
        self.mean_fitness: List[float] = []
        self.std_fitness: List[float] = []
        self.static_generations = 0

    def __len__(self) -> int:
        return len(self.generations)

    def record_generation(self, stats: GenerationStats, prev_max_fitness: float) -> None:
        """
        Append a bred generation's statistics.

        The stagnation counter increments whenever max fitness did not drop
        below the previous generation's max. It is never reset.
        """
        self.generations.append(stats)
        self.max_fitness.append(stats.max_fitness)
        self.mean_fitness.append(stats.mean_fitness)
        self.std_fitness.append(stats.std_fitness)

        if prev_max_fitness <= stats.max_fitness:
            self.static_generations += 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            'generations': [g.to_dict() for g in self.generations],
            'max_fitness': list(self.max_fitness),
            'mean_fitness': list(self.mean_fitness),
            'std_fitness': list(self.std_fitness),
            'static_generations': self.static_generations,
        }
