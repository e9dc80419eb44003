"""
Evolutionary operators: selection, crossover, and mutation.

These operators drive the evolutionary search by:
- Selecting parents from the previous generation
- Combining parent genomes through crossover
- Introducing variation through mutation

Selection strategies pick indices into the previous generation's fitness
array. Crossover strategies only rely on len(), slicing and concatenation, so
any sequence-like genome (list, tuple, str, 1-D numpy array) works.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, Sequence, Tuple
import random

import numpy as np

from .config import (
    FITNESS_PROPORTIONAL,
    ONE_POINT,
    RANK_PROPORTIONAL,
    TOURNAMENT,
    TWO_POINT,
    GAConfig,
)
from .exceptions import ConfigurationError, SelectionExhaustion
from .population import PopulationStore


# =============================================================================
# Selection Operators
# =============================================================================

def rank_population(fitnesses: Sequence[float]) -> np.ndarray:
    """
    Rank individuals from worst (0) to best (n - 1).

    Ties keep index order (stable sort). NaN fitness ranks below everything.

    Args:
        fitnesses: Fitness of every individual in a generation

    Returns:
        Array where ranks[i] is the rank of individual i
    """
    values = np.asarray(fitnesses, dtype=float)
    values = np.where(np.isnan(values), -np.inf, values)
    order = np.argsort(values, kind='stable')
    ranks = np.empty(len(values), dtype=int)
    ranks[order] = np.arange(len(values))
    return ranks


class SelectionStrategy(ABC):
    """
    Picks parent indices from the previous generation.

    prepare() is called once per generation before any select() call.
    """
    name = ''
    needs_ranks = False

    def __init__(self):
        self._fitnesses = np.empty(0)

    def prepare(self, fitnesses: Sequence[float], ranks: Optional[np.ndarray] = None) -> None:
        self._fitnesses = np.asarray(fitnesses, dtype=float)

    @abstractmethod
    def select(self, rng: random.Random) -> int:
        """Return the index of one parent."""

    def can_select_distinct(self) -> bool:
        """Whether two different indices can ever be drawn."""
        return len(self._fitnesses) >= 2

    def select_pair(self, rng: random.Random) -> Tuple[int, int]:
        """
        Select two parents, resampling the second while it equals the first.

        When fewer than two individuals are selectable the pair may repeat.
        """
        first = self.select(rng)
        second = self.select(rng)
        if self.can_select_distinct():
            while second == first:
                second = self.select(rng)
        return first, second


class FitnessProportionalSelection(SelectionStrategy):
    """
    Roulette-wheel selection.

    Draws r uniformly in [0, sum of fitnesses) and returns the first index
    whose cumulative fitness exceeds r. Requires a positive, non-NaN
    aggregate fitness. If any fitness is +inf, the draw is uniform over the
    infinite individuals.

    Individuals whose slice of the wheel is empty (negative fitness, or a
    fitness too small to move the float cumulative sum) are never drawn and
    do not count towards distinct parent pairs.
    """
    name = FITNESS_PROPORTIONAL

    def prepare(self, fitnesses: Sequence[float], ranks: Optional[np.ndarray] = None) -> None:
        super().prepare(fitnesses, ranks)
        total = float(np.sum(self._fitnesses))
        if np.isnan(total) or total <= 0:
            raise SelectionExhaustion(
                f"Fitness-proportional selection needs a positive aggregate fitness, got {total}"
            )
        self._total = total
        self._cumulative = np.cumsum(self._fitnesses)
        self._infinite = np.flatnonzero(np.isposinf(self._fitnesses))

        # index i wins for r in [max(0, cum[:i]), min(cum[i], total)); negative
        # fitness and float absorption can leave that interval empty
        floor = np.maximum.accumulate(np.concatenate(([0.0], self._cumulative[:-1])))
        upper = np.minimum(self._cumulative, total)
        self._reachable = np.flatnonzero(upper > floor)

    def select(self, rng: random.Random) -> int:
        if self._infinite.size:
            return int(self._infinite[rng.randrange(self._infinite.size)])
        r = rng.random() * self._total
        hits = np.flatnonzero(self._cumulative > r)
        if hits.size == 0:
            # r rounded up to the total
            return len(self._fitnesses) - 1
        return int(hits[0])

    def can_select_distinct(self) -> bool:
        if self._infinite.size:
            return self._infinite.size >= 2
        return self._reachable.size >= 2


class RankProportionalSelection(SelectionStrategy):
    """
    Rank-based selection (linear ranking).

    The individual of rank k is drawn with probability (k + 1) / T where
    T = n(n + 1) / 2. Selection pressure does not depend on the fitness scale.
    """
    name = RANK_PROPORTIONAL
    needs_ranks = True

    def prepare(self, fitnesses: Sequence[float], ranks: Optional[np.ndarray] = None) -> None:
        super().prepare(fitnesses, ranks)
        if ranks is None:
            ranks = rank_population(self._fitnesses)
        n = len(self._fitnesses)
        # index of the individual holding each rank
        self._by_rank = np.argsort(ranks)
        self._cumulative = np.cumsum(np.arange(1, n + 1))
        self._total = n * (n + 1) / 2

    def select(self, rng: random.Random) -> int:
        r = rng.random() * self._total
        k = int(np.searchsorted(self._cumulative, r, side='right'))
        k = min(k, len(self._by_rank) - 1)
        return int(self._by_rank[k])


class TournamentSelection(SelectionStrategy):
    """
    Tournament selection with replacement.

    Draws tournament_size indices uniformly and keeps the fittest; the first
    drawn wins ties. Larger tournaments increase selection pressure.
    """
    name = TOURNAMENT

    def __init__(self, tournament_size: int):
        super().__init__()
        self.tournament_size = tournament_size

    def select(self, rng: random.Random) -> int:
        n = len(self._fitnesses)
        best_index = None
        best_fitness = -np.inf
        for _ in range(self.tournament_size):
            index = rng.randrange(n)
            if best_index is None:
                best_index = index
            if self._fitnesses[index] > best_fitness:
                best_fitness = self._fitnesses[index]
                best_index = index
        return best_index


def make_selection(config: GAConfig) -> SelectionStrategy:
    """Build the selection strategy named in a resolved config."""
    if config.selection_method == FITNESS_PROPORTIONAL:
        return FitnessProportionalSelection()
    if config.selection_method == RANK_PROPORTIONAL:
        return RankProportionalSelection()
    if config.selection_method == TOURNAMENT:
        return TournamentSelection(config.tournament_size)
    raise ConfigurationError(f"Unknown selection_method {config.selection_method!r}")


# =============================================================================
# Crossover Operators
# =============================================================================

class CrossoverStrategy(ABC):
    """Combines two parent genomes into two new children."""
    name = ''

    @abstractmethod
    def crossover_points(self, len_a: int, len_b: int, rng: random.Random) -> Tuple[int, ...]:
        """Pick crossover points in [0, min(len_a, len_b))."""

    @abstractmethod
    def cross(self, parent_a: Any, parent_b: Any, rng: random.Random) -> Tuple[Any, Any]:
        """Return two children; parents are left untouched."""


class OnePointCrossover(CrossoverStrategy):
    """
    Single-point crossover.

    Children swap tails at the crossover point and so inherit the length of
    the parent whose tail they took.

    Example:
        Parent A: [a0, a1, a2]
        Parent B: [b0, b1, b2, b3]
        Crossover at 1:
        Child A: [a0, b1, b2, b3]
        Child B: [b0, a1, a2]
    """
    name = ONE_POINT

    def crossover_points(self, len_a: int, len_b: int, rng: random.Random) -> Tuple[int]:
        shortest = min(len_a, len_b)
        return (_draw_point(shortest, rng),)

    def cross(self, parent_a: Any, parent_b: Any, rng: random.Random) -> Tuple[Any, Any]:
        (point,) = self.crossover_points(len(parent_a), len(parent_b), rng)
        child_a = _join(parent_a[:point], parent_b[point:])
        child_b = _join(parent_b[:point], parent_a[point:])
        return child_a, child_b


class TwoPointCrossover(CrossoverStrategy):
    """
    Two-point crossover.

    Children exchange the middle segment [p1, p2) and keep their own parent's
    prefix, suffix and length.

    Example:
        Parent A: [a0, a1, a2, a3]
        Parent B: [b0, b1, b2]
        Points (1, 2):
        Child A: [a0, b1, a2, a3]
        Child B: [b0, a1, b2]
    """
    name = TWO_POINT

    def crossover_points(self, len_a: int, len_b: int, rng: random.Random) -> Tuple[int, int]:
        shortest = min(len_a, len_b)
        p1 = _draw_point(shortest, rng)
        p2 = _draw_point(shortest, rng)
        if shortest > 1:
            while p1 == p2:
                p2 = _draw_point(shortest, rng)
        if p1 > p2:
            p1, p2 = p2, p1
        return p1, p2

    def cross(self, parent_a: Any, parent_b: Any, rng: random.Random) -> Tuple[Any, Any]:
        p1, p2 = self.crossover_points(len(parent_a), len(parent_b), rng)
        child_a = _join(parent_a[:p1], parent_b[p1:p2], parent_a[p2:])
        child_b = _join(parent_b[:p1], parent_a[p1:p2], parent_b[p2:])
        return child_a, child_b


def make_crossover(config: GAConfig) -> CrossoverStrategy:
    """Build the crossover strategy named in a resolved config."""
    if config.crossover_method == ONE_POINT:
        return OnePointCrossover()
    if config.crossover_method == TWO_POINT:
        return TwoPointCrossover()
    raise ConfigurationError(f"Unknown crossover_method {config.crossover_method!r}")


# =============================================================================
# Breeding and Mutation
# =============================================================================

def breed(
    store: PopulationStore,
    elite_size: int,
    selection: SelectionStrategy,
    crossover: CrossoverStrategy,
    rng: random.Random,
) -> None:
    """
    Fill slots [elite_size, pop_size) with children of the previous generation.

    Children are written in pairs; with an odd number of slots the second
    child of the last pair is dropped.
    """
    for i in range(elite_size, store.pop_size, 2):
        a, b = selection.select_pair(rng)
        child_a, child_b = crossover.cross(store.prev_genomes[a], store.prev_genomes[b], rng)
        store.write_slot(i, child_a)
        if i + 1 < store.pop_size:
            store.write_slot(i + 1, child_b)


def apply_mutation(
    store: PopulationStore,
    elite_size: int,
    mutation_rate: float,
    mutation_function: Callable[[Any, random.Random], Any],
    rng: random.Random,
) -> int:
    """
    Mutate each non-elite individual with probability mutation_rate.

    Returns:
        Number of individuals mutated
    """
    mutated = 0
    for i in range(elite_size, store.pop_size):
        if rng.random() < mutation_rate:
            store.replace_genome(i, mutation_function(store.genomes[i], rng))
            mutated += 1
    return mutated


# =============================================================================
# Helper Functions
# =============================================================================

def _draw_point(shortest: int, rng: random.Random) -> int:
    """Uniform point in [0, shortest); 0 when a parent is empty."""
    if shortest <= 0:
        return 0
    return rng.randrange(shortest)


def _join(*parts: Any) -> Any:
    """Concatenate genome slices, preserving the genome's sequence type."""
    if isinstance(parts[0], np.ndarray):
        return np.concatenate(parts)
    joined = parts[0]
    for part in parts[1:]:
        joined = joined + part
    return joined
