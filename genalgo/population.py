"""
Population storage for the evolution loop.

Generations are double-buffered: the previous generation is read-only
breeding material while the current one is filled slot by slot. Elites occupy
[0, elite_size) of the current buffer and bred children fill the rest.
"""

from dataclasses import dataclass
from typing import Any, List, Sequence

import numpy as np


@dataclass(frozen=True)
class Individual:
    """A genome together with its fitness."""
    genome: Any
    fitness: float


class _EmptySlot:
    def __repr__(self) -> str:
        return '<empty>'


EMPTY = _EmptySlot()


class PopulationStore:
    """
    Current and previous generation buffers with parallel fitness arrays.

    Owned by a single driver; nothing here is thread-safe.
    """

    def __init__(self, pop_size: int):
        self.pop_size = pop_size
        self.genomes: List[Any] = []
        self.fitnesses = np.full(pop_size, np.nan)
        self.prev_genomes: List[Any] = []
        self.prev_fitnesses = np.full(pop_size, np.nan)
        self._filled = np.zeros(pop_size, dtype=bool)

    def initialize(self, genomes: Sequence[Any]) -> None:
        """Install generation 0. Fitnesses stay unset until evaluated."""
        if len(genomes) != self.pop_size:
            raise ValueError(
                f"Initial population has {len(genomes)} genomes, expected {self.pop_size}"
            )
        self.genomes = list(genomes)
        self.fitnesses = np.full(self.pop_size, np.nan)
        self._filled = np.ones(self.pop_size, dtype=bool)

    def swap(self) -> None:
        """Retire the current generation as previous and start an empty one."""
        self.prev_genomes = self.genomes
        self.prev_fitnesses = self.fitnesses
        self.genomes = [EMPTY] * self.pop_size
        self.fitnesses = np.full(self.pop_size, np.nan)
        self._filled = np.zeros(self.pop_size, dtype=bool)

    def copy_elites(self, elite_size: int) -> None:
        """
        Carry [0, elite_size) of the previous generation over verbatim.

        Positional, not fitness-ranked: the elites are whatever sits at the
        front of the previous buffer. Fitness is copied, not re-evaluated.
        """
        for i in range(elite_size):
            self.write_slot(i, self.prev_genomes[i])
        self.fitnesses[:elite_size] = self.prev_fitnesses[:elite_size]

    def write_slot(self, index: int, genome: Any) -> None:
        """Place a genome into an empty slot of the current generation."""
        if not 0 <= index < self.pop_size:
            raise IndexError(f"Slot {index} outside population of {self.pop_size}")
        if self._filled[index]:
            raise RuntimeError(f"Slot {index} already filled this generation")
        self.genomes[index] = genome
        self._filled[index] = True

    def replace_genome(self, index: int, genome: Any) -> None:
        """Overwrite an already-filled slot (mutation)."""
        if not self._filled[index]:
            raise RuntimeError(f"Slot {index} has not been filled yet")
        self.genomes[index] = genome

    def set_fitness(self, index: int, fitness: float) -> None:
        self.fitnesses[index] = fitness

    def is_complete(self) -> bool:
        """True when every slot of the current generation holds a genome."""
        return len(self.genomes) == self.pop_size and bool(self._filled.all())

    def individuals(self) -> List[Individual]:
        return [
            Individual(genome=g, fitness=float(f))
            for g, f in zip(self.genomes, self.fitnesses)
        ]
