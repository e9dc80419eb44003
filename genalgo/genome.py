"""
Genome and fitness contracts, plus the default problem.

The engine treats genomes as opaque values. Only three caller-supplied
functions ever look inside one:

- random_function(rng) -> genome            builds an initial individual
- mutation_function(genome, rng) -> genome  mutates unconditionally when called
- fitness_function(genome) -> float         higher is better

The defaults below encode the classic toy problem: eight floats in [-1, 1]
whose sum should equal 5.6.
"""

import random
from typing import Any, Callable, List

# Caller-supplied function signatures
RandomFunction = Callable[[random.Random], Any]
MutationFunction = Callable[[Any, random.Random], Any]
FitnessFunction = Callable[[Any], float]

DEFAULT_GENOME_LENGTH = 8
DEFAULT_TARGET_SUM = 5.6
GENE_MIN = -1.0
GENE_MAX = 1.0


def random_vector_genome(
    rng: random.Random,
    length: int = DEFAULT_GENOME_LENGTH,
) -> List[float]:
    """Create a genome of `length` floats drawn uniformly from [-1, 1]."""
    return [rng.uniform(GENE_MIN, GENE_MAX) for _ in range(length)]


def mutate_random_gene(genome: List[float], rng: random.Random) -> List[float]:
    """
    Replace one uniformly chosen gene with a fresh value in [-1, 1].

    Mutates in place and returns the genome. An empty genome is returned
    unchanged.
    """
    if len(genome) == 0:
        return genome
    k = rng.randrange(len(genome))
    genome[k] = rng.uniform(GENE_MIN, GENE_MAX)
    return genome


def target_sum_fitness(genome: List[float]) -> float:
    """
    One over the absolute distance of the first eight genes' sum to 5.6.

    An exact hit returns positive infinity, which is a valid maximal fitness.
    """
    error = abs(sum(genome[:DEFAULT_GENOME_LENGTH]) - DEFAULT_TARGET_SUM)
    if error == 0:
        return float('inf')
    return 1.0 / error
