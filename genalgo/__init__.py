"""
genalgo - a generic genetic algorithm engine

Evolves a population of opaque genomes with selection, crossover and
mutation, guided by a caller-supplied fitness function.

Key components:
- GAConfig: Run configuration (population, operators, stop condition)
- GeneticAlgorithm: Main evolutionary loop
- EvolutionResult: Query handle for the final population and fitness history
- Operators: Selection, crossover, and mutation strategies

Example usage:
    from genalgo import GeneticAlgorithm, GAConfig

    # Defaults: eight floats in [-1, 1], fitness favors a sum of 5.6
    config = GAConfig(pop_size=50, selection_method='tournament', seed=7)

    result = GeneticAlgorithm(config).run()

    print(result.fittest())
    print(result.max_fitness_history[-1])
"""

__version__ = "0.1.0"

from .exceptions import (
    GeneticAlgorithmError,
    ConfigurationError,
    EvaluationError,
    SelectionExhaustion,
)
from .config import GAConfig
from .genome import mutate_random_gene, random_vector_genome, target_sum_fitness
from .population import Individual, PopulationStore
from .operators import (
    FitnessProportionalSelection,
    RankProportionalSelection,
    TournamentSelection,
    OnePointCrossover,
    TwoPointCrossover,
    rank_population,
)
from .stopping import GenerationCountStop, FitnessStaticStop
from .history import FitnessHistory, GenerationStats
from .engine import GeneticAlgorithm, EvolutionResult, RunState

__all__ = [
    # Core classes
    'GAConfig',
    'GeneticAlgorithm',
    'EvolutionResult',
    'RunState',
    'Individual',
    'PopulationStore',
    'FitnessHistory',
    'GenerationStats',
    # Errors
    'GeneticAlgorithmError',
    'ConfigurationError',
    'EvaluationError',
    'SelectionExhaustion',
    # Default problem
    'random_vector_genome',
    'mutate_random_gene',
    'target_sum_fitness',
    # Strategies
    'FitnessProportionalSelection',
    'RankProportionalSelection',
    'TournamentSelection',
    'OnePointCrossover',
    'TwoPointCrossover',
    'rank_population',
    'GenerationCountStop',
    'FitnessStaticStop',
]
