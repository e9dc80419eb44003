"""
Main evolutionary optimization engine.

Orchestrates the evolution loop:
1. Build and evaluate generation 0
2. Check the stop condition against the last completed generation
3. Swap buffers and carry elites over
4. Select parents and fill the remaining slots via crossover
5. Mutate non-elite individuals
6. Evaluate non-elite individuals and record statistics
7. Repeat from 2
"""

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Iterable, List, Optional
from multiprocessing import Pool
import logging
import math
import random
import time

import numpy as np

from .config import GAConfig
from .exceptions import ConfigurationError, EvaluationError
from .history import FitnessHistory, GenerationStats, fitness_statistics
from .operators import (
    apply_mutation,
    breed,
    make_crossover,
    make_selection,
    rank_population,
)
from .population import Individual, PopulationStore
from .stopping import make_stop_condition

logger = logging.getLogger(__name__)

INIT = 'init'
EVOLVING = 'evolving'
TERMINATED = 'terminated'


@dataclass
class RunState:
    """Everything a run mutates, owned by one GeneticAlgorithm.run() call."""
    store: PopulationStore
    history: FitnessHistory = field(default_factory=FitnessHistory)
    phase: str = INIT
    generation: int = 0
    max_fitness: float = -math.inf
    rank_table: Optional[np.ndarray] = None
    total_evaluations: int = 0


@dataclass
class EvolutionResult:
    """Results from a completed evolution run."""
    population: List[Individual]
    history: FitnessHistory
    initial_stats: GenerationStats
    generations_completed: int
    total_evaluations: int
    stop_reason: str
    runtime_seconds: float
    config: Dict[str, Any] = field(default_factory=dict)

    def fittest_individual(self) -> Individual:
        """
        Individual with the strictly greatest fitness; lowest index wins ties.

        NaN fitness never wins, matching the recorded max fitness. If no
        individual beats negative infinity the first one is returned.
        """
        best = self.population[0]
        best_fitness = -math.inf
        for individual in self.population:
            if individual.fitness > best_fitness:
                best = individual
                best_fitness = individual.fitness
        return best

    def fittest(self) -> Any:
        """Genome of the fittest individual in the final generation."""
        return self.fittest_individual().genome

    @property
    def max_fitness_history(self) -> List[float]:
        return list(self.history.max_fitness)

    @property
    def mean_fitness_history(self) -> List[float]:
        return list(self.history.mean_fitness)

    @property
    def std_fitness_history(self) -> List[float]:
        return list(self.history.std_fitness)

    def summary(self) -> str:
        """Generate summary string."""
        best = self.fittest_individual()
        lines = [
            f"Generations: {self.generations_completed}",
            f"Total evaluations: {self.total_evaluations}",
            f"Best fitness: {best.fitness:.4f}",
            f"Stop reason: {self.stop_reason}",
            f"Runtime: {self.runtime_seconds:.2f}s",
            f"Fittest genome: {best.genome}",
        ]
        return '\n'.join(lines)


class GeneticAlgorithm:
    """
    Generic genetic algorithm over opaque genomes.

    Strategies are fixed at construction from the config. Each engine runs
    once; create a new one (with the same seed) to repeat a run.
    """

    def __init__(
        self,
        config: Optional[GAConfig] = None,
        rng: Optional[random.Random] = None,
        **overrides: Any,
    ):
        """
        Initialize the engine.

        Args:
            config: Run configuration (defaults to GAConfig())
            rng: Random source for every draw; seeded from config.seed if omitted
            **overrides: GAConfig fields replacing those in config

        Raises:
            ConfigurationError: if the configuration is invalid
        """
        config = config or GAConfig()
        if overrides:
            try:
                config = replace(config, **overrides)
            except TypeError as exc:
                raise ConfigurationError(str(exc)) from exc

        self.config = config.resolved()
        self.rng = rng if rng is not None else random.Random(self.config.seed)

        self.selection = make_selection(self.config)
        self.crossover = make_crossover(self.config)
        self.stop_condition = make_stop_condition(self.config)
        self._has_run = False

    def run(
        self,
        progress_callback: Optional[Callable[[int, GenerationStats], None]] = None,
    ) -> EvolutionResult:
        """
        Run evolution until the stop condition fires.

        Args:
            progress_callback: Optional callback(generation, stats) after each bred generation

        Returns:
            EvolutionResult for the final generation

        Raises:
            EvaluationError: if the fitness function fails
            SelectionExhaustion: if fitness-proportional selection cannot proceed
        """
        if self._has_run:
            raise RuntimeError("GeneticAlgorithm.run() may only be called once per engine")
        self._has_run = True

        start_time = time.time()
        logger.debug("Starting run with %s", self.config.to_dict())

        state = RunState(store=PopulationStore(self.config.pop_size))
        initial_stats = self._initialize(state)

        state.phase = EVOLVING
        while not self.stop_condition.should_stop(state):
            stats = self._next_generation(state)
            if progress_callback:
                progress_callback(state.generation, stats)
        state.phase = TERMINATED

        runtime = time.time() - start_time
        logger.debug(
            "Run finished after %d generations (%s)",
            state.generation, self.stop_condition.describe(),
        )

        return EvolutionResult(
            population=state.store.individuals(),
            history=state.history,
            initial_stats=initial_stats,
            generations_completed=state.generation,
            total_evaluations=state.total_evaluations,
            stop_reason=self.stop_condition.describe(),
            runtime_seconds=runtime,
            config=self.config.to_dict(),
        )

    def _initialize(self, state: RunState) -> GenerationStats:
        """Build and evaluate generation 0. Its stats never enter the history."""
        genomes = [self.config.random_function(self.rng) for _ in range(self.config.pop_size)]
        state.store.initialize(genomes)

        evaluations = self._evaluate(state, range(self.config.pop_size))
        max_fitness, mean, std = fitness_statistics(state.store.fitnesses, elite_size=0)
        state.max_fitness = max_fitness

        return GenerationStats(
            generation=0,
            max_fitness=max_fitness,
            mean_fitness=mean,
            std_fitness=std,
            evaluations=evaluations,
            mutations=0,
        )

    def _next_generation(self, state: RunState) -> GenerationStats:
        """Breed, mutate, evaluate and record one generation."""
        config = self.config
        store = state.store
        elite_size = config.elite_size

        state.generation += 1
        store.swap()
        prev_max_fitness = state.max_fitness

        store.copy_elites(elite_size)

        if elite_size < config.pop_size:
            state.rank_table = (
                rank_population(store.prev_fitnesses) if self.selection.needs_ranks else None
            )
            self.selection.prepare(store.prev_fitnesses, state.rank_table)
            breed(store, elite_size, self.selection, self.crossover, self.rng)

        mutations = apply_mutation(
            store, elite_size, config.mutation_rate, config.mutation_function, self.rng
        )

        if config.debug:
            logger.info("Evaluating fitnesses for generation %d", state.generation)

        evaluations = self._evaluate(state, range(elite_size, config.pop_size))
        if not store.is_complete():
            raise RuntimeError(f"Generation {state.generation} left empty slots")

        max_fitness, mean, std = fitness_statistics(store.fitnesses, elite_size)
        stats = GenerationStats(
            generation=state.generation,
            max_fitness=max_fitness,
            mean_fitness=mean,
            std_fitness=std,
            evaluations=evaluations,
            mutations=mutations,
        )
        state.history.record_generation(stats, prev_max_fitness)
        state.max_fitness = max_fitness
        return stats

    def _evaluate(self, state: RunState, indices: Iterable[int]) -> int:
        """
        Evaluate fitness for the given slots of the current generation.

        Returns:
            Number of evaluations performed
        """
        indices = list(indices)
        if not indices:
            return 0

        store = state.store
        genomes = [store.genomes[i] for i in indices]
        fitness_function = self.config.fitness_function
        n_workers = self.config.n_workers or 1

        if n_workers > 1 and len(genomes) > 1:
            try:
                with Pool(n_workers) as pool:
                    results = pool.map(fitness_function, genomes)
            except Exception as exc:
                raise EvaluationError(
                    f"Fitness evaluation failed in generation {state.generation}: {exc}",
                    generation=state.generation,
                ) from exc
            for index, value in zip(indices, results):
                store.set_fitness(index, _as_fitness(value, state.generation, index))
        else:
            for index, genome in zip(indices, genomes):
                try:
                    value = fitness_function(genome)
                except Exception as exc:
                    raise EvaluationError(
                        f"Fitness function failed for individual {index} "
                        f"of generation {state.generation}: {exc}",
                        generation=state.generation,
                        index=index,
                    ) from exc
                store.set_fitness(index, _as_fitness(value, state.generation, index))

        state.total_evaluations += len(indices)
        return len(indices)


def _as_fitness(value: Any, generation: int, index: int) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise EvaluationError(
            f"Fitness function returned non-numeric {value!r} for individual {index} "
            f"of generation {generation}",
            generation=generation,
            index=index,
        ) from exc
