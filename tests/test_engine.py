"""
Tests for the evolution driver, configuration, population store and history.

Run with: python -m pytest tests/test_engine.py -v
"""

import logging
import math
import random
import string
import sys
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from genalgo import (
    ConfigurationError,
    EvaluationError,
    EvolutionResult,
    FitnessHistory,
    GAConfig,
    GenerationStats,
    GeneticAlgorithm,
    Individual,
    PopulationStore,
    SelectionExhaustion,
)
from genalgo.__main__ import main
from genalgo.history import fitness_statistics, running_max


def _stats(generation, max_fitness):
    return GenerationStats(
        generation=generation,
        max_fitness=max_fitness,
        mean_fitness=max_fitness,
        std_fitness=0.0,
        evaluations=0,
        mutations=0,
    )


class TestConfig:
    """Tests for configuration defaults and validation."""

    def test_defaults(self):
        config = GAConfig().resolved()

        assert config.pop_size == 100
        assert config.elite_size == 50
        assert config.tournament_size == 10
        assert config.mutation_rate == 0.05
        assert config.max_generation_count == 100
        assert config.max_static_generations == 0
        assert config.selection_method == 'fitness-proportional'
        assert config.crossover_method == '2-point'
        assert config.stop_condition == 'generation-count'

    def test_derived_defaults_round_up(self):
        config = GAConfig(pop_size=11).resolved()

        assert config.elite_size == 6
        assert config.tournament_size == 2

    def test_explicit_zeros_are_honored(self):
        config = GAConfig(elite_size=0, mutation_rate=0, max_generation_count=0).resolved()

        assert config.elite_size == 0
        assert config.mutation_rate == 0
        assert config.max_generation_count == 0

    def test_mutation_rate_of_one_falls_back_to_default(self, caplog):
        with caplog.at_level(logging.WARNING, logger='genalgo.config'):
            config = GAConfig(mutation_rate=1.5).resolved()

        assert config.mutation_rate == 0.05
        assert 'mutation_rate' in caplog.text

    def test_selection_alias(self):
        config = GAConfig(selection_method='fitness-prop').resolved()

        assert config.selection_method == 'fitness-proportional'

    @pytest.mark.parametrize('options', [
        {'pop_size': 0},
        {'pop_size': -3},
        {'pop_size': 10, 'elite_size': 11},
        {'pop_size': 10, 'elite_size': -1},
        {'pop_size': 10, 'tournament_size': 11},
        {'pop_size': 10, 'tournament_size': 0},
        {'mutation_rate': -0.1},
        {'mutation_rate': '0.1'},
        {'mutation_rate': [0.1]},
        {'mutation_rate': True},
        {'selection_method': 'roulette'},
        {'crossover_method': '3-point'},
        {'stop_condition': 'never'},
        {'max_generation_count': -1},
        {'n_workers': 0},
        {'fitness_function': 42},
    ])
    def test_invalid_configuration(self, options):
        with pytest.raises(ConfigurationError):
            GeneticAlgorithm(GAConfig(**options))

    def test_unknown_override(self):
        with pytest.raises(ConfigurationError):
            GeneticAlgorithm(bogus_option=1)

    def test_to_dict(self):
        d = GAConfig(pop_size=20).resolved().to_dict()

        assert d['pop_size'] == 20
        assert d['fitness_function'] == 'target_sum_fitness'


class TestPopulationStore:
    """Tests for the double-buffered population store."""

    @pytest.fixture
    def store(self):
        store = PopulationStore(4)
        store.initialize(['a', 'b', 'c', 'd'])
        for i, f in enumerate([1.0, 2.0, 3.0, 4.0]):
            store.set_fitness(i, f)
        return store

    def test_initialize_wrong_size(self):
        with pytest.raises(ValueError):
            PopulationStore(3).initialize(['a'])

    def test_swap_and_copy_elites(self, store):
        store.swap()
        assert not store.is_complete()
        assert store.prev_genomes == ['a', 'b', 'c', 'd']

        store.copy_elites(2)

        assert store.genomes[:2] == ['a', 'b']
        assert list(store.fitnesses[:2]) == [1.0, 2.0]
        assert math.isnan(store.fitnesses[2])

    def test_slot_written_once(self, store):
        store.swap()
        store.write_slot(3, 'x')

        with pytest.raises(RuntimeError):
            store.write_slot(3, 'y')

    def test_replace_requires_filled_slot(self, store):
        store.swap()

        with pytest.raises(RuntimeError):
            store.replace_genome(0, 'x')

    def test_complete_after_all_slots(self, store):
        store.swap()
        for i in range(4):
            store.write_slot(i, str(i))

        assert store.is_complete()
        assert [ind.genome for ind in store.individuals()] == ['0', '1', '2', '3']


class TestHistory:
    """Tests for statistics and the stagnation counter."""

    def test_fitness_statistics(self):
        max_fitness, mean, std = fitness_statistics([1.0, 2.0, 3.0, 4.0], elite_size=0)

        assert max_fitness == 4.0
        assert mean == pytest.approx(2.5)
        assert std == pytest.approx(math.sqrt(1.25))

    def test_max_seeded_from_elites(self):
        max_fitness, _, _ = fitness_statistics([5.0, 1.0, 2.0], elite_size=1)

        assert max_fitness == 5.0

    def test_infinite_fitness_statistics(self):
        _, mean, std = fitness_statistics([1.0, float('inf')], elite_size=0)
        assert mean == float('inf')
        assert std == float('inf')

        _, _, std = fitness_statistics([float('inf'), float('inf')], elite_size=0)
        assert std == 0.0

    def test_running_max_ignores_nan(self):
        assert running_max([float('nan'), 2.0, 1.0]) == 2.0
        assert running_max([]) == float('-inf')

    def test_stagnation_counter_never_resets(self):
        history = FitnessHistory()

        history.record_generation(_stats(1, 1.0), prev_max_fitness=0.5)
        history.record_generation(_stats(2, 0.5), prev_max_fitness=1.0)
        history.record_generation(_stats(3, 0.7), prev_max_fitness=0.5)

        assert history.static_generations == 2
        assert history.max_fitness == [1.0, 0.5, 0.7]
        assert len(history) == 3


class TestEvolutionResult:
    """Tests for the query handle."""

    def test_fittest_ties_resolve_to_lowest_index(self):
        result = EvolutionResult(
            population=[Individual('a', 1.0), Individual('b', 3.0), Individual('c', 3.0)],
            history=FitnessHistory(),
            initial_stats=_stats(0, 3.0),
            generations_completed=0,
            total_evaluations=3,
            stop_reason='test',
            runtime_seconds=0.0,
        )

        assert result.fittest() == 'b'
        assert result.fittest_individual().fitness == 3.0

    def test_fittest_skips_leading_nan(self):
        result = EvolutionResult(
            population=[Individual('a', math.nan), Individual('b', 2.0), Individual('c', 2.0)],
            history=FitnessHistory(),
            initial_stats=_stats(0, 2.0),
            generations_completed=0,
            total_evaluations=3,
            stop_reason='test',
            runtime_seconds=0.0,
        )

        assert result.fittest() == 'b'
        assert result.fittest_individual().fitness == 2.0

    def test_fittest_of_all_nan_population_is_first(self):
        result = EvolutionResult(
            population=[Individual('a', math.nan), Individual('b', math.nan)],
            history=FitnessHistory(),
            initial_stats=_stats(0, -math.inf),
            generations_completed=0,
            total_evaluations=2,
            stop_reason='test',
            runtime_seconds=0.0,
        )

        assert result.fittest() == 'a'


class TestEngine:
    """Tests for full evolution runs."""

    def test_scenario_zero_generations(self):
        result = GeneticAlgorithm(pop_size=4, max_generation_count=0, seed=1).run()

        assert result.generations_completed == 0
        assert result.max_fitness_history == []
        assert result.mean_fitness_history == []
        assert result.std_fitness_history == []
        assert len(result.population) == 4
        assert result.total_evaluations == 4
        assert result.fittest() in [ind.genome for ind in result.population]
        assert result.initial_stats.generation == 0

    def test_history_length_matches_generations(self):
        result = GeneticAlgorithm(pop_size=20, max_generation_count=7, seed=3).run()

        assert result.generations_completed == 7
        assert len(result.max_fitness_history) == 7
        assert len(result.mean_fitness_history) == 7
        assert len(result.std_fitness_history) == 7

    def test_seeded_runs_are_deterministic(self):
        config = GAConfig(
            pop_size=10,
            max_generation_count=5,
            selection_method='fitness-proportional',
            crossover_method='2-point',
            mutation_rate=0,
            seed=42,
        )

        first = GeneticAlgorithm(config).run()
        second = GeneticAlgorithm(config).run()

        assert first.fittest() == second.fittest()
        assert first.max_fitness_history == second.max_fitness_history
        assert first.mean_fitness_history == second.mean_fitness_history
        assert first.std_fitness_history == second.std_fitness_history

    def test_injected_rng(self):
        first = GeneticAlgorithm(pop_size=12, max_generation_count=4, rng=random.Random(9)).run()
        second = GeneticAlgorithm(pop_size=12, max_generation_count=4, rng=random.Random(9)).run()

        assert first.fittest() == second.fittest()

    def test_zero_mutation_rate_never_calls_mutation(self):
        calls = []

        def mutation(genome, rng):
            calls.append(genome)
            return genome

        GeneticAlgorithm(
            pop_size=10, max_generation_count=5, mutation_rate=0,
            mutation_function=mutation, seed=0,
        ).run()

        assert calls == []

    @pytest.mark.parametrize('selection', ['fitness-proportional', 'rank-proportional', 'tournament'])
    @pytest.mark.parametrize('crossover', ['1-point', '2-point'])
    def test_strategy_combinations(self, selection, crossover):
        result = GeneticAlgorithm(
            pop_size=15,
            elite_size=4,
            selection_method=selection,
            crossover_method=crossover,
            max_generation_count=6,
            seed=5,
        ).run()

        assert len(result.population) == 15
        assert len(result.max_fitness_history) == 6
        assert all(std >= 0 for std in result.std_fitness_history)
        best = result.fittest_individual()
        assert best.fitness == max(ind.fitness for ind in result.population)
        assert result.max_fitness_history[-1] == best.fitness

    def test_full_elitism_freezes_population(self):
        created = []

        def random_function(rng):
            genome = [rng.uniform(-1, 1) for _ in range(8)]
            created.append(genome)
            return genome

        result = GeneticAlgorithm(
            pop_size=6, elite_size=6, max_generation_count=4,
            random_function=random_function, seed=2,
        ).run()

        assert all(ind.genome is genome for ind, genome in zip(result.population, created))
        assert result.total_evaluations == 6
        assert len(result.max_fitness_history) == 4

    def test_full_elitism_skips_selection(self):
        # zero aggregate fitness would exhaust roulette selection if it ran
        result = GeneticAlgorithm(
            pop_size=4, elite_size=4, max_generation_count=2,
            fitness_function=lambda g: 0.0, seed=0,
        ).run()

        assert result.max_fitness_history == [0.0, 0.0]

    def test_no_elitism(self):
        result = GeneticAlgorithm(pop_size=9, elite_size=0, max_generation_count=3, seed=8).run()

        assert result.total_evaluations == 9 * 4
        assert len(result.population) == 9

    def test_no_elitism_max_can_regress(self):
        calls = []

        def fitness(genome):
            calls.append(genome)
            return 10.0 if len(calls) <= 6 else 1.0

        result = GeneticAlgorithm(
            pop_size=6, elite_size=0, max_generation_count=1,
            fitness_function=fitness, seed=0,
        ).run()

        assert result.initial_stats.max_fitness == 10.0
        assert result.max_fitness_history == [1.0]
        assert result.max_fitness_history[0] < result.initial_stats.max_fitness
        assert result.history.static_generations == 0

    def test_fitness_static_stop(self):
        result = GeneticAlgorithm(
            pop_size=8,
            stop_condition='fitness-static',
            max_static_generations=3,
            fitness_function=lambda g: 1.0,
            seed=0,
        ).run()

        assert result.generations_completed == 4
        assert result.history.static_generations == 4

    def test_infinite_fitness_is_valid(self):
        def fitness(genome):
            return float('inf') if genome[0] > 0.5 else 1.0

        result = GeneticAlgorithm(pop_size=20, max_generation_count=5, fitness_function=fitness, seed=1).run()

        assert len(result.max_fitness_history) == 5
        assert all(std >= 0 for std in result.std_fitness_history)

    def test_string_genomes(self):
        target = 'GENOME'

        def random_function(rng):
            return ''.join(rng.choice(string.ascii_uppercase) for _ in range(len(target)))

        def mutation_function(genome, rng):
            k = rng.randrange(len(genome))
            return genome[:k] + rng.choice(string.ascii_uppercase) + genome[k + 1:]

        def fitness_function(genome):
            return 1.0 + sum(a == b for a, b in zip(genome, target))

        result = GeneticAlgorithm(
            pop_size=30,
            crossover_method='1-point',
            selection_method='tournament',
            mutation_rate=0.3,
            max_generation_count=20,
            random_function=random_function,
            mutation_function=mutation_function,
            fitness_function=fitness_function,
            seed=4,
        ).run()

        assert isinstance(result.fittest(), str)
        assert len(result.fittest()) == len(target)

    def test_variable_length_genomes(self):
        def random_function(rng):
            return [rng.random() for _ in range(rng.randint(2, 6))]

        result = GeneticAlgorithm(
            pop_size=12,
            max_generation_count=5,
            random_function=random_function,
            fitness_function=lambda g: 1.0 + sum(g),
            seed=6,
        ).run()

        assert all(2 <= len(ind.genome) <= 6 for ind in result.population)

    def test_progress_callback(self):
        seen = []

        GeneticAlgorithm(pop_size=6, max_generation_count=3, seed=0).run(
            progress_callback=lambda gen, stats: seen.append((gen, stats.generation))
        )

        assert seen == [(1, 1), (2, 2), (3, 3)]

    def test_debug_logging(self, caplog):
        with caplog.at_level(logging.INFO, logger='genalgo.engine'):
            GeneticAlgorithm(pop_size=4, max_generation_count=2, debug=True, seed=0).run()

        assert 'Evaluating fitnesses for generation 1' in caplog.text
        assert 'Evaluating fitnesses for generation 2' in caplog.text

    def test_run_only_once(self):
        engine = GeneticAlgorithm(pop_size=4, max_generation_count=1, seed=0)
        engine.run()

        with pytest.raises(RuntimeError):
            engine.run()

    def test_parallel_evaluation_matches_sequential(self):
        config = GAConfig(pop_size=10, max_generation_count=3, seed=21)

        sequential = GeneticAlgorithm(config).run()
        parallel = GeneticAlgorithm(config, n_workers=2).run()

        assert parallel.fittest() == sequential.fittest()
        assert parallel.max_fitness_history == sequential.max_fitness_history


class TestEngineErrors:
    """Tests for error propagation."""

    def test_fitness_failure_in_initial_generation(self):
        def fitness(genome):
            raise ValueError('boom')

        with pytest.raises(EvaluationError) as excinfo:
            GeneticAlgorithm(pop_size=4, fitness_function=fitness).run()

        assert excinfo.value.generation == 0
        assert excinfo.value.index == 0
        assert isinstance(excinfo.value.__cause__, ValueError)

    def test_fitness_failure_in_bred_generation(self):
        calls = []

        def fitness(genome):
            calls.append(genome)
            if len(calls) > 6:
                raise RuntimeError('evaluator crashed')
            return 1.0

        with pytest.raises(EvaluationError) as excinfo:
            GeneticAlgorithm(pop_size=6, elite_size=2, fitness_function=fitness, seed=0).run()

        assert excinfo.value.generation == 1
        assert excinfo.value.index == 2

    def test_non_numeric_fitness(self):
        with pytest.raises(EvaluationError):
            GeneticAlgorithm(pop_size=4, fitness_function=lambda g: 'high').run()

    def test_selection_exhaustion(self):
        with pytest.raises(SelectionExhaustion):
            GeneticAlgorithm(
                pop_size=6, elite_size=2, fitness_function=lambda g: 0.0, seed=0,
            ).run()

    def test_zero_fitness_is_fine_for_tournament(self):
        result = GeneticAlgorithm(
            pop_size=6, selection_method='tournament', max_generation_count=2,
            fitness_function=lambda g: 0.0, seed=0,
        ).run()

        assert result.max_fitness_history == [0.0, 0.0]


class TestCommandLine:
    """Tests for python -m genalgo."""

    def test_main(self, capsys):
        code = main(['--population', '10', '--generations', '3', '--seed', '1'])

        assert code == 0
        out = capsys.readouterr().out
        assert 'Generations: 3' in out
        assert 'Best fitness' in out

    def test_main_invalid_config(self, capsys):
        code = main(['--population', '0'])

        assert code == 1
        assert 'pop_size' in capsys.readouterr().err
