"""
Run the default problem from the command line.

Evolves eight numbers in [-1, 1] whose sum should be 5.6.

Usage:
    python -m genalgo [options]

Options:
    --population N        Population size (default: 100)
    --generations N       Max generations for generation-count (default: 100)
    --selection METHOD    fitness-proportional, rank-proportional or tournament
    --crossover METHOD    1-point or 2-point
    --elite-size N        Individuals carried over unchanged
    --tournament-size N   Draws per tournament
    --mutation-rate R     Per-individual mutation probability
    --stop-condition C    generation-count or fitness-static
    --max-static N        Limit for fitness-static
    --seed N              Random seed for reproducibility
    --debug               Log per-generation progress
"""

import argparse
import logging
import sys

from .config import CROSSOVER_METHODS, SELECTION_METHODS, STOP_CONDITIONS, GAConfig
from .engine import GeneticAlgorithm
from .exceptions import GeneticAlgorithmError


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog='genalgo',
        description='Run the genetic algorithm on the default target-sum problem'
    )
    parser.add_argument(
        '--population', type=int, default=100,
        help='Population size (default: 100)'
    )
    parser.add_argument(
        '--generations', type=int, default=None,
        help='Max generations for generation-count (default: 100)'
    )
    parser.add_argument(
        '--selection', choices=SELECTION_METHODS, default=SELECTION_METHODS[0],
        help='Selection method (default: fitness-proportional)'
    )
    parser.add_argument(
        '--crossover', choices=CROSSOVER_METHODS, default='2-point',
        help='Crossover method (default: 2-point)'
    )
    parser.add_argument(
        '--elite-size', type=int, default=None,
        help='Individuals carried over (default: half the population)'
    )
    parser.add_argument(
        '--tournament-size', type=int, default=None,
        help='Tournament size (default: 10%% of the population)'
    )
    parser.add_argument(
        '--mutation-rate', type=float, default=None,
        help='Mutation probability per individual (default: 0.05)'
    )
    parser.add_argument(
        '--stop-condition', choices=STOP_CONDITIONS, default=STOP_CONDITIONS[0],
        help='Stop condition (default: generation-count)'
    )
    parser.add_argument(
        '--max-static', type=int, default=None,
        help='Max non-regressing generations for fitness-static (default: 0)'
    )
    parser.add_argument(
        '--seed', type=int, default=None,
        help='Random seed for reproducibility'
    )
    parser.add_argument(
        '--debug', action='store_true',
        help='Log per-generation progress'
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.debug else logging.WARNING,
        format='%(asctime)s %(name)s %(levelname)s: %(message)s',
    )

    config = GAConfig(
        pop_size=args.population,
        elite_size=args.elite_size,
        tournament_size=args.tournament_size,
        mutation_rate=args.mutation_rate,
        selection_method=args.selection,
        crossover_method=args.crossover,
        stop_condition=args.stop_condition,
        max_generation_count=args.generations,
        max_static_generations=args.max_static,
        seed=args.seed,
        debug=args.debug,
    )

    try:
        result = GeneticAlgorithm(config).run()
    except GeneticAlgorithmError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(result.summary())
    return 0


if __name__ == '__main__':
    sys.exit(main())
