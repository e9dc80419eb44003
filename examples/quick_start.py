#!/usr/bin/env python3
"""
Quick Start - Evolve a string towards a target phrase.

Shows that genomes are opaque: here they are plain strings, with caller
supplied initialization, mutation and fitness.
"""

import sys
import os
import string
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from genalgo import GAConfig, GeneticAlgorithm

TARGET = 'HELLO WORLD'
ALPHABET = string.ascii_uppercase + ' '


def random_phrase(rng):
    return ''.join(rng.choice(ALPHABET) for _ in range(len(TARGET)))


def mutate_phrase(phrase, rng):
    k = rng.randrange(len(phrase))
    return phrase[:k] + rng.choice(ALPHABET) + phrase[k + 1:]


def phrase_fitness(phrase):
    # +1 keeps the aggregate positive for fitness-proportional selection
    return 1 + sum(a == b for a, b in zip(phrase, TARGET))


print("genalgo - Quick Start")
print("="*40)

config = GAConfig(
    pop_size=200,
    elite_size=20,
    selection_method='tournament',
    tournament_size=5,
    crossover_method='2-point',
    mutation_rate=0.5,
    max_generation_count=150,
    random_function=random_phrase,
    mutation_function=mutate_phrase,
    fitness_function=phrase_fitness,
    seed=1,
)

result = GeneticAlgorithm(config).run()

print(f"\nTarget:  {TARGET!r}")
print(f"Fittest: {result.fittest()!r}")
print(f"Max fitness by generation 10/50/150: "
      f"{result.max_fitness_history[9]:.0f} / "
      f"{result.max_fitness_history[49]:.0f} / "
      f"{result.max_fitness_history[-1]:.0f}")
print(f"\n{result.summary()}")
