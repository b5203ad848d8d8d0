"""
Population for HillDrive.

Owns a fixed-size cohort of vehicles, each carrying its own brain, and turns
one fully evaluated cohort into the next:

  1. Fitness  = score + time_alive * SURVIVAL_BONUS, halved if flipped,
                floored at MIN_FITNESS
  2. Sort by fitness (descending, stable)
  3. Elites   = top floor(size * ELITE_FRACTION) brains, copied unmutated
  4. Children = crossover of two tournament winners, then mutation
  5. Swap in the new cohort and bump the generation counter
"""

import math

import numpy as np
from vehicle import Vehicle
from neural_network import NeuralNetwork
from config import (
    POPULATION, MUTATION_RATE, MUTATION_STRENGTH,
    NUM_SENSORS, NUM_CONTROLS, HIDDEN_LAYERS,
    ELITE_FRACTION, TOURNAMENT_SIZE, SURVIVAL_BONUS, FLIP_PENALTY,
    MIN_FITNESS, SPAWN_X, SPAWN_Y,
)


def validate_settings(size, mutation_rate, mutation_strength):
    """Raise ValueError for settings a run cannot start with."""
    if isinstance(size, bool) or not isinstance(size, (int, np.integer)):
        raise ValueError(f"population size must be an integer, got {size!r}")
    if size <= 0:
        raise ValueError(f"population size must be positive, got {size}")
    if not 0.0 <= mutation_rate <= 1.0:
        raise ValueError(f"mutation rate must lie in [0, 1], got {mutation_rate}")
    if mutation_strength < 0.0:
        raise ValueError(
            f"mutation strength must be non-negative, got {mutation_strength}")


def vehicle_fitness(vehicle) -> float:
    fitness = vehicle.score + vehicle.time_alive * SURVIVAL_BONUS
    if vehicle.is_flipped:
        fitness *= FLIP_PENALTY
    return max(fitness, MIN_FITNESS)


class Population:
    """
    Fixed-size cohort plus the generational genetic algorithm.
    """

    def __init__(
        self,
        size:              int   = POPULATION,
        mutation_rate:     float = MUTATION_RATE,
        mutation_strength: float = MUTATION_STRENGTH,
        input_size:        int   = NUM_SENSORS,
        hidden_sizes             = HIDDEN_LAYERS,
        output_size:       int   = NUM_CONTROLS,
        spawn                    = (SPAWN_X, SPAWN_Y),
        rng                      = None,
    ):
        validate_settings(size, mutation_rate, mutation_strength)

        self.size              = int(size)
        self.mutation_rate     = mutation_rate
        self.mutation_strength = mutation_strength
        self.input_size        = input_size
        self.hidden_sizes      = tuple(hidden_sizes)
        self.output_size       = output_size
        self.spawn             = spawn
        self.rng               = rng if rng is not None else np.random.default_rng()

        self.generation   = 1
        self.best_fitness = 0.0
        # Always empty: no speciation is performed.
        self.species      = []
        self.vehicles     = self._initial_cohort()

    # ──────────────────────────────────────────────────────────────────────────

    def _spawn(self, brain) -> Vehicle:
        x, y = self.spawn
        return Vehicle(x, y, brain=brain)

    def _initial_cohort(self) -> list:
        return [
            self._spawn(NeuralNetwork(self.input_size, self.hidden_sizes,
                                      self.output_size, self.rng))
            for _ in range(self.size)
        ]

    # ──────────────────────────────────────────────────────────────────────────
    # Evolution
    # ──────────────────────────────────────────────────────────────────────────

    def calculate_fitness(self):
        for v in self.vehicles:
            v.fitness = vehicle_fitness(v)

    def elite_count(self) -> int:
        return int(math.floor(self.size * ELITE_FRACTION))

    def evolve(self) -> list:
        """
        Score the finished cohort and replace it with the next generation.
        Returns the new cohort.
        """
        self.calculate_fitness()
        ranked = sorted(self.vehicles, key=lambda v: v.fitness, reverse=True)

        if ranked[0].fitness > self.best_fitness:
            self.best_fitness = ranked[0].fitness

        next_cohort = []
        for elite in ranked[:self.elite_count()]:
            next_cohort.append(self._spawn(elite.brain.copy()))

        while len(next_cohort) < self.size:
            parent_a = self.select_parent(ranked)
            parent_b = self.select_parent(ranked)
            child = parent_a.brain.crossover(parent_b.brain, self.rng)
            child.mutate(self.mutation_rate, self.mutation_strength, self.rng)
            next_cohort.append(self._spawn(child))

        self.vehicles   = next_cohort
        self.generation += 1
        return next_cohort

    def select_parent(self, ranked: list = None) -> Vehicle:
        """
        Tournament selection: draw TOURNAMENT_SIZE vehicles uniformly (with
        replacement) and keep the fittest. Ties keep the earliest draw.
        """
        pool = ranked if ranked is not None else self.vehicles
        best = None
        for _ in range(TOURNAMENT_SIZE):
            candidate = pool[int(self.rng.integers(0, len(pool)))]
            if best is None or candidate.fitness > best.fitness:
                best = candidate
        return best

    # ──────────────────────────────────────────────────────────────────────────
    # Queries
    # ──────────────────────────────────────────────────────────────────────────

    def alive(self) -> list:
        return [v for v in self.vehicles if not v.is_dead]

    def alive_count(self) -> int:
        return sum(1 for v in self.vehicles if not v.is_dead)

    def best_alive(self):
        """Live vehicle with the highest score, or None when all are dead."""
        best = None
        for v in self.vehicles:
            if v.is_dead:
                continue
            if best is None or v.score > best.score:
                best = v
        return best

    def best_vehicle(self) -> Vehicle:
        """Vehicle with the highest fitness (first one on ties)."""
        best = self.vehicles[0]
        for v in self.vehicles:
            if v.fitness > best.fitness:
                best = v
        return best

    def species_count(self) -> int:
        return len(self.species)

    def __len__(self):
        return len(self.vehicles)
