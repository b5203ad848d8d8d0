"""
Simulation Engine for HillDrive.

Orchestrates the training loop one tick at a time:
  for every live vehicle:
    1. Read sensors against the current terrain
    2. Run the vehicle's brain
    3. Apply the control vector
  then:
    4. One physics step for every body
    5. Vehicle.update(dt) for every vehicle still alive
    6. When nobody is alive: evolve, log stats, regenerate terrain

HumanPlaySession drives a single brainless vehicle from key state instead.
"""

import time

import numpy as np
from terrain import Terrain
from physics import PhysicsEngine
from population import Population
from vehicle import Vehicle, Controls, HumanInput
from sensors import read_sensors, sensor_count
from genome import genome_similarity, genome_to_color
from config import (
    POPULATION, MAX_GENERATIONS, MUTATION_RATE, MUTATION_STRENGTH,
    HIDDEN_LAYERS, NUM_RAYS, NUM_CONTROLS, TICK_DT, SPAWN_X, SPAWN_Y,
)


class Simulation:
    """
    Main training controller.
    """

    def __init__(
        self,
        population:        int   = POPULATION,
        max_generations:   int   = MAX_GENERATIONS,
        mutation_rate:     float = MUTATION_RATE,
        mutation_strength: float = MUTATION_STRENGTH,
        dt:                float = TICK_DT,
        n_rays:            int   = NUM_RAYS,
        hidden_sizes             = HIDDEN_LAYERS,
        seed:              int   = None,
        verbose:           bool  = True,
        on_step_callback         = None,    # called every tick (for live viz)
        on_gen_callback          = None,    # called at end of each generation
    ):
        if dt <= 0:
            raise ValueError(f"tick length must be positive, got {dt}")
        self.max_generations = max_generations
        self.dt              = dt
        self.n_rays          = n_rays
        self.verbose         = verbose
        self.on_step_callback = on_step_callback
        self.on_gen_callback  = on_gen_callback

        self.rng        = np.random.default_rng(seed)
        self.terrain    = Terrain(rng=self.rng)
        self.physics    = PhysicsEngine()
        self.population = Population(
            size=population,
            mutation_rate=mutation_rate,
            mutation_strength=mutation_strength,
            input_size=sensor_count(n_rays),
            hidden_sizes=hidden_sizes,
            output_size=NUM_CONTROLS,
            rng=self.rng,
        )
        self._register_cohort()

        # Per-tick telemetry
        self.alive_count        = self.population.alive_count()
        self.current_best_score = 0.0
        self.best_score         = 0.0
        self.best_live          = None
        self.ticks              = 0        # ticks in the current generation

        # History
        self.stats = []                    # list of dicts, one per generation
        self._gen_started = time.time()

    # ──────────────────────────────────────────────────────────────────────────

    @property
    def generation(self) -> int:
        return self.population.generation

    @property
    def vehicles(self) -> list:
        return self.population.vehicles

    def _register_cohort(self):
        self.physics.clear()
        for v in self.population.vehicles:
            self.physics.add_body(v)

    # ──────────────────────────────────────────────────────────────────────────
    # One tick
    # ──────────────────────────────────────────────────────────────────────────

    def sense(self, vehicle) -> np.ndarray:
        reading = read_sensors(vehicle, self.terrain, self.n_rays)
        if len(reading) != vehicle.brain.input_size:
            raise ValueError(
                f"sensor vector has {len(reading)} values but the network "
                f"expects {vehicle.brain.input_size}")
        return reading.as_array()

    def tick(self, dt: float = None) -> bool:
        """
        Advance every live vehicle by one step. Returns True when this tick
        ended the generation and a new cohort is now in place.
        """
        dt = self.dt if dt is None else dt
        cohort = self.population.vehicles

        for v in cohort:
            if v.is_dead:
                continue
            outputs = v.brain.forward(self.sense(v))
            v.apply_controls(Controls.from_outputs(outputs))

        self.physics.step(dt)

        alive = 0
        best  = None
        for v in cohort:
            if v.is_dead:
                continue
            v.update(dt)
            if v.is_dead:
                self.physics.remove_body(v)
                continue
            alive += 1
            if best is None or v.score > best.score:
                best = v

        self.ticks += 1
        self.alive_count = alive
        self.best_live   = best
        self.current_best_score = best.score if best is not None else 0.0
        if self.current_best_score > self.best_score:
            self.best_score = self.current_best_score

        if self.on_step_callback:
            self.on_step_callback(self.ticks, self)

        if alive == 0:
            self._next_generation()
            return True
        return False

    def run_generation(self, dt: float = None) -> dict:
        """Tick until the current cohort is exhausted; return its stats."""
        while not self.tick(dt):
            pass
        return self.stats[-1]

    def run(self, stop_event=None, resume_event=None):
        """
        Run max_generations generations.

        stop_event   – checked before every tick; once set, the run ends
                       (mid-generation if need be).
        resume_event – while cleared, the run is paused between ticks.
        """
        completed = 0
        while completed < self.max_generations:
            if self._halted(stop_event, resume_event):
                break
            if self.tick():
                completed += 1
        if self.verbose:
            print("\n=== Training complete ===")

    @staticmethod
    def _halted(stop_event, resume_event) -> bool:
        if resume_event is not None:
            while not resume_event.wait(timeout=0.1):
                if stop_event is not None and stop_event.is_set():
                    return True
        return stop_event is not None and stop_event.is_set()

    # ──────────────────────────────────────────────────────────────────────────
    # Generation rollover
    # ──────────────────────────────────────────────────────────────────────────

    def _next_generation(self):
        finished_gen = self.population.generation
        finished     = self.population.vehicles

        self.population.evolve()

        stats = self._compute_stats(finished_gen, finished)
        stats["elapsed_s"] = round(time.time() - self._gen_started, 3)
        self.stats.append(stats)
        self._print_stats(finished_gen, stats)

        if self.on_gen_callback:
            self.on_gen_callback(finished_gen, stats, self.terrain,
                                 finished, self.population)

        self.terrain.generate()
        self._register_cohort()
        self.alive_count = self.population.alive_count()
        self.best_live   = None
        self.current_best_score = 0.0
        self.ticks = 0
        self._gen_started = time.time()

    # ──────────────────────────────────────────────────────────────────────────
    # Telemetry / render hook
    # ──────────────────────────────────────────────────────────────────────────

    def telemetry(self) -> dict:
        return {
            "generation":         self.population.generation,
            "best_fitness":       self.population.best_fitness,
            "current_best_score": self.current_best_score,
            "alive_count":        self.alive_count,
            "species_count":      self.population.species_count(),
            "best_score":         self.best_score,
        }

    def render_state(self) -> dict:
        """Everything an external renderer needs to draw the current tick."""
        vehicles = []
        for v in self.population.vehicles:
            if v.is_dead:
                continue
            snap = v.snapshot()
            snap["color"] = genome_to_color(v.brain)
            vehicles.append(snap)

        network = None
        focus = self.best_live or self.population.best_alive()
        if focus is not None:
            network = {
                "layerSizes":  list(focus.brain.layer_sizes),
                "activations": [a.tolist() for a in focus.brain.activations],
            }

        return {
            "terrain":  self.terrain.points,
            "vehicles": vehicles,
            "network":  network,
            "telemetry": self.telemetry(),
        }

    # ──────────────────────────────────────────────────────────────────────────
    # Stats
    # ──────────────────────────────────────────────────────────────────────────

    def _compute_stats(self, generation: int, finished: list) -> dict:
        fitness = np.array([v.fitness for v in finished])
        scores  = np.array([v.score for v in finished])
        return {
            "generation":    generation,
            "population":    len(finished),
            "best_fitness":  float(fitness.max()),
            "mean_fitness":  float(fitness.mean()),
            "best_score":    float(scores.max()),
            "all_time_best": float(self.population.best_fitness),
            "flipped":       sum(1 for v in finished if v.is_flipped),
            "diversity":     self._genetic_diversity(finished),
            "ticks":         self.ticks,
        }

    def _genetic_diversity(self, vehicles: list, sample: int = 30) -> float:
        """
        Estimate genetic diversity as average pairwise dissimilarity.
        Returns value 0 (identical) → 1 (maximally diverse).
        """
        if len(vehicles) < 2:
            return 0.0
        sample_size = min(sample, len(vehicles))
        idx = self.rng.choice(len(vehicles), sample_size, replace=False)
        sampled = [vehicles[i] for i in idx]
        total, count = 0.0, 0
        for i in range(len(sampled)):
            for j in range(i + 1, len(sampled)):
                sim = genome_similarity(sampled[i].brain, sampled[j].brain)
                total += (1.0 - sim)
                count += 1
        return total / count if count else 0.0

    def _print_stats(self, gen_idx: int, stats: dict):
        if not self.verbose:
            return
        if gen_idx % 10 == 0 or gen_idx < 5:
            print(
                f"Gen {gen_idx:>5}  |  "
                f"best fit {stats['best_fitness']:>8.2f}  "
                f"(all-time {stats['all_time_best']:>8.2f})  |  "
                f"mean {stats['mean_fitness']:>7.2f}  |  "
                f"diversity {stats['diversity']:.3f}  |  "
                f"{stats['elapsed_s']:.2f}s"
            )


class HumanPlaySession:
    """
    One vehicle driven from captured key state instead of a network.
    """

    def __init__(self, seed: int = None, dt: float = TICK_DT):
        if dt <= 0:
            raise ValueError(f"tick length must be positive, got {dt}")
        self.dt      = dt
        self.rng     = np.random.default_rng(seed)
        self.terrain = Terrain(rng=self.rng)
        self.physics = PhysicsEngine()
        self.vehicle = None
        self.reset()

    def reset(self):
        self.terrain.generate()
        self.physics.clear()
        self.vehicle = self.physics.add_body(Vehicle(SPAWN_X, SPAWN_Y))
        return self

    def tick(self, human: HumanInput = HumanInput(), dt: float = None) -> dict:
        dt = self.dt if dt is None else dt
        v = self.vehicle
        if not v.is_dead:
            v.apply_human_controls(human)
            self.physics.step(dt)
            v.update(dt)
        return self.state()

    def state(self) -> dict:
        snap = self.vehicle.snapshot()
        snap["timeAlive"] = self.vehicle.time_alive
        return snap
