"""
HillDrive – Main Entry Point
============================

Usage examples:
  python main.py                              # defaults from config.py
  python main.py --gens 200 --pop 100         # custom parameters
  python main.py --mutation-rate 0.05         # gentler mutation
  python main.py --mutation-strength 0.6      # bigger mutation steps
  python main.py --no-mutation                # turn off mutations (demonstration)
  python main.py --seed 7 --dt 0.05           # reproducible, coarser ticks
"""

import argparse
import os

from simulation  import Simulation
from sensors     import sensor_count
from visualizer  import (ensure_dirs, save_world_snapshot,
                         save_evolution_chart, save_neural_diagram,
                         append_csv)
from config import (SAVE_DIR, SNAPSHOT_INTERVAL, SAVE_NEURAL_SAMPLE,
                    POPULATION, MAX_GENERATIONS, MUTATION_RATE,
                    MUTATION_STRENGTH, TICK_DT, NUM_RAYS, HIDDEN_LAYERS,
                    NUM_CONTROLS)


# ──────────────────────────────────────────────────────────────────────────────
# CLI
# ──────────────────────────────────────────────────────────────────────────────

def parse_args(argv=None):
    p = argparse.ArgumentParser(
        description="HillDrive – neuroevolution of hill-climbing drivers")
    p.add_argument("--gens",       type=int,   default=MAX_GENERATIONS,
                   help="Number of generations to run")
    p.add_argument("--pop",        type=int,   default=POPULATION,
                   help="Population size")
    p.add_argument("--mutation-rate", type=float, default=MUTATION_RATE,
                   help="Probability a single parameter is perturbed")
    p.add_argument("--mutation-strength", type=float, default=MUTATION_STRENGTH,
                   help="Width of the uniform parameter perturbation")
    p.add_argument("--no-mutation", action="store_true",
                   help="Set mutation rate to 0 (demonstration)")
    p.add_argument("--dt",         type=float, default=TICK_DT,
                   help="Simulated seconds per tick")
    p.add_argument("--rays",       type=int,   default=NUM_RAYS,
                   help="Forward ground-distance rays per vehicle")
    p.add_argument("--seed",       type=int,   default=None,
                   help="Random seed for reproducibility")
    p.add_argument("--outdir",     default=SAVE_DIR,
                   help="Output directory")
    p.add_argument("--snapshot-interval", type=int, default=SNAPSHOT_INTERVAL,
                   help="Save world snapshot every N generations")
    return p.parse_args(argv)


# ──────────────────────────────────────────────────────────────────────────────
# Callbacks
# ──────────────────────────────────────────────────────────────────────────────

class SimCallbacks:
    """Bundles the per-generation callbacks used by the simulation."""

    def __init__(self, outdir: str, snapshot_interval: int, all_stats: list):
        self.outdir            = outdir
        self.snapshot_interval = max(1, snapshot_interval)
        self.all_stats         = all_stats

    def on_generation(self, gen_idx, stats, terrain, finished, population):
        self.all_stats.append(stats)
        append_csv(stats, self.outdir)

        if gen_idx % self.snapshot_interval == 0 or gen_idx == 1:
            path = save_world_snapshot(terrain, finished, gen_idx, self.outdir)
            print(f"  → Snapshot: {path}")

            if SAVE_NEURAL_SAMPLE and finished:
                best = max(finished, key=lambda v: v.fitness)
                npath = save_neural_diagram(
                    best.brain, gen_idx, "best_driver", self.outdir)
                if npath:
                    print(f"  → Neural diagram: {npath}")

        if gen_idx % 50 == 0:
            save_evolution_chart(self.all_stats, self.outdir)


# ──────────────────────────────────────────────────────────────────────────────
# Main
# ──────────────────────────────────────────────────────────────────────────────

def main(argv=None):
    args = parse_args(argv)
    outdir = args.outdir
    ensure_dirs(outdir)

    mutation_rate = 0.0 if args.no_mutation else args.mutation_rate
    topology = " → ".join(map(str, (sensor_count(args.rays), *HIDDEN_LAYERS,
                                    NUM_CONTROLS)))

    print("=" * 60)
    print("  HillDrive – Neuroevolution Driving Simulator")
    print("=" * 60)
    print(f"  Population : {args.pop}")
    print(f"  Generations: {args.gens}")
    print(f"  Tick       : {args.dt:.4f}s")
    print(f"  Network    : {topology}")
    print(f"  Mutation   : rate {mutation_rate}, strength {args.mutation_strength}")
    print(f"  Seed       : {args.seed}")
    print(f"  Output dir : {outdir}")
    print("=" * 60)

    all_stats = []
    cb = SimCallbacks(
        outdir            = outdir,
        snapshot_interval = args.snapshot_interval,
        all_stats         = all_stats,
    )

    sim = Simulation(
        population        = args.pop,
        max_generations   = args.gens,
        mutation_rate     = mutation_rate,
        mutation_strength = args.mutation_strength,
        dt                = args.dt,
        n_rays            = args.rays,
        seed              = args.seed,
        on_gen_callback   = cb.on_generation,
    )

    sim.run()

    print("\nSaving final evolution chart …")
    chart_path = save_evolution_chart(all_stats, outdir, "evolution_final.png")
    print(f"  → {chart_path}")
    print(f"  Best fitness: {sim.population.best_fitness:.2f}  "
          f"(best score {sim.best_score:.2f})")

    print("\nDone! All outputs saved to:", os.path.abspath(outdir))
    return sim


if __name__ == "__main__":
    main()
