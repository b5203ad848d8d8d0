"""
Quick demo – runs a 30-generation training session with a small cohort
and saves snapshots + charts without needing a display.
"""
import os

from simulation import Simulation
from visualizer import (ensure_dirs, save_world_snapshot,
                        save_evolution_chart, save_neural_diagram, append_csv)

OUT = "output/demo"
ensure_dirs(OUT)

all_stats = []

def on_gen(gen_idx, stats, terrain, finished, population):
    all_stats.append(stats)
    append_csv(stats, OUT)
    if gen_idx % 5 == 0:
        print(f"  Saving snapshot gen {gen_idx}...")
        save_world_snapshot(terrain, finished, gen_idx, OUT)
        best = max(finished, key=lambda v: v.fitness)
        save_neural_diagram(best.brain, gen_idx, "best", OUT)

sim = Simulation(
    population        = 30,
    max_generations   = 30,
    mutation_rate     = 0.1,
    mutation_strength = 0.3,
    dt                = 0.05,
    seed              = 42,
    on_gen_callback   = on_gen,
)
sim.run()

save_evolution_chart(all_stats, OUT, "demo_chart.png")
print(f"\nBest fitness {sim.population.best_fitness:.2f}")
print("All outputs in:", OUT)
print("Files:")
for root, dirs, files in os.walk(OUT):
    for f in files:
        print(f"  {os.path.join(root, f)}")
