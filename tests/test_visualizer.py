import os

import numpy as np

from simulation import Simulation
from visualizer import (ensure_dirs, save_world_snapshot, save_evolution_chart,
                        save_neural_diagram, append_csv)


def test_outputs_are_written(tmp_path):
    base = str(tmp_path)
    ensure_dirs(base)
    finished = []

    def on_gen(gen, stats, terrain, cohort, population):
        finished.append((terrain, cohort))

    sim = Simulation(population=4, dt=0.2, seed=1, verbose=False,
                     on_gen_callback=on_gen)
    stats = sim.run_generation()
    terrain, cohort = finished[0]

    snap = save_world_snapshot(terrain, cohort, 1, base)
    best = max(cohort, key=lambda v: v.fitness)
    best.brain.forward(np.zeros(best.brain.input_size))
    diagram = save_neural_diagram(best.brain, 1, "best", base)
    chart = save_evolution_chart([stats], base)
    append_csv(stats, base)
    append_csv(stats, base)

    for path in (snap, diagram, chart):
        assert os.path.isfile(path)
    with open(os.path.join(base, "evolution_log.csv")) as f:
        lines = f.read().strip().splitlines()
    assert len(lines) == 3
    assert lines[0].startswith("generation,")


def test_chart_skips_empty_history(tmp_path):
    assert save_evolution_chart([], str(tmp_path)) is None
    assert save_neural_diagram(None, 1, "none", str(tmp_path)) is None
