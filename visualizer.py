"""
Visualizer for HillDrive.

Produces:
  1. World snapshots  – terrain profile plus every vehicle of a cohort
  2. Evolution chart  – best / mean fitness + diversity over generations
  3. Neural network diagrams – layers, weights and last activations of a brain
  4. CSV log          – per-generation stats
"""

import os
import csv
import numpy as np
import matplotlib
matplotlib.use("Agg")          # non-interactive backend (no display needed)
import matplotlib.pyplot as plt
import matplotlib.patches as mpatches
import matplotlib.transforms as mtransforms

from genome import genome_to_color
from config import (
    SAVE_DIR, LOG_CSV, GROUND_LEVEL, BODY_WIDTH, BODY_HEIGHT,
    WHEEL_RADIUS, SENSOR_LABELS, CONTROL_LABELS,
)


# ──────────────────────────────────────────────────────────────────────────────
# Directory setup
# ──────────────────────────────────────────────────────────────────────────────

def ensure_dirs(base: str = SAVE_DIR):
    for sub in ("snapshots", "charts", "neural"):
        os.makedirs(os.path.join(base, sub), exist_ok=True)


# ──────────────────────────────────────────────────────────────────────────────
# World snapshot
# ──────────────────────────────────────────────────────────────────────────────

def save_world_snapshot(terrain, vehicles: list, generation: int,
                        base: str = SAVE_DIR):
    """
    Draw the terrain and each vehicle at its final position.
    Screen convention: y grows downward, so the y axis is inverted.
    The best scorer is outlined in white.
    """
    xs, ys = terrain.snapshot()
    fig, ax = plt.subplots(figsize=(12, 4), dpi=100)
    ax.set_facecolor("#87CEEB")
    fig.patch.set_facecolor("#111111")

    floor = max(float(ys.max()), GROUND_LEVEL) + 100
    ax.fill_between(xs, ys, floor, color="#8B4513", zorder=1)
    ax.plot(xs, ys, color="#228B22", linewidth=2, zorder=2)
    ax.axhline(GROUND_LEVEL, color="#654321", linestyle=":", linewidth=0.8,
               zorder=2)

    best = max(vehicles, key=lambda v: v.score) if vehicles else None
    for v in vehicles:
        _draw_vehicle(ax, v, highlight=(v is best))

    reach = max([v.state.x for v in vehicles] + [float(xs[-1]) * 0.2])
    ax.set_xlim(-50, reach + 200)
    ax.set_ylim(floor, min(float(ys.min()), 200) - 150)
    ax.set_title(
        f"Generation {generation}  "
        f"(best score {best.score:.1f})" if best else f"Generation {generation}",
        color="white", fontsize=10)
    ax.tick_params(colors="white")
    for spine in ax.spines.values():
        spine.set_edgecolor("#444444")

    path = os.path.join(base, "snapshots", f"gen_{generation:06d}.png")
    plt.savefig(path, dpi=100, bbox_inches="tight", facecolor=fig.get_facecolor())
    plt.close(fig)
    return path


def _draw_vehicle(ax, vehicle, highlight: bool = False):
    s = vehicle.state
    r, g, b = genome_to_color(vehicle.brain)
    face = "#666666" if vehicle.is_dead and not highlight else (r/255, g/255, b/255)
    body = mpatches.Rectangle(
        (s.x - BODY_WIDTH / 2, s.y - BODY_HEIGHT / 2), BODY_WIDTH, BODY_HEIGHT,
        facecolor=face, edgecolor="white" if highlight else "none",
        linewidth=1.5, alpha=0.9, zorder=4)
    body.set_transform(
        mtransforms.Affine2D().rotate_around(s.x, s.y, s.angle) + ax.transData)
    ax.add_patch(body)
    for wx, wy in vehicle.wheel_positions():
        ax.add_patch(mpatches.Circle((wx, wy), WHEEL_RADIUS * 0.6,
                                     color="#333333", zorder=5))


# ──────────────────────────────────────────────────────────────────────────────
# Evolution statistics chart
# ──────────────────────────────────────────────────────────────────────────────

def save_evolution_chart(stats: list, base: str = SAVE_DIR,
                         filename: str = "evolution.png"):
    """
    Plot best fitness, mean fitness and genetic diversity across all
    generations.
    """
    if not stats:
        return
    gens      = [s["generation"]    for s in stats]
    best      = [s["best_fitness"]  for s in stats]
    mean      = [s["mean_fitness"]  for s in stats]
    all_time  = [s["all_time_best"] for s in stats]
    diversity = [s["diversity"]     for s in stats]

    fig, ax1 = plt.subplots(figsize=(12, 5), dpi=100)
    fig.patch.set_facecolor("#111111")
    ax1.set_facecolor("#111111")

    ax1.plot(gens, best, color="#44FF44", linewidth=1.2,
             label="Best fitness", zorder=3)
    ax1.plot(gens, mean, color="#FF8800", linewidth=1.0,
             alpha=0.8, label="Mean fitness", zorder=2)
    ax1.plot(gens, all_time, color="#FFFFFF", linewidth=0.8,
             linestyle=":", label="All-time best", zorder=2)
    ax1.set_ylabel("Fitness", color="white")
    ax1.set_ylim(0, max(all_time) * 1.05 if all_time else 1)
    ax1.tick_params(axis="both", colors="white")
    ax1.set_xlabel("Generation", color="white")

    ax2 = ax1.twinx()
    ax2.set_facecolor("#111111")
    ax2.plot(gens, diversity, color="#CC44FF", linewidth=1.0,
             linestyle="--", label="Diversity", zorder=2)
    ax2.set_ylabel("Genetic diversity (0–1)", color="white")
    ax2.set_ylim(0, 1.05)
    ax2.tick_params(colors="white")

    for spine in ax1.spines.values():
        spine.set_edgecolor("#444444")

    lines1, labels1 = ax1.get_legend_handles_labels()
    lines2, labels2 = ax2.get_legend_handles_labels()
    ax1.legend(lines1 + lines2, labels1 + labels2,
               facecolor="#222222", labelcolor="white",
               loc="upper left", fontsize=8)

    ax1.set_title("Evolutionary Progress", color="white", fontsize=12)
    plt.tight_layout()
    path = os.path.join(base, "charts", filename)
    plt.savefig(path, dpi=100, bbox_inches="tight",
                facecolor=fig.get_facecolor())
    plt.close(fig)
    return path


# ──────────────────────────────────────────────────────────────────────────────
# Neural network diagram
# ──────────────────────────────────────────────────────────────────────────────

def save_neural_diagram(network, generation: int, label: str = "",
                        base: str = SAVE_DIR):
    """
    Draw a brain as a layered graph.
    Green edges = positive weights, red edges = negative; node brightness
    is the activation from the last forward pass.
    """
    if network is None:
        return
    sizes = network.layer_sizes
    n_layers = len(sizes)

    node_pos = {}
    for l, n in enumerate(sizes):
        x = l / max(1, n_layers - 1)
        for i in range(n):
            node_pos[(l, i)] = (x, (i + 1) / (n + 1))

    fig, ax = plt.subplots(figsize=(10, 6), dpi=100)
    fig.patch.set_facecolor("#111111")
    ax.set_facecolor("#111111")
    ax.axis("off")
    ax.set_xlim(-0.25, 1.25)
    ax.set_ylim(-0.05, 1.08)

    for l, w in enumerate(network.weights):
        for j in range(w.shape[0]):
            for i in range(w.shape[1]):
                x1, y1 = node_pos[(l, i)]
                x2, y2 = node_pos[(l + 1, j)]
                weight = w[j, i]
                color  = "#44FF44" if weight >= 0 else "#FF4444"
                ax.plot([x1, x2], [y1, y2], color=color,
                        lw=0.2 + min(2.0, abs(weight)),
                        alpha=0.15 + 0.3 * min(1.0, abs(weight) / 2), zorder=1)

    for l, n in enumerate(sizes):
        acts = network.activations[l]
        for i in range(n):
            x, y = node_pos[(l, i)]
            level = float(np.clip(acts[i], 0.0, 1.0)) if i < len(acts) else 0.0
            shade = 0.25 + 0.75 * level
            ax.add_patch(plt.Circle((x, y), 0.018, color=(shade, shade, shade),
                                    zorder=3))
            if l == 0:
                ax.text(x - 0.03, y, SENSOR_LABELS.get(i, f"S{i}"),
                        color="white", fontsize=6.5, ha="right", va="center")
            elif l == n_layers - 1:
                ax.text(x + 0.03, y, CONTROL_LABELS.get(i, f"C{i}"),
                        color="white", fontsize=6.5, ha="left", va="center")

    for l in range(n_layers):
        title = ("Sensors" if l == 0 else
                 "Controls" if l == n_layers - 1 else f"Hidden {l}")
        ax.text(node_pos[(l, 0)][0], 1.04, title, color="#CCCCCC",
                ha="center", fontsize=9, fontweight="bold")

    ax.set_title(
        f"Gen {generation} - Brain of {label}  "
        f"({' → '.join(map(str, sizes))})",
        color="white", fontsize=10, pad=4)

    path = os.path.join(base, "neural", f"gen_{generation:06d}_{label}.png")
    plt.savefig(path, dpi=100, bbox_inches="tight",
                facecolor=fig.get_facecolor())
    plt.close(fig)
    return path


# ──────────────────────────────────────────────────────────────────────────────
# CSV log
# ──────────────────────────────────────────────────────────────────────────────

def append_csv(stats: dict, base: str = SAVE_DIR):
    """Append one generation's stats to a CSV file."""
    if not LOG_CSV:
        return
    path = os.path.join(base, "evolution_log.csv")
    file_exists = os.path.isfile(path)
    with open(path, "a", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=list(stats.keys()))
        if not file_exists:
            writer.writeheader()
        writer.writerow(stats)
