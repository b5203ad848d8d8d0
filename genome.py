"""
Genome view of a HillDrive brain.

A network's genome is the concatenation of all of its weights followed by
all of its biases, as one flat float vector. The genetic operators live on
NeuralNetwork itself; this module holds the population-level helpers that
only need the flat view:

  flatten()            – network → genome vector
  genome_similarity()  – 0..1 closeness of two genomes
  genome_to_color()    – stable RGB colour per genome (render hook)
"""

import numpy as np
from config import WEIGHT_LIMIT


def flatten(network) -> np.ndarray:
    """Concatenate every parameter of `network` into one 1-D array."""
    return np.concatenate([p.ravel() for p in network.parameters()])


def genome_similarity(net_a, net_b) -> float:
    """
    Similarity (0..1) from the mean absolute parameter difference, scaled by
    the widest possible gap (2 * WEIGHT_LIMIT). Networks of different
    topology are treated as unrelated.
    """
    if net_a is None or net_b is None:
        return 0.0
    if list(net_a.layer_sizes) != list(net_b.layer_sizes):
        return 0.0
    a, b = flatten(net_a), flatten(net_b)
    if a.size == 0:
        return 1.0
    gap = float(np.mean(np.abs(a - b))) / (2.0 * WEIGHT_LIMIT)
    return 1.0 - min(1.0, gap)


def genome_to_color(network) -> tuple:
    """
    Map a genome to an RGB colour so that genetically similar vehicles
    have similar colours (useful visual diversity indicator).
    """
    if network is None:
        return (128, 128, 128)
    genes = flatten(network)
    channels = []
    for chunk in np.array_split(genes, 3):
        mean = float(np.mean(chunk)) if chunk.size else 0.0
        # mean of uniform(-1, 1) genes sits near 0; stretch so it shows
        level = 0.5 + 0.5 * np.tanh(mean * 4.0)
        channels.append(int(50 + level * 205))
    return tuple(channels)
