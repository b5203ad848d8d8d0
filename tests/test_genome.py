import numpy as np

from genome import flatten, genome_similarity, genome_to_color
from neural_network import NeuralNetwork


def _net(seed, hidden=(4,)):
    return NeuralNetwork(3, hidden, 2, rng=np.random.default_rng(seed))


def test_flatten_covers_every_parameter():
    net = _net(0)
    genes = flatten(net)
    assert genes.shape == (net.parameter_count(),)
    assert genes[0] == net.weights[0][0, 0]
    assert genes[-1] == net.biases[-1][-1]


def test_similarity_bounds():
    a, b = _net(1), _net(2)
    assert genome_similarity(a, a.copy()) == 1.0
    assert 0.0 <= genome_similarity(a, b) < 1.0
    assert genome_similarity(a, None) == 0.0
    assert genome_similarity(a, _net(1, hidden=(5,))) == 0.0


def test_color_is_stable_rgb():
    net = _net(3)
    color = genome_to_color(net)
    assert color == genome_to_color(net.copy())
    assert len(color) == 3
    assert all(50 <= c <= 255 for c in color)
    assert genome_to_color(None) == (128, 128, 128)
