"""
Neural Network Brain for HillDrive.

Fixed-topology feedforward network:
  sensors → hidden layers → controls

Forward pass (per simulation tick):
  for each layer transition i:
      out = sigmoid(bias[i] + weights[i] @ in)

weights[i] has shape (n_{i+1}, n_i), biases[i] has shape (n_{i+1},).
"""

import numpy as np
from config import NUM_SENSORS, NUM_CONTROLS, HIDDEN_LAYERS, WEIGHT_LIMIT


def sigmoid(x):
    return 1.0 / (1.0 + np.exp(-x))


class NeuralNetwork:
    """
    Small multilayer perceptron whose parameters are evolved, not trained.
    """

    def __init__(self, input_size: int = NUM_SENSORS,
                 hidden_sizes=HIDDEN_LAYERS,
                 output_size: int = NUM_CONTROLS,
                 rng=None):
        if rng is None:
            rng = np.random.default_rng()

        self.layer_sizes = [int(input_size), *(int(h) for h in hidden_sizes),
                            int(output_size)]
        if any(n < 1 for n in self.layer_sizes):
            raise ValueError(f"layer sizes must be positive, got {self.layer_sizes}")

        self.weights = []
        self.biases  = []
        for n_in, n_out in zip(self.layer_sizes[:-1], self.layer_sizes[1:]):
            self.weights.append(rng.uniform(-1.0, 1.0, size=(n_out, n_in)))
            self.biases.append(rng.uniform(-1.0, 1.0, size=n_out))

        # Last forward pass, one array per layer (render hook)
        self.activations = [np.zeros(n) for n in self.layer_sizes]

    # ──────────────────────────────────────────────────────────────────────────

    @property
    def input_size(self) -> int:
        return self.layer_sizes[0]

    @property
    def output_size(self) -> int:
        return self.layer_sizes[-1]

    @property
    def hidden_sizes(self) -> list:
        return self.layer_sizes[1:-1]

    def parameters(self):
        """Yield every weight matrix then every bias vector."""
        yield from self.weights
        yield from self.biases

    def same_topology(self, other: "NeuralNetwork") -> bool:
        return self.layer_sizes == other.layer_sizes

    # ──────────────────────────────────────────────────────────────────────────

    def forward(self, inputs) -> np.ndarray:
        """
        Run one forward pass.

        Args:
            inputs: sequence of length input_size

        Returns:
            float64 array of shape (output_size,), values in (0, 1)
        """
        x = np.asarray(inputs, dtype=np.float64)
        if x.shape != (self.input_size,):
            raise ValueError(
                f"network expects {self.input_size} inputs, got shape {x.shape}")

        self.activations[0] = x.copy()
        for i, (w, b) in enumerate(zip(self.weights, self.biases)):
            x = sigmoid(b + w @ x)
            self.activations[i + 1] = x
        return x.copy()

    # ──────────────────────────────────────────────────────────────────────────
    # Genetic operators
    # ──────────────────────────────────────────────────────────────────────────

    def mutate(self, rate: float, strength: float, rng=None):
        """
        With probability `rate` per parameter, add a uniform perturbation in
        (-strength/2, strength/2) and clamp that parameter to ±WEIGHT_LIMIT.
        Parameters that are not picked are left untouched.
        """
        if rng is None:
            rng = np.random.default_rng()
        for param in self.parameters():
            picked = rng.random(param.shape) < rate
            delta  = (rng.random(param.shape) - 0.5) * strength
            nudged = np.clip(param + delta, -WEIGHT_LIMIT, WEIGHT_LIMIT)
            param[...] = np.where(picked, nudged, param)
        return self

    def crossover(self, other: "NeuralNetwork", rng=None) -> "NeuralNetwork":
        """
        Uniform crossover: every weight and bias is copied from self or
        other on an independent fair coin flip.
        """
        if not self.same_topology(other):
            raise ValueError(
                f"cannot cross {self.layer_sizes} with {other.layer_sizes}")
        if rng is None:
            rng = np.random.default_rng()

        child = self._empty_like()
        for mine, theirs in zip(self.weights, other.weights):
            mask = rng.random(mine.shape) < 0.5
            child.weights.append(np.where(mask, mine, theirs))
        for mine, theirs in zip(self.biases, other.biases):
            mask = rng.random(mine.shape) < 0.5
            child.biases.append(np.where(mask, mine, theirs))
        return child

    def copy(self) -> "NeuralNetwork":
        clone = self._empty_like()
        clone.weights = [w.copy() for w in self.weights]
        clone.biases  = [b.copy() for b in self.biases]
        return clone

    def _empty_like(self) -> "NeuralNetwork":
        """Same topology, no parameters yet (skips random initialisation)."""
        net = NeuralNetwork.__new__(NeuralNetwork)
        net.layer_sizes = list(self.layer_sizes)
        net.weights = []
        net.biases  = []
        net.activations = [np.zeros(n) for n in self.layer_sizes]
        return net

    # ──────────────────────────────────────────────────────────────────────────

    def parameter_count(self) -> int:
        return sum(p.size for p in self.parameters())

    def summary(self) -> str:
        lines = [f"NeuralNetwork {' → '.join(map(str, self.layer_sizes))}"
                 f" ({self.parameter_count()} parameters)"]
        for i, (w, b) in enumerate(zip(self.weights, self.biases)):
            lines.append(
                f"  L{i}→L{i + 1}  w∈[{w.min():+.3f}, {w.max():+.3f}]"
                f"  b∈[{b.min():+.3f}, {b.max():+.3f}]"
            )
        return "\n".join(lines)
