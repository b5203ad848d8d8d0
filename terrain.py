"""
Terrain for HillDrive.

The world floor is a 1-D height field: an ordered list of control points
(x, y) with straight segments between them. A fresh random profile is drawn
at start-up and at the beginning of every generation.

The height field only feeds the vehicles' ground sensors; collisions use the
flat ground plane in physics.py.
"""

import numpy as np
from config import (
    TERRAIN_WIDTH, TERRAIN_SEGMENTS, TERRAIN_START_HEIGHT,
    TERRAIN_MAX_HEIGHT, TERRAIN_MIN_HEIGHT,
    TERRAIN_STEP, TERRAIN_HILL_EVERY, TERRAIN_HILL_STEP,
)


class Terrain:
    """
    Procedurally generated height field with query-by-x interpolation.
    """

    def __init__(self, width: float = TERRAIN_WIDTH,
                 segments: int = TERRAIN_SEGMENTS,
                 start_height: float = TERRAIN_START_HEIGHT,
                 max_height: float = TERRAIN_MAX_HEIGHT,
                 min_height: float = TERRAIN_MIN_HEIGHT,
                 rng=None):
        if segments < 1:
            raise ValueError(f"terrain needs at least one segment, got {segments}")
        self.width        = width
        self.segments     = segments
        self.start_height = start_height
        self.max_height   = max_height
        self.min_height   = min_height
        self.rng          = rng if rng is not None else np.random.default_rng()

        self._xs = np.zeros(segments + 1)
        self._ys = np.zeros(segments + 1)
        self.generate()

    # ──────────────────────────────────────────────────────────────────────────
    # Generation
    # ──────────────────────────────────────────────────────────────────────────

    def generate(self, rng=None):
        """Draw a new random profile and return self."""
        if rng is not None:
            self.rng = rng
        rng = self.rng

        seg_width = self.width / self.segments
        xs = np.arange(self.segments + 1) * seg_width
        ys = np.empty(self.segments + 1)
        ys[0] = self.start_height

        height = float(self.start_height)
        for i in range(1, self.segments + 1):
            height += (rng.random() - 0.5) * TERRAIN_STEP
            # max_height is the visual top (smaller y), min_height the bottom
            height = max(self.max_height, min(self.min_height, height))
            if i % TERRAIN_HILL_EVERY == 0:
                height += (rng.random() - 0.5) * TERRAIN_HILL_STEP
            ys[i] = height

        self._xs = xs
        self._ys = self._smooth(ys)
        return self

    @staticmethod
    def _smooth(ys: np.ndarray) -> np.ndarray:
        """
        One left-to-right pass of 3-point averaging over interior points.
        The pass runs in place, so each average sees the already smoothed
        predecessor.
        """
        for i in range(1, len(ys) - 1):
            ys[i] = (ys[i - 1] + ys[i] + ys[i + 1]) / 3.0
        return ys

    # ──────────────────────────────────────────────────────────────────────────
    # Queries
    # ──────────────────────────────────────────────────────────────────────────

    def height_at(self, x: float) -> float:
        """
        Ground height under x. Exact at control points, linear in between,
        clamped to the end heights outside [0, width].
        """
        if x >= self._xs[-1]:
            return float(self._ys[-1])
        if x <= self._xs[0]:
            return float(self._ys[0])
        # index of the first control point strictly right of x
        i = int(np.searchsorted(self._xs, x, side="right"))
        x0, x1 = self._xs[i - 1], self._xs[i]
        y0, y1 = self._ys[i - 1], self._ys[i]
        if x == x0:
            return float(y0)
        t = (x - x0) / (x1 - x0)
        return float(y0 + (y1 - y0) * t)

    def ground_distance(self, x: float, y: float) -> float:
        """Vertical gap between y and the ground below it (never negative)."""
        return max(0.0, self.height_at(x) - y)

    # ──────────────────────────────────────────────────────────────────────────
    # Snapshot for visualisation
    # ──────────────────────────────────────────────────────────────────────────

    @property
    def points(self) -> list:
        return list(zip(self._xs.tolist(), self._ys.tolist()))

    def snapshot(self):
        """Return (xs, ys) copies of the control points for renderers."""
        return self._xs.copy(), self._ys.copy()

    def __len__(self):
        return len(self._xs)
