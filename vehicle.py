"""
Vehicle class for HillDrive.

Each vehicle has:
  - A KinematicState (position, velocity, angle) integrated by physics.py
  - Fuel, a survival clock and a flip timer
  - An optional NeuralNetwork brain (None for a human driver)
  - score (best x reached, scaled) and fitness (set by the population)

Every tick the driver:
  1. Applies a control vector (network outputs or human input)
  2. Lets the physics engine integrate the body
  3. Calls update(dt) to advance clocks, score and death checks
"""

import math
from typing import NamedTuple

from physics import KinematicState
from config import (
    SPAWN_X, SPAWN_Y, MAX_SPEED, ACCELERATION, BRAKE_FACTOR, TORQUE,
    NOMINAL_DT, MAX_FUEL, FUEL_PER_BOOST, FUEL_PER_SECOND, MOVING_SPEED,
    DISTANCE_SCALE, FALL_LIMIT_Y, TIME_LIMIT, FLIP_LIMIT, FLIP_BAND,
    LEAN_HIGH, LEAN_LOW, BODY_WIDTH, BODY_HEIGHT, WHEEL_RADIUS, WHEEL_OFFSETS,
)

TWO_PI = 2.0 * math.pi


class Controls(NamedTuple):
    """Network output slots, each a sigmoid value in [0, 1]."""
    accelerate: float
    brake:      float
    lean:       float

    @classmethod
    def from_outputs(cls, outputs) -> "Controls":
        if len(outputs) != len(cls._fields):
            raise ValueError(
                f"expected {len(cls._fields)} control outputs, got {len(outputs)}")
        return cls(*(float(v) for v in outputs))


class HumanInput(NamedTuple):
    """Directional key state for one tick of human play."""
    accelerate: bool = False
    brake:      bool = False
    lean:       int  = 0     # -1 tilt forward, 0 none, +1 tilt back

    def validate(self) -> "HumanInput":
        if self.lean not in (-1, 0, 1):
            raise ValueError(f"lean must be -1, 0 or 1, got {self.lean!r}")
        return self


class Vehicle:
    """
    A single car: kinematic body plus fuel, clocks and liveness flags.
    """
    __slots__ = (
        "state", "mass", "is_static", "brain",
        "fuel", "max_fuel", "is_dead", "is_flipped", "flip_time",
        "score", "fitness", "time_alive", "wheel_rotation",
    )

    def __init__(self, x: float = SPAWN_X, y: float = SPAWN_Y, brain=None):
        self.state     = KinematicState(x, y)
        self.mass      = 1.0
        self.is_static = False
        self.brain     = brain

        self.fuel       = MAX_FUEL
        self.max_fuel   = MAX_FUEL
        self.is_dead    = False
        self.is_flipped = False
        self.flip_time  = 0.0

        self.score      = 0.0
        self.fitness    = 0.0
        self.time_alive = 0.0
        self.wheel_rotation = [0.0 for _ in WHEEL_OFFSETS]

    # ──────────────────────────────────────────────────────────────────────────

    @property
    def alive(self) -> bool:
        return not self.is_dead

    @property
    def position(self):
        return self.state.x, self.state.y

    def normalized_angle(self) -> float:
        """Body angle folded into [0, 2π)."""
        return self.state.angle % TWO_PI

    # ──────────────────────────────────────────────────────────────────────────

    def update(self, dt: float):
        """Advance clocks, score and terminal-state checks by dt seconds."""
        if self.is_dead:
            return

        s = self.state
        self.time_alive += dt

        self.score = max(self.score, s.x / DISTANCE_SCALE)

        low, high = FLIP_BAND
        angle = self.normalized_angle()
        self.is_flipped = low < angle < high

        if s.y > FALL_LIMIT_Y or self.time_alive > TIME_LIMIT or self.fuel <= 0:
            self.is_dead = True
            return

        if self.is_flipped:
            self.flip_time += dt
            if self.flip_time > FLIP_LIMIT:
                self.is_dead = True
                return
        else:
            self.flip_time = 0.0

        for i in range(len(self.wheel_rotation)):
            self.wheel_rotation[i] += s.vx * dt * 0.1

        if abs(s.vx) > MOVING_SPEED:
            self.fuel -= dt * FUEL_PER_SECOND

    # ──────────────────────────────────────────────────────────────────────────

    def apply_controls(self, controls):
        """
        Apply a network control vector. Accepts a Controls tuple or any
        length-3 sequence of [accelerate, brake, lean] values in [0, 1].
        """
        if self.is_dead:
            return
        if not isinstance(controls, Controls):
            controls = Controls.from_outputs(controls)

        s = self.state
        if controls.accelerate > 0.5:
            self._boost()

        if controls.brake > 0.5:
            s.vx *= BRAKE_FACTOR

        # [LEAN_LOW, LEAN_HIGH] is a neutral band
        if controls.lean > LEAN_HIGH:
            s.angular_velocity += TORQUE * NOMINAL_DT
        elif controls.lean < LEAN_LOW:
            s.angular_velocity -= TORQUE * NOMINAL_DT

        self._limit_speed()

    def apply_human_controls(self, human: HumanInput):
        """Same actuation contract as apply_controls, fed from key state."""
        if self.is_dead:
            return
        human.validate()

        if human.accelerate:
            self._boost()

        if human.brake:
            self.state.vx *= BRAKE_FACTOR

        if human.lean != 0:
            self.state.angular_velocity += human.lean * TORQUE * NOMINAL_DT

        self._limit_speed()

    def _boost(self):
        self.state.vx += ACCELERATION * NOMINAL_DT
        self.fuel -= FUEL_PER_BOOST

    def _limit_speed(self):
        self.state.vx = max(-MAX_SPEED, min(MAX_SPEED, self.state.vx))

    # ──────────────────────────────────────────────────────────────────────────
    # Geometry for renderers
    # ──────────────────────────────────────────────────────────────────────────

    def wheel_positions(self) -> list:
        """World coordinates of each wheel centre."""
        s = self.state
        cos, sin = math.cos(s.angle), math.sin(s.angle)
        return [
            (s.x + wx * cos - wy * sin, s.y + wx * sin + wy * cos)
            for wx, wy in WHEEL_OFFSETS
        ]

    def snapshot(self) -> dict:
        s = self.state
        return {
            "x":      s.x,
            "y":      s.y,
            "angle":  s.angle,
            "score":  self.score,
            "fuel":   self.fuel,
            "dead":   self.is_dead,
            "width":  BODY_WIDTH,
            "height": BODY_HEIGHT,
            "wheelRadius": WHEEL_RADIUS,
            "wheels": self.wheel_positions(),
        }
