"""
Sensing for HillDrive.

Builds the fixed-length input vector a vehicle's brain sees each tick:

  0  sin_angle
  1  cos_angle
  2  velocity_x          vx / VELOCITY_SCALE
  3  velocity_y          vy / VELOCITY_SCALE
  4  angular_velocity    ω / ANGULAR_SCALE
  5… ground_ray_i        ground distance under probe i, / RAY_RANGE, in [0, 1]

Probe i is fanned around the body angle at (i - centre) * RAY_SPREAD and
placed RAY_STEP * (i + 1) units ahead along that direction.
"""

import math
from typing import NamedTuple

import numpy as np
from config import (NUM_RAYS, RAY_SPREAD, RAY_STEP, RAY_RANGE,
                    VELOCITY_SCALE, ANGULAR_SCALE, KINEMATIC_LABELS)


class Kinematics(NamedTuple):
    sin_angle:        float
    cos_angle:        float
    velocity_x:       float
    velocity_y:       float
    angular_velocity: float


class SensorReading(NamedTuple):
    """Named sensor fields; as_array() gives the network input order."""
    kinematics: Kinematics
    rays:       tuple

    def as_array(self) -> np.ndarray:
        return np.array((*self.kinematics, *self.rays), dtype=np.float64)

    def __len__(self):
        return len(self.kinematics) + len(self.rays)


def sensor_count(n_rays: int = NUM_RAYS) -> int:
    return len(KINEMATIC_LABELS) + n_rays


def ray_angles(angle: float, n_rays: int = NUM_RAYS) -> list:
    centre = (n_rays - 1) / 2.0
    return [angle + (i - centre) * RAY_SPREAD for i in range(n_rays)]


def read_sensors(vehicle, terrain, n_rays: int = NUM_RAYS) -> SensorReading:
    """Sample kinematics and ground rays for one vehicle."""
    s = vehicle.state
    kin = Kinematics(
        sin_angle=math.sin(s.angle),
        cos_angle=math.cos(s.angle),
        velocity_x=s.vx / VELOCITY_SCALE,
        velocity_y=s.vy / VELOCITY_SCALE,
        angular_velocity=s.angular_velocity / ANGULAR_SCALE,
    )

    rays = []
    for i, a in enumerate(ray_angles(s.angle, n_rays)):
        probe_x = s.x + math.cos(a) * RAY_STEP * (i + 1)
        dist = terrain.ground_distance(probe_x, s.y)
        rays.append(min(max(dist / RAY_RANGE, 0.0), 1.0))

    return SensorReading(kinematics=kin, rays=tuple(rays))
