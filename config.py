"""
HillDrive Configuration
All tunable parameters for the neuroevolution driving simulation.

Coordinates follow screen convention: x grows to the right, y grows downward,
so a *smaller* y is visually *higher*.
"""

import math

# ─── Terrain ──────────────────────────────────────────────────────────────────
TERRAIN_WIDTH        = 5000    # world units covered by the height field
TERRAIN_SEGMENTS     = 200     # control points = segments + 1
TERRAIN_START_HEIGHT = 500     # height of the first control point
TERRAIN_MAX_HEIGHT   = 200     # visually highest allowed ground (smallest y)
TERRAIN_MIN_HEIGHT   = 400     # visually lowest allowed ground  (largest y)
TERRAIN_STEP         = 50      # per-segment random walk amplitude
TERRAIN_HILL_EVERY   = 20      # every N segments inject a larger bump
TERRAIN_HILL_STEP    = 100     # amplitude of that bump

# ─── Physics ──────────────────────────────────────────────────────────────────
GRAVITY          = 9.81
LINEAR_DAMPING   = 0.99    # velocity multiplier per step
ANGULAR_DAMPING  = 0.95    # angular velocity multiplier per step
GROUND_LEVEL     = 500     # the single flat collision plane
RESTITUTION      = 0.3     # bounce coefficient against the ground plane

# ─── Vehicle ──────────────────────────────────────────────────────────────────
SPAWN_X          = 100
SPAWN_Y          = 300
MAX_SPEED        = 15.0
ACCELERATION     = 8.0
BRAKE_FACTOR     = 0.9     # horizontal velocity multiplier while braking
TORQUE           = 0.3
NOMINAL_DT       = 0.016   # control impulses assume a 60 fps frame
MAX_FUEL         = 100.0
FUEL_PER_BOOST   = 0.1     # drained by every accelerate command
FUEL_PER_SECOND  = 2.0     # drained while moving faster than MOVING_SPEED
MOVING_SPEED     = 1.0
DISTANCE_SCALE   = 10.0    # score = x / DISTANCE_SCALE
FALL_LIMIT_Y     = 800     # below this the vehicle has fallen through
TIME_LIMIT       = 30.0    # seconds a vehicle may live
FLIP_LIMIT       = 3.0     # seconds a vehicle may stay upside down
FLIP_BAND        = (0.7 * math.pi, 1.3 * math.pi)
LEAN_HIGH        = 0.6     # lean output above this → positive torque
LEAN_LOW         = 0.4     # lean output below this → negative torque
BODY_WIDTH       = 40
BODY_HEIGHT      = 20
WHEEL_RADIUS     = 12
WHEEL_OFFSETS    = ((-15, 10), (15, 10))

# ─── Sensors ──────────────────────────────────────────────────────────────────
NUM_RAYS         = 5       # forward-looking ground-distance probes
RAY_SPREAD       = 0.3     # radians between neighbouring rays
RAY_STEP         = 50      # probe i looks RAY_STEP * (i + 1) units ahead
RAY_RANGE        = 100     # ground distance that normalises to 1.0
VELOCITY_SCALE   = 20.0
ANGULAR_SCALE    = 5.0

# Kinematic inputs (index → meaning); ray inputs follow them.
KINEMATIC_LABELS = {
    0: "sin_angle",
    1: "cos_angle",
    2: "velocity_x",
    3: "velocity_y",
    4: "angular_velocity",
}
SENSOR_LABELS = dict(KINEMATIC_LABELS)
for _i in range(NUM_RAYS):
    SENSOR_LABELS[len(KINEMATIC_LABELS) + _i] = f"ground_ray_{_i}"
NUM_SENSORS = len(SENSOR_LABELS)

# Control outputs (index → meaning)
CONTROL_LABELS = {
    0: "accelerate",   # > 0.5 pushes forward and burns fuel
    1: "brake",        # > 0.5 damps horizontal speed
    2: "lean",         # > 0.6 tilt back, < 0.4 tilt forward
}
NUM_CONTROLS = len(CONTROL_LABELS)

# ─── Neural Network ───────────────────────────────────────────────────────────
HIDDEN_LAYERS    = (16, 12)
WEIGHT_LIMIT     = 2.0     # parameters are clamped to ±WEIGHT_LIMIT on mutation

# ─── Evolution ────────────────────────────────────────────────────────────────
POPULATION        = 50
MAX_GENERATIONS   = 100
MUTATION_RATE     = 0.1    # probability a single parameter is perturbed
MUTATION_STRENGTH = 0.3    # width of the uniform perturbation
ELITE_FRACTION    = 0.1
TOURNAMENT_SIZE   = 5
SURVIVAL_BONUS    = 0.1    # fitness per second alive
FLIP_PENALTY      = 0.5    # fitness multiplier for vehicles that ended flipped
MIN_FITNESS       = 0.1
TICK_DT           = 1 / 60

# ─── Output / Logging ─────────────────────────────────────────────────────────
SAVE_DIR           = "output"      # directory for saved images and charts
SNAPSHOT_INTERVAL  = 10            # save a world snapshot every N generations
SAVE_NEURAL_SAMPLE = True          # save neural-network diagrams
LOG_CSV            = True          # write per-generation CSV log
