"""
Physics step for HillDrive.

Every simulated object owns one KinematicState. The engine only touches a
body through three attributes:

  mass       – float, unused by the current integrator
  is_static  – static bodies are never moved
  state      – the mutable KinematicState

Collisions are resolved against a single flat ground plane, not against the
terrain height field.
"""

from config import (GRAVITY, LINEAR_DAMPING, ANGULAR_DAMPING,
                    GROUND_LEVEL, RESTITUTION)


class KinematicState:
    """Position, velocity and orientation of one body."""
    __slots__ = ("x", "y", "vx", "vy", "angle", "angular_velocity", "on_ground")

    def __init__(self, x: float = 0.0, y: float = 0.0,
                 vx: float = 0.0, vy: float = 0.0,
                 angle: float = 0.0, angular_velocity: float = 0.0):
        self.x  = float(x)
        self.y  = float(y)
        self.vx = float(vx)
        self.vy = float(vy)
        self.angle            = float(angle)
        self.angular_velocity = float(angular_velocity)
        self.on_ground        = False

    def copy(self) -> "KinematicState":
        clone = KinematicState(self.x, self.y, self.vx, self.vy,
                               self.angle, self.angular_velocity)
        clone.on_ground = self.on_ground
        return clone

    def __repr__(self):
        return (f"KinematicState(x={self.x:.2f}, y={self.y:.2f}, "
                f"vx={self.vx:.2f}, vy={self.vy:.2f}, "
                f"angle={self.angle:.3f}, w={self.angular_velocity:.3f})")


class Body:
    """Plain physics body for anything that is not a vehicle."""
    __slots__ = ("state", "mass", "is_static", "width", "height", "kind")

    def __init__(self, state: KinematicState = None, mass: float = 1.0,
                 is_static: bool = False, width: float = 20,
                 height: float = 20, kind: str = "rectangle"):
        self.state     = state if state is not None else KinematicState()
        self.mass      = mass
        self.is_static = is_static
        self.width     = width
        self.height    = height
        self.kind      = kind


class PhysicsEngine:
    """
    Integrates gravity, position, damping and ground bounce for a list of
    bodies, one uniform step at a time.
    """

    def __init__(self, gravity: float = GRAVITY,
                 ground_level: float = GROUND_LEVEL,
                 restitution: float = RESTITUTION):
        self.gravity      = gravity
        self.ground_level = ground_level
        self.restitution  = restitution
        self.bodies       = []

    # ──────────────────────────────────────────────────────────────────────────

    def add_body(self, body):
        self.bodies.append(body)
        return body

    def remove_body(self, body):
        """Remove body if present (identity match)."""
        for i, b in enumerate(self.bodies):
            if b is body:
                del self.bodies[i]
                return

    def clear(self):
        self.bodies = []

    def create_body(self, **options) -> Body:
        """Build a generic Body from keyword options and register it."""
        state = KinematicState(
            x=options.get("x", 0.0),
            y=options.get("y", 0.0),
            vx=options.get("vx", 0.0),
            vy=options.get("vy", 0.0),
            angle=options.get("angle", 0.0),
            angular_velocity=options.get("angular_velocity", 0.0),
        )
        body = Body(
            state=state,
            mass=options.get("mass", 1.0),
            is_static=options.get("is_static", False),
            width=options.get("width", 20),
            height=options.get("height", 20),
            kind=options.get("kind", "rectangle"),
        )
        return self.add_body(body)

    # ──────────────────────────────────────────────────────────────────────────

    def step(self, dt: float):
        """Advance every registered body by dt seconds."""
        for body in self.bodies:
            if not body.is_static:
                self.integrate(body.state, dt)
        self.handle_collisions()

    def integrate(self, s: KinematicState, dt: float):
        s.vy += self.gravity * dt

        s.x += s.vx * dt
        s.y += s.vy * dt
        s.angle += s.angular_velocity * dt

        s.vx *= LINEAR_DAMPING
        s.vy *= LINEAR_DAMPING
        s.angular_velocity *= ANGULAR_DAMPING

    def handle_collisions(self):
        for body in self.bodies:
            self.collide_with_ground(body.state)

    def collide_with_ground(self, s: KinematicState):
        if s.y > self.ground_level:
            s.y = self.ground_level
            # falling means vy > 0; the bounce sends it back up
            s.vy = min(0.0, s.vy * -self.restitution)
            s.on_ground = True
        else:
            s.on_ground = False
