import math

import pytest

from vehicle import Vehicle, Controls, HumanInput
from config import (SPAWN_X, SPAWN_Y, MAX_FUEL, MAX_SPEED, ACCELERATION,
                    TORQUE, NOMINAL_DT, FUEL_PER_BOOST)


def _hold(vehicle, seconds, dt=0.1, angle=None):
    steps = int(round(seconds / dt))
    for _ in range(steps):
        if angle is not None:
            vehicle.state.angle = angle
        vehicle.update(dt)
    return steps


def test_spawns_with_fresh_state():
    v = Vehicle()
    assert v.position == (SPAWN_X, SPAWN_Y)
    assert v.fuel == MAX_FUEL
    assert (v.score, v.time_alive, v.flip_time) == (0, 0, 0)
    assert not v.is_dead and not v.is_flipped


def test_empty_tank_dies_after_one_update():
    v = Vehicle()
    v.fuel = 0
    v.update(0.01)
    assert v.is_dead


def test_flipped_for_just_over_three_seconds_dies():
    v = Vehicle()
    steps = _hold(v, 3.1, angle=math.pi)
    assert steps == 31
    assert v.is_flipped
    assert v.is_dead


def test_flipped_for_two_point_nine_seconds_survives():
    v = Vehicle()
    _hold(v, 2.9, angle=math.pi)
    assert v.is_flipped
    assert not v.is_dead
    assert v.flip_time == pytest.approx(2.9)


def test_flip_timer_resets_when_upright():
    v = Vehicle()
    _hold(v, 2.0, angle=math.pi)
    _hold(v, 0.1, angle=0.0)
    assert v.flip_time == 0.0
    _hold(v, 2.0, angle=-math.pi)
    assert not v.is_dead


@pytest.mark.parametrize("angle, flipped", [
    (0.0, False),
    (0.69 * math.pi, False),
    (0.71 * math.pi, True),
    (math.pi, True),
    (1.29 * math.pi, True),
    (1.31 * math.pi, False),
    (3 * math.pi, True),
    (-math.pi, True),
])
def test_flip_band(angle, flipped):
    v = Vehicle()
    v.state.angle = angle
    v.update(0.01)
    assert v.is_flipped is flipped


def test_score_tracks_best_progress_and_never_drops():
    v = Vehicle()
    v.state.x = 500
    v.update(0.1)
    assert v.score == pytest.approx(50)

    v.state.x = 100
    v.update(0.1)
    assert v.score == pytest.approx(50)


def test_time_limit_kills():
    v = Vehicle()
    v.time_alive = 30.0
    v.update(0.1)
    assert v.is_dead


def test_falling_through_kills():
    v = Vehicle()
    v.state.y = 801
    v.update(0.1)
    assert v.is_dead


def test_dead_vehicle_ignores_update_and_controls():
    v = Vehicle()
    v.is_dead = True
    v.update(1.0)
    v.apply_controls([1.0, 0.0, 1.0])
    assert v.time_alive == 0
    assert v.state.vx == 0 and v.state.angular_velocity == 0


def test_moving_burns_fuel_over_time():
    v = Vehicle()
    v.state.vx = 5
    v.update(0.5)
    assert v.fuel == pytest.approx(MAX_FUEL - 1.0)

    still = Vehicle()
    still.state.vx = 0.5
    still.update(0.5)
    assert still.fuel == MAX_FUEL


def test_accelerate_adds_impulse_and_burns_fuel():
    v = Vehicle()
    v.apply_controls(Controls(accelerate=0.9, brake=0.1, lean=0.5))
    assert v.state.vx == pytest.approx(ACCELERATION * NOMINAL_DT)
    assert v.fuel == pytest.approx(MAX_FUEL - FUEL_PER_BOOST)


def test_brake_damps_horizontal_velocity():
    v = Vehicle()
    v.state.vx = 10
    v.apply_controls([0.0, 0.9, 0.5])
    assert v.state.vx == pytest.approx(9.0)


@pytest.mark.parametrize("lean, expected", [
    (0.9, TORQUE * NOMINAL_DT),
    (0.61, TORQUE * NOMINAL_DT),
    (0.6, 0.0),
    (0.5, 0.0),
    (0.4, 0.0),
    (0.39, -TORQUE * NOMINAL_DT),
    (0.0, -TORQUE * NOMINAL_DT),
])
def test_lean_has_neutral_band(lean, expected):
    v = Vehicle()
    v.apply_controls([0.0, 0.0, lean])
    assert v.state.angular_velocity == pytest.approx(expected)


def test_speed_is_clamped():
    v = Vehicle()
    v.state.vx = MAX_SPEED - 0.01
    v.apply_controls([1.0, 0.0, 0.5])
    assert v.state.vx == MAX_SPEED

    v.state.vx = -40
    v.apply_controls([0.0, 0.0, 0.5])
    assert v.state.vx == -MAX_SPEED


def test_control_vector_must_have_three_slots():
    with pytest.raises(ValueError):
        Vehicle().apply_controls([0.5, 0.5])


def test_human_controls_follow_same_contract():
    v = Vehicle()
    v.apply_human_controls(HumanInput(accelerate=True, brake=False, lean=-1))
    assert v.state.vx == pytest.approx(ACCELERATION * NOMINAL_DT)
    assert v.state.angular_velocity == pytest.approx(-TORQUE * NOMINAL_DT)
    assert v.fuel == pytest.approx(MAX_FUEL - FUEL_PER_BOOST)


def test_human_lean_must_be_unit_or_zero():
    with pytest.raises(ValueError):
        Vehicle().apply_human_controls(HumanInput(lean=2))


def test_wheel_positions_rotate_with_body():
    v = Vehicle(0, 0)
    assert v.wheel_positions() == [(-15, 10), (15, 10)]
    v.state.angle = math.pi
    (x0, y0), (x1, y1) = v.wheel_positions()
    assert (x0, y0) == pytest.approx((15, -10))
    assert (x1, y1) == pytest.approx((-15, -10))
