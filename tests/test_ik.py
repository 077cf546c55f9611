import logging
import math

import numpy as np
import pytest

from geometry import Dimensions, Pose, DEFAULT_DIMENSIONS, FOOT_TOL, fixed_foot_points, local_body_points
from IK import (solve, solve_leg_angles, interior_angle, is_reachable,
                pose, feet_in_body_frame)
from utils import to_world_frame

DIMS = [
    DEFAULT_DIMENSIONS,
    Dimensions(front=50, side=150, middle=75, coxa=20, femur=150, tibia=20),
    Dimensions(front=120, side=60, middle=140, coxa=100, femur=20, tibia=150),
    Dimensions(front=1e-3, side=2e-3, middle=5e-4, coxa=1e-3, femur=1e-3, tibia=1e-3),
    Dimensions(front=1e4, side=1e4, middle=1e4, coxa=3e3, femur=7e3, tibia=9e3),
]

REACHABLE_POSES = [
    Pose(tz=80),
    Pose(tx=20, ty=-15, tz=60),
    Pose(tz=80, rx=5, ry=-4, rz=10),
    Pose(tx=-10, ty=8, tz=70, rx=-4, ry=3, rz=-12),
]

EXTREME_POSES = [
    Pose(tz=1e4),
    Pose(tz=-1e4),
    Pose(tx=1e3, ty=-1e3),
    Pose(rx=179, ry=-179, rz=359),
    Pose(tx=310, tz=0),
    Pose(tx=-210, ty=0, tz=0),
]


def feet_array(config):
    return np.array([leg.foot for leg in config.legs])


@pytest.mark.parametrize("dims", DIMS)
def test_identity_pose_keeps_feet_planted(dims):
    config = solve(dims, Pose())
    np.testing.assert_allclose(feet_array(config), fixed_foot_points(dims), atol=FOOT_TOL)


@pytest.mark.parametrize("body_pose", REACHABLE_POSES)
def test_posed_body_keeps_feet_planted(body_pose):
    config = solve(DEFAULT_DIMENSIONS, body_pose)
    assert all(leg.reachable for leg in config.legs)
    np.testing.assert_allclose(feet_array(config), fixed_foot_points(DEFAULT_DIMENSIONS), atol=FOOT_TOL)


@pytest.mark.parametrize("body_pose", REACHABLE_POSES)
def test_segment_lengths_hold_when_reachable(body_pose):
    d = DEFAULT_DIMENSIONS
    J = solve(d, body_pose).joint_array()
    seg = np.linalg.norm(np.diff(J, axis=1), axis=2)
    np.testing.assert_allclose(seg[:, 0], d.coxa)
    np.testing.assert_allclose(seg[:, 1], d.femur)
    np.testing.assert_allclose(seg[:, 2], d.tibia)


@pytest.mark.parametrize("body_pose", REACHABLE_POSES)
def test_body_corners_follow_pose(body_pose):
    config = solve(DEFAULT_DIMENSIONS, body_pose)
    expected = to_world_frame(local_body_points(DEFAULT_DIMENSIONS),
                              body_pose.rotation_rad, body_pose.translation)
    np.testing.assert_allclose(np.array(config.body_corners), expected)
    np.testing.assert_allclose(np.array([leg.body_contact for leg in config.legs]), expected)


@pytest.mark.parametrize("dims", DIMS)
@pytest.mark.parametrize("body_pose", EXTREME_POSES + REACHABLE_POSES)
def test_angles_are_always_real(dims, body_pose):
    config = solve(dims, body_pose)
    assert len(config.legs) == 6
    assert np.all(np.isfinite(config.angles_deg()))
    assert np.all(np.isfinite(config.joint_array()))


def test_standing_scenario():
    config = solve(DEFAULT_DIMENSIONS, Pose(tz=80))
    assert len(config.legs) == 6
    assert len(config.body_corners) == 6
    for leg in config.legs:
        assert leg.foot.z == pytest.approx(0.0, abs=1e-9)
        assert -180.0 <= leg.femur_angle <= 180.0
        assert -180.0 <= leg.tibia_angle <= 180.0
        assert leg.coxa_angle == pytest.approx(0.0, abs=1e-9)
        # reach 160, drop 80
        assert leg.femur_angle == pytest.approx(12.95, abs=0.05)
        assert leg.tibia_angle == pytest.approx(108.46, abs=0.05)
        assert leg.reachable
    np.testing.assert_allclose([p.z for p in config.body_corners], 80.0)


def test_femur_deviation_grows_with_height():
    d = DEFAULT_DIMENSIONS
    heights = np.linspace(0.0, d.coxa + d.femur + d.tibia, 28)
    femur = np.array([solve(d, Pose(tz=tz)).angles_deg()[:, 1] for tz in heights])
    deviation = np.abs(femur - femur[0])
    assert np.all(np.diff(deviation, axis=0) > 0)


def test_unreachable_leg_is_flagged_and_clamped():
    d = DEFAULT_DIMENSIONS
    config = solve(d, Pose(tz=300))
    assert config.unreachable == list(config.legs)
    for leg in config.legs:
        assert leg.tibia_angle == pytest.approx(180.0)
        # foot is still drawn at its planted point
        assert leg.foot.z == pytest.approx(0.0, abs=1e-9)
    # knee stays a femur length from the coxa end
    J = config.joint_array()
    np.testing.assert_allclose(np.linalg.norm(J[:, 2] - J[:, 1], axis=1), d.femur)


def test_unreachable_legs_are_logged(caplog):
    with caplog.at_level(logging.DEBUG, logger="IK"):
        solve(DEFAULT_DIMENSIONS, Pose(tz=300))
    assert "legs clamped" in caplog.text


def test_solve_is_pure():
    a = solve(DEFAULT_DIMENSIONS, Pose(tz=80, rz=10))
    solve(DEFAULT_DIMENSIONS, Pose(tz=-40, rx=25))
    b = solve(DEFAULT_DIMENSIONS, Pose(tz=80, rz=10))
    assert a == b


def test_feet_in_body_frame_undo_pose():
    body_pose = Pose(tx=5, ty=-7, tz=80, rx=12, ry=-8, rz=30)
    rpy, T, P = pose(DEFAULT_DIMENSIONS, body_pose)
    feet = fixed_foot_points(DEFAULT_DIMENSIONS)
    local = feet_in_body_frame(feet, rpy, T)
    np.testing.assert_allclose(to_world_frame(local, rpy, T), feet, atol=1e-9)


def test_solve_leg_angles_out_of_line_foot():
    d = DEFAULT_DIMENSIONS
    ang = solve_leg_angles([100.0, 0.0, 0.0], 0.0, [260.0, 160.0, -80.0], d)
    assert math.degrees(ang.coxa) == pytest.approx(45.0)
    assert ang.reach == pytest.approx(160.0*math.sqrt(2) - d.coxa)
    assert ang.height == pytest.approx(-80.0)


def test_foot_at_femur_pivot():
    # zero hypotenuse: the triangle collapses but angles stay real
    d = Dimensions(front=100, side=100, middle=100, coxa=50, femur=100, tibia=100)
    ang = solve_leg_angles([100.0, 0.0, 0.0], 0.0, [150.0, 0.0, 0.0], d)
    assert ang.hypotenuse == pytest.approx(0.0)
    assert math.isfinite(ang.femur) and math.isfinite(ang.tibia)
    assert ang.reachable


@pytest.mark.parametrize("a, b, opposite, expected", [
    (3.0, 4.0, 5.0, 90.0),
    (1.0, 1.0, 1.0, 60.0),
    (1.0, 1.0, 3.0, 180.0),   # too long
    (5.0, 1.0, 1.0, 0.0),     # too short
    (100.0, 0.0, 100.0, 90.0),
    (100.0, 0.0, 50.0, 0.0),
    (100.0, 0.0, 150.0, 180.0),
])
def test_interior_angle(a, b, opposite, expected):
    assert math.degrees(interior_angle(a, b, opposite)) == pytest.approx(expected)


@pytest.mark.parametrize("c, expected", [
    (220.0, True), (20.0, True), (150.0, True),
    (220.1, False), (19.9, False), (0.0, False),
])
def test_is_reachable(c, expected):
    assert is_reachable(c, 100.0, 120.0) is expected
