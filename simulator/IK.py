# ik.py
"""
Body-pose inverse kinematics for a six-legged walker.

The feet are planted on a fixed ring on the ground; the body is moved by a
pose (translation + X/Y/Z rotation) and every leg is re-solved so that its
foot stays on its planted point.

Targets outside the femur/tibia triangle are not rejected: the law-of-cosines
argument is clamped to [-1, 1] and the leg is drawn as the closest bent leg.
Such legs come back with ``reachable=False`` and their femur/knee joints are
only an approximation.
"""
import logging
from dataclasses import dataclass
from typing import NamedTuple, Tuple

import numpy as np

from geometry import (N_LEGS, REACH_TOL, Point3D, local_body_points,
                      leg_mounts, fixed_foot_points)
from utils import R_z, to_world_frame, to_local_frame
from FK import leg_plane_points, leg_points_local

logger = logging.getLogger(__name__)


class LegAngles(NamedTuple):
    coxa: float        # rad
    femur: float       # rad, femur above horizontal
    tibia: float       # rad, interior knee angle
    reach: float       # femur pivot -> foot, horizontal
    height: float      # femur pivot -> foot, vertical (signed)
    hypotenuse: float
    reachable: bool


@dataclass(frozen=True)
class LegResult:
    leg_id: int
    name: str
    coxa_angle: float      # deg
    femur_angle: float     # deg
    tibia_angle: float     # deg
    body_contact: Point3D
    coxa: Point3D
    femur: Point3D
    foot: Point3D
    reachable: bool

    @property
    def joints(self):
        return (self.body_contact, self.coxa, self.femur, self.foot)

    @property
    def angles(self):
        return (self.coxa_angle, self.femur_angle, self.tibia_angle)


@dataclass(frozen=True)
class Configuration:
    legs: Tuple[LegResult, ...]
    body_corners: Tuple[Point3D, ...]

    @property
    def unreachable(self):
        return [leg for leg in self.legs if not leg.reachable]

    def angles_deg(self):
        """(6, 3) array of coxa, femur, tibia angles."""
        return np.array([leg.angles for leg in self.legs])

    def joint_array(self):
        """(6, 4, 3) array of body contact, coxa end, femur end, foot."""
        return np.array([leg.joints for leg in self.legs])


def pose(dims, body_pose):
    rpy = body_pose.rotation_rad
    T = body_pose.translation
    P = to_world_frame(local_body_points(dims), rpy, T)
    return rpy, T, P


def feet_in_body_frame(feet, rpy, T):
    # where the planted feet are as seen from the unmoved body
    return to_local_frame(feet, rpy, T)


def is_reachable(c, femur, tibia):
    return bool(abs(femur - tibia) - REACH_TOL <= c <= femur + tibia + REACH_TOL)


def interior_angle(a, b, opposite):
    """Triangle angle between sides a and b, clamped for impossible triangles."""
    num = a*a + b*b - opposite*opposite
    den = 2.0*a*b
    if den == 0.0:
        cos = np.sign(num)
    else:
        cos = num / den
    return float(np.arccos(np.clip(cos, -1.0, 1.0)))


def solve_leg_angles(hip_local, mount_angle, foot_local, dims):
    """
    Coxa/femur/tibia angles putting the foot of one leg at foot_local.
    Both points are in the unrotated body frame.
    """
    v = np.asarray(foot_local, dtype=float) - np.asarray(hip_local, dtype=float)
    vx, vy, vz = R_z(-mount_angle) @ v

    coxa_angle = np.arctan2(vy, vx)
    reach = np.hypot(vx, vy) - dims.coxa
    height = vz
    c = float(np.hypot(reach, height))

    alpha = np.arctan2(height, reach)
    beta = interior_angle(dims.femur, c, dims.tibia)
    gamma = interior_angle(dims.femur, dims.tibia, c)

    return LegAngles(float(coxa_angle), float(alpha + beta), gamma,
                     float(reach), float(height), c,
                     is_reachable(c, dims.femur, dims.tibia))


def solve_leg(mount, hip_world, foot_local, dims, rpy, T):
    ang = solve_leg_angles(mount.hip, mount.mount_angle, foot_local, dims)

    pts_leg = leg_plane_points(dims.coxa, dims.femur, ang.coxa, ang.femur,
                               ang.reach, ang.height)
    pts_local = leg_points_local(mount.hip, mount.mount_angle, pts_leg)
    J = to_world_frame(pts_local, rpy, T)

    return LegResult(
        leg_id=mount.leg_id,
        name=mount.name,
        coxa_angle=float(np.degrees(ang.coxa)),
        femur_angle=float(np.degrees(ang.femur)),
        tibia_angle=float(np.degrees(ang.tibia)),
        body_contact=Point3D(*map(float, hip_world)),
        coxa=Point3D(*map(float, J[0])),
        femur=Point3D(*map(float, J[1])),
        foot=Point3D(*map(float, J[2])),
        reachable=ang.reachable,
    )


def solve(dims, body_pose):
    """
    Solve all six legs for a body pose. Pure: nothing is kept between calls,
    so callers may memoize on (dims, body_pose).
    """
    mounts = leg_mounts(dims)
    feet = fixed_foot_points(dims)
    rpy, T, P = pose(dims, body_pose)
    F = feet_in_body_frame(feet, rpy, T)

    legs = tuple(solve_leg(mounts[i], P[i], F[i], dims, rpy, T) for i in range(N_LEGS))

    missed = [leg.name for leg in legs if not leg.reachable]
    if missed:
        logger.debug('pose %s out of reach for %s, legs clamped', body_pose, ', '.join(missed))

    return Configuration(legs=legs, body_corners=tuple(Point3D(*map(float, p)) for p in P))
