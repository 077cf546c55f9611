# geometry.py
import math
from dataclasses import dataclass, fields
from typing import NamedTuple, Tuple

import numpy as np

# --- Leg layout (fixed order, body frame) ---
LEG_NAMES = ("Right Middle", "Right Front", "Left Front",
             "Left Middle", "Left Back", "Right Back")
N_LEGS = len(LEG_NAMES)

# --- Planted stance ---
TIBIA_STANCE_FRACTION = 0.5   # feet planted with a slightly bent tibia

# --- Slider ranges (min, max) ---
DIMENSION_RANGES = {
    'front':  (50.0, 150.0),
    'side':   (50.0, 150.0),
    'middle': (50.0, 150.0),
    'coxa':   (20.0, 100.0),
    'femur':  (20.0, 150.0),
    'tibia':  (20.0, 150.0),
}
POSE_RANGES = {
    'tx': (-100.0, 100.0),
    'ty': (-100.0, 100.0),
    'tz': (-50.0, 150.0),
    'rx': (-30.0, 30.0),    # deg
    'ry': (-30.0, 30.0),    # deg
    'rz': (-45.0, 45.0),    # deg
}

# --- Tolerances ---
REACH_TOL = 1e-9    # slack on the triangle inequality
FOOT_TOL = 1e-6     # |foot - fixed foot| for a solved leg


class Point3D(NamedTuple):
    x: float
    y: float
    z: float


@dataclass(frozen=True)
class Dimensions:
    """Body-to-hip offsets and leg segment lengths. All strictly positive."""
    front: float
    side: float
    middle: float
    coxa: float
    femur: float
    tibia: float

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if not (math.isfinite(value) and value > 0.0):
                raise ValueError(f'{f.name} must be a positive finite number, got {value!r}')


@dataclass(frozen=True)
class Pose:
    """Body translation and rotation (degrees), applied X, then Y, then Z."""
    tx: float = 0.0
    ty: float = 0.0
    tz: float = 0.0
    rx: float = 0.0
    ry: float = 0.0
    rz: float = 0.0

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if not math.isfinite(value):
                raise ValueError(f'{f.name} must be finite, got {value!r}')

    @property
    def translation(self):
        return np.array([self.tx, self.ty, self.tz], dtype=float)

    @property
    def rotation_rad(self):
        return np.deg2rad([self.rx, self.ry, self.rz])


@dataclass(frozen=True)
class LegMountSpec:
    leg_id: int
    name: str
    hip: Point3D          # local body frame
    mount_angle: float    # rad, outward direction of the leg


DEFAULT_DIMENSIONS = Dimensions(front=100.0, side=100.0, middle=100.0,
                                coxa=50.0, femur=100.0, tibia=120.0)
DEFAULT_POSE = Pose(tz=80.0)


def local_body_points(dims):
    """Hip mounts in the unrotated body frame, one row per leg (6x3)."""
    front, side, middle = dims.front, dims.side, dims.middle
    return np.array([
        [ middle,  0.0,   0.0],   # R middle
        [ side,   -front, 0.0],   # R front
        [-side,   -front, 0.0],   # L front
        [-middle,  0.0,   0.0],   # L middle
        [-side,    front, 0.0],   # L back
        [ side,    front, 0.0],   # R back
    ], dtype=float)


def mount_angles(hips):
    return np.arctan2(hips[:, 1], hips[:, 0])


def leg_mounts(dims) -> Tuple[LegMountSpec, ...]:
    hips = local_body_points(dims)
    angles = mount_angles(hips)
    return tuple(LegMountSpec(i, LEG_NAMES[i], Point3D(*map(float, hips[i])), float(angles[i]))
                 for i in range(N_LEGS))


def nominal_leg_reach(dims):
    return dims.coxa + dims.femur + TIBIA_STANCE_FRACTION * dims.tibia


def fixed_foot_points(dims):
    """
    Ground contacts (z=0) that stay put while the body moves.
    Each foot sits on the leg's mount direction at |hip| + nominal reach.
    """
    hips = local_body_points(dims)
    phi = mount_angles(hips)
    radius = np.hypot(hips[:, 0], hips[:, 1]) + nominal_leg_reach(dims)
    return np.column_stack([radius*np.cos(phi), radius*np.sin(phi), np.zeros(N_LEGS)])
