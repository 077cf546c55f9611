import numpy as np

from utils import R_z


def leg_plane_points(coxa, femur, coxa_angle, femur_angle, reach, height):
    """
    Joint positions in the leg frame (hip at origin, x outward, z up).
    Rows: coxa end, femur end, foot.

    The foot is placed from (reach, height) rather than from the knee angle,
    so it stays where the target is even when the triangle was clamped.
    """
    c, s = np.cos(coxa_angle), np.sin(coxa_angle)
    h = np.array([coxa,
                  coxa + femur*np.cos(femur_angle),
                  coxa + reach])
    v = np.array([0.0,
                  femur*np.sin(femur_angle),
                  height])
    return np.column_stack([h*c, h*s, v])


def leg_points_local(hip, mount_angle, pts_leg):
    # leg frame -> body frame: swing out by the mount angle, shift to the hip
    return (R_z(mount_angle) @ np.asarray(pts_leg).T).T + np.asarray(hip, dtype=float)


def extract_rpy_from_R(R):
    # R = R_z(rz) @ R_y(ry) @ R_x(rx); degenerate at |ry| = 90 deg
    ry = np.arcsin(np.clip(-R[2,0], -1.0, 1.0))
    rx = np.arctan2(R[2,1], R[2,2])
    rz = np.arctan2(R[1,0], R[0,0])
    return rx, ry, rz
