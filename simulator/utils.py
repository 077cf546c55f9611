# utils.py
import numpy as np

def R_x(a):
    return np.array([[1,0,0],
                     [0,np.cos(a),-np.sin(a)],
                     [0,np.sin(a), np.cos(a)]])

def R_y(a):
    return np.array([[ np.cos(a),0, np.sin(a)],
                     [0,          1, 0         ],
                     [-np.sin(a),0, np.cos(a) ]])

def R_z(a):
    return np.array([[np.cos(a),-np.sin(a),0],
                     [np.sin(a), np.cos(a),0],
                     [0,         0,        1]])

def rpy_to_R(rx, ry, rz):
    # rotate about X first, then Y, then Z
    return R_z(rz) @ R_y(ry) @ R_x(rx)

def rpy_to_R_inv(rx, ry, rz):
    # undo Z, then Y, then X
    return R_x(-rx) @ R_y(-ry) @ R_z(-rz)

def circle_points(radius, n=256, z=0.0):
    t = np.linspace(0, 2*np.pi, n, endpoint=True)
    return np.column_stack([radius*np.cos(t), radius*np.sin(t), np.full(n, z)])

def transform_points(R, T, Pts):
    # P' = R*P + T
    return (R @ Pts.T).T + T

def to_world_frame(Pts, rpy, T):
    """Body-local points -> world: rotate X, Y, Z (rad) then translate."""
    Pts = np.atleast_2d(np.asarray(Pts, dtype=float))
    return transform_points(rpy_to_R(*rpy), np.asarray(T, dtype=float), Pts)

def to_local_frame(Pts, rpy, T):
    """World points -> body-local: exact inverse of to_world_frame."""
    Pts = np.atleast_2d(np.asarray(Pts, dtype=float))
    return (rpy_to_R_inv(*rpy) @ (Pts - np.asarray(T, dtype=float)).T).T
