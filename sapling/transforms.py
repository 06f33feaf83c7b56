"""
4x4 homogeneous transform helpers.

Matrices act on column vectors: p' = M @ [x, y, z, 1]. Composition reads left
to right the way a transform stack is built, so `a @ b` applies `b` first.
"""

import numpy as np
from scipy.spatial.transform import Rotation

UP = np.array([0.0, 1.0, 0.0])


def identity() -> np.ndarray:
    return np.eye(4)


def make_translation(x: float, y: float, z: float) -> np.ndarray:
    m = np.eye(4)
    m[:3, 3] = (x, y, z)
    return m


def make_scale(s: float) -> np.ndarray:
    m = np.eye(4)
    m[0, 0] = m[1, 1] = m[2, 2] = s
    return m


def make_rotation_x(angle: float) -> np.ndarray:
    c, s = np.cos(angle), np.sin(angle)
    m = np.eye(4)
    m[1, 1], m[1, 2] = c, -s
    m[2, 1], m[2, 2] = s, c
    return m


def make_rotation_y(angle: float) -> np.ndarray:
    c, s = np.cos(angle), np.sin(angle)
    m = np.eye(4)
    m[0, 0], m[0, 2] = c, s
    m[2, 0], m[2, 2] = -s, c
    return m


def make_rotation_axis(axis: np.ndarray, angle: float) -> np.ndarray:
    """Rotation by `angle` radians about the unit vector `axis`."""
    m = np.eye(4)
    m[:3, :3] = Rotation.from_rotvec(np.asarray(axis, dtype=float) * angle).as_matrix()
    return m


def make_basis(
    x_axis: np.ndarray, y_axis: np.ndarray, z_axis: np.ndarray, position: np.ndarray
) -> np.ndarray:
    """Transform whose columns are the given axes, placed at `position`."""
    m = np.eye(4)
    m[:3, 0] = x_axis
    m[:3, 1] = y_axis
    m[:3, 2] = z_axis
    m[:3, 3] = position
    return m


def get_position(m: np.ndarray) -> np.ndarray:
    return m[:3, 3].copy()


def with_position(m: np.ndarray, position: np.ndarray) -> np.ndarray:
    out = m.copy()
    out[:3, 3] = position
    return out


def extract_rotation(m: np.ndarray) -> np.ndarray:
    """Rotation part of `m` with scale removed and no translation."""
    out = np.eye(4)
    basis = m[:3, :3]
    norms = np.linalg.norm(basis, axis=0)
    norms[norms == 0] = 1.0
    out[:3, :3] = basis / norms
    return out


def apply_point(m: np.ndarray, p) -> np.ndarray:
    return m[:3, :3] @ np.asarray(p, dtype=float) + m[:3, 3]


def apply_points(m: np.ndarray, points: np.ndarray) -> np.ndarray:
    """Transform an (N, 3) array of points."""
    return points @ m[:3, :3].T + m[:3, 3]


def apply_direction(m: np.ndarray, v) -> np.ndarray:
    return m[:3, :3] @ np.asarray(v, dtype=float)
