"""Quaternion helpers using the (w, x, y, z) convention."""

from __future__ import annotations

import math

import numpy as np

__all__ = ["quat_multiply", "quat_conjugate", "quat_to_rotation", "rotation_to_quat"]


def _quat(values, name: str) -> np.ndarray:
    q = np.asarray(values, dtype=float)
    if q.shape != (4,):
        raise ValueError(f"{name} must have 4 components (w, x, y, z), got shape {q.shape}")
    return q


def quat_multiply(q, p) -> np.ndarray:
    """Hamilton product ``q * p``."""
    q = _quat(q, "q")
    p = _quat(p, "p")
    return np.array(
        [
            q[0] * p[0] - q[1] * p[1] - q[2] * p[2] - q[3] * p[3],
            q[0] * p[1] + q[1] * p[0] + q[2] * p[3] - q[3] * p[2],
            q[0] * p[2] - q[1] * p[3] + q[2] * p[0] + q[3] * p[1],
            q[0] * p[3] + q[1] * p[2] - q[2] * p[1] + q[3] * p[0],
        ]
    )


def quat_conjugate(q) -> np.ndarray:
    """Conjugate of ``q``: the vector part negated."""
    q = _quat(q, "q")
    return q * np.array([1.0, -1.0, -1.0, -1.0])


def quat_to_rotation(q) -> np.ndarray:
    """Rotation matrix of the quaternion ``q``."""
    w, x, y, z = _quat(q, "q")
    return np.array(
        [
            [w * w + x * x - y * y - z * z, 2 * x * y - 2 * w * z, 2 * w * y + 2 * x * z],
            [2 * w * z + 2 * x * y, w * w - x * x + y * y - z * z, 2 * y * z - 2 * w * x],
            [2 * x * z - 2 * w * y, 2 * w * x + 2 * y * z, w * w - x * x - y * y + z * z],
        ]
    )


def rotation_to_quat(r) -> np.ndarray:
    """Quaternion of the rotation matrix ``r``."""
    r = np.asarray(r, dtype=float)
    if r.shape != (3, 3):
        raise ValueError(f"rotation matrix must be 3x3, got shape {r.shape}")
    trace = r[0, 0] + r[1, 1] + r[2, 2]
    if trace > 0.0:
        s = math.sqrt(trace + 1.0) * 2.0
        return np.array(
            [
                0.25 * s,
                (r[2, 1] - r[1, 2]) / s,
                (r[0, 2] - r[2, 0]) / s,
                (r[1, 0] - r[0, 1]) / s,
            ]
        )
    if r[0, 0] > r[1, 1] and r[0, 0] > r[2, 2]:
        s = math.sqrt(1.0 + r[0, 0] - r[1, 1] - r[2, 2]) * 2.0
        return np.array(
            [
                (r[2, 1] - r[1, 2]) / s,
                0.25 * s,
                (r[0, 1] + r[1, 0]) / s,
                (r[0, 2] + r[2, 0]) / s,
            ]
        )
    if r[1, 1] > r[2, 2]:
        s = math.sqrt(1.0 + r[1, 1] - r[0, 0] - r[2, 2]) * 2.0
        return np.array(
            [
                (r[0, 2] - r[2, 0]) / s,
                (r[0, 1] + r[1, 0]) / s,
                0.25 * s,
                (r[1, 2] + r[2, 1]) / s,
            ]
        )
    s = math.sqrt(1.0 + r[2, 2] - r[0, 0] - r[1, 1]) * 2.0
    return np.array(
        [
            (r[1, 0] - r[0, 1]) / s,
            (r[0, 2] + r[2, 0]) / s,
            (r[1, 2] + r[2, 1]) / s,
            0.25 * s,
        ]
    )