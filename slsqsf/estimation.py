"""Finite-difference state estimation for the slung-load system.

Positions and attitudes arrive in the ENU world frame. The controller works
in NED, so the state handed to it is re-ordered with :func:`to_ned_state`.
"""

from __future__ import annotations

import math
import sys
from dataclasses import dataclass
from typing import Optional

import numpy as np

from slsqsf.quaternion import quat_conjugate, quat_multiply

__all__ = ["Measurement", "SlsState", "FiniteDifferenceEstimator", "to_ned_state"]

# Smallest time step accepted for a finite difference.
_FD_EPSILON = sys.float_info.min


def _vec(values, size: int, name: str) -> np.ndarray:
    arr = np.array(values, dtype=float).reshape(-1)
    if arr.shape != (size,):
        raise ValueError(f"{name} must have {size} components, got {arr.size}")
    return arr


def _unit(vector: np.ndarray, name: str) -> np.ndarray:
    norm = float(np.linalg.norm(vector))
    if norm == 0.0:
        raise ValueError(f"{name} has zero length")
    return vector / norm


@dataclass(frozen=True)
class Measurement:
    """One sample of the vehicle pose and, optionally, the load position (ENU)."""

    position: np.ndarray
    attitude: np.ndarray
    load_position: Optional[np.ndarray] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "position", _vec(self.position, 3, "position"))
        object.__setattr__(self, "attitude", _vec(self.attitude, 4, "attitude"))
        if self.load_position is not None:
            object.__setattr__(self, "load_position", _vec(self.load_position, 3, "load_position"))


@dataclass(frozen=True)
class SlsState:
    """Controller state in NED: load position, cable direction, their rates."""

    load_position: tuple[float, float, float]
    pend_angle: tuple[float, float, float]
    load_velocity: tuple[float, float, float]
    pend_rate: tuple[float, float, float]

    def as_array(self) -> np.ndarray:
        """The 12-element state vector ``[xp, q, dxp, w]``."""
        return np.array([*self.load_position, *self.pend_angle, *self.load_velocity, *self.pend_rate])


def _enu_to_ned(vector) -> tuple[float, float, float]:
    v = _vec(vector, 3, "vector")
    return (float(v[1]), float(v[0]), float(-v[2]))


def to_ned_state(load_position, pend_angle, load_velocity, pend_rate) -> SlsState:
    """Build the NED state from ENU vectors: (x, y, z) becomes (y, x, -z)."""
    return SlsState(
        load_position=_enu_to_ned(load_position),
        pend_angle=_enu_to_ned(pend_angle),
        load_velocity=_enu_to_ned(load_velocity),
        pend_rate=_enu_to_ned(pend_rate),
    )


class FiniteDifferenceEstimator:
    """Estimates velocities and rates from successive pose samples.

    Unless ``use_real_pend_angle`` is set, the load is assumed to hang
    straight below the vehicle at ``cable_length``. Previous values start at
    zero. A time step that is not positive keeps the previous estimates.
    """

    def __init__(self, cable_length, use_real_pend_angle):
        self.cable_length = float(cable_length)
        self.use_real_pend_angle = bool(use_real_pend_angle)

        self.position = np.zeros(3)
        self.attitude = np.zeros(4)
        self.load_position = np.zeros(3)
        self.pend_angle = np.zeros(3)
        self.velocity = np.zeros(3)
        self.rate = np.zeros(3)
        self.load_velocity = np.zeros(3)
        self.load_acc = np.zeros(3)
        self.pend_rate = np.zeros(3)
        self.pend_angular_acc = np.zeros(3)

        self._prev = self._snapshot()

    def _snapshot(self) -> dict:
        return {
            "position": self.position.copy(),
            "attitude": self.attitude.copy(),
            "load_position": self.load_position.copy(),
            "pend_angle": self.pend_angle.copy(),
            "velocity": self.velocity.copy(),
            "rate": self.rate.copy(),
            "load_velocity": self.load_velocity.copy(),
            "load_acc": self.load_acc.copy(),
            "pend_rate": self.pend_rate.copy(),
            "pend_angular_acc": self.pend_angular_acc.copy(),
        }

    def update(self, measurement: Measurement, dt) -> SlsState:
        """Take in one sample taken ``dt`` seconds after the last; return the NED state."""
        dt = float(dt)
        prev = self._prev

        self.position = measurement.position.copy()
        self.attitude = measurement.attitude.copy()

        if self.use_real_pend_angle:
            if measurement.load_position is None:
                raise ValueError("load_position is required when the real cable angle is used")
            self.load_position = measurement.load_position.copy()
        else:
            self.load_position = self.position + np.array([0.0, 0.0, -self.cable_length])

        self.pend_angle = _unit(self.load_position - self.position, "cable direction")

        if dt > _FD_EPSILON:
            error = quat_multiply(quat_conjugate(prev["attitude"]), self.attitude)
            self.velocity = (self.position - prev["position"]) / dt
            self.rate = (2.0 / dt) * math.copysign(1.0, error[0]) * error[1:]
            self.load_velocity = (self.load_position - prev["load_position"]) / dt
            self.load_acc = (self.load_velocity - prev["load_velocity"]) / dt
            self.pend_rate = np.cross(self.pend_angle, (self.pend_angle - prev["pend_angle"]) / dt)
            self.pend_angular_acc = (self.pend_rate - prev["pend_rate"]) / dt
            self._prev = self._snapshot()
        else:
            self.velocity = prev["velocity"].copy()
            self.rate = prev["rate"].copy()
            self.load_velocity = prev["load_velocity"].copy()
            self.load_acc = prev["load_acc"].copy()
            self.pend_rate = prev["pend_rate"].copy()
            self.pend_angular_acc = prev["pend_angular_acc"].copy()

        return to_ned_state(self.load_position, self.pend_angle, self.load_velocity, self.pend_rate)