"""Geometric attitude controller producing body rate and thrust commands."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np

from slsqsf.quaternion import quat_conjugate, quat_multiply, quat_to_rotation

__all__ = ["AttitudeCommand", "NonlinearAttitudeControl"]


@dataclass(frozen=True)
class AttitudeCommand:
    """Desired body rates and thrust vector from one controller update."""

    rate: np.ndarray = field(default_factory=lambda: np.zeros(3))
    thrust: np.ndarray = field(default_factory=lambda: np.zeros(3))


class NonlinearAttitudeControl:
    """Attitude controller with error defined as in Brescianini, Hehn and D'Andrea.

    The rate command is proportional to the vector part of the attitude error
    quaternion with time constant ``tau``; the thrust is the reference
    acceleration projected on the body z axis.
    """

    def __init__(self, tau):
        tau = float(tau)
        if tau <= 0.0:
            raise ValueError(f"attitude time constant must be positive, got {tau}")
        self.tau = tau
        self.command = AttitudeCommand()

    def update(self, current_attitude, reference_attitude, reference_acc, reference_jerk):
        """Compute and store the command; the jerk is accepted but not used."""
        current = np.asarray(current_attitude, dtype=float)
        reference = np.asarray(reference_attitude, dtype=float)
        acc = np.asarray(reference_acc, dtype=float)
        if acc.shape != (3,):
            raise ValueError(f"reference acceleration must have 3 components, got shape {acc.shape}")

        error = quat_multiply(quat_conjugate(current), reference)
        gain = (2.0 / self.tau) * math.copysign(1.0, error[0])
        rate = gain * error[1:]

        body_z = quat_to_rotation(current)[:, 2]
        thrust = np.array([0.0, 0.0, float(acc @ body_z)])

        self.command = AttitudeCommand(rate=rate, thrust=thrust)
        return self.command