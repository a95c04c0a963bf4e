"""Quasi-static feedback controller with integral action for a slung load.

The state vector ``z`` (NED frame) holds the load position (0-2), the cable
direction (3-5), the load velocity (6-8), the cable angular rate (9-11) and
the three integrator states (12-14).
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

__all__ = ["IntegralControlOutput", "matlab_power", "qsf_integral_controller"]


@dataclass(frozen=True)
class IntegralControlOutput:
    """Force on the vehicle and the derivative of the integrator states."""

    force: tuple[float, float, float]
    xi_dot: tuple[float, float, float]


def matlab_power(base, exponent) -> float:
    """Raise ``base`` to ``exponent`` with IEEE results instead of exceptions."""
    u0 = float(base)
    u1 = float(exponent)
    if math.isnan(u0) or math.isnan(u1):
        return math.nan
    d = abs(u0)
    d1 = abs(u1)
    if math.isinf(u1):
        if d == 1.0:
            return 1.0
        if d > 1.0:
            return math.inf if u1 > 0.0 else 0.0
        return 0.0 if u1 > 0.0 else math.inf
    if d1 == 0.0:
        return 1.0
    if d1 == 1.0:
        if u1 > 0.0:
            return u0
        if u0 == 0.0:
            return math.copysign(math.inf, u0)
        return 1.0 / u0
    if u1 == 2.0:
        return u0 * u0
    if u1 == 0.5 and u0 >= 0.0:
        return math.sqrt(u0)
    if u0 < 0.0 and u1 > math.floor(u1):
        return math.nan

    odd_integer = u1 == math.floor(u1) and math.fmod(u1, 2.0) != 0.0
    sign = -1.0 if (u0 < 0.0 or math.copysign(1.0, u0) < 0.0) and odd_integer else 1.0
    if u0 == 0.0 and u1 < 0.0:
        return sign * math.inf
    try:
        return math.pow(u0, u1)
    except OverflowError:
        return sign * math.inf


def _vector(values, size: int, name: str) -> np.ndarray:
    arr = np.asarray(values, dtype=np.float64).reshape(-1)
    if arr.shape != (size,):
        raise ValueError(f"{name} must have {size} elements, got {arr.size}")
    return arr


def qsf_integral_controller(z, k, param, ref_1, ref_2, ref_3) -> IntegralControlOutput:
    """Compute the vehicle force for the slung-load system.

    ``k`` holds 13 gains: five for x (integral, position, velocity,
    acceleration, jerk), five for y, and three for z (integral, position,
    velocity). ``param`` is (load mass, vehicle mass, cable length, gravity).
    Each ``ref_i`` is the reference and its first four derivatives along one
    axis. Singular states give non-finite results rather than errors.
    """
    z = _vector(z, 15, "z")
    k = _vector(k, 13, "k")
    param = _vector(param, 4, "param")
    r1 = _vector(ref_1, 5, "ref_1")
    r2 = _vector(ref_2, 5, "ref_2")
    r3 = _vector(ref_3, 5, "ref_3")

    with np.errstate(all="ignore"):
        g = param[3]
        length = param[2]
        m_load = param[1]

        # Vertical output: nu3 is the commanded vertical acceleration.
        ez_dt = z[8] - r3[1]
        ez = z[2] - r3[0]
        nu3 = (-k[10] * z[14] + -k[11] * ez + -k[12] * ez_dt) + r3[2]
        nu3_dt = (-k[10] * ez + -k[11] * ez_dt + -k[12] * (nu3 - r3[2])) + r3[3]

        omega_num = -g + nu3
        b = g - nu3
        z5_sq = z[5] * z[5]
        cross = z[3] * z[10] - z[4] * z[9]
        e_term = z[4] * z[11] * b

        ey = z[1] - r2[0]
        y_errors = (
            z[13],
            ey,
            z[7] - r2[1],
            z[4] * omega_num / z[5] - r2[2],
            ((z[9] * b * z5_sq + (z[4] * nu3_dt - z[3] * z[11] * b) * z[5]) - z[4] * cross * b)
            / z5_sq
            - r2[3],
        )
        nu2 = sum(-gain * err for gain, err in zip(k[5:10], y_errors))

        ex = z[0] - r1[0]
        x_errors = (
            z[12],
            ex,
            z[6] - r1[1],
            z[3] * omega_num / z[5] - r1[2],
            ((-z[10] * b * z5_sq + (z[3] * nu3_dt + e_term) * z[5]) - z[3] * cross * b) / z5_sq
            - r1[3],
        )
        nu1 = sum(-gain * err for gain, err in zip(k[0:5], x_errors))

        w9_sq = z[9] * z[9]
        w10_sq = z[10] * z[10]
        w11_sq = z[11] * z[11]
        total_mass = param[0] + param[1]
        q1_sq = z[3] * z[3]
        q1q2 = z[3] * z[4]

        # Columns of the input transformation matrix.
        col0 = (z[3] * total_mass, z[4] * total_mass, z[5] * total_mass)
        col1 = (-q1q2 / z[5], (-(z[4] * z[4]) + 1.0) / z[5], -z[4])
        col2 = ((q1_sq - 1.0) / z[5], q1q2 / z[5], z[3])

        u0 = omega_num / z[5] + m_load * length / total_mass * ((w9_sq + w10_sq) + w11_sq)
        w = z[11] * b
        q3_cubed = matlab_power(z[5], 3.0)
        two_thirds = 2.0 / 3.0
        u1 = (
            -2.0
            * m_load
            * (
                (
                    ((-z[10] * z[11] * b - (nu2 + r2[4]) / 2.0) * q3_cubed)
                    + ((-z[4] * b * w10_sq - 3.0 * z[9] * z[3] * b * z[10]) + (2.0 * z[3] * nu3_dt + e_term) * z[11])
                    * z5_sq
                    / 2.0
                )
                + (
                    ((-1.5 * z[11] * b * q1_sq + q1q2 * nu3_dt) + w / 2.0) * z[10]
                    + 1.5 * z[9] * ((two_thirds * q1_sq * nu3_dt + e_term * z[3]) - two_thirds * nu3_dt)
                )
                * z[5]
                + b
                * (
                    (-w10_sq * q1_sq * z[4] + 2.0 * z[9] * (-matlab_power(z[3], 3.0) + z[3]) * z[10])
                    + w9_sq * z[4] * (z[3] - 1.0) * (z[3] + 1.0)
                )
            )
            * length
            / z[5]
            / b
        )

        n = nu3_dt * z[10]
        wz = w * z[9]
        u2 = (
            2.0
            * m_load
            * (
                (
                    (((wz / 2.0 + n) - (nu1 + r1[4]) / 2.0) * q3_cubed)
                    + (((w9_sq - 2.0 * w10_sq) + w11_sq) * b * z[3] + (z[10] * b * z[9] - 2.0 * z[11] * nu3_dt) * z[4])
                    * z5_sq
                    / 2.0
                )
                + (
                    ((1.5 * z[11] * b * z[9] + n) * q1_sq - (z[9] * nu3_dt - 1.5 * z[10] * z[11] * b) * z[4] * z[3])
                    - wz
                )
                * z[5]
                + (((w9_sq - w10_sq) * q1_sq + 2.0 * z[9] * z[10] * z[3] * z[4]) - w9_sq) * b * z[3]
            )
            * length
            / z[5]
            / b
        )

        force = tuple(float(a * u0 + c * u1 + d * u2) for a, c, d in zip(col0, col1, col2))

    return IntegralControlOutput(force=force, xi_dot=(float(ex), float(ey), float(ez)))