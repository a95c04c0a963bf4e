"""Offboard sequencing and the acceleration-to-command chain of the controller.

World vectors are ENU and gravity points along -z. Forces coming out of the
slung-load controller are NED and are converted here.
"""

from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np

from slsqsf.quaternion import quat_to_rotation, rotation_to_quat
from slsqsf.reference import clip_rates

__all__ = [
    "ControllerPhase",
    "OffboardControlMode",
    "TakeoffSequencer",
    "GRAVITY",
    "HOVER_SETPOINT_NED",
    "VEHICLE_CMD_DO_SET_MODE",
    "VEHICLE_CMD_COMPONENT_ARM_DISARM",
    "acc_to_quaternion",
    "translate",
    "force_to_acceleration",
    "integrate",
    "normalized_thrust",
    "rotor_drag_compensation",
    "body_rate_command",
]

_log = logging.getLogger(__name__)

GRAVITY = np.array([0.0, 0.0, -9.80665])

# Position held (NED, metres) and yaw while waiting for takeoff.
HOVER_SETPOINT_NED = (0.0, 0.0, -1.35)
HOVER_YAW = 0.0

VEHICLE_CMD_DO_SET_MODE = 176
VEHICLE_CMD_COMPONENT_ARM_DISARM = 400

# Setpoints streamed before switching to offboard mode and arming.
_SETPOINTS_BEFORE_ARMING = 10
# Seconds between arming and handing over to the slung-load controller.
_TAKEOFF_DURATION = 9.0


def _vec3(values, name: str) -> np.ndarray:
    arr = np.asarray(values, dtype=float).reshape(-1)
    if arr.shape != (3,):
        raise ValueError(f"{name} must have 3 components, got {arr.size}")
    return arr


class ControllerPhase(enum.Enum):
    """Stage of the flight: taking off under position control, or controlling the load."""

    WAIT_FOR_TAKEOFF = "wait_for_takeoff"
    SLS_ENABLED = "sls_enabled"


@dataclass(frozen=True)
class OffboardControlMode:
    """Which setpoint kinds the flight controller should follow."""

    position: bool = False
    velocity: bool = False
    acceleration: bool = False
    attitude: bool = False
    body_rate: bool = False


@dataclass
class TakeoffSequencer:
    """Streams position setpoints, arms, and hands over to the load controller.

    ``commands`` collects the vehicle commands issued, each as
    ``(command, param1, param2)``.
    """

    phase: ControllerPhase = ControllerPhase.WAIT_FOR_TAKEOFF
    setpoint_counter: int = 0
    armed: bool = False
    armed_time: Optional[float] = None
    sls_active: bool = False
    commands: List[Tuple[int, float, float]] = field(default_factory=list)

    def __init__(self):
        self.phase = ControllerPhase.WAIT_FOR_TAKEOFF
        self.setpoint_counter = 0
        self.armed = False
        self.armed_time = None
        self.sls_active = False
        self.commands = []

    def _arm(self, now: float) -> None:
        self.commands.append((VEHICLE_CMD_COMPONENT_ARM_DISARM, 1.0, 0.0))
        _log.info("Arm command send")
        self.armed = True
        self.armed_time = now

    def step(self, now, ctrl_enabled, rate_ctrl_enabled) -> OffboardControlMode:
        """Advance one timer tick at time ``now``; return the mode to publish."""
        now = float(now)
        if self.phase is ControllerPhase.WAIT_FOR_TAKEOFF:
            mode = OffboardControlMode(position=True)
            if self.setpoint_counter == _SETPOINTS_BEFORE_ARMING:
                self.commands.append((VEHICLE_CMD_DO_SET_MODE, 1.0, 6.0))
                self._arm(now)
            if self.setpoint_counter <= _SETPOINTS_BEFORE_ARMING:
                self.setpoint_counter += 1
            if self.armed and now - self.armed_time > _TAKEOFF_DURATION:
                _log.info("9s after arming, switching to SLS controller")
                self.phase = ControllerPhase.SLS_ENABLED
            return mode

        ctrl = bool(ctrl_enabled)
        rate = bool(rate_ctrl_enabled)
        self.sls_active = True
        return OffboardControlMode(
            position=not ctrl,
            attitude=ctrl and not rate,
            body_rate=ctrl and rate,
        )


def acc_to_quaternion(acc, yaw) -> np.ndarray:
    """Attitude whose body z axis points along ``acc`` with heading ``yaw`` (ENU)."""
    acc = _vec3(acc, "acc")
    norm = float(np.linalg.norm(acc))
    if norm == 0.0:
        raise ValueError("acceleration has zero length")
    yaw = float(yaw)
    heading = np.array([math.cos(yaw), math.sin(yaw), 0.0])
    zb = acc / norm
    side = np.cross(zb, heading)
    side_norm = float(np.linalg.norm(side))
    if side_norm == 0.0:
        raise ValueError("acceleration is parallel to the heading direction")
    yb = side / side_norm
    forward = np.cross(yb, zb)
    xb = forward / np.linalg.norm(forward)
    return rotation_to_quat(np.column_stack((xb, yb, zb)))


def translate(point, offset) -> np.ndarray:
    """Shift ``point`` by ``offset``."""
    return _vec3(point, "point") + _vec3(offset, "offset")


def force_to_acceleration(force_ned, mass, max_fb_acc, drag_acc) -> np.ndarray:
    """Turn a NED force on the vehicle into a desired ENU acceleration.

    The thrust part (acceleration minus gravity) is limited to ``max_fb_acc``
    and the rotor drag acceleration ``drag_acc`` (None for none) is removed.
    """
    force = _vec3(force_ned, "force_ned")
    mass = float(mass)
    if mass <= 0.0:
        raise ValueError(f"mass must be positive, got {mass}")
    a_des = np.array([force[1], force[0], -force[2]]) / mass
    a_fb = a_des + GRAVITY
    norm = float(np.linalg.norm(a_fb))
    if norm > max_fb_acc:
        a_fb = (float(max_fb_acc) / norm) * a_fb
    drag = np.zeros(3) if drag_acc is None else _vec3(drag_acc, "drag_acc")
    return a_fb - drag - GRAVITY


def integrate(xi, xi_dot, dt, limit) -> np.ndarray:
    """Euler step of the integrator; an axis that would leave ``[-limit, limit]`` is held."""
    state = _vec3(xi, "xi").copy()
    rate = _vec3(xi_dot, "xi_dot")
    dt = float(dt)
    limit = float(limit)
    stepped = state + rate * dt
    within = np.abs(stepped) <= limit
    state[within] = stepped[within]
    return state


def normalized_thrust(thrust, const, offset) -> float:
    """Map a thrust acceleration to a throttle in ``[0, 1]``."""
    return max(0.0, min(1.0, float(const) * float(thrust) + float(offset)))


def rotor_drag_compensation(load_velocity, load_acc, pend_rate, pend_angular_acc, yaw, drag_coefficients) -> np.ndarray:
    """Rotor drag acceleration expected at the vehicle's reference motion."""
    mav_vel = translate(load_velocity, -_vec3(pend_rate, "pend_rate"))
    mav_acc = translate(load_acc, -_vec3(pend_angular_acc, "pend_angular_acc"))
    q_ref = acc_to_quaternion(mav_acc - GRAVITY, yaw)
    r_ref = quat_to_rotation(q_ref)
    drag = np.diag(_vec3(drag_coefficients, "drag_coefficients"))
    return -(r_ref @ drag @ r_ref.T @ mav_vel)


def body_rate_command(controller, attitude, desired_acc, yaw, thrust_const, thrust_offset, rate_limit):
    """Body rates and throttle for ``desired_acc``, with the target attitude.

    Returns ``(command, target_attitude)`` where ``command`` is
    ``(wx, wy, wz, throttle)`` with the rates clipped to ``rate_limit``.
    """
    acc = _vec3(desired_acc, "desired_acc")
    target = acc_to_quaternion(acc, yaw)
    result = controller.update(attitude, target, acc, np.zeros(3))
    throttle = normalized_thrust(result.thrust[2], thrust_const, thrust_offset)
    command = np.array([*np.asarray(result.rate, dtype=float), throttle])
    return clip_rates(command, rate_limit), target