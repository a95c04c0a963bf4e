"""Load reference generation: static setpoints, sinusoids and a timed mission."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np

from slsqsf.params import ControllerParameters

__all__ = [
    "Reference",
    "MissionPlanner",
    "static_reference",
    "sinusoidal_reference",
    "clip_rates",
]

_log = logging.getLogger(__name__)

_ZERO_DERIVATIVES = (0.0, 0.0, 0.0, 0.0)

# Seconds spent in each static mission stage and in the tracking stage.
_STATIC_STAGE_SPAN = 10.0
_TRACKING_STAGE_SPAN = 20.0
_TRACKING_STAGE = 5


@dataclass(frozen=True)
class Reference:
    """Reference position and its first four derivatives along each axis."""

    x: tuple[float, float, float, float, float] = (0.0,) * 5
    y: tuple[float, float, float, float, float] = (0.0,) * 5
    z: tuple[float, float, float, float, float] = (0.0,) * 5

    def __post_init__(self) -> None:
        for name in ("x", "y", "z"):
            values = tuple(float(v) for v in getattr(self, name))
            if len(values) != 5:
                raise ValueError(f"reference {name} must have 5 entries, got {len(values)}")
            object.__setattr__(self, name, values)


def _vec3(values, name: str) -> np.ndarray:
    arr = np.asarray(values, dtype=float).reshape(-1)
    if arr.shape != (3,):
        raise ValueError(f"{name} must have 3 components, got {arr.size}")
    return arr


def static_reference(target, load_position, horizontal_limit, vertical_limit) -> Reference:
    """Hold ``target``, but no further from the load than the error limits allow.

    Each horizontal axis is clipped to ``horizontal_limit`` around the load
    position and the vertical axis to ``vertical_limit``. All derivatives are zero.
    """
    goal = _vec3(target, "target")
    load = _vec3(load_position, "load_position")
    limits = (float(horizontal_limit), float(horizontal_limit), float(vertical_limit))

    clipped = []
    for value, anchor, limit in zip(goal, load, limits):
        error = value - anchor
        if abs(error) > limit:
            value = math.copysign(limit, error) + anchor
        clipped.append(float(value))

    return Reference(
        x=(clipped[0], *_ZERO_DERIVATIVES),
        y=(clipped[1], *_ZERO_DERIVATIVES),
        z=(clipped[2], *_ZERO_DERIVATIVES),
    )


def sinusoidal_reference(center, radius, frequency, phase, t) -> Reference:
    """Sinusoid ``center + radius * sin(frequency * t + phase)`` with derivatives."""
    c = _vec3(center, "center")
    r = _vec3(radius, "radius")
    f = _vec3(frequency, "frequency")
    p = _vec3(phase, "phase")
    t = float(t)

    axes = []
    for ci, ri, fi, pi in zip(c, r, f, p):
        s = math.sin(fi * t + pi)
        co = math.cos(fi * t + pi)
        axes.append(
            (
                ci + ri * s,
                ri * fi * co,
                -ri * fi * fi * s,
                -ri * fi * fi * fi * co,
                ri * fi * fi * fi * fi * s,
            )
        )
    return Reference(x=axes[0], y=axes[1], z=axes[2])


def clip_rates(rates, limit) -> np.ndarray:
    """Clip the first three components to ``[-limit, limit]``; keep the rest."""
    clipped = np.array(rates, dtype=float).reshape(-1)
    if clipped.size < 3:
        raise ValueError(f"rates must have at least 3 components, got {clipped.size}")
    limit = float(limit)
    for i in range(3):
        if abs(clipped[i]) > limit:
            clipped[i] = math.copysign(limit, clipped[i])
    return clipped


class MissionPlanner:
    """Produces the load reference, stepping through a timed mission when enabled.

    The mission holds four setpoints for ten seconds each, returns to the
    centre for ten seconds, tracks the sinusoid for twenty seconds and then
    holds the home setpoint. The trajectory-tracking flag lives in ``params``
    and is switched by the planner as the mission requires.
    """

    def __init__(self, params: ControllerParameters, now):
        self.params = params
        self.stage = 0
        self.initialized = False
        self.stage_started = float(now)
        self.tracking_started = 0.0
        self._tracking_last = False
        self.reference = Reference()

    def update(self, now, load_position) -> Reference:
        """Advance the mission to time ``now`` and return the new reference."""
        now = float(now)
        params = self.params

        if params.traj_tracking_enabled and not self._tracking_last:
            self.tracking_started = now
        self._tracking_last = params.traj_tracking_enabled

        if params.mission_enabled:
            self.reference = self._mission_step(now, load_position)
        else:
            if not params.traj_tracking_enabled:
                self.reference = self._static((params.c_x_0, params.c_y_0, params.c_z_0), load_position)
            else:
                self.reference = self._sinusoid(now)
            self.stage_started = now
            if self.stage == _TRACKING_STAGE:
                params.traj_tracking_enabled = False
            self.stage = 0
            self.initialized = False
        return self.reference

    def _static(self, target, load_position) -> Reference:
        return static_reference(
            target,
            load_position,
            self.params.err_pose_limit_horizontal,
            self.params.err_pose_limit_vertical,
        )

    def _sinusoid(self, t: float) -> Reference:
        p = self.params
        return sinusoidal_reference(
            (p.c_x, p.c_y, p.c_z),
            (p.r_x, p.r_y, p.r_z),
            (p.fr_x, p.fr_y, p.fr_z),
            (p.ph_x, p.ph_y, p.ph_z),
            t,
        )

    def _advance(self, now: float, span: float) -> None:
        if now - self.stage_started >= span:
            self.stage_started = now
            self.stage += 1
            _log.info("[exeMission] Stage %d ended, switching to stage %d", self.stage - 1, self.stage)

    def _mission_step(self, now: float, load_position) -> Reference:
        p = self.params
        static_targets = {
            0: (p.c_x, p.c_y, p.c_z),
            1: (p.c_x_1, p.c_y_1, p.c_z_1),
            2: (p.c_x_2, p.c_y_2, p.c_z_2),
            3: (p.c_x_3, p.c_y_3, p.c_z_3),
            4: (p.c_x, p.c_y, p.c_z),
        }

        if self.stage in static_targets:
            if self.stage == 0 and not self.initialized:
                _log.info("[exeMission] Mission started at case 0")
                self.initialized = True
            reference = self._static(static_targets[self.stage], load_position)
            self._advance(now, _STATIC_STAGE_SPAN)
            return reference

        if self.stage == _TRACKING_STAGE:
            p.traj_tracking_enabled = True
            reference = self._sinusoid(now - self.tracking_started)
            self._advance(now, _TRACKING_STAGE_SPAN)
            return reference

        p.traj_tracking_enabled = False
        reference = self._static((p.c_x_0, p.c_y_0, p.c_z_0), load_position)
        if now - self.stage_started >= _STATIC_STAGE_SPAN:
            _log.info("[exeMission] Mission Accomplished")
            self.stage_started = now
            self.initialized = False
        return reference