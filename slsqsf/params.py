"""Tunable parameters of the slung-load controller.

Every parameter has a declared name and a default value. A subset of them can
be changed while the controller runs, by the same names it declares.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Mapping, Tuple, Union

import numpy as np

__all__ = ["ControllerParameters"]

_log = logging.getLogger(__name__)

# Runtime-changeable flags: declared parameter name -> attribute name.
_RUNTIME_FLAGS = {
    "rate_ctrl_enabled_": "rate_ctrl_enabled",
    "mission_enabled_": "mission_enabled",
    "ctrl_enabled_": "ctrl_enabled",
    "traj_tracking_enabled_": "traj_tracking_enabled",
    "drag_comp_enabled_": "drag_comp_enabled",
    "lpf_enabled_": "lpf_enabled",
    "integrator_enabled_": "integrator_enabled",
    "use_onboard_measurements_": "use_onboard_measurements",
}

# Runtime-changeable numbers: declared parameter name -> attribute name.
_RUNTIME_NUMBERS = {
    "Kint_x_": "kint_x",
    "Kint_y_": "kint_y",
    "Kint_z_": "kint_z",
    "Kpos_x_": "kpos_x",
    "Kpos_y_": "kpos_y",
    "Kpos_z_": "kpos_z",
    "Kvel_x_": "kvel_x",
    "Kvel_y_": "kvel_y",
    "Kvel_z_": "kvel_z",
    "Kacc_x_": "kacc_x",
    "Kacc_y_": "kacc_y",
    "Kacc_z_": "kacc_z",
    "Kjer_x_": "kjer_x",
    "Kjer_y_": "kjer_y",
    "Kjer_z_": "kjer_z",
    "c_x_": "c_x",
    "c_y_": "c_y",
    "c_z_": "c_z",
    "r_x_": "r_x",
    "r_y_": "r_y",
    "r_z_": "r_z",
    "fr_x_": "fr_x",
    # The y frequency is changed at runtime under this name.
    "fr_y_z": "fr_y",
    "fr_z_": "fr_z",
    "ph_x_": "ph_x",
    "ph_y_": "ph_y",
    "ph_z_": "ph_z",
    "c_x_1_": "c_x_1",
    "c_y_1_": "c_y_1",
    "c_z_1_": "c_z_1",
    "c_x_2_": "c_x_2",
    "c_y_2_": "c_y_2",
    "c_z_2_": "c_z_2",
    "c_x_3_": "c_x_3",
    "c_y_3_": "c_y_3",
    "c_z_3_": "c_z_3",
    "rotorDragD_x_": "rotor_drag_x",
    "rotorDragD_y_": "rotor_drag_y",
    "rotorDragD_z_": "rotor_drag_z",
    "norm_thrust_const_": "norm_thrust_const",
    "norm_thrust_offset_": "norm_thrust_offset",
}

ParameterValue = Union[bool, int, float]


@dataclass
class ControllerParameters:
    """All controller settings with their declared defaults."""

    # Feature switches
    lpf_enabled: bool = False
    finite_diff_enabled: bool = True
    drag_comp_enabled: bool = False
    ctrl_enabled: bool = False
    rate_ctrl_enabled: bool = True
    mission_enabled: bool = False
    integrator_enabled: bool = False
    use_onboard_measurements: bool = False
    traj_tracking_enabled: bool = False

    # Physical parameters
    mass: float = 1.56
    cable_length: float = 0.85
    load_mass: float = 0.25
    use_real_pend_angle: bool = False

    # Initial position
    pos_x_0: float = 0.0
    pos_y_0: float = 0.0
    pos_z_0: float = 1.0

    # Feedback gains
    kpos_x: float = 10.0
    kpos_y: float = 10.0
    kpos_z: float = 20.0
    kvel_x: float = 5.0
    kvel_y: float = 5.0
    kvel_z: float = 10.0
    kacc_x: float = 0.0
    kacc_y: float = 0.0
    kacc_z: float = 0.0
    kjer_x: float = 0.0
    kjer_y: float = 0.0
    kjer_z: float = 0.0

    # Integrator gains and limit
    kint_x: float = 12.0
    kint_y: float = 12.0
    kint_z: float = 1.0
    integral_limit: float = 10.0

    # Limits
    ref_rate_limit: float = 1.0
    err_pose_limit_vertical: float = 0.2
    err_pose_limit_horizontal: float = 0.2

    # Mission setpoints
    c_x_0: float = 0.0
    c_y_0: float = 0.0
    c_z_0: float = 1.0
    c_x_1: float = 0.0
    c_y_1: float = 0.0
    c_z_1: float = 1.0
    c_x_2: float = 0.0
    c_y_2: float = 0.0
    c_z_2: float = 1.0
    c_x_3: float = 0.0
    c_y_3: float = 0.0
    c_z_3: float = 1.0

    # Sinusoidal reference: centre, radius, frequency and phase
    c_x: float = 0.0
    c_y: float = 0.0
    c_z: float = 1.0
    r_x: float = 0.0
    r_y: float = 0.0
    r_z: float = 0.0
    fr_x: float = 0.0
    fr_y: float = 0.0
    fr_z: float = 0.0
    ph_x: float = 0.0
    ph_y: float = 0.0
    ph_z: float = 0.0

    # Vehicle
    max_fb_acc: float = 9.0
    mav_yaw: float = 0.0
    attctrl_tau: float = 0.3

    # Rotor drag coefficients
    rotor_drag_x: float = 0.0
    rotor_drag_y: float = 0.0
    rotor_drag_z: float = 0.0

    # Thrust normalisation
    norm_thrust_const: float = 0.05055
    norm_thrust_offset: float = 0.0

    # Low-pass filters: cut-off frequency, quality factor, verbosity
    load_vel_cutoff_freq: float = 30.0
    load_vel_q: float = 0.625
    load_vel_verbose: bool = False
    mav_vel_cutoff_freq: float = 30.0
    mav_vel_q: float = 0.625
    mav_vel_verbose: bool = False
    pend_angle_cutoff_freq: float = 30.0
    pend_angle_q: float = 0.625
    pend_angle_verbose: bool = False
    load_acc_cutoff_freq: float = 30.0
    load_acc_q: float = 0.625
    load_acc_verbose: bool = False
    pend_angular_acc_cutoff_freq: float = 30.0
    pend_angular_acc_q: float = 0.625
    pend_angular_acc_verbose: bool = False
    pend_rate_cutoff_freq: float = 30.0
    pend_rate_q: float = 0.625
    pend_rate_verbose: bool = False

    def set(self, name: str, value: ParameterValue) -> None:
        """Change one runtime parameter by its declared name.

        Raises KeyError for a name that cannot be changed at runtime and
        TypeError for a value of the wrong kind.
        """
        if name in _RUNTIME_FLAGS:
            if not isinstance(value, (bool, np.bool_)):
                raise TypeError(f"parameter {name!r} takes a bool, got {type(value).__name__}")
            new_value: ParameterValue = bool(value)
            attribute = _RUNTIME_FLAGS[name]
        elif name in _RUNTIME_NUMBERS:
            if isinstance(value, (bool, np.bool_)) or not isinstance(value, (int, float, np.integer, np.floating)):
                raise TypeError(f"parameter {name!r} takes a number, got {type(value).__name__}")
            new_value = float(value)
            attribute = _RUNTIME_NUMBERS[name]
        else:
            raise KeyError(f"parameter {name!r} cannot be changed at runtime")
        setattr(self, attribute, new_value)
        _log.info("Param changed: %s=%s", name, new_value)

    def apply(self, changes: Union[Mapping[str, ParameterValue], Iterable[Tuple[str, ParameterValue]]]) -> bool:
        """Apply several changes; return False if any name was rejected.

        Changes with known names are applied even when another is rejected.
        """
        items = changes.items() if isinstance(changes, Mapping) else changes
        successful = True
        for name, value in items:
            try:
                self.set(name, value)
            except KeyError:
                _log.warning("Rejected unknown runtime parameter %r", name)
                successful = False
        return successful

    def position_gains(self) -> np.ndarray:
        """Position feedback gains (x, y, z), negated."""
        return np.array([-self.kpos_x, -self.kpos_y, -self.kpos_z])

    def velocity_gains(self) -> np.ndarray:
        """Velocity feedback gains (x, y, z), negated."""
        return np.array([-self.kvel_x, -self.kvel_y, -self.kvel_z])