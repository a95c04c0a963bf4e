import math

import numpy as np
import pytest

from slsqsf.attitude import NonlinearAttitudeControl
from slsqsf.offboard import (
    GRAVITY,
    VEHICLE_CMD_COMPONENT_ARM_DISARM,
    VEHICLE_CMD_DO_SET_MODE,
    ControllerPhase,
    OffboardControlMode,
    TakeoffSequencer,
    acc_to_quaternion,
    body_rate_command,
    force_to_acceleration,
    integrate,
    normalized_thrust,
    rotor_drag_compensation,
    translate,
)
from slsqsf.quaternion import quat_to_rotation


def test_sequencer_streams_setpoints_before_arming():
    seq = TakeoffSequencer()
    for tick in range(10):
        mode = seq.step(tick * 0.05, True, True)
        assert mode == OffboardControlMode(position=True)
    assert seq.commands == []
    assert not seq.armed
    assert seq.phase is ControllerPhase.WAIT_FOR_TAKEOFF


def test_sequencer_arms_on_eleventh_tick():
    seq = TakeoffSequencer()
    for tick in range(11):
        seq.step(tick * 0.05, False, False)
    assert seq.armed
    assert seq.armed_time == pytest.approx(0.5)
    assert [c[0] for c in seq.commands] == [VEHICLE_CMD_DO_SET_MODE, VEHICLE_CMD_COMPONENT_ARM_DISARM]
    for tick in range(11, 30):
        seq.step(tick * 0.05, False, False)
    assert len(seq.commands) == 2


def test_sequencer_switches_after_takeoff_duration():
    seq = TakeoffSequencer()
    for tick in range(11):
        seq.step(float(tick), True, True)
    armed_at = seq.armed_time
    seq.step(armed_at + 9.0, True, True)
    assert seq.phase is ControllerPhase.WAIT_FOR_TAKEOFF
    seq.step(armed_at + 9.5, True, True)
    assert seq.phase is ControllerPhase.SLS_ENABLED
    assert not seq.sls_active


@pytest.mark.parametrize(
    "ctrl, rate, expected",
    [
        (False, True, OffboardControlMode(position=True)),
        (True, True, OffboardControlMode(body_rate=True)),
        (True, False, OffboardControlMode(attitude=True)),
    ],
)
def test_sequencer_mode_in_sls_phase(ctrl, rate, expected):
    seq = TakeoffSequencer()
    for tick in range(11):
        seq.step(float(tick), False, False)
    seq.step(100.0, False, False)
    mode = seq.step(100.05, ctrl, rate)
    assert mode == expected
    assert seq.sls_active


def test_acc_to_quaternion_hover_is_identity():
    q = acc_to_quaternion(-GRAVITY, 0.0)
    assert np.allclose(q, [1.0, 0.0, 0.0, 0.0])


@pytest.mark.parametrize("acc, yaw", [((1.0, 2.0, 9.0), 0.3), ((-3.0, 0.5, 5.0), -1.2), ((0.0, 0.0, 1.0), 2.0)])
def test_acc_to_quaternion_aligns_body_z(acc, yaw):
    q = acc_to_quaternion(acc, yaw)
    assert np.linalg.norm(q) == pytest.approx(1.0)
    rot = quat_to_rotation(q)
    acc = np.asarray(acc)
    assert np.allclose(rot[:, 2], acc / np.linalg.norm(acc))
    heading = np.array([math.cos(yaw), math.sin(yaw), 0.0])
    assert rot[:, 1] @ heading == pytest.approx(0.0, abs=1e-12)


def test_acc_to_quaternion_rejects_zero():
    with pytest.raises(ValueError):
        acc_to_quaternion((0.0, 0.0, 0.0), 0.0)


def test_translate_adds_offset():
    assert np.allclose(translate((1.0, 2.0, 3.0), (-1.0, 0.5, 2.0)), [0.0, 2.5, 5.0])


def test_force_to_acceleration_within_limit_reorders_axes():
    mass = 2.0
    force = (0.4, -0.6, -19.0)
    acc = force_to_acceleration(force, mass, 100.0, None)
    assert np.allclose(acc, [force[1] / mass, force[0] / mass, -force[2] / mass])


def test_force_to_acceleration_limits_thrust():
    acc = force_to_acceleration((50.0, 30.0, -80.0), 1.5, 9.0, None)
    assert np.linalg.norm(acc + GRAVITY) == pytest.approx(9.0)


def test_force_to_acceleration_removes_drag():
    base = force_to_acceleration((0.1, 0.2, -15.0), 1.56, 100.0, None)
    with_drag = force_to_acceleration((0.1, 0.2, -15.0), 1.56, 100.0, (0.3, -0.2, 0.1))
    assert np.allclose(base - with_drag, [0.3, -0.2, 0.1])


def test_force_to_acceleration_rejects_bad_mass():
    with pytest.raises(ValueError):
        force_to_acceleration((0.0, 0.0, 0.0), 0.0, 9.0, None)


def test_integrate_holds_axis_past_limit():
    xi = integrate((1.0, 9.5, -2.0), (2.0, 10.0, -1.0), 0.1, 10.0)
    assert np.allclose(xi, [1.2, 9.5, -2.1])


def test_normalized_thrust_is_clamped():
    assert normalized_thrust(1000.0, 0.05055, 0.0) == 1.0
    assert normalized_thrust(-5.0, 0.05055, 0.0) == 0.0
    assert normalized_thrust(5.0, 0.1, 0.0) == pytest.approx(0.5)


def test_rotor_drag_zero_coefficients():
    a_rd = rotor_drag_compensation((1.0, 2.0, 0.5), (0.0, 0.0, 0.0), (0.1, 0.0, 0.0), (0.0, 0.0, 0.0), 0.0, (0.0, 0.0, 0.0))
    assert np.allclose(a_rd, 0.0)


def test_rotor_drag_isotropic_opposes_velocity():
    vel = np.array([1.0, -2.0, 0.5])
    rate = np.array([0.2, 0.1, 0.0])
    d = 0.3
    a_rd = rotor_drag_compensation(vel, (0.5, 0.2, 0.0), rate, (0.0, 0.1, 0.0), 0.7, (d, d, d))
    assert np.allclose(a_rd, -d * (vel - rate))


def test_body_rate_command_at_target_attitude():
    controller = NonlinearAttitudeControl(0.3)
    acc = -GRAVITY
    command, target = body_rate_command(controller, (1.0, 0.0, 0.0, 0.0), acc, 0.0, 0.05055, 0.0, 1.0)
    assert np.allclose(target, [1.0, 0.0, 0.0, 0.0])
    assert np.allclose(command[:3], 0.0)
    assert command[3] == pytest.approx(normalized_thrust(9.80665, 0.05055, 0.0))


def test_body_rate_command_clips_rates():
    controller = NonlinearAttitudeControl(0.3)
    half = math.sqrt(0.5)
    attitude = (half, half, 0.0, 0.0)
    command, _ = body_rate_command(controller, attitude, -GRAVITY, 0.0, 0.05055, 0.0, 0.5)
    assert np.all(np.abs(command[:3]) <= 0.5)
    assert np.max(np.abs(command[:3])) == pytest.approx(0.5)
    assert 0.0 <= command[3] <= 1.0