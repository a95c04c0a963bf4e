import numpy as np
import pytest

from slsqsf.params import ControllerParameters


def test_declared_defaults():
    params = ControllerParameters()
    assert params.mass == 1.56
    assert params.cable_length == 0.85
    assert params.load_mass == 0.25
    assert params.norm_thrust_const == 0.05055
    assert params.attctrl_tau == 0.3
    assert params.rate_ctrl_enabled is True
    assert params.finite_diff_enabled is True
    assert params.ctrl_enabled is False


def test_default_gains_are_negated():
    params = ControllerParameters()
    np.testing.assert_array_equal(params.position_gains(), [-10.0, -10.0, -20.0])
    np.testing.assert_array_equal(params.velocity_gains(), [-5.0, -5.0, -10.0])


def test_gains_follow_changes():
    params = ControllerParameters()
    params.set("Kpos_x_", 3.5)
    params.set("Kvel_z_", 7.25)
    assert params.position_gains()[0] == -3.5
    assert params.velocity_gains()[2] == -7.25


def test_constructor_overrides():
    params = ControllerParameters(kpos_y=4.0, kvel_x=2.0)
    assert params.position_gains()[1] == -4.0
    assert params.velocity_gains()[0] == -2.0


@pytest.mark.parametrize(
    "name, attribute",
    [
        ("Kint_z_", "kint_z"),
        ("c_x_", "c_x"),
        ("ph_y_", "ph_y"),
        ("c_z_3_", "c_z_3"),
        ("rotorDragD_y_", "rotor_drag_y"),
        ("norm_thrust_offset_", "norm_thrust_offset"),
    ],
)
def test_set_number(name, attribute):
    params = ControllerParameters()
    params.set(name, 0.75)
    assert getattr(params, attribute) == 0.75


def test_set_integer_is_stored_as_float():
    params = ControllerParameters()
    params.set("Kjer_x_", 2)
    assert params.kjer_x == 2.0
    assert isinstance(params.kjer_x, float)


@pytest.mark.parametrize(
    "name, attribute",
    [
        ("mission_enabled_", "mission_enabled"),
        ("ctrl_enabled_", "ctrl_enabled"),
        ("traj_tracking_enabled_", "traj_tracking_enabled"),
        ("integrator_enabled_", "integrator_enabled"),
        ("use_onboard_measurements_", "use_onboard_measurements"),
    ],
)
def test_set_flag(name, attribute):
    params = ControllerParameters()
    params.set(name, True)
    assert getattr(params, attribute) is True
    params.set(name, False)
    assert getattr(params, attribute) is False


def test_y_frequency_runtime_name():
    params = ControllerParameters()
    params.set("fr_y_z", 1.5)
    assert params.fr_y == 1.5
    with pytest.raises(KeyError):
        params.set("fr_y_", 1.5)


def test_unknown_name_raises():
    params = ControllerParameters()
    with pytest.raises(KeyError):
        params.set("no_such_param", 1.0)


def test_declared_but_not_runtime_rejected():
    params = ControllerParameters()
    with pytest.raises(KeyError):
        params.set("mass_", 2.0)
    assert params.mass == 1.56


def test_flag_requires_bool():
    params = ControllerParameters()
    with pytest.raises(TypeError):
        params.set("lpf_enabled_", 1.0)
    assert params.lpf_enabled is False


def test_number_rejects_bool():
    params = ControllerParameters()
    with pytest.raises(TypeError):
        params.set("Kpos_x_", True)
    assert params.kpos_x == 10.0


def test_apply_all_known():
    params = ControllerParameters()
    ok = params.apply({"Kpos_z_": 8.0, "drag_comp_enabled_": True})
    assert ok is True
    assert params.kpos_z == 8.0
    assert params.drag_comp_enabled is True


def test_apply_partial_failure_keeps_known_changes():
    params = ControllerParameters()
    ok = params.apply([("Kpos_x_", 1.0), ("bogus_", 2.0), ("Kvel_y_", 3.0)])
    assert ok is False
    assert params.kpos_x == 1.0
    assert params.kvel_y == 3.0
    np.testing.assert_array_equal(params.position_gains(), [-1.0, -10.0, -20.0])


def test_apply_empty_is_successful():
    params = ControllerParameters()
    assert params.apply({}) is True
    assert params == ControllerParameters()


def test_apply_type_error_propagates():
    params = ControllerParameters()
    with pytest.raises(TypeError):
        params.apply({"ctrl_enabled_": "yes"})