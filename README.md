# slsqsf

Control building blocks for a multirotor carrying a load on a cable (a
single-drone slung-load system), built on a quasi-static feedback (QSF)
law with integral action.

The package is pure Python and works on plain `numpy` arrays. It does not
talk to a flight stack itself: feed it measurements, read back setpoints,
and send those to your vehicle however you like.

## Installation

```
pip install .
```

With the test tools:

```
pip install ".[test]"
pytest
```

## What is inside

- `slsqsf.quaternion`: `quat_multiply` (Hamilton product), `quat_conjugate`,
  `quat_to_rotation` and `rotation_to_quat`, all on `(w, x, y, z)`
  quaternions.
- `slsqsf.attitude`: `NonlinearAttitudeControl(tau)`, a geometric attitude
  controller. Its `update(current_attitude, reference_attitude,
  reference_acc, reference_jerk)` returns an `AttitudeCommand` with the
  body rates (proportional to the attitude error, time constant `tau`) and
  a thrust vector whose z component is the reference acceleration projected
  on the body z axis. The jerk argument is accepted but not used.
- `slsqsf.qsf_integral`: `qsf_integral_controller(z, k, param, ref_1,
  ref_2, ref_3)`, the QSF force law with integral states. `z` is the
  15-element NED state, `k` the 13 gains, `param` is (load mass, vehicle
  mass, cable length, gravity) and each `ref_i` is a reference with four
  derivatives. It returns an `IntegralControlOutput` with `force` and
  `xi_dot` (the position errors that drive the integrators). Singular
  states give non-finite numbers, not exceptions. `matlab_power` is the
  power function it uses, returning IEEE infinities and NaNs rather than
  raising.
- `slsqsf.params`: `ControllerParameters`, a dataclass of gains, physical
  constants, limits, mission set-points and filter settings with their
  defaults. `set(name, value)` changes one runtime parameter by its
  declared name (such as `"Kpos_x_"` or `"mission_enabled_"`), raising
  `KeyError` for names that cannot be changed and `TypeError` for values of
  the wrong kind; `apply(changes)` applies several and returns `False` if
  any name was rejected. `position_gains()` and `velocity_gains()` return
  the negated gain vectors.
- `slsqsf.reference`: `static_reference` (a set-point clipped to error
  limits around the load), `sinusoidal_reference` (a sinusoid with four
  derivatives), `clip_rates`, the `Reference` dataclass, and
  `MissionPlanner`, which steps through four ten-second set-points, a
  return to the centre, twenty seconds of sinusoid tracking and a final
  hold at home.
- `slsqsf.estimation`: `FiniteDifferenceEstimator(cable_length,
  use_real_pend_angle)`, whose `update(measurement, dt)` takes a
  `Measurement` and derives velocities, body rates, accelerations and
  cable rates by finite differences, returning an NED `SlsState`.
  `to_ned_state` does the ENU-to-NED reordering on its own.
- `slsqsf.offboard`: `TakeoffSequencer`, which streams position setpoints,
  records the offboard-mode and arm commands, and after nine seconds
  armed switches to `ControllerPhase.SLS_ENABLED`, returning an
  `OffboardControlMode` on each `step`. Also the command chain:
  `force_to_acceleration`, `acc_to_quaternion`, `normalized_thrust`,
  `integrate` (a clamped Euler step), `translate`,
  `rotor_drag_compensation` and `body_rate_command`.

## Example

```python
import numpy as np
from slsqsf.attitude import NonlinearAttitudeControl
from slsqsf.offboard import body_rate_command

controller = NonlinearAttitudeControl(tau=0.3)
attitude = np.array([1.0, 0.0, 0.0, 0.0])
desired_acc = np.array([0.5, 0.0, 9.80665])

command, target_attitude = body_rate_command(
    controller, attitude, desired_acc,
    yaw=0.0, thrust_const=0.05055, thrust_offset=0.0, rate_limit=1.0,
)
```

`command` holds the three body rates, clipped to `rate_limit`, followed by
a thrust normalised to `[0, 1]`; `target_attitude` is the attitude that
points the body z axis along `desired_acc`.

## Frames

Positions, velocities and attitudes given to the package are in ENU, with
gravity along -z. The QSF law works in NED; `to_ned_state`, the estimator
and `force_to_acceleration` do the conversions.

## What it does not do

- There is no command-line program and no connection to a vehicle or
  simulator: publishing setpoints and reading measurements is left to you.
- Only the QSF law with integral action is provided; there is no separate
  law without integrator states.
- `ControllerParameters` carries low-pass filter settings, but no filter
  is implemented: `FiniteDifferenceEstimator` uses raw finite differences.