"""Quasi-static feedback control for a multirotor with a slung load.

Submodules: quaternion, attitude, qsf_integral, params, reference,
estimation and offboard.
"""

__version__ = "0.1.0"