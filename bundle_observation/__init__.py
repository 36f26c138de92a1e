"""
Bundle Observation Package

Parameterization of the exterior orientation of image groups ("observations")
in a photogrammetric bundle adjustment. All images of an observation share
one position trajectory and one pointing trajectory, each a polynomial in
time, whose coefficients are the unknowns adjusted by the solver.

Parameter Order:
    X(t0..tn), Y(t0..tn), Z(t0..tn), RA(t0..tm), DEC(t0..tm)[, TWI(t0..tm)]

Conventions:
    - Position in km, a-priori position sigmas in m, m/s, m/s^2
    - Pointing in radians internally, a-priori pointing sigmas and reports
      in degrees
    - Unknown a-priori sigmas are None and reported as "N/A"
"""

from .config import (
    SolveSettings,
    PositionSolveOption,
    PointingSolveOption,
    InterpolationType,
)
from .exceptions import (
    BundleObservationError,
    SettingsError,
    InvalidStateError,
    ParameterCorrectionError,
)
from .trajectory import TrajectorySource, PositionTrajectory, PointingTrajectory
from .target_body import TargetBody, BodyRotation
from .image import BundleImage
from .parameters import ParameterSlot, build_parameter_slots
from .observation import BundleObservation
from .report import ParameterRow, parameter_rows, format_bundle_output_string
from .data_loader import load_observation

__version__ = "1.0.0"
__all__ = [
    "SolveSettings",
    "PositionSolveOption",
    "PointingSolveOption",
    "InterpolationType",
    "BundleObservationError",
    "SettingsError",
    "InvalidStateError",
    "ParameterCorrectionError",
    "TrajectorySource",
    "PositionTrajectory",
    "PointingTrajectory",
    "TargetBody",
    "BodyRotation",
    "BundleImage",
    "ParameterSlot",
    "build_parameter_slots",
    "BundleObservation",
    "ParameterRow",
    "parameter_rows",
    "format_bundle_output_string",
    "load_observation",
]
