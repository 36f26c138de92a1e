"""
Polynomial trajectory module.

Represents the time-varying position and pointing of an imaging platform as
polynomials in scaled time, one polynomial per axis:

    value(t) = c0 + c1*s + c2*s^2 + ...,    s = (t - base_time) / time_scale

Trajectories are fit from cached time-series samples (e.g. an SBET export or
an orientation kernel sampled at image line times), and their coefficients
can be read, overridden and truncated by the bundle adjustment.

Conventions:
    - Position: X, Y, Z in kilometers
    - Pointing: RA, DEC, TWI in radians, from the ZXZ Euler angles of the
      J2000-to-camera rotation (angle1 = RA + 90 deg, angle2 = 90 deg - DEC,
      angle3 = TWI)
    - Time: seconds; base time is the midpoint of the cached span, time
      scale is 1.0 unless overridden

CSV Format:
    time, x, y, z                (position, km)
    time, ra, dec, twist         (pointing, degrees)
"""

import csv
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Sequence, Tuple

import numpy as np
from numpy.polynomial import polynomial as P
from scipy.spatial.transform import Rotation

from .config import InterpolationType

logger = logging.getLogger(__name__)

Coefficients = Tuple[np.ndarray, np.ndarray, np.ndarray]


class TrajectorySource(ABC):
    """
    Get/set/fit contract for a three-axis polynomial trajectory.

    The bundle observation only talks to trajectories through this
    interface.
    """

    axis_names: Tuple[str, str, str] = ('', '', '')

    @abstractmethod
    def get_polynomial(self) -> Coefficients:
        """Return copies of the coefficient vectors for the three axes."""

    @abstractmethod
    def set_polynomial(
        self,
        coef1: Sequence[float],
        coef2: Sequence[float],
        coef3: Sequence[float],
        interpolation_type: InterpolationType = InterpolationType.POLY_FUNCTION,
    ) -> None:
        """Assign coefficient vectors directly, without fitting."""

    @abstractmethod
    def fit_polynomial(
        self,
        interpolation_type: InterpolationType = InterpolationType.POLY_FUNCTION,
    ) -> None:
        """Fit the polynomial at the current degree to the cached samples."""

    @abstractmethod
    def set_polynomial_degree(self, degree: int) -> None:
        """Change the polynomial degree, padding or dropping coefficients."""

    @abstractmethod
    def set_override_base_time(self, base_time: float, time_scale: float) -> None:
        """Force the base time and time scale used by the polynomial."""

    @property
    @abstractmethod
    def base_time(self) -> float:
        """Base time of the polynomial."""

    @property
    @abstractmethod
    def time_scale(self) -> float:
        """Time scale of the polynomial."""


class PolynomialTrajectory(TrajectorySource):
    """
    Three-axis polynomial trajectory fit from cached samples.

    Attributes:
        times: Sample times in seconds, sorted
        values: Sample values, shape (N, 3)
        interpolation_type: Type passed with the last fit or assignment
    """

    def __init__(
        self,
        times: Optional[Sequence[float]] = None,
        values: Optional[np.ndarray] = None,
        degree: int = 2,
    ):
        """
        Initialize trajectory with optional cached samples.

        Args:
            times: Sample times in seconds
            values: Sample values, shape (N, 3)
            degree: Initial polynomial degree
        """
        if times is None:
            times = []
        if values is None:
            values = np.zeros((0, 3))

        times = np.asarray(times, dtype=np.float64)
        values = np.asarray(values, dtype=np.float64).reshape(-1, 3)
        if len(times) != len(values):
            raise ValueError(
                f"Got {len(times)} sample times but {len(values)} sample values"
            )
        if degree < 0:
            raise ValueError(f"Polynomial degree must be non-negative, got {degree}")

        order = np.argsort(times)
        self.times = times[order]
        self.values = values[order]

        self.interpolation_type: Optional[InterpolationType] = None
        self._degree = degree
        self._coefficients = np.zeros((3, degree + 1))
        self._base_time = self._default_base_time()
        self._time_scale = 1.0
        self._override_base_time = False

    def _default_base_time(self) -> float:
        if len(self.times) == 0:
            return 0.0
        return float((self.times[0] + self.times[-1]) / 2.0)

    @property
    def has_data(self) -> bool:
        """True if the trajectory has cached samples to fit."""
        return len(self.times) > 0

    @property
    def degree(self) -> int:
        return self._degree

    @property
    def base_time(self) -> float:
        return self._base_time

    @property
    def time_scale(self) -> float:
        return self._time_scale

    def scaled_time(self, times) -> np.ndarray:
        """Convert times to the polynomial's scaled time."""
        return (np.asarray(times, dtype=np.float64) - self._base_time) / self._time_scale

    def get_polynomial(self) -> Coefficients:
        return (
            self._coefficients[0].copy(),
            self._coefficients[1].copy(),
            self._coefficients[2].copy(),
        )

    def set_polynomial(
        self,
        coef1: Sequence[float],
        coef2: Sequence[float],
        coef3: Sequence[float],
        interpolation_type: InterpolationType = InterpolationType.POLY_FUNCTION,
    ) -> None:
        """
        Assign coefficient vectors directly.

        Empty vectors reset the polynomial to zeros at the current degree.
        Otherwise the three vectors must have equal length, which becomes the
        new degree plus one.
        """
        coefs = [np.asarray(c, dtype=np.float64).ravel() for c in (coef1, coef2, coef3)]
        lengths = {len(c) for c in coefs}
        if len(lengths) != 1:
            raise ValueError(
                f"Coefficient vectors must have equal length, got {[len(c) for c in coefs]}"
            )

        n = lengths.pop()
        if n == 0:
            self._coefficients = np.zeros((3, self._degree + 1))
        else:
            self._coefficients = np.vstack(coefs)
            self._degree = n - 1

        self.interpolation_type = interpolation_type

    def fit_polynomial(
        self,
        interpolation_type: InterpolationType = InterpolationType.POLY_FUNCTION,
    ) -> None:
        """
        Fit the polynomial at the current degree to the cached samples.

        With fewer samples than coefficients, the highest-order terms that
        cannot be determined are left at zero. Without samples the polynomial
        is all zeros.
        """
        self.interpolation_type = interpolation_type
        self._coefficients = np.zeros((3, self._degree + 1))

        if not self.has_data:
            logger.warning(
                f"{type(self).__name__} has no cached samples; polynomial set to zero"
            )
            return

        if not self._override_base_time:
            self._base_time = self._default_base_time()
            self._time_scale = 1.0

        fit_degree = min(self._degree, len(self.times) - 1)
        fitted = P.polyfit(self.scaled_time(self.times), self.values, fit_degree)
        self._coefficients[:, :fit_degree + 1] = fitted.T

        logger.debug(
            f"Fit degree {self._degree} polynomial to {len(self.times)} samples "
            f"(base time {self._base_time:.6f}, scale {self._time_scale})"
        )

    def set_polynomial_degree(self, degree: int) -> None:
        """
        Change the polynomial degree.

        Raising the degree appends zero coefficients; lowering it drops the
        coefficients above the new degree.
        """
        if degree < 0:
            raise ValueError(f"Polynomial degree must be non-negative, got {degree}")

        resized = np.zeros((3, degree + 1))
        keep = min(degree, self._degree) + 1
        resized[:, :keep] = self._coefficients[:, :keep]
        self._coefficients = resized
        self._degree = degree

    def set_override_base_time(self, base_time: float, time_scale: float) -> None:
        if time_scale == 0.0:
            raise ValueError("Time scale must be non-zero")
        self._base_time = float(base_time)
        self._time_scale = float(time_scale)
        self._override_base_time = True

    def evaluate(self, times) -> np.ndarray:
        """
        Evaluate the polynomial.

        Args:
            times: Scalar or array of times in seconds

        Returns:
            Array of shape (N, 3) with one row per time
        """
        s = np.atleast_1d(self.scaled_time(times))
        return P.polyval(s, self._coefficients.T).T

    @classmethod
    def _read_csv(cls, filepath: str, columns: Sequence[str]):
        path = Path(filepath)
        if not path.exists():
            raise FileNotFoundError(f"Trajectory file not found: {filepath}")

        times = []
        values = []
        with open(path, 'r', newline='') as f:
            reader = csv.DictReader(f)
            for row in reader:
                times.append(float(row[columns[0]]))
                values.append([float(row[c]) for c in columns[1:]])

        logger.info(f"Loaded {len(times)} trajectory samples from {filepath}")
        return np.array(times), np.array(values).reshape(-1, 3)


class PositionTrajectory(PolynomialTrajectory):
    """Instrument position polynomial (X, Y, Z in km)."""

    axis_names = ('X', 'Y', 'Z')

    @classmethod
    def from_csv(
        cls,
        filepath: str,
        time_col: str = 'time',
        x_col: str = 'x',
        y_col: str = 'y',
        z_col: str = 'z',
        **kwargs,
    ) -> 'PositionTrajectory':
        """
        Load position samples from a CSV file.

        Args:
            filepath: Path to CSV file
            time_col: Column name for time (seconds)
            x_col: Column name for X (km)
            y_col: Column name for Y (km)
            z_col: Column name for Z (km)
            **kwargs: Additional arguments passed to constructor
        """
        times, values = cls._read_csv(filepath, (time_col, x_col, y_col, z_col))
        return cls(times, values, **kwargs)


class PointingTrajectory(PolynomialTrajectory):
    """Instrument pointing polynomial (RA, DEC, TWI in radians)."""

    axis_names = ('RA', 'DEC', 'TWI')

    @classmethod
    def from_rotations(
        cls,
        times: Sequence[float],
        rotations: Rotation,
        **kwargs,
    ) -> 'PointingTrajectory':
        """
        Build pointing samples from J2000-to-camera rotations.

        Angles are unwrapped along time before fitting.
        """
        euler = rotations.as_euler('ZXZ')
        angles = np.column_stack([
            euler[:, 0] - np.pi / 2.0,
            np.pi / 2.0 - euler[:, 1],
            euler[:, 2],
        ])
        angles = np.unwrap(angles, axis=0)
        return cls(times, angles, **kwargs)

    def rotations_at(self, times) -> Rotation:
        """Return the J2000-to-camera rotations given by the polynomial."""
        angles = self.evaluate(times)
        euler = np.column_stack([
            angles[:, 0] + np.pi / 2.0,
            np.pi / 2.0 - angles[:, 1],
            angles[:, 2],
        ])
        return Rotation.from_euler('ZXZ', euler)

    @classmethod
    def from_csv(
        cls,
        filepath: str,
        time_col: str = 'time',
        ra_col: str = 'ra',
        dec_col: str = 'dec',
        twist_col: str = 'twist',
        **kwargs,
    ) -> 'PointingTrajectory':
        """
        Load pointing samples from a CSV file with angles in degrees.
        """
        times, values = cls._read_csv(filepath, (time_col, ra_col, dec_col, twist_col))
        return cls(times, np.deg2rad(values), **kwargs)
