"""
Solve settings module for bundle observations.

Describes which exterior orientation coefficients are adjusted for an
observation, the polynomial degrees used for the a-priori fit and for the
adjustment, the interpolation types handed to the trajectory sources, and the
a-priori sigmas used to weight the parameters.

Settings can be built in code or loaded from YAML files.
"""

import copy
import yaml
from enum import Enum
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List
import logging

from .exceptions import SettingsError

logger = logging.getLogger(__name__)


class PositionSolveOption(Enum):
    """Instrument position coefficients to solve for."""
    NONE = 'NONE'                  # No position factors
    POSITION = 'POSITION'          # Position only
    VELOCITY = 'VELOCITY'          # Position and velocity
    ACCELERATION = 'ACCELERATION'  # Position, velocity and acceleration
    ALL = 'ALL'                    # Every coefficient up to the solve degree


class PointingSolveOption(Enum):
    """Instrument pointing coefficients to solve for."""
    NONE = 'NONE'                  # No pointing factors
    ANGLES = 'ANGLES'              # Angles only
    VELOCITY = 'VELOCITY'          # Angles and angular velocity
    ACCELERATION = 'ACCELERATION'  # Angles, angular velocity and acceleration
    ALL = 'ALL'                    # Every coefficient up to the solve degree


class InterpolationType(Enum):
    """
    How a trajectory source represents its time series.

    Passed through unchanged to the trajectory sources.
    """
    SPICE = 'SPICE'
    MEMCACHE = 'MEMCACHE'
    HERMITE_CACHE = 'HERMITE_CACHE'
    POLY_FUNCTION = 'POLY_FUNCTION'
    POLY_FUNCTION_OVER_HERMITE_CONSTANT = 'POLY_FUNCTION_OVER_HERMITE_CONSTANT'


# Number of coefficients solved per axis for the fixed-size options
_FIXED_COEFFICIENTS = {
    PositionSolveOption.NONE: 0,
    PositionSolveOption.POSITION: 1,
    PositionSolveOption.VELOCITY: 2,
    PositionSolveOption.ACCELERATION: 3,
    PointingSolveOption.NONE: 0,
    PointingSolveOption.ANGLES: 1,
    PointingSolveOption.VELOCITY: 2,
    PointingSolveOption.ACCELERATION: 3,
}


def position_option_to_string(option: PositionSolveOption) -> str:
    """Convert a position solve option to its configuration string."""
    return option.value


def string_to_position_option(option: str) -> PositionSolveOption:
    """
    Convert a configuration string to a position solve option.

    Args:
        option: Option name (case-insensitive), e.g. "velocity"

    Returns:
        Matching PositionSolveOption

    Raises:
        SettingsError: If the name is not a known option
    """
    try:
        return PositionSolveOption(str(option).strip().upper())
    except ValueError:
        raise SettingsError(f"Unknown position solve option: {option}") from None


def pointing_option_to_string(option: PointingSolveOption) -> str:
    """Convert a pointing solve option to its configuration string."""
    return option.value


def string_to_pointing_option(option: str) -> PointingSolveOption:
    """
    Convert a configuration string to a pointing solve option.

    Raises:
        SettingsError: If the name is not a known option
    """
    try:
        return PointingSolveOption(str(option).strip().upper())
    except ValueError:
        raise SettingsError(f"Unknown pointing solve option: {option}") from None


def string_to_interpolation_type(name: str) -> InterpolationType:
    """Convert a configuration string to an interpolation type."""
    try:
        return InterpolationType(str(name).strip().upper())
    except ValueError:
        raise SettingsError(f"Unknown interpolation type: {name}") from None


@dataclass
class SolveSettings:
    """
    Solve settings shared by the observations of one instrument.

    Position sigmas are in m, m/s and m/s^2; pointing sigmas are in
    degrees, deg/s and deg/s^2. A missing or non-positive sigma leaves the
    matching parameters unconstrained.

    For every option other than ALL the solve degree is derived from the
    option (e.g. VELOCITY solves degree 1). A fit degree lower than the
    solve degree is raised to the solve degree.

    Attributes:
        instrument_id: Instrument these settings apply to
        position_option: Position coefficients solved
        spk_degree: Polynomial degree of the a-priori position fit
        spk_solve_degree: Polynomial degree of the adjusted position
        position_interpolation: Interpolation type for position sources
        apriori_position_sigmas: [position, velocity, acceleration] sigmas
        pointing_option: Pointing coefficients solved
        ck_degree: Polynomial degree of the a-priori pointing fit
        ck_solve_degree: Polynomial degree of the adjusted pointing
        solve_twist: Whether the twist angle is adjusted
        pointing_interpolation: Interpolation type for pointing sources
        apriori_pointing_sigmas: [angle, angular velocity, angular acceleration] sigmas
    """
    instrument_id: str = ''
    position_option: PositionSolveOption = PositionSolveOption.NONE
    spk_degree: int = 2
    spk_solve_degree: int = 2
    position_interpolation: InterpolationType = InterpolationType.POLY_FUNCTION
    apriori_position_sigmas: List[Optional[float]] = field(default_factory=list)
    pointing_option: PointingSolveOption = PointingSolveOption.ANGLES
    ck_degree: int = 2
    ck_solve_degree: int = 2
    solve_twist: bool = True
    pointing_interpolation: InterpolationType = InterpolationType.POLY_FUNCTION
    apriori_pointing_sigmas: List[Optional[float]] = field(default_factory=list)

    def __post_init__(self):
        if isinstance(self.position_option, str):
            self.position_option = string_to_position_option(self.position_option)
        if isinstance(self.pointing_option, str):
            self.pointing_option = string_to_pointing_option(self.pointing_option)
        if isinstance(self.position_interpolation, str):
            self.position_interpolation = string_to_interpolation_type(self.position_interpolation)
        if isinstance(self.pointing_interpolation, str):
            self.pointing_interpolation = string_to_interpolation_type(self.pointing_interpolation)

        for name in ('spk_degree', 'spk_solve_degree', 'ck_degree', 'ck_solve_degree'):
            if int(getattr(self, name)) < 0:
                raise SettingsError(f"{name} must be non-negative, got {getattr(self, name)}")
            setattr(self, name, int(getattr(self, name)))

        if self.position_option in _FIXED_COEFFICIENTS and self.position_option != PositionSolveOption.NONE:
            self.spk_solve_degree = _FIXED_COEFFICIENTS[self.position_option] - 1
        if self.pointing_option in _FIXED_COEFFICIENTS and self.pointing_option != PointingSolveOption.NONE:
            self.ck_solve_degree = _FIXED_COEFFICIENTS[self.pointing_option] - 1

        if self.spk_degree < self.spk_solve_degree:
            logger.warning(
                f"SPK fit degree {self.spk_degree} is below solve degree "
                f"{self.spk_solve_degree}; raising fit degree"
            )
            self.spk_degree = self.spk_solve_degree
        if self.ck_degree < self.ck_solve_degree:
            logger.warning(
                f"CK fit degree {self.ck_degree} is below solve degree "
                f"{self.ck_solve_degree}; raising fit degree"
            )
            self.ck_degree = self.ck_solve_degree

        self.apriori_position_sigmas = [
            None if s is None else float(s) for s in self.apriori_position_sigmas
        ]
        self.apriori_pointing_sigmas = [
            None if s is None else float(s) for s in self.apriori_pointing_sigmas
        ]

    def number_position_coefficients_solved(self) -> int:
        """Number of position polynomial coefficients solved per axis."""
        if self.position_option == PositionSolveOption.ALL:
            return self.spk_solve_degree + 1
        return _FIXED_COEFFICIENTS[self.position_option]

    def number_angle_coefficients_solved(self) -> int:
        """Number of pointing polynomial coefficients solved per angle."""
        if self.pointing_option == PointingSolveOption.ALL:
            return self.ck_solve_degree + 1
        return _FIXED_COEFFICIENTS[self.pointing_option]

    def position_sigma(self, order: int) -> Optional[float]:
        """
        A-priori position sigma for a time order (0 = position, 1 = velocity,
        2 = acceleration), or None when unconstrained.
        """
        return _usable_sigma(self.apriori_position_sigmas, order)

    def pointing_sigma(self, order: int) -> Optional[float]:
        """A-priori pointing sigma for a time order, or None when unconstrained."""
        return _usable_sigma(self.apriori_pointing_sigmas, order)

    def copy(self) -> "SolveSettings":
        """Return an independent copy of these settings."""
        return copy.deepcopy(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SolveSettings":
        """
        Build settings from a dictionary (e.g. a YAML mapping).

        Example structure:
            instrument_id: HRSC
            position:
              option: velocity
              fit_degree: 2
              solve_degree: 1
              interpolation: poly_function
              apriori_sigmas: [0.5, 0.01, null]
            pointing:
              option: angles
              fit_degree: 2
              solve_degree: 0
              solve_twist: true
              interpolation: poly_function
              apriori_sigmas: [0.1]
        """
        pos_data = data.get('position', {}) or {}
        point_data = data.get('pointing', {}) or {}

        return cls(
            instrument_id=str(data.get('instrument_id', '')),
            position_option=string_to_position_option(pos_data.get('option', 'none')),
            spk_degree=pos_data.get('fit_degree', 2),
            spk_solve_degree=pos_data.get('solve_degree', 2),
            position_interpolation=string_to_interpolation_type(
                pos_data.get('interpolation', 'poly_function')
            ),
            apriori_position_sigmas=list(pos_data.get('apriori_sigmas', []) or []),
            pointing_option=string_to_pointing_option(point_data.get('option', 'angles')),
            ck_degree=point_data.get('fit_degree', 2),
            ck_solve_degree=point_data.get('solve_degree', 2),
            solve_twist=bool(point_data.get('solve_twist', True)),
            pointing_interpolation=string_to_interpolation_type(
                point_data.get('interpolation', 'poly_function')
            ),
            apriori_pointing_sigmas=list(point_data.get('apriori_sigmas', []) or []),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to a dictionary suitable for YAML output."""
        return {
            'instrument_id': self.instrument_id,
            'position': {
                'option': position_option_to_string(self.position_option),
                'fit_degree': self.spk_degree,
                'solve_degree': self.spk_solve_degree,
                'interpolation': self.position_interpolation.value,
                'apriori_sigmas': list(self.apriori_position_sigmas),
            },
            'pointing': {
                'option': pointing_option_to_string(self.pointing_option),
                'fit_degree': self.ck_degree,
                'solve_degree': self.ck_solve_degree,
                'solve_twist': self.solve_twist,
                'interpolation': self.pointing_interpolation.value,
                'apriori_sigmas': list(self.apriori_pointing_sigmas),
            },
        }

    @classmethod
    def from_yaml(cls, config_path: str) -> "SolveSettings":
        """
        Load solve settings from a YAML file.

        The file holds the mapping described in from_dict, either at the top
        level or under a ``solve_settings`` key.

        Args:
            config_path: Path to the YAML file

        Returns:
            SolveSettings with loaded parameters
        """
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Solve settings file not found: {config_path}")

        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}

        logger.info(f"Loading solve settings from {config_path}")

        if 'solve_settings' in data:
            data = data['solve_settings']
        return cls.from_dict(data)

    def to_yaml(self, config_path: str) -> None:
        """Save solve settings to a YAML file."""
        with open(config_path, 'w') as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

        logger.info(f"Solve settings saved to {config_path}")


def _usable_sigma(sigmas: List[Optional[float]], order: int) -> Optional[float]:
    if order < len(sigmas) and sigmas[order] is not None and sigmas[order] > 0.0:
        return sigmas[order]
    return None
