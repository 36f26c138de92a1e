"""
Bundle observation module.

A bundle observation is a group of images that share one rigid exterior
orientation: one position polynomial and one pointing polynomial, e.g. the
frames of a single pushbroom strip. The observation is the unit of
parameterization in the bundle adjustment:

    1. set_solve_settings sizes the parameter vector and computes weights
    2. initialize_exterior_orientation fits the a-priori polynomials from the
       first (primary) image and copies them to every other member
    3. apply_parameter_corrections adds each solver iteration's corrections
       to the shared polynomials and accumulates them
    4. format_bundle_output_string reports the adjusted parameters

Units:
    - Position coefficients: km, km/s, km/s^2
    - Pointing coefficients: radians, rad/s, rad/s^2
    - Weights: 1/km^2 for position (a-priori sigmas in meters) and
      1/rad^2 for pointing
"""

import copy
import logging
from typing import List, Optional, Sequence

import numpy as np

from .config import (
    SolveSettings,
    PositionSolveOption,
    PointingSolveOption,
    position_option_to_string,
    pointing_option_to_string,
)
from .exceptions import InvalidStateError, ParameterCorrectionError
from .image import BundleImage
from .parameters import DEG2RAD, ParameterSlot, build_parameter_slots
from .report import parameter_rows, format_rows
from .target_body import TargetBody
from .trajectory import TrajectorySource

logger = logging.getLogger(__name__)

# Converts squared position sigmas from m^2 to km^2
POSITION_WEIGHT_SCALE = 1.0e-6


class BundleObservation:
    """
    Group of images sharing one position and pointing trajectory.

    The trajectory sources of the primary (first) image are the canonical
    sources: corrections are computed from them and written back to every
    member. All members must belong to the same instrument trajectory; this
    is not checked.

    The observation does not own its images.

    Example usage:
        observation = BundleObservation(image, "OBS-1", "HRSC")
        observation.append(other_image)
        observation.set_solve_settings(settings)
        observation.initialize_exterior_orientation()
        observation.apply_parameter_corrections(delta)
        print(observation.format_bundle_output_string(True))
    """

    def __init__(
        self,
        image: Optional[BundleImage] = None,
        observation_number: str = '',
        instrument_id: str = '',
        target_body: Optional[TargetBody] = None,
    ):
        """
        Initialize the observation.

        Args:
            image: Primary image; its trajectory sources become canonical
            observation_number: Observation number of the observation
            instrument_id: Id of the instrument for the observation
            target_body: Target body whose orientation is broadcast to images
        """
        self.observation_number = observation_number
        self.instrument_id = instrument_id
        self.target_body = target_body
        self.index = 0

        self._images: List[BundleImage] = []
        self.serial_numbers: List[str] = []
        self.image_names: List[str] = []

        self._instrument_position: Optional[TrajectorySource] = None
        self._instrument_rotation: Optional[TrajectorySource] = None

        self._solve_settings: Optional[SolveSettings] = None
        self._slots: List[ParameterSlot] = []
        self._parameter_names: List[str] = []

        self._weights = np.zeros(0)
        self._corrections = np.zeros(0)
        self._adjusted_sigmas = np.zeros(0)
        self._apriori_sigmas: List[Optional[float]] = []

        if image is not None:
            self.append(image)

    def append(self, image: BundleImage) -> None:
        """
        Add an image to the observation.

        The first image appended becomes the primary image and its
        trajectory sources become the canonical sources.
        """
        if not self._images:
            self._instrument_position = image.instrument_position
            self._instrument_rotation = image.instrument_rotation

        self._images.append(image)
        self.serial_numbers.append(image.serial_number)
        self.image_names.append(image.file_name)

    def __len__(self) -> int:
        return len(self._images)

    def __iter__(self):
        return iter(self._images)

    def __getitem__(self, i: int) -> BundleImage:
        return self._images[i]

    def __copy__(self) -> "BundleObservation":
        other = BundleObservation(
            observation_number=self.observation_number,
            instrument_id=self.instrument_id,
            target_body=self.target_body,
        )
        other.index = self.index
        other._images = list(self._images)
        other.serial_numbers = list(self.serial_numbers)
        other.image_names = list(self.image_names)
        other._instrument_position = self._instrument_position
        other._instrument_rotation = self._instrument_rotation
        other._solve_settings = self._solve_settings
        other._slots = list(self._slots)
        other._parameter_names = list(self._parameter_names)
        other._weights = self._weights.copy()
        other._corrections = self._corrections.copy()
        other._adjusted_sigmas = self._adjusted_sigmas.copy()
        other._apriori_sigmas = list(self._apriori_sigmas)
        return other

    def copy(self) -> "BundleObservation":
        """
        Copy the observation.

        Membership and parameter arrays are duplicated; solve settings and
        trajectory sources are shared.
        """
        return copy.copy(self)

    @property
    def instrument_position(self) -> Optional[TrajectorySource]:
        """Canonical position source (from the primary image)."""
        return self._instrument_position

    @property
    def instrument_rotation(self) -> Optional[TrajectorySource]:
        """Canonical pointing source (from the primary image)."""
        return self._instrument_rotation

    @property
    def solve_settings(self) -> Optional[SolveSettings]:
        return self._solve_settings

    @property
    def parameter_slots(self) -> List[ParameterSlot]:
        return list(self._slots)

    @property
    def parameter_weights(self) -> np.ndarray:
        return self._weights

    @property
    def parameter_corrections(self) -> np.ndarray:
        return self._corrections

    @property
    def apriori_sigmas(self) -> List[Optional[float]]:
        """A-priori sigma per parameter; None where unconstrained."""
        return self._apriori_sigmas

    @property
    def adjusted_sigmas(self) -> np.ndarray:
        """Adjusted sigma per parameter, filled in by error propagation."""
        return self._adjusted_sigmas

    @adjusted_sigmas.setter
    def adjusted_sigmas(self, sigmas: Sequence[float]) -> None:
        sigmas = np.asarray(sigmas, dtype=np.float64).ravel()
        if len(sigmas) != len(self._slots):
            raise ValueError(
                f"Expected {len(self._slots)} adjusted sigmas, got {len(sigmas)}"
            )
        self._adjusted_sigmas = sigmas

    @property
    def parameter_list(self) -> List[str]:
        """Parameter names from the last formatted report, index-aligned."""
        return list(self._parameter_names)

    def _settings(self) -> SolveSettings:
        if self._solve_settings is None:
            raise InvalidStateError(
                f"Solve settings have not been set for observation {self.observation_number}"
            )
        return self._solve_settings

    def set_solve_settings(self, settings: SolveSettings) -> None:
        """
        Set the solve settings and size the parameter vector.

        Weights, corrections and adjusted sigmas are reset to zero and every
        a-priori sigma to unknown, then weights are initialized from the
        settings' a-priori sigmas.

        Args:
            settings: Solve settings (copied)
        """
        self._solve_settings = settings.copy()
        self._slots = build_parameter_slots(self._solve_settings)

        n = len(self._slots)
        self._weights = np.zeros(n)
        self._corrections = np.zeros(n)
        self._adjusted_sigmas = np.zeros(n)
        self._apriori_sigmas = [None] * n
        self._parameter_names = []

        self._init_parameter_weights()

        logger.info(
            f"Observation {self.observation_number}: {n} parameters "
            f"(position {position_option_to_string(self._solve_settings.position_option)}, "
            f"pointing {pointing_option_to_string(self._solve_settings.pointing_option)})"
        )

    def _init_parameter_weights(self) -> None:
        """
        Compute weights and a-priori sigmas from the solve settings.

        Coefficients of time order 0, 1 and 2 take the value, rate and
        acceleration sigma of their group; higher orders stay unconstrained.
        """
        settings = self._solve_settings

        for i, slot in enumerate(self._slots):
            if slot.degree > 2:
                continue

            if slot.is_pointing:
                sigma = settings.pointing_sigma(slot.degree)
                scale = DEG2RAD * DEG2RAD
            else:
                sigma = settings.position_sigma(slot.degree)
                scale = POSITION_WEIGHT_SCALE

            if sigma is None:
                continue

            self._apriori_sigmas[i] = sigma
            self._weights[i] = 1.0 / (sigma * sigma * scale)

    def number_position_parameters(self) -> int:
        """Number of position parameters solved."""
        return 3 * self._settings().number_position_coefficients_solved()

    def number_pointing_parameters(self) -> int:
        """Number of pointing parameters solved."""
        settings = self._settings()
        n_angles = 3 if settings.solve_twist else 2
        return n_angles * settings.number_angle_coefficients_solved()

    def number_parameters(self) -> int:
        """Total number of parameters solved."""
        return self.number_position_parameters() + self.number_pointing_parameters()

    def _member_sources(self, attr: str, label: str) -> List[TrajectorySource]:
        sources = []
        for image in self._images:
            source = getattr(image, attr)
            if source is None:
                raise InvalidStateError(
                    f"Image {image.serial_number} has no instrument {label}"
                )
            sources.append(source)
        return sources

    def initialize_exterior_orientation(self) -> None:
        """
        Fit the a-priori position and pointing polynomials.

        The primary image is fit at the a-priori degree and then reduced to
        the solve degree. Every other member takes the primary image's base
        time, time scale and coefficients without fitting.
        """
        settings = self._settings()

        if settings.position_option != PositionSolveOption.NONE:
            self._propagate_trajectory(
                self._member_sources('instrument_position', 'position'),
                settings.spk_degree,
                settings.spk_solve_degree,
                settings.position_interpolation,
            )

        if settings.pointing_option != PointingSolveOption.NONE:
            self._propagate_trajectory(
                self._member_sources('instrument_rotation', 'rotation'),
                settings.ck_degree,
                settings.ck_solve_degree,
                settings.pointing_interpolation,
            )

        logger.info(
            f"Initialized exterior orientation of observation {self.observation_number} "
            f"for {len(self._images)} images"
        )

    @staticmethod
    def _propagate_trajectory(
        sources: List[TrajectorySource],
        fit_degree: int,
        solve_degree: int,
        interpolation_type,
    ) -> None:
        base_time = 0.0
        time_scale = 1.0
        coefs = ([], [], [])

        for i, source in enumerate(sources):
            if i == 0:
                source.set_polynomial_degree(fit_degree)
                source.fit_polynomial(interpolation_type)
                source.set_polynomial_degree(solve_degree)

                base_time = source.base_time
                time_scale = source.time_scale
                coefs = source.get_polynomial()
            else:
                source.set_polynomial_degree(solve_degree)
                source.set_override_base_time(base_time, time_scale)
                source.set_polynomial(*coefs, interpolation_type)

    def initialize_body_rotation(self) -> None:
        """Push the target body orientation polynomials to every member image."""
        if self.target_body is None:
            raise InvalidStateError(
                f"Observation {self.observation_number} has no target body"
            )

        for image in self._images:
            image.body_rotation.set_pck_polynomial(
                self.target_body.pole_ra_coefs,
                self.target_body.pole_dec_coefs,
                self.target_body.pm_coefs,
            )

    def update_body_rotation(self) -> None:
        """Re-broadcast the (possibly adjusted) target body orientation."""
        self.initialize_body_rotation()

    def apply_parameter_corrections(self, corrections: Sequence[float]) -> None:
        """
        Apply one iteration's corrections to the shared trajectory.

        Corrections are added to the canonical coefficients in parameter
        order, the results are written to every member image, and the vector
        is added to the accumulated corrections. Nothing is written unless
        every block can be computed and every member has the needed source.

        Position is written to all members before pointing. The write itself
        assumes a member's set_polynomial does not fail once its source and
        coefficient lengths are known to be valid; if one did, earlier
        members would keep the new coefficients.

        Args:
            corrections: Corrections for this observation's parameters

        Raises:
            ParameterCorrectionError: If the corrections could not be applied
        """
        try:
            settings = self._settings()
            corrections = np.asarray(corrections, dtype=np.float64).ravel()
            if len(corrections) != len(self._slots):
                raise ValueError(
                    f"Expected {len(self._slots)} corrections, got {len(corrections)}"
                )

            updates = []
            index = 0

            if settings.position_option != PositionSolveOption.NONE:
                if self._instrument_position is None:
                    raise InvalidStateError(
                        "Instrument position is None, but position solve option is "
                        f"{position_option_to_string(settings.position_option)}"
                    )
                n = settings.number_position_coefficients_solved()
                coefs = self._instrument_position.get_polynomial()
                for axis in coefs:
                    axis[:n] += corrections[index:index + n]
                    index += n
                updates.append((
                    self._member_sources('instrument_position', 'position'),
                    coefs,
                    settings.position_interpolation,
                ))

            if settings.pointing_option != PointingSolveOption.NONE:
                if self._instrument_rotation is None:
                    raise InvalidStateError(
                        "Instrument rotation is None, but pointing solve option is "
                        f"{pointing_option_to_string(settings.pointing_option)}"
                    )
                n = settings.number_angle_coefficients_solved()
                coefs = self._instrument_rotation.get_polynomial()
                axes = coefs if settings.solve_twist else coefs[:2]
                for axis in axes:
                    axis[:n] += corrections[index:index + n]
                    index += n
                updates.append((
                    self._member_sources('instrument_rotation', 'rotation'),
                    coefs,
                    settings.pointing_interpolation,
                ))

            for sources, coefs, interpolation_type in updates:
                for source in sources:
                    source.set_polynomial(*coefs, interpolation_type)

            self._corrections += corrections

        except Exception as e:
            raise ParameterCorrectionError(
                f"Unable to apply parameter corrections to BundleObservation "
                f"{self.observation_number}: {e}"
            ) from e

        logger.debug(
            f"Applied corrections to observation {self.observation_number} "
            f"(max |delta| = {np.max(np.abs(corrections), initial=0.0):.3e})"
        )

    def parameter_values(self) -> np.ndarray:
        """
        Current value of every solved parameter, read from the canonical
        sources in internal units. Missing sources read as zero.
        """
        values = np.zeros(len(self._slots))
        position = rotation = None
        if self._instrument_position is not None:
            position = self._instrument_position.get_polynomial()
        if self._instrument_rotation is not None:
            rotation = self._instrument_rotation.get_polynomial()

        for i, slot in enumerate(self._slots):
            coefs = rotation if slot.is_pointing else position
            if coefs is None:
                continue
            axis = coefs[slot.axis_index]
            if slot.degree < len(axis):
                values[i] = axis[slot.degree]
        return values

    def format_bundle_output_string(self, error_propagation: bool = False) -> str:
        """
        Format the observation's parameters as a text table.

        One line per parameter: name, value before corrections, accumulated
        correction, current value, a-priori sigma and adjusted sigma.
        Pointing values are shown in degrees.

        Args:
            error_propagation: Whether adjusted sigmas are available

        Returns:
            Formatted table
        """
        rows = parameter_rows(self, error_propagation)
        self._parameter_names = [row.name for row in rows]
        return format_rows(rows)
