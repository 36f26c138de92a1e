"""
Parameter layout for bundle observations.

Every solved scalar parameter is described by a slot: its group (position or
pointing), its axis and the time order of its polynomial coefficient. The
slot list fixes the order of the observation's parameter vector:

    X(t0..tn), Y(t0..tn), Z(t0..tn), RA(t0..tm), DEC(t0..tm)[, TWI(t0..tm)]
"""

import math
from dataclasses import dataclass
from typing import List

from .config import SolveSettings

DEG2RAD = math.pi / 180.0
RAD2DEG = 180.0 / math.pi

POSITION = 'position'
POINTING = 'pointing'

POSITION_AXES = ('X', 'Y', 'Z')
POINTING_AXES = ('RA', 'DEC', 'TWI')

_AXIS_LABELS = {
    'X': '  X  ',
    'Y': '  Y  ',
    'Z': '  Z  ',
    'RA': ' RA  ',
    'DEC': 'DEC  ',
    'TWI': 'TWI  ',
}


@dataclass(frozen=True)
class ParameterSlot:
    """
    One solved scalar parameter.

    Attributes:
        group: POSITION or POINTING
        axis: Axis label (X, Y, Z, RA, DEC or TWI)
        degree: Time order of the coefficient (0 = value, 1 = rate, ...)
    """
    group: str
    axis: str
    degree: int

    @property
    def is_pointing(self) -> bool:
        return self.group == POINTING

    @property
    def axis_index(self) -> int:
        """Index of the axis in its trajectory's coefficient triple."""
        axes = POINTING_AXES if self.is_pointing else POSITION_AXES
        return axes.index(self.axis)

    @property
    def label(self) -> str:
        """Report label, e.g. '  X  (t0)' or '     (t1)'."""
        name = _AXIS_LABELS[self.axis] if self.degree == 0 else ' ' * 5
        return f"{name}(t{self.degree})"


def build_parameter_slots(settings: SolveSettings) -> List[ParameterSlot]:
    """
    Build the ordered parameter slots implied by solve settings.

    Args:
        settings: Solve settings of the observation

    Returns:
        List of slots, one per solved parameter
    """
    slots = []

    n_position = settings.number_position_coefficients_solved()
    for axis in POSITION_AXES:
        slots.extend(ParameterSlot(POSITION, axis, i) for i in range(n_position))

    n_pointing = settings.number_angle_coefficients_solved()
    axes = POINTING_AXES if settings.solve_twist else POINTING_AXES[:2]
    for axis in axes:
        slots.extend(ParameterSlot(POINTING, axis, i) for i in range(n_pointing))

    return slots
