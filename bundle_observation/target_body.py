"""
Target body orientation module.

Holds the target body's pole right ascension, pole declination and prime
meridian polynomials (IAU convention, degrees) and the per-image receiver
that the bundle observation broadcasts them to.

IAU Convention:
    RA(T)  = a0 + a1*T + a2*T^2     (T in Julian centuries from the epoch)
    DEC(T) = d0 + d1*T + d2*T^2
    W(d)   = w0 + w1*d + w2*d^2     (d in days from the epoch)
"""

from dataclasses import dataclass, field
from typing import List, Sequence, Tuple
import logging

import numpy as np
from numpy.polynomial import polynomial as P

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400.0
DAYS_PER_CENTURY = 36525.0


@dataclass
class TargetBody:
    """
    Target body orientation coefficients.

    Attributes:
        name: Body name
        pole_ra_coefs: Pole right ascension coefficients (deg, deg/century, ...)
        pole_dec_coefs: Pole declination coefficients (deg, deg/century, ...)
        pm_coefs: Prime meridian coefficients (deg, deg/day, ...)
    """
    name: str = ''
    pole_ra_coefs: List[float] = field(default_factory=list)
    pole_dec_coefs: List[float] = field(default_factory=list)
    pm_coefs: List[float] = field(default_factory=list)


class BodyRotation:
    """
    Receives the target body polynomial for one image.
    """

    def __init__(self):
        self.pole_ra_coefs: List[float] = []
        self.pole_dec_coefs: List[float] = []
        self.pm_coefs: List[float] = []

    def set_pck_polynomial(
        self,
        ra_coefs: Sequence[float],
        dec_coefs: Sequence[float],
        pm_coefs: Sequence[float],
    ) -> None:
        self.pole_ra_coefs = [float(c) for c in ra_coefs]
        self.pole_dec_coefs = [float(c) for c in dec_coefs]
        self.pm_coefs = [float(c) for c in pm_coefs]

    def orientation(self, et: float) -> Tuple[float, float, float]:
        """
        Evaluate pole RA, pole DEC and prime meridian at a time.

        Args:
            et: Seconds past the reference epoch

        Returns:
            (ra, dec, pm) in degrees; missing polynomials evaluate to 0
        """
        days = et / SECONDS_PER_DAY
        centuries = days / DAYS_PER_CENTURY

        ra = P.polyval(centuries, self.pole_ra_coefs) if self.pole_ra_coefs else 0.0
        dec = P.polyval(centuries, self.pole_dec_coefs) if self.pole_dec_coefs else 0.0
        pm = P.polyval(days, self.pm_coefs) if self.pm_coefs else 0.0

        return float(ra), float(dec), float(np.mod(pm, 360.0))
