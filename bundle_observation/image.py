"""
Bundle image module.

A bundle image is the smallest unit the adjustment knows about: an image
identified by its serial number, carrying the trajectory sources of the
camera that acquired it.
"""

from dataclasses import dataclass, field
from typing import Optional

from .trajectory import PositionTrajectory, PointingTrajectory
from .target_body import BodyRotation


@dataclass
class BundleImage:
    """
    Image taking part in a bundle adjustment.

    Any of the trajectory sources may be None when the camera provides no
    such data.

    Attributes:
        serial_number: Unique image serial number
        file_name: Path of the image file
        instrument_position: Instrument position trajectory
        instrument_rotation: Instrument pointing trajectory
        body_rotation: Target body orientation receiver
    """
    serial_number: str
    file_name: str = ''
    instrument_position: Optional[PositionTrajectory] = None
    instrument_rotation: Optional[PointingTrajectory] = None
    body_rotation: Optional[BodyRotation] = field(default_factory=BodyRotation)
