"""
Data loader module.

Builds a bundle observation from a YAML description of its images and their
trajectory sample files.

Example YAML structure:
    observation:
      number: "H0123_0000"
      instrument_id: HRSC
    solve_settings:
      position:
        option: velocity
        fit_degree: 2
        apriori_sigmas: [0.5, 0.01]
      pointing:
        option: angles
        solve_twist: true
        apriori_sigmas: [0.05]
    target_body:
      name: MARS
      pole_ra_coefs: [317.68143, -0.1061]
      pole_dec_coefs: [52.8865, -0.0609]
      pm_coefs: [176.630, 350.89198226]
    images:
      - serial_number: "MEX/HRSC/0123/ND"
        file_name: "h0123_0000.nd2.cub"
        position: "nd_position.csv"
        pointing: "nd_pointing.csv"

Sample file paths are resolved relative to the YAML file.
"""

import yaml
from pathlib import Path
from typing import Any, Dict, Optional, Tuple
import logging

from .config import SolveSettings
from .image import BundleImage
from .observation import BundleObservation
from .target_body import TargetBody
from .trajectory import PositionTrajectory, PointingTrajectory

logger = logging.getLogger(__name__)


def load_target_body(data: Optional[Dict[str, Any]]) -> Optional[TargetBody]:
    """Build a target body from a mapping, or None if absent."""
    if not data:
        return None
    return TargetBody(
        name=str(data.get('name', '')),
        pole_ra_coefs=[float(c) for c in data.get('pole_ra_coefs', [])],
        pole_dec_coefs=[float(c) for c in data.get('pole_dec_coefs', [])],
        pm_coefs=[float(c) for c in data.get('pm_coefs', [])],
    )


def load_image(data: Dict[str, Any], base_dir: Path) -> BundleImage:
    """
    Build a bundle image from a mapping.

    Args:
        data: Image mapping with serial_number and optional file_name,
            position and pointing entries
        base_dir: Directory that relative sample paths are resolved against

    Returns:
        BundleImage with loaded trajectories
    """
    if 'serial_number' not in data:
        raise ValueError(f"Image entry is missing serial_number: {data}")

    position = None
    if data.get('position'):
        position = PositionTrajectory.from_csv(str(base_dir / data['position']))

    pointing = None
    if data.get('pointing'):
        pointing = PointingTrajectory.from_csv(str(base_dir / data['pointing']))

    return BundleImage(
        serial_number=str(data['serial_number']),
        file_name=str(data.get('file_name', '')),
        instrument_position=position,
        instrument_rotation=pointing,
    )


def load_observation(config_path: str) -> Tuple[BundleObservation, SolveSettings]:
    """
    Load an observation and its solve settings from a YAML file.

    The first listed image is the primary image. Solve settings are
    returned but not yet applied.

    Args:
        config_path: Path to the YAML file

    Returns:
        (observation, solve settings)
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Observation file not found: {config_path}")

    with open(path, 'r') as f:
        data = yaml.safe_load(f) or {}

    logger.info(f"Loading observation from {config_path}")

    images_data = data.get('images', [])
    if not images_data:
        raise ValueError(f"No images listed in {config_path}")

    obs_data = data.get('observation', {}) or {}
    settings = SolveSettings.from_dict(data.get('solve_settings', {}) or {})
    instrument_id = str(obs_data.get('instrument_id', settings.instrument_id))

    images = [load_image(image_data, path.parent) for image_data in images_data]

    observation = BundleObservation(
        images[0],
        observation_number=str(obs_data.get('number', '')),
        instrument_id=instrument_id,
        target_body=load_target_body(data.get('target_body')),
    )
    for image in images[1:]:
        observation.append(image)

    logger.info(
        f"Loaded observation {observation.observation_number} with {len(observation)} images"
    )
    return observation, settings
