"""
Parameter report module.

Formats the state of a bundle observation as a table, one row per solved
parameter in parameter-vector order:

    name   value-before   correction   final-value   a-priori-sigma   adjusted-sigma

Pointing rows are shown in degrees, position rows in km. Unknown sigmas are
shown as "N/A". Rows can also be written to CSV or JSON.
"""

import csv
import json
import logging
from dataclasses import dataclass, asdict
from typing import List, Optional, TYPE_CHECKING

from .parameters import RAD2DEG

if TYPE_CHECKING:
    from .observation import BundleObservation

logger = logging.getLogger(__name__)

NOT_AVAILABLE = 'N/A'


@dataclass
class ParameterRow:
    """One reported parameter, in display units."""
    name: str
    group: str
    axis: str
    degree: int
    initial_value: float    # Value before the accumulated corrections
    correction: float       # Accumulated correction
    final_value: float      # Current value
    apriori_sigma: Optional[float]   # None if unconstrained
    adjusted_sigma: Optional[float]  # None if error propagation was not run


def parameter_rows(
    observation: "BundleObservation",
    error_propagation: bool = False,
) -> List[ParameterRow]:
    """
    Build report rows for an observation.

    Args:
        observation: Observation with solve settings set
        error_propagation: Whether adjusted sigmas are available

    Returns:
        List of rows in parameter order
    """
    values = observation.parameter_values()
    corrections = observation.parameter_corrections
    apriori = observation.apriori_sigmas
    adjusted = observation.adjusted_sigmas

    rows = []
    for i, slot in enumerate(observation.parameter_slots):
        scale = RAD2DEG if slot.is_pointing else 1.0
        rows.append(ParameterRow(
            name=slot.label,
            group=slot.group,
            axis=slot.axis,
            degree=slot.degree,
            initial_value=float((values[i] - corrections[i]) * scale),
            correction=float(corrections[i] * scale),
            final_value=float(values[i] * scale),
            apriori_sigma=apriori[i],
            adjusted_sigma=float(adjusted[i] * scale) if error_propagation else None,
        ))
    return rows


def format_rows(rows: List[ParameterRow]) -> str:
    """Render rows as fixed-width text lines."""
    lines = []
    for row in rows:
        sigma = NOT_AVAILABLE if row.apriori_sigma is None else f"{row.apriori_sigma:.8g}"
        if row.adjusted_sigma is None:
            adjusted = f"{NOT_AVAILABLE:>18}"
        else:
            adjusted = f"{row.adjusted_sigma:18.8f}"

        lines.append(
            f"{row.name}"
            f"{row.initial_value:17.8f}"
            f"{row.correction:21.8f}"
            f"{row.final_value:20.8f}"
            f"{sigma:>18}"
            f"{adjusted}\n"
        )
    return ''.join(lines)


def format_bundle_output_string(
    observation: "BundleObservation",
    error_propagation: bool = False,
) -> str:
    """Format an observation's parameters without touching its state."""
    return format_rows(parameter_rows(observation, error_propagation))


def save_parameters_csv(rows: List[ParameterRow], output_path: str) -> None:
    """
    Save report rows to CSV.

    Args:
        rows: Report rows
        output_path: Path for output CSV file
    """
    with open(output_path, 'w', newline='') as f:
        writer = csv.writer(f)
        writer.writerow([
            'group', 'axis', 'degree', 'initial_value', 'correction', 'final_value',
            'apriori_sigma', 'adjusted_sigma',
        ])
        for row in rows:
            writer.writerow([
                row.group, row.axis, row.degree,
                row.initial_value, row.correction, row.final_value,
                NOT_AVAILABLE if row.apriori_sigma is None else row.apriori_sigma,
                NOT_AVAILABLE if row.adjusted_sigma is None else row.adjusted_sigma,
            ])

    logger.info(f"Parameters saved to {output_path}")


def save_report(
    observation: "BundleObservation",
    output_path: str,
    error_propagation: bool = False,
) -> None:
    """
    Save an observation report to JSON.

    Unknown sigmas are written as null.

    Args:
        observation: Observation to report
        output_path: Path for output JSON file
        error_propagation: Whether adjusted sigmas are available
    """
    rows = parameter_rows(observation, error_propagation)
    data = {
        'observation_number': observation.observation_number,
        'instrument_id': observation.instrument_id,
        'index': observation.index,
        'images': [
            {'serial_number': sn, 'file_name': name}
            for sn, name in zip(observation.serial_numbers, observation.image_names)
        ],
        'number_parameters': len(rows),
        'parameters': [
            asdict(row) for row in rows
        ],
    }

    with open(output_path, 'w') as f:
        json.dump(data, f, indent=2)

    logger.info(f"Report saved to {output_path}")
