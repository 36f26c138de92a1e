"""
Command-line interface for bundle observation reports.

Loads an observation description, fits the a-priori exterior orientation and
reports the parameters that would be adjusted.

Usage:
    bundle-observation observation.yaml [--output-dir OUTPUT_DIR]
"""

import argparse
import logging
import sys
from pathlib import Path

from .data_loader import load_observation
from .exceptions import BundleObservationError
from .report import parameter_rows, save_parameters_csv, save_report


def setup_logging(verbose: bool = False) -> None:
    """
    Send bundle_observation log records to stderr.

    Only the package logger is configured; calling this again replaces its
    handler instead of adding another one.
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter('%(asctime)s %(levelname)-8s %(name)s: %(message)s')
    )
    package_logger = logging.getLogger('bundle_observation')
    package_logger.handlers = [handler]
    package_logger.setLevel(logging.DEBUG if verbose else logging.INFO)


def main(argv=None) -> int:
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        description='Fit the a-priori exterior orientation of a bundle observation',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
    # Report to the default output directory
    bundle-observation observation.yaml

    # Custom output directory
    bundle-observation observation.yaml --output-dir ./results

    # Verbose output
    bundle-observation observation.yaml -v
'''
    )

    parser.add_argument(
        'config',
        type=str,
        help='Path to YAML observation file'
    )

    parser.add_argument(
        '--output-dir', '-o',
        type=str,
        default=None,
        help='Output directory for reports (default: next to the observation file)'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose output'
    )

    args = parser.parse_args(argv)

    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    try:
        observation, settings = load_observation(args.config)
        observation.set_solve_settings(settings)
        observation.initialize_exterior_orientation()
        if observation.target_body is not None:
            observation.initialize_body_rotation()

        if args.output_dir:
            output_dir = Path(args.output_dir)
        else:
            output_dir = Path(args.config).parent / 'observation_report'

        output_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"Output directory: {output_dir}")

        save_parameters_csv(
            parameter_rows(observation),
            str(output_dir / 'parameters.csv'),
        )
        save_report(observation, str(output_dir / 'observation_report.json'))

        print("\n" + "=" * 60)
        print(f"OBSERVATION {observation.observation_number} ({observation.instrument_id})")
        print("=" * 60)
        print(f"Images:                 {len(observation)}")
        print(f"Position parameters:    {observation.number_position_parameters()}")
        print(f"Pointing parameters:    {observation.number_pointing_parameters()}")
        print(f"Total parameters:       {observation.number_parameters()}")
        print()
        print(observation.format_bundle_output_string(False), end='')
        print("=" * 60)
        return 0

    except FileNotFoundError as e:
        logger.error(f"File not found: {e}")
        return 1
    except (ValueError, BundleObservationError) as e:
        logger.error(f"Configuration error: {e}")
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
