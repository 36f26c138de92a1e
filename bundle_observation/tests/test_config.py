"""
Tests for solve settings module.
"""

import pytest

from bundle_observation.config import (
    SolveSettings,
    PositionSolveOption,
    PointingSolveOption,
    InterpolationType,
    position_option_to_string,
    string_to_position_option,
    pointing_option_to_string,
    string_to_pointing_option,
)
from bundle_observation.exceptions import SettingsError


class TestSolveOptions:
    """Tests for option/string conversion."""

    def test_position_option_round_trip(self):
        for option in PositionSolveOption:
            assert string_to_position_option(position_option_to_string(option)) == option

    def test_pointing_option_round_trip(self):
        for option in PointingSolveOption:
            assert string_to_pointing_option(pointing_option_to_string(option)) == option

    def test_case_insensitive(self):
        assert string_to_position_option('velocity') == PositionSolveOption.VELOCITY
        assert string_to_pointing_option(' Angles ') == PointingSolveOption.ANGLES

    def test_unknown_option(self):
        with pytest.raises(SettingsError):
            string_to_position_option('sideways')

        # SettingsError is also a ValueError
        with pytest.raises(ValueError):
            string_to_pointing_option('sideways')


class TestSolveSettings:
    """Tests for SolveSettings."""

    def test_defaults(self):
        settings = SolveSettings()

        assert settings.position_option == PositionSolveOption.NONE
        assert settings.pointing_option == PointingSolveOption.ANGLES
        assert settings.solve_twist is True
        assert settings.position_interpolation == InterpolationType.POLY_FUNCTION
        assert settings.number_position_coefficients_solved() == 0
        assert settings.number_angle_coefficients_solved() == 1

    @pytest.mark.parametrize("option,expected", [
        (PositionSolveOption.NONE, 0),
        (PositionSolveOption.POSITION, 1),
        (PositionSolveOption.VELOCITY, 2),
        (PositionSolveOption.ACCELERATION, 3),
    ])
    def test_position_coefficients(self, option, expected):
        settings = SolveSettings(position_option=option)
        assert settings.number_position_coefficients_solved() == expected

    def test_fixed_option_sets_solve_degree(self):
        """Non-ALL options derive the solve degree from the option."""
        settings = SolveSettings(
            position_option=PositionSolveOption.VELOCITY,
            spk_solve_degree=5,
            spk_degree=5,
            pointing_option=PointingSolveOption.ANGLES,
        )

        assert settings.spk_solve_degree == 1
        assert settings.ck_solve_degree == 0
        assert settings.spk_degree == 5

    def test_all_option_uses_solve_degree(self):
        settings = SolveSettings(
            position_option=PositionSolveOption.ALL,
            spk_degree=4,
            spk_solve_degree=3,
            pointing_option=PointingSolveOption.ALL,
            ck_degree=2,
            ck_solve_degree=2,
        )

        assert settings.number_position_coefficients_solved() == 4
        assert settings.number_angle_coefficients_solved() == 3

    def test_fit_degree_raised_to_solve_degree(self):
        settings = SolveSettings(
            position_option=PositionSolveOption.ACCELERATION,
            spk_degree=0,
        )

        assert settings.spk_solve_degree == 2
        assert settings.spk_degree == 2

    def test_negative_degree_rejected(self):
        with pytest.raises(SettingsError):
            SolveSettings(ck_degree=-1)

    def test_string_options_accepted(self):
        settings = SolveSettings(
            position_option='position',
            pointing_option='none',
            position_interpolation='memcache',
        )

        assert settings.position_option == PositionSolveOption.POSITION
        assert settings.pointing_option == PointingSolveOption.NONE
        assert settings.position_interpolation == InterpolationType.MEMCACHE

    def test_sigma_lookup(self):
        settings = SolveSettings(
            apriori_position_sigmas=[0.5, None, -1.0],
            apriori_pointing_sigmas=[0.1],
        )

        assert settings.position_sigma(0) == pytest.approx(0.5)
        assert settings.position_sigma(1) is None  # absent
        assert settings.position_sigma(2) is None  # non-positive
        assert settings.position_sigma(3) is None  # beyond list
        assert settings.pointing_sigma(0) == pytest.approx(0.1)
        assert settings.pointing_sigma(1) is None

    def test_copy_is_independent(self):
        settings = SolveSettings(apriori_position_sigmas=[1.0])
        other = settings.copy()
        other.apriori_position_sigmas.append(2.0)

        assert settings.apriori_position_sigmas == [1.0]


class TestSolveSettingsYAML:
    """Tests for YAML loading and saving."""

    def test_from_dict(self):
        settings = SolveSettings.from_dict({
            'instrument_id': 'HRSC',
            'position': {
                'option': 'velocity',
                'fit_degree': 3,
                'apriori_sigmas': [0.5, 0.01, None],
            },
            'pointing': {
                'option': 'angles',
                'solve_twist': False,
                'interpolation': 'poly_function_over_hermite_constant',
                'apriori_sigmas': [0.05],
            },
        })

        assert settings.instrument_id == 'HRSC'
        assert settings.position_option == PositionSolveOption.VELOCITY
        assert settings.spk_degree == 3
        assert settings.spk_solve_degree == 1
        assert settings.apriori_position_sigmas == [0.5, 0.01, None]
        assert settings.solve_twist is False
        assert settings.pointing_interpolation == InterpolationType.POLY_FUNCTION_OVER_HERMITE_CONSTANT

    def test_yaml_round_trip(self, tmp_path):
        settings = SolveSettings(
            instrument_id='CTX',
            position_option=PositionSolveOption.ACCELERATION,
            spk_degree=3,
            apriori_position_sigmas=[1.0, 0.1, 0.01],
            pointing_option=PointingSolveOption.VELOCITY,
            solve_twist=False,
            apriori_pointing_sigmas=[0.2, None],
        )
        path = tmp_path / 'settings.yaml'
        settings.to_yaml(str(path))

        loaded = SolveSettings.from_yaml(str(path))

        assert loaded == settings

    def test_nested_solve_settings_key(self, tmp_path):
        path = tmp_path / 'settings.yaml'
        path.write_text(
            "solve_settings:\n"
            "  position:\n"
            "    option: position\n"
            "  pointing:\n"
            "    option: none\n"
        )

        settings = SolveSettings.from_yaml(str(path))

        assert settings.position_option == PositionSolveOption.POSITION
        assert settings.pointing_option == PointingSolveOption.NONE

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            SolveSettings.from_yaml(str(tmp_path / 'missing.yaml'))
