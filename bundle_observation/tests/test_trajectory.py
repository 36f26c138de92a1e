"""
Tests for polynomial trajectory module.
"""

import pytest
import numpy as np
from numpy.testing import assert_allclose
from scipy.spatial.transform import Rotation

from bundle_observation.config import InterpolationType
from bundle_observation.trajectory import (
    PositionTrajectory,
    PointingTrajectory,
)


@pytest.fixture
def quadratic_position():
    """Position samples following exact quadratics in time."""
    times = np.linspace(0.0, 10.0, 21)
    values = np.column_stack([
        100.0 + 2.0 * times + 0.1 * times ** 2,
        -50.0 + 0.5 * times,
        3000.0 - 0.2 * times ** 2,
    ])
    return PositionTrajectory(times, values, degree=2)


class TestPolynomialFit:
    """Tests for fitting polynomials to cached samples."""

    def test_base_time_is_midpoint(self, quadratic_position):
        quadratic_position.fit_polynomial()

        assert quadratic_position.base_time == pytest.approx(5.0)
        assert quadratic_position.time_scale == pytest.approx(1.0)

    def test_exact_quadratic_fit(self, quadratic_position):
        quadratic_position.fit_polynomial(InterpolationType.POLY_FUNCTION)
        x, y, z = quadratic_position.get_polynomial()

        # Expanded about t = 5: x = 112.5 + 3 s + 0.1 s^2
        assert_allclose(x, [112.5, 3.0, 0.1], atol=1e-9)
        assert_allclose(y, [-47.5, 0.5, 0.0], atol=1e-9)
        assert_allclose(z, [2995.0, -2.0, -0.2], atol=1e-9)
        assert quadratic_position.interpolation_type == InterpolationType.POLY_FUNCTION

    def test_evaluate_reproduces_samples(self, quadratic_position):
        quadratic_position.fit_polynomial()

        assert_allclose(
            quadratic_position.evaluate(quadratic_position.times),
            quadratic_position.values,
            atol=1e-9,
        )

    def test_evaluate_scalar_time(self, quadratic_position):
        quadratic_position.fit_polynomial()
        result = quadratic_position.evaluate(5.0)

        assert result.shape == (1, 3)
        assert_allclose(result[0], [112.5, -47.5, 2995.0], atol=1e-9)

    def test_fit_without_samples(self):
        trajectory = PositionTrajectory(degree=1)
        trajectory.fit_polynomial()

        x, y, z = trajectory.get_polynomial()
        assert_allclose(x, [0.0, 0.0])
        assert_allclose(z, [0.0, 0.0])
        assert not trajectory.has_data

    def test_fit_with_fewer_samples_than_coefficients(self):
        trajectory = PositionTrajectory([1.0, 3.0], [[0, 0, 0], [2, 4, 6]], degree=3)
        trajectory.fit_polynomial()

        x, y, z = trajectory.get_polynomial()
        assert len(x) == 4
        assert_allclose(x, [1.0, 1.0, 0.0, 0.0], atol=1e-9)
        assert_allclose(z, [3.0, 3.0, 0.0, 0.0], atol=1e-9)

    def test_fit_uses_override_base_time(self, quadratic_position):
        quadratic_position.set_override_base_time(0.0, 1.0)
        quadratic_position.fit_polynomial()
        x, _, _ = quadratic_position.get_polynomial()

        assert quadratic_position.base_time == pytest.approx(0.0)
        assert_allclose(x, [100.0, 2.0, 0.1], atol=1e-9)

    def test_mismatched_samples(self):
        with pytest.raises(ValueError):
            PositionTrajectory([0.0, 1.0], [[0.0, 0.0, 0.0]])

    def test_unsorted_samples_are_sorted(self):
        trajectory = PositionTrajectory(
            [2.0, 0.0, 1.0],
            [[2, 2, 2], [0, 0, 0], [1, 1, 1]],
        )

        assert_allclose(trajectory.times, [0.0, 1.0, 2.0])
        assert_allclose(trajectory.values[:, 0], [0.0, 1.0, 2.0])


class TestPolynomialDegree:
    """Tests for changing the polynomial degree."""

    def test_lowering_degree_drops_coefficients(self, quadratic_position):
        quadratic_position.fit_polynomial()
        quadratic_position.set_polynomial_degree(1)

        x, _, _ = quadratic_position.get_polynomial()
        assert quadratic_position.degree == 1
        assert_allclose(x, [112.5, 3.0], atol=1e-9)

    def test_raising_degree_pads_zeros(self, quadratic_position):
        quadratic_position.fit_polynomial()
        quadratic_position.set_polynomial_degree(4)

        x, _, _ = quadratic_position.get_polynomial()
        assert_allclose(x, [112.5, 3.0, 0.1, 0.0, 0.0], atol=1e-9)

    def test_negative_degree(self, quadratic_position):
        with pytest.raises(ValueError):
            quadratic_position.set_polynomial_degree(-1)


class TestSetPolynomial:
    """Tests for direct coefficient assignment."""

    def test_set_polynomial_sets_degree(self):
        trajectory = PositionTrajectory(degree=2)
        trajectory.set_polynomial([1.0], [2.0], [3.0], InterpolationType.MEMCACHE)

        assert trajectory.degree == 0
        assert trajectory.interpolation_type == InterpolationType.MEMCACHE
        assert_allclose(trajectory.evaluate([0.0, 10.0]), [[1, 2, 3], [1, 2, 3]])

    def test_empty_vectors_reset_to_zero(self):
        trajectory = PositionTrajectory(degree=1)
        trajectory.set_polynomial([5.0, 1.0], [5.0, 1.0], [5.0, 1.0])
        trajectory.set_polynomial([], [], [])

        x, y, z = trajectory.get_polynomial()
        assert_allclose(x, [0.0, 0.0])

    def test_unequal_lengths(self):
        trajectory = PositionTrajectory()
        with pytest.raises(ValueError):
            trajectory.set_polynomial([1.0, 2.0], [1.0], [1.0])

    def test_get_polynomial_returns_copies(self):
        trajectory = PositionTrajectory()
        trajectory.set_polynomial([1.0], [2.0], [3.0])

        x, _, _ = trajectory.get_polynomial()
        x[0] = 99.0

        assert trajectory.get_polynomial()[0][0] == pytest.approx(1.0)

    def test_zero_time_scale(self):
        trajectory = PositionTrajectory()
        with pytest.raises(ValueError):
            trajectory.set_override_base_time(0.0, 0.0)


class TestPointingTrajectory:
    """Tests for pointing trajectories."""

    def test_from_rotations(self):
        times = np.linspace(0.0, 4.0, 9)
        ra = 10.0 + 0.5 * times
        dec = 30.0 - 0.25 * times
        twist = 45.0 + 1.0 * times
        rotations = Rotation.from_euler(
            'ZXZ',
            np.column_stack([ra + 90.0, 90.0 - dec, twist]),
            degrees=True,
        )

        trajectory = PointingTrajectory.from_rotations(times, rotations, degree=1)
        trajectory.fit_polynomial()
        ra_c, dec_c, twi_c = trajectory.get_polynomial()

        # Expanded about t = 2
        assert_allclose(np.rad2deg(ra_c), [11.0, 0.5], atol=1e-8)
        assert_allclose(np.rad2deg(dec_c), [29.5, -0.25], atol=1e-8)
        assert_allclose(np.rad2deg(twi_c), [47.0, 1.0], atol=1e-8)

    def test_rotations_at_matches_input(self):
        times = np.array([0.0, 1.0, 2.0])
        rotations = Rotation.from_euler(
            'ZXZ', [[100.0, 60.0, 10.0], [101.0, 60.5, 11.0], [102.0, 61.0, 12.0]],
            degrees=True,
        )
        trajectory = PointingTrajectory.from_rotations(times, rotations, degree=1)
        trajectory.fit_polynomial()

        recovered = trajectory.rotations_at(times)
        difference = (recovered * rotations.inv()).magnitude()
        assert np.all(difference < 1e-9)

    def test_axis_names(self):
        assert PointingTrajectory.axis_names == ('RA', 'DEC', 'TWI')
        assert PositionTrajectory.axis_names == ('X', 'Y', 'Z')


class TestCSVLoading:
    """Tests for loading trajectory samples from CSV."""

    def test_position_from_csv(self, tmp_path):
        path = tmp_path / 'position.csv'
        path.write_text("time,x,y,z\n0,1,2,3\n1,2,3,4\n")

        trajectory = PositionTrajectory.from_csv(str(path), degree=1)
        trajectory.fit_polynomial()
        x, y, z = trajectory.get_polynomial()

        assert_allclose(x, [1.5, 1.0], atol=1e-9)
        assert_allclose(z, [3.5, 1.0], atol=1e-9)

    def test_pointing_from_csv_converts_degrees(self, tmp_path):
        path = tmp_path / 'pointing.csv'
        path.write_text("time,ra,dec,twist\n0,90,45,0\n")

        trajectory = PointingTrajectory.from_csv(str(path))

        assert_allclose(trajectory.values[0], [np.pi / 2, np.pi / 4, 0.0])

    def test_missing_csv(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            PositionTrajectory.from_csv(str(tmp_path / 'missing.csv'))
