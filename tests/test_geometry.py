"""
Tests for the core geometric kernels.

Sign conventions matter here: every torsion reported by the pipeline
(phi, psi, omega, chirality) goes through the dihedral kernel.
"""

import numpy as np
import pytest

from secstrjax.geometry import (
    angle,
    batched_dihedral_angle,
    bond_vector_angle,
    dihedral_angle,
    distance,
    distance_matrix,
)

from .builders import place_atom


class TestDistance:
    """Tests for Euclidean distances over coordinate arrays."""

    def test_two_points(self):
        assert float(distance(np.array([0.0, 0.0, 0.0]), np.array([3.0, 4.0, 0.0]))) == pytest.approx(5.0)

    def test_matching_rows(self):
        """Row i of the result is the distance between row i of each input."""
        a = np.array([[0.0, 0.0, 0.0], [1.0, 1.0, 1.0], [0.0, 2.0, 0.0]])
        b = np.array([[0.0, 0.0, 1.5], [2.0, 2.0, 2.0], [0.0, 2.0, 0.0]])
        np.testing.assert_allclose(np.asarray(distance(a, b)), [1.5, np.sqrt(3.0), 0.0])

    def test_point_against_rows(self):
        rows = np.array([[3.0, 4.0, 0.0], [0.0, 0.0, 2.0]])
        np.testing.assert_allclose(np.asarray(distance(np.zeros(3), rows)), [5.0, 2.0])

    def test_distance_matrix(self):
        a = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0]])
        b = np.array([[0.0, 3.0, 0.0], [1.0, 0.0, 0.0], [4.0, 4.0, 0.0]])
        matrix = np.asarray(distance_matrix(a, b))
        assert matrix.shape == (2, 3)
        expected = [[3.0, 1.0, np.sqrt(32.0)], [np.sqrt(10.0), 0.0, 5.0]]
        np.testing.assert_allclose(matrix, expected)

    def test_matrix_matches_rows(self, helix_backbone):
        ca = helix_backbone(8)['CA']
        matrix = np.asarray(distance_matrix(ca, ca))
        np.testing.assert_allclose(matrix, matrix.T)
        np.testing.assert_allclose(np.diag(matrix), 0.0, atol=1e-12)
        np.testing.assert_allclose(np.diag(matrix, k=1), np.asarray(distance(ca[:-1], ca[1:])))


class TestAngle:
    """Tests for the three-point bond angle."""

    def test_right_angle(self):
        value = angle(np.array([1.0, 0.0, 0.0]), np.zeros(3), np.array([0.0, 1.0, 0.0]))
        assert float(value) == pytest.approx(90.0)

    def test_zero_arm_is_nan(self):
        assert np.isnan(float(angle(np.zeros(3), np.zeros(3), np.array([0.0, 1.0, 0.0]))))


class TestBondVectorAngle:
    """Tests for the angle between two bond vectors (kappa, tco)."""

    def test_parallel_and_antiparallel(self):
        origin = np.zeros(3)
        x = np.array([1.0, 0.0, 0.0])
        assert float(bond_vector_angle(origin, x, origin, 2.0 * x)) == pytest.approx(0.0)
        assert float(bond_vector_angle(origin, x, x, origin)) == pytest.approx(180.0)

    def test_zero_vector_counts_as_parallel(self):
        origin = np.zeros(3)
        value = bond_vector_angle(origin, origin, origin, np.array([0.0, 1.0, 0.0]))
        assert np.isfinite(float(value))
        assert float(value) == pytest.approx(0.0)


class TestDihedral:
    """Tests for the four-point torsion."""

    A = np.array([0.0, 1.0, 0.0])
    B = np.array([0.0, 0.0, 0.0])
    C = np.array([1.0, 0.0, 0.0])

    def test_clockwise_is_positive(self):
        value = dihedral_angle(self.A, self.B, self.C, np.array([1.0, 0.0, 1.0]))
        assert float(value) == pytest.approx(90.0)

    def test_counterclockwise_is_negative(self):
        value = dihedral_angle(self.A, self.B, self.C, np.array([1.0, 0.0, -1.0]))
        assert float(value) == pytest.approx(-90.0)

    def test_cis_and_trans(self):
        assert float(dihedral_angle(self.A, self.B, self.C, np.array([1.0, 1.0, 0.0]))) == pytest.approx(0.0)
        trans = float(dihedral_angle(self.A, self.B, self.C, np.array([1.0, -1.0, 0.0])))
        assert abs(trans) == pytest.approx(180.0)

    def test_collinear_is_nan(self):
        value = dihedral_angle(np.array([-1.0, 0.0, 0.0]), self.B, self.C, np.array([2.0, 0.0, 0.0]))
        assert np.isnan(float(value))

    @pytest.mark.parametrize("torsion", [-150.0, -57.0, 0.5, 47.0, 120.0])
    def test_recovers_built_torsion(self, torsion):
        d = place_atom(self.A, self.B, self.C, 1.5, 110.0, torsion)
        assert float(dihedral_angle(self.A, self.B, self.C, d)) == pytest.approx(torsion, abs=1e-6)

    def test_batched(self):
        p1 = np.stack([self.A, self.A])
        p2 = np.stack([self.B, self.B])
        p3 = np.stack([self.C, self.C])
        p4 = np.array([[1.0, 0.0, 1.0], [1.0, 0.0, -1.0]])
        values = np.asarray(batched_dihedral_angle(p1, p2, p3, p4))
        np.testing.assert_allclose(values, [90.0, -90.0], atol=1e-9)
