"""
Tests for mainchain torsions and pseudo-angles on built peptides.
"""

import numpy as np
import pytest

from secstrjax.angles import calculate_angle, calculate_mainchain_angles, is_defined
from secstrjax.backbone import extract_backbone, find_chain_breaks
from secstrjax.constants import kNullAngle

from .builders import HELIX_PHI, HELIX_PSI


def _angles(residues, ca_only=False):
    table = extract_backbone(residues)
    segments = find_chain_breaks(table, ca_only=ca_only)
    return calculate_mainchain_angles(table, segments, ca_only=ca_only)


class TestTorsions:
    """Tests for phi, psi and omega."""

    def test_helix_torsions(self, helix_residues):
        angles = _angles(helix_residues(8))
        np.testing.assert_allclose(angles.phi[1:], HELIX_PHI, atol=1e-6)
        np.testing.assert_allclose(angles.psi[:-1], HELIX_PSI, atol=1e-6)
        np.testing.assert_allclose(np.abs(angles.omega[:-1]), 180.0, atol=1e-6)

    def test_chain_ends_are_undefined(self, helix_residues):
        angles = _angles(helix_residues(8))
        assert angles.phi[0] == kNullAngle
        assert angles.psi[-1] == kNullAngle
        assert angles.omega[-1] == kNullAngle

    def test_undefined_across_break(self, broken_helix_residues):
        angles = _angles(broken_helix_residues)
        assert angles.psi[9] == kNullAngle
        assert angles.omega[9] == kNullAngle
        assert angles.phi[10] == kNullAngle
        assert is_defined(angles.phi[11])

    def test_improper_needs_cb(self, helix_residues):
        table = extract_backbone(helix_residues(4))
        improper = calculate_angle(table, find_chain_breaks(table), 'improper')
        assert (improper == kNullAngle).all()


class TestPseudoAngles:
    """Tests for chirality, kappa and tco."""

    def test_right_handed_helix_chirality(self, helix_residues):
        angles = _angles(helix_residues(10))
        assert angles.chirality[0] == kNullAngle
        assert (angles.chirality[-2:] == kNullAngle).all()
        assert (angles.chirality[1:-2] > 0.0).all()

    def test_kappa_window(self, helix_residues):
        angles = _angles(helix_residues(10))
        assert (angles.kappa[:2] == kNullAngle).all()
        assert (angles.kappa[-2:] == kNullAngle).all()
        defined = angles.kappa[2:-2]
        assert ((defined >= 0.0) & (defined <= 180.0)).all()

    def test_tco_range(self, helix_residues):
        angles = _angles(helix_residues(6))
        assert angles.tco[0] == kNullAngle
        assert ((angles.tco[1:] >= 0.0) & (angles.tco[1:] <= 180.0)).all()

    def test_ca_only_computes_only_ca_angles(self, helix_residues):
        residues = helix_residues(8)
        for res in residues:
            res['atoms'] = {'CA': res['atoms']['CA']}
        angles = _angles(residues, ca_only=True)
        assert (angles.phi == kNullAngle).all()
        assert (angles.tco == kNullAngle).all()
        assert is_defined(angles.kappa[3])
        assert is_defined(angles.chirality[3])


class TestIsDefined:
    """Tests for the undefined-angle sentinel check."""

    @pytest.mark.parametrize("value, expected", [(kNullAngle, False), (0.0, True), (-179.9, True)])
    def test_is_defined(self, value, expected):
        assert is_defined(value) == expected


class TestMirroring:
    """Tests for behaviour under reflection of the coordinates."""

    def test_mirror_flips_torsions_keeps_kappa(self, helix_residues):
        residues = helix_residues(10)
        mirrored = helix_residues(10)
        for res in mirrored:
            for coords in res['atoms'].values():
                coords[0] = -coords[0]
        angles = _angles(residues)
        mirror_angles = _angles(mirrored)
        for name in ('phi', 'psi', 'chirality'):
            values = getattr(angles, name)
            defined = values != kNullAngle
            np.testing.assert_allclose(getattr(mirror_angles, name)[defined], -values[defined], atol=1e-6)
        np.testing.assert_allclose(mirror_angles.kappa, angles.kappa, atol=1e-6)
