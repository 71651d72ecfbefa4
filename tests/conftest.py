"""Shared fixtures: ideal helices and strands built from internal coordinates."""

import pytest

from .builders import build_backbone, build_strand_pair, helix_axis, split_backbone, to_residues


@pytest.fixture
def helix_backbone():
    """Factory for ideal alpha helix backbones."""
    return build_backbone


@pytest.fixture
def helix_residues():
    """Factory for residue records of an ideal alpha helix."""
    def _make(n_residues, chain_id='A'):
        return to_residues(build_backbone(n_residues), chain_id=chain_id)
    return _make


@pytest.fixture
def broken_helix_residues():
    """20-residue helix cut after residue 10, the second half moved 10 A along the axis."""
    backbone = build_backbone(20)
    moved = split_backbone(backbone, 10, 10.0 * helix_axis(backbone))
    return to_residues(moved)


@pytest.fixture
def strand_pair_residues():
    """Two antiparallel 7-residue strands in one chain, facing residues 2.0 A from H to O."""
    return to_residues(build_strand_pair(7))
