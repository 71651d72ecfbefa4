# SPDX-License-Identifier: BSD-2-Clause
# Copyright (c) 2020 NKI/AVL, Netherlands Cancer Institute
# Substantial portions of this code are derived from the DSSP C++ implementation
# by Maarten L. Hekkelman and contributors, licensed under the BSD-2-Clause license.
# Full C++ source and license available at: https://github.com/PDB-REDO/dssp
"""Mainchain torsion and pseudo-angle calculation."""

import jax.numpy as jnp
import numpy as np
import logging
from typing import Tuple

from .types import AtomType, BackboneTable, Segments, MainchainAngles
from .constants import kNullAngle
from .geometry import batched_dihedral_angle, batched_bond_vector_angle

log = logging.getLogger("secstrjax")

# (atom, residue offset) for each of the four points; 'dihedral' angles use the
# four points in order, 'vector' angles compare the bonds p0->p1 and p2->p3.
_ANGLE_DEFINITIONS = {
    'phi': ('dihedral', ((AtomType.C, -1), (AtomType.N, 0), (AtomType.CA, 0), (AtomType.C, 0))),
    'psi': ('dihedral', ((AtomType.N, 0), (AtomType.CA, 0), (AtomType.C, 0), (AtomType.N, 1))),
    'omega': ('dihedral', ((AtomType.CA, 0), (AtomType.C, 0), (AtomType.N, 1), (AtomType.CA, 1))),
    'chirality': ('dihedral', ((AtomType.CA, -1), (AtomType.CA, 0), (AtomType.CA, 1), (AtomType.CA, 2))),
    'improper': ('dihedral', ((AtomType.CA, 0), (AtomType.N, 0), (AtomType.C, 0), (AtomType.CB, 0))),
    'kappa': ('vector', ((AtomType.CA, -2), (AtomType.CA, 0), (AtomType.CA, 0), (AtomType.CA, 2))),
    'tco': ('vector', ((AtomType.C, 0), (AtomType.O, 0), (AtomType.C, -1), (AtomType.O, -1))),
}

# Angles that only need CA atoms
_CA_ONLY_ANGLES = ('chirality', 'kappa')

def _gather_points(table: BackboneTable, segments: Segments,
                   points: Tuple[Tuple[AtomType, int], ...]) -> Tuple[list, np.ndarray]:
    """Collects the coordinates for each point and the per-residue validity mask."""
    n_res = table.n_residues
    idx = np.arange(n_res)
    segment_ids = segments.segment_ids
    valid = np.ones(n_res, dtype=bool)
    gathered = []
    for atom_type, offset in points:
        partner = idx + offset
        in_range = (partner >= 0) & (partner < n_res)
        partner = np.clip(partner, 0, n_res - 1)
        valid &= in_range & (segment_ids[partner] == segment_ids) & table.present[atom_type, partner]
        gathered.append(table.atom(atom_type)[partner])
    return gathered, valid

def calculate_angle(table: BackboneTable, segments: Segments, name: str) -> np.ndarray:
    """Computes one named mainchain angle for every residue.

    Args:
        table: Backbone table from `extract_backbone`.
        segments: Segments from `find_chain_breaks`.
        name: One of phi, psi, omega, chirality, improper, kappa, tco.

    Returns:
        (N,) array in degrees with kNullAngle where the angle is undefined.
    """
    kind, points = _ANGLE_DEFINITIONS[name]
    n_res = table.n_residues
    if n_res == 0:
        return np.zeros(0, dtype=np.float64)

    gathered, valid = _gather_points(table, segments, points)
    if kind == 'dihedral':
        values = batched_dihedral_angle(*gathered)
    else:
        values = batched_bond_vector_angle(*gathered)
    values = jnp.where(jnp.asarray(valid) & jnp.isfinite(values), values, kNullAngle)
    return np.asarray(values)

def calculate_mainchain_angles(table: BackboneTable, segments: Segments, ca_only: bool = False) -> MainchainAngles:
    """Computes phi, psi, omega, chirality, improper, kappa and tco per residue.

    Any angle whose atoms are missing, or whose residues straddle a segment
    boundary, is kNullAngle. In CA-only mode only chirality and kappa are
    computed.
    """
    n_res = table.n_residues
    values = {}
    for name in _ANGLE_DEFINITIONS:
        if ca_only and name not in _CA_ONLY_ANGLES:
            values[name] = np.full(n_res, kNullAngle, dtype=np.float64)
        else:
            values[name] = calculate_angle(table, segments, name)
    log.debug(f"Computed mainchain angles for {n_res} residues (CA-only: {ca_only}).")
    return MainchainAngles(**values)

def is_defined(angle_value: float) -> bool:
    """True unless the value is the undefined-angle sentinel."""
    return not np.isclose(angle_value, kNullAngle)
