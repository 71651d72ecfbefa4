# SPDX-License-Identifier: BSD-2-Clause
# Copyright (c) 2020 NKI/AVL, Netherlands Cancer Institute
# Substantial portions of this code are derived from the DSSP C++ implementation
# by Maarten L. Hekkelman and contributors, licensed under the BSD-2-Clause license.
# Full C++ source and license available at: https://github.com/PDB-REDO/dssp
"""n-turn, bend and chirality sweeps over the feature table."""

import logging

from .types import FeatureRow, FeatureTable, MainchainAngles, Segments
from .hbonds import HBondTable
from .angles import is_defined
from .constants import (
    k310HelixSize, kAlphaHelixSize, kPiHelixSize, kBendKappaThreshold,
    kTurnStartChar, kTurnEndChar, kTurnBothChar, kTurnChar, kBendChar,
    kChiralPositiveChar, kChiralNegativeChar
)

log = logging.getLogger("secstrjax")

# Turn length -> feature row holding its start/end markers
TURN_ROWS = {
    k310HelixSize: FeatureRow.HELIX_3_10_TURN,
    kAlphaHelixSize: FeatureRow.ALPHA_TURN,
    kPiHelixSize: FeatureRow.PI_TURN,
}

def mark_turns(features: FeatureTable, hbonds: HBondTable, segments: Segments) -> int:
    """Marks n-turns (n = 3, 4, 5) from the accepted H-bonds.

    Residue i starts an n-turn when the N-H of i+n, in the same segment, is
    bonded to the C=O of i. The start is '>' (or 'X' if i already ends a
    turn), i+n is '<', residues in between get the digit n where still coil,
    and i..i+n are flagged in the generic TURN row.

    Returns:
        Number of turns found.
    """
    segment_ids = segments.segment_ids
    n_turns = 0
    for turn_size, row in TURN_ROWS.items():
        digit = str(turn_size)
        for i in range(len(features)):
            for donor in hbonds.donors_of(i):
                if donor - i != turn_size or segment_ids[donor] != segment_ids[i]:
                    continue
                n_turns += 1
                features[row, i] = kTurnBothChar if features[row, i] == kTurnEndChar else kTurnStartChar
                features[row, donor] = kTurnEndChar
                for k in range(i + 1, donor):
                    features.set_if_coil(row, k, digit)
                for k in range(i, donor + 1):
                    features[FeatureRow.TURN, k] = kTurnChar
    log.debug(f"Marked {n_turns} n-turns.")
    return n_turns

def mark_chirality(features: FeatureTable, angles: MainchainAngles):
    """Records the sign of the CA chirality dihedral where it is defined."""
    for i, value in enumerate(angles.chirality):
        if is_defined(value):
            features[FeatureRow.CHIRALITY, i] = kChiralNegativeChar if value < 0.0 else kChiralPositiveChar

def mark_bends(features: FeatureTable, angles: MainchainAngles) -> int:
    """Flags residues whose kappa angle exceeds kBendKappaThreshold."""
    n_bends = 0
    for i, kappa in enumerate(angles.kappa):
        if is_defined(kappa) and kappa > kBendKappaThreshold:
            features[FeatureRow.BEND, i] = kBendChar
            n_bends += 1
    return n_bends
