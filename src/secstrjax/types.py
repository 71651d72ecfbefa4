# SPDX-License-Identifier: BSD-2-Clause
# Copyright (c) 2020 NKI/AVL, Netherlands Cancer Institute
# Substantial portions of this code are derived from the DSSP C++ implementation
# by Maarten L. Hekkelman and contributors, licensed under the BSD-2-Clause license.
# Full C++ source and license available at: https://github.com/PDB-REDO/dssp
"""Data structures, Enums, and Type hints for secstrjax."""

import numpy as np
import jax.numpy as jnp
from typing import List, Dict, Tuple, Any, NamedTuple
from enum import IntEnum

from .constants import kCoilChar

# --- Enums ---

class AtomType(IntEnum):
    """Row index of each backbone atom in a BackboneTable."""
    N = 0
    CA = 1
    C = 2
    O = 3
    H = 4
    CB = 5

# Atom names recognised in the caller's residue records
BACKBONE_ATOM_NAMES = tuple(atom.name for atom in AtomType)

class BridgeType(IntEnum):
    """Direction sign of a beta bridge."""
    NONE = 0
    PARALLEL = 1
    ANTIPARALLEL = -1

class SecondaryStructureType(IntEnum):
    """Represents the per-residue secondary structure classification."""
    LOOP = 0        # -
    HELIX_3_10 = 1  # G
    HELIX_ALPHA = 2 # H
    HELIX_PI = 3    # I
    TURN = 4        # T
    BEND = 5        # S
    BETA_BRIDGE = 6 # B (Isolated beta bridge)
    BETA_STRAND = 7 # E (Strand in a beta ladder)
    UNDEFINED = 8   # ? (CA-only chain or residue without backbone N)

    def to_char(self) -> str:
        """Convert the enum member to its single-character code."""
        return _SS_CHARS[self]

    @classmethod
    def from_char(cls, char: str) -> "SecondaryStructureType":
        """Look up the enum member for a single-character code."""
        for member, member_char in _SS_CHARS.items():
            if member_char == char:
                return member
        raise ValueError(f"Unknown secondary structure code '{char}'")

_SS_CHARS = {
    SecondaryStructureType.LOOP: '-', SecondaryStructureType.HELIX_3_10: 'G',
    SecondaryStructureType.HELIX_ALPHA: 'H', SecondaryStructureType.HELIX_PI: 'I',
    SecondaryStructureType.TURN: 'T', SecondaryStructureType.BEND: 'S',
    SecondaryStructureType.BETA_BRIDGE: 'B', SecondaryStructureType.BETA_STRAND: 'E',
    SecondaryStructureType.UNDEFINED: '?',
}

class FeatureRow(IntEnum):
    """Rows of the per-residue feature table."""
    ALPHA_TURN = 0     # 4-turn markers
    SHEET_LABEL = 1    # Sheet letter
    SHEET = 2          # E / e
    BRIDGE = 3         # b / B
    BRIDGE_LABEL_1 = 4 # Strand or bridge letter, first partner
    BRIDGE_LABEL_2 = 5 # Strand or bridge letter, second partner
    HELIX_3_10_TURN = 6 # 3-turn markers
    PI_TURN = 7        # 5-turn markers
    TURN = 8           # T
    BEND = 9           # S
    CHIRALITY = 10     # + / -

# --- Working Tables ---

class BackboneTable(NamedTuple):
    """Dense, zero-based backbone coordinates for one analysis call."""
    coords: jnp.ndarray  # Shape (6, N, 3), indexed by AtomType
    present: np.ndarray  # Shape (6, N), bool
    is_proline: np.ndarray # Shape (N,), bool
    residue_ids: List[str] # Residue specs, e.g. "A27B"

    @property
    def n_residues(self) -> int:
        return len(self.residue_ids)

    def atom(self, atom_type: AtomType) -> jnp.ndarray:
        """Coordinates of one backbone atom for every residue, shape (N, 3)."""
        return self.coords[atom_type]

class Segments(NamedTuple):
    """Partition of the residue range into unbroken chain segments."""
    sizes: List[int]       # Residues per segment
    ends: List[int]        # Exclusive end index per segment
    segment_ids: np.ndarray # Shape (N,), 1-based segment number per residue
    breaks: List[Tuple[int, int]] # Adjacent residue pairs separated by a break

    def start_of(self, segment_id: int) -> int:
        """First residue index of a 1-based segment."""
        return self.ends[segment_id - 1] - self.sizes[segment_id - 1]

class MainchainAngles(NamedTuple):
    """Per-residue backbone angles in degrees; kNullAngle where undefined."""
    phi: np.ndarray
    psi: np.ndarray
    omega: np.ndarray
    chirality: np.ndarray
    improper: np.ndarray
    kappa: np.ndarray
    tco: np.ndarray

class FeatureTable:
    """Category x residue matrix of single-character feature cells.

    Every cell starts as coil. Cells only ever move away from coil, so a
    later sweep can never erase a feature recorded by an earlier one.
    """
    def __init__(self, n_residues: int):
        self.cells = np.full((len(FeatureRow), n_residues), kCoilChar, dtype='<U1')

    def __len__(self) -> int:
        return self.cells.shape[1]

    def __getitem__(self, key: Tuple[FeatureRow, int]) -> str:
        row, index = key
        return str(self.cells[row, index])

    def __setitem__(self, key: Tuple[FeatureRow, int], symbol: str):
        row, index = key
        if symbol == kCoilChar and self.cells[row, index] != kCoilChar:
            raise ValueError(
                f"Cannot reset {FeatureRow(row).name} cell {index} "
                f"('{self.cells[row, index]}') to coil"
            )
        self.cells[row, index] = symbol

    def is_coil(self, row: FeatureRow, index: int) -> bool:
        return self.cells[row, index] == kCoilChar

    def set_if_coil(self, row: FeatureRow, index: int, symbol: str):
        """Write symbol only where the cell is still coil."""
        if self.cells[row, index] == kCoilChar:
            self.cells[row, index] = symbol

    def row_string(self, row: FeatureRow) -> str:
        return ''.join(self.cells[row])

    def as_strings(self) -> Dict[str, str]:
        """All rows as strings keyed by row name, handy for debugging."""
        return {row.name: self.row_string(row) for row in FeatureRow}

# --- Residue Records ---

# Type alias for the dictionary representing a single residue's data.
ResiduePytree = Dict[str, Any]
# Keys:
#   'chain_id': str
#   'seq_id': int
#   'ins_code': str
#   'res_name': str
#   'atoms': Dict[str, Sequence[float]] # atom name -> xyz, absent atoms omitted
#   'secondary_structure': str # written by the Result Writer

# Type alias for a list of residue dictionaries, representing a protein chain.
ChainPytree = List[ResiduePytree]
