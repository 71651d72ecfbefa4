# SPDX-License-Identifier: BSD-2-Clause
# Copyright (c) 2020 NKI/AVL, Netherlands Cancer Institute
# Substantial portions of this code are derived from the DSSP C++ implementation
# by Maarten L. Hekkelman and contributors, licensed under the BSD-2-Clause license.
# Full C++ source and license available at: https://github.com/PDB-REDO/dssp
"""Backbone hydrogen bond energies and the two-slot H-bond network."""

import jax
import jax.numpy as jnp
import numpy as np
import logging
from typing import List, Optional, Tuple

# Relative imports from within the package
from .types import AtomType, BackboneTable, Segments
from .constants import (
    kCouplingConstant, kMinHBondEnergy, kMaxHBondEnergy,
    kHBondMaxCADistance, kCoincidenceTolerance, kNumHBondSlots
)
from .geometry import distance, distance_matrix

log = logging.getLogger("secstrjax")

# --- H-Bond Energy Calculation ---

@jax.jit
def _calculate_hbond_energy_impl(n_d: jnp.ndarray, h_d: jnp.ndarray, c_a: jnp.ndarray, o_a: jnp.ndarray):
    """Calculates the H-bond energy between a donor (N-H) and acceptor (C=O).

    Uses the Kabsch-Sander electrostatic model:
    E = q1*q2*f * (1/r_ON + 1/r_CH - 1/r_OH - 1/r_CN)

    Args:
        n_d: Coordinates of donor nitrogen.
        h_d: Coordinates of donor hydrogen.
        c_a: Coordinates of acceptor carbon.
        o_a: Coordinates of acceptor oxygen.

    Returns:
        Tuple (energy, coincident). Energy is in kcal/mol and unclamped;
        it is +inf when any two of the four atoms coincide.
    """
    d_on = distance(o_a, n_d)
    d_ch = distance(c_a, h_d)
    d_oh = distance(o_a, h_d)
    d_cn = distance(c_a, n_d)

    coincident = ((d_on < kCoincidenceTolerance) | (d_ch < kCoincidenceTolerance) |
                  (d_oh < kCoincidenceTolerance) | (d_cn < kCoincidenceTolerance))

    def _safe(d):
        return jnp.where(coincident, 1.0, d)

    energy = kCouplingConstant * (1.0 / _safe(d_on) + 1.0 / _safe(d_ch) -
                                  1.0 / _safe(d_oh) - 1.0 / _safe(d_cn))
    return jnp.where(coincident, jnp.inf, energy), coincident

calculate_hbond_energy = _calculate_hbond_energy_impl

# Map over donors (rows of N, H) for a fixed acceptor (C, O)
_vmap_hbond_donor = jax.vmap(_calculate_hbond_energy_impl, in_axes=(0, 0, None, None), out_axes=0)
# Map the donor-vmapped function over acceptors; out_axes=1 gives (donor, acceptor) matrices
_vmap_hbond_acceptor = jax.vmap(_vmap_hbond_donor, in_axes=(None, None, 0, 0), out_axes=1)

@jax.jit
def _calculate_hbond_energy_matrix_impl(n_coords, h_coords, c_coords, o_coords):
    """Calculates the full donor x acceptor energy and coincidence matrices."""
    return _vmap_hbond_acceptor(n_coords, h_coords, c_coords, o_coords)

def calculate_hbond_energy_matrix(table: BackboneTable) -> Tuple[np.ndarray, np.ndarray]:
    """Energy and coincidence matrices for every (donor, acceptor) pair.

    Args:
        table: Backbone table with hydrogens placed.

    Returns:
        Tuple of (N, N) arrays indexed [donor, acceptor].
    """
    energies, coincident = _calculate_hbond_energy_matrix_impl(
        table.atom(AtomType.N), table.atom(AtomType.H),
        table.atom(AtomType.C), table.atom(AtomType.O)
    )
    return np.asarray(energies), np.asarray(coincident)

def find_hbond_candidates(table: BackboneTable, segments: Segments) -> np.ndarray:
    """Boolean (donor, acceptor) mask of pairs eligible for an H-bond.

    A pair is eligible when the donor has N and H and is not proline, the
    acceptor has C and O, both CA atoms are present and closer than
    kHBondMaxCADistance, and the residues are either at least two apart or
    sequence neighbours separated by a chain break.
    """
    n_res = table.n_residues
    present = table.present
    idx = np.arange(n_res)
    separation = np.abs(idx[:, None] - idx[None, :])
    segment_ids = segments.segment_ids
    across_break = segment_ids[:, None] != segment_ids[None, :]
    separation_ok = ((separation == 1) & across_break) | (separation >= 2)

    donor_ok = present[AtomType.N] & present[AtomType.H] & (~table.is_proline)
    acceptor_ok = present[AtomType.C] & present[AtomType.O]
    ca = table.atom(AtomType.CA)
    ca_ok = present[AtomType.CA][:, None] & present[AtomType.CA][None, :]
    ca_dist = np.asarray(distance_matrix(ca, ca))

    return (donor_ok[:, None] & acceptor_ok[None, :] & separation_ok &
            ca_ok & (ca_dist < kHBondMaxCADistance))

# --- H-Bond Slot Table ---

def _find_slot(energy: float, slot_energies: np.ndarray) -> Optional[int]:
    """Slot a new bond of this energy would occupy, or None if it is not among the best two."""
    for slot in range(kNumHBondSlots):
        if energy < slot_energies[slot]:
            return slot
    return None

def _remove_partner(partners: np.ndarray, energies: np.ndarray, partner: int):
    """Removes partner from a best-first slot list, shifting later slots up."""
    slots = [s for s in range(kNumHBondSlots) if partners[s] != partner]
    kept_partners = [partners[s] for s in slots]
    kept_energies = [energies[s] for s in slots]
    for slot in range(kNumHBondSlots):
        if slot < len(kept_partners):
            partners[slot] = kept_partners[slot]
            energies[slot] = kept_energies[slot]
        else:
            partners[slot] = -1
            energies[slot] = 0.0

class HBondTable:
    """Per-residue two-slot donor and acceptor H-bond lists.

    `donated_to[i]` holds the acceptors bonded by residue i's N-H and
    `accepted_from[i]` holds the donors bonded to residue i's C=O. Slots are
    kept best (most negative energy) first; empty slots hold partner -1 and
    energy 0.0.
    """
    def __init__(self, n_residues: int):
        self.n_residues = n_residues
        self.donated_to = np.full((n_residues, kNumHBondSlots), -1, dtype=np.int64)
        self.donated_energy = np.zeros((n_residues, kNumHBondSlots), dtype=np.float64)
        self.accepted_from = np.full((n_residues, kNumHBondSlots), -1, dtype=np.int64)
        self.accepted_energy = np.zeros((n_residues, kNumHBondSlots), dtype=np.float64)
        self.bond_count = 0

    def __len__(self) -> int:
        return self.n_residues

    def insert(self, donor: int, acceptor: int, energy: float) -> bool:
        """Stores donor -> acceptor if it ranks among the best two on both sides.

        A bond displaced from a full slot list is removed from both residues
        it joined and the bond count is decremented for it.

        Returns:
            True if the bond was stored.
        """
        donor_slot = _find_slot(energy, self.donated_energy[donor])
        acceptor_slot = _find_slot(energy, self.accepted_energy[acceptor])
        if donor_slot is None or acceptor_slot is None:
            log.debug(f"Third H-bond skipped: {donor} -> {acceptor} ({energy:.2f} kcal/mol)")
            return False

        last = kNumHBondSlots - 1
        evicted_acceptor = int(self.donated_to[donor, last])
        if evicted_acceptor >= 0:
            _remove_partner(self.accepted_from[evicted_acceptor],
                            self.accepted_energy[evicted_acceptor], donor)
            self.bond_count -= 1
        evicted_donor = int(self.accepted_from[acceptor, last])
        if evicted_donor >= 0:
            _remove_partner(self.donated_to[evicted_donor],
                            self.donated_energy[evicted_donor], acceptor)
            self.bond_count -= 1

        # The evicted entries drop off the end of this pair's own lists here
        self._insert_at(self.donated_to[donor], self.donated_energy[donor], donor_slot, acceptor, energy)
        self._insert_at(self.accepted_from[acceptor], self.accepted_energy[acceptor], acceptor_slot, donor, energy)
        self.bond_count += 1
        return True

    @staticmethod
    def _insert_at(partners: np.ndarray, energies: np.ndarray, slot: int, partner: int, energy: float):
        partners[slot + 1:] = partners[slot:-1].copy()
        energies[slot + 1:] = energies[slot:-1].copy()
        partners[slot] = partner
        energies[slot] = energy

    def donors_of(self, acceptor: int) -> List[int]:
        """Donors H-bonded to this residue's C=O, best first."""
        return [int(p) for p in self.accepted_from[acceptor] if p >= 0]

    def acceptors_of(self, donor: int) -> List[int]:
        """Acceptors H-bonded by this residue's N-H, best first."""
        return [int(p) for p in self.donated_to[donor] if p >= 0]

    def has_bond(self, donor: int, acceptor: int) -> bool:
        """True if donor's N-H is bonded to acceptor's C=O."""
        if not (0 <= donor < self.n_residues and 0 <= acceptor < self.n_residues):
            return False
        return bool(np.any(self.accepted_from[acceptor] == donor))

# --- Network Construction ---

def build_hbond_network(table: BackboneTable, segments: Segments) -> HBondTable:
    """Computes all eligible backbone H-bonds and keeps the best two per side.

    Candidates are visited donor-major so the outcome of the keep-best-two
    policy is deterministic. Coincident atom pairs are skipped with a
    warning; energies below kMinHBondEnergy are clamped with a warning.

    Args:
        table: Backbone table with hydrogens placed.
        segments: Segments from `find_chain_breaks`.

    Returns:
        The populated HBondTable.
    """
    n_res = table.n_residues
    hbonds = HBondTable(n_res)
    if n_res == 0:
        return hbonds

    eligible = find_hbond_candidates(table, segments)
    energies, coincident = calculate_hbond_energy_matrix(table)

    # np.argwhere yields row-major (donor-major) order
    candidates = np.argwhere(eligible & (coincident | (energies < kMaxHBondEnergy)))
    for donor, acceptor in candidates:
        donor, acceptor = int(donor), int(acceptor)
        if coincident[donor, acceptor]:
            log.warning(f"Coincident atoms between donor {table.residue_ids[donor]} "
                        f"and acceptor {table.residue_ids[acceptor]}; H-bond skipped.")
            continue
        energy = float(energies[donor, acceptor])
        if energy < kMinHBondEnergy:
            log.warning(f"H-bond energy {energy:.2f} between {table.residue_ids[donor]} and "
                        f"{table.residue_ids[acceptor]} clamped to {kMinHBondEnergy}; atoms too close.")
            energy = kMinHBondEnergy
        hbonds.insert(donor, acceptor, energy)

    log.info(f"--> Found [b]{hbonds.bond_count}[/] backbone H-bonds.", extra={"markup": True})
    return hbonds
