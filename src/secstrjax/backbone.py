# SPDX-License-Identifier: BSD-2-Clause
# Copyright (c) 2020 NKI/AVL, Netherlands Cancer Institute
# Substantial portions of this code are derived from the DSSP C++ implementation
# by Maarten L. Hekkelman and contributors, licensed under the BSD-2-Clause license.
# Full C++ source and license available at: https://github.com/PDB-REDO/dssp
"""Backbone extraction, chain-break detection and amide hydrogen placement."""

import jax.numpy as jnp
import numpy as np
import logging

from .types import AtomType, BackboneTable, Segments, ChainPytree, ResiduePytree
from .constants import (
    kMaxPeptideBond, kMaxCADistance, kHydrogenBondLength, kCoincidenceTolerance
)
from .geometry import distance

log = logging.getLogger("secstrjax")

def format_residue_spec(res: ResiduePytree) -> str:
    """Residue spec in the form chain + number + insertion code, e.g. 'L27A'."""
    return f"{res.get('chain_id', '')}{res.get('seq_id', '')}{res.get('ins_code', '')}"

# --- Residue Extraction ---

def extract_backbone(residues: ChainPytree) -> BackboneTable:
    """Builds the dense backbone table from the caller's residue records.

    Args:
        residues: Ordered residue records, already grouped by chain.

    Returns:
        A BackboneTable with zero-filled coordinates for absent atoms.

    Raises:
        ValueError: If a record has no 'atoms' mapping or a malformed coordinate.
    """
    n_res = len(residues)
    coords = np.zeros((len(AtomType), n_res, 3), dtype=np.float64)
    present = np.zeros((len(AtomType), n_res), dtype=bool)
    is_proline = np.zeros(n_res, dtype=bool)
    residue_ids = []

    for i, res in enumerate(residues):
        atoms = res.get('atoms')
        if atoms is None:
            raise ValueError(f"Residue record {i} has no 'atoms' mapping.")
        for atom_type in AtomType:
            xyz = atoms.get(atom_type.name)
            if xyz is None:
                continue
            xyz = np.asarray(xyz, dtype=np.float64)
            if xyz.shape != (3,):
                raise ValueError(
                    f"Atom {atom_type.name} of residue {format_residue_spec(res)} "
                    f"has coordinate shape {xyz.shape}, expected (3,)."
                )
            coords[atom_type, i] = xyz
            present[atom_type, i] = True
        is_proline[i] = str(res.get('res_name', '')).upper() == 'PRO'
        residue_ids.append(format_residue_spec(res))

    return BackboneTable(jnp.asarray(coords), present, is_proline, residue_ids)

def is_ca_only(table: BackboneTable) -> bool:
    """True when fewer than half of the CA-bearing residues have a backbone N."""
    n_count = int(np.sum(table.present[AtomType.N]))
    ca_count = int(np.sum(table.present[AtomType.CA]))
    return n_count < ca_count / 2

# --- Chain Breaks ---

def find_chain_breaks(table: BackboneTable, ca_only: bool = False) -> Segments:
    """Partitions the residues into segments separated by chain breaks.

    A break is inserted between residues i and i+1 when the peptide C(i)-N(i+1)
    is missing or longer than kMaxPeptideBond. In CA-only mode the CA(i)-CA(i+1)
    distance is compared against kMaxCADistance instead.

    Args:
        table: Backbone table from `extract_backbone`.
        ca_only: Use the CA-CA criterion.

    Returns:
        Segments covering every residue exactly once, numbered from 1.
    """
    n_res = table.n_residues
    if n_res == 0:
        return Segments([], [], np.zeros(0, dtype=np.int64), [])

    present = table.present
    if n_res > 1:
        if ca_only:
            dists = np.asarray(distance(table.atom(AtomType.CA)[:-1], table.atom(AtomType.CA)[1:]))
            is_break = (~present[AtomType.CA, :-1]) | (~present[AtomType.CA, 1:]) | (dists > kMaxCADistance)
        else:
            dists = np.asarray(distance(table.atom(AtomType.C)[:-1], table.atom(AtomType.N)[1:]))
            is_break = (~present[AtomType.C, :-1]) | (~present[AtomType.N, 1:]) | (dists > kMaxPeptideBond)
    else:
        is_break = np.zeros(0, dtype=bool)

    breaks = []
    for i in np.flatnonzero(is_break):
        i = int(i)
        breaks.append((i, i + 1))
        log.debug(f"Chain break between residues {table.residue_ids[i]} and {table.residue_ids[i + 1]}")

    ends = [j for _, j in breaks] + [n_res]
    sizes = [end - start for start, end in zip([0] + ends[:-1], ends)]
    segment_ids = np.concatenate([[1], 1 + np.cumsum(is_break)]).astype(np.int64)
    return Segments(sizes, ends, segment_ids, breaks)

# --- Hydrogen Placement ---

def place_hydrogens(table: BackboneTable, segments: Segments) -> BackboneTable:
    """Synthesizes amide hydrogen positions.

    H is placed kHydrogenBondLength from N along the unit vector from the
    preceding residue's O to its C. The first residue of each segment keeps
    whatever H the input provided; every other residue without N, or whose
    predecessor lacks C or O, is flagged hydrogen-absent.

    Args:
        table: Backbone table from `extract_backbone`.
        segments: Segments from `find_chain_breaks`.

    Returns:
        A new BackboneTable with the H row replaced.
    """
    n_res = table.n_residues
    if n_res == 0:
        return table

    coords = table.coords
    present = table.present

    prev_c = jnp.roll(coords[AtomType.C], shift=1, axis=0)
    prev_o = jnp.roll(coords[AtomType.O], shift=1, axis=0)
    prev_co = prev_c - prev_o
    norm = jnp.linalg.norm(prev_co, axis=1, keepdims=True)
    degenerate = np.asarray(norm[:, 0] < kCoincidenceTolerance)
    unit_co = prev_co / jnp.where(norm < kCoincidenceTolerance, 1.0, norm)
    h_calculated = coords[AtomType.N] + unit_co * kHydrogenBondLength

    segment_ids = segments.segment_ids
    segment_start = np.ones(n_res, dtype=bool)
    segment_start[1:] = segment_ids[1:] != segment_ids[:-1]

    prev_carbonyl = np.roll(present[AtomType.C] & present[AtomType.O], shift=1)
    can_place = (~segment_start) & present[AtomType.N] & prev_carbonyl & (~degenerate)

    for i in np.flatnonzero((~segment_start) & (~can_place)):
        log.debug(f"Hydrogen not generated for residue {table.residue_ids[int(i)]}")

    new_h = jnp.where(can_place[:, None], h_calculated,
                      jnp.where(segment_start[:, None], coords[AtomType.H], 0.0))
    new_present = present.copy()
    new_present[AtomType.H] = np.where(segment_start, present[AtomType.H], can_place)

    return BackboneTable(coords.at[AtomType.H].set(new_h), new_present, table.is_proline, table.residue_ids)
