# SPDX-License-Identifier: BSD-2-Clause
# Copyright (c) 2020 NKI/AVL, Netherlands Cancer Institute
# Substantial portions of this code are derived from the DSSP C++ implementation
# by Maarten L. Hekkelman and contributors, licensed under the BSD-2-Clause license.
# Full C++ source and license available at: https://github.com/PDB-REDO/dssp
"""Beta bridge detection, strand assembly and sheet labeling."""

import collections
import logging
from typing import List, NamedTuple, Optional, Tuple

import numpy as np

# Relative imports from within the package
from .types import BridgeType, FeatureRow, FeatureTable
from .hbonds import HBondTable
from .constants import (
    kBridgeSeparation, kBulgeSizeSmall, kBulgeSizeLarge, kNumBridgeSlots,
    kNumStrandLetters, kStrandLetters, kSheetLetters, kBulgeChar,
    kStrandChar, kSmallStrandChar, kParallelBridgeChar, kAntiparallelBridgeChar
)

# Get the logger instance
log = logging.getLogger("secstrjax")

# --- Helper Classes and Functions ---

class BridgeRule(NamedTuple):
    """A reciprocal H-bond pattern that makes residue r and a partner a bridge.

    A donor D to the C=O of r + acceptor_offset yields the candidate partner
    D + partner_offset; the bridge exists when the N-H of r + return_donor_offset
    is bonded to the C=O of D + return_acceptor_offset.
    """
    name: str
    acceptor_offset: int
    partner_offset: int
    return_acceptor_offset: int
    return_donor_offset: int
    direction: BridgeType
    side_self: int     # Side flag stored on r; negative marks a small strand
    side_partner: int  # Side flag stored on the partner
    forward_only: bool # Only consider donors after r

# The parallel rule scans both ends of a ladder, so it covers the adjacent and
# offset parallel forms. The antiparallel rules are symmetric and only look
# forward to avoid recording each bridge twice.
BRIDGE_RULES = (
    BridgeRule('parallel', -1, 0, 0, 1, BridgeType.PARALLEL, -1, 1, False),
    BridgeRule('antiparallel adjacent', 0, 0, 0, 0, BridgeType.ANTIPARALLEL, 1, 1, True),
    BridgeRule('antiparallel offset', -1, -1, -2, 1, BridgeType.ANTIPARALLEL, -1, -1, True),
)

class BridgeTable:
    """Up to two bridge partners per residue, independent of the H-bond slots."""
    def __init__(self, n_residues: int):
        self.n_residues = n_residues
        self.partner = np.full((n_residues, kNumBridgeSlots), -1, dtype=np.int64)
        self.direction = np.zeros((n_residues, kNumBridgeSlots), dtype=np.int64)
        self.side = np.zeros((n_residues, kNumBridgeSlots), dtype=np.int64)

    def __len__(self) -> int:
        return self.n_residues

    def add(self, residue: int, partner: int, direction: int, side: int):
        """Stores a partner in the first free slot, overwriting the last slot when full."""
        slot = 0 if self.partner[residue, 0] < 0 else 1
        self.partner[residue, slot] = partner
        self.direction[residue, slot] = direction
        self.side[residue, slot] = side

    def slot_of(self, residue: int, partner: int) -> int:
        """Slot of residue that points back at partner (slot 1 if not slot 0)."""
        return 0 if self.partner[residue, 0] == partner else 1

    def pairs(self) -> List[Tuple[int, int, int]]:
        """All bridges as (i, j, direction) with i < j."""
        found = []
        for i in range(self.n_residues):
            for slot in range(kNumBridgeSlots):
                j = int(self.partner[i, slot])
                if j > i:
                    found.append((i, j, int(self.direction[i, slot])))
        return found

class BetaStructure(NamedTuple):
    """Bridges, strands and sheets found in one chain."""
    bridges: BridgeTable
    strand_codes: np.ndarray   # (N, 2) signed strand number per bridge slot, 0 if none
    bridge_points: np.ndarray  # (N, 2) partner recorded per label row, -1 if none
    sheet_ids: np.ndarray      # (N,) sheet number, 0 if none
    strand_count: int
    sheet_count: int
    bridge_count: int          # Isolated bridges

def _sign(value: int) -> int:
    return (value > 0) - (value < 0)

def _label_letter(number: int, direction: int) -> str:
    """Letter for a strand or bridge number, upper case when antiparallel."""
    letter = kStrandLetters[(number - 1) % kNumStrandLetters]
    return letter if direction < 0 else letter.lower()

def _runs(flags: np.ndarray) -> List[Tuple[int, int]]:
    """Inclusive (start, end) of each maximal run of True values."""
    runs = []
    start = None
    for i, flag in enumerate(flags):
        if flag and start is None:
            start = i
        elif not flag and start is not None:
            runs.append((start, i - 1))
            start = None
    if start is not None:
        runs.append((start, len(flags) - 1))
    return runs

# --- Bridge Detection ---

def find_bridge_partners(hbonds: HBondTable) -> BridgeTable:
    """Matches reciprocal H-bond patterns into bridge partners.

    Args:
        hbonds: The populated HBondTable.

    Returns:
        A BridgeTable with every bridge recorded on both residues.
    """
    n_res = len(hbonds)
    bridges = BridgeTable(n_res)
    for rule in BRIDGE_RULES:
        for r in range(n_res):
            acceptor = r + rule.acceptor_offset
            return_donor = r + rule.return_donor_offset
            if acceptor < 0 or return_donor >= n_res:
                continue
            for donor in hbonds.donors_of(acceptor):
                if rule.forward_only and donor <= r:
                    continue
                partner = donor + rule.partner_offset
                return_acceptor = donor + rule.return_acceptor_offset
                if partner < 0 or return_acceptor < 0:
                    continue
                if abs(r - partner) <= kBridgeSeparation:
                    continue
                if not hbonds.has_bond(return_donor, return_acceptor):
                    continue
                bridges.add(r, partner, rule.direction, rule.side_self)
                bridges.add(partner, r, rule.direction, rule.side_partner)
                log.debug(f"Bridge ({rule.name}): {r} - {partner}")
    return bridges

# --- Strand Assembly ---

def _find_continuation(bridges: BridgeTable, r: int, partner: int,
                       direction: int) -> Optional[Tuple[int, int]]:
    """Next bridge (s, slot) continuing the ladder of r-partner within the bulge limits."""
    n_res = len(bridges)
    for s in range(r + 1, min(n_res, r + kBulgeSizeLarge)):
        for slot in range(kNumBridgeSlots):
            next_partner = int(bridges.partner[s, slot])
            if next_partner < 0 or bridges.direction[s, slot] != direction:
                continue
            if next_partner == partner or _sign(next_partner - partner) != direction:
                continue
            residue_gap = s - r
            partner_gap = abs(next_partner - partner)
            if ((residue_gap > kBulgeSizeSmall and partner_gap <= kBulgeSizeSmall) or
                    (residue_gap <= kBulgeSizeSmall and partner_gap <= kBulgeSizeLarge)):
                return s, slot
    return None

def _mark_strand_span(features: FeatureTable, start: int, end: int, step: int):
    for k in range(start, end + step, step):
        features.set_if_coil(FeatureRow.SHEET, k, kStrandChar)

def assemble_strands(features: FeatureTable, bridges: BridgeTable) -> Tuple[np.ndarray, int]:
    """Links consecutive bridges into strands, tolerating bulges.

    For each bridge with a forward partner, the next bridge of the same
    direction up to kBulgeSizeLarge residues ahead continues the ladder if the
    partner gap stays small (kBulgeSizeSmall), or moderate (kBulgeSizeLarge)
    when the residues themselves are close. Both spans are flagged as strand
    and share a signed strand number.

    Returns:
        Tuple of (strand_codes, strand_count).
    """
    n_res = len(bridges)
    strand_codes = np.zeros((n_res, kNumBridgeSlots), dtype=np.int64)
    strand_count = 0

    for r in range(n_res):
        for slot in range(kNumBridgeSlots):
            p = int(bridges.partner[r, slot])
            if p <= r:
                continue
            direction = int(bridges.direction[r, slot])
            back_slot = bridges.slot_of(p, r)

            continuation = _find_continuation(bridges, r, p, direction)
            if continuation is not None:
                s, next_slot = continuation
                q = int(bridges.partner[s, next_slot])
                next_back_slot = bridges.slot_of(q, s)

                _mark_strand_span(features, r, s, 1)
                _mark_strand_span(features, p, q, direction)
                for residue, residue_slot in ((r, slot), (s, next_slot), (p, back_slot), (q, next_back_slot)):
                    if bridges.side[residue, residue_slot] < 0:
                        features[FeatureRow.SHEET, residue] = kSmallStrandChar

                if strand_codes[r, slot] == 0:
                    strand_count += 1
                    strand_codes[r, slot] = strand_count * direction
                    strand_codes[p, back_slot] = strand_count * direction
                strand_codes[s, next_slot] = strand_codes[r, slot]
                strand_codes[q, next_back_slot] = strand_codes[p, back_slot]

            bridge_char = kParallelBridgeChar if direction > 0 else kAntiparallelBridgeChar
            features[FeatureRow.BRIDGE, r] = bridge_char
            features[FeatureRow.BRIDGE, p] = bridge_char

    return strand_codes, strand_count

# --- Labels ---

def _place_label(features: FeatureTable, bridge_points: np.ndarray, positions: List[Tuple[int, int]],
                 bridges: BridgeTable, letter: str, fill_bulges: bool):
    """Writes letter at each (residue, slot) position into a free label row."""
    label_rows = (FeatureRow.BRIDGE_LABEL_1, FeatureRow.BRIDGE_LABEL_2)
    row_index = 0
    if any(not features.is_coil(label_rows[0], residue) for residue, _ in positions):
        row_index = 1
    row = label_rows[row_index]

    previous = None
    for residue, slot in positions:
        if fill_bulges and previous is not None:
            for k in range(previous + 1, residue):
                features[row, k] = kBulgeChar
        features[row, residue] = letter
        bridge_points[residue, row_index] = bridges.partner[residue, slot]
        previous = residue

def letter_strands(features: FeatureTable, bridges: BridgeTable,
                   strand_codes: np.ndarray) -> np.ndarray:
    """Writes strand letters into the bridge label rows.

    Within each run of strand residues, strand numbers are visited in
    increasing order; bulge positions between two residues of one strand
    are marked '*'.

    Returns:
        (N, 2) array of the bridge partner behind each label row, -1 if none.
    """
    n_res = len(bridges)
    bridge_points = np.full((n_res, kNumBridgeSlots), -1, dtype=np.int64)
    in_sheet = np.array([not features.is_coil(FeatureRow.SHEET, i) for i in range(n_res)], dtype=bool)

    for start, end in _runs(in_sheet):
        codes = strand_codes[start:end + 1]
        for number in sorted({abs(int(c)) for c in codes.ravel() if c != 0}):
            positions = [(residue, slot)
                         for residue in range(start, end + 1)
                         for slot in range(kNumBridgeSlots)
                         if abs(int(strand_codes[residue, slot])) == number]
            code = int(strand_codes[positions[0]])
            _place_label(features, bridge_points, positions, bridges,
                         _label_letter(number, code), fill_bulges=True)
    return bridge_points

def label_sheets(features: FeatureTable, bridge_points: np.ndarray) -> Tuple[np.ndarray, int]:
    """Groups strand runs connected through bridge partners into sheets.

    Runs are seeded left to right; each seed floods its sheet number through
    a worklist of partner runs until no unlabeled partner run remains.

    Returns:
        Tuple of (sheet_ids, sheet_count).
    """
    n_res = len(features)
    in_sheet = np.array([not features.is_coil(FeatureRow.SHEET, i) for i in range(n_res)], dtype=bool)
    run_of = np.full(n_res, -1, dtype=np.int64)
    runs = _runs(in_sheet)
    for run_index, (start, end) in enumerate(runs):
        run_of[start:end + 1] = run_index

    sheet_ids = np.zeros(n_res, dtype=np.int64)
    sheet_count = 0
    for seed, (seed_start, seed_end) in enumerate(runs):
        if sheet_ids[seed_start] != 0:
            continue
        sheet_count += 1
        sheet_ids[seed_start:seed_end + 1] = sheet_count
        queue = collections.deque([seed])
        while queue:
            start, end = runs[queue.popleft()]
            for residue in range(start, end + 1):
                for partner in bridge_points[residue]:
                    if partner < 0 or run_of[partner] < 0:
                        continue
                    partner_start, partner_end = runs[run_of[partner]]
                    if sheet_ids[partner_start] == 0:
                        sheet_ids[partner_start:partner_end + 1] = sheet_count
                        queue.append(int(run_of[partner]))

    if sheet_count >= len(kSheetLetters):
        log.warning(f"More than {len(kSheetLetters) - 1} sheets ({sheet_count}); sheet labels restarted.")
    for i in np.flatnonzero(sheet_ids):
        features[FeatureRow.SHEET_LABEL, int(i)] = kSheetLetters[(int(sheet_ids[i]) - 1) % (len(kSheetLetters) - 1) + 1]
    return sheet_ids, sheet_count

def letter_isolated_bridges(features: FeatureTable, bridges: BridgeTable, strand_codes: np.ndarray,
                            bridge_points: np.ndarray) -> int:
    """Letters bridges that did not join a strand; returns how many were found."""
    bridge_count = 0
    for r in range(len(bridges)):
        for slot in range(kNumBridgeSlots):
            p = int(bridges.partner[r, slot])
            if p <= r or strand_codes[r, slot] != 0:
                continue
            bridge_count += 1
            direction = int(bridges.direction[r, slot])
            letter = _label_letter(bridge_count, direction)
            _place_label(features, bridge_points, [(r, slot)], bridges, letter, fill_bulges=False)
            _place_label(features, bridge_points, [(p, bridges.slot_of(p, r))], bridges, letter, fill_bulges=False)
    return bridge_count

# --- Main Beta Structure Assembly ---

def detect_beta_structure(features: FeatureTable, hbonds: HBondTable) -> BetaStructure:
    """Finds bridges, strands and sheets and records them in the feature table.

    Args:
        features: Feature table to populate (SHEET, BRIDGE, label rows).
        hbonds: The populated HBondTable.

    Returns:
        BetaStructure with the numeric ids behind the letter labels.
    """
    bridges = find_bridge_partners(hbonds)
    log.info(f"--> Found [b]{len(bridges.pairs())}[/] bridges.", extra={"markup": True})

    strand_codes, strand_count = assemble_strands(features, bridges)
    if strand_count > kNumStrandLetters:
        log.warning(f"More than {kNumStrandLetters} strands ({strand_count}); strand labels restarted.")

    bridge_points = letter_strands(features, bridges, strand_codes)
    sheet_ids, sheet_count = label_sheets(features, bridge_points)

    bridge_count = letter_isolated_bridges(features, bridges, strand_codes, bridge_points)
    if bridge_count > kNumStrandLetters:
        log.warning(f"More than {kNumStrandLetters} isolated bridges ({bridge_count}); bridge labels restarted.")

    log.info(f"--> Assembled [b]{strand_count}[/] ladders into [b]{sheet_count}[/] sheets.", extra={"markup": True})
    return BetaStructure(bridges, strand_codes, bridge_points, sheet_ids,
                         strand_count, sheet_count, bridge_count)
