# SPDX-License-Identifier: BSD-2-Clause
# Copyright (c) 2020 NKI/AVL, Netherlands Cancer Institute
# Substantial portions of this code are derived from the DSSP C++ implementation
# by Maarten L. Hekkelman and contributors, licensed under the BSD-2-Clause license.
# Full C++ source and license available at: https://github.com/PDB-REDO/dssp
"""Summary of the feature table into one secondary structure code per residue."""

import logging
from typing import List, NamedTuple

# Relative imports from within the package
from .types import FeatureRow, FeatureTable
from .constants import (
    k310HelixSize, kAlphaHelixSize, kPiHelixSize,
    kCoilChar, kTurnStartChar, kTurnBothChar, kTurnChar, kBendChar,
    kAlphaHelixChar, k310HelixChar, kPiHelixChar, kBridgeChar,
    kStrandChar, kSmallStrandChar
)

# Get the logger instance
log = logging.getLogger("secstrjax")

_TURN_STARTS = (kTurnStartChar, kTurnBothChar)
_LOWER_TURN_CHAR = kTurnChar.lower()

class SecStrSummary(NamedTuple):
    """Per-residue codes: `detail` uses H G I E B T S -, `marked` adds the
    lowercase boundary marks h g i e t around helices, strands and turns."""
    detail: str
    marked: str

class _Summary:
    """Two parallel character buffers filled in priority order."""
    def __init__(self, n_residues: int):
        self.detail: List[str] = [kCoilChar] * n_residues
        self.marked: List[str] = [kCoilChar] * n_residues

    def __len__(self) -> int:
        return len(self.detail)

    def set_detail(self, index: int, char: str):
        if self.detail[index] == kCoilChar:
            self.detail[index] = char

    def set_marked(self, index: int, char: str, also_over: str = ''):
        if 0 <= index < len(self.marked) and (self.marked[index] == kCoilChar or self.marked[index] in also_over):
            self.marked[index] = char

# --- Summary Steps --- #

def _mark_helices(summary: _Summary, features: FeatureTable, row: FeatureRow, size: int, char: str):
    """Two consecutive n-turn starts at r-1 and r make residues r..r+n-1 a helix."""
    alt = char.lower()
    n_res = len(summary)
    for r in range(1, n_res - size):
        if features[row, r] in _TURN_STARTS and features[row, r - 1] in _TURN_STARTS:
            for k in range(r, r + size):
                summary.set_detail(k, char)
                summary.set_marked(k, char, also_over=alt)
            summary.set_marked(r - 1, alt)
            summary.set_marked(r + size, alt)

def _mark_sheets_and_bridges(summary: _Summary, features: FeatureTable):
    """Strand residues become E; isolated bridges become B."""
    alt_helix = kAlphaHelixChar.lower()
    for r in range(len(summary)):
        sheet = features[FeatureRow.SHEET, r]
        if sheet != kCoilChar:
            summary.set_detail(r, kStrandChar)
            summary.set_marked(r, kStrandChar, also_over=alt_helix + kSmallStrandChar)
            if sheet == kSmallStrandChar and r > 0:
                summary.set_marked(r - 1, kSmallStrandChar, also_over=kBridgeChar)
                summary.set_marked(r + 1, kSmallStrandChar, also_over=kBridgeChar)
        if not features.is_coil(FeatureRow.BRIDGE, r):
            summary.set_detail(r, kBridgeChar)
            summary.set_marked(r, kBridgeChar)

def _downgrade_short_helices(codes: List[str], char: str, size: int):
    """Runs of char (or its lowercase mark) shorter than size become turns."""
    members = (char, char.lower())
    start = None
    for i in range(len(codes) + 1):
        inside = i < len(codes) and codes[i] in members
        if inside and start is None:
            start = i
        elif not inside and start is not None:
            if i - start < size:
                for k in range(start, i):
                    codes[k] = kTurnChar if codes[k] == char else _LOWER_TURN_CHAR
            start = None

def _mark_turn_cells(summary: _Summary, first: int, last: int):
    for k in range(first, last + 1):
        if k < len(summary):
            summary.set_detail(k, kTurnChar)
            summary.set_marked(k, kTurnChar, also_over=_LOWER_TURN_CHAR)

def _mark_turns(summary: _Summary, features: FeatureTable, row: FeatureRow, size: int):
    """Isolated n-turn starts that did not form a helix are rendered as turns."""
    n_res = len(summary)
    if n_res > 1 and features[row, 0] == kTurnStartChar and features[row, 1] != kTurnStartChar:
        _mark_turn_cells(summary, 1, size - 1)
        summary.set_marked(0, _LOWER_TURN_CHAR)
        summary.set_marked(size, _LOWER_TURN_CHAR)

    for r in range(1, n_res - size):
        if (features[row, r] in _TURN_STARTS and features[row, r - 1] not in _TURN_STARTS
                and features[row, r + 1] not in _TURN_STARTS):
            _mark_turn_cells(summary, r + 1, r + size - 1)
            summary.set_marked(r, _LOWER_TURN_CHAR)
            summary.set_marked(r + size, _LOWER_TURN_CHAR)

def _mark_bends(summary: _Summary, features: FeatureTable):
    for r in range(len(summary)):
        if not features.is_coil(FeatureRow.BEND, r):
            summary.set_detail(r, kBendChar)
            summary.set_marked(r, kBendChar)

# --- Main Summary --- #

def make_summary(features: FeatureTable) -> SecStrSummary:
    """Reduces the feature table to one code per residue.

    Steps run in a fixed priority order and each only fills cells that are
    still coil (helix boundary marks may be promoted to the full helix code):

    1. alpha helices from consecutive 4-turn starts
    2. strands and isolated bridges
    3. 3-10 helices, then pi helices
    4. 3-10 and pi runs shorter than their turn length become turns
    5. remaining isolated n-turns
    6. bends

    Args:
        features: The fully populated feature table.

    Returns:
        SecStrSummary with the detail and boundary-marked strings.
    """
    summary = _Summary(len(features))

    _mark_helices(summary, features, FeatureRow.ALPHA_TURN, kAlphaHelixSize, kAlphaHelixChar)
    _mark_sheets_and_bridges(summary, features)
    _mark_helices(summary, features, FeatureRow.HELIX_3_10_TURN, k310HelixSize, k310HelixChar)
    _mark_helices(summary, features, FeatureRow.PI_TURN, kPiHelixSize, kPiHelixChar)

    for codes in (summary.detail, summary.marked):
        _downgrade_short_helices(codes, k310HelixChar, k310HelixSize)
        _downgrade_short_helices(codes, kPiHelixChar, kPiHelixSize)

    _mark_turns(summary, features, FeatureRow.ALPHA_TURN, kAlphaHelixSize)
    _mark_turns(summary, features, FeatureRow.HELIX_3_10_TURN, k310HelixSize)
    _mark_turns(summary, features, FeatureRow.PI_TURN, kPiHelixSize)

    _mark_bends(summary, features)

    detail = ''.join(summary.detail)
    log.debug(f"Summary: {detail}")
    return SecStrSummary(detail, ''.join(summary.marked))
