# SPDX-License-Identifier: BSD-2-Clause
# Copyright (c) 2020 NKI/AVL, Netherlands Cancer Institute
# Substantial portions of this code are derived from the DSSP C++ implementation
# by Maarten L. Hekkelman and contributors, licensed under the BSD-2-Clause license.
# Full C++ source and license available at: https://github.com/PDB-REDO/dssp
"""Physical and algorithmic constants used in secstrjax."""

import string

# --- Chain Continuity ---
kMaxPeptideBond = 2.5 # Max C(i)-N(i+1) distance before a chain break is inserted
kMaxCADistance = 5.0 # Max CA(i)-CA(i+1) distance in CA-only mode
kHydrogenBondLength = 1.0 # N-H distance of the synthesized amide hydrogen

# --- Kabsch-Sander H-Bond Energy ---
kHBondQ1 = 0.42
kHBondQ2 = 0.20
kHBondF = 332.0
kCouplingConstant = kHBondQ1 * kHBondQ2 * kHBondF # 27.888 kcal/mol * Angstrom
kMinHBondEnergy = -9.9 # Energies below this are clamped
kMaxHBondEnergy = -0.5 # A bond is accepted only below this ceiling
kHBondMaxCADistance = 8.0 # CA-CA pre-filter for H-bond candidates
kCoincidenceTolerance = 0.0001 # Distances below this count as coincident atoms
kNumHBondSlots = 2

# --- Angles ---
kNullAngle = 999.9 # Sentinel for undefined angles
kBendKappaThreshold = 70.0 # Minimum kappa for bend ('S') assignment

# --- Bridges and Strands ---
kBridgeSeparation = 2 # Bridge partners must be more than this far apart
kBulgeSizeSmall = 2
kBulgeSizeLarge = 5
kNumBridgeSlots = 2

# --- Helix / Turn Chunk Sizes ---
k310HelixSize = 3
kAlphaHelixSize = 4
kPiHelixSize = 5

# --- Feature Table Symbols ---
kCoilChar = '-'
kUndefinedChar = '?'
kTurnStartChar = '>'
kTurnEndChar = '<'
kTurnBothChar = 'X'
kTurnChar = 'T'
kBendChar = 'S'
kBulgeChar = '*'
kStrandChar = 'E'
kSmallStrandChar = 'e'
kParallelBridgeChar = 'b'
kAntiparallelBridgeChar = 'B'
kChiralPositiveChar = '+'
kChiralNegativeChar = '-'

# --- Summary Symbols ---
kAlphaHelixChar = 'H'
k310HelixChar = 'G'
kPiHelixChar = 'I'
kBridgeChar = 'B'
# The nine symbols a residue may receive
kSecStrAlphabet = frozenset('HGIEBTS-?')

# --- Label Alphabets ---
kNumStrandLetters = 26
kStrandLetters = string.ascii_uppercase
# Index 0 is never used; sheet ids start at 1
kSheetLetters = " " + string.ascii_uppercase + string.ascii_lowercase + "1234567890"
