# SPDX-License-Identifier: BSD-2-Clause
# Copyright (c) 2020 NKI/AVL, Netherlands Cancer Institute
# Substantial portions of this code are derived from the DSSP C++ implementation
# by Maarten L. Hekkelman and contributors, licensed under the BSD-2-Clause license.
# Full C++ source and license available at: https://github.com/PDB-REDO/dssp
"""Exceptions and status codes raised by the secondary structure pipeline."""

# Status codes reported alongside a result
SECSTR_OK = 0
SECSTR_ERR_NOMEM = -1


class SecStrError(Exception):
    """Base exception for secondary structure calculation errors."""

    status = SECSTR_OK


class SecStrAllocationError(SecStrError, MemoryError):
    """Working tables could not be allocated; no residue record was updated."""

    status = SECSTR_ERR_NOMEM
