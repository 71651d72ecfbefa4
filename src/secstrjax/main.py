# SPDX-License-Identifier: BSD-2-Clause
# Copyright (c) 2020 NKI/AVL, Netherlands Cancer Institute
# Substantial portions of this code are derived from the DSSP C++ implementation
# by Maarten L. Hekkelman and contributors, licensed under the BSD-2-Clause license.
# Full C++ source and license available at: https://github.com/PDB-REDO/dssp
"""Main orchestration logic for the secondary structure pipeline."""

import logging
from typing import Iterable, List, NamedTuple, Optional

# Relative imports for different pipeline stages
from .types import (
    AtomType, BackboneTable, ChainPytree, FeatureTable, MainchainAngles, Segments
)
from .backbone import extract_backbone, is_ca_only, find_chain_breaks, place_hydrogens
from .hbonds import HBondTable, build_hbond_network
from .angles import calculate_mainchain_angles
from .turns import mark_turns, mark_chirality, mark_bends
from .beta import BetaStructure, detect_beta_structure
from .secondary_structure import make_summary
from .errors import SECSTR_OK, SecStrAllocationError
from .constants import kUndefinedChar
from .io import load_residues, split_chains

# Get the logger instance configured in __init__
log = logging.getLogger("secstrjax")

class SecStrResult(NamedTuple):
    """Everything computed for one chain.

    `secstr` holds one code per residue from H G I E B T S - ?; `secstr_marked`
    additionally carries the lowercase boundary marks. Both hold '?' for a
    residue without a backbone N. The intermediate tables are None when the
    chain is empty or CA-only.
    """
    secstr: str
    secstr_marked: str
    ca_only: bool
    table: Optional[BackboneTable]
    segments: Optional[Segments]
    hbonds: Optional[HBondTable]
    angles: Optional[MainchainAngles]
    features: Optional[FeatureTable]
    beta: Optional[BetaStructure]
    status: int = SECSTR_OK

def calculate_secondary_structure(residues: ChainPytree) -> SecStrResult:
    """Runs every stage of the assignment without touching the residue records.

    Args:
        residues: Ordered residue records of one chain.

    Returns:
        SecStrResult for the chain.

    Raises:
        SecStrAllocationError: If the working tables could not be allocated.
        ValueError: If a residue record is malformed.
    """
    try:
        return _calculate(residues)
    except MemoryError as e:
        log.error(f"Out of memory while assigning secondary structure to {len(residues)} residues.")
        raise SecStrAllocationError(f"Could not allocate working tables: {e}") from e

def _calculate(residues: ChainPytree) -> SecStrResult:
    n_residues = len(residues)
    if n_residues == 0:
        log.warning("Empty chain; nothing to assign.")
        return SecStrResult('', '', False, None, None, None, None, None, None)

    # 1. Extract backbone
    log.info("[bold cyan]Step 1: Backbone Extraction[/]", extra={"markup": True})
    table = extract_backbone(residues)
    if is_ca_only(table):
        chain_label = residues[0].get('chain_id', '')
        log.warning(f"Protein chain {chain_label} is CA-only. Secondary structure undefined.")
        undefined = kUndefinedChar * n_residues
        return SecStrResult(undefined, undefined, True, table, None, None, None, None, None)

    # 2. Chain breaks and hydrogens
    log.info("[bold cyan]Step 2: Geometry Refinement[/] - Chain breaks and H positions...", extra={"markup": True})
    segments = find_chain_breaks(table)
    log.info(f"--> {n_residues} residues in [b]{len(segments.sizes)}[/] segment(s).", extra={"markup": True})
    table = place_hydrogens(table, segments)

    # 3. Hydrogen bonds
    log.info("[bold cyan]Step 3: H-Bond Calculation[/]", extra={"markup": True})
    hbonds = build_hbond_network(table, segments)

    # 4. Mainchain angles
    log.info("[bold cyan]Step 4: Mainchain Angles[/]", extra={"markup": True})
    angles = calculate_mainchain_angles(table, segments)

    # 5. Turns, bridges and sheets
    log.info("[bold cyan]Step 5: Turns, Bridges and Sheets[/]", extra={"markup": True})
    features = FeatureTable(n_residues)
    n_turns = mark_turns(features, hbonds, segments)
    log.info(f"--> Marked [b]{n_turns}[/] n-turns.", extra={"markup": True})
    mark_chirality(features, angles)
    beta = detect_beta_structure(features, hbonds)
    mark_bends(features, angles)

    # 6. Summary
    log.info("[bold cyan]Step 6: Summary[/]", extra={"markup": True})
    summary = make_summary(features)
    no_nitrogen = ~table.present[AtomType.N]
    if no_nitrogen.any():
        log.debug(f"{int(no_nitrogen.sum())} residue(s) without N set to '{kUndefinedChar}'.")
    secstr = _mark_undefined(summary.detail, no_nitrogen)
    secstr_marked = _mark_undefined(summary.marked, no_nitrogen)

    return SecStrResult(secstr, secstr_marked, False, table, segments,
                        hbonds, angles, features, beta)

def _mark_undefined(codes: str, undefined) -> str:
    return ''.join(kUndefinedChar if missing else code for code, missing in zip(codes, undefined))

def write_secondary_structure(residues: ChainPytree, result: SecStrResult) -> ChainPytree:
    """Copies result.secstr[i] into residues[i]['secondary_structure'].

    The result already carries '?' for residues without a backbone N and for
    every residue of a CA-only chain, so the records and the returned string
    always agree.

    Returns:
        The same list of records, updated in place.
    """
    if len(result.secstr) != len(residues):
        raise ValueError(f"Result covers {len(result.secstr)} residues but {len(residues)} records were given.")
    for res, code in zip(residues, result.secstr):
        res['secondary_structure'] = code
    return residues

def assign_secondary_structure(residues: ChainPytree) -> SecStrResult:
    """Calculates secondary structure for one chain and writes it into the records.

    On failure no record is modified.

    Raises:
        SecStrAllocationError: If the working tables could not be allocated.
    """
    result = calculate_secondary_structure(residues)
    write_secondary_structure(residues, result)
    return result

def run_secstr(
    input_url_or_file: str,
    model_num: int = 1,
    chains: Optional[Iterable[str]] = None
) -> List[ChainPytree]:
    """Runs the full pipeline on a PDB or mmCIF input, one call per chain.

    Args:
        input_url_or_file: Path or URL to a PDB or mmCIF file.
        model_num: The model number to process.
        chains: Optional chain identifiers to restrict processing to.

    Returns:
        The annotated chains, each a list of residue records.

    Raises:
        ValueError: If no residues are loaded.
        FileNotFoundError: If a local input path does not exist.
        RuntimeError: If downloading from a URL fails.
        SecStrAllocationError: If a chain's working tables could not be allocated.
    """
    residues = load_residues(input_url_or_file, model_num)
    if not residues:
        raise ValueError("No protein residues found in the input.")

    selected = set(chains) if chains else None
    annotated = []
    for chain in split_chains(residues):
        chain_id = chain[0].get('chain_id', '')
        if selected is not None and chain_id not in selected:
            continue
        log.info(f"\n[bold]Chain {chain_id}[/] ({len(chain)} residues)", extra={"markup": True})
        assign_secondary_structure(chain)
        annotated.append(chain)

    if selected is not None and not annotated:
        log.warning(f"None of the requested chains {sorted(selected)} were found.")
    log.info("\n[bold green]:heavy_check_mark: Secondary Structure Assignment Complete[/]", extra={"markup": True})
    return annotated
