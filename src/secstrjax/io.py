# SPDX-License-Identifier: BSD-2-Clause
# Copyright (c) 2020 NKI/AVL, Netherlands Cancer Institute
# Substantial portions of this code are derived from the DSSP C++ implementation
# by Maarten L. Hekkelman and contributors, licensed under the BSD-2-Clause license.
# Full C++ source and license available at: https://github.com/PDB-REDO/dssp
"""Input/Output operations: PDB and mmCIF parsing, secondary structure summary output."""

import collections
import logging
import os
import shlex
import sys
from typing import List, Optional, TextIO

import numpy as np
import requests

# Relative imports for types and constants within the package
from .types import BACKBONE_ATOM_NAMES, ChainPytree, ResiduePytree
from .backbone import format_residue_spec

# Get the logger instance configured in __init__
log = logging.getLogger("secstrjax")

# Alternate location indicators kept when reading coordinates
_ACCEPTED_ALTLOCS = ('', ' ', 'A', '1', '.', '?')

# --- Loading --- #

def load_structure_text(input_url_or_file: str) -> str:
    """Downloads (if URL) or reads (if local path) a structure file.

    Raises:
        RuntimeError: If downloading the file fails.
        FileNotFoundError: If the local path does not exist.
        IOError: If reading a local file fails.
    """
    is_url = input_url_or_file.lower().startswith(('http:', 'https:'))
    if is_url:
        log.debug("--> Input detected as URL. Downloading...")
        try:
            response = requests.get(input_url_or_file, timeout=30)
            response.raise_for_status() # Raise HTTPError for bad responses (4xx or 5xx)
        except requests.exceptions.RequestException as e:
            log.error(f"Failed to download structure from URL: {input_url_or_file}")
            raise RuntimeError(f"Failed to download structure file: {e}") from e
        log.debug(f"--> Download successful ({len(response.text)} bytes).")
        return response.text

    log.debug("--> Input detected as local path. Reading file...")
    if not os.path.exists(input_url_or_file):
        log.error(f"Input file not found: {input_url_or_file}")
        raise FileNotFoundError(f"Input file not found: {input_url_or_file}")
    try:
        with open(input_url_or_file, 'r') as f:
            return f.read()
    except IOError as e:
        log.error(f"Failed to read structure file from path: {input_url_or_file}")
        raise IOError(f"Failed to read structure file: {e}") from e

def _is_cif(input_url_or_file: str, text: str) -> bool:
    lowered = input_url_or_file.lower()
    if lowered.endswith(('.cif', '.mmcif')):
        return True
    for line in text.splitlines():
        if line.strip():
            return line.startswith('data_')
    return False

def load_residues(input_url_or_file: str, model_num: int = 1) -> ChainPytree:
    """Reads a PDB or mmCIF structure into residue records.

    Args:
        input_url_or_file: URL or local file path.
        model_num: The model number to extract (default is 1).

    Returns:
        Residue records in file order.
    """
    log.info(f"[bold cyan]Loading Data[/] - Processing input: [i]{input_url_or_file}[/] (Model {model_num})",
             extra={"markup": True})
    text = load_structure_text(input_url_or_file)
    if _is_cif(input_url_or_file, text):
        residues = parse_cif_atoms(text, model_num)
    else:
        residues = parse_pdb_atoms(text, model_num)
    log.info(f"--> Successfully parsed [b]{len(residues)}[/] protein residues.", extra={"markup": True})
    return residues

# --- Residue Records --- #

def _add_atom(residues: "collections.OrderedDict[tuple, ResiduePytree]", key: tuple, res_name: str,
              atom_name: str, coords: np.ndarray):
    chain_id, seq_id, ins_code = key
    if key not in residues:
        residues[key] = {
            'chain_id': chain_id, 'seq_id': seq_id, 'ins_code': ins_code,
            'res_name': res_name, 'atoms': {},
        }
    elif residues[key]['res_name'] != res_name:
        log.warning(f"Inconsistent residue name ('{res_name}' vs '{residues[key]['res_name']}') "
                    f"for key {key}. Keeping first encountered.")
        return
    # Only backbone atoms are needed; keep the first copy of each
    if atom_name in BACKBONE_ATOM_NAMES and atom_name not in residues[key]['atoms']:
        residues[key]['atoms'][atom_name] = coords

def split_chains(residues: ChainPytree) -> List[ChainPytree]:
    """Splits residue records into chains wherever the chain label changes."""
    chains: List[ChainPytree] = []
    for res in residues:
        if not chains or chains[-1][-1].get('chain_id') != res.get('chain_id'):
            chains.append([])
        chains[-1].append(res)
    return chains

# --- PDB Parsing --- #

def parse_pdb_atoms(pdb_text: str, model_num: int = 1) -> ChainPytree:
    """Parses fixed-column ATOM records of one model into residue records.

    Files without MODEL records are treated as model 1.

    Raises:
        ValueError: If a coordinate field cannot be parsed.
    """
    residues: "collections.OrderedDict[tuple, ResiduePytree]" = collections.OrderedDict()
    current_model = 1
    for line_num, line in enumerate(pdb_text.splitlines()):
        record = line[:6]
        if record == 'MODEL ':
            try:
                current_model = int(line[10:14])
            except ValueError:
                current_model = int(line[6:].split()[0])
            continue
        if record == 'ENDMDL' and current_model == model_num:
            break
        if record != 'ATOM  ' or current_model != model_num:
            continue
        if line[16:17] not in _ACCEPTED_ALTLOCS:
            continue
        try:
            atom_name = line[12:16].strip()
            res_name = line[17:20].strip()
            chain_id = line[21:22].strip()
            seq_id = int(line[22:26])
            ins_code = line[26:27].strip()
            coords = np.array([float(line[30:38]), float(line[38:46]), float(line[46:54])], dtype=np.float64)
        except ValueError as e:
            raise ValueError(f"Malformed ATOM record on line {line_num + 1}: '{line}'") from e
        _add_atom(residues, (chain_id, seq_id, ins_code), res_name, atom_name, coords)
    return list(residues.values())

# --- CIF Parsing --- #

_REQUIRED_CIF_KEYS = [
    "_atom_site.group_PDB", "_atom_site.label_atom_id",
    "_atom_site.label_comp_id", "_atom_site.label_asym_id",
    "_atom_site.label_seq_id", "_atom_site.Cartn_x",
    "_atom_site.Cartn_y", "_atom_site.Cartn_z",
]

def _find_atom_site_loop(lines: List[str]):
    """Returns (keys, data lines) of the _atom_site loop."""
    keys: List[str] = []
    data_lines: List[str] = []
    parsing_keys = False
    in_atom_site_data = False
    for line in lines:
        line = line.strip()
        if not line or line.startswith('#'):
            if in_atom_site_data and line.startswith('#'):
                break
            continue
        if line.startswith("loop_"):
            if in_atom_site_data:
                break
            parsing_keys = True
            keys = []
            continue
        if parsing_keys:
            if line.startswith("_"):
                keys.append(line.split()[0])
                continue
            parsing_keys = False
            if keys and keys[0].startswith("_atom_site."):
                in_atom_site_data = True
                data_lines.append(line)
            else:
                keys = []
        elif in_atom_site_data:
            if line.startswith(("_", "data_", "stop_")):
                break
            data_lines.append(line)
    if not in_atom_site_data:
        return [], []
    return keys, data_lines

def parse_cif_atoms(cif_text: str, model_num: int = 1) -> ChainPytree:
    """Parses the _atom_site loop of an mmCIF file into residue records.

    Author chain ids, numbering and insertion codes are preferred when
    present, falling back to the label columns.

    Raises:
        ValueError: If a valid _atom_site loop cannot be found.
    """
    keys, data_lines = _find_atom_site_loop(cif_text.splitlines())
    key_map = {key: i for i, key in enumerate(keys)}
    missing = [k for k in _REQUIRED_CIF_KEYS if k not in key_map]
    if not keys or missing:
        raise ValueError(f"Could not find a valid _atom_site loop (missing keys: {missing}).")

    idx_group, idx_atom, idx_res, idx_chain, idx_seq, idx_x, idx_y, idx_z = \
        [key_map[k] for k in _REQUIRED_CIF_KEYS]
    idx_model = key_map.get("_atom_site.pdbx_PDB_model_num")
    idx_altloc = key_map.get("_atom_site.label_alt_id")
    idx_ins_code = key_map.get("_atom_site.pdbx_PDB_ins_code")
    idx_auth_asym = key_map.get("_atom_site.auth_asym_id")
    idx_auth_seq = key_map.get("_atom_site.auth_seq_id")

    residues: "collections.OrderedDict[tuple, ResiduePytree]" = collections.OrderedDict()
    for line_num, data_line_text in enumerate(data_lines):
        try:
            fields = shlex.split(data_line_text) # Handles quotes
        except ValueError:
            log.warning(f"shlex parsing failed for line {line_num + 1}, falling back to simple split.")
            fields = data_line_text.split()
        if len(fields) != len(keys):
            log.warning(f"Skipping line {line_num + 1} due to column count mismatch "
                        f"({len(fields)} vs {len(keys)}).")
            continue

        if fields[idx_group] != 'ATOM':
            continue
        if idx_model is not None and fields[idx_model] != str(model_num):
            continue
        if idx_altloc is not None and fields[idx_altloc] not in _ACCEPTED_ALTLOCS:
            continue

        try:
            coords = np.array([float(fields[idx_x]), float(fields[idx_y]), float(fields[idx_z])], dtype=np.float64)
            seq_text = fields[idx_auth_seq] if idx_auth_seq is not None else fields[idx_seq]
            seq_id = int(seq_text)
        except ValueError as e:
            log.warning(f"Skipping line {line_num + 1} due to field parsing error ({e}).")
            continue

        chain_id = fields[idx_auth_asym] if idx_auth_asym is not None else fields[idx_chain]
        ins_code = ''
        if idx_ins_code is not None and fields[idx_ins_code] not in ('?', '.'):
            ins_code = fields[idx_ins_code]
        atom_name = fields[idx_atom].strip('"')
        _add_atom(residues, (chain_id, seq_id, ins_code), fields[idx_res], atom_name, coords)

    return list(residues.values())

# --- Output --- #

def format_secstr_summary(chain: ChainPytree) -> List[str]:
    """One line per residue: residue spec, residue name and secondary structure code."""
    return ["%-6s %s %c" % (format_residue_spec(res), res.get('res_name', 'UNK'),
                            res.get('secondary_structure', '?'))
            for res in chain]

def write_secstr_summary(chains: List[ChainPytree], filename: Optional[str] = None):
    """Writes the summary lines of every chain to a file, or stdout if no filename is given."""
    def _write(out: TextIO):
        for chain in chains:
            for line in format_secstr_summary(chain):
                out.write(line + "\n")

    if filename is None:
        _write(sys.stdout)
        return
    try:
        with open(filename, 'w') as f:
            _write(f)
    except IOError as e:
        log.error(f"Failed to write summary file: {filename}")
        raise IOError(f"Failed to write summary file: {e}") from e
    log.info(f"--> Wrote secondary structure summary to [i]{filename}[/i]", extra={"markup": True})
