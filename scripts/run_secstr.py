"""pdbsecstr-style front end for secstrjax.

    run_secstr.py [-d] [-m MODEL] [-c CHAIN ...] in.pdb|in.cif|URL [out.txt]

Each selected chain is assigned independently and shown as a rich table
(summary code, marked code, n-turn rows, bridge labels, sheet, phi, psi,
kappa). The one-line-per-residue summary goes to out.txt, or to stdout when
no output file is named. -d switches on DEBUG logging, as pdbsecstr's
-d reports per-stage details.
"""

import sys
import argparse
import logging

from rich import box
from rich.console import Console
from rich.table import Table

from secstrjax import SecStrAllocationError, SecStrResult, calculate_secondary_structure, write_secondary_structure
from secstrjax.angles import is_defined
from secstrjax.io import load_residues, split_chains, write_secstr_summary
from secstrjax.types import ChainPytree, FeatureRow

log = logging.getLogger("secstrjax")

TURN_ROWS = (FeatureRow.HELIX_3_10_TURN, FeatureRow.ALPHA_TURN, FeatureRow.PI_TURN)
BRIDGE_ROWS = (FeatureRow.BRIDGE, FeatureRow.BRIDGE_LABEL_1, FeatureRow.BRIDGE_LABEL_2)

def _angle_cell(value: float) -> str:
    return f"{value:.1f}" if is_defined(value) else "."

def _feature_cells(result: SecStrResult, i: int):
    if result.features is None:
        return '', '', ''
    features = result.features
    return (''.join(features[row, i] for row in TURN_ROWS),
            ''.join(features[row, i] for row in BRIDGE_ROWS),
            features[FeatureRow.SHEET_LABEL, i])

def _angle_cells(result: SecStrResult, i: int):
    if result.angles is None:
        return '.', '.', '.'
    angles = result.angles
    return _angle_cell(angles.phi[i]), _angle_cell(angles.psi[i]), _angle_cell(angles.kappa[i])

def show_chain(console: Console, chain: ChainPytree, result: SecStrResult, max_rows: int = 50):
    """Renders the assignment of one chain, truncated to max_rows residues."""
    shown = chain[:max_rows]
    table = Table(
        title=f"Chain {chain[0].get('chain_id', '')}: {result.secstr.count('H')} H, "
              f"{result.secstr.count('E')} E of {len(chain)} residues",
        header_style="bold magenta",
        box=box.SIMPLE_HEAVY,
    )
    table.add_column("#", style="dim", justify="right")
    table.add_column("Residue", style="cyan")
    table.add_column("AA", style="green")
    table.add_column("SS", style="bold yellow", justify="center")
    table.add_column("Mark", justify="center")
    table.add_column("3-4-5", justify="center")
    table.add_column("Bridge", justify="center")
    table.add_column("Sheet", justify="center")
    table.add_column("Phi", justify="right")
    table.add_column("Psi", justify="right")
    table.add_column("Kappa", justify="right")

    for i, res in enumerate(shown):
        turns, bridge, sheet = _feature_cells(result, i)
        table.add_row(
            str(i + 1),
            f"{res.get('chain_id', '')}{res.get('seq_id', '')}{res.get('ins_code', '')}",
            res.get('res_name', 'UNK'),
            result.secstr[i],
            result.secstr_marked[i],
            turns,
            bridge,
            sheet,
            *_angle_cells(result, i),
        )

    console.print(table)
    if len(chain) > len(shown):
        console.print(f"{len(chain) - len(shown)} residues not shown (raise --print_limit)", style="dim")

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Kabsch-Sander secondary structure for every chain of a PDB or mmCIF structure.")
    parser.add_argument("input", help="Structure file (PDB or mmCIF) or an http(s) URL to one.")
    parser.add_argument("output", nargs="?", help="Where to write the per-residue summary; stdout if omitted.")
    parser.add_argument("-m", "--model", type=int, default=1, help="MODEL to read from multi-model files (default 1).")
    parser.add_argument("-c", "--chain", action="append", metavar="ID",
                        help="Only assign this chain; may be given more than once.")
    parser.add_argument("--print_limit", type=int, default=50, metavar="N",
                        help="Rows of the on-screen table per chain (default 50).")
    parser.add_argument("-d", "--debug", "-v", "--verbose", dest="debug", action="store_true",
                        help="Log every stage at DEBUG level, like pdbsecstr -d.")
    return parser

def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    if args.debug:
        log.setLevel(logging.DEBUG)

    try:
        residues = load_residues(args.input, model_num=args.model)
    except FileNotFoundError:
        log.error(f"No such structure file: {args.input}")
        return 1
    except (RuntimeError, ValueError) as e:
        log.error(f"Could not read {args.input}: {e}")
        return 1
    if not residues:
        log.error(f"{args.input} holds no protein residues for model {args.model}.")
        return 1

    wanted = set(args.chain) if args.chain else None
    console = Console()
    done = []
    for chain in split_chains(residues):
        if wanted is not None and chain[0].get('chain_id') not in wanted:
            continue
        try:
            result = calculate_secondary_structure(chain)
        except SecStrAllocationError as e:
            log.error(f"Chain {chain[0].get('chain_id', '')}: {e} (status {e.status})")
            return 1
        write_secondary_structure(chain, result)
        show_chain(console, chain, result, max_rows=args.print_limit)
        done.append(chain)

    if not done:
        log.warning(f"No chain matched {sorted(wanted)}." if wanted else "No chains to assign.")
    write_secstr_summary(done, args.output)
    return 0

if __name__ == "__main__":
    sys.exit(main())
