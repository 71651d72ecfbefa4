"""
Backbone builders for test structures.

Peptides are grown atom by atom from internal coordinates (bond length,
bond angle, torsion) using standard Engh & Huber backbone geometry, so
the torsions of the built chain are known exactly.
"""

import copy

import numpy as np


# Backbone geometry (Angstrom, degrees)
BOND_N_CA = 1.458
BOND_CA_C = 1.525
BOND_C_N = 1.329
BOND_C_O = 1.231
ANGLE_N_CA_C = 111.2
ANGLE_CA_C_N = 116.2
ANGLE_C_N_CA = 121.7
ANGLE_CA_C_O = 120.5

# Right-handed alpha helix
HELIX_PHI = -57.0
HELIX_PSI = -47.0
OMEGA = 180.0


def place_atom(a, b, c, bond, angle, torsion):
    """Position of d with |cd| = bond, angle bcd = angle and dihedral abcd = torsion."""
    bc = (c - b) / np.linalg.norm(c - b)
    n = np.cross(b - a, bc)
    n /= np.linalg.norm(n)
    m = np.cross(n, bc)
    theta = np.radians(angle)
    tau = np.radians(torsion)
    return (c - bond * np.cos(theta) * bc
            + bond * np.sin(theta) * np.cos(tau) * m
            + bond * np.sin(theta) * np.sin(tau) * n)


def build_backbone(n_residues, phi=HELIX_PHI, psi=HELIX_PSI, omega=OMEGA):
    """N, CA, C, O coordinates of a peptide with uniform torsions.

    Returns:
        Dict of atom name -> (n_residues, 3) array.
    """
    n_atoms = [np.array([0.0, 0.0, 0.0])]
    ca_atoms = [np.array([BOND_N_CA, 0.0, 0.0])]
    theta = np.radians(ANGLE_N_CA_C)
    c_atoms = [ca_atoms[0] + BOND_CA_C * np.array([-np.cos(theta), np.sin(theta), 0.0])]

    for _ in range(n_residues - 1):
        n_next = place_atom(n_atoms[-1], ca_atoms[-1], c_atoms[-1], BOND_C_N, ANGLE_CA_C_N, psi)
        ca_next = place_atom(ca_atoms[-1], c_atoms[-1], n_next, BOND_N_CA, ANGLE_C_N_CA, omega)
        c_next = place_atom(c_atoms[-1], n_next, ca_next, BOND_CA_C, ANGLE_N_CA_C, phi)
        n_atoms.append(n_next)
        ca_atoms.append(ca_next)
        c_atoms.append(c_next)

    # Carbonyl O is trans to the following N within the peptide plane
    o_atoms = [place_atom(n, ca, c, BOND_C_O, ANGLE_CA_C_O, psi + 180.0)
               for n, ca, c in zip(n_atoms, ca_atoms, c_atoms)]
    return {'N': np.array(n_atoms), 'CA': np.array(ca_atoms),
            'C': np.array(c_atoms), 'O': np.array(o_atoms)}


def to_residues(backbone, chain_id='A', res_name='ALA'):
    """Residue records in the layout expected by the pipeline."""
    n_residues = len(backbone['CA'])
    return [
        {
            'chain_id': chain_id,
            'seq_id': i + 1,
            'ins_code': '',
            'res_name': res_name,
            'atoms': {name: coords[i].copy() for name, coords in backbone.items()},
        }
        for i in range(n_residues)
    ]


def helix_axis(backbone):
    """Approximate unit helix axis from the first and last four CA atoms."""
    ca = backbone['CA']
    axis = ca[-4:].mean(axis=0) - ca[:4].mean(axis=0)
    return axis / np.linalg.norm(axis)


def split_backbone(backbone, first_moved, shift):
    """Copy of backbone with residues from first_moved on translated by shift."""
    moved = copy.deepcopy(backbone)
    for coords in moved.values():
        coords[first_moved:] += shift
    return moved


def build_strand_pair(n_residues=7, h_o_distance=2.0):
    """Two antiparallel, fully extended strands lying in one plane.

    The first strand is built with all torsions at 180 degrees, so every
    residue has its N-H and C=O on the same side and the sides alternate.
    The second strand is its point image through a centre placed opposite the
    middle residue. That residue and every second residue from it then make
    two N-H...O=C bonds with their partner, each with the given H...O distance.

    Returns:
        Dict of atom name -> (2 * n_residues, 3) array, second strand last.
    """
    strand = build_backbone(n_residues, phi=180.0, psi=180.0)
    middle = n_residues // 2

    prev_co = strand['C'][middle - 1] - strand['O'][middle - 1]
    hydrogen = strand['N'][middle] + prev_co / np.linalg.norm(prev_co)
    oxygen = strand['O'][middle]

    axis = strand['N'][2] - strand['N'][0]
    axis /= np.linalg.norm(axis)
    side = np.cross([0.0, 0.0, 1.0], axis)
    if np.dot(oxygen - strand['N'][middle], side) < 0.0:
        side = -side

    centre = 0.5 * (hydrogen + oxygen) + 0.5 * h_o_distance * side
    return {name: np.concatenate([coords, 2.0 * centre - coords])
            for name, coords in strand.items()}


