"""
Tests for PDB/mmCIF parsing and the per-residue summary output.
"""

import numpy as np
import pytest

from secstrjax.io import (
    format_secstr_summary,
    load_residues,
    parse_cif_atoms,
    parse_pdb_atoms,
    split_chains,
    write_secstr_summary,
)
from secstrjax.main import run_secstr

from .builders import build_backbone


def _atom_line(serial, name, res_name, chain, seq_id, xyz, altloc=' ', ins_code=' ', record='ATOM  '):
    """One fixed-column PDB coordinate record."""
    x, y, z = xyz
    return (f"{record}{serial:5d} {' ' + name:<4s}{altloc}{res_name:3s} {chain}{seq_id:4d}{ins_code}   "
            f"{x:8.3f}{y:8.3f}{z:8.3f}  1.00  0.00")


def _helix_pdb(n_residues, chain='A'):
    backbone = build_backbone(n_residues)
    lines = []
    serial = 1
    for i in range(n_residues):
        for name in ('N', 'CA', 'C', 'O'):
            lines.append(_atom_line(serial, name, 'ALA', chain, i + 1, backbone[name][i]))
            serial += 1
    return "\n".join(lines) + "\nEND\n"


PDB_SNIPPET = "\n".join([
    "HEADER    TEST",
    _atom_line(1, 'N', 'GLY', 'A', 1, (0.0, 0.0, 0.0)),
    _atom_line(2, 'CA', 'GLY', 'A', 1, (1.458, 0.0, 0.0)),
    _atom_line(3, 'CA', 'GLY', 'A', 1, (9.0, 9.0, 9.0), altloc='B'),
    _atom_line(4, 'CB', 'ALA', 'A', 2, (3.0, 1.0, 0.0), ins_code='A'),
    _atom_line(5, 'CG', 'ALA', 'A', 2, (4.0, 1.0, 0.0), ins_code='A'),
    _atom_line(6, 'O', 'HOH', 'W', 1, (5.0, 5.0, 5.0), record='HETATM'),
    "END",
])

CIF_SNIPPET = """data_test
#
loop_
_atom_site.group_PDB
_atom_site.id
_atom_site.label_atom_id
_atom_site.label_alt_id
_atom_site.label_comp_id
_atom_site.label_asym_id
_atom_site.label_seq_id
_atom_site.pdbx_PDB_ins_code
_atom_site.Cartn_x
_atom_site.Cartn_y
_atom_site.Cartn_z
_atom_site.auth_seq_id
_atom_site.auth_asym_id
_atom_site.pdbx_PDB_model_num
ATOM 1 N . ALA A 1 ? 0.000 0.000 0.000 10 B 1
ATOM 2 CA . ALA A 1 ? 1.458 0.000 0.000 10 B 1
ATOM 3 CB . ALA A 1 ? 2.000 1.000 0.000 10 B 1
HETATM 4 O . HOH C 1 ? 5.000 5.000 5.000 1 W 1
ATOM 5 N . GLY A 2 ? 3.000 0.000 0.000 11 B 2
#
"""


class TestPDBParsing:
    """Tests for fixed-column PDB coordinate records."""

    def test_residues_and_atoms(self):
        residues = parse_pdb_atoms(PDB_SNIPPET)
        assert len(residues) == 2
        first, second = residues
        assert (first['chain_id'], first['seq_id'], first['ins_code'], first['res_name']) == ('A', 1, '', 'GLY')
        assert sorted(first['atoms']) == ['CA', 'N']
        np.testing.assert_allclose(first['atoms']['CA'], [1.458, 0.0, 0.0])
        assert second['ins_code'] == 'A'
        assert list(second['atoms']) == ['CB']

    def test_model_selection(self):
        text = "\n".join([
            "MODEL        1",
            _atom_line(1, 'CA', 'GLY', 'A', 1, (0.0, 0.0, 0.0)),
            "ENDMDL",
            "MODEL        2",
            _atom_line(1, 'CA', 'GLY', 'A', 1, (7.0, 0.0, 0.0)),
            "ENDMDL",
        ])
        np.testing.assert_allclose(parse_pdb_atoms(text, model_num=2)[0]['atoms']['CA'], [7.0, 0.0, 0.0])
        assert parse_pdb_atoms(text, model_num=3) == []

    def test_malformed_record(self):
        bad = _atom_line(1, 'CA', 'GLY', 'A', 1, (0.0, 0.0, 0.0))[:30] + "    abc " + " " * 16
        with pytest.raises(ValueError, match="Malformed ATOM record"):
            parse_pdb_atoms(bad)


class TestCIFParsing:
    """Tests for the _atom_site loop reader."""

    def test_author_ids_and_model_filter(self):
        residues = parse_cif_atoms(CIF_SNIPPET)
        assert len(residues) == 1
        res = residues[0]
        assert (res['chain_id'], res['seq_id'], res['ins_code'], res['res_name']) == ('B', 10, '', 'ALA')
        assert sorted(res['atoms']) == ['CA', 'CB', 'N']

    def test_second_model(self):
        residues = parse_cif_atoms(CIF_SNIPPET, model_num=2)
        assert [res['res_name'] for res in residues] == ['GLY']

    def test_missing_loop(self):
        with pytest.raises(ValueError, match="_atom_site loop"):
            parse_cif_atoms("data_empty\n#\n")


class TestLoading:
    """Tests for reading structures from disk."""

    def test_format_detection(self, tmp_path):
        cif_path = tmp_path / "model.cif"
        cif_path.write_text(CIF_SNIPPET)
        pdb_path = tmp_path / "model.pdb"
        pdb_path.write_text(PDB_SNIPPET)
        assert load_residues(str(cif_path))[0]['chain_id'] == 'B'
        assert load_residues(str(pdb_path))[0]['chain_id'] == 'A'

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_residues(str(tmp_path / "absent.pdb"))

    def test_split_chains(self):
        residues = [{'chain_id': c, 'seq_id': i} for i, c in enumerate("AABBA")]
        assert [len(chain) for chain in split_chains(residues)] == [2, 2, 1]


class TestSummaryOutput:
    """Tests for the per-residue summary lines."""

    def test_format(self):
        chain = [{'chain_id': 'A', 'seq_id': 7, 'ins_code': '', 'res_name': 'ALA', 'secondary_structure': 'H'},
                 {'chain_id': 'A', 'seq_id': 8, 'ins_code': 'B', 'res_name': 'GLY'}]
        assert format_secstr_summary(chain) == ["A7     ALA H", "A8B    GLY ?"]

    def test_write_to_file(self, tmp_path):
        chain = [{'chain_id': 'A', 'seq_id': 1, 'ins_code': '', 'res_name': 'SER', 'secondary_structure': 'E'}]
        out = tmp_path / "summary.txt"
        write_secstr_summary([chain], str(out))
        assert out.read_text() == "A1     SER E\n"

    def test_write_to_stdout(self, capsys):
        chain = [{'chain_id': 'A', 'seq_id': 1, 'ins_code': '', 'res_name': 'SER', 'secondary_structure': 'T'}]
        write_secstr_summary([chain])
        assert "A1     SER T" in capsys.readouterr().out


class TestRunSecStr:
    """Tests for the file-driven pipeline entry point."""

    def test_helix_file(self, tmp_path):
        path = tmp_path / "helix.pdb"
        path.write_text(_helix_pdb(12, chain='A') + _helix_pdb(6, chain='B'))
        chains = run_secstr(str(path), chains=['A'])
        assert len(chains) == 1
        assert ''.join(res['secondary_structure'] for res in chains[0]) == "-HHHHHHHHHH-"

    def test_empty_input(self, tmp_path):
        path = tmp_path / "empty.pdb"
        path.write_text("END\n")
        with pytest.raises(ValueError, match="No protein residues"):
            run_secstr(str(path))
