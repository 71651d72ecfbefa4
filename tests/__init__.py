"""
secstrjax test suite.

Tests are organized by pipeline stage:
- test_geometry: Distances, angles and dihedrals
- test_backbone: Backbone extraction, chain breaks, hydrogen placement
- test_hbonds: H-bond energies and the two-slot network
- test_angles: Mainchain torsions and pseudo-angles
- test_turns_beta: n-turns, bends, bridges, strands and sheets
- test_secondary_structure: Reduction of the feature table to codes
- test_pipeline: End-to-end assignment on built peptides
- test_io: PDB/mmCIF parsing and summary output
"""
