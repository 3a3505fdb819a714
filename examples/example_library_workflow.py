"""
Example: Build, search, save and reload a molecule library

Workflow:
  1. Load SMILES into a struct-form MoleculeLibrary (invalid rows skipped)
  2. Screen the fingerprint column with numpy, verify survivors with RDKit
  3. Save to disk and reload for later searches
"""

import os
import tempfile
import time

from umbramol import MoleculeLibrary
from umbramol.log import rdkit_log_disable, rdkit_log_enable

smiles = [
    "CCO", "CCC", "CCCC", "CCCCC", "CCCCCC",
    "C1CCCCC1", "c1ccccc1", "CC(C)C", "CC(C)CC",
    "CCN", "CCCN", "CCCCN", "CC(=O)C", "CCC(=O)C",
    "c1ccc(O)cc1", "c1ccc(N)cc1", "c1ccc(C)cc1",
    "CC(=O)Nc1ccc(O)cc1", "CC(=O)Oc1ccccc1C(=O)O",
    "c1ccc2ccccc2c1", "C[C@H](N)C(=O)O", "C[NH3+]",
    "not_a_molecule",
] * 50

print("Molecule library workflow")
print("=" * 70)

rdkit_log_disable()
try:
    lib = MoleculeLibrary()
    t0 = time.time()
    rejected = lib.add_smiles(smiles)
    print(f"Loaded {len(lib)} molecules in {time.time() - t0:.2f}s "
          f"({len(rejected)} rejected)")
finally:
    rdkit_log_enable()

for query in ['c1ccccc1', 'CC(=O)O', 'CCCCCC', '[NH3+]']:
    t0 = time.time()
    candidates = lib.screen_candidates(query)
    hits = lib.substructure_search(query)
    print(f"  {query:10s} candidates={len(candidates):5d} hits={len(hits):5d} "
          f"({time.time() - t0:.3f}s)")

print(f"  exact 'OCC': {len(lib.exact_search('OCC'))} rows")

with tempfile.TemporaryDirectory() as tmp:
    path = os.path.join(tmp, 'library.pkl')
    lib.save(path)
    reloaded = MoleculeLibrary.load(path)
    assert reloaded.substructure_search('c1ccccc1') == lib.substructure_search('c1ccccc1')
    print(f"\nReloaded {reloaded!r}")

print("\n✅ Done")
