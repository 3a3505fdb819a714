"""
Example: Fingerprint-screened substructure search on prefixed buffers

This example demonstrates the three storage forms and how the 64-bit
fingerprint lets comparisons bail out before any molecule is deserialized:
  - bare buffers: RDKit pickle only, every comparison runs RDKit
  - prefixed buffers: [8B fingerprint][pickle], cheap rejection first
  - struct rows: pickle and fingerprint kept side by side
"""

from umbramol import (
    describe_fingerprint,
    encode_struct,
    fingerprint_contains,
    is_exact_match,
    is_substructure,
    mol_from_smiles,
    substruct_count,
    umbramol_from_smiles,
)
from umbramol.chem import parse

print("Fingerprint screening example")
print("=" * 70)

molecules = {
    'ethanol': 'CCO',
    'phenol': 'c1ccc(O)cc1',
    'paracetamol': 'CC(=O)Nc1ccc(O)cc1',
    'biphenyl': 'c1ccc(cc1)-c1ccccc1',
    'alanine': 'C[C@H](N)C(=O)O',
}

# Fingerprint regions
print("\nFINGERPRINTS")
print("-" * 70)
prefixed = {name: umbramol_from_smiles(smi) for name, smi in molecules.items()}
for name, buf in prefixed.items():
    info = describe_fingerprint(buf.fingerprint)
    print(f"  {name:12s} fp=0x{buf.fingerprint:016x} "
          f"size={info['heavy_atom_bucket']:2d} rings={info['ring_bucket']} "
          f"stereo={int(info['has_stereo'])} fragments={len(info['fragments'])}")

# Substructure search with the fingerprint gate
print("\nSUBSTRUCTURE: which molecules contain benzene?")
print("-" * 70)
benzene = umbramol_from_smiles('c1ccccc1')
for name, buf in prefixed.items():
    screened = fingerprint_contains(buf.fingerprint, benzene.fingerprint)
    verdict = is_substructure(buf, benzene)
    print(f"  {name:12s} screen={'pass' if screened else 'reject':6s} match={verdict}")

print("\nMATCH COUNTS: benzene rings")
print("-" * 70)
for name, buf in prefixed.items():
    print(f"  {name:12s} {substruct_count(buf, benzene)}")

# Exact match across storage forms
print("\nEXACT MATCH")
print("-" * 70)
bare_phenol = mol_from_smiles('Oc1ccccc1')
struct_phenol = encode_struct(parse('c1ccccc1O'))
print(f"  prefixed vs bare   : {is_exact_match(prefixed['phenol'], bare_phenol)}")
print(f"  prefixed vs struct : {is_exact_match(prefixed['phenol'], struct_phenol)}")
print(f"  phenol vs ethanol  : {is_exact_match(prefixed['phenol'], prefixed['ethanol'])}")

print("\n✅ Done")
