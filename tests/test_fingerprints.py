#!/usr/bin/env python3
"""
Pytest suite for the fragment catalog and the 64-bit Dalke fingerprint.
Covers the bit budget, bit ordering, region encoding and the soundness of
fingerprint containment.
"""
import pytest
import numpy as np
from rdkit import Chem
from umbramol import (
    CatalogError,
    DALKE_CATALOG,
    DalkeFingerprinter,
    FragmentCatalog,
    describe_fingerprint,
    fingerprint_contains,
    fingerprint_contains_many,
    generate,
)
from umbramol.fingerprints import (
    CHARGE_BIT,
    FRAGMENT_MASK,
    RESERVED_BIT,
    STEREO_BIT,
    heavy_atom_bucket,
    ring_count_bucket,
)


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def substructure_pairs():
    """(target, query) SMILES pairs where query is a true substructure"""
    return [
        ('c1ccc(O)cc1', 'c1ccccc1'),            # phenol / benzene
        ('CCCCCCO', 'CCO'),                     # hexanol / ethanol
        ('c1ccc2ccccc2c1', 'c1ccccc1'),         # naphthalene / benzene
        ('CC(=O)Nc1ccc(O)cc1', 'Nc1ccccc1'),    # paracetamol / aniline
        ('CC(=O)Oc1ccccc1C(=O)O', 'CC(=O)O'),   # aspirin / acetic acid
        ('CCCCCCCCCC', 'CCCC'),                 # decane / butane
        ('OCC(O)CO', 'CO'),                     # glycerol / methanol
        ('C1CCCCC1', 'CCC'),                    # cyclohexane / propane
    ]


def fp(smiles):
    return generate(Chem.MolFromSmiles(smiles))


# ============================================================================
# 1. Fragment Catalog
# ============================================================================

def test_catalog_bit_budget():
    """Thresholds across all catalog entries sum to exactly 55"""
    assert sum(len(e.thresholds) for e in DALKE_CATALOG) == 55
    assert DALKE_CATALOG.n_bits == 55
    assert len(DALKE_CATALOG) == 43
    assert len(list(DALKE_CATALOG.bits())) == 55


def test_catalog_bit_order():
    """Bits follow entry order, then threshold order within an entry"""
    assert DALKE_CATALOG.bit_for('O', 2) == 0
    assert DALKE_CATALOG.bit_for('O', 3) == 1
    assert DALKE_CATALOG.bit_for('O', 1) == 2
    assert DALKE_CATALOG.bit_for('O', 5) == 4
    assert DALKE_CATALOG.bit_for('Ccc', 2) == 5
    assert DALKE_CATALOG.bit_for('c1ccccc1', 2) == 14
    assert DALKE_CATALOG.bit_for('ccccc(c)c', 3) == 54

    with pytest.raises(KeyError):
        DALKE_CATALOG.bit_for('O', 6)


def test_catalog_rejects_wrong_bit_count():
    with pytest.raises(CatalogError):
        FragmentCatalog([('O', (1,)), ('C', (1, 2))])


def test_catalog_rejects_bad_thresholds():
    entries = [(e.smiles, e.thresholds) for e in DALKE_CATALOG]
    entries[2] = ('cnc', (0,))
    with pytest.raises(CatalogError):
        FragmentCatalog(entries)

    entries[2] = ('cnc', (1, 1))
    with pytest.raises(CatalogError):
        FragmentCatalog(entries[:-1])


def test_unparseable_fragment_aborts_construction():
    """A broken fragment must fail loudly instead of shifting bits"""
    entries = [(e.smiles, e.thresholds) for e in DALKE_CATALOG]
    entries[0] = ('C1CC', entries[0][1])  # unclosed ring
    with pytest.raises(CatalogError):
        DalkeFingerprinter(FragmentCatalog(entries))


def test_max_matches_must_cover_thresholds():
    with pytest.raises(ValueError):
        DalkeFingerprinter(max_matches=5)
    assert DalkeFingerprinter(max_matches=9).max_matches == 9


# ============================================================================
# 2. Buckets
# ============================================================================

@pytest.mark.parametrize('count,bucket', [
    (0, 0), (5, 0), (6, 1), (10, 1), (11, 2), (20, 3), (25, 4), (30, 5),
    (35, 6), (40, 7), (41, 8), (50, 8), (51, 9), (60, 9), (75, 10),
    (90, 11), (110, 12), (140, 13), (180, 14), (181, 15), (1000, 15),
])
def test_heavy_atom_bucket(count, bucket):
    assert heavy_atom_bucket(count) == bucket


def test_heavy_atom_bucket_monotone():
    buckets = [heavy_atom_bucket(n) for n in range(300)]
    assert buckets == sorted(buckets)


@pytest.mark.parametrize('count,bucket', [(0, 0), (1, 1), (2, 2), (3, 3), (7, 3)])
def test_ring_count_bucket(count, bucket):
    assert ring_count_bucket(count) == bucket


# ============================================================================
# 3. Fingerprint regions
# ============================================================================

def test_ethanol_regions():
    """Ethanol: smallest size bucket, no rings, no flags"""
    info = describe_fingerprint(fp('CCO'))

    assert info['heavy_atom_bucket'] == 0
    assert info['ring_bucket'] == 0
    assert not info['has_stereo']
    assert not info['has_charges']
    assert not info['reserved']
    assert ('O', 1) in info['fragments']
    assert ('CC', 1) in info['fragments']
    assert ('C', 1) in info['fragments']
    assert ('O', 2) not in info['fragments']
    assert ('c1ccccc1', 1) not in info['fragments']


def test_benzene_regions():
    info = describe_fingerprint(fp('c1ccccc1'))
    assert info['ring_bucket'] == 1
    assert info['heavy_atom_bucket'] == 1
    assert ('c1ccccc1', 1) in info['fragments']
    assert ('c1ccccc1', 2) not in info['fragments']


def test_ring_bucket_saturates():
    info = describe_fingerprint(fp('c1ccc2cc3ccccc3cc2c1'))  # anthracene
    assert info['ring_bucket'] == 3


def test_count_thresholds():
    """Multiple thresholds of one fragment switch on as the count grows"""
    info = describe_fingerprint(fp('OCC(O)C(O)C(O)CO'))  # 5 oxygens
    for threshold in (1, 2, 3, 4, 5):
        assert ('O', threshold) in info['fragments']

    info = describe_fingerprint(fp('CCCCCCCCCC'))  # 10 carbons
    for threshold in (1, 6, 9):
        assert ('C', threshold) in info['fragments']


def test_stereo_bit():
    """One explicit chiral center sets bit 61"""
    assert fp('C[C@H](N)O') & STEREO_BIT
    assert fp('C[C@@H](N)O') & STEREO_BIT
    assert not fp('CC(N)O') & STEREO_BIT


def test_charge_bit():
    assert fp('C[NH3+]') & CHARGE_BIT
    assert fp('CC(=O)[O-]') & CHARGE_BIT
    assert not fp('CCN') & CHARGE_BIT


def test_reserved_bit_always_clear():
    for smi in ['CCO', 'C[C@H](N)O', 'C[NH3+]', 'c1ccc2ccccc2c1',
                'CCCCCCCCCCCCCCCCCCCCCCCCCCCCCCCCCCCCCCCCCCCCCCCCCCCCCC']:
        assert not fp(smi) & RESERVED_BIT, f"Reserved bit set for {smi}"


def test_large_molecule_bucket():
    chain = 'C' * 200
    info = describe_fingerprint(fp(chain))
    assert info['heavy_atom_bucket'] == 15


def test_fingerprint_is_64_bit_unsigned():
    value = fp('C[C@H]([NH3+])C(=O)[O-]')
    assert isinstance(value, int)
    assert 0 <= value < 2 ** 64


# ============================================================================
# 4. Determinism
# ============================================================================

def test_determinism_same_molecule():
    mol = Chem.MolFromSmiles('CC(=O)Nc1ccc(O)cc1')
    assert generate(mol) == generate(mol)


def test_determinism_equivalent_molecules():
    """Different SMILES for the same molecule give identical fingerprints"""
    assert fp('CCO') == fp('OCC')
    assert fp('c1ccccc1O') == fp('Oc1ccccc1')
    assert fp('C1=CC=CC=C1') == fp('c1ccccc1')


def test_determinism_after_roundtrip():
    mol = Chem.MolFromSmiles('CC(=O)Oc1ccccc1C(=O)O')
    restored = Chem.Mol(mol.ToBinary())
    assert generate(mol) == generate(restored)


def test_fingerprinter_callable():
    fper = DalkeFingerprinter()
    mol = Chem.MolFromSmiles('CCN')
    assert fper(mol) == fper.generate(mol) == generate(mol)
    assert 'max_matches=10' in repr(fper)


# ============================================================================
# 5. Containment
# ============================================================================

def test_containment_soundness(substructure_pairs):
    """A true substructure is never rejected by the fingerprint"""
    for target, query in substructure_pairs:
        t_mol = Chem.MolFromSmiles(target)
        q_mol = Chem.MolFromSmiles(query)
        assert t_mol.HasSubstructMatch(q_mol), f"{query} should be in {target}"
        assert fingerprint_contains(generate(t_mol), generate(q_mol)), \
            f"False negative: {query} in {target}"


def test_containment_reflexive():
    for smi in ['CCO', 'c1ccccc1', 'C[C@H](N)O', 'C[NH3+]']:
        assert fingerprint_contains(fp(smi), fp(smi))


def test_chain_cannot_contain_ring():
    """A ring-free chain never contains a ring-bearing query"""
    assert not fingerprint_contains(fp('CCCCCCCC'), fp('Cc1ccccc1'))
    assert not fingerprint_contains(fp('CCCCCC'), fp('C1CCCCC1'))


def test_stereo_query_needs_stereo_target():
    """Query with bit 61 set is rejected by a target with bit 61 clear"""
    target = fp('CC(N)O')
    query = fp('C[C@H](N)O')
    assert query & STEREO_BIT
    assert not target & STEREO_BIT
    assert not fingerprint_contains(target, query)
    assert fingerprint_contains(query, target)


def test_charge_query_needs_charged_target():
    assert not fingerprint_contains(fp('CCCN'), fp('C[NH3+]'))


def test_size_check():
    """Bigger query size bucket is rejected"""
    assert not fingerprint_contains(fp('CCO'), fp('CCCCCCCCCCCO'))


def test_fragment_bits_check():
    target = fp('CCCC')
    query = target | 1  # add fragment bit 0
    assert not fingerprint_contains(target, query)
    assert fingerprint_contains(query, target)


def test_contains_many_matches_scalar(substructure_pairs):
    smiles = sorted({s for pair in substructure_pairs for s in pair}) + ['C[C@H](N)O', 'C[NH3+]']
    fps = np.array([fp(s) for s in smiles], dtype=np.uint64)

    for query in smiles:
        q = fp(query)
        expected = [fingerprint_contains(int(t), q) for t in fps]
        result = fingerprint_contains_many(fps, q)
        assert result.dtype == bool
        assert result.tolist() == expected, f"Vectorized mismatch for {query}"


def test_contains_many_empty():
    result = fingerprint_contains_many(np.zeros(0, dtype=np.uint64), fp('CCO'))
    assert result.shape == (0,)


def test_fragment_mask_width():
    assert FRAGMENT_MASK == (1 << 55) - 1
