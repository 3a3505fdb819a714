"""
Test MoleculeLibrary: struct-form storage, screened search and save/load
"""
import os
import pickle
import tempfile

import numpy as np
import pytest
from rdkit import Chem
from umbramol import MoleculeLibrary, ParseError, generate, umbramol_from_smiles


@pytest.fixture
def library():
    lib = MoleculeLibrary()
    lib.add_smiles(['CCO', 'c1ccccc1O', 'CC(=O)O', 'c1ccc2ccccc2c1', 'OCC', 'C[C@H](N)O'])
    return lib


def test_add_smiles(library):
    assert len(library) == 6
    assert library.fingerprints.dtype == np.uint64
    assert len(library.payloads) == len(library.fingerprints) == len(library.names)
    assert int(library.fingerprints[1]) == generate(Chem.MolFromSmiles('c1ccccc1O'))
    assert library[1].fingerprint == int(library.fingerprints[1])


def test_add_smiles_rejects_invalid():
    lib = MoleculeLibrary()
    rejected = lib.add_smiles(['CCO', 'C1CC(', 'CCN'])
    assert rejected == ['C1CC(']
    assert len(lib) == 2
    assert lib.names == ['CCO', 'CCN']

    with pytest.raises(ParseError):
        lib.add_smiles(['bad(('], strict=True)


def test_add_mol():
    lib = MoleculeLibrary()
    idx = lib.add_mol(Chem.MolFromSmiles('CCO'), name='ethanol')
    assert idx == 0
    assert lib.names == ['ethanol']


def test_substructure_search(library):
    assert library.substructure_search('c1ccccc1') == [1, 3]
    assert library.substructure_search(umbramol_from_smiles('C=O')) == [2]


def test_screened_search_matches_brute_force(library):
    """The fingerprint screen never drops a real hit"""
    targets = [Chem.Mol(p) for p in library.payloads]
    for query in ['c1ccccc1', 'C=O', 'CC', 'N']:
        q = Chem.MolFromSmiles(query)
        brute = [i for i, t in enumerate(targets) if t.HasSubstructMatch(q)]
        assert library.substructure_search(query) == brute, f"Mismatch for {query}"
        assert set(brute) <= set(library.screen_candidates(query).tolist())


def test_substruct_counts(library):
    counts = library.substruct_counts('c1ccccc1')
    assert counts.tolist() == [0, 1, 0, 2, 0, 0]


def test_exact_search(library):
    assert library.exact_search('OCC') == [0, 4]
    assert library.exact_search('C[C@@H](N)O') == [5]
    assert library.exact_search('CCCCCC') == []


def test_exact_search_chiral():
    lib = MoleculeLibrary(use_chirality=True)
    lib.add_smiles(['C[C@H](N)O', 'C[C@@H](N)O', 'CC(N)O'])
    assert lib.exact_search('C[C@H](N)O') == [0]
    assert lib.exact_search('CC(N)O') == [2]


def test_save_load_roundtrip(library):
    with tempfile.NamedTemporaryFile(delete=False, suffix='.pkl') as f:
        path = f.name
    try:
        library.save(path)
        loaded = MoleculeLibrary.load(path)

        assert len(loaded) == len(library)
        assert loaded.names == library.names
        assert loaded.payloads == library.payloads
        assert loaded.fingerprints.dtype == np.uint64
        assert np.array_equal(loaded.fingerprints, library.fingerprints)
        assert loaded.substructure_search('c1ccccc1') == [1, 3]
        loaded.add_smiles(['c1ccccc1'])
        assert len(loaded) == len(library) + 1
    finally:
        os.remove(path)


def test_load_rejects_invalid_file():
    with tempfile.NamedTemporaryFile(delete=False, suffix='.pkl') as f:
        pickle.dump({'payloads': []}, f)
        path = f.name
    try:
        with pytest.raises(ValueError, match='missing fields'):
            MoleculeLibrary.load(path)
    finally:
        os.remove(path)


def test_load_rejects_other_format_version(library):
    with tempfile.NamedTemporaryFile(delete=False, suffix='.pkl') as f:
        path = f.name
    try:
        library.save(path)
        with open(path, 'rb') as fh:
            state = pickle.load(fh)
        state['format_version'] = 99
        with open(path, 'wb') as fh:
            pickle.dump(state, fh)
        with pytest.raises(ValueError, match='Unsupported library format'):
            MoleculeLibrary.load(path)
    finally:
        os.remove(path)


def test_get_info(library):
    info = library.get_info()
    assert info['n_molecules'] == 6
    assert info['use_chirality'] is False
    assert info['payload_bytes'] > 0


def test_corrupt_row_is_skipped(library, caplog):
    """A row that fails to deserialize is logged and left out of every scan"""
    library.payloads[1] = b'not a pickle'

    with caplog.at_level('WARNING', logger='umbramol.library'):
        assert library.substructure_search('c1ccccc1') == [3]
        counts = library.substruct_counts('c1ccccc1')
    assert counts.tolist() == [0, 0, 0, 2, 0, 0]
    assert 'Row 1 could not be deserialized' in caplog.text

    assert library.exact_search('OCC') == [0, 4]
