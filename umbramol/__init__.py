"""
UMBRAMOL - Fingerprint-screened molecule storage and substructure search

A Python library for storing RDKit molecules as compact binary buffers and
searching them quickly:
- 64-bit Dalke fingerprint (55 fragment bits + size, ring, stereo and charge)
- Bare, prefixed ([8B fingerprint][RDKit pickle]) and struct storage forms
- Substructure, match-count and exact-match predicates that reject with the
  fingerprint before deserializing anything
- Column-at-a-time execution with per-row failure isolation

Example:
    >>> from umbramol import umbramol_from_smiles, is_substructure
    >>> 
    >>> phenol = umbramol_from_smiles('c1ccc(O)cc1')
    >>> benzene = umbramol_from_smiles('c1ccccc1')
    >>> is_substructure(phenol, benzene)
    True
    >>> is_substructure(benzene, phenol)  # rejected by the fingerprint
    False
"""

__version__ = '1.0.0'

from .errors import (
    UmbramolError,
    ParseError,
    MalformedBufferError,
    SerializationError,
    CatalogError,
    FailureKind,
    Result,
)
from .catalog import DALKE_CATALOG, FragmentCatalog, FragmentEntry
from .fingerprints import (
    DalkeFingerprinter,
    generate,
    fingerprint_contains,
    fingerprint_contains_many,
    describe_fingerprint,
)
from .codec import (
    PayloadKind,
    MolBuffer,
    MolStruct,
    encode_bare,
    encode_prefixed,
    encode_struct,
    decode_fingerprint,
    decode_payload,
    convert,
    to_struct,
    from_struct,
)
from .compare import SubstructureScreen, is_substructure, substruct_count, is_exact_match
from .formats import (
    mol_from_smiles,
    umbramol_from_smiles,
    mol_to_smiles,
    mol_to_smarts,
    is_valid_smiles,
    is_valid_smarts,
)
from .library import MoleculeLibrary
from . import batch, descriptors, log

__all__ = [
    'UmbramolError',
    'ParseError',
    'MalformedBufferError',
    'SerializationError',
    'CatalogError',
    'FailureKind',
    'Result',
    'DALKE_CATALOG',
    'FragmentCatalog',
    'FragmentEntry',
    'DalkeFingerprinter',
    'generate',
    'fingerprint_contains',
    'fingerprint_contains_many',
    'describe_fingerprint',
    'PayloadKind',
    'MolBuffer',
    'MolStruct',
    'encode_bare',
    'encode_prefixed',
    'encode_struct',
    'decode_fingerprint',
    'decode_payload',
    'convert',
    'to_struct',
    'from_struct',
    'SubstructureScreen',
    'is_substructure',
    'substruct_count',
    'is_exact_match',
    'mol_from_smiles',
    'umbramol_from_smiles',
    'mol_to_smiles',
    'mol_to_smarts',
    'is_valid_smiles',
    'is_valid_smarts',
    'MoleculeLibrary',
    'batch',
    'descriptors',
    'log',
]
