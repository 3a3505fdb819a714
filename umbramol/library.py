"""
Molecule library in struct form.

Molecules are kept as two parallel columns: RDKit pickles and a uint64
fingerprint array. Searches scan the fingerprint column with numpy and only
deserialize the rows that survive the screen.

Usage:
    lib = MoleculeLibrary()
    lib.add_smiles(['CCO', 'c1ccccc1O', 'CC(=O)O'])
    hits = lib.substructure_search('c1ccccc1')
    lib.save('library.pkl')

    lib = MoleculeLibrary.load('library.pkl')
"""
import logging
import pickle
from typing import Dict, Iterable, List, Optional, Union

import numpy as np
from rdkit import Chem

from . import __version__, chem
from .codec import MolBuffer, MolStruct, encode_struct
from .compare import SubstructureScreen
from .errors import ParseError, UmbramolError
from .fingerprints import DEFAULT_FINGERPRINTER, fingerprint_contains_many, structural_mask

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1

QueryLike = Union[str, Chem.Mol, MolBuffer, MolStruct]


class MoleculeLibrary:
    """
    Columnar molecule store with fingerprint screening.

    Attributes:
        payloads: List of RDKit pickles, one per row
        fingerprints: uint64 array, row-aligned with payloads
        names: Optional row labels (default: the input SMILES)
    """

    def __init__(self, use_chirality: bool = False):
        """
        Args:
            use_chirality: Stereo-aware substructure and exact-match checks
        """
        self.screen = SubstructureScreen(use_chirality=use_chirality)
        self.payloads: List[bytes] = []
        self.fingerprints = np.zeros(0, dtype=np.uint64)
        self.names: List[Optional[str]] = []

    @property
    def use_chirality(self) -> bool:
        return self.screen.use_chirality

    def __len__(self) -> int:
        return len(self.payloads)

    def __getitem__(self, idx: int) -> MolStruct:
        return MolStruct(self.payloads[idx], int(self.fingerprints[idx]))

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def add_mol(self, mol: Chem.Mol, name: Optional[str] = None) -> int:
        """Append one molecule; returns its row index."""
        row = encode_struct(mol)
        self.payloads.append(row.payload)
        self.fingerprints = np.append(self.fingerprints, np.uint64(row.fingerprint))
        self.names.append(name)
        return len(self.payloads) - 1

    def add_smiles(self, smiles: Iterable[str], strict: bool = False) -> List[str]:
        """
        Append molecules from SMILES.

        Invalid SMILES are skipped (or raise ParseError with strict=True).

        Returns:
            The SMILES that could not be parsed
        """
        payloads, fps, names, rejected = [], [], [], []
        for smi in smiles:
            try:
                row = encode_struct(chem.parse(smi))
            except ParseError:
                if strict:
                    raise
                rejected.append(smi)
                continue
            payloads.append(row.payload)
            fps.append(row.fingerprint)
            names.append(smi)

        self.payloads.extend(payloads)
        self.fingerprints = np.concatenate(
            [self.fingerprints, np.array(fps, dtype=np.uint64)])
        self.names.extend(names)
        if rejected:
            logger.warning("Skipped %d invalid SMILES", len(rejected))
        return rejected

    # ------------------------------------------------------------------
    # Searching
    # ------------------------------------------------------------------

    def _query(self, query: QueryLike):
        if isinstance(query, str):
            query = chem.parse(query)
        if isinstance(query, Chem.Mol):
            return query, DEFAULT_FINGERPRINTER.generate(query)
        if isinstance(query, MolStruct):
            return query.to_mol(), query.fingerprint
        if isinstance(query, MolBuffer):
            mol = query.to_mol()
            fp = query.fingerprint
            return mol, fp if fp is not None else DEFAULT_FINGERPRINTER.generate(mol)
        raise TypeError(f"Unsupported query type {type(query).__name__}")

    def screen_candidates(self, query: QueryLike) -> np.ndarray:
        """Row indices whose fingerprint might contain the query's."""
        _, q_fp = self._query(query)
        return np.flatnonzero(fingerprint_contains_many(self.fingerprints, q_fp))

    def _row_mol(self, idx: int) -> Optional[Chem.Mol]:
        """Deserialize one row; a corrupt row is logged and skipped."""
        try:
            return chem.deserialize(self.payloads[idx])
        except UmbramolError as e:
            logger.warning("Row %d could not be deserialized: %s", idx, e)
            return None

    def _verified(self, candidates: np.ndarray, check) -> List[int]:
        hits = []
        for idx in candidates:
            target = self._row_mol(idx)
            if target is not None and check(target):
                hits.append(int(idx))
        return hits

    def substructure_search(self, query: QueryLike) -> List[int]:
        """Row indices of molecules containing query."""
        q_mol, q_fp = self._query(query)
        candidates = np.flatnonzero(fingerprint_contains_many(self.fingerprints, q_fp))
        hits = self._verified(
            candidates, lambda t: self.screen.mol_is_substructure(t, q_mol))
        logger.debug("Substructure search: %d candidates, %d hits", len(candidates), len(hits))
        return hits

    def substruct_counts(self, query: QueryLike) -> np.ndarray:
        """Match count of query in every row (0 where the screen rejects or the row is corrupt)."""
        q_mol, q_fp = self._query(query)
        counts = np.zeros(len(self), dtype=np.int32)
        for idx in np.flatnonzero(fingerprint_contains_many(self.fingerprints, q_fp)):
            target = self._row_mol(idx)
            if target is not None:
                counts[idx] = self.screen.mol_substruct_count(target, q_mol)
        return counts

    def exact_search(self, query: QueryLike) -> List[int]:
        """Row indices of molecules identical to query."""
        q_mol, q_fp = self._query(query)
        mask = np.uint64(structural_mask(self.use_chirality))
        candidates = np.flatnonzero((self.fingerprints & mask) == (np.uint64(q_fp) & mask))
        return self._verified(
            candidates, lambda t: self.screen.mol_is_exact_match(t, q_mol))

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, filepath: str):
        """
        Save the library to disk.

        Args:
            filepath: Path to save library (e.g., 'library.pkl')
        """
        state = {
            'format_version': FORMAT_VERSION,
            'umbramol_version': __version__,
            'use_chirality': self.use_chirality,
            'payloads': self.payloads,
            'fingerprints': self.fingerprints.astype('<u8').tobytes(),
            'names': self.names,
            'n_molecules': len(self),
        }
        with open(filepath, 'wb') as f:
            pickle.dump(state, f, protocol=pickle.HIGHEST_PROTOCOL)
        logger.info("Library saved to %s (%d molecules)", filepath, len(self))

    @classmethod
    def load(cls, filepath: str) -> 'MoleculeLibrary':
        """
        Load a library saved with save().

        Raises:
            ValueError: if the file is not a compatible library
        """
        with open(filepath, 'rb') as f:
            state = pickle.load(f)

        required_fields = ['format_version', 'payloads', 'fingerprints', 'names']
        missing = [f for f in required_fields if f not in state]
        if missing:
            raise ValueError(f"Invalid library file: missing fields {missing}")
        if state['format_version'] != FORMAT_VERSION:
            raise ValueError(
                f"Unsupported library format {state['format_version']}, "
                f"expected {FORMAT_VERSION}")

        lib = cls(use_chirality=state.get('use_chirality', False))
        lib.payloads = list(state['payloads'])
        lib.fingerprints = np.frombuffer(state['fingerprints'], dtype='<u8').astype(np.uint64)
        lib.names = list(state['names'])
        if not len(lib.payloads) == len(lib.fingerprints) == len(lib.names):
            raise ValueError("Invalid library file: column lengths differ")

        logger.info("Library loaded from %s (%d molecules)", filepath, len(lib))
        return lib

    def get_info(self) -> Dict:
        return {
            'n_molecules': len(self),
            'use_chirality': self.use_chirality,
            'payload_bytes': sum(len(p) for p in self.payloads),
        }

    def __repr__(self) -> str:
        return f"MoleculeLibrary(n_molecules={len(self)}, use_chirality={self.use_chirality})"
