"""
Substructure and exact-match comparison of molecule buffers.

When both operands carry a fingerprint (prefixed buffers or struct rows) the
fingerprint is checked first and a certain non-match returns without
deserializing either payload. Otherwise both payloads are deserialized and
RDKit gives the exact answer.
"""
from typing import Optional, Tuple

from rdkit import Chem

from . import chem
from .codec import MolBuffer, MolStruct, MolValue
from .fingerprints import fingerprint_contains, structural_mask


def _fingerprint_of(value: MolValue) -> Optional[int]:
    if isinstance(value, MolStruct):
        return value.fingerprint
    if isinstance(value, MolBuffer):
        return value.fingerprint
    raise TypeError(f"Expected MolBuffer or MolStruct, got {type(value).__name__}")


def _fingerprints(a: MolValue, b: MolValue) -> Tuple[Optional[int], Optional[int]]:
    """Both fingerprints, or (None, None) unless both operands carry one."""
    fa, fb = _fingerprint_of(a), _fingerprint_of(b)
    if fa is None or fb is None:
        return None, None
    return fa, fb


class SubstructureScreen:
    """
    Fingerprint-gated substructure and exact-match predicates.

    Instances hold only configuration and are safe to share between threads;
    each call deserializes its own molecules.

    The substructure gate always applies the stereo and charge flags, even
    with use_chirality=False. A stereo-bearing query against a stereo-free
    target is therefore rejected when both are fingerprinted, while the same
    pair as bare buffers reaches RDKit and matches.

    Usage:
        screen = SubstructureScreen(use_chirality=False)
        screen.is_substructure(target_buf, query_buf)
    """

    def __init__(self, use_chirality: bool = False):
        """
        Args:
            use_chirality: Make substructure, count and exact-match checks
                stereo-aware
        """
        if not isinstance(use_chirality, bool):
            raise ValueError(f"use_chirality must be a bool, got {use_chirality!r}")
        self.use_chirality = use_chirality
        self.match_options = chem.MatchOptions(use_chirality=use_chirality)
        self._exact_mask = structural_mask(use_chirality)

    # ------------------------------------------------------------------
    # Mol-level checks (no fingerprint gate)
    # ------------------------------------------------------------------

    def mol_is_substructure(self, target: Chem.Mol, query: Chem.Mol) -> bool:
        return chem.subgraph_match(target, query, self.match_options)

    def mol_substruct_count(self, target: Chem.Mol, query: Chem.Mol) -> int:
        return chem.count_subgraph_matches(target, query, self.match_options)

    def mol_is_exact_match(self, a: Chem.Mol, b: Chem.Mol) -> bool:
        """
        Two-phase identity check.

        A substructure match in only one direction proves the molecules
        differ. Matching both ways (or neither) is not conclusive for some
        symmetric and stereo cases, so canonical SMILES decides.
        """
        a_in_b = chem.subgraph_match(b, a, self.match_options)
        b_in_a = chem.subgraph_match(a, b, self.match_options)
        if a_in_b != b_in_a:
            return False
        return (chem.to_canonical_text(a, isomeric=self.use_chirality)
                == chem.to_canonical_text(b, isomeric=self.use_chirality))

    # ------------------------------------------------------------------
    # Buffer-level checks
    # ------------------------------------------------------------------

    def fingerprint_rejects(self, target: MolValue, query: MolValue) -> bool:
        """True if the fingerprints prove target cannot contain query."""
        t_fp, q_fp = _fingerprints(target, query)
        if t_fp is None:
            return False
        return not fingerprint_contains(t_fp, q_fp)

    def is_substructure(self, target: MolValue, query: MolValue) -> bool:
        if self.fingerprint_rejects(target, query):
            return False
        return self.mol_is_substructure(target.to_mol(), query.to_mol())

    def substruct_count(self, target: MolValue, query: MolValue) -> int:
        if self.fingerprint_rejects(target, query):
            return 0
        return self.mol_substruct_count(target.to_mol(), query.to_mol())

    def is_exact_match(self, a: MolValue, b: MolValue) -> bool:
        a_fp, b_fp = _fingerprints(a, b)
        if a_fp is not None and (a_fp & self._exact_mask) != (b_fp & self._exact_mask):
            return False
        return self.mol_is_exact_match(a.to_mol(), b.to_mol())

    def __repr__(self) -> str:
        return f"SubstructureScreen(use_chirality={self.use_chirality})"


_DEFAULT_SCREEN = SubstructureScreen()


def is_substructure(target: MolValue, query: MolValue) -> bool:
    """True if query is a substructure of target (chirality ignored)."""
    return _DEFAULT_SCREEN.is_substructure(target, query)


def substruct_count(target: MolValue, query: MolValue) -> int:
    """Number of unique matches of query in target (chirality ignored)."""
    return _DEFAULT_SCREEN.substruct_count(target, query)


def is_exact_match(a: MolValue, b: MolValue) -> bool:
    """True if a and b are the same molecule (chirality ignored)."""
    return _DEFAULT_SCREEN.is_exact_match(a, b)
