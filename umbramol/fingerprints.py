"""
64-bit Dalke substructure-screening fingerprint.

Bit layout:
    bits 0-54   fragment bits (one per catalog fragment/threshold pair)
    bits 55-58  heavy atom count bucket (0-15)
    bits 59-60  ring count (0, 1, 2, 3+)
    bit  61     has stereocenters
    bit  62     has formal charges
    bit  63     reserved, always 0

Every region is monotone under taking a supergraph, so a target that
contains a query always has a fingerprint that "contains" the query's.
fingerprint_contains() is therefore a one-sided filter: False is a certain
non-match, True still needs exact verification.
"""
import logging
from bisect import bisect_left
from typing import Dict, List, Optional, Tuple

import numpy as np
from rdkit import Chem

from . import chem
from .catalog import DALKE_CATALOG, FRAGMENT_BITS, FragmentCatalog
from .errors import CatalogError, ParseError

logger = logging.getLogger(__name__)

FINGERPRINT_BYTES = 8

FRAGMENT_MASK = (1 << FRAGMENT_BITS) - 1
HEAVY_ATOM_SHIFT = 55
HEAVY_ATOM_MASK = 0xF
RING_SHIFT = 59
RING_MASK = 0x3
STEREO_BIT = 1 << 61
CHARGE_BIT = 1 << 62
RESERVED_BIT = 1 << 63

# Upper bound (inclusive) of each heavy atom bucket; anything above the last
# bound lands in bucket 15.
HEAVY_ATOM_BOUNDS = (5, 10, 15, 20, 25, 30, 35, 40, 50, 60, 75, 90, 110, 140, 180)
MAX_RING_BUCKET = 3

# Bits that must agree for two molecules to be identical. Stereo only counts
# when the comparison is chirality-aware.
STRUCTURAL_MASK = (FRAGMENT_MASK
                   | (HEAVY_ATOM_MASK << HEAVY_ATOM_SHIFT)
                   | (RING_MASK << RING_SHIFT)
                   | CHARGE_BIT)


def heavy_atom_bucket(count: int) -> int:
    """Map a heavy atom count to its 4-bit bucket (0-15)."""
    return bisect_left(HEAVY_ATOM_BOUNDS, count)


def ring_count_bucket(count: int) -> int:
    """Ring count saturated at 3."""
    return min(count, MAX_RING_BUCKET)


def structural_mask(use_chirality: bool = False) -> int:
    return STRUCTURAL_MASK | STEREO_BIT if use_chirality else STRUCTURAL_MASK


class DalkeFingerprinter:
    """
    Computes the 64-bit screening fingerprint of an RDKit molecule.

    The catalog fragments are parsed once, here; a fragment that does not
    parse is a corrupt catalog and raises CatalogError. After construction
    the fingerprinter is read-only and can be shared between threads.

    Usage:
        fper = DalkeFingerprinter()
        fp = fper.generate(Chem.MolFromSmiles('CCO'))
    """

    def __init__(self, catalog: FragmentCatalog = DALKE_CATALOG,
                 max_matches: int = 10):
        """
        Args:
            catalog: Fragment catalog defining bits 0-54
            max_matches: Stop counting fragment matches past this many
        """
        if catalog.n_bits != FRAGMENT_BITS:
            raise CatalogError(
                f"Catalog has {catalog.n_bits} bits, fingerprint layout needs {FRAGMENT_BITS}")
        if max_matches < catalog.max_threshold():
            raise ValueError(
                f"max_matches must be >= the largest catalog threshold "
                f"({catalog.max_threshold()}), got {max_matches}")

        self.catalog = catalog
        self.max_matches = max_matches
        self.match_options = chem.MatchOptions(
            use_chirality=False, uniquify=True,
            recursion_possible=True, max_matches=max_matches)
        self._patterns = self._compile(catalog)

    @staticmethod
    def _compile(catalog: FragmentCatalog) -> List[Tuple[Chem.Mol, Tuple[int, ...]]]:
        patterns = []
        for entry in catalog:
            try:
                pattern = chem.parse(entry.smiles, sanitize=False)
            except ParseError as e:
                raise CatalogError(f"Catalog fragment {entry.smiles!r} failed to parse") from e
            # Settle lazily computed state before the pattern is shared.
            pattern.UpdatePropertyCache(strict=False)
            Chem.FastFindRings(pattern)
            patterns.append((pattern, entry.thresholds))
        logger.debug("Compiled %d catalog fragments (%d bits)", len(patterns), catalog.n_bits)
        return patterns

    def fragment_bits(self, mol: Chem.Mol) -> int:
        """Bits 0-54 only."""
        fp = 0
        bit = 0
        for pattern, thresholds in self._patterns:
            n = chem.count_subgraph_matches(mol, pattern, self.match_options)
            for threshold in thresholds:
                if n >= threshold:
                    fp |= 1 << bit
                bit += 1
        return fp

    def generate(self, mol: Chem.Mol) -> int:
        """Full 64-bit fingerprint as an unsigned Python int."""
        fp = self.fragment_bits(mol)
        fp |= heavy_atom_bucket(mol.GetNumHeavyAtoms()) << HEAVY_ATOM_SHIFT
        fp |= ring_count_bucket(mol.GetRingInfo().NumRings()) << RING_SHIFT

        has_stereo = False
        has_charge = False
        for atom in mol.GetAtoms():
            if atom.GetChiralTag() != Chem.ChiralType.CHI_UNSPECIFIED:
                has_stereo = True
            if atom.GetFormalCharge() != 0:
                has_charge = True
            if has_stereo and has_charge:
                break
        if has_stereo:
            fp |= STEREO_BIT
        if has_charge:
            fp |= CHARGE_BIT
        return fp

    __call__ = generate

    def __repr__(self) -> str:
        return (f"DalkeFingerprinter(catalog={self.catalog!r}, "
                f"max_matches={self.max_matches})")


# Built at import so a broken catalog fails before any row is processed.
DEFAULT_FINGERPRINTER = DalkeFingerprinter()


def generate(mol: Chem.Mol) -> int:
    """Fingerprint a molecule with the default catalog."""
    return DEFAULT_FINGERPRINTER.generate(mol)


def _size_bucket(fp: int) -> int:
    return (fp >> HEAVY_ATOM_SHIFT) & HEAVY_ATOM_MASK


def _ring_bucket(fp: int) -> int:
    return (fp >> RING_SHIFT) & RING_MASK


def fingerprint_contains(target_fp: int, query_fp: int) -> bool:
    """
    True if target MIGHT be a superstructure of query.

    False means target certainly cannot contain query.
    """
    if _size_bucket(target_fp) < _size_bucket(query_fp):
        return False
    if _ring_bucket(target_fp) < _ring_bucket(query_fp):
        return False
    if query_fp & STEREO_BIT and not target_fp & STEREO_BIT:
        return False
    if query_fp & CHARGE_BIT and not target_fp & CHARGE_BIT:
        return False
    query_frags = query_fp & FRAGMENT_MASK
    return (target_fp & query_frags) == query_frags


def fingerprint_contains_many(target_fps: np.ndarray, query_fp: int) -> np.ndarray:
    """
    Vectorized fingerprint_contains over a column of target fingerprints.

    Args:
        target_fps: uint64 array of target fingerprints
        query_fp: Query fingerprint

    Returns:
        Boolean array, True where the target might contain the query
    """
    t = np.asarray(target_fps, dtype=np.uint64)
    q = np.uint64(query_fp)

    ha_shift, ha_mask = np.uint64(HEAVY_ATOM_SHIFT), np.uint64(HEAVY_ATOM_MASK)
    ring_shift, ring_mask = np.uint64(RING_SHIFT), np.uint64(RING_MASK)

    ok = ((t >> ha_shift) & ha_mask) >= ((q >> ha_shift) & ha_mask)
    ok &= ((t >> ring_shift) & ring_mask) >= ((q >> ring_shift) & ring_mask)
    for flag in (STEREO_BIT, CHARGE_BIT):
        if query_fp & flag:
            ok &= (t & np.uint64(flag)) != 0
    q_frags = q & np.uint64(FRAGMENT_MASK)
    ok &= (t & q_frags) == q_frags
    return ok


def describe_fingerprint(fp: int,
                         catalog: Optional[FragmentCatalog] = None) -> Dict:
    """
    Decode a fingerprint into its regions.

    Returns:
        Dictionary with 'fragments' (list of (smiles, threshold) whose bit
        is set), 'heavy_atom_bucket', 'ring_bucket', 'has_stereo',
        'has_charges' and 'reserved'
    """
    catalog = catalog or DALKE_CATALOG
    return {
        'fragments': [(smiles, t) for bit, smiles, t in catalog.bits() if (fp >> bit) & 1],
        'heavy_atom_bucket': _size_bucket(fp),
        'ring_bucket': _ring_bucket(fp),
        'has_stereo': bool(fp & STEREO_BIT),
        'has_charges': bool(fp & CHARGE_BIT),
        'reserved': bool(fp & RESERVED_BIT),
    }
