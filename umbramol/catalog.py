"""
Fragment catalog for the 64-bit Dalke substructure-screening fingerprint.

Each entry is a SMILES fragment plus the match counts that switch on one
fingerprint bit each. Bits are assigned in declaration order, entry by entry
and threshold by threshold: "O" at 2 is bit 0, "O" at 3 is bit 1, and so on.

The fragments and thresholds are Andrew Dalke's optimized substructure keys:
http://www.dalkescientific.com/writings/diary/archive/2012/06/11/optimizing_substructure_keys.html
Changing the order or the thresholds changes the meaning of every stored
fingerprint.
"""
from dataclasses import dataclass
from typing import Iterator, Sequence, Tuple

from .errors import CatalogError

FRAGMENT_BITS = 55


@dataclass(frozen=True)
class FragmentEntry:
    """One fragment query and the count thresholds it contributes bits for."""
    smiles: str
    thresholds: Tuple[int, ...]

    def __post_init__(self):
        if not self.thresholds:
            raise CatalogError(f"Fragment {self.smiles!r} has no thresholds")
        if any(t < 1 for t in self.thresholds):
            raise CatalogError(
                f"Fragment {self.smiles!r} has non-positive threshold {self.thresholds}")
        if len(set(self.thresholds)) != len(self.thresholds):
            raise CatalogError(
                f"Fragment {self.smiles!r} repeats a threshold {self.thresholds}")


class FragmentCatalog:
    """
    Ordered, immutable list of fragment entries.

    The total number of (fragment, threshold) pairs must equal n_bits;
    anything else would silently shift bit meanings, so construction fails.
    """

    def __init__(self, entries: Sequence[Tuple[str, Sequence[int]]],
                 n_bits: int = FRAGMENT_BITS):
        self._entries = tuple(
            FragmentEntry(smiles, tuple(thresholds)) for smiles, thresholds in entries)
        self.n_bits = n_bits
        total = sum(len(e.thresholds) for e in self._entries)
        if total != n_bits:
            raise CatalogError(
                f"Fragment catalog defines {total} bits, expected {n_bits}")

    @property
    def entries(self) -> Tuple[FragmentEntry, ...]:
        return self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[FragmentEntry]:
        return iter(self._entries)

    def bits(self) -> Iterator[Tuple[int, str, int]]:
        """Yield (bit, fragment smiles, threshold) in bit order."""
        bit = 0
        for entry in self._entries:
            for threshold in entry.thresholds:
                yield bit, entry.smiles, threshold
                bit += 1

    def bit_for(self, smiles: str, threshold: int) -> int:
        for bit, frag, t in self.bits():
            if frag == smiles and t == threshold:
                return bit
        raise KeyError(f"No bit for fragment {smiles!r} at count {threshold}")

    def max_threshold(self) -> int:
        return max(max(e.thresholds) for e in self._entries)

    def __repr__(self) -> str:
        return f"FragmentCatalog(entries={len(self)}, n_bits={self.n_bits})"


DALKE_CATALOG = FragmentCatalog([
    ("O", (2, 3, 1, 4, 5)),
    ("Ccc", (2, 4)),
    ("CCN", (1,)),
    ("cnc", (1,)),
    ("cN", (1,)),
    ("C=O", (1,)),
    ("CCC", (1,)),
    ("S", (1,)),
    ("c1ccccc1", (1, 2)),
    ("N", (2, 3, 1)),
    ("C=C", (1,)),
    ("nn", (1,)),
    ("CO", (2,)),
    ("Ccn", (1, 2)),
    ("CCCCC", (1,)),
    ("cc(c)c", (1,)),
    ("CNC", (2,)),
    ("s", (1,)),
    ("CC(C)C", (1,)),
    ("o", (1,)),
    ("cncnc", (1,)),
    ("C=N", (1,)),
    ("CC=O", (2, 3)),
    ("Cl", (1,)),
    ("ccncc", (2,)),
    ("CCCCCC", (6,)),
    ("F", (1,)),
    ("CCOC", (3,)),
    ("c(cn)n", (1,)),
    ("C", (9, 6, 1)),
    ("CC=C(C)C", (1,)),
    ("c1ccncc1", (1,)),
    ("CC(C)N", (1,)),
    ("CC", (1,)),
    ("CCC(C)O", (4,)),
    ("ccc(cc)n", (2,)),
    ("C1CCCC1", (1,)),
    ("CNCN", (1,)),
    ("cncn", (3,)),
    ("CSC", (1,)),
    ("CCNCCCN", (1,)),
    ("CccC", (1,)),
    ("ccccc(c)c", (3,)),
])
