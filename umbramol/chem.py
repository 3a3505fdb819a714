"""
Chemistry-engine contract, implemented on RDKit.

Everything umbramol needs from the chemistry engine goes through this
module: parsing text, (de)serializing the RDKit pickle, canonical SMILES,
and substructure matching. RDKit molecule objects carry per-call scratch
state, so a Mol must not be shared across threads without synchronization;
every function here works on the Mol it is handed and keeps no reference.
"""
from dataclasses import dataclass

from rdkit import Chem

from .errors import ParseError, SerializationError


@dataclass(frozen=True)
class MatchOptions:
    """
    Substructure match configuration.

    Args:
        use_chirality: Require stereo agreement when matching
        uniquify: Count matches that cover the same atom set once
        recursion_possible: Allow recursive SMARTS in the pattern
        max_matches: Stop enumerating after this many matches
    """
    use_chirality: bool = False
    uniquify: bool = True
    recursion_possible: bool = True
    max_matches: int = 1000

    def __post_init__(self):
        if self.max_matches < 1:
            raise ValueError(f"max_matches must be >= 1, got {self.max_matches}")

    def to_params(self) -> Chem.SubstructMatchParameters:
        params = Chem.SubstructMatchParameters()
        params.useChirality = self.use_chirality
        params.uniquify = self.uniquify
        params.recursionPossible = self.recursion_possible
        params.useQueryQueryMatches = False
        params.maxMatches = self.max_matches
        params.numThreads = 1
        return params


DEFAULT_MATCH_OPTIONS = MatchOptions()


def parse(text: str, sanitize: bool = True) -> Chem.Mol:
    """
    Parse a SMILES string into an RDKit molecule.

    Raises:
        ParseError: if RDKit rejects the text
    """
    if not isinstance(text, str):
        raise ParseError(repr(text), 'expected a SMILES string')
    try:
        mol = Chem.MolFromSmiles(text, sanitize=sanitize)
    except (RuntimeError, ValueError, TypeError) as e:
        raise ParseError(text, str(e)) from e
    if mol is None:
        raise ParseError(text)
    return mol


def parse_smarts(text: str) -> Chem.Mol:
    """Parse a SMARTS pattern into an RDKit query molecule."""
    if not isinstance(text, str):
        raise ParseError(repr(text), 'expected a SMARTS string')
    try:
        mol = Chem.MolFromSmarts(text)
    except (RuntimeError, ValueError, TypeError) as e:
        raise ParseError(text, str(e)) from e
    if mol is None:
        raise ParseError(text, 'invalid SMARTS')
    return mol


def serialize(mol: Chem.Mol) -> bytes:
    """Serialize a molecule with RDKit's MolPickler."""
    if mol is None:
        raise SerializationError("Could not serialize mol to binary: mol is None")
    try:
        return mol.ToBinary()
    except (RuntimeError, ValueError, TypeError) as e:
        raise SerializationError(f"Could not serialize mol to binary: {e}") from e


def deserialize(data: bytes) -> Chem.Mol:
    """
    Rebuild a molecule from an RDKit pickle.

    Raises:
        SerializationError: on an empty or corrupt payload
    """
    if not data:
        raise SerializationError("Could not deserialize mol: empty payload")
    try:
        return Chem.Mol(bytes(data))
    except (RuntimeError, ValueError, TypeError) as e:
        raise SerializationError(f"Could not deserialize mol: {e}") from e


def to_canonical_text(mol: Chem.Mol, isomeric: bool = False) -> str:
    """Canonical SMILES for a molecule."""
    return Chem.MolToSmiles(mol, isomericSmiles=isomeric)


def count_subgraph_matches(host: Chem.Mol, pattern: Chem.Mol,
                           options: MatchOptions = DEFAULT_MATCH_OPTIONS) -> int:
    """Number of matches of pattern in host (capped at options.max_matches)."""
    return len(host.GetSubstructMatches(pattern, options.to_params()))


def subgraph_match(host: Chem.Mol, pattern: Chem.Mol,
                   options: MatchOptions = DEFAULT_MATCH_OPTIONS) -> bool:
    """True if host contains pattern as a substructure."""
    return host.HasSubstructMatch(pattern, options.to_params())
