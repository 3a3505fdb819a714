"""
Text <-> buffer conversions.

mol_from_smiles / umbramol_from_smiles build bare and prefixed buffers from
SMILES. With strict=True a bad SMILES raises ParseError; with strict=False
it returns None so the caller can mark the row invalid and move on.
"""
import logging
from typing import Optional

from rdkit import Chem

from . import chem
from .codec import MolBuffer, MolValue, encode_bare, encode_prefixed
from .errors import ParseError

logger = logging.getLogger(__name__)


def mol_from_smiles(smiles: str, strict: bool = True) -> Optional[MolBuffer]:
    """SMILES -> bare buffer."""
    try:
        return encode_bare(chem.parse(smiles))
    except ParseError:
        if strict:
            raise
        logger.debug("Could not convert %r to mol", smiles)
        return None


def umbramol_from_smiles(smiles: str, strict: bool = True) -> Optional[MolBuffer]:
    """SMILES -> prefixed buffer ([8B fingerprint][pickle])."""
    try:
        return encode_prefixed(chem.parse(smiles))
    except ParseError:
        if strict:
            raise
        logger.debug("Could not convert %r to mol", smiles)
        return None


def mol_to_smiles(value: MolValue, isomeric: bool = True) -> str:
    """Canonical SMILES of a buffer or struct row."""
    return chem.to_canonical_text(value.to_mol(), isomeric=isomeric)


def mol_to_smarts(value: MolValue) -> str:
    return Chem.MolToSmarts(value.to_mol())


def is_valid_smiles(smiles: str) -> bool:
    try:
        chem.parse(smiles)
    except ParseError:
        return False
    return True


def is_valid_smarts(smarts: str) -> bool:
    try:
        chem.parse_smarts(smarts)
    except ParseError:
        return False
    return True
