"""
Molecular descriptors over stored molecules.

Thin pass-throughs to RDKit; each accepts a bare buffer, a prefixed buffer
or a struct row.
"""
from rdkit.Chem import Crippen, Descriptors, QED, rdMolDescriptors

from .codec import MolValue


def mol_amw(value: MolValue) -> float:
    """Average molecular weight."""
    return Descriptors.MolWt(value.to_mol())


def mol_exactmw(value: MolValue) -> float:
    return rdMolDescriptors.CalcExactMolWt(value.to_mol())


def mol_tpsa(value: MolValue) -> float:
    """Topological polar surface area."""
    return rdMolDescriptors.CalcTPSA(value.to_mol())


def mol_qed(value: MolValue) -> float:
    """Quantitative estimate of drug-likeness."""
    return QED.qed(value.to_mol())


def mol_logp(value: MolValue) -> float:
    return Crippen.MolLogP(value.to_mol())


def mol_hbd(value: MolValue) -> int:
    return rdMolDescriptors.CalcNumHBD(value.to_mol())


def mol_hba(value: MolValue) -> int:
    return rdMolDescriptors.CalcNumHBA(value.to_mol())


def mol_num_rotatable_bonds(value: MolValue) -> int:
    return rdMolDescriptors.CalcNumRotatableBonds(value.to_mol())


def mol_formula(value: MolValue) -> str:
    return rdMolDescriptors.CalcMolFormula(value.to_mol())


def mol_numatoms(value: MolValue, include_implicit_hs: bool = False) -> int:
    """Atom count, optionally adding implicit hydrogens."""
    mol = value.to_mol()
    count = mol.GetNumAtoms()
    if include_implicit_hs:
        count += sum(a.GetTotalNumHs() for a in mol.GetAtoms())
    return count


def mol_numheavyatoms(value: MolValue) -> int:
    return value.to_mol().GetNumHeavyAtoms()


def mol_numheteroatoms(value: MolValue) -> int:
    return rdMolDescriptors.CalcNumHeteroatoms(value.to_mol())


def mol_numrings(value: MolValue) -> int:
    return rdMolDescriptors.CalcNumRings(value.to_mol())


def mol_numaromaticrings(value: MolValue) -> int:
    return rdMolDescriptors.CalcNumAromaticRings(value.to_mol())


def mol_numaliphaticrings(value: MolValue) -> int:
    return rdMolDescriptors.CalcNumAliphaticRings(value.to_mol())


def mol_fractioncsp3(value: MolValue) -> float:
    return rdMolDescriptors.CalcFractionCSP3(value.to_mol())


DESCRIPTORS = {
    'amw': mol_amw,
    'exactmw': mol_exactmw,
    'tpsa': mol_tpsa,
    'qed': mol_qed,
    'logp': mol_logp,
    'hbd': mol_hbd,
    'hba': mol_hba,
    'num_rotatable_bonds': mol_num_rotatable_bonds,
    'formula': mol_formula,
    'numatoms': mol_numatoms,
    'numheavyatoms': mol_numheavyatoms,
    'numheteroatoms': mol_numheteroatoms,
    'numrings': mol_numrings,
    'numaromaticrings': mol_numaromaticrings,
    'numaliphaticrings': mol_numaliphaticrings,
    'fractioncsp3': mol_fractioncsp3,
}
