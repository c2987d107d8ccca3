"""Test configuration and fixtures for smilesdg tests."""

from __future__ import annotations

import math
from collections import Counter
from itertools import combinations

import pytest

from smilesdg import Molecule, SmilesParser, parse


def rdkit_heavy_atom_count(smiles: str) -> int:
    """Get RDKit's heavy atom count for comparison.

    Args:
        smiles: Input SMILES string.

    Returns:
        Number of heavy atoms RDKit reads from the SMILES.
    """
    Chem = pytest.importorskip("rdkit.Chem")
    mol = Chem.MolFromSmiles(smiles)
    if mol is None:
        raise ValueError(f"RDKit could not parse: {smiles}")
    return mol.GetNumHeavyAtoms()


def element_multiset(mol: Molecule) -> Counter:
    """Element symbols of a molecule with their counts."""
    return Counter(a.symbol for a in mol.atoms)


def min_nonbonded_distance(mol: Molecule) -> float:
    """Smallest distance between two atoms that share no bond."""
    bonded = {frozenset((b.atom1_id, b.atom2_id)) for b in mol.bonds}
    return min(
        math.dist(a.position, b.position)
        for a, b in combinations(mol.atoms, 2)
        if frozenset((a.id, b.id)) not in bonded
    )


@pytest.fixture
def parser() -> SmilesParser:
    """Default-flavor parser that skips the layout step."""
    return SmilesParser(generate_coordinates=False)


@pytest.fixture
def simple_smiles() -> list[str]:
    """Basic valid SMILES strings for smoke testing."""
    return [
        "C",
        "CC",
        "CCC",
        "CCCC",
        "CCO",
        "C=C",
        "C#C",
        "C=O",
        "C#N",
    ]


@pytest.fixture
def aromatic_smiles() -> list[str]:
    """Aromatic SMILES strings."""
    return [
        "c1ccccc1",
        "c1cnccc1",
        "c1ccncc1",
        "n1ccccc1",
        "c1ccc2ccccc2c1",
        "c1ccc[nH]1",
        "c1ccoc1",
        "c1ccsc1",
    ]


@pytest.fixture
def ring_smiles() -> list[str]:
    """SMILES with ring closures."""
    return [
        "C1CC1",
        "C1CCC1",
        "C1CCCC1",
        "C1CCCCC1",
        "C1CC2CCCCC2C1",
        "C12CC1CC2",
        "C1CC2CCC1C2",
    ]


@pytest.fixture
def charged_smiles() -> list[str]:
    """SMILES with formal charges."""
    return [
        "[NH4+]",
        "[OH-]",
        "[O-]C=O",
        "C[N+](C)(C)C",
        "[Fe+2]",
        "[Fe+++]",
    ]


@pytest.fixture
def chiral_smiles() -> list[str]:
    """SMILES with tetrahedral stereocenters."""
    return [
        "C[C@H](N)O",
        "C[C@@H](N)O",
        "N[C@@H](C)C(=O)O",
        "C[C@@H]1CCCCO1",
    ]


@pytest.fixture
def drug_smiles() -> list[str]:
    """Drug-like molecules used as layout and writer smoke tests."""
    return [
        "CC(=O)Oc1ccccc1C(=O)O",
        "CN1C=NC2=C1C(=O)N(C(=O)N2C)C",
        "CC(C)Cc1ccc(cc1)C(C)C(=O)O",
        "CC(=O)Nc1ccc(O)cc1",
        "c1ccc2c(c1)ccc1ccccc12",
    ]


@pytest.fixture
def salt_smiles() -> list[str]:
    """Multi-component SMILES."""
    return [
        "[Na+].[Cl-]",
        "[Na+].[OH-]",
        "CC(=O)[O-].[Na+]",
        "C.C.C",
    ]
