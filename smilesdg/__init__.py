"""
smilesdg - SMILES parsing and generation with 2D structure diagrams.

Parses SMILES, CXSMILES and reaction SMILES into a molecular graph, writes
graphs back to SMILES, and lays them out in 2D for depiction.

    >>> from smilesdg import parse, to_smiles
    >>> mol = parse("CC(=O)Oc1ccccc1C(=O)O aspirin")
    >>> mol.name, mol.has_coordinates
    ('aspirin', True)
    >>> to_smiles(mol)
    'CC(=O)Oc1ccccc1C(=O)O'

Submodules:
    smilesdg.layout      - Structure diagram generator
    smilesdg.rings       - Ring detection (SSSR-like, simple cycles)
    smilesdg.transform   - Aromaticity, hydrogens, wedges
    smilesdg.io          - SMILES files
    smilesdg.identifiers - SMILES/InChI identifier bundle
"""

__version__ = "0.1.0"

# Core types
from smilesdg.types import Atom, Bond, BoundingBox, Molecule

# Parsing and writing
from smilesdg.flavor import SmiFlavor
from smilesdg.parser import parse, parse_reaction, SmilesParser
from smilesdg.reaction import Reaction, ReactionSide
from smilesdg.cxsmiles import CxSmilesState
from smilesdg.writer import to_smiles, SmilesGenerator

# Layout
from smilesdg.layout import LayoutConfig, StructureDiagramGenerator, generate_coordinates

# Exceptions
from smilesdg.exceptions import (
    ChemError,
    EmptyInputError,
    UnsupportedError,
    ParseError,
    RingError,
    AromaticityError,
    CxSmilesError,
    ReactionSyntaxError,
)

# Element data
from smilesdg.elements import Element, BondOrder, BondStereo, Chirality, ORGANIC_SUBSET, AROMATIC_SUBSET

# Identifiers
from smilesdg.identifiers import MoleculeIdentifiers, compute_identifiers

# Submodules
from smilesdg import io, layout, rings, transform

__all__ = [
    # Types
    "Atom", "Bond", "BoundingBox", "Molecule",
    # Parsing
    "SmiFlavor", "parse", "parse_reaction", "SmilesParser",
    "Reaction", "ReactionSide", "CxSmilesState",
    # Writing
    "to_smiles", "SmilesGenerator",
    # Layout
    "LayoutConfig", "StructureDiagramGenerator", "generate_coordinates",
    # Exceptions
    "ChemError", "EmptyInputError", "UnsupportedError", "ParseError",
    "RingError", "AromaticityError", "CxSmilesError", "ReactionSyntaxError",
    # Elements
    "Element", "BondOrder", "BondStereo", "Chirality", "ORGANIC_SUBSET", "AROMATIC_SUBSET",
    # Identifiers
    "MoleculeIdentifiers", "compute_identifiers",
    # Submodules
    "io", "layout", "rings", "transform",
]
