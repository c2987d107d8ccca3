"""
Molecule identifier bundle.

Computes the SMILES, isomeric SMILES, InChI and InChIKey of a molecule in
one call. InChI generation is delegated to a provider callable that maps
isomeric SMILES to ``(inchi, inchi_key)``; the default provider uses RDKit.
A failing provider never aborts the bundle: both InChI fields are set to
an ``"Unavailable (...)"`` text and the SMILES fields are still filled.

Example:
    >>> from smilesdg import parse
    >>> def no_inchi(smiles):
    ...     raise RuntimeError("offline")
    >>> ids = compute_identifiers(parse("OCC", generate_coordinates=False), no_inchi)
    >>> ids.smiles, ids.inchi
    ('OCC', 'Unavailable (offline)')
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Final

from smilesdg.flavor import SmiFlavor
from smilesdg.writer import to_smiles

if TYPE_CHECKING:
    from smilesdg.types import Molecule

logger = logging.getLogger(__name__)

InChIProvider = Callable[[str], tuple[str, str]]

SMILES_FLAVOR: Final[SmiFlavor] = SmiFlavor.USE_AROMATIC_SYMBOLS | SmiFlavor.STRICT
ISOMERIC_FLAVOR: Final[SmiFlavor] = SmiFlavor.USE_AROMATIC_SYMBOLS | SmiFlavor.ISOMERIC | SmiFlavor.STRICT


@dataclass(frozen=True, slots=True)
class MoleculeIdentifiers:
    """Text identifiers of one molecule."""

    smiles: str
    isomeric_smiles: str
    inchi: str
    inchi_key: str


def unavailable_text(message: str) -> str:
    """Sentinel for an identifier that could not be computed.

    Example:
        >>> unavailable_text("  ")
        'Unavailable'
        >>> unavailable_text("bad valence")
        'Unavailable (bad valence)'
    """
    message = message.strip()
    return f"Unavailable ({message})" if message else "Unavailable"


def rdkit_inchi(smiles: str) -> tuple[str, str]:
    """InChI and InChIKey computed by RDKit.

    Raises:
        ModuleNotFoundError: If RDKit is not installed.
        ValueError: If RDKit rejects the SMILES or produces no InChI.
    """
    from rdkit import Chem

    rdmol = Chem.MolFromSmiles(smiles)
    if rdmol is None:
        raise ValueError(f"RDKit could not read {smiles!r}")
    inchi = Chem.MolToInchi(rdmol)
    if not inchi:
        raise ValueError("InChI generation failed")
    return inchi, Chem.InchiToInchiKey(inchi)


def compute_identifiers(
    mol: Molecule,
    inchi_provider: InChIProvider | None = None,
) -> MoleculeIdentifiers:
    """Compute the identifier bundle of a molecule.

    Args:
        mol: Molecule to describe.
        inchi_provider: Maps isomeric SMILES to ``(inchi, inchi_key)``;
            defaults to :func:`rdkit_inchi`.

    Returns:
        MoleculeIdentifiers; InChI fields hold ``unavailable_text`` when
        the provider fails for any reason.
    """
    smiles = to_smiles(mol, SMILES_FLAVOR)
    isomeric = to_smiles(mol, ISOMERIC_FLAVOR)
    provider = inchi_provider or rdkit_inchi

    try:
        inchi, inchi_key = provider(isomeric)
    except Exception as e:
        logger.debug("InChI unavailable for %r: %s", isomeric, e)
        inchi = inchi_key = unavailable_text(str(e))

    return MoleculeIdentifiers(smiles, isomeric, inchi, inchi_key)
