"""
Aromatic ring classification and validation.

Two concerns live here:

- *Display* aromaticity: which rings a depiction should draw with aromatic
  styling. No electron counting is done; a ring qualifies by its flags or by
  a strictly alternating Kekulé bond pattern.
- *Validation* of lowercase SMILES input: aromatic atoms must have a
  plausible degree, and five-membered aromatic rings containing nitrogen
  must say where the pyrrole-type lone pair comes from (``[nH]``, a
  substituent on the nitrogen, a charged atom or a chalcogen).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from smilesdg.elements import BondOrder, canonical_symbol
from smilesdg.exceptions import AromaticityError
from smilesdg.rings.detection import cycle_edges, simple_cycles

if TYPE_CHECKING:
    from smilesdg.types import Bond, Molecule


# Ring sizes drawn with aromatic styling
DISPLAY_RING_SIZES: Final[range] = range(5, 8)

# Elements accepted in lowercase form, grouped by their degree rule
_TRIVALENT: Final[frozenset[str]] = frozenset({"B", "C"})
_HYPERVALENT_CAPABLE: Final[frozenset[str]] = frozenset({"P", "S", "Se", "As"})

# Atoms whose lone pair can sit in a five-membered aromatic ring
_ANIONIC_DONORS: Final[frozenset[str]] = frozenset({"N", "O", "S", "Se", "As", "P"})
_CHALCOGEN_DONORS: Final[frozenset[str]] = frozenset({"O", "S", "Se", "As"})


def _cycle_bonds(mol: Molecule, ring: list[int]) -> list[Bond]:
    bonds = []
    for a, b in cycle_edges(ring):
        bond = mol.bond_between(a, b)
        if bond is not None:
            bonds.append(bond)
    return bonds


def _is_alternating(orders: list[BondOrder]) -> bool:
    """True for an even-length single/double alternation around a cycle."""
    if not orders or len(orders) % 2:
        return False
    if any(o not in (BondOrder.SINGLE, BondOrder.DOUBLE) for o in orders):
        return False
    return all(orders[i] != orders[i - 1] for i in range(len(orders)))


def aromatic_display_rings(mol: Molecule) -> list[list[int]]:
    """Rings that should be rendered with aromatic styling.

    A simple cycle of 5 to 7 atoms qualifies when all its atoms are flagged
    aromatic, all its bonds are aromatic, or its bonds strictly alternate
    single/double (a Kekulé form, which needs an even ring size).

    Args:
        mol: Molecule to classify.

    Returns:
        Qualifying rings as canonical atom id lists.

    Example:
        >>> from smilesdg import parse
        >>> mol = parse("C1=CC=CC=C1", generate_coordinates=False)
        >>> aromatic_display_rings(mol)
        [[1, 2, 3, 4, 5, 6]]
    """
    aromatic_atoms = {a.id for a in mol.atoms if a.is_aromatic}
    out: list[list[int]] = []

    for ring in simple_cycles(mol, max_size=8):
        if len(ring) not in DISPLAY_RING_SIZES:
            continue
        bonds = _cycle_bonds(mol, ring)
        if len(bonds) != len(ring):
            continue
        if all(a in aromatic_atoms for a in ring):
            out.append(ring)
        elif all(b.order == BondOrder.AROMATIC for b in bonds):
            out.append(ring)
        elif _is_alternating([b.order for b in bonds]):
            out.append(ring)

    return out


def aromatic_display_bond_ids(mol: Molecule) -> set[int]:
    """Ids of aromatic bonds plus every bond of an aromatic display ring."""
    ids = {b.id for b in mol.bonds if b.order == BondOrder.AROMATIC}
    for ring in aromatic_display_rings(mol):
        ids.update(b.id for b in _cycle_bonds(mol, ring))
    return ids


def _check_aromatic_atom(mol: Molecule, atom_id: int) -> None:
    atom = mol.atom(atom_id)
    if atom is None:
        raise AromaticityError(f"No atom with id {atom_id}")
    bonds = mol.bonds_for_atom(atom_id)
    degree = len(bonds)
    symbol = canonical_symbol(atom.symbol)

    if any(b.order == BondOrder.TRIPLE for b in bonds):
        raise AromaticityError(f"Invalid aromatic atom '{atom.symbol}' with triple bond")

    if symbol == "*":
        return
    if symbol in _TRIVALENT:
        if degree > 3:
            raise AromaticityError(f"Aromatic atom '{atom.symbol}' exceeds valence-like degree ({degree})")
    elif symbol == "O":
        if degree > 2 and atom.charge <= 0:
            raise AromaticityError(
                f"Aromatic atom '{atom.symbol}' has invalid degree {degree} without positive charge"
            )
    elif symbol == "N":
        pass
    elif symbol in _HYPERVALENT_CAPABLE:
        if degree > 3 and atom.charge <= 0:
            raise AromaticityError(f"Aromatic atom '{atom.symbol}' has unsupported high degree ({degree})")
    else:
        raise AromaticityError(f"Unsupported aromatic atom '{atom.symbol}'")


def _is_pyrrole_type_donor(mol: Molecule, atom_id: int) -> bool:
    atom = mol.atom(atom_id)
    if atom is None:
        raise AromaticityError(f"No atom with id {atom_id}")
    symbol = canonical_symbol(atom.symbol)

    if atom.explicit_hydrogens is not None and atom.explicit_hydrogens > 0:
        return True
    if atom.charge < 0 and symbol in _ANIONIC_DONORS:
        return True
    if symbol in _CHALCOGEN_DONORS:
        return True
    # Substituted ring nitrogen, e.g. n1(C)cccc1
    return symbol == "N" and mol.degree(atom_id) > 2


def validate_aromatic_constraints(mol: Molecule) -> None:
    """Reject aromatic atoms and rings that cannot be aromatic as written.

    Checks, in order:

    1. Every aromatic atom: no triple bonds; B/C at most 3 neighbors;
       O at most 2 unless positively charged; P/S/Se/As at most 3 unless
       positively charged; wildcard atoms pass; other elements fail.
    2. Every five-membered all-aromatic ring that contains nitrogen must
       hold a lone-pair donor: an atom with explicit hydrogens, an anionic
       N/O/S/Se/As/P, a neutral chalcogen (O/S/Se/As) or a nitrogen with
       three neighbors.

    Args:
        mol: Freshly parsed molecule.

    Raises:
        AromaticityError: On the first violation.
    """
    aromatic = {a.id for a in mol.atoms if a.is_aromatic}
    if not aromatic:
        return

    for atom in mol.atoms:
        if atom.is_aromatic:
            _check_aromatic_atom(mol, atom.id)

    for ring in simple_cycles(mol, max_size=5):
        if len(ring) != 5 or not all(a in aromatic for a in ring):
            continue
        symbols = [canonical_symbol(mol.atom(a).symbol) for a in ring]
        if "N" not in symbols:
            continue
        if not any(_is_pyrrole_type_donor(mol, a) for a in ring):
            raise AromaticityError(
                f"Aromatic five-membered N-heterocycle (atoms {ring}) lacks an [nH]-like donor"
            )
