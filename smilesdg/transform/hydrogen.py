"""
Hydrogen counting and manipulation.

Implicit hydrogens are estimated from a small preferred-valence table; no
valence model beyond that is attempted. Explicit hydrogen atoms can be
materialized or folded back into their parents' counts.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from smilesdg.elements import BRACKET_H, BondOrder, canonical_symbol, preferred_valence

if TYPE_CHECKING:
    from smilesdg.types import Molecule


def _is_hydrogen(symbol: str) -> bool:
    return canonical_symbol(symbol) == "H"


def implicit_hydrogen_count(mol: Molecule, atom_id: int) -> int:
    """Estimate the implicit hydrogen count of an atom.

    Hydrogen atoms have none. An explicit bracket count wins. Otherwise the
    preferred valence minus the summed bond orders (aromatic bonds weigh
    1.5) is rounded and floored at zero.

    Args:
        mol: Molecule containing the atom.
        atom_id: Atom id.

    Returns:
        Implicit hydrogen count, 0 for unknown atom ids.

    Example:
        >>> from smilesdg import parse
        >>> mol = parse("CC=O", generate_coordinates=False)
        >>> [implicit_hydrogen_count(mol, a.id) for a in mol.atoms]
        [3, 1, 0]
    """
    atom = mol.atom(atom_id)
    if atom is None or _is_hydrogen(atom.symbol):
        return 0
    if atom.explicit_hydrogens is not None:
        return atom.explicit_hydrogens

    target = preferred_valence(atom.symbol, atom.charge, atom.is_aromatic)
    used = sum(b.order.valence_contribution for b in mol.bonds_for_atom(atom_id))
    return max(0, round(target - used))


def total_hydrogens(mol: Molecule, atom_id: int) -> int:
    """Implicit/bracket hydrogens plus attached hydrogen atoms."""
    attached = sum(
        1 for n in mol.neighbors(atom_id)
        if _is_hydrogen(mol.atom(n).symbol)
    )
    return implicit_hydrogen_count(mol, atom_id) + attached


def add_explicit_hydrogens(mol: Molecule) -> Molecule:
    """Add explicit hydrogen atoms to a molecule.

    Every heavy atom's implicit count becomes hydrogen atoms bonded to it;
    the atom's bracket count is set to zero so the hydrogens are not
    counted twice. New atoms are placed at the parent's position; run the
    layout afterwards if coordinates matter.

    Args:
        mol: Input molecule (not modified).

    Returns:
        New molecule with explicit hydrogens added.

    Example:
        >>> from smilesdg import parse
        >>> mol = parse("CCO", generate_coordinates=False)
        >>> add_explicit_hydrogens(mol).num_atoms
        9
    """
    counts = {a.id: implicit_hydrogen_count(mol, a.id) for a in mol.atoms}
    out = mol.copy()

    for atom in mol.atoms:
        n_h = counts[atom.id]
        if _is_hydrogen(atom.symbol):
            continue
        out.atom(atom.id).explicit_hydrogens = 0
        for _ in range(n_h):
            h_id = out.add_atom("H", position=atom.position)
            out.add_bond(atom.id, h_id, order=BondOrder.SINGLE)
        if n_h == 1 and atom.chiral_neighbors is not None:
            out.atom(atom.id).chiral_neighbors = tuple(
                h_id if nbr == BRACKET_H else nbr for nbr in atom.chiral_neighbors
            )

    return out


def remove_explicit_hydrogens(mol: Molecule, keep_isotopes: bool = False) -> Molecule:
    """Fold hydrogen atoms into their parents' hydrogen counts.

    Only hydrogens with exactly one bond, to a non-hydrogen atom, are
    removed. Remaining atoms and bonds keep their ids.

    Args:
        mol: Input molecule (not modified).
        keep_isotopes: Keep isotope-labelled hydrogens (deuterium, tritium).

    Returns:
        New molecule without the removed hydrogens.

    Example:
        >>> from smilesdg import parse
        >>> mol = parse("[H]OC([H])([H])[H]", generate_coordinates=False)
        >>> remove_explicit_hydrogens(mol).num_atoms
        2
    """
    removed: set[int] = set()
    added: dict[int, int] = {}

    for atom in mol.atoms:
        if not _is_hydrogen(atom.symbol):
            continue
        if keep_isotopes and atom.isotope is not None:
            continue
        bonds = mol.bonds_for_atom(atom.id)
        if len(bonds) != 1:
            continue
        parent_id = bonds[0].other_atom(atom.id)
        if _is_hydrogen(mol.atom(parent_id).symbol):
            continue
        removed.add(atom.id)
        added[parent_id] = added.get(parent_id, 0) + 1

    out = mol.copy()
    if not removed:
        return out

    for parent_id, n_h in added.items():
        parent = out.atom(parent_id)
        if parent.explicit_hydrogens is None:
            # Freeze the heuristic count of the parent before the bonds go away
            parent.explicit_hydrogens = implicit_hydrogen_count(mol, parent_id)
        parent.explicit_hydrogens += n_h
        if parent.explicit_hydrogens == 1 and parent.chiral_neighbors is not None:
            parent.chiral_neighbors = tuple(
                BRACKET_H if nbr in removed else nbr for nbr in parent.chiral_neighbors
            )

    out.atoms = [a for a in out.atoms if a.id not in removed]
    out.bonds = [
        b for b in out.bonds
        if b.atom1_id not in removed and b.atom2_id not in removed
    ]
    return out
