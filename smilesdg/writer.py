"""
SMILES string generation.

The generator writes each connected component by depth-first traversal
from its lowest atom id, visiting neighbors in ascending id order. The
output is deterministic for a given molecule but not canonical: two
different atom numberings of the same structure give different strings.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Final

from smilesdg.cxsmiles import format_atom_labels
from smilesdg.elements import BRACKET_H, BondOrder, BondStereo, Chirality, ORGANIC_SUBSET, canonical_symbol, is_element_symbol
from smilesdg.flavor import SmiFlavor

if TYPE_CHECKING:
    from smilesdg.types import Atom, Bond, Molecule

logger = logging.getLogger(__name__)


# Elements with a lowercase aromatic spelling, and those writable without brackets
_AROMATIC_WRITABLE: Final[frozenset[str]] = frozenset({"B", "C", "N", "O", "P", "S", "Se", "As"})
_AROMATIC_BARE: Final[frozenset[str]] = frozenset({"B", "C", "N", "O", "P", "S"})

_MAX_RING_DIGIT: Final[int] = 999

_FLIPPED: Final[dict[BondStereo, BondStereo]] = {
    BondStereo.UP: BondStereo.DOWN,
    BondStereo.DOWN: BondStereo.UP,
}

_INVERTED: Final[dict[Chirality, Chirality]] = {
    Chirality.CLOCKWISE: Chirality.ANTICLOCKWISE,
    Chirality.ANTICLOCKWISE: Chirality.CLOCKWISE,
}


def _ring_number_to_smiles(digit: int) -> str:
    if digit < 10:
        return str(digit)
    if digit < 100:
        return f"%{digit}"
    return f"%({digit})"


def _charge_to_smiles(charge: int) -> str:
    sign = "+" if charge > 0 else "-"
    magnitude = abs(charge)
    if magnitude == 1:
        return sign
    if magnitude <= 3:
        return sign * magnitude
    return f"{sign}{magnitude}"


class SmilesGenerator:
    """Convert Molecule objects to SMILES strings.

    The traversal algorithm:
    1. Components in order of their lowest atom id, joined by '.'
    2. DFS from the component's lowest atom id over ascending neighbor ids
    3. Every child but the last is written as a branch
    4. Non-tree bonds become ring closures; a digit is opened at the end
       written first and the lowest free digit is reused

    Args:
        flavor: Output options. Aromatic atoms are lowercase only with
            USE_AROMATIC_SYMBOLS; isotopes, chirality and directional bonds
            need ISOMERIC; CXSMILES appends a label block for atoms whose
            symbol is not an element.

    Example:
        >>> from smilesdg import parse
        >>> SmilesGenerator().create(parse("OCC", generate_coordinates=False))
        'OCC'
    """

    def __init__(self, flavor: SmiFlavor = SmiFlavor.DEFAULT) -> None:
        self.flavor = flavor

    @property
    def _isomeric(self) -> bool:
        return bool(self.flavor & SmiFlavor.ISOMERIC)

    @property
    def _aromatic_symbols(self) -> bool:
        return bool(self.flavor & SmiFlavor.USE_AROMATIC_SYMBOLS)

    def create(self, mol: Molecule) -> str:
        """Generate a SMILES string for a molecule.

        Returns:
            SMILES text, or an empty string for an empty molecule.
        """
        if not mol.atoms:
            return ""

        self._mol = mol
        self._atoms = {a.id: a for a in mol.atoms}
        self._adjacency = mol.adjacency()
        self._bonds = {}
        for bond in mol.bonds:
            self._bonds.setdefault((bond.atom1_id, bond.atom2_id), bond)
            self._bonds.setdefault((bond.atom2_id, bond.atom1_id), bond)
        self._either_atoms = {
            atom_id
            for b in mol.bonds
            if b.order == BondOrder.DOUBLE and b.stereo == BondStereo.EITHER
            for atom_id in (b.atom1_id, b.atom2_id)
        }
        self._labels: list[str | None] = []

        parts = [self._write_component(comp) for comp in mol.connected_components()]
        smiles = ".".join(parts)

        if self.flavor & SmiFlavor.CXSMILES and any(self._labels):
            smiles = f"{smiles} |{format_atom_labels(self._labels)}|"
        logger.debug("Generated %r for %s", smiles, mol.name)
        return smiles

    def _write_component(self, comp: list[int]) -> str:
        """Write SMILES for a single connected component."""
        start = comp[0]

        # Phase 1: DFS to separate tree bonds from ring closures
        WHITE, GREY, BLACK = 0, 1, 2
        colors = {a: WHITE for a in comp}
        children: dict[int, list[int]] = {a: [] for a in comp}
        closures: dict[int, list[int]] = {a: [] for a in comp}

        def dfs_find_cycles(atom_id: int, parent: int | None) -> None:
            colors[atom_id] = GREY
            for nbr in self._adjacency[atom_id]:
                if nbr == parent:
                    continue
                if colors[nbr] == WHITE:
                    children[atom_id].append(nbr)
                    dfs_find_cycles(nbr, atom_id)
                elif colors[nbr] == GREY:
                    closures[nbr].append(atom_id)
                    closures[atom_id].append(nbr)
            colors[atom_id] = BLACK

        dfs_find_cycles(start, None)

        # Phase 2: build the string
        open_digits: dict[tuple[int, int], int] = {}
        available: list[int] = list(range(1, _MAX_RING_DIGIT + 1))
        written: set[int] = set()
        out: list[str] = []

        def dfs_build(atom_id: int, parent: int | None) -> None:
            written.add(atom_id)
            closing = [n for n in closures[atom_id] if n in written]
            opening = [n for n in closures[atom_id] if n not in written]

            atom = self._atoms[atom_id]
            order = [] if parent is None else [parent]
            if atom.explicit_hydrogens:
                order.append(BRACKET_H)
            order.extend(sorted(closing) + sorted(opening) + children[atom_id])
            out.append(self._atom_to_smiles(atom, order))

            released: list[int] = []
            for nbr in sorted(closing):
                digit = open_digits.pop((nbr, atom_id))
                out.append(self._bond_to_smiles(atom_id, nbr))
                out.append(_ring_number_to_smiles(digit))
                released.append(digit)
            for nbr in sorted(opening):
                digit = available.pop(0)
                open_digits[(atom_id, nbr)] = digit
                out.append(_ring_number_to_smiles(digit))
            if released:
                available.extend(released)
                available.sort()

            kids = children[atom_id]
            for i, child in enumerate(kids):
                branch = i + 1 < len(kids)
                if branch:
                    out.append("(")
                out.append(self._bond_to_smiles(atom_id, child))
                dfs_build(child, atom_id)
                if branch:
                    out.append(")")

        dfs_build(start, None)
        return "".join(out)

    def _atom_to_smiles(self, atom: Atom, neighbor_order: list[int] | None = None) -> str:
        """Convert an atom to its SMILES token.

        Args:
            atom: Atom to write.
            neighbor_order: Neighbor ids in the order they appear around the
                atom in the output, with 0 for a written hydrogen. Used to keep
                the chirality tag valid when the order differs from the one
                the atom was read with.
        """
        symbol = canonical_symbol(atom.symbol)
        if symbol != "*" and not is_element_symbol(symbol):
            # Pseudo atoms and labels are written as wildcards
            self._labels.append(atom.symbol)
            symbol = "*"
        else:
            self._labels.append(None)

        aromatic = self._aromatic_symbols and atom.is_aromatic and symbol in _AROMATIC_WRITABLE
        isotope = atom.isotope if self._isomeric else None
        chirality = self._written_chirality(atom, neighbor_order) if self._isomeric else Chirality.NONE

        needs_bracket = (
            atom.charge != 0
            or atom.explicit_hydrogens is not None
            or atom.atom_class is not None
            or isotope is not None
            or chirality != Chirality.NONE
            or (symbol != "*" and symbol not in (_AROMATIC_BARE if aromatic else ORGANIC_SUBSET))
        )

        text = symbol.lower() if aromatic else symbol
        if not needs_bracket:
            return text

        parts = ["["]
        if isotope is not None:
            parts.append(str(isotope))
        parts.append(text)
        if chirality == Chirality.ANTICLOCKWISE:
            parts.append("@")
        elif chirality == Chirality.CLOCKWISE:
            parts.append("@@")
        if atom.explicit_hydrogens is not None:
            h = atom.explicit_hydrogens
            parts.append("H" if h == 1 else f"H{h}")
        if atom.charge:
            parts.append(_charge_to_smiles(atom.charge))
        if atom.atom_class is not None:
            parts.append(f":{atom.atom_class}")
        parts.append("]")
        return "".join(parts)

    def _written_chirality(self, atom: Atom, neighbor_order: list[int] | None) -> Chirality:
        """Chirality tag for the given output neighbor order.

        The tag is inverted when the output order is an odd permutation of
        ``atom.chiral_neighbors``. Atoms without a recorded order, or whose
        neighbors changed since, keep their tag.
        """
        reference = atom.chiral_neighbors
        if (
            atom.chirality not in _INVERTED
            or reference is None
            or neighbor_order is None
            or sorted(reference) != sorted(neighbor_order)
        ):
            return atom.chirality

        rank = {nbr: i for i, nbr in enumerate(reference)}
        perm = [rank[nbr] for nbr in neighbor_order]
        swaps = sum(
            1 for i in range(len(perm)) for j in range(i + 1, len(perm)) if perm[i] > perm[j]
        )
        return _INVERTED[atom.chirality] if swaps % 2 else atom.chirality

    def _bond_to_smiles(self, from_id: int, to_id: int) -> str:
        """Bond symbol as written when going from one atom to the other."""
        bond = self._bonds[(from_id, to_id)]
        left = self._atoms[bond.atom1_id].is_aromatic
        right = self._atoms[bond.atom2_id].is_aromatic

        if bond.order == BondOrder.DOUBLE:
            return "="
        if bond.order == BondOrder.TRIPLE:
            return "#"
        if bond.order == BondOrder.AROMATIC:
            return "" if self._aromatic_symbols and left and right else ":"

        directional = self._directional_symbol(bond, from_id)
        if directional:
            return directional
        if self._aromatic_symbols and left and right:
            return "-"
        return ""

    def _directional_symbol(self, bond: Bond, from_id: int) -> str:
        """'/' or '\\' for a directional bond next to a stereo double bond."""
        if not self._isomeric or bond.stereo not in _FLIPPED:
            return ""
        if bond.atom1_id not in self._either_atoms and bond.atom2_id not in self._either_atoms:
            return ""
        stereo = bond.stereo if from_id == bond.atom1_id else _FLIPPED[bond.stereo]
        return "/" if stereo == BondStereo.UP else "\\"


def to_smiles(mol: Molecule, flavor: SmiFlavor = SmiFlavor.DEFAULT) -> str:
    """Generate a SMILES string for a molecule.

    Example:
        >>> from smilesdg import parse
        >>> to_smiles(parse("C1=CC=CC=C1", generate_coordinates=False))
        'C1=CC=CC=C1'
    """
    return SmilesGenerator(flavor).create(mol)
