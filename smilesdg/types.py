"""
Core molecular data types.

This module defines the molecular graph: Atom, Bond and Molecule. Atoms and
bonds live in flat ordered lists and refer to each other by integer id only;
there are no atom-to-bond back references. Connectivity queries scan the bond
list or build an id-keyed map on demand, which is fine for the tens to low
hundreds of atoms handled here.

Molecules are value types: ``Molecule.copy()`` duplicates every atom and bond
so two instances never share mutable state.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Iterator

from smilesdg.elements import (
    BondOrder,
    BondStereo,
    Chirality,
    get_atomic_number,
)

if TYPE_CHECKING:
    from typing import Self


# Position shared by every atom of a molecule that was never laid out
ORIGIN: tuple[float, float] = (0.0, 0.0)


@dataclass(slots=True)
class Bond:
    """Represents a chemical bond between two atoms.

    Attributes:
        id: Stable bond id, unique within the molecule.
        atom1_id: Id of the first atom.
        atom2_id: Id of the second atom. The pair is undirected chemically,
            but the order decides where a wedge's narrow end sits.
        order: Bond order.
        stereo: Stereo marker (wedge/hash/either).
    """

    id: int
    atom1_id: int
    atom2_id: int
    order: BondOrder = BondOrder.SINGLE
    stereo: BondStereo = BondStereo.NONE

    def other_atom(self, atom_id: int) -> int:
        """Get the id of the atom on the other end of this bond.

        Raises:
            ValueError: If atom_id is not part of this bond.
        """
        if atom_id == self.atom1_id:
            return self.atom2_id
        if atom_id == self.atom2_id:
            return self.atom1_id
        raise ValueError(f"Atom {atom_id} not in bond {self.id}")

    @property
    def is_aromatic(self) -> bool:
        return self.order == BondOrder.AROMATIC

    def __contains__(self, atom_id: int) -> bool:
        """Check if atom is part of this bond."""
        return atom_id in (self.atom1_id, self.atom2_id)


@dataclass(slots=True)
class Atom:
    """Represents an atom in a molecule.

    Attributes:
        id: Stable atom id, unique within the molecule and never reused.
        symbol: Element symbol ("C", "Cl"), ``*`` for a wildcard, or a free
            text label applied from a CXSMILES layer (e.g. "R1").
        position: 2D coordinate. ``(0, 0)`` on every atom means the molecule
            has not been laid out yet.
        charge: Formal charge.
        isotope: Mass number, or None for natural abundance.
        is_aromatic: Whether this atom is aromatic.
        chirality: Tetrahedral chirality tag.
        explicit_hydrogens: Bracket hydrogen count. None means "infer from
            valence", which is different from an explicit zero.
        atom_class: Atom class / map number from ``[C:1]``.
        chiral_neighbors: Neighbor ids in the order the chirality tag refers
            to, with 0 for the bracket hydrogen. None when the tag was set
            directly.

        # Bracket query decorators, recorded but not interpreted:
        degree_query: Required degree (D).
        connectivity_query: Required total connectivity (X).
        valence_query: Required valence (v).
        ring_count: Required ring membership (R).
        ring_size: Required ring size (r).
        unsaturation_query: Required unsaturation (u).
    """

    id: int
    symbol: str
    position: tuple[float, float] = ORIGIN
    charge: int = 0
    isotope: int | None = None
    is_aromatic: bool = False
    chirality: Chirality = Chirality.NONE
    explicit_hydrogens: int | None = None
    atom_class: int | None = None
    chiral_neighbors: tuple[int, ...] | None = None

    degree_query: int | None = None
    connectivity_query: int | None = None
    valence_query: int | None = None
    ring_count: int | None = None
    ring_size: int | None = None
    unsaturation_query: int | None = None

    @property
    def atomic_number(self) -> int:
        """Atomic number, 0 for wildcards and labels."""
        return get_atomic_number(self.symbol)

    @property
    def label(self) -> str:
        """Symbol to draw: isotope mass prefix plus element symbol."""
        if self.isotope is not None:
            return f"{self.isotope}{self.symbol}"
        return self.symbol

    @property
    def is_chiral(self) -> bool:
        return self.chirality != Chirality.NONE


@dataclass(frozen=True, slots=True)
class BoundingBox:
    """Axis-aligned box around atom positions."""

    min_x: float
    min_y: float
    width: float
    height: float

    @property
    def max_x(self) -> float:
        return self.min_x + self.width

    @property
    def max_y(self) -> float:
        return self.min_y + self.height

    @property
    def mid_y(self) -> float:
        return self.min_y + self.height / 2.0


@dataclass
class Molecule:
    """Represents a molecular structure.

    A molecule consists of atoms connected by bonds, both kept in creation
    order and addressed by id.

    Attributes:
        atoms: List of atoms in the molecule.
        bonds: List of bonds in the molecule.
        name: Molecule name/title.
        racemic: Set when a CXSMILES racemic layer selected this molecule.

    Example:
        >>> mol = Molecule()
        >>> c1 = mol.add_atom("C")
        >>> c2 = mol.add_atom("C")
        >>> mol.add_bond(c1, c2)
        1
        >>> len(mol)
        2
    """

    atoms: list[Atom] = field(default_factory=list)
    bonds: list[Bond] = field(default_factory=list)
    name: str = "Untitled"
    racemic: bool = False

    def __len__(self) -> int:
        """Return number of atoms."""
        return len(self.atoms)

    def __iter__(self) -> Iterator[Atom]:
        """Iterate over atoms."""
        return iter(self.atoms)

    @property
    def num_atoms(self) -> int:
        return len(self.atoms)

    @property
    def num_bonds(self) -> int:
        return len(self.bonds)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def add_atom(
        self,
        symbol: str,
        *,
        atom_id: int | None = None,
        position: tuple[float, float] = ORIGIN,
        charge: int = 0,
        isotope: int | None = None,
        is_aromatic: bool = False,
        chirality: Chirality = Chirality.NONE,
        explicit_hydrogens: int | None = None,
        atom_class: int | None = None,
        chiral_neighbors: tuple[int, ...] | None = None,
        degree_query: int | None = None,
        connectivity_query: int | None = None,
        valence_query: int | None = None,
        ring_count: int | None = None,
        ring_size: int | None = None,
        unsaturation_query: int | None = None,
    ) -> int:
        """Add an atom to the molecule.

        Args:
            symbol: Element symbol or label.
            atom_id: Id to use; defaults to one past the largest id present.

        Returns:
            Id of the newly added atom.

        Raises:
            ValueError: If atom_id is already used.
        """
        if atom_id is None:
            atom_id = max((a.id for a in self.atoms), default=0) + 1
        elif self.atom(atom_id) is not None:
            raise ValueError(f"Duplicate atom id {atom_id}")

        self.atoms.append(Atom(
            id=atom_id,
            symbol=symbol,
            position=position,
            charge=charge,
            isotope=isotope,
            is_aromatic=is_aromatic,
            chirality=chirality,
            explicit_hydrogens=explicit_hydrogens,
            atom_class=atom_class,
            chiral_neighbors=chiral_neighbors,
            degree_query=degree_query,
            connectivity_query=connectivity_query,
            valence_query=valence_query,
            ring_count=ring_count,
            ring_size=ring_size,
            unsaturation_query=unsaturation_query,
        ))
        return atom_id

    def add_bond(
        self,
        atom1_id: int,
        atom2_id: int,
        *,
        order: BondOrder = BondOrder.SINGLE,
        stereo: BondStereo = BondStereo.NONE,
        bond_id: int | None = None,
    ) -> int:
        """Add a bond between two atoms.

        Returns:
            Id of the newly added bond.

        Raises:
            ValueError: For self loops.
            KeyError: If either atom id is not present.
        """
        if atom1_id == atom2_id:
            raise ValueError(f"Self-loop bond on atom {atom1_id}")
        ids = {a.id for a in self.atoms}
        for atom_id in (atom1_id, atom2_id):
            if atom_id not in ids:
                raise KeyError(f"No atom with id {atom_id}")

        if bond_id is None:
            bond_id = max((b.id for b in self.bonds), default=0) + 1
        self.bonds.append(Bond(
            id=bond_id,
            atom1_id=atom1_id,
            atom2_id=atom2_id,
            order=order,
            stereo=stereo,
        ))
        return bond_id

    def copy(self) -> "Self":
        """Create a deep copy of the molecule.

        Atom and bond fields are immutable values, so replacing each record
        is enough to detach the copy from the original.
        """
        return Molecule(
            atoms=[replace(a) for a in self.atoms],
            bonds=[replace(b) for b in self.bonds],
            name=self.name,
            racemic=self.racemic,
        )

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def atom(self, atom_id: int) -> Atom | None:
        """Get atom by id, or None."""
        for atom in self.atoms:
            if atom.id == atom_id:
                return atom
        return None

    def bond(self, bond_id: int) -> Bond | None:
        """Get bond by id, or None."""
        for bond in self.bonds:
            if bond.id == bond_id:
                return bond
        return None

    def bonds_for_atom(self, atom_id: int) -> list[Bond]:
        """All bonds incident to an atom, in bond order."""
        return [b for b in self.bonds if atom_id in b]

    def bond_between(self, atom1_id: int, atom2_id: int) -> Bond | None:
        """Find the bond between two atoms."""
        for bond in self.bonds:
            if (bond.atom1_id == atom1_id and bond.atom2_id == atom2_id) or (
                bond.atom1_id == atom2_id and bond.atom2_id == atom1_id
            ):
                return bond
        return None

    def neighbors(self, atom_id: int) -> list[int]:
        """Ids of atoms bonded to atom_id, in bond order."""
        out: list[int] = []
        for bond in self.bonds:
            if bond.atom1_id == atom_id:
                out.append(bond.atom2_id)
            elif bond.atom2_id == atom_id:
                out.append(bond.atom1_id)
        return out

    def degree(self, atom_id: int) -> int:
        """Number of bonds to an atom."""
        return sum(1 for b in self.bonds if atom_id in b)

    def adjacency(self) -> dict[int, list[int]]:
        """Id-keyed neighbor map with sorted, de-duplicated neighbor lists."""
        sets: dict[int, set[int]] = {a.id: set() for a in self.atoms}
        for bond in self.bonds:
            sets.setdefault(bond.atom1_id, set()).add(bond.atom2_id)
            sets.setdefault(bond.atom2_id, set()).add(bond.atom1_id)
        return {k: sorted(v) for k, v in sets.items()}

    def connected_components(self) -> list[list[int]]:
        """Find connected components.

        Returns:
            Components as sorted atom id lists, ordered by lowest id.
        """
        adjacency = self.adjacency()
        visited: set[int] = set()
        components: list[list[int]] = []

        for start in sorted(adjacency):
            if start in visited:
                continue
            component: list[int] = []
            stack = [start]
            visited.add(start)
            while stack:
                atom_id = stack.pop()
                component.append(atom_id)
                for neighbor in adjacency[atom_id]:
                    if neighbor not in visited:
                        visited.add(neighbor)
                        stack.append(neighbor)
            components.append(sorted(component))

        return components

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    @property
    def has_coordinates(self) -> bool:
        """False when every atom still sits at the origin sentinel."""
        return any(a.position != ORIGIN for a in self.atoms)

    def bounding_box(self) -> BoundingBox | None:
        """Box around all atom positions, None for an empty molecule.

        Width and height are clamped to a tiny positive value so a single
        atom or a straight chain still yields a usable box.
        """
        if not self.atoms:
            return None
        xs = [a.position[0] for a in self.atoms]
        ys = [a.position[1] for a in self.atoms]
        return BoundingBox(
            min_x=min(xs),
            min_y=min(ys),
            width=max(0.0001, max(xs) - min(xs)),
            height=max(0.0001, max(ys) - min(ys)),
        )

    def distance(self, atom1_id: int, atom2_id: int) -> float:
        """Euclidean distance between two atoms' positions."""
        a = self.atom(atom1_id)
        b = self.atom(atom2_id)
        if a is None or b is None:
            raise KeyError(f"No atom pair {atom1_id}, {atom2_id}")
        return math.dist(a.position, b.position)

    # ------------------------------------------------------------------
    # Chemistry queries (implemented in rings/ and transform/)
    # ------------------------------------------------------------------

    def simple_cycles(self, max_size: int = 8) -> list[list[int]]:
        """Bounded simple cycles as canonical atom id lists."""
        from smilesdg.rings.detection import simple_cycles
        return simple_cycles(self, max_size=max_size)

    def aromatic_display_rings(self) -> list[list[int]]:
        """Rings (size 5-7) to draw with aromatic styling."""
        from smilesdg.transform.aromaticity import aromatic_display_rings
        return aromatic_display_rings(self)

    def aromatic_display_bond_ids(self) -> set[int]:
        """Ids of bonds drawn as aromatic."""
        from smilesdg.transform.aromaticity import aromatic_display_bond_ids
        return aromatic_display_bond_ids(self)

    def implicit_hydrogen_count(self, atom_id: int) -> int:
        """Heuristic implicit hydrogen count for an atom."""
        from smilesdg.transform.hydrogen import implicit_hydrogen_count
        return implicit_hydrogen_count(self, atom_id)

    def assign_wedge_hash(self) -> None:
        """Mark one wedge/hash bond per chiral atom, in place."""
        from smilesdg.transform.stereo import assign_wedge_hash
        assign_wedge_hash(self)
