"""
Chemical elements and bond/atom enumerations.

This module provides the element lookup table, the small closed enumerations
used on atoms and bonds (bond order, bond stereo, tetrahedral chirality) and
the valence heuristics used for implicit hydrogen estimation.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import ClassVar, Final, FrozenSet


class BondOrder(IntEnum):
    """Bond order enumeration."""

    SINGLE = 1
    DOUBLE = 2
    TRIPLE = 3
    AROMATIC = 4

    @property
    def valence_contribution(self) -> float:
        """Weight of this bond in valence sums (aromatic counts as 1.5)."""
        return _VALENCE_CONTRIBUTION[self]

    def __str__(self) -> str:
        return self.name.lower()


_VALENCE_CONTRIBUTION: Final[dict[BondOrder, float]] = {
    BondOrder.SINGLE: 1.0,
    BondOrder.DOUBLE: 2.0,
    BondOrder.TRIPLE: 3.0,
    BondOrder.AROMATIC: 1.5,
}


class BondStereo(Enum):
    """Stereo marker on a bond.

    ``UP``/``DOWN`` have their narrow end at the bond's first atom; the
    ``*_REVERSED`` variants have it at the second atom. ``EITHER`` flags a
    bond (usually a double bond) carrying unresolved isomeric information.
    """

    NONE = "none"
    UP = "up"
    DOWN = "down"
    EITHER = "either"
    UP_REVERSED = "up_reversed"
    DOWN_REVERSED = "down_reversed"

    @classmethod
    def from_molfile(cls, code: int) -> BondStereo:
        """Map an MDL molfile bond stereo code to a marker."""
        if code == 1:
            return cls.UP
        if code == 4:
            return cls.EITHER
        if code == 6:
            return cls.DOWN
        return cls.NONE

    @property
    def is_directional(self) -> bool:
        """True for the up/down family of markers."""
        return self in (
            BondStereo.UP,
            BondStereo.DOWN,
            BondStereo.UP_REVERSED,
            BondStereo.DOWN_REVERSED,
        )


class Chirality(Enum):
    """Tetrahedral chirality tag."""

    NONE = "none"
    CLOCKWISE = "clockwise"
    ANTICLOCKWISE = "anticlockwise"


@dataclass(frozen=True, slots=True)
class Element:
    """Immutable element data.

    Attributes:
        atomic_number: Atomic number (proton count).
        symbol: Element symbol (e.g., "C", "Cl").
    """

    atomic_number: int
    symbol: str

    _by_symbol: ClassVar[dict[str, "Element"]] = {}
    _by_number: ClassVar[dict[int, "Element"]] = {}

    def __post_init__(self) -> None:
        Element._by_symbol[self.symbol] = self
        Element._by_number[self.atomic_number] = self

    @classmethod
    def from_symbol(cls, symbol: str) -> "Element | None":
        """Look up element by symbol, case-insensitively ("cl" finds Cl)."""
        if symbol in cls._by_symbol:
            return cls._by_symbol[symbol]
        return cls._by_symbol.get(symbol.capitalize())

    @classmethod
    def from_atomic_number(cls, num: int) -> "Element | None":
        """Look up element by atomic number."""
        return cls._by_number.get(num)


# Symbols in atomic number order, starting at hydrogen.
_SYMBOLS: Final[tuple[str, ...]] = tuple("""
    H He Li Be B C N O F Ne Na Mg Al Si P S Cl Ar K Ca
    Sc Ti V Cr Mn Fe Co Ni Cu Zn Ga Ge As Se Br Kr Rb Sr Y Zr
    Nb Mo Tc Ru Rh Pd Ag Cd In Sn Sb Te I Xe Cs Ba La Ce Pr Nd
    Pm Sm Eu Gd Tb Dy Ho Er Tm Yb Lu Hf Ta W Re Os Ir Pt Au Hg
    Tl Pb Bi Po At Rn Fr Ra Ac Th Pa U Np Pu Am Cm Bk Cf Es Fm
    Md No Lr Rf Db Sg Bh Hs Mt Ds Rg Cn Nh Fl Mc Lv Ts Og
""".split())

ELEMENTS: Final[tuple[Element, ...]] = tuple(
    Element(num, sym) for num, sym in enumerate(_SYMBOLS, start=1)
)

# Daylight "organic subset" - atoms that can appear without brackets
ORGANIC_SUBSET: Final[FrozenSet[str]] = frozenset({
    "B", "C", "N", "O", "P", "S", "F", "Cl", "Br", "I",
})

# Aromatic element symbols allowed in lowercase SMILES form
AROMATIC_SUBSET: Final[FrozenSet[str]] = frozenset({
    "b", "c", "n", "o", "p", "s", "as", "se",
})

# Two-letter bare atoms; anything else two-letter needs brackets ("Co" is C, o)
TWO_LETTER_ORGANIC: Final[FrozenSet[str]] = frozenset({"Cl", "Br"})

# Hydrogen isotope aliases accepted as bare atoms
HYDROGEN_ISOTOPES: Final[dict[str, int]] = {"D": 2, "T": 3}

HALOGENS: Final[FrozenSet[str]] = frozenset({"F", "Cl", "Br", "I"})

# Stand-in for a bracket hydrogen in Atom.chiral_neighbors
BRACKET_H: Final[int] = 0


def get_atomic_number(symbol: str) -> int:
    """Get atomic number for an element symbol.

    Args:
        symbol: Element symbol (e.g., "C", "cl", "Cl").

    Returns:
        Atomic number, or 0 if not found (pseudo atoms, labels).
    """
    elem = Element.from_symbol(symbol)
    return elem.atomic_number if elem else 0


def canonical_symbol(symbol: str) -> str:
    """Normalize capitalization of an element symbol.

    Unknown symbols (``*``, CXSMILES labels such as ``R1``) are returned
    unchanged.

    Example:
        >>> canonical_symbol("se")
        'Se'
        >>> canonical_symbol("R1")
        'R1'
    """
    elem = Element.from_symbol(symbol)
    return elem.symbol if elem else symbol


def is_element_symbol(symbol: str) -> bool:
    """Check whether symbol names a real element (exact capitalization)."""
    return symbol in Element._by_symbol


def is_organic_symbol(symbol: str) -> bool:
    """Check if symbol is in the organic subset."""
    return symbol in ORGANIC_SUBSET or symbol.lower() in AROMATIC_SUBSET


def is_aromatic_symbol(symbol: str) -> bool:
    """Check if symbol represents an aromatic atom."""
    return symbol in AROMATIC_SUBSET


def preferred_valence(symbol: str, charge: int = 0, aromatic: bool = False) -> float:
    """Target valence used by the implicit hydrogen heuristic.

    Args:
        symbol: Element symbol.
        charge: Formal charge.
        aromatic: Whether the atom is flagged aromatic.

    Returns:
        Target valence, or 0.0 for elements without a default (no
        implicit hydrogens are inferred for those).
    """
    symbol = canonical_symbol(symbol)
    if symbol == "C":
        return 3.0 if aromatic else 4.0
    if symbol == "N":
        if aromatic:
            return 3.0
        return 4.0 if charge > 0 else 3.0
    if symbol == "O":
        if charge > 0:
            return 3.0
        if charge < 0:
            return 1.0
        return 2.0
    if symbol == "S":
        return 3.0 if charge > 0 else 2.0
    if symbol == "P":
        return 4.0 if charge > 0 else 3.0
    if symbol == "B":
        return 3.0
    if symbol in HALOGENS:
        return 1.0
    return 0.0
