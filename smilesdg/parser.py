"""
SMILES, CXSMILES and reaction SMILES parser.

This module converts SMILES text into Molecule objects and runs the
post-parse passes a depiction needs: aromatic validation, directional
double bond annotation, 2D layout and wedge/hash assignment.

SMILES features:
    - Organic subset atoms, wildcards and lowercase aromatic atoms
    - Bracket atoms with isotope, chirality, hydrogens, charge, atom class
      and the D/X/v/R/r/u query decorators
    - Ring closures (1-9, %nn, %(n)), branches and dot-disconnected parts
    - Directional bonds (/ and \\)
    - A trailing CXSMILES block with atom labels, racemic flags and
      fragment grouping

Example:
    >>> mol = parse("c1ccccc1O phenol")
    >>> mol.name, len(mol.atoms)
    ('phenol', 7)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from smilesdg.cxsmiles import apply_atom_labels, split
from smilesdg.elements import (
    BRACKET_H,
    HYDROGEN_ISOTOPES,
    TWO_LETTER_ORGANIC,
    BondOrder,
    BondStereo,
    Chirality,
    canonical_symbol,
    is_element_symbol,
)
from smilesdg.exceptions import AromaticityError, ParseError, RingError
from smilesdg.flavor import SmiFlavor
from smilesdg.layout import LayoutConfig, StructureDiagramGenerator
from smilesdg.transform.aromaticity import validate_aromatic_constraints
from smilesdg.transform.stereo import annotate_directional_double_bonds, assign_wedge_hash
from smilesdg.types import Molecule

if TYPE_CHECKING:
    from smilesdg.reaction import Reaction

logger = logging.getLogger(__name__)


# Bare lowercase atoms
_AROMATIC_BARE: Final[frozenset[str]] = frozenset({"b", "c", "n", "o", "p", "s"})
_AROMATIC_PAIRS: Final[frozenset[str]] = frozenset({"se", "as"})

# Chiral classes recognized after '@'
_CHIRAL_CLASSES: Final[frozenset[str]] = frozenset({"TH", "AL", "SP", "TB", "OH"})

_BOND_CHARS: Final[dict[str, BondOrder]] = {
    "-": BondOrder.SINGLE,
    "=": BondOrder.DOUBLE,
    "#": BondOrder.TRIPLE,
    ":": BondOrder.AROMATIC,
}

_DIRECTIONAL_CHARS: Final[dict[str, BondStereo]] = {
    "/": BondStereo.UP,
    "\\": BondStereo.DOWN,
}

# Query decorator letter -> (Atom field, value when no digits follow)
_QUERY_DECORATORS: Final[dict[str, tuple[str, int]]] = {
    "D": ("degree_query", 1),
    "X": ("connectivity_query", 1),
    "v": ("valence_query", 0),
    "R": ("ring_count", 1),
    "r": ("ring_size", 0),
    "u": ("unsaturation_query", 1),
}


class _Tokenizer:
    """Character cursor over a SMILES string with lookahead."""

    __slots__ = ("_string", "_pos")

    def __init__(self, string: str) -> None:
        self._string = string
        self._pos = 0

    @property
    def position(self) -> int:
        """Current position in the string."""
        return self._pos

    def peek(self, offset: int = 0) -> str | None:
        """Character at position + offset, or None past the end."""
        pos = self._pos + offset
        if pos >= len(self._string):
            return None
        return self._string[pos]

    def next(self) -> str | None:
        """Consume and return the next character."""
        if self._pos >= len(self._string):
            return None
        char = self._string[self._pos]
        self._pos += 1
        return char

    def skip(self, count: int = 1) -> None:
        self._pos += count

    def read_digits(self, max_count: int | None = None) -> str:
        """Consume consecutive digits, at most max_count of them."""
        start = self._pos
        while self._pos < len(self._string) and self._string[self._pos].isdigit():
            if max_count is not None and self._pos - start >= max_count:
                break
            self._pos += 1
        return self._string[start:self._pos]

    def is_eof(self) -> bool:
        return self._pos >= len(self._string)


@dataclass(slots=True)
class _RingOpening:
    """An open ring-closure digit waiting for its partner."""

    atom_id: int
    order: BondOrder | None
    stereo: BondStereo | None
    slot: int


@dataclass(slots=True)
class _BracketAtom:
    """Fields collected from a bracket atom."""

    symbol: str
    is_aromatic: bool
    isotope: int | None = None
    charge: int = 0
    chirality: Chirality = Chirality.NONE
    explicit_hydrogens: int | None = None
    atom_class: int | None = None
    queries: dict[str, int] = field(default_factory=dict)


@dataclass
class _ParserState:
    """Mutable state while walking one SMILES string."""

    open_rings: dict[int, _RingOpening] = field(default_factory=dict)
    branch_stack: list[int] = field(default_factory=list)
    current_atom: int | None = None
    pending_order: BondOrder | None = None
    pending_stereo: BondStereo | None = None

    def reset_bond(self) -> None:
        self.pending_order = None
        self.pending_stereo = None


def _normalize_symbol(symbol: str, isotope: int | None) -> tuple[str, int | None]:
    """Canonical capitalization; D and T become hydrogen isotopes."""
    upper = symbol.upper()
    if upper in HYDROGEN_ISOTOPES:
        return "H", isotope if isotope is not None else HYDROGEN_ISOTOPES[upper]
    if symbol == "*":
        return symbol, isotope
    return canonical_symbol(symbol[0].upper() + symbol[1:].lower()), isotope


class _CoreParser:
    """Single-use parser for the SMILES grammar proper (no CXSMILES)."""

    def __init__(self, smiles: str, flavor: SmiFlavor) -> None:
        self._smiles = smiles
        self._flavor = flavor
        self._tok = _Tokenizer(smiles)
        self._mol = Molecule()
        self._state = _ParserState()
        # Written neighbor order per atom; 0 stands for the bracket hydrogen
        self._neighbor_order: dict[int, list[int]] = {}

    def _error(self, message: str, position: int | None = None) -> ParseError:
        pos = self._tok.position if position is None else position
        return ParseError(message, self._smiles, min(pos, len(self._smiles)))

    def parse(self) -> Molecule:
        """Walk the string and build the molecular graph.

        Raises:
            ParseError: If the SMILES syntax is invalid.
            RingError: If a ring closure is left open or conflicts.
        """
        tok = self._tok
        state = self._state

        while not tok.is_eof():
            char = tok.peek()
            if char is None:
                break

            if char == "(":
                if state.current_atom is None:
                    raise self._error("Branch start '(' has no parent atom")
                state.branch_stack.append(state.current_atom)
                tok.next()
            elif char == ")":
                if not state.branch_stack:
                    raise self._error("Unbalanced branch: ')' without matching '('")
                state.current_atom = state.branch_stack.pop()
                tok.next()
            elif char in _BOND_CHARS:
                state.pending_order = _BOND_CHARS[char]
                state.pending_stereo = None
                tok.next()
            elif char in _DIRECTIONAL_CHARS:
                if state.pending_order is None:
                    state.pending_order = BondOrder.SINGLE
                state.pending_stereo = _DIRECTIONAL_CHARS[char]
                tok.next()
            elif char == ".":
                state.current_atom = None
                state.reset_bond()
                tok.next()
            elif char.isdigit() or char == "%":
                self._parse_ring_closure()
            elif char == "[":
                self._add_bracket_atom(self._parse_bracket_atom())
            else:
                self._parse_bare_atom()

        if not self._mol.atoms:
            raise self._error("No atoms found", 0)
        if state.branch_stack:
            raise self._error("Unterminated branch")
        if state.open_rings:
            missing = sorted(state.open_rings)
            raise RingError(
                f"Unterminated ring closure(s): {', '.join(map(str, missing))}",
                ring_index=missing[0],
                smiles=self._smiles,
            )
        if self._flavor & SmiFlavor.STRICT and (
            state.pending_order is not None or state.pending_stereo is not None
        ):
            raise self._error("Dangling bond symbol at end of SMILES")

        for atom in self._mol.atoms:
            if atom.chirality != Chirality.NONE:
                atom.chiral_neighbors = tuple(self._neighbor_order[atom.id])

        return self._mol

    # ------------------------------------------------------------------
    # Bonds
    # ------------------------------------------------------------------

    def _resolve_order(self, a1: int, a2: int, explicit: BondOrder | None) -> BondOrder:
        if explicit is not None:
            return explicit
        if (
            self._flavor & SmiFlavor.USE_AROMATIC_SYMBOLS
            and self._mol.atom(a1).is_aromatic
            and self._mol.atom(a2).is_aromatic
        ):
            return BondOrder.AROMATIC
        return BondOrder.SINGLE

    def _bond_stereo(self, order: BondOrder, stereo: BondStereo | None) -> BondStereo:
        if order != BondOrder.SINGLE or stereo is None:
            return BondStereo.NONE
        if not self._flavor & SmiFlavor.ISOMERIC:
            return BondStereo.NONE
        return stereo

    def _connect(self, atom_id: int) -> None:
        """Bond the current atom to a newly added one and advance."""
        state = self._state
        written = self._neighbor_order.setdefault(atom_id, [])
        if state.current_atom is not None:
            order = self._resolve_order(state.current_atom, atom_id, state.pending_order)
            self._mol.add_bond(
                state.current_atom,
                atom_id,
                order=order,
                stereo=self._bond_stereo(order, state.pending_stereo),
            )
            self._neighbor_order[state.current_atom].append(atom_id)
            written.append(state.current_atom)
        if self._mol.atom(atom_id).explicit_hydrogens:
            written.append(BRACKET_H)
        state.current_atom = atom_id
        state.reset_bond()

    # ------------------------------------------------------------------
    # Ring closures
    # ------------------------------------------------------------------

    def _read_ring_index(self) -> int:
        """Read a ring closure index (1-9, %nn, %(n))."""
        tok = self._tok
        start = tok.position

        if tok.peek() != "%":
            return int(tok.next())

        tok.next()
        if tok.peek() == "(":
            tok.next()
            digits = tok.read_digits()
            if not digits or tok.peek() != ")":
                raise self._error("Invalid ring index in '%(...)'", start)
            tok.next()
            return int(digits)

        digits = tok.read_digits(max_count=2)
        if len(digits) != 2:
            raise self._error("Expected two digits after '%'", start)
        return int(digits)

    def _parse_ring_closure(self) -> None:
        """Open or close a ring label on the current atom.

        A bond symbol may precede either mention of the label. Two different
        symbols are a RingError with STRICT; otherwise the closing one wins.
        """
        start = self._tok.position
        ring_index = self._read_ring_index()
        state = self._state

        if state.current_atom is None:
            raise RingError(
                f"Ring closure {ring_index} has no preceding atom",
                ring_index=ring_index,
                smiles=self._smiles,
                position=start,
            )

        opening = state.open_rings.pop(ring_index, None)
        if opening is None:
            written = self._neighbor_order[state.current_atom]
            state.open_rings[ring_index] = _RingOpening(
                atom_id=state.current_atom,
                order=state.pending_order,
                stereo=state.pending_stereo,
                slot=len(written),
            )
            written.append(-1)  # filled in when the ring closes
        else:
            if (
                self._flavor & SmiFlavor.STRICT
                and opening.order is not None
                and state.pending_order is not None
                and opening.order != state.pending_order
            ):
                raise RingError(
                    f"Conflicting ring bond order for closure {ring_index}",
                    ring_index=ring_index,
                    smiles=self._smiles,
                    position=start,
                )
            explicit = state.pending_order if state.pending_order is not None else opening.order
            order = self._resolve_order(opening.atom_id, state.current_atom, explicit)
            stereo = state.pending_stereo if state.pending_stereo is not None else opening.stereo
            self._mol.add_bond(
                opening.atom_id,
                state.current_atom,
                order=order,
                stereo=self._bond_stereo(order, stereo),
            )
            self._neighbor_order[opening.atom_id][opening.slot] = state.current_atom
            self._neighbor_order[state.current_atom].append(opening.atom_id)

        state.reset_bond()

    # ------------------------------------------------------------------
    # Atoms
    # ------------------------------------------------------------------

    def _parse_bare_atom(self) -> None:
        """Parse an atom written without brackets."""
        tok = self._tok
        c0 = tok.peek()
        c1 = tok.peek(1) or ""
        aromatic = False

        if c0 == "*":
            raw = "*"
        elif c0.islower():
            if c0 + c1 in _AROMATIC_PAIRS:
                raw = c0 + c1
            elif c0 in _AROMATIC_BARE:
                raw = c0
            else:
                raise self._error(f"Unexpected token '{c0}'")
            aromatic = True
        elif c0.isupper():
            raw = c0 + c1 if c0 + c1 in TWO_LETTER_ORGANIC else c0
        else:
            raise self._error(f"Unexpected token '{c0}'")

        tok.skip(len(raw))
        symbol, isotope = _normalize_symbol(raw, None)
        atom_id = self._mol.add_atom(symbol, isotope=isotope, is_aromatic=aromatic)
        self._connect(atom_id)

    def _parse_chirality(self, atom: _BracketAtom) -> None:
        tok = self._tok
        count = 0
        while tok.peek() == "@":
            tok.next()
            count += 1
        chirality = Chirality.CLOCKWISE if count >= 2 else Chirality.ANTICLOCKWISE

        chiral_class = (tok.peek() or "") + (tok.peek(1) or "")
        if chiral_class in _CHIRAL_CLASSES:
            tok.skip(2)
            rank = tok.read_digits()
            if chiral_class != "TH":
                chirality = Chirality.NONE
            elif rank == "1":
                chirality = Chirality.ANTICLOCKWISE
            elif rank == "2":
                chirality = Chirality.CLOCKWISE

        if self._flavor & SmiFlavor.ISOMERIC:
            atom.chirality = chirality

    def _parse_charge(self) -> int:
        """Parse +, -, +n, -n, ++, --."""
        tok = self._tok
        sign_char = tok.next()
        sign = 1 if sign_char == "+" else -1
        digits = tok.read_digits()
        if digits:
            return sign * int(digits)
        magnitude = 1
        while tok.peek() == sign_char:
            tok.next()
            magnitude += 1
        return sign * magnitude

    def _parse_bracket_atom(self) -> _BracketAtom:
        """Parse a bracket atom [...].

        Examples: [C], [13CH4], [nH], [C@@H], [NH4+], [O-:2], [CD3R1].
        """
        tok = self._tok
        start = tok.position
        tok.next()  # '['

        digits = tok.read_digits()
        isotope = int(digits) if digits else None

        head = tok.peek()
        if head is None:
            raise self._error("Unterminated bracket atom", start)

        if head == "*":
            raw = "*"
            aromatic = False
        elif head.isupper():
            tail = tok.peek(1) or ""
            raw = head + tail if tail.islower() and is_element_symbol(head + tail) else head
            aromatic = False
        elif head.islower():
            pair = head + (tok.peek(1) or "")
            raw = pair if pair in _AROMATIC_PAIRS else head
            aromatic = True
        else:
            raise self._error(f"Invalid bracket atom element token '{head}'")
        tok.skip(len(raw))

        symbol, isotope = _normalize_symbol(raw, isotope)
        atom = _BracketAtom(symbol=symbol, is_aromatic=aromatic, isotope=isotope)

        while True:
            char = tok.peek()
            if char is None:
                raise self._error("Unterminated bracket atom", start)
            if char == "]":
                tok.next()
                return atom

            if char == "@":
                self._parse_chirality(atom)
            elif char == "H":
                tok.next()
                count = tok.read_digits()
                atom.explicit_hydrogens = (atom.explicit_hydrogens or 0) + (int(count) if count else 1)
            elif char in "+-":
                atom.charge += self._parse_charge()
            elif char == ":":
                tok.next()
                number = tok.read_digits()
                if number:
                    atom.atom_class = int(number)
                elif self._flavor & SmiFlavor.STRICT:
                    raise self._error("Missing atom class number after ':'")
            elif char in _QUERY_DECORATORS:
                tok.next()
                name, default = _QUERY_DECORATORS[char]
                value = tok.read_digits()
                atom.queries[name] = int(value) if value else default
            elif char in ";&,":
                tok.next()
            elif self._flavor & SmiFlavor.STRICT:
                raise self._error(f"Unsupported bracket decorator '{char}'")
            else:
                tok.next()

    def _add_bracket_atom(self, atom: _BracketAtom) -> None:
        atom_id = self._mol.add_atom(
            atom.symbol,
            charge=atom.charge,
            isotope=atom.isotope,
            is_aromatic=atom.is_aromatic,
            chirality=atom.chirality,
            explicit_hydrogens=atom.explicit_hydrogens,
            atom_class=atom.atom_class,
            **atom.queries,
        )
        self._connect(atom_id)


class SmilesParser:
    """SMILES, CXSMILES and reaction SMILES parser.

    A parser holds only its options and may be reused for any number of
    strings.

    Args:
        flavor: Syntax options; the default accepts aromatic symbols,
            stereo, strict validation and CXSMILES blocks.
        generate_coordinates: Lay out 2D coordinates after parsing.
        layout_config: Tuning for the structure diagram generator.

    Example:
        >>> parser = SmilesParser(generate_coordinates=False)
        >>> mol = parser.parse_smiles("CCO ethanol")
        >>> mol.name, mol.num_bonds
        ('ethanol', 2)
    """

    def __init__(
        self,
        flavor: SmiFlavor = SmiFlavor.DEFAULT,
        generate_coordinates: bool = True,
        layout_config: LayoutConfig | None = None,
    ) -> None:
        self.flavor = flavor
        self.generate_coordinates = generate_coordinates
        self.layout_config = layout_config or LayoutConfig()

    @property
    def cxsmiles_enabled(self) -> bool:
        return bool(self.flavor & SmiFlavor.CXSMILES)

    def parse_smiles(self, text: str) -> Molecule:
        """Parse one structure, with an optional CXSMILES block and title.

        Raises:
            EmptyInputError: If text is blank.
            ParseError: For any syntax problem (see subclasses).
        """
        result = split(text, self.cxsmiles_enabled)
        # Without a CXSMILES block the title follows the SMILES after whitespace
        core, *rest = result.core.split(None, 1)
        title = result.title or (rest[0].strip() if rest else None)

        mol = self.parse_core_smiles(core)
        apply_atom_labels(mol, result.state)
        mol.racemic = result.state.racemic or bool(result.state.racemic_fragments)
        if title:
            mol.name = title
        return mol

    def parse_core_smiles(self, smiles: str) -> Molecule:
        """Parse plain SMILES text and run the post-parse passes."""
        mol = _CoreParser(smiles, self.flavor).parse()

        if self.flavor & SmiFlavor.STRICT:
            try:
                validate_aromatic_constraints(mol)
            except AromaticityError as e:
                raise AromaticityError(e.message, smiles) from e
        annotate_directional_double_bonds(mol)

        if self.generate_coordinates:
            mol = StructureDiagramGenerator(self.layout_config).generate(mol)
        assign_wedge_hash(mol)

        logger.debug("Parsed %r: %d atoms, %d bonds", smiles, mol.num_atoms, mol.num_bonds)
        return mol

    def parse_reaction_smiles(self, text: str) -> Reaction:
        """Parse ``reactants>agents>products`` with an optional CXSMILES block.

        Raises:
            EmptyInputError: If text is blank.
            ReactionSyntaxError: For malformed separators, empty fragments
                or invalid fragment groups.
        """
        from smilesdg.reaction import build_reaction
        return build_reaction(self, text)


def parse(
    smiles: str,
    flavor: SmiFlavor = SmiFlavor.DEFAULT,
    generate_coordinates: bool = True,
) -> Molecule:
    """Parse a SMILES string into a Molecule.

    Args:
        smiles: SMILES text, optionally followed by a CXSMILES block and a
            title.
        flavor: Syntax options.
        generate_coordinates: Compute 2D coordinates.

    Returns:
        Parsed Molecule.

    Raises:
        ParseError: If the SMILES syntax is invalid.

    Example:
        >>> mol = parse("CCO", generate_coordinates=False)
        >>> len(mol.atoms)
        3
    """
    return SmilesParser(flavor, generate_coordinates).parse_smiles(smiles)


def parse_reaction(
    smiles: str,
    flavor: SmiFlavor = SmiFlavor.DEFAULT,
    generate_coordinates: bool = True,
) -> Reaction:
    """Parse a reaction SMILES string.

    Example:
        >>> rxn = parse_reaction("O>>[H+].[OH-]", generate_coordinates=False)
        >>> rxn.reactant_count, rxn.product_count
        (1, 2)
    """
    return SmilesParser(flavor, generate_coordinates).parse_reaction_smiles(smiles)
