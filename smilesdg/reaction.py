"""
Reaction SMILES.

A reaction is written ``reactants>agents>products``; each side is a
dot-separated list of components, and any side may be empty. A trailing
CXSMILES block applies to the whole reaction:

- atom labels count atoms across all components in reading order;
- ``f:`` groups join components (counted across all sides) into one
  molecule, e.g. a salt written as ``[Na+].[Cl-]``;
- ``r`` / ``r:`` mark racemic components.

Example:
    >>> from smilesdg import parse_reaction
    >>> rxn = parse_reaction("[Na+].[Cl-]>>[Na+].[Cl-] |f:0.1,2.3|", generate_coordinates=False)
    >>> rxn.reactant_count, rxn.product_count
    (1, 1)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Iterator

from smilesdg.cxsmiles import CxSmilesState, split
from smilesdg.exceptions import ReactionSyntaxError
from smilesdg.layout import StructureDiagramGenerator
from smilesdg.types import Molecule

if TYPE_CHECKING:
    from smilesdg.parser import SmilesParser

logger = logging.getLogger(__name__)


class ReactionSide(Enum):
    """Where a component appears in a reaction."""

    REACTANT = "reactant"
    AGENT = "agent"
    PRODUCT = "product"


@dataclass
class Reaction:
    """A parsed reaction.

    Attributes:
        reactants: Reactant molecules, in order.
        agents: Agent molecules (catalysts, solvents), in order.
        products: Product molecules, in order.
        cx_state: CXSMILES layer content shared by the whole reaction.
        title: Text following the reaction, if any.
    """

    reactants: list[Molecule] = field(default_factory=list)
    agents: list[Molecule] = field(default_factory=list)
    products: list[Molecule] = field(default_factory=list)
    cx_state: CxSmilesState | None = None
    title: str | None = None

    @property
    def reactant_count(self) -> int:
        return len(self.reactants)

    @property
    def agent_count(self) -> int:
        return len(self.agents)

    @property
    def product_count(self) -> int:
        return len(self.products)

    def __iter__(self) -> Iterator[Molecule]:
        """Iterate over reactants, agents and products."""
        yield from self.reactants
        yield from self.agents
        yield from self.products


@dataclass(slots=True)
class _Component:
    molecule: Molecule
    side: ReactionSide
    index: int


def split_reaction_sides(core: str) -> tuple[str, str, str]:
    """Split on the '>' separators outside brackets and branches.

    Raises:
        ReactionSyntaxError: Unless there are exactly two separators.

    Example:
        >>> split_reaction_sides("CC(=O)O>[H+]>CC(=O)[O-]")
        ('CC(=O)O', '[H+]', 'CC(=O)[O-]')
    """
    parts: list[str] = []
    start = 0
    bracket = 0
    paren = 0
    for i, ch in enumerate(core):
        if ch == "[":
            bracket += 1
        elif ch == "]":
            bracket = max(0, bracket - 1)
        elif ch == "(" and not bracket:
            paren += 1
        elif ch == ")" and not bracket:
            paren = max(0, paren - 1)
        elif ch == ">" and not bracket and not paren:
            parts.append(core[start:i])
            start = i + 1
    parts.append(core[start:])

    if len(parts) != 3:
        raise ReactionSyntaxError(
            "Reaction SMILES must contain exactly two '>' separators", core
        )
    return parts[0], parts[1], parts[2]


def _parse_side(parser: SmilesParser, text: str, side: ReactionSide) -> list[Molecule]:
    text = text.strip()
    if not text:
        return []
    fragments = text.split(".")
    if any(not f.strip() for f in fragments):
        raise ReactionSyntaxError(f"Invalid empty fragment in {side.value} side", text)
    return [parser.parse_smiles(f) for f in fragments]


def _apply_flattened_labels(components: list[_Component], state: CxSmilesState) -> None:
    """Relabel atoms addressed by their index across all components."""
    offsets: list[int] = []
    total = 0
    for comp in components:
        offsets.append(total)
        total += len(comp.molecule.atoms)

    for index, label in state.atom_labels.items():
        if not 0 <= index < total:
            logger.debug("CXSMILES label %r for atom index %d out of range", label, index)
            continue
        for comp, offset in zip(reversed(components), reversed(offsets)):
            if index >= offset:
                atom = comp.molecule.atoms[index - offset]
                atom.symbol = label
                atom.is_aromatic = False
                break


def merge_molecules(molecules: list[Molecule]) -> Molecule:
    """Combine disconnected molecules into one, renumbering ids from 1."""
    out = Molecule(name=molecules[0].name if molecules else "Untitled")
    for mol in molecules:
        id_map: dict[int, int] = {}
        for atom in mol.atoms:
            id_map[atom.id] = out.add_atom(
                atom.symbol,
                position=atom.position,
                charge=atom.charge,
                isotope=atom.isotope,
                is_aromatic=atom.is_aromatic,
                chirality=atom.chirality,
                explicit_hydrogens=atom.explicit_hydrogens,
                atom_class=atom.atom_class,
                degree_query=atom.degree_query,
                connectivity_query=atom.connectivity_query,
                valence_query=atom.valence_query,
                ring_count=atom.ring_count,
                ring_size=atom.ring_size,
                unsaturation_query=atom.unsaturation_query,
            )
        for atom in mol.atoms:
            if atom.chiral_neighbors is not None:
                out.atom(id_map[atom.id]).chiral_neighbors = tuple(
                    id_map.get(nbr, nbr) for nbr in atom.chiral_neighbors
                )
        for bond in mol.bonds:
            out.add_bond(
                id_map[bond.atom1_id],
                id_map[bond.atom2_id],
                order=bond.order,
                stereo=bond.stereo,
            )
        out.racemic = out.racemic or mol.racemic
    return out


def _group_components(
    components: list[_Component],
    state: CxSmilesState,
) -> dict[int, list[int]]:
    """Validate fragment groups and map each member index to its group."""
    group_of: dict[int, list[int]] = {}
    for raw in state.fragment_groups:
        group = sorted(set(raw))
        for idx in group:
            if not 0 <= idx < len(components):
                raise ReactionSyntaxError(f"CXSMILES fragment-group index {idx} is out of range")
        if len({components[i].side for i in group}) > 1:
            raise ReactionSyntaxError(f"CXSMILES fragment group {group} spans reaction sides")
        for idx in group:
            if idx in group_of:
                raise ReactionSyntaxError(f"CXSMILES fragment index {idx} appears in multiple groups")
            group_of[idx] = group
    return group_of


def build_reaction(parser: SmilesParser, text: str) -> Reaction:
    """Parse reaction SMILES with the given parser's options.

    Raises:
        EmptyInputError: If text is blank.
        ReactionSyntaxError: For malformed separators, empty fragments or
            invalid fragment groups.
    """
    result = split(text, parser.cxsmiles_enabled)
    core, *rest = result.core.split(None, 1)
    title = result.title or (rest[0].strip() if rest else None)
    state = result.state

    sides = split_reaction_sides(core)
    components: list[_Component] = []
    for side_text, side in zip(sides, ReactionSide):
        for mol in _parse_side(parser, side_text, side):
            components.append(_Component(mol, side, len(components)))

    _apply_flattened_labels(components, state)

    racemic = set(state.racemic_fragments)
    for comp in components:
        comp.molecule.racemic = state.racemic or comp.index in racemic

    group_of = _group_components(components, state)
    reaction = Reaction(cx_state=state, title=title)
    targets = {
        ReactionSide.REACTANT: reaction.reactants,
        ReactionSide.AGENT: reaction.agents,
        ReactionSide.PRODUCT: reaction.products,
    }

    for comp in components:
        group = group_of.get(comp.index)
        if group is None:
            targets[comp.side].append(comp.molecule)
            continue
        if comp.index != group[0]:
            continue
        merged = merge_molecules([components[i].molecule for i in group])
        if parser.generate_coordinates:
            merged = StructureDiagramGenerator(parser.layout_config).generate(merged)
        targets[comp.side].append(merged)

    logger.debug(
        "Parsed reaction: %d reactants, %d agents, %d products",
        reaction.reactant_count, reaction.agent_count, reaction.product_count,
    )
    return reaction
