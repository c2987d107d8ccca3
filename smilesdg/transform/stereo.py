"""
Depiction stereo markers.

- Wedge/hash assignment: each tetrahedral stereocenter gets one wedged or
  hashed single bond, picked so the wedge points somewhere uncrowded.
- Directional double bonds: a double bond flanked by ``/`` or ``\\`` bonds
  on both ends is flagged ``EITHER`` so writers and renderers know it
  carries cis/trans information.

Both passes mutate the molecule in place.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Final

from smilesdg.elements import BondOrder, BondStereo, Chirality

if TYPE_CHECKING:
    from smilesdg.types import Bond, Molecule


# How far past the neighbor the wedge tip is extended
WEDGE_TIP_EXTENSION: Final[float] = 0.35
# Weight of the inverse-distance crowding term
WEDGE_CROWDING_WEIGHT: Final[float] = 0.14
# Distances below this count as this close for crowding
WEDGE_MIN_TIP_DISTANCE: Final[float] = 0.15

_WEDGE_FOR: Final[dict[tuple[Chirality, bool], BondStereo]] = {
    (Chirality.CLOCKWISE, True): BondStereo.UP,
    (Chirality.CLOCKWISE, False): BondStereo.UP_REVERSED,
    (Chirality.ANTICLOCKWISE, True): BondStereo.DOWN,
    (Chirality.ANTICLOCKWISE, False): BondStereo.DOWN_REVERSED,
}


def wedge_clearance(mol: Molecule, bond: Bond, center_id: int) -> float:
    """Free space around the far end of a candidate wedge bond.

    A tip point sits a little beyond the neighbor, along the bond. The
    score is the distance from the tip to the closest other atom, minus
    a small penalty summing inverse distances to all other atoms.

    Returns:
        Clearance score (larger is better); 0.0 for degenerate geometry or
        when no other atom exists.
    """
    neighbor_id = bond.other_atom(center_id)
    cx, cy = mol.atom(center_id).position
    nx, ny = mol.atom(neighbor_id).position
    length = math.hypot(nx - cx, ny - cy)
    if length <= 0.0001:
        return 0.0

    tip = (
        nx + (nx - cx) / length * WEDGE_TIP_EXTENSION,
        ny + (ny - cy) / length * WEDGE_TIP_EXTENSION,
    )
    distances = [
        math.dist(tip, atom.position)
        for atom in mol.atoms
        if atom.id not in (center_id, neighbor_id)
    ]
    if not distances:
        return 0.0
    crowding = sum(1.0 / max(WEDGE_MIN_TIP_DISTANCE, d) for d in distances)
    return min(distances) - crowding * WEDGE_CROWDING_WEIGHT


def assign_wedge_hash(mol: Molecule) -> None:
    """Mark one wedge or hash bond at every chiral atom.

    Candidates are the atom's single bonds without a stereo marker. The
    bond to a terminal neighbor is preferred, then the one with the best
    :func:`wedge_clearance`, then the lowest bond id. Clockwise centers get
    a wedge (``UP``), anticlockwise ones a hash (``DOWN``); the
    ``*_REVERSED`` variants are used when the center is the bond's second
    atom, so the narrow end always sits on the stereocenter.

    Args:
        mol: Molecule to annotate, normally with coordinates.

    Example:
        >>> from smilesdg import parse
        >>> mol = parse("C[C@H](N)O")
        >>> sum(1 for b in mol.bonds if b.stereo.is_directional)
        1
    """
    degrees = {a.id: mol.degree(a.id) for a in mol.atoms}

    for atom in mol.atoms:
        if atom.chirality == Chirality.NONE:
            continue
        candidates = [
            b for b in mol.bonds_for_atom(atom.id)
            if b.order == BondOrder.SINGLE and b.stereo == BondStereo.NONE
        ]
        if not candidates:
            continue

        def rank(bond: Bond) -> tuple[int, float, int]:
            terminal = degrees.get(bond.other_atom(atom.id), 0) == 1
            clearance = round(wedge_clearance(mol, bond, atom.id), 4)
            return (0 if terminal else 1, -clearance, bond.id)

        picked = min(candidates, key=rank)
        picked.stereo = _WEDGE_FOR[(atom.chirality, picked.atom1_id == atom.id)]


def annotate_directional_double_bonds(mol: Molecule) -> None:
    """Flag double bonds with directional single bonds on both ends.

    Example:
        >>> from smilesdg import parse
        >>> mol = parse("F/C=C/F", generate_coordinates=False)
        >>> mol.bonds[1].stereo.name
        'EITHER'
    """
    def has_directional_single(atom_id: int, exclude_id: int) -> bool:
        for bond in mol.bonds_for_atom(atom_id):
            if bond.other_atom(atom_id) == exclude_id:
                continue
            if bond.order == BondOrder.SINGLE and bond.stereo in (BondStereo.UP, BondStereo.DOWN):
                return True
        return False

    for bond in mol.bonds:
        if bond.order != BondOrder.DOUBLE:
            continue
        if has_directional_single(bond.atom1_id, bond.atom2_id) and has_directional_single(
            bond.atom2_id, bond.atom1_id
        ):
            bond.stereo = BondStereo.EITHER
