"""
Structure diagram generation.

Assigns 2D coordinates to a molecule that has none. Each connected
component is laid out on its own and placed left to right:

1. The most fused ring system is drawn first; its seed ring is a regular
   polygon and the other rings are attached (fused, then spiro, then
   bridged) by fitting a ring template through the atoms already placed.
2. Acyclic single-bond chains grow from placed atoms as 120 degree
   zigzags, longest chain first.
3. Remaining neighbors fan out from their placed parent; ring systems
   reached this way are completed from their placed atoms.
4. Single bridge bonds are flipped when that lowers the overlap/crossing
   penalty, then a relaxation loop of bond springs, non-bonded pushes and
   crossing pushes tidies the drawing. Aromatic atoms stay fixed.

The layout never fails: the worst case is a connected but imperfect
drawing.

Example:
    >>> from smilesdg import parse
    >>> mol = parse("c1ccccc1", generate_coordinates=False)
    >>> mol.has_coordinates
    False
    >>> generate_coordinates(mol).has_coordinates
    True
"""

from __future__ import annotations

import logging
import math
import sys
from collections import Counter
from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING

import numpy as np

from smilesdg.elements import BondOrder
from smilesdg.layout.geometry import (
    EPSILON,
    angle_of,
    cross_distances,
    fan_directions,
    norm,
    normalize,
    overlap_penalty,
    pairwise_distances,
    point,
    reflect_points,
    regular_polygon,
    rotate,
    segment_crossings,
    segment_distances,
    unit_vector,
)
from smilesdg.rings import cycle_edges, edge_key, find_ring_systems, find_sssr
from smilesdg.types import ORIGIN

if TYPE_CHECKING:
    from smilesdg.rings.detection import EdgeKey
    from smilesdg.types import Bond, Molecule

logger = logging.getLogger(__name__)

Positions = dict[int, np.ndarray]

_PI_BONDS = (BondOrder.DOUBLE, BondOrder.TRIPLE, BondOrder.AROMATIC)


@dataclass(frozen=True, slots=True)
class LayoutConfig:
    """Tuning constants for :class:`StructureDiagramGenerator`.

    Distances are given as ratios of ``bond_length``; angles are radians.

    Attributes:
        bond_length: Target length of every bond.
        max_ring_size: Largest ring considered when searching rings.
        anchor_drift_weight: Ring placement cost per unit an anchor atom
            would move.
        hard_overlap_ratio: Ring placement hard clearance to placed atoms.
        hard_overlap_penalty: Weight of the hard clearance term.
        soft_overlap_ratio: Ring placement soft clearance to placed atoms.
        soft_overlap_penalty: Weight of the soft clearance term.
        intra_ring_hard_ratio: Minimum spacing of a ring's new atoms.
        intra_ring_penalty: Weight of the intra-ring spacing term.
        edge_cross_penalty: Cost of a ring bond crossing a placed bond.
        edge_near_ratio: Ring bond to placed bond clearance.
        edge_near_penalty: Weight of the bond clearance term.
        chain_angle: Zigzag angle between consecutive chain bonds.
        chain_hard_ratio: Hard clearance when choosing a zigzag side.
        chain_hard_penalty: Weight of the chain hard clearance term.
        chain_soft_ratio: Soft clearance when choosing a zigzag side.
        chain_soft_penalty: Weight of the chain soft clearance term.
        chain_centroid_pull: Reward per unit away from the placed centroid.
        chain_alternation_tolerance: How much worse the alternating zigzag
            side may score and still be chosen.
        chain_pass_limit: Rounds of chain growth per component.
        conjugated_angle: Substituent angle at atoms next to a pi bond.
        saturated_angle: Substituent angle elsewhere.
        branch_fan_spread: Arc for substituents of an atom with several
            placed neighbors.
        branch_open_spread: Largest arc for substituents of an atom with a
            single placed neighbor.
        bond_flip_gain: A bridge flip is kept when the penalty drops below
            this fraction of its previous value.
        penalty_hard_ratio: Layout penalty hard non-bonded clearance.
        penalty_hard_weight: Weight of the hard non-bonded term.
        penalty_soft_ratio: Layout penalty soft non-bonded clearance.
        penalty_soft_weight: Weight of the soft non-bonded term.
        penalty_crossing: Layout penalty per crossing bond pair.
        penalty_near_ratio: Layout penalty bond-to-bond clearance.
        penalty_near_weight: Weight of the bond clearance term.
        relax_iterations: Relaxation sweeps per component.
        bond_spring: Fraction of a bond's length error corrected per sweep.
        non_bonded_min_ratio: Non-bonded atoms closer than this are pushed.
        non_bonded_push: Fraction of the clearance deficit pushed per sweep.
        crossing_push_ratio: Distance crossing bonds are pushed apart.
        component_gap: Horizontal space between components.
        min_component_advance: Smallest horizontal step per component.
    """

    bond_length: float = 1.4
    max_ring_size: int = 12

    anchor_drift_weight: float = 260.0
    hard_overlap_ratio: float = 0.76
    hard_overlap_penalty: float = 300.0
    soft_overlap_ratio: float = 1.12
    soft_overlap_penalty: float = 70.0
    intra_ring_hard_ratio: float = 0.86
    intra_ring_penalty: float = 115.0
    edge_cross_penalty: float = 280.0
    edge_near_ratio: float = 0.42
    edge_near_penalty: float = 34.0

    chain_angle: float = math.radians(120.0)
    chain_hard_ratio: float = 0.95
    chain_hard_penalty: float = 180.0
    chain_soft_ratio: float = 1.20
    chain_soft_penalty: float = 24.0
    chain_centroid_pull: float = 0.22
    chain_alternation_tolerance: float = 1.08
    chain_pass_limit: int = 32

    conjugated_angle: float = math.radians(120.0)
    saturated_angle: float = math.radians(109.5)
    branch_fan_spread: float = math.pi / 2.2
    branch_open_spread: float = math.pi

    bond_flip_gain: float = 0.97
    penalty_hard_ratio: float = 0.95
    penalty_hard_weight: float = 120.0
    penalty_soft_ratio: float = 1.20
    penalty_soft_weight: float = 16.0
    penalty_crossing: float = 160.0
    penalty_near_ratio: float = 0.35
    penalty_near_weight: float = 40.0

    relax_iterations: int = 150
    bond_spring: float = 0.40
    non_bonded_min_ratio: float = 1.14
    non_bonded_push: float = 0.28
    crossing_push_ratio: float = 0.15

    component_gap: float = 4.0
    min_component_advance: float = 6.0


class _Attachment(IntEnum):
    """How a ring joins an already placed ring, in placement preference order."""

    FUSED = 0
    SPIRO = 1
    BRIDGED = 2
    ISOLATED = 3


def _independent_edges(a_ids: np.ndarray, b_ids: np.ndarray) -> np.ndarray:
    """Boolean matrix, True where two bonds share no atom."""
    a = a_ids[:, None, :]
    b = b_ids[None, :, :]
    return ~(
        (a[..., 0] == b[..., 0]) | (a[..., 0] == b[..., 1]) | (a[..., 1] == b[..., 0]) | (a[..., 1] == b[..., 1])
    )


def _ring_order(ring: list[int]) -> tuple[int, list[int]]:
    return (len(ring), ring)


def _attachment(ring: list[int], placed_ring: list[int]) -> _Attachment:
    shared = set(ring) & set(placed_ring)
    if len(shared) >= 2:
        if set(cycle_edges(ring)).isdisjoint(cycle_edges(placed_ring)):
            return _Attachment.BRIDGED
        return _Attachment.FUSED
    if len(shared) == 1:
        return _Attachment.SPIRO
    return _Attachment.ISOLATED


def _anchor_pairs(ring: list[int], shared: list[int], max_pairs: int = 4) -> list[tuple[int, int]]:
    """Pairs of placed ring atoms to fit a ring template through.

    Adjacent pairs come first (a fused edge), then pairs by decreasing
    separation around the ring.
    """
    if len(shared) < 2:
        return []
    shared_set = set(shared)
    pairs: list[tuple[int, int]] = []
    seen: set[EdgeKey] = set()

    def add(a: int, b: int) -> None:
        key = edge_key(a, b)
        if key not in seen:
            seen.add(key)
            pairs.append((a, b))

    n = len(ring)
    for i in range(n):
        a, b = ring[i], ring[(i + 1) % n]
        if a in shared_set and b in shared_set:
            add(a, b)

    by_gap: list[tuple[int, int, int]] = []
    for i, a in enumerate(shared):
        for b in shared[i + 1:]:
            diff = abs(ring.index(a) - ring.index(b))
            by_gap.append((-min(diff, n - diff), a, b))
    for _, a, b in sorted(by_gap):
        add(a, b)
        if len(pairs) >= max_pairs:
            break

    return pairs[:max(1, max_pairs)]


def _transformed_ring(
    template: Positions,
    ring: list[int],
    anchor1: int,
    anchor2: int,
    target1: np.ndarray,
    target2: np.ndarray,
) -> Positions | None:
    """Scale and rotate a ring template so two anchors land on their targets."""
    l1 = template[anchor1]
    local_vec = template[anchor2] - l1
    target_vec = target2 - target1
    local_len = norm(local_vec)
    target_len = norm(target_vec)
    if local_len <= EPSILON or target_len <= EPSILON:
        return None

    angle = angle_of(target_vec) - angle_of(local_vec)
    pts = np.array([template[a] for a in ring])
    moved = target1 + rotate((pts - l1) * (target_len / local_len), angle)
    return dict(zip(ring, moved))


class StructureDiagramGenerator:
    """Lay out molecules in 2D.

    Args:
        config: Layout tuning; the defaults are calibrated for a bond
            length of 1.4.

    Example:
        >>> from smilesdg import parse
        >>> mol = parse("C1CC2CCC1C2", generate_coordinates=False)
        >>> box = StructureDiagramGenerator().generate(mol).bounding_box()
        >>> box.width > 1.0 and box.height > 1.0
        True
    """

    def __init__(self, config: LayoutConfig | None = None) -> None:
        self.config = config or LayoutConfig()

    def generate(self, mol: Molecule) -> Molecule:
        """Return a copy of the molecule with fresh 2D coordinates.

        Molecules with fewer than two atoms come back with every atom at
        the origin.
        """
        out = mol.copy()
        if len(out.atoms) < 2:
            for atom in out.atoms:
                atom.position = ORIGIN
            return out

        self._mol = out
        self._adjacency = out.adjacency()
        self._edge_bonds: dict[EdgeKey, Bond] = {
            edge_key(b.atom1_id, b.atom2_id): b for b in out.bonds
        }
        rings = find_sssr(out, self.config.max_ring_size)

        layout: Positions = {}
        offset_x = 0.0
        components = out.connected_components()
        for component in components:
            positions, width = self._layout_component(set(component), rings, offset_x)
            layout.update(positions)
            offset_x += max(self.config.min_component_advance, width + self.config.component_gap)

        for atom in out.atoms:
            p = layout.get(atom.id)
            if p is not None:
                atom.position = (float(p[0]), float(p[1]))

        logger.debug(
            "Laid out %d atoms in %d components with %d rings",
            len(out.atoms), len(components), len(rings),
        )
        return out

    def _layout_component(
        self,
        component: set[int],
        rings: list[list[int]],
        offset_x: float,
    ) -> tuple[Positions, float]:
        """Place one component with its left edge at offset_x.

        Returns:
            The positions and the component's width.
        """
        cfg = self.config
        origin = point(offset_x, 0.0)
        positions: Positions = {}

        comp_rings = sorted((r for r in rings if not component.isdisjoint(r)), key=_ring_order)
        multiplicity = Counter(e for r in comp_rings for e in cycle_edges(r))

        def fused_edges(system: list[list[int]]) -> int:
            edges = {e for r in system for e in cycle_edges(r)}
            return sum(1 for e in edges if multiplicity[e] > 1)

        systems = find_ring_systems(comp_rings, min_shared=1)
        systems.sort(key=lambda s: (-fused_edges(s), -len({a for r in s for a in r}), -len(s)))

        if systems:
            self._place_ring_system(systems[0], component, positions, origin)

        ring_atoms = {a for r in comp_rings for a in r}
        ring_edges = {e for r in comp_rings for e in cycle_edges(r)}

        if not positions:
            positions[self._choose_seed(component, ring_atoms)] = origin.copy()

        rounds = 0
        progressed = True
        while progressed and rounds < cfg.chain_pass_limit:
            chains = self._place_longest_chains(component, ring_atoms, ring_edges, positions)
            partners = self._place_distributed_partners(component, comp_rings, positions, origin)
            progressed = chains or partners
            rounds += 1

        # Ring systems far from the first one
        for system in systems:
            members = sorted({a for r in system for a in r})
            if all(a in positions for a in members):
                continue
            placed = [positions[a] for a in members if a in positions]
            center = np.mean(placed, axis=0) if placed else self._free_spot(positions)
            self._place_ring_system(system, component, positions, center)

        self._place_distributed_partners(component, comp_rings, positions, origin)

        # Leftovers grow from a placed neighbor and bring their ring system along
        pending = [a for a in sorted(component) if a not in positions]
        while pending:
            atom_id = next(
                (a for a in pending if any(n in positions for n in self._adjacency[a])),
                pending[0],
            )
            anchor = next((n for n in self._adjacency[atom_id] if n in positions), None)
            if anchor is None:
                positions[atom_id] = self._free_spot(positions)
            else:
                direction = self._preferred_expansion_direction(anchor, positions)
                positions[atom_id] = positions[anchor] + direction * cfg.bond_length
            system = next((s for s in systems if any(atom_id in r for r in s)), None)
            if system is not None:
                self._place_ring_system(system, component, positions, positions[atom_id])
            pending = [a for a in pending if a not in positions]

        locked = {a for a in component if self._is_aromatic_atom(a)}
        self._optimize_by_bond_flips(component, positions, locked, ring_edges)
        self._relax(component, positions, locked)

        pts = np.array(list(positions.values()))
        lo = pts.min(axis=0)
        hi = pts.max(axis=0)
        shift = np.array((offset_x - lo[0], -(lo[1] + hi[1]) / 2))
        for atom_id in positions:
            positions[atom_id] = positions[atom_id] + shift
        return positions, max(EPSILON, float(hi[0] - lo[0]))

    def _is_aromatic_atom(self, atom_id: int) -> bool:
        atom = self._mol.atom(atom_id)
        if atom is not None and atom.is_aromatic:
            return True
        return any(b.order == BondOrder.AROMATIC for b in self._mol.bonds_for_atom(atom_id))

    def _free_spot(self, positions: Positions) -> np.ndarray:
        """A point right of everything placed so far."""
        right = max(p[0] for p in positions.values())
        return point(right + 2 * self.config.bond_length, 0.0)

    def _choose_seed(self, component: set[int], ring_atoms: set[int]) -> int:
        """Ring atoms first, then the most connected atom, then the highest id."""
        return max(
            component,
            key=lambda a: ((100 if a in ring_atoms else 0) + len(self._adjacency[a]), a),
        )

    # Rings

    def _place_regular_ring(self, ring: list[int], center: np.ndarray, positions: Positions) -> None:
        base = math.radians((ring[0] * 11) % 360)
        for atom_id, p in zip(ring, regular_polygon(len(ring), self.config.bond_length, base)):
            positions[atom_id] = center + p

    def _place_ring_system(
        self,
        rings: list[list[int]],
        component: set[int],
        positions: Positions,
        center: np.ndarray,
    ) -> None:
        """Place the unplaced atoms of a ring system.

        The ring with most atoms already placed (smallest on ties) is the
        seed; with nothing placed it becomes a regular polygon around
        center. Every other ring touching placed atoms is then fitted in
        turn, preferring fused over spiro over bridged attachment and rings
        that attach to earlier placed rings.
        """
        if not rings:
            return
        ordered = sorted(rings, key=_ring_order)

        def placed_count(ring: list[int]) -> int:
            return sum(1 for a in ring if a in positions)

        seed = max(range(len(ordered)), key=lambda i: (placed_count(ordered[i]), -len(ordered[i])))
        if placed_count(ordered[seed]) == 0:
            self._place_regular_ring(ordered[seed], center, positions)

        placed_rings: set[int] = set()
        order: list[int] = []
        if placed_count(ordered[seed]) == len(ordered[seed]):
            placed_rings.add(seed)
            order.append(seed)

        progress = True
        while progress:
            progress = False
            candidates: list[tuple[_Attachment, int, int, int, list[int], int]] = []

            for idx, ring in enumerate(ordered):
                if idx in placed_rings:
                    continue
                shared = placed_count(ring)
                if not shared:
                    continue
                mode, parent_rank = _Attachment.ISOLATED, sys.maxsize
                for rank, parent in enumerate(order):
                    m = _attachment(ring, ordered[parent])
                    if m < mode or (m == mode and rank < parent_rank):
                        mode, parent_rank = m, rank
                if mode == _Attachment.ISOLATED:
                    mode, parent_rank = _Attachment.BRIDGED, sys.maxsize // 2
                candidates.append((mode, parent_rank, -shared, len(ring), ring, idx))

            candidates.sort(key=lambda c: c[:5])

            for *_, ring, idx in candidates:
                if idx in placed_rings:
                    continue
                shared_atoms = [a for a in ring if a in positions]
                if not shared_atoms:
                    continue
                fitted = self._best_ring_placement(ring, shared_atoms, component, positions)
                if fitted is None:
                    continue
                did_place = False
                for atom_id in ring:
                    if atom_id not in positions and atom_id in fitted:
                        positions[atom_id] = fitted[atom_id]
                        did_place = True
                if did_place or placed_count(ring) == len(ring):
                    placed_rings.add(idx)
                    order.append(idx)
                    progress = True

    def _best_ring_placement(
        self,
        ring: list[int],
        shared: list[int],
        component: set[int],
        positions: Positions,
    ) -> Positions | None:
        """Lowest scoring ring template fitted through the placed atoms."""
        local = dict(zip(ring, regular_polygon(len(ring), self.config.bond_length)))
        mirror = {a: p * (1.0, -1.0) for a, p in local.items()}

        candidates: list[Positions] = []
        if len(shared) >= 2:
            for a, b in _anchor_pairs(ring, shared):
                for template in (local, mirror):
                    fitted = _transformed_ring(template, ring, a, b, positions[a], positions[b])
                    if fitted is not None:
                        candidates.append(fitted)
        elif shared:
            candidates = self._single_anchor_candidates(ring, local, mirror, shared[0], positions)

        if not candidates:
            return None
        return min(candidates, key=lambda c: self._ring_placement_score(c, ring, shared, component, positions))

    def _single_anchor_candidates(
        self,
        ring: list[int],
        local: Positions,
        mirror: Positions,
        shared_atom: int,
        positions: Positions,
    ) -> list[Positions]:
        """Ring templates hanging off one placed atom, centered away from its neighbors."""
        preferred = self._preferred_expansion_direction(shared_atom, positions)
        target = positions[shared_atom]

        def fit(template: Positions) -> Positions | None:
            pts = np.array([template[a] for a in ring]) - template[shared_atom]
            u_local = normalize(pts.mean(axis=0))
            u_pref = normalize(preferred)
            if u_local is None or u_pref is None:
                return None
            angle = angle_of(u_pref) - angle_of(u_local)
            return dict(zip(ring, target + rotate(pts, angle)))

        out = []
        for template in (local, mirror):
            fitted = fit(template)
            if fitted is not None:
                out.append(fitted)
        return out

    def _preferred_expansion_direction(self, atom_id: int, positions: Positions) -> np.ndarray:
        center = positions.get(atom_id)
        if center is None:
            return point(1.0, 0.0)
        placed = [positions[n] for n in self._adjacency[atom_id] if n in positions]
        if not placed:
            return unit_vector(math.radians((atom_id * 53) % 360))

        total = np.zeros(2)
        for p in placed:
            u = normalize(p - center)
            if u is not None:
                total += u
        away = normalize(-total)
        if away is not None:
            return away
        v = placed[0] - center
        perpendicular = normalize(point(-v[1], v[0]))
        return perpendicular if perpendicular is not None else point(1.0, 0.0)

    def _ring_placement_score(
        self,
        candidate: Positions,
        ring: list[int],
        shared: list[int],
        component: set[int],
        positions: Positions,
    ) -> float:
        """Anchor drift plus overlap and crossing penalties of a fitted ring."""
        cfg = self.config
        length = cfg.bond_length
        ring_set = set(ring)
        shared_set = set(shared)

        score = sum(norm(candidate[a] - positions[a]) for a in shared) * cfg.anchor_drift_weight

        existing = [a for a in sorted(component) if a in positions and a not in ring_set]
        new_atoms = [a for a in ring if a not in shared_set]
        new_pts = np.array([candidate[a] for a in new_atoms]).reshape(-1, 2)

        if existing and new_atoms:
            existing_pts = np.array([positions[a] for a in existing])
            score += overlap_penalty(
                cross_distances(new_pts, existing_pts),
                length * cfg.hard_overlap_ratio, cfg.hard_overlap_penalty,
                length * cfg.soft_overlap_ratio, cfg.soft_overlap_penalty,
            )

        if len(new_atoms) > 1:
            upper = np.triu_indices(len(new_atoms), k=1)
            score += overlap_penalty(
                pairwise_distances(new_pts)[upper],
                length * cfg.intra_ring_hard_ratio, cfg.intra_ring_penalty,
            )

        ring_edges = cycle_edges(ring)
        ring_edge_set = set(ring_edges)
        placed_edges = [
            key for key in self._edge_bonds
            if key[0] in component and key[1] in component
            and key[0] in positions and key[1] in positions
            and key not in ring_edge_set
        ]
        if ring_edges and placed_edges:
            a_ids = np.array(ring_edges)
            b_ids = np.array(placed_edges)
            a1 = np.array([candidate[a] for a, _ in ring_edges])
            a2 = np.array([candidate[b] for _, b in ring_edges])
            b1 = np.array([positions[a] for a, _ in placed_edges])
            b2 = np.array([positions[b] for _, b in placed_edges])
            score += self._edge_conflicts(
                a_ids, a1, a2, b_ids, b1, b2,
                cfg.edge_cross_penalty, length * cfg.edge_near_ratio, cfg.edge_near_penalty,
            )
        return score

    @staticmethod
    def _edge_conflicts(
        a_ids: np.ndarray,
        a1: np.ndarray,
        a2: np.ndarray,
        b_ids: np.ndarray,
        b1: np.ndarray,
        b2: np.ndarray,
        cross_penalty: float,
        near: float,
        near_weight: float,
        upper_only: bool = False,
    ) -> float:
        """Crossing and closeness penalty between two bond sets.

        Bond pairs sharing an atom are ignored; with upper_only the two sets
        are the same bonds and each pair is counted once.
        """
        independent = _independent_edges(a_ids, b_ids)
        if upper_only:
            independent &= np.triu(np.ones(independent.shape, dtype=bool), k=1)
        crossing = segment_crossings(a1, a2, b1, b2) & independent
        d = segment_distances(a1, a2, b1, b2)
        close = independent & ~crossing & (d < near)
        return float(crossing.sum()) * cross_penalty + float(np.sum((near - d[close]) ** 2)) * near_weight

    # Chains

    def _chain_atom(self, atom_id: int, ring_atoms: set[int]) -> bool:
        if atom_id in ring_atoms:
            return False
        atom = self._mol.atom(atom_id)
        return atom is not None and atom.symbol.upper() != "H"

    def _chain_edge(self, a: int, b: int, ring_edges: set[EdgeKey]) -> bool:
        key = edge_key(a, b)
        if key in ring_edges:
            return False
        bond = self._edge_bonds.get(key)
        return bond is not None and bond.order == BondOrder.SINGLE

    def _longest_chain(
        self,
        anchor: int,
        start: int,
        component: set[int],
        ring_atoms: set[int],
        ring_edges: set[EdgeKey],
        positions: Positions,
    ) -> list[int]:
        """Longest unplaced path anchor, start, ... over acyclic single bonds.

        A path may end on a ring atom but never starts on one. Ties go to
        the lexicographically smaller path.
        """
        if start in positions or start in ring_atoms:
            return [anchor]
        best = [anchor, start]
        visited = {anchor, start}

        def update(path: list[int]) -> None:
            nonlocal best
            if len(path) > len(best) or (len(path) == len(best) and path < best):
                best = path

        def dfs(prev: int, cur: int, path: list[int]) -> None:
            if not self._chain_atom(cur, ring_atoms):
                update(path)
                return
            extended = False
            for nxt in self._adjacency[cur]:
                if nxt == prev or nxt not in component or nxt in positions or nxt in visited:
                    continue
                if nxt in ring_atoms:
                    update(path + [nxt])
                    continue
                if not self._chain_atom(nxt, ring_atoms) or not self._chain_edge(cur, nxt, ring_edges):
                    continue
                visited.add(nxt)
                dfs(cur, nxt, path + [nxt])
                visited.discard(nxt)
                extended = True
            if not extended:
                update(path)

        dfs(anchor, start, [anchor, start])
        return best

    def _best_chain(
        self,
        component: set[int],
        ring_atoms: set[int],
        ring_edges: set[EdgeKey],
        positions: Positions,
    ) -> list[int] | None:
        best: list[int] = []
        for anchor in sorted(component):
            if anchor not in positions:
                continue
            for start in self._adjacency[anchor]:
                if start not in component or start in positions:
                    continue
                chain = self._longest_chain(anchor, start, component, ring_atoms, ring_edges, positions)
                if len(chain) > len(best) or (len(chain) == len(best) and chain < best):
                    best = chain
        return best if len(best) >= 2 else None

    def _place_longest_chains(
        self,
        component: set[int],
        ring_atoms: set[int],
        ring_edges: set[EdgeKey],
        positions: Positions,
    ) -> bool:
        placed_any = False
        for _ in range(self.config.chain_pass_limit):
            chain = self._best_chain(component, ring_atoms, ring_edges, positions)
            if chain is None:
                break
            initial = self._initial_chain_vector(chain[0], chain[1], component, positions)
            self._place_linear_chain(chain, initial, component, positions)
            placed_any = True
        return placed_any

    def _initial_chain_vector(
        self,
        anchor: int,
        first: int,
        component: set[int],
        positions: Positions,
    ) -> np.ndarray:
        """Direction away from the anchor's placed neighbors."""
        fallback = unit_vector(math.radians((anchor * 41 + first * 17) % 360))
        center = positions.get(anchor)
        if center is None:
            return fallback
        total = np.zeros(2)
        for n in self._adjacency[anchor]:
            if n in component and n in positions:
                u = normalize(positions[n] - center)
                if u is not None:
                    total += u
        away = normalize(-total)
        return away if away is not None else fallback

    def _chain_point_score(
        self,
        candidate: np.ndarray,
        centroid: np.ndarray | None,
        positions: Positions,
    ) -> float:
        cfg = self.config
        pts = np.array(list(positions.values()))
        d = np.hypot(*(pts - candidate).T)
        score = overlap_penalty(
            d,
            cfg.bond_length * cfg.chain_hard_ratio, cfg.chain_hard_penalty,
            cfg.bond_length * cfg.chain_soft_ratio, cfg.chain_soft_penalty,
        )
        if centroid is not None:
            score -= norm(candidate - centroid) * cfg.chain_centroid_pull
        return score

    def _place_linear_chain(
        self,
        chain: list[int],
        initial: np.ndarray,
        component: set[int],
        positions: Positions,
    ) -> None:
        """Lay a chain out as a zigzag starting from its placed anchor.

        Each atom goes to whichever side of the previous bond is less
        crowded and farther from the rest of the drawing; the side opposite
        the previous turn wins unless it is clearly worse.
        """
        cfg = self.config
        length = cfg.bond_length
        start_dir = normalize(initial)
        if start_dir is None:
            start_dir = unit_vector(0.0)
        if chain[1] not in positions:
            positions[chain[1]] = positions[chain[0]] + start_dir * length
        if len(chain) < 3:
            return

        excluded = set(chain[1:])
        others = [positions[a] for a in component if a in positions and a not in excluded]
        centroid = np.mean(others, axis=0) if others else None
        last_sign = 0

        for a, b, c in zip(chain, chain[1:], chain[2:]):
            pb = positions[b]
            back = normalize(positions[a] - pb)
            if back is None:
                back = unit_vector(0.0)
            p1 = pb + rotate(back, cfg.chain_angle) * length
            p2 = pb + rotate(back, -cfg.chain_angle) * length
            s1 = self._chain_point_score(p1, centroid, positions)
            s2 = self._chain_point_score(p2, centroid, positions)

            if last_sign == 0:
                pick_first = s1 <= s2
            else:
                preferred, alternate = (s1, s2) if last_sign < 0 else (s2, s1)
                if preferred <= alternate * cfg.chain_alternation_tolerance:
                    pick_first = last_sign < 0
                else:
                    pick_first = s1 <= s2

            positions[c] = p1 if pick_first else p2
            last_sign = 1 if pick_first else -1

    # Substituents

    def _preferred_angle(self, atom_id: int) -> float:
        """Conjugated angle next to a pi bond, saturated angle otherwise."""
        atom = self._mol.atom(atom_id)
        conjugated = atom is not None and atom.is_aromatic
        if not conjugated:
            conjugated = any(b.order in _PI_BONDS for b in self._mol.bonds_for_atom(atom_id))
        if not conjugated:
            conjugated = any(
                b.order in _PI_BONDS and b.other_atom(n) != atom_id
                for n in self._adjacency[atom_id]
                for b in self._mol.bonds_for_atom(n)
            )
        return self.config.conjugated_angle if conjugated else self.config.saturated_angle

    def _proposed_directions(
        self,
        center: int,
        placed: list[int],
        count: int,
        positions: Positions,
    ) -> list[np.ndarray]:
        """Unit vectors for the unplaced neighbors of a placed atom."""
        cfg = self.config
        center_pos = positions[center]

        if not placed:
            base = math.radians((center * 47) % 360)
            return fan_directions(count, base, 2 * math.pi)

        if len(placed) == 1:
            to_parent = normalize(positions[placed[0]] - center_pos)
            if to_parent is None:
                to_parent = point(-1.0, 0.0)
            target = self._preferred_angle(center)
            if count == 1:
                sign = 1.0 if (center + placed[0]) % 2 == 0 else -1.0
                return [rotate(to_parent, sign * target)]
            spread = min(cfg.branch_open_spread, target + 0.5)
            return fan_directions(count, angle_of(-to_parent), spread)

        units = [u for u in (normalize(positions[n] - center_pos) for n in placed) if u is not None]
        away = normalize(-np.sum(units, axis=0)) if units else None
        if away is None and units:
            away = normalize(point(-units[0][1], units[0][0]))
        if away is None:
            away = point(1.0, 0.0)
        return fan_directions(count, angle_of(away), cfg.branch_fan_spread)

    def _place_distributed_partners(
        self,
        component: set[int],
        comp_rings: list[list[int]],
        positions: Positions,
        fallback: np.ndarray,
    ) -> bool:
        """Place the unplaced neighbors of every placed atom.

        Rings through a placed atom are completed first; the remaining
        neighbors fan out around it.
        """
        progressed = False
        local = True
        passes = 0
        while local and passes < max(4, 2 * len(component)):
            local = False
            passes += 1
            for center in sorted(component):
                if center not in positions:
                    continue
                neighbors = [n for n in self._adjacency[center] if n in component]
                if all(n in positions for n in neighbors):
                    continue

                for ring in comp_rings:
                    if center in ring and any(a not in positions for a in ring):
                        self._place_ring_system([ring], component, positions, positions.get(center, fallback))

                placed = [n for n in neighbors if n in positions]
                unplaced = [n for n in neighbors if n not in positions]
                if not unplaced:
                    local = progressed = True
                    continue

                directions = self._proposed_directions(center, placed, len(unplaced), positions)
                for i, atom_id in enumerate(unplaced):
                    direction = directions[min(i, len(directions) - 1)]
                    positions[atom_id] = positions[center] + direction * self.config.bond_length
                local = progressed = True
        return progressed

    # Refinement

    def _component_bonds(self, component: set[int]) -> list[Bond]:
        return sorted(
            (b for b in self._edge_bonds.values() if b.atom1_id in component and b.atom2_id in component),
            key=lambda b: b.id,
        )

    def _side_of(self, start: int, blocked: EdgeKey, component: set[int]) -> set[int]:
        """Atoms reachable from start without crossing the blocked edge."""
        seen = {start}
        stack = [start]
        while stack:
            cur = stack.pop()
            for nxt in self._adjacency[cur]:
                if nxt not in component or edge_key(cur, nxt) == blocked or nxt in seen:
                    continue
                seen.add(nxt)
                stack.append(nxt)
        return seen

    def _layout_penalty(self, component: set[int], positions: Positions) -> float:
        """Non-bonded overlap plus bond crossing and closeness penalty."""
        cfg = self.config
        length = cfg.bond_length
        atoms = sorted(component)
        index = {a: i for i, a in enumerate(atoms)}
        pts = np.array([positions[a] for a in atoms])
        bonds = self._component_bonds(component)

        nonbonded = np.triu(np.ones((len(atoms), len(atoms)), dtype=bool), k=1)
        for b in bonds:
            i, j = index[b.atom1_id], index[b.atom2_id]
            nonbonded[i, j] = nonbonded[j, i] = False
        score = overlap_penalty(
            pairwise_distances(pts)[nonbonded],
            length * cfg.penalty_hard_ratio, cfg.penalty_hard_weight,
            length * cfg.penalty_soft_ratio, cfg.penalty_soft_weight,
        )

        if len(bonds) > 1:
            ids = np.array([(b.atom1_id, b.atom2_id) for b in bonds])
            starts = np.array([positions[b.atom1_id] for b in bonds])
            ends = np.array([positions[b.atom2_id] for b in bonds])
            score += self._edge_conflicts(
                ids, starts, ends, ids, starts, ends,
                cfg.penalty_crossing, length * cfg.penalty_near_ratio, cfg.penalty_near_weight,
                upper_only=True,
            )
        return score

    def _optimize_by_bond_flips(
        self,
        component: set[int],
        positions: Positions,
        locked: set[int],
        ring_edges: set[EdgeKey],
    ) -> None:
        """Mirror the smaller side of acyclic single bonds when that helps."""
        flips = 0
        for bond in self._component_bonds(component):
            if bond.order != BondOrder.SINGLE:
                continue
            key = edge_key(bond.atom1_id, bond.atom2_id)
            if key in ring_edges:
                continue
            left = self._side_of(bond.atom1_id, key, component)
            if bond.atom2_id in left:
                continue
            right = component - left
            side = left if len(left) <= len(right) else right
            if not side or not side.isdisjoint(locked):
                continue

            before = self._layout_penalty(component, positions)
            members = sorted(side)
            moved = reflect_points(
                np.array([positions[a] for a in members]),
                positions[bond.atom1_id],
                positions[bond.atom2_id],
            )
            trial = dict(positions)
            trial.update(zip(members, moved))
            if self._layout_penalty(component, trial) < before * self.config.bond_flip_gain:
                positions.update(trial)
                flips += 1
        if flips:
            logger.debug("Flipped %d bridge bonds", flips)

    def _relax(self, component: set[int], positions: Positions, locked: set[int]) -> None:
        """Spring relaxation with aromatic atoms held fixed.

        Each sweep corrects bond lengths one bond at a time, updating the
        positions in place. Close non-bonded pairs are then pushed apart
        together from one snapshot, and crossing bonds are pushed apart one
        pair at a time in place.
        """
        cfg = self.config
        atoms = sorted(component)
        if len(atoms) < 2:
            return
        length = cfg.bond_length
        index = {a: i for i, a in enumerate(atoms)}
        pts = np.array([positions[a] for a in atoms], dtype=float)
        free = np.array([a not in locked for a in atoms])
        bonds = [(index[b.atom1_id], index[b.atom2_id]) for b in self._component_bonds(component)]
        bond_ids = np.array(bonds, dtype=int).reshape(-1, 2)

        nonbonded = np.triu(np.ones((len(atoms), len(atoms)), dtype=bool), k=1)
        for i, j in bonds:
            nonbonded[i, j] = nonbonded[j, i] = False
        independent = _independent_edges(bond_ids, bond_ids)
        independent &= np.triu(np.ones(independent.shape, dtype=bool), k=1)
        min_distance = length * cfg.non_bonded_min_ratio
        crossing_push = length * cfg.crossing_push_ratio

        for _ in range(max(1, cfg.relax_iterations)):
            for i, j in bonds:
                v = pts[j] - pts[i]
                d = max(EPSILON, norm(v))
                delta = v / d * ((d - length) * cfg.bond_spring)
                if free[i]:
                    pts[i] += delta
                if free[j]:
                    pts[j] -= delta

            diff = pts[None, :, :] - pts[:, None, :]
            d = np.maximum(EPSILON, np.hypot(diff[..., 0], diff[..., 1]))
            rows, cols = np.nonzero(nonbonded & (d < min_distance))
            if len(rows):
                push = ((min_distance - d[rows, cols]) * cfg.non_bonded_push)[:, None]
                step = diff[rows, cols] / d[rows, cols][:, None] * push
                moves = np.zeros_like(pts)
                np.add.at(moves, rows, -step)
                np.add.at(moves, cols, step)
                pts += moves * free[:, None]

            if len(bonds) < 2:
                continue
            starts = pts[bond_ids[:, 0]]
            ends = pts[bond_ids[:, 1]]
            for k, m in zip(*np.nonzero(segment_crossings(starts, ends, starts, ends) & independent)):
                v1 = normalize(ends[k] - starts[k])
                v2 = normalize(ends[m] - starts[m])
                v1 = v1 if v1 is not None else point(1.0, 0.0)
                v2 = v2 if v2 is not None else point(0.0, 1.0)
                sign = 1.0 if v1[0] * v2[1] - v1[1] * v2[0] >= 0 else -1.0
                perp1 = point(-v1[1] * sign, v1[0] * sign) * crossing_push
                perp2 = point(v2[1] * sign, -v2[0] * sign) * crossing_push
                for atom in bonds[k]:
                    if free[atom]:
                        pts[atom] += perp1
                for atom in bonds[m]:
                    if free[atom]:
                        pts[atom] += perp2

        for a, i in index.items():
            positions[a] = pts[i].copy()


def needs_layout(mol: Molecule) -> bool:
    """True when every atom still sits at the origin."""
    return not mol.has_coordinates


def generate_coordinates(mol: Molecule, config: LayoutConfig | None = None) -> Molecule:
    """Return a laid-out copy of a molecule.

    Example:
        >>> from smilesdg import parse
        >>> mol = generate_coordinates(parse("CCO", generate_coordinates=False))
        >>> round(mol.distance(1, 2), 1)
        1.4
    """
    return StructureDiagramGenerator(config).generate(mol)
