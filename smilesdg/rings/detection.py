"""
Ring detection algorithms.

This module provides:
- Bounded simple-cycle enumeration
- An SSSR-like ring set (cycle-rank many rings covering the ring bonds)
- Ring system grouping

Cycles are ordered atom id lists without the closing repeat, canonicalized
so the same ring found from different atoms or directions compares equal.

Example:
    >>> from smilesdg import parse
    >>> mol = parse("C1CC2CCC1C2", generate_coordinates=False)
    >>> len(find_sssr(mol))
    2
"""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from smilesdg.types import Molecule


DEFAULT_MAX_CYCLE_SIZE: Final[int] = 8
SSSR_MAX_CYCLE_SIZE: Final[int] = 12

EdgeKey = tuple[int, int]


def edge_key(a: int, b: int) -> EdgeKey:
    """Order-independent key for the edge between two atoms."""
    return (a, b) if a <= b else (b, a)


def cycle_edges(ring: list[int]) -> list[EdgeKey]:
    """Edge keys around a cycle, including the closing edge."""
    if len(ring) < 2:
        return []
    n = len(ring)
    return [edge_key(ring[i], ring[(i + 1) % n]) for i in range(n)]


def canonical_cycle(cycle: list[int]) -> list[int]:
    """Smallest rotation of a cycle over both traversal directions.

    Example:
        >>> canonical_cycle([3, 1, 2])
        [1, 2, 3]
        >>> canonical_cycle([1, 3, 2])
        [1, 2, 3]
    """
    if not cycle:
        return []
    n = len(cycle)
    backward = cycle[::-1]
    candidates = [cycle[i:] + cycle[:i] for i in range(n)]
    candidates += [backward[i:] + backward[:i] for i in range(n)]
    return min(candidates)


def simple_cycles(mol: Molecule, max_size: int = DEFAULT_MAX_CYCLE_SIZE) -> list[list[int]]:
    """Enumerate simple cycles up to max_size atoms.

    A DFS runs from every atom id; a path only continues through atoms whose
    id is not below the start id, so each cycle is found from its smallest
    member only. Results are canonicalized and de-duplicated. The size bound
    keeps fused ring systems from blowing up combinatorially; macrocycles
    beyond it are simply not reported.

    Args:
        mol: Molecule to search.
        max_size: Largest cycle size (atom count) reported.

    Returns:
        Sorted list of canonical cycles.
    """
    if len(mol.atoms) < 3:
        return []

    adjacency = mol.adjacency()
    unique: set[tuple[int, ...]] = set()

    def dfs(start: int, current: int, path: list[int], visited: set[int]) -> None:
        if len(path) > max_size:
            return
        for nxt in adjacency.get(current, ()):
            if nxt == start:
                if len(path) >= 3:
                    unique.add(tuple(canonical_cycle(path)))
                continue
            if nxt in visited or len(path) >= max_size or nxt < start:
                continue
            visited.add(nxt)
            path.append(nxt)
            dfs(start, nxt, path, visited)
            path.pop()
            visited.remove(nxt)

    for start in sorted(adjacency):
        dfs(start, start, [start], {start})

    return [list(c) for c in sorted(unique, key=lambda c: (len(c), c))]


def cycle_rank(mol: Molecule) -> int:
    """Number of independent cycles: E - V + C."""
    edges = {edge_key(b.atom1_id, b.atom2_id) for b in mol.bonds}
    components = len(mol.connected_components())
    return max(0, len(edges) - len(mol.atoms) + components)


def _shortest_path_excluding_edge(
    adjacency: dict[int, list[int]],
    start: int,
    end: int,
    excluded: EdgeKey,
    max_depth: int,
) -> list[int] | None:
    """BFS path from start to end that does not use the excluded edge."""
    queue: deque[int] = deque([start])
    parent: dict[int, int] = {}
    depth = {start: 0}

    while queue:
        cur = queue.popleft()
        if cur == end:
            break
        if depth[cur] >= max_depth:
            continue
        for nxt in adjacency.get(cur, ()):
            if edge_key(cur, nxt) == excluded or nxt in depth:
                continue
            parent[nxt] = cur
            depth[nxt] = depth[cur] + 1
            queue.append(nxt)

    if end not in depth:
        return None
    path = [end]
    while path[-1] != start:
        path.append(parent[path[-1]])
    path.reverse()
    return path


def _shortest_cycle_candidates(mol: Molecule, max_size: int) -> list[list[int]]:
    """For every bond, the shortest cycle through it (when small enough)."""
    adjacency = mol.adjacency()
    edges = sorted({edge_key(b.atom1_id, b.atom2_id) for b in mol.bonds})
    out: list[list[int]] = []
    for a, b in edges:
        path = _shortest_path_excluding_edge(adjacency, a, b, (a, b), max_size - 1)
        if path is not None and 3 <= len(path) <= max_size:
            out.append(canonical_cycle(path))
    return out


def find_sssr(mol: Molecule, max_size: int = SSSR_MAX_CYCLE_SIZE) -> list[list[int]]:
    """Find an SSSR-like ring set.

    Candidates are the shortest cycle through each bond plus all bounded
    simple cycles, smallest first. Rings are picked greedily while they
    cover a not-yet-covered bond, then topped up in candidate order until
    the cycle rank is reached.

    Args:
        mol: Molecule to analyze.
        max_size: Largest ring considered.

    Returns:
        At most ``cycle_rank(mol)`` canonical rings, smallest first.
    """
    rank = cycle_rank(mol)
    if rank == 0:
        return []

    seen: set[tuple[int, ...]] = set()
    candidates: list[list[int]] = []
    for cycle in _shortest_cycle_candidates(mol, max_size) + simple_cycles(mol, max_size):
        key = tuple(canonical_cycle(cycle))
        if key not in seen:
            seen.add(key)
            candidates.append(list(key))
    candidates.sort(key=lambda c: (len(c), c))

    selected: list[list[int]] = []
    covered: set[EdgeKey] = set()
    for ring in candidates:
        edges = cycle_edges(ring)
        if any(e not in covered for e in edges):
            selected.append(ring)
            covered.update(edges)
        if len(selected) >= rank:
            break

    if len(selected) < rank:
        for ring in candidates:
            if ring not in selected:
                selected.append(ring)
                if len(selected) >= rank:
                    break

    return selected[:rank]


def find_ring_systems(rings: list[list[int]], min_shared: int = 2) -> list[list[list[int]]]:
    """Group rings into ring systems.

    Two rings belong to the same system when they share at least
    ``min_shared`` atoms: 2 groups fused and bridged rings, 1 also joins
    spiro rings.

    Args:
        rings: Rings as atom id lists.
        min_shared: Minimum shared atom count for two rings to be joined.

    Returns:
        Ring systems in order of their first ring, each keeping input order.

    Example:
        >>> find_ring_systems([[1, 2, 3, 4, 5, 6], [5, 6, 7, 8, 9, 10]])
        [[[1, 2, 3, 4, 5, 6], [5, 6, 7, 8, 9, 10]]]
    """
    if not rings:
        return []

    n = len(rings)
    parent = list(range(n))
    ring_sets = [set(r) for r in rings]

    def find(x: int) -> int:
        if parent[x] != x:
            parent[x] = find(parent[x])
        return parent[x]

    def union(x: int, y: int) -> None:
        px, py = find(x), find(y)
        if px != py:
            parent[max(px, py)] = min(px, py)

    for i in range(n):
        for j in range(i + 1, n):
            if len(ring_sets[i] & ring_sets[j]) >= min_shared:
                union(i, j)

    systems: dict[int, list[list[int]]] = {}
    for i in range(n):
        systems.setdefault(find(i), []).append(rings[i])

    return [systems[k] for k in sorted(systems)]
