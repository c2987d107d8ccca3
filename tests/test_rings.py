"""Tests for ring detection."""

import pytest

from smilesdg import parse
from smilesdg.rings import (
    canonical_cycle,
    cycle_edges,
    cycle_rank,
    edge_key,
    find_ring_systems,
    find_sssr,
    simple_cycles,
)


def parse_plain(smiles: str):
    return parse(smiles, generate_coordinates=False)


class TestCycleHelpers:
    """Test cycle normalization helpers."""

    def test_edge_key(self):
        """Edge keys ignore direction."""
        assert edge_key(5, 2) == edge_key(2, 5) == (2, 5)

    def test_cycle_edges(self):
        """The closing edge is included."""
        assert cycle_edges([1, 2, 3]) == [(1, 2), (2, 3), (1, 3)]
        assert cycle_edges([1]) == []

    @pytest.mark.parametrize("cycle", [[3, 1, 2], [2, 3, 1], [1, 3, 2], [2, 1, 3]])
    def test_canonical_cycle(self, cycle):
        """Rotations and reversals compare equal."""
        assert canonical_cycle(cycle) == [1, 2, 3]


class TestSimpleCycles:
    """Test bounded cycle enumeration."""

    def test_acyclic(self):
        """Chains have no cycles."""
        assert simple_cycles(parse_plain("CCCC")) == []

    def test_cyclohexane(self):
        """One six-membered cycle."""
        assert simple_cycles(parse_plain("C1CCCCC1")) == [[1, 2, 3, 4, 5, 6]]

    def test_naphthalene(self):
        """Two six-rings plus the ten-membered envelope."""
        mol = parse_plain("c1ccc2ccccc2c1")
        assert sorted(len(c) for c in simple_cycles(mol, max_size=10)) == [6, 6, 10]
        assert sorted(len(c) for c in simple_cycles(mol)) == [6, 6]

    def test_molecule_method(self):
        """Molecule.simple_cycles delegates with the same bound."""
        mol = parse_plain("C1CC1C1CCC1")
        assert mol.simple_cycles() == simple_cycles(mol)
        assert [len(c) for c in mol.simple_cycles()] == [3, 4]


class TestSSSR:
    """Test the smallest set of smallest rings."""

    @pytest.mark.parametrize("smiles,rank", [
        ("CCO", 0),
        ("C1CCCCC1", 1),
        ("c1ccc2ccccc2c1", 2),
        ("C1CC2CCC1C2", 2),
        ("C12C3C4C1C5C2C3C45", 5),
        ("C1CC1.C1CC1", 2),
    ])
    def test_cycle_rank(self, smiles, rank):
        """Ring count is E - V + C."""
        mol = parse_plain(smiles)
        assert cycle_rank(mol) == rank
        assert len(find_sssr(mol)) == rank

    def test_naphthalene_rings(self):
        """The envelope is not chosen."""
        rings = find_sssr(parse_plain("c1ccc2ccccc2c1"))
        assert [len(r) for r in rings] == [6, 6]

    def test_norbornane_rings(self):
        """Norbornane has two five-membered rings."""
        rings = find_sssr(parse_plain("C1CC2CCC1C2"))
        assert [len(r) for r in rings] == [5, 5]

    def test_covers_ring_bonds(self):
        """Every ring bond lies on a selected ring."""
        mol = parse_plain("c1ccc2c(c1)ccc1ccccc12")
        covered = {e for r in find_sssr(mol) for e in cycle_edges(r)}
        ring_edges = {e for c in simple_cycles(mol) for e in cycle_edges(c)}
        assert ring_edges <= covered

    def test_size_bound(self):
        """Rings beyond max_size are not reported."""
        mol = parse_plain("C1CCCCCCCCCCCCCC1")
        assert find_sssr(mol) == []
        assert len(find_sssr(mol, max_size=15)) == 1


class TestRingSystems:
    """Test grouping rings into systems."""

    def test_fused(self):
        """Rings sharing a bond form one system."""
        rings = [[1, 2, 3, 4, 5, 6], [5, 6, 7, 8, 9, 10]]
        assert find_ring_systems(rings) == [rings]

    def test_spiro_threshold(self):
        """A single shared atom joins only with min_shared=1."""
        rings = [[1, 2, 3, 4, 5], [5, 6, 7, 8, 9]]
        assert len(find_ring_systems(rings)) == 2
        assert len(find_ring_systems(rings, min_shared=1)) == 1

    def test_separate(self):
        """Disjoint rings stay apart, in input order."""
        rings = [[1, 2, 3], [4, 5, 6]]
        assert find_ring_systems(rings) == [[[1, 2, 3]], [[4, 5, 6]]]

    def test_empty(self):
        """No rings, no systems."""
        assert find_ring_systems([]) == []
