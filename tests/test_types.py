"""Tests for the molecular graph types."""

import pytest

from smilesdg import Atom, Bond, BondOrder, Molecule, parse


def parse_plain(smiles: str) -> Molecule:
    return parse(smiles, generate_coordinates=False)


class TestConstruction:
    """Test building molecules by hand."""

    def test_ids_start_at_one(self):
        """Atom and bond ids are one-based and increasing."""
        mol = Molecule()
        a = mol.add_atom("C")
        b = mol.add_atom("O")
        assert (a, b) == (1, 2)
        assert mol.add_bond(a, b) == 1

    def test_default_name(self):
        assert Molecule().name == "Untitled"

    def test_explicit_atom_id(self):
        """Explicit ids are kept and the next free id follows the largest."""
        mol = Molecule()
        mol.add_atom("C", atom_id=10)
        assert mol.add_atom("C") == 11

    def test_duplicate_atom_id(self):
        mol = Molecule()
        mol.add_atom("C", atom_id=3)
        with pytest.raises(ValueError):
            mol.add_atom("N", atom_id=3)

    def test_self_loop(self):
        mol = Molecule()
        a = mol.add_atom("C")
        with pytest.raises(ValueError):
            mol.add_bond(a, a)

    def test_unknown_atom(self):
        mol = Molecule()
        a = mol.add_atom("C")
        with pytest.raises(KeyError):
            mol.add_bond(a, 99)

    def test_copy_is_independent(self):
        """Changing a copy leaves the original alone."""
        mol = parse_plain("CCO")
        dup = mol.copy()
        dup.atoms[0].charge = 1
        dup.bonds[0].order = BondOrder.DOUBLE
        dup.name = "changed"
        assert mol.atoms[0].charge == 0
        assert mol.bonds[0].order == BondOrder.SINGLE
        assert mol.name == "Untitled"


class TestQueries:
    """Test connectivity lookups."""

    def test_atom_and_bond_lookup(self):
        mol = parse_plain("CCO")
        assert mol.atom(3).symbol == "O"
        assert mol.atom(4) is None
        assert mol.bond(2).atom2_id == 3
        assert mol.bond(7) is None

    def test_bond_between(self):
        """Lookup works in either direction."""
        mol = parse_plain("CC=O")
        assert mol.bond_between(3, 2).order == BondOrder.DOUBLE
        assert mol.bond_between(1, 3) is None

    def test_neighbors_and_degree(self):
        mol = parse_plain("CC(C)(C)O")
        assert sorted(mol.neighbors(2)) == [1, 3, 4, 5]
        assert mol.degree(2) == 4
        assert mol.degree(1) == 1

    def test_bonds_for_atom(self):
        mol = parse_plain("OCC")
        assert [b.id for b in mol.bonds_for_atom(2)] == [1, 2]

    def test_adjacency_sorted(self):
        mol = parse_plain("C1CCC1")
        assert mol.adjacency()[1] == [2, 4]

    def test_connected_components(self):
        """Components are sorted id lists ordered by their lowest id."""
        mol = parse_plain("CC.O.CN")
        assert mol.connected_components() == [[1, 2], [3], [4, 5]]

    def test_simple_cycles(self):
        assert parse_plain("C1CC1").simple_cycles() == [[1, 2, 3]]

    def test_other_atom(self):
        bond = Bond(id=1, atom1_id=1, atom2_id=2)
        assert bond.other_atom(2) == 1
        assert 1 in bond
        with pytest.raises(ValueError):
            bond.other_atom(3)


class TestAtom:
    """Test atom properties."""

    def test_atomic_number(self):
        assert Atom(id=1, symbol="Cl").atomic_number == 17
        assert Atom(id=1, symbol="R1").atomic_number == 0

    def test_label(self):
        """Isotopes prefix the drawn label."""
        assert Atom(id=1, symbol="C", isotope=13).label == "13C"
        assert Atom(id=1, symbol="N").label == "N"


class TestGeometry:
    """Test coordinate helpers."""

    def test_unlaid_out(self):
        mol = parse_plain("CC")
        assert not mol.has_coordinates

    def test_bounding_box(self):
        mol = Molecule()
        mol.add_atom("C", position=(-1.0, 2.0))
        mol.add_atom("C", position=(3.0, 4.0))
        box = mol.bounding_box()
        assert (box.min_x, box.min_y, box.width, box.height) == (-1.0, 2.0, 4.0, 2.0)
        assert box.max_x == 3.0
        assert box.mid_y == 3.0

    def test_bounding_box_clamped(self):
        """A single atom still has a positive box."""
        mol = Molecule()
        mol.add_atom("C")
        box = mol.bounding_box()
        assert box.width > 0 and box.height > 0

    def test_empty_bounding_box(self):
        assert Molecule().bounding_box() is None

    def test_distance(self):
        mol = Molecule()
        mol.add_atom("C", position=(0.0, 0.0))
        mol.add_atom("C", position=(3.0, 4.0))
        assert mol.distance(1, 2) == pytest.approx(5.0)
        with pytest.raises(KeyError):
            mol.distance(1, 9)
